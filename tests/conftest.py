"""
Pytest configuration and fixtures
"""

import pytest

from component_binding_generator.model import (
    Class,
    ComponentDefinition,
    Enum,
    EnumOption,
    ErrorCode,
    FunctionType,
    Global,
    Member,
    Method,
    Param,
    Struct,
    Version,
)


COMPONENT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<component namespace="Ex" libraryname="Example Library" basename="ex" version="1.2.3">
    <errors>
        <error name="NOTIMPLEMENTED" code="1" description="functionality not implemented"/>
    </errors>
    <enum name="Color">
        <option name="Red" value="0"/>
        <option name="Green" value="1"/>
        <option name="Blue" value="2"/>
    </enum>
    <struct name="Point">
        <member name="X" type="double"/>
        <member name="Y" type="double"/>
    </struct>
    <struct name="Transform">
        <member name="Matrix" type="single" rows="4" columns="4"/>
        <member name="Tint" type="enum" class="Color"/>
    </struct>
    <functiontype name="ProgressCallback" description="reports progress">
        <param name="Progress" type="single" pass="in" description="progress between 0 and 1"/>
    </functiontype>
    <class name="Base" description="root of all instances">
        <method name="GetLastError" description="returns the last error">
            <param name="ErrorMessage" type="string" pass="out" description="message of the last error"/>
            <param name="HasError" type="bool" pass="return" description="true if an error occurred"/>
        </method>
    </class>
    <class name="Widget" parent="Base" description="a widget">
        <method name="GetName" description="returns the name">
            <param name="Name" type="string" pass="out" description="name of the widget"/>
        </method>
        <method name="SetName" description="sets the name">
            <param name="Name" type="string" pass="in" description="new name"/>
        </method>
        <method name="GetColor" description="returns the color">
            <param name="Color" type="enum" class="Color" pass="return" description="current color"/>
        </method>
        <method name="SetPosition" description="moves the widget">
            <param name="Position" type="struct" class="Point" pass="in" description="new position"/>
        </method>
        <method name="GetValues" description="returns the values">
            <param name="Values" type="basicarray" class="double" pass="out" description="widget values"/>
        </method>
        <method name="SetValues" description="sets the values">
            <param name="Values" type="basicarray" class="uint32" pass="in" description="new values"/>
        </method>
        <method name="GetChild" description="returns the child and its label">
            <param name="Child" type="handle" class="Widget" pass="out" description="child widget"/>
            <param name="Label" type="string" pass="out" description="label of the child"/>
        </method>
        <method name="Clone" description="copies the widget">
            <param name="Clone" type="handle" class="Widget" pass="return" description="the copy"/>
        </method>
        <method name="GetSize" description="returns the size" dllsuffix="_v2">
            <param name="Size" type="uint32" pass="return" description="size in pixels"/>
        </method>
    </class>
    <global releasemethod="ReleaseInstance" versionmethod="GetVersion">
        <method name="ReleaseInstance" description="releases an instance">
            <param name="Instance" type="handle" class="BaseClass" pass="in" description="instance to release"/>
        </method>
        <method name="GetVersion" description="returns the library version">
            <param name="Major" type="uint32" pass="out" description="major version"/>
            <param name="Minor" type="uint32" pass="out" description="minor version"/>
            <param name="Micro" type="uint32" pass="out" description="micro version"/>
        </method>
        <method name="CreateWidget" description="creates a widget">
            <param name="Widget" type="handle" class="Widget" pass="return" description="new widget"/>
        </method>
        <method name="SetProgressCallback" description="registers a progress callback">
            <param name="Callback" type="functiontype" class="ProgressCallback" pass="in" description="callback"/>
        </method>
    </global>
</component>
"""


def build_example_component() -> ComponentDefinition:
    """Model equivalent of COMPONENT_XML"""
    base = Class(
        name="Base",
        description="root of all instances",
        methods=[
            Method("GetLastError", [
                Param("ErrorMessage", "string", "out", description="message of the last error"),
                Param("HasError", "bool", "return", description="true if an error occurred"),
            ], description="returns the last error"),
        ],
    )
    widget = Class(
        name="Widget",
        parent="Base",
        description="a widget",
        methods=[
            Method("GetName", [
                Param("Name", "string", "out", description="name of the widget"),
            ], description="returns the name"),
            Method("SetName", [
                Param("Name", "string", "in", description="new name"),
            ], description="sets the name"),
            Method("GetColor", [
                Param("Color", "enum", "return", "Color", "current color"),
            ], description="returns the color"),
            Method("SetPosition", [
                Param("Position", "struct", "in", "Point", "new position"),
            ], description="moves the widget"),
            Method("GetValues", [
                Param("Values", "basicarray", "out", "double", "widget values"),
            ], description="returns the values"),
            Method("SetValues", [
                Param("Values", "basicarray", "in", "uint32", "new values"),
            ], description="sets the values"),
            Method("GetChild", [
                Param("Child", "handle", "out", "Widget", "child widget"),
                Param("Label", "string", "out", description="label of the child"),
            ], description="returns the child and its label"),
            Method("Clone", [
                Param("Clone", "handle", "return", "Widget", "the copy"),
            ], description="copies the widget"),
            Method("GetSize", [
                Param("Size", "uint32", "return", description="size in pixels"),
            ], description="returns the size", dll_suffix="_v2"),
        ],
    )
    global_methods = Global(
        methods=[
            Method("ReleaseInstance", [
                Param("Instance", "handle", "in", "BaseClass", "instance to release"),
            ], description="releases an instance"),
            Method("GetVersion", [
                Param("Major", "uint32", "out", description="major version"),
                Param("Minor", "uint32", "out", description="minor version"),
                Param("Micro", "uint32", "out", description="micro version"),
            ], description="returns the library version"),
            Method("CreateWidget", [
                Param("Widget", "handle", "return", "Widget", "new widget"),
            ], description="creates a widget"),
            Method("SetProgressCallback", [
                Param("Callback", "functiontype", "in", "ProgressCallback", "callback"),
            ], description="registers a progress callback"),
        ],
        release_method="ReleaseInstance",
        version_method="GetVersion",
    )
    return ComponentDefinition(
        namespace="Ex",
        library_name="Example Library",
        base_name="ex",
        version=Version(1, 2, 3),
        classes=[base, widget],
        globals=global_methods,
        errors=[ErrorCode("NOTIMPLEMENTED", 1, "functionality not implemented")],
        enums=[Enum("Color", [EnumOption("Red", 0), EnumOption("Green", 1), EnumOption("Blue", 2)])],
        structs=[
            Struct("Point", [Member("X", "double"), Member("Y", "double")]),
            Struct("Transform", [
                Member("Matrix", "single", rows=4, columns=4),
                Member("Tint", "enum", "Color"),
            ]),
        ],
        functions=[
            FunctionType("ProgressCallback", [
                Param("Progress", "single", "in", description="progress between 0 and 1"),
            ], description="reports progress"),
        ],
    )


@pytest.fixture
def example_component():
    """Component with a two-level class chain, every parameter kind and a release method"""
    return build_example_component()


@pytest.fixture
def component_xml():
    return COMPONENT_XML


@pytest.fixture
def component_file(tmp_path):
    """Write the example component definition to a temporary XML file"""
    path = tmp_path / "component.xml"
    path.write_text(COMPONENT_XML)
    return path


@pytest.fixture
def widget_only_component():
    """Minimal component matching the GetName example"""
    return ComponentDefinition(
        namespace="Ex",
        library_name="Example Library",
        base_name="ex",
        classes=[
            Class("Widget", [
                Method("GetName", [Param("Name", "string", "out", description="name of the widget")]),
            ]),
        ],
        globals=Global(
            methods=[
                Method("ReleaseInstance", [Param("Instance", "handle", "in", "BaseClass")]),
            ],
            release_method="ReleaseInstance",
        ),
    )
