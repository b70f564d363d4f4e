"""
XML component definition parsing for the component bindings generator
"""

import xml.etree.ElementTree as ET

from .code_generators import symbol_name
from .constants import BASE_CLASS_NAME, BINDING_LANGUAGES
from .model import (
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


def _tag(element) -> str:
    """Element tag without its XML namespace"""
    return element.tag.rsplit("}", 1)[-1]


def _children(element, name: str) -> list:
    return [child for child in element if _tag(child) == name]


def _child(element, name: str):
    children = _children(element, name)
    return children[0] if children else None


def _required(element, attribute: str, context: str) -> str:
    value = element.get(attribute)
    if value is None or not value.strip():
        raise ValueError(f"{context} missing '{attribute}' attribute")
    return value.strip()


def _integer(element, attribute: str, context: str, default: int = None) -> int:
    value = element.get(attribute)
    if value is None:
        if default is None:
            raise ValueError(f"{context} missing '{attribute}' attribute")
        return default
    try:
        return int(value.strip(), 0)
    except ValueError:
        raise ValueError(f"{context} has invalid integer '{value}' in '{attribute}' attribute")


def _parse_param(element, context: str) -> Param:
    name = _required(element, "name", context)
    param_context = f"Param '{name}' of {context}"
    return Param(
        name=name,
        param_type=_required(element, "type", param_context),
        param_pass=_required(element, "pass", param_context),
        param_class=element.get("class", "").strip(),
        description=element.get("description", "").strip(),
    )


def _parse_method(element, context: str) -> Method:
    name = _required(element, "name", f"Method element in {context}")
    method_context = f"method '{name}' in {context}"
    return Method(
        name=name,
        params=[_parse_param(param, method_context) for param in _children(element, "param")],
        description=element.get("description", "").strip(),
        dll_suffix=element.get("dllsuffix", "").strip(),
    )


def _parse_class(element) -> Class:
    name = _required(element, "name", "Class element")
    if name == BASE_CLASS_NAME:
        raise ValueError(f"Class name '{BASE_CLASS_NAME}' is reserved for the implicit base class")
    context = f"class '{name}'"
    parent = element.get("parent", "").strip()
    if parent == BASE_CLASS_NAME:
        parent = ""
    return Class(
        name=name,
        methods=[_parse_method(method, context) for method in _children(element, "method")],
        parent=parent,
        description=element.get("description", "").strip(),
    )


def _parse_global(element) -> Global:
    if element is None:
        return Global()
    return Global(
        methods=[_parse_method(method, "global") for method in _children(element, "method")],
        release_method=element.get("releasemethod", "").strip(),
        version_method=element.get("versionmethod", "").strip(),
    )


def _parse_errors(element) -> list[ErrorCode]:
    errors = []
    if element is None:
        return errors
    for error in _children(element, "error"):
        name = _required(error, "name", "Error element")
        errors.append(ErrorCode(
            name=name,
            code=_integer(error, "code", f"Error '{name}'"),
            description=error.get("description", "").strip(),
        ))
    return errors


def _parse_enum(element) -> Enum:
    name = _required(element, "name", "Enum element")
    options = []
    for option in _children(element, "option"):
        option_name = _required(option, "name", f"Option of enum '{name}'")
        options.append(EnumOption(option_name, _integer(option, "value", f"Option '{option_name}' of enum '{name}'")))
    return Enum(name, options)


def _parse_struct(element) -> Struct:
    name = _required(element, "name", "Struct element")
    members = []
    for member in _children(element, "member"):
        member_name = _required(member, "name", f"Member of struct '{name}'")
        context = f"Member '{member_name}' of struct '{name}'"
        members.append(Member(
            name=member_name,
            member_type=_required(member, "type", context),
            member_class=member.get("class", "").strip(),
            rows=_integer(member, "rows", context, default=0),
            columns=_integer(member, "columns", context, default=0),
        ))
    return Struct(name, members)


def _parse_function_type(element) -> FunctionType:
    name = _required(element, "name", "Functiontype element")
    context = f"function type '{name}'"
    return FunctionType(
        name=name,
        params=[_parse_param(param, context) for param in _children(element, "param")],
        description=element.get("description", "").strip(),
    )


def _parse_bindings(element) -> list[str]:
    bindings = []
    if element is None:
        return bindings
    for binding in _children(element, "binding"):
        language = _required(binding, "language", "Binding element")
        if language not in BINDING_LANGUAGES:
            raise ValueError(
                f"Invalid binding language '{language}'. Must be one of: {', '.join(BINDING_LANGUAGES)}"
            )
        bindings.append(language)
    return bindings


def validate_component(component: ComponentDefinition):
    """Reject definitions that no generated surface could represent"""
    class_names = set()
    for cls in component.classes:
        if cls.name in class_names:
            raise ValueError(f"Duplicate class '{cls.name}'")
        class_names.add(cls.name)

    for cls in component.classes:
        if cls.parent and cls.parent not in class_names:
            raise ValueError(f"Unknown parent class '{cls.parent}' of class '{cls.name}'")
        # raises on inheritance cycles
        component.ancestor_chain(cls.name)

    release_method = component.globals.release_method
    if release_method and component.globals.find_method(release_method) is None:
        raise ValueError(f"Release method '{release_method}' is not a declared global method")
    version_method = component.globals.version_method
    if version_method and component.globals.find_method(version_method) is None:
        raise ValueError(f"Version method '{version_method}' is not a declared global method")

    symbols = {}
    for cls in component.classes:
        for method in cls.methods:
            _register_symbol(symbols, symbol_name(component.namespace, cls.name, method), f"{cls.name}.{method.name}")
    for method in component.globals.methods:
        _register_symbol(symbols, symbol_name(component.namespace, "", method, is_global=True), method.name)


def _register_symbol(symbols: dict[str, str], symbol: str, owner: str):
    if symbol in symbols:
        raise ValueError(f"Duplicate exported symbol '{symbol}' for {symbols[symbol]} and {owner}")
    symbols[symbol] = owner


def parse_component_element(root) -> ComponentDefinition:
    """Build and validate a ComponentDefinition from a parsed <component> element"""
    if _tag(root) != "component":
        raise ValueError(f"Expected root element 'component', got '{_tag(root)}'")

    version_text = _required(root, "version", "Component element")
    try:
        version = Version.parse(version_text)
    except ValueError as e:
        raise ValueError(f"Invalid component version: {e}")

    component = ComponentDefinition(
        namespace=_required(root, "namespace", "Component element"),
        library_name=_required(root, "libraryname", "Component element"),
        base_name=_required(root, "basename", "Component element"),
        version=version,
        classes=[_parse_class(element) for element in _children(root, "class")],
        globals=_parse_global(_child(root, "global")),
        errors=_parse_errors(_child(root, "errors")),
        enums=[_parse_enum(element) for element in _children(root, "enum")],
        structs=[_parse_struct(element) for element in _children(root, "struct")],
        functions=[_parse_function_type(element) for element in _children(root, "functiontype")],
        bindings=_parse_bindings(_child(root, "bindings")),
    )
    validate_component(component)
    return component


def parse_component_string(text: str) -> ComponentDefinition:
    """Parse a component definition from XML text"""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ValueError(f"XML parsing error: {e}")
    return parse_component_element(root)


def parse_component_file(component_path) -> ComponentDefinition:
    """Parse an XML component definition file and return the ComponentDefinition"""
    try:
        tree = ET.parse(component_path)
    except ET.ParseError as e:
        raise ValueError(f"XML parsing error: {e}")
    except FileNotFoundError:
        raise FileNotFoundError(f"Component definition file not found: {component_path}")
    return parse_component_element(tree.getroot())
