"""
Code generation for the dynamically loaded function table

The table is plain data: a library handle plus one function pointer per
class and global method. Three procedures operate on it. Init zeroes it,
Release unloads the library and falls back to Init, and Load releases what
the table held before resolving every export in declaration order, storing the
library handle only once all of them were found. Load and Release expect a
table that went through Init.
"""

from dataclasses import dataclass, field

from .code_generators import CodeGenerator, OutputBuilder, symbol_name
from .constants import DYNAMIC_HEADER_SUFFIX, TYPES_HEADER_SUFFIX
from .marshaling import GLOBAL_CLASS_NAME, MarshalingEngine
from .model import ComponentDefinition, Method


LIBRARY_HANDLE_FIELD = "m_LibraryHandle"


@dataclass(frozen=True)
class TableEntry:
    """Function-pointer slot of the table"""
    field_name: str
    pointer_type: str
    symbol: str
    method: Method
    class_name: str = ""

    @property
    def is_global(self) -> bool:
        return not self.class_name


@dataclass(frozen=True)
class DynamicTableLayout:
    """Ordered slots of the function table: class methods first, then globals"""
    type_name: str
    entries: list[TableEntry] = field(default_factory=list)

    @classmethod
    def from_component(cls, component: ComponentDefinition) -> "DynamicTableLayout":
        ns = component.namespace
        entries = []
        for component_class in component.classes:
            for method in component_class.methods:
                entries.append(TableEntry(
                    field_name=f"m_{component_class.name}_{method.name}",
                    pointer_type=f"P{ns}{component_class.name}_{method.name}Ptr",
                    symbol=symbol_name(ns, component_class.name, method),
                    method=method,
                    class_name=component_class.name,
                ))
        for method in component.globals.methods:
            entries.append(TableEntry(
                field_name=f"m_{method.name}",
                pointer_type=f"P{ns}{method.name}Ptr",
                symbol=symbol_name(ns, "", method, is_global=True),
                method=method,
            ))
        return cls(f"s{ns}DynamicWrapperTable", entries)

    def find(self, class_name: str, method_name: str) -> TableEntry:
        """Slot of a class method, or of a global method when class_name is empty"""
        for entry in self.entries:
            if entry.class_name == class_name and entry.method.name == method_name:
                return entry
        raise KeyError(f"{class_name}.{method_name}" if class_name else method_name)


@dataclass(frozen=True)
class LoaderNames:
    """Names of the table procedures and platform helpers in one rendering"""
    init: str
    release: str
    load: str
    load_library: str
    get_export: str
    free_library: str


class DynamicTableGenerator:
    """Generates the dynamic loading header and its table implementation"""

    def __init__(self, component: ComponentDefinition, engine: MarshalingEngine = None):
        self.component = component
        self.engine = engine or MarshalingEngine(component)
        self.code_generator = CodeGenerator(component, self.engine)
        self.layout = DynamicTableLayout.from_component(component)

    @property
    def namespace(self) -> str:
        return self.component.namespace

    @property
    def macro_prefix(self) -> str:
        return self.component.namespace.upper()

    def c_loader_names(self) -> LoaderNames:
        ns = self.namespace
        return LoaderNames(
            init=f"Init{ns}WrapperTable",
            release=f"Release{ns}WrapperTable",
            load=f"Load{ns}WrapperTable",
            load_library=f"Load{ns}Library",
            get_export=f"Get{ns}LibraryExport",
            free_library=f"Free{ns}Library",
        )

    def result_constant(self, name: str) -> str:
        if name == "SUCCESS":
            return f"{self.macro_prefix}_SUCCESS"
        return self.code_generator.error_constant(name)

    # Header

    def generate_pointer_typedef(self, entry: TableEntry) -> str:
        """Function-pointer typedef matching the flat C declaration of a method"""
        class_name = GLOBAL_CLASS_NAME if entry.is_global else entry.class_name
        physical = self.engine.expand_method(entry.method, class_name, entry.is_global)
        params_str = ", ".join(param.declaration for param in physical)
        comment = self.code_generator.method_comment(entry.method, physical)
        return f"{comment}\ntypedef {self.namespace}Result (*{entry.pointer_type})({params_str});"

    def generate_table_struct(self) -> str:
        fields = [f"    void * {LIBRARY_HANDLE_FIELD};"]
        fields.extend(f"    {entry.pointer_type} {entry.field_name};" for entry in self.layout.entries)
        fields_str = "\n".join(fields)
        return f'''typedef struct {{
{fields_str}
}} {self.layout.type_name};'''

    def generate_prototypes(self, names: LoaderNames) -> str:
        ns = self.namespace
        table = self.layout.type_name
        return "\n".join([
            f"{ns}Result {names.init}({table} * pWrapperTable);",
            f"{ns}Result {names.release}({table} * pWrapperTable);",
            f"{ns}Result {names.load}({table} * pWrapperTable, const char * pLibraryFileName);",
        ])

    def generate_header(self) -> str:
        """Render <base>_dynamic.h"""
        guard = f"__{self.macro_prefix}_DYNAMICHEADER"
        builder = OutputBuilder()

        builder.add(self.code_generator.header_comment(
            f"This is an autogenerated plain C Header file in order to allow an easy\n"
            f"use of {self.component.library_name}"
        ))
        builder.add("")
        builder.add(f"#ifndef {guard}")
        builder.add(f"#define {guard}")
        builder.add("")
        builder.add(f'#include "{self.component.base_name}{TYPES_HEADER_SUFFIX}"')
        builder.add("")

        current_class = None
        for entry in self.layout.entries:
            if not entry.is_global and entry.class_name != current_class:
                current_class = entry.class_name
                builder.add("")
                builder.banner(f"Class definition for {entry.class_name}")
            elif entry.is_global and current_class != GLOBAL_CLASS_NAME:
                current_class = GLOBAL_CLASS_NAME
                builder.add("")
                builder.banner("Global functions")
            builder.add("")
            builder.add(self.generate_pointer_typedef(entry))

        builder.add("")
        builder.banner("Function Table Structure")
        builder.add("")
        builder.add(self.generate_table_struct())
        builder.add("")
        builder.banner("Load DLL dynamically")
        builder.add("")
        builder.add(self.generate_prototypes(self.c_loader_names()))
        builder.add("")
        builder.add(f"#endif // {guard}")
        return builder.build()

    # Table procedures

    def generate_init_body(self, spacing: str = "    ") -> str:
        """Zero the library handle and every function pointer"""
        lines = [
            "if (pWrapperTable == nullptr)",
            f"    return {self.result_constant('INVALIDPARAM')};",
            "",
            f"pWrapperTable->{LIBRARY_HANDLE_FIELD} = nullptr;",
        ]
        lines.extend(f"pWrapperTable->{entry.field_name} = nullptr;" for entry in self.layout.entries)
        lines.extend(["", f"return {self.result_constant('SUCCESS')};"])
        return _indent(lines, spacing)

    def generate_release_body(self, names: LoaderNames, spacing: str = "    ") -> str:
        """Unload a loaded library, then reset the table through Init"""
        lines = [
            "if (pWrapperTable == nullptr)",
            f"    return {self.result_constant('INVALIDPARAM')};",
            "",
            f"if (pWrapperTable->{LIBRARY_HANDLE_FIELD} != nullptr) {{",
            f"    {names.free_library}(pWrapperTable->{LIBRARY_HANDLE_FIELD});",
            f"    return {names.init}(pWrapperTable);",
            "}",
            "",
            f"return {self.result_constant('SUCCESS')};",
        ]
        return _indent(lines, spacing)

    def generate_load_body(self, names: LoaderNames, spacing: str = "    ") -> str:
        """Release the table, then resolve every export in declaration order; all or nothing"""
        lines = [
            "if (pWrapperTable == nullptr)",
            f"    return {self.result_constant('INVALIDPARAM')};",
            "if (pLibraryFileName == nullptr)",
            f"    return {self.result_constant('INVALIDPARAM')};",
            "",
            "// unload a previously loaded library",
            f"{names.release}(pWrapperTable);",
            "",
            f"void * hLibrary = {names.load_library}(pLibraryFileName);",
            "if (hLibrary == nullptr)",
            f"    return {self.result_constant('COULDNOTLOADLIBRARY')};",
            "",
        ]
        for entry in self.layout.entries:
            lines.extend([
                f'pWrapperTable->{entry.field_name} = ({entry.pointer_type}) '
                f'{names.get_export}(hLibrary, "{entry.symbol}");',
                f"if (pWrapperTable->{entry.field_name} == nullptr) {{",
                f"    {names.free_library}(hLibrary);",
                f"    {names.init}(pWrapperTable);",
                f"    return {self.result_constant('COULDNOTFINDLIBRARYEXPORT')};",
                "}",
                "",
            ])
        lines.extend([
            f"pWrapperTable->{LIBRARY_HANDLE_FIELD} = hLibrary;",
            f"return {self.result_constant('SUCCESS')};",
        ])
        return _indent(lines, spacing)

    def generate_platform_helpers(self, names: LoaderNames, qualifier: str = "static ", scope: str = "") -> str:
        """Library open / symbol lookup / close for Windows and POSIX"""
        return f'''{qualifier}void * {scope}{names.load_library}(const char * pLibraryFileName)
{{
#ifdef _WIN32
    return (void *) LoadLibraryA(pLibraryFileName);
#else // _WIN32
    return dlopen(pLibraryFileName, RTLD_LAZY);
#endif // _WIN32
}}

{qualifier}void * {scope}{names.get_export}(void * pLibraryHandle, const char * pSymbolName)
{{
#ifdef _WIN32
    return (void *) GetProcAddress((HMODULE) pLibraryHandle, pSymbolName);
#else // _WIN32
    return dlsym(pLibraryHandle, pSymbolName);
#endif // _WIN32
}}

{qualifier}void {scope}{names.free_library}(void * pLibraryHandle)
{{
#ifdef _WIN32
    FreeLibrary((HMODULE) pLibraryHandle);
#else // _WIN32
    dlclose(pLibraryHandle);
#endif // _WIN32
}}'''

    def generate_implementation(self) -> str:
        """Render <base>_dynamic.cpp"""
        ns = self.namespace
        names = self.c_loader_names()
        table = self.layout.type_name
        builder = OutputBuilder()

        builder.add(self.code_generator.header_comment(
            f"This is an autogenerated plain C++ implementation file in order to allow\n"
            f"an easy use of {self.component.library_name}"
        ))
        builder.add("")
        builder.add(f'#include "{self.component.base_name}{TYPES_HEADER_SUFFIX}"')
        builder.add(f'#include "{self.component.base_name}{DYNAMIC_HEADER_SUFFIX}"')
        builder.add("")
        builder.add(PLATFORM_INCLUDES)
        builder.add("")
        builder.add(self.generate_platform_helpers(names))
        builder.add("")
        builder.add(f"{ns}Result {names.init}({table} * pWrapperTable)")
        builder.add("{")
        builder.add(self.generate_init_body())
        builder.add("}")
        builder.add("")
        builder.add(f"{ns}Result {names.release}({table} * pWrapperTable)")
        builder.add("{")
        builder.add(self.generate_release_body(names))
        builder.add("}")
        builder.add("")
        builder.add(f"{ns}Result {names.load}({table} * pWrapperTable, const char * pLibraryFileName)")
        builder.add("{")
        builder.add(self.generate_load_body(names))
        builder.add("}")
        return builder.build()


PLATFORM_INCLUDES = '''#ifdef _WIN32
#include <windows.h>
#else // _WIN32
#include <dlfcn.h>
#endif // _WIN32'''


def _indent(lines: list[str], spacing: str) -> str:
    return "\n".join(f"{spacing}{line}" if line else "" for line in lines)
