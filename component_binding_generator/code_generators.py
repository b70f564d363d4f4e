"""
Code generation for the C types header and the flat C API header
"""

from .constants import BANNER_RULE, FLOAT_TYPEDEFS, SCALAR_TYPEDEFS, TYPES_HEADER_SUFFIX
from .marshaling import GLOBAL_CLASS_NAME, MarshalingEngine, PhysicalParam
from .model import ComponentDefinition, Enum, FunctionType, Method, Struct


def symbol_name(namespace: str, class_name: str, method: Method, is_global: bool = False) -> str:
    """Exported flat C symbol of a method"""
    if is_global:
        return f"{namespace.lower()}_{method.name.lower()}{method.dll_suffix}"
    return f"{namespace.lower()}_{class_name.lower()}_{method.name.lower()}{method.dll_suffix}"


class OutputBuilder:
    """Accumulates lines of a generated source file"""

    def __init__(self):
        self.lines = []

    def add(self, text: str = ""):
        """Append a line, or every line of a multi-line block"""
        if "\n" in text:
            self.lines.extend(text.split("\n"))
        else:
            self.lines.append(text)

    def banner(self, title: str):
        """Section comment as found in all generated headers"""
        self.lines.append(f"/{BANNER_RULE}")
        self.lines.append(f" {title}")
        self.lines.append(f"{BANNER_RULE}/")

    def build(self) -> str:
        return "\n".join(self.lines) + "\n"


class CodeGenerator:
    """Generates the C types header and the flat C API header of a component"""

    def __init__(self, component: ComponentDefinition, engine: MarshalingEngine = None):
        self.component = component
        self.engine = engine or MarshalingEngine(component)
        self.type_mapper = self.engine.type_mapper

    @property
    def namespace(self) -> str:
        return self.component.namespace

    @property
    def macro_prefix(self) -> str:
        return self.component.namespace.upper()

    def header_comment(self, description: str) -> str:
        """Leading comment of every generated file"""
        lines = ["/*"]
        for text in description.split("\n"):
            lines.append(f" * {text}".rstrip())
        lines.append(" *")
        lines.append(f" * Interface version: {self.component.version}")
        lines.append(" */")
        return "\n".join(lines)

    # Types header

    def generate_scalar_typedefs(self) -> str:
        ns = self.namespace
        legacy_switch = f"{self.macro_prefix}_USELEGACYINTEGERTYPES"
        lines = [f"#ifdef {legacy_switch}", ""]
        lines.extend(f"typedef {legacy} {ns}_{name};" for name, (legacy, _) in SCALAR_TYPEDEFS.items())
        lines.extend(["", f"#else // {legacy_switch}", "", "#include <stdint.h>", ""])
        lines.extend(f"typedef {stdint} {ns}_{name};" for name, (_, stdint) in SCALAR_TYPEDEFS.items())
        lines.extend(["", f"#endif // {legacy_switch}", ""])
        lines.extend(f"typedef {ctype} {ns}_{name};" for name, ctype in FLOAT_TYPEDEFS.items())
        lines.extend(["", "#ifndef __cplusplus", "#include <stdbool.h>", "#endif // __cplusplus"])
        return "\n".join(lines)

    def generate_enum(self, enum: Enum) -> str:
        """C enum with one constant per option"""
        enum_type = self.type_mapper.enum_type(enum.name)
        options = [f"  e{enum.name}{option.name} = {option.value}" for option in enum.options]
        body = ",\n".join(options)
        return f"typedef enum {enum_type} {{\n{body}\n}} {enum_type};\n"

    def generate_enum_union(self, enum: Enum) -> str:
        """Four-byte union wrapper that makes an enum safe to embed in packed structs"""
        enum_type = self.type_mapper.enum_type(enum.name)
        union_type = self.type_mapper.enum_struct_type(enum.name)
        return f'''typedef union {{
  {enum_type} m_enum;
  int m_code;
}} {union_type};
'''

    def generate_struct(self, struct: Struct) -> str:
        """Packed struct declaration; the surrounding pack pragmas are emitted once"""
        self.engine.check_struct(struct)

        fields = []
        for member in struct.members:
            array_suffix = ""
            if member.rows > 0:
                if member.columns > 0:
                    array_suffix = f"[{member.columns}][{member.rows}]"
                else:
                    array_suffix = f"[{member.rows}]"

            if member.member_type == "enum":
                member_type = self.type_mapper.enum_struct_type(member.member_class)
            else:
                member_type = self.type_mapper.scalar_type(member.member_type)
            fields.append(f"    {member_type} m_{member.name}{array_suffix};")

        fields_str = "\n".join(fields)
        return f'''typedef struct {{
{fields_str}
}} {self.type_mapper.struct_type(struct.name)};
'''

    def generate_function_type(self, function: FunctionType) -> str:
        """Function-pointer typedef for a callback type"""
        physical = self.engine.expand_function_type(function)
        lines = ["/**", f"* {self.namespace}{function.name} - {function.description}", "*"]
        lines.extend(param.comment for param in physical)
        lines.append("*/")
        params_str = ", ".join(param.declaration for param in physical)
        lines.append(f"typedef void(*{self.type_mapper.function_type(function.name)})({params_str});")
        return "\n".join(lines)

    def generate_types_header(self) -> str:
        """Render <base>_types.h"""
        ns = self.namespace
        guard = f"__{self.macro_prefix}_TYPES_HEADER"
        builder = OutputBuilder()

        builder.add(self.header_comment(
            f"This is an autogenerated plain C Header file with basic types in\n"
            f"order to allow an easy use of {self.component.library_name}"
        ))
        builder.add("")
        builder.add(f"#ifndef {guard}")
        builder.add(f"#define {guard}")
        builder.add("")

        builder.banner("Scalar types definition")
        builder.add("")
        builder.add(self.generate_scalar_typedefs())
        builder.add("")

        builder.banner("General type definitions")
        builder.add("")
        builder.add(f"typedef {ns}_int32 {ns}Result;")
        builder.add(f"typedef void * {ns}Handle;")
        builder.add("")

        builder.banner(f"Version for {ns}")
        builder.add("")
        version = self.component.version
        builder.add(f"#define {self.macro_prefix}_VERSION_MAJOR {version.major}")
        builder.add(f"#define {self.macro_prefix}_VERSION_MINOR {version.minor}")
        builder.add(f"#define {self.macro_prefix}_VERSION_MICRO {version.micro}")
        builder.add("")

        builder.banner(f"Error constants for {ns}")
        builder.add("")
        builder.add(f"#define {self.macro_prefix}_SUCCESS 0")
        for error in self.component.effective_errors():
            builder.add(f"#define {self.error_constant(error.name)} {error.code}")
        builder.add("")

        builder.banner("Declaration of handle classes")
        builder.add("")
        builder.add(f"typedef {ns}Handle {self.type_mapper.handle_type('')};")
        for cls in self.component.classes:
            builder.add(f"typedef {ns}Handle {self.type_mapper.handle_type(cls.name)};")
        builder.add("")

        if self.component.enums:
            builder.banner("Declaration of enums")
            builder.add("")
            for enum in self.component.enums:
                builder.add(self.generate_enum(enum))

            builder.banner("Declaration of enum members for 4 byte struct alignment")
            builder.add("")
            for enum in self.component.enums:
                builder.add(self.generate_enum_union(enum))

        if self.component.structs:
            builder.banner("Declaration of structs")
            builder.add("")
            builder.add("#pragma pack (1)")
            builder.add("")
            for struct in self.component.structs:
                builder.add(self.generate_struct(struct))
            builder.add("#pragma pack ()")
            builder.add("")

        if self.component.functions:
            builder.banner("Declaration of function pointers")
            for function in self.component.functions:
                builder.add("")
                builder.add(self.generate_function_type(function))
            builder.add("")

        builder.add(f"#endif // {guard}")
        return builder.build()

    def error_constant(self, error_name: str) -> str:
        return f"{self.macro_prefix}_ERROR_{error_name.upper()}"

    # Flat C header

    def export_name(self, class_name: str, method: Method, is_global: bool = False) -> str:
        return symbol_name(self.namespace, class_name, method, is_global)

    def method_comment(self, method: Method, physical: list[PhysicalParam]) -> str:
        """Doc comment shared by the flat declaration and its function-pointer typedef"""
        lines = ["/**", f"* {method.description}", "*"]
        lines.extend(param.comment for param in physical)
        lines.append("* @return error code or 0 (success)")
        lines.append("*/")
        return "\n".join(lines)

    def generate_function(self, method: Method, class_name: str = "", is_global: bool = False) -> str:
        """Exported declaration of one class or global method"""
        physical = self.engine.expand_method(method, class_name, is_global)
        params_str = ", ".join(param.declaration for param in physical)
        name = self.export_name(class_name, method, is_global)
        declaration = f"{self.macro_prefix}_DECLSPEC {self.namespace}Result {name}({params_str});"
        return self.method_comment(method, physical) + "\n" + declaration

    def generate_export_macros(self) -> str:
        prefix = self.macro_prefix
        return f'''#ifdef __{prefix}_EXPORTS
#ifdef _WIN32
#define {prefix}_DECLSPEC __declspec (dllexport)
#else // _WIN32
#define {prefix}_DECLSPEC __attribute__((visibility ("default")))
#endif // _WIN32
#else // __{prefix}_EXPORTS
#ifdef _WIN32
#define {prefix}_DECLSPEC __declspec (dllimport)
#else // _WIN32
#define {prefix}_DECLSPEC
#endif // _WIN32
#endif // __{prefix}_EXPORTS'''

    def generate_header(self) -> str:
        """Render <base>.h with one exported declaration per method"""
        guard = f"__{self.macro_prefix}_HEADER"
        builder = OutputBuilder()

        builder.add(self.header_comment(
            f"This is an autogenerated plain C Header file in order to allow an easy\n"
            f"use of {self.component.library_name}"
        ))
        builder.add("")
        builder.add(f"#ifndef {guard}")
        builder.add(f"#define {guard}")
        builder.add("")
        builder.add(self.generate_export_macros())
        builder.add("")
        builder.add(f'#include "{self.component.base_name}{TYPES_HEADER_SUFFIX}"')
        builder.add("")
        builder.add("#ifdef __cplusplus")
        builder.add('extern "C" {')
        builder.add("#endif")

        for cls in self.component.classes:
            builder.add("")
            builder.banner(f"Class definition for {cls.name}")
            for method in cls.methods:
                builder.add("")
                builder.add(self.generate_function(method, cls.name))

        builder.add("")
        builder.banner("Global functions")
        for method in self.component.globals.methods:
            builder.add("")
            builder.add(self.generate_function(method, GLOBAL_CLASS_NAME, is_global=True))

        builder.add("")
        builder.add("#ifdef __cplusplus")
        builder.add("}")
        builder.add("#endif")
        builder.add("")
        builder.add(f"#endif // {guard}")
        return builder.build()
