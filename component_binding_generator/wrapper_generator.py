"""
Code generation for the object-oriented C++ wrapper over the dynamic table
"""

from dataclasses import dataclass, field

from .code_generators import CodeGenerator, OutputBuilder
from .constants import BASE_CLASS_NAME, DISALLOWED_RETURN_TYPES, DYNAMIC_HEADER_SUFFIX, TYPES_HEADER_SUFFIX
from .dynamic_table import PLATFORM_INCLUDES, DynamicTableGenerator, LoaderNames
from .errors import GenerationError
from .marshaling import GLOBAL_CLASS_NAME, MarshalingEngine
from .model import Class, ComponentDefinition, Method, Param


WRAPPER_LOADER_NAMES = LoaderNames(
    init="initWrapperTable",
    release="releaseWrapperTable",
    load="loadWrapperTable",
    load_library="loadLibraryHandle",
    get_export="getLibraryExport",
    free_library="freeLibraryHandle",
)


@dataclass(frozen=True)
class CallContext:
    """Where a generated method finds its table slot, its handle and its owning wrapper"""
    table: str
    check: str
    owner: str
    leading_args: list[str] = field(default_factory=list)


@dataclass
class MethodBody:
    """Pieces of a generated method, filled parameter by parameter"""
    parameters: list[str] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    definitions: list[str] = field(default_factory=list)
    query_args: list[str] = field(default_factory=list)
    pre_call: list[str] = field(default_factory=list)
    call_args: list[str] = field(default_factory=list)
    post_call: list[str] = field(default_factory=list)
    return_code: list[str] = field(default_factory=list)
    return_type: str = "void"
    requires_query: bool = False


class CppWrapperGenerator:
    """Generates the header-only C++ wrapper with handle ownership and exceptions"""

    def __init__(self, component: ComponentDefinition, engine: MarshalingEngine = None):
        self.component = component
        self.engine = engine or MarshalingEngine(component)
        self.type_mapper = self.engine.type_mapper
        self.code_generator = CodeGenerator(component, self.engine)
        self.table_generator = DynamicTableGenerator(component, self.engine)
        self.layout = self.table_generator.layout

    @property
    def namespace(self) -> str:
        return self.component.namespace

    @property
    def wrapper_class(self) -> str:
        return f"C{self.namespace}Wrapper"

    @property
    def exception_class(self) -> str:
        return f"E{self.namespace}Exception"

    def context_for(self, class_name: str) -> CallContext:
        """Resolve the owning wrapper from the scope a method is generated in.

        Global methods live on the wrapper itself; class methods reach it
        through their back-reference. Handle results are owned by that same
        wrapper either way.
        """
        if not class_name:
            return CallContext(table="m_WrapperTable", check="CheckError(nullptr, ", owner="this")
        return CallContext(
            table="m_pWrapper->m_WrapperTable",
            check="CheckError(",
            owner="m_pWrapper",
            leading_args=["m_pHandle"],
        )

    # Method bodies

    @staticmethod
    def result_out_param(method: Method) -> Param | None:
        """The single out parameter a method without return value hands back as its result"""
        if method.return_param is not None:
            return None
        out_params = [param for param in method.params if param.param_pass == "out"]
        if len(out_params) == 1 and out_params[0].param_type not in DISALLOWED_RETURN_TYPES:
            return out_params[0]
        return None

    def build_method_body(self, method: Method, class_name: str) -> MethodBody:
        """Apply the marshaling rules of every parameter to one wrapper method"""
        owner_name = class_name or GLOBAL_CLASS_NAME
        self.engine.check_method(method, owner_name)
        context = self.context_for(class_name)
        body = MethodBody()
        result_param = self.result_out_param(method)

        for param in method.params:
            if param.param_pass == "in":
                self._add_in_param(body, param)
            elif param.param_pass == "out" and param is not result_param:
                self._add_out_param(body, param, context)
            else:
                self._add_return_param(body, param, context, owner_name, method)
        return body

    def _add_in_param(self, body: MethodBody, param: Param):
        mapper = self.type_mapper
        variable = mapper.cpp_variable_name(param.param_type, param.name)
        cpp_type = mapper.cpp_type(param.param_type, param.param_class, is_input=True)
        body.comments.append(f"    * @param[in] {variable} - {param.description}")

        if param.param_type == "string":
            args = [f"({mapper.scalar_type('uint32')}) {variable}.size()", f"{variable}.c_str()"]
            body.parameters.append(f"const {cpp_type} & {variable}")
        elif param.param_type == "struct":
            args = [f"&{variable}"]
            body.parameters.append(f"const {cpp_type} & {variable}")
        elif mapper.is_array(param.param_type):
            args = [f"({mapper.scalar_type('uint64')}) {variable}.size()", f"{variable}.data()"]
            body.parameters.append(f"const {cpp_type} & {variable}")
        elif param.param_type == "handle":
            handle = self.engine.handle_local(param)
            body.definitions.extend([
                f"{self.namespace}Handle {handle} = nullptr;",
                f"if ({variable} != nullptr) {{",
                f"    {handle} = {variable}->GetHandle();",
                "}",
            ])
            args = [handle]
            body.parameters.append(f"{cpp_type} {variable}")
        else:
            args = [variable]
            body.parameters.append(f"const {cpp_type} {variable}")

        body.query_args.extend(args)
        body.call_args.extend(args)

    def _add_buffer_query(self, body: MethodBody, param: Param):
        """Counters and the size-query arguments of a two-call parameter"""
        size_type = self.engine.size_type(param)
        needed = self.engine.needed_local(param)
        written = self.engine.written_local(param)
        body.requires_query = True
        body.definitions.extend([
            f"{size_type} {needed} = 0;",
            f"{size_type} {written} = 0;",
        ])
        body.query_args.extend(["0", f"&{needed}", "nullptr"])
        return needed, written

    def _add_string_fetch(self, body: MethodBody, param: Param) -> str:
        """Allocate the receiving buffer and return the expression of the fetched string"""
        needed, written = self._add_buffer_query(body, param)
        buffer = self.engine.buffer_local(param)
        body.pre_call.append(f"std::vector<char> {buffer}({needed} + 1);")
        body.call_args.extend([f"{needed} + 1", f"&{written}", f"&{buffer}[0]"])
        body.post_call.append(f"{buffer}[{needed}] = 0;")
        return f"std::string(&{buffer}[0])"

    def _add_out_param(self, body: MethodBody, param: Param, context: CallContext):
        mapper = self.type_mapper
        variable = mapper.cpp_variable_name(param.param_type, param.name)
        cpp_type = mapper.cpp_type(param.param_type, param.param_class, is_input=False)
        body.comments.append(f"    * @param[out] {variable} - {param.description}")
        body.parameters.append(f"{cpp_type} & {variable}")

        if param.param_type == "string":
            fetched = self._add_string_fetch(body, param)
            body.post_call.append(f"{variable} = {fetched};")
        elif mapper.is_array(param.param_type):
            needed, written = self._add_buffer_query(body, param)
            body.pre_call.append(f"{variable}.resize({needed});")
            body.call_args.extend([needed, f"&{written}", f"{variable}.data()"])
        elif param.param_type == "handle":
            handle = self.engine.handle_local(param)
            body.definitions.append(f"{self.namespace}Handle {handle} = nullptr;")
            # the size query must not hand out an instance nobody would own
            body.query_args.append("nullptr")
            body.call_args.append(f"&{handle}")
            cpp_class = mapper.cpp_class_name(param.param_class)
            body.post_call.append(f"{variable} = std::make_shared<{cpp_class}>({context.owner}, {handle});")
        else:
            body.query_args.append(f"&{variable}")
            body.call_args.append(f"&{variable}")

    def _add_return_param(self, body: MethodBody, param: Param, context: CallContext,
                          owner_name: str, method: Method):
        mapper = self.type_mapper
        body.return_type = mapper.cpp_type(param.param_type, param.param_class, is_input=False)
        body.comments.append(f"    * @return {param.description}")
        result = self.engine.result_local(param)

        if param.param_type == "string":
            fetched = self._add_string_fetch(body, param)
            body.return_code.append(f"return {fetched};")
        elif param.param_type == "handle":
            handle = self.engine.handle_local(param)
            body.definitions.append(f"{self.namespace}Handle {handle} = nullptr;")
            body.query_args.append("nullptr")
            body.call_args.append(f"&{handle}")
            cpp_class = mapper.cpp_class_name(param.param_class)
            body.return_code.append(f"return std::make_shared<{cpp_class}>({context.owner}, {handle});")
        elif mapper.is_scalar(param.param_type) or param.param_type in ("enum", "struct"):
            if param.param_type == "enum":
                body.definitions.append(f"{body.return_type} {result} = ({body.return_type}) 0;")
            elif param.param_type == "struct":
                body.definitions.append(f"{body.return_type} {result};")
            else:
                body.definitions.append(f"{body.return_type} {result} = 0;")
            body.query_args.append(f"&{result}")
            body.call_args.append(f"&{result}")
            body.return_code.append(f"return {result};")
        else:
            raise GenerationError.for_param(
                f'invalid method parameter type "{param.param_type}"', owner_name, method.name, param.name)

    # Methods

    def generate_method_declaration(self, method: Method, class_name: str = "") -> str:
        body = self.build_method_body(method, class_name)
        return f"    {body.return_type} {method.name}({', '.join(body.parameters)});"

    def generate_method_definition(self, method: Method, class_name: str = "") -> str:
        """Out-of-class definition performing the (query and) real call"""
        body = self.build_method_body(method, class_name)
        context = self.context_for(class_name)
        cpp_class = self.wrapper_class if not class_name else self.type_mapper.cpp_class_name(class_name)
        entry = self.layout.find(class_name, method.name)
        function = f"{context.table}.{entry.field_name}"

        lines = [
            "    /**",
            f"    * {cpp_class}::{method.name} - {method.description}",
        ]
        lines.extend(body.comments)
        lines.append("    */")
        lines.append(f"    inline {body.return_type} {cpp_class}::{method.name}({', '.join(body.parameters)})")
        lines.append("    {")

        statements = list(body.definitions)
        if body.requires_query:
            query_args = ", ".join(context.leading_args + body.query_args)
            statements.append(f"{context.check}{function}({query_args}));")
        statements.extend(body.pre_call)
        call_args = ", ".join(context.leading_args + body.call_args)
        statements.append(f"{context.check}{function}({call_args}));")
        statements.extend(body.post_call)
        statements.extend(body.return_code)

        lines.extend(f"        {statement}" for statement in statements)
        lines.append("    }")
        return "\n".join(lines)

    # Classes

    def generate_exception_class(self) -> str:
        ns = self.namespace
        exception = self.exception_class
        return f'''class {exception} : public std::runtime_error {{
protected:
    /**
    * Error code for the Exception.
    */
    {ns}Result m_errorcode;

public:
    /**
    * Exception Constructor.
    */
    {exception}({ns}Result errorcode)
        : std::runtime_error("{ns} Error " + std::to_string(errorcode)), m_errorcode(errorcode)
    {{
    }}

    /**
    * Returns error code
    */
    {ns}Result getErrorCode() const
    {{
        return m_errorcode;
    }}
}};'''

    def generate_wrapper_class(self) -> str:
        ns = self.namespace
        wrapper = self.wrapper_class
        table = self.layout.type_name
        names = WRAPPER_LOADER_NAMES

        lines = [
            f"class {wrapper} {{",
            "public:",
            "",
            f"    {wrapper}(const std::string & sFileName)",
            "    {",
            f"        CheckError(nullptr, {names.init}(&m_WrapperTable));",
            f"        CheckError(nullptr, {names.load}(&m_WrapperTable, sFileName.c_str()));",
            "    }",
            "",
            f"    {wrapper}(const {wrapper} &) = delete;",
            f"    {wrapper} & operator=(const {wrapper} &) = delete;",
            "",
            f"    static P{ns}Wrapper loadLibrary(const std::string & sFileName)",
            "    {",
            f"        return std::make_shared<{wrapper}>(sFileName);",
            "    }",
            "",
            f"    ~{wrapper}()",
            "    {",
            f"        {names.release}(&m_WrapperTable);",
            "    }",
            "",
            f"    void CheckError({ns}Handle handle, {ns}Result nResult)",
            "    {",
            "        if (nResult != 0)",
            f"            throw {self.exception_class}(nResult);",
            "    }",
            "",
        ]
        for method in self.component.globals.methods:
            lines.append(self.generate_method_declaration(method))

        lines.extend([
            "",
            "private:",
            f"    {table} m_WrapperTable;",
            "",
            f"    {ns}Result {names.init}({table} * pWrapperTable);",
            f"    {ns}Result {names.release}({table} * pWrapperTable);",
            f"    {ns}Result {names.load}({table} * pWrapperTable, const char * pLibraryFileName);",
            f"    static void * {names.load_library}(const char * pLibraryFileName);",
            f"    static void * {names.get_export}(void * pLibraryHandle, const char * pSymbolName);",
            f"    static void {names.free_library}(void * pLibraryHandle);",
            "",
        ])
        for cls in self.component.classes_parent_first():
            lines.append(f"    friend class {self.type_mapper.cpp_class_name(cls.name)};")
        lines.append("};")
        return "\n".join(lines)

    def generate_base_class(self) -> str:
        ns = self.namespace
        base = self.type_mapper.cpp_class_name(BASE_CLASS_NAME)
        wrapper = self.wrapper_class
        release = self.engine.release_method()
        return f'''class {base} {{
protected:
    /* Wrapper Object that created the class. */
    {wrapper} * m_pWrapper;
    /* Handle to Instance in library */
    {ns}Handle m_pHandle;

    /* Checks for an Error code and raises Exceptions */
    void CheckError({ns}Result nResult)
    {{
        if (m_pWrapper != nullptr)
            m_pWrapper->CheckError(m_pHandle, nResult);
    }}

public:

    /**
    * {base}::{base} - Constructor for Base class.
    */
    {base}({wrapper} * pWrapper, {ns}Handle pHandle)
        : m_pWrapper(pWrapper), m_pHandle(pHandle)
    {{
    }}

    {base}(const {base} &) = delete;
    {base} & operator=(const {base} &) = delete;

    /**
    * {base}::~{base} - Destructor for Base class, releases the instance exactly once.
    */
    virtual ~{base}()
    {{
        {wrapper} * pWrapper = m_pWrapper;
        m_pWrapper = nullptr;
        if (pWrapper != nullptr) {{
            try {{
                pWrapper->{release.name}(this);
            }} catch (...) {{
            }}
        }}
    }}

    /**
    * {base}::GetHandle - Returns handle to instance.
    */
    {ns}Handle GetHandle()
    {{
        return m_pHandle;
    }}
}};'''

    def generate_class(self, cls: Class) -> str:
        """Derived instance type chaining to its resolved parent"""
        ns = self.namespace
        cpp_class = self.type_mapper.cpp_class_name(cls.name)
        parent = self.type_mapper.cpp_class_name(cls.parent_name)

        lines = [
            f"class {cpp_class} : public {parent} {{",
            "public:",
            "",
            "    /**",
            f"    * {cpp_class}::{cpp_class} - Constructor for {cls.name} class.",
            "    */",
            f"    {cpp_class}({self.wrapper_class} * pWrapper, {ns}Handle pHandle)",
            f"        : {parent}(pWrapper, pHandle)",
            "    {",
            "    }",
        ]
        if cls.methods:
            lines.append("")
        for method in cls.methods:
            lines.append(self.generate_method_declaration(method, cls.name))
        lines.append("};")
        return "\n".join(lines)

    def generate_table_procedures(self) -> str:
        ns = self.namespace
        wrapper = self.wrapper_class
        table = self.layout.type_name
        names = WRAPPER_LOADER_NAMES
        spacing = "        "
        generator = self.table_generator

        lines = [
            f"    inline {ns}Result {wrapper}::{names.init}({table} * pWrapperTable)",
            "    {",
            generator.generate_init_body(spacing),
            "    }",
            "",
            f"    inline {ns}Result {wrapper}::{names.release}({table} * pWrapperTable)",
            "    {",
            generator.generate_release_body(names, spacing),
            "    }",
            "",
            f"    inline {ns}Result {wrapper}::{names.load}({table} * pWrapperTable, const char * pLibraryFileName)",
            "    {",
            generator.generate_load_body(names, spacing),
            "    }",
            "",
            generator.generate_platform_helpers(names, qualifier="inline ", scope=f"{wrapper}::"),
        ]
        return "\n".join(lines)

    def generate_header(self) -> str:
        """Render <base>_dynamic.hpp"""
        ns = self.namespace
        guard = f"__{ns.upper()}_DYNAMICCPPHEADER"
        base_name = self.component.base_name
        classes = self.component.classes_parent_first()
        # fail before rendering anything when instances could not be released
        self.engine.release_method()

        builder = OutputBuilder()
        builder.add(self.code_generator.header_comment(
            f"This is an autogenerated C++ Header file in order to allow an easy\n"
            f"use of {self.component.library_name}"
        ))
        builder.add("")
        builder.add(f"#ifndef {guard}")
        builder.add(f"#define {guard}")
        builder.add("")
        builder.add(f'#include "{base_name}{TYPES_HEADER_SUFFIX}"')
        builder.add(f'#include "{base_name}{DYNAMIC_HEADER_SUFFIX}"')
        builder.add("")
        builder.add(PLATFORM_INCLUDES)
        builder.add("")
        for include in ("string", "memory", "vector", "exception", "stdexcept"):
            builder.add(f"#include <{include}>")
        builder.add("")
        builder.add(f"namespace {ns} {{")
        builder.add("")

        builder.banner("Forward Declaration of all classes")
        builder.add("")
        builder.add(f"class {self.type_mapper.cpp_class_name(BASE_CLASS_NAME)};")
        builder.add(f"class {self.wrapper_class};")
        for cls in classes:
            builder.add(f"class {self.type_mapper.cpp_class_name(cls.name)};")
        builder.add("")

        builder.banner("Declaration of shared pointer types")
        builder.add("")
        builder.add(f"typedef std::shared_ptr<{self.type_mapper.cpp_class_name(BASE_CLASS_NAME)}> "
                    f"{self.type_mapper.cpp_pointer_name(BASE_CLASS_NAME)};")
        builder.add(f"typedef std::shared_ptr<{self.wrapper_class}> P{ns}Wrapper;")
        for cls in classes:
            builder.add(f"typedef std::shared_ptr<{self.type_mapper.cpp_class_name(cls.name)}> "
                        f"{self.type_mapper.cpp_pointer_name(cls.name)};")
        builder.add("")

        builder.banner(f"Class {self.exception_class}")
        builder.add(self.generate_exception_class())
        builder.add("")

        builder.banner(f"Class {self.wrapper_class}")
        builder.add(self.generate_wrapper_class())
        builder.add("")

        builder.banner(f"Class {self.type_mapper.cpp_class_name(BASE_CLASS_NAME)}")
        builder.add(self.generate_base_class())

        for cls in classes:
            builder.add("")
            builder.banner(f"Class {self.type_mapper.cpp_class_name(cls.name)}")
            builder.add(self.generate_class(cls))

        builder.add("")
        builder.banner("Method definitions")
        for cls in classes:
            for method in cls.methods:
                builder.add("")
                builder.add(self.generate_method_definition(method, cls.name))
        for method in self.component.globals.methods:
            builder.add("")
            builder.add(self.generate_method_definition(method))

        builder.add("")
        builder.banner("Function table management")
        builder.add("")
        builder.add(self.generate_table_procedures())
        builder.add("")
        builder.add(f"}} // namespace {ns}")
        builder.add("")
        builder.add(f"#endif // {guard}")
        return builder.build()
