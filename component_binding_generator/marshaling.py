"""
Marshaling rules shared by every emitted surface

A declared parameter expands into one or more physical ABI parameters. The
expansion depends only on the parameter kind and its passing mode, and the
order of the declared parameters is never changed. Variable-length outputs
(strings and arrays) use the two-call idiom: the caller first passes a zero
capacity and a null buffer to learn the needed size, then calls again with a
buffer of that size.
"""

from dataclasses import dataclass

from .constants import (
    BASE_CLASS_NAME,
    DISALLOWED_RETURN_TYPES,
    FUNCTION_TYPE,
    PARAM_PASSES,
    PARAM_TYPES,
    CLASS_REFERENCING_TYPES,
    PASS_IN,
    PASS_OUT,
    PASS_RETURN,
    SCALAR_TYPES,
)
from .errors import GenerationError
from .model import ComponentDefinition, FunctionType, Method, Param, Struct
from .type_mapper import TypeMapper


ROLE_VALUE = "value"
ROLE_SIZE_IN = "size-in"
ROLE_NEEDED_OUT = "needed-out"
ROLE_BUFFER_OUT = "buffer-out"
ROLE_POINTER_OUT = "pointer-out"

# Class name used in messages about global methods
GLOBAL_CLASS_NAME = "Wrapper"


@dataclass(frozen=True)
class PhysicalParam:
    """One concrete parameter of a flat C function"""
    name: str
    ctype: str
    direction: str
    role: str
    qualifier: str = ""
    comment: str = ""

    @property
    def full_type(self) -> str:
        if self.qualifier:
            return f"{self.qualifier} {self.ctype}"
        return self.ctype

    @property
    def declaration(self) -> str:
        return f"{self.full_type} {self.name}"


class MarshalingEngine:
    """Expands declared parameters into physical ABI parameters"""

    def __init__(self, component: ComponentDefinition, type_mapper: TypeMapper = None):
        self.component = component
        self.type_mapper = type_mapper or TypeMapper(component.namespace)

    @property
    def namespace(self) -> str:
        return self.component.namespace

    # Validation

    def check_param(self, param: Param, class_name: str, method_name: str):
        """Reject kind/passing combinations that have no marshaling rule"""
        def fail(message):
            return GenerationError.for_param(message, class_name, method_name, param.name)

        if param.param_pass not in PARAM_PASSES:
            raise fail(f'invalid method parameter passing "{param.param_pass}"')
        if param.param_type not in PARAM_TYPES:
            raise fail(f'invalid method parameter type "{param.param_type}"')

        if param.param_type in CLASS_REFERENCING_TYPES:
            if not param.param_class:
                raise fail(f'missing class for parameter of type "{param.param_type}"')
            self._check_param_class(param, fail)

        if param.param_pass == PASS_RETURN and param.param_type in DISALLOWED_RETURN_TYPES:
            raise fail(f"can not return {param.param_type}")

        if param.param_type == FUNCTION_TYPE and param.param_pass != PASS_IN:
            raise fail(f'function type parameter can not be passed "{param.param_pass}"')

    def _check_param_class(self, param: Param, fail):
        param_type = param.param_type
        param_class = param.param_class
        if param_type == "enum" and self.component.find_enum(param_class) is None:
            raise fail(f'unknown enum "{param_class}"')
        if param_type in ("struct", "structarray") and self.component.find_struct(param_class) is None:
            raise fail(f'unknown struct "{param_class}"')
        if param_type == "handle" and not self.component.is_handle_class(param_class):
            raise fail(f'unknown class "{param_class}"')
        if param_type == "basicarray" and param_class not in SCALAR_TYPES:
            raise fail(f'invalid basicarray element type "{param_class}"')
        if param_type == FUNCTION_TYPE and self.component.find_function(param_class) is None:
            raise fail(f'unknown function type "{param_class}"')

    def check_method(self, method: Method, class_name: str):
        """Validate every parameter plus the method-level return rules"""
        seen_names = set()
        return_index = None
        for index, param in enumerate(method.params):
            self.check_param(param, class_name, method.name)
            if param.name in seen_names:
                raise GenerationError.for_param(
                    "duplicate parameter name", class_name, method.name, param.name)
            seen_names.add(param.name)

            if param.param_pass == PASS_RETURN:
                if return_index is not None:
                    raise GenerationError.for_param(
                        "multiple return parameters", class_name, method.name, param.name)
                return_index = index

        if return_index is not None and return_index != len(method.params) - 1:
            param = method.params[return_index]
            raise GenerationError.for_param(
                "return parameter must be the last parameter", class_name, method.name, param.name)

    def check_struct(self, struct: Struct):
        """Structs may only hold scalar and enum members"""
        struct_type = self.type_mapper.struct_type(struct.name)
        for member in struct.members:
            if member.member_type in ("string", "handle"):
                raise GenerationError(
                    f"it is not possible for struct {struct_type} to contain a {member.member_type} value",
                    struct_name=struct.name,
                )
            if member.member_type == "enum":
                if self.component.find_enum(member.member_class) is None:
                    raise GenerationError(
                        f'unknown enum "{member.member_class}" of member {member.name} in struct {struct_type}',
                        struct_name=struct.name,
                    )
            elif member.member_type not in SCALAR_TYPES:
                raise GenerationError(
                    f'invalid member type "{member.member_type}" of member {member.name} in struct {struct_type}',
                    struct_name=struct.name,
                )
            if member.rows < 0 or member.columns < 0 or (member.columns > 0 and member.rows == 0):
                raise GenerationError(
                    f"invalid array extents of member {member.name} in struct {struct_type}",
                    struct_name=struct.name,
                )

    def check_function_type(self, function: FunctionType):
        for param in function.params:
            if param.param_pass == PASS_RETURN:
                raise GenerationError.for_param(
                    "function types can not declare return parameters", "", function.name, param.name)
            self.check_param(param, "", function.name)

    # Expansion

    def expand(self, param: Param, class_name: str = "", method_name: str = "") -> list[PhysicalParam]:
        """Physical parameters a declared parameter turns into, in ABI order"""
        self.check_param(param, class_name, method_name)
        if param.param_pass == PASS_IN:
            return self._expand_in(param)
        return self._expand_out(param)

    def _expand_in(self, param: Param) -> list[PhysicalParam]:
        mapper = self.type_mapper
        param_type = param.param_type
        base_type = mapper.c_type_name(param_type, param.param_class)
        description = param.description

        if param_type == "string":
            return [
                PhysicalParam(
                    f"n{param.name}BufferSize", mapper.scalar_type("uint32"), PASS_IN, ROLE_SIZE_IN,
                    comment=f"* @param[in] n{param.name}BufferSize - Number of bytes in string (excluding trailing 0)",
                ),
                PhysicalParam(
                    f"p{param.name}Buffer", f"{base_type}*", PASS_IN, ROLE_VALUE, qualifier="const",
                    comment=f"* @param[in] p{param.name}Buffer - {description}",
                ),
            ]

        if mapper.is_array(param_type):
            return [
                PhysicalParam(
                    f"n{param.name}BufferSize", mapper.scalar_type("uint64"), PASS_IN, ROLE_SIZE_IN,
                    comment=f"* @param[in] n{param.name}BufferSize - Number of elements in buffer",
                ),
                PhysicalParam(
                    f"p{param.name}Buffer", f"{base_type}*", PASS_IN, ROLE_VALUE, qualifier="const",
                    comment=f"* @param[in] p{param.name}Buffer - {param.param_class} buffer of {description}",
                ),
            ]

        name = mapper.c_name_prefix(param_type, PASS_IN) + param.name
        comment = f"* @param[in] {name} - {description}"
        if param_type == "struct":
            return [PhysicalParam(name, f"{base_type}*", PASS_IN, ROLE_VALUE, qualifier="const", comment=comment)]

        # scalars, enums, handles and function types travel by value
        return [PhysicalParam(name, base_type, PASS_IN, ROLE_VALUE, comment=comment)]

    def _expand_out(self, param: Param) -> list[PhysicalParam]:
        mapper = self.type_mapper
        param_type = param.param_type
        base_type = mapper.c_type_name(param_type, param.param_class)
        description = param.description

        if param_type == "string":
            return [
                PhysicalParam(
                    f"n{param.name}BufferSize", mapper.scalar_type("uint32"), PASS_IN, ROLE_SIZE_IN,
                    comment=f"* @param[in] n{param.name}BufferSize - size of the buffer (including trailing 0)",
                ),
                PhysicalParam(
                    f"p{param.name}NeededChars", f"{mapper.scalar_type('uint32')}*", PASS_OUT, ROLE_NEEDED_OUT,
                    comment=(f"* @param[out] p{param.name}NeededChars - will be filled with the count of the "
                             "written bytes, or needed buffer size."),
                ),
                PhysicalParam(
                    f"p{param.name}Buffer", f"{base_type}*", PASS_OUT, ROLE_BUFFER_OUT,
                    comment=f"* @param[out] p{param.name}Buffer - buffer of {description}, may be NULL",
                ),
            ]

        if mapper.is_array(param_type):
            return [
                PhysicalParam(
                    f"n{param.name}BufferSize", mapper.scalar_type("uint64"), PASS_IN, ROLE_SIZE_IN,
                    comment=f"* @param[in] n{param.name}BufferSize - Number of elements in buffer",
                ),
                PhysicalParam(
                    f"p{param.name}NeededCount", f"{mapper.scalar_type('uint64')}*", PASS_OUT, ROLE_NEEDED_OUT,
                    comment=(f"* @param[out] p{param.name}NeededCount - will be filled with the count of the "
                             "written elements, or needed buffer size."),
                ),
                PhysicalParam(
                    f"p{param.name}Buffer", f"{base_type}*", PASS_OUT, ROLE_BUFFER_OUT,
                    comment=f"* @param[out] p{param.name}Buffer - {param.param_class} buffer of {description}",
                ),
            ]

        name = "p" + param.name
        return [
            PhysicalParam(
                name, f"{base_type}*", PASS_OUT, ROLE_POINTER_OUT,
                comment=f"* @param[out] {name} - {description}",
            )
        ]

    def instance_param(self, class_name: str) -> PhysicalParam:
        """Implicit leading handle of every class method"""
        return PhysicalParam(
            f"p{class_name}", self.type_mapper.handle_type(class_name), PASS_IN, ROLE_VALUE,
            comment=f"* @param[in] p{class_name} - {class_name} instance.",
        )

    def expand_method(self, method: Method, class_name: str = "", is_global: bool = False) -> list[PhysicalParam]:
        """Full physical parameter list of a method's flat C function"""
        owner = GLOBAL_CLASS_NAME if is_global else class_name
        self.check_method(method, owner)
        physical = []
        if not is_global:
            physical.append(self.instance_param(class_name))
        for param in method.params:
            physical.extend(self.expand(param, owner, method.name))
        return physical

    def expand_function_type(self, function: FunctionType) -> list[PhysicalParam]:
        self.check_function_type(function)
        physical = []
        for param in function.params:
            physical.extend(self.expand(param, "", function.name))
        return physical

    # Two-call protocol and generated locals

    @staticmethod
    def requires_two_call(param: Param) -> bool:
        """Variable-length outputs need a size query before the real call"""
        return param.param_pass != PASS_IN and param.param_type in ("string", "basicarray", "structarray")

    @staticmethod
    def needed_local(param: Param) -> str:
        if param.param_type == "string":
            return f"bytesNeeded{param.name}"
        return f"elementsNeeded{param.name}"

    @staticmethod
    def written_local(param: Param) -> str:
        if param.param_type == "string":
            return f"bytesWritten{param.name}"
        return f"elementsWritten{param.name}"

    @staticmethod
    def buffer_local(param: Param) -> str:
        return f"buffer{param.name}"

    @staticmethod
    def handle_local(param: Param) -> str:
        return f"h{param.name}"

    @staticmethod
    def result_local(param: Param) -> str:
        return f"result{param.name}"

    def size_type(self, param: Param) -> str:
        """Counter type of a buffer parameter: bytes for strings, elements for arrays"""
        if param.param_type == "string":
            return self.type_mapper.scalar_type("uint32")
        return self.type_mapper.scalar_type("uint64")

    def release_method(self) -> Method:
        """The global method every wrapper instance is released through"""
        name = self.component.globals.release_method
        if not name:
            raise GenerationError("no release method configured on the global declaration")
        method = self.component.globals.find_method(name)
        if method is None:
            raise GenerationError(f'release method "{name}" is not a declared global method')
        handles = [p for p in method.params if p.param_type == "handle" and p.param_pass == PASS_IN]
        if len(method.params) != 1 or len(handles) != 1:
            raise GenerationError(
                f'release method "{name}" must take exactly one input handle parameter',
                class_name=GLOBAL_CLASS_NAME,
                method_name=name,
            )
        if handles[0].param_class != BASE_CLASS_NAME:
            raise GenerationError.for_param(
                f'release method must accept "{BASE_CLASS_NAME}" handles',
                GLOBAL_CLASS_NAME, name, handles[0].name,
            )
        return method
