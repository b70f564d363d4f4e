"""
Type classification and mapping of component parameter kinds to C and C++ types
"""

from .constants import (
    BASE_CLASS_NAME,
    BUFFER_TYPES,
    COMPOUND_TYPES,
    FUNCTION_TYPE,
    HANDLE_TYPE,
    INTEGER_TYPES,
    SCALAR_TYPES,
)
from .errors import GenerationError


SCALAR = "scalar"
BUFFER = "buffer"
HANDLE = "handle"
COMPOUND = "compound"
FUNCTION = "function"


class TypeMapper:
    """Maps component parameter kinds to C and C++ types"""

    def __init__(self, namespace: str):
        self.namespace = namespace

    @staticmethod
    def classify(param_type: str) -> str:
        """Return the marshaling category of a parameter kind"""
        if param_type in SCALAR_TYPES:
            return SCALAR
        if param_type in BUFFER_TYPES:
            return BUFFER
        if param_type == HANDLE_TYPE:
            return HANDLE
        if param_type in COMPOUND_TYPES:
            return COMPOUND
        if param_type == FUNCTION_TYPE:
            return FUNCTION
        raise GenerationError(f'invalid parameter type "{param_type}"')

    @staticmethod
    def is_scalar(param_type: str) -> bool:
        return param_type in SCALAR_TYPES

    @staticmethod
    def is_buffer(param_type: str) -> bool:
        return param_type in BUFFER_TYPES

    @staticmethod
    def is_handle(param_type: str) -> bool:
        return param_type == HANDLE_TYPE

    @staticmethod
    def is_compound(param_type: str) -> bool:
        return param_type in COMPOUND_TYPES

    @staticmethod
    def is_array(param_type: str) -> bool:
        return param_type in ("basicarray", "structarray")

    def scalar_type(self, param_type: str) -> str:
        """Namespaced typedef of a scalar kind (bool stays bool)"""
        if param_type == "bool":
            return "bool"
        return f"{self.namespace}_{param_type}"

    def enum_type(self, enum_name: str) -> str:
        return f"e{self.namespace}{enum_name}"

    def enum_struct_type(self, enum_name: str) -> str:
        """Union wrapper used to embed an enum in a packed struct"""
        return f"structEnum{self.namespace}{enum_name}"

    def struct_type(self, struct_name: str) -> str:
        return f"s{self.namespace}{struct_name}"

    def handle_type(self, class_name: str) -> str:
        return f"{self.namespace}_{class_name or BASE_CLASS_NAME}"

    def function_type(self, function_name: str) -> str:
        return f"{self.namespace}{function_name}"

    def c_type_name(self, param_type: str, param_class: str = "") -> str:
        """Base C type of a kind, before any pointer the passing mode adds

        Buffer kinds map to their element type.
        """
        if param_type in SCALAR_TYPES:
            return self.scalar_type(param_type)
        if param_type == "string":
            return "char"
        if param_type == "enum":
            return self.enum_type(param_class)
        if param_type in ("struct", "structarray"):
            return self.struct_type(param_class)
        if param_type == "basicarray":
            return self.scalar_type(param_class)
        if param_type == HANDLE_TYPE:
            return self.handle_type(param_class)
        if param_type == FUNCTION_TYPE:
            return self.function_type(param_class)
        raise GenerationError(f'invalid parameter type "{param_type}" for C-parameter')

    @staticmethod
    def c_name_prefix(param_type: str, param_pass: str) -> str:
        """Hungarian prefix of a physical C parameter name"""
        if param_pass != "in":
            return "p"
        if param_type in INTEGER_TYPES:
            return "n"
        return {
            "bool": "b",
            "single": "f",
            "double": "d",
            "enum": "e",
        }.get(param_type, "p")

    def cpp_class_name(self, class_name: str) -> str:
        return f"C{self.namespace}{class_name or BASE_CLASS_NAME}"

    def cpp_pointer_name(self, class_name: str) -> str:
        """Shared-pointer typedef owning an instance of a class"""
        return f"P{self.namespace}{class_name or BASE_CLASS_NAME}"

    def cpp_type(self, param_type: str, param_class: str, is_input: bool) -> str:
        """C++ wrapper type of a parameter kind"""
        if param_type in SCALAR_TYPES:
            return self.scalar_type(param_type)
        if param_type == "string":
            return "std::string"
        if param_type == "enum":
            return self.enum_type(param_class)
        if param_type == "struct":
            return self.struct_type(param_class)
        if param_type == "basicarray":
            return f"std::vector<{self.scalar_type(param_class)}>"
        if param_type == "structarray":
            return f"std::vector<{self.struct_type(param_class)}>"
        if param_type == HANDLE_TYPE:
            if is_input:
                return f"{self.cpp_class_name(param_class)} *"
            return self.cpp_pointer_name(param_class)
        if param_type == FUNCTION_TYPE:
            return self.function_type(param_class)
        raise GenerationError(f'invalid parameter type "{param_type}" for C++-parameter')

    @staticmethod
    def cpp_variable_name(param_type: str, param_name: str) -> str:
        """Name of a parameter in the C++ wrapper signature"""
        if param_type in INTEGER_TYPES:
            return "n" + param_name
        if param_type in ("basicarray", "structarray"):
            return param_name + "Buffer"
        prefix = {
            "bool": "b",
            "single": "f",
            "double": "d",
            "string": "s",
            "enum": "e",
        }.get(param_type, "p")
        return prefix + param_name
