"""
In-memory model of a component definition
"""

from dataclasses import dataclass, field

from .constants import BASE_CLASS_NAME, RESERVED_ERRORS
from .errors import GenerationError


@dataclass(frozen=True)
class Version:
    """Semantic interface version"""
    major: int = 1
    minor: int = 0
    micro: int = 0

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse a 'major.minor.micro' string"""
        parts = text.strip().split(".")
        if len(parts) != 3:
            raise ValueError(f"Invalid version '{text}': expected major.minor.micro")
        try:
            major, minor, micro = (int(part) for part in parts)
        except ValueError:
            raise ValueError(f"Invalid version '{text}': components must be integers")
        return cls(major, minor, micro)

    def __str__(self):
        return f"{self.major}.{self.minor}.{self.micro}"


@dataclass(frozen=True)
class Param:
    """Declared method parameter"""
    name: str
    param_type: str
    param_pass: str
    param_class: str = ""
    description: str = ""


@dataclass(frozen=True)
class Method:
    """Class or global method"""
    name: str
    params: list[Param] = field(default_factory=list)
    description: str = ""
    dll_suffix: str = ""

    @property
    def return_param(self) -> Param | None:
        for param in self.params:
            if param.param_pass == "return":
                return param
        return None


@dataclass(frozen=True)
class Class:
    """Declared class; an empty parent means the implicit base class"""
    name: str
    methods: list[Method] = field(default_factory=list)
    parent: str = ""
    description: str = ""

    @property
    def parent_name(self) -> str:
        return self.parent or BASE_CLASS_NAME


@dataclass(frozen=True)
class Global:
    """Library-level methods, including the instance release entry point"""
    methods: list[Method] = field(default_factory=list)
    release_method: str = ""
    version_method: str = ""

    def find_method(self, name: str) -> Method | None:
        for method in self.methods:
            if method.name == name:
                return method
        return None


@dataclass(frozen=True)
class Member:
    """Struct member, optionally a fixed-size embedded array"""
    name: str
    member_type: str
    member_class: str = ""
    rows: int = 0
    columns: int = 0


@dataclass(frozen=True)
class Struct:
    name: str
    members: list[Member] = field(default_factory=list)


@dataclass(frozen=True)
class EnumOption:
    name: str
    value: int


@dataclass(frozen=True)
class Enum:
    name: str
    options: list[EnumOption] = field(default_factory=list)


@dataclass(frozen=True)
class ErrorCode:
    name: str
    code: int
    description: str = ""


@dataclass(frozen=True)
class FunctionType:
    """Named function-pointer type usable as a callback parameter"""
    name: str
    params: list[Param] = field(default_factory=list)
    description: str = ""


@dataclass(frozen=True)
class ComponentDefinition:
    """Root of the model; read-only for the whole generation run"""
    namespace: str
    library_name: str
    base_name: str
    version: Version = field(default_factory=Version)
    classes: list[Class] = field(default_factory=list)
    globals: Global = field(default_factory=Global)
    errors: list[ErrorCode] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)
    structs: list[Struct] = field(default_factory=list)
    functions: list[FunctionType] = field(default_factory=list)
    bindings: list[str] = field(default_factory=list)

    def find_class(self, name: str) -> Class | None:
        for cls in self.classes:
            if cls.name == name:
                return cls
        return None

    def find_enum(self, name: str) -> Enum | None:
        for enum in self.enums:
            if enum.name == name:
                return enum
        return None

    def find_struct(self, name: str) -> Struct | None:
        for struct in self.structs:
            if struct.name == name:
                return struct
        return None

    def find_function(self, name: str) -> FunctionType | None:
        for function in self.functions:
            if function.name == name:
                return function
        return None

    def is_handle_class(self, name: str) -> bool:
        """True for declared classes and the implicit base class"""
        return name == BASE_CLASS_NAME or self.find_class(name) is not None

    def ancestor_chain(self, class_name: str) -> list[Class]:
        """Resolve a class and its declared ancestors, nearest first.

        The implicit base class is not part of the returned chain.
        """
        chain = []
        seen = set()
        current = self.find_class(class_name)
        if current is None:
            raise GenerationError(f'unknown class "{class_name}"', class_name=class_name)

        while current is not None:
            if current.name in seen:
                raise GenerationError(
                    f'inheritance cycle detected at class "{current.name}"',
                    class_name=current.name,
                )
            seen.add(current.name)
            chain.append(current)
            if not current.parent:
                break
            parent = self.find_class(current.parent)
            if parent is None:
                raise GenerationError(
                    f'unknown parent class "{current.parent}" of class "{current.name}"',
                    class_name=current.name,
                )
            current = parent
        return chain

    def classes_parent_first(self) -> list[Class]:
        """Declared classes reordered so every parent precedes its children.

        Classes keep their declaration order wherever the hierarchy allows.
        """
        ordered = []
        placed = set()
        for cls in self.classes:
            for ancestor in reversed(self.ancestor_chain(cls.name)):
                if ancestor.name not in placed:
                    placed.add(ancestor.name)
                    ordered.append(ancestor)
        return ordered

    def effective_errors(self) -> list[ErrorCode]:
        """Declared errors followed by any reserved error the model omits"""
        errors = list(self.errors)
        declared = {error.name.upper() for error in errors}
        used_codes = {error.code for error in errors}
        for name, default_code in RESERVED_ERRORS.items():
            if name in declared:
                continue
            code = default_code
            if code in used_codes:
                code = max(used_codes) + 1
            used_codes.add(code)
            errors.append(ErrorCode(name, code))
        return errors
