"""
libclang-based verification of generated sources

The generated files are written to a temporary directory and parsed as
C++11 with the legacy integer typedefs selected, so the C headers need no
system header. Their parsed declarations are then compared with what the
marshaling rules say they should be. The table implementation and the C++
wrapper are only checked for compile errors.
"""

import tempfile
from contextlib import contextmanager
from pathlib import Path

import clang.cindex
from clang.cindex import CursorKind, Diagnostic, TypeKind

from .constants import (
    C_HEADER_SUFFIX,
    CLANG_SCALAR_KINDS,
    DYNAMIC_HEADER_SUFFIX,
    DYNAMIC_IMPLEMENTATION_SUFFIX,
    TYPES_HEADER_SUFFIX,
    WRAPPER_HEADER_SUFFIX,
)
from .dynamic_table import DynamicTableLayout
from .code_generators import symbol_name
from .marshaling import GLOBAL_CLASS_NAME, MarshalingEngine
from .model import ComponentDefinition


def normalize_type(spelling: str) -> str:
    """Type spelling without whitespace, so 'const char*' equals 'const char *'"""
    return "".join(spelling.split())


class HeaderVerifier:
    """Parses generated headers with libclang and checks them against the model"""

    def __init__(self, namespace: str):
        self.namespace = namespace
        self.index = clang.cindex.Index.create()

    def clang_args(self) -> list[str]:
        return ["-x", "c++", "-std=c++11", f"-D{self.namespace.upper()}_USELEGACYINTEGERTYPES"]

    @contextmanager
    def translation_unit(self, files: dict[str, str], header: str):
        """Parse one header of a rendered file set"""
        if header not in files:
            raise ValueError(f"Header '{header}' is not part of the generated files")
        with tempfile.TemporaryDirectory() as directory:
            for file_name, content in files.items():
                (Path(directory) / file_name).write_text(content)
            yield self.index.parse(str(Path(directory) / header), args=self.clang_args())

    def diagnostics(self, files: dict[str, str], header: str) -> list[str]:
        """Error and fatal diagnostics of a header"""
        with self.translation_unit(files, header) as tu:
            messages = []
            for diag in tu.diagnostics:
                if diag.severity >= Diagnostic.Error:
                    location = diag.location
                    file_name = Path(location.file.name).name if location.file else header
                    messages.append(f"{file_name}:{location.line}: {diag.spelling}")
            return messages

    def collect_functions(self, files: dict[str, str], header: str,
                          canonical: bool = False) -> dict[str, list[tuple[str, str]]]:
        """Function declarations with their (type, name) parameter lists"""
        functions = {}
        with self.translation_unit(files, header) as tu:
            for cursor in tu.cursor.walk_preorder():
                if cursor.kind != CursorKind.FUNCTION_DECL:
                    continue
                arguments = []
                for argument in cursor.get_arguments():
                    arg_type = argument.type.get_canonical() if canonical else argument.type
                    arguments.append((arg_type.spelling, argument.spelling))
                functions[cursor.spelling] = arguments
        return functions

    def collect_function_pointer_typedefs(self, files: dict[str, str], header: str,
                                          canonical: bool = False) -> dict[str, list[str]]:
        """Function-pointer typedefs with their argument type spellings"""
        typedefs = {}
        with self.translation_unit(files, header) as tu:
            for cursor in tu.cursor.walk_preorder():
                if cursor.kind != CursorKind.TYPEDEF_DECL:
                    continue
                pointee = _function_pointee(cursor, canonical)
                if pointee is None:
                    continue
                arguments = []
                for arg_type in pointee.argument_types():
                    arguments.append(arg_type.get_canonical().spelling if canonical else arg_type.spelling)
                typedefs[cursor.spelling] = arguments
        return typedefs

    def collect_typedef_parameters(self, files: dict[str, str], header: str) -> dict[str, list[tuple[str, str]]]:
        """Function-pointer typedefs with their (type, name) parameter lists as written"""
        typedefs = {}
        with self.translation_unit(files, header) as tu:
            for cursor in tu.cursor.walk_preorder():
                if cursor.kind != CursorKind.TYPEDEF_DECL or _function_pointee(cursor, True) is None:
                    continue
                typedefs[cursor.spelling] = [
                    (child.type.spelling, child.spelling)
                    for child in cursor.get_children()
                    if child.kind == CursorKind.PARM_DECL
                ]
        return typedefs

    def check_scalar_typedefs(self, files: dict[str, str], header: str) -> list[str]:
        """Every scalar typedef resolves to the expected builtin kind"""
        expected = {f"{self.namespace}_{name}": kind for name, kind in CLANG_SCALAR_KINDS.items()}
        found = {}
        with self.translation_unit(files, header) as tu:
            for cursor in tu.cursor.walk_preorder():
                if cursor.kind == CursorKind.TYPEDEF_DECL and cursor.spelling in expected:
                    found[cursor.spelling] = cursor.underlying_typedef_type.get_canonical().kind

        problems = []
        for typedef_name, kind in expected.items():
            if typedef_name not in found:
                problems.append(f"missing scalar typedef {typedef_name}")
            elif found[typedef_name] != kind:
                problems.append(f"scalar typedef {typedef_name} is {found[typedef_name]}, expected {kind}")
        return problems

    def verify(self, component: ComponentDefinition, files: dict[str, str]) -> list[str]:
        """Check the rendered headers of a component against each other and the model

        Returns a list of problems; an empty list means the surfaces agree.
        """
        base_name = component.base_name
        types_header = base_name + TYPES_HEADER_SUFFIX
        c_header = base_name + C_HEADER_SUFFIX
        dynamic_header = base_name + DYNAMIC_HEADER_SUFFIX
        engine = MarshalingEngine(component)

        problems = []
        for header in (types_header, c_header, dynamic_header):
            if header in files:
                problems.extend(self.diagnostics(files, header))
        if problems:
            return problems

        if types_header in files:
            problems.extend(self.check_scalar_typedefs(files, types_header))

        flat_functions = {}
        if c_header in files:
            functions = self.collect_functions(files, c_header)
            flat_functions = self.collect_functions(files, c_header, canonical=True)
            for cls in component.classes:
                for method in cls.methods:
                    physical = engine.expand_method(method, cls.name)
                    problems.extend(self._compare_declaration(
                        functions, symbol_name(self.namespace, cls.name, method), physical))
            for method in component.globals.methods:
                physical = engine.expand_method(method, GLOBAL_CLASS_NAME, is_global=True)
                problems.extend(self._compare_declaration(
                    functions, symbol_name(self.namespace, "", method, is_global=True), physical))

        if dynamic_header in files:
            declared = self.collect_typedef_parameters(files, dynamic_header)
            typedefs = self.collect_function_pointer_typedefs(files, dynamic_header, canonical=True)
            for entry in DynamicTableLayout.from_component(component).entries:
                class_name = GLOBAL_CLASS_NAME if entry.is_global else entry.class_name
                physical = engine.expand_method(entry.method, class_name, entry.is_global)
                mismatch = self._compare_declaration(
                    declared, entry.pointer_type, physical, kind="function pointer typedef")
                problems.extend(mismatch)
                if not mismatch and entry.symbol in flat_functions:
                    arguments = typedefs[entry.pointer_type]
                    flat_types = [arg_type for arg_type, _ in flat_functions[entry.symbol]]
                    if arguments != flat_types:
                        problems.append(
                            f"{entry.pointer_type} parameters ({', '.join(arguments)}) differ from "
                            f"{entry.symbol} ({', '.join(flat_types)})")
        return problems

    def check_sources(self, component: ComponentDefinition, files: dict[str, str]) -> list[str]:
        """Error diagnostics of the rendered table implementation and C++ wrapper

        Both include platform and C++ standard library headers, so the system
        headers of a C++ toolchain must be installed.
        """
        problems = []
        for suffix in (DYNAMIC_IMPLEMENTATION_SUFFIX, WRAPPER_HEADER_SUFFIX):
            source = component.base_name + suffix
            if source in files:
                problems.extend(self.diagnostics(files, source))
        return problems

    def _compare_declaration(self, functions, symbol: str, physical, kind: str = "flat function") -> list[str]:
        if symbol not in functions:
            return [f"missing {kind} {symbol}"]
        declared = [(normalize_type(arg_type), name) for arg_type, name in functions[symbol]]
        expected = [(normalize_type(param.full_type), param.name) for param in physical]
        if declared != expected:
            return [f"{symbol} declares {declared}, expected {expected}"]
        return []


def _function_pointee(cursor, canonical: bool):
    """Prototype a function-pointer typedef points to, or None for any other typedef"""
    underlying = cursor.underlying_typedef_type
    if underlying.get_canonical().kind != TypeKind.POINTER:
        return None
    pointee = underlying.get_canonical().get_pointee() if canonical else underlying.get_pointee()
    if pointee.kind != TypeKind.FUNCTIONPROTO:
        # parenthesized declarators may hide the prototype behind sugar
        pointee = pointee.get_canonical()
        if pointee.kind != TypeKind.FUNCTIONPROTO:
            return None
    return pointee
