"""
Component Binding Generator - Generate C and C++ bindings from component definitions
"""

from .generator import ComponentBindingsGenerator
from .type_mapper import TypeMapper
from .marshaling import MarshalingEngine, PhysicalParam
from .code_generators import CodeGenerator, OutputBuilder
from .dynamic_table import DynamicTableGenerator, DynamicTableLayout
from .wrapper_generator import CppWrapperGenerator
from .errors import GenerationError
from .config import parse_component_file, parse_component_string
from .constants import (
    BINDING_LANGUAGES,
    BASE_CLASS_NAME,
    RESERVED_ERRORS,
)

__version__ = "0.1.0"

__all__ = [
    "ComponentBindingsGenerator",
    "TypeMapper",
    "MarshalingEngine",
    "PhysicalParam",
    "CodeGenerator",
    "OutputBuilder",
    "DynamicTableGenerator",
    "DynamicTableLayout",
    "CppWrapperGenerator",
    "GenerationError",
    "parse_component_file",
    "parse_component_string",
    "BINDING_LANGUAGES",
    "BASE_CLASS_NAME",
    "RESERVED_ERRORS",
]
