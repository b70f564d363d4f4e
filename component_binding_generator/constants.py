"""
Constants and vocabularies for component binding generation
"""

from clang.cindex import TypeKind


# Fixed-width scalar parameter kinds
SCALAR_TYPES = (
    "uint8", "uint16", "uint32", "uint64",
    "int8", "int16", "int32", "int64",
    "bool", "single", "double",
)

INTEGER_TYPES = SCALAR_TYPES[:8]

# Kinds carrying variable-length data (two-call protocol when passed out)
BUFFER_TYPES = ("string", "basicarray", "structarray")

HANDLE_TYPE = "handle"

# Value kinds passed by const pointer in and by pointer out
COMPOUND_TYPES = ("struct", "enum")

FUNCTION_TYPE = "functiontype"

PARAM_TYPES = SCALAR_TYPES + BUFFER_TYPES + (HANDLE_TYPE,) + COMPOUND_TYPES + (FUNCTION_TYPE,)

# Kinds that need ParamClass to name the referenced declaration
CLASS_REFERENCING_TYPES = ("enum", "struct", "handle", "basicarray", "structarray", "functiontype")

PASS_IN = "in"
PASS_OUT = "out"
PASS_RETURN = "return"
PARAM_PASSES = (PASS_IN, PASS_OUT, PASS_RETURN)

# Kinds that can never be a method's return value
DISALLOWED_RETURN_TYPES = ("basicarray", "structarray", "functiontype")

# Implicit root of every class chain
BASE_CLASS_NAME = "BaseClass"

# Error names every generated surface relies on, with their default codes
RESERVED_ERRORS = {
    "INVALIDPARAM": 2,
    "COULDNOTLOADLIBRARY": 6,
    "COULDNOTFINDLIBRARYEXPORT": 7,
}

# Scalar typedefs for both integer families: (legacy C type, stdint type)
SCALAR_TYPEDEFS = {
    "uint8": ("unsigned char", "uint8_t"),
    "uint16": ("unsigned short", "uint16_t"),
    "uint32": ("unsigned int", "uint32_t"),
    "uint64": ("unsigned long long", "uint64_t"),
    "int8": ("signed char", "int8_t"),
    "int16": ("short", "int16_t"),
    "int32": ("int", "int32_t"),
    "int64": ("long long", "int64_t"),
}

FLOAT_TYPEDEFS = {
    "single": "float",
    "double": "double",
}

# Expected libclang canonical kinds of the generated scalar typedefs
# (legacy integer family, which the verifier parses against)
CLANG_SCALAR_KINDS = {
    "uint8": TypeKind.UCHAR,
    "uint16": TypeKind.USHORT,
    "uint32": TypeKind.UINT,
    "uint64": TypeKind.ULONGLONG,
    "int8": TypeKind.SCHAR,
    "int16": TypeKind.SHORT,
    "int32": TypeKind.INT,
    "int64": TypeKind.LONGLONG,
    "single": TypeKind.FLOAT,
    "double": TypeKind.DOUBLE,
}

# Binding surfaces and the artifacts each one produces
BINDING_C = "C"
BINDING_C_DYNAMIC = "CDynamic"
BINDING_CPP_DYNAMIC = "CppDynamic"
BINDING_LANGUAGES = (BINDING_C, BINDING_C_DYNAMIC, BINDING_CPP_DYNAMIC)

TYPES_HEADER_SUFFIX = "_types.h"
C_HEADER_SUFFIX = ".h"
DYNAMIC_HEADER_SUFFIX = "_dynamic.h"
DYNAMIC_IMPLEMENTATION_SUFFIX = "_dynamic.cpp"
WRAPPER_HEADER_SUFFIX = "_dynamic.hpp"

# Horizontal rule used in generated section banners
BANNER_RULE = "*" * 121
