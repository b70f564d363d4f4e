"""
Unit tests for CodeGenerator and OutputBuilder
"""

import pytest

from component_binding_generator.code_generators import CodeGenerator, OutputBuilder, symbol_name
from component_binding_generator.errors import GenerationError
from component_binding_generator.model import Class, Member, Method, Param, Struct


class TestSymbolName:
    """Test exported flat C symbol names"""

    def test_class_method(self):
        assert symbol_name("Ex", "Widget", Method("GetName")) == "ex_widget_getname"

    def test_global_method(self):
        assert symbol_name("Ex", "", Method("GetVersion"), is_global=True) == "ex_getversion"

    def test_dll_suffix_is_appended_verbatim(self):
        method = Method("GetSize", dll_suffix="_v2")
        assert symbol_name("Ex", "Widget", method) == "ex_widget_getsize_v2"


class TestOutputBuilder:
    """Test the OutputBuilder class"""

    def test_build_ends_with_newline(self):
        builder = OutputBuilder()
        builder.add("first")
        builder.add("second\nthird")
        assert builder.build() == "first\nsecond\nthird\n"

    def test_banner(self):
        builder = OutputBuilder()
        builder.banner("Global functions")
        assert builder.lines == ["/" + "*" * 121, " Global functions", "*" * 121 + "/"]


class TestTypesHeader:
    """Test generation of the types header"""

    @pytest.fixture(autouse=True)
    def generator(self, example_component):
        self.generator = CodeGenerator(example_component)
        self.header = self.generator.generate_types_header()

    def test_guard_and_version(self):
        assert "#ifndef __EX_TYPES_HEADER" in self.header
        assert "#define EX_VERSION_MAJOR 1" in self.header
        assert "#define EX_VERSION_MINOR 2" in self.header
        assert "#define EX_VERSION_MICRO 3" in self.header
        assert "Interface version: 1.2.3" in self.header

    def test_scalar_typedefs_for_both_integer_families(self):
        assert "#ifdef EX_USELEGACYINTEGERTYPES" in self.header
        assert "typedef unsigned int Ex_uint32;" in self.header
        assert "typedef uint32_t Ex_uint32;" in self.header
        assert "typedef signed char Ex_int8;" in self.header
        assert "typedef float Ex_single;" in self.header
        assert "typedef double Ex_double;" in self.header
        assert "#include <stdbool.h>" in self.header

    def test_result_and_error_constants(self):
        assert "typedef Ex_int32 ExResult;" in self.header
        assert "#define EX_SUCCESS 0" in self.header
        assert "#define EX_ERROR_NOTIMPLEMENTED 1" in self.header
        assert "#define EX_ERROR_INVALIDPARAM 2" in self.header
        assert "#define EX_ERROR_COULDNOTLOADLIBRARY 6" in self.header
        assert "#define EX_ERROR_COULDNOTFINDLIBRARYEXPORT 7" in self.header

    def test_handle_typedefs(self):
        assert "typedef void * ExHandle;" in self.header
        assert "typedef ExHandle Ex_BaseClass;" in self.header
        assert "typedef ExHandle Ex_Base;" in self.header
        assert "typedef ExHandle Ex_Widget;" in self.header

    def test_enum_and_union(self):
        expected = "typedef enum eExColor {\n  eColorRed = 0,\n  eColorGreen = 1,\n  eColorBlue = 2\n} eExColor;"
        assert expected in self.header
        assert "} structEnumExColor;" in self.header

    def test_packed_structs(self):
        """Test structs sit between the pack pragmas with embedded arrays"""
        start = self.header.index("#pragma pack (1)")
        end = self.header.index("#pragma pack ()")
        structs = self.header[start:end]
        assert "    Ex_double m_X;" in structs
        assert "} sExPoint;" in structs
        assert "    Ex_single m_Matrix[4][4];" in structs
        assert "    structEnumExColor m_Tint;" in structs

    def test_function_type(self):
        assert "typedef void(*ExProgressCallback)(Ex_single fProgress);" in self.header

    def test_one_dimensional_member(self):
        struct = Struct("Line", [Member("Points", "int32", rows=8)])
        assert "    Ex_int32 m_Points[8];" in self.generator.generate_struct(struct)

    def test_struct_with_string_member_fails(self):
        with pytest.raises(GenerationError, match="to contain a string value"):
            self.generator.generate_struct(Struct("Bad", [Member("Name", "string")]))


class TestFlatHeader:
    """Test generation of the flat C API header"""

    @pytest.fixture(autouse=True)
    def generator(self, example_component):
        self.generator = CodeGenerator(example_component)
        self.header = self.generator.generate_header()

    def test_string_out_end_to_end(self):
        """Test the GetName example declaration"""
        assert ("ExResult ex_widget_getname(Ex_Widget pWidget, Ex_uint32 nNameBufferSize, "
                "Ex_uint32* pNameNeededChars, char* pNameBuffer);") in self.header

    def test_minimal_component_end_to_end(self, widget_only_component):
        header = CodeGenerator(widget_only_component).generate_header()
        assert ("EX_DECLSPEC ExResult ex_widget_getname(Ex_Widget pWidget, Ex_uint32 nNameBufferSize, "
                "Ex_uint32* pNameNeededChars, char* pNameBuffer);") in header

    def test_declarations(self):
        assert "ExResult ex_widget_setname(Ex_Widget pWidget, Ex_uint32 nNameBufferSize, const char* pNameBuffer);" in self.header
        assert "ExResult ex_widget_setposition(Ex_Widget pWidget, const sExPoint* pPosition);" in self.header
        assert "ExResult ex_widget_getcolor(Ex_Widget pWidget, eExColor* pColor);" in self.header
        assert ("ExResult ex_widget_getvalues(Ex_Widget pWidget, Ex_uint64 nValuesBufferSize, "
                "Ex_uint64* pValuesNeededCount, Ex_double* pValuesBuffer);") in self.header
        assert "ExResult ex_widget_getsize_v2(Ex_Widget pWidget, Ex_uint32* pSize);" in self.header
        assert "ExResult ex_base_getlasterror(Ex_Base pBase, " in self.header

    def test_global_declarations(self):
        assert "ExResult ex_releaseinstance(Ex_BaseClass pInstance);" in self.header
        assert "ExResult ex_getversion(Ex_uint32* pMajor, Ex_uint32* pMinor, Ex_uint32* pMicro);" in self.header
        assert "ExResult ex_createwidget(Ex_Widget* pWidget);" in self.header
        assert "ExResult ex_setprogresscallback(ExProgressCallback pCallback);" in self.header

    def test_linkage_and_includes(self):
        assert '#include "ex_types.h"' in self.header
        assert 'extern "C" {' in self.header
        assert "#define EX_DECLSPEC __declspec (dllexport)" in self.header
        assert "#ifndef __EX_HEADER" in self.header

    def test_doc_comments(self):
        assert "* @param[in] pWidget - Widget instance." in self.header
        assert "* @param[out] pNameNeededChars - will be filled with the count of the written bytes" in self.header
        assert "* @return error code or 0 (success)" in self.header

    def test_invalid_parameter_propagates(self, example_component):
        """Test a bad declaration fails the whole header"""
        broken = example_component.__class__(
            namespace="Ex", library_name="Example Library", base_name="ex",
            classes=[Class("Widget", [Method("GetName", [Param("Name", "foo", "out")])])],
        )
        with pytest.raises(GenerationError, match=r'invalid method parameter type "foo" for Widget.GetName \(Name\)'):
            CodeGenerator(broken).generate_header()
