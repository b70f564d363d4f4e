"""
Tests for the dynamic function table: layout, header and Init/Release/Load
"""

import pytest

from component_binding_generator.dynamic_table import DynamicTableGenerator, DynamicTableLayout
from component_binding_generator.model import ComponentDefinition, ErrorCode


class TestDynamicTableLayout:
    """Test slot order and naming of the table"""

    def test_class_methods_then_globals(self, example_component):
        layout = DynamicTableLayout.from_component(example_component)
        fields = [entry.field_name for entry in layout.entries]
        assert fields[0] == "m_Base_GetLastError"
        assert fields[1] == "m_Widget_GetName"
        assert fields[-4:] == ["m_ReleaseInstance", "m_GetVersion", "m_CreateWidget", "m_SetProgressCallback"]
        assert layout.type_name == "sExDynamicWrapperTable"

    def test_entry_names(self, example_component):
        layout = DynamicTableLayout.from_component(example_component)
        entry = layout.find("Widget", "GetSize")
        assert entry.pointer_type == "PExWidget_GetSizePtr"
        assert entry.symbol == "ex_widget_getsize_v2"
        assert not entry.is_global

        entry = layout.find("", "GetVersion")
        assert entry.pointer_type == "PExGetVersionPtr"
        assert entry.symbol == "ex_getversion"
        assert entry.is_global

    def test_find_unknown(self, example_component):
        layout = DynamicTableLayout.from_component(example_component)
        with pytest.raises(KeyError):
            layout.find("Widget", "Missing")


class TestDynamicHeader:
    """Test generation of the dynamic loading header"""

    @pytest.fixture(autouse=True)
    def generator(self, example_component):
        self.generator = DynamicTableGenerator(example_component)
        self.header = self.generator.generate_header()

    def test_pointer_typedef_matches_flat_declaration(self):
        assert ("typedef ExResult (*PExWidget_GetNamePtr)(Ex_Widget pWidget, Ex_uint32 nNameBufferSize, "
                "Ex_uint32* pNameNeededChars, char* pNameBuffer);") in self.header
        assert "typedef ExResult (*PExReleaseInstancePtr)(Ex_BaseClass pInstance);" in self.header

    def test_table_struct(self):
        assert "    void * m_LibraryHandle;" in self.header
        assert "    PExWidget_GetNamePtr m_Widget_GetName;" in self.header
        assert "    PExGetVersionPtr m_GetVersion;" in self.header
        assert "} sExDynamicWrapperTable;" in self.header

    def test_prototypes(self):
        assert "ExResult InitExWrapperTable(sExDynamicWrapperTable * pWrapperTable);" in self.header
        assert "ExResult ReleaseExWrapperTable(sExDynamicWrapperTable * pWrapperTable);" in self.header
        assert ("ExResult LoadExWrapperTable(sExDynamicWrapperTable * pWrapperTable, "
                "const char * pLibraryFileName);") in self.header

    def test_guard_and_include(self):
        assert "#ifndef __EX_DYNAMICHEADER" in self.header
        assert '#include "ex_types.h"' in self.header


class TestTableProcedures:
    """Test the Init/Release/Load implementation"""

    @pytest.fixture(autouse=True)
    def generator(self, example_component):
        self.generator = DynamicTableGenerator(example_component)
        self.implementation = self.generator.generate_implementation()

    def test_init_zeroes_every_slot(self):
        init = self.generator.generate_init_body()
        assert "pWrapperTable->m_LibraryHandle = nullptr;" in init
        for entry in self.generator.layout.entries:
            assert f"pWrapperTable->{entry.field_name} = nullptr;" in init
        assert "return EX_ERROR_INVALIDPARAM;" in init
        assert init.rstrip().endswith("return EX_SUCCESS;")

    def test_release_unloads_then_resets(self):
        release = self.generator.generate_release_body(self.generator.c_loader_names())
        free_index = release.index("FreeExLibrary(pWrapperTable->m_LibraryHandle);")
        reset_index = release.index("return InitExWrapperTable(pWrapperTable);")
        assert free_index < reset_index

    def test_load_resolves_every_export(self):
        load = self.generator.generate_load_body(self.generator.c_loader_names())
        for entry in self.generator.layout.entries:
            assert (f'pWrapperTable->{entry.field_name} = ({entry.pointer_type}) '
                    f'GetExLibraryExport(hLibrary, "{entry.symbol}");') in load

    def test_load_failure_codes(self):
        load = self.generator.generate_load_body(self.generator.c_loader_names())
        assert "return EX_ERROR_COULDNOTLOADLIBRARY;" in load
        assert "return EX_ERROR_COULDNOTFINDLIBRARYEXPORT;" in load

    def test_missing_export_leaves_table_zeroed(self):
        """Test a failed lookup frees the library and re-runs Init before returning"""
        load = self.generator.generate_load_body(self.generator.c_loader_names(), spacing="")
        failure = "FreeExLibrary(hLibrary);\n    InitExWrapperTable(pWrapperTable);\n    return EX_ERROR_COULDNOTFINDLIBRARYEXPORT;"
        assert failure in load
        assert load.count(failure) == len(self.generator.layout.entries)

    def test_load_releases_previous_library(self):
        """Test reloading a table frees the library it held before opening the new one"""
        load = self.generator.generate_load_body(self.generator.c_loader_names())
        release = load.index("ReleaseExWrapperTable(pWrapperTable);")
        assert load.index("if (pLibraryFileName == nullptr)") < release
        assert release < load.index("void * hLibrary = LoadExLibrary(pLibraryFileName);")

    def test_library_handle_stored_last(self):
        load = self.generator.generate_load_body(self.generator.c_loader_names())
        last_export = load.rindex("GetExLibraryExport(hLibrary")
        assert load.index("pWrapperTable->m_LibraryHandle = hLibrary;") > last_export

    def test_platform_helpers(self):
        assert "static void * LoadExLibrary(const char * pLibraryFileName)" in self.implementation
        assert "LoadLibraryA(pLibraryFileName)" in self.implementation
        assert "dlopen(pLibraryFileName, RTLD_LAZY)" in self.implementation
        assert "GetProcAddress((HMODULE) pLibraryHandle, pSymbolName)" in self.implementation
        assert "dlsym(pLibraryHandle, pSymbolName)" in self.implementation
        assert "dlclose(pLibraryHandle)" in self.implementation
        assert "#include <dlfcn.h>" in self.implementation

    def test_implementation_defines_procedures(self):
        assert "ExResult InitExWrapperTable(sExDynamicWrapperTable * pWrapperTable)\n{" in self.implementation
        assert '#include "ex_dynamic.h"' in self.implementation


class TestReservedErrorOverrides:
    """Test the procedures use the effective reserved error constants"""

    def test_declared_reserved_error_code(self):
        component = ComponentDefinition(
            namespace="Ex",
            library_name="Example Library",
            base_name="ex",
            errors=[ErrorCode("COULDNOTLOADLIBRARY", 42)],
        )
        generator = DynamicTableGenerator(component)
        types_header = generator.code_generator.generate_types_header()
        assert "#define EX_ERROR_COULDNOTLOADLIBRARY 42" in types_header
        assert "#define EX_ERROR_COULDNOTLOADLIBRARY 6" not in types_header
        load = generator.generate_load_body(generator.c_loader_names())
        assert "return EX_ERROR_COULDNOTLOADLIBRARY;" in load
