"""
Main component bindings generator orchestration
"""

from pathlib import Path

from .code_generators import CodeGenerator
from .constants import (
    BINDING_C,
    BINDING_C_DYNAMIC,
    BINDING_CPP_DYNAMIC,
    BINDING_LANGUAGES,
    C_HEADER_SUFFIX,
    DYNAMIC_HEADER_SUFFIX,
    DYNAMIC_IMPLEMENTATION_SUFFIX,
    TYPES_HEADER_SUFFIX,
    WRAPPER_HEADER_SUFFIX,
)
from .dynamic_table import DynamicTableGenerator
from .marshaling import MarshalingEngine
from .model import ComponentDefinition
from .wrapper_generator import CppWrapperGenerator


class ComponentBindingsGenerator:
    """Main orchestrator for generating C and C++ bindings from a component definition"""

    def resolve_bindings(self, component: ComponentDefinition, bindings: list[str] = None) -> list[str]:
        """Surfaces to render: explicit request, then the definition, then all of them"""
        requested = bindings or component.bindings or list(BINDING_LANGUAGES)
        resolved = []
        for binding in requested:
            if binding not in BINDING_LANGUAGES:
                raise ValueError(
                    f"Unknown binding language '{binding}'. Expected one of: {', '.join(BINDING_LANGUAGES)}"
                )
            if binding not in resolved:
                resolved.append(binding)
        return resolved

    def render(self, component: ComponentDefinition, bindings: list[str] = None) -> dict[str, str]:
        """Render every artifact of the selected surfaces in memory"""
        engine = MarshalingEngine(component)
        code_generator = CodeGenerator(component, engine)
        base_name = component.base_name
        selected = self.resolve_bindings(component, bindings)

        artifacts = {}
        artifacts[base_name + TYPES_HEADER_SUFFIX] = code_generator.generate_types_header()

        if BINDING_C in selected:
            artifacts[base_name + C_HEADER_SUFFIX] = code_generator.generate_header()

        if BINDING_C_DYNAMIC in selected or BINDING_CPP_DYNAMIC in selected:
            table_generator = DynamicTableGenerator(component, engine)
            artifacts[base_name + DYNAMIC_HEADER_SUFFIX] = table_generator.generate_header()
            if BINDING_C_DYNAMIC in selected:
                artifacts[base_name + DYNAMIC_IMPLEMENTATION_SUFFIX] = table_generator.generate_implementation()

        if BINDING_CPP_DYNAMIC in selected:
            wrapper_generator = CppWrapperGenerator(component, engine)
            artifacts[base_name + WRAPPER_HEADER_SUFFIX] = wrapper_generator.generate_header()

        return artifacts

    def generate(self, component: ComponentDefinition, output: str = None,
                 bindings: list[str] = None) -> dict[str, str]:
        """Generate the bindings of a component

        Args:
            component: Component definition to render
            output: Optional output directory; nothing is written when omitted
            bindings: Binding languages to render (default: the definition's, else all)

        Returns:
            Mapping of file name to generated content
        """
        # a failing artifact must leave the output directory untouched
        artifacts = self.render(component, bindings)

        if output:
            output_path = Path(output)
            output_path.mkdir(parents=True, exist_ok=True)
            for file_name, content in artifacts.items():
                artifact_file = output_path / file_name
                artifact_file.write_text(content)
                print(f"Generated {file_name}: {artifact_file}")

        return artifacts
