#!/usr/bin/env python3
"""
CLI entry point for the component bindings generator
Generates flat C, dynamically loaded C and C++ wrapper bindings from an XML component definition
"""

import argparse
import sys
import os
import clang.cindex

# Add parent directory to sys.path for direct execution
if __name__ == '__main__' and __package__ is None:
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from component_binding_generator.config import parse_component_file
from component_binding_generator.constants import BINDING_LANGUAGES
from component_binding_generator.generator import ComponentBindingsGenerator
from component_binding_generator.verify import HeaderVerifier


def main():
    parser = argparse.ArgumentParser(
        description="Generate C and C++ bindings from an XML component definition",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --component library.xml --output generated
  %(prog)s -C library.xml -b CppDynamic --verify
        """
    )

    parser.add_argument(
        "-C", "--component",
        metavar="COMPONENT_FILE",
        required=True,
        help="XML component definition to generate bindings for"
    )

    parser.add_argument(
        "-o", "--output",
        metavar="DIRECTORY",
        help="Output directory for generated files (prints to stdout if not specified)"
    )

    parser.add_argument(
        "-b", "--binding",
        action="append",
        choices=BINDING_LANGUAGES,
        help="Binding language to generate; may be repeated (default: the definition's bindings, else all)"
    )

    parser.add_argument(
        "--verify",
        action="store_true",
        help="Parse the generated headers with libclang and check them against the definition"
    )

    parser.add_argument(
        "--clang-path",
        metavar="PATH",
        help="Path to libclang library (if not in default location)"
    )

    args = parser.parse_args()

    try:
        component = parse_component_file(args.component)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error reading component file: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Processing: {args.component}", file=sys.stdout if args.output else sys.stderr)

    # Set clang library path if provided
    if args.clang_path:
        clang.cindex.Config.set_library_path(args.clang_path)

    try:
        generator = ComponentBindingsGenerator()
        artifacts = generator.generate(component, output=args.output, bindings=args.binding)
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not args.output:
        for file_name, content in artifacts.items():
            print(f"// ---- {file_name} ----")
            print(content, end="")

    if args.verify:
        try:
            problems = HeaderVerifier(component.namespace).verify(component, artifacts)
        except (ValueError, RuntimeError, clang.cindex.LibclangError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if problems:
            for problem in problems:
                print(f"Error: {problem}", file=sys.stderr)
            sys.exit(1)
        print("Verification passed", file=sys.stdout if args.output else sys.stderr)


if __name__ == "__main__":
    main()
