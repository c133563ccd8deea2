#!/usr/bin/env python3
"""
OpenCL CL files header generator - command line front end
Embeds every .cl kernel under the JNI folder into one C header
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from cl_header import (
    GeneratorConfig,
    GenerationRequest,
    ReadFailure,
    derive_identifier,
    generate,
    kernel_size,
    walk_kernel_files,
)

LOG_FORMAT = '%(asctime)-15s %(levelname)s %(message)s'


def load_config(args: argparse.Namespace) -> GeneratorConfig:
    """Config file (if any) first, then command line overrides"""
    config = GeneratorConfig.from_file(args.config) if args.config else GeneratorConfig()
    return config.merged(
        jni_path=args.jni_path,
        header_name=args.header_name,
        variable_prefix=args.prefix,
        size_suffix=args.size_suffix,
    )


def list_kernels(request: GenerationRequest) -> list[str]:
    """
    Describe what a run would embed, without writing anything

    Returns:
        One line per kernel file plus a summary
    """
    root = Path(request.root_directory)
    lines = []
    count = 0
    total_size = 0

    for kernel_file in walk_kernel_files(root):
        try:
            size = kernel_size(kernel_file.read_lines())
        except (OSError, UnicodeDecodeError) as exc:
            raise ReadFailure(str(exc)) from exc
        identifier = derive_identifier(kernel_file, request.variable_prefix)
        relative = kernel_file.path.relative_to(root)
        lines.append(f"{str(relative):<30} -> {identifier} ({identifier}{request.size_suffix} = {size})")
        count += 1
        total_size += size

    lines.append("")
    lines.append(f"Kernel files: {count}")
    lines.append(f"Total size: {total_size:,} bytes")
    lines.append(f"Output: {request.output_file}")
    return lines


def print_report(ok: bool, message: str):
    if ok:
        print(f"Success! {message}")
    else:
        print("Failure! Failed to generate OpenCL CL files header.", file=sys.stderr)
        print(f"Error: {message}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Generate a C header embedding all OpenCL .cl kernels',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python gen_cl_header.py                         # Current project
  python gen_cl_header.py /path/to/project        # Specific project
  python gen_cl_header.py --config cl.json        # Settings from JSON
  python gen_cl_header.py --prefix KERN_          # Custom variable prefix
  python gen_cl_header.py --list                  # Show kernels, write nothing
        '''
    )

    parser.add_argument(
        'project',
        nargs='?',
        default='.',
        help='Path to project root (default: current directory)'
    )

    parser.add_argument(
        '--config',
        help='JSON file with jniPath, headerName, variablePrefix, sizeSuffix'
    )

    parser.add_argument(
        '--jni-path',
        help='Kernel folder relative to project root (default: %s)' % GeneratorConfig.jni_path
    )

    parser.add_argument(
        '--header-name',
        help='Generated header file name (default: %s)' % GeneratorConfig.header_name
    )

    parser.add_argument(
        '--prefix',
        help='Prefix for every variable (default: %s)' % GeneratorConfig.variable_prefix
    )

    parser.add_argument(
        '--size-suffix',
        help='Suffix for size variables (default: %s)' % GeneratorConfig.size_suffix
    )

    parser.add_argument(
        '--list',
        action='store_true',
        help='List kernel files and their variable names without writing'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging'
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main function"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(format=LOG_FORMAT, level=logging.DEBUG if args.verbose else logging.WARNING)

    project_path = os.path.abspath(args.project)
    if not os.path.isdir(project_path):
        print(f"Error: Project path '{project_path}' not found!", file=sys.stderr)
        return 1

    try:
        config = load_config(args)
    except (OSError, ValueError) as exc:
        # json.JSONDecodeError is a ValueError
        print(f"Error: Cannot load config: {exc}", file=sys.stderr)
        return 1

    request = config.to_request(project_path)

    if args.list:
        try:
            lines = list_kernels(request)
        except ReadFailure as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        print(f"Scanning: {request.root_directory}\n")
        for line in lines:
            print(line)
        return 0

    result = generate(request)
    if not result.ok:
        print_report(False, result.error)
        return 1

    print_report(True, f"Finished generating OpenCL CL files header: {result.output_file} "
                       f"({result.kernel_count} kernel files)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
