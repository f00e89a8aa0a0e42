"""
Command line entry point
"""

import argparse
import sys
from typing import Optional

from .generator import Generator
from .runtime import CONTEXT_TYPES, RuntimeTarget


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Generate Lua bindings from #[lua_methods] impl blocks')
    parser.add_argument('inputs', nargs='+', help='Rust source files')
    parser.add_argument('--output', '-o', default='.',
                        help='Directory for generated Rust files')
    parser.add_argument('--types', default=None,
                        help='Directory for LuaCATS type definitions (optional)')
    parser.add_argument('--args-path', default=RuntimeTarget.args_path,
                        help='Path of the argument-pack extraction function')
    parser.add_argument('--runtime-crate', default=RuntimeTarget.crate,
                        help='Crate providing the Lua runtime types')
    parser.add_argument('--context-type', action='append', default=None,
                        help='Type name recognized as the Lua context (repeatable)')
    parser.add_argument('--lua-type', action='append', default=[], metavar='NAME=ANNOTATION',
                        help='LuaCATS annotation for a Rust type name (repeatable)')
    return parser


def parse_lua_types(parser: argparse.ArgumentParser, entries: list[str]) -> dict[str, str]:
    """`Name=annotation` entries to a mapping"""
    lua_types = {}
    for entry in entries:
        type_name, sep, annotation = entry.partition('=')
        if not sep or not type_name.strip() or not annotation.strip():
            parser.error(f'--lua-type expects NAME=ANNOTATION, got {entry!r}')
        lua_types[type_name.strip()] = annotation.strip()
    return lua_types


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    target = RuntimeTarget(
        crate=args.runtime_crate,
        args_path=args.args_path,
        context_types=tuple(args.context_type) if args.context_type else CONTEXT_TYPES,
    )
    gen = Generator(output_root=args.output, types_root=args.types, target=target,
                    lua_types=parse_lua_types(parser, args.lua_type))

    failures = gen.generate_all(args.inputs)
    if failures:
        print(f'  >> error: {failures} file(s) failed')
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
