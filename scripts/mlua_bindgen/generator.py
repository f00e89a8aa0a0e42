"""
Main generator module

Orchestrates all components to expand `#[lua_methods]` impl blocks of Rust
source files into Lua bindings.
"""

import os
from typing import Optional

from .errors import BindingError
from .interface import LuaInterface, ty_base_name
from .ir import IR
from .luacats import LuaCATSGenerator, class_name
from .runtime import DEFAULT_TARGET, RuntimeTarget
from .types import FixedTypeHandler, TypeConverter

# Suffix of generated Rust files
RUST_OUTPUT_SUFFIX = '_lua.rs'


class Generator:
    """Main binding generator"""

    def __init__(self, output_root: str, types_root: Optional[str] = None,
                 target: RuntimeTarget = DEFAULT_TARGET,
                 lua_types: Optional[dict[str, str]] = None):
        self.output_root = output_root
        self.types_root = types_root
        self.target = target
        self.type_conv = TypeConverter()
        for type_name, annotation in (lua_types or {}).items():
            self.type_conv.register(type_name, FixedTypeHandler(annotation))

    def prepare(self):
        """Prepare output directories"""
        print('=== Generating Lua bindings:')
        os.makedirs(self.output_root, exist_ok=True)
        if self.types_root:
            os.makedirs(self.types_root, exist_ok=True)

    def generate_all(self, inputs: list[str]) -> int:
        """Generate bindings for every input file, returns the failure count"""
        self.prepare()
        failures = 0
        for input_path in inputs:
            try:
                self.generate_file(input_path)
            except BindingError as e:
                failures += 1
                for line in str(e).splitlines():
                    print(f'  >> error: {input_path}:{line}')
        return failures

    def generate_file(self, input_path: str) -> Optional[str]:
        """Expand one Rust file, returns the written Rust output path"""
        ir = IR.load(input_path)
        if not ir.impls:
            print(f'  >> warning: no #[lua_methods] impl blocks in {input_path}, skipping...')
            return None

        interfaces = self.build_interfaces(ir)
        expanded = self.expand(ir, interfaces)

        stem = os.path.splitext(os.path.basename(input_path))[0]
        rust_output = os.path.join(self.output_root, stem + RUST_OUTPUT_SUFFIX)
        print(f'  {input_path} => {rust_output}')
        with open(rust_output, 'w', newline='\n') as f:
            f.write(expanded)

        if self.types_root:
            types_output = os.path.join(self.types_root, stem + '.lua')
            with open(types_output, 'w', newline='\n') as f:
                f.write(self._generate_luacats(interfaces, stem))

        return rust_output

    def build_interfaces(self, ir: IR) -> list[LuaInterface]:
        """Prepare every impl of a file, collecting all failures"""
        interfaces = []
        errors = []
        for impl in ir.impls:
            try:
                interfaces.append(LuaInterface.from_impl(impl, self.target, self.type_conv))
            except BindingError as e:
                errors.append(e)

        combined = BindingError.from_many(errors)
        if combined is not None:
            raise combined

        for iface in interfaces:
            base_name = ty_base_name(iface.impl.self_type)
            if base_name is not None:
                self.type_conv.class_names[base_name] = class_name(iface)
        return interfaces

    def expand(self, ir: IR, interfaces: list[LuaInterface]) -> str:
        """Source text with every annotated impl replaced by its bindings"""
        parts = []
        errors = []
        pos = 0
        for iface in sorted(interfaces, key=lambda it: it.impl.start_pos):
            parts.append(ir.source[pos:iface.impl.start_pos])
            try:
                parts.append(iface.expand())
            except BindingError as e:
                errors.append(e)
            pos = iface.impl.end_pos
        parts.append(ir.source[pos:])

        combined = BindingError.from_many(errors)
        if combined is not None:
            raise combined
        return ''.join(parts)

    def _generate_luacats(self, interfaces: list[LuaInterface], module_name: str) -> str:
        """Generate LuaCATS type definitions"""
        gen = LuaCATSGenerator(interfaces, self.type_conv, module_name)
        return gen.generate()
