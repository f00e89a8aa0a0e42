"""
Interface emission module

Assembles the userdata method table and the global constructor table of one
`#[lua_methods]` impl block.
"""

from typing import Optional, TYPE_CHECKING

from .binding import CallConvention
from .codegen import CodeGen, render_inline, rust_str
from .errors import BindingError
from .ir import ImplInfo, PathType
from .method import AdapterClosure, LuaMethod
from .options import AttributeOptions
from .runtime import DEFAULT_TARGET, RuntimeTarget

if TYPE_CHECKING:
    from .types import TypeConverter

METHOD_REGISTRY = '__lua_methods'
LUA_CONTEXT = '__lua_context'
TABLE_BINDING = '__t_table'


def ty_base_name(ty) -> Optional[str]:
    """Last path segment of a path type"""
    if isinstance(ty, PathType):
        return ty.base_name
    return None


class LuaInterface:
    """Declarations of one impl block, ready for emission"""

    def __init__(self, impl: ImplInfo, options: AttributeOptions, methods: list[LuaMethod],
                 ctx_lifetime: Optional[str] = None, target: RuntimeTarget = DEFAULT_TARGET):
        self.impl = impl
        self.options = options
        self.methods = methods
        self.ctx_lifetime = ctx_lifetime
        self.target = target

    @classmethod
    def from_impl(cls, impl: ImplInfo, target: RuntimeTarget = DEFAULT_TARGET,
                  converter: Optional['TypeConverter'] = None) -> 'LuaInterface':
        """Prepare every declaration, collecting all failures

        Raises:
            BindingError: one error, or a BindingErrorGroup of all of them
        """
        errors: list[BindingError] = []

        options = AttributeOptions()
        try:
            options = AttributeOptions.parse(impl.attr_args)
        except BindingError as e:
            errors.append(e)

        methods = []
        ctx_lifetime = None
        for source in impl.methods:
            try:
                method = LuaMethod.new(source, target, converter)
            except BindingError as e:
                errors.append(e)
                continue

            if method.skipped:
                continue

            lifetime = method.ctx_lifetime
            if lifetime is not None:
                if ctx_lifetime is None:
                    ctx_lifetime = lifetime
                elif lifetime != ctx_lifetime:
                    errors.append(BindingError('context lifetimes must be the same', source.line, source.column))
                    continue
            methods.append(method)

        combined = BindingError.from_many(errors)
        if combined is not None:
            raise combined
        return cls(impl, options, methods, ctx_lifetime, target)

    @property
    def self_type(self) -> str:
        return self.impl.self_type.text

    @property
    def generics(self) -> str:
        return render_inline(self.impl.generics)

    @property
    def where_clause(self) -> str:
        if not self.impl.where_clause:
            return ''
        return ' ' + render_inline(self.impl.where_clause)

    @property
    def lua_name(self) -> Optional[str]:
        """Global table name: `lua_name` option or the self type name"""
        if self.options.lua_name is not None:
            return self.options.lua_name
        return ty_base_name(self.impl.self_type)

    @property
    def statics(self) -> list[LuaMethod]:
        return [m for m in self.methods if m.signature.is_static]

    def _attrs(self, gen: CodeGen):
        for attr in self.impl.attrs:
            gen.line(render_inline(attr.tokens))

    def _registration(self, gen: CodeGen, prefix: str, closure: AdapterClosure, suffix: str):
        with gen.block(prefix + closure.header, '}' + suffix):
            gen.lines(*closure.statements())

    def generate_userdata_impl(self) -> str:
        """`impl mlua::UserData` registering every declaration"""
        gen = CodeGen()
        self._attrs(gen)
        header = f'impl{self.generics} {self.target.crate}::UserData for {self.self_type}{self.where_clause} {{'
        with gen.block(header):
            methods_bound = f"M: {self.target.crate}::UserDataMethods<'lua, Self>"
            with gen.block(f"fn add_methods<'lua, {methods_bound}>({METHOD_REGISTRY}: &mut M) {{"):
                for method in self.methods:
                    sig = method.signature
                    closure = method.closure(CallConvention.RECEIVER)
                    prefix = f'{METHOD_REGISTRY}.{sig.register_with}({rust_str(sig.lua_name)}, '
                    self._registration(gen, prefix, closure, ');')
        return gen.output()

    def generate_register_fn(self) -> Optional[str]:
        """`register_globals` publishing the static functions, None without any

        Raises:
            BindingError: when no table name can be derived
        """
        statics = self.statics
        if not statics:
            return None

        base_name = self.lua_name
        if base_name is None:
            raise BindingError.at(self.impl.self_type.tokens[0] if self.impl.self_type.tokens else None,
                                  'lua_methods attribute only works for named types')

        gen = CodeGen()
        self._attrs(gen)
        with gen.block(f'impl{self.generics} {self.self_type}{self.where_clause} {{'):
            signature = f"fn register_globals<'lua>({LUA_CONTEXT}: &'lua {self.target.lua_type})"
            with gen.block(f'{signature} -> Result<(), {self.target.error_type}> {{'):
                gen.line(f'let {TABLE_BINDING} = {LUA_CONTEXT}.create_table()?;')
                for method in statics:
                    sig = method.signature
                    closure = method.closure(CallConvention.TABLE)
                    if sig.asyncness:
                        create = 'create_async_function'
                    elif sig.kind.mutable:
                        create = 'create_function_mut'
                    else:
                        create = 'create_function'
                    prefix = f'{TABLE_BINDING}.set({rust_str(sig.lua_name)}, {LUA_CONTEXT}.{create}('
                    self._registration(gen, prefix, closure, ')?)?;')
                gen.line(f'{TABLE_BINDING}.set_metatable(Some({TABLE_BINDING}.clone()));')
                gen.line(f'{LUA_CONTEXT}.globals().set({rust_str(base_name)}, {TABLE_BINDING})')
        return gen.output()

    def expand(self) -> str:
        """Rust items replacing the annotated impl block"""
        parts = [self.generate_userdata_impl()]
        register_fn = self.generate_register_fn()
        if register_fn is not None:
            parts.append(register_fn)
        return '\n\n'.join(parts)
