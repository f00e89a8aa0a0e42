"""
Runtime target module

Names of the interpreter runtime items the generated code calls into.
"""

from dataclasses import dataclass

# Type names recognized as the interpreter context handle
CONTEXT_TYPES = ('mlua::Lua', 'Lua', 'LuaContext', 'Context')


@dataclass
class RuntimeTarget:
    """Paths used by the emitted adapters and registrations"""
    crate: str = 'mlua'
    args_path: str = 'crate::lua::FromArgs::from_arguments'
    ref_guard: str = 'std::cell::Ref'
    ref_mut_guard: str = 'std::cell::RefMut'
    context_types: tuple[str, ...] = CONTEXT_TYPES

    @property
    def result_type(self) -> str:
        return f'{self.crate}::Result'

    @property
    def error_type(self) -> str:
        return f'{self.crate}::Error'

    @property
    def table_type(self) -> str:
        return f'{self.crate}::Table'

    @property
    def userdata_type(self) -> str:
        return f'{self.crate}::AnyUserData'

    @property
    def lua_type(self) -> str:
        return f'{self.crate}::Lua'

    def is_context_type(self, path: str) -> bool:
        """Whether a `::`-joined type path names the context handle"""
        return path in self.context_types


DEFAULT_TARGET = RuntimeTarget()
