"""
LuaCATS type definition generation module

Generates .lua files with type annotations for IDE autocompletion.
"""

from typing import TYPE_CHECKING

from .ir import TupleType
from .signature import CALL_METAMETHOD
from .types import OpaqueHandleRef

if TYPE_CHECKING:
    from .interface import LuaInterface
    from .method import LuaMethod
    from .types import ParameterSpec, TypeConverter

# Lua reserved keywords
LUA_KEYWORDS = {
    'and', 'break', 'do', 'else', 'elseif', 'end', 'false', 'for',
    'function', 'goto', 'if', 'in', 'local', 'nil', 'not', 'or',
    'repeat', 'return', 'then', 'true', 'until', 'while'
}


def class_name(iface: 'LuaInterface') -> str:
    """Name of the LuaCATS class describing an interface"""
    return iface.lua_name or iface.self_type


class LuaCATSGenerator:
    """Generates LuaCATS type definition files"""

    def __init__(self, interfaces: list['LuaInterface'], type_conv: 'TypeConverter', module_name: str):
        self.interfaces = interfaces
        self.type_conv = type_conv
        self.module_name = module_name

    def generate(self) -> str:
        """Generate complete LuaCATS type definition file"""
        lines = []
        lines.append('---@meta')
        lines.append(f'-- LuaCATS type definitions for {self.module_name}')
        lines.append('-- Auto-generated, do not edit')
        lines.append('')

        for iface in self.interfaces:
            lines.extend(self._gen_interface(iface))
            lines.append('')

        return '\n'.join(lines)

    def _gen_interface(self, iface: 'LuaInterface') -> list[str]:
        """Generate class definition with its functions"""
        lines = []
        name = class_name(iface)
        lines.append(f'---@class {name}')

        # Constructors are reached through call sugar on the class table
        for method in iface.methods:
            if method.signature.lua_name == CALL_METAMETHOD and method.signature.is_static:
                params = ', '.join(f'{n}: {t}' for n, t in self._params(method, name))
                returns = self._returns(method, name)
                result = ', '.join(returns) if returns else 'nil'
                lines.append(f'---@overload fun({params}): {result}')
        lines.append(f'{name} = {{}}')

        for method in iface.methods:
            # Metamethods are implied by the class
            if method.signature.lua_name.startswith('__'):
                continue
            lines.append('')
            lines.extend(self._gen_func(method, name))

        return lines

    def _gen_func(self, method: 'LuaMethod', name: str) -> list[str]:
        """Generate function type definition"""
        lines = []
        params = self._params(method, name)

        # Parameter annotations
        for param_name, lua_type in params:
            if lua_type.endswith('?'):
                lines.append(f'---@param {param_name}? {lua_type[:-1]}')
            else:
                lines.append(f'---@param {param_name} {lua_type}')

        for lua_ret in self._returns(method, name):
            lines.append(f'---@return {lua_ret}')

        names = [p for p, _ in params]
        func_name = method.signature.lua_name
        # Instance methods and statics of the global table (which skip a
        # leading table argument) are called with `:`
        colon_call = method.signature.is_instance or bool(params)
        if func_name in LUA_KEYWORDS or not func_name.isidentifier():
            param_names = ', '.join(['self'] + names if colon_call else names)
            lines.append(f'{name}["{func_name}"] = function({param_names}) end')
        elif colon_call:
            lines.append(f'function {name}:{func_name}({", ".join(names)}) end')
        else:
            lines.append(f'function {name}.{func_name}() end')
        return lines

    def _params(self, method: 'LuaMethod', name: str) -> list[tuple[str, str]]:
        result = []
        for param in method.signature.params:
            param_name = param.name + '_' if param.name in LUA_KEYWORDS else param.name
            result.append((param_name, self._param_type(param, name)))
        return result

    def _param_type(self, param: 'ParameterSpec', name: str) -> str:
        if isinstance(param.kind, OpaqueHandleRef):
            return self.type_conv.luacats_type(param.kind.pointee_type, name)
        return self.type_conv.luacats_type(param.kind.type, name)

    def _returns(self, method: 'LuaMethod', name: str) -> list[str]:
        ret = method.source.return_type
        if ret is None:
            return []
        if isinstance(ret, TupleType):
            return [self.type_conv.luacats_type(e, name) for e in ret.elems]
        return [self.type_conv.luacats_type(ret, name)]
