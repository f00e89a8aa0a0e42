"""
mlua_bindgen - Lua binding generation for annotated Rust impl blocks

Reads `#[lua_methods]` impl blocks from Rust source and expands them into
`mlua::UserData` implementations and global constructor tables. Per-method
behaviour is configured with `#[lua(...)]` attributes.
"""

from .ir import IR, ImplInfo, MethodInfo, ParamInfo, ReceiverInfo, TypeInfo
from .errors import BindingError, BindingErrorGroup
from .options import ItemOptions, FunctionOptions, AttributeOptions, ParamOptions
from .runtime import RuntimeTarget
from .signature import (
    MethodSignature, InstanceMethod, StaticFunction, ContextBinding,
    classify, registration_entry,
)
from .types import TypeConverter, TypeHandler, FixedTypeHandler, ParameterSpec, Value, OpaqueHandleRef
from .binding import CallConvention
from .codegen import CodeGen, snake_to_camel
from .method import LuaMethod, AdapterClosure
from .interface import LuaInterface
from .luacats import LuaCATSGenerator
from .generator import Generator

__all__ = [
    'IR', 'ImplInfo', 'MethodInfo', 'ParamInfo', 'ReceiverInfo', 'TypeInfo',
    'BindingError', 'BindingErrorGroup',
    'ItemOptions', 'FunctionOptions', 'AttributeOptions', 'ParamOptions',
    'RuntimeTarget',
    'MethodSignature', 'InstanceMethod', 'StaticFunction', 'ContextBinding',
    'classify', 'registration_entry',
    'TypeConverter', 'TypeHandler', 'FixedTypeHandler', 'ParameterSpec', 'Value', 'OpaqueHandleRef',
    'CallConvention',
    'CodeGen', 'snake_to_camel',
    'LuaMethod', 'AdapterClosure',
    'LuaInterface',
    'LuaCATSGenerator',
    'Generator',
]
