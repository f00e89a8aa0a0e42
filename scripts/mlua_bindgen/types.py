"""
Type conversion module

Decides how each Rust parameter crosses the Lua boundary and maps Rust types
to LuaCATS annotations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from .ir import ParamInfo, PathType, ReferenceType, TupleType, TypeInfo

INT_TYPES = {
    'i8', 'i16', 'i32', 'i64', 'i128', 'isize',
    'u8', 'u16', 'u32', 'u64', 'u128', 'usize',
    'LuaInteger', 'Integer',
}
FLOAT_TYPES = {'f32', 'f64', 'LuaNumber', 'Number'}
STRING_TYPES = {'String', 'str', 'LuaString', 'Cow', 'OsString', 'PathBuf'}
TABLE_TYPES = {'Table', 'LuaTable'}
FUNCTION_TYPES = {'Function', 'LuaFunction'}

# Wrappers whose Lua value may be nil
OPTIONAL_WRAPPERS = {'Option', 'LuaFallible'}
# Wrappers transparent to Lua
TRANSPARENT_WRAPPERS = {'Box', 'Rc', 'Arc', 'Result', 'LuaResult'}
SEQUENCE_TYPES = {'Vec', 'VecDeque', 'LuaArray'}
MAP_TYPES = {'HashMap', 'BTreeMap'}


@dataclass(frozen=True)
class Value:
    """Passed by value after conversion by the argument-pack extraction"""
    type: TypeInfo


@dataclass(frozen=True)
class OpaqueHandleRef:
    """Reference parameter reached through a runtime-checked userdata borrow"""
    exclusive: bool
    pointee_type: TypeInfo


ParameterKind = Union[Value, OpaqueHandleRef]


@dataclass
class ParameterSpec:
    """Classified parameter bound from the argument pack"""
    name: str
    kind: ParameterKind
    mutable_binding: bool = False

    @property
    def is_handle(self) -> bool:
        return isinstance(self.kind, OpaqueHandleRef)


class TypeHandler(ABC):
    """Base class for custom type handlers"""

    @abstractmethod
    def luacats_type(self) -> str:
        """Return LuaCATS type annotation"""
        pass


class FixedTypeHandler(TypeHandler):
    """Publishes one fixed annotation, e.g. from `--lua-type Name=integer`"""

    def __init__(self, annotation: str):
        self.annotation = annotation

    def luacats_type(self) -> str:
        return self.annotation


class TypeConverter:
    """Manages parameter classification and Rust -> LuaCATS type mapping"""

    def __init__(self, class_names: Optional[dict[str, str]] = None):
        # Rust type base name -> published Lua class name
        self.class_names: dict[str, str] = dict(class_names or {})
        self._handlers: dict[str, TypeHandler] = {}

    def register(self, type_name: str, handler: TypeHandler):
        """Register a custom type handler"""
        self._handlers[type_name] = handler

    def has_handler(self, type_name: str) -> bool:
        """Check if a custom handler exists for this type"""
        return type_name in self._handlers

    def get_handler(self, type_name: str) -> Optional[TypeHandler]:
        """Get custom handler for type"""
        return self._handlers.get(type_name)

    def param_spec(self, param: ParamInfo, name: str) -> ParameterSpec:
        """Classify a parameter; references always become opaque handles"""
        ty = param.type
        if isinstance(ty, ReferenceType):
            kind = OpaqueHandleRef(exclusive=ty.mutable, pointee_type=ty.elem)
        else:
            kind = Value(type=ty)
        return ParameterSpec(name=name, kind=kind, mutable_binding=param.is_mut_binding)

    def luacats_type(self, ty: Optional[TypeInfo], self_name: Optional[str] = None) -> str:
        """Convert a Rust type to a LuaCATS type annotation"""
        if ty is None:
            return 'nil'
        if isinstance(ty, ReferenceType):
            return self.luacats_type(ty.elem, self_name)
        if isinstance(ty, TupleType):
            return 'nil' if not ty.elems else 'any'
        if not isinstance(ty, PathType):
            if ty.tokens and str(ty.tokens[0]) == 'impl' and 'Fn' in ty.text:
                return 'function'
            return 'any'

        segment = ty.segments[-1]
        name = segment.name
        args = [a for a in segment.args if isinstance(a, TypeInfo)]

        if self.has_handler(name):
            return self.get_handler(name).luacats_type()
        if name == 'Self' and self_name:
            return self_name
        if name in INT_TYPES:
            return 'integer'
        if name in FLOAT_TYPES:
            return 'number'
        if name == 'bool':
            return 'boolean'
        if name in STRING_TYPES:
            return 'string'
        if name in TABLE_TYPES:
            return 'table'
        if name in FUNCTION_TYPES:
            return 'function'
        if name in OPTIONAL_WRAPPERS and args:
            inner = self.luacats_type(args[0], self_name)
            return inner if inner.endswith('?') else inner + '?'
        if name in TRANSPARENT_WRAPPERS and args:
            return self.luacats_type(args[0], self_name)
        if name in SEQUENCE_TYPES and args:
            return self.luacats_type(args[0], self_name).rstrip('?') + '[]'
        if name in MAP_TYPES and len(args) == 2:
            key = self.luacats_type(args[0], self_name)
            value = self.luacats_type(args[1], self_name)
            return f'table<{key}, {value}>'
        if name in self.class_names:
            return self.class_names[name]
        return 'any'
