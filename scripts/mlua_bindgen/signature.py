"""
Signature classification module

Determines the call-convention kind, context binding and parameter treatment
of each declaration.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from .codegen import snake_to_camel
from .errors import BindingError
from .ir import MethodInfo, ParamInfo, PathType, ReferenceType
from .options import ItemOptions, ParamOptions
from .runtime import DEFAULT_TARGET, RuntimeTarget
from .types import ParameterSpec, TypeConverter

# Reserved metamethod names
METAMETHODS = (
    '__index', '__newindex', '__call', '__concat', '__unm',
    '__add', '__sub', '__mul', '__div', '__idiv',
    '__mod', '__pow', '__tostring', '__metatable', '__eq',
    '__lt', '__le', '__mode', '__len', '__iter',
)

# Published name of constructors
CALL_METAMETHOD = '__call'


@dataclass(frozen=True)
class InstanceMethod:
    """Dispatched on a userdata receiver"""
    exclusive: bool = False


@dataclass(frozen=True)
class StaticFunction:
    """Called without a receiver"""
    mutable: bool = False


SignatureKind = Union[InstanceMethod, StaticFunction]


@dataclass(frozen=True)
class ContextBinding:
    """Parameter recognized as the interpreter context handle"""
    lifetime: str
    alias: str


def is_metamethod(name: str) -> bool:
    return name in METAMETHODS


def registration_entry(asyncness: bool, is_meta: bool, kind: SignatureKind) -> str:
    """Registrar entry point name

    add[_async][_meta](_method|_function)[_mut]
    """
    result = 'add'
    if asyncness:
        result += '_async'
    if is_meta:
        result += '_meta'
    if isinstance(kind, InstanceMethod):
        result += '_method'
        mutable = kind.exclusive
    else:
        result += '_function'
        mutable = kind.mutable
    if mutable:
        result += '_mut'
    return result


def default_lua_name(name: str) -> str:
    """Published name without options; metamethods keep their name"""
    if is_metamethod(name):
        return name
    return snake_to_camel(name)


@dataclass
class MethodSignature:
    """Classified declaration"""
    method: MethodInfo
    options: ItemOptions
    kind: SignatureKind
    is_meta: bool
    context: Optional[ContextBinding] = None
    params: list[ParameterSpec] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.method.name

    @property
    def asyncness(self) -> bool:
        return self.method.asyncness

    @property
    def is_instance(self) -> bool:
        return isinstance(self.kind, InstanceMethod)

    @property
    def is_static(self) -> bool:
        return isinstance(self.kind, StaticFunction)

    @property
    def display_name(self) -> str:
        """Name reported by argument extraction failures"""
        return snake_to_camel(self.name)

    @property
    def lua_name(self) -> str:
        """Name the declaration is published under"""
        if self.options.constructor:
            return CALL_METAMETHOD
        if self.options.rename is not None:
            return self.options.rename
        return default_lua_name(self.name)

    @property
    def register_with(self) -> str:
        return registration_entry(self.asyncness, self.is_meta, self.kind)


def classify(method: MethodInfo, options: Optional[ItemOptions] = None,
             target: RuntimeTarget = DEFAULT_TARGET,
             converter: Optional[TypeConverter] = None) -> MethodSignature:
    """Classify a declaration

    Raises:
        BindingError: on invalid options or an unsupported signature
    """
    if options is None:
        options = ItemOptions.from_attrs(method.attrs)
    if converter is None:
        converter = TypeConverter()

    kind: Optional[SignatureKind] = None
    if method.receiver is not None:
        receiver = method.receiver
        kind = InstanceMethod(exclusive=receiver.mutable)

    inputs = list(method.params)
    context = None
    if inputs and _is_context_param(inputs[0], target):
        context = _context_binding(inputs.pop(0))
    for param in inputs:
        if ParamOptions.from_attrs(param.attrs).context:
            raise BindingError(
                'context parameter must come first after the receiver',
                param.line, param.column,
            )

    if options.function is not None:
        kind = StaticFunction(mutable=options.function.mutable)
    if kind is None:
        kind = StaticFunction(mutable=False)

    is_meta = is_metamethod(method.name)

    if isinstance(kind, StaticFunction) and kind.mutable and method.asyncness and is_meta:
        raise BindingError('mutable async meta functions not supported', method.line, method.column)

    if context is not None and context.lifetime not in method.lifetimes:
        raise BindingError('lifetime not found in function generics', method.line, method.column)

    params = []
    for param in inputs:
        name = param.ident
        if name is None:
            raise BindingError('expected an identifier', param.line, param.column)
        params.append(converter.param_spec(param, name))

    return MethodSignature(
        method=method,
        options=options,
        kind=kind,
        is_meta=is_meta,
        context=context,
        params=params,
    )


def _is_context_param(param: ParamInfo, target: RuntimeTarget) -> bool:
    """Explicit `#[lua(context)]` tag or a `&'a <context type>` parameter"""
    if ParamOptions.from_attrs(param.attrs).context:
        ty = param.type
        if not isinstance(ty, ReferenceType) or ty.lifetime is None:
            raise BindingError(
                'context parameter must be a reference with a lifetime',
                param.line, param.column,
            )
        return True

    ty = param.type
    if not isinstance(ty, ReferenceType) or ty.lifetime is None:
        return False
    if not isinstance(ty.elem, PathType):
        return False
    return target.is_context_type(ty.elem.joined)


def _context_binding(param: ParamInfo) -> ContextBinding:
    alias = param.ident
    if alias is None:
        raise BindingError('expected an identifier', param.line, param.column)
    return ContextBinding(lifetime=param.type.lifetime, alias=alias)
