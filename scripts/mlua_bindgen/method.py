"""
Adapter method module

Builds the Lua-callable adapter closure of a classified declaration.
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from lark import Tree

from .binding import ARGS_MAPPED, CallConvention, setup_statements
from .codegen import render_lines
from .parser import inner
from .rewrite import SELF_MAPPED, rename_self
from .runtime import DEFAULT_TARGET, RuntimeTarget
from .signature import MethodSignature, classify

if TYPE_CHECKING:
    from .ir import MethodInfo
    from .types import TypeConverter

# Adapter context binding when the declaration takes no context parameter
CTX_ERASED = '__lua_ctx'


@dataclass
class AdapterClosure:
    """Runtime-callable closure wrapping a declaration body"""
    ctx_name: str
    body: Tree
    return_type: str
    receiver: Optional[str] = None
    args: Optional[str] = None  # unit pattern when None
    asyncness: bool = False
    setup: list[str] = field(default_factory=list)

    @property
    def inputs(self) -> list[str]:
        result = [self.ctx_name]
        if self.receiver is not None:
            result.append(self.receiver)
        result.append(self.args if self.args is not None else '()')
        return result

    @property
    def header(self) -> str:
        params = ', '.join(self.inputs)
        if self.asyncness:
            return f'|{params}| async move {{'
        return f'|{params}| -> {self.return_type} {{'

    def statements(self) -> list[str]:
        """Setup statements followed by the body rows"""
        return self.setup + render_lines(inner(self.body))

    def render(self, indent: str = '    ') -> list[str]:
        """Closure lines; the first line is the header"""
        lines = [self.header]
        lines.extend(indent + stmt for stmt in self.statements())
        lines.append('}')
        return lines


class LuaMethod:
    """Declaration prepared for registration"""

    def __init__(self, source: 'MethodInfo', signature: MethodSignature, body: Tree,
                 target: RuntimeTarget = DEFAULT_TARGET):
        self.source = source
        self.signature = signature
        self.body = body
        self.target = target

    @classmethod
    def new(cls, source: 'MethodInfo', target: RuntimeTarget = DEFAULT_TARGET,
            converter: Optional['TypeConverter'] = None) -> 'LuaMethod':
        """Classify the declaration and rewrite its body

        Raises:
            BindingError: when the declaration cannot be classified
        """
        signature = classify(source, target=target, converter=converter)
        body = source.body
        if signature.is_instance:
            body = rename_self(body)
        return cls(source, signature, body, target)

    @property
    def ctx_lifetime(self) -> Optional[str]:
        if self.signature.context is None:
            return None
        return self.signature.context.lifetime

    @property
    def skipped(self) -> bool:
        return self.signature.options.skip

    @property
    def return_type(self) -> str:
        ret = self.source.return_type
        inner_type = ret.text if ret is not None else '()'
        return f'{self.target.result_type}<{inner_type}>'

    def closure(self, convention: CallConvention) -> AdapterClosure:
        """Adapter closure for the given call convention"""
        sig = self.signature
        ctx_name = sig.context.alias if sig.context is not None else CTX_ERASED
        return AdapterClosure(
            ctx_name=ctx_name,
            body=self.body,
            return_type=self.return_type,
            receiver=SELF_MAPPED if sig.is_instance else None,
            args=ARGS_MAPPED if sig.params else None,
            asyncness=sig.asyncness,
            setup=setup_statements(sig, convention, ctx_name, self.target),
        )
