"""
Argument binding module

Generates the statements that extract adapter arguments from the Lua argument
pack and borrow opaque userdata handles.

The borrow guards rebind each handle parameter's name to a reference into
the guard. This is sound only because every statement generated here runs
before the declaration body, so no use of the name can observe the handle.
"""

from enum import Enum

from .codegen import rust_str
from .runtime import DEFAULT_TARGET, RuntimeTarget
from .signature import MethodSignature
from .types import OpaqueHandleRef, ParameterSpec

# Adapter argument pack binding
ARGS_MAPPED = '__lua_cb_args'
# Borrow guard name suffix
REF_SUFFIX = '_ud_ref'
# Name reported for the discarded table argument
TABLE_ARG_NAME = 'self'


class CallConvention(Enum):
    """How the adapter is invoked from Lua"""
    RECEIVER = 'receiver'  # direct dispatch: obj:method(...) / T.fn(...)
    TABLE = 'table'        # call sugar: the published table arrives first

    @property
    def skips_table(self) -> bool:
        return self is CallConvention.TABLE


def argument_names(signature: MethodSignature, convention: CallConvention) -> list[str]:
    """Expected argument names passed to the extraction primitive"""
    names = [p.name for p in signature.params]
    if convention.skips_table:
        names.insert(0, TABLE_ARG_NAME)
    return names


def guard_name(param: ParameterSpec) -> str:
    return param.name + REF_SUFFIX


def _binding(param: ParameterSpec) -> str:
    if param.mutable_binding and not param.is_handle:
        return f'mut {param.name}'
    return param.name


def _tuple(items: list[str]) -> str:
    if len(items) == 1:
        return f'({items[0]},)'
    return '(' + ', '.join(items) + ')'


def extraction_statement(signature: MethodSignature, convention: CallConvention, ctx_name: str,
                         target: RuntimeTarget = DEFAULT_TARGET) -> str:
    """`let (..): (..) = from_arguments(pack, ctx, Some(name), Some(&[names]))?;`"""
    patterns = []
    types = []
    if convention.skips_table:
        patterns.append('_')
        types.append(target.table_type)
    for param in signature.params:
        patterns.append(_binding(param))
        if isinstance(param.kind, OpaqueHandleRef):
            types.append(target.userdata_type)
        else:
            types.append(param.kind.type.text)

    names = ', '.join(rust_str(n) for n in argument_names(signature, convention))
    call = (
        f'{target.args_path}({ARGS_MAPPED}, {ctx_name}, '
        f'Some({rust_str(signature.display_name)}), Some(&[{names}]))?'
    )
    return f'let {_tuple(patterns)}: {_tuple(types)} = {call};'


def borrow_statements(param: ParameterSpec, target: RuntimeTarget = DEFAULT_TARGET) -> list[str]:
    """Borrow a userdata handle and rebind the parameter to the guard"""
    kind = param.kind
    guard = guard_name(param)
    pointee = kind.pointee_type.text
    rebind = f'let mut {param.name}' if param.mutable_binding else f'let {param.name}'
    if kind.exclusive:
        return [
            f'let mut {guard}: {target.ref_mut_guard}<{pointee}> = {param.name}.borrow_mut()?;',
            f'{rebind} = &mut *{guard};',
        ]
    return [
        f'let {guard}: {target.ref_guard}<{pointee}> = {param.name}.borrow()?;',
        f'{rebind} = &*{guard};',
    ]


def setup_statements(signature: MethodSignature, convention: CallConvention, ctx_name: str,
                     target: RuntimeTarget = DEFAULT_TARGET) -> list[str]:
    """Statements run before the body; empty when there are no parameters"""
    if not signature.params:
        return []

    result = [extraction_statement(signature, convention, ctx_name, target)]
    for param in signature.params:
        if param.is_handle:
            result.extend(borrow_statements(param, target))
    return result
