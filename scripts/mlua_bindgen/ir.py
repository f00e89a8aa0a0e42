"""
IR (Intermediate Representation) module

Represents the Rust declarations read from `#[lua_methods]` impl blocks.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from lark import Token, Tree

from .errors import BindingError

# Token tree item: a lexed token or a delimited group (paren/bracket/brace)
TokenItem = Union[Token, Tree]


@dataclass
class TypeInfo:
    """Base of parsed Rust types"""
    tokens: list[TokenItem]

    @property
    def text(self) -> str:
        from .codegen import render_inline
        return render_inline(self.tokens)


@dataclass
class ReferenceType(TypeInfo):
    """`&'a mut T`"""
    elem: TypeInfo = None
    lifetime: Optional[str] = None
    mutable: bool = False


@dataclass
class PathSegment:
    name: str
    args: list[Union[TypeInfo, str]] = field(default_factory=list)


@dataclass
class PathType(TypeInfo):
    """`a::b::C<T, 'a>`"""
    segments: list[PathSegment] = field(default_factory=list)
    leading_colon: bool = False

    @property
    def base_name(self) -> str:
        """Last path segment, without generic arguments"""
        return self.segments[-1].name

    @property
    def joined(self) -> str:
        """Segment names joined with `::`, generic arguments ignored"""
        return '::'.join(s.name for s in self.segments)


@dataclass
class TupleType(TypeInfo):
    """`(A, B)`; the unit type has no elements"""
    elems: list[TypeInfo] = field(default_factory=list)


@dataclass
class OtherType(TypeInfo):
    """Slices, arrays, `impl Trait`, `dyn Trait`, fn pointers..."""


@dataclass
class AttrInfo:
    """Outer attribute `#[path args]`"""
    path: list[str]
    args: Optional[Tree]  # paren group, if any
    tokens: list[TokenItem]
    line: int = 0
    column: int = 0

    @property
    def name(self) -> str:
        return self.path[-1] if self.path else ''


@dataclass
class ReceiverInfo:
    """`self` receiver of a method

    `mutable` is the `mut` of `&mut self`, or of the binding for by-value
    receivers (`mut self`).
    """
    reference: bool
    mutable: bool
    lifetime: Optional[str] = None


@dataclass
class ParamInfo:
    """Typed function parameter"""
    pat: list[TokenItem]
    type: TypeInfo
    attrs: list[AttrInfo] = field(default_factory=list)
    line: int = 0
    column: int = 0

    @property
    def ident(self) -> Optional[str]:
        """Bound identifier if the pattern is `[ref] [mut] ident`"""
        words = [t for t in self.pat if isinstance(t, Token)]
        if len(words) != len(self.pat) or not words:
            return None
        *mods, last = words
        if last.type != 'IDENT' or last in ('mut', 'ref', '_'):
            return None
        if any(m not in ('mut', 'ref') for m in mods):
            return None
        return str(last)

    @property
    def is_mut_binding(self) -> bool:
        return any(isinstance(t, Token) and t == 'mut' for t in self.pat[:-1])


@dataclass
class MethodInfo:
    """Function declaration inside an impl block"""
    name: str
    params: list[ParamInfo]
    body: Tree  # brace group
    receiver: Optional[ReceiverInfo] = None
    asyncness: bool = False
    lifetimes: list[str] = field(default_factory=list)
    generics: list[TokenItem] = field(default_factory=list)
    return_type: Optional[TypeInfo] = None
    attrs: list[AttrInfo] = field(default_factory=list)
    line: int = 0
    column: int = 0


@dataclass
class ImplInfo:
    """`impl` block annotated with `#[lua_methods]`"""
    self_type: TypeInfo
    methods: list[MethodInfo]
    generics: list[TokenItem] = field(default_factory=list)
    where_clause: list[TokenItem] = field(default_factory=list)
    attr_args: Optional[Tree] = None
    attrs: list[AttrInfo] = field(default_factory=list)
    other_items: list[list[TokenItem]] = field(default_factory=list)
    start_pos: int = 0
    end_pos: int = 0
    line: int = 0
    column: int = 0


@dataclass
class IR:
    """Annotated impl blocks of one Rust source file"""
    source: str
    impls: list[ImplInfo]
    path: str = ''

    @classmethod
    def load(cls, path: str) -> 'IR':
        """Load IR from a Rust source file

        Raises:
            BindingError: if the file cannot be read or parsed
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                source = f.read()
        except UnicodeDecodeError as e:
            raise BindingError(f'not valid UTF-8: {e.reason} at byte {e.start}') from e
        except OSError as e:
            raise BindingError(f'unable to read file: {e.strerror or e}') from e
        ir = cls.from_source(source)
        ir.path = path
        return ir

    @classmethod
    def from_source(cls, source: str) -> 'IR':
        """Create IR from Rust source text"""
        from .parser import find_impls
        return cls(source=source, impls=find_impls(source))
