"""
Source parser module

Lexes Rust source into token trees and reads `#[lua_methods]` impl blocks
out of them.
"""

from pathlib import Path
from typing import Optional, Sequence

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from .errors import BindingError, first_token
from .ir import (
    AttrInfo, ImplInfo, MethodInfo, OtherType, ParamInfo, PathSegment,
    PathType, ReceiverInfo, ReferenceType, TupleType, TypeInfo, TokenItem,
)

_GRAMMAR_PATH = Path(__file__).with_name('grammar.lark')
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
    _GRAMMAR_SRC,
    parser='lalr',
    start='start',
    keep_all_tokens=True,
    maybe_placeholders=False,
)

IMPL_ATTRIBUTE = 'lua_methods'

# Leading keywords of types that are kept opaque
_OPAQUE_TYPE_WORDS = {'dyn', 'impl', 'fn', 'unsafe', 'extern', 'for'}

# Function qualifiers allowed between visibility and `fn`
_FN_QUALIFIERS = {'default', 'const', 'async', 'unsafe', 'extern'}


def parse_tokens(source: str) -> Tree:
    """Lex source into a token tree"""
    try:
        return _PARSER.parse(blank_nested_comments(source))
    except UnexpectedInput as e:
        line = e.line if isinstance(e.line, int) and e.line > 0 else None
        column = e.column if isinstance(e.column, int) and e.column > 0 else None
        raise BindingError(f'unable to tokenize source: {_first_line(str(e))}', line, column) from e


def blank_nested_comments(source: str) -> str:
    """Replace nested block comments with whitespace of the same shape

    The lexer closes a block comment at its first `*/`. Every comment whose
    nesting-aware end lies further is blanked here, keeping offsets, lines
    and columns of the remaining tokens.
    """
    start = 0
    while True:
        for tok in _PARSER.lex(source, dont_ignore=True):
            if tok.type != 'BLOCK_COMMENT' or tok.start_pos < start:
                continue
            end = _block_comment_end(source, tok)
            if end != tok.end_pos:
                source = source[:tok.start_pos] + _blank(source[tok.start_pos:end]) + source[end:]
                start = end
                break
        else:
            return source


def _block_comment_end(source: str, tok: Token) -> int:
    depth = 0
    pos = tok.start_pos
    while pos < len(source) - 1:
        pair = source[pos:pos + 2]
        if pair == '/*':
            depth += 1
            pos += 2
        elif pair == '*/':
            depth -= 1
            pos += 2
            if depth == 0:
                return pos
        else:
            pos += 1
    raise BindingError('unterminated block comment', tok.line, tok.column)


def _blank(text: str) -> str:
    return ''.join(c if c in '\r\n' else ' ' for c in text)


def _first_line(text: str) -> str:
    return text.strip().splitlines()[0] if text.strip() else text


def group_kind(item) -> Optional[str]:
    """'paren', 'bracket' or 'brace' for a group, None for tokens"""
    if isinstance(item, Tree):
        return str(item.data)
    return None


def inner(group: Tree) -> list[TokenItem]:
    """Group contents without the delimiters"""
    return group.children[1:-1]


def is_punct(item, value: str) -> bool:
    return isinstance(item, Token) and item.type == 'PUNCT' and item == value


def is_ident(item, value: Optional[str] = None) -> bool:
    if not isinstance(item, Token) or item.type != 'IDENT':
        return False
    return value is None or item == value


class TokenCursor:
    """Sequential reader over token tree items"""

    def __init__(self, items: Sequence[TokenItem], anchor: Optional[TokenItem] = None):
        self.items = list(items)
        self.pos = 0
        self.anchor = anchor

    def at_end(self) -> bool:
        return self.pos >= len(self.items)

    def peek(self, offset: int = 0) -> Optional[TokenItem]:
        idx = self.pos + offset
        return self.items[idx] if idx < len(self.items) else None

    def next(self) -> TokenItem:
        if self.at_end():
            raise self.error('unexpected end of input')
        item = self.items[self.pos]
        self.pos += 1
        return item

    def rest(self) -> list[TokenItem]:
        items = self.items[self.pos:]
        self.pos = len(self.items)
        return items

    def eat_punct(self, value: str) -> Optional[Token]:
        if is_punct(self.peek(), value):
            return self.next()
        return None

    def eat_ident(self, value: Optional[str] = None) -> Optional[Token]:
        if is_ident(self.peek(), value):
            return self.next()
        return None

    def expect_punct(self, value: str) -> Token:
        tok = self.eat_punct(value)
        if tok is None:
            raise self.error(f'expected `{value}`')
        return tok

    def expect_ident(self, value: Optional[str] = None) -> Token:
        tok = self.eat_ident(value)
        if tok is None:
            raise self.error(f'expected `{value}`' if value else 'expected an identifier')
        return tok

    def expect_group(self, kind: str) -> Tree:
        item = self.peek()
        if group_kind(item) != kind:
            delims = {'paren': '(', 'bracket': '[', 'brace': '{'}
            raise self.error(f'expected `{delims[kind]}`')
        return self.next()

    def error(self, message: str) -> BindingError:
        item = self.peek()
        if item is None:
            item = self.items[-1] if self.items else self.anchor
        return BindingError.at(item, message)


def split_commas(items: Sequence[TokenItem]) -> list[list[TokenItem]]:
    """Split items on commas outside of angle brackets"""
    chunks: list[list[TokenItem]] = [[]]
    depth = 0
    for item in items:
        if isinstance(item, Token) and item.type == 'PUNCT':
            if item == '<':
                depth += 1
            elif item == '>' and depth:
                depth -= 1
            elif item == ',' and depth == 0:
                chunks.append([])
                continue
        chunks[-1].append(item)
    if not chunks[-1]:
        chunks.pop()
    return chunks


def collect_angle(cursor: TokenCursor) -> list[TokenItem]:
    """Consume `<...>` including both brackets"""
    result = [cursor.expect_punct('<')]
    depth = 1
    while depth:
        item = cursor.next()
        if is_punct(item, '<'):
            depth += 1
        elif is_punct(item, '>'):
            depth -= 1
        result.append(item)
    return result


def generic_lifetimes(generics: Sequence[TokenItem]) -> list[str]:
    """Lifetime parameters declared in `<...>` generics"""
    result = []
    for chunk in split_commas(generics[1:-1]):
        if chunk and isinstance(chunk[0], Token) and chunk[0].type == 'LIFETIME':
            result.append(str(chunk[0]))
    return result


# ==============================================================================
# Types
# ==============================================================================

def parse_type(items: Sequence[TokenItem], anchor: Optional[TokenItem] = None) -> TypeInfo:
    """Parse a type from token tree items"""
    items = list(items)
    if not items:
        raise BindingError.at(anchor, 'expected a type')
    first = items[0]

    if is_punct(first, '&'):
        cursor = TokenCursor(items[1:], first)
        lifetime = cursor.next() if isinstance(cursor.peek(), Token) and cursor.peek().type == 'LIFETIME' else None
        mutable = cursor.eat_ident('mut') is not None
        elem = parse_type(cursor.rest(), first)
        return ReferenceType(
            tokens=items,
            elem=elem,
            lifetime=str(lifetime) if lifetime is not None else None,
            mutable=mutable,
        )

    if group_kind(first) == 'paren' and len(items) == 1:
        elems = [parse_type(chunk, first) for chunk in split_commas(inner(first))]
        return TupleType(tokens=items, elems=elems)

    if not isinstance(first, Token) or first.type != 'IDENT' and not is_punct(first, '::'):
        return OtherType(tokens=items)
    if first in _OPAQUE_TYPE_WORDS or first == '_':
        return OtherType(tokens=items)

    cursor = TokenCursor(items, first)
    leading_colon = cursor.eat_punct('::') is not None
    segments = []
    while True:
        name = cursor.eat_ident()
        if name is None:
            return OtherType(tokens=items)
        segment = PathSegment(name=str(name))
        if is_punct(cursor.peek(), '::') and is_punct(cursor.peek(1), '<'):
            cursor.next()
        if is_punct(cursor.peek(), '<'):
            segment.args = _parse_generic_args(collect_angle(cursor))
        segments.append(segment)
        if cursor.eat_punct('::') is None:
            break

    if not cursor.at_end():
        return OtherType(tokens=items)
    return PathType(tokens=items, segments=segments, leading_colon=leading_colon)


def _parse_generic_args(angle: list[TokenItem]) -> list:
    args = []
    for chunk in split_commas(angle[1:-1]):
        if len(chunk) == 1 and isinstance(chunk[0], Token) and chunk[0].type == 'LIFETIME':
            args.append(str(chunk[0]))
        elif any(is_punct(item, '=') for item in chunk):
            args.append(OtherType(tokens=chunk))
        else:
            args.append(parse_type(chunk, angle[0]))
    return args


# ==============================================================================
# Attributes
# ==============================================================================

def parse_attrs(cursor: TokenCursor) -> list[AttrInfo]:
    """Consume outer attributes `#[...]`"""
    attrs = []
    while is_punct(cursor.peek(), '#') and group_kind(cursor.peek(1)) == 'bracket':
        hash_tok = cursor.next()
        bracket = cursor.next()
        attrs.append(_parse_attr(hash_tok, bracket))
    return attrs


def _parse_attr(hash_tok: Token, bracket: Tree) -> AttrInfo:
    cursor = TokenCursor(inner(bracket), bracket)
    path = []
    cursor.eat_punct('::')
    while True:
        name = cursor.eat_ident()
        if name is None:
            break
        path.append(str(name))
        if cursor.eat_punct('::') is None:
            break
    args = cursor.peek() if group_kind(cursor.peek()) == 'paren' else None
    return AttrInfo(
        path=path,
        args=args,
        tokens=[hash_tok, bracket],
        line=hash_tok.line,
        column=hash_tok.column,
    )


# ==============================================================================
# Impl blocks
# ==============================================================================

def find_impls(source: str, attr_name: str = IMPL_ATTRIBUTE) -> list[ImplInfo]:
    """Find and parse every impl block annotated with attr_name"""
    tree = parse_tokens(source)
    impls: list[ImplInfo] = []
    errors: list[BindingError] = []
    _scan(tree.children, attr_name, impls, errors)
    combined = BindingError.from_many(errors)
    if combined is not None:
        raise combined
    return impls


def _scan(items: Sequence[TokenItem], attr_name: str, impls: list[ImplInfo],
          errors: list[BindingError]):
    cursor = TokenCursor(items)
    while not cursor.at_end():
        if is_punct(cursor.peek(), '#') and group_kind(cursor.peek(1)) == 'bracket':
            start = cursor.peek()
            attrs = parse_attrs(cursor)
            marker = next((a for a in attrs if a.name == attr_name), None)
            if marker is None:
                continue
            others = [a for a in attrs if a is not marker]
            item_pos = cursor.pos
            try:
                impls.append(_parse_impl(cursor, start, marker, others))
            except BindingError as e:
                errors.append(e)
                cursor.pos = item_pos
                _skip_item(cursor)
            continue

        item = cursor.next()
        if group_kind(item) == 'brace':
            _scan(inner(item), attr_name, impls, errors)


def _skip_item(cursor: TokenCursor):
    while not cursor.at_end():
        item = cursor.next()
        if group_kind(item) == 'brace' or is_punct(item, ';'):
            return


def _parse_impl(cursor: TokenCursor, start: Token, marker: AttrInfo,
                attrs: list[AttrInfo]) -> ImplInfo:
    cursor.eat_ident('unsafe')
    if cursor.eat_ident('impl') is None:
        raise BindingError(f'{marker.name} attribute expects an impl block', marker.line, marker.column)

    generics = collect_angle(cursor) if is_punct(cursor.peek(), '<') else []

    header = []
    while not cursor.at_end() and group_kind(cursor.peek()) != 'brace' and not is_ident(cursor.peek(), 'where'):
        header.append(cursor.next())
    for idx, item in enumerate(header):
        if is_ident(item, 'for'):
            header = header[idx + 1:]
            break
    self_type = parse_type(header, start)

    where_clause = []
    while not cursor.at_end() and group_kind(cursor.peek()) != 'brace':
        where_clause.append(cursor.next())

    body = cursor.expect_group('brace')
    methods, other_items = _parse_impl_items(inner(body), body)
    close = body.children[-1]

    return ImplInfo(
        self_type=self_type,
        methods=methods,
        generics=generics,
        where_clause=where_clause,
        attr_args=marker.args,
        attrs=attrs,
        other_items=other_items,
        start_pos=start.start_pos,
        end_pos=close.end_pos,
        line=start.line,
        column=start.column,
    )


def _parse_impl_items(items: Sequence[TokenItem], anchor: Tree):
    cursor = TokenCursor(items, anchor)
    methods = []
    other_items = []
    errors = []
    while not cursor.at_end():
        start = cursor.pos
        try:
            attrs = parse_attrs(cursor)
            if cursor.eat_ident('pub') and group_kind(cursor.peek()) == 'paren':
                cursor.next()
            if _is_fn_ahead(cursor):
                methods.append(_parse_method(cursor, attrs))
            else:
                _skip_other_item(cursor)
                other_items.append(cursor.items[start:cursor.pos])
        except BindingError as e:
            errors.append(e)
            cursor.pos = max(cursor.pos, start + 1)
            _skip_item(cursor)
    combined = BindingError.from_many(errors)
    if combined is not None:
        raise combined
    return methods, other_items


def _is_fn_ahead(cursor: TokenCursor) -> bool:
    offset = 0
    while True:
        item = cursor.peek(offset)
        if is_ident(item, 'fn'):
            return True
        if is_ident(item) and item in _FN_QUALIFIERS:
            offset += 1
            if isinstance(cursor.peek(offset), Token) and cursor.peek(offset).type in ('STRING', 'RAW_STRING'):
                offset += 1
            continue
        return False


def _skip_other_item(cursor: TokenCursor):
    prev = None
    while not cursor.at_end():
        item = cursor.next()
        if is_punct(item, ';'):
            return
        if group_kind(item) == 'brace' and is_punct(prev, '!') and not is_punct(cursor.peek(), ';'):
            return
        prev = item


def _parse_method(cursor: TokenCursor, attrs: list[AttrInfo]) -> MethodInfo:
    asyncness = False
    while not is_ident(cursor.peek(), 'fn'):
        word = cursor.next()
        if word == 'async':
            asyncness = True
        if word == 'extern' and isinstance(cursor.peek(), Token) and cursor.peek().type in ('STRING', 'RAW_STRING'):
            cursor.next()
    fn_tok = cursor.expect_ident('fn')
    name = cursor.expect_ident()

    generics = collect_angle(cursor) if is_punct(cursor.peek(), '<') else []
    params_group = cursor.expect_group('paren')
    receiver, params = _parse_params(params_group)

    return_type = None
    if cursor.eat_punct('->') is not None:
        ret_items = []
        while not cursor.at_end() and group_kind(cursor.peek()) != 'brace' \
                and not is_ident(cursor.peek(), 'where') and not is_punct(cursor.peek(), ';'):
            ret_items.append(cursor.next())
        return_type = parse_type(ret_items, name)

    while not cursor.at_end() and group_kind(cursor.peek()) != 'brace' and not is_punct(cursor.peek(), ';'):
        cursor.next()  # where clause
    if is_punct(cursor.peek(), ';'):
        raise cursor.error('expected a function body')
    body = cursor.expect_group('brace')

    return MethodInfo(
        name=str(name),
        params=params,
        body=body,
        receiver=receiver,
        asyncness=asyncness,
        lifetimes=generic_lifetimes(generics) if generics else [],
        generics=generics,
        return_type=return_type,
        attrs=attrs,
        line=fn_tok.line,
        column=fn_tok.column,
    )


def _parse_params(group: Tree) -> tuple[Optional[ReceiverInfo], list[ParamInfo]]:
    receiver = None
    params = []
    for idx, chunk in enumerate(split_commas(inner(group))):
        cursor = TokenCursor(chunk, group)
        attrs = parse_attrs(cursor)
        if idx == 0:
            receiver = _parse_receiver(TokenCursor(cursor.items[cursor.pos:], group))
            if receiver is not None:
                continue

        pat = []
        while not cursor.at_end() and not is_punct(cursor.peek(), ':'):
            pat.append(cursor.next())
        if not pat:
            raise cursor.error('expected a parameter pattern')
        colon = cursor.expect_punct(':')
        ty = parse_type(cursor.rest(), colon)
        head = first_token(pat[0])
        params.append(ParamInfo(
            pat=pat,
            type=ty,
            attrs=attrs,
            line=head.line,
            column=head.column,
        ))
    return receiver, params


def _parse_receiver(cursor: TokenCursor) -> Optional[ReceiverInfo]:
    if is_punct(cursor.peek(), '&'):
        cursor.next()
        lifetime = None
        if isinstance(cursor.peek(), Token) and cursor.peek().type == 'LIFETIME':
            lifetime = str(cursor.next())
        mutable = cursor.eat_ident('mut') is not None
        if cursor.eat_ident('self') is None or not cursor.at_end():
            return None
        return ReceiverInfo(reference=True, mutable=mutable, lifetime=lifetime)

    binding_mut = cursor.eat_ident('mut') is not None
    if cursor.eat_ident('self') is None:
        return None
    if cursor.at_end():
        return ReceiverInfo(reference=False, mutable=binding_mut)
    colon = cursor.expect_punct(':')
    ty = parse_type(cursor.rest(), colon)
    if isinstance(ty, ReferenceType):
        return ReceiverInfo(reference=True, mutable=ty.mutable, lifetime=ty.lifetime)
    return ReceiverInfo(reference=False, mutable=binding_mut)
