"""
Options module

Parses `#[lua(...)]` declaration options and `#[lua_methods(...)]` interface
options into typed records.

Grammar (comma separated):
    key
    key: value
    key = value
    key(key, ...)
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from lark import Token, Tree

from .errors import BindingError
from .ir import AttrInfo, TokenItem
from .parser import TokenCursor, group_kind, inner, is_punct

# Attribute path recognized on declarations and parameters
ITEM_ATTRIBUTE = 'lua'

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '0': '\0', '\\': '\\', '"': '"', "'": "'"}
_ESCAPE_RE = re.compile(r'\\(u\{([0-9a-fA-F]{1,6})\}|x([0-9a-fA-F]{2})|\n\s*|.)')


def decode_string(token: Token) -> str:
    """Value of a Rust string literal token"""
    text = str(token)
    if text.startswith('b'):
        text = text[1:]
    if text.startswith('r'):
        hashes = len(text) - len(text[1:].lstrip('#')) - 1
        return text[2 + hashes:len(text) - 1 - hashes]

    def replace(match):
        if match.group(2):
            return chr(int(match.group(2), 16))
        if match.group(3):
            return chr(int(match.group(3), 16))
        esc = match.group(1)
        if esc.startswith('\n'):
            return ''
        return _ESCAPES.get(esc, esc)

    return _ESCAPE_RE.sub(replace, text[1:-1])


@dataclass
class DiscreteValue:
    """Single option value: identifier, path or literal"""
    kind: str  # 'ident', 'path' or 'lit'
    tokens: list[Token]

    @property
    def text(self) -> str:
        return ''.join(str(t) for t in self.tokens)


@dataclass
class ConfigEntry:
    """One `key[: value]` entry"""
    name: Token
    value: Optional[DiscreteValue] = None
    items: Optional[list['ConfigEntry']] = None  # parenthesized list
    value_anchor: Optional[TokenItem] = None

    @property
    def key(self) -> str:
        return str(self.name)

    @property
    def is_none(self) -> bool:
        return self.value is None and self.items is None


def parse_entries(items: Sequence[TokenItem], anchor: Optional[TokenItem] = None) -> list[ConfigEntry]:
    """Parse a comma separated entry list"""
    cursor = TokenCursor(items, anchor)
    entries = []
    while not cursor.at_end():
        name = cursor.eat_ident()
        if name is None:
            raise cursor.error('expected an option name')
        entry = ConfigEntry(name=name)
        sep = cursor.eat_punct(':') or cursor.eat_punct('=')
        if sep is not None:
            entry.value_anchor = sep
            entry.value = _parse_discrete(cursor)
        elif group_kind(cursor.peek()) == 'paren':
            group = cursor.next()
            entry.value_anchor = group
            entry.items = parse_entries(inner(group), group)
        entries.append(entry)
        if cursor.at_end():
            break
        cursor.expect_punct(',')
    return entries


def _parse_discrete(cursor: TokenCursor) -> DiscreteValue:
    tok = cursor.peek()
    if not isinstance(tok, Token):
        raise cursor.error('expected an ident or literal')
    if tok.type == 'IDENT':
        tokens = [cursor.next()]
        while is_punct(cursor.peek(), '::'):
            tokens.append(cursor.next())
            tokens.append(cursor.expect_ident())
        return DiscreteValue(kind='path' if len(tokens) > 1 else 'ident', tokens=tokens)
    if tok.type in ('STRING', 'RAW_STRING', 'NUMBER', 'CHAR'):
        return DiscreteValue(kind='lit', tokens=[cursor.next()])
    if is_punct(tok, '-') and isinstance(cursor.peek(1), Token) and cursor.peek(1).type == 'NUMBER':
        return DiscreteValue(kind='lit', tokens=[cursor.next(), cursor.next()])
    raise cursor.error('expected an ident or literal')


def _name_value(entry: ConfigEntry, message: str) -> str:
    """Identifier or string literal value of an entry"""
    if entry.is_none:
        raise BindingError.at(entry.name, f'missing value for `{entry.key}`')
    value = entry.value
    if value is not None and value.kind == 'ident':
        return value.text
    if value is not None and value.kind == 'lit' and value.tokens[0].type in ('STRING', 'RAW_STRING'):
        return decode_string(value.tokens[0])
    raise BindingError.at(entry.value_anchor, message)


def _flag(entry: ConfigEntry) -> bool:
    if not entry.is_none:
        raise BindingError.at(entry.value_anchor, f"'{entry.key}' option doesn't accept any values")
    return True


def _args_items(args: Optional[Tree]) -> tuple[list[TokenItem], Optional[Tree]]:
    if args is None:
        return [], None
    return inner(args), args


@dataclass
class FunctionOptions:
    """`function` / `function(mut)`"""
    mutable: bool = False

    @classmethod
    def from_entries(cls, entries: list[ConfigEntry]) -> 'FunctionOptions':
        result = cls()
        for it in entries:
            if it.key == 'mut':
                result.mutable = _flag(it)
            else:
                raise BindingError.at(it.name, f'unknown option: {it.key}')
        return result


@dataclass
class ItemOptions:
    """Per-declaration options"""
    skip: bool = False
    rename: Optional[str] = None
    function: Optional[FunctionOptions] = None
    constructor: bool = False

    @classmethod
    def parse(cls, args: Optional[Tree]) -> 'ItemOptions':
        """Parse the parenthesized argument group of `#[lua(...)]`"""
        options = cls()
        items, anchor = _args_items(args)
        for it in parse_entries(items, anchor):
            if it.key == 'function':
                if it.items is not None:
                    options.function = FunctionOptions.from_entries(it.items)
                elif it.is_none:
                    options.function = FunctionOptions()
                else:
                    raise BindingError.at(it.value_anchor, 'expected property list or nothing')
            elif it.key == 'skip':
                options.skip = _flag(it)
            elif it.key == 'rename':
                value = _name_value(it, 'rename value must be an ident or string literal')
                options.rename = value
            elif it.key == 'constructor':
                options.constructor = _flag(it)
            else:
                raise BindingError.at(it.name, f'unknown option: {it.key}')
        return options

    @staticmethod
    def check(attr: AttrInfo) -> bool:
        """Whether the attribute is a `lua` option attribute"""
        return attr.path == [ITEM_ATTRIBUTE]

    @classmethod
    def from_attrs(cls, attrs: list[AttrInfo]) -> 'ItemOptions':
        """Options of the first `#[lua(...)]` attribute, defaults if none"""
        for attr in attrs:
            if cls.check(attr):
                if attr.args is None:
                    raise BindingError('expected list arguments', attr.line, attr.column)
                return cls.parse(attr.args)
        return cls()


@dataclass
class ParamOptions:
    """Per-parameter options"""
    context: bool = False

    @classmethod
    def from_attrs(cls, attrs: list[AttrInfo]) -> 'ParamOptions':
        options = cls()
        for attr in attrs:
            if not ItemOptions.check(attr):
                continue
            if attr.args is None:
                raise BindingError('expected list arguments', attr.line, attr.column)
            items, anchor = _args_items(attr.args)
            for it in parse_entries(items, anchor):
                if it.key == 'context':
                    options.context = _flag(it)
                else:
                    raise BindingError.at(it.name, f'unknown option: {it.key}')
        return options


@dataclass
class AttributeOptions:
    """Per-interface options from `#[lua_methods(...)]`"""
    lua_name: Optional[str] = None

    @classmethod
    def parse(cls, args: Optional[Tree]) -> 'AttributeOptions':
        options = cls()
        items, anchor = _args_items(args)
        try:
            entries = parse_entries(items, anchor)
        except BindingError as reason:
            raise BindingError(
                f"expecting comma separated 'key: value' pairs; {reason.message}",
                reason.line, reason.column,
            ) from reason

        for it in entries:
            if it.key == 'lua_name':
                options.lua_name = _name_value(it, 'lua_name expects a name')
            else:
                raise BindingError.at(it.name, f'unknown option: {it.key}')
        return options
