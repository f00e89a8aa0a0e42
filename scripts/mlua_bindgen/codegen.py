"""
Code generation utilities

Provides helpers for generating Rust and Lua code.
"""

from typing import Iterable

from lark import Token, Tree

# Name segments published fully upper-cased (to_xyz -> toXYZ)
FULL_UPPER = ('xy', 'xyz', 'srgb', 'xyzd50', '2d')


class CodeGen:
    """Code generation helper with indentation support"""

    def __init__(self):
        self._lines: list[str] = []
        self._indent: int = 0
        self._indent_str: str = '    '  # 4 spaces

    def line(self, text: str = ''):
        """Add a line with current indentation"""
        if text:
            self._lines.append(self._indent_str * self._indent + text)
        else:
            self._lines.append('')

    def lines(self, *texts: str):
        """Add multiple lines"""
        for text in texts:
            self.line(text)

    def indent(self):
        """Increase indentation"""
        self._indent += 1

    def dedent(self):
        """Decrease indentation"""
        if self._indent > 0:
            self._indent -= 1

    def block(self, header: str, footer: str = '}'):
        """Context manager for code blocks"""
        return _BlockContext(self, header, footer)

    def output(self) -> str:
        """Get generated code as string"""
        return '\n'.join(self._lines)


class _BlockContext:
    """Context manager for indented code blocks"""

    def __init__(self, gen: CodeGen, header: str, footer: str):
        self._gen = gen
        self._header = header
        self._footer = footer

    def __enter__(self):
        self._gen.line(self._header)
        self._gen.indent()
        return self

    def __exit__(self, *args):
        self._gen.dedent()
        self._gen.line(self._footer)


def snake_to_camel(name: str) -> str:
    """Convert a Rust snake_case name to the published camelCase name

    Examples:
        set_color -> setColor
        to_xyz -> toXYZ
        make_2d -> make2D
    """
    parts = name.split('_')
    result = parts[0]
    for part in parts[1:]:
        if part in FULL_UPPER:
            result += part.upper()
        elif part:
            result += part[0].upper() + part[1:]
    return result


def rust_str(value: str) -> str:
    """Rust string literal for value"""
    escaped = value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')
    return f'"{escaped}"'


def flatten(items: Iterable) -> list[Token]:
    """Tokens of a token tree, delimiters included"""
    result = []
    for item in items:
        if isinstance(item, Tree):
            result.extend(flatten(item.children))
        else:
            result.append(item)
    return result


def _spaced(prev: Token, tok: Token) -> bool:
    if prev.end_pos is None or tok.start_pos is None:
        return True
    return tok.start_pos > prev.end_pos


def render_inline(items: Iterable) -> str:
    """Render tokens on one line, keeping adjacency from the source"""
    parts = []
    prev = None
    for tok in flatten(items):
        if prev is not None and _spaced(prev, tok):
            parts.append(' ')
        parts.append(str(tok))
        prev = tok
    return ''.join(parts)


def render_lines(items: Iterable) -> list[str]:
    """Render tokens keeping source line breaks and relative indentation"""
    tokens = flatten(items)
    if not tokens:
        return []

    rows: list[tuple[int, list[Token]]] = []
    prev = None
    for tok in tokens:
        if prev is None or tok.line > prev.end_line:
            rows.append((tok.column, [tok]))
        else:
            rows[-1][1].append(tok)
        prev = tok

    base = min(column for column, _ in rows)
    result = []
    for column, row in rows:
        result.append(' ' * (column - base) + render_inline(row))
    return result
