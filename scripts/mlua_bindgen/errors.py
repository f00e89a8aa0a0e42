"""
Diagnostics raised while generating bindings
"""

from typing import Iterable, Optional, Union

from lark import Token, Tree


class BindingError(Exception):
    """Generation-time diagnostic with an optional source position"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    @classmethod
    def at(cls, item: Union[Token, Tree, None], message: str) -> 'BindingError':
        """Create an error positioned at a token or at the first token of a group"""
        token = first_token(item)
        if token is None:
            return cls(message)
        return cls(message, token.line, token.column)

    @classmethod
    def from_many(cls, errors: Iterable['BindingError']) -> Optional['BindingError']:
        """Combine errors: None if empty, the error itself if single, else a group"""
        errors = list(errors)
        if not errors:
            return None
        if len(errors) == 1:
            return errors[0]
        return BindingErrorGroup(errors)

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f'{self.line}:{self.column}: {self.message}'


class BindingErrorGroup(BindingError):
    """Several independent diagnostics reported together"""

    def __init__(self, errors: list[BindingError]):
        flat: list[BindingError] = []
        for err in errors:
            if isinstance(err, BindingErrorGroup):
                flat.extend(err.errors)
            else:
                flat.append(err)
        first = flat[0]
        super().__init__(first.message, first.line, first.column)
        self.errors = flat

    def __str__(self) -> str:
        return '\n'.join(str(e) for e in self.errors)


def first_token(item: Union[Token, Tree, None]) -> Optional[Token]:
    """Leftmost token of a token tree item"""
    while isinstance(item, Tree):
        if not item.children:
            return None
        item = item.children[0]
    return item
