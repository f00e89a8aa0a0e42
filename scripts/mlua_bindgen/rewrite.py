"""
Identifier rewriting module

Renames the receiver keyword inside method bodies so the adapter closure can
bind it as an ordinary parameter.
"""

from lark import Token, Transformer, Tree

# Adapter binding of the receiver
SELF_MAPPED = '__cb_this'


class IdentRenamer(Transformer):
    """Renames identifier tokens everywhere in a token tree

    Literals are single tokens, so their contents are never touched.
    """

    def __init__(self, renames: dict[str, str]):
        super().__init__(visit_tokens=True)
        self.renames = renames

    def IDENT(self, token: Token) -> Token:
        new_name = self.renames.get(str(token))
        if new_name is None:
            return token
        return Token.new_borrow_pos('IDENT', new_name, token)


def rename_self(body: Tree) -> Tree:
    """Copy of body with every `self` renamed to the receiver binding"""
    return IdentRenamer({'self': SELF_MAPPED}).transform(body)
