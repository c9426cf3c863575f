"""Lexer for the Endive language.

Raw source text is split into tokens by a Lark `basic` lexer built from the
terminal grammar below. The parser never sees Lark objects: each Lark token
is copied into an immutable `Token` carrying its kind, literal text and
source offset.

Keywords are not separate terminals. `LET`, `DEF`, `IF` and friends come out
as IDENTIFIER tokens and the parser matches them by their literal text.

Numbers may carry a sign. A `+` or `-` directly in front of a number is
folded into it, unless the token before the sign can end an operand (as in
`x -1` or `(a) -1`); in that case the sign stays a binary operator.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, List

from lark import Lark, UnexpectedCharacters

from .errors import LexError


class TokenKind(enum.Enum):
    IDENTIFIER = 'IDENTIFIER'
    INTEGER = 'INTEGER'
    DECIMAL = 'DECIMAL'
    CHARACTER = 'CHARACTER'
    STRING = 'STRING'
    OPERATOR = 'OPERATOR'


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    literal: str
    index: int


KEYWORDS = frozenset({
    'LET', 'CONST', 'DEF', 'DO', 'END', 'IF', 'ELSE', 'FOR', 'WHILE',
    'RETURN', 'AND', 'OR',
})


ENDIVE_TOKENS = r"""
    start: (IDENTIFIER | INTEGER | DECIMAL | CHARACTER | STRING | OPERATOR)*

    IDENTIFIER: /[A-Za-z_][A-Za-z0-9_]*/
    DECIMAL.2: /[0-9]+\.[0-9]+/
    INTEGER: /[0-9]+/
    CHARACTER: /'([^'\\\n\r]|\\.)?'/
    STRING: /"([^"\\\n\r]|\\.)*"/
    OPERATOR: /[<>!=]=?|&&|\|\||[^\sA-Za-z0-9_'"]/

    %import common.WS
    %ignore WS
"""


ENDIVE_LEXER = Lark(
    ENDIVE_TOKENS,
    parser='lalr',
    lexer='basic',
)


def _ends_operand(token: Token) -> bool:
    if token.kind == TokenKind.IDENTIFIER:
        return token.literal not in KEYWORDS
    if token.kind == TokenKind.OPERATOR:
        return token.literal == ')'
    return True


def fold_signs(tokens: Iterable[Token]) -> List[Token]:
    """Merge a sign operator into the number that immediately follows it."""
    result: List[Token] = []
    pending = list(tokens)
    i = 0
    while i < len(pending):
        token = pending[i]
        if (token.kind == TokenKind.OPERATOR and token.literal in ('+', '-')
                and i + 1 < len(pending)):
            nxt = pending[i + 1]
            adjacent = nxt.index == token.index + 1
            numeric = nxt.kind in (TokenKind.INTEGER, TokenKind.DECIMAL)
            if adjacent and numeric and (not result or not _ends_operand(result[-1])):
                result.append(Token(nxt.kind, token.literal + nxt.literal, token.index))
                i += 2
                continue
        result.append(token)
        i += 1
    return result


def lex(source: str) -> List[Token]:
    """Convert source text into a list of tokens."""
    try:
        raw = [Token(TokenKind(t.type), str(t), t.start_pos) for t in ENDIVE_LEXER.lex(source)]
    except UnexpectedCharacters as e:
        raise LexError(f"unexpected character {source[e.pos_in_stream]!r}", e.pos_in_stream) from e
    return fold_signs(raw)
