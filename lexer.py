"""Flat tokenization of calculator expressions.

Shared by the evaluator, the expression builder and the sign toggler so
that term boundaries are found over tokens rather than by pattern
matching on raw text.  The lexer is lenient: it accepts partial
expressions such as ``"5*-"`` or ``"(0."`` and leaves judging them to
the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from contract import OPERATORS

_DIGIT_CHARS = frozenset("0123456789")
_NUMBER_CHARS = _DIGIT_CHARS | {"."}


class TokenKind(Enum):
    NUMBER = auto()
    OPERATOR = auto()
    LPAREN = auto()
    RPAREN = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str

    def is_operator(self, *ops: str) -> bool:
        if self.kind != TokenKind.OPERATOR:
            return False
        return not ops or self.text in ops


class LexError(ValueError):
    """Raised for a character outside the expression alphabet."""

    def __init__(self, char: str, position: int) -> None:
        self.char = char
        self.position = position
        super().__init__(f"Unexpected character {char!r} at position {position}")


def tokenize(expression: str) -> list[Token]:
    """Split an expression into number, operator and parenthesis tokens.

    Runs of digits and dots form one NUMBER token (``"1.2.3"`` included;
    the evaluator rejects it when converting), and so does a result in
    scientific notation such as ``"1.5e+25"``.  Whitespace separates
    tokens and is otherwise dropped.
    """
    tokens: list[Token] = []
    i = 0
    n = len(expression)
    while i < n:
        ch = expression[i]
        if ch.isspace():
            i += 1
        elif ch in _NUMBER_CHARS:
            start = i
            while i < n and expression[i] in _NUMBER_CHARS:
                i += 1
            if i < n and expression[i] == "e":
                # Exponent of a carried-over result, possibly cut short by deletes.
                i += 1
                if i < n and expression[i] in "+-":
                    i += 1
                while i < n and expression[i] in _DIGIT_CHARS:
                    i += 1
            tokens.append(Token(TokenKind.NUMBER, expression[start:i]))
        elif ch in OPERATORS:
            tokens.append(Token(TokenKind.OPERATOR, ch))
            i += 1
        elif ch == "(":
            tokens.append(Token(TokenKind.LPAREN, ch))
            i += 1
        elif ch == ")":
            tokens.append(Token(TokenKind.RPAREN, ch))
            i += 1
        else:
            raise LexError(ch, i)
    return tokens


def detokenize(tokens: list[Token]) -> str:
    return "".join(t.text for t in tokens)


def last_number(expression: str) -> str:
    """The operand currently being typed, or ``""`` if none is open."""
    tokens = tokenize(expression)
    if tokens and tokens[-1].kind == TokenKind.NUMBER:
        return tokens[-1].text
    return ""
