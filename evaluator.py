"""Safe arithmetic evaluation of keypad expressions.

Every check is a hard gate; the first failing gate decides the error.
Branches are annotated with their contract branch-IDs (see
contract.BRANCHES) so white-box tests can trace coverage.

Evaluation never touches a host ``eval``: validated text is tokenized,
parsed by recursive descent into a small tree (numbers, unary minus and
the four binary operators) and the tree is interpreted.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from contract import ErrorKind
from lexer import Token, TokenKind, tokenize

logger = logging.getLogger(__name__)

_ALLOWED = re.compile(r"^[0-9+\-*/().\s]+$")
_PAIR_CHARS = frozenset("+-*/.")
_NEGATION_PAIRS = frozenset({"*-", "/-"})


@dataclass(frozen=True)
class EvaluationError:
    """Tagged evaluator failure.  Returned, never raised."""

    kind: ErrorKind

    @property
    def message(self) -> str:
        return self.kind.message

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Expression tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Negate:
    operand: Node


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Node
    right: Node


Node = Number | Negate | BinaryOp


class ParseError(ValueError):
    pass


class _Parser:
    """Recursive-descent parser.

    expression := term (('+' | '-') term)*
    term       := factor (('*' | '/') factor)*
    factor     := '-' factor | NUMBER | '(' expression ')'
    """

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    def parse(self) -> Node:
        node = self._expression()
        if self.pos != len(self.tokens):
            raise ParseError(f"Unexpected token {self.tokens[self.pos].text!r}")
        return node

    def _peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def _expression(self) -> Node:
        node = self._term()
        while (tok := self._peek()) is not None and tok.is_operator("+", "-"):
            self._advance()
            node = BinaryOp(tok.text, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._factor()
        while (tok := self._peek()) is not None and tok.is_operator("*", "/"):
            self._advance()
            node = BinaryOp(tok.text, node, self._factor())
        return node

    def _factor(self) -> Node:
        tok = self._peek()
        if tok is None:
            raise ParseError("Unexpected end of expression")
        if tok.is_operator("-"):
            self._advance()
            return Negate(self._factor())
        if tok.kind == TokenKind.NUMBER:
            self._advance()
            try:
                return Number(float(tok.text))
            except ValueError:
                raise ParseError(f"Invalid number {tok.text!r}") from None
        if tok.kind == TokenKind.LPAREN:
            self._advance()
            node = self._expression()
            closing = self._peek()
            if closing is None or closing.kind != TokenKind.RPAREN:
                raise ParseError("Expected ')'")
            self._advance()
            return node
        raise ParseError(f"Unexpected token {tok.text!r}")


def parse(expression: str) -> Node:
    """Parse expression text into a tree.  Raises ParseError."""
    return _Parser(tokenize(expression)).parse()


def interpret(node: Node) -> float:
    """Compute a tree.  Raises ZeroDivisionError on division by zero."""
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Negate):
        return -interpret(node.operand)
    left = interpret(node.left)
    right = interpret(node.right)
    if node.op == "+":
        return left + right
    if node.op == "-":
        return left - right
    if node.op == "*":
        return left * right
    return left / right


# ---------------------------------------------------------------------------
# Validation gates
# ---------------------------------------------------------------------------

def _is_malformed(compact: str) -> bool:
    """Structural sanity scan over whitespace-free text."""
    if "()" in compact:
        return True
    for a, b in zip(compact, compact[1:]):
        pair = a + b
        if a in _PAIR_CHARS and b in _PAIR_CHARS and pair not in _NEGATION_PAIRS:
            return True
        if a in "+-*/" and b == ")":
            return True
        if a == "(" and b in "+*/":
            return True
    return False


def _paren_error(expression: str) -> str | None:
    depth = 0
    for ch in expression:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if depth < 0:
            return "early close"
    if depth != 0:
        return "not closed"
    return None


def _fail(kind: ErrorKind, reason: str, expression: str) -> EvaluationError:
    logger.warning("%s: %r", reason, expression)
    return EvaluationError(kind)


def evaluate(expression: str) -> float | EvaluationError:
    """Validate and compute an expression.

    Returns the numeric result (unformatted) or an EvaluationError.

    Branches: EVAL-EMPTY, EVAL-CHARS, EVAL-MALFORMED, EVAL-OPERATOR-END,
              EVAL-PAREN-EARLY, EVAL-PAREN-OPEN, EVAL-SYNTAX,
              EVAL-CALCULATION, EVAL-OK
    """
    trimmed = expression.strip()
    if not trimmed:                                               # EVAL-EMPTY
        return 0.0

    if not _ALLOWED.match(trimmed):                               # EVAL-CHARS
        return _fail(ErrorKind.INVALID_CHARS, "Invalid characters in expression", trimmed)

    compact = re.sub(r"\s", "", trimmed)
    if _is_malformed(compact):                                    # EVAL-MALFORMED
        return _fail(ErrorKind.MALFORMED, "Malformed expression", trimmed)

    if compact[-1] in "+-*/.":                                    # EVAL-OPERATOR-END
        return _fail(ErrorKind.OPERATOR_END, "Expression ends with an operator", trimmed)

    paren_error = _paren_error(trimmed)
    if paren_error is not None:                                   # EVAL-PAREN-*
        return _fail(
            ErrorKind.PARENTHESES, f"Unbalanced parentheses ({paren_error})", trimmed
        )

    try:
        tree = parse(trimmed)
    except ParseError as e:                                       # EVAL-SYNTAX
        return _fail(ErrorKind.SYNTAX, f"Syntax error ({e})", trimmed)
    except RecursionError:
        return _fail(ErrorKind.INVALID, "Expression nested too deeply", trimmed)

    try:
        result = interpret(tree)
    except ZeroDivisionError:                                     # EVAL-CALCULATION
        return _fail(ErrorKind.CALCULATION, "Division by zero", trimmed)
    except Exception:
        logger.exception("Evaluation failed: %r", trimmed)
        return EvaluationError(ErrorKind.INVALID)

    if not math.isfinite(result):                                 # EVAL-CALCULATION
        return _fail(ErrorKind.CALCULATION, "Calculation resulted in NaN or Infinity", trimmed)

    return result                                                 # EVAL-OK
