"""Expression transforms driven by keypad input.

Each function is pure: it takes the current expression (plus whatever
display context it needs) and returns an ExpressionUpdate.  Fields left
as ``None`` on the update mean "leave unchanged".  The Calculator merges
updates into its state.

Branches are annotated with their contract branch-IDs.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from contract import (
    DECIMAL_POINT,
    DEFAULT_DISPLAY,
    DIGITS,
    ERROR_DISPLAY,
    INPUT_TOKENS,
    MAX_INPUT_LENGTH,
    OPERATORS,
    PARENS,
)
from evaluator import EvaluationError, evaluate
from lexer import Token, TokenKind, detokenize, last_number, tokenize


@dataclass(frozen=True)
class ExpressionUpdate:
    internal_expression: str
    display_value: str
    expression_preview: str | None = None
    is_result_displayed: bool | None = None
    error: str | None = None


def _unchanged(expr: str, display: str) -> ExpressionUpdate:
    return ExpressionUpdate(internal_expression=expr, display_value=display)


def _rejected(expr: str, display: str) -> ExpressionUpdate:
    return ExpressionUpdate(
        internal_expression=expr, display_value=display, is_result_displayed=False
    )


def _editing(expr: str) -> ExpressionUpdate:
    return ExpressionUpdate(
        internal_expression=expr,
        display_value=expr or DEFAULT_DISPLAY,
        is_result_displayed=False,
    )


# ---------------------------------------------------------------------------
# Expression building
# ---------------------------------------------------------------------------

def _append_decimal(expr: str) -> str | None:
    """Return the expression with a dot added, or None to reject it.

    Branches: INPUT-DOT-REJECT, INPUT-DOT-ZERO, INPUT-DOT-APPEND
    """
    if DECIMAL_POINT in last_number(expr):                       # INPUT-DOT-REJECT
        return None
    if expr == "" or expr[-1] in OPERATORS or expr.endswith("("):  # INPUT-DOT-ZERO
        return expr + "0."
    if expr.endswith(")"):                                        # INPUT-DOT-REJECT
        return None
    return expr + DECIMAL_POINT                                   # INPUT-DOT-APPEND


def _replace_operator(expr: str, op: str) -> str | None:
    """Handle an operator typed right after another operator.

    Branches: INPUT-OP-NEGATE, INPUT-OP-REPLACE
    """
    if op == "-" and expr[-1] in ("*", "/"):                       # INPUT-OP-NEGATE
        return expr + op
    head = expr[:-1]
    if head.endswith("(") and op != "-":
        return None
    return head + op                                              # INPUT-OP-REPLACE


def process_input(
    current_internal: str,
    current_display: str,
    is_result: bool,
    value: str,
) -> ExpressionUpdate:
    """Apply one keypad token to the expression being built.

    Branches: INPUT-RESULT-OPERATOR, INPUT-RESULT-RESTART, INPUT-TOO-LONG,
              INPUT-OP-*, INPUT-DOT-*, INPUT-ZERO-REPLACE,
              INPUT-IMPLICIT-MUL, INPUT-PAREN-OPERATOR, INPUT-APPEND
    """
    if value not in INPUT_TOKENS:
        raise ValueError(f"Unknown input token: {value!r}")

    if is_result:
        if value in OPERATORS:                                    # INPUT-RESULT-OPERATOR
            new_internal = current_display + value
        else:                                                     # INPUT-RESULT-RESTART
            new_internal = "0." if value == DECIMAL_POINT else value
        return _editing(new_internal)

    expr = current_internal
    if len(expr) >= MAX_INPUT_LENGTH and value not in PARENS:     # INPUT-TOO-LONG
        return _rejected(current_internal, current_display)

    last = expr[-1:]
    if value == DECIMAL_POINT:
        new_internal = _append_decimal(expr)
    elif last in OPERATORS and value in OPERATORS:
        new_internal = _replace_operator(expr, value)
    elif expr == "0" and value in DIGITS:                         # INPUT-ZERO-REPLACE
        new_internal = value
    # A closing paren never implies a "*".
    elif last == ")" and value not in OPERATORS and value != ")":  # INPUT-IMPLICIT-MUL
        new_internal = expr + "*" + value
    elif last == "(" and value in OPERATORS and value != "-":     # INPUT-PAREN-OPERATOR
        new_internal = None
    else:                                                         # INPUT-APPEND
        new_internal = expr + value

    if new_internal is None:
        return _rejected(current_internal, current_display)
    return _editing(new_internal)


# ---------------------------------------------------------------------------
# Sign toggling
# ---------------------------------------------------------------------------

def _is_number(tokens: list[Token]) -> bool:
    return len(tokens) == 1 and tokens[0].kind == TokenKind.NUMBER


def _is_negative_number(tokens: list[Token]) -> bool:
    return (
        len(tokens) == 2
        and tokens[0].is_operator("-")
        and tokens[1].kind == TokenKind.NUMBER
    )


def _is_negative_group(tokens: list[Token]) -> bool:
    return (
        len(tokens) == 4
        and tokens[0].kind == TokenKind.LPAREN
        and _is_negative_number(tokens[1:3])
        and tokens[3].kind == TokenKind.RPAREN
    )


def _toggle_trailing_term(tokens: list[Token]) -> list[Token] | None:
    """Flip the sign of the last term, or return None if there is none.

    Branches: SIGN-TRAILING-UNWRAP, SIGN-TRAILING-UNARY, SIGN-TRAILING-WRAP
    """
    if len(tokens) >= 4 and _is_negative_group(tokens[-4:]):     # SIGN-TRAILING-UNWRAP
        return tokens[:-4] + [tokens[-2]]

    if not tokens or tokens[-1].kind != TokenKind.NUMBER:
        return None

    number = tokens[-1]
    before = tokens[:-1]
    prev = before[-1] if before else None

    if prev is not None and prev.is_operator("-"):
        prior = before[-2] if len(before) >= 2 else None
        if prior is None or prior.kind == TokenKind.LPAREN or prior.is_operator("*", "/"):
            return before[:-1] + [number]                         # SIGN-TRAILING-UNARY
        # Binary minus: wrap like any other operand.

    if prev is not None and prev.kind == TokenKind.LPAREN:       # SIGN-TRAILING-UNARY
        return before + [Token(TokenKind.OPERATOR, "-"), number]

    if prev is None or prev.kind == TokenKind.OPERATOR:          # SIGN-TRAILING-WRAP
        return before + [
            Token(TokenKind.LPAREN, "("),
            Token(TokenKind.OPERATOR, "-"),
            number,
            Token(TokenKind.RPAREN, ")"),
        ]
    return None


def process_toggle_sign(
    current_internal: str,
    current_display: str,
    is_result: bool,
) -> ExpressionUpdate:
    """Flip the sign of the shown result or of the trailing term.

    Branches: SIGN-NOOP, SIGN-RESULT, SIGN-WHOLE-NUMBER,
              SIGN-TRAILING-*, SIGN-NO-TERM
    """
    if current_display in (ERROR_DISPLAY, DEFAULT_DISPLAY):       # SIGN-NOOP
        return _unchanged(current_internal, current_display)

    if is_result:                                                 # SIGN-RESULT
        try:
            float(current_display)
        except ValueError:
            return _unchanged(current_internal, current_display)
        if current_display.startswith("-"):
            negated = current_display[1:]
        else:
            negated = "-" + current_display
        return ExpressionUpdate(
            internal_expression=negated,
            display_value=negated,
            is_result_displayed=False,
        )

    tokens = tokenize(current_internal)
    if _is_number(tokens):                                        # SIGN-WHOLE-NUMBER
        toggled = f"(-{tokens[0].text})"
    elif _is_negative_number(tokens) or _is_negative_group(tokens):
        toggled = tokens[-2].text if _is_negative_group(tokens) else tokens[-1].text
    else:
        flipped = _toggle_trailing_term(tokens)
        if flipped is None:                                       # SIGN-NO-TERM
            return _unchanged(current_internal, current_display)
        toggled = detokenize(flipped)

    return ExpressionUpdate(
        internal_expression=toggled,
        display_value=toggled,
        is_result_displayed=False,
    )


# ---------------------------------------------------------------------------
# Percentage
# ---------------------------------------------------------------------------

def process_apply_percentage(
    current_internal: str,
    format_display: Callable[[float | str], str],
    format_preview: Callable[[str], str],
) -> ExpressionUpdate:
    """Evaluate the whole expression and divide it by 100.

    Branches: PCT-BLANK, PCT-ERROR, PCT-OK
    """
    if not current_internal.strip():                              # PCT-BLANK
        return ExpressionUpdate(internal_expression="", display_value=DEFAULT_DISPLAY)

    evaluated = evaluate(current_internal)
    if isinstance(evaluated, EvaluationError):                    # PCT-ERROR
        return ExpressionUpdate(
            internal_expression=current_internal,
            display_value=ERROR_DISPLAY,
            error=evaluated.message,
            is_result_displayed=False,
        )

    result = format_display(evaluated / 100)                      # PCT-OK
    return ExpressionUpdate(
        internal_expression=result,
        display_value=result,
        expression_preview=format_preview(f"({current_internal})%"),
        is_result_displayed=True,
    )
