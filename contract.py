"""Executable contract for the keypad calculator core.

The contract is machine-readable.  Tests iterate over it to check every
state invariant and to verify that every decision branch is exercised.

Layers
------
Constants       keypad vocabulary and display widths
ErrorKind       evaluator error taxonomy (tagged messages, never raised)
Rule            named invariant over a CalculatorState
BranchSpec      every decision point that white-box tests must cover
validate_state  runs all rules and returns a ValidationReport
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from models import CalculatorState


# ---------------------------------------------------------------------------
# Configuration constants
# ---------------------------------------------------------------------------

MAX_INPUT_LENGTH = 20
MAX_DISPLAY_LENGTH = 16
MAX_EXPRESSION_PREVIEW_LENGTH = 24

OPERATORS = ("+", "-", "*", "/")
PARENS = ("(", ")")
DIGITS = tuple("0123456789")
DECIMAL_POINT = "."
INPUT_TOKENS = DIGITS + (DECIMAL_POINT,) + OPERATORS + PARENS

EXPRESSION_ALPHABET = frozenset("".join(INPUT_TOKENS))

ERROR_DISPLAY = "Error"
DEFAULT_DISPLAY = "0"


class Command(str, Enum):
    """Keypad commands dispatched as operations rather than tokens."""

    CLEAR = "C"
    DELETE = "DEL"
    BACKSPACE = "BACKSPACE"
    TOGGLE_SIGN = "+/-"
    PERCENT = "%"
    EQUALS = "="


KEYS = INPUT_TOKENS + tuple(c.value for c in Command)


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------

class ErrorKind(str, Enum):
    INVALID_CHARS = "Invalid Chars"
    MALFORMED = "Malformed"
    OPERATOR_END = "Operator End"
    PARENTHESES = "Parentheses"
    CALCULATION = "Calculation"
    SYNTAX = "Syntax"
    INVALID = "Invalid"

    @property
    def message(self) -> str:
        return f"Error: {self.value}"


# ---------------------------------------------------------------------------
# Rule: a named, executable predicate over a calculator state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    """A named invariant over calculator state."""

    id: str
    name: str
    description: str
    check: Callable[["CalculatorState"], bool]


def _error_iff_error_display(s: CalculatorState) -> bool:
    return (s.display_value == ERROR_DISPLAY) == (s.error is not None)


def _expression_uses_alphabet(s: CalculatorState) -> bool:
    # A carried-over result may be in scientific notation.
    return set(s.internal_expression) <= EXPRESSION_ALPHABET | {"e"}


def _expression_within_cap(s: CalculatorState) -> bool:
    # Parentheses bypass the cap, and so does the "*" a "(" implies after ")".
    body = s.internal_expression.replace(")*(", "").replace("(", "").replace(")", "")
    return len(body) <= MAX_INPUT_LENGTH + 3


def _preview_only_after_evaluation(s: CalculatorState) -> bool:
    if not s.expression_preview:
        return True
    return s.is_result_displayed or s.just_evaluated or s.error is not None


def _just_evaluated_shows_result(s: CalculatorState) -> bool:
    return not s.just_evaluated or s.is_result_displayed


def _display_mirrors_expression(s: CalculatorState) -> bool:
    if s.is_result_displayed or s.error is not None:
        return True
    return s.display_value == (s.internal_expression or DEFAULT_DISPLAY)


STATE_RULES: list[Rule] = [
    Rule(
        id="STATE-ERROR-DISPLAY",
        name="error_iff_error_display",
        description="Display shows 'Error' exactly when an error is stored",
        check=_error_iff_error_display,
    ),
    Rule(
        id="STATE-EXPR-CHARSET",
        name="expression_uses_alphabet",
        description="Internal expression only uses digits, '.', operators and parentheses ('e' in a carried-over result)",
        check=_expression_uses_alphabet,
    ),
    Rule(
        id="STATE-EXPR-LENGTH",
        name="expression_within_cap",
        description="Length without parentheses and implied '*(' stays within the input cap plus one step's two implied characters and a sign",
        check=_expression_within_cap,
    ),
    Rule(
        id="STATE-PREVIEW",
        name="preview_only_after_evaluation",
        description="Preview is only set after an equals or percent action",
        check=_preview_only_after_evaluation,
    ),
    Rule(
        id="STATE-JUST-EVALUATED",
        name="just_evaluated_shows_result",
        description="The re-evaluation guard is only armed while a result shows",
        check=_just_evaluated_shows_result,
    ),
    Rule(
        id="STATE-DISPLAY-MIRRORS",
        name="display_mirrors_expression",
        description="While editing, the display is the expression (or '0' when empty)",
        check=_display_mirrors_expression,
    ),
]


@dataclass(frozen=True)
class RuleOutcome:
    rule: Rule
    passed: bool
    detail: str = ""    # set when the check itself raised


@dataclass(frozen=True)
class ValidationReport:
    outcomes: list[RuleOutcome]

    @property
    def passed(self) -> bool:
        return all(o.passed for o in self.outcomes)

    @property
    def failures(self) -> list[RuleOutcome]:
        return [o for o in self.outcomes if not o.passed]

    @property
    def failed_ids(self) -> set[str]:
        return {o.rule.id for o in self.failures}

    def summary(self) -> str:
        failures = self.failures
        if not failures:
            return f"All {len(self.outcomes)} rules passed"
        lines = [f"{len(failures)}/{len(self.outcomes)} rules failed:"]
        for o in failures:
            line = f"  [{o.rule.id}] {o.rule.name}: {o.rule.description}"
            lines.append(f"{line} ({o.detail})" if o.detail else line)
        return "\n".join(lines)


def validate_state(state: CalculatorState) -> ValidationReport:
    """Check every state rule; a rule that raises counts as failed."""
    outcomes = []
    for rule in STATE_RULES:
        try:
            outcomes.append(RuleOutcome(rule, bool(rule.check(state))))
        except Exception as e:
            outcomes.append(RuleOutcome(rule, False, f"{type(e).__name__}: {e}"))
    return ValidationReport(outcomes)


# ---------------------------------------------------------------------------
# Branch map
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BranchSpec:
    """A decision point in the implementation that must be exercised."""

    id: str
    description: str
    condition: str      # human-readable boolean expression
    operation: str      # which operation / helper this belongs to


BRANCHES: list[BranchSpec] = [
    # evaluate
    BranchSpec("EVAL-EMPTY", "Blank input evaluates to 0",
               "not expression.strip()", "evaluate"),
    BranchSpec("EVAL-CHARS", "Character outside the whitelist",
               "set(expr) - allowed", "evaluate"),
    BranchSpec("EVAL-MALFORMED", "Doubled operator, operator before ')', bad '(' or '()'",
               "sanity scan finds a bad pair", "evaluate"),
    BranchSpec("EVAL-OPERATOR-END", "Expression ends in an operator or dot",
               "stripped[-1] in '+-*/.'", "evaluate"),
    BranchSpec("EVAL-PAREN-EARLY", "Closing parenthesis without an opener",
               "depth < 0", "evaluate"),
    BranchSpec("EVAL-PAREN-OPEN", "Unclosed parenthesis",
               "depth != 0 at end", "evaluate"),
    BranchSpec("EVAL-SYNTAX", "Parser rejects the token sequence",
               "ParseError", "evaluate"),
    BranchSpec("EVAL-CALCULATION", "Division by zero or non-finite result",
               "ZeroDivisionError or not isfinite(result)", "evaluate"),
    BranchSpec("EVAL-OK", "Finite numeric result",
               "all gates pass", "evaluate"),
    # process_input
    BranchSpec("INPUT-RESULT-OPERATOR", "Operator continues from the shown result",
               "is_result and token in OPERATORS", "process_input"),
    BranchSpec("INPUT-RESULT-RESTART", "Non-operator restarts after a result",
               "is_result and token not in OPERATORS", "process_input"),
    BranchSpec("INPUT-TOO-LONG", "Cap reached, token rejected",
               "len(expr) >= cap and token is not a parenthesis", "process_input"),
    BranchSpec("INPUT-DOT-REJECT", "Operand already has a dot, or dot follows ')'",
               "'.' in last number or expr ends with ')'", "process_input"),
    BranchSpec("INPUT-DOT-ZERO", "Dot gets a leading zero",
               "expr empty or ends in operator or '('", "process_input"),
    BranchSpec("INPUT-DOT-APPEND", "Dot appended to a number",
               "expr ends in a digit", "process_input"),
    BranchSpec("INPUT-OP-REPLACE", "Trailing operator replaced",
               "both operators, not a negation", "process_input"),
    BranchSpec("INPUT-OP-NEGATE", "'-' appended after '*' or '/'",
               "token == '-' and last in '*/'", "process_input"),
    BranchSpec("INPUT-ZERO-REPLACE", "Lone '0' replaced by a digit",
               "expr == '0' and token is a digit", "process_input"),
    BranchSpec("INPUT-IMPLICIT-MUL", "'*' inserted after ')'",
               "expr ends with ')' and token is a value", "process_input"),
    BranchSpec("INPUT-PAREN-OPERATOR", "Operator other than '-' after '(' rejected",
               "expr ends with '(' and token in '+*/'", "process_input"),
    BranchSpec("INPUT-APPEND", "Token appended verbatim",
               "no other rule applies", "process_input"),
    # process_toggle_sign
    BranchSpec("SIGN-NOOP", "Error or default display",
               "display in ('Error', '0')", "process_toggle_sign"),
    BranchSpec("SIGN-RESULT", "Shown result negated textually",
               "is_result", "process_toggle_sign"),
    BranchSpec("SIGN-WHOLE-NUMBER", "Whole expression is one number",
               "expression is a lone (possibly negative) number", "process_toggle_sign"),
    BranchSpec("SIGN-TRAILING-WRAP", "Trailing positive term wrapped as (-N)",
               "operator before trailing number", "process_toggle_sign"),
    BranchSpec("SIGN-TRAILING-UNWRAP", "Trailing (-N) group unwrapped",
               "expression ends with (-N)", "process_toggle_sign"),
    BranchSpec("SIGN-TRAILING-UNARY", "Unary minus before trailing number removed or added",
               "'*-N', '/-N', '(-N' or '(N' at the end", "process_toggle_sign"),
    BranchSpec("SIGN-NO-TERM", "No trailing term to toggle",
               "expression ends in an operator, '(' or a compound group", "process_toggle_sign"),
    # process_apply_percentage
    BranchSpec("PCT-BLANK", "Blank expression resets",
               "not expr.strip()", "process_apply_percentage"),
    BranchSpec("PCT-ERROR", "Evaluator error surfaced",
               "isinstance(result, EvaluationError)", "process_apply_percentage"),
    BranchSpec("PCT-OK", "Value divided by 100",
               "numeric result", "process_apply_percentage"),
    # Calculator
    BranchSpec("CALC-SKIP-EMPTY", "Nothing to evaluate",
               "not expr.strip()", "calculate"),
    BranchSpec("CALC-SKIP-REPEAT", "Unchanged result not re-evaluated",
               "just_evaluated and expr == display", "calculate"),
    BranchSpec("CALC-ERROR", "Evaluator error stored",
               "isinstance(result, EvaluationError)", "calculate"),
    BranchSpec("CALC-OK", "Result shown",
               "numeric result", "calculate"),
    BranchSpec("DEL-RESULT", "Delete while a result shows clears everything",
               "is_result_displayed", "delete_last"),
    BranchSpec("DEL-CHAR", "Last character removed",
               "not is_result_displayed", "delete_last"),
]
