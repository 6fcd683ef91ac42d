"""White-box tests for the keypad calculator.

Each test class targets specific decision branches documented in
``contract.BRANCHES``.  A coverage matrix at the bottom of this file
records which test covers which branch, and the last class checks the
matrix against the contract so a new branch cannot go untested.

Naming convention
-----------------
test_<branch_id_lowercase>_<scenario>
"""
from __future__ import annotations

from functools import partial

import pytest

from calculator import Calculator
from contract import BRANCHES, ErrorKind
from evaluator import EvaluationError, evaluate
from formatting import format_display_value, format_expression_preview
from models import CalculatorState
from processor import process_apply_percentage, process_input, process_toggle_sign

DISPLAY = partial(format_display_value, max_length=16)
PREVIEW = partial(format_expression_preview, max_length=24)


def _editing(expr: str, value: str) -> str:
    return process_input(expr, expr or "0", False, value).internal_expression


def _toggle(expr: str) -> str:
    return process_toggle_sign(expr, expr or "0", False).internal_expression


def _calc_with(keys: str) -> Calculator:
    calc = Calculator()
    for key in keys:
        calc.press(key)
    return calc


# ===================================================================
# EVALUATE
# ===================================================================

class TestEvaluate:

    def test_eval_empty(self):
        """Branch: EVAL-EMPTY: blank text is 0."""
        assert evaluate(" ") == 0

    def test_eval_chars(self):
        """Branch: EVAL-CHARS: letters are rejected first."""
        assert evaluate("2+x") == EvaluationError(ErrorKind.INVALID_CHARS)

    def test_eval_malformed(self):
        """Branch: EVAL-MALFORMED: doubled operator."""
        assert evaluate("2**3") == EvaluationError(ErrorKind.MALFORMED)

    def test_eval_operator_end(self):
        """Branch: EVAL-OPERATOR-END: trailing operator."""
        assert evaluate("2*") == EvaluationError(ErrorKind.OPERATOR_END)

    def test_eval_paren_early(self):
        """Branch: EVAL-PAREN-EARLY: close before open."""
        assert evaluate(")2(") == EvaluationError(ErrorKind.PARENTHESES)

    def test_eval_paren_open(self):
        """Branch: EVAL-PAREN-OPEN: group never closed."""
        assert evaluate("(2") == EvaluationError(ErrorKind.PARENTHESES)

    def test_eval_syntax(self):
        """Branch: EVAL-SYNTAX: leading binary operator."""
        assert evaluate("*2") == EvaluationError(ErrorKind.SYNTAX)

    def test_eval_calculation(self):
        """Branch: EVAL-CALCULATION: division by zero."""
        assert evaluate("1/0") == EvaluationError(ErrorKind.CALCULATION)

    def test_eval_ok(self):
        """Branch: EVAL-OK: numeric result."""
        assert evaluate("6/4") == 1.5


# ===================================================================
# PROCESS INPUT
# ===================================================================

class TestProcessInput:

    def test_input_result_operator(self):
        """Branch: INPUT-RESULT-OPERATOR: operator extends the result."""
        assert process_input("8", "8", True, "-").internal_expression == "8-"

    def test_input_result_restart(self):
        """Branch: INPUT-RESULT-RESTART: digit replaces the result."""
        assert process_input("8", "8", True, "3").internal_expression == "3"

    def test_input_too_long(self):
        """Branch: INPUT-TOO-LONG: digit refused at the cap."""
        full = "9" * 20
        assert _editing(full, "9") == full

    def test_input_dot_reject(self):
        """Branch: INPUT-DOT-REJECT: operand already has a dot."""
        assert _editing("3.1", ".") == "3.1"

    def test_input_dot_reject_after_close_paren(self):
        """Branch: INPUT-DOT-REJECT: no operand right after a closing paren."""
        assert _editing("(3)", ".") == "(3)"

    def test_input_dot_zero(self):
        """Branch: INPUT-DOT-ZERO: dot after operator gets a zero."""
        assert _editing("3*", ".") == "3*0."

    def test_input_dot_append(self):
        """Branch: INPUT-DOT-APPEND: dot after a digit."""
        assert _editing("3", ".") == "3."

    def test_input_op_replace(self):
        """Branch: INPUT-OP-REPLACE: new operator wins."""
        assert _editing("3-", "/") == "3/"

    def test_input_op_negate(self):
        """Branch: INPUT-OP-NEGATE: minus kept after divide."""
        assert _editing("3/", "-") == "3/-"

    def test_input_zero_replace(self):
        """Branch: INPUT-ZERO-REPLACE: lone zero replaced."""
        assert _editing("0", "4") == "4"

    def test_input_implicit_mul(self):
        """Branch: INPUT-IMPLICIT-MUL: digit after ')'."""
        assert _editing("(1)", "4") == "(1)*4"

    def test_input_paren_operator(self):
        """Branch: INPUT-PAREN-OPERATOR: '/' right after '(' refused."""
        assert _editing("(", "/") == "("

    def test_input_append(self):
        """Branch: INPUT-APPEND: plain digit."""
        assert _editing("12", "3") == "123"


# ===================================================================
# TOGGLE SIGN
# ===================================================================

class TestToggleSign:

    def test_sign_noop(self):
        """Branch: SIGN-NOOP: nothing typed yet."""
        assert process_toggle_sign("", "0", False).display_value == "0"

    def test_sign_result(self):
        """Branch: SIGN-RESULT: shown result negated."""
        assert process_toggle_sign("8", "8", True).display_value == "-8"

    def test_sign_whole_number(self):
        """Branch: SIGN-WHOLE-NUMBER: lone number wrapped."""
        assert _toggle("8") == "(-8)"

    def test_sign_whole_number_negative(self):
        """Branch: SIGN-WHOLE-NUMBER: lone negative number unwrapped."""
        assert _toggle("(-8)") == "8"

    def test_sign_trailing_wrap(self):
        """Branch: SIGN-TRAILING-WRAP: last operand wrapped."""
        assert _toggle("1+8") == "1+(-8)"

    def test_sign_trailing_unwrap(self):
        """Branch: SIGN-TRAILING-UNWRAP: last (-N) unwrapped."""
        assert _toggle("1+(-8)") == "1+8"

    def test_sign_trailing_unary(self):
        """Branch: SIGN-TRAILING-UNARY: unary minus removed."""
        assert _toggle("1*-8") == "1*8"

    def test_sign_no_term(self):
        """Branch: SIGN-NO-TERM: expression ends with an operator."""
        assert _toggle("1*") == "1*"


# ===================================================================
# PERCENTAGE
# ===================================================================

class TestPercentage:

    def test_pct_blank(self):
        """Branch: PCT-BLANK: nothing to evaluate."""
        update = process_apply_percentage("", DISPLAY, PREVIEW)
        assert update.display_value == "0"

    def test_pct_error(self):
        """Branch: PCT-ERROR: evaluator error surfaced."""
        update = process_apply_percentage("1/0", DISPLAY, PREVIEW)
        assert update.error == ErrorKind.CALCULATION.message

    def test_pct_ok(self):
        """Branch: PCT-OK: value divided by 100."""
        update = process_apply_percentage("8", DISPLAY, PREVIEW)
        assert update.display_value == "0.08"


# ===================================================================
# CALCULATOR
# ===================================================================

class TestCalculator:

    def test_calc_skip_empty(self):
        """Branch: CALC-SKIP-EMPTY: equals with nothing typed."""
        calc = _calc_with("=")
        assert calc.state == CalculatorState()

    def test_calc_skip_repeat(self):
        """Branch: CALC-SKIP-REPEAT: second equals keeps the preview."""
        calc = _calc_with("6*7==")
        assert calc.display_value == "42"
        assert calc.expression == "6*7="

    def test_calc_error(self):
        """Branch: CALC-ERROR: error stored, expression kept."""
        calc = _calc_with("6/0=")
        assert calc.error == ErrorKind.CALCULATION.message
        assert calc.state.internal_expression == "6/0"

    def test_calc_ok(self):
        """Branch: CALC-OK: result shown."""
        assert _calc_with("6*7=").display_value == "42"

    def test_del_result(self):
        """Branch: DEL-RESULT: delete on a result clears."""
        calc = _calc_with("6*7=")
        calc.delete_last()
        assert calc.state == CalculatorState()

    def test_del_char(self):
        """Branch: DEL-CHAR: delete drops one character."""
        calc = _calc_with("6*7")
        calc.delete_last()
        assert calc.display_value == "6*"


# ===================================================================
# Coverage matrix: branch_id -> test function(s) that exercise it
# ===================================================================

BRANCH_COVERAGE = {
    "EVAL-EMPTY":            ["TestEvaluate::test_eval_empty"],
    "EVAL-CHARS":            ["TestEvaluate::test_eval_chars"],
    "EVAL-MALFORMED":        ["TestEvaluate::test_eval_malformed"],
    "EVAL-OPERATOR-END":     ["TestEvaluate::test_eval_operator_end"],
    "EVAL-PAREN-EARLY":      ["TestEvaluate::test_eval_paren_early"],
    "EVAL-PAREN-OPEN":       ["TestEvaluate::test_eval_paren_open"],
    "EVAL-SYNTAX":           ["TestEvaluate::test_eval_syntax"],
    "EVAL-CALCULATION":      ["TestEvaluate::test_eval_calculation"],
    "EVAL-OK":               ["TestEvaluate::test_eval_ok"],
    "INPUT-RESULT-OPERATOR": ["TestProcessInput::test_input_result_operator"],
    "INPUT-RESULT-RESTART":  ["TestProcessInput::test_input_result_restart"],
    "INPUT-TOO-LONG":        ["TestProcessInput::test_input_too_long"],
    "INPUT-DOT-REJECT":      ["TestProcessInput::test_input_dot_reject",
                              "TestProcessInput::test_input_dot_reject_after_close_paren"],
    "INPUT-DOT-ZERO":        ["TestProcessInput::test_input_dot_zero"],
    "INPUT-DOT-APPEND":      ["TestProcessInput::test_input_dot_append"],
    "INPUT-OP-REPLACE":      ["TestProcessInput::test_input_op_replace"],
    "INPUT-OP-NEGATE":       ["TestProcessInput::test_input_op_negate"],
    "INPUT-ZERO-REPLACE":    ["TestProcessInput::test_input_zero_replace"],
    "INPUT-IMPLICIT-MUL":    ["TestProcessInput::test_input_implicit_mul"],
    "INPUT-PAREN-OPERATOR":  ["TestProcessInput::test_input_paren_operator"],
    "INPUT-APPEND":          ["TestProcessInput::test_input_append"],
    "SIGN-NOOP":             ["TestToggleSign::test_sign_noop"],
    "SIGN-RESULT":           ["TestToggleSign::test_sign_result"],
    "SIGN-WHOLE-NUMBER":     ["TestToggleSign::test_sign_whole_number",
                              "TestToggleSign::test_sign_whole_number_negative"],
    "SIGN-TRAILING-WRAP":    ["TestToggleSign::test_sign_trailing_wrap"],
    "SIGN-TRAILING-UNWRAP":  ["TestToggleSign::test_sign_trailing_unwrap"],
    "SIGN-TRAILING-UNARY":   ["TestToggleSign::test_sign_trailing_unary"],
    "SIGN-NO-TERM":          ["TestToggleSign::test_sign_no_term"],
    "PCT-BLANK":             ["TestPercentage::test_pct_blank"],
    "PCT-ERROR":             ["TestPercentage::test_pct_error"],
    "PCT-OK":                ["TestPercentage::test_pct_ok"],
    "CALC-SKIP-EMPTY":       ["TestCalculator::test_calc_skip_empty"],
    "CALC-SKIP-REPEAT":      ["TestCalculator::test_calc_skip_repeat"],
    "CALC-ERROR":            ["TestCalculator::test_calc_error"],
    "CALC-OK":               ["TestCalculator::test_calc_ok"],
    "DEL-RESULT":            ["TestCalculator::test_del_result"],
    "DEL-CHAR":              ["TestCalculator::test_del_char"],
}


class TestCoverageMatrix:

    def test_every_branch_has_a_test(self):
        assert set(BRANCH_COVERAGE) == {b.id for b in BRANCHES}

    @pytest.mark.parametrize("branch_id", sorted(BRANCH_COVERAGE))
    def test_listed_tests_exist(self, branch_id):
        for ref in BRANCH_COVERAGE[branch_id]:
            class_name, test_name = ref.split("::")
            assert callable(getattr(globals()[class_name], test_name))
