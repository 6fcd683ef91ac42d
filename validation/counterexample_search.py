"""Counterexample search: discovers gaps in the implementation or tests.

This module runs independently of the test suite.  It generates random
inputs and searches for:

1. Evaluation mismatches: well-formed expressions where the evaluator
   disagrees with exact rational arithmetic (or misses a division by
   zero).
2. Width violations: display or preview strings longer than allowed.
3. Sign-toggle violations: toggling a trailing term twice does not give
   back the original expression.
4. State contract violations: random key sequences that leave a
   calculator in a state breaking a contract rule.

Run directly::

    python -m validation.counterexample_search
"""
from __future__ import annotations

import math
import random
import sys
from dataclasses import dataclass, field
from fractions import Fraction

sys.path.insert(0, ".")

from calculator import Calculator
from contract import KEYS, ErrorKind, validate_state
from evaluator import EvaluationError, evaluate
from formatting import format_display_value, format_expression_preview
from processor import process_toggle_sign


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class Counterexample:
    category: str
    inputs: str
    expected: str
    actual: str
    description: str


@dataclass
class SearchReport:
    counterexamples: list[Counterexample] = field(default_factory=list)
    checks_run: int = 0

    @property
    def passed(self) -> bool:
        return len(self.counterexamples) == 0

    def summary(self) -> str:
        lines = [
            "Counterexample Search Report",
            "=" * 40,
            f"Total checks: {self.checks_run}",
            f"Counterexamples found: {len(self.counterexamples)}",
        ]
        if self.counterexamples:
            lines.append("")
            for i, cx in enumerate(self.counterexamples, 1):
                lines.append(f"  [{i}] {cx.category}")
                lines.append(f"      Inputs:   {cx.inputs}")
                lines.append(f"      Expected: {cx.expected}")
                lines.append(f"      Actual:   {cx.actual}")
                lines.append(f"      {cx.description}")
        else:
            lines.append("\nNo counterexamples found; all checks passed.")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Random expressions with an exact reference value
# ---------------------------------------------------------------------------

def _reduce(values: list[Fraction], ops: list[str]) -> Fraction:
    """Precedence-respecting left-to-right reduction.  Raises ZeroDivisionError."""
    terms = [values[0]]
    pending: list[str] = []
    for op, v in zip(ops, values[1:]):
        if op == "*":
            terms[-1] = terms[-1] * v
        elif op == "/":
            terms[-1] = terms[-1] / v
        else:
            pending.append(op)
            terms.append(v)
    total = terms[0]
    for op, v in zip(pending, terms[1:]):
        total = total + v if op == "+" else total - v
    return total


def random_expression(rng: random.Random, depth: int = 2) -> tuple[str, Fraction | None]:
    """Return expression text and its exact value (None on division by zero)."""
    count = rng.randint(1, 4)
    parts: list[str] = []
    values: list[Fraction] = []
    zero_division = False

    for _ in range(count):
        kind = rng.random()
        if depth > 0 and kind < 0.2:
            text, value = random_expression(rng, depth - 1)
            text = f"({text})"
            if value is None:
                zero_division = True
                value = Fraction(0)
        elif kind < 0.4:
            n = rng.randint(0, 99)
            text, value = f"(-{n})", Fraction(-n)
        elif kind < 0.55:
            whole, frac = rng.randint(0, 99), rng.choice((0, 25, 50, 75))
            text, value = f"{whole}.{frac:02d}", Fraction(whole * 100 + frac, 100)
        else:
            n = rng.randint(0, 999)
            text, value = str(n), Fraction(n)
        parts.append(text)
        values.append(value)

    ops = [rng.choice("+-*/") for _ in range(count - 1)]
    text = parts[0] + "".join(op + part for op, part in zip(ops, parts[1:]))
    if zero_division:
        return text, None
    try:
        return text, _reduce(values, ops)
    except ZeroDivisionError:
        return text, None


# ---------------------------------------------------------------------------
# Search functions
# ---------------------------------------------------------------------------

def search_evaluation_mismatches(
    rng: random.Random, count: int
) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    for _ in range(count):
        text, expected = random_expression(rng)
        actual = evaluate(text)
        if expected is None:
            if actual != EvaluationError(ErrorKind.CALCULATION):
                cxs.append(Counterexample(
                    category="missing_error",
                    inputs=text,
                    expected=ErrorKind.CALCULATION.message,
                    actual=str(actual),
                    description="Division by zero not reported",
                ))
            continue
        if isinstance(actual, EvaluationError) or not math.isclose(
            actual, float(expected), rel_tol=1e-9, abs_tol=1e-9
        ):
            cxs.append(Counterexample(
                category="evaluation_mismatch",
                inputs=text,
                expected=str(float(expected)),
                actual=str(actual),
                description="Evaluator disagrees with exact arithmetic",
            ))
    return cxs, count


def search_width_violations(
    rng: random.Random, count: int
) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    for _ in range(count):
        width = rng.randint(8, 24)
        value = rng.choice([
            rng.uniform(-1e6, 1e6),
            rng.uniform(-1, 1) * 10 ** rng.randint(-300, 300),
            float(rng.randint(-10**18, 10**18)),
        ])
        shown = format_display_value(value, width)
        if len(shown) > width:
            cxs.append(Counterexample(
                category="display_width",
                inputs=f"{value!r}, {width}",
                expected=f"len <= {width}",
                actual=shown,
                description="Display value overflows its width",
            ))
        text, _ = random_expression(rng)
        preview = format_expression_preview(text, width)
        if len(preview) > width:
            cxs.append(Counterexample(
                category="preview_width",
                inputs=f"{text!r}, {width}",
                expected=f"len <= {width}",
                actual=preview,
                description="Expression preview overflows its width",
            ))
    return cxs, count * 2


def search_toggle_violations(
    rng: random.Random, count: int
) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    for _ in range(count):
        prefix, _ = random_expression(rng, depth=1)
        term = str(rng.randint(1, 999))
        expr = f"{prefix}{rng.choice('+-*/')}{term}"
        once = process_toggle_sign(expr, expr, False)
        twice = process_toggle_sign(once.internal_expression, once.display_value, False)
        if twice.internal_expression != expr:
            cxs.append(Counterexample(
                category="toggle_round_trip",
                inputs=expr,
                expected=expr,
                actual=twice.internal_expression,
                description="Double sign toggle is not the identity",
            ))
    return cxs, count


def search_state_violations(
    rng: random.Random, count: int
) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    for _ in range(count):
        calc = Calculator()
        keys = [rng.choice(KEYS) for _ in range(rng.randint(1, 30))]
        for key in keys:
            calc.press(key)
            report = validate_state(calc.state)
            if not report.passed:
                cxs.append(Counterexample(
                    category="state_contract",
                    inputs=" ".join(keys),
                    expected="all rules pass",
                    actual=report.summary(),
                    description=f"State broke the contract after {key!r}",
                ))
                break
    return cxs, count


# ---------------------------------------------------------------------------
# Top-level runner
# ---------------------------------------------------------------------------

def run_search(seed: int = 0, count: int = 1000) -> SearchReport:
    """Run every search with ``count`` random cases each."""
    rng = random.Random(seed)
    report = SearchReport()
    for search_fn in (
        search_evaluation_mismatches,
        search_width_violations,
        search_toggle_violations,
        search_state_violations,
    ):
        cxs, checks = search_fn(rng, count)
        report.counterexamples.extend(cxs)
        report.checks_run += checks
    return report


def main() -> None:
    report = run_search()
    print(report.summary())
    if not report.passed:
        sys.exit(1)


if __name__ == "__main__":
    main()
