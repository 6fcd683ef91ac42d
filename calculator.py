"""Keypad calculator state machine.

A Calculator owns one CalculatorState and moves it through Editing,
ResultShown and ErrorShown in response to keypad actions.  Transforms
live in ``processor``; this module merges their updates and enforces
the top-level rules (error clearing, the re-evaluation guard, delete
and reset semantics).

Branches: CALC-SKIP-EMPTY, CALC-SKIP-REPEAT, CALC-ERROR, CALC-OK,
          DEL-RESULT, DEL-CHAR
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial

from contract import (
    DEFAULT_DISPLAY,
    ERROR_DISPLAY,
    INPUT_TOKENS,
    MAX_DISPLAY_LENGTH,
    MAX_EXPRESSION_PREVIEW_LENGTH,
    Command,
)
from evaluator import EvaluationError, evaluate
from formatting import format_display_value, format_expression_preview
from models import CalculatorState, CalculatorView
from processor import (
    ExpressionUpdate,
    process_apply_percentage,
    process_input,
    process_toggle_sign,
)

logger = logging.getLogger(__name__)


@dataclass
class Calculator:
    max_display_length: int = MAX_DISPLAY_LENGTH
    max_preview_length: int = MAX_EXPRESSION_PREVIEW_LENGTH
    state: CalculatorState = field(default_factory=CalculatorState)

    # -- observable outputs -------------------------------------------------

    @property
    def display_value(self) -> str:
        return self.state.display_value

    @property
    def expression(self) -> str:
        return self.state.expression_preview

    @property
    def error(self) -> str | None:
        return self.state.error

    def view(self) -> CalculatorView:
        return CalculatorView(
            display_value=self.display_value,
            expression=self.expression,
            error=self.error,
        )

    # -- internal helpers ---------------------------------------------------

    def _format_display(self, value: float | str) -> str:
        return format_display_value(value, self.max_display_length)

    def _format_preview(self, expr: str) -> str:
        return format_expression_preview(expr, self.max_preview_length)

    def _set(self, **changes: object) -> None:
        self.state = self.state.model_copy(update=changes)

    def _apply_update(self, update: ExpressionUpdate) -> None:
        changes: dict[str, object] = {
            "internal_expression": update.internal_expression,
            "display_value": update.display_value,
            "error": update.error,
        }
        if update.expression_preview is not None:
            changes["expression_preview"] = update.expression_preview
        if update.is_result_displayed is not None:
            changes["is_result_displayed"] = update.is_result_displayed
        self._set(**changes)

    # -- operations ---------------------------------------------------------

    def handle_input(self, value: str) -> None:
        """Feed one input token (digit, '.', operator or parenthesis)."""
        expr = self.state.internal_expression
        display = self.state.display_value
        if self.state.error is not None:
            # New input resumes editing the preserved expression.
            display = expr or DEFAULT_DISPLAY
        update = process_input(expr, display, self.state.is_result_displayed, value)
        self._set(error=None, just_evaluated=False)
        if update.is_result_displayed is False:
            self._set(expression_preview="")
        self._apply_update(update)
        logger.debug("input %r -> %r", value, self.state.internal_expression)

    def calculate(self) -> None:
        expr = self.state.internal_expression
        if not expr.strip():                                      # CALC-SKIP-EMPTY
            return
        if self.state.just_evaluated and expr == self.state.display_value:
            return                                                # CALC-SKIP-REPEAT

        self._set(error=None, expression_preview=self._format_preview(expr + "="))
        result = evaluate(expr)

        if isinstance(result, EvaluationError):                   # CALC-ERROR
            logger.debug("calculate %r failed: %s", expr, result.message)
            self._set(
                error=result.message,
                display_value=ERROR_DISPLAY,
                is_result_displayed=False,
                just_evaluated=False,
            )
            return

        shown = self._format_display(result)                      # CALC-OK
        logger.debug("calculate %r = %s", expr, shown)
        self._set(
            display_value=shown,
            internal_expression=shown,
            is_result_displayed=True,
            just_evaluated=True,
        )

    def clear_all(self) -> None:
        self.state = CalculatorState()

    def delete_last(self) -> None:
        if self.state.is_result_displayed:                        # DEL-RESULT
            self.clear_all()
            return

        remaining = self.state.internal_expression[:-1]           # DEL-CHAR
        self._set(
            error=None,
            just_evaluated=False,
            internal_expression=remaining,
            display_value=remaining or DEFAULT_DISPLAY,
            expression_preview="",
            is_result_displayed=False,
        )

    def toggle_sign(self) -> None:
        if self.state.error is not None:
            return
        update = process_toggle_sign(
            self.state.internal_expression,
            self.state.display_value,
            self.state.is_result_displayed,
        )
        self._set(just_evaluated=False)
        self._apply_update(update)
        if update.is_result_displayed is False:
            self._set(expression_preview="")

    def apply_percentage(self) -> None:
        if (
            self.state.display_value == ERROR_DISPLAY
            or not self.state.internal_expression.strip()
        ):
            return
        update = process_apply_percentage(
            self.state.internal_expression,
            self._format_display,
            self._format_preview,
        )
        self._set(just_evaluated=False)
        self._apply_update(update)
        if update.is_result_displayed:
            self._set(just_evaluated=True)

    # -- keypad dispatch ----------------------------------------------------

    def press(self, key: str) -> CalculatorView:
        """Dispatch one keypad key and return the resulting view."""
        if key in INPUT_TOKENS:
            action = partial(self.handle_input, key)
        else:
            try:
                command = Command(key)
            except ValueError:
                raise ValueError(f"Unknown key: {key!r}") from None
            action = {
                Command.CLEAR: self.clear_all,
                Command.DELETE: self.delete_last,
                Command.BACKSPACE: self.delete_last,
                Command.TOGGLE_SIGN: self.toggle_sign,
                Command.PERCENT: self.apply_percentage,
                Command.EQUALS: self.calculate,
            }[command]
        action()
        return self.view()
