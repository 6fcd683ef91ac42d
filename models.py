"""Calculator state and API models.

CalculatorState is the full state owned by a Calculator.  CalculatorView
is the public subset consumed by presentation collaborators, and
KeyPress is the payload for pressing one keypad key over HTTP.
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field, field_validator

from contract import DEFAULT_DISPLAY, KEYS


def _new_id() -> str:
    return uuid.uuid4().hex


class CalculatorState(BaseModel):
    """Everything a calculator session remembers between key presses."""

    internal_expression: str = ""
    display_value: str = DEFAULT_DISPLAY
    expression_preview: str = ""
    is_result_displayed: bool = False
    just_evaluated: bool = False
    error: str | None = None


class CalculatorView(BaseModel):
    """Observable outputs of a calculator."""

    display_value: str
    expression: str = Field(
        default="",
        description="Preview line shown above the display, e.g. '10+5='",
    )
    error: str | None = None


class SessionView(CalculatorView):
    id: str


class KeyPress(BaseModel):
    """A single keypad key: an input token or a command."""

    key: str = Field(..., min_length=1, max_length=9, description="e.g. '7', '+', '=', 'C'")

    @field_validator("key")
    @classmethod
    def key_is_known(cls, v: str) -> str:
        normalized = v.upper() if v.isalpha() else v
        if normalized not in KEYS:
            raise ValueError(f"Unknown key {v!r}; expected one of {', '.join(KEYS)}")
        return normalized
