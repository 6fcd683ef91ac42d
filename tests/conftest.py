"""Shared fixtures for calculator tests."""
from __future__ import annotations

from functools import partial

import pytest

from calculator import Calculator
from contract import MAX_DISPLAY_LENGTH, MAX_EXPRESSION_PREVIEW_LENGTH
from formatting import format_display_value, format_expression_preview
from store import SessionStore


@pytest.fixture
def calc() -> Calculator:
    return Calculator()


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def format_display():
    return partial(format_display_value, max_length=MAX_DISPLAY_LENGTH)


@pytest.fixture
def format_preview():
    return partial(format_expression_preview, max_length=MAX_EXPRESSION_PREVIEW_LENGTH)

