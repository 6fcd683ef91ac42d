"""Fixed-width rendering of results and expression previews."""
from __future__ import annotations

import logging
import math
import re
from decimal import Decimal

logger = logging.getLogger(__name__)

_NUMERIC_TEXT = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*$")
_EXPONENT = re.compile(r"e([+-]?)0*(\d+)$")
_ELLIPSIS = "..."


def _normalize_exponent(text: str) -> str:
    """'1.5e-07' -> '1.5e-7', '1e21' -> '1e+21'."""
    return _EXPONENT.sub(lambda m: f"e{m.group(1) or '+'}{m.group(2)}", text)


def number_to_text(value: float) -> str:
    """Shortest round-trip text for a float, as a calculator shows it.

    Integral values print without a fraction, positional notation is used
    for magnitudes in [1e-6, 1e21) and scientific notation outside it.
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    magnitude = abs(value)
    if 1e-6 <= magnitude < 1e21:
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return _normalize_exponent(repr(value))


def _to_number(value: float | str) -> float:
    if isinstance(value, str):
        if not _NUMERIC_TEXT.match(value):
            return math.nan
        return float(value)
    return float(value)


def _to_exponential(value: float, fraction_digits: int) -> str:
    return _normalize_exponent(f"{value:.{fraction_digits}e}")


def format_display_value(value: float | str, max_length: int) -> str:
    """Fit a value into ``max_length`` characters.

    Long finite values that are not vanishingly small switch to
    scientific notation; everything else is cut at ``max_length``.
    """
    text = value if isinstance(value, str) else number_to_text(value)
    if len(text) <= max_length:
        return text

    num = _to_number(value)
    if math.isfinite(num) and abs(num) > 10 ** -(max_length - 7):
        digits = max_length - 7
        if digits < 0:
            return text[:max_length]
        exp_text = _to_exponential(num, digits)
        if len(exp_text) > max_length:
            digits = max_length - (len(exp_text) - max_length) - 7
        # Rounding can carry into one more exponent digit.
        while len(exp_text) > max_length and digits >= 0:
            exp_text = _to_exponential(num, digits)
            digits -= 1
        if len(exp_text) > max_length:
            logger.debug("No room for %r in %d characters", text, max_length)
            return text[:max_length]
        return exp_text
    return text[:max_length]


def format_expression_preview(expr: str, max_length: int) -> str:
    """Keep the tail of a long expression, marked with a leading '...'."""
    if len(expr) <= max_length:
        return expr
    if max_length <= len(_ELLIPSIS):
        return _ELLIPSIS[:max(max_length, 0)]
    return _ELLIPSIS + expr[len(expr) - max_length + len(_ELLIPSIS):]
