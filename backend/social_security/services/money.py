# backend/social_security/services/money.py
"""Decimal helpers shared by the calculator and the config layer."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
UNIT = Decimal("1")
RATE_STEP = Decimal("0.000001")

# Largest amount (salary, base, fixed add-on) the store columns and the
# default decimal context handle exactly.
MAX_AMOUNT = Decimal("9999999999.99")


def D(val: Any) -> Decimal:
    if isinstance(val, Decimal):
        return val
    if isinstance(val, bool):
        raise InvalidOperation(f"not a number: {val!r}")
    return Decimal(str(val))


def q2(val: Any) -> Decimal:
    return D(val).quantize(CENT, rounding=ROUND_HALF_UP)


def q0(val: Any) -> Decimal:
    return D(val).quantize(UNIT, rounding=ROUND_HALF_UP)


def clamp(val: Any, lower: Any, upper: Any) -> Decimal:
    return max(D(lower), min(D(val), D(upper)))


def pct(part: Any, whole: Any) -> Decimal:
    """``part`` as a percentage of ``whole`` (2 dp); 0 when ``whole`` is 0."""
    w = D(whole)
    if w == 0:
        return q2(0)
    return q2(D(part) / w * 100)
