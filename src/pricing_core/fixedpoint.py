"""Fixed-point decimal arithmetic — 18 decimal places, truncation toward zero.

Every price, ratio and reserve goes through these helpers so that all nodes
produce bit-identical results. Floats are rejected outright.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Context, Decimal, localcontext

PRECISION = 18
QUANTUM = Decimal(1).scaleb(-PRECISION)
ZERO = Decimal("0")
ONE = Decimal("1")

# Enough significant digits for 18 fractional places on 10^40-scale reserves
CONTEXT = Context(prec=80, rounding=ROUND_DOWN)

DecimalLike = Decimal | str | int


def to_dec(value: DecimalLike) -> Decimal:
    """Convert *value* to an 18-dp Decimal, truncating extra digits."""
    if isinstance(value, float):
        raise TypeError("floats are not allowed in fixed-point arithmetic")
    if isinstance(value, bool):
        raise TypeError("booleans are not decimals")
    return quantize(Decimal(value))


def quantize(value: Decimal) -> Decimal:
    with localcontext(CONTEXT):
        return value.quantize(QUANTUM, rounding=ROUND_DOWN)


def mul(a: DecimalLike, b: DecimalLike) -> Decimal:
    with localcontext(CONTEXT):
        return quantize(Decimal(a) * Decimal(b))


def quo(a: DecimalLike, b: DecimalLike) -> Decimal:
    if Decimal(b) == 0:
        raise ZeroDivisionError("fixed-point division by zero")
    with localcontext(CONTEXT):
        return quantize(Decimal(a) / Decimal(b))


def add(a: DecimalLike, b: DecimalLike) -> Decimal:
    with localcontext(CONTEXT):
        return quantize(Decimal(a) + Decimal(b))


def sub(a: DecimalLike, b: DecimalLike) -> Decimal:
    with localcontext(CONTEXT):
        return quantize(Decimal(a) - Decimal(b))


def truncate_int(value: DecimalLike) -> int:
    """Drop the fractional part (toward zero)."""
    return int(Decimal(value))


def mul_truncate(a: DecimalLike, b: DecimalLike) -> int:
    return truncate_int(mul(a, b))


def quo_truncate(a: DecimalLike, b: DecimalLike) -> int:
    return truncate_int(quo(a, b))
