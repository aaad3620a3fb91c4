"""
Currency and precision handling for propfolio.

All ledger amounts are fixed-point EUR values with two decimal places. Sums are
exact ``Decimal`` additions; ratios (margin, ROI, shares) keep full precision
and are only rounded when a report is presented.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class RoundingPolicy(Enum):
    """Rounding policies for presentation rounding."""

    BANKERS = ROUND_HALF_EVEN
    HALF_UP = ROUND_HALF_UP


class Currency:
    """
    Currency definition with precision and rounding rules.

    Attributes:
        code: ISO currency code (e.g., 'EUR')
        decimals: Number of decimal places for this currency
        rounding: Rounding policy for presentation
    """

    def __init__(
        self,
        code: str,
        decimals: int = 2,
        rounding: RoundingPolicy = RoundingPolicy.HALF_UP,
    ):
        self.code = code.upper()
        self.decimals = decimals
        self.rounding = rounding

    def quantize(self, amount: Decimal) -> Decimal:
        """Quantize amount to currency precision."""
        quantum = Decimal("1").scaleb(-self.decimals)  # e.g., 0.01 for 2 dp
        return amount.quantize(quantum, rounding=self.rounding.value)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency('{self.code}', decimals={self.decimals})"


# The whole dataset is assumed to be in EUR; there is no conversion.
EUR = Currency("EUR", decimals=2)


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """
    Coerce a raw amount into an exact EUR ``Decimal``.

    Floats go through ``str()`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return EUR.quantize(result)


def percent(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part / whole * 100``, or 0 when ``whole`` is 0."""
    if whole == 0:
        return ZERO
    return part / whole * HUNDRED


def present(value: Decimal | None, currency: Currency = EUR) -> Decimal | None:
    """Presentation rounding; ``None`` (undefined) stays ``None``."""
    if value is None:
        return None
    return currency.quantize(value)
