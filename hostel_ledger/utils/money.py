"""
Money arithmetic on Decimals rounded to cents.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
EPSILON = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Coerce int/float/str/Decimal to a cent-quantized Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Not a monetary amount: {value!r}") from e
    if not value.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def non_negative(value: Decimal) -> Decimal:
    return value if value > ZERO else ZERO


def differs(a: Optional[Decimal], b: Optional[Decimal], epsilon: Decimal = EPSILON) -> bool:
    """True when two amounts differ by more than the ledger tolerance."""
    return abs(to_money(a) - to_money(b)) > epsilon
