"""
Custom SQLAlchemy types for monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import Numeric, TypeDecorator

CENT = Decimal('0.01')


class MoneyType(TypeDecorator):
    """
    Money type with fixed precision.

    Stores monetary values with 2 decimal places and always hands back
    quantized Decimals, whatever the backend returns.
    """

    impl = Numeric(15, 2)
    cache_ok = True

    def process_bind_param(self, value: Optional[Decimal], dialect) -> Optional[Decimal]:
        """Validate and round monetary value."""
        if value is None:
            return value

        if not isinstance(value, Decimal):
            value = Decimal(str(value))

        return value.quantize(CENT, rounding=ROUND_HALF_UP)

    def process_result_value(self, value, dialect) -> Optional[Decimal]:
        """Return monetary value rounded to cents."""
        if value is None:
            return value
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
