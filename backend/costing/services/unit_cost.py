"""
Unit conversion and cost primitive.

Turns a purchase-unit price into a loss-adjusted cost per usage unit, and
moves quantities between usage and purchase units.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

from core_backend.exceptions import InvalidArgument

logger = logging.getLogger(__name__)

# Precision of persisted quantities and money (matches the model DecimalFields)
QUANTITY_PLACES = Decimal("0.0001")
MONEY_PLACES = Decimal("0.01")

DEFAULT_LOSS_RATE_FLOOR_DIVISOR = Decimal("0.001")


def _to_decimal(value, field):
    if value is None:
        return Decimal("0")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except (ArithmeticError, ValueError, TypeError):
            raise InvalidArgument(f"{field} must be a number, got {value!r}")
    if not value.is_finite():
        raise InvalidArgument(f"{field} must be a finite number, got {value}")
    return value


def _validate_conversion_factor(conversion_factor):
    factor = _to_decimal(conversion_factor, "conversion_factor")
    if factor <= 0:
        raise InvalidArgument(f"conversion_factor must be greater than zero, got {factor}")
    return factor


def cost_per_usage_unit(purchase_price, conversion_factor, loss_rate=Decimal("0")) -> Decimal:
    """
    Cost of one usage unit after spoilage/trim loss.

        (purchase_price / conversion_factor) / (1 - loss_rate)

    A loss_rate of 1 or more means nothing usable is left, which has no real
    unit economics. It is treated as degenerate input: the divisor is replaced
    by COSTING_LOSS_RATE_FLOOR_DIVISOR (0.001 by default) so the result stays
    finite and positive instead of dividing by zero or going negative.

    Raises:
        InvalidArgument: a non-finite input, conversion_factor <= 0 or loss_rate < 0.
    """
    price = _to_decimal(purchase_price, "purchase_price")
    factor = _validate_conversion_factor(conversion_factor)
    rate = _to_decimal(loss_rate, "loss_rate")

    if rate < 0:
        raise InvalidArgument(f"loss_rate cannot be negative, got {rate}")

    if rate >= 1:
        divisor = Decimal(str(getattr(
            settings, 'COSTING_LOSS_RATE_FLOOR_DIVISOR', DEFAULT_LOSS_RATE_FLOOR_DIVISOR
        )))
        logger.warning(f"loss_rate {rate} >= 1, using floor divisor {divisor}")
    else:
        divisor = Decimal("1") - rate

    return (price / factor) / divisor


def usage_to_purchase_units(quantity, conversion_factor) -> Decimal:
    """500 g with a factor of 1000 -> 0.5 kg."""
    return _to_decimal(quantity, "quantity") / _validate_conversion_factor(conversion_factor)


def purchase_to_usage_units(quantity, conversion_factor) -> Decimal:
    """0.5 kg with a factor of 1000 -> 500 g."""
    return _to_decimal(quantity, "quantity") * _validate_conversion_factor(conversion_factor)


def quantize_quantity(value) -> Decimal:
    return _to_decimal(value, "quantity").quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def quantize_money(value) -> Decimal:
    return _to_decimal(value, "amount").quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)
