from decimal import Decimal

from . import ShippingCalculator


def is_available(method) -> bool:
    return method.calculator != ShippingCalculator.ADVISORY


def compute(method, quantity: int) -> Decimal:
    """Price `quantity` items shipped with `method`."""
    if method.calculator == ShippingCalculator.ADVISORY or quantity <= 0:
        return Decimal("0.00")
    if method.calculator == ShippingCalculator.PER_ITEM:
        return method.calculator_amount * quantity
    return method.calculator_amount
