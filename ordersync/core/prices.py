from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from prices import Money


def quantize_price(amount: Decimal) -> Decimal:
    return amount.quantize(
        Decimal(10) ** -settings.DEFAULT_DECIMAL_PLACES, rounding=ROUND_HALF_UP
    )


def to_decimal(value) -> Decimal | None:
    """Parse an inbound monetary value.

    Values may arrive as strings, integers or floats. Floats go through `str`
    first so binary representation noise never reaches the ledger.
    """
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return quantize_price(value)
    try:
        return quantize_price(Decimal(str(value).strip()))
    except InvalidOperation:
        raise ValueError(f"{value!r} is not a valid amount") from None


def zero_money(currency: str | None = None) -> Money:
    return Money(Decimal(0), currency or settings.DEFAULT_CURRENCY)
