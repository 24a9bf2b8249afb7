from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from economy.exceptions import InvalidArgumentError

CENT = Decimal("0.01")

# Largest value a DecimalField(max_digits=18, decimal_places=2) column holds.
MAX_AMOUNT = Decimal("9999999999999999.99")

PLATFORM_FEE_RATE = getattr(settings, "MARKETPLACE_FEE_RATE", Decimal("0.025"))


def parse_amount(value, field="amount"):
    """
    Coerce a request value to a Decimal.

    Raises InvalidArgumentError for values that are not finite numbers or
    whose magnitude exceeds MAX_AMOUNT.
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgumentError(f"{field} must be a number.")
    if not amount.is_finite():
        raise InvalidArgumentError(f"{field} must be a finite number.")
    if abs(amount) > MAX_AMOUNT:
        raise InvalidArgumentError(f"{field} is out of range.")
    return amount


def to_money(value):
    """Round to cents, half up. Used for comparisons and display values."""
    return parse_amount(value).quantize(CENT, rounding=ROUND_HALF_UP)


def truncate_money(value):
    """Truncate to cents. Every computed fee and payout goes through this."""
    return parse_amount(value).quantize(CENT, rounding=ROUND_DOWN)


def platform_fee(price):
    """floor(price * rate * 100) / 100 for a non-negative price."""
    return truncate_money(parse_amount(price) * PLATFORM_FEE_RATE)


def split_sale(price):
    """Return (price, fee, seller_receives) with fee + seller_receives == price."""
    price = to_money(price)
    fee = platform_fee(price)
    return price, fee, price - fee


def money_exceeds(amount, balance):
    """True when amount is larger than balance once both are rounded to cents."""
    return to_money(amount) > to_money(balance)
