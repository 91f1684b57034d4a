import re
import secrets
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CURRENCY_RE = re.compile(r"^[A-Z]{3}$")

# minor units per currency; anything unlisted uses two decimals
MINOR_UNITS = {
    "USD": 2, "EUR": 2, "GBP": 2, "CAD": 2, "AUD": 2, "SGD": 2,
    "JPY": 0, "VND": 0, "KRW": 0,
    "BTC": 8, "ETH": 8,
}
DEFAULT_MINOR_UNITS = 2

# Numeric(20, 8) money columns leave 12 digits before the point
MAX_INTEGER_DIGITS = 12


def minor_units(currency: str) -> int:
    return MINOR_UNITS.get(currency.upper(), DEFAULT_MINOR_UNITS)


def quantize(amount: Decimal, currency: str) -> Decimal:
    """
    Return `amount` expressed at the precision of `currency`.
    Raises ValueError when the amount carries more decimals than the currency allows.
    """
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"not a decimal amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"not a finite amount: {amount!r}")
    exp = Decimal(1).scaleb(-minor_units(currency))
    try:
        q = value.quantize(exp)
    except InvalidOperation as e:
        raise ValueError(f"amount out of range: {amount!r}") from e
    if q != value:
        raise ValueError(f"{currency} amounts allow at most {minor_units(currency)} decimal places")
    return q


def generate_account_number() -> str:
    return f"ACC{secrets.randbelow(10**10):010d}"


def generate_reference() -> str:
    # 128 random bits; uniqueness is also enforced by the column constraint
    return f"TXN{secrets.token_hex(16).upper()}"


def generate_card_number() -> str:
    return f"****-****-****-{1000 + secrets.randbelow(9000)}"


def generate_cvv() -> str:
    return f"{100 + secrets.randbelow(900)}"


def round_to_currency(amount: Decimal, currency: str) -> Decimal:
    """Round half-up to the minor units of `currency`."""
    return Decimal(amount).quantize(Decimal(1).scaleb(-minor_units(currency)), rounding=ROUND_HALF_UP)


def exceeds_money_range(amount: Decimal) -> bool:
    return Decimal(amount).adjusted() >= MAX_INTEGER_DIGITS
