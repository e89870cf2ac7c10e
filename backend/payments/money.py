"""
Monetary precision helpers.

Every stored amount is a Decimal rounded to the currency's minor unit. The
gateway only ever sees integers in minor units (paise, cents), converted
from an already-rounded Decimal so the stored order total and the captured
amount cannot disagree.

Rules:
1. Never use float for money
2. Round once, at the final per-field output
3. Use ROUND_HALF_EVEN so repeated rounding has no systematic bias
"""

from decimal import Decimal, ROUND_HALF_EVEN
from typing import Optional, Union

from core_backend.config import engine_settings

Amount = Union[Decimal, str, int]

# Currency minor unit exponents (how many decimal places)
CURRENCY_EXPONENT = {
    "INR": 2,  # Indian Rupee (paise)
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "JPY": 0,  # no subunit
    "KWD": 3,  # fils
}

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


def currency_exponent(currency: str) -> int:
    """
    Number of decimal places for a currency.

        >>> currency_exponent("INR")
        2
        >>> currency_exponent("JPY")
        0
    """
    return CURRENCY_EXPONENT.get(currency.upper(), 2)


def quantize(currency: str, amount: Amount) -> Decimal:
    """
    Round to currency decimals using banker's rounding.

        >>> quantize("INR", "10.125")
        Decimal('10.12')
        >>> quantize("INR", "10.135")
        Decimal('10.14')
    """
    if isinstance(amount, float):
        raise TypeError("Monetary amounts must not be floats")
    step = Decimal(10) ** -currency_exponent(currency)
    return Decimal(amount).quantize(step, rounding=ROUND_HALF_EVEN)


def money(amount: Amount, currency: Optional[str] = None) -> Decimal:
    """Quantize in the configured engine currency."""
    return quantize(currency or engine_settings.CURRENCY, amount)


def to_minor(currency: str, amount: Amount) -> int:
    """
    Convert to minor units after quantization.

        >>> to_minor("INR", "482.00")
        48200
    """
    quantized = quantize(currency, amount)
    return int((quantized * (10 ** currency_exponent(currency))).to_integral_value())


def from_minor(currency: str, minor: int) -> Decimal:
    """
    Convert gateway minor units back to a Decimal amount.

        >>> from_minor("INR", 48200)
        Decimal('482.00')
    """
    exponent = currency_exponent(currency)
    return quantize(currency, Decimal(minor) / (10 ** exponent))


def format_money(currency: str, amount: Amount) -> str:
    """Human readable amount for notifications, e.g. '₹482.00'."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), currency.upper() + " ")
    exponent = currency_exponent(currency)
    return f"{symbol}{quantize(currency, amount):,.{exponent}f}"
