"""
Minor-unit money helpers. Amounts are integer pence throughout.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from app.core.config import settings

Percent = Union[Decimal, int, str]


def percent_of(amount: int, percent: Percent) -> int:
    """percent% of amount in pence, rounded half-up to a whole penny"""
    raw = Decimal(amount) * Decimal(str(percent)) / Decimal(100)
    return int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_pence(pence: int) -> str:
    """Format pence for display, e.g. 1500 -> £15.00"""
    pounds = (Decimal(pence) / Decimal(100)).quantize(Decimal("0.01"))
    sign = "-" if pounds < 0 else ""
    return f"{sign}{settings.currency_symbol}{abs(pounds):,.2f}"


def format_percent(percent: Percent) -> str:
    """Format a percentage without trailing zeros, e.g. 12.50 -> 12.5%"""
    value = Decimal(str(percent)).normalize()
    # normalize() turns 100 into 1E+2
    if value == value.to_integral():
        value = value.quantize(Decimal("1"))
    return f"{value}%"
