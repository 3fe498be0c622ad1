from __future__ import annotations

from datetime import date
from typing import Optional

_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "INR": "₹"}


def format_currency(amount: float, currency: str = "USD", decimals: int = 2) -> str:
    sym = _SYMBOLS.get(currency.upper())
    body = f"{abs(amount):,.{decimals}f}"
    sign = "-" if amount < 0 else ""
    if sym:
        return f"{sign}{sym}{body}"
    return f"{sign}{body} {currency.upper()}"


def format_percentage(value: float, decimals: int = 1) -> str:
    """`value` is already in percent (12.5 -> '12.5%')."""
    return f"{value:.{decimals}f}%"


def format_date(d: Optional[date]) -> str:
    if d is None:
        return "-"
    return f"{d.strftime('%b')} {d.day}, {d.year}"
