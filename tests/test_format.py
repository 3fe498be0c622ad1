from datetime import date, datetime

from src.utils.format import format_currency, format_date, format_percentage


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-99) == "-$99.00"
    assert format_currency(264500, decimals=0) == "$264,500"
    assert format_currency(10, "eur") == "€10.00"
    assert format_currency(10, "CHF") == "10.00 CHF"


def test_format_percentage():
    assert format_percentage(12.5) == "12.5%"
    assert format_percentage(75) == "75.0%"
    assert format_percentage(33.333, decimals=2) == "33.33%"


def test_format_date():
    assert format_date(date(2025, 1, 5)) == "Jan 5, 2025"
    assert format_date(datetime(2024, 12, 31, 9, 30)) == "Dec 31, 2024"
    assert format_date(None) == "-"
