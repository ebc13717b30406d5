"""
Input Parsing Module

Turns the raw text typed by callers into dates and Decimal values. Every
parser raises ValueError on malformed input; the ledger components translate
that into a recoverable Result. NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from datetime import date, datetime
from typing import Tuple
import re

# Set global decimal context for financial precision
getcontext().prec = 28

CENT = Decimal('0.01')
ZERO = Decimal('0')
HUNDRED = Decimal('100')

DATE_FORMAT = "%Y%m%d"

_DATE_PATTERN = re.compile(r"\d{8}", re.ASCII)
_YEAR_MONTH_PATTERN = re.compile(r"\d{6}", re.ASCII)
_DECIMAL_PATTERN = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)", re.ASCII)


def round_money(value: Decimal) -> Decimal:
    """
    Round to 2 decimal places, half away from zero

    Raises:
        ValueError: If the rounded value needs more digits than the context
            precision (28), i.e. 26 or more integer digits
    """
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Amount exceeds {getcontext().prec} digits of precision: {value}")


def decimal_from_string(value: str) -> Decimal:
    """
    Convert plain decimal text ("100", "100.5", ".50", "+1.00") to Decimal

    Raises:
        ValueError: If the text is not a plain decimal number
    """
    if not value or not isinstance(value, str):
        raise ValueError("Value must be a non-empty string")

    clean_value = value.strip()
    if not _DECIMAL_PATTERN.fullmatch(clean_value):
        raise ValueError(f"Cannot convert '{value}' to Decimal")

    try:
        return Decimal(clean_value)
    except InvalidOperation:
        raise ValueError(f"Cannot convert '{value}' to Decimal")


def parse_date(value: str) -> date:
    """
    Parse an exact 8-digit yyyyMMdd date

    Raises:
        ValueError: If the text is not 8 digits or not a real calendar date
    """
    if not isinstance(value, str) or not _DATE_PATTERN.fullmatch(value):
        raise ValueError(f"Date must be in yyyyMMdd format: {value!r}")
    return datetime.strptime(value, DATE_FORMAT).date()


def parse_year_month(value: str) -> Tuple[int, int]:
    """
    Parse an exact 6-digit yyyyMM period into (year, month)

    Raises:
        ValueError: If malformed, the month is outside 1-12 or the year is 0
    """
    if not isinstance(value, str) or not _YEAR_MONTH_PATTERN.fullmatch(value):
        raise ValueError(f"Month must be in yyyyMM format: {value!r}")

    year, month = int(value[:4]), int(value[4:])
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range: {month}")
    if year < 1:
        raise ValueError(f"Year out of range: {year}")
    return year, month


def parse_amount(value: str) -> Decimal:
    """
    Parse a transaction amount: strictly positive with at most 2 decimals.
    Trailing zeros past the second decimal are accepted ("10.000").

    Raises:
        ValueError: If the amount is malformed, not positive or too precise
    """
    amount = decimal_from_string(value)
    if amount <= ZERO:
        raise ValueError("Amount must be greater than zero")
    if round_money(amount) != amount:
        raise ValueError("Amount must have at most 2 decimal places")
    return amount


def parse_rate(value: str) -> Decimal:
    """
    Parse an interest rate percentage, 0 < rate < 100, rounded to 2 decimals.
    The bounds hold before and after rounding, so "0.001" and "99.999" fail.

    Raises:
        ValueError: If the rate is malformed or out of bounds
    """
    rate = decimal_from_string(value)
    rounded = round_money(rate)
    for candidate in (rate, rounded):
        if candidate <= ZERO or candidate >= HUNDRED:
            raise ValueError("Rate must be greater than 0 and less than 100")
    return rounded


def format_date(value: date) -> str:
    """Render a date as yyyyMMdd"""
    # strftime does not zero-pad years below 1000 on every platform
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"
