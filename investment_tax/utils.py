"""
Utility functions for the investment tax engine.

This module contains helpers for date arithmetic, currency formatting,
advance-tax quarters and JSON serialization of result objects.
"""

import calendar
import dataclasses
from datetime import date, datetime
from enum import Enum
from typing import Any, Union


DAYS_PER_YEAR = 365.25


def parse_date(value: Union[str, date, datetime], date_format: str = "%Y-%m-%d") -> date:
    """
    Parse a date string (or pass a date through).

    Args:
        value: Date string (e.g., '2024-12-31'), date or datetime
        date_format: Expected format (default: ISO YYYY-MM-DD)

    Returns:
        date object

    Raises:
        ValueError: If value doesn't match the expected format

    Examples:
        >>> parse_date('2024-12-31')
        datetime.date(2024, 12, 31)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip(), date_format).date()


def add_months(start: date, months: int) -> date:
    """
    Shift a date by whole calendar months, clamping to month end.

    Examples:
        >>> add_months(date(2024, 1, 31), 1)
        datetime.date(2024, 2, 29)
        >>> add_months(date(2024, 5, 15), -6)
        datetime.date(2023, 11, 15)
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """
    Whole calendar months elapsed from start to end (0 if end < start).

    A month counts once the same day-of-month is reached; month-end
    acquisitions count on the last day of shorter months.
    """
    if end <= start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if add_months(start, months) > end:
        months -= 1
    return max(0, months)


def years_between(start: date, end: date) -> float:
    """Fractional years between two dates on a 365.25-day year."""
    return (end - start).days / DAYS_PER_YEAR


def format_currency_inr(amount: float, include_symbol: bool = True) -> str:
    """
    Format amount as Indian Rupees with lakh/crore grouping.

    Args:
        amount: Amount to format
        include_symbol: Whether to include ₹ symbol

    Returns:
        Formatted string (e.g., '₹1,23,456.78')

    Examples:
        >>> format_currency_inr(123456.78)
        '₹1,23,456.78'
        >>> format_currency_inr(-1500, include_symbol=False)
        '-1,500.00'
    """
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    formatted = f"{sign}{whole}.{fraction}"
    return f"₹{formatted}" if include_symbol else formatted


def get_advance_tax_quarter(sale_date: date) -> str:
    """
    Get the advance tax quarter for a sale date.

    Indian advance tax quarters for FY (Apr-Mar):
    - Q1: Upto 15 Jun (Apr 1 - Jun 15)
    - Q2: 16 Jun - 15 Sep
    - Q3: 16 Sep - 15 Dec
    - Q4: 16 Dec - 15 Mar
    - Q5: 16 Mar - 31 Mar

    Args:
        sale_date: Date of the transfer

    Returns:
        Quarter name string
    """
    month = sale_date.month
    day = sale_date.day

    if 4 <= month <= 6:
        if month < 6 or day <= 15:
            return "Upto 15 Jun"
        return "16 Jun-15 Sep"
    if 7 <= month <= 9:
        if month < 9 or day <= 15:
            return "16 Jun-15 Sep"
        return "16 Sep-15 Dec"
    if 10 <= month <= 12:
        if month < 12 or day <= 15:
            return "16 Sep-15 Dec"
        return "16 Dec-15 Mar"
    if month < 3 or day <= 15:
        return "16 Dec-15 Mar"
    return "16 Mar-31 Mar"


# Constants for advance tax quarters
ADVANCE_TAX_QUARTERS = [
    "Upto 15 Jun",
    "16 Jun-15 Sep",
    "16 Sep-15 Dec",
    "16 Dec-15 Mar",
    "16 Mar-31 Mar",
]


def to_jsonable(value: Any) -> Any:
    """
    Convert dataclasses, enums, dates and containers into JSON-ready values.

    Dates become ISO strings, enums their values, tuples lists.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(to_jsonable(k)): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value
