"""
Readers for fund price (NAV) history files.

Price histories are loaded by the caller and handed to the engine; the
engine itself performs no I/O. Two formats are understood:

- Excel workbooks (.xlsx): the first row holding a "date" header and a
  "nav" / "price" header starts the table on the active sheet
- JSON: a list of objects with "date" and "price" (or "nav")
"""

import json
import logging
import os
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from openpyxl import load_workbook

from ..interfaces import PriceHistory
from ..models import InvalidInputError, PricePoint
from ..utils import parse_date

logger = logging.getLogger(__name__)

# Formats seen in fund house and AMFI NAV downloads
DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%d-%b-%Y", "%d %b %Y")

PRICE_HEADERS = ("nav", "price", "net asset value", "close")


def parse_price_date(value: Any) -> date:
    """
    Parse a cell or JSON date value.

    Raises:
        ValueError: If no known format matches
    """
    if isinstance(value, (date, datetime)):
        return parse_date(value)
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return parse_date(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {value}")


def _positive_price(value: Any) -> float:
    price = float(value)
    if price <= 0:
        raise ValueError(f"price must be > 0, got {value}")
    return price


def _sorted_points(points: List[PricePoint]) -> PriceHistory:
    return tuple(sorted(points, key=lambda p: p.on))


class ExcelPriceHistoryParser:
    """
    Parser for NAV history workbooks.

    Scans the active sheet for a header row with a date column and a
    price column (NAV, Price, Net Asset Value or Close), then reads every
    following row that has both values.
    """

    def parse(self, filepath: str) -> PriceHistory:
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Price history file not found: {filepath}")

        wb = load_workbook(filepath, read_only=True, data_only=True)
        try:
            ws = wb.active
            date_col: Optional[int] = None
            price_col: Optional[int] = None
            points: List[PricePoint] = []

            for row_num, row in enumerate(ws.iter_rows(values_only=True), 1):
                if date_col is None:
                    date_col, price_col = self._find_header(row)
                    continue
                raw_date = row[date_col] if date_col < len(row) else None
                raw_price = row[price_col] if price_col < len(row) else None
                if raw_date is None or raw_price is None:
                    continue
                try:
                    points.append(PricePoint(
                        on=parse_price_date(raw_date), price=_positive_price(raw_price)
                    ))
                except (TypeError, ValueError) as e:
                    raise InvalidInputError(
                        f"Invalid price row {row_num} in {os.path.basename(filepath)}: {e}"
                    ) from e
        finally:
            wb.close()

        if date_col is None:
            raise InvalidInputError(
                f"No date / NAV header row found in {os.path.basename(filepath)}"
            )

        logger.info("Loaded %d prices from %s", len(points), os.path.basename(filepath))
        return _sorted_points(points)

    @staticmethod
    def _find_header(row: Tuple[Any, ...]) -> Tuple[Optional[int], Optional[int]]:
        date_col = price_col = None
        for index, cell in enumerate(row):
            if cell is None:
                continue
            label = str(cell).strip().lower()
            if date_col is None and "date" in label:
                date_col = index
            elif price_col is None and label in PRICE_HEADERS:
                price_col = index
        if date_col is None or price_col is None:
            return None, None
        return date_col, price_col


class JSONPriceHistoryParser:
    """
    Parser for JSON price histories: ``[{"date": "2024-01-01", "nav": 101.5}, ...]``.
    """

    def parse(self, filepath: str) -> PriceHistory:
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Price history file not found: {filepath}")

        with open(filepath, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidInputError(f"Price history is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise InvalidInputError("Price history must be a JSON list")

        points = []
        for index, item in enumerate(data):
            try:
                price = item["price"] if "price" in item else item["nav"]
                points.append(PricePoint(
                    on=parse_price_date(item["date"]), price=_positive_price(price)
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidInputError(f"Invalid price entry {index}: {e}") from e

        logger.info("Loaded %d prices from %s", len(points), os.path.basename(filepath))
        return _sorted_points(points)


def load_price_history(filepath: str) -> PriceHistory:
    """
    Load a price history, choosing the reader by file extension.

    Args:
        filepath: Path to a .xlsx / .xlsm workbook or a .json file

    Returns:
        Price points sorted by date
    """
    ext = os.path.splitext(filepath)[1].lower()
    if ext in (".xlsx", ".xlsm"):
        return ExcelPriceHistoryParser().parse(filepath)
    if ext == ".json":
        return JSONPriceHistoryParser().parse(filepath)
    raise InvalidInputError(f"Unsupported price history format: {ext or filepath}")
