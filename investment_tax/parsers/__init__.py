"""
Parsers for calculation requests and price-history files.
"""

from .inputs import AssetInputParser, SIPInputParser, load_request_file
from .price_history import ExcelPriceHistoryParser, JSONPriceHistoryParser, load_price_history

__all__ = [
    "AssetInputParser",
    "SIPInputParser",
    "load_request_file",
    "ExcelPriceHistoryParser",
    "JSONPriceHistoryParser",
    "load_price_history",
]
