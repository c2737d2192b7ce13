"""
Parsers for calculation requests.

Turns decoded JSON payloads (as handed over by a request layer or read
from a file by the CLI) into validated AssetInput / SIPInput records.
Every malformed field is reported as InvalidInputError naming the field.
"""

import json
import logging
import os
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from ..interfaces import BaseInputParser
from ..models import (
    AssetCategory,
    AssetInput,
    Cadence,
    CostOfImprovement,
    FundType,
    HoldingIntent,
    InvalidInputError,
    InvestmentMode,
    Jurisdiction,
    PricePoint,
    RedemptionType,
    SIPInput,
    TransactionFrequency,
)
from ..utils import parse_date

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def _enum(enum_cls: Type[E], data: Dict[str, Any], key: str, default: Optional[E] = None) -> E:
    raw = data.get(key)
    if raw is None:
        if default is None:
            raise InvalidInputError(f"Missing required field '{key}'")
        return default
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(f"Invalid {key} '{raw}' (expected one of: {allowed})")


def _date(data: Dict[str, Any], key: str, required: bool = True):
    raw = data.get(key)
    if raw is None:
        if required:
            raise InvalidInputError(f"Missing required field '{key}'")
        return None
    try:
        return parse_date(raw)
    except ValueError as e:
        raise InvalidInputError(f"Invalid date for '{key}': {raw}") from e


def _money(data: Dict[str, Any], key: str, default: Optional[float] = None) -> Optional[float]:
    raw = data.get(key)
    if raw is None:
        if default is None:
            raise InvalidInputError(f"Missing required field '{key}'")
        return default
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Invalid number for '{key}': {raw}") from e


def _optional_number(data: Dict[str, Any], key: str) -> Optional[float]:
    if data.get(key) is None:
        return None
    return _money(data, key)


class AssetInputParser(BaseInputParser):
    """
    Parser for single-disposal requests.

    Expected keys: category, acquisition_date, acquisition_cost,
    disposal_date, disposal_proceeds; optional jurisdiction,
    holding_intent, frequency, improvements (list of incurred_on /
    amount / description), transfer_expenses, simulated_disposal_date.
    """

    def parse(self, data: Dict[str, Any]) -> AssetInput:
        if not isinstance(data, dict):
            raise InvalidInputError("Asset request must be a JSON object")

        improvements = []
        for index, item in enumerate(data.get("improvements") or []):
            if not isinstance(item, dict):
                raise InvalidInputError(f"improvements[{index}] must be an object")
            improvements.append(CostOfImprovement(
                incurred_on=_date(item, "incurred_on"),
                amount=_money(item, "amount"),
                description=str(item.get("description", "")),
            ))

        asset = AssetInput(
            category=_enum(AssetCategory, data, "category"),
            acquisition_date=_date(data, "acquisition_date"),
            acquisition_cost=_money(data, "acquisition_cost"),
            disposal_date=_date(data, "disposal_date"),
            disposal_proceeds=_money(data, "disposal_proceeds"),
            jurisdiction=_enum(Jurisdiction, data, "jurisdiction", Jurisdiction.DOMESTIC),
            holding_intent=_enum(HoldingIntent, data, "holding_intent", HoldingIntent.INVESTMENT),
            frequency=_enum(TransactionFrequency, data, "frequency", TransactionFrequency.LOW),
            improvements=tuple(improvements),
            transfer_expenses=_money(data, "transfer_expenses", 0.0),
            simulated_disposal_date=_date(data, "simulated_disposal_date", required=False),
        )
        return asset.validate()


class SIPInputParser(BaseInputParser):
    """
    Parser for periodic / lump-sum investment requests.

    Expected keys: fund_type, mode, amount, start_date, exit_date;
    optional cadence, expected_cagr, price_history (list of date / price
    or nav), redemption_type, partial_redemption_amount,
    equity_percentage.
    """

    def parse(self, data: Dict[str, Any]) -> SIPInput:
        if not isinstance(data, dict):
            raise InvalidInputError("SIP request must be a JSON object")

        history = []
        for index, item in enumerate(data.get("price_history") or []):
            if not isinstance(item, dict):
                raise InvalidInputError(f"price_history[{index}] must be an object")
            price_key = "price" if "price" in item else "nav"
            history.append(PricePoint(on=_date(item, "date"), price=_money(item, price_key)))

        mode = _enum(InvestmentMode, data, "mode", InvestmentMode.SIP)
        cadence = _enum(Cadence, data, "cadence", Cadence.MONTHLY)

        sip = SIPInput(
            fund_type=_enum(FundType, data, "fund_type"),
            mode=mode,
            amount=_money(data, "amount"),
            start_date=_date(data, "start_date"),
            exit_date=_date(data, "exit_date"),
            cadence=cadence if mode is InvestmentMode.SIP else None,
            expected_cagr=_optional_number(data, "expected_cagr"),
            price_history=tuple(sorted(history, key=lambda p: p.on)),
            redemption_type=_enum(RedemptionType, data, "redemption_type", RedemptionType.FULL),
            partial_redemption_amount=_optional_number(data, "partial_redemption_amount"),
            equity_percentage=_optional_number(data, "equity_percentage"),
        )
        return sip.validate()


def load_request_file(filepath: str) -> Dict[str, Any]:
    """
    Load a JSON request file.

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidInputError: If the file is not valid JSON
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Input file not found: {filepath}")
    with open(filepath, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"Input file is not valid JSON: {e}") from e
    logger.debug("Loaded request from %s", os.path.basename(filepath))
    return data
