"""
Interface definitions (Protocols) for the investment tax engine.

This module defines the interfaces the engine expects from its
collaborators (rule publishers, price sources, input parsers, reporters)
so they can be swapped or mocked in tests.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Protocol, Tuple, runtime_checkable

from .models import (
    AssetInput,
    AssetTaxResult,
    PricePoint,
    RedemptionLot,
    SIPInput,
    SIPLot,
    SIPTaxResult,
)
from .rules import TaxRulesConfig


@runtime_checkable
class IRulesProvider(Protocol):
    """
    Interface for rule publishers.

    ``RulesStore`` implements it; a caller may supply any object that
    hands out an immutable TaxRulesConfig snapshot.
    """

    def get_active_rules(self) -> TaxRulesConfig:
        """Return the currently active rule set."""
        ...


@runtime_checkable
class IPriceSource(Protocol):
    """
    Interface for unit-price (NAV) lookups.
    """

    def price_on(self, on: date) -> float:
        """
        Get the unit price applicable on a date.

        Args:
            on: Valuation date

        Returns:
            Unit price (> 0)
        """
        ...


@runtime_checkable
class IInputParser(Protocol):
    """
    Interface for parsers turning request payloads into engine inputs.
    """

    def parse(self, data: Dict[str, Any]) -> Any:
        """
        Parse a decoded JSON payload.

        Raises:
            InvalidInputError: If a field is missing or malformed
        """
        ...


@runtime_checkable
class IPriceHistoryParser(Protocol):
    """
    Interface for price-history file readers.
    """

    def parse(self, filepath: str) -> Tuple[PricePoint, ...]:
        """
        Read a price history file.

        Args:
            filepath: Path to the input file

        Returns:
            Price points sorted by date
        """
        ...


@runtime_checkable
class IAssetTaxCalculator(Protocol):
    """
    Interface for single-disposal calculators.
    """

    def calculate(self, asset: AssetInput) -> AssetTaxResult:
        ...


@runtime_checkable
class ISIPTaxCalculator(Protocol):
    """
    Interface for periodic-investment calculators.
    """

    def calculate(self, sip: SIPInput, as_of: date = None) -> SIPTaxResult:
        ...


@runtime_checkable
class IReporter(Protocol):
    """
    Interface for report generators.
    """

    def generate(self, result: Any, **kwargs) -> Any:
        """
        Generate a report.

        Args:
            result: AssetTaxResult or SIPTaxResult
            **kwargs: Additional report-specific arguments

        Returns:
            Report output (format depends on implementation)
        """
        ...


class BaseInputParser(ABC):
    """
    Abstract base class for input parsers.
    """

    @abstractmethod
    def parse(self, data: Dict[str, Any]) -> Any:
        """Parse a decoded JSON payload."""
        pass


class BaseReporter(ABC):
    """
    Abstract base class for report generators.
    """

    @abstractmethod
    def generate(self, result: Any, **kwargs) -> Any:
        """Generate a report."""
        pass


# Type aliases for cleaner type hints
LotList = List[SIPLot]
RedemptionLotList = List[RedemptionLot]
PriceHistory = Tuple[PricePoint, ...]
AutofillPayload = Dict[str, Dict[str, Any]]
