"""
Tax rules store.

This module holds the immutable, per-fiscal-year tax configuration
(cost inflation index, slab brackets, flat capital gains rates,
surcharge bands, cess and holding-period thresholds) and the store that
publishes the active rule set to the rest of the engine.

Rates are fractions (0.125 is 12.5%). Fiscal years run April-March and
are labelled like '2025-26'.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

FISCAL_YEAR_START_MONTH = 4
FISCAL_YEAR_START_DAY = 1


@dataclass(frozen=True)
class TaxSlab:
    """Progressive bracket covering [lower, upper); ``upper=None`` is open-ended."""
    lower: float
    upper: Optional[float]
    rate: float

    @property
    def is_open_ended(self) -> bool:
        return self.upper is None


@dataclass(frozen=True)
class SurchargeBand:
    """Surcharge rate applicable once income reaches ``floor``."""
    floor: float
    rate: float


# Published Cost Inflation Index (base year 2001-02 = 100)
COST_INFLATION_INDEX: Dict[str, float] = {
    "2001-02": 100, "2002-03": 105, "2003-04": 109, "2004-05": 113,
    "2005-06": 117, "2006-07": 122, "2007-08": 129, "2008-09": 137,
    "2009-10": 148, "2010-11": 167, "2011-12": 184, "2012-13": 200,
    "2013-14": 220, "2014-15": 240, "2015-16": 254, "2016-17": 264,
    "2017-18": 272, "2018-19": 280, "2019-20": 289, "2020-21": 301,
    "2021-22": 317, "2022-23": 331, "2023-24": 348, "2024-25": 363,
    "2025-26": 376,
}


@dataclass(frozen=True)
class TaxRulesConfig:
    """
    Tax rules for one fiscal year (FY 2025-26 defaults).

    Base Rates:
    - Equity STCG (Section 111A): 20%
    - Equity LTCG (Section 112A): 12.5% above ₹1,25,000
    - Non-equity LTCG (Section 112): 20% with indexation
    - Business income / debt funds / non-equity STCG: slab rates

    Surcharge (slab income): 10% above ₹50 L, 15% above ₹1 Cr, 25% above ₹2 Cr
    Health & Education Cess: 4%

    Instances are immutable once built; the CII map is exposed read-only.
    """
    fiscal_year: str
    cost_inflation_index: Mapping[str, float]
    slabs: Tuple[TaxSlab, ...]
    surcharge_bands: Tuple[SurchargeBand, ...]
    equity_stcg_rate: float = 0.20
    equity_ltcg_rate: float = 0.125
    equity_ltcg_exemption: float = 125000.0
    non_equity_ltcg_rate: float = 0.20
    cess_rate: float = 0.04
    equity_holding_months: int = 12
    non_equity_holding_months: int = 24
    hybrid_equity_threshold: float = 65.0
    cii_base_fiscal_year: str = "2001-02"

    def __post_init__(self):
        object.__setattr__(
            self, "cost_inflation_index", MappingProxyType(dict(self.cost_inflation_index))
        )
        object.__setattr__(self, "slabs", tuple(self.slabs))
        object.__setattr__(self, "surcharge_bands", tuple(self.surcharge_bands))
        self._validate()

    def _validate(self) -> None:
        if not self.slabs:
            raise ValueError("at least one slab is required")
        if self.slabs[0].lower != 0:
            raise ValueError("first slab must start at 0")
        for current, following in zip(self.slabs, self.slabs[1:]):
            if current.is_open_ended:
                raise ValueError("only the last slab may be open-ended")
            if current.upper != following.lower:
                raise ValueError(
                    f"slabs are not contiguous: {current.upper} != {following.lower}"
                )
        for slab in self.slabs:
            if slab.upper is not None and slab.upper <= slab.lower:
                raise ValueError(f"slab upper bound {slab.upper} must exceed {slab.lower}")
        floors = [band.floor for band in self.surcharge_bands]
        if any(a >= b for a, b in zip(floors, floors[1:])):
            raise ValueError("surcharge bands must be sorted ascending by floor")
        if self.cii_base_fiscal_year not in self.cost_inflation_index:
            raise ValueError(f"CII missing for base year {self.cii_base_fiscal_year}")

    @property
    def base_year_start(self) -> date:
        """First day of the CII base fiscal year (01-Apr-2001)."""
        return fiscal_year_start(self.cii_base_fiscal_year)

    def index_for(self, label: str) -> Optional[float]:
        """CII for a fiscal-year label, or None when unpublished."""
        value = self.cost_inflation_index.get(label)
        return float(value) if value is not None else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return {
            "fiscal_year": self.fiscal_year,
            "cost_inflation_index": dict(self.cost_inflation_index),
            "slabs": [
                {"lower": s.lower, "upper": s.upper, "rate": s.rate} for s in self.slabs
            ],
            "surcharge_bands": [
                {"floor": b.floor, "rate": b.rate} for b in self.surcharge_bands
            ],
            "equity_stcg_rate": self.equity_stcg_rate,
            "equity_ltcg_rate": self.equity_ltcg_rate,
            "equity_ltcg_exemption": self.equity_ltcg_exemption,
            "non_equity_ltcg_rate": self.non_equity_ltcg_rate,
            "cess_rate": self.cess_rate,
            "equity_holding_months": self.equity_holding_months,
            "non_equity_holding_months": self.non_equity_holding_months,
            "hybrid_equity_threshold": self.hybrid_equity_threshold,
            "cii_base_fiscal_year": self.cii_base_fiscal_year,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaxRulesConfig":
        """
        Build a rule set from its dictionary form.

        Raises:
            ValueError: If a required key is missing or invariants fail
        """
        try:
            slabs = tuple(
                TaxSlab(
                    lower=float(s["lower"]),
                    upper=None if s.get("upper") is None else float(s["upper"]),
                    rate=float(s["rate"]),
                )
                for s in data["slabs"]
            )
            bands = tuple(
                SurchargeBand(floor=float(b["floor"]), rate=float(b["rate"]))
                for b in data.get("surcharge_bands", [])
            )
            optional = {
                key: data[key]
                for key in (
                    "equity_stcg_rate", "equity_ltcg_rate", "equity_ltcg_exemption",
                    "non_equity_ltcg_rate", "cess_rate", "equity_holding_months",
                    "non_equity_holding_months", "hybrid_equity_threshold",
                    "cii_base_fiscal_year",
                )
                if key in data
            }
            return cls(
                fiscal_year=str(data["fiscal_year"]),
                cost_inflation_index={
                    str(k): float(v) for k, v in data["cost_inflation_index"].items()
                },
                slabs=slabs,
                surcharge_bands=bands,
                **optional,
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid tax rules data: {e}") from e


def fiscal_year_for_date(on: date) -> str:
    """
    Fiscal-year label for a date.

    Examples:
        >>> fiscal_year_for_date(date(2025, 3, 31))
        '2024-25'
        >>> fiscal_year_for_date(date(2025, 4, 1))
        '2025-26'
    """
    cutover = date(on.year, FISCAL_YEAR_START_MONTH, FISCAL_YEAR_START_DAY)
    start_year = on.year if on >= cutover else on.year - 1
    return f"{start_year}-{str(start_year + 1)[2:]}"


def fiscal_year_start(label: str) -> date:
    """First day of the fiscal year named by ``label``."""
    return date(int(label[:4]), FISCAL_YEAR_START_MONTH, FISCAL_YEAR_START_DAY)


def next_fiscal_year_start(on: date) -> date:
    """First day of the fiscal year after the one containing ``on``."""
    current = fiscal_year_start(fiscal_year_for_date(on))
    return date(current.year + 1, current.month, current.day)


FY_2024_25_RULES = TaxRulesConfig(
    fiscal_year="2024-25",
    cost_inflation_index={k: v for k, v in COST_INFLATION_INDEX.items() if k <= "2024-25"},
    slabs=(
        TaxSlab(0, 300000, 0.0),
        TaxSlab(300000, 700000, 0.05),
        TaxSlab(700000, 1000000, 0.10),
        TaxSlab(1000000, 1200000, 0.15),
        TaxSlab(1200000, 1500000, 0.20),
        TaxSlab(1500000, None, 0.30),
    ),
    surcharge_bands=(
        SurchargeBand(5000000, 0.10),
        SurchargeBand(10000000, 0.15),
        SurchargeBand(20000000, 0.25),
    ),
)

FY_2025_26_RULES = TaxRulesConfig(
    fiscal_year="2025-26",
    cost_inflation_index=COST_INFLATION_INDEX,
    slabs=(
        TaxSlab(0, 400000, 0.0),
        TaxSlab(400000, 800000, 0.05),
        TaxSlab(800000, 1200000, 0.10),
        TaxSlab(1200000, 1600000, 0.15),
        TaxSlab(1600000, 2000000, 0.20),
        TaxSlab(2000000, 2400000, 0.25),
        TaxSlab(2400000, None, 0.30),
    ),
    surcharge_bands=(
        SurchargeBand(5000000, 0.10),
        SurchargeBand(10000000, 0.15),
        SurchargeBand(20000000, 0.25),
    ),
)

BUILTIN_RULES: Dict[str, TaxRulesConfig] = {
    FY_2024_25_RULES.fiscal_year: FY_2024_25_RULES,
    FY_2025_26_RULES.fiscal_year: FY_2025_26_RULES,
}


class RulesStore:
    """
    Holds the active rule set.

    Publishing replaces the whole config object; readers take a single
    snapshot per computation and never see a partially updated rule set.

    Example:
        >>> store = RulesStore()
        >>> store.set_active_rules(FY_2024_25_RULES)
        >>> store.get_active_rules().fiscal_year
        '2024-25'
    """

    def __init__(self, config: TaxRulesConfig = FY_2025_26_RULES):
        self._lock = threading.Lock()
        self._config = config

    def get_active_rules(self) -> TaxRulesConfig:
        return self._config

    def set_active_rules(self, config: TaxRulesConfig) -> None:
        if not isinstance(config, TaxRulesConfig):
            raise TypeError("config must be a TaxRulesConfig")
        with self._lock:
            previous = self._config
            self._config = config
        logger.info("Active tax rules switched from FY %s to FY %s",
                    previous.fiscal_year, config.fiscal_year)

    def index_for_fiscal_year(self, label: str) -> Optional[float]:
        return self._config.index_for(label)


_default_store = RulesStore()


def get_default_store() -> RulesStore:
    return _default_store


def get_active_rules() -> TaxRulesConfig:
    """Active rule set of the process-wide default store."""
    return _default_store.get_active_rules()


def set_active_rules(config: TaxRulesConfig) -> None:
    """Publish a new rule set to the process-wide default store."""
    _default_store.set_active_rules(config)


def index_for_fiscal_year(label: str, rules: Optional[TaxRulesConfig] = None) -> Optional[float]:
    """CII for ``label`` from ``rules`` (default: the active rule set)."""
    return (rules or get_active_rules()).index_for(label)


def load_rules_file(filepath: str) -> TaxRulesConfig:
    """
    Load a published rule set from a JSON file.

    Args:
        filepath: Path to the JSON rules file (see ``TaxRulesConfig.to_dict``)

    Returns:
        TaxRulesConfig built from the file

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the content is not a valid rule set
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Tax rules file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Tax rules file is not valid JSON: {e}") from e

    config = TaxRulesConfig.from_dict(data)
    logger.info("Loaded FY %s tax rules (%d CII entries) from %s",
                config.fiscal_year, len(config.cost_inflation_index),
                os.path.basename(filepath))
    return config
