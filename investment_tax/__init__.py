"""
Investment Tax Engine Package

Capital gains and investment tax computation for Indian residents:
income classification, holding periods, cost indexation, slab and flat
rate tax, FIFO lot accounting for SIP investments, exit simulations,
optimization insights and ITR schedule mapping.
"""

__version__ = "1.0.0"

from .models import (
    AssetCategory,
    AssetInput,
    AssetTaxResult,
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
    SIPTaxResult,
    TransactionFrequency,
)
from .rules import (
    FY_2024_25_RULES,
    FY_2025_26_RULES,
    RulesStore,
    TaxRulesConfig,
    get_active_rules,
    load_rules_file,
    set_active_rules,
)
from .classification import ClassificationPolicy, classify_income
from .calculator import AssetTaxCalculator, SIPTaxCalculator
from .lots import PriceSeries
from .interfaces import (
    IRulesProvider,
    IPriceSource,
    IInputParser,
    IPriceHistoryParser,
    IAssetTaxCalculator,
    ISIPTaxCalculator,
    IReporter,
    BaseInputParser,
    BaseReporter,
)

__all__ = [
    # Models
    "AssetCategory",
    "AssetInput",
    "AssetTaxResult",
    "Cadence",
    "CostOfImprovement",
    "FundType",
    "HoldingIntent",
    "InvalidInputError",
    "InvestmentMode",
    "Jurisdiction",
    "PricePoint",
    "RedemptionType",
    "SIPInput",
    "SIPTaxResult",
    "TransactionFrequency",
    # Rules
    "FY_2024_25_RULES",
    "FY_2025_26_RULES",
    "RulesStore",
    "TaxRulesConfig",
    "get_active_rules",
    "load_rules_file",
    "set_active_rules",
    # Services
    "ClassificationPolicy",
    "classify_income",
    "AssetTaxCalculator",
    "SIPTaxCalculator",
    "PriceSeries",
    # Interfaces
    "IRulesProvider",
    "IPriceSource",
    "IInputParser",
    "IPriceHistoryParser",
    "IAssetTaxCalculator",
    "ISIPTaxCalculator",
    "IReporter",
    "BaseInputParser",
    "BaseReporter",
]
