"""
Data models for the investment tax engine.

This module contains the enumerations and dataclasses that flow through
the pipeline: asset and periodic-investment inputs, classification and
holding-period results, indexation, tax computation, FIFO lots, exit
simulations and compliance mappings.

Every result type is a frozen dataclass. Stages build new objects
(``dataclasses.replace``) rather than mutating what an earlier stage
produced.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .utils import to_jsonable


class InvalidInputError(ValueError):
    """Raised when an input violates the data-model invariants."""


class AssetCategory(Enum):
    """Closed set of asset categories understood by the engine."""
    LISTED_EQUITY = "listed_equity"
    EQUITY_FUND = "equity_fund"
    DEBT_FUND = "debt_fund"
    PRECIOUS_METAL = "precious_metal"
    COMMODITY = "commodity"
    REAL_PROPERTY = "real_property"
    FOREIGN_EQUITY = "foreign_equity"
    FOREIGN_PROPERTY = "foreign_property"
    DIGITAL_ASSET = "digital_asset"

    @property
    def treatment(self) -> "AssetTreatment":
        return CATEGORY_TREATMENT[self]

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


class AssetTreatment(Enum):
    """Tax treatment family every category dispatches on."""
    EQUITY = "equity"           # 12 month threshold, flat STCG/LTCG, exemption
    DEBT_FUND = "debt_fund"     # slab rates regardless of holding period
    INDEXABLE = "indexable"     # 24 month threshold, indexation when long-term
    DIGITAL = "digital"         # 24 month threshold, never indexed


CATEGORY_TREATMENT: Dict[AssetCategory, AssetTreatment] = {
    AssetCategory.LISTED_EQUITY: AssetTreatment.EQUITY,
    AssetCategory.EQUITY_FUND: AssetTreatment.EQUITY,
    AssetCategory.DEBT_FUND: AssetTreatment.DEBT_FUND,
    AssetCategory.PRECIOUS_METAL: AssetTreatment.INDEXABLE,
    AssetCategory.COMMODITY: AssetTreatment.INDEXABLE,
    AssetCategory.REAL_PROPERTY: AssetTreatment.INDEXABLE,
    AssetCategory.FOREIGN_EQUITY: AssetTreatment.INDEXABLE,
    AssetCategory.FOREIGN_PROPERTY: AssetTreatment.INDEXABLE,
    AssetCategory.DIGITAL_ASSET: AssetTreatment.DIGITAL,
}

CATEGORY_LABELS: Dict[AssetCategory, str] = {
    AssetCategory.LISTED_EQUITY: "Listed Equity Shares",
    AssetCategory.EQUITY_FUND: "Equity Mutual Fund",
    AssetCategory.DEBT_FUND: "Debt Mutual Fund",
    AssetCategory.PRECIOUS_METAL: "Gold / Silver",
    AssetCategory.COMMODITY: "Commodities",
    AssetCategory.REAL_PROPERTY: "Real Estate",
    AssetCategory.FOREIGN_EQUITY: "Foreign Equity",
    AssetCategory.FOREIGN_PROPERTY: "Foreign Property",
    AssetCategory.DIGITAL_ASSET: "Crypto / Virtual Digital Asset",
}


class Jurisdiction(Enum):
    DOMESTIC = "domestic"
    FOREIGN = "foreign"


class HoldingIntent(Enum):
    INVESTMENT = "investment"
    TRADING = "trading"


class TransactionFrequency(Enum):
    """Transaction-frequency tier declared by the taxpayer."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        return {"low": 0, "medium": 1, "high": 2}[self.value]


class IncomeType(Enum):
    CAPITAL_GAINS = "Capital Gains"
    BUSINESS_INCOME = "Business Income"


class GainType(Enum):
    STCG = "STCG"
    LTCG = "LTCG"
    BUSINESS = "Business"


class FundType(Enum):
    """Fund types accepted for periodic (SIP) investments."""
    EQUITY_FUND = "equity_fund"
    DEBT_FUND = "debt_fund"
    HYBRID_FUND = "hybrid_fund"
    ETF = "etf"
    INDEX_FUND = "index_fund"


class InvestmentMode(Enum):
    SIP = "sip"
    LUMP_SUM = "lump_sum"


class Cadence(Enum):
    """Installment cadence, valued in months between installments."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"

    @property
    def months(self) -> int:
        return {"monthly": 1, "quarterly": 3, "annual": 12}[self.value]

    @property
    def periods_per_year(self) -> int:
        return 12 // self.months


class RedemptionType(Enum):
    FULL = "full"
    PARTIAL = "partial"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CostOfImprovement:
    """A separately dated capital expenditure on the asset."""
    incurred_on: date
    amount: float
    description: str = ""


@dataclass(frozen=True)
class AssetInput:
    """
    A single disposal to be classified and taxed.

    Attributes:
        category: Asset category
        acquisition_date: Date the asset was acquired
        acquisition_cost: Cost of acquisition
        disposal_date: Date the asset was (or will be) sold
        disposal_proceeds: Full value of consideration received
        jurisdiction: Domestic or foreign asset
        holding_intent: Investment or trading
        frequency: Transaction-frequency tier
        improvements: Dated cost-of-improvement entries
        transfer_expenses: Brokerage, stamp duty and other transfer costs
        simulated_disposal_date: "What if I sell on this date" override
    """
    category: AssetCategory
    acquisition_date: date
    acquisition_cost: float
    disposal_date: date
    disposal_proceeds: float
    jurisdiction: Jurisdiction = Jurisdiction.DOMESTIC
    holding_intent: HoldingIntent = HoldingIntent.INVESTMENT
    frequency: TransactionFrequency = TransactionFrequency.LOW
    improvements: Tuple[CostOfImprovement, ...] = ()
    transfer_expenses: float = 0.0
    simulated_disposal_date: Optional[date] = None

    @property
    def effective_disposal_date(self) -> date:
        return self.simulated_disposal_date or self.disposal_date

    @property
    def total_improvement_cost(self) -> float:
        return sum(item.amount for item in self.improvements)

    @property
    def total_cost(self) -> float:
        """Un-indexed cost: acquisition + improvements + transfer expenses."""
        return self.acquisition_cost + self.total_improvement_cost + self.transfer_expenses

    @property
    def gain_or_loss(self) -> float:
        return self.disposal_proceeds - self.total_cost

    @property
    def is_foreign(self) -> bool:
        return (
            self.jurisdiction is Jurisdiction.FOREIGN
            or self.category in (AssetCategory.FOREIGN_EQUITY, AssetCategory.FOREIGN_PROPERTY)
        )

    def validate(self) -> "AssetInput":
        """
        Check the data-model invariants.

        Raises:
            InvalidInputError: If a date is out of order or money is negative
        """
        if self.disposal_date < self.acquisition_date:
            raise InvalidInputError("disposal_date must not precede acquisition_date")
        if (self.simulated_disposal_date is not None
                and self.simulated_disposal_date < self.acquisition_date):
            raise InvalidInputError("simulated_disposal_date must not precede acquisition_date")
        for name in ("acquisition_cost", "disposal_proceeds", "transfer_expenses"):
            if getattr(self, name) < 0:
                raise InvalidInputError(f"{name} must be >= 0")
        for item in self.improvements:
            if item.amount < 0:
                raise InvalidInputError("improvement amount must be >= 0")
        return self


@dataclass(frozen=True)
class PricePoint:
    """Unit price (NAV) observed on a date."""
    on: date
    price: float


@dataclass(frozen=True)
class SIPInput:
    """
    A periodic (SIP) or lump-sum fund investment and its intended exit.

    ``amount`` is the per-installment amount for SIP mode and the total
    amount for lump-sum mode. ``expected_cagr`` is a percentage.
    """
    fund_type: FundType
    mode: InvestmentMode
    amount: float
    start_date: date
    exit_date: date
    cadence: Optional[Cadence] = Cadence.MONTHLY
    expected_cagr: Optional[float] = None
    price_history: Tuple[PricePoint, ...] = ()
    redemption_type: RedemptionType = RedemptionType.FULL
    partial_redemption_amount: Optional[float] = None
    equity_percentage: Optional[float] = None

    def validate(self) -> "SIPInput":
        if self.exit_date < self.start_date:
            raise InvalidInputError("exit_date must not precede start_date")
        if self.amount <= 0:
            raise InvalidInputError("amount must be > 0")
        if self.mode is InvestmentMode.SIP and self.cadence is None:
            raise InvalidInputError("cadence is required for SIP mode")
        if self.redemption_type is RedemptionType.PARTIAL:
            if not self.partial_redemption_amount or self.partial_redemption_amount <= 0:
                raise InvalidInputError("partial_redemption_amount is required for partial redemption")
        if self.expected_cagr is not None and self.expected_cagr <= -100:
            raise InvalidInputError("expected_cagr must be greater than -100")
        if any(point.price <= 0 for point in self.price_history):
            raise InvalidInputError("price history entries must be > 0")
        if self.equity_percentage is not None and not 0 <= self.equity_percentage <= 100:
            raise InvalidInputError("equity_percentage must be between 0 and 100")
        return self


# ---------------------------------------------------------------------------
# Classification & holding period
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClassificationFactor:
    factor: str
    outcome: str


@dataclass(frozen=True)
class Classification:
    income_type: IncomeType
    gain_type: GainType
    factors: Tuple[ClassificationFactor, ...]
    rationale: str

    @property
    def is_business_income(self) -> bool:
        return self.income_type is IncomeType.BUSINESS_INCOME


@dataclass(frozen=True)
class HoldingPeriodDetail:
    acquisition_date: date
    disposal_date: date
    holding_days: int
    holding_months: int
    is_short_term: bool
    is_long_term: bool
    threshold_months: int
    applicable_rule: str

    def get_holding_period_str(self) -> str:
        """Get formatted holding period string like '2y 3m'."""
        return f"{self.holding_months // 12}y {self.holding_months % 12}m"


# ---------------------------------------------------------------------------
# Indexation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IndexedImprovement:
    incurred_on: date
    amount: float
    fiscal_year: str
    index_value: Optional[float]
    indexed_amount: float
    description: str = ""


@dataclass(frozen=True)
class IndexationResult:
    applies: bool
    source_fiscal_year: str
    target_fiscal_year: str
    source_index: Optional[float]
    target_index: Optional[float]
    indexed_acquisition_cost: float
    indexed_improvements: Tuple[IndexedImprovement, ...]
    total_indexed_cost: float
    transfer_expenses: float
    final_indexed_cost: float
    tax_with_indexation: float
    tax_without_indexation: float
    tax_saved: float


# ---------------------------------------------------------------------------
# Tax computation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SlabBreakdownRow:
    lower: float
    upper: Optional[float]
    rate: float
    taxed_amount: float
    tax: float


@dataclass(frozen=True)
class TaxComputation:
    """
    Tax liability components for one disposal.

    ``base_tax`` excludes surcharge and cess; ``total_liability`` is
    ``base_tax + surcharge + cess``.
    """
    realized_gain: float
    exemption: float
    taxable_amount: float
    base_tax: float
    surcharge: float
    cess: float
    total_liability: float
    regime: str
    rate_applied: Optional[float] = None
    slab_breakdown: Optional[Tuple[SlabBreakdownRow, ...]] = None
    registration_advisory: bool = False

    @classmethod
    def no_liability(cls, regime: str = "loss") -> "TaxComputation":
        """Zero computation used when the orchestrator detects a loss."""
        return cls(
            realized_gain=0.0, exemption=0.0, taxable_amount=0.0, base_tax=0.0,
            surcharge=0.0, cess=0.0, total_liability=0.0, regime=regime,
        )


# ---------------------------------------------------------------------------
# FIFO lots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SIPLot:
    """
    One contribution lot. Created once; enrichment produces copies.
    """
    contribution_date: date
    invested_amount: float
    price: float
    units: float
    current_value: Optional[float] = None
    holding_days: Optional[int] = None
    holding_months: Optional[int] = None
    is_short_term: Optional[bool] = None
    is_long_term: Optional[bool] = None


@dataclass(frozen=True)
class RedemptionLot:
    """A lot, or a slice of one, consumed by a redemption event."""
    contribution_date: date
    redemption_date: date
    units: float
    invested_amount: float
    purchase_price: float
    redemption_price: float
    proceeds: float
    gain: float
    gain_type: GainType
    holding_days: int
    holding_months: int
    taxable_amount: float


@dataclass(frozen=True)
class InvestmentSummary:
    total_invested: float
    total_units: float
    exit_price: float
    market_value: float
    total_gain: float
    total_gain_percent: float
    number_of_lots: int
    period_days: int
    period_months: int


@dataclass(frozen=True)
class FormulaProjection:
    """Closed-form SIP / lump-sum projection."""
    total_invested: float
    future_value: float
    estimated_returns: float
    installments: int


@dataclass(frozen=True)
class CapitalGainsSummary:
    stcg_amount: float
    ltcg_amount: float
    total_gain: float
    stcg_lots: int
    ltcg_lots: int
    stcg_loss_set_off: float
    exemption: float
    taxable_stcg: float
    taxable_ltcg: float
    total_taxable: float


@dataclass(frozen=True)
class RedemptionTax:
    stcg_tax: float
    ltcg_tax: float
    base_tax: float
    surcharge: float
    cess: float
    total_liability: float
    slab_breakdown: Optional[Tuple[SlabBreakdownRow, ...]] = None


@dataclass(frozen=True)
class PostTaxMetrics:
    pre_tax_value: float
    post_tax_value: float
    pre_tax_cagr: float
    post_tax_cagr: float
    tax_drag_percent: float
    absolute_post_tax_return: float
    post_tax_return_percent: float


@dataclass(frozen=True)
class ExitSimulation:
    exit_date: date
    holding_months: int
    market_value: float
    total_gain: float
    tax_liability: float
    post_tax_value: float
    post_tax_cagr: float
    tax_drag_percent: float
    is_optimal: bool = False
    optimal_reason: str = ""


# ---------------------------------------------------------------------------
# Insights, compliance and result bundles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OptimizationInsight:
    kind: str
    title: str
    description: str
    impact_amount: Optional[float] = None
    impact_percent: Optional[float] = None
    actionable: str = ""
    relevant_date: Optional[date] = None


@dataclass(frozen=True)
class ComplianceMapping:
    schedule_cg: bool
    schedule_bp: bool
    schedule_fa: bool
    schedule_vda: bool
    reconciliation_flags: Tuple[str, ...]
    autofill: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class AssetSummary:
    category: AssetCategory
    category_label: str
    acquisition_cost: float
    disposal_proceeds: float
    gain_or_loss: float
    jurisdiction: Jurisdiction
    holding_intent: HoldingIntent
    frequency: TransactionFrequency


@dataclass(frozen=True)
class AssetTaxResult:
    summary: AssetSummary
    classification: Classification
    holding_period: HoldingPeriodDetail
    indexation: Optional[IndexationResult]
    tax: TaxComputation
    insights: Tuple[OptimizationInsight, ...]
    compliance: ComplianceMapping
    warnings: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return to_jsonable(self)


@dataclass(frozen=True)
class SIPTaxResult:
    summary: InvestmentSummary
    projection: FormulaProjection
    lots: Tuple[SIPLot, ...]
    redemption_lots: Tuple[RedemptionLot, ...]
    capital_gains: CapitalGainsSummary
    tax: RedemptionTax
    post_tax: PostTaxMetrics
    exit_simulations: Tuple[ExitSimulation, ...]
    insights: Tuple[OptimizationInsight, ...]
    compliance: ComplianceMapping
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return to_jsonable(self)

