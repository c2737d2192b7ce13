"""
Holding period computation.

Derives elapsed days and whole months between acquisition and disposal
and classifies the holding as short-term or long-term using the
category-specific threshold from the active rule set.
"""

from datetime import date
from typing import Optional, Tuple

from .models import AssetInput, AssetTreatment, FundType, HoldingPeriodDetail
from .rules import TaxRulesConfig, get_active_rules
from .utils import months_between


def compute_holding_days(acquired: date, disposed: date) -> int:
    """Elapsed whole days, clamped at zero if disposal precedes acquisition."""
    return max(0, (disposed - acquired).days)


def compute_holding_months(acquired: date, disposed: date) -> int:
    """Elapsed whole calendar months, clamped at zero."""
    return months_between(acquired, disposed)


def threshold_months(equity_like: bool, rules: TaxRulesConfig) -> int:
    """Holding threshold (months) at or below which a gain is short-term."""
    return rules.equity_holding_months if equity_like else rules.non_equity_holding_months


def is_equity_fund(
    fund_type: FundType, equity_percentage: Optional[float], rules: TaxRulesConfig
) -> bool:
    """
    Whether a fund is taxed like equity.

    Equity funds, ETFs and index funds always are; hybrid funds only when
    their equity share exceeds the configured threshold (65%).
    """
    if fund_type is FundType.HYBRID_FUND:
        return (equity_percentage or 0.0) > rules.hybrid_equity_threshold
    return fund_type in (FundType.EQUITY_FUND, FundType.ETF, FundType.INDEX_FUND)


def classify_span(
    acquired: date, disposed: date, equity_like: bool, rules: TaxRulesConfig
) -> Tuple[int, int, bool]:
    """
    Classify a single holding span.

    Returns:
        (holding_days, holding_months, is_short_term)
    """
    days = compute_holding_days(acquired, disposed)
    months = compute_holding_months(acquired, disposed)
    return days, months, months <= threshold_months(equity_like, rules)


def classify_holding_period(
    asset: AssetInput, rules: Optional[TaxRulesConfig] = None
) -> HoldingPeriodDetail:
    """
    Build the holding-period detail for an asset disposal.

    Short-term iff elapsed whole months <= threshold (12 months for
    equity-like categories, 24 months otherwise).
    """
    rules = rules or get_active_rules()
    equity_like = asset.category.treatment is AssetTreatment.EQUITY
    disposed = asset.effective_disposal_date
    days, months, is_short = classify_span(asset.acquisition_date, disposed, equity_like, rules)
    limit = threshold_months(equity_like, rules)

    if equity_like:
        rule = (
            f"Equity: held > {limit} months is long-term "
            f"(Sec 112A @ {rules.equity_ltcg_rate:.1%} above exemption), "
            f"else short-term (Sec 111A @ {rules.equity_stcg_rate:.1%})"
        )
    elif asset.category.treatment is AssetTreatment.DEBT_FUND:
        rule = (
            f"Debt fund: taxed at slab rates regardless of holding period "
            f"({limit}-month threshold shown for reference)"
        )
    else:
        rule = (
            f"Non-equity: held > {limit} months is long-term "
            f"(Sec 112 @ {rules.non_equity_ltcg_rate:.1%}), else short-term at slab rates"
        )

    return HoldingPeriodDetail(
        acquisition_date=asset.acquisition_date,
        disposal_date=disposed,
        holding_days=days,
        holding_months=months,
        is_short_term=is_short,
        is_long_term=not is_short,
        threshold_months=limit,
        applicable_rule=rule,
    )
