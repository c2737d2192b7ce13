"""
Optimization / simulation engine.

Re-runs the pipeline under hypothetical exit dates. For a single asset
this is one more pass with a simulated disposal date; for a periodic
investment each candidate date gets its own FIFO redemption, tax
computation and post-tax metrics, and the candidate with the highest
post-tax value is marked optimal.

Every simulation is an independent pure function of its inputs, so the
candidates may be evaluated on worker threads.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date
from typing import List, Optional, Sequence, Tuple

from .classification import DEFAULT_POLICY, ClassificationPolicy, classify_income
from .holding import classify_holding_period, is_equity_fund, threshold_months
from .indexation import compute_indexation
from .lots import PriceSeries, apply_fifo_redemption, calculate_investment_summary
from .models import (
    AssetInput,
    Classification,
    ExitSimulation,
    HoldingPeriodDetail,
    IndexationResult,
    InvestmentSummary,
    PostTaxMetrics,
    RedemptionTax,
    RedemptionType,
    SIPInput,
    SIPLot,
    TaxComputation,
)
from .rules import TaxRulesConfig, get_active_rules
from .tax import compute_redemption_tax, compute_tax, summarize_capital_gains
from .utils import DAYS_PER_YEAR, add_months, months_between

logger = logging.getLogger(__name__)

# Months around the intended exit date that are always simulated
EXIT_OFFSETS_MONTHS = (-6, -3, 3, 6)
# Look-ahead for the first LTCG-eligible date, in months after the intended exit
LTCG_LOOKAHEAD_MONTHS = 12
# An LTCG date this close to an existing candidate is not added again
CANDIDATE_PROXIMITY_DAYS = 7
# Cap on annualized returns, in percent
MAX_ANNUALIZED_RETURN = 1_000_000.0

OPTIMAL_REASON = "Highest post-tax redemption value"

AssetEvaluation = Tuple[HoldingPeriodDetail, Classification, Optional[IndexationResult], TaxComputation]


def evaluate_disposal(
    asset: AssetInput,
    rules: Optional[TaxRulesConfig] = None,
    policy: ClassificationPolicy = DEFAULT_POLICY,
) -> AssetEvaluation:
    """
    Run holding period, classification, indexation and tax for a disposal.

    A loss never reaches the tax stage; it yields a zero computation.

    Returns:
        (holding, classification, indexation, tax)
    """
    rules = rules or get_active_rules()
    holding = classify_holding_period(asset, rules)
    classification = classify_income(asset, holding, rules, policy)
    indexation = compute_indexation(asset, holding, rules)
    if asset.gain_or_loss < 0:
        tax = TaxComputation.no_liability()
    else:
        tax = compute_tax(asset, classification, holding, indexation, rules)
    return holding, classification, indexation, tax


def simulate_asset_exit(
    asset: AssetInput,
    on: date,
    rules: Optional[TaxRulesConfig] = None,
    policy: ClassificationPolicy = DEFAULT_POLICY,
) -> AssetEvaluation:
    """Evaluate the same disposal as if it happened on ``on``."""
    return evaluate_disposal(replace(asset, simulated_disposal_date=on), rules, policy)


def _annualized_return(start_value: float, end_value: float, years: float) -> float:
    if start_value <= 0 or years <= 0:
        return 0.0
    ratio = end_value / start_value
    if ratio <= 0:
        return -100.0
    log_growth = math.log(ratio) / years
    if log_growth >= math.log1p(MAX_ANNUALIZED_RETURN / 100):
        return MAX_ANNUALIZED_RETURN
    return math.expm1(log_growth) * 100


def calculate_post_tax_metrics(
    summary: InvestmentSummary, tax: RedemptionTax
) -> PostTaxMetrics:
    """
    Post-tax value and returns for a redemption.

    Tax drag is the relative shortfall of the post-tax annualized return
    against the pre-tax one, in percent.
    """
    pre_tax_value = summary.market_value
    post_tax_value = pre_tax_value - tax.total_liability
    years = summary.period_days / DAYS_PER_YEAR
    pre_tax_cagr = _annualized_return(summary.total_invested, pre_tax_value, years)
    post_tax_cagr = _annualized_return(summary.total_invested, post_tax_value, years)
    tax_drag = ((pre_tax_cagr - post_tax_cagr) / pre_tax_cagr * 100) if pre_tax_cagr > 0 else 0.0
    absolute_return = post_tax_value - summary.total_invested
    return PostTaxMetrics(
        pre_tax_value=pre_tax_value,
        post_tax_value=post_tax_value,
        pre_tax_cagr=pre_tax_cagr,
        post_tax_cagr=post_tax_cagr,
        tax_drag_percent=tax_drag,
        absolute_post_tax_return=absolute_return,
        post_tax_return_percent=(
            absolute_return / summary.total_invested * 100 if summary.total_invested > 0 else 0.0
        ),
    )


def candidate_exit_dates(
    sip: SIPInput,
    lots: Sequence[SIPLot],
    as_of: date,
    rules: TaxRulesConfig,
) -> List[date]:
    """
    Deterministic candidate exit dates, ascending and unique.

    Today, the intended exit date and ±3/±6 months around it (clipped to
    the start date), plus the date the oldest lot first becomes long-term
    when that falls within the look-ahead window and is not within a week
    of another candidate.
    """
    intended = sip.exit_date
    raw = [as_of, intended] + [add_months(intended, m) for m in EXIT_OFFSETS_MONTHS]
    candidates = sorted({max(d, sip.start_date) for d in raw})

    if lots:
        equity_like = is_equity_fund(sip.fund_type, sip.equity_percentage, rules)
        oldest = min(lot.contribution_date for lot in lots)
        ltcg_date = add_months(oldest, threshold_months(equity_like, rules) + 1)
        within_window = ltcg_date <= add_months(intended, LTCG_LOOKAHEAD_MONTHS)
        near_existing = any(
            abs((ltcg_date - d).days) < CANDIDATE_PROXIMITY_DAYS for d in candidates
        )
        if within_window and not near_existing:
            candidates = sorted(candidates + [ltcg_date])
    return candidates


def simulate_exit(
    sip: SIPInput,
    lots: Sequence[SIPLot],
    on: date,
    prices: PriceSeries,
    rules: TaxRulesConfig,
) -> ExitSimulation:
    """Fully redeem the lots held on ``on`` and compute the post-tax outcome."""
    equity_like = is_equity_fund(sip.fund_type, sip.equity_percentage, rules)
    full_exit = replace(sip, exit_date=on, redemption_type=RedemptionType.FULL)
    price = prices.price_on(on)
    held = [lot for lot in lots if lot.contribution_date <= on]

    redeemed = apply_fifo_redemption(held, full_exit, price, on, rules=rules)
    gains = summarize_capital_gains(redeemed, equity_like, rules)
    tax = compute_redemption_tax(gains, equity_like, rules)
    summary = calculate_investment_summary(held, price, on)
    metrics = calculate_post_tax_metrics(summary, tax)

    return ExitSimulation(
        exit_date=on,
        holding_months=months_between(sip.start_date, on),
        market_value=summary.market_value,
        total_gain=summary.total_gain,
        tax_liability=tax.total_liability,
        post_tax_value=metrics.post_tax_value,
        post_tax_cagr=metrics.post_tax_cagr,
        tax_drag_percent=metrics.tax_drag_percent,
    )


def mark_optimal(simulations: Sequence[ExitSimulation]) -> Tuple[ExitSimulation, ...]:
    """Mark the first simulation with the highest post-tax value as optimal."""
    if not simulations:
        return ()
    best = max(range(len(simulations)), key=lambda i: simulations[i].post_tax_value)
    return tuple(
        replace(sim, is_optimal=True, optimal_reason=OPTIMAL_REASON) if i == best else sim
        for i, sim in enumerate(simulations)
    )


def simulate_exits(
    sip: SIPInput,
    lots: Sequence[SIPLot],
    rules: Optional[TaxRulesConfig] = None,
    as_of: Optional[date] = None,
    max_workers: Optional[int] = None,
    prices: Optional[PriceSeries] = None,
) -> Tuple[ExitSimulation, ...]:
    """
    Simulate full redemption on every candidate exit date.

    Args:
        sip: Investment being simulated
        lots: Contribution lots
        rules: Rule set to use (default: the active rule set)
        as_of: "Today" for the exit-now candidate (default: date.today())
        max_workers: Evaluate candidates on this many threads (default: serially)
        prices: Price lookup (default: derived from the input)

    Returns:
        Simulations in candidate-date order, exactly one marked optimal
    """
    rules = rules or get_active_rules()
    as_of = as_of or date.today()
    prices = prices or PriceSeries.from_sip(sip)
    dates = candidate_exit_dates(sip, lots, as_of, rules)

    def run(on: date) -> ExitSimulation:
        return simulate_exit(sip, lots, on, prices, rules)

    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            simulations = list(executor.map(run, dates))
    else:
        simulations = [run(on) for on in dates]

    logger.debug("Simulated %d exit dates", len(simulations))
    return mark_optimal(simulations)
