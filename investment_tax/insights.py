"""
Optimization insights.

Data-driven advisories attached to a result: holding on for long-term
treatment, deferring a sale into the next fiscal year, exemption and
indexation benefits, registration and foreign-asset reminders, and for
periodic investments the LTCG window, FIFO split and best exit date.
"""

from datetime import date
from typing import List, Optional, Sequence

from .classification import DEFAULT_POLICY, ClassificationPolicy
from .holding import is_equity_fund, threshold_months
from .models import (
    AssetInput,
    AssetTreatment,
    CapitalGainsSummary,
    Classification,
    ExitSimulation,
    GainType,
    HoldingPeriodDetail,
    IndexationResult,
    OptimizationInsight,
    RedemptionLot,
    SIPInput,
    SIPLot,
    TaxComputation,
    TransactionFrequency,
)
from .rules import TaxRulesConfig, get_active_rules, next_fiscal_year_start
from .simulation import LTCG_LOOKAHEAD_MONTHS, simulate_asset_exit
from .utils import add_months, format_currency_inr

# Deferring into the next fiscal year is suggested within this many days of it
NEXT_FY_WINDOW_DAYS = 90

DATE_FORMAT = "%d-%b-%Y"


def _fmt_date(on: date) -> str:
    return on.strftime(DATE_FORMAT)


def _lakh(amount: float) -> str:
    return f"₹{amount / 100000:.2f} Lakh"


def generate_asset_insights(
    asset: AssetInput,
    classification: Classification,
    holding: HoldingPeriodDetail,
    indexation: Optional[IndexationResult],
    tax: TaxComputation,
    rules: Optional[TaxRulesConfig] = None,
    policy: ClassificationPolicy = DEFAULT_POLICY,
) -> List[OptimizationInsight]:
    """
    Insights for a single disposal.

    Business income only gets the registration reminder. Capital gains
    get exemption and indexation notes, a hold-for-LTCG comparison for
    short-term equity and non-equity holdings (debt funds excluded), a
    next-fiscal-year comparison near the year end, and a Schedule FA
    reminder for foreign assets. Comparisons re-run the pipeline with a
    simulated disposal date and are reported only when they save tax.
    """
    rules = rules or get_active_rules()
    insights: List[OptimizationInsight] = []

    if classification.is_business_income:
        if asset.frequency is TransactionFrequency.HIGH:
            insights.append(OptimizationInsight(
                kind="registration_warning",
                title="Turnover-based registration may apply",
                description=(
                    "Frequent trading reported as business income. If turnover exceeds "
                    "the threshold, GST registration and compliance may be required."
                ),
                actionable="Verify registration requirements with your tax advisor.",
            ))
        return insights

    treatment = asset.category.treatment

    if tax.exemption > 0:
        insights.append(OptimizationInsight(
            kind="exemption_usage",
            title="Equity LTCG exemption used",
            description=f"{_lakh(tax.exemption)} exemption applied. Taxable LTCG reduced.",
            impact_amount=tax.exemption * rules.equity_ltcg_rate,
        ))

    if indexation is not None and indexation.applies and indexation.tax_saved > 0:
        insights.append(OptimizationInsight(
            kind="indexation_saving",
            title="Indexation saved tax",
            description=(
                f"Indexed cost (CII {indexation.source_index:g} → {indexation.target_index:g}) "
                "reduced the taxable gain."
            ),
            impact_amount=indexation.tax_saved,
            actionable="Ensure the acquisition year CII is correctly used for cost inflation.",
        ))

    if holding.is_short_term and treatment is not AssetTreatment.DEBT_FUND:
        ltcg_date = add_months(asset.acquisition_date, holding.threshold_months + 1)
        if ltcg_date > asset.effective_disposal_date:
            _, _, _, future_tax = simulate_asset_exit(asset, ltcg_date, rules, policy)
            reduction = tax.total_liability - future_tax.total_liability
            if reduction > 0:
                wait_days = (ltcg_date - asset.effective_disposal_date).days
                insights.append(OptimizationInsight(
                    kind="hold_for_ltcg",
                    title=f"Hold for LTCG ({holding.threshold_months} months) to reduce tax",
                    description=(
                        f"If you sell after {wait_days} more days ({_fmt_date(ltcg_date)}), "
                        "the gain becomes long-term."
                    ),
                    impact_amount=reduction,
                    impact_percent=reduction / tax.total_liability * 100,
                    actionable=(
                        f"Selling on or after {_fmt_date(ltcg_date)} may reduce tax by "
                        f"{format_currency_inr(round(reduction))}."
                    ),
                    relevant_date=ltcg_date,
                ))

    sale_date = asset.effective_disposal_date
    next_fy = next_fiscal_year_start(sale_date)
    days_to_next_fy = (next_fy - sale_date).days
    if 0 < days_to_next_fy <= NEXT_FY_WINDOW_DAYS:
        _, _, _, deferred_tax = simulate_asset_exit(asset, next_fy, rules, policy)
        saving = tax.total_liability - deferred_tax.total_liability
        if saving > 0:
            insights.append(OptimizationInsight(
                kind="sell_next_fy",
                title="Selling in the next fiscal year may save tax",
                description=(
                    f"If you defer the sale to {_fmt_date(next_fy)} (next fiscal year), "
                    "the tax could be lower."
                ),
                impact_amount=saving,
                actionable=(
                    f"Deferring the sale by {days_to_next_fy} days may save "
                    f"{format_currency_inr(round(saving))}."
                ),
                relevant_date=next_fy,
            ))

    if asset.is_foreign:
        insights.append(OptimizationInsight(
            kind="schedule_fa",
            title="Schedule FA reporting",
            description=(
                "Foreign assets must be reported in ITR Schedule FA. Ensure disclosure of "
                "foreign equity/property and any foreign income."
            ),
            actionable="Fill Schedule FA and file Form 67 if claiming foreign tax credit.",
        ))

    return insights


def generate_sip_insights(
    sip: SIPInput,
    lots: Sequence[SIPLot],
    redemption_lots: Sequence[RedemptionLot],
    capital_gains: CapitalGainsSummary,
    simulations: Sequence[ExitSimulation],
    rules: Optional[TaxRulesConfig] = None,
) -> List[OptimizationInsight]:
    """Insights for a periodic investment's redemption and exit simulations."""
    rules = rules or get_active_rules()
    insights: List[OptimizationInsight] = []
    equity_like = is_equity_fund(sip.fund_type, sip.equity_percentage, rules)
    threshold = threshold_months(equity_like, rules)
    total_units = sum(lot.units for lot in lots)

    window_end = add_months(sip.exit_date, LTCG_LOOKAHEAD_MONTHS)
    for lot in sorted(lots, key=lambda l: l.contribution_date):
        ltcg_date = add_months(lot.contribution_date, threshold + 1)
        if ltcg_date <= sip.exit_date or ltcg_date > window_end:
            continue
        percent = lot.units / total_units * 100 if total_units > 0 else 0.0
        insights.append(OptimizationInsight(
            kind="ltcg_eligibility",
            title="LTCG eligibility window",
            description=(
                f"{percent:.1f}% of your units ({lot.units:.2f} units) become LTCG-eligible "
                f"after {_fmt_date(ltcg_date)}."
            ),
            impact_percent=percent,
            actionable=(
                f"Consider delaying exit until after {_fmt_date(ltcg_date)} to benefit from "
                "lower LTCG rates."
            ),
            relevant_date=ltcg_date,
        ))
        break

    current = _intended_simulation(sip, simulations)
    optimal = next((s for s in simulations if s.is_optimal), None)
    if current is not None and optimal is not None and optimal.exit_date != current.exit_date:
        savings = current.tax_liability - optimal.tax_liability
        if savings > 0:
            insights.append(OptimizationInsight(
                kind="tax_savings",
                title="Tax savings opportunity",
                description=(
                    f"Exiting on {_fmt_date(optimal.exit_date)} instead of "
                    f"{_fmt_date(current.exit_date)} can save "
                    f"{format_currency_inr(round(savings))} in taxes."
                ),
                impact_amount=savings,
                impact_percent=(
                    savings / current.tax_liability * 100 if current.tax_liability > 0 else 0.0
                ),
                actionable=(
                    f"Post-tax value increases from "
                    f"{format_currency_inr(round(current.post_tax_value))} to "
                    f"{format_currency_inr(round(optimal.post_tax_value))}."
                ),
                relevant_date=optimal.exit_date,
            ))

    if capital_gains.exemption > 0:
        insights.append(OptimizationInsight(
            kind="exemption_usage",
            title="Equity LTCG exemption applied",
            description=(
                f"{_lakh(capital_gains.exemption)} exemption applied on LTCG, reducing taxable "
                f"LTCG from {_lakh(capital_gains.ltcg_amount)} to "
                f"{_lakh(capital_gains.taxable_ltcg)}."
            ),
            impact_amount=capital_gains.exemption * rules.equity_ltcg_rate,
        ))

    stcg_lots = [lot for lot in redemption_lots if lot.gain_type is GainType.STCG]
    ltcg_lots = [lot for lot in redemption_lots if lot.gain_type is GainType.LTCG]
    if stcg_lots and ltcg_lots:
        insights.append(OptimizationInsight(
            kind="fifo_breakdown",
            title="FIFO redemption breakdown",
            description=(
                f"Under FIFO, {len(stcg_lots)} lot(s) are STCG "
                f"({format_currency_inr(round(capital_gains.stcg_amount))}) and "
                f"{len(ltcg_lots)} lot(s) are LTCG "
                f"({format_currency_inr(round(capital_gains.ltcg_amount))})."
            ),
        ))

    if current is not None and len(simulations) > 1:
        best = max(simulations, key=lambda s: s.post_tax_cagr)
        if best.post_tax_cagr > current.post_tax_cagr:
            improvement = best.post_tax_cagr - current.post_tax_cagr
            insights.append(OptimizationInsight(
                kind="cagr_impact",
                title="Post-tax CAGR optimization",
                description=(
                    f"Post-tax CAGR improves by {improvement:.2f}% (from "
                    f"{current.post_tax_cagr:.2f}% to {best.post_tax_cagr:.2f}%) by exiting on "
                    f"{_fmt_date(best.exit_date)}."
                ),
                impact_percent=improvement,
                actionable=(
                    f"Tax drag moves from {current.tax_drag_percent:.2f}% to "
                    f"{best.tax_drag_percent:.2f}%."
                ),
                relevant_date=best.exit_date,
            ))

    return insights


def _intended_simulation(
    sip: SIPInput, simulations: Sequence[ExitSimulation]
) -> Optional[ExitSimulation]:
    for sim in simulations:
        if sim.exit_date == sip.exit_date:
            return sim
    return simulations[0] if simulations else None
