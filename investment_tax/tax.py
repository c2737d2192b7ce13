"""
Tax computation module.

This module applies the rate regime selected by classification and
holding period (flat rate, progressive slabs, or slabs plus surcharge)
to a disposal's gain, and computes the tax on a set of FIFO redemption
lots. Health & Education Cess is always added on tax plus surcharge.
"""

import logging
from typing import Iterable, List, Optional

from .models import (
    AssetInput,
    AssetTreatment,
    CapitalGainsSummary,
    Classification,
    GainType,
    HoldingPeriodDetail,
    IndexationResult,
    RedemptionLot,
    RedemptionTax,
    SlabBreakdownRow,
    TaxComputation,
    TransactionFrequency,
)
from .rules import TaxRulesConfig, get_active_rules

logger = logging.getLogger(__name__)


# Regime labels reported on TaxComputation.regime
REGIME_BUSINESS = "business_income_slab"
REGIME_DEBT_FUND = "debt_fund_slab"
REGIME_EQUITY_STCG = "equity_stcg_flat"
REGIME_EQUITY_LTCG = "equity_ltcg_flat"
REGIME_NON_EQUITY_STCG = "non_equity_stcg_slab"
REGIME_NON_EQUITY_LTCG_INDEXED = "non_equity_ltcg_indexed"
REGIME_NON_EQUITY_LTCG = "non_equity_ltcg_flat"


def slab_tax(
    amount: float,
    rules: TaxRulesConfig,
    breakdown: Optional[List[SlabBreakdownRow]] = None,
) -> float:
    """
    Progressive slab tax on ``amount``.

    Brackets are walked in ascending order; each bracket's width is taxed
    at its rate and the walk stops at the first open-ended bracket.

    Args:
        amount: Taxable amount
        rules: Rule set providing the slabs
        breakdown: Optional list that receives one row per bracket used

    Returns:
        Tax before surcharge and cess

    Examples:
        >>> slab_tax(1000000, FY_2025_26_RULES)
        40000.0
    """
    tax = 0.0
    remaining = max(0.0, amount)
    for slab in rules.slabs:
        if remaining <= 0:
            break
        width = remaining if slab.is_open_ended else slab.upper - slab.lower
        in_slab = min(remaining, width)
        slab_amount = in_slab * slab.rate
        tax += slab_amount
        if breakdown is not None:
            breakdown.append(SlabBreakdownRow(
                lower=slab.lower,
                upper=slab.upper,
                rate=slab.rate,
                taxed_amount=in_slab,
                tax=slab_amount,
            ))
        remaining -= in_slab
        if slab.is_open_ended:
            break
    return tax


def surcharge_rate(amount: float, rules: TaxRulesConfig) -> float:
    """Rate of the highest surcharge band whose floor ``amount`` meets."""
    rate = 0.0
    for band in rules.surcharge_bands:
        if amount >= band.floor:
            rate = band.rate
    return rate


def _slab_computation(
    gain: float, regime: str, rules: TaxRulesConfig, registration_advisory: bool = False
) -> TaxComputation:
    breakdown: List[SlabBreakdownRow] = []
    base_tax = slab_tax(gain, rules, breakdown)
    surcharge = base_tax * surcharge_rate(gain, rules)
    cess = (base_tax + surcharge) * rules.cess_rate
    return TaxComputation(
        realized_gain=gain,
        exemption=0.0,
        taxable_amount=gain,
        base_tax=base_tax,
        surcharge=surcharge,
        cess=cess,
        total_liability=base_tax + surcharge + cess,
        regime=regime,
        slab_breakdown=tuple(breakdown) or None,
        registration_advisory=registration_advisory,
    )


def _flat_computation(
    gain: float, taxable: float, rate: float, regime: str, rules: TaxRulesConfig,
    exemption: float = 0.0,
) -> TaxComputation:
    base_tax = taxable * rate
    cess = base_tax * rules.cess_rate
    return TaxComputation(
        realized_gain=gain,
        exemption=exemption,
        taxable_amount=taxable,
        base_tax=base_tax,
        surcharge=0.0,
        cess=cess,
        total_liability=base_tax + cess,
        regime=regime,
        rate_applied=rate,
    )


def compute_tax(
    asset: AssetInput,
    classification: Classification,
    holding: HoldingPeriodDetail,
    indexation: Optional[IndexationResult],
    rules: Optional[TaxRulesConfig] = None,
) -> TaxComputation:
    """
    Compute the tax liability for a disposal.

    Dispatch:
    - Business income: slabs on the un-indexed gain, plus surcharge
    - Equity, short-term: flat STCG rate (Sec 111A)
    - Equity, long-term: exemption capped at the gain, then flat LTCG rate (Sec 112A)
    - Debt fund: slabs plus surcharge, regardless of holding period
    - Other non-equity, short-term: slabs plus surcharge
    - Other non-equity, long-term: flat rate on the indexed gain when
      indexation applies, else on the un-indexed gain

    Gains are floored at zero; the caller handles loss scenarios.

    Args:
        asset: Disposal being taxed
        classification: Income classification
        holding: Holding-period detail
        indexation: Indexation result (None when not applicable)
        rules: Rule set to use (default: the active rule set)

    Returns:
        TaxComputation with all components non-negative
    """
    rules = rules or get_active_rules()
    gain = max(0.0, asset.disposal_proceeds - asset.total_cost)
    treatment = asset.category.treatment

    if classification.is_business_income:
        result = _slab_computation(
            gain, REGIME_BUSINESS, rules,
            registration_advisory=asset.frequency is TransactionFrequency.HIGH,
        )
    elif treatment is AssetTreatment.DEBT_FUND:
        result = _slab_computation(gain, REGIME_DEBT_FUND, rules)
    elif treatment is AssetTreatment.EQUITY:
        if holding.is_short_term:
            result = _flat_computation(
                gain, gain, rules.equity_stcg_rate, REGIME_EQUITY_STCG, rules
            )
        else:
            exemption = min(gain, rules.equity_ltcg_exemption)
            result = _flat_computation(
                gain, max(0.0, gain - exemption), rules.equity_ltcg_rate,
                REGIME_EQUITY_LTCG, rules, exemption=exemption,
            )
    elif treatment in (AssetTreatment.INDEXABLE, AssetTreatment.DIGITAL):
        if holding.is_short_term:
            result = _slab_computation(gain, REGIME_NON_EQUITY_STCG, rules)
        elif indexation is not None and indexation.applies:
            indexed_gain = max(0.0, asset.disposal_proceeds - indexation.final_indexed_cost)
            result = _flat_computation(
                indexed_gain, indexed_gain, rules.non_equity_ltcg_rate,
                REGIME_NON_EQUITY_LTCG_INDEXED, rules,
            )
        else:
            result = _flat_computation(
                gain, gain, rules.non_equity_ltcg_rate, REGIME_NON_EQUITY_LTCG, rules
            )
    else:
        raise ValueError(f"Unhandled asset treatment: {treatment}")

    logger.debug("Tax regime %s: taxable %.2f, liability %.2f",
                 result.regime, result.taxable_amount, result.total_liability)
    return result


def summarize_capital_gains(
    redemption_lots: Iterable[RedemptionLot],
    equity_like: bool,
    rules: Optional[TaxRulesConfig] = None,
) -> CapitalGainsSummary:
    """
    Aggregate redemption lots into STCG/LTCG totals.

    A net short-term loss is set off against long-term gains first;
    the equity LTCG exemption then applies to what remains. A long-term
    loss is never set off against short-term gains.

    Args:
        redemption_lots: Lots consumed by the redemption
        equity_like: Whether the fund is taxed like equity
        rules: Rule set to use (default: the active rule set)

    Returns:
        CapitalGainsSummary with taxable totals
    """
    rules = rules or get_active_rules()
    stcg_amount = ltcg_amount = 0.0
    stcg_lots = ltcg_lots = 0
    for lot in redemption_lots:
        if lot.gain_type is GainType.LTCG:
            ltcg_amount += lot.gain
            ltcg_lots += 1
        else:
            stcg_amount += lot.gain
            stcg_lots += 1

    set_off = min(-stcg_amount, max(0.0, ltcg_amount)) if stcg_amount < 0 else 0.0
    ltcg_after_set_off = ltcg_amount - set_off

    exemption = 0.0
    if equity_like and ltcg_after_set_off > 0:
        exemption = min(ltcg_after_set_off, rules.equity_ltcg_exemption)

    taxable_stcg = max(0.0, stcg_amount)
    taxable_ltcg = max(0.0, ltcg_after_set_off - exemption)

    return CapitalGainsSummary(
        stcg_amount=stcg_amount,
        ltcg_amount=ltcg_amount,
        total_gain=stcg_amount + ltcg_amount,
        stcg_lots=stcg_lots,
        ltcg_lots=ltcg_lots,
        stcg_loss_set_off=set_off,
        exemption=exemption,
        taxable_stcg=taxable_stcg,
        taxable_ltcg=taxable_ltcg,
        total_taxable=taxable_stcg + taxable_ltcg,
    )


def compute_redemption_tax(
    capital_gains: CapitalGainsSummary,
    equity_like: bool,
    rules: Optional[TaxRulesConfig] = None,
) -> RedemptionTax:
    """
    Tax on a redemption's capital-gains summary.

    Equity-like funds pay the flat STCG and LTCG rates. Other funds are
    taxed at slab rates on the combined taxable amount, plus surcharge;
    the slab tax is apportioned between STCG and LTCG by amount.
    """
    rules = rules or get_active_rules()

    if equity_like:
        stcg_tax = capital_gains.taxable_stcg * rules.equity_stcg_rate
        ltcg_tax = capital_gains.taxable_ltcg * rules.equity_ltcg_rate
        base_tax = stcg_tax + ltcg_tax
        surcharge = 0.0
        breakdown = None
    else:
        rows: List[SlabBreakdownRow] = []
        total_taxable = capital_gains.total_taxable
        base_tax = slab_tax(total_taxable, rules, rows)
        surcharge = base_tax * surcharge_rate(total_taxable, rules)
        if total_taxable > 0:
            stcg_tax = base_tax * capital_gains.taxable_stcg / total_taxable
        else:
            stcg_tax = 0.0
        ltcg_tax = base_tax - stcg_tax
        breakdown = tuple(rows) or None

    cess = (base_tax + surcharge) * rules.cess_rate
    return RedemptionTax(
        stcg_tax=stcg_tax,
        ltcg_tax=ltcg_tax,
        base_tax=base_tax,
        surcharge=surcharge,
        cess=cess,
        total_liability=base_tax + surcharge + cess,
        slab_breakdown=breakdown,
    )
