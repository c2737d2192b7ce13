"""
Income classification engine.

Classifies a disposal as Capital Gains or Business Income from the
declared holding intent, transaction frequency, asset category and
holding period. Every factor considered is recorded, in evaluation
order, so the outcome can be audited.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .holding import classify_holding_period
from .models import (
    AssetInput,
    AssetTreatment,
    Classification,
    ClassificationFactor,
    GainType,
    HoldingIntent,
    HoldingPeriodDetail,
    IncomeType,
    TransactionFrequency,
)
from .rules import TaxRulesConfig, get_active_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationPolicy:
    """
    Business-income heuristic.

    The defaults reproduce the established behaviour: trading intent with
    medium or high frequency is business income. The short-holding
    tie-break (holding under ``short_holding_days`` at medium frequency)
    is always reported as a factor; it only decides the outcome when
    ``medium_requires_short_holding`` is set. The thresholds have no
    statutory citation and should be reviewed by a tax professional.
    """
    business_min_frequency: TransactionFrequency = TransactionFrequency.MEDIUM
    short_holding_days: int = 90
    medium_requires_short_holding: bool = False


DEFAULT_POLICY = ClassificationPolicy()

CATEGORY_NOTES: Dict[AssetTreatment, str] = {
    AssetTreatment.EQUITY: (
        "Listed equity / equity fund – concessional flat rates (Sec 111A / 112A)."
    ),
    AssetTreatment.DEBT_FUND: (
        "Debt fund – gains taxed at slab rates irrespective of holding period."
    ),
    AssetTreatment.INDEXABLE: (
        "Non-equity capital asset – cost indexation available on long-term gains."
    ),
    AssetTreatment.DIGITAL: (
        "Crypto / VDA – treated as capital gains by default, no indexation; "
        "frequent trading with trading intent may invite Business Income treatment."
    ),
}

FREQUENCY_OUTCOMES: Dict[TransactionFrequency, str] = {
    TransactionFrequency.LOW: "Low → supports Capital Gains",
    TransactionFrequency.MEDIUM: "Medium → neutral",
    TransactionFrequency.HIGH: "High → supports Business Income",
}


def classify_income(
    asset: AssetInput,
    holding: Optional[HoldingPeriodDetail] = None,
    rules: Optional[TaxRulesConfig] = None,
    policy: ClassificationPolicy = DEFAULT_POLICY,
) -> Classification:
    """
    Classify the income arising from a disposal.

    Factors are evaluated in order: holding intent, transaction
    frequency, short-holding tie-break (trading at medium frequency),
    asset category note, holding period.

    Args:
        asset: Disposal to classify
        holding: Pre-computed holding period (computed if omitted)
        rules: Rule set to use (default: the active rule set)
        policy: Business-income heuristic

    Returns:
        Classification with factors and rationale
    """
    rules = rules or get_active_rules()
    holding = holding or classify_holding_period(asset, rules)
    factors: List[ClassificationFactor] = []

    is_trading = asset.holding_intent is HoldingIntent.TRADING
    factors.append(ClassificationFactor(
        "Mode of holding",
        "Trading → may support Business Income" if is_trading
        else "Investment → supports Capital Gains",
    ))

    factors.append(ClassificationFactor(
        "Transaction frequency", FREQUENCY_OUTCOMES[asset.frequency]
    ))

    short_holding = holding.holding_days < policy.short_holding_days
    if is_trading and asset.frequency is TransactionFrequency.MEDIUM:
        factors.append(ClassificationFactor(
            "Short holding",
            f"Held {holding.holding_days} days < {policy.short_holding_days} → "
            "reinforces Business Income" if short_holding
            else f"Held {holding.holding_days} days ≥ {policy.short_holding_days} → "
                 "no short-holding signal",
        ))

    factors.append(ClassificationFactor("Asset type", CATEGORY_NOTES[asset.category.treatment]))

    term_gain = GainType.STCG if holding.is_short_term else GainType.LTCG
    factors.append(ClassificationFactor(
        "Holding period",
        f"{holding.holding_months} months "
        f"{'≤' if holding.is_short_term else '>'} {holding.threshold_months} months "
        f"→ {term_gain.value}",
    ))

    business = False
    if is_trading and asset.frequency.weight >= policy.business_min_frequency.weight:
        if asset.frequency is TransactionFrequency.MEDIUM and policy.medium_requires_short_holding:
            business = short_holding
        else:
            business = True

    if business:
        income_type, gain_type = IncomeType.BUSINESS_INCOME, GainType.BUSINESS
        factors.append(ClassificationFactor(
            "Classification result",
            f"Trading intent with {asset.frequency.value} frequency suggests Business Income. "
            "Report in ITR Schedule BP.",
        ))
    else:
        income_type, gain_type = IncomeType.CAPITAL_GAINS, term_gain
        factors.append(ClassificationFactor(
            "Classification result",
            f"Treated as Capital Gains ({gain_type.value}). Report in ITR Schedule CG.",
        ))

    logger.debug("Classified %s disposal as %s (%s)",
                 asset.category.value, income_type.value, gain_type.value)

    return Classification(
        income_type=income_type,
        gain_type=gain_type,
        factors=tuple(factors),
        rationale=_build_rationale(income_type, gain_type, factors),
    )


def _build_rationale(
    income_type: IncomeType, gain_type: GainType, factors: List[ClassificationFactor]
) -> str:
    if income_type is IncomeType.BUSINESS_INCOME:
        main = (
            "Based on the trading intent and transaction frequency, this gain is classified "
            "as Business Income, added to other income and taxed at slab rates."
        )
    else:
        main = (
            f"This gain is classified as Capital Gains ({gain_type.value}). "
            + ("Long-term rates and indexation (where applicable) apply."
               if gain_type is GainType.LTCG else "Short-term rates apply.")
        )
    considered = " ".join(
        f"{i}. {f.factor}: {f.outcome}" for i, f in enumerate(factors, 1)
    )
    return f"{main} Factors considered: {considered}"
