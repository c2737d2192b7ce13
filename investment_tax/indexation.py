"""
Indexation engine.

Computes the CII-indexed cost of acquisition (and of each separately
dated improvement) for long-term disposals of indexable assets, and the
tax with and without indexation so the benefit can be shown explicitly.

Missing index data never raises: the result reports ``applies=False``
and every cost falls back to its un-indexed amount.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple

from .holding import classify_holding_period
from .models import (
    AssetInput,
    AssetTreatment,
    HoldingPeriodDetail,
    IndexationResult,
    IndexedImprovement,
)
from .rules import TaxRulesConfig, fiscal_year_for_date, get_active_rules

logger = logging.getLogger(__name__)


def source_index(incurred_on: date, rules: TaxRulesConfig) -> Tuple[str, Optional[float]]:
    """
    Fiscal year and CII used to index a cost incurred on ``incurred_on``.

    Costs incurred before the CII base year are indexed from the base
    year's index value.
    """
    if incurred_on < rules.base_year_start:
        label = rules.cii_base_fiscal_year
    else:
        label = fiscal_year_for_date(incurred_on)
    return label, rules.index_for(label)


def ltcg_tax_on(gain: float, rules: TaxRulesConfig) -> float:
    """Flat non-equity LTCG tax (before cess) on a non-negative gain."""
    return max(0.0, gain) * rules.non_equity_ltcg_rate


def compute_indexation(
    asset: AssetInput,
    holding: Optional[HoldingPeriodDetail] = None,
    rules: Optional[TaxRulesConfig] = None,
) -> Optional[IndexationResult]:
    """
    Compute the indexed cost for a disposal.

    Returns None unless the disposal is long-term and the category is
    indexable (precious metals, commodities, real property, foreign
    equity/property). Equity, debt funds and digital assets are never
    indexed.

    Args:
        asset: Disposal to index
        holding: Pre-computed holding period (computed if omitted)
        rules: Rule set to use (default: the active rule set)

    Returns:
        IndexationResult, or None when indexation does not apply
    """
    rules = rules or get_active_rules()
    treatment = asset.category.treatment
    if treatment is not AssetTreatment.INDEXABLE:
        return None

    holding = holding or classify_holding_period(asset, rules)
    if not holding.is_long_term:
        return None

    target_fy = fiscal_year_for_date(asset.effective_disposal_date)
    target_index = rules.index_for(target_fy)
    source_fy, source_idx = source_index(asset.acquisition_date, rules)

    un_indexed_gain = asset.disposal_proceeds - asset.total_cost
    tax_without = ltcg_tax_on(un_indexed_gain, rules)

    if not target_index or target_index <= 0 or not source_idx or source_idx <= 0:
        logger.warning(
            "CII unavailable (FY %s: %s, FY %s: %s); falling back to un-indexed cost",
            source_fy, source_idx, target_fy, target_index,
        )
        return _unindexed_result(asset, source_fy, source_idx, target_fy, target_index, tax_without)

    indexed_acquisition = asset.acquisition_cost * target_index / source_idx

    indexed_improvements: List[IndexedImprovement] = []
    for item in asset.improvements:
        item_fy, item_idx = source_index(item.incurred_on, rules)
        if item_idx and item_idx > 0:
            indexed_amount = item.amount * target_index / item_idx
        else:
            logger.warning("CII unavailable for improvement FY %s; using cost as incurred", item_fy)
            indexed_amount = item.amount
        indexed_improvements.append(IndexedImprovement(
            incurred_on=item.incurred_on,
            amount=item.amount,
            fiscal_year=item_fy,
            index_value=item_idx,
            indexed_amount=indexed_amount,
            description=item.description,
        ))

    total_indexed = indexed_acquisition + sum(i.indexed_amount for i in indexed_improvements)
    final_indexed = total_indexed + asset.transfer_expenses
    tax_with = ltcg_tax_on(asset.disposal_proceeds - final_indexed, rules)

    return IndexationResult(
        applies=True,
        source_fiscal_year=source_fy,
        target_fiscal_year=target_fy,
        source_index=source_idx,
        target_index=target_index,
        indexed_acquisition_cost=indexed_acquisition,
        indexed_improvements=tuple(indexed_improvements),
        total_indexed_cost=total_indexed,
        transfer_expenses=asset.transfer_expenses,
        final_indexed_cost=final_indexed,
        tax_with_indexation=tax_with,
        tax_without_indexation=tax_without,
        tax_saved=max(0.0, tax_without - tax_with),
    )


def _unindexed_result(
    asset: AssetInput,
    source_fy: str,
    source_idx: Optional[float],
    target_fy: str,
    target_index: Optional[float],
    tax_without: float,
) -> IndexationResult:
    improvements = tuple(
        IndexedImprovement(
            incurred_on=item.incurred_on,
            amount=item.amount,
            fiscal_year=fiscal_year_for_date(item.incurred_on),
            index_value=None,
            indexed_amount=item.amount,
            description=item.description,
        )
        for item in asset.improvements
    )
    total = asset.acquisition_cost + asset.total_improvement_cost
    return IndexationResult(
        applies=False,
        source_fiscal_year=source_fy,
        target_fiscal_year=target_fy,
        source_index=source_idx,
        target_index=target_index,
        indexed_acquisition_cost=asset.acquisition_cost,
        indexed_improvements=improvements,
        total_indexed_cost=total,
        transfer_expenses=asset.transfer_expenses,
        final_indexed_cost=total + asset.transfer_expenses,
        tax_with_indexation=tax_without,
        tax_without_indexation=tax_without,
        tax_saved=0.0,
    )
