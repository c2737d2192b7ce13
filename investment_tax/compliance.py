"""
Compliance mapping.

Translates computed results into ITR schedule flags, reconciliation
flags and an autofill payload keyed by schedule and statutory field
name. No tax is computed here; every value is copied or derived from
the upstream stages.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .models import (
    AssetCategory,
    AssetInput,
    AssetTreatment,
    CapitalGainsSummary,
    Classification,
    ComplianceMapping,
    GainType,
    IndexationResult,
    RedemptionTax,
    SIPInput,
    TaxComputation,
)
from .rules import fiscal_year_for_date
from .utils import get_advance_tax_quarter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionResolution:
    """
    Outcome of resolving the Schedule CG section for a gain.

    ``section`` is None when ``found`` is False; ``reason`` explains
    either outcome.
    """
    found: bool
    section: Optional[str]
    reason: str


def resolve_schedule_section(treatment: AssetTreatment, gain_type: GainType) -> SectionResolution:
    """
    Resolve the Income Tax Act section a gain is reported under.

    Examples:
        >>> resolve_schedule_section(AssetTreatment.EQUITY, GainType.LTCG).section
        '112A'
    """
    if gain_type is GainType.BUSINESS:
        return SectionResolution(False, None, "Business income is reported in Schedule BP")

    if treatment is AssetTreatment.EQUITY:
        if gain_type is GainType.STCG:
            return SectionResolution(True, "111A", "STCG on equity with STT paid")
        return SectionResolution(True, "112A", "LTCG on equity with STT paid")
    if treatment is AssetTreatment.DEBT_FUND:
        return SectionResolution(True, "50AA", "Specified mutual fund, deemed short-term")
    if treatment is AssetTreatment.INDEXABLE:
        if gain_type is GainType.STCG:
            return SectionResolution(True, "Normal rates", "STCG other than Sec 111A")
        return SectionResolution(True, "112", "LTCG other than Sec 112A")
    if treatment is AssetTreatment.DIGITAL:
        return SectionResolution(True, "VDA", "Virtual digital asset transfer (Schedule VDA)")
    return SectionResolution(False, None, f"No section mapping for treatment {treatment.value}")


def _money(amount: float) -> float:
    return round(amount, 2)


def build_compliance_mapping(
    asset: AssetInput,
    classification: Classification,
    tax: TaxComputation,
    indexation: Optional[IndexationResult] = None,
) -> ComplianceMapping:
    """
    Map a single disposal onto ITR schedules.

    Args:
        asset: Disposal
        classification: Income classification
        tax: Tax computation
        indexation: Indexation result, copied into Schedule CG when it applies

    Returns:
        ComplianceMapping with schedule flags, reconciliation flags and autofill payload
    """
    treatment = asset.category.treatment
    transfer_date = asset.effective_disposal_date
    is_business = classification.is_business_income
    schedule_cg = not is_business
    schedule_vda = treatment is AssetTreatment.DIGITAL and not is_business
    resolution = resolve_schedule_section(treatment, classification.gain_type)

    flags: List[str] = []
    autofill: Dict[str, Dict[str, Any]] = {}

    if is_business:
        flags.append(
            "Business income: maintain books of account; tax audit (Sec 44AB) may apply "
            "if turnover exceeds the threshold."
        )
        autofill["ScheduleBP"] = {
            "NatureOfBusiness": f"Trading in {asset.category.label}",
            "Turnover": _money(asset.disposal_proceeds),
            "CostOfGoodsSold": _money(asset.total_cost),
            "NetProfit": _money(tax.realized_gain),
        }
    else:
        schedule = {
            "AssetCategory": asset.category.label,
            "DateOfAcquisition": asset.acquisition_date.isoformat(),
            "DateOfTransfer": transfer_date.isoformat(),
            "FullValueOfConsideration": _money(asset.disposal_proceeds),
            "CostOfAcquisition": _money(asset.acquisition_cost),
            "CostOfImprovement": _money(asset.total_improvement_cost),
            "ExpenditureOnTransfer": _money(asset.transfer_expenses),
            "GainType": classification.gain_type.value,
            "Section": resolution.section,
            "CapitalGain": _money(tax.realized_gain),
            "Exemption": _money(tax.exemption),
            "TaxableGain": _money(tax.taxable_amount),
            "QuarterOfTransfer": get_advance_tax_quarter(transfer_date),
        }
        if indexation is not None and indexation.applies:
            schedule["IndexedCostOfAcquisition"] = _money(indexation.indexed_acquisition_cost)
            schedule["IndexedCostOfImprovement"] = _money(
                sum(item.indexed_amount for item in indexation.indexed_improvements)
            )
        autofill["ScheduleCG"] = schedule
        if not resolution.found:
            flags.append(f"Schedule CG section unresolved: {resolution.reason}")

    if treatment is AssetTreatment.EQUITY:
        flags.append("Cross-check sale consideration with AIS (SFT-17 broker reported sales).")
    if asset.category in (AssetCategory.EQUITY_FUND, AssetCategory.DEBT_FUND):
        flags.append("Match redemption with the mutual fund capital gains statement (CAS).")
    if asset.category is AssetCategory.REAL_PROPERTY:
        flags.append(
            "Verify stamp duty value (Sec 50C) and TDS under Sec 194-IA reflected in Form 26AS."
        )
    if treatment is AssetTreatment.DIGITAL:
        flags.append("Reconcile 1% TDS under Sec 194S with Form 26AS / AIS.")
        autofill["ScheduleVDA"] = {
            "DateOfAcquisition": asset.acquisition_date.isoformat(),
            "DateOfTransfer": transfer_date.isoformat(),
            "CostOfAcquisition": _money(asset.acquisition_cost),
            "ConsiderationReceived": _money(asset.disposal_proceeds),
            "IncomeFromTransfer": _money(tax.realized_gain),
        }
    if treatment is AssetTreatment.INDEXABLE and classification.gain_type is GainType.LTCG:
        flags.append("Retain CII working and improvement invoices for assessment.")
    if asset.gain_or_loss < 0:
        flags.append("Capital loss: verify carry-forward eligibility in Schedule CFL.")
    if asset.is_foreign:
        flags.append(
            "Disclose in Schedule FA; claim foreign tax credit via Form 67 where applicable."
        )
        autofill["ScheduleFA"] = {
            "AssetCategory": asset.category.label,
            "DateOfAcquisition": asset.acquisition_date.isoformat(),
            "InitialValueOfInvestment": _money(asset.acquisition_cost),
            "SaleProceeds": _money(asset.disposal_proceeds),
        }

    autofill["Summary"] = {
        "FinancialYear": fiscal_year_for_date(transfer_date),
        "IncomeType": classification.income_type.value,
        "BaseTax": _money(tax.base_tax),
        "Surcharge": _money(tax.surcharge),
        "Cess": _money(tax.cess),
        "TotalTaxLiability": _money(tax.total_liability),
    }

    logger.debug("Compliance mapping: CG=%s BP=%s FA=%s VDA=%s, %d flags",
                 schedule_cg, is_business, asset.is_foreign, schedule_vda, len(flags))

    return ComplianceMapping(
        schedule_cg=schedule_cg,
        schedule_bp=is_business,
        schedule_fa=asset.is_foreign,
        schedule_vda=schedule_vda,
        reconciliation_flags=tuple(flags),
        autofill=autofill,
    )


def build_sip_compliance_mapping(
    sip: SIPInput,
    capital_gains: CapitalGainsSummary,
    tax: RedemptionTax,
    equity_like: bool,
) -> ComplianceMapping:
    """Map a fund redemption onto Schedule CG, one section per gain type."""
    treatment = AssetTreatment.EQUITY if equity_like else AssetTreatment.DEBT_FUND
    stcg_section = resolve_schedule_section(treatment, GainType.STCG)
    ltcg_section = resolve_schedule_section(treatment, GainType.LTCG)

    flags: List[str] = [
        "Match redemption with the mutual fund capital gains statement (CAS).",
    ]
    if equity_like:
        flags.append("Cross-check redemption value with AIS (SFT-17 reported transactions).")
    else:
        flags.append("Non-equity fund gains are taxed at slab rates; verify total income.")
    if capital_gains.stcg_loss_set_off > 0:
        flags.append("Short-term loss set off against long-term gain; verify in Schedule CG.")
    for resolution in (stcg_section, ltcg_section):
        if not resolution.found:
            flags.append(f"Schedule CG section unresolved: {resolution.reason}")

    autofill: Dict[str, Dict[str, Any]] = {
        "ScheduleCG": {
            "FundType": sip.fund_type.value,
            "DateOfTransfer": sip.exit_date.isoformat(),
            "QuarterOfTransfer": get_advance_tax_quarter(sip.exit_date),
            "STCG": _money(capital_gains.stcg_amount),
            "STCGSection": stcg_section.section,
            "LTCG": _money(capital_gains.ltcg_amount),
            "LTCGSection": ltcg_section.section,
            "LossSetOff": _money(capital_gains.stcg_loss_set_off),
            "Exemption": _money(capital_gains.exemption),
            "TaxableAmount": _money(capital_gains.total_taxable),
        },
        "Summary": {
            "FinancialYear": fiscal_year_for_date(sip.exit_date),
            "BaseTax": _money(tax.base_tax),
            "Surcharge": _money(tax.surcharge),
            "Cess": _money(tax.cess),
            "TotalTaxLiability": _money(tax.total_liability),
        },
    }

    return ComplianceMapping(
        schedule_cg=capital_gains.stcg_lots + capital_gains.ltcg_lots > 0,
        schedule_bp=False,
        schedule_fa=False,
        schedule_vda=False,
        reconciliation_flags=tuple(flags),
        autofill=autofill,
    )
