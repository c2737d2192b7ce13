"""
Investment tax calculation engine.

This module provides the orchestrators that run the full pipeline and
assemble the result bundles: AssetTaxCalculator for a single disposal
and SIPTaxCalculator for periodic / lump-sum fund investments.

Each call takes one rule-set snapshot and uses it for every stage.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from .classification import DEFAULT_POLICY, ClassificationPolicy
from .compliance import build_compliance_mapping, build_sip_compliance_mapping
from .holding import is_equity_fund
from .insights import generate_asset_insights, generate_sip_insights
from .interfaces import IPriceSource, IRulesProvider
from .lots import (
    PriceSeries,
    apply_fifo_redemption,
    build_lots,
    calculate_holding_periods,
    calculate_investment_summary,
    calculate_sip_by_formula,
    open_lots,
    open_units,
    units_to_redeem,
    update_lots_with_current_value,
)
from .models import (
    AssetInput,
    AssetSummary,
    AssetTaxResult,
    AssetTreatment,
    FundType,
    RedemptionLot,
    SIPInput,
    SIPTaxResult,
)
from .rules import TaxRulesConfig, get_default_store
from .simulation import calculate_post_tax_metrics, evaluate_disposal, simulate_exits
from .tax import compute_redemption_tax, summarize_capital_gains
from .utils import format_currency_inr

logger = logging.getLogger(__name__)


def _surcharge_floor(rules: TaxRulesConfig) -> Optional[float]:
    return rules.surcharge_bands[0].floor if rules.surcharge_bands else None


class AssetTaxCalculator:
    """
    Calculator for a single asset disposal.

    Runs holding period, classification, indexation, tax, insights and
    compliance mapping, and attaches advisory warnings.

    Example:
        >>> calculator = AssetTaxCalculator()
        >>> result = calculator.calculate(asset)
        >>> print(f"Tax liability: ₹{result.tax.total_liability:,.2f}")
    """

    def __init__(
        self,
        rules_provider: Optional[IRulesProvider] = None,
        policy: ClassificationPolicy = DEFAULT_POLICY,
    ):
        """
        Initialize the calculator.

        Args:
            rules_provider: Source of the active rule set (default: the process-wide store)
            policy: Business-income heuristic
        """
        self.rules_provider = rules_provider or get_default_store()
        self.policy = policy

    def calculate(self, asset: AssetInput) -> AssetTaxResult:
        """
        Compute the full result bundle for a disposal.

        Raises:
            InvalidInputError: If the input violates the data-model invariants
        """
        asset.validate()
        rules = self.rules_provider.get_active_rules()

        holding, classification, indexation, tax = evaluate_disposal(asset, rules, self.policy)
        insights = generate_asset_insights(
            asset, classification, holding, indexation, tax, rules, self.policy
        )
        compliance = build_compliance_mapping(asset, classification, tax, indexation)

        logger.info("%s disposal: %s (%s), liability %.2f",
                    asset.category.label, classification.income_type.value,
                    classification.gain_type.value, tax.total_liability)

        return AssetTaxResult(
            summary=AssetSummary(
                category=asset.category,
                category_label=asset.category.label,
                acquisition_cost=asset.acquisition_cost,
                disposal_proceeds=asset.disposal_proceeds,
                gain_or_loss=asset.gain_or_loss,
                jurisdiction=asset.jurisdiction,
                holding_intent=asset.holding_intent,
                frequency=asset.frequency,
            ),
            classification=classification,
            holding_period=holding,
            indexation=indexation,
            tax=tax,
            insights=tuple(insights),
            compliance=compliance,
            warnings=tuple(self._warnings(asset, indexation, tax, rules)),
        )

    def _warnings(self, asset, indexation, tax, rules: TaxRulesConfig) -> List[str]:
        warnings = []
        if asset.gain_or_loss < 0:
            warnings.append(
                f"Capital loss of {format_currency_inr(-asset.gain_or_loss)}: only gain "
                "scenarios are fully computed; set-off and carry-forward are not applied."
            )
        floor = _surcharge_floor(rules)
        if floor is not None and tax.taxable_amount > floor:
            warnings.append(
                f"Taxable amount exceeds {format_currency_inr(floor)}: surcharge may apply "
                "on total income beyond this disposal."
            )
        if asset.category.treatment is AssetTreatment.DIGITAL:
            warnings.append(
                "Crypto / VDA: 1% TDS under Sec 194S applies on transfer; "
                "report the disposal in Schedule VDA."
            )
        if tax.registration_advisory:
            warnings.append(
                "High-frequency trading classified as business income: GST / "
                "turnover-based registration may be required."
            )
        if indexation is not None and not indexation.applies:
            warnings.append(
                f"Cost Inflation Index unavailable (FY {indexation.source_fiscal_year} → "
                f"FY {indexation.target_fiscal_year}); long-term gain computed without indexation."
            )
        return warnings


class SIPTaxCalculator:
    """
    Calculator for periodic (SIP) and lump-sum fund investments.

    Builds lots, redeems them FIFO at the exit price, computes the
    capital-gains summary, tax and post-tax metrics, simulates alternative
    exit dates and maps the result onto Schedule CG.

    Example:
        >>> calculator = SIPTaxCalculator(max_workers=4)
        >>> result = calculator.calculate(sip, as_of=date(2025, 6, 30))
        >>> optimal = next(s for s in result.exit_simulations if s.is_optimal)
    """

    def __init__(
        self,
        rules_provider: Optional[IRulesProvider] = None,
        max_workers: Optional[int] = None,
    ):
        self.rules_provider = rules_provider or get_default_store()
        self.max_workers = max_workers

    def calculate(
        self,
        sip: SIPInput,
        as_of: Optional[date] = None,
        prices: Optional[IPriceSource] = None,
        prior_redemptions: Iterable[RedemptionLot] = (),
    ) -> SIPTaxResult:
        """
        Compute the full result bundle for an investment and its exit.

        Args:
            sip: Investment and intended exit
            as_of: "Today" for the exit-now simulation (default: date.today())
            prices: Price lookup (default: derived from the input's history / growth rate)
            prior_redemptions: Lots consumed by earlier redemption events

        Raises:
            InvalidInputError: If the input violates the data-model invariants
        """
        sip.validate()
        rules = self.rules_provider.get_active_rules()
        prior_redemptions = tuple(prior_redemptions)
        equity_like = is_equity_fund(sip.fund_type, sip.equity_percentage, rules)
        series = prices or PriceSeries.from_sip(sip)

        projection = calculate_sip_by_formula(sip)
        lots = build_lots(sip, series)
        exit_price = series.price_on(sip.exit_date)
        valued_lots = update_lots_with_current_value(
            calculate_holding_periods(lots, sip.exit_date, equity_like, rules), exit_price
        )

        redeemed = apply_fifo_redemption(
            lots, sip, exit_price, prior_redemptions=prior_redemptions, rules=rules
        )
        capital_gains = summarize_capital_gains(redeemed, equity_like, rules)
        tax = compute_redemption_tax(capital_gains, equity_like, rules)
        summary = calculate_investment_summary(
            open_lots(lots, prior_redemptions), exit_price, sip.exit_date
        )
        post_tax = calculate_post_tax_metrics(summary, tax)

        simulations = simulate_exits(
            sip, lots, rules, as_of=as_of, max_workers=self.max_workers, prices=series
        )
        insights = generate_sip_insights(
            sip, valued_lots, redeemed, capital_gains, simulations, rules
        )
        compliance = build_sip_compliance_mapping(sip, capital_gains, tax, equity_like)

        warnings = []
        available = sum(open_units(lots, prior_redemptions).values())
        _, capped = units_to_redeem(sip, exit_price, available)
        if capped:
            warnings.append(
                f"Partial redemption of {format_currency_inr(sip.partial_redemption_amount)} "
                f"exceeds holdings; capped at {available:.4f} units."
            )
        if not sip.price_history and sip.expected_cagr is None and prices is None:
            warnings.append(
                "No price history or growth rate supplied; a flat unit price of 100 was assumed."
            )
        if sip.fund_type is FundType.HYBRID_FUND and sip.equity_percentage is None:
            warnings.append(
                "Equity percentage not supplied for hybrid fund; taxed as a non-equity fund."
            )
        floor = _surcharge_floor(rules)
        if not equity_like and floor is not None and capital_gains.total_taxable > floor:
            warnings.append(
                f"Taxable gain exceeds {format_currency_inr(floor)}: surcharge may apply "
                "on total income beyond this redemption."
            )

        logger.info("%s %s: %d lots, %d redeemed, liability %.2f",
                    sip.fund_type.value, sip.mode.value, len(lots), len(redeemed),
                    tax.total_liability)

        return SIPTaxResult(
            summary=summary,
            projection=projection,
            lots=valued_lots,
            redemption_lots=redeemed,
            capital_gains=capital_gains,
            tax=tax,
            post_tax=post_tax,
            exit_simulations=simulations,
            insights=tuple(insights),
            compliance=compliance,
            warnings=tuple(warnings),
        )
