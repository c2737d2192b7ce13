"""
Unit tests for the calculation orchestrators.
"""

from dataclasses import replace
from datetime import date

import pytest

from investment_tax.calculator import AssetTaxCalculator, SIPTaxCalculator
from investment_tax.lots import PriceSeries
from investment_tax.models import (
    AssetCategory,
    AssetInput,
    FundType,
    GainType,
    HoldingIntent,
    IncomeType,
    InvalidInputError,
    PricePoint,
    RedemptionType,
    TransactionFrequency,
)
from investment_tax.rules import FY_2025_26_RULES, RulesStore, TaxRulesConfig


class TestAssetTaxCalculator:
    """Tests for AssetTaxCalculator."""

    @pytest.fixture
    def calculator(self, rules_store):
        """Create calculator instance."""
        return AssetTaxCalculator(rules_provider=rules_store)

    def test_equity_ltcg_within_exemption(self, calculator, equity_ltcg_asset):
        """Test ₹80,000 long-term equity gain is fully exempt."""
        result = calculator.calculate(equity_ltcg_asset)

        assert result.classification.income_type is IncomeType.CAPITAL_GAINS
        assert result.classification.gain_type is GainType.LTCG
        assert result.holding_period.holding_days == 400
        assert result.tax.exemption == pytest.approx(80000.0)
        assert result.tax.total_liability == 0.0
        assert result.indexation is None
        assert result.summary.gain_or_loss == pytest.approx(80000.0)
        assert result.summary.category_label == "Listed Equity Shares"
        assert result.compliance.schedule_cg
        assert result.warnings == ()

    def test_property_indexation(self, property_asset, cii_rules):
        """Test indexed property sale with no taxable gain."""
        calculator = AssetTaxCalculator(rules_provider=RulesStore(cii_rules))
        result = calculator.calculate(property_asset)

        assert result.indexation.applies
        assert result.indexation.final_indexed_cost == pytest.approx(3000000.0)
        assert result.indexation.tax_without_indexation == pytest.approx(200000.0)
        assert result.tax.total_liability == 0.0
        assert "indexation_saving" in [i.kind for i in result.insights]

    def test_digital_asset(self, calculator, crypto_asset):
        """Test crypto is taxed without indexation and mapped to Schedule VDA."""
        result = calculator.calculate(crypto_asset)

        assert result.indexation is None
        assert result.classification.income_type is IncomeType.CAPITAL_GAINS
        assert result.compliance.schedule_vda
        assert any("194S" in w for w in result.warnings)

    def test_business_income_warning(self, calculator, equity_ltcg_asset):
        """Test high-frequency trading raises the registration warning."""
        asset = replace(
            equity_ltcg_asset,
            holding_intent=HoldingIntent.TRADING,
            frequency=TransactionFrequency.HIGH,
        )
        result = calculator.calculate(asset)

        assert result.tax.registration_advisory
        assert result.compliance.schedule_bp
        assert any("registration" in w for w in result.warnings)

    def test_loss_warning(self, calculator, equity_ltcg_asset):
        """Test a loss yields zero liability and a warning."""
        result = calculator.calculate(replace(equity_ltcg_asset, disposal_proceeds=90000.0))

        assert result.tax.total_liability == 0.0
        assert any("Capital loss" in w for w in result.warnings)

    def test_surcharge_warning(self, calculator):
        """Test a large taxable amount raises the surcharge warning."""
        asset = AssetInput(
            category=AssetCategory.PRECIOUS_METAL,
            acquisition_date=date(2024, 1, 1),
            acquisition_cost=1000000.0,
            disposal_date=date(2024, 12, 1),
            disposal_proceeds=7000000.0,
        )
        result = calculator.calculate(asset)

        assert result.tax.surcharge > 0
        assert any("surcharge" in w for w in result.warnings)

    def test_cii_unavailable_warning(self, calculator, property_asset):
        """Test a sale in a year without CII warns and falls back."""
        result = calculator.calculate(replace(property_asset, disposal_date=date(2026, 6, 1)))

        assert not result.indexation.applies
        assert any("Cost Inflation Index unavailable" in w for w in result.warnings)

    def test_invalid_dates(self, calculator, equity_ltcg_asset):
        """Test disposal before acquisition is rejected."""
        asset = replace(equity_ltcg_asset, disposal_date=date(2023, 1, 1))

        with pytest.raises(InvalidInputError):
            calculator.calculate(asset)

    def test_negative_cost(self, calculator, equity_ltcg_asset):
        """Test negative money is rejected."""
        with pytest.raises(InvalidInputError):
            calculator.calculate(replace(equity_ltcg_asset, acquisition_cost=-1.0))

    def test_idempotent(self, calculator, equity_ltcg_asset):
        """Test identical inputs give identical results."""
        assert calculator.calculate(equity_ltcg_asset) == calculator.calculate(equity_ltcg_asset)

    def test_rules_snapshot(self, equity_ltcg_asset):
        """Test a new rule set changes later results."""
        store = RulesStore(FY_2025_26_RULES)
        calculator = AssetTaxCalculator(rules_provider=store)
        before = calculator.calculate(equity_ltcg_asset)

        data = FY_2025_26_RULES.to_dict()
        data["equity_ltcg_exemption"] = 0.0
        store.set_active_rules(TaxRulesConfig.from_dict(data))
        after = calculator.calculate(equity_ltcg_asset)

        assert before.tax.total_liability == 0.0
        assert after.tax.total_liability == pytest.approx(80000.0 * 0.125 * 1.04)

    def test_to_dict(self, calculator, equity_ltcg_asset):
        """Test JSON export."""
        data = calculator.calculate(equity_ltcg_asset).to_dict()

        assert data["summary"]["category"] == "listed_equity"
        assert data["holding_period"]["acquisition_date"] == "2024-01-01"
        assert data["classification"]["gain_type"] == "LTCG"


class TestSIPTaxCalculator:
    """Tests for SIPTaxCalculator."""

    @pytest.fixture
    def calculator(self, rules_store):
        """Create calculator instance."""
        return SIPTaxCalculator(rules_provider=rules_store)

    def test_monthly_sip(self, calculator, monthly_sip, as_of):
        """Test 24 lots split into 11 LTCG and 13 STCG."""
        result = calculator.calculate(monthly_sip, as_of=as_of)

        assert len(result.lots) == 24
        assert len(result.redemption_lots) == 24
        assert result.capital_gains.ltcg_lots == 11
        assert result.capital_gains.stcg_lots == 13
        assert result.summary.total_invested == pytest.approx(240000.0)
        assert result.projection.installments == 24
        assert result.lots[0].current_value is not None
        assert result.lots[0].is_long_term
        assert result.lots[-1].is_short_term
        assert sum(1 for s in result.exit_simulations if s.is_optimal) == 1
        assert result.compliance.schedule_cg
        assert result.warnings == ()

    def test_tax_matches_gains(self, calculator, monthly_sip, as_of, rules):
        """Test equity fund tax uses the flat rates."""
        result = calculator.calculate(monthly_sip, as_of=as_of)
        gains = result.capital_gains

        expected = (gains.taxable_stcg * 0.20 + gains.taxable_ltcg * 0.125) * 1.04
        assert result.tax.total_liability == pytest.approx(expected)
        assert result.post_tax.post_tax_value == pytest.approx(
            result.summary.market_value - result.tax.total_liability
        )

    def test_flat_price_warning(self, calculator, monthly_sip, as_of):
        """Test no history and no growth rate assumes a flat price."""
        result = calculator.calculate(replace(monthly_sip, expected_cagr=None), as_of=as_of)

        assert result.summary.total_gain == pytest.approx(0.0)
        assert result.tax.total_liability == 0.0
        assert any("flat unit price" in w for w in result.warnings)

    def test_price_history_used(self, calculator, monthly_sip, as_of):
        """Test supplied NAV history prices the lots."""
        sip = replace(
            monthly_sip,
            expected_cagr=None,
            price_history=(PricePoint(date(2023, 1, 1), 50.0), PricePoint(date(2024, 1, 1), 80.0)),
        )
        result = calculator.calculate(sip, as_of=as_of)

        assert result.lots[0].price == 50.0
        assert result.summary.exit_price == 80.0

    def test_explicit_price_source(self, calculator, monthly_sip, as_of):
        """Test a caller-supplied price source overrides the input."""
        result = calculator.calculate(
            monthly_sip, as_of=as_of, prices=PriceSeries(history=[PricePoint(date(2020, 1, 1), 10.0)])
        )

        assert result.summary.exit_price == 10.0

    def test_partial_capped_warning(self, calculator, monthly_sip, as_of):
        """Test a partial redemption above holdings is capped with a warning."""
        sip = replace(
            monthly_sip,
            redemption_type=RedemptionType.PARTIAL,
            partial_redemption_amount=10000000.0,
        )
        result = calculator.calculate(sip, as_of=as_of)

        assert len(result.redemption_lots) == 24
        assert any("capped" in w for w in result.warnings)

    def test_hybrid_without_equity_percentage(self, calculator, monthly_sip, as_of):
        """Test hybrid fund without equity share is taxed as non-equity."""
        result = calculator.calculate(
            replace(monthly_sip, fund_type=FundType.HYBRID_FUND), as_of=as_of
        )

        assert result.capital_gains.exemption == 0.0
        assert result.compliance.autofill["ScheduleCG"]["STCGSection"] == "50AA"
        assert any("Equity percentage" in w for w in result.warnings)

    def test_prior_redemptions(self, calculator, monthly_sip, as_of):
        """Test earlier redemptions are not redeemed again."""
        partial = replace(
            monthly_sip,
            redemption_type=RedemptionType.PARTIAL,
            partial_redemption_amount=50000.0,
        )
        first = calculator.calculate(partial, as_of=as_of)
        second = calculator.calculate(
            monthly_sip, as_of=as_of, prior_redemptions=first.redemption_lots
        )

        total_units = sum(lot.units for lot in first.lots)
        redeemed = sum(lot.units for lot in first.redemption_lots + second.redemption_lots)
        assert redeemed == pytest.approx(total_units)

        first_units = sum(lot.units for lot in first.redemption_lots)
        first_invested = sum(lot.invested_amount for lot in first.redemption_lots)
        assert second.summary.total_units == pytest.approx(total_units - first_units)
        assert second.summary.total_invested == pytest.approx(240000.0 - first_invested)
        assert second.summary.market_value == pytest.approx(
            second.summary.total_units * second.summary.exit_price
        )
        assert first.summary.total_units == pytest.approx(total_units)

    def test_invalid_amount(self, calculator, monthly_sip):
        """Test non-positive amount is rejected."""
        with pytest.raises(InvalidInputError):
            calculator.calculate(replace(monthly_sip, amount=0.0))

    def test_threaded_same_result(self, rules_store, monthly_sip, as_of):
        """Test worker threads do not change the result."""
        serial = SIPTaxCalculator(rules_provider=rules_store).calculate(monthly_sip, as_of=as_of)
        threaded = SIPTaxCalculator(rules_provider=rules_store, max_workers=3).calculate(
            monthly_sip, as_of=as_of
        )

        assert serial == threaded
