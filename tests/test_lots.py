"""
Unit tests for the FIFO lot engine.
"""

from dataclasses import replace
from datetime import date

import pytest

from investment_tax.lots import (
    PriceSeries,
    apply_fifo_redemption,
    build_lots,
    calculate_holding_periods,
    calculate_investment_summary,
    calculate_sip_by_formula,
    installment_dates,
    open_lots,
    open_units,
    units_to_redeem,
    update_lots_with_current_value,
)
from investment_tax.models import (
    Cadence,
    FundType,
    GainType,
    InvestmentMode,
    PricePoint,
    RedemptionType,
    SIPInput,
)


@pytest.fixture
def quarterly_sip():
    """Quarterly SIP with a supplied NAV history."""
    return SIPInput(
        fund_type=FundType.DEBT_FUND,
        mode=InvestmentMode.SIP,
        amount=30000.0,
        start_date=date(2023, 4, 1),
        exit_date=date(2024, 4, 1),
        cadence=Cadence.QUARTERLY,
        price_history=(
            PricePoint(date(2023, 4, 1), 10.0),
            PricePoint(date(2023, 7, 1), 12.0),
            PricePoint(date(2023, 10, 1), 15.0),
            PricePoint(date(2024, 1, 1), 20.0),
            PricePoint(date(2024, 4, 1), 25.0),
        ),
    )


class TestPriceSeries:
    """Tests for PriceSeries."""

    def test_history_latest_at_or_before(self):
        """Test the latest price on or before the date is used."""
        series = PriceSeries(history=[
            PricePoint(date(2024, 1, 1), 100.0),
            PricePoint(date(2024, 2, 1), 110.0),
        ])

        assert series.price_on(date(2024, 1, 31)) == 100.0
        assert series.price_on(date(2024, 2, 1)) == 110.0
        assert series.price_on(date(2025, 1, 1)) == 110.0

    def test_history_before_first_entry(self):
        """Test dates before the history use the earliest price."""
        series = PriceSeries(history=[PricePoint(date(2024, 1, 1), 100.0)])

        assert series.price_on(date(2023, 1, 1)) == 100.0

    def test_unsorted_history(self):
        """Test history is sorted before lookup."""
        series = PriceSeries(history=[
            PricePoint(date(2024, 2, 1), 110.0),
            PricePoint(date(2024, 1, 1), 100.0),
        ])

        assert series.price_on(date(2024, 1, 15)) == 100.0

    def test_cagr_growth(self):
        """Test compounding from the base date."""
        series = PriceSeries(expected_cagr=10.0, base_date=date(2024, 1, 1))

        assert series.price_on(date(2024, 1, 1)) == pytest.approx(100.0)
        assert series.price_on(date(2025, 1, 1)) == pytest.approx(100.0 * 1.1 ** (366 / 365.25))

    def test_flat_without_data(self):
        """Test flat base price without history or growth rate."""
        assert PriceSeries().price_on(date(2030, 1, 1)) == 100.0


class TestBuildLots:
    """Tests for installment dates and lot creation."""

    def test_monthly_installments(self, monthly_sip):
        """Test 24 monthly installments up to the exit date."""
        dates = installment_dates(monthly_sip)

        assert len(dates) == 24
        assert dates[0] == date(2023, 1, 15)
        assert dates[-1] == date(2024, 12, 15)

    def test_month_end_start_clamps(self, monthly_sip):
        """Test a 31st start date clamps in short months without drifting."""
        sip = replace(monthly_sip, start_date=date(2024, 1, 31), exit_date=date(2024, 4, 30))

        assert installment_dates(sip) == [
            date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30),
        ]

    def test_lump_sum_single_lot(self, monthly_sip):
        """Test lump sum creates one lot."""
        sip = replace(monthly_sip, mode=InvestmentMode.LUMP_SUM, cadence=None, amount=500000.0)
        lots = build_lots(sip)

        assert len(lots) == 1
        assert lots[0].invested_amount == 500000.0
        assert lots[0].units == pytest.approx(5000.0)

    def test_units_from_history(self, quarterly_sip):
        """Test lot units are amount / price on the contribution date."""
        lots = build_lots(quarterly_sip)

        assert [lot.price for lot in lots] == [10.0, 12.0, 15.0, 20.0, 25.0]
        assert lots[0].units == pytest.approx(3000.0)
        assert lots[-1].units == pytest.approx(1200.0)

    def test_enrichment_returns_copies(self, quarterly_sip, rules):
        """Test enrichment never mutates the input lots."""
        lots = build_lots(quarterly_sip)
        valued = update_lots_with_current_value(lots, 25.0)
        held = calculate_holding_periods(lots, date(2024, 4, 1), False, rules)

        assert lots[0].current_value is None
        assert lots[0].holding_months is None
        assert valued[0].current_value == pytest.approx(75000.0)
        assert held[0].holding_months == 12
        assert held[0].is_short_term


class TestFifoRedemption:
    """Tests for apply_fifo_redemption."""

    def test_full_redemption_classifies_each_lot(self, monthly_sip, rules):
        """Test 11 lots become LTCG and 13 stay STCG at the exit date."""
        lots = build_lots(monthly_sip)
        price = PriceSeries.from_sip(monthly_sip).price_on(monthly_sip.exit_date)
        redeemed = apply_fifo_redemption(lots, monthly_sip, price, rules=rules)

        types = [lot.gain_type for lot in redeemed]
        assert len(redeemed) == 24
        assert types[:11] == [GainType.LTCG] * 11
        assert types[11:] == [GainType.STCG] * 13
        assert sum(lot.units for lot in redeemed) == pytest.approx(sum(l.units for l in lots))

    def test_partial_redemption_oldest_first(self, quarterly_sip, rules):
        """Test a partial redemption consumes the oldest lot and part of the next."""
        sip = replace(
            quarterly_sip,
            redemption_type=RedemptionType.PARTIAL,
            partial_redemption_amount=100000.0,
        )
        lots = build_lots(sip)
        redeemed = apply_fifo_redemption(lots, sip, 25.0, rules=rules)

        # 4000 units: all 3000 of lot 1, then 1000 of lot 2's 2500
        assert len(redeemed) == 2
        assert redeemed[0].units == pytest.approx(3000.0)
        assert redeemed[1].units == pytest.approx(1000.0)
        assert redeemed[1].invested_amount == pytest.approx(12000.0)
        assert redeemed[1].gain == pytest.approx(25000.0 - 12000.0)
        assert redeemed[0].contribution_date < redeemed[1].contribution_date

    def test_partial_redemption_capped(self, quarterly_sip, rules):
        """Test a partial amount above the holdings redeems everything."""
        sip = replace(
            quarterly_sip,
            redemption_type=RedemptionType.PARTIAL,
            partial_redemption_amount=10000000.0,
        )
        lots = build_lots(sip)
        redeemed = apply_fifo_redemption(lots, sip, 25.0, rules=rules)

        assert sum(lot.units for lot in redeemed) == pytest.approx(sum(l.units for l in lots))
        assert units_to_redeem(sip, 25.0, 100.0) == (100.0, True)

    def test_prior_redemptions_not_reused(self, quarterly_sip, rules):
        """Test units consumed earlier are not redeemed twice."""
        partial = replace(
            quarterly_sip,
            redemption_type=RedemptionType.PARTIAL,
            partial_redemption_amount=100000.0,
        )
        lots = build_lots(partial)
        first = apply_fifo_redemption(lots, partial, 25.0, rules=rules)
        second = apply_fifo_redemption(
            lots, quarterly_sip, 25.0, prior_redemptions=first, rules=rules
        )

        assert second[0].contribution_date == date(2023, 7, 1)
        assert second[0].units == pytest.approx(1500.0)
        remaining = open_units(lots, first + second)
        assert all(units == pytest.approx(0.0) for units in remaining.values())

    def test_open_lots(self, quarterly_sip, rules):
        """Test open lots drop redeemed units and scale invested amounts."""
        partial = replace(
            quarterly_sip,
            redemption_type=RedemptionType.PARTIAL,
            partial_redemption_amount=100000.0,
        )
        lots = build_lots(partial)
        first = apply_fifo_redemption(lots, partial, 25.0, rules=rules)

        held = open_lots(lots, first)

        assert len(held) == 4
        assert held[0].contribution_date == date(2023, 7, 1)
        assert held[0].units == pytest.approx(1500.0)
        assert held[0].invested_amount == pytest.approx(18000.0)
        assert held[1:] == lots[2:]
        assert open_lots(lots) == lots

    def test_lots_after_exit_skipped(self, quarterly_sip, rules):
        """Test lots contributed after the redemption date are not held."""
        lots = build_lots(quarterly_sip)
        redeemed = apply_fifo_redemption(
            lots, quarterly_sip, 15.0, exit_date=date(2023, 10, 1), rules=rules
        )

        assert len(redeemed) == 3
        assert all(lot.redemption_date == date(2023, 10, 1) for lot in redeemed)

    def test_debt_fund_lots_short_term(self, quarterly_sip, rules):
        """Test non-equity lots under 24 months are STCG."""
        lots = build_lots(quarterly_sip)
        redeemed = apply_fifo_redemption(lots, quarterly_sip, 25.0, rules=rules)

        assert all(lot.gain_type is GainType.STCG for lot in redeemed)


class TestSummaryAndFormula:
    """Tests for investment summary and closed-form projection."""

    def test_investment_summary(self, quarterly_sip):
        """Test position totals."""
        lots = build_lots(quarterly_sip)
        summary = calculate_investment_summary(lots, 25.0, quarterly_sip.exit_date)

        total_units = 3000.0 + 2500.0 + 2000.0 + 1500.0 + 1200.0
        assert summary.total_invested == pytest.approx(150000.0)
        assert summary.total_units == pytest.approx(total_units)
        assert summary.market_value == pytest.approx(total_units * 25.0)
        assert summary.number_of_lots == 5
        assert summary.period_months == 12
        assert summary.period_days == 366

    def test_sip_formula(self, monthly_sip):
        """Test the annuity-due future value."""
        projection = calculate_sip_by_formula(monthly_sip)
        r = 0.12 / 12
        expected = 10000.0 * ((1 + r) ** 24 - 1) / r * (1 + r)

        assert projection.installments == 24
        assert projection.total_invested == pytest.approx(240000.0)
        assert projection.future_value == pytest.approx(expected)
        assert projection.estimated_returns == pytest.approx(expected - 240000.0)

    def test_sip_formula_without_growth(self, monthly_sip):
        """Test zero growth projects the amount invested."""
        projection = calculate_sip_by_formula(replace(monthly_sip, expected_cagr=None))

        assert projection.future_value == pytest.approx(240000.0)

    def test_lump_sum_formula(self, monthly_sip):
        """Test lump-sum compounding."""
        sip = replace(
            monthly_sip, mode=InvestmentMode.LUMP_SUM, cadence=None, amount=100000.0,
            start_date=date(2023, 1, 1), exit_date=date(2024, 1, 1),
        )
        projection = calculate_sip_by_formula(sip)

        assert projection.installments == 1
        assert projection.future_value == pytest.approx(100000.0 * 1.12 ** (365 / 365.25))
