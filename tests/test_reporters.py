"""
Unit tests for report generators.
"""

from dataclasses import replace

import pytest

from investment_tax.calculator import AssetTaxCalculator, SIPTaxCalculator
from investment_tax.models import HoldingIntent, TransactionFrequency
from investment_tax.reports import ConsoleReporter
from investment_tax.rules import RulesStore


class TestConsoleReporter:
    """Tests for ConsoleReporter class."""

    @pytest.fixture
    def reporter(self):
        """Create reporter instance."""
        return ConsoleReporter()

    @pytest.fixture
    def asset_result(self, rules_store, equity_ltcg_asset):
        return AssetTaxCalculator(rules_provider=rules_store).calculate(equity_ltcg_asset)

    @pytest.fixture
    def sip_result(self, rules_store, monthly_sip, as_of):
        return SIPTaxCalculator(rules_provider=rules_store).calculate(monthly_sip, as_of=as_of)

    def test_asset_report(self, reporter, asset_result, capsys):
        """Test asset report sections."""
        reporter.generate(asset_result)

        captured = capsys.readouterr()
        assert "ASSET CAPITAL GAINS TAX REPORT" in captured.out
        assert "╔" in captured.out
        assert "╚" in captured.out
        assert "Listed Equity Shares" in captured.out
        assert "1y 1m" in captured.out
        assert "TOTAL TAX LIABILITY" in captured.out
        assert "ITR SCHEDULES" in captured.out
        assert "Schedule CG" in captured.out
        assert "OPTIMIZATION INSIGHTS" in captured.out
        assert "INDEXATION" not in captured.out

    def test_asset_report_indexation(self, reporter, property_asset, cii_rules, capsys):
        """Test indexation section for long-term property."""
        result = AssetTaxCalculator(rules_provider=RulesStore(cii_rules)).calculate(property_asset)
        reporter.generate(result)

        captured = capsys.readouterr()
        assert "INDEXATION" in captured.out
        assert "Tax saved by indexation" in captured.out

    def test_asset_report_warnings(self, reporter, rules_store, equity_ltcg_asset, capsys):
        """Test warnings are printed."""
        asset = replace(
            equity_ltcg_asset,
            holding_intent=HoldingIntent.TRADING,
            frequency=TransactionFrequency.HIGH,
        )
        reporter.generate(AssetTaxCalculator(rules_provider=rules_store).calculate(asset))

        captured = capsys.readouterr()
        assert "WARNINGS" in captured.out
        assert "[WARN]" in captured.out
        assert "Schedule BP" in captured.out

    def test_custom_title(self, reporter, asset_result, capsys):
        """Test title override."""
        reporter.print_asset_report(asset_result, title="WHAT IF")

        assert "WHAT IF" in capsys.readouterr().out

    def test_sip_report(self, reporter, sip_result, capsys):
        """Test SIP report sections."""
        reporter.generate(sip_result)

        captured = capsys.readouterr()
        assert "SIP REDEMPTION TAX REPORT" in captured.out
        assert "FIFO REDEMPTION" in captured.out
        assert "CAPITAL GAINS" in captured.out
        assert "EXIT SIMULATIONS" in captured.out
        assert "← optimal" in captured.out
        assert "TOTAL TAX LIABILITY" in captured.out
        assert "ITR SCHEDULES" in captured.out

    def test_unsupported_result(self, reporter):
        """Test unknown result types are rejected."""
        with pytest.raises(TypeError):
            reporter.generate({"not": "a result"})
