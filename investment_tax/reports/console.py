"""
Console reporting module for investment tax results.

This module provides the ConsoleReporter class for printing formatted
text reports of asset and SIP calculations.
"""

from typing import Any, Iterable, Optional, Tuple

from ..interfaces import BaseReporter
from ..models import (
    AssetTaxResult,
    ComplianceMapping,
    OptimizationInsight,
    SIPTaxResult,
    SlabBreakdownRow,
)

WIDTH = 90


def _box_top(title: str) -> None:
    print("\n")
    print("╔" + "═" * WIDTH + "╗")
    print("║" + f" {title} ".center(WIDTH) + "║")
    print("╠" + "═" * WIDTH + "╣")


def _section(title: str) -> None:
    print("║" + " ".ljust(WIDTH) + "║")
    print("║   " + title.ljust(WIDTH - 3) + "║")
    print("╟" + "─" * WIDTH + "╢")


def _text(text: str, indent: int = 3) -> None:
    print("║" + (" " * indent + text)[:WIDTH].ljust(WIDTH) + "║")


def _amount(label: str, amount: float) -> None:
    print(f"║   {label.ljust(50)}₹{amount:>32,.2f}   ║")


def _value(label: str, value: Any) -> None:
    print(f"║   {label.ljust(50)}{str(value):>33}   ║")


def _box_bottom() -> None:
    print("║" + " ".ljust(WIDTH) + "║")
    print("╚" + "═" * WIDTH + "╝")


class ConsoleReporter(BaseReporter):
    """
    Reporter for generating console output.

    Provides methods for printing the asset disposal report and the SIP
    redemption report, including insights and compliance flags.
    """

    def generate(self, result: Any, **kwargs) -> None:
        """
        Print the report matching the result type.

        Args:
            result: AssetTaxResult or SIPTaxResult
        """
        if isinstance(result, AssetTaxResult):
            self.print_asset_report(result, **kwargs)
        elif isinstance(result, SIPTaxResult):
            self.print_sip_report(result, **kwargs)
        else:
            raise TypeError(f"Unsupported result type: {type(result).__name__}")

    def print_asset_report(
        self, result: AssetTaxResult, title: str = "ASSET CAPITAL GAINS TAX REPORT"
    ) -> None:
        """Print the full report for a single disposal."""
        summary = result.summary
        holding = result.holding_period
        tax = result.tax

        _box_top(title)

        _section("ASSET SUMMARY")
        _value("Category", summary.category_label)
        _value("Jurisdiction", summary.jurisdiction.value.title())
        _value("Holding intent / frequency",
               f"{summary.holding_intent.value.title()} / {summary.frequency.value.title()}")
        _amount("Cost of acquisition", summary.acquisition_cost)
        _amount("Sale consideration", summary.disposal_proceeds)
        _amount("Gain / (loss)", summary.gain_or_loss)

        _section("HOLDING PERIOD & CLASSIFICATION")
        _value("Acquired", holding.acquisition_date.strftime("%d-%b-%Y"))
        _value("Transferred", holding.disposal_date.strftime("%d-%b-%Y"))
        _value("Holding period",
               f"{holding.holding_days} days ({holding.get_holding_period_str()})")
        _value("Income type", result.classification.income_type.value)
        _value("Gain type", result.classification.gain_type.value)
        for factor in result.classification.factors:
            _text(f"- {factor.factor}: {factor.outcome}", indent=5)

        if result.indexation is not None:
            idx = result.indexation
            _section("INDEXATION")
            _value("Applies", "Yes" if idx.applies else "No (CII unavailable)")
            _value("CII",
                   f"FY {idx.source_fiscal_year}: {idx.source_index} → "
                   f"FY {idx.target_fiscal_year}: {idx.target_index}")
            _amount("Indexed cost of acquisition", idx.indexed_acquisition_cost)
            for item in idx.indexed_improvements:
                _amount(f"Indexed improvement ({item.fiscal_year})", item.indexed_amount)
            _amount("Transfer expenses", idx.transfer_expenses)
            _amount("Final indexed cost", idx.final_indexed_cost)
            _amount("Tax without indexation (before cess)", idx.tax_without_indexation)
            _amount("Tax with indexation (before cess)", idx.tax_with_indexation)
            _amount("Tax saved by indexation", idx.tax_saved)

        _section(f"TAX COMPUTATION ({tax.regime})")
        _amount("Capital gain", tax.realized_gain)
        _amount("Less: exemption", tax.exemption)
        _amount("Taxable amount", tax.taxable_amount)
        if tax.rate_applied is not None:
            _value("Rate applied", f"{tax.rate_applied:.2%}")
        self._print_slabs(tax.slab_breakdown)
        _amount("Base tax", tax.base_tax)
        _amount("Surcharge", tax.surcharge)
        _amount("Health & Education Cess", tax.cess)
        print("╟" + "─" * WIDTH + "╢")
        _amount("TOTAL TAX LIABILITY", tax.total_liability)

        self._print_insights(result.insights)
        self._print_compliance(result.compliance)
        self._print_warnings(result.warnings)
        _box_bottom()

    def print_sip_report(
        self, result: SIPTaxResult, title: str = "SIP REDEMPTION TAX REPORT"
    ) -> None:
        """Print the full report for a periodic investment."""
        summary = result.summary
        gains = result.capital_gains
        tax = result.tax
        post = result.post_tax

        _box_top(title)

        _section("INVESTMENT SUMMARY")
        _amount("Total invested", summary.total_invested)
        _value("Units held", f"{summary.total_units:,.4f}")
        _value("Exit NAV", f"{summary.exit_price:,.4f}")
        _amount("Market value", summary.market_value)
        _amount("Total gain", summary.total_gain)
        _value("Lots / period",
               f"{summary.number_of_lots} lots / {summary.period_months} months")
        _amount("Formula projection (future value)", result.projection.future_value)

        _section("FIFO REDEMPTION")
        print(f"║   {'Contributed':<12}{'Units':>14}{'Invested':>16}{'Proceeds':>16}"
              f"{'Gain':>16}{'Type':>8}     ║")
        for lot in result.redemption_lots:
            print(f"║   {lot.contribution_date.strftime('%d-%b-%Y'):<12}{lot.units:>14.4f}"
                  f"{lot.invested_amount:>16,.2f}{lot.proceeds:>16,.2f}"
                  f"{lot.gain:>16,.2f}{lot.gain_type.value:>8}     ║")

        _section("CAPITAL GAINS")
        _amount(f"STCG ({gains.stcg_lots} lots)", gains.stcg_amount)
        _amount(f"LTCG ({gains.ltcg_lots} lots)", gains.ltcg_amount)
        _amount("STCG loss set off against LTCG", gains.stcg_loss_set_off)
        _amount("Less: LTCG exemption", gains.exemption)
        _amount("Total taxable", gains.total_taxable)

        _section("TAX COMPUTATION")
        _amount("STCG tax", tax.stcg_tax)
        _amount("LTCG tax", tax.ltcg_tax)
        self._print_slabs(tax.slab_breakdown)
        _amount("Surcharge", tax.surcharge)
        _amount("Health & Education Cess", tax.cess)
        print("╟" + "─" * WIDTH + "╢")
        _amount("TOTAL TAX LIABILITY", tax.total_liability)

        _section("POST-TAX")
        _amount("Post-tax value", post.post_tax_value)
        _value("Pre-tax / post-tax CAGR",
               f"{post.pre_tax_cagr:.2f}% / {post.post_tax_cagr:.2f}%")
        _value("Tax drag", f"{post.tax_drag_percent:.2f}%")

        if result.exit_simulations:
            _section("EXIT SIMULATIONS")
            print(f"║   {'Exit date':<14}{'Months':>8}{'Market value':>18}{'Tax':>16}"
                  f"{'Post-tax value':>18}{'':>13}║")
            for sim in result.exit_simulations:
                marker = "  ← optimal" if sim.is_optimal else ""
                print(f"║   {sim.exit_date.strftime('%d-%b-%Y'):<14}{sim.holding_months:>8}"
                      f"{sim.market_value:>18,.2f}{sim.tax_liability:>16,.2f}"
                      f"{sim.post_tax_value:>18,.2f}{marker:<13}║")

        self._print_insights(result.insights)
        self._print_compliance(result.compliance)
        self._print_warnings(result.warnings)
        _box_bottom()

    def _print_slabs(self, rows: Optional[Tuple[SlabBreakdownRow, ...]]) -> None:
        if not rows:
            return
        for row in rows:
            upper = f"{row.upper:,.0f}" if row.upper is not None else "above"
            _amount(f"  Slab {row.lower:,.0f} - {upper} @ {row.rate:.0%}", row.tax)

    def _print_insights(self, insights: Iterable[OptimizationInsight]) -> None:
        insights = list(insights)
        if not insights:
            return
        _section("OPTIMIZATION INSIGHTS")
        for insight in insights:
            _text(f"* {insight.title}")
            _text(insight.description, indent=5)
            if insight.actionable:
                _text(f"→ {insight.actionable}", indent=5)

    def _print_compliance(self, compliance: ComplianceMapping) -> None:
        _section("ITR SCHEDULES")
        schedules = [
            name for name, applies in (
                ("Schedule CG", compliance.schedule_cg),
                ("Schedule BP", compliance.schedule_bp),
                ("Schedule FA", compliance.schedule_fa),
                ("Schedule VDA", compliance.schedule_vda),
            ) if applies
        ]
        _value("Applicable", ", ".join(schedules) or "None")
        for flag in compliance.reconciliation_flags:
            _text(f"[CHECK] {flag}", indent=5)

    def _print_warnings(self, warnings: Iterable[str]) -> None:
        warnings = list(warnings)
        if not warnings:
            return
        _section("WARNINGS")
        for warning in warnings:
            _text(f"[WARN] {warning}", indent=5)
