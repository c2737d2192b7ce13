"""
FIFO lot engine for periodic (SIP) and lump-sum fund investments.

Builds one lot per contribution, prices it from a supplied price history
or an expected growth rate, and consumes lots oldest-first on redemption.
Each consumed lot carries its own holding period and STCG/LTCG
classification.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .holding import classify_span, is_equity_fund
from .models import (
    FormulaProjection,
    GainType,
    InvestmentMode,
    InvestmentSummary,
    PricePoint,
    RedemptionLot,
    RedemptionType,
    SIPInput,
    SIPLot,
)
from .rules import TaxRulesConfig, get_active_rules
from .utils import add_months, months_between, years_between

logger = logging.getLogger(__name__)

BASE_PRICE = 100.0
# Residual units below this are treated as fully consumed
UNIT_EPSILON = 1e-9


class PriceSeries:
    """
    Unit price (NAV) lookup for a fund.

    With a price history, the price on a date is the latest entry at or
    before that date (the earliest entry when the date precedes them all).
    Without one, the price grows from ``base_price`` on ``base_date`` at
    ``expected_cagr`` percent a year; with neither, it stays flat.

    Example:
        >>> series = PriceSeries(expected_cagr=12.0, base_date=date(2024, 1, 1))
        >>> round(series.price_on(date(2024, 1, 1)), 2)
        100.0
    """

    def __init__(
        self,
        history: Sequence[PricePoint] = (),
        expected_cagr: Optional[float] = None,
        base_date: Optional[date] = None,
        base_price: float = BASE_PRICE,
    ):
        self.history = sorted(history, key=lambda p: p.on)
        self.expected_cagr = expected_cagr
        self.base_date = base_date
        self.base_price = base_price

    @classmethod
    def from_sip(cls, sip: SIPInput) -> "PriceSeries":
        return cls(
            history=sip.price_history,
            expected_cagr=sip.expected_cagr,
            base_date=sip.start_date,
        )

    def price_on(self, on: date) -> float:
        if self.history:
            price = self.history[0].price
            for point in self.history:
                if point.on > on:
                    break
                price = point.price
            return price
        if self.expected_cagr is not None and self.base_date is not None:
            years = years_between(self.base_date, on)
            return self.base_price * (1 + self.expected_cagr / 100) ** years
        return self.base_price


def installment_dates(sip: SIPInput) -> List[date]:
    """
    Contribution dates: the start date for a lump sum, otherwise every
    cadence step from the start date up to and including the exit date.
    """
    if sip.mode is InvestmentMode.LUMP_SUM:
        return [sip.start_date]
    dates = []
    step = 0
    current = sip.start_date
    while current <= sip.exit_date:
        dates.append(current)
        step += 1
        current = add_months(sip.start_date, step * sip.cadence.months)
    return dates


def build_lots(sip: SIPInput, prices: Optional[PriceSeries] = None) -> Tuple[SIPLot, ...]:
    """
    Build the contribution lots for an investment.

    Args:
        sip: Investment to build lots for
        prices: Price lookup (default: derived from the input's history / growth rate)

    Returns:
        Lots in contribution order
    """
    prices = prices or PriceSeries.from_sip(sip)
    lots = []
    for on in installment_dates(sip):
        price = prices.price_on(on)
        lots.append(SIPLot(
            contribution_date=on,
            invested_amount=sip.amount,
            price=price,
            units=sip.amount / price,
        ))
    logger.debug("Built %d lots for %s %s", len(lots), sip.fund_type.value, sip.mode.value)
    return tuple(lots)


def update_lots_with_current_value(lots: Iterable[SIPLot], price: float) -> Tuple[SIPLot, ...]:
    """Copies of ``lots`` valued at ``price``."""
    return tuple(replace(lot, current_value=lot.units * price) for lot in lots)


def calculate_holding_periods(
    lots: Iterable[SIPLot],
    as_of: date,
    equity_like: bool,
    rules: Optional[TaxRulesConfig] = None,
) -> Tuple[SIPLot, ...]:
    """Copies of ``lots`` carrying holding days/months and term flags as of ``as_of``."""
    rules = rules or get_active_rules()
    enriched = []
    for lot in lots:
        days, months, is_short = classify_span(lot.contribution_date, as_of, equity_like, rules)
        enriched.append(replace(
            lot,
            holding_days=days,
            holding_months=months,
            is_short_term=is_short,
            is_long_term=not is_short,
        ))
    return tuple(enriched)


def open_units(
    lots: Iterable[SIPLot], prior_redemptions: Iterable[RedemptionLot] = ()
) -> Dict[date, float]:
    """Units still held per contribution date after earlier redemptions."""
    consumed: Dict[date, float] = defaultdict(float)
    for redeemed in prior_redemptions:
        consumed[redeemed.contribution_date] += redeemed.units
    return {
        lot.contribution_date: max(0.0, lot.units - consumed[lot.contribution_date])
        for lot in lots
    }


def open_lots(
    lots: Iterable[SIPLot], prior_redemptions: Iterable[RedemptionLot] = ()
) -> Tuple[SIPLot, ...]:
    """
    Lots reduced to the units still held after earlier redemptions.

    Invested amounts scale with the open fraction; fully redeemed lots
    are dropped.
    """
    lots = tuple(lots)
    prior_redemptions = tuple(prior_redemptions)
    if not prior_redemptions:
        return lots
    remaining = open_units(lots, prior_redemptions)
    held = []
    for lot in lots:
        units = remaining[lot.contribution_date]
        if units <= 0:
            continue
        held.append(replace(
            lot, units=units, invested_amount=lot.invested_amount * units / lot.units
        ))
    return tuple(held)


def units_to_redeem(sip: SIPInput, exit_price: float, available: float) -> Tuple[float, bool]:
    """
    Units requested by the redemption.

    Returns:
        (units, capped) where ``capped`` is True when a partial amount
        exceeded the available units and was limited to them
    """
    if sip.redemption_type is RedemptionType.FULL:
        return available, False
    requested = sip.partial_redemption_amount / exit_price
    if requested > available:
        return available, True
    return requested, False


def apply_fifo_redemption(
    lots: Iterable[SIPLot],
    sip: SIPInput,
    exit_price: float,
    exit_date: Optional[date] = None,
    prior_redemptions: Iterable[RedemptionLot] = (),
    rules: Optional[TaxRulesConfig] = None,
) -> Tuple[RedemptionLot, ...]:
    """
    Redeem units oldest-lot-first.

    Lots contributed after the redemption date are not yet held and are
    skipped. Units already consumed by ``prior_redemptions`` are not
    available again. The last lot touched may be only partly consumed;
    its invested amount and gain scale with the fraction redeemed.

    Args:
        lots: Contribution lots
        sip: Investment (fund type, redemption type and amount)
        exit_price: Unit price at redemption
        exit_date: Redemption date (default: the input's exit date)
        prior_redemptions: Lots consumed by earlier redemption events
        rules: Rule set to use (default: the active rule set)

    Returns:
        Redemption lots in FIFO order
    """
    rules = rules or get_active_rules()
    exit_date = exit_date or sip.exit_date
    equity_like = is_equity_fund(sip.fund_type, sip.equity_percentage, rules)

    held = sorted(
        (lot for lot in lots if lot.contribution_date <= exit_date),
        key=lambda lot: lot.contribution_date,
    )
    remaining_by_date = open_units(held, prior_redemptions)
    available = sum(remaining_by_date.values())
    remaining, capped = units_to_redeem(sip, exit_price, available)
    if capped:
        logger.warning("Partial redemption of %.2f exceeds holdings; capped at %.4f units",
                       sip.partial_redemption_amount, available)

    redeemed: List[RedemptionLot] = []
    for lot in held:
        if remaining <= UNIT_EPSILON:
            break
        lot_open = remaining_by_date[lot.contribution_date]
        if lot_open <= UNIT_EPSILON:
            continue
        units = min(lot_open, remaining)
        invested = lot.invested_amount * units / lot.units
        proceeds = units * exit_price
        gain = proceeds - invested
        days, months, is_short = classify_span(
            lot.contribution_date, exit_date, equity_like, rules
        )
        redeemed.append(RedemptionLot(
            contribution_date=lot.contribution_date,
            redemption_date=exit_date,
            units=units,
            invested_amount=invested,
            purchase_price=lot.price,
            redemption_price=exit_price,
            proceeds=proceeds,
            gain=gain,
            gain_type=GainType.STCG if is_short else GainType.LTCG,
            holding_days=days,
            holding_months=months,
            taxable_amount=gain,
        ))
        remaining -= units

    return tuple(redeemed)


def calculate_investment_summary(
    lots: Sequence[SIPLot], exit_price: float, exit_date: date
) -> InvestmentSummary:
    """Totals for the position valued at ``exit_price`` on ``exit_date``."""
    total_invested = sum(lot.invested_amount for lot in lots)
    total_units = sum(lot.units for lot in lots)
    market_value = total_units * exit_price
    total_gain = market_value - total_invested
    first = min((lot.contribution_date for lot in lots), default=exit_date)
    return InvestmentSummary(
        total_invested=total_invested,
        total_units=total_units,
        exit_price=exit_price,
        market_value=market_value,
        total_gain=total_gain,
        total_gain_percent=(total_gain / total_invested * 100) if total_invested > 0 else 0.0,
        number_of_lots=len(lots),
        period_days=max(0, (exit_date - first).days),
        period_months=months_between(first, exit_date),
    )


def calculate_sip_by_formula(sip: SIPInput) -> FormulaProjection:
    """
    Closed-form projection.

    SIP: FV = P × ((1 + r)^n − 1) / r × (1 + r), with r the annual rate
    divided by installments per year and n the installment count.
    Lump sum: FV = P × (1 + g)^years. Without a growth rate the future
    value equals the amount invested.
    """
    rate = (sip.expected_cagr or 0.0) / 100

    if sip.mode is InvestmentMode.LUMP_SUM:
        future_value = sip.amount * (1 + rate) ** years_between(sip.start_date, sip.exit_date)
        return FormulaProjection(
            total_invested=sip.amount,
            future_value=future_value,
            estimated_returns=future_value - sip.amount,
            installments=1,
        )

    installments = len(installment_dates(sip))
    total_invested = sip.amount * installments
    periodic_rate = rate / sip.cadence.periods_per_year
    if periodic_rate == 0 or installments == 0:
        future_value = total_invested
    else:
        future_value = sip.amount * (
            ((1 + periodic_rate) ** installments - 1) / periodic_rate
        ) * (1 + periodic_rate)
    return FormulaProjection(
        total_invested=total_invested,
        future_value=future_value,
        estimated_returns=future_value - total_invested,
        installments=installments,
    )
