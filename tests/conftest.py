"""
Pytest configuration and shared fixtures.
"""

import sys
import os
from datetime import date

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from investment_tax.models import (
    AssetCategory,
    AssetInput,
    Cadence,
    FundType,
    InvestmentMode,
    SIPInput,
)
from investment_tax.rules import FY_2025_26_RULES, RulesStore, TaxRulesConfig


@pytest.fixture
def rules():
    """FY 2025-26 rule set."""
    return FY_2025_26_RULES


@pytest.fixture
def cii_rules():
    """Rule set with a round CII: 100 in FY 2021-22, 300 in FY 2024-25."""
    return TaxRulesConfig(
        fiscal_year="2024-25",
        cost_inflation_index={"2001-02": 100, "2021-22": 100, "2024-25": 300},
        slabs=FY_2025_26_RULES.slabs,
        surcharge_bands=FY_2025_26_RULES.surcharge_bands,
    )


@pytest.fixture
def rules_store(rules):
    """Store publishing the FY 2025-26 rules."""
    return RulesStore(rules)


@pytest.fixture
def equity_ltcg_asset():
    """Listed shares held 400 days, ₹1,00,000 → ₹1,80,000."""
    return AssetInput(
        category=AssetCategory.LISTED_EQUITY,
        acquisition_date=date(2024, 1, 1),
        acquisition_cost=100000.0,
        disposal_date=date(2025, 2, 4),
        disposal_proceeds=180000.0,
    )


@pytest.fixture
def property_asset():
    """Real property bought in FY 2021-22, sold 36 months later in FY 2024-25."""
    return AssetInput(
        category=AssetCategory.REAL_PROPERTY,
        acquisition_date=date(2021, 6, 1),
        acquisition_cost=1000000.0,
        disposal_date=date(2024, 6, 1),
        disposal_proceeds=2000000.0,
    )


@pytest.fixture
def crypto_asset():
    """Crypto held just over two years."""
    return AssetInput(
        category=AssetCategory.DIGITAL_ASSET,
        acquisition_date=date(2022, 3, 1),
        acquisition_cost=200000.0,
        disposal_date=date(2024, 6, 1),
        disposal_proceeds=500000.0,
    )


@pytest.fixture
def monthly_sip():
    """₹10,000 monthly equity SIP at 12% a year, 24 installments."""
    return SIPInput(
        fund_type=FundType.EQUITY_FUND,
        mode=InvestmentMode.SIP,
        amount=10000.0,
        start_date=date(2023, 1, 15),
        exit_date=date(2024, 12, 16),
        cadence=Cadence.MONTHLY,
        expected_cagr=12.0,
    )


@pytest.fixture
def as_of():
    """Fixed 'today' for exit simulations."""
    return date(2024, 12, 16)
