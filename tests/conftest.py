"""Canonical test fixtures used across all engine tests.

Fixture: 200 K€ flat, 15 K€ notary + 10 K€ agency fees, 195.8 K€ loan at
1.5% over 20 years, no deferral. Project 2024-2044.
Investor: 30% marginal rate, 17.2% social charges.
"""

import pytest
from datetime import date
from decimal import Decimal

from immosim.models.expenses import YearlyExpenses
from immosim.models.investment import DepreciationBasis, Investment
from immosim.models.regime import TaxParameters


@pytest.fixture
def canonical_investment() -> Investment:
    return Investment(
        name="T2 Lyon",
        project_start_date=date(2024, 1, 1),
        project_end_date=date(2044, 12, 31),
        purchase_price=Decimal("200000"),
        notary_fees=Decimal("15000"),
        agency_fees=Decimal("10000"),
        loan_amount=Decimal("195800"),
        interest_rate=Decimal("0.015"),
        loan_duration_years=20,
    )


@pytest.fixture
def canonical_expenses() -> dict[int, YearlyExpenses]:
    return {
        2024: YearlyExpenses(
            year=2024,
            rent=Decimal("12000"),
            property_tax=Decimal("1500"),
            tenant_charges=Decimal("600"),
        ),
    }


@pytest.fixture
def furnished_investment() -> Investment:
    """Furnished flat let under LMNP, with a depreciation basis."""
    return Investment(
        name="Studio meublé",
        project_start_date=date(2024, 1, 1),
        project_end_date=date(2034, 12, 31),
        purchase_price=Decimal("150000"),
        notary_fees=Decimal("11000"),
        loan_amount=Decimal("120000"),
        interest_rate=Decimal("0.03"),
        loan_duration_years=15,
        tax_parameters=TaxParameters(tax_rate=Decimal("0.30")),
        depreciation=DepreciationBasis(
            building_value=Decimal("100000"),
            building_years=25,
            furniture_value=Decimal("5000"),
            furniture_years=5,
        ),
    )


def furnished_year(year: int, **overrides) -> YearlyExpenses:
    values = {
        "furnished_rent": Decimal("9600"),
        "property_tax": Decimal("900"),
        "condo_fees": Decimal("600"),
        "interest": Decimal("3000"),
    }
    values.update(overrides)
    return YearlyExpenses(year=year, **values)


@pytest.fixture
def furnished_expenses() -> dict[int, YearlyExpenses]:
    return {year: furnished_year(year) for year in range(2024, 2035)}
