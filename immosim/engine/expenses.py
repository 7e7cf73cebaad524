"""Project a base year of revenue and charges across the holding period.

Each category grows at its own annual rate; loan lines come from the
amortization schedule when one is supplied.

Pure functions. No I/O.
"""

from dataclasses import fields, replace
from decimal import Decimal, ROUND_HALF_UP

from immosim.engine.coverage import year_coverage
from immosim.engine.debt import AmortizationSchedule, yearly_loan_summary
from immosim.models.expenses import ExpenseGrowth, YearlyExpenses
from immosim.models.investment import Investment

TWO_PLACES = Decimal("0.01")
LOAN_LINES = {"loan_payment": "payment", "loan_insurance": "insurance", "interest": "interest"}


def grow(value: Decimal, rate: Decimal, years: int) -> Decimal:
    """value * (1 + rate)^years"""
    return (value * (1 + rate) ** years).quantize(TWO_PLACES, ROUND_HALF_UP)


def annualize(value: Decimal, coverage: Decimal) -> Decimal:
    """Full-year equivalent of an amount accrued over `coverage` of the year."""
    if coverage <= 0 or coverage == 1:
        return value
    return (value / coverage).quantize(TWO_PLACES, ROUND_HALF_UP)


def project_expenses(
    investment: Investment,
    base: YearlyExpenses,
    growth: ExpenseGrowth = ExpenseGrowth(),
    schedule: AmortizationSchedule | None = None,
) -> dict[int, YearlyExpenses]:
    """Records for every project year from the base year on.

    Amounts are full calendar-year figures; proration to the project window
    happens in the calculators. Loan lines from the schedule cover only the
    instalments due inside the window, so partial years are annualized
    before being stored. Without a schedule the base year's loan lines are
    carried unchanged.
    """
    loan_years = None
    if schedule is not None:
        loan_years = yearly_loan_summary(
            schedule, investment.project_start_date, investment.project_end_date
        )
    projected: dict[int, YearlyExpenses] = {}

    for year in investment.project_years:
        if year < base.year:
            continue
        n = year - base.year
        values = {
            f.name: grow(getattr(base, f.name), getattr(growth, f.name), n)
            for f in fields(growth)
        }

        if loan_years is not None:
            loan = loan_years.get(year, {})
            coverage = year_coverage(
                investment.project_start_date, investment.project_end_date, year
            )
            for line, key in LOAN_LINES.items():
                values[line] = annualize(loan.get(key, Decimal("0")), coverage)

        projected[year] = replace(base, year=year, **values)

    return projected
