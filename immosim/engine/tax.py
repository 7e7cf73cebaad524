"""Income tax on rental revenue under the four French regimes.

micro-foncier / réel foncier (location nue, CGI art. 32 and 28),
micro-BIC / réel BIC (location meublée, CGI art. 50-0 and 39 C).

Each calculator maps one year's figures plus the state carried over from the
previous year to a fresh TaxResult. Pure functions: dataclasses in,
dataclasses out. No I/O.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from immosim.config import settings
from immosim.engine.coverage import year_coverage
from immosim.models.expenses import YearlyExpenses
from immosim.models.investment import DepreciationBasis, Investment
from immosim.models.regime import TaxParameters, TaxRegime
from immosim.models.results import AmortizationBreakdown, TaxResult

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class CarryForward:
    """State handed from one simulated year to the next."""
    deficit: Decimal = ZERO  # Réel foncier
    amortization: Decimal = ZERO  # Réel BIC, unused depreciation


RegimeCalculator = Callable[[Investment, int, YearlyExpenses | None, CarryForward], TaxResult]


def _q(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def _year_inputs(
    investment: Investment, year: int, expenses: YearlyExpenses | None
) -> tuple[YearlyExpenses, Decimal]:
    """Prorate the year's record by project coverage. Missing years are all-zero."""
    coverage = year_coverage(
        investment.project_start_date, investment.project_end_date, year
    )
    record = expenses if expenses is not None else YearlyExpenses.zero(year)
    return record.prorated(coverage), coverage


def rental_revenue(
    expenses: YearlyExpenses, regime: TaxRegime, vacancy_rate: Decimal
) -> Decimal:
    """Taxable rent for the regime, reduced by vacancy.

    Nu regimes use unfurnished rent, meublé regimes furnished rent.
    """
    rent = expenses.furnished_rent if regime.is_furnished else expenses.rent
    return _q(rent * (1 - vacancy_rate))


def _levy(taxable_income: Decimal, params: TaxParameters) -> tuple[Decimal, Decimal]:
    """Income tax and social charges, never negative."""
    tax = max(ZERO, _q(taxable_income * params.tax_rate))
    social = max(ZERO, _q(taxable_income * params.social_charges_rate))
    return tax, social


def micro_foncier(
    investment: Investment,
    year: int,
    expenses: YearlyExpenses | None,
    prior: CarryForward = CarryForward(),
) -> TaxResult:
    """Flat 30% allowance on unfurnished rent."""
    record, coverage = _year_inputs(investment, year, expenses)
    revenue = rental_revenue(record, TaxRegime.MICRO_FONCIER, investment.vacancy_rate)
    taxable = _q(revenue * (1 - settings.micro_foncier_allowance))
    tax, social = _levy(taxable, investment.tax_parameters)

    return TaxResult(
        regime=TaxRegime.MICRO_FONCIER,
        year=year,
        revenue=revenue,
        taxable_income=taxable,
        tax=tax,
        social_charges=social,
        total_tax=tax + social,
        net_income=revenue + record.tenant_charges + record.tax_benefit - tax - social,
        coverage=coverage,
    )


def reel_foncier(
    investment: Investment,
    year: int,
    expenses: YearlyExpenses | None,
    prior: CarryForward = CarryForward(),
) -> TaxResult:
    """Actual charges deducted; the carried-in deficit absorbs taxable income."""
    record, coverage = _year_inputs(investment, year, expenses)
    revenue = rental_revenue(record, TaxRegime.REEL_FONCIER, investment.vacancy_rate)
    deductible = record.deductible_charges

    before_deficit = max(ZERO, revenue - deductible)
    used_deficit = min(prior.deficit, before_deficit)
    carried_forward = prior.deficit - used_deficit
    taxable = before_deficit - used_deficit
    tax, social = _levy(taxable, investment.tax_parameters)

    return TaxResult(
        regime=TaxRegime.REEL_FONCIER,
        year=year,
        revenue=revenue,
        taxable_income=taxable,
        tax=tax,
        social_charges=social,
        total_tax=tax + social,
        net_income=revenue + record.tenant_charges + record.tax_benefit - tax - social,
        deductible_expenses=deductible,
        taxable_income_before_deficit=before_deficit,
        deficit=carried_forward,
        used_deficit=used_deficit,
        coverage=coverage,
    )


def micro_bic(
    investment: Investment,
    year: int,
    expenses: YearlyExpenses | None,
    prior: CarryForward = CarryForward(),
) -> TaxResult:
    """Flat 50% allowance on furnished rent."""
    record, coverage = _year_inputs(investment, year, expenses)
    revenue = rental_revenue(record, TaxRegime.MICRO_BIC, investment.vacancy_rate)
    taxable = _q(revenue * (1 - settings.micro_bic_allowance))
    tax, social = _levy(taxable, investment.tax_parameters)

    return TaxResult(
        regime=TaxRegime.MICRO_BIC,
        year=year,
        revenue=revenue,
        taxable_income=taxable,
        tax=tax,
        social_charges=social,
        total_tax=tax + social,
        net_income=revenue + record.tenant_charges - tax - social,
        coverage=coverage,
    )


def linear_depreciation(value: Decimal, years: int, first_year: int, year: int) -> Decimal:
    """Straight-line annuity while the asset is inside its depreciation window."""
    if value <= 0 or years <= 0:
        return ZERO
    if first_year <= year < first_year + years:
        return _q(value / years)
    return ZERO


def yearly_depreciation(
    basis: DepreciationBasis,
    first_year: int,
    year: int,
    carried_in: Decimal = ZERO,
) -> AmortizationBreakdown:
    """Depreciation available in a year, before the no-deficit cap is applied."""
    building = linear_depreciation(basis.building_value, basis.building_years, first_year, year)
    furniture = linear_depreciation(basis.furniture_value, basis.furniture_years, first_year, year)
    works = linear_depreciation(basis.works_value, basis.works_years, first_year, year)
    other = linear_depreciation(basis.other_value, basis.other_years, first_year, year)
    return AmortizationBreakdown(
        building=building,
        furniture=furniture,
        works=works,
        other=other,
        carried_in=carried_in,
        total=building + furniture + works + other + carried_in,
    )


def reel_bic(
    investment: Investment,
    year: int,
    expenses: YearlyExpenses | None,
    prior: CarryForward = CarryForward(),
) -> TaxResult:
    """Actual charges plus depreciation.

    Depreciation may only bring the result down to zero (CGI art. 39 C);
    the unused part is carried forward to the following years.
    """
    record, coverage = _year_inputs(investment, year, expenses)
    revenue = rental_revenue(record, TaxRegime.REEL_BIC, investment.vacancy_rate)
    deductible = record.deductible_charges

    available = yearly_depreciation(
        investment.depreciation, investment.acquisition_year, year, prior.amortization
    )
    result_before = revenue - deductible
    used = min(available.total, max(ZERO, result_before))
    carried_forward = available.total - used
    taxable = result_before - used
    tax, social = _levy(taxable, investment.tax_parameters)

    return TaxResult(
        regime=TaxRegime.REEL_BIC,
        year=year,
        revenue=revenue,
        taxable_income=taxable,
        tax=tax,
        social_charges=social,
        total_tax=tax + social,
        net_income=revenue + record.tenant_charges - tax - social,
        deductible_expenses=deductible,
        amortization=AmortizationBreakdown(
            building=available.building,
            furniture=available.furniture,
            works=available.works,
            other=available.other,
            carried_in=available.carried_in,
            total=available.total,
            used=used,
            carried_forward=carried_forward,
        ),
        coverage=coverage,
    )


CALCULATORS: dict[TaxRegime, RegimeCalculator] = {
    TaxRegime.MICRO_FONCIER: micro_foncier,
    TaxRegime.REEL_FONCIER: reel_foncier,
    TaxRegime.MICRO_BIC: micro_bic,
    TaxRegime.REEL_BIC: reel_bic,
}


def compute_regime(
    regime: TaxRegime,
    investment: Investment,
    year: int,
    expenses: YearlyExpenses | None,
    prior: CarryForward = CarryForward(),
) -> TaxResult:
    return CALCULATORS[regime](investment, year, expenses, prior)
