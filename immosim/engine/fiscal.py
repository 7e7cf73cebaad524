"""Year-over-year fiscal simulation.

Folds the regime calculators from the first project year to a target year,
threading the réel foncier deficit and the réel BIC unused depreciation from
each year into the next. A failing year never aborts the horizon: the
previous year's results are reused and flagged.

Pure functions: dataclasses in, dataclasses out. No I/O.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal

from immosim.config import settings
from immosim.engine.tax import CarryForward, compute_regime
from immosim.models.expenses import YearlyExpenses
from immosim.models.investment import Investment
from immosim.models.regime import ALL_REGIMES, TaxRegime
from immosim.models.results import TaxResult

logger = logging.getLogger(__name__)

YearResults = dict[TaxRegime, TaxResult]


@dataclass
class FiscalHistory:
    years: list[int] = field(default_factory=list)
    results: dict[int, YearResults] = field(default_factory=dict)

    def for_year(self, year: int) -> YearResults:
        return self.results.get(year, {})

    def series(self, regime: TaxRegime) -> list[TaxResult]:
        return [self.results[y][regime] for y in self.years if regime in self.results[y]]

    def used_depreciation_through(self, year: int) -> Decimal:
        """Réel BIC depreciation actually deducted from the first year to `year`."""
        total = Decimal("0")
        for result in self.series(TaxRegime.REEL_BIC):
            if result.year > year:
                break
            if result.amortization is not None:
                total += result.amortization.used
        return total


def initial_carry_forward(investment: Investment) -> CarryForward:
    """Depreciation only exists from acquisition onward, so it starts at zero."""
    return CarryForward(deficit=investment.tax_parameters.previous_deficit)


def carry_forward_from(
    previous: Mapping[TaxRegime, TaxResult] | None, investment: Investment
) -> CarryForward:
    if previous is None:
        return initial_carry_forward(investment)

    deficit = Decimal("0")
    foncier = previous.get(TaxRegime.REEL_FONCIER)
    if foncier is not None and foncier.deficit is not None:
        deficit = foncier.deficit

    amortization = Decimal("0")
    bic = previous.get(TaxRegime.REEL_BIC)
    if bic is not None and bic.amortization is not None:
        amortization = bic.amortization.carried_forward

    return CarryForward(deficit=deficit, amortization=amortization)


def audit_result(result: TaxResult, investment: Investment) -> TaxResult:
    """Check total_tax against its components and repair it if they disagree."""
    components = result.tax + result.social_charges
    if abs(components - result.total_tax) > settings.consistency_tolerance:
        logger.error(
            "Inconsistent total tax for %s (%s, %d): %s + %s != %s",
            investment.name or "investment",
            result.regime.value,
            result.year,
            result.tax,
            result.social_charges,
            result.total_tax,
        )
        result = replace(result, total_tax=components)

    params = investment.tax_parameters
    rates_apply = params.tax_rate > 0 or params.social_charges_rate > 0
    if result.taxable_income > 0 and result.total_tax == 0 and rates_apply:
        logger.warning(
            "Zero tax on positive taxable income for %s (%s, %d): %s",
            investment.name or "investment",
            result.regime.value,
            result.year,
            result.taxable_income,
        )
    return result


def simulate_year(
    investment: Investment,
    year: int,
    expenses_by_year: Mapping[int, YearlyExpenses],
    previous: Mapping[TaxRegime, TaxResult] | None = None,
    regimes: Iterable[TaxRegime] = ALL_REGIMES,
) -> YearResults:
    """All requested regimes for one year, given the previous year's results."""
    expenses = expenses_by_year.get(year)
    prior = carry_forward_from(previous, investment)
    return {
        regime: audit_result(
            compute_regime(regime, investment, year, expenses, prior), investment
        )
        for regime in regimes
    }


def _fallback_results(
    previous: Mapping[TaxRegime, TaxResult] | None,
    regimes: Iterable[TaxRegime],
    year: int,
) -> YearResults:
    if previous:
        return {
            regime: replace(result, year=year, is_fallback=True)
            for regime, result in previous.items()
        }
    return {regime: TaxResult(regime=regime, year=year, is_fallback=True) for regime in regimes}


def simulate_years(
    investment: Investment,
    expenses_by_year: Mapping[int, YearlyExpenses],
    through_year: int | None = None,
    regimes: Iterable[TaxRegime] = ALL_REGIMES,
) -> FiscalHistory:
    """Simulate from the project's first year to `through_year` inclusive.

    Defaults to the project's last year.
    """
    regimes = tuple(regimes)
    last_year = investment.end_year if through_year is None else through_year
    history = FiscalHistory()
    previous: YearResults | None = None

    for year in range(investment.start_year, last_year + 1):
        try:
            year_results = simulate_year(investment, year, expenses_by_year, previous, regimes)
        except Exception:
            logger.exception(
                "Fiscal computation failed for %s in %d, reusing previous year",
                investment.name or "investment",
                year,
            )
            year_results = _fallback_results(previous, regimes, year)

        history.years.append(year)
        history.results[year] = year_results
        previous = year_results

    return history


def tax_results_for_year(
    investment: Investment,
    expenses_by_year: Mapping[int, YearlyExpenses],
    year: int,
    regimes: Iterable[TaxRegime] = ALL_REGIMES,
) -> YearResults:
    """Results for a single year, with carry-forward rebuilt from the first year.

    Years before the project start get zero-coverage results.
    """
    if year < investment.start_year:
        return simulate_year(investment, year, expenses_by_year, None, regimes)
    return simulate_years(investment, expenses_by_year, year, regimes).for_year(year)
