"""Year-by-year balance projection per regime.

For each project year: operating cash flow before and after income tax,
running totals, and the outcome of a hypothetical sale at year end. The
total gain answers "what would I walk away with if I sold this year".

Pure functions: dataclasses in, dataclasses out. No I/O.
"""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from immosim.config import settings
from immosim.engine.coverage import year_coverage
from immosim.engine.debt import AmortizationSchedule, schedule_for
from immosim.engine.disposition import compute_disposition
from immosim.engine.fiscal import FiscalHistory, simulate_years
from immosim.engine.irr import compute_irr
from immosim.engine.tax import rental_revenue
from immosim.models.expenses import YearlyExpenses
from immosim.models.investment import Investment, SaleParameters
from immosim.models.regime import ALL_REGIMES, TaxRegime
from immosim.models.results import BalanceProjection, BalanceYear

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def default_sale_parameters() -> SaleParameters:
    return SaleParameters(
        annual_increase=settings.default_sale_annual_increase,
        agency_fees=settings.default_sale_agency_fees,
        early_repayment_fees=settings.default_early_repayment_fees,
    )


def cash_flow_before_tax(
    investment: Investment,
    year: int,
    expenses: YearlyExpenses | None,
    regime: TaxRegime,
) -> Decimal:
    """Cash receipts minus cash charges, loan payment and insurance included.

    A year without a record has no cash flow.
    """
    if expenses is None:
        return ZERO
    coverage = year_coverage(investment.project_start_date, investment.project_end_date, year)
    record = expenses.prorated(coverage)

    receipts = rental_revenue(record, regime, investment.vacancy_rate) + record.tenant_charges
    if not regime.is_furnished:
        receipts += record.tax_benefit
    return receipts - record.cash_charges


def accumulated_depreciation(history: FiscalHistory, regime: TaxRegime, year: int) -> Decimal:
    """Depreciation to reintegrate at sale. Only réel BIC depreciates."""
    if regime != TaxRegime.REEL_BIC:
        return ZERO
    return history.used_depreciation_through(year)


def project_balances(
    investment: Investment,
    expenses_by_year: Mapping[int, YearlyExpenses],
    sale_parameters: SaleParameters | None = None,
    regimes: Iterable[TaxRegime] = ALL_REGIMES,
    history: FiscalHistory | None = None,
    schedule: AmortizationSchedule | None = None,
) -> BalanceProjection:
    """Balance rows for every project year and requested regime.

    Args:
        investment: Property, financing and tax profile
        expenses_by_year: Recorded revenue and charges, keyed by year
        sale_parameters: Revaluation and sale costs, defaults from settings
        regimes: Regimes to project
        history: Pre-computed fiscal simulation, run here when omitted
        schedule: Pre-computed loan schedule, generated here when omitted
    """
    regimes = tuple(regimes)
    if sale_parameters is None:
        sale_parameters = default_sale_parameters()
    if history is None:
        history = simulate_years(investment, expenses_by_year, regimes=regimes)
    if schedule is None:
        schedule = schedule_for(investment)

    years = list(investment.project_years)
    projection = BalanceProjection(years=years)

    for regime in regimes:
        rows: list[BalanceYear] = []
        cumulative_before = ZERO
        cumulative_tax = ZERO
        cumulative_net = ZERO

        for year in years:
            before = cash_flow_before_tax(investment, year, expenses_by_year.get(year), regime)
            result = history.for_year(year).get(regime)
            if result is None:
                logger.debug("No %s result for %d, assuming no tax", regime.value, year)
                tax = ZERO
            else:
                tax = result.total_tax
            net = before - tax

            cumulative_before += before
            cumulative_tax += tax
            cumulative_net += net

            sale = compute_disposition(
                investment,
                year,
                regime,
                sale_parameters,
                schedule,
                accumulated_depreciation(history, regime, year),
            )

            rows.append(BalanceYear(
                year=year,
                coverage=year_coverage(
                    investment.project_start_date, investment.project_end_date, year
                ),
                annual_cash_flow_before_tax=before,
                annual_tax=tax,
                annual_cash_flow=net,
                cumulative_cash_flow_before_tax=cumulative_before,
                cumulative_tax=cumulative_tax,
                cumulative_cash_flow=cumulative_net,
                net_sale_price=sale.net_sale_price,
                total_debt=sale.total_debt,
                sale_balance=sale.sale_balance,
                capital_gain_tax=sale.capital_gain_tax,
                total_gain=(
                    cumulative_net
                    + sale.sale_balance
                    - sale.capital_gain_tax
                    - investment.down_payment
                ),
            ))

        projection.by_regime[regime] = rows

    return projection


def irr_cash_flows(
    projection: BalanceProjection,
    investment: Investment,
    regime: TaxRegime,
    sale_year: int,
) -> list[Decimal]:
    """[-down payment, net cash flows before the sale year, last year + sale proceeds].

    Empty when the sale year lies outside the projection.
    """
    rows = [row for row in projection.rows(regime) if row.year <= sale_year]
    if not rows or rows[-1].year != sale_year:
        return []

    flows = [-investment.down_payment]
    flows.extend(row.annual_cash_flow for row in rows[:-1])
    last = rows[-1]
    flows.append(last.annual_cash_flow + last.sale_balance - last.capital_gain_tax)
    return flows


def irr_for_sale_year(
    projection: BalanceProjection,
    investment: Investment,
    regime: TaxRegime,
    sale_year: int,
) -> Decimal:
    return compute_irr(irr_cash_flows(projection, investment, regime, sale_year))


def project_irrs(
    projection: BalanceProjection, investment: Investment
) -> dict[TaxRegime, dict[int, Decimal]]:
    """IRR of a sale at the end of each project year, per regime."""
    return {
        regime: {
            year: irr_for_sale_year(projection, investment, regime, year)
            for year in projection.years
        }
        for regime in projection.by_regime
    }


def first_year_reaching(
    rows: Iterable[BalanceYear], target: Decimal, metric: str = "total_gain"
) -> int | None:
    """First year whose `metric` reaches `target`, None if it never does."""
    for row in rows:
        if getattr(row, metric) >= target:
            return row.year
    return None


def best_sale_year(rows: Iterable[BalanceYear]) -> int | None:
    """Year with the highest total gain. Earliest one wins a tie."""
    best: BalanceYear | None = None
    for row in rows:
        if best is None or row.total_gain > best.total_gain:
            best = row
    return best.year if best is not None else None
