"""Gross and net yields, and regime recommendation.

Pure functions. No I/O.
"""

from collections.abc import Mapping
from decimal import Decimal, ROUND_HALF_UP

from immosim.config import settings
from immosim.engine.tax import rental_revenue
from immosim.models.expenses import YearlyExpenses
from immosim.models.investment import Investment
from immosim.models.regime import ALL_REGIMES, TaxRegime
from immosim.models.results import TaxResult

FOUR_PLACES = Decimal("0.0001")


def _yield_cost(investment: Investment) -> Decimal:
    return investment.purchase_price + investment.agency_fees + investment.renovation_costs


def _receipts(investment: Investment, expenses: YearlyExpenses, regime: TaxRegime) -> Decimal:
    receipts = rental_revenue(expenses, regime, investment.vacancy_rate) + expenses.tenant_charges
    if not regime.is_furnished:
        receipts += expenses.tax_benefit
    return receipts


def gross_yield(
    investment: Investment, expenses: YearlyExpenses | None, regime: TaxRegime
) -> Decimal:
    """Annual receipts / (price + agency fees + renovation).

    Receipts are the regime's rent after vacancy plus tenant charges, and the
    tax benefit for unfurnished lettings.
    """
    cost = _yield_cost(investment)
    if expenses is None or cost <= 0:
        return Decimal("0")
    return (_receipts(investment, expenses, regime) / cost).quantize(FOUR_PLACES, ROUND_HALF_UP)


def net_yield(
    investment: Investment, expenses: YearlyExpenses | None, regime: TaxRegime
) -> Decimal:
    """(Annual receipts - operating charges) / the gross-yield cost.

    Operating charges are the cash charges without the loan instalments and
    borrower insurance.
    """
    cost = _yield_cost(investment)
    if expenses is None or cost <= 0:
        return Decimal("0")
    operating = expenses.cash_charges - expenses.loan_payment - expenses.loan_insurance
    net = _receipts(investment, expenses, regime) - operating
    return (net / cost).quantize(FOUR_PLACES, ROUND_HALF_UP)


def all_gross_yields(
    investment: Investment, expenses: YearlyExpenses | None
) -> dict[TaxRegime, Decimal]:
    return {regime: gross_yield(investment, expenses, regime) for regime in ALL_REGIMES}


def all_net_yields(
    investment: Investment, expenses: YearlyExpenses | None
) -> dict[TaxRegime, Decimal]:
    return {regime: net_yield(investment, expenses, regime) for regime in ALL_REGIMES}



def is_eligible_for_micro(regime: TaxRegime, revenue: Decimal) -> bool:
    """Micro regimes are closed above their revenue ceiling. Réel is always open."""
    if regime == TaxRegime.MICRO_FONCIER:
        return revenue <= settings.micro_foncier_threshold
    if regime == TaxRegime.MICRO_BIC:
        return revenue <= settings.micro_bic_threshold
    return True


def recommend_regime(year_results: Mapping[TaxRegime, TaxResult]) -> TaxRegime | None:
    """Eligible regime leaving the highest net income. None when nothing is eligible."""
    best: TaxResult | None = None
    for regime, result in year_results.items():
        if not is_eligible_for_micro(regime, result.revenue):
            continue
        if best is None or result.net_income > best.net_income:
            best = result
    return best.regime if best is not None else None
