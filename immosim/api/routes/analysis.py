"""Simulation routes: taxes, loan schedule, balances and IRR."""

import logging

from fastapi import APIRouter, HTTPException

from immosim.api.schemas import (
    AmortizationRequest,
    AmortizationResponse,
    AmortizationRowResponse,
    BalancesRequest,
    BalancesResponse,
    BalanceYearResponse,
    InvestmentRequest,
    IrrRequest,
    IrrResponse,
    LoanYearResponse,
    RegimeBalanceResponse,
    SaleParametersSchema,
    TaxesRequest,
    TaxesResponse,
    TaxResultResponse,
    YearlyExpensesSchema,
)
from immosim.engine.balance import (
    best_sale_year,
    default_sale_parameters,
    first_year_reaching,
    project_balances,
    project_irrs,
)
from immosim.engine.debt import schedule_for, yearly_loan_summary
from immosim.engine.expenses import project_expenses
from immosim.engine.fiscal import tax_results_for_year
from immosim.engine.irr import compute_irr
from immosim.engine.yields import all_gross_yields, all_net_yields, recommend_regime
from immosim.models.expenses import YearlyExpenses
from immosim.models.investment import DepreciationBasis, Investment, SaleParameters
from immosim.models.regime import ALL_REGIMES, TaxParameters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["analysis"])


def _build_investment(req: InvestmentRequest) -> Investment:
    """Convert the request body to the engine's Investment."""
    if req.project_end_date < req.project_start_date:
        raise HTTPException(status_code=400, detail="project_end_date is before project_start_date")

    fields = req.model_dump(exclude={"tax_parameters", "depreciation"})
    return Investment(
        **fields,
        tax_parameters=TaxParameters(**req.tax_parameters.model_dump()),
        depreciation=DepreciationBasis(**req.depreciation.model_dump()),
    )


def _build_expenses(records: list[YearlyExpensesSchema]) -> dict[int, YearlyExpenses]:
    return {r.year: YearlyExpenses(**r.model_dump()) for r in records}


def _build_sale_parameters(req: SaleParametersSchema | None) -> SaleParameters:
    defaults = default_sale_parameters()
    if req is None:
        return defaults
    return SaleParameters(
        annual_increase=req.annual_increase if req.annual_increase is not None else defaults.annual_increase,
        agency_fees=req.agency_fees if req.agency_fees is not None else defaults.agency_fees,
        early_repayment_fees=(
            req.early_repayment_fees
            if req.early_repayment_fees is not None
            else defaults.early_repayment_fees
        ),
        appreciation_type=req.appreciation_type,
        global_increase=req.global_increase,
        sale_price=req.sale_price,
    )


@router.post("/taxes", response_model=TaxesResponse)
async def taxes(req: TaxesRequest):
    """Tax under each regime for one year, carry-forward included."""
    investment = _build_investment(req.investment)
    expenses = _build_expenses(req.expenses)
    regimes = tuple(req.regimes) if req.regimes else ALL_REGIMES

    results = tax_results_for_year(investment, expenses, req.year, regimes)
    logger.info("Computed %d regimes for %d", len(results), req.year)

    return TaxesResponse(
        year=req.year,
        results=[TaxResultResponse.model_validate(r) for r in results.values()],
        recommended_regime=recommend_regime(results),
        gross_yields=all_gross_yields(investment, expenses.get(req.year)),
        net_yields=all_net_yields(investment, expenses.get(req.year)),
    )


@router.post("/amortization", response_model=AmortizationResponse)
async def amortization(req: AmortizationRequest):
    investment = _build_investment(req.investment)
    schedule = schedule_for(investment)
    yearly = yearly_loan_summary(schedule)

    return AmortizationResponse(
        monthly_payment=schedule.monthly_payment,
        monthly_insurance=schedule.monthly_insurance,
        deferred_interest=schedule.deferred_interest,
        total_interest=schedule.total_interest,
        total_principal=schedule.total_principal,
        total_insurance=schedule.total_insurance,
        rows=[AmortizationRowResponse.model_validate(row) for row in schedule.rows],
        yearly=[LoanYearResponse(year=year, **totals) for year, totals in sorted(yearly.items())],
    )


@router.post("/balances", response_model=BalancesResponse)
async def balances(req: BalancesRequest):
    """Year-by-year balance, sale outcome and IRR per regime."""
    investment = _build_investment(req.investment)
    expenses = _build_expenses(req.expenses)
    regimes = tuple(req.regimes) if req.regimes else ALL_REGIMES
    schedule = schedule_for(investment)

    if req.project_expenses and expenses:
        base = expenses[max(expenses)]
        projected = project_expenses(investment, base, schedule=schedule)
        # Recorded years win over projected ones
        expenses = {**projected, **expenses}
        logger.debug("Projected expenses from %d over %d years", base.year, len(projected))

    projection = project_balances(
        investment,
        expenses,
        sale_parameters=_build_sale_parameters(req.sale),
        regimes=regimes,
        schedule=schedule,
    )
    irrs = project_irrs(projection, investment)

    regime_responses = []
    for regime in regimes:
        rows = projection.rows(regime)
        break_even = None
        if req.target_gain is not None:
            break_even = first_year_reaching(rows, req.target_gain)
        regime_responses.append(RegimeBalanceResponse(
            regime=regime,
            rows=[BalanceYearResponse.model_validate(row) for row in rows],
            irr_by_year=irrs.get(regime, {}),
            best_sale_year=best_sale_year(rows),
            break_even_year=break_even,
        ))

    return BalancesResponse(
        down_payment=investment.down_payment,
        years=projection.years,
        regimes=regime_responses,
    )


@router.post("/irr", response_model=IrrResponse)
async def irr(req: IrrRequest):
    return IrrResponse(irr=compute_irr(req.cash_flows))
