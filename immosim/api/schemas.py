"""Pydantic schemas for API request/response models."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from immosim.models.investment import AppreciationType, DeferralType
from immosim.models.regime import TaxRegime


# ---- Request schemas ----

class TaxParametersSchema(BaseModel):
    tax_rate: Decimal = Field(Decimal("0.30"), ge=0, le=1, description="Marginal income-tax rate")
    social_charges_rate: Decimal = Field(Decimal("0.172"), ge=0, le=1)
    previous_deficit: Decimal = Field(Decimal("0"), ge=0)


class DepreciationSchema(BaseModel):
    building_value: Decimal = Decimal("0")
    building_years: int = 25
    furniture_value: Decimal = Decimal("0")
    furniture_years: int = 10
    works_value: Decimal = Decimal("0")
    works_years: int = 10
    other_value: Decimal = Decimal("0")
    other_years: int = 5


class InvestmentRequest(BaseModel):
    name: str = ""
    project_start_date: date
    project_end_date: date
    purchase_price: Decimal = Field(..., ge=0)

    agency_fees: Decimal = Decimal("0")
    notary_fees: Decimal = Decimal("0")
    bank_fees: Decimal = Decimal("0")
    bank_guarantee_fees: Decimal = Decimal("0")
    mandatory_diagnostics: Decimal = Decimal("0")
    renovation_costs: Decimal = Decimal("0")
    improvement_works: Decimal = Decimal("0")

    loan_amount: Decimal = Field(Decimal("0"), ge=0)
    interest_rate: Decimal = Field(Decimal("0"), ge=0, description="Annual rate, e.g. 0.015")
    loan_duration_years: int = Field(20, ge=0)
    insurance_rate: Decimal = Field(Decimal("0"), ge=0)
    deferral_type: DeferralType = DeferralType.NONE
    deferred_months: int = Field(0, ge=0)
    start_date: date | None = None

    vacancy_rate: Decimal = Field(Decimal("0"), ge=0, le=1)
    tax_parameters: TaxParametersSchema = TaxParametersSchema()
    depreciation: DepreciationSchema = DepreciationSchema()
    is_lmp: bool = False


class YearlyExpensesSchema(BaseModel):
    year: int
    rent: Decimal = Decimal("0")
    furnished_rent: Decimal = Decimal("0")
    tenant_charges: Decimal = Decimal("0")
    tax_benefit: Decimal = Decimal("0")
    property_tax: Decimal = Decimal("0")
    condo_fees: Decimal = Decimal("0")
    property_insurance: Decimal = Decimal("0")
    management_fees: Decimal = Decimal("0")
    unpaid_rent_insurance: Decimal = Decimal("0")
    repairs: Decimal = Decimal("0")
    other_deductible: Decimal = Decimal("0")
    other_non_deductible: Decimal = Decimal("0")
    loan_payment: Decimal = Decimal("0")
    loan_insurance: Decimal = Decimal("0")
    interest: Decimal = Decimal("0")


class SaleParametersSchema(BaseModel):
    annual_increase: Decimal | None = Field(None, description="Yearly revaluation, defaults to 2%")
    agency_fees: Decimal | None = None
    early_repayment_fees: Decimal | None = None
    appreciation_type: AppreciationType = AppreciationType.ANNUAL
    global_increase: Decimal = Field(Decimal("0"), description="Increase over the whole hold, GLOBAL mode")
    sale_price: Decimal | None = Field(None, ge=0, description="Sale price, AMOUNT mode")


class TaxesRequest(BaseModel):
    investment: InvestmentRequest
    expenses: list[YearlyExpensesSchema] = []
    year: int
    regimes: list[TaxRegime] | None = None


class AmortizationRequest(BaseModel):
    investment: InvestmentRequest


class BalancesRequest(BaseModel):
    investment: InvestmentRequest
    expenses: list[YearlyExpensesSchema] = []
    sale: SaleParametersSchema | None = None
    regimes: list[TaxRegime] | None = None
    target_gain: Decimal | None = Field(None, description="Total gain to reach for the break-even year")
    project_expenses: bool = Field(
        False, description="Fill later years by growing the last record, loan lines from the schedule"
    )


class IrrRequest(BaseModel):
    cash_flows: list[Decimal] = Field(..., min_length=2, description="Year 0 outlay first")


# ---- Response schemas ----

class AmortizationBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    building: Decimal
    furniture: Decimal
    works: Decimal
    other: Decimal
    carried_in: Decimal
    total: Decimal
    used: Decimal
    carried_forward: Decimal


class TaxResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    regime: TaxRegime
    year: int
    revenue: Decimal
    taxable_income: Decimal
    tax: Decimal
    social_charges: Decimal
    total_tax: Decimal
    net_income: Decimal
    deductible_expenses: Decimal | None = None
    taxable_income_before_deficit: Decimal | None = None
    deficit: Decimal | None = None
    used_deficit: Decimal | None = None
    amortization: AmortizationBreakdownResponse | None = None
    coverage: Decimal
    is_partial_year: bool
    is_fallback: bool


class TaxesResponse(BaseModel):
    year: int
    results: list[TaxResultResponse]
    recommended_regime: TaxRegime | None = None
    gross_yields: dict[TaxRegime, Decimal]
    net_yields: dict[TaxRegime, Decimal]


class AmortizationRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: int
    date: date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    insurance: Decimal
    remaining_balance: Decimal
    is_deferred: bool


class LoanYearResponse(BaseModel):
    year: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    insurance: Decimal


class AmortizationResponse(BaseModel):
    monthly_payment: Decimal
    monthly_insurance: Decimal
    deferred_interest: Decimal
    total_interest: Decimal
    total_principal: Decimal
    total_insurance: Decimal
    rows: list[AmortizationRowResponse]
    yearly: list[LoanYearResponse]


class BalanceYearResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    year: int
    coverage: Decimal
    is_partial_year: bool
    annual_cash_flow_before_tax: Decimal
    annual_tax: Decimal
    annual_cash_flow: Decimal
    cumulative_cash_flow_before_tax: Decimal
    cumulative_tax: Decimal
    cumulative_cash_flow: Decimal
    net_sale_price: Decimal
    total_debt: Decimal
    sale_balance: Decimal
    capital_gain_tax: Decimal
    total_gain: Decimal


class RegimeBalanceResponse(BaseModel):
    regime: TaxRegime
    rows: list[BalanceYearResponse]
    irr_by_year: dict[int, Decimal]
    best_sale_year: int | None = None
    break_even_year: int | None = None


class BalancesResponse(BaseModel):
    down_payment: Decimal
    years: list[int]
    regimes: list[RegimeBalanceResponse]


class IrrResponse(BaseModel):
    irr: Decimal
