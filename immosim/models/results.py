from dataclasses import dataclass, field
from decimal import Decimal

from immosim.models.regime import TaxRegime


@dataclass(frozen=True)
class AmortizationBreakdown:
    """Réel BIC depreciation (amortissements) for one year."""
    building: Decimal = Decimal("0")
    furniture: Decimal = Decimal("0")
    works: Decimal = Decimal("0")
    other: Decimal = Decimal("0")
    carried_in: Decimal = Decimal("0")  # Unused depreciation from prior years
    total: Decimal = Decimal("0")
    used: Decimal = Decimal("0")
    carried_forward: Decimal = Decimal("0")


@dataclass(frozen=True)
class TaxResult:
    regime: TaxRegime
    year: int

    revenue: Decimal = Decimal("0")  # Taxable rent after vacancy
    taxable_income: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    social_charges: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")

    # Réel regimes
    deductible_expenses: Decimal | None = None

    # Réel foncier
    taxable_income_before_deficit: Decimal | None = None
    deficit: Decimal | None = None  # Carried forward to next year
    used_deficit: Decimal | None = None

    # Réel BIC
    amortization: AmortizationBreakdown | None = None

    coverage: Decimal = Decimal("1")  # Fraction of the year inside the project window
    is_fallback: bool = False  # Previous year's figures reused after a failure

    @property
    def is_partial_year(self) -> bool:
        return Decimal("0") < self.coverage < Decimal("1")


@dataclass(frozen=True)
class CapitalGainResult:
    regime: TaxRegime
    holding_years: int
    gross_gain: Decimal = Decimal("0")
    ir_abatement: Decimal = Decimal("0")
    social_abatement: Decimal = Decimal("0")
    taxable_gain_ir: Decimal = Decimal("0")
    taxable_gain_social: Decimal = Decimal("0")
    income_tax: Decimal = Decimal("0")
    social_charges: Decimal = Decimal("0")

    # Furnished rentals
    short_term_gain: Decimal = Decimal("0")  # LMP, taxed at the business rate
    long_term_gain: Decimal = Decimal("0")  # LMP, 12.8% + 17.2%
    depreciation_taxable: Decimal = Decimal("0")  # LMNP réel BIC reintegration
    depreciation_tax: Decimal = Decimal("0")

    total_tax: Decimal = Decimal("0")
    net_gain: Decimal = Decimal("0")


@dataclass(frozen=True)
class DispositionResult:
    regime: TaxRegime
    sale_year: int
    revalued_price: Decimal = Decimal("0")
    agency_fees: Decimal = Decimal("0")
    net_sale_price: Decimal = Decimal("0")
    remaining_balance: Decimal = Decimal("0")
    early_repayment_fees: Decimal = Decimal("0")
    total_debt: Decimal = Decimal("0")
    sale_balance: Decimal = Decimal("0")  # Before capital-gain tax
    capital_gain: CapitalGainResult | None = None

    @property
    def capital_gain_tax(self) -> Decimal:
        if self.capital_gain is None:
            return Decimal("0")
        return self.capital_gain.total_tax

    @property
    def after_tax_sale_balance(self) -> Decimal:
        return self.sale_balance - self.capital_gain_tax


@dataclass
class BalanceYear:
    year: int
    coverage: Decimal = Decimal("1")

    # Operations
    annual_cash_flow_before_tax: Decimal = Decimal("0")
    annual_tax: Decimal = Decimal("0")
    annual_cash_flow: Decimal = Decimal("0")  # Net of income tax
    cumulative_cash_flow_before_tax: Decimal = Decimal("0")
    cumulative_tax: Decimal = Decimal("0")
    cumulative_cash_flow: Decimal = Decimal("0")

    # Hypothetical sale at the end of the year
    net_sale_price: Decimal = Decimal("0")
    total_debt: Decimal = Decimal("0")
    sale_balance: Decimal = Decimal("0")
    capital_gain_tax: Decimal = Decimal("0")
    total_gain: Decimal = Decimal("0")

    @property
    def is_partial_year(self) -> bool:
        return Decimal("0") < self.coverage < Decimal("1")


@dataclass
class BalanceProjection:
    years: list[int] = field(default_factory=list)
    by_regime: dict[TaxRegime, list[BalanceYear]] = field(default_factory=dict)

    def rows(self, regime: TaxRegime) -> list[BalanceYear]:
        return self.by_regime.get(regime, [])

    def for_year(self, regime: TaxRegime, year: int) -> BalanceYear | None:
        for row in self.rows(regime):
            if row.year == year:
                return row
        return None
