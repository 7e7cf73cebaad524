from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from immosim.models.regime import TaxParameters


class DeferralType(Enum):
    NONE = "none"
    PARTIAL = "partial"  # Interest and insurance paid, principal untouched
    TOTAL = "total"  # Nothing paid but insurance, interest capitalized


@dataclass(frozen=True)
class DepreciationBasis:
    """Amounts depreciated linearly under réel BIC, with their duration in years."""
    building_value: Decimal = Decimal("0")  # Excluding land
    building_years: int = 25
    furniture_value: Decimal = Decimal("0")
    furniture_years: int = 10
    works_value: Decimal = Decimal("0")
    works_years: int = 10
    other_value: Decimal = Decimal("0")
    other_years: int = 5


class AppreciationType(Enum):
    ANNUAL = "annual"  # Purchase price compounded each year
    GLOBAL = "global"  # One increase over the whole holding period
    AMOUNT = "amount"  # Sale price given outright


@dataclass(frozen=True)
class SaleParameters:
    annual_increase: Decimal = Decimal("0.02")  # Yearly revaluation of the property
    agency_fees: Decimal = Decimal("0")  # Agency fees paid by the seller
    early_repayment_fees: Decimal = Decimal("0")  # Indemnités de remboursement anticipé
    appreciation_type: AppreciationType = AppreciationType.ANNUAL
    global_increase: Decimal = Decimal("0")
    sale_price: Decimal | None = None  # Used by AppreciationType.AMOUNT


@dataclass(frozen=True)
class Investment:
    project_start_date: date
    project_end_date: date
    purchase_price: Decimal
    name: str = ""

    # Acquisition
    agency_fees: Decimal = Decimal("0")
    notary_fees: Decimal = Decimal("0")
    bank_fees: Decimal = Decimal("0")
    bank_guarantee_fees: Decimal = Decimal("0")
    mandatory_diagnostics: Decimal = Decimal("0")
    renovation_costs: Decimal = Decimal("0")
    improvement_works: Decimal = Decimal("0")  # Added to the cost basis at sale

    # Financing
    loan_amount: Decimal = Decimal("0")
    interest_rate: Decimal = Decimal("0")  # Annual, e.g. 0.015
    loan_duration_years: int = 20
    insurance_rate: Decimal = Decimal("0")  # Annual, on the initial amount
    deferral_type: DeferralType = DeferralType.NONE
    deferred_months: int = 0
    start_date: date | None = None  # Loan / acquisition start, defaults to project start

    # Operations
    vacancy_rate: Decimal = Decimal("0")

    # Tax
    tax_parameters: TaxParameters = field(default_factory=TaxParameters)
    depreciation: DepreciationBasis = field(default_factory=DepreciationBasis)
    is_lmp: bool = False  # Loueur en meublé professionnel

    @property
    def acquisition_date(self) -> date:
        return self.start_date or self.project_start_date

    @property
    def start_year(self) -> int:
        return self.project_start_date.year

    @property
    def acquisition_year(self) -> int:
        return self.acquisition_date.year

    @property
    def end_year(self) -> int:
        return self.project_end_date.year

    @property
    def project_years(self) -> range:
        return range(self.project_start_date.year, self.project_end_date.year + 1)

    @property
    def total_acquisition_cost(self) -> Decimal:
        return (
            self.purchase_price
            + self.agency_fees
            + self.notary_fees
            + self.bank_fees
            + self.bank_guarantee_fees
            + self.mandatory_diagnostics
            + self.renovation_costs
        )

    @property
    def down_payment(self) -> Decimal:
        """Personal contribution: everything the loan does not finance."""
        return max(Decimal("0"), self.total_acquisition_cost - self.loan_amount)

    @property
    def corrected_acquisition_cost(self) -> Decimal:
        """Prix d'acquisition corrigé used for the capital gain."""
        return self.purchase_price + self.notary_fees + self.agency_fees + self.improvement_works
