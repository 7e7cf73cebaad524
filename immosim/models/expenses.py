from dataclasses import dataclass, fields, replace
from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")

# Charges deductible under the réel regimes. Loan payment (principal + interest)
# and other non-deductible charges are cash outflows only.
DEDUCTIBLE_FIELDS = (
    "property_tax",
    "condo_fees",
    "property_insurance",
    "management_fees",
    "unpaid_rent_insurance",
    "repairs",
    "other_deductible",
    "loan_insurance",
    "interest",
)

CASH_CHARGE_FIELDS = (
    "property_tax",
    "condo_fees",
    "property_insurance",
    "management_fees",
    "unpaid_rent_insurance",
    "repairs",
    "other_deductible",
    "other_non_deductible",
    "loan_payment",
    "loan_insurance",
)


@dataclass(frozen=True)
class YearlyExpenses:
    """Revenue and charges recorded for one calendar year."""

    year: int

    # Revenue
    rent: Decimal = Decimal("0")  # Unfurnished (location nue)
    furnished_rent: Decimal = Decimal("0")  # Meublé
    tenant_charges: Decimal = Decimal("0")  # Charges reimbursed by the tenant
    tax_benefit: Decimal = Decimal("0")  # Aide fiscale

    # Charges
    property_tax: Decimal = Decimal("0")
    condo_fees: Decimal = Decimal("0")
    property_insurance: Decimal = Decimal("0")
    management_fees: Decimal = Decimal("0")
    unpaid_rent_insurance: Decimal = Decimal("0")
    repairs: Decimal = Decimal("0")
    other_deductible: Decimal = Decimal("0")
    other_non_deductible: Decimal = Decimal("0")

    # Financing
    loan_payment: Decimal = Decimal("0")
    loan_insurance: Decimal = Decimal("0")
    interest: Decimal = Decimal("0")

    @classmethod
    def zero(cls, year: int) -> "YearlyExpenses":
        return cls(year=year)

    @property
    def deductible_charges(self) -> Decimal:
        """Réel deductible charges, net of the tenant-charge reimbursement."""
        total = sum((getattr(self, name) for name in DEDUCTIBLE_FIELDS), Decimal("0"))
        return total - self.tenant_charges

    @property
    def cash_charges(self) -> Decimal:
        return sum((getattr(self, name) for name in CASH_CHARGE_FIELDS), Decimal("0"))

    def prorated(self, coverage: Decimal) -> "YearlyExpenses":
        """Scale every amount by the fraction of the year the project covers."""
        if coverage == 1:
            return self
        scaled = {
            f.name: (getattr(self, f.name) * coverage).quantize(TWO_PLACES, ROUND_HALF_UP)
            for f in fields(self)
            if f.name != "year"
        }
        return replace(self, **scaled)


@dataclass(frozen=True)
class ExpenseGrowth:
    """Annual growth rate per category, used to project a base year forward."""

    rent: Decimal = Decimal("0.02")
    furnished_rent: Decimal = Decimal("0.02")
    tenant_charges: Decimal = Decimal("0.02")
    tax_benefit: Decimal = Decimal("0.01")
    property_tax: Decimal = Decimal("0.02")
    condo_fees: Decimal = Decimal("0.02")
    property_insurance: Decimal = Decimal("0.01")
    management_fees: Decimal = Decimal("0.01")
    unpaid_rent_insurance: Decimal = Decimal("0.01")
    repairs: Decimal = Decimal("0.02")
    other_deductible: Decimal = Decimal("0.01")
    other_non_deductible: Decimal = Decimal("0.01")
