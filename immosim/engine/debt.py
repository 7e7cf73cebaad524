"""Monthly amortization schedule with optional deferral (différé).

Pure functions: Decimal in, dataclass out. No I/O.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from immosim.models.investment import DeferralType, Investment

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class AmortizationRow:
    month: int
    date: date
    payment: Decimal  # Principal + interest, insurance excluded
    principal: Decimal
    interest: Decimal
    insurance: Decimal
    remaining_balance: Decimal  # Total due, capitalized interest included
    is_deferred: bool = False

    @property
    def paid_interest(self) -> Decimal:
        """Interest actually paid this month. Capitalized interest is not."""
        if self.is_deferred and self.payment == 0:
            return ZERO
        return self.interest


@dataclass(frozen=True)
class AmortizationSchedule:
    rows: list[AmortizationRow] = field(default_factory=list)
    monthly_payment: Decimal = ZERO
    monthly_insurance: Decimal = ZERO
    deferred_interest: Decimal = ZERO
    total_interest: Decimal = ZERO
    total_principal: Decimal = ZERO
    total_insurance: Decimal = ZERO


def _q(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def add_months(start: date, months: int) -> date:
    """Same day `months` later, clamped to the end of shorter months."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def monthly_payment(principal: Decimal, annual_rate: Decimal, months: int) -> Decimal:
    """Fixed monthly payment (principal + interest) over `months`."""
    if principal <= 0 or months <= 0:
        return ZERO
    if annual_rate <= 0:
        return _q(principal / months)

    r = annual_rate / 12
    # M = P * [r(1+r)^n] / [(1+r)^n - 1]
    factor = (1 + r) ** months
    return _q(principal * (r * factor) / (factor - 1))


def amortization_schedule(
    loan_amount: Decimal,
    annual_rate: Decimal,
    duration_years: int,
    start: date,
    deferral_type: DeferralType = DeferralType.NONE,
    deferred_months: int = 0,
    insurance_rate: Decimal = ZERO,
) -> AmortizationSchedule:
    """Generate the full monthly schedule.

    The contractual term is `duration_years * 12` months, deferral included;
    the loan amortizes over the months left after the deferral.

    Args:
        loan_amount: Amount borrowed
        annual_rate: Annual interest rate (e.g. 0.015 for 1.5%)
        duration_years: Contractual duration
        start: Date of the first monthly row
        deferral_type: none, partial (interest paid) or total (interest capitalized)
        deferred_months: Length of the deferral window
        insurance_rate: Annual borrower insurance rate on the initial amount
    """
    total_months = duration_years * 12
    if loan_amount <= 0 or total_months <= 0:
        return AmortizationSchedule()

    deferred = 0
    if deferral_type != DeferralType.NONE:
        deferred = min(max(0, deferred_months), total_months - 1)

    r = annual_rate / 12
    insurance = _q(loan_amount * insurance_rate / 12)
    rows: list[AmortizationRow] = []
    deferred_interest = ZERO
    total_interest = ZERO

    for month in range(1, deferred + 1):
        interest = _q(loan_amount * r)
        total_interest += interest
        if deferral_type == DeferralType.TOTAL:
            deferred_interest += interest
            payment = ZERO
        else:
            payment = interest
        rows.append(AmortizationRow(
            month=month,
            date=add_months(start, month - 1),
            payment=payment,
            principal=ZERO,
            interest=interest,
            insurance=insurance,
            remaining_balance=loan_amount + deferred_interest,
            is_deferred=True,
        ))

    balance = loan_amount + deferred_interest
    pmt = monthly_payment(balance, annual_rate, total_months - deferred)
    total_principal = ZERO

    for month in range(deferred + 1, total_months + 1):
        interest = _q(balance * r)
        principal_paid = pmt - interest

        # Final payment absorbs rounding
        if month == total_months or principal_paid > balance:
            principal_paid = balance
            payment = interest + principal_paid
        else:
            payment = pmt

        balance -= principal_paid
        total_interest += interest
        total_principal += principal_paid

        rows.append(AmortizationRow(
            month=month,
            date=add_months(start, month - 1),
            payment=payment,
            principal=principal_paid,
            interest=interest,
            insurance=insurance,
            remaining_balance=balance,
        ))

    return AmortizationSchedule(
        rows=rows,
        monthly_payment=pmt,
        monthly_insurance=insurance,
        deferred_interest=deferred_interest,
        total_interest=total_interest,
        total_principal=total_principal,
        total_insurance=insurance * total_months,
    )


def schedule_for(investment: Investment) -> AmortizationSchedule:
    return amortization_schedule(
        investment.loan_amount,
        investment.interest_rate,
        investment.loan_duration_years,
        investment.acquisition_date,
        investment.deferral_type,
        investment.deferred_months,
        investment.insurance_rate,
    )


def remaining_balance_at(
    schedule: AmortizationSchedule, as_of: date, default: Decimal = ZERO
) -> Decimal:
    """Balance after the last row dated on or before `as_of`.

    `default` is returned when no row has fallen due yet.
    """
    balance = default
    for row in schedule.rows:
        if row.date > as_of:
            break
        balance = row.remaining_balance
    return balance


def yearly_loan_summary(
    schedule: AmortizationSchedule,
    project_start: date | None = None,
    project_end: date | None = None,
) -> dict[int, dict[str, Decimal]]:
    """Aggregate the schedule by calendar year.

    Rows outside the project window are left out when one is given.
    Returns {year: {payment, principal, interest, insurance}}, where interest
    is the interest actually paid.
    """
    yearly: dict[int, dict[str, Decimal]] = {}
    for row in schedule.rows:
        if project_start is not None and row.date < project_start:
            continue
        if project_end is not None and row.date > project_end:
            continue
        totals = yearly.setdefault(row.date.year, {
            "payment": ZERO,
            "principal": ZERO,
            "interest": ZERO,
            "insurance": ZERO,
        })
        totals["payment"] += row.payment
        totals["principal"] += row.principal
        totals["interest"] += row.paid_interest
        totals["insurance"] += row.insurance
    return yearly
