from datetime import date
from decimal import Decimal

from immosim.engine.debt import (
    add_months,
    amortization_schedule,
    monthly_payment,
    remaining_balance_at,
    schedule_for,
    yearly_loan_summary,
)
from immosim.models.investment import DeferralType


class TestMonthlyPayment:
    def test_canonical_loan(self):
        """195.8 K€ at 1.5% over 240 months is about 944.82 a month."""
        pmt = monthly_payment(Decimal("195800"), Decimal("0.015"), 240)
        assert Decimal("944") < pmt < Decimal("946")

    def test_zero_rate(self):
        assert monthly_payment(Decimal("120000"), Decimal("0"), 240) == Decimal("500.00")

    def test_zero_principal(self):
        assert monthly_payment(Decimal("0"), Decimal("0.015"), 240) == Decimal("0")

    def test_zero_months(self):
        assert monthly_payment(Decimal("100000"), Decimal("0.015"), 0) == Decimal("0")


class TestAmortizationSchedule:
    def test_length_and_dates(self):
        schedule = amortization_schedule(
            Decimal("195800"), Decimal("0.015"), 20, date(2024, 1, 15)
        )
        assert len(schedule.rows) == 240
        assert schedule.rows[0].date == date(2024, 1, 15)
        assert schedule.rows[-1].date == date(2043, 12, 15)

    def test_principal_sums_to_loan(self):
        schedule = amortization_schedule(Decimal("195800"), Decimal("0.015"), 20, date(2024, 1, 1))
        total = sum(row.principal for row in schedule.rows)
        assert abs(total - Decimal("195800")) <= Decimal("1")
        assert schedule.total_principal == total

    def test_ends_at_zero(self):
        schedule = amortization_schedule(Decimal("195800"), Decimal("0.015"), 20, date(2024, 1, 1))
        assert schedule.rows[-1].remaining_balance == Decimal("0")

    def test_balance_monotonically_decreasing(self):
        schedule = amortization_schedule(Decimal("195800"), Decimal("0.015"), 20, date(2024, 1, 1))
        balances = [row.remaining_balance for row in schedule.rows]
        assert all(b1 >= b2 for b1, b2 in zip(balances, balances[1:]))

    def test_first_month_interest(self):
        schedule = amortization_schedule(Decimal("195800"), Decimal("0.015"), 20, date(2024, 1, 1))
        # 195800 * 0.015 / 12 = 244.75
        assert schedule.rows[0].interest == Decimal("244.75")

    def test_zero_rate_straight_line(self):
        schedule = amortization_schedule(Decimal("120000"), Decimal("0"), 10, date(2024, 1, 1))
        assert all(row.interest == 0 for row in schedule.rows)
        assert schedule.rows[0].principal == Decimal("1000.00")
        assert schedule.total_interest == Decimal("0")

    def test_zero_loan_is_empty(self):
        schedule = amortization_schedule(Decimal("0"), Decimal("0.015"), 20, date(2024, 1, 1))
        assert schedule.rows == []
        assert schedule.monthly_payment == Decimal("0")

    def test_zero_duration_is_empty(self):
        schedule = amortization_schedule(Decimal("100000"), Decimal("0.015"), 0, date(2024, 1, 1))
        assert schedule.rows == []

    def test_insurance_on_initial_amount(self):
        schedule = amortization_schedule(
            Decimal("120000"), Decimal("0.02"), 10, date(2024, 1, 1), insurance_rate=Decimal("0.003")
        )
        assert schedule.monthly_insurance == Decimal("30.00")
        assert all(row.insurance == Decimal("30.00") for row in schedule.rows)
        assert schedule.total_insurance == Decimal("3600.00")


class TestDeferral:
    def test_partial_pays_interest_only(self):
        schedule = amortization_schedule(
            Decimal("120000"), Decimal("0.02"), 20, date(2024, 1, 1),
            deferral_type=DeferralType.PARTIAL, deferred_months=12,
        )
        deferred = schedule.rows[:12]
        assert all(row.is_deferred for row in deferred)
        assert all(row.principal == 0 for row in deferred)
        assert all(row.payment == Decimal("200.00") for row in deferred)
        assert all(row.remaining_balance == Decimal("120000") for row in deferred)
        assert schedule.deferred_interest == Decimal("0")
        assert len(schedule.rows) == 240
        assert schedule.rows[-1].remaining_balance == Decimal("0")

    def test_total_capitalizes_interest(self):
        schedule = amortization_schedule(
            Decimal("120000"), Decimal("0.02"), 20, date(2024, 1, 1),
            deferral_type=DeferralType.TOTAL, deferred_months=6,
        )
        deferred = schedule.rows[:6]
        assert all(row.payment == 0 for row in deferred)
        assert schedule.deferred_interest == Decimal("1200.00")
        assert deferred[-1].remaining_balance == Decimal("121200.00")

        principal = sum(row.principal for row in schedule.rows)
        assert abs(principal - Decimal("121200")) <= Decimal("1")
        assert schedule.rows[-1].remaining_balance == Decimal("0")

    def test_total_balance_decreases_after_deferral(self):
        schedule = amortization_schedule(
            Decimal("120000"), Decimal("0.02"), 20, date(2024, 1, 1),
            deferral_type=DeferralType.TOTAL, deferred_months=6,
        )
        balances = [row.remaining_balance for row in schedule.rows[6:]]
        assert all(b1 >= b2 for b1, b2 in zip(balances, balances[1:]))

    def test_deferral_ignored_when_type_none(self):
        schedule = amortization_schedule(
            Decimal("120000"), Decimal("0.02"), 20, date(2024, 1, 1), deferred_months=12
        )
        assert not any(row.is_deferred for row in schedule.rows)

    def test_capitalized_interest_is_not_paid_interest(self):
        schedule = amortization_schedule(
            Decimal("120000"), Decimal("0.02"), 20, date(2024, 1, 1),
            deferral_type=DeferralType.TOTAL, deferred_months=12,
        )
        summary = yearly_loan_summary(schedule)
        assert summary[2024]["interest"] == Decimal("0")
        assert summary[2024]["payment"] == Decimal("0")


class TestScheduleHelpers:
    def test_add_months_clamps_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)

    def test_remaining_balance_at(self, canonical_investment):
        schedule = schedule_for(canonical_investment)
        dec_2024 = remaining_balance_at(schedule, date(2024, 12, 31))
        assert dec_2024 == schedule.rows[11].remaining_balance
        assert remaining_balance_at(schedule, date(2050, 1, 1)) == Decimal("0")

    def test_remaining_balance_default_before_first_row(self, canonical_investment):
        schedule = schedule_for(canonical_investment)
        balance = remaining_balance_at(schedule, date(2023, 6, 30), default=Decimal("195800"))
        assert balance == Decimal("195800")

    def test_yearly_summary_sums_to_schedule(self, canonical_investment):
        schedule = schedule_for(canonical_investment)
        summary = yearly_loan_summary(schedule)
        assert sorted(summary) == list(range(2024, 2044))
        assert sum(y["principal"] for y in summary.values()) == schedule.total_principal
        assert sum(y["interest"] for y in summary.values()) == schedule.total_interest

    def test_yearly_summary_restricted_to_window(self, canonical_investment):
        schedule = schedule_for(canonical_investment)
        summary = yearly_loan_summary(schedule, date(2024, 1, 1), date(2026, 6, 30))
        assert sorted(summary) == [2024, 2025, 2026]
        assert summary[2026]["payment"] == 6 * schedule.monthly_payment
