import logging
from dataclasses import replace
from decimal import Decimal

import pytest

from immosim.engine import tax
from immosim.engine.fiscal import (
    FiscalHistory,
    audit_result,
    carry_forward_from,
    simulate_years,
    tax_results_for_year,
)
from immosim.models.expenses import YearlyExpenses
from immosim.models.regime import ALL_REGIMES, TaxParameters, TaxRegime
from immosim.models.results import TaxResult


def _heavy_works_years() -> dict[int, YearlyExpenses]:
    """Large repairs in 2024 produce a déficit foncier absorbed afterwards."""
    return {
        2024: YearlyExpenses(year=2024, rent=Decimal("10000"), repairs=Decimal("10000")),
        2025: YearlyExpenses(year=2025, rent=Decimal("10000"), property_tax=Decimal("1000")),
        2026: YearlyExpenses(year=2026, rent=Decimal("10000"), property_tax=Decimal("1000")),
    }


class TestSimulateYears:
    def test_covers_project_start_to_target(self, canonical_investment, canonical_expenses):
        history = simulate_years(canonical_investment, canonical_expenses, through_year=2027)
        assert history.years == [2024, 2025, 2026, 2027]
        assert set(history.for_year(2024)) == set(ALL_REGIMES)

    def test_defaults_to_project_end(self, canonical_investment, canonical_expenses):
        history = simulate_years(canonical_investment, canonical_expenses)
        assert history.years[-1] == 2044

    def test_previous_deficit_seeds_first_year(self, canonical_investment, canonical_expenses):
        investment = replace(
            canonical_investment,
            tax_parameters=TaxParameters(previous_deficit=Decimal("4000")),
        )
        history = simulate_years(investment, canonical_expenses, through_year=2024)
        result = history.for_year(2024)[TaxRegime.REEL_FONCIER]
        assert result.used_deficit == Decimal("4000")
        assert result.taxable_income == Decimal("7100")

    def test_deficit_threads_between_years(self, canonical_investment):
        investment = replace(
            canonical_investment,
            tax_parameters=TaxParameters(previous_deficit=Decimal("15000")),
        )
        history = simulate_years(
            investment, _heavy_works_years(), through_year=2026, regimes=[TaxRegime.REEL_FONCIER]
        )
        series = history.series(TaxRegime.REEL_FONCIER)

        # 2024: nothing to absorb, 2025: 9000 used, 2026: remaining 6000 used
        assert [r.used_deficit for r in series] == [Decimal("0"), Decimal("9000"), Decimal("6000")]
        assert [r.deficit for r in series] == [Decimal("15000"), Decimal("6000"), Decimal("0")]
        assert series[2].taxable_income == Decimal("3000")

    def test_deficit_invariants_hold(self, canonical_investment):
        investment = replace(
            canonical_investment,
            tax_parameters=TaxParameters(previous_deficit=Decimal("15000")),
        )
        series = simulate_years(investment, _heavy_works_years(), through_year=2030).series(
            TaxRegime.REEL_FONCIER
        )
        previous = Decimal("15000")
        for result in series:
            assert result.deficit >= 0
            assert result.used_deficit <= previous
            previous = result.deficit

    def test_unused_depreciation_threads_between_years(self, furnished_investment):
        expenses = {
            2024: YearlyExpenses(year=2024, furnished_rent=Decimal("9600"), interest=Decimal("9500")),
            2025: YearlyExpenses(year=2025, furnished_rent=Decimal("12000")),
        }
        history = simulate_years(
            furnished_investment, expenses, through_year=2025, regimes=[TaxRegime.REEL_BIC]
        )
        first, second = history.series(TaxRegime.REEL_BIC)
        assert first.amortization.carried_forward == Decimal("4900.00")
        assert second.amortization.carried_in == Decimal("4900.00")
        assert second.amortization.total == Decimal("9900.00")
        assert second.amortization.used == Decimal("9900.00")
        assert second.taxable_income == Decimal("2100.00")

    def test_used_depreciation_through(self, furnished_investment, furnished_expenses):
        history = simulate_years(furnished_investment, furnished_expenses, through_year=2026)
        assert history.used_depreciation_through(2025) == Decimal("10000.00")
        assert history.used_depreciation_through(2026) == Decimal("15000.00")

    def test_total_tax_invariant_every_year(self, furnished_investment, furnished_expenses):
        history = simulate_years(furnished_investment, furnished_expenses)
        for year in history.years:
            for result in history.for_year(year).values():
                assert abs(result.total_tax - (result.tax + result.social_charges)) <= Decimal("0.01")

    def test_idempotent(self, furnished_investment, furnished_expenses):
        first = simulate_years(furnished_investment, furnished_expenses)
        second = simulate_years(furnished_investment, furnished_expenses)
        assert first == second


class TestFallback:
    def test_failing_year_reuses_previous(self, canonical_investment, monkeypatch, caplog):
        original = tax.CALCULATORS[TaxRegime.MICRO_FONCIER]

        def flaky(investment, year, expenses, prior):
            if year == 2025:
                raise ArithmeticError("boom")
            return original(investment, year, expenses, prior)

        monkeypatch.setitem(tax.CALCULATORS, TaxRegime.MICRO_FONCIER, flaky)
        expenses = {
            2024: YearlyExpenses(year=2024, rent=Decimal("12000")),
            2025: YearlyExpenses(year=2025, rent=Decimal("24000")),
        }

        with caplog.at_level(logging.ERROR, logger="immosim.engine.fiscal"):
            history = simulate_years(canonical_investment, expenses, through_year=2026)

        fallback = history.for_year(2025)[TaxRegime.MICRO_FONCIER]
        assert fallback.is_fallback
        assert fallback.year == 2025
        assert fallback.taxable_income == Decimal("8400")
        assert history.for_year(2025)[TaxRegime.REEL_FONCIER].is_fallback
        assert not history.for_year(2026)[TaxRegime.MICRO_FONCIER].is_fallback
        assert "reusing previous year" in caplog.text

    def test_failing_first_year_gives_zero(self, canonical_investment, canonical_expenses, monkeypatch):
        def broken(investment, year, expenses, prior):
            raise ValueError("bad input")

        monkeypatch.setitem(tax.CALCULATORS, TaxRegime.REEL_BIC, broken)
        history = simulate_years(canonical_investment, canonical_expenses, through_year=2024)
        for result in history.for_year(2024).values():
            assert result.is_fallback
            assert result.total_tax == Decimal("0")


class TestAudit:
    def test_repairs_inconsistent_total(self, canonical_investment, caplog):
        bad = TaxResult(
            regime=TaxRegime.MICRO_FONCIER,
            year=2024,
            taxable_income=Decimal("1000"),
            tax=Decimal("300"),
            social_charges=Decimal("172"),
            total_tax=Decimal("0"),
        )
        with caplog.at_level(logging.ERROR, logger="immosim.engine.fiscal"):
            fixed = audit_result(bad, canonical_investment)
        assert fixed.total_tax == Decimal("472")
        assert "Inconsistent total tax" in caplog.text

    def test_consistent_result_untouched(self, canonical_investment):
        good = TaxResult(
            regime=TaxRegime.MICRO_FONCIER,
            year=2024,
            tax=Decimal("300"),
            social_charges=Decimal("172"),
            total_tax=Decimal("472"),
        )
        assert audit_result(good, canonical_investment) is good


class TestCarryForward:
    def test_first_year_uses_tax_parameters(self, canonical_investment):
        investment = replace(
            canonical_investment, tax_parameters=TaxParameters(previous_deficit=Decimal("2500"))
        )
        prior = carry_forward_from(None, investment)
        assert prior.deficit == Decimal("2500")
        assert prior.amortization == Decimal("0")

    def test_missing_regimes_carry_nothing(self, canonical_investment):
        previous = {TaxRegime.MICRO_FONCIER: TaxResult(regime=TaxRegime.MICRO_FONCIER, year=2024)}
        prior = carry_forward_from(previous, canonical_investment)
        assert prior.deficit == Decimal("0")
        assert prior.amortization == Decimal("0")


class TestTaxResultsForYear:
    def test_matches_history(self, canonical_investment, canonical_expenses):
        results = tax_results_for_year(canonical_investment, canonical_expenses, 2024)
        assert results[TaxRegime.MICRO_FONCIER].taxable_income == Decimal("8400")
        assert results[TaxRegime.REEL_FONCIER].taxable_income_before_deficit == Decimal("11100")

    def test_year_before_project(self, canonical_investment, canonical_expenses):
        results = tax_results_for_year(canonical_investment, canonical_expenses, 2020)
        for result in results.values():
            assert result.coverage == Decimal("0")
            assert result.total_tax == Decimal("0")

    def test_empty_history(self):
        assert FiscalHistory().for_year(2024) == {}
        assert FiscalHistory().used_depreciation_through(2030) == Decimal("0")

    @pytest.mark.parametrize("regime", list(TaxRegime))
    def test_single_regime(self, canonical_investment, canonical_expenses, regime):
        results = tax_results_for_year(canonical_investment, canonical_expenses, 2024, [regime])
        assert list(results) == [regime]
