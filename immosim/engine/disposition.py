"""Property disposition (sale) analysis.

Plus-value immobilière des particuliers (CGI art. 150 U, 150 VC) with the
holding-period abatements, and the furnished-rental overrides: LMP
short/long-term split (CGI art. 39 duodecies) and LMNP réel BIC
depreciation reintegration.

Pure functions. No I/O.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from immosim.engine.debt import AmortizationSchedule, remaining_balance_at
from immosim.models.investment import AppreciationType, Investment, SaleParameters
from immosim.models.regime import TaxRegime
from immosim.models.results import CapitalGainResult, DispositionResult

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")
ONE = Decimal("1")

# Tax rates
CAPITAL_GAIN_IR_RATE = Decimal("0.19")
CAPITAL_GAIN_SOCIAL_RATE = Decimal("0.172")
LONG_TERM_IR_RATE = Decimal("0.128")  # LMP long-term gain, flat tax
LONG_TERM_SOCIAL_RATE = Decimal("0.172")

LMP_SHORT_TERM_YEARS = 2


def _q(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def ir_abatement(holding_years: int) -> Decimal:
    """Income-tax abatement: 6% a year from year 6, exempt from year 22."""
    if holding_years <= 5:
        return ZERO
    if holding_years >= 22:
        return ONE
    return min(ONE, (holding_years - 5) * Decimal("0.06"))


def social_abatement(holding_years: int) -> Decimal:
    """Social-charges abatement: 1.65% a year from year 6, 1.6% in year 22,
    9% a year after that, exempt from year 31."""
    if holding_years <= 5:
        return ZERO
    if holding_years >= 31:
        return ONE
    if holding_years <= 21:
        return (holding_years - 5) * Decimal("0.0165")
    abatement = (
        16 * Decimal("0.0165")
        + Decimal("0.016")
        + min(8, holding_years - 22) * Decimal("0.09")
    )
    return min(ONE, abatement)


def capital_gain_tax(
    corrected_cost: Decimal,
    net_sale_price: Decimal,
    holding_years: int,
    regime: TaxRegime,
    is_lmp: bool = False,
    accumulated_depreciation: Decimal = ZERO,
    business_tax_rate: Decimal = ZERO,
) -> CapitalGainResult:
    """Tax on the gain realised at sale.

    Args:
        corrected_cost: Purchase price + acquisition fees + improvement works
        net_sale_price: Sale price net of the seller's agency fees
        holding_years: Sale year minus acquisition year
        regime: Regime the property was let under
        is_lmp: Professional furnished letting (LMP)
        accumulated_depreciation: Réel BIC depreciation deducted up to the sale
        business_tax_rate: Marginal rate applied to short-term / reintegrated gain
    """
    gross_gain = net_sale_price - corrected_cost
    if gross_gain <= 0:
        return CapitalGainResult(
            regime=regime,
            holding_years=holding_years,
            gross_gain=gross_gain,
            net_gain=gross_gain,
        )

    if regime.is_furnished and is_lmp:
        if holding_years <= LMP_SHORT_TERM_YEARS:
            short_term = gross_gain
        else:
            short_term = min(max(ZERO, accumulated_depreciation), gross_gain)
        long_term = gross_gain - short_term

        income_tax = _q(short_term * business_tax_rate) + _q(long_term * LONG_TERM_IR_RATE)
        social = _q(long_term * LONG_TERM_SOCIAL_RATE)
        total = income_tax + social
        return CapitalGainResult(
            regime=regime,
            holding_years=holding_years,
            gross_gain=gross_gain,
            income_tax=income_tax,
            social_charges=social,
            short_term_gain=short_term,
            long_term_gain=long_term,
            total_tax=total,
            net_gain=gross_gain - total,
        )

    ir_rate = ir_abatement(holding_years)
    social_rate = social_abatement(holding_years)
    taxable_ir = _q(gross_gain * (1 - ir_rate))
    taxable_social = _q(gross_gain * (1 - social_rate))
    income_tax = _q(taxable_ir * CAPITAL_GAIN_IR_RATE)
    social = _q(taxable_social * CAPITAL_GAIN_SOCIAL_RATE)

    depreciation_taxable = ZERO
    depreciation_tax = ZERO
    if regime == TaxRegime.REEL_BIC and accumulated_depreciation > 0:
        depreciation_taxable = min(accumulated_depreciation, gross_gain)
        depreciation_tax = _q(depreciation_taxable * business_tax_rate)

    total = income_tax + social + depreciation_tax
    return CapitalGainResult(
        regime=regime,
        holding_years=holding_years,
        gross_gain=gross_gain,
        ir_abatement=ir_rate.quantize(FOUR_PLACES, ROUND_HALF_UP),
        social_abatement=social_rate.quantize(FOUR_PLACES, ROUND_HALF_UP),
        taxable_gain_ir=taxable_ir,
        taxable_gain_social=taxable_social,
        income_tax=income_tax,
        social_charges=social,
        depreciation_taxable=depreciation_taxable,
        depreciation_tax=depreciation_tax,
        total_tax=total,
        net_gain=gross_gain - total,
    )


def revalued_price(purchase_price: Decimal, annual_increase: Decimal, years: int) -> Decimal:
    """Purchase price compounded at the yearly revaluation rate."""
    return _q(purchase_price * (1 + annual_increase) ** max(0, years))


def sale_price(purchase_price: Decimal, sale_parameters: SaleParameters, years: int) -> Decimal:
    """Gross sale price under the chosen appreciation mode.

    An AMOUNT mode without a price sells at the purchase price.
    """
    mode = sale_parameters.appreciation_type
    if mode == AppreciationType.AMOUNT:
        if sale_parameters.sale_price is None:
            return _q(purchase_price)
        return _q(sale_parameters.sale_price)
    if mode == AppreciationType.GLOBAL:
        return _q(purchase_price * (1 + sale_parameters.global_increase))
    return revalued_price(purchase_price, sale_parameters.annual_increase, years)


def compute_disposition(
    investment: Investment,
    sale_year: int,
    regime: TaxRegime,
    sale_parameters: SaleParameters,
    schedule: AmortizationSchedule,
    accumulated_depreciation: Decimal = ZERO,
) -> DispositionResult:
    """Hypothetical sale on 31 December of `sale_year`.

    The debt still owed is the schedule balance at that date, or the full
    loan when no instalment has fallen due yet, plus early repayment fees.
    """
    price = sale_price(
        investment.purchase_price, sale_parameters, sale_year - investment.start_year
    )
    net_sale_price = price - sale_parameters.agency_fees

    remaining = remaining_balance_at(
        schedule, date(sale_year, 12, 31), default=investment.loan_amount
    )
    total_debt = remaining + sale_parameters.early_repayment_fees

    gain = capital_gain_tax(
        corrected_cost=investment.corrected_acquisition_cost,
        net_sale_price=net_sale_price,
        holding_years=max(0, sale_year - investment.acquisition_year),
        regime=regime,
        is_lmp=investment.is_lmp,
        accumulated_depreciation=accumulated_depreciation,
        business_tax_rate=investment.tax_parameters.tax_rate,
    )

    return DispositionResult(
        regime=regime,
        sale_year=sale_year,
        revalued_price=price,
        agency_fees=sale_parameters.agency_fees,
        net_sale_price=net_sale_price,
        remaining_balance=remaining,
        early_repayment_fees=sale_parameters.early_repayment_fees,
        total_debt=total_debt,
        sale_balance=net_sale_price - total_debt,
        capital_gain=gain,
    )
