from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # App
    debug: bool = False
    log_level: str = "INFO"

    # Flat allowances of the micro regimes (Parliament changes these)
    micro_foncier_allowance: Decimal = Decimal("0.30")
    micro_bic_allowance: Decimal = Decimal("0.50")

    # Revenue ceilings above which the micro regimes are not available
    micro_foncier_threshold: Decimal = Decimal("15000")
    micro_bic_threshold: Decimal = Decimal("72600")

    # Sale parameters used when the caller has none on record
    default_sale_annual_increase: Decimal = Decimal("0.02")
    default_sale_agency_fees: Decimal = Decimal("0")
    default_early_repayment_fees: Decimal = Decimal("0")

    # IRR solver
    irr_initial_guess: float = 0.10
    irr_tolerance: float = 1e-7
    irr_max_iterations: int = 100

    # Allowed drift between total_tax and tax + social_charges
    consistency_tolerance: Decimal = Decimal("0.01")


settings = Settings()
