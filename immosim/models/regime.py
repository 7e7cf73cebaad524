from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class TaxRegime(Enum):
    MICRO_FONCIER = "micro-foncier"
    REEL_FONCIER = "reel-foncier"
    MICRO_BIC = "micro-bic"
    REEL_BIC = "reel-bic"

    @property
    def is_furnished(self) -> bool:
        """Meublé regimes (LMNP/LMP) tax furnished rent under the BIC rules."""
        return self in (TaxRegime.MICRO_BIC, TaxRegime.REEL_BIC)

    @property
    def is_micro(self) -> bool:
        return self in (TaxRegime.MICRO_FONCIER, TaxRegime.MICRO_BIC)


ALL_REGIMES: tuple[TaxRegime, ...] = tuple(TaxRegime)


@dataclass(frozen=True)
class TaxParameters:
    tax_rate: Decimal = Decimal("0.30")  # Marginal income-tax bracket (TMI)
    social_charges_rate: Decimal = Decimal("0.172")  # Prélèvements sociaux
    previous_deficit: Decimal = Decimal("0")  # Déficit foncier carried in before year 1
