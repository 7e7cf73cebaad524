"""IRR computation using scipy.

Newton-Raphson on the NPV of an annual cash-flow vector, seeded at 10%.
When Newton fails to settle on a rate above -100%, Brent's method takes over
on the first bracketing interval found on a fixed grid of rates.

Pure functions. No I/O.
"""

import logging
import math
import warnings
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from scipy.optimize import brentq, newton

from immosim.config import settings

logger = logging.getLogger(__name__)

FOUR_PLACES = Decimal("0.0001")

# Candidate rates scanned for a sign change of the NPV, all above -100%
BRACKET_RATES = (-0.99, -0.9, -0.75, -0.5, -0.25, 0.0, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0)


def npv(cash_flows: list[float], rate: float) -> float:
    return sum(cf / (1 + rate) ** t for t, cf in enumerate(cash_flows))


def npv_derivative(cash_flows: list[float], rate: float) -> float:
    return sum(-t * cf / (1 + rate) ** (t + 1) for t, cf in enumerate(cash_flows))


def _has_sign_change(cash_flows: list[float]) -> bool:
    return any(cf < 0 for cf in cash_flows) and any(cf > 0 for cf in cash_flows)


def _is_usable(rate: float) -> bool:
    return math.isfinite(rate) and rate > -1


def _bracketed_irr(cash_flows: list[float], guess: float, tolerance: float) -> float | None:
    """Brent's method on the grid interval closest to `guess` where the NPV changes sign."""
    values = []
    for rate in BRACKET_RATES:
        try:
            values.append((rate, npv(cash_flows, rate)))
        except OverflowError:
            continue

    brackets = [
        (lo, hi)
        for (lo, npv_lo), (hi, npv_hi) in zip(values, values[1:])
        if npv_lo * npv_hi <= 0
    ]
    if not brackets:
        return None

    lo, hi = min(brackets, key=lambda b: abs((b[0] + b[1]) / 2 - guess))
    return brentq(lambda r: npv(cash_flows, r), lo, hi, xtol=tolerance, maxiter=1000)


def solve_irr(
    cash_flows: list[float],
    guess: float | None = None,
    tolerance: float | None = None,
    max_iterations: int | None = None,
) -> float:
    """Rate at which the NPV of `cash_flows` is zero.

    cash_flows[0] is the initial outlay (negative). A Newton run that does not
    converge, or lands at or below -100%, is retried with a bracketed search.
    When neither finds a root the last usable Newton estimate is returned,
    else 0. Flows without both signs have no IRR and give 0.
    """
    if len(cash_flows) < 2 or not _has_sign_change(cash_flows):
        return 0.0

    guess = settings.irr_initial_guess if guess is None else guess
    tolerance = settings.irr_tolerance if tolerance is None else tolerance
    max_iterations = settings.irr_max_iterations if max_iterations is None else max_iterations

    rate, converged = math.nan, False
    try:
        with warnings.catch_warnings():
            # Zero derivative or exhausted iterations: keep the last estimate
            warnings.simplefilter("ignore", RuntimeWarning)
            rate, result = newton(
                lambda r: npv(cash_flows, r),
                guess,
                fprime=lambda r: npv_derivative(cash_flows, r),
                tol=tolerance,
                maxiter=max_iterations,
                full_output=True,
                disp=False,
            )
        rate, converged = float(rate), result.converged
        if not converged:
            logger.warning(
                "IRR did not converge after %d iterations (%s), last rate %.6f",
                result.iterations,
                result.flag,
                rate,
            )
    except (ZeroDivisionError, OverflowError):
        logger.warning("IRR iteration diverged for %d cash flows", len(cash_flows))

    if converged and _is_usable(rate):
        return rate

    bracketed = _bracketed_irr(cash_flows, guess, tolerance)
    if bracketed is not None:
        logger.info("IRR found by bracketed search: %.6f", bracketed)
        return bracketed
    if _is_usable(rate):
        return rate

    logger.warning("No IRR found for %d cash flows, using 0", len(cash_flows))
    return 0.0


def compute_irr(cash_flows: list[Decimal]) -> Decimal:
    """IRR of yearly Decimal flows (outlay first, sale proceeds in the last), to 4 places."""
    if len(cash_flows) < 2:
        return Decimal("0")

    rate = solve_irr([float(cf) for cf in cash_flows])
    try:
        return Decimal(repr(rate)).quantize(FOUR_PLACES, ROUND_HALF_UP)
    except InvalidOperation:
        logger.warning("IRR %r cannot be expressed to 4 places, using 0", rate)
        return Decimal("0")
