"""Fraction of a calendar year covered by the project window.

Pure functions. No I/O.
"""

from datetime import date
from decimal import Decimal


def year_coverage(project_start: date, project_end: date, year: int) -> Decimal:
    """Covered days / days in year, 0 when the year lies outside the project."""
    start_of_year = date(year, 1, 1)
    end_of_year = date(year, 12, 31)

    start = max(project_start, start_of_year)
    end = min(project_end, end_of_year)
    if end < start:
        return Decimal("0")

    days_in_year = (end_of_year - start_of_year).days + 1
    covered_days = (end - start).days + 1
    if covered_days >= days_in_year:
        return Decimal("1")
    return Decimal(covered_days) / Decimal(days_in_year)
