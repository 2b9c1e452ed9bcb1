"""
Calendar arithmetic for trailing-period targets.
Pure functions - whole calendar years, no business-day logic.
"""

from datetime import date

from dateutil.relativedelta import relativedelta


class CalendarError(ValueError):
    """Raised when a calendar offset is invalid."""
    pass


def years_before(day: date, years: int) -> date:
    """
    Return the same month and day a number of calendar years earlier.

    Leap-year behaviour: Feb 29 maps to Feb 28 when the target year is not
    a leap year (relativedelta clamps the day to the end of the month).
    Every other date keeps its month and day unchanged.

    Args:
        day: Reference date (usually the latest observation date)
        years: Number of whole years to step back (>= 0)

    Returns:
        Target date `years` years before `day`

    Raises:
        CalendarError: If years is negative or not an integer

    Example:
        years_before(date(2024, 2, 29), 1) -> date(2023, 2, 28)
        years_before(date(2024, 2, 29), 4) -> date(2020, 2, 29)
    """
    if isinstance(years, bool) or not isinstance(years, int):
        raise CalendarError(f"years must be an integer, got {type(years)}")

    if years < 0:
        raise CalendarError(f"years must be non-negative, got {years}")

    return day - relativedelta(years=years)
