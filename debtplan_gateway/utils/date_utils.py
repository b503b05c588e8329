"""Date manipulation utilities"""

import calendar
from datetime import date


def add_months(from_date: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's length"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def payoff_date(start_date: date, months: int) -> date:
    """Calendar date of the payment made in simulated month `months` (month 1 = start_date)"""
    return add_months(start_date, months - 1)
