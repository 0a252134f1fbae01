"""
BurnRate - Date Logic Module.

This module provides the date arithmetic used by payroll and reporting:
days and calendar months between dates, and days-in-month lookups for
prorating salaries.

Classes:
    DateManager: Manages all date-related calculations.
"""

import calendar
from datetime import date


class DateManager:
    """
    Manages date calculations for payroll and reporting.

    Example:
        >>> dm = DateManager()
        >>> dm.get_days_between(date(2024, 1, 1), date(2024, 3, 1))
        60
        >>> dm.get_months_between(date(2024, 1, 31), date(2024, 2, 1))
        1
    """

    def get_days_in_month(self, year: int, month: int) -> int:
        """
        Returns the total number of days in the specified month.

        Args:
            year: Four-digit year.
            month: Month number (1-12).

        Returns:
            Number of days in the specified month.

        Raises:
            ValueError: If month is not in range 1-12.
        """
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")
        return calendar.monthrange(year, month)[1]

    def get_days_between(self, start: date, end: date) -> int:
        """
        Calculates the absolute number of days between two dates.

        Argument order does not matter.

        Args:
            start: First date.
            end: Second date.

        Returns:
            Non-negative day count.
        """
        return abs((end - start).days)

    def get_months_between(self, start: date, end: date) -> int:
        """
        Calculates the number of calendar months between two dates.

        Only year and month are considered; the day of month is ignored,
        so 31 January to 1 February counts as one month. The result is
        negative when ``end`` falls in an earlier month than ``start``.

        Args:
            start: Starting date.
            end: Ending date.

        Returns:
            Signed month difference.
        """
        return (end.year - start.year) * 12 + (end.month - start.month)
