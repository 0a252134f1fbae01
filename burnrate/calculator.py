"""
BurnRate - Financial Aggregation Engine Module.

This module provides the core calculation engine for cost reporting:
year-to-date totals, average monthly spend, compounding-growth forecasts,
progressive tax and budget utilisation classification. All calculations
use Decimal arithmetic and never mutate their inputs.

Classes:
    FinancialAggregator: Core calculation engine for cost aggregation.

Functions:
    calculate_ytd, calculate_average_monthly_spending, forecast_costs,
    calculate_progressive_tax, get_budget_status: Shortcuts onto a
    default FinancialAggregator.
"""

import logging
from decimal import (
    Decimal,
    DivisionByZero,
    InvalidOperation,
    ROUND_HALF_UP,
    localcontext,
)
from typing import List, Sequence, Union

from burnrate.schema import (
    DEFAULT_FORECAST_SPLIT,
    BudgetClassification,
    BudgetStatus,
    ForecastRecord,
    ForecastSplit,
    MonthlyRecord,
    TaxBracket,
    YTDTotals,
)

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float]


class FinancialAggregator:
    """
    Core calculation engine for startup cost aggregation.

    Every method is a pure function of its arguments; the instance only
    carries immutable configuration (forecast split, trend window, strict
    mode).

    In the default unguarded mode, a zero monthly total inside the forecast
    trend window is divided by without a guard and the resulting Infinity
    or NaN flows into every forecast value. With ``strict=True`` such
    periods are left out of the growth average instead.

    Attributes:
        split: Proportions used to decompose forecast totals.
        trend_window: Number of most recent months used for the trend.
        strict: Whether forecast divisions are guarded.

    Example:
        >>> from decimal import Decimal
        >>> aggregator = FinancialAggregator()
        >>> records = [
        ...     MonthlyRecord("Jan", Decimal("70"), Decimal("10"), Decimal("20"), Decimal("100")),
        ...     MonthlyRecord("Feb", Decimal("77"), Decimal("11"), Decimal("22"), Decimal("110")),
        ... ]
        >>> aggregator.forecast_costs(records, 1)[0].total
        Decimal('121')
    """

    # Budget utilisation thresholds (percent)
    WARNING_THRESHOLD = Decimal("70")
    CRITICAL_THRESHOLD = Decimal("90")

    DEFAULT_TREND_WINDOW = 6

    def __init__(
        self,
        split: ForecastSplit = DEFAULT_FORECAST_SPLIT,
        trend_window: int = DEFAULT_TREND_WINDOW,
        strict: bool = False
    ):
        """
        Initialises the FinancialAggregator.

        Args:
            split: Forecast decomposition proportions.
                   Defaults to 70% team, 10% intern, 20% tasks.
            trend_window: Months of history used for the growth trend.
                          Must be at least 2.
            strict: Guard zero-total divisions in the forecast.

        Raises:
            ValueError: If trend_window is less than 2.
        """
        if trend_window < 2:
            raise ValueError(
                f"Trend window must be at least 2 months, got {trend_window}"
            )
        self.split = split
        self.trend_window = trend_window
        self.strict = strict

    def calculate_ytd(self, records: Sequence[MonthlyRecord]) -> YTDTotals:
        """
        Sums every monthly field across the records.

        The total is the sum of the supplied ``total`` fields, not of the
        components, so inconsistent records carry their inconsistency
        into the result.

        Args:
            records: Monthly records in any order. May be empty.

        Returns:
            YTDTotals; all zeros for an empty input.
        """
        team_salary = Decimal("0")
        intern_stipend = Decimal("0")
        tasks = Decimal("0")
        total = Decimal("0")

        for record in records:
            team_salary += record.team_salary
            intern_stipend += record.intern_stipend
            tasks += record.tasks
            total += record.total

        return YTDTotals(
            team_salary=team_salary,
            intern_stipend=intern_stipend,
            tasks=tasks,
            total=total
        )

    def calculate_average_monthly_spending(
        self,
        records: Sequence[MonthlyRecord]
    ) -> Decimal:
        """
        Calculates the mean monthly total.

        Args:
            records: Monthly records. May be empty.

        Returns:
            Arithmetic mean of ``total``, or Decimal('0') when empty.
        """
        if len(records) == 0:
            return Decimal("0")

        total = sum((record.total for record in records), Decimal("0"))
        return total / Decimal(len(records))

    def forecast_costs(
        self,
        records: Sequence[MonthlyRecord],
        months_ahead: int = 3
    ) -> List[ForecastRecord]:
        """
        Projects future monthly totals from recent compounding growth.

        The average period-over-period relative growth across the trend
        window is applied geometrically to the most recent total:
        ``total_i = base * (1 + growth) ** i``. Each projected total is
        split by ``self.split``; the total and each component are rounded
        to whole numbers independently, so components need not add up
        exactly to the total.

        Args:
            records: Historical records in chronological order.
            months_ahead: Forecast horizon in months.

        Returns:
            One ForecastRecord per month ahead, labelled "Month +1"
            onwards. Empty when fewer than two records are supplied or
            the horizon is zero.
        """
        if len(records) < 2:
            return []

        window = list(records[-self.trend_window:])
        base = window[-1].total

        forecast: List[ForecastRecord] = []

        with localcontext() as ctx:
            # Zero totals yield Infinity/NaN instead of raising.
            ctx.traps[DivisionByZero] = False
            ctx.traps[InvalidOperation] = False

            growth_rate = self._average_growth_rate(window)
            logger.debug(
                "Forecast growth rate %s over %d months (strict=%s)",
                growth_rate, len(window), self.strict
            )

            for i in range(1, months_ahead + 1):
                projected = base * (Decimal("1") + growth_rate) ** i
                forecast.append(ForecastRecord(
                    month=f"Month +{i}",
                    total=self._round_whole(projected),
                    team_salary=self._round_whole(projected * self.split.team),
                    intern_stipend=self._round_whole(
                        projected * self.split.intern
                    ),
                    tasks=self._round_whole(projected * self.split.tasks),
                    is_forecast=True
                ))

        return forecast

    def calculate_progressive_tax(
        self,
        income: Number,
        brackets: Sequence[TaxBracket]
    ) -> Decimal:
        """
        Calculates tax owed under a progressive bracket scheme.

        Brackets are applied mechanically in the given order: each one
        taxes up to ``max - min`` of the income still remaining. No
        ordering or contiguity checks are made.

        A NaN income is not rejected: it propagates, so the result is NaN
        whenever at least one bracket is supplied.

        Args:
            income: Income to tax. Zero or negative income owes nothing.
            brackets: Tax brackets, ascending by ``min``.

        Returns:
            Total tax owed.
        """
        total_tax = Decimal("0")
        remaining_income = _to_decimal(income)

        with localcontext() as ctx:
            # NaN compares false and Infinity - Infinity gives NaN.
            ctx.traps[InvalidOperation] = False

            for bracket in brackets:
                if remaining_income <= Decimal("0"):
                    break

                bracket_range = bracket.max - bracket.min
                if remaining_income.is_nan():
                    taxable_in_bracket = remaining_income
                else:
                    taxable_in_bracket = min(remaining_income, bracket_range)
                total_tax += taxable_in_bracket * bracket.rate
                remaining_income -= taxable_in_bracket

        return total_tax

    def get_budget_status(self, utilisation: Number) -> BudgetClassification:
        """
        Classifies a budget utilisation percentage.

        Thresholds:
        - HEALTHY: below 70
        - WARNING: 70 up to (not including) 90
        - CRITICAL: 90 and above

        Values outside 0-100 are not clamped. NaN is below neither
        threshold, so it is classified as CRITICAL.

        Args:
            utilisation: Spend as a percentage of budget.

        Returns:
            BudgetClassification with status and display colour.
        """
        value = _to_decimal(utilisation)

        if value.is_nan():
            status = BudgetStatus.CRITICAL
        elif value < self.WARNING_THRESHOLD:
            status = BudgetStatus.HEALTHY
        elif value < self.CRITICAL_THRESHOLD:
            status = BudgetStatus.WARNING
        else:
            status = BudgetStatus.CRITICAL

        return BudgetClassification(status=status, color=status.color)

    def _average_growth_rate(self, window: List[MonthlyRecord]) -> Decimal:
        """
        Averages relative growth across consecutive months in the window.

        Must run inside a context that does not trap division by zero.

        Args:
            window: Two or more chronological records.

        Returns:
            Mean growth rate. Non-finite in unguarded mode when a previous
            total is zero; zero in strict mode when no pair is usable.
        """
        growth_sum = Decimal("0")
        pair_count = 0

        for prev, curr in zip(window, window[1:]):
            if self.strict and prev.total == Decimal("0"):
                logger.debug(
                    "Skipping zero-total month %r in growth trend", prev.month
                )
                continue
            growth_sum += (curr.total - prev.total) / prev.total
            pair_count += 1

        if pair_count == 0:
            return Decimal("0")

        return growth_sum / Decimal(pair_count)

    @staticmethod
    def _round_whole(value: Decimal) -> Decimal:
        """Rounds to a whole number, half up; non-finite values pass through."""
        if not value.is_finite():
            return value
        return value.to_integral_value(rounding=ROUND_HALF_UP)


def _to_decimal(value: Number) -> Decimal:
    """Converts ints and floats to Decimal via their string form."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


_default_aggregator = FinancialAggregator()


def calculate_ytd(records: Sequence[MonthlyRecord]) -> YTDTotals:
    """Sums monthly fields using the default aggregator."""
    return _default_aggregator.calculate_ytd(records)


def calculate_average_monthly_spending(
    records: Sequence[MonthlyRecord]
) -> Decimal:
    """Mean monthly total using the default aggregator."""
    return _default_aggregator.calculate_average_monthly_spending(records)


def forecast_costs(
    records: Sequence[MonthlyRecord],
    months_ahead: int = 3
) -> List[ForecastRecord]:
    """Projects future costs using the default (unguarded) aggregator."""
    return _default_aggregator.forecast_costs(records, months_ahead)


def calculate_progressive_tax(
    income: Number,
    brackets: Sequence[TaxBracket]
) -> Decimal:
    """Progressive tax using the default aggregator."""
    return _default_aggregator.calculate_progressive_tax(income, brackets)


def get_budget_status(utilisation: Number) -> BudgetClassification:
    """Budget utilisation classification using the default aggregator."""
    return _default_aggregator.get_budget_status(utilisation)
