"""
BurnRate - Financial Aggregator Tests.

Property-based and unit tests for FinancialAggregator class.
Tests ensure correct YTD summation, averaging, compounding-growth
forecasts, progressive tax and budget status classification.
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis.strategies import (
    composite,
    decimals,
    integers,
    just,
    lists,
    one_of,
    permutations,
)

from burnrate import calculator
from burnrate.calculator import FinancialAggregator
from burnrate.schema import (
    BudgetStatus,
    ForecastSplit,
    MonthlyRecord,
    TaxBracket,
    YTDTotals,
)


def make_record(month: str, total: str) -> MonthlyRecord:
    """Builds a record whose components follow the 70/10/20 split."""
    value = Decimal(total)
    return MonthlyRecord(
        month=month,
        team_salary=value * Decimal("0.7"),
        intern_stipend=value * Decimal("0.1"),
        tasks=value * Decimal("0.2"),
        total=value
    )


def make_history(*totals: str):
    """Builds chronological records from a list of totals."""
    return [make_record(f"M{i + 1}", t) for i, t in enumerate(totals)]


STANDARD_BRACKETS = [
    TaxBracket(Decimal("0"), Decimal("10000"), Decimal("0.10")),
    TaxBracket(Decimal("10000"), Decimal("40000"), Decimal("0.20")),
]


# Custom strategies for generating valid financial data
def money(min_value: str = "0", max_value: str = "100000"):
    """Non-negative two-place amounts."""
    return decimals(
        min_value=Decimal(min_value),
        max_value=Decimal(max_value),
        places=2,
        allow_nan=False,
        allow_infinity=False
    )


@composite
def monthly_records(draw, min_total: str = "0", max_total: str = "100000"):
    """Generate MonthlyRecord objects with arbitrary component values."""
    return MonthlyRecord(
        month=f"M{draw(integers(min_value=1, max_value=99))}",
        team_salary=draw(money()),
        intern_stipend=draw(money()),
        tasks=draw(money()),
        total=draw(money(min_total, max_total))
    )


@composite
def steady_histories(draw):
    """Generate 2-12 months with totals in a band that keeps growth modest."""
    return draw(lists(
        monthly_records(min_total="1000", max_total="2000"),
        min_size=2,
        max_size=12
    ))


@composite
def histories_with_zeros(draw):
    """Generate 2-12 months where some totals may be zero."""
    totals = draw(lists(
        one_of(just(Decimal("0")), money("500", "1000")),
        min_size=2,
        max_size=12
    ))
    return [make_record(f"M{i}", str(t)) for i, t in enumerate(totals)]


class TestFinancialAggregatorYTD:
    """Unit tests for year-to-date totals."""

    def setup_method(self) -> None:
        """Initialise FinancialAggregator for each test."""
        self.aggregator = FinancialAggregator()

    def test_empty_records_give_zero_totals(self) -> None:
        """Verify empty input returns the additive identity."""
        ytd = self.aggregator.calculate_ytd([])

        assert ytd == YTDTotals()
        assert ytd.total == Decimal("0")

    def test_sums_each_field(self) -> None:
        """Verify every field is summed independently."""
        records = [
            MonthlyRecord("Jan", Decimal("7000"), Decimal("1000"),
                          Decimal("2000"), Decimal("10000")),
            MonthlyRecord("Feb", Decimal("7500"), Decimal("1200"),
                          Decimal("2300"), Decimal("11000")),
        ]

        ytd = self.aggregator.calculate_ytd(records)

        assert ytd.team_salary == Decimal("14500")
        assert ytd.intern_stipend == Decimal("2200")
        assert ytd.tasks == Decimal("4300")
        assert ytd.total == Decimal("21000")

    def test_total_is_trusted_not_recomputed(self) -> None:
        """Verify an inconsistent record total propagates as given."""
        inconsistent = MonthlyRecord(
            "Jan", Decimal("100"), Decimal("10"), Decimal("20"), Decimal("999")
        )

        ytd = self.aggregator.calculate_ytd([inconsistent])

        assert ytd.total == Decimal("999")
        assert ytd.team_salary + ytd.intern_stipend + ytd.tasks == Decimal("130")

    def test_accepts_tuple_input(self) -> None:
        """Verify any sequence type is accepted."""
        ytd = self.aggregator.calculate_ytd(tuple(make_history("100", "200")))

        assert ytd.total == Decimal("300")


class TestFinancialAggregatorAverage:
    """Unit tests for average monthly spending."""

    def setup_method(self) -> None:
        """Initialise FinancialAggregator for each test."""
        self.aggregator = FinancialAggregator()

    def test_empty_records_return_zero(self) -> None:
        """Verify division by zero is guarded."""
        assert self.aggregator.calculate_average_monthly_spending([]) == Decimal("0")

    def test_single_record_returns_its_total(self) -> None:
        """Verify the average of one month is that month."""
        records = make_history("12345.67")

        average = self.aggregator.calculate_average_monthly_spending(records)

        assert average == Decimal("12345.67")

    def test_mean_of_totals(self) -> None:
        """Verify the arithmetic mean of totals."""
        records = make_history("100", "200", "600")

        average = self.aggregator.calculate_average_monthly_spending(records)

        assert average == Decimal("300")

    def test_returns_decimal_type(self) -> None:
        """Verify the average is a Decimal."""
        average = self.aggregator.calculate_average_monthly_spending(
            make_history("1", "2")
        )

        assert isinstance(average, Decimal)


class TestFinancialAggregatorForecast:
    """Unit tests for compounding-growth forecasts."""

    def setup_method(self) -> None:
        """Initialise FinancialAggregator for each test."""
        self.aggregator = FinancialAggregator()

    def test_empty_history_returns_empty(self) -> None:
        """Verify no history means no forecast."""
        assert self.aggregator.forecast_costs([], 3) == []

    def test_single_month_returns_empty(self) -> None:
        """Verify one month is insufficient history."""
        assert self.aggregator.forecast_costs(make_history("100"), 3) == []

    def test_zero_horizon_returns_empty(self) -> None:
        """Verify a zero horizon returns nothing."""
        assert self.aggregator.forecast_costs(make_history("100", "110"), 0) == []

    def test_ten_percent_growth(self) -> None:
        """Verify totals [100, 110] project 121 one month out."""
        forecast = self.aggregator.forecast_costs(make_history("100", "110"), 1)

        assert len(forecast) == 1
        assert forecast[0].total == Decimal("121")

    def test_growth_compounds(self) -> None:
        """Verify the growth rate is applied geometrically."""
        forecast = self.aggregator.forecast_costs(make_history("100", "110"), 3)

        # 110 * 1.1^3 = 146.41
        assert [fr.total for fr in forecast] == [
            Decimal("121"), Decimal("133"), Decimal("146")
        ]

    def test_labels_and_flags(self) -> None:
        """Verify labels run Month +1 .. Month +k with is_forecast set."""
        forecast = self.aggregator.forecast_costs(make_history("100", "110"), 4)

        assert [fr.month for fr in forecast] == [
            "Month +1", "Month +2", "Month +3", "Month +4"
        ]
        assert all(fr.is_forecast for fr in forecast)

    def test_default_horizon_is_three(self) -> None:
        """Verify the default horizon."""
        forecast = self.aggregator.forecast_costs(make_history("100", "110"))

        assert len(forecast) == 3

    def test_component_split(self) -> None:
        """Verify 70/10/20 decomposition of the projected total."""
        forecast = self.aggregator.forecast_costs(make_history("100", "110"), 1)

        # 121 * 0.7 = 84.7, 121 * 0.1 = 12.1, 121 * 0.2 = 24.2
        assert forecast[0].team_salary == Decimal("85")
        assert forecast[0].intern_stipend == Decimal("12")
        assert forecast[0].tasks == Decimal("24")

    def test_rounds_half_up(self) -> None:
        """Verify a half is rounded up, not to even."""
        forecast = self.aggregator.forecast_costs(make_history("10.5", "10.5"), 1)

        assert forecast[0].total == Decimal("11")

    def test_components_rounded_independently(self) -> None:
        """Verify components come from the unrounded projection."""
        forecast = self.aggregator.forecast_costs(make_history("10.5", "10.5"), 1)

        # 7.35 -> 7, 1.05 -> 1, 2.1 -> 2; total 10.5 -> 11
        assert forecast[0].team_salary == Decimal("7")
        assert forecast[0].intern_stipend == Decimal("1")
        assert forecast[0].tasks == Decimal("2")
        assert forecast[0].team_salary + forecast[0].intern_stipend \
            + forecast[0].tasks != forecast[0].total

    def test_only_last_six_months_drive_trend(self) -> None:
        """Verify history older than the trend window is ignored."""
        records = make_history("1", "5000", "100", "100", "100", "100", "100", "100")

        forecast = self.aggregator.forecast_costs(records, 2)

        assert [fr.total for fr in forecast] == [Decimal("100"), Decimal("100")]

    def test_declining_history_projects_decline(self) -> None:
        """Verify negative growth shrinks the projection."""
        forecast = self.aggregator.forecast_costs(make_history("200", "100"), 1)

        assert forecast[0].total == Decimal("50")

    def test_zero_total_in_window_yields_infinity(self) -> None:
        """Verify the unguarded division propagates Infinity."""
        forecast = self.aggregator.forecast_costs(make_history("0", "100", "110"), 2)

        assert len(forecast) == 2
        for fr in forecast:
            assert fr.total.is_infinite()
            assert fr.team_salary.is_infinite()
            assert fr.intern_stipend.is_infinite()
            assert fr.tasks.is_infinite()
            assert fr.is_forecast

    def test_zero_over_zero_yields_nan(self) -> None:
        """Verify two zero months propagate NaN."""
        forecast = self.aggregator.forecast_costs(make_history("0", "0"), 1)

        assert forecast[0].total.is_nan()

    def test_zero_total_outside_window_is_harmless(self) -> None:
        """Verify a zero older than the window does not poison the trend."""
        records = make_history("0", "100", "100", "100", "100", "100", "100")

        forecast = self.aggregator.forecast_costs(records, 1)

        assert forecast[0].total == Decimal("100")

    def test_does_not_mutate_input(self) -> None:
        """Verify the input list is left untouched."""
        records = make_history("100", "110", "120")
        snapshot = list(records)

        self.aggregator.forecast_costs(records, 3)

        assert records == snapshot

    def test_custom_split(self) -> None:
        """Verify the split can be overridden."""
        aggregator = FinancialAggregator(split=ForecastSplit(
            team=Decimal("0.5"), intern=Decimal("0.25"), tasks=Decimal("0.25")
        ))

        forecast = aggregator.forecast_costs(make_history("100", "100"), 1)

        assert forecast[0].team_salary == Decimal("50")
        assert forecast[0].intern_stipend == Decimal("25")
        assert forecast[0].tasks == Decimal("25")

    def test_custom_trend_window(self) -> None:
        """Verify a narrower window only sees the latest months."""
        aggregator = FinancialAggregator(trend_window=2)

        forecast = aggregator.forecast_costs(make_history("10", "100", "110"), 1)

        assert forecast[0].total == Decimal("121")

    def test_trend_window_below_two_raises(self) -> None:
        """Verify a window too short for a growth pair is rejected."""
        with pytest.raises(ValueError, match="at least 2"):
            FinancialAggregator(trend_window=1)


class TestFinancialAggregatorStrictMode:
    """Unit tests for the guarded forecast."""

    def setup_method(self) -> None:
        """Initialise a strict FinancialAggregator for each test."""
        self.aggregator = FinancialAggregator(strict=True)

    def test_skips_zero_base_pairs(self) -> None:
        """Verify pairs starting at zero are left out of the average."""
        forecast = self.aggregator.forecast_costs(make_history("0", "100", "110"), 1)

        assert forecast[0].total == Decimal("121")

    def test_all_pairs_skipped_means_no_growth(self) -> None:
        """Verify growth falls back to zero when no pair is usable."""
        forecast = self.aggregator.forecast_costs(make_history("0", "0"), 2)

        assert [fr.total for fr in forecast] == [Decimal("0"), Decimal("0")]

    def test_matches_unguarded_without_zeros(self) -> None:
        """Verify strict mode changes nothing for non-zero history."""
        records = make_history("100", "120", "90", "130")

        strict = self.aggregator.forecast_costs(records, 4)
        unguarded = FinancialAggregator().forecast_costs(records, 4)

        assert strict == unguarded


class TestFinancialAggregatorTax:
    """Unit tests for progressive tax."""

    def setup_method(self) -> None:
        """Initialise FinancialAggregator for each test."""
        self.aggregator = FinancialAggregator()

    def test_two_bracket_income(self) -> None:
        """Verify 10000 at 10% plus 15000 at 20%."""
        tax = self.aggregator.calculate_progressive_tax(
            Decimal("25000"), STANDARD_BRACKETS
        )

        assert tax == Decimal("4000")

    def test_zero_income(self) -> None:
        """Verify zero income owes nothing."""
        assert self.aggregator.calculate_progressive_tax(
            Decimal("0"), STANDARD_BRACKETS
        ) == Decimal("0")

    def test_income_inside_first_bracket(self) -> None:
        """Verify income below the first max is taxed at the first rate."""
        tax = self.aggregator.calculate_progressive_tax(
            Decimal("5000"), STANDARD_BRACKETS
        )

        assert tax == Decimal("500")

    def test_income_above_all_brackets_is_untaxed_beyond_them(self) -> None:
        """Verify income past the last bracket attracts no tax."""
        tax = self.aggregator.calculate_progressive_tax(
            Decimal("50000"), STANDARD_BRACKETS
        )

        # 1000 + 30000 * 0.20; the last 10000 is outside every bracket
        assert tax == Decimal("7000")

    def test_negative_income_owes_nothing(self) -> None:
        """Verify negative income exits before any bracket."""
        tax = self.aggregator.calculate_progressive_tax(
            Decimal("-5000"), STANDARD_BRACKETS
        )

        assert tax == Decimal("0")

    def test_no_brackets(self) -> None:
        """Verify an empty scheme owes nothing."""
        assert self.aggregator.calculate_progressive_tax(
            Decimal("25000"), []
        ) == Decimal("0")

    def test_accepts_int_income(self) -> None:
        """Verify plain integers are accepted."""
        assert self.aggregator.calculate_progressive_tax(
            25000, STANDARD_BRACKETS
        ) == Decimal("4000")

    def test_brackets_applied_in_given_order(self) -> None:
        """Verify out-of-order brackets are applied mechanically."""
        reversed_brackets = list(reversed(STANDARD_BRACKETS))

        tax = self.aggregator.calculate_progressive_tax(
            Decimal("25000"), reversed_brackets
        )

        # First slice is 30000 wide at 20%, so all 25000 lands there
        assert tax == Decimal("5000")

    def test_open_ended_top_bracket(self) -> None:
        """Verify an infinite upper bound taxes everything left."""
        brackets = STANDARD_BRACKETS + [
            TaxBracket(Decimal("40000"), Decimal("Infinity"), Decimal("0.30"))
        ]

        tax = self.aggregator.calculate_progressive_tax(Decimal("50000"), brackets)

        assert tax == Decimal("10000")

    def test_nan_income_propagates(self) -> None:
        """Verify NaN income yields NaN tax instead of raising."""
        tax = self.aggregator.calculate_progressive_tax(
            Decimal("NaN"), STANDARD_BRACKETS
        )

        assert tax.is_nan()

    def test_float_nan_income_propagates(self) -> None:
        """Verify a float NaN is handled like a Decimal NaN."""
        assert self.aggregator.calculate_progressive_tax(
            float("nan"), STANDARD_BRACKETS
        ).is_nan()

    def test_nan_income_without_brackets(self) -> None:
        """Verify an empty scheme still owes nothing for NaN income."""
        assert self.aggregator.calculate_progressive_tax(
            Decimal("NaN"), []
        ) == Decimal("0")

    def test_infinite_income_with_open_bracket(self) -> None:
        """Verify infinite income does not raise."""
        brackets = STANDARD_BRACKETS + [
            TaxBracket(Decimal("40000"), Decimal("Infinity"), Decimal("0.30"))
        ]

        tax = self.aggregator.calculate_progressive_tax(
            Decimal("Infinity"), brackets
        )

        assert tax.is_infinite()


class TestFinancialAggregatorBudgetStatus:
    """Unit tests for budget utilisation classification."""

    def setup_method(self) -> None:
        """Initialise FinancialAggregator for each test."""
        self.aggregator = FinancialAggregator()

    @pytest.mark.parametrize("utilisation, expected", [
        (Decimal("69.9"), BudgetStatus.HEALTHY),
        (Decimal("70"), BudgetStatus.WARNING),
        (Decimal("89.9"), BudgetStatus.WARNING),
        (Decimal("90"), BudgetStatus.CRITICAL),
        (Decimal("150"), BudgetStatus.CRITICAL),
        (Decimal("-5"), BudgetStatus.HEALTHY),
        (Decimal("0"), BudgetStatus.HEALTHY),
    ])
    def test_thresholds(self, utilisation: Decimal, expected: BudgetStatus) -> None:
        """Verify tier boundaries belong to the tier above."""
        assert self.aggregator.get_budget_status(utilisation).status == expected

    def test_accepts_float(self) -> None:
        """Verify floats are classified like Decimals."""
        assert self.aggregator.get_budget_status(69.9).status == BudgetStatus.HEALTHY
        assert self.aggregator.get_budget_status(90.0).status == BudgetStatus.CRITICAL

    @pytest.mark.parametrize("utilisation", [
        Decimal("NaN"),
        float("nan"),
    ])
    def test_nan_is_critical(self, utilisation) -> None:
        """Verify NaN falls through both thresholds to CRITICAL."""
        classification = self.aggregator.get_budget_status(utilisation)

        assert classification.status == BudgetStatus.CRITICAL
        assert classification.color == "#f44336"

    def test_non_finite_forecast_total_is_classified(self) -> None:
        """Verify an Infinity or NaN forecast can be classified."""
        forecast = self.aggregator.forecast_costs(make_history("0", "0"), 1)

        assert forecast[0].total.is_nan()
        assert self.aggregator.get_budget_status(
            forecast[0].total
        ).status == BudgetStatus.CRITICAL

    def test_colours(self) -> None:
        """Verify each tier carries its display colour."""
        assert self.aggregator.get_budget_status(10).color == "#4caf50"
        assert self.aggregator.get_budget_status(75).color == "#ff9800"
        assert self.aggregator.get_budget_status(95).color == "#f44336"


class TestModuleFunctions:
    """Module-level shortcuts use a default unguarded aggregator."""

    def test_shortcuts_match_default_instance(self) -> None:
        """Verify each shortcut returns what the default instance does."""
        records = make_history("100", "110")
        aggregator = FinancialAggregator()

        assert calculator.calculate_ytd(records) == aggregator.calculate_ytd(records)
        assert calculator.calculate_average_monthly_spending(records) == \
            aggregator.calculate_average_monthly_spending(records)
        assert calculator.forecast_costs(records, 2) == \
            aggregator.forecast_costs(records, 2)
        assert calculator.calculate_progressive_tax(25000, STANDARD_BRACKETS) == \
            Decimal("4000")
        assert calculator.get_budget_status(70).status == BudgetStatus.WARNING

    def test_shortcut_forecast_is_unguarded(self) -> None:
        """Verify the shortcut keeps the unguarded division."""
        forecast = calculator.forecast_costs(make_history("0", "100"), 1)

        assert not forecast[0].total.is_finite()


class TestFinancialAggregatorProperties:
    """Property-based tests for the aggregation engine."""

    def setup_method(self) -> None:
        """Initialise FinancialAggregator for each test."""
        self.aggregator = FinancialAggregator()

    @given(lists(monthly_records(), max_size=12), lists(monthly_records(), max_size=12))
    @settings(max_examples=100)
    def test_ytd_is_additive(self, first, second) -> None:
        """
        Property: YTD of a concatenation is the sum of the YTDs.
        """
        combined = self.aggregator.calculate_ytd(first + second)
        a = self.aggregator.calculate_ytd(first)
        b = self.aggregator.calculate_ytd(second)

        assert combined.team_salary == a.team_salary + b.team_salary
        assert combined.intern_stipend == a.intern_stipend + b.intern_stipend
        assert combined.tasks == a.tasks + b.tasks
        assert combined.total == a.total + b.total

    @given(lists(monthly_records(), max_size=12).flatmap(
        lambda rs: permutations(rs).map(lambda p: (rs, p))
    ))
    @settings(max_examples=100)
    def test_ytd_is_order_independent(self, pair) -> None:
        """
        Property: YTD does not depend on record order.
        """
        original, shuffled = pair

        assert self.aggregator.calculate_ytd(original) == \
            self.aggregator.calculate_ytd(shuffled)

    @given(steady_histories(), integers(min_value=1, max_value=12))
    @settings(max_examples=100)
    def test_forecast_length_and_labels(self, records, months_ahead: int) -> None:
        """
        Property: k months ahead gives k labelled forecast entries.
        """
        forecast = self.aggregator.forecast_costs(records, months_ahead)

        assert len(forecast) == months_ahead
        assert [fr.month for fr in forecast] == [
            f"Month +{i}" for i in range(1, months_ahead + 1)
        ]
        assert all(fr.is_forecast for fr in forecast)

    @given(steady_histories(), integers(min_value=1, max_value=12))
    @settings(max_examples=100)
    def test_forecast_components_close_to_split(self, records, months_ahead: int) -> None:
        """
        Property: components sit within rounding of 70/10/20 of the total.
        """
        for fr in self.aggregator.forecast_costs(records, months_ahead):
            assert abs(fr.team_salary - Decimal("0.7") * fr.total) <= 1
            assert abs(fr.intern_stipend - Decimal("0.1") * fr.total) <= 1
            assert abs(fr.tasks - Decimal("0.2") * fr.total) <= 1
            assert abs(fr.team_salary + fr.intern_stipend + fr.tasks - fr.total) <= 2

    @given(steady_histories(), integers(min_value=0, max_value=12))
    @settings(max_examples=100)
    def test_forecast_is_deterministic(self, records, months_ahead: int) -> None:
        """
        Property: equal inputs in distinct lists give equal forecasts.
        """
        first = self.aggregator.forecast_costs(records, months_ahead)
        second = self.aggregator.forecast_costs(list(records), months_ahead)

        assert first == second

    @given(histories_with_zeros(), integers(min_value=1, max_value=12))
    @settings(max_examples=100)
    def test_strict_forecast_is_always_finite(self, records, months_ahead: int) -> None:
        """
        Property: strict mode never produces Infinity or NaN.
        """
        strict = FinancialAggregator(strict=True)

        for fr in strict.forecast_costs(records, months_ahead):
            assert fr.total.is_finite()
            assert fr.team_salary.is_finite()
            assert fr.intern_stipend.is_finite()
            assert fr.tasks.is_finite()

    @given(money("0", "100000"), money("0", "100000"))
    @settings(max_examples=200)
    def test_tax_is_monotonic(self, a: Decimal, b: Decimal) -> None:
        """
        Property: more income never means less tax with contiguous brackets.
        """
        low, high = sorted((a, b))

        assert self.aggregator.calculate_progressive_tax(low, STANDARD_BRACKETS) <= \
            self.aggregator.calculate_progressive_tax(high, STANDARD_BRACKETS)

    @given(decimals(min_value=Decimal("-50"), max_value=Decimal("200"),
                    places=2, allow_nan=False, allow_infinity=False))
    @settings(max_examples=200)
    def test_budget_status_classification(self, utilisation: Decimal) -> None:
        """
        Property: classification follows the 70/90 thresholds.
        """
        result = self.aggregator.get_budget_status(utilisation)

        if utilisation < Decimal("70"):
            expected = BudgetStatus.HEALTHY
        elif utilisation < Decimal("90"):
            expected = BudgetStatus.WARNING
        else:
            expected = BudgetStatus.CRITICAL

        assert result.status == expected
        assert result.color == expected.color
