"""
BurnRate - Main Entry Point.

Startup cost aggregation and forecasting tool. Reads monthly spend
history, reports year-to-date totals and average spend, projects costs
forward, classifies budget utilisation, measures department budgets and
estimates progressive tax.

Usage:
    python main.py <history_csv> [--months-ahead N] [--budget AMOUNT]
                   [--brackets <brackets_csv> --income AMOUNT]
                   [--budgets <allocations_csv>]
                   [--strict] [--output-dir <dir>] [--log-level LEVEL]

Example:
    python main.py history.csv --budget 900000 --output-dir reports/
"""

import argparse
import logging
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from burnrate import __version__
from burnrate.audit import AuditLogger
from burnrate.budgets import BudgetPlanner
from burnrate.calculator import FinancialAggregator
from burnrate.excel_generator import ExcelReporter
from burnrate.payroll import PayrollCalculator
from burnrate.schema import BudgetAllocation, ReportSnapshot, TaxBracket
from burnrate.settings import Settings, load_settings
from burnrate.validator import DataValidator, ValidationResult

logger = logging.getLogger(__name__)


def print_header() -> None:
    """Prints the application header."""
    print("=" * 60)
    print("  BurnRate - Startup Cost Forecasting")
    print(f"  Version: {__version__}")
    print("=" * 60)
    print()


def print_summary(snapshot: ReportSnapshot, validator: DataValidator) -> None:
    """
    Prints a summary of the report to the console.

    Args:
        snapshot: Report snapshot with results.
        validator: Validator used for currency formatting.
    """
    usd = validator.format_usd

    print("\n" + "=" * 60)
    print("  REPORT COMPLETE")
    print("=" * 60)
    print()

    print("  YEAR TO DATE")
    print("  " + "-" * 40)
    print(f"  Team Salary:       {usd(snapshot.ytd.team_salary)}")
    print(f"  Intern Stipend:    {usd(snapshot.ytd.intern_stipend)}")
    print(f"  Tasks:             {usd(snapshot.ytd.tasks)}")
    print(f"  Total:             {usd(snapshot.ytd.total)}")
    print(f"  Monthly Average:   {usd(snapshot.average_monthly_spending)}")
    print()

    if snapshot.budget_status is not None:
        print("  BUDGET")
        print("  " + "-" * 40)
        print(f"  Budget:            {usd(snapshot.budget)}")
        print(f"  Utilisation:       "
              f"{validator.format_percentage(snapshot.utilisation)}")
        print(f"  Status:            {snapshot.budget_status.status.value.upper()}")
        print()

    if snapshot.forecast:
        mode = "strict" if snapshot.strict_mode else "unguarded"
        print(f"  FORECAST ({mode} mode)")
        print("  " + "-" * 40)
        for fr in snapshot.forecast:
            print(f"  {fr.month:<10}         {usd(fr.total)}")
        print()

    if snapshot.tax_owed is not None:
        print("  TAX ESTIMATE")
        print("  " + "-" * 40)
        print(f"  Income:            {usd(snapshot.tax_income)}")
        print(f"  Tax Owed:          {usd(snapshot.tax_owed)}")
        print()

    overview = snapshot.budget_overview
    if overview is not None:
        print("  DEPARTMENT BUDGETS")
        print("  " + "-" * 40)
        for item in overview.allocations:
            print(f"  {item.allocation.department:<18} "
                  f"{usd(item.allocation.spent)} of "
                  f"{usd(item.allocation.budget_amount)} "
                  f"({validator.format_percentage(item.utilisation)}, "
                  f"{item.classification.status.value.upper()})")
        print(f"  Total Budget:      {usd(overview.total_budget)}")
        print(f"  Total Spent:       {usd(overview.total_spent)}")
        print(f"  Remaining:         {usd(overview.total_remaining)}")
        print(f"  Utilisation:       "
              f"{validator.format_percentage(overview.utilisation)}")
        print(f"  Status:            "
              f"{overview.classification.status.value.upper()}")
        print()


def print_validation_errors(result: ValidationResult) -> None:
    """
    Prints the first validation errors of a failed result.

    Args:
        result: Validation result with errors.
    """
    print(f"\n  ERROR: VALIDATION FAILED ({result.error_count} errors):")
    for error in result.errors[:10]:
        print(f"     {error}")
    if result.error_count > 10:
        print(f"     ... and {result.error_count - 10} more errors")


def build_snapshot(
    result: ValidationResult,
    aggregator: FinancialAggregator,
    months_ahead: int,
    budget: Optional[Decimal] = None,
    brackets: Optional[List[TaxBracket]] = None,
    income: Optional[Decimal] = None,
    allocations: Optional[List[BudgetAllocation]] = None
) -> ReportSnapshot:
    """
    Runs every aggregation over validated history.

    Args:
        result: Validated monthly history.
        aggregator: Configured FinancialAggregator.
        months_ahead: Forecast horizon.
        budget: Budget to measure YTD spend against, if any.
        brackets: Tax brackets, if a tax estimate is wanted.
        income: Income to tax, required with brackets.
        allocations: Department budgets to measure, if any.

    Returns:
        ReportSnapshot with all derived figures.
    """
    records = result.records

    snapshot = ReportSnapshot(
        timestamp=datetime.now(),
        version=__version__,
        records=records,
        ytd=aggregator.calculate_ytd(records),
        average_monthly_spending=aggregator.calculate_average_monthly_spending(records),
        forecast=aggregator.forecast_costs(records, months_ahead),
        strict_mode=aggregator.strict,
    )

    if budget is not None:
        payroll = PayrollCalculator()
        snapshot.budget = budget
        snapshot.utilisation = payroll.calculate_budget_utilisation(
            snapshot.ytd.total, budget
        )
        snapshot.budget_status = aggregator.get_budget_status(snapshot.utilisation)

    if brackets is not None and income is not None:
        snapshot.tax_income = income
        snapshot.tax_owed = aggregator.calculate_progressive_tax(income, brackets)

    if allocations is not None:
        planner = BudgetPlanner(aggregator=aggregator)
        snapshot.budget_overview = planner.summarise(allocations)

    return snapshot


def run_report(
    csv_path: Path,
    output_dir: Path,
    settings: Settings,
    months_ahead: int,
    strict: bool,
    budget: Optional[Decimal] = None,
    brackets_path: Optional[Path] = None,
    income: Optional[Decimal] = None,
    allocations_path: Optional[Path] = None
) -> int:
    """
    Runs the complete reporting pipeline.

    Args:
        csv_path: Path to monthly history CSV.
        output_dir: Directory for output files.
        settings: Loaded configuration.
        months_ahead: Forecast horizon.
        strict: Guard zero-total divisions in the forecast.
        budget: Optional budget amount.
        brackets_path: Optional tax bracket CSV.
        income: Income for the tax estimate.
        allocations_path: Optional department budget CSV.

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    print_header()

    # Step 1: Validate inputs
    print(f"  Loading: {csv_path}")
    validator = DataValidator()

    try:
        result = validator.validate_csv(csv_path)
    except FileNotFoundError:
        print(f"\n  ERROR: File not found: {csv_path}")
        return 1
    except ValueError as e:
        print(f"\n  ERROR: {e}")
        return 1

    if not result.is_valid:
        print_validation_errors(result)
        return 1

    print(f"  Validated {len(result.records)} months")

    brackets: Optional[List[TaxBracket]] = None
    if brackets_path is not None:
        try:
            bracket_result = validator.validate_brackets_csv(brackets_path)
        except FileNotFoundError:
            print(f"\n  ERROR: File not found: {brackets_path}")
            return 1
        except ValueError as e:
            print(f"\n  ERROR: {e}")
            return 1

        if not bracket_result.is_valid:
            print_validation_errors(bracket_result)
            return 1

        brackets = bracket_result.brackets
        print(f"  Validated {len(brackets)} tax brackets")

    allocations: Optional[List[BudgetAllocation]] = None
    if allocations_path is not None:
        try:
            allocation_result = validator.validate_allocations_csv(allocations_path)
        except FileNotFoundError:
            print(f"\n  ERROR: File not found: {allocations_path}")
            return 1
        except ValueError as e:
            print(f"\n  ERROR: {e}")
            return 1

        if not allocation_result.is_valid:
            print_validation_errors(allocation_result)
            return 1

        allocations = allocation_result.allocations
        print(f"  Validated {len(allocations)} budget allocations")

    # Step 2: Aggregate
    print("  Aggregating costs...")
    aggregator = FinancialAggregator(
        split=settings.split,
        trend_window=settings.trend_window,
        strict=strict
    )
    snapshot = build_snapshot(
        result, aggregator, months_ahead, budget, brackets, income, allocations
    )

    if snapshot.has_non_finite_forecast:
        logger.warning(
            "Forecast contains non-finite values: a month in the trend "
            "window has a zero total. Re-run with --strict to guard it."
        )

    # Step 3: Save audit log
    output_dir.mkdir(parents=True, exist_ok=True)

    audit_logger = AuditLogger()
    audit_path = output_dir / audit_logger.generate_filename()
    audit_logger.save_to_file(snapshot, audit_path)
    print(f"  Audit log saved: {audit_path}")

    # Step 4: Generate Excel report
    excel_reporter = ExcelReporter()
    excel_path = output_dir / excel_reporter.generate_filename()
    excel_reporter.generate_report(snapshot, excel_path)
    print(f"  Excel report saved: {excel_path}")

    print_summary(snapshot, validator)

    print("=" * 60)
    print("  BurnRate - Report Complete")
    print("=" * 60)

    return 0


def _decimal_arg(value: str) -> Decimal:
    """argparse type for non-negative money amounts."""
    try:
        amount = Decimal(value.replace(",", "").replace("$", "").strip())
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: '{value}'")
    if not amount.is_finite() or amount < 0:
        raise argparse.ArgumentTypeError(f"amount must be non-negative: '{value}'")
    return amount


def build_parser() -> argparse.ArgumentParser:
    """Builds the command-line parser."""
    parser = argparse.ArgumentParser(
        description="BurnRate - Startup cost aggregation and forecasting"
    )
    parser.add_argument(
        "csv_file",
        type=Path,
        help="Path to monthly history CSV "
             "(Month, Team_Salary, Intern_Stipend, Tasks[, Total])"
    )
    parser.add_argument(
        "--months-ahead",
        type=int,
        default=None,
        help="Forecast horizon in months (default: BURNRATE_MONTHS_AHEAD or 3)"
    )
    parser.add_argument(
        "--budget",
        type=_decimal_arg,
        default=None,
        help="Budget to measure year-to-date spend against"
    )
    parser.add_argument(
        "--brackets",
        type=Path,
        default=None,
        help="Tax bracket CSV (Min, Max, Rate)"
    )
    parser.add_argument(
        "--income",
        type=_decimal_arg,
        default=None,
        help="Income for the progressive tax estimate (requires --brackets)"
    )
    parser.add_argument(
        "--budgets",
        type=Path,
        default=None,
        help="Department budget CSV (Department, Category, Budget, Spent[, Period])"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Skip zero-total months when computing forecast growth"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Output directory for reports (default: output/)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: BURNRATE_LOG_LEVEL or INFO)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.brackets is None) != (args.income is None):
        parser.error("--brackets and --income must be given together")

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"  ERROR: Invalid configuration: {e}")
        return 1

    log_level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    months_ahead = (
        args.months_ahead if args.months_ahead is not None
        else settings.months_ahead
    )
    if months_ahead < 0:
        parser.error("--months-ahead must not be negative")

    strict = args.strict if args.strict is not None else settings.strict_mode

    return run_report(
        args.csv_file,
        args.output_dir,
        settings,
        months_ahead,
        strict,
        budget=args.budget,
        brackets_path=args.brackets,
        income=args.income,
        allocations_path=args.budgets
    )


if __name__ == "__main__":
    sys.exit(main())
