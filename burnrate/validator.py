"""
BurnRate - Data Validation Module.

This module provides CSV validation and parsing for monthly cost history,
tax brackets and department budget allocations. All monetary values are
converted to Decimal type with comprehensive error reporting including
row numbers.

Input Format Context:
    - Money accepts "$", spaces and thousands separators ("$12,500.00")
    - European decimal commas ("100,00") are rejected explicitly
    - A blank Total is filled from the components; a supplied Total is
      trusted as-is, even if it disagrees with them

Classes:
    ValidationError: A single row-level validation failure.
    ValidationResult: Container for validation outcomes.
    DataValidator: Main validation class for CSV processing.
"""

import csv
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from burnrate.schema import BudgetAllocation, MonthlyRecord, TaxBracket

logger = logging.getLogger(__name__)


@dataclass
class ValidationError:
    """
    Represents a single validation error with context.

    Attributes:
        row_number: The 1-based row number in the CSV (header is row 1).
        field_name: The name of the field that failed validation.
        value: The invalid value that was provided.
        message: A user-facing error message.
    """

    row_number: int
    field_name: str
    value: str
    message: str

    def __str__(self) -> str:
        """Returns a formatted error message for display."""
        return f"Error: Row {self.row_number} '{self.field_name}' - {self.message}"


@dataclass
class ValidationResult:
    """
    Container for validation results.

    Attributes:
        records: Successfully validated MonthlyRecord objects.
        brackets: Successfully validated TaxBracket objects.
        allocations: Successfully validated BudgetAllocation objects.
        errors: ValidationError objects for failed rows.
        total_rows: Total number of data rows processed.
    """

    records: List[MonthlyRecord] = field(default_factory=list)
    brackets: List[TaxBracket] = field(default_factory=list)
    allocations: List[BudgetAllocation] = field(default_factory=list)
    errors: List[ValidationError] = field(default_factory=list)
    total_rows: int = 0

    @property
    def is_valid(self) -> bool:
        """Returns True if validation produced no errors."""
        return len(self.errors) == 0

    @property
    def valid_count(self) -> int:
        """Returns the number of successfully validated rows."""
        return len(self.records) + len(self.brackets) + len(self.allocations)

    @property
    def error_count(self) -> int:
        """Returns the number of validation errors."""
        return len(self.errors)


class DataValidator:
    """
    Validates CSV input and converts it to schema objects.

    Ensures all monetary values are converted to Decimal type and
    validates required columns and data formats. Column names are matched
    case-insensitively.

    Attributes:
        RECORD_COLUMNS: Mandatory columns for monthly history.
        OPTIONAL_RECORD_COLUMNS: Optional columns for monthly history.
        BRACKET_COLUMNS: Mandatory columns for tax brackets.
        ALLOCATION_COLUMNS: Mandatory columns for budget allocations.

    Example:
        >>> validator = DataValidator()
        >>> result = validator.validate_csv("history.csv")
        >>> if result.is_valid:
        ...     for record in result.records:
        ...         print(record.month, record.total)
    """

    RECORD_COLUMNS = ["Month", "Team_Salary", "Intern_Stipend", "Tasks"]
    OPTIONAL_RECORD_COLUMNS = ["Total"]
    BRACKET_COLUMNS = ["Min", "Max", "Rate"]
    ALLOCATION_COLUMNS = ["Department", "Category", "Budget", "Spent"]
    OPTIONAL_ALLOCATION_COLUMNS = ["Period"]

    # Pattern to clean currency strings (removes $, spaces, commas)
    CURRENCY_CLEAN_PATTERN = re.compile(r"[$\s,]")

    def validate_csv(self, file_path: Union[str, Path]) -> ValidationResult:
        """
        Validates a monthly history CSV file.

        Rows are kept in file order, which is taken as chronological.

        Args:
            file_path: Path to the CSV file.

        Returns:
            ValidationResult with records and any errors.

        Raises:
            FileNotFoundError: If the CSV file does not exist.
            ValueError: If required columns are missing.
        """
        rows = self._read_csv(
            file_path,
            self.RECORD_COLUMNS + self.OPTIONAL_RECORD_COLUMNS,
            self.RECORD_COLUMNS
        )
        result = self.validate_rows(rows)
        logger.info(
            "Validated %d of %d monthly rows from %s",
            len(result.records), result.total_rows, file_path
        )
        return result

    def validate_rows(
        self,
        rows: Sequence[dict],
        start_row: int = 2
    ) -> ValidationResult:
        """
        Validates monthly history rows already loaded as dictionaries.

        Args:
            rows: Dictionaries keyed by column name.
            start_row: Row number of the first entry for error reporting.

        Returns:
            ValidationResult with records and any errors.
        """
        result = ValidationResult()
        result.total_rows = len(rows)

        for idx, row in enumerate(rows):
            record, errors = self._validate_record_row(row, start_row + idx)
            if record:
                result.records.append(record)
            result.errors.extend(errors)

        return result

    def validate_brackets_csv(
        self,
        file_path: Union[str, Path]
    ) -> ValidationResult:
        """
        Validates a tax bracket CSV file with Min, Max and Rate columns.

        Brackets are kept in file order; ordering and contiguity are not
        checked. Leave Max blank on the top bracket to tax all remaining
        income at its rate.

        Args:
            file_path: Path to the CSV file.

        Returns:
            ValidationResult with brackets and any errors.

        Raises:
            FileNotFoundError: If the CSV file does not exist.
            ValueError: If required columns are missing.
        """
        rows = self._read_csv(file_path, self.BRACKET_COLUMNS, self.BRACKET_COLUMNS)
        result = self.validate_bracket_rows(rows)
        logger.info(
            "Validated %d of %d tax brackets from %s",
            len(result.brackets), result.total_rows, file_path
        )
        return result

    def validate_bracket_rows(
        self,
        rows: Sequence[dict],
        start_row: int = 2
    ) -> ValidationResult:
        """
        Validates tax bracket rows already loaded as dictionaries.

        Args:
            rows: Dictionaries with Min, Max and Rate keys.
            start_row: Row number of the first entry for error reporting.

        Returns:
            ValidationResult with brackets and any errors.
        """
        result = ValidationResult()
        result.total_rows = len(rows)

        for idx, row in enumerate(rows):
            bracket, errors = self._validate_bracket_row(row, start_row + idx)
            if bracket:
                result.brackets.append(bracket)
            result.errors.extend(errors)

        return result

    def validate_allocations_csv(
        self,
        file_path: Union[str, Path]
    ) -> ValidationResult:
        """
        Validates a department budget CSV file.

        Required columns are Department, Category, Budget and Spent; an
        optional Period column defaults to "Monthly" when absent or blank.

        Args:
            file_path: Path to the CSV file.

        Returns:
            ValidationResult with allocations and any errors.

        Raises:
            FileNotFoundError: If the CSV file does not exist.
            ValueError: If required columns are missing.
        """
        rows = self._read_csv(
            file_path,
            self.ALLOCATION_COLUMNS + self.OPTIONAL_ALLOCATION_COLUMNS,
            self.ALLOCATION_COLUMNS
        )
        result = self.validate_allocation_rows(rows)
        logger.info(
            "Validated %d of %d budget allocations from %s",
            len(result.allocations), result.total_rows, file_path
        )
        return result

    def validate_allocation_rows(
        self,
        rows: Sequence[dict],
        start_row: int = 2
    ) -> ValidationResult:
        """
        Validates budget allocation rows already loaded as dictionaries.

        Args:
            rows: Dictionaries with Department, Category, Budget and Spent.
            start_row: Row number of the first entry for error reporting.

        Returns:
            ValidationResult with allocations and any errors.
        """
        result = ValidationResult()
        result.total_rows = len(rows)

        for idx, row in enumerate(rows):
            allocation, errors = self._validate_allocation_row(
                row, start_row + idx
            )
            if allocation:
                result.allocations.append(allocation)
            result.errors.extend(errors)

        return result

    def _read_csv(
        self,
        file_path: Union[str, Path],
        known_columns: List[str],
        required_columns: List[str]
    ) -> List[Dict[str, str]]:
        """
        Reads a CSV into rows keyed by canonical column names.

        Args:
            file_path: Path to the CSV file.
            known_columns: Canonical names to map headers onto.
            required_columns: Columns that must be present.

        Returns:
            List of row dictionaries.

        Raises:
            FileNotFoundError: If the CSV file does not exist.
            ValueError: If required columns are missing.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"CSV file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8-sig", newline="") as csvfile:
            reader = csv.DictReader(csvfile)

            missing = self._check_required_columns(
                reader.fieldnames or [], required_columns
            )
            if missing:
                raise ValueError(
                    f"Missing required columns: {', '.join(missing)}"
                )

            canonical = {c.lower(): c for c in known_columns}
            rows = []
            for raw in reader:
                row = {}
                for key, value in raw.items():
                    if key is None:
                        continue
                    name = canonical.get(key.lower().strip(), key)
                    row[name] = value if value is not None else ""
                rows.append(row)

        return rows

    def _check_required_columns(
        self,
        columns: List[str],
        required_columns: List[str]
    ) -> List[str]:
        """
        Checks if all required columns are present.

        Args:
            columns: List of column names from CSV header.
            required_columns: Names that must appear.

        Returns:
            List of missing column names (empty if all present).
        """
        columns_lower = [c.lower().strip() for c in columns]
        return [
            required for required in required_columns
            if required.lower() not in columns_lower
        ]

    def _validate_record_row(
        self,
        row: dict,
        row_number: int
    ) -> Tuple[Optional[MonthlyRecord], List[ValidationError]]:
        """
        Validates a single row and converts it to a MonthlyRecord.

        Args:
            row: Dictionary with row data.
            row_number: Row number for error reporting.

        Returns:
            Tuple of (MonthlyRecord or None, list of errors).
        """
        errors: List[ValidationError] = []

        month = (row.get("Month") or "").strip()
        if not month:
            errors.append(ValidationError(
                row_number=row_number,
                field_name="Month",
                value=row.get("Month") or "",
                message="Month cannot be empty"
            ))

        components: Dict[str, Optional[Decimal]] = {}
        for field_name in ("Team_Salary", "Intern_Stipend", "Tasks"):
            value, error = self._parse_money(
                row.get(field_name), field_name, row_number
            )
            if error:
                errors.append(error)
            components[field_name] = value

        # Blank Total is derived; a supplied Total is taken as given
        total: Optional[Decimal] = None
        total_str = (row.get("Total") or "").strip()
        if total_str:
            total, total_error = self._parse_money(total_str, "Total", row_number)
            if total_error:
                errors.append(total_error)

        if errors or any(v is None for v in components.values()):
            return None, errors

        if total is None:
            total = (
                components["Team_Salary"]
                + components["Intern_Stipend"]
                + components["Tasks"]
            )

        record = MonthlyRecord(
            month=month,
            team_salary=components["Team_Salary"],
            intern_stipend=components["Intern_Stipend"],
            tasks=components["Tasks"],
            total=total
        )
        return record, errors

    def _validate_bracket_row(
        self,
        row: dict,
        row_number: int
    ) -> Tuple[Optional[TaxBracket], List[ValidationError]]:
        """
        Validates a single row and converts it to a TaxBracket.

        A blank Max means the bracket has no upper bound.

        Args:
            row: Dictionary with Min, Max and Rate.
            row_number: Row number for error reporting.

        Returns:
            Tuple of (TaxBracket or None, list of errors).
        """
        errors: List[ValidationError] = []

        lower, lower_error = self._parse_money(row.get("Min"), "Min", row_number)
        if lower_error:
            errors.append(lower_error)

        # Blank Max is an unbounded top bracket
        if not (row.get("Max") or "").strip():
            upper, upper_error = Decimal("Infinity"), None
        else:
            upper, upper_error = self._parse_money(row.get("Max"), "Max", row_number)
        if upper_error:
            errors.append(upper_error)

        rate, rate_error = self._parse_rate(row.get("Rate"), row_number)
        if rate_error:
            errors.append(rate_error)

        if errors:
            return None, errors

        if upper < lower:
            return None, [ValidationError(
                row_number=row_number,
                field_name="Max",
                value=str(row.get("Max")),
                message=f"Max must not be below Min ({lower})"
            )]

        return TaxBracket(min=lower, max=upper, rate=rate), errors

    def _validate_allocation_row(
        self,
        row: dict,
        row_number: int
    ) -> Tuple[Optional[BudgetAllocation], List[ValidationError]]:
        """
        Validates a single row and converts it to a BudgetAllocation.

        Args:
            row: Dictionary with allocation data.
            row_number: Row number for error reporting.

        Returns:
            Tuple of (BudgetAllocation or None, list of errors).
        """
        errors: List[ValidationError] = []

        department = (row.get("Department") or "").strip()
        if not department:
            errors.append(ValidationError(
                row_number=row_number,
                field_name="Department",
                value=row.get("Department") or "",
                message="Department cannot be empty"
            ))

        budget, budget_error = self._parse_money(
            row.get("Budget"), "Budget", row_number
        )
        if budget_error:
            errors.append(budget_error)

        spent, spent_error = self._parse_money(
            row.get("Spent"), "Spent", row_number
        )
        if spent_error:
            errors.append(spent_error)

        if errors:
            return None, errors

        allocation = BudgetAllocation(
            department=department,
            category=(row.get("Category") or "").strip(),
            budget_amount=budget,
            spent=spent,
            period=(row.get("Period") or "").strip() or "Monthly"
        )
        return allocation, errors

    def _parse_money(
        self,
        value: Optional[str],
        field_name: str,
        row_number: int
    ) -> Tuple[Optional[Decimal], Optional[ValidationError]]:
        """
        Parses a non-negative money string to Decimal.

        Handles these formats:
        - "10000" (plain number)
        - "10,000" (with thousands separator)
        - "$ 10,000" (with currency symbol)
        - "$10000.00" (with symbol and decimals)

        Args:
            value: String value to parse.
            field_name: Name of the field for error messages.
            row_number: Row number for error messages.

        Returns:
            Tuple of (Decimal value or None, ValidationError or None).
        """
        if value is None:
            value = ""

        original_value = value
        value = value.strip()

        if not value:
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=original_value,
                message=f"{field_name} cannot be empty"
            )

        # European format (comma as decimal separator), e.g. "100,00"
        if re.match(r"^\$?\s*\d+,\d{2}$", value):
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=original_value,
                message=f"{field_name} appears to use European format (comma as decimal). "
                        f"Please use period as decimal separator (e.g., '100.00' not '100,00')"
            )

        cleaned = self.CURRENCY_CLEAN_PATTERN.sub("", value)

        if not re.match(r"^-?\d+\.?\d*$", cleaned):
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=original_value,
                message=f"{field_name} must be a valid number "
                        f"(received: '{original_value}')"
            )

        try:
            decimal_value = Decimal(cleaned)
        except InvalidOperation:
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=original_value,
                message=f"{field_name} must be a valid number "
                        f"(received: '{original_value}')"
            )

        decimal_value = decimal_value.quantize(
            Decimal("0.01"),
            rounding=ROUND_HALF_EVEN
        )

        if decimal_value < Decimal("0"):
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=original_value,
                message=f"{field_name} must be a non-negative number "
                        f"(received: '{original_value}')"
            )

        return decimal_value, None

    def _parse_rate(
        self,
        value: Optional[str],
        row_number: int
    ) -> Tuple[Optional[Decimal], Optional[ValidationError]]:
        """
        Parses a tax rate given as a fraction between 0 and 1.

        Args:
            value: String value to parse.
            row_number: Row number for error messages.

        Returns:
            Tuple of (Decimal rate or None, ValidationError or None).
        """
        original_value = value or ""
        stripped = original_value.strip()

        try:
            rate = Decimal(stripped)
        except InvalidOperation:
            rate = None

        if rate is None or not rate.is_finite():
            return None, ValidationError(
                row_number=row_number,
                field_name="Rate",
                value=original_value,
                message=f"Rate must be a valid number (received: '{original_value}')"
            )

        if not Decimal("0") <= rate <= Decimal("1"):
            return None, ValidationError(
                row_number=row_number,
                field_name="Rate",
                value=original_value,
                message=f"Rate must be a fraction between 0 and 1 "
                        f"(received: '{original_value}')"
            )

        return rate, None

    def format_usd(self, amount: Decimal) -> str:
        """
        Formats a Decimal amount as a USD currency string.

        Negative amounts are prefixed with a minus sign and non-finite
        amounts are rendered as their text form.

        Args:
            amount: Decimal amount to format.

        Returns:
            Formatted string like "$12,345.67".
        """
        if not amount.is_finite():
            return str(amount)
        if amount < 0:
            return f"-${-amount:,.2f}"
        return f"${amount:,.2f}"

    def format_percentage(self, value: Decimal, decimals: int = 1) -> str:
        """
        Formats a percentage value.

        Args:
            value: Percentage (e.g. Decimal("42.5")).
            decimals: Decimal places to show. Defaults to 1.

        Returns:
            Formatted string like "42.5%".
        """
        return f"{value:.{decimals}f}%"
