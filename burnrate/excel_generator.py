"""
BurnRate - Excel Report Generation Module.

This module generates Excel reports for cost aggregation runs. Follows
the 'Executive First' principle with an at-a-glance Finance Summary tab
and a Monthly Trend tab listing history followed by the forecast.

Formatting Context:
    - USD currency formatting ($#,##0.00)
    - Budget status cell filled with the status colour
    - Forecast rows shaded to set them apart from history
    - Non-finite forecast values are written as text
    - Department budgets listed with a totals row when supplied

Classes:
    ExcelReporter: Generates Excel workbooks from report snapshots.
"""

import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from burnrate.schema import BudgetOverview, BudgetStatus, ReportSnapshot

logger = logging.getLogger(__name__)


class ExcelReporter:
    """
    Generates Excel reports for cost aggregation runs.

    Attributes:
        USD_FORMAT: Excel number format for currency.
        PERCENTAGE_FORMAT: Excel number format for percentages.

    Example:
        >>> reporter = ExcelReporter()
        >>> reporter.generate_report(snapshot, "burnrate_report.xlsx")
    """

    SUMMARY_SHEET = "Finance Summary"
    TREND_SHEET = "Monthly Trend"

    # Excel number formats
    USD_FORMAT = '$#,##0.00'
    PERCENTAGE_FORMAT = '0.00%'

    STATUS_FILLS = {
        BudgetStatus.HEALTHY: PatternFill(
            start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"
        ),
        BudgetStatus.WARNING: PatternFill(
            start_color="FFEB9C", end_color="FFEB9C", fill_type="solid"
        ),
        BudgetStatus.CRITICAL: PatternFill(
            start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"
        ),
    }
    FORECAST_FILL = PatternFill(
        start_color="DDEBF7",
        end_color="DDEBF7",
        fill_type="solid"
    )

    # Header styling
    HEADER_FONT = Font(bold=True, color="FFFFFF")
    HEADER_FILL = PatternFill(
        start_color="2F5496",
        end_color="2F5496",
        fill_type="solid"
    )
    HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")

    THIN_BORDER = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin")
    )

    ALLOCATION_HEADERS = [
        "Department",
        "Category",
        "Budget",
        "Spent",
        "Remaining",
        "Utilisation",
        "Status",
    ]

    def generate_report(
        self,
        snapshot: ReportSnapshot,
        output_path: Union[str, Path]
    ) -> None:
        """
        Generates a complete Excel report from a report snapshot.

        Creates a workbook with two sheets:
        1. Finance Summary - YTD, average, budget, tax and department figures
        2. Monthly Trend - Per-month history then forecast rows

        Args:
            snapshot: Complete report snapshot.
            output_path: Path for the output .xlsx file.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        workbook = Workbook()
        workbook.remove(workbook.active)

        self._create_summary_sheet(workbook, snapshot)
        self._create_trend_sheet(workbook, snapshot)

        workbook.save(output_path)
        logger.info("Excel report written to %s", output_path)

    def _create_summary_sheet(
        self,
        workbook: Workbook,
        snapshot: ReportSnapshot
    ) -> None:
        """
        Creates the Finance Summary sheet with aggregate metrics.

        Args:
            workbook: Target workbook.
            snapshot: Report data.
        """
        ws = workbook.create_sheet(self.SUMMARY_SHEET)

        ws["A1"] = "BurnRate - Finance Summary"
        ws["A1"].font = Font(bold=True, size=16)
        ws.merge_cells("A1:D1")

        ws["A3"] = "Report Generated:"
        ws["B3"] = datetime.now().strftime("%Y-%m-%d %H:%M")
        ws["A4"] = "Analysis Date:"
        ws["B4"] = snapshot.timestamp.strftime("%Y-%m-%d %H:%M")
        ws["A5"] = "Version:"
        ws["B5"] = snapshot.version
        ws["A6"] = "Forecast Mode:"
        ws["B6"] = "Strict" if snapshot.strict_mode else "Unguarded"

        ws["A8"] = "YEAR TO DATE"
        ws["A8"].font = Font(bold=True, size=14)
        ws.merge_cells("A8:D8")

        metrics = [
            ("Team Salary", snapshot.ytd.team_salary),
            ("Intern Stipend", snapshot.ytd.intern_stipend),
            ("Tasks", snapshot.ytd.tasks),
            ("Total Spend", snapshot.ytd.total),
            ("Average Monthly Spend", snapshot.average_monthly_spending),
            ("Months Reported", len(snapshot.records)),
        ]

        row = 10
        for label, value in metrics:
            ws[f"A{row}"] = label
            ws[f"A{row}"].font = Font(bold=True)
            if isinstance(value, Decimal):
                self._write_money(ws[f"B{row}"], value)
            else:
                ws[f"B{row}"] = value
            row += 1

        row += 1
        ws[f"A{row}"] = "BUDGET"
        ws[f"A{row}"].font = Font(bold=True, size=14)
        ws.merge_cells(f"A{row}:D{row}")
        row += 2

        if snapshot.budget is None:
            ws[f"A{row}"] = "No budget supplied"
            row += 1
        else:
            ws[f"A{row}"] = "Budget"
            ws[f"A{row}"].font = Font(bold=True)
            self._write_money(ws[f"B{row}"], snapshot.budget)
            row += 1

            ws[f"A{row}"] = "Remaining"
            ws[f"A{row}"].font = Font(bold=True)
            self._write_money(ws[f"B{row}"], snapshot.budget - snapshot.ytd.total)
            row += 1

            ws[f"A{row}"] = "Utilisation"
            ws[f"A{row}"].font = Font(bold=True)
            ws[f"B{row}"] = float(snapshot.utilisation) / 100
            ws[f"B{row}"].number_format = self.PERCENTAGE_FORMAT
            row += 1

            ws[f"A{row}"] = "Status"
            ws[f"A{row}"].font = Font(bold=True)
            status = snapshot.budget_status.status
            ws[f"B{row}"] = status.value.upper()
            ws[f"B{row}"].fill = self.STATUS_FILLS[status]
            ws[f"B{row}"].border = self.THIN_BORDER
            row += 1

        if snapshot.tax_owed is not None:
            row += 1
            ws[f"A{row}"] = "TAX ESTIMATE"
            ws[f"A{row}"].font = Font(bold=True, size=14)
            ws.merge_cells(f"A{row}:D{row}")
            row += 2

            ws[f"A{row}"] = "Taxable Income"
            ws[f"A{row}"].font = Font(bold=True)
            self._write_money(ws[f"B{row}"], snapshot.tax_income)
            row += 1

            ws[f"A{row}"] = "Tax Owed"
            ws[f"A{row}"].font = Font(bold=True)
            self._write_money(ws[f"B{row}"], snapshot.tax_owed)
            row += 1

        if snapshot.budget_overview is not None:
            self._write_allocations(ws, snapshot.budget_overview, row + 1)

        self._auto_adjust_columns(ws)

    def _write_allocations(
        self,
        ws: Worksheet,
        overview: BudgetOverview,
        row: int
    ) -> None:
        """
        Writes the department budget table followed by a totals row.

        Args:
            ws: Finance Summary worksheet.
            overview: Department budget figures.
            row: First row of the section.
        """
        ws[f"A{row}"] = "DEPARTMENT BUDGETS"
        ws[f"A{row}"].font = Font(bold=True, size=14)
        ws.merge_cells(f"A{row}:D{row}")
        row += 2

        for col, header in enumerate(self.ALLOCATION_HEADERS, start=1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = self.HEADER_ALIGNMENT
            cell.border = self.THIN_BORDER
        row += 1

        lines = [
            (
                s.allocation.department,
                s.allocation.category,
                s.allocation.budget_amount,
                s.allocation.spent,
                s.remaining,
                s.utilisation,
                s.classification.status,
            )
            for s in overview.allocations
        ]
        lines.append((
            "Total",
            "",
            overview.total_budget,
            overview.total_spent,
            overview.total_remaining,
            overview.utilisation,
            overview.classification.status,
        ))

        for idx, line in enumerate(lines):
            department, category, budget, spent, remaining, utilisation, status = line
            ws.cell(row=row, column=1, value=department)
            ws.cell(row=row, column=2, value=category)
            self._write_money(ws.cell(row=row, column=3), budget)
            self._write_money(ws.cell(row=row, column=4), spent)
            self._write_money(ws.cell(row=row, column=5), remaining)
            util_cell = ws.cell(row=row, column=6, value=float(utilisation) / 100)
            util_cell.number_format = self.PERCENTAGE_FORMAT
            status_cell = ws.cell(row=row, column=7, value=status.value.upper())
            status_cell.fill = self.STATUS_FILLS[status]

            for col in range(1, len(self.ALLOCATION_HEADERS) + 1):
                ws.cell(row=row, column=col).border = self.THIN_BORDER
            if idx == len(lines) - 1:
                ws.cell(row=row, column=1).font = Font(bold=True)
            row += 1

    def _create_trend_sheet(
        self,
        workbook: Workbook,
        snapshot: ReportSnapshot
    ) -> None:
        """
        Creates the Monthly Trend sheet with history then forecast rows.

        Args:
            workbook: Target workbook.
            snapshot: Report data.
        """
        ws = workbook.create_sheet(self.TREND_SHEET)

        headers = [
            "Month",
            "Team Salary",
            "Intern Stipend",
            "Tasks",
            "Total",
            "Type",
        ]

        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = self.HEADER_ALIGNMENT
            cell.border = self.THIN_BORDER

        rows = [
            (r.month, r.team_salary, r.intern_stipend, r.tasks, r.total, "Actual")
            for r in snapshot.records
        ] + [
            (f.month, f.team_salary, f.intern_stipend, f.tasks, f.total, "Forecast")
            for f in snapshot.forecast
        ]

        for row_idx, row_data in enumerate(rows, start=2):
            for col_idx, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_idx, column=col_idx)
                if isinstance(value, Decimal):
                    self._write_money(cell, value)
                else:
                    cell.value = value
                cell.border = self.THIN_BORDER

            if row_data[-1] == "Forecast":
                for col_idx in range(1, len(headers) + 1):
                    ws.cell(row=row_idx, column=col_idx).fill = self.FORECAST_FILL

        self._auto_adjust_columns(ws)

    def _write_money(self, cell, value: Optional[Decimal]) -> None:
        """Writes a Decimal as currency, or as text when non-finite."""
        if value is None:
            cell.value = None
        elif value.is_finite():
            cell.value = float(value)
            cell.number_format = self.USD_FORMAT
        else:
            cell.value = str(value)

    def _auto_adjust_columns(self, worksheet: Worksheet) -> None:
        """
        Auto-adjusts column widths based on content.

        Args:
            worksheet: Target worksheet.
        """
        for col_idx in range(1, worksheet.max_column + 1):
            max_length = 0
            column_letter = get_column_letter(col_idx)

            for row_idx in range(1, worksheet.max_row + 1):
                value = worksheet.cell(row=row_idx, column=col_idx).value
                if value is not None:
                    max_length = max(max_length, len(str(value)))

            worksheet.column_dimensions[column_letter].width = max(max_length + 2, 10)

    def generate_filename(self, prefix: str = "burnrate_report") -> str:
        """
        Generates a timestamped filename for reports.

        Args:
            prefix: Filename prefix. Defaults to "burnrate_report".

        Returns:
            Filename like "burnrate_report_2024-12-18_143052.xlsx".
        """
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        return f"{prefix}_{timestamp}.xlsx"
