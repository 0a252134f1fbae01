"""
BurnRate - Startup Cost Aggregation and Forecasting Toolkit.

Aggregates monthly payroll, stipend and task spend for a startup, projects
future costs from recent growth, and classifies budget utilisation.

Modules:
    calculator: YTD totals, averages, forecasts, progressive tax, budget status.
    budgets: Department budget allocations measured against their spend.
    payroll: Gross and net pay, stipends, overtime, prorating and pay stubs.
    payments: Sorting, date filtering and per-employee grouping of payouts.
    date_logic: Calendar helpers for day and month spans.
    validator: CSV parsing for history, tax brackets and budget allocations.
    audit: JSON audit snapshots of report runs.
    excel_generator: Excel workbook reports.
    settings: Environment and .env configuration.

The command-line report (main.py) uses calculator, budgets, payroll,
validator, audit, excel_generator and settings; payroll and payments are
also meant to be used directly as a library.

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "BurnRate Team"
