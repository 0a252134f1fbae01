"""
BurnRate - Data Schema Module.

This module defines the core data models for the BurnRate system.
All monetary fields use Decimal type to ensure financial precision.

Startup Cost Context:
    - A month's spend is split into team salary, intern stipend and tasks
    - Record totals are trusted as supplied, never recomputed
    - No currency unit is tracked on values; reports format as USD

Classes:
    BudgetStatus: Enumeration of budget utilisation classifications.
    BudgetClassification: Status plus display colour.
    MonthlyRecord: One month of historical spend.
    YTDTotals: Field-wise sums across monthly records.
    ForecastRecord: One projected month.
    ForecastSplit: Fixed proportions used to decompose a forecast total.
    TaxBracket: One slice of a progressive tax scheme.
    BudgetAllocation: A department budget line with its spend.
    AllocationStatus: Utilisation and status of one allocation.
    BudgetOverview: Per-allocation figures plus overall totals.
    TeamMember: Salaried team member for payroll.
    Intern: Stipend-paid intern for payroll.
    Payment: A single payout in payment history.
    PayStub: Generated pay stub for a team member.
    ReportSnapshot: Complete report run with metadata for audit purposes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class BudgetStatus(Enum):
    """
    Budget utilisation classification.

    Attributes:
        HEALTHY: Utilisation below 70%.
        WARNING: Utilisation from 70% up to (not including) 90%.
        CRITICAL: Utilisation of 90% or more.
    """

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def color(self) -> str:
        """Returns the hex display colour for this status."""
        return STATUS_COLORS[self]


STATUS_COLORS = {
    BudgetStatus.HEALTHY: "#4caf50",
    BudgetStatus.WARNING: "#ff9800",
    BudgetStatus.CRITICAL: "#f44336",
}


@dataclass(frozen=True)
class BudgetClassification:
    """
    Result of classifying a budget utilisation percentage.

    Attributes:
        status: Utilisation tier.
        color: Hex colour used when rendering the tier.
    """

    status: BudgetStatus
    color: str


@dataclass(frozen=True)
class MonthlyRecord:
    """
    One month of historical spend.

    ``total`` is expected to equal the sum of the three components, but it
    is never checked or recomputed: every aggregate uses it as given.

    Attributes:
        month: Display label for the period (e.g. "Jan 2024").
        team_salary: Salaries paid to the team.
        intern_stipend: Stipends paid to interns.
        tasks: Task and project costs.
        total: Total spend for the month.
    """

    month: str
    team_salary: Decimal
    intern_stipend: Decimal
    tasks: Decimal
    total: Decimal


@dataclass(frozen=True)
class YTDTotals:
    """Field-wise sums across a set of monthly records."""

    team_salary: Decimal = Decimal("0")
    intern_stipend: Decimal = Decimal("0")
    tasks: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


@dataclass(frozen=True)
class ForecastRecord:
    """
    One projected month.

    Values are whole numbers, or non-finite Decimals when the growth rate
    could not be computed.

    Attributes:
        month: Horizon label, "Month +1" onwards.
        total: Projected total spend.
        team_salary: Team share of the projected total.
        intern_stipend: Intern share of the projected total.
        tasks: Task share of the projected total.
        is_forecast: Always True; distinguishes projections from history.
    """

    month: str
    total: Decimal
    team_salary: Decimal
    intern_stipend: Decimal
    tasks: Decimal
    is_forecast: bool = True


@dataclass(frozen=True)
class ForecastSplit:
    """
    Proportions used to decompose a forecast total into components.

    Attributes:
        team: Share attributed to team salary.
        intern: Share attributed to intern stipends.
        tasks: Share attributed to tasks.
    """

    team: Decimal
    intern: Decimal
    tasks: Decimal


DEFAULT_FORECAST_SPLIT = ForecastSplit(
    team=Decimal("0.7"),
    intern=Decimal("0.1"),
    tasks=Decimal("0.2"),
)


@dataclass(frozen=True)
class TaxBracket:
    """
    One slice of a progressive tax scheme.

    Brackets are expected to be ascending and contiguous (each ``max``
    equal to the next ``min``); this is not validated.

    Attributes:
        min: Lower bound of the slice.
        max: Upper bound of the slice.
        rate: Fraction of the slice owed as tax (0-1).
    """

    min: Decimal
    max: Decimal
    rate: Decimal


@dataclass(frozen=True)
class BudgetAllocation:
    """
    A department budget line with its spend so far.

    Attributes:
        department: Owning department (e.g. "Engineering").
        category: Spend category (e.g. "Salaries").
        budget_amount: Amount allocated for the period.
        spent: Amount spent against the allocation.
        period: Budget period label.
    """

    department: str
    category: str
    budget_amount: Decimal
    spent: Decimal
    period: str = "Monthly"


@dataclass(frozen=True)
class AllocationStatus:
    """
    Derived figures for one budget allocation.

    Attributes:
        allocation: The allocation the figures belong to.
        utilisation: Spent as a percentage of the budget (0 for a zero budget).
        remaining: Budget minus spent; negative when overspent.
        classification: Status tier of the utilisation.
    """

    allocation: BudgetAllocation
    utilisation: Decimal
    remaining: Decimal
    classification: BudgetClassification


@dataclass(frozen=True)
class BudgetOverview:
    """
    Department budgets with overall totals.

    Attributes:
        allocations: Per-allocation figures, in input order.
        total_budget: Sum of every budget_amount.
        total_spent: Sum of every spent.
        total_remaining: total_budget minus total_spent.
        utilisation: total_spent as a percentage of total_budget.
        classification: Status tier of the overall utilisation.
    """

    allocations: List[AllocationStatus]
    total_budget: Decimal
    total_spent: Decimal
    total_remaining: Decimal
    utilisation: Decimal
    classification: BudgetClassification


@dataclass
class TeamMember:
    """
    Salaried team member used for payroll.

    Attributes:
        id: Employee identifier.
        name: Display name.
        monthly_salary: Base salary per month.
        bonuses: Bonuses paid on top of salary this period.
        tax_rate: Flat deduction rate (0-1) applied to gross pay.
        payment_method: e.g. "Direct Deposit".
        account_number: Masked account reference.
    """

    id: int
    name: str
    monthly_salary: Decimal
    bonuses: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    payment_method: str = ""
    account_number: str = ""


@dataclass
class Intern:
    """Stipend-paid intern used for payroll."""

    id: int
    name: str
    stipend_per_day: Decimal
    days_worked: int


@dataclass
class Payment:
    """A single payout in payment history."""

    employee_name: str
    amount: Decimal
    date: date


@dataclass(frozen=True)
class PayStub:
    """
    Generated pay stub for a team member.

    Attributes:
        employee_name: Name of the payee.
        employee_id: Identifier of the payee.
        period: Pay period label (e.g. "2024-06").
        gross_pay: Salary plus bonuses.
        tax_deduction: Tax withheld.
        total_deductions: Sum of all deductions.
        net_pay: Gross pay minus deductions.
        payment_method: How the payee is paid.
        account_number: Payee account reference.
        generated_at: When the stub was produced.
    """

    employee_name: str
    employee_id: int
    period: str
    gross_pay: Decimal
    tax_deduction: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    payment_method: str
    account_number: str
    generated_at: datetime


@dataclass
class ReportSnapshot:
    """
    Complete report run with metadata for audit purposes.

    Captures the inputs and every derived figure of a run. Used for
    persistence and audit trails.

    Attributes:
        timestamp: When the report was produced.
        version: BurnRate version identifier.
        records: Historical monthly records the report was built from.
        ytd: Year-to-date totals.
        average_monthly_spending: Mean monthly total.
        forecast: Projected months.
        strict_mode: Whether the forecast guarded zero-total divisions.
        budget: Budget the YTD total is measured against, if any.
        utilisation: YTD total as a percentage of budget, if budgeted.
        budget_status: Classification of utilisation, if budgeted.
        tax_income: Income the tax estimate was computed for, if any.
        tax_owed: Progressive tax on tax_income, if computed.
        budget_overview: Department budget figures, if allocations were given.
    """

    timestamp: datetime
    version: str
    records: List[MonthlyRecord]
    ytd: YTDTotals
    average_monthly_spending: Decimal
    forecast: List[ForecastRecord] = field(default_factory=list)
    strict_mode: bool = False
    budget: Optional[Decimal] = None
    utilisation: Optional[Decimal] = None
    budget_status: Optional[BudgetClassification] = None
    tax_income: Optional[Decimal] = None
    tax_owed: Optional[Decimal] = None
    budget_overview: Optional[BudgetOverview] = None

    @property
    def has_non_finite_forecast(self) -> bool:
        """Returns True if any forecast value is Infinity or NaN."""
        return any(not fr.total.is_finite() for fr in self.forecast)
