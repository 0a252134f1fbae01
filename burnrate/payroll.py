"""
BurnRate - Payroll Module.

This module provides payroll calculations for team members and interns:
gross and net pay, flat tax deductions, stipends, overtime, prorating and
pay stub generation. All monetary values are Decimal.

Classes:
    PayrollCalculator: Payroll and budget arithmetic.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from burnrate.date_logic import DateManager
from burnrate.schema import Intern, PayStub, TeamMember

logger = logging.getLogger(__name__)


class PayrollCalculator:
    """
    Payroll and budget arithmetic for team members and interns.

    Example:
        >>> calc = PayrollCalculator()
        >>> calc.calculate_gross_pay(Decimal("8000"), Decimal("500"))
        Decimal('8500')
    """

    DEFAULT_OVERTIME_MULTIPLIER = Decimal("1.5")

    def __init__(self, date_manager: Optional[DateManager] = None):
        """
        Initialises the PayrollCalculator.

        Args:
            date_manager: DateManager for calendar lookups.
                          Defaults to a new DateManager.
        """
        self._date_manager = date_manager or DateManager()

    def calculate_gross_pay(
        self,
        monthly_salary: Decimal,
        bonuses: Decimal = Decimal("0")
    ) -> Decimal:
        """Returns salary plus bonuses."""
        return monthly_salary + bonuses

    def calculate_tax_deduction(
        self,
        gross_pay: Decimal,
        tax_rate: Decimal
    ) -> Decimal:
        """Returns the flat tax withheld from gross pay."""
        return gross_pay * tax_rate

    def calculate_net_pay(
        self,
        gross_pay: Decimal,
        deductions: Decimal
    ) -> Decimal:
        """Returns gross pay minus deductions."""
        return gross_pay - deductions

    def calculate_intern_stipend(
        self,
        stipend_per_day: Decimal,
        days_worked: int
    ) -> Decimal:
        """Returns the stipend earned for the days worked."""
        return stipend_per_day * days_worked

    def calculate_total_team_salaries(
        self,
        members: Sequence[TeamMember]
    ) -> Decimal:
        """
        Sums salary plus bonuses across team members.

        Args:
            members: Team members to total.

        Returns:
            Total gross pay; Decimal('0') for no members.
        """
        return sum(
            (self.calculate_gross_pay(m.monthly_salary, m.bonuses)
             for m in members),
            Decimal("0")
        )

    def calculate_total_intern_stipends(
        self,
        interns: Sequence[Intern]
    ) -> Decimal:
        """
        Sums earned stipends across interns.

        Args:
            interns: Interns to total.

        Returns:
            Total stipends; Decimal('0') for no interns.
        """
        return sum(
            (self.calculate_intern_stipend(i.stipend_per_day, i.days_worked)
             for i in interns),
            Decimal("0")
        )

    def calculate_budget_utilisation(
        self,
        spent: Decimal,
        budget: Decimal
    ) -> Decimal:
        """
        Calculates spend as a percentage of budget.

        Args:
            spent: Amount spent.
            budget: Amount budgeted.

        Returns:
            Percentage (can exceed 100). Decimal('0') for a zero budget.
        """
        if budget == Decimal("0"):
            return Decimal("0")
        return (spent / budget) * Decimal("100")

    def calculate_remaining_budget(
        self,
        budget: Decimal,
        spent: Decimal
    ) -> Decimal:
        """Returns budget minus spend; negative when overspent."""
        return budget - spent

    def calculate_overtime_pay(
        self,
        hours_worked: Decimal,
        regular_hours: Decimal,
        hourly_rate: Decimal,
        overtime_multiplier: Decimal = DEFAULT_OVERTIME_MULTIPLIER
    ) -> Decimal:
        """
        Calculates pay for hours beyond the regular schedule.

        Args:
            hours_worked: Hours actually worked.
            regular_hours: Hours covered by base salary.
            hourly_rate: Base hourly rate.
            overtime_multiplier: Premium on overtime hours. Defaults to 1.5.

        Returns:
            Overtime pay, or Decimal('0') if no overtime was worked.
        """
        if hours_worked <= regular_hours:
            return Decimal("0")
        overtime_hours = hours_worked - regular_hours
        return overtime_hours * hourly_rate * overtime_multiplier

    def calculate_prorated_salary(
        self,
        monthly_salary: Decimal,
        days_worked: int,
        total_days_in_month: int
    ) -> Decimal:
        """
        Calculates salary for a partial month.

        Args:
            monthly_salary: Full monthly salary.
            days_worked: Days worked in the month.
            total_days_in_month: Calendar days in the month.

        Returns:
            Prorated salary.

        Raises:
            ValueError: If total_days_in_month is not positive.
        """
        if total_days_in_month <= 0:
            raise ValueError("Total days in month must be positive")
        return (monthly_salary / Decimal(total_days_in_month)) * days_worked

    def calculate_prorated_salary_for_month(
        self,
        monthly_salary: Decimal,
        days_worked: int,
        year: int,
        month: int
    ) -> Decimal:
        """
        Prorates a salary over the calendar length of a given month.

        Args:
            monthly_salary: Full monthly salary.
            days_worked: Days worked in the month.
            year: Four-digit year.
            month: Month number (1-12).

        Returns:
            Prorated salary.
        """
        total_days = self._date_manager.get_days_in_month(year, month)
        return self.calculate_prorated_salary(monthly_salary, days_worked, total_days)

    def generate_pay_stub(
        self,
        member: TeamMember,
        period: str,
        generated_at: Optional[datetime] = None
    ) -> PayStub:
        """
        Generates a pay stub for a team member.

        Args:
            member: Team member being paid.
            period: Pay period label.
            generated_at: Stub timestamp. Defaults to now.

        Returns:
            PayStub with gross, tax, deductions and net pay.
        """
        gross_pay = self.calculate_gross_pay(member.monthly_salary, member.bonuses)
        tax_deduction = self.calculate_tax_deduction(gross_pay, member.tax_rate)
        net_pay = self.calculate_net_pay(gross_pay, tax_deduction)

        logger.debug("Generated pay stub for %s (%s)", member.name, period)

        return PayStub(
            employee_name=member.name,
            employee_id=member.id,
            period=period,
            gross_pay=gross_pay,
            tax_deduction=tax_deduction,
            total_deductions=tax_deduction,
            net_pay=net_pay,
            payment_method=member.payment_method,
            account_number=member.account_number,
            generated_at=generated_at or datetime.now()
        )
