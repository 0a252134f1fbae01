"""
BurnRate - Department Budget Module.

This module measures department budget allocations against their spend:
each allocation gets a utilisation percentage, a remaining amount and a
status tier, and the allocations are rolled up into overall totals.

Classes:
    BudgetPlanner: Builds a BudgetOverview from budget allocations.
"""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from burnrate.calculator import FinancialAggregator
from burnrate.payroll import PayrollCalculator
from burnrate.schema import AllocationStatus, BudgetAllocation, BudgetOverview

logger = logging.getLogger(__name__)


class BudgetPlanner:
    """
    Rolls department budget allocations up into a BudgetOverview.

    Utilisation and remaining amounts come from PayrollCalculator and the
    status tiers from FinancialAggregator, so department figures use the
    same rules as the year-to-date budget check.

    Example:
        >>> planner = BudgetPlanner()
        >>> overview = planner.summarise([
        ...     BudgetAllocation("Engineering", "Salaries",
        ...                      Decimal("50000"), Decimal("42000")),
        ... ])
        >>> overview.allocations[0].classification.status.value
        'warning'
    """

    def __init__(
        self,
        aggregator: Optional[FinancialAggregator] = None,
        payroll: Optional[PayrollCalculator] = None
    ):
        """
        Initialises the BudgetPlanner.

        Args:
            aggregator: Classifies utilisation. Defaults to a new instance.
            payroll: Computes utilisation and remaining budget.
                     Defaults to a new instance.
        """
        self._aggregator = aggregator or FinancialAggregator()
        self._payroll = payroll or PayrollCalculator()

    def evaluate(self, allocation: BudgetAllocation) -> AllocationStatus:
        """
        Computes utilisation, remaining budget and status for one allocation.

        Args:
            allocation: Budget line to evaluate.

        Returns:
            AllocationStatus for the allocation.
        """
        utilisation = self._payroll.calculate_budget_utilisation(
            allocation.spent, allocation.budget_amount
        )
        return AllocationStatus(
            allocation=allocation,
            utilisation=utilisation,
            remaining=self._payroll.calculate_remaining_budget(
                allocation.budget_amount, allocation.spent
            ),
            classification=self._aggregator.get_budget_status(utilisation)
        )

    def summarise(
        self,
        allocations: Sequence[BudgetAllocation]
    ) -> BudgetOverview:
        """
        Evaluates every allocation and totals budget and spend.

        An empty input gives zero totals, zero utilisation and a HEALTHY
        overall status.

        Args:
            allocations: Budget lines in display order.

        Returns:
            BudgetOverview with per-allocation figures and totals.
        """
        statuses = [self.evaluate(allocation) for allocation in allocations]

        total_budget = sum(
            (a.budget_amount for a in allocations), Decimal("0")
        )
        total_spent = sum((a.spent for a in allocations), Decimal("0"))
        utilisation = self._payroll.calculate_budget_utilisation(
            total_spent, total_budget
        )

        over_budget = [s for s in statuses if s.remaining < Decimal("0")]
        if over_budget:
            logger.info(
                "%d of %d allocations are over budget",
                len(over_budget), len(statuses)
            )

        return BudgetOverview(
            allocations=statuses,
            total_budget=total_budget,
            total_spent=total_spent,
            total_remaining=self._payroll.calculate_remaining_budget(
                total_budget, total_spent
            ),
            utilisation=utilisation,
            classification=self._aggregator.get_budget_status(utilisation)
        )
