"""
BurnRate - Payment History Module.

Helpers for ordering, filtering and grouping payout history. Inputs are
never mutated; every helper returns new containers.
"""

from datetime import date
from typing import Dict, List, Sequence

from burnrate.schema import Payment


def sort_payments_by_date(
    payments: Sequence[Payment],
    ascending: bool = False
) -> List[Payment]:
    """
    Returns payments ordered by date, newest first by default.

    The sort is stable: payments on the same date keep their input order.
    """
    return sorted(payments, key=lambda p: p.date, reverse=not ascending)


def filter_payments_by_date_range(
    payments: Sequence[Payment],
    start: date,
    end: date
) -> List[Payment]:
    """Returns payments dated between start and end, both inclusive."""
    return [p for p in payments if start <= p.date <= end]


def group_payments_by_employee(
    payments: Sequence[Payment]
) -> Dict[str, List[Payment]]:
    """
    Groups payments by employee name.

    Employees appear in order of their first payment; each list keeps the
    input order.
    """
    grouped: Dict[str, List[Payment]] = {}
    for payment in payments:
        grouped.setdefault(payment.employee_name, []).append(payment)
    return grouped
