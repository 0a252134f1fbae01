"""
BurnRate - Audit and Serialisation Module.

This module provides JSON serialisation for report audit trails.
All Decimal values are converted to string representation to preserve
precision during serialisation and deserialisation; this also carries
non-finite forecast values ("Infinity", "NaN") through unchanged.

Classes:
    DecimalEncoder: JSON encoder for Decimal, datetime and enum values.
    AuditLogger: Manages JSON serialisation for audit and persistence.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Union

from burnrate import __version__
from burnrate.schema import (
    AllocationStatus,
    BudgetAllocation,
    BudgetClassification,
    BudgetOverview,
    BudgetStatus,
    ForecastRecord,
    MonthlyRecord,
    ReportSnapshot,
    YTDTotals,
)

logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    """
    Custom JSON encoder that converts Decimal to string.

    Preserves full precision of Decimal values by encoding them
    as strings rather than floats.
    """

    def default(self, obj: Any) -> Any:
        """
        Encode Decimal, datetime and BudgetStatus objects.

        Args:
            obj: Object to encode.

        Returns:
            JSON-serialisable representation.
        """
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, BudgetStatus):
            return obj.value
        return super().default(obj)


class AuditLogger:
    """
    Manages JSON serialisation for audit and persistence.

    Every snapshot includes its timestamp and version identifier.

    Example:
        >>> audit = AuditLogger()
        >>> json_str = audit.serialise_snapshot(snapshot)
        >>> restored = audit.deserialise_snapshot(json_str)
        >>> assert snapshot.ytd == restored.ytd
    """

    def __init__(self, version: Optional[str] = None):
        """
        Initialises the AuditLogger.

        Args:
            version: Version identifier recorded as the generator.
                     Defaults to package version.
        """
        self._version = version or __version__

    def serialise_snapshot(self, snapshot: ReportSnapshot) -> str:
        """
        Serialises a ReportSnapshot to JSON string.

        Args:
            snapshot: Report snapshot to serialise.

        Returns:
            JSON string representation.
        """
        data = self._snapshot_to_dict(snapshot)
        return json.dumps(data, cls=DecimalEncoder, indent=2)

    def deserialise_snapshot(self, json_str: str) -> ReportSnapshot:
        """
        Deserialises a JSON string to ReportSnapshot.

        Args:
            json_str: JSON string to deserialise.

        Returns:
            Reconstructed ReportSnapshot.

        Raises:
            json.JSONDecodeError: If JSON is malformed.
            KeyError: If required fields are missing.
            ValueError: If data types are invalid.
        """
        data = json.loads(json_str)
        return self._dict_to_snapshot(data)

    def save_to_file(
        self,
        snapshot: ReportSnapshot,
        file_path: Union[str, Path]
    ) -> None:
        """
        Saves a ReportSnapshot to a JSON file.

        Args:
            snapshot: Report snapshot to save.
            file_path: Output file path.

        Raises:
            PermissionError: If file cannot be written.
        """
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_path.write_text(self.serialise_snapshot(snapshot), encoding="utf-8")
        logger.info("Audit snapshot written to %s", file_path)

    def load_from_file(self, file_path: Union[str, Path]) -> ReportSnapshot:
        """
        Loads a ReportSnapshot from a JSON file.

        Args:
            file_path: Path to JSON file.

        Returns:
            Loaded ReportSnapshot.

        Raises:
            FileNotFoundError: If file does not exist.
            json.JSONDecodeError: If JSON is malformed.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Audit file not found: {file_path}")

        return self.deserialise_snapshot(file_path.read_text(encoding="utf-8"))

    def _snapshot_to_dict(self, snapshot: ReportSnapshot) -> Dict[str, Any]:
        """
        Converts ReportSnapshot to dictionary for JSON serialisation.

        Args:
            snapshot: Snapshot to convert.

        Returns:
            Dictionary representation.
        """
        status = snapshot.budget_status
        return {
            "metadata": {
                "timestamp": snapshot.timestamp.isoformat(),
                "version": snapshot.version,
                "generated_by": f"BurnRate {self._version}",
                "strict_mode": snapshot.strict_mode,
            },
            "summary": {
                "ytd": {
                    "team_salary": str(snapshot.ytd.team_salary),
                    "intern_stipend": str(snapshot.ytd.intern_stipend),
                    "tasks": str(snapshot.ytd.tasks),
                    "total": str(snapshot.ytd.total),
                },
                "average_monthly_spending": str(snapshot.average_monthly_spending),
                "budget": _optional_str(snapshot.budget),
                "utilisation": _optional_str(snapshot.utilisation),
                "budget_status": (
                    _classification_to_dict(status)
                    if status is not None else None
                ),
                "tax_income": _optional_str(snapshot.tax_income),
                "tax_owed": _optional_str(snapshot.tax_owed),
                "month_count": len(snapshot.records),
            },
            "records": [
                {
                    "month": r.month,
                    "team_salary": str(r.team_salary),
                    "intern_stipend": str(r.intern_stipend),
                    "tasks": str(r.tasks),
                    "total": str(r.total),
                }
                for r in snapshot.records
            ],
            "forecast": [
                {
                    "month": f.month,
                    "total": str(f.total),
                    "team_salary": str(f.team_salary),
                    "intern_stipend": str(f.intern_stipend),
                    "tasks": str(f.tasks),
                    "is_forecast": f.is_forecast,
                }
                for f in snapshot.forecast
            ],
            "budget_allocations": (
                _overview_to_dict(snapshot.budget_overview)
                if snapshot.budget_overview is not None else None
            ),
        }

    def _dict_to_snapshot(self, data: Dict[str, Any]) -> ReportSnapshot:
        """
        Converts dictionary to ReportSnapshot.

        Args:
            data: Dictionary from JSON.

        Returns:
            Reconstructed ReportSnapshot.
        """
        metadata = data["metadata"]
        summary = data["summary"]
        ytd = summary["ytd"]

        status_data = summary.get("budget_status")
        budget_status = None
        if status_data is not None:
            budget_status = _dict_to_classification(status_data)

        overview_data = data.get("budget_allocations")
        budget_overview = None
        if overview_data is not None:
            budget_overview = _dict_to_overview(overview_data)

        records = [
            MonthlyRecord(
                month=r["month"],
                team_salary=Decimal(r["team_salary"]),
                intern_stipend=Decimal(r["intern_stipend"]),
                tasks=Decimal(r["tasks"]),
                total=Decimal(r["total"]),
            )
            for r in data["records"]
        ]

        forecast = [
            ForecastRecord(
                month=f["month"],
                total=Decimal(f["total"]),
                team_salary=Decimal(f["team_salary"]),
                intern_stipend=Decimal(f["intern_stipend"]),
                tasks=Decimal(f["tasks"]),
                is_forecast=f["is_forecast"],
            )
            for f in data["forecast"]
        ]

        return ReportSnapshot(
            timestamp=datetime.fromisoformat(metadata["timestamp"]),
            version=metadata["version"],
            records=records,
            ytd=YTDTotals(
                team_salary=Decimal(ytd["team_salary"]),
                intern_stipend=Decimal(ytd["intern_stipend"]),
                tasks=Decimal(ytd["tasks"]),
                total=Decimal(ytd["total"]),
            ),
            average_monthly_spending=Decimal(summary["average_monthly_spending"]),
            forecast=forecast,
            strict_mode=metadata.get("strict_mode", False),
            budget=_optional_decimal(summary.get("budget")),
            utilisation=_optional_decimal(summary.get("utilisation")),
            budget_status=budget_status,
            tax_income=_optional_decimal(summary.get("tax_income")),
            tax_owed=_optional_decimal(summary.get("tax_owed")),
            budget_overview=budget_overview,
        )

    def generate_filename(self, prefix: str = "burnrate_audit") -> str:
        """
        Generates a timestamped filename for audit files.

        Args:
            prefix: Filename prefix. Defaults to "burnrate_audit".

        Returns:
            Filename like "burnrate_audit_2024-12-18_143052.json".
        """
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        return f"{prefix}_{timestamp}.json"


def _optional_str(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


def _optional_decimal(value: Optional[str]) -> Optional[Decimal]:
    return Decimal(value) if value is not None else None


def _classification_to_dict(classification: BudgetClassification) -> Dict[str, str]:
    return {
        "status": classification.status.value,
        "color": classification.color,
    }


def _dict_to_classification(data: Dict[str, str]) -> BudgetClassification:
    return BudgetClassification(
        status=BudgetStatus(data["status"]),
        color=data["color"],
    )


def _overview_to_dict(overview: BudgetOverview) -> Dict[str, Any]:
    """Flattens a BudgetOverview into totals plus one entry per allocation."""
    return {
        "total_budget": str(overview.total_budget),
        "total_spent": str(overview.total_spent),
        "total_remaining": str(overview.total_remaining),
        "utilisation": str(overview.utilisation),
        "budget_status": _classification_to_dict(overview.classification),
        "allocations": [
            {
                "department": s.allocation.department,
                "category": s.allocation.category,
                "period": s.allocation.period,
                "budget_amount": str(s.allocation.budget_amount),
                "spent": str(s.allocation.spent),
                "utilisation": str(s.utilisation),
                "remaining": str(s.remaining),
                "budget_status": _classification_to_dict(s.classification),
            }
            for s in overview.allocations
        ],
    }


def _dict_to_overview(data: Dict[str, Any]) -> BudgetOverview:
    allocations = [
        AllocationStatus(
            allocation=BudgetAllocation(
                department=a["department"],
                category=a["category"],
                budget_amount=Decimal(a["budget_amount"]),
                spent=Decimal(a["spent"]),
                period=a["period"],
            ),
            utilisation=Decimal(a["utilisation"]),
            remaining=Decimal(a["remaining"]),
            classification=_dict_to_classification(a["budget_status"]),
        )
        for a in data["allocations"]
    ]
    return BudgetOverview(
        allocations=allocations,
        total_budget=Decimal(data["total_budget"]),
        total_spent=Decimal(data["total_spent"]),
        total_remaining=Decimal(data["total_remaining"]),
        utilisation=Decimal(data["utilisation"]),
        classification=_dict_to_classification(data["budget_status"]),
    )
