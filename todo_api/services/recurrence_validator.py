"""Recurrence Validator."""
from datetime import datetime
from typing import Any, Dict, Optional

from todo_api.models.task import RECURRENCE_PATTERNS


class RecurrenceValidator:
    """Cross-field checks for recurrence settings that field schemas cannot express."""

    @staticmethod
    def _result() -> Dict[str, Any]:
        return {
            "valid": True,
            "errors": [],
            "warnings": []
        }

    @staticmethod
    def validate_recurrence(recurrence: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Validate a merged recurrence configuration.

        Args:
            recurrence: Dict with enabled, pattern, interval, days_of_week,
                day_of_month and end_date keys
            now: Reference time for end date checks

        Returns:
            Dict with validation result
        """
        result = RecurrenceValidator._result()
        now = now or datetime.utcnow()

        pattern = recurrence.get("pattern")
        enabled = bool(recurrence.get("enabled"))

        if enabled and not pattern:
            result["valid"] = False
            result["errors"].append("Recurrence pattern is required when recurrence is enabled")
            return result

        if pattern is not None and pattern not in RECURRENCE_PATTERNS:
            result["valid"] = False
            result["errors"].append(f"Recurrence pattern must be one of: {', '.join(RECURRENCE_PATTERNS)}")
            return result

        end_date = recurrence.get("end_date")
        if enabled and end_date is not None and end_date < now:
            result["valid"] = False
            result["errors"].append("Recurrence end date cannot be in the past")
            return result

        if recurrence.get("days_of_week") and pattern != "weekly":
            result["warnings"].append("days_of_week is only used by weekly recurrence")
        if recurrence.get("day_of_month") and pattern != "monthly":
            result["warnings"].append("day_of_month is only used by monthly recurrence")
        if pattern == "weekly" and recurrence.get("days_of_week") and (recurrence.get("interval") or 1) > 1:
            result["warnings"].append("interval is ignored when days_of_week is set")

        return result
