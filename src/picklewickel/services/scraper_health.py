"""
Scraper health log.

The scraping pipeline reports each workflow run (started, completed,
failed, heartbeat). Records are kept newest first and capped at
``scraper_health_max_records``.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Sequence

from picklewickel.errors import ValidationError
from picklewickel.payloads import ScraperHealthPayload, parse_payload
from picklewickel.services.base import RepositoryService, utc_now_iso
from picklewickel.store.repository import Collection

logger = logging.getLogger(__name__)

RECENT_WINDOW = 50
ACTIVITY_WINDOW = timedelta(hours=24)


def _percent(part: int, whole: int) -> int:
    # Half-up rounding
    return math.floor(part * 100 / whole + 0.5) if whole else 0


@dataclass
class HealthMetrics:
    """Success rate over the most recent records, returned after recording."""

    success_rate: int
    recent_successes: int
    recent_failures: int
    last_execution: str
    status: str

    def to_dict(self) -> dict:
        return {
            "successRate": self.success_rate,
            "recentSuccesses": self.recent_successes,
            "recentFailures": self.recent_failures,
            "lastExecution": self.last_execution,
            "status": self.status,
        }


@dataclass
class HealthReport:
    logs: list[dict]
    total_records: int
    success_count: int
    failure_count: int
    overall_success_rate: int
    recent_activity: int
    last_activity: Optional[str]

    def to_dict(self) -> dict:
        return {
            "logs": self.logs,
            "metrics": {
                "totalRecords": self.total_records,
                "successCount": self.success_count,
                "failureCount": self.failure_count,
                "overallSuccessRate": self.overall_success_rate,
                "recentActivity": self.recent_activity,
                "lastActivity": self.last_activity,
            },
        }


def recent_metrics(logs: Sequence[Mapping[str, Any]], latest: Mapping[str, Any]) -> HealthMetrics:
    recent = list(logs[:RECENT_WINDOW])
    successes = sum(1 for log in recent if log.get("status") == "completed")
    failures = sum(1 for log in recent if log.get("status") == "failed")
    return HealthMetrics(
        success_rate=_percent(successes, len(recent)),
        recent_successes=successes,
        recent_failures=failures,
        last_execution=str(latest.get("timestamp")),
        status=str(latest.get("status")),
    )


def build_report(
    logs: Sequence[Mapping[str, Any]],
    limit: int = 50,
    workflow: Optional[str] = None,
    now: Optional[datetime] = None,
) -> HealthReport:
    """Overall metrics for ``logs`` (newest first), optionally for one workflow."""
    selected = [dict(log) for log in logs if not workflow or log.get("workflow") == workflow]
    now = now or datetime.now(timezone.utc)
    cutoff = (now - ACTIVITY_WINDOW).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    successes = sum(1 for log in selected if log.get("status") == "completed")
    failures = sum(1 for log in selected if log.get("status") == "failed")
    return HealthReport(
        logs=selected[: max(limit, 0)],
        total_records=len(selected),
        success_count=successes,
        failure_count=failures,
        overall_success_rate=_percent(successes, len(selected)),
        recent_activity=sum(1 for log in selected if str(log.get("timestamp") or "") >= cutoff),
        last_activity=selected[0].get("timestamp") if selected else None,
    )


class ScraperHealthService(RepositoryService):
    def record(self, data: Mapping[str, Any]) -> HealthMetrics:
        """
        Append a health record and return metrics over the recent window.

        Raises:
            ValidationError: status or workflow missing, or unknown status
        """
        self.ensure_ingestion_enabled()
        if not data.get("status") or not data.get("workflow"):
            raise ValidationError("Missing required fields: status, workflow")
        payload = parse_payload(ScraperHealthPayload, data)

        record = {
            "id": f"health_{uuid.uuid4().hex[:12]}",
            "status": payload.status,
            "workflow": payload.workflow,
            "timestamp": payload.timestamp or utc_now_iso(),
        }
        for key, value in (
            ("executionId", payload.execution_id),
            ("metrics", payload.metrics),
            ("error", payload.error),
            ("message", payload.message),
        ):
            if value is not None:
                record[key] = value

        logs = [record, *self.repo.load_all(Collection.SCRAPER_HEALTH)]
        logs = logs[: self.config.scraper_health_max_records]
        self.repo.replace_all(Collection.SCRAPER_HEALTH, logs)
        self.repo.commit()

        if payload.status == "failed":
            logger.warning("Scraper workflow %s failed: %s", payload.workflow, payload.error or payload.message)
        else:
            logger.debug("Scraper workflow %s reported %s", payload.workflow, payload.status)
        return recent_metrics(logs, record)

    def report(self, limit: int = 50, workflow: Optional[str] = None) -> HealthReport:
        return build_report(self.repo.load_all(Collection.SCRAPER_HEALTH), limit=limit, workflow=workflow)
