"""Usage query engine: permission check, OS query, filtering, enrichment."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from .models import RawUsageRecord, ResolvedUsageRecord, UsageInterval, UsageWindow
from .permissions import PermissionGate
from .resolver import MetadataResolver
from .services import UsageStatsService

logger = logging.getLogger(__name__)


class QueryStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"
    DENIED = "denied"


@dataclass(slots=True)
class UsageQueryOutcome:
    """Result of one usage query.

    ``status`` is for logging and diagnostics only; callers of
    ``UsageQueryEngine.get_app_usage`` only ever see ``records``.
    """

    status: QueryStatus
    records: list[ResolvedUsageRecord] = field(default_factory=list)


class UsageQueryEngine:
    """Builds resolved usage records for a time window."""

    def __init__(
        self,
        gate: PermissionGate,
        usage_stats: UsageStatsService,
        resolver: MetadataResolver,
    ) -> None:
        self._gate = gate
        self._usage_stats = usage_stats
        self._resolver = resolver

    def get_app_usage(self, window: UsageWindow) -> list[ResolvedUsageRecord]:
        return self.query(window).records

    def query(self, window: UsageWindow) -> UsageQueryOutcome:
        if not self._gate.has_permission():
            logger.debug("Usage access not granted; skipping query.")
            return UsageQueryOutcome(QueryStatus.DENIED)

        if window.is_inverted:
            logger.warning(
                "Usage window starts after it ends (%d > %d); passing through.",
                window.start_time,
                window.end_time,
            )

        try:
            stats = self._usage_stats.query_usage_stats(
                UsageInterval.DAILY, window.start_time, window.end_time
            )
        except Exception:
            logger.warning("Usage stats query failed.", exc_info=True)
            return UsageQueryOutcome(QueryStatus.FAILED)

        if stats is None:
            logger.warning("Usage stats service returned no result.")
            return UsageQueryOutcome(QueryStatus.FAILED)
        if not stats:
            logger.debug(
                "No usage recorded between %d and %d.",
                window.start_time,
                window.end_time,
            )
            return UsageQueryOutcome(QueryStatus.EMPTY)

        records = [
            self._resolve(record)
            for record in stats
            if record.total_time_in_foreground > 0
        ]
        logger.debug(
            "Resolved %d of %d usage records.", len(records), len(stats)
        )
        return UsageQueryOutcome(
            QueryStatus.OK if records else QueryStatus.EMPTY, records
        )

    def _resolve(self, record: RawUsageRecord) -> ResolvedUsageRecord:
        package_name = record.package_name or ""
        return ResolvedUsageRecord(
            package_name=package_name,
            app_name=self._resolver.resolve_app_name(package_name),
            total_time_in_foreground=record.total_time_in_foreground,
            launch_count=self._resolver.resolve_launch_count(record),
            first_timestamp=record.first_timestamp,
            last_timestamp=record.last_timestamp,
        )
