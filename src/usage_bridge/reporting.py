"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from .models import ResolvedUsageRecord


class UsageReportPrinter:
    """Render resolved usage records in the console."""

    def print_usage(self, records: Iterable[ResolvedUsageRecord]) -> None:
        rows = sort_by_foreground_time(records)
        if not rows:
            print("No app usage available for the selected window.")
            return

        total_ms = sum(row.total_time_in_foreground for row in rows)
        print(f"{'App':<32} {'Time':>9} {'Launches':>8}  Last used")
        print("-" * 72)
        for row in rows:
            print(
                f"{row.app_name[:32]:<32} "
                f"{format_duration(row.total_time_in_foreground / 1000):>9} "
                f"{row.launch_count:>8}  "
                f"{format_timestamp(row.last_timestamp)}"
            )
        print("-" * 72)
        print(f"{len(rows)} apps, {format_duration(total_ms / 1000)} in foreground")


def sort_by_foreground_time(
    records: Iterable[ResolvedUsageRecord],
) -> list[ResolvedUsageRecord]:
    return sorted(records, key=lambda item: item.total_time_in_foreground, reverse=True)


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_timestamp(millis: int) -> str:
    if millis <= 0:
        return "-"
    return datetime.fromtimestamp(millis / 1000).strftime("%Y-%m-%d %H:%M")
