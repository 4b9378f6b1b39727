"""Domain models for device usage statistics."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


def current_millis() -> int:
    return int(time.time() * 1000)


class AppOpsMode(str, Enum):
    """Modes reported by the OS access-control subsystem."""

    ALLOWED = "allowed"
    IGNORED = "ignored"
    ERRORED = "errored"
    DEFAULT = "default"
    FOREGROUND = "foreground"


class UsageInterval(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    BEST = "best"


@dataclass(slots=True, frozen=True)
class UsageWindow:
    """Time range, in epoch milliseconds, handed to the usage query."""

    start_time: int
    end_time: int

    @classmethod
    def from_millis(
        cls,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        *,
        now: Optional[int] = None,
    ) -> "UsageWindow":
        start = start_time if start_time is not None else 0
        if end_time is not None:
            end = end_time
        else:
            end = now if now is not None else current_millis()
        return cls(start_time=int(start), end_time=int(end))

    @property
    def is_inverted(self) -> bool:
        return self.start_time > self.end_time


@dataclass(slots=True, frozen=True)
class RawUsageRecord:
    """One per-package usage interval as reported by the OS.

    ``internals`` holds OS-private fields that are not part of the stable
    usage-statistics contract (for example the launch counter).
    """

    package_name: str
    total_time_in_foreground: int
    first_timestamp: int
    last_timestamp: int
    internals: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ResolvedUsageRecord:
    """A usage record enriched with a display label and launch count."""

    package_name: str
    app_name: str
    total_time_in_foreground: int
    launch_count: int
    first_timestamp: int
    last_timestamp: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "packageName": self.package_name,
            "appName": self.app_name,
            "totalTimeInForeground": self.total_time_in_foreground,
            "launchCount": self.launch_count,
            "firstTimestamp": self.first_timestamp,
            "lastTimestamp": self.last_timestamp,
        }


@dataclass(slots=True, frozen=True)
class AppInfo:
    package_name: str
    label: Optional[str] = None


@dataclass(slots=True, frozen=True)
class CallerIdentity:
    """The process on whose behalf OS permission checks are made."""

    uid: int
    package_name: str
