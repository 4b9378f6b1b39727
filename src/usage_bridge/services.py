"""Interfaces of the OS services consumed by the usage bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .models import AppInfo, AppOpsMode, RawUsageRecord, UsageInterval

OPSTR_GET_USAGE_STATS = "android:get_usage_stats"


class PlatformError(RuntimeError):
    """Raised by a backend when an OS service call fails."""


class PlatformUnavailableError(PlatformError):
    """Raised when the backing service cannot be reached at all."""


class PackageNotFoundError(PlatformError):
    """Raised when a package is not present in the application registry."""

    def __init__(self, package_name: str) -> None:
        super().__init__(f"Package not installed: {package_name}")
        self.package_name = package_name


class AppOpsService(Protocol):
    def check_op(self, op: str, uid: int, package_name: str) -> AppOpsMode:
        ...


class UsageStatsService(Protocol):
    def query_usage_stats(
        self, interval: UsageInterval, start: int, end: int
    ) -> Optional[list[RawUsageRecord]]:
        ...


class PackageRegistry(Protocol):
    def get_application_info(self, package_name: str) -> AppInfo:
        ...

    def get_application_label(self, info: AppInfo) -> str:
        ...


class SettingsNavigator(Protocol):
    def open_usage_access_settings(self) -> None:
        ...


@dataclass(slots=True)
class PlatformServices:
    """The set of OS services a bridge instance talks to."""

    name: str
    app_ops: AppOpsService
    usage_stats: UsageStatsService
    packages: PackageRegistry
    settings: SettingsNavigator
