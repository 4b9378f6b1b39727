"""Platform backend that serves a JSON snapshot exported from a device."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import AppInfo, AppOpsMode, RawUsageRecord, UsageInterval
from .services import PackageNotFoundError, PlatformServices, PlatformUnavailableError

logger = logging.getLogger(__name__)


class SnapshotPackage(BaseModel):
    label: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class SnapshotUsageStat(BaseModel):
    package_name: str
    total_time_in_foreground: int
    first_timestamp: int
    last_timestamp: int
    interval: UsageInterval = UsageInterval.DAILY
    internals: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    def to_record(self) -> RawUsageRecord:
        return RawUsageRecord(
            package_name=self.package_name,
            total_time_in_foreground=self.total_time_in_foreground,
            first_timestamp=self.first_timestamp,
            last_timestamp=self.last_timestamp,
            internals=dict(self.internals),
        )


class DeviceSnapshot(BaseModel):
    usage_access: AppOpsMode = AppOpsMode.DEFAULT
    packages: Dict[str, SnapshotPackage] = Field(default_factory=dict)
    usage_stats: List[SnapshotUsageStat] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class SnapshotDevice:
    """Answers OS service calls from a snapshot file.

    The file is re-read on every call so edits are picked up without a
    restart, matching the uncached behaviour of a real device.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.settings_requests = 0

    def load(self) -> DeviceSnapshot:
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError as exc:
            raise PlatformUnavailableError(f"Snapshot not found: {self.path}") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise PlatformUnavailableError(f"Unreadable snapshot {self.path}: {exc}") from exc
        try:
            return DeviceSnapshot.model_validate(payload)
        except ValidationError as exc:
            raise PlatformUnavailableError(f"Invalid snapshot {self.path}: {exc}") from exc

    # AppOpsService
    def check_op(self, op: str, uid: int, package_name: str) -> AppOpsMode:
        return self.load().usage_access

    # UsageStatsService
    def query_usage_stats(
        self, interval: UsageInterval, start: int, end: int
    ) -> Optional[list[RawUsageRecord]]:
        snapshot = self.load()
        return [
            stat.to_record()
            for stat in snapshot.usage_stats
            if stat.interval == interval
            and stat.first_timestamp < end
            and stat.last_timestamp >= start
        ]

    # PackageRegistry
    def get_application_info(self, package_name: str) -> AppInfo:
        package = self.load().packages.get(package_name)
        if package is None:
            raise PackageNotFoundError(package_name)
        return AppInfo(package_name=package_name, label=package.label)

    def get_application_label(self, info: AppInfo) -> str:
        return info.label or info.package_name

    # SettingsNavigator
    def open_usage_access_settings(self) -> None:
        self.settings_requests += 1
        logger.info(
            "Usage access settings requested (snapshot %s); edit usage_access to grant.",
            self.path,
        )


def snapshot_services(path: Path) -> PlatformServices:
    device = SnapshotDevice(path)
    return PlatformServices(
        name="snapshot",
        app_ops=device,
        usage_stats=device,
        packages=device,
        settings=device,
    )
