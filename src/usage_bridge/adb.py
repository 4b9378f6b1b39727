"""Platform backend that drives a connected Android device over adb."""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterator, Mapping, Optional

from .models import AppInfo, AppOpsMode, RawUsageRecord, UsageInterval
from .services import (
    PackageNotFoundError,
    PlatformError,
    PlatformServices,
    PlatformUnavailableError,
)

logger = logging.getLogger(__name__)

USAGE_ACCESS_SETTINGS_ACTION = "android.settings.USAGE_ACCESS_SETTINGS"
FLAG_ACTIVITY_NEW_TASK = "0x10000000"
DUMPSYS_DATETIME_FMT = "%Y-%m-%d %H:%M:%S"

_APPOPS_MODES: dict[str, AppOpsMode] = {
    "allow": AppOpsMode.ALLOWED,
    "ignore": AppOpsMode.IGNORED,
    "deny": AppOpsMode.ERRORED,
    "default": AppOpsMode.DEFAULT,
    "foreground": AppOpsMode.FOREGROUND,
}

_APPOPS_LINE_PATTERN = re.compile(r"GET_USAGE_STATS:\s*([a-z]+)")
_TIME_RANGE_PATTERN = re.compile(r'timeRange="(.+?)\s+-\s+(.+?)"')
_FIELD_PATTERN = re.compile(r'(\w+)=(?:"([^"]*)"|(\S+))')
_SECTION_PATTERN = re.compile(
    r"^\s*(?:in-memory\s+)?(daily|weekly|monthly|yearly)\s+stats", re.IGNORECASE
)


class AdbClient:
    """Runs ``adb shell`` commands against one device."""

    def __init__(
        self,
        executable: str = "adb",
        serial: Optional[str] = None,
        timeout: timedelta = timedelta(seconds=15),
    ) -> None:
        self.executable = executable
        self.serial = serial
        self.timeout = timeout

    def command(self, *args: str) -> list[str]:
        cmd = [self.executable]
        if self.serial:
            cmd += ["-s", self.serial]
        return cmd + ["shell", *args]

    def shell(self, *args: str) -> str:
        cmd = self.command(*args)
        logger.debug("Running %s", " ".join(cmd))
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout.total_seconds(),
            )
        except FileNotFoundError as exc:
            raise PlatformUnavailableError(f"adb not found: {self.executable}") from exc
        except subprocess.TimeoutExpired as exc:
            raise PlatformError(f"adb command timed out: {' '.join(args)}") from exc
        if completed.returncode != 0:
            message = (completed.stderr or completed.stdout or "").strip()
            raise PlatformError(
                f"adb exited with {completed.returncode}: {message or 'no output'}"
            )
        return completed.stdout


@dataclass(slots=True)
class DumpsysSection:
    interval: UsageInterval
    begin: Optional[int] = None
    end: Optional[int] = None
    records: list[RawUsageRecord] = field(default_factory=list)

    def intersects(self, start: int, end: int) -> bool:
        if self.begin is None or self.end is None:
            return True
        return self.begin < end and self.end >= start


def parse_appops_mode(output: str) -> AppOpsMode:
    match = _APPOPS_LINE_PATTERN.search(output)
    if not match:
        # "No operations." means the op was never set for the package.
        return AppOpsMode.DEFAULT
    token = match.group(1)
    try:
        return _APPOPS_MODES[token]
    except KeyError as exc:
        raise PlatformError(f"Unknown appops mode: {token}") from exc


def parse_elapsed_millis(value: str) -> int:
    """Parse ``[[H:]MM:]SS`` elapsed times into milliseconds."""
    parts = value.strip().split(":")
    if not parts or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid elapsed time: {value!r}")
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + int(part)
    return seconds * 1000


def parse_dumpsys_datetime(value: str) -> int:
    parsed = datetime.strptime(value.strip(), DUMPSYS_DATETIME_FMT)
    return int(parsed.timestamp() * 1000)


def _fields(line: str) -> dict[str, str]:
    return {
        match.group(1): match.group(2) if match.group(2) is not None else match.group(3)
        for match in _FIELD_PATTERN.finditer(line)
    }


def _package_record(line: str, section: DumpsysSection) -> Optional[RawUsageRecord]:
    values = _fields(line)
    package_name = values.get("package")
    if not package_name:
        return None
    try:
        total = parse_elapsed_millis(values.get("totalTimeUsed", "0"))
    except ValueError:
        logger.debug("Skipping %s: unreadable totalTimeUsed.", package_name)
        return None
    try:
        last = parse_dumpsys_datetime(values["lastTimeUsed"])
    except (KeyError, ValueError):
        last = section.end if section.end is not None else 0
    first = section.begin if section.begin is not None else last
    internals: dict[str, object] = {}
    if "appLaunchCount" in values:
        internals["mLaunchCount"] = values["appLaunchCount"]
    return RawUsageRecord(
        package_name=package_name,
        total_time_in_foreground=total,
        first_timestamp=first,
        last_timestamp=last,
        internals=internals,
    )


def iter_usage_sections(output: str) -> Iterator[DumpsysSection]:
    """Split ``dumpsys usagestats`` output into per-interval sections."""
    section: Optional[DumpsysSection] = None
    for line in output.splitlines():
        header = _SECTION_PATTERN.match(line)
        if header:
            if section is not None:
                yield section
            section = DumpsysSection(UsageInterval(header.group(1).lower()))
            continue
        if section is None:
            continue
        time_range = _TIME_RANGE_PATTERN.search(line)
        if time_range:
            if section.begin is not None:
                # A new range inside the same interval block.
                yield section
                section = DumpsysSection(section.interval)
            try:
                section.begin = parse_dumpsys_datetime(time_range.group(1))
                section.end = parse_dumpsys_datetime(time_range.group(2))
            except ValueError:
                logger.debug("Unreadable timeRange line: %s", line.strip())
            continue
        if line.lstrip().startswith("package="):
            record = _package_record(line, section)
            if record is not None:
                section.records.append(record)
    if section is not None:
        yield section


class AdbDevice:
    """OS services answered by ``appops``, ``pm``, ``am`` and ``dumpsys``."""

    def __init__(
        self, client: AdbClient, labels: Optional[Mapping[str, str]] = None
    ) -> None:
        self.client = client
        self.labels = dict(labels or {})

    # AppOpsService
    def check_op(self, op: str, uid: int, package_name: str) -> AppOpsMode:
        output = self.client.shell("appops", "get", package_name, "GET_USAGE_STATS")
        return parse_appops_mode(output)

    # UsageStatsService
    def query_usage_stats(
        self, interval: UsageInterval, start: int, end: int
    ) -> Optional[list[RawUsageRecord]]:
        output = self.client.shell("dumpsys", "usagestats")
        records: list[RawUsageRecord] = []
        for section in iter_usage_sections(output):
            if section.interval == interval and section.intersects(start, end):
                records.extend(section.records)
        return records

    # PackageRegistry
    def get_application_info(self, package_name: str) -> AppInfo:
        output = self.client.shell("pm", "list", "packages", package_name)
        installed = {
            line.strip()[len("package:"):]
            for line in output.splitlines()
            if line.strip().startswith("package:")
        }
        if package_name not in installed:
            raise PackageNotFoundError(package_name)
        return AppInfo(package_name=package_name, label=self.labels.get(package_name))

    def get_application_label(self, info: AppInfo) -> str:
        return info.label or info.package_name

    # SettingsNavigator
    def open_usage_access_settings(self) -> None:
        self.client.shell(
            "am", "start", "-a", USAGE_ACCESS_SETTINGS_ACTION, "-f", FLAG_ACTIVITY_NEW_TASK
        )


def adb_services(
    client: AdbClient, labels: Optional[Mapping[str, str]] = None
) -> PlatformServices:
    device = AdbDevice(client, labels)
    return PlatformServices(
        name="adb",
        app_ops=device,
        usage_stats=device,
        packages=device,
        settings=device,
    )
