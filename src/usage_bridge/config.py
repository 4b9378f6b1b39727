"""Configuration models and helpers for the usage bridge."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Optional

from .paths import get_snapshot_path
from .resolver import DEFAULT_LAUNCH_COUNT_FIELD

DEFAULT_PACKAGE_NAME = "com.xzikriyoxon.subscriptionalert"


class Backend(str, Enum):
    SNAPSHOT = "snapshot"
    ADB = "adb"


@dataclass(slots=True)
class BridgeSettings:
    """Runtime configuration for a bridge instance."""

    package_name: str = DEFAULT_PACKAGE_NAME
    backend: Backend = Backend.SNAPSHOT
    snapshot_path: Path = field(default_factory=get_snapshot_path)
    adb_executable: str = "adb"
    adb_serial: Optional[str] = None
    command_timeout: timedelta = timedelta(seconds=15)
    launch_count_field: Optional[str] = DEFAULT_LAUNCH_COUNT_FIELD
    labels_path: Optional[Path] = None
    uid: Optional[int] = None

    @classmethod
    def from_options(
        cls,
        *,
        backend: Backend | str = Backend.SNAPSHOT,
        package_name: Optional[str] = None,
        snapshot_path: Optional[Path] = None,
        adb_executable: Optional[str] = None,
        adb_serial: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        launch_count_field: Optional[str] = DEFAULT_LAUNCH_COUNT_FIELD,
        labels_path: Optional[Path] = None,
        uid: Optional[int] = None,
    ) -> "BridgeSettings":
        timeout = timeout_seconds if timeout_seconds is not None else 15.0
        return cls(
            package_name=package_name or DEFAULT_PACKAGE_NAME,
            backend=Backend(backend),
            snapshot_path=Path(snapshot_path) if snapshot_path else get_snapshot_path(),
            adb_executable=adb_executable or "adb",
            adb_serial=adb_serial,
            command_timeout=timedelta(seconds=timeout),
            launch_count_field=launch_count_field or None,
            labels_path=Path(labels_path) if labels_path else None,
            uid=uid,
        )
