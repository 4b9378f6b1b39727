"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "UsageBridge"
APP_AUTHOR = "SubscriptionAlert"


def get_data_dir() -> Path:
    """Return the base directory for device snapshots."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
    path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_snapshot_path() -> Path:
    return get_data_dir() / "device_snapshot.json"
