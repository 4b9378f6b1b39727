"""Composition of the usage bridge from settings and platform services."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from .adb import AdbClient, adb_services
from .channel import UsageStatsChannel
from .config import Backend, BridgeSettings
from .identity import current_identity
from .models import CallerIdentity, ResolvedUsageRecord, UsageWindow
from .permissions import PermissionGate
from .resolver import LaunchCountReader, MetadataResolver, launch_count_reader_for
from .services import PlatformServices
from .snapshot import snapshot_services
from .usage import UsageQueryEngine

logger = logging.getLogger(__name__)


class UsageBridge:
    """Usage-statistics operations for one calling identity."""

    def __init__(
        self,
        identity: CallerIdentity,
        services: PlatformServices,
        launch_counts: Optional[LaunchCountReader] = None,
    ) -> None:
        self.identity = identity
        self.services = services
        self.gate = PermissionGate(identity, services.app_ops, services.settings)
        self.resolver = MetadataResolver(services.packages, launch_counts)
        self.engine = UsageQueryEngine(self.gate, services.usage_stats, self.resolver)
        self.channel = UsageStatsChannel(self)

    def has_usage_permission(self) -> bool:
        return self.gate.has_permission()

    def request_usage_permission(self) -> bool:
        return self.gate.request_permission()

    def usage_for(self, window: UsageWindow) -> list[ResolvedUsageRecord]:
        return self.engine.get_app_usage(window)

    def get_app_usage(
        self, start_time: Optional[int] = None, end_time: Optional[int] = None
    ) -> list[ResolvedUsageRecord]:
        return self.usage_for(UsageWindow.from_millis(start_time, end_time))


def load_labels(path: Optional[Path]) -> dict[str, str]:
    """Load a ``{package: label}`` JSON map; problems yield an empty map."""
    if path is None:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError):
        logger.warning("Could not read labels from %s; labels disabled.", path)
        return {}
    if not isinstance(payload, dict):
        logger.warning("Labels file %s is not a JSON object; labels disabled.", path)
        return {}
    return {str(key): str(value) for key, value in payload.items()}


def create_services(settings: BridgeSettings) -> PlatformServices:
    if settings.backend is Backend.ADB:
        client = AdbClient(
            executable=settings.adb_executable,
            serial=settings.adb_serial,
            timeout=settings.command_timeout,
        )
        return adb_services(client, load_labels(settings.labels_path))
    return snapshot_services(settings.snapshot_path)


def build_bridge(settings: Optional[BridgeSettings] = None) -> UsageBridge:
    resolved = settings or BridgeSettings()
    services = create_services(resolved)
    identity = current_identity(resolved.package_name, resolved.uid)
    reader = launch_count_reader_for(resolved.launch_count_field)
    logger.debug(
        "Usage bridge for %s (uid %d) using %s backend, launch counts via %s.",
        identity.package_name,
        identity.uid,
        services.name,
        reader.name,
    )
    return UsageBridge(identity, services, reader)
