"""Best-effort enrichment of raw usage records."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .models import RawUsageRecord
from .normalization import coerce_count, normalize_app_label
from .services import PackageNotFoundError, PackageRegistry

logger = logging.getLogger(__name__)

DEFAULT_LAUNCH_COUNT_FIELD = "mLaunchCount"


class LaunchCountReader(ABC):
    """Extracts a launch count from a raw record."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def read(self, record: RawUsageRecord) -> int:
        """Return the launch count; implementations may raise."""
        pass


class ZeroLaunchCountReader(LaunchCountReader):
    """For platforms that expose no launch counter."""

    @property
    def name(self) -> str:
        return "zero"

    def read(self, record: RawUsageRecord) -> int:
        return 0


class InternalFieldLaunchCountReader(LaunchCountReader):
    """Reads the launch counter from an OS-private field of the record.

    The field is not part of the public usage-statistics contract and can
    vanish or change type between OS versions.
    """

    def __init__(self, field_name: str = DEFAULT_LAUNCH_COUNT_FIELD) -> None:
        self.field_name = field_name

    @property
    def name(self) -> str:
        return f"internal:{self.field_name}"

    def read(self, record: RawUsageRecord) -> int:
        value = record.internals[self.field_name]
        count = coerce_count(value)
        if count is None:
            raise TypeError(f"{self.field_name} is not an integer: {value!r}")
        return count


def launch_count_reader_for(field_name: str | None) -> LaunchCountReader:
    if field_name:
        return InternalFieldLaunchCountReader(field_name)
    return ZeroLaunchCountReader()


class MetadataResolver:
    """Resolves display labels and launch counts without ever failing."""

    def __init__(
        self,
        registry: PackageRegistry,
        launch_counts: LaunchCountReader | None = None,
    ) -> None:
        self._registry = registry
        self._launch_counts = launch_counts or ZeroLaunchCountReader()

    def resolve_app_name(self, package_id: str) -> str:
        try:
            info = self._registry.get_application_info(package_id)
            label = normalize_app_label(self._registry.get_application_label(info))
        except PackageNotFoundError:
            logger.debug("Package %s is not installed; using id as label.", package_id)
            return package_id
        except Exception:
            logger.debug("Label lookup failed for %s.", package_id, exc_info=True)
            return package_id
        return label or package_id

    def resolve_launch_count(self, record: RawUsageRecord) -> int:
        try:
            count = self._launch_counts.read(record)
        except Exception as exc:
            logger.debug(
                "Launch count unavailable for %s via %s: %s",
                record.package_name,
                self._launch_counts.name,
                exc,
            )
            return 0
        if isinstance(count, bool) or not isinstance(count, int):
            return 0
        return count
