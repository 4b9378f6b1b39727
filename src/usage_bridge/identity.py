"""Helpers to determine the calling identity of this process."""

from __future__ import annotations

import logging
from typing import Optional

import psutil

from .models import CallerIdentity

logger = logging.getLogger(__name__)


def current_uid() -> int:
    """Return the real uid of this process, or 0 where uids are not exposed."""
    process = psutil.Process()
    try:
        return int(process.uids().real)
    except AttributeError:
        # Windows processes have no uids().
        return 0
    except psutil.Error:
        logger.debug("Unable to read uid of pid %s; using 0.", process.pid)
        return 0


def current_identity(package_name: str, uid: Optional[int] = None) -> CallerIdentity:
    return CallerIdentity(
        uid=uid if uid is not None else current_uid(),
        package_name=package_name,
    )
