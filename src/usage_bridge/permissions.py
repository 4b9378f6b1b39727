"""Usage-access permission gate."""

from __future__ import annotations

import logging

from .models import AppOpsMode, CallerIdentity
from .services import OPSTR_GET_USAGE_STATS, AppOpsService, SettingsNavigator

logger = logging.getLogger(__name__)


class PermissionGate:
    """Answers whether the caller may read usage statistics.

    The answer is never cached; every call asks the OS again. Failures are
    treated as "not granted".
    """

    def __init__(
        self,
        identity: CallerIdentity,
        app_ops: AppOpsService,
        navigator: SettingsNavigator,
    ) -> None:
        self.identity = identity
        self._app_ops = app_ops
        self._navigator = navigator

    def has_permission(self) -> bool:
        try:
            mode = self._app_ops.check_op(
                OPSTR_GET_USAGE_STATS,
                self.identity.uid,
                self.identity.package_name,
            )
        except Exception:
            logger.debug(
                "Usage access check failed for %s; treating as not granted.",
                self.identity.package_name,
                exc_info=True,
            )
            return False
        return mode == AppOpsMode.ALLOWED

    def request_permission(self) -> bool:
        """Open the usage access settings screen.

        Returns True once navigation was attempted. Whether the user grants
        access is unknown here; poll ``has_permission`` afterwards.
        """
        try:
            self._navigator.open_usage_access_settings()
        except Exception:
            logger.info("Usage access settings could not be opened.", exc_info=True)
        return True
