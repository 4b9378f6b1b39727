"""Tests for the usage access permission gate."""
import unittest

from fakes import IDENTITY, FakeDevice

from usage_bridge.models import AppOpsMode
from usage_bridge.permissions import PermissionGate
from usage_bridge.services import OPSTR_GET_USAGE_STATS, PlatformError


class TestPermissionGate(unittest.TestCase):
    def setUp(self) -> None:
        self.device = FakeDevice()
        self.gate = PermissionGate(IDENTITY, self.device, self.device)

    def test_allowed_mode_grants(self) -> None:
        self.assertTrue(self.gate.has_permission())
        self.assertEqual(
            self.device.checks,
            [(OPSTR_GET_USAGE_STATS, IDENTITY.uid, IDENTITY.package_name)],
        )

    def test_other_modes_do_not_grant(self) -> None:
        for mode in (
            AppOpsMode.IGNORED,
            AppOpsMode.ERRORED,
            AppOpsMode.DEFAULT,
            AppOpsMode.FOREGROUND,
        ):
            self.device.mode = mode
            self.assertFalse(self.gate.has_permission(), mode)

    def test_check_failure_is_not_granted(self) -> None:
        self.device.check_error = PlatformError("appops unavailable")
        self.assertFalse(self.gate.has_permission())

    def test_permission_is_rechecked_every_call(self) -> None:
        self.assertTrue(self.gate.has_permission())
        self.device.mode = AppOpsMode.IGNORED
        self.assertFalse(self.gate.has_permission())
        self.assertEqual(len(self.device.checks), 2)

    def test_request_opens_settings(self) -> None:
        self.assertTrue(self.gate.request_permission())
        self.assertEqual(self.device.settings_requests, 1)

    def test_request_swallows_navigation_failure(self) -> None:
        self.device.settings_error = RuntimeError("no settings activity")
        self.assertTrue(self.gate.request_permission())
        self.assertEqual(self.device.settings_requests, 1)

    def test_request_does_not_grant(self) -> None:
        self.device.mode = AppOpsMode.DEFAULT
        self.gate.request_permission()
        self.assertFalse(self.gate.has_permission())


if __name__ == "__main__":
    unittest.main()
