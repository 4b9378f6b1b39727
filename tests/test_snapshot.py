"""Tests for the JSON device snapshot backend."""
import json
import tempfile
import unittest
from pathlib import Path

from fakes import IDENTITY

from usage_bridge.bridge import UsageBridge
from usage_bridge.models import AppOpsMode, UsageInterval
from usage_bridge.resolver import InternalFieldLaunchCountReader
from usage_bridge.services import PackageNotFoundError, PlatformUnavailableError
from usage_bridge.snapshot import SnapshotDevice, snapshot_services

SNAPSHOT = {
    "usage_access": "allowed",
    "packages": {
        "com.spotify.music": {"label": "Spotify"},
        "com.netflix.mediaclient": {},
    },
    "usage_stats": [
        {
            "package_name": "com.spotify.music",
            "total_time_in_foreground": 3_600_000,
            "first_timestamp": 1_000,
            "last_timestamp": 5_000,
            "internals": {"mLaunchCount": 6},
        },
        {
            "package_name": "com.netflix.mediaclient",
            "total_time_in_foreground": 0,
            "first_timestamp": 1_000,
            "last_timestamp": 2_000,
        },
        {
            "package_name": "com.example.old",
            "total_time_in_foreground": 60_000,
            "first_timestamp": 10_000,
            "last_timestamp": 20_000,
        },
        {
            "package_name": "com.example.weekly",
            "total_time_in_foreground": 60_000,
            "first_timestamp": 1_000,
            "last_timestamp": 2_000,
            "interval": "weekly",
        },
    ],
}


class TestSnapshotDevice(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "device_snapshot.json"
        self.write(SNAPSHOT)
        self.device = SnapshotDevice(self.path)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write(self, payload: object) -> None:
        self.path.write_text(json.dumps(payload), encoding="utf-8")

    def test_check_op_reads_usage_access(self) -> None:
        self.assertEqual(self.device.check_op("op", 1, "pkg"), AppOpsMode.ALLOWED)
        self.write({"usage_access": "ignored"})
        self.assertEqual(self.device.check_op("op", 1, "pkg"), AppOpsMode.IGNORED)

    def test_missing_usage_access_is_default(self) -> None:
        self.write({})
        self.assertEqual(self.device.check_op("op", 1, "pkg"), AppOpsMode.DEFAULT)

    def test_query_filters_by_window_and_interval(self) -> None:
        records = self.device.query_usage_stats(UsageInterval.DAILY, 0, 9_000)
        self.assertEqual(
            [item.package_name for item in records],
            ["com.spotify.music", "com.netflix.mediaclient"],
        )
        self.assertEqual(records[0].internals, {"mLaunchCount": 6})

    def test_inverted_window_matches_nothing(self) -> None:
        self.assertEqual(self.device.query_usage_stats(UsageInterval.DAILY, 9_000, 0), [])

    def test_missing_file_raises(self) -> None:
        self.path.unlink()
        with self.assertRaises(PlatformUnavailableError):
            self.device.query_usage_stats(UsageInterval.DAILY, 0, 1)

    def test_invalid_file_raises(self) -> None:
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(PlatformUnavailableError):
            self.device.load()
        self.write({"usage_stats": [{"package_name": "x"}]})
        with self.assertRaises(PlatformUnavailableError):
            self.device.load()

    def test_registry_lookup(self) -> None:
        info = self.device.get_application_info("com.spotify.music")
        self.assertEqual(self.device.get_application_label(info), "Spotify")
        info = self.device.get_application_info("com.netflix.mediaclient")
        self.assertEqual(
            self.device.get_application_label(info), "com.netflix.mediaclient"
        )
        with self.assertRaises(PackageNotFoundError):
            self.device.get_application_info("com.example.old")

    def test_settings_request_is_counted(self) -> None:
        self.device.open_usage_access_settings()
        self.assertEqual(self.device.settings_requests, 1)

    def test_bridge_over_snapshot(self) -> None:
        bridge = UsageBridge(
            IDENTITY, snapshot_services(self.path), InternalFieldLaunchCountReader()
        )
        payload = [item.to_payload() for item in bridge.get_app_usage(0, 30_000)]
        self.assertEqual(
            payload,
            [
                {
                    "packageName": "com.spotify.music",
                    "appName": "Spotify",
                    "totalTimeInForeground": 3_600_000,
                    "launchCount": 6,
                    "firstTimestamp": 1_000,
                    "lastTimestamp": 5_000,
                },
                {
                    "packageName": "com.example.old",
                    "appName": "com.example.old",
                    "totalTimeInForeground": 60_000,
                    "launchCount": 0,
                    "firstTimestamp": 10_000,
                    "lastTimestamp": 20_000,
                },
            ],
        )

    def test_bridge_over_missing_snapshot_is_empty(self) -> None:
        self.path.unlink()
        bridge = UsageBridge(IDENTITY, snapshot_services(self.path))
        self.assertFalse(bridge.has_usage_permission())
        self.assertEqual(bridge.get_app_usage(0, 30_000), [])


if __name__ == "__main__":
    unittest.main()
