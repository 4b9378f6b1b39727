"""Tests for settings and bridge composition."""
import json
import tempfile
import unittest
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

from usage_bridge.adb import AdbDevice
from usage_bridge.bridge import build_bridge, load_labels
from usage_bridge.config import DEFAULT_PACKAGE_NAME, Backend, BridgeSettings
from usage_bridge.identity import current_identity
from usage_bridge.resolver import InternalFieldLaunchCountReader, ZeroLaunchCountReader
from usage_bridge.snapshot import SnapshotDevice


class TestBridgeSettings(unittest.TestCase):
    def test_from_options(self) -> None:
        settings = BridgeSettings.from_options(
            backend="adb",
            snapshot_path=Path("snap.json"),
            adb_serial="R58M",
            timeout_seconds=4,
            launch_count_field="",
        )
        self.assertIs(settings.backend, Backend.ADB)
        self.assertEqual(settings.package_name, DEFAULT_PACKAGE_NAME)
        self.assertEqual(settings.adb_serial, "R58M")
        self.assertEqual(settings.command_timeout, timedelta(seconds=4))
        self.assertIsNone(settings.launch_count_field)

    def test_invalid_backend(self) -> None:
        with self.assertRaises(ValueError):
            BridgeSettings.from_options(backend="bluetooth", snapshot_path=Path("x"))


class TestBuildBridge(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_snapshot_backend(self) -> None:
        bridge = build_bridge(
            BridgeSettings(package_name="com.test.app", snapshot_path=self.root / "s.json", uid=7)
        )
        self.assertEqual(bridge.services.name, "snapshot")
        self.assertIsInstance(bridge.services.usage_stats, SnapshotDevice)
        self.assertEqual(bridge.identity.uid, 7)
        self.assertEqual(bridge.identity.package_name, "com.test.app")
        self.assertIsInstance(bridge.resolver._launch_counts, InternalFieldLaunchCountReader)

    def test_adb_backend_with_labels(self) -> None:
        labels = self.root / "labels.json"
        labels.write_text(json.dumps({"com.spotify.music": "Spotify"}), encoding="utf-8")
        bridge = build_bridge(
            BridgeSettings(
                backend=Backend.ADB,
                snapshot_path=self.root / "s.json",
                labels_path=labels,
                adb_serial="emulator-5554",
                launch_count_field=None,
                uid=0,
            )
        )
        device = bridge.services.packages
        self.assertIsInstance(device, AdbDevice)
        self.assertEqual(device.labels, {"com.spotify.music": "Spotify"})
        self.assertEqual(device.client.serial, "emulator-5554")
        self.assertIsInstance(bridge.resolver._launch_counts, ZeroLaunchCountReader)

    def test_load_labels_tolerates_bad_files(self) -> None:
        self.assertEqual(load_labels(None), {})
        self.assertEqual(load_labels(self.root / "missing.json"), {})
        broken = self.root / "broken.json"
        broken.write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(load_labels(broken), {})


class TestIdentity(unittest.TestCase):
    def test_explicit_uid(self) -> None:
        identity = current_identity("com.test.app", uid=10123)
        self.assertEqual(identity.uid, 10123)

    @patch("usage_bridge.identity.current_uid", return_value=501)
    def test_uid_lookup(self, _mock_uid) -> None:
        self.assertEqual(current_identity("com.test.app").uid, 501)


if __name__ == "__main__":
    unittest.main()
