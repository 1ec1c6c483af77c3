import os
import stat
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from intentra.errors import InvalidScanIdError
from intentra.models import BufferedEvent, Event
from intentra.normalizers.types import UnifiedEventType as T
from intentra.scanner.archive import load_scan, save_scan, validate_scan_id
from intentra.scanner.builder import build_scan
from intentra.scanner.git_metadata import GitMetadata


class ScanArchiveTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.scans_dir = Path(self._tmp.name) / "scans"

    def _scan(self):
        event = Event(
            tool="cursor",
            conversation_id="c1",
            device_id="dev-1",
            timestamp=datetime(2026, 2, 16, 10, 0, tzinfo=timezone.utc),
            normalized_type=T.STOP,
            output_tokens=12,
        )
        return build_scan(
            [BufferedEvent(event=event, raw_event={"conversation_id": "c1"})],
            "cursor",
            git_collector=GitMetadata,
        )

    def test_save_then_load(self) -> None:
        scan = self._scan()
        path = save_scan(scan, self.scans_dir)

        self.assertEqual(path, self.scans_dir / f"{scan.scan_id}.json")
        loaded = load_scan(scan.scan_id, self.scans_dir)
        self.assertEqual(loaded.scan_id, scan.scan_id)
        self.assertEqual(loaded.device_id, "dev-1")
        self.assertEqual(loaded.output_tokens, 12)
        self.assertEqual(loaded.start_time, scan.start_time)

    @unittest.skipIf(os.name == "nt", "POSIX permissions")
    def test_saved_files_are_private(self) -> None:
        path = save_scan(self._scan(), self.scans_dir)
        self.assertEqual(stat.S_IMODE(path.stat().st_mode), 0o600)

    def test_missing_scan_raises_file_not_found(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_scan("scan_000000000000", self.scans_dir)

    def test_scan_id_validation(self) -> None:
        validate_scan_id("scan_0123abcd-ef")
        for bad in ("", "../etc/passwd", "a/b", "scan id", "x" * 129):
            with self.subTest(scan_id=bad):
                with self.assertRaises(InvalidScanIdError):
                    validate_scan_id(bad)
        with self.assertRaises(InvalidScanIdError):
            load_scan("../outside", self.scans_dir)


if __name__ == "__main__":
    unittest.main()
