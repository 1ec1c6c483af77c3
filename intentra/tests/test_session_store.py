import hashlib
import os
import tempfile
import time
import unittest
from pathlib import Path
from unittest.mock import patch

from intentra import session_store
from intentra.errors import SessionBufferError
from intentra.models import Event
from intentra.normalizers.types import UnifiedEventType


def _event(**overrides) -> Event:
    data = {"tool": "cursor", "conversation_id": "c1", "normalized_type": UnifiedEventType.BEFORE_PROMPT}
    data.update(overrides)
    return Event(**data)


class SessionStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.dir = Path(self._tmp.name)

    def test_paths_use_first_eight_bytes_of_key_hash(self) -> None:
        digest = hashlib.sha256(b"cursor_c1").hexdigest()[:16]
        self.assertEqual(
            session_store.buffer_path("cursor_c1", self.dir).name,
            f"intentra_buffer_{digest}.jsonl",
        )
        self.assertEqual(
            session_store.last_scan_path("cursor_c1", self.dir).name,
            f"intentra_lastscan_{digest}.txt",
        )

    def test_append_then_read_and_clear_preserves_order(self) -> None:
        for index in range(5):
            session_store.append_event(
                "cursor_c1",
                _event(prompt=f"p{index}"),
                {"conversation_id": "c1", "n": index},
                self.dir,
            )

        entries = session_store.read_and_clear("cursor_c1", self.dir)
        self.assertEqual([entry.event.prompt for entry in entries], ["p0", "p1", "p2", "p3", "p4"])
        self.assertEqual([entry.raw_event["n"] for entry in entries], [0, 1, 2, 3, 4])
        self.assertEqual(entries[0].event.normalized_type, UnifiedEventType.BEFORE_PROMPT)

        self.assertEqual(session_store.read_and_clear("cursor_c1", self.dir), [])
        self.assertFalse(session_store.buffer_path("cursor_c1", self.dir).exists())

    def test_buffer_file_is_private(self) -> None:
        session_store.append_event("cursor_c1", _event(), {}, self.dir)
        mode = session_store.buffer_path("cursor_c1", self.dir).stat().st_mode & 0o777
        if os.name == "posix":
            self.assertEqual(mode & 0o077, 0)

    def test_unreadable_lines_are_skipped(self) -> None:
        session_store.append_event("cursor_c1", _event(prompt="ok"), {}, self.dir)
        with session_store.buffer_path("cursor_c1", self.dir).open("a", encoding="utf-8") as handle:
            handle.write("{broken\n\n")
        session_store.append_event("cursor_c1", _event(prompt="ok2"), {}, self.dir)

        entries = session_store.read_and_clear("cursor_c1", self.dir)
        self.assertEqual([entry.event.prompt for entry in entries], ["ok", "ok2"])

    def test_append_failure_raises_buffer_error(self) -> None:
        missing = self.dir / "does-not-exist"
        with self.assertRaises(SessionBufferError):
            session_store.append_event("cursor_c1", _event(), {}, missing)

    def test_last_scan_id_round_trip(self) -> None:
        self.assertEqual(session_store.get_last_scan_id("claude_c1", self.dir), "")
        session_store.save_last_scan_id("claude_c1", "scan_abc", self.dir)
        session_store.save_last_scan_id("claude_c1", "scan_def", self.dir)
        self.assertEqual(session_store.get_last_scan_id("claude_c1", self.dir), "scan_def")
        session_store.clear_last_scan_id("claude_c1", self.dir)
        self.assertEqual(session_store.get_last_scan_id("claude_c1", self.dir), "")
        session_store.clear_last_scan_id("claude_c1", self.dir)

    def test_clear_failure_logs_file_name_not_session_key(self) -> None:
        session_store.save_last_scan_id("claude_secret-conv", "scan_1", self.dir)
        with (
            patch.object(Path, "unlink", side_effect=PermissionError("denied")),
            self.assertLogs("intentra.session", level="WARNING") as logs,
        ):
            session_store.clear_last_scan_id("claude_secret-conv", self.dir)
        output = "\n".join(logs.output)
        self.assertIn(session_store.last_scan_path("claude_secret-conv", self.dir).name, output)
        self.assertNotIn("secret-conv", output)

    def test_sweep_removes_only_stale_session_files(self) -> None:

        session_store.append_event("cursor_old", _event(), {}, self.dir)
        session_store.save_last_scan_id("claude_old", "scan_1", self.dir)
        session_store.append_event("cursor_new", _event(), {}, self.dir)
        unrelated = self.dir / "other.jsonl"
        unrelated.write_text("x", encoding="utf-8")

        stale = time.time() - 31 * 60
        for path in (
            session_store.buffer_path("cursor_old", self.dir),
            session_store.last_scan_path("claude_old", self.dir),
            unrelated,
        ):
            os.utime(path, (stale, stale))

        removed = session_store.sweep_stale_files(self.dir, max_age_seconds=30 * 60)
        self.assertEqual(removed, 2)
        self.assertFalse(session_store.buffer_path("cursor_old", self.dir).exists())
        self.assertFalse(session_store.last_scan_path("claude_old", self.dir).exists())
        self.assertTrue(session_store.buffer_path("cursor_new", self.dir).exists())
        self.assertTrue(unrelated.exists())

    def test_default_directory_is_temp_dir(self) -> None:
        with patch("intentra.config.get_buffer_dir", return_value=self.dir):
            session_store.append_event("cursor_c1", _event(), {}, None)
        self.assertTrue(session_store.buffer_path("cursor_c1", self.dir).exists())


class SessionKeyTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.dir = Path(self._tmp.name)

    def test_key_prefers_conversation_then_session_then_device(self) -> None:
        self.assertEqual(
            session_store.resolve_session_key(_event(conversation_id="c1", session_id="s1"), "cursor", self.dir),
            ("cursor_c1", "cursor"),
        )
        self.assertEqual(
            session_store.resolve_session_key(_event(conversation_id="", session_id="s1"), "gemini", self.dir),
            ("gemini_s1", "gemini"),
        )
        self.assertEqual(
            session_store.resolve_session_key(_event(conversation_id="", device_id="dev"), "copilot", self.dir),
            ("copilot_dev_default", "copilot"),
        )

    def test_claude_event_joins_open_cursor_session(self) -> None:
        claude_event = _event(tool="claude")
        self.assertEqual(
            session_store.resolve_session_key(claude_event, "claude", self.dir),
            ("claude_c1", "claude"),
        )
        session_store.append_event("cursor_c1", _event(), {}, self.dir)
        self.assertEqual(
            session_store.resolve_session_key(claude_event, "claude", self.dir),
            ("cursor_c1", "cursor"),
        )

    def test_other_tools_are_never_retargeted(self) -> None:
        session_store.append_event("cursor_c1", _event(), {}, self.dir)
        self.assertEqual(
            session_store.resolve_session_key(_event(tool="gemini"), "gemini", self.dir),
            ("gemini_c1", "gemini"),
        )


if __name__ == "__main__":
    unittest.main()
