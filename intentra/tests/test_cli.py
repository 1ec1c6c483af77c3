import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

from intentra import cli
from intentra.config import AgentConfig
from intentra.errors import ConfigError, SessionBufferError
from intentra.pipeline import Outcome, PipelineResult


class HookCommandTests(unittest.TestCase):
    def setUp(self) -> None:
        for target in ("intentra.cli.observability.initialize", "intentra.cli.observability.shutdown"):
            patcher = patch(target)
            patcher.start()
            self.addCleanup(patcher.stop)

    def test_hook_passes_tool_and_event_through(self) -> None:
        cfg = AgentConfig()
        with (
            patch("intentra.cli.config.load_config", return_value=cfg),
            patch("intentra.cli.process_event", return_value=PipelineResult(Outcome.BUFFERED)) as process,
        ):
            code = cli.main(["hook", "--tool", "cursor", "--event", "beforeSubmitPrompt"])

        self.assertEqual(code, 0)
        args = process.call_args.args
        self.assertEqual(args[1:], ("cursor", "beforeSubmitPrompt", cfg))

    def test_bad_config_falls_back_to_defaults(self) -> None:
        with (
            patch("intentra.cli.config.load_config", side_effect=ConfigError("broken")),
            patch("intentra.cli.process_event", return_value=PipelineResult(Outcome.NO_INPUT)) as process,
        ):
            code = cli.main(["hook", "--tool", "claude", "--event", "Stop"])

        self.assertEqual(code, 0)
        self.assertIsInstance(process.call_args.args[3], AgentConfig)

    def test_buffer_failure_exits_non_zero(self) -> None:
        with (
            patch("intentra.cli.config.load_config", return_value=AgentConfig()),
            patch("intentra.cli.process_event", side_effect=SessionBufferError("disk full")),
        ):
            self.assertEqual(cli.main(["hook", "--tool", "cursor", "--event", "stop"]), 1)
        cli.observability.shutdown.assert_called()

    def test_unexpected_failure_does_not_fail_the_hook(self) -> None:
        with (
            patch("intentra.cli.config.load_config", return_value=AgentConfig()),
            patch("intentra.cli.process_event", side_effect=RuntimeError("boom")),
        ):
            self.assertEqual(cli.main(["hook", "--tool", "cursor", "--event", "stop"]), 0)
        cli.observability.shutdown.assert_called()

    def test_odd_stdin_exits_cleanly(self) -> None:
        payloads = (
            b'{"conversation_id": "c1", "file_path": "/src/\xff.py"}\n',
            b'{"conversation_id": "c1", "duration_ms": 1e999}\n',
            b'{"conversation_id": "c1", "input_tokens": NaN}\n',
            b'{"conversation_id": "c1", "output_tokens": -Infinity}\n',
        )
        with tempfile.TemporaryDirectory() as tmp:
            for payload in payloads:
                stdin = io.TextIOWrapper(io.BytesIO(payload), encoding="utf-8")
                with (
                    self.subTest(payload=payload),
                    patch("intentra.cli.config.load_config", return_value=AgentConfig()),
                    patch("intentra.config.get_buffer_dir", return_value=Path(tmp)),
                    patch("intentra.cli.sys.stdin", stdin),
                    patch.object(cli.logger, "exception") as crashed,
                ):
                    code = cli.main(["hook", "--tool", "cursor", "--event", "beforeSubmitPrompt"])
                    self.assertEqual(code, 0)
                    crashed.assert_not_called()


class ScanShowCommandTests(unittest.TestCase):
    def test_invalid_id(self) -> None:
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            self.assertEqual(cli.main(["scan", "show", "../x"]), 2)
        self.assertIn("Invalid scan id", stderr.getvalue())

    def test_missing_scan(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with (
                patch("intentra.config.get_scans_dir", return_value=Path(tmp)),
                redirect_stderr(io.StringIO()),
            ):
                self.assertEqual(cli.main(["scan", "show", "scan_000000000000"]), 1)

    def test_show_prints_payload(self) -> None:
        stdout = io.StringIO()
        with (
            tempfile.TemporaryDirectory() as tmp,
            patch("intentra.config.get_scans_dir", return_value=Path(tmp)),
        ):
            (Path(tmp) / "scan_abc.json").write_text(
                '{"scan_id": "scan_abc", "device_id": "dev-1", "tool": "cursor",'
                ' "start_time": "2026-02-16T10:00:00Z", "end_time": "2026-02-16T10:00:02Z"}',
                encoding="utf-8",
            )
            with redirect_stdout(stdout):
                self.assertEqual(cli.main(["scan", "show", "scan_abc"]), 0)

        output = stdout.getvalue()
        self.assertIn('"device_id": "dev-1"', output)
        self.assertIn('"duration_ms": 2000', output)


if __name__ == "__main__":
    unittest.main()
