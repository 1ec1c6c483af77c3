import unittest

from intentra.normalizers.registry import SUPPORTED_TOOLS
from intentra.normalizers.types import UnifiedEventType as T
from intentra.termination import is_session_end_metadata, is_terminal


class TerminationTests(unittest.TestCase):
    def test_each_tool_has_exactly_one_terminal_type(self) -> None:
        for tool in (*SUPPORTED_TOOLS, "some-new-tool"):
            with self.subTest(tool=tool):
                terminal = [event_type for event_type in T if is_terminal(event_type, tool)]
                self.assertEqual(len(terminal), 1)

    def test_terminal_types_per_tool(self) -> None:
        self.assertTrue(is_terminal(T.STOP, "claude"))
        self.assertTrue(is_terminal(T.STOP, "cursor"))
        self.assertTrue(is_terminal(T.SESSION_END, "gemini"))
        self.assertTrue(is_terminal(T.SESSION_END, "copilot"))
        self.assertTrue(is_terminal(T.AFTER_RESPONSE, "windsurf"))
        self.assertFalse(is_terminal(T.STOP, "windsurf"))
        self.assertFalse(is_terminal(T.UNKNOWN, "claude"))

    def test_late_session_end_only_for_stop_terminated_tools(self) -> None:
        self.assertTrue(is_session_end_metadata(T.SESSION_END, "claude"))
        self.assertTrue(is_session_end_metadata(T.SESSION_END, "cursor"))
        self.assertTrue(is_session_end_metadata(T.SESSION_END, "generic"))
        self.assertFalse(is_session_end_metadata(T.SESSION_END, "gemini"))
        self.assertFalse(is_session_end_metadata(T.SESSION_END, "copilot"))
        self.assertFalse(is_session_end_metadata(T.SESSION_END, "windsurf"))
        self.assertFalse(is_session_end_metadata(T.STOP, "claude"))

    def test_unknown_is_never_terminal(self) -> None:
        for tool in SUPPORTED_TOOLS:
            self.assertFalse(is_terminal(T.UNKNOWN, tool))
            self.assertFalse(is_session_end_metadata(T.UNKNOWN, tool))


if __name__ == "__main__":
    unittest.main()
