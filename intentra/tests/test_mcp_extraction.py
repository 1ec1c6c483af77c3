import unittest

from intentra.normalizers import mcp
from intentra.normalizers.registry import normalize_event


class SanitizationTests(unittest.TestCase):
    def test_url_drops_query_and_fragment(self) -> None:
        self.assertEqual(
            mcp.sanitize_server_url("https://mcp.sentry.dev/sse?token=secret#frag"),
            "https://mcp.sentry.dev/sse",
        )
        self.assertEqual(mcp.sanitize_server_url(""), "")

    def test_command_keeps_binary_name_only(self) -> None:
        self.assertEqual(mcp.sanitize_server_cmd("/Users/me/.local/bin/uvx mcp-server --key abc"), "uvx")
        self.assertEqual(mcp.sanitize_server_cmd("npx -y @posthog/mcp"), "npx")
        self.assertEqual(mcp.sanitize_server_cmd("   "), "")

    def test_url_hash(self) -> None:
        self.assertEqual(mcp.server_url_hash("", ""), "")
        first = mcp.server_url_hash("https://a.example/sse", "")
        self.assertEqual(len(first), 8)
        self.assertEqual(first, mcp.server_url_hash("https://a.example/sse", ""))
        self.assertNotEqual(first, mcp.server_url_hash("", "https://a.example/sse"))


class NameParsingTests(unittest.TestCase):
    def test_double_underscore_split_on_first_two_delimiters(self) -> None:
        self.assertEqual(mcp.parse_double_underscore_name("mcp__github__create_issue"), ("github", "create_issue"))
        self.assertEqual(mcp.parse_double_underscore_name("mcp__srv__tool__extra"), ("srv", "tool__extra"))
        self.assertEqual(mcp.parse_double_underscore_name("mcp__solo"), ("solo", ""))
        self.assertIsNone(mcp.parse_double_underscore_name("Bash"))

    def test_server_inference(self) -> None:
        self.assertEqual(mcp.infer_server_name("browser_snapshot"), "cursor-browser")
        self.assertEqual(mcp.infer_server_name("browser_something_new"), "cursor-browser")
        self.assertEqual(mcp.infer_server_name("take_screenshot"), "chrome-devtools")
        self.assertEqual(mcp.infer_server_name("search_issues"), "sentry")
        self.assertEqual(mcp.infer_server_name("list-errors"), "posthog")
        self.assertEqual(mcp.infer_server_name("linear__create"), "linear")
        self.assertEqual(mcp.infer_server_name("whatever"), "mcp")

    def test_host_label(self) -> None:
        self.assertEqual(mcp.host_label("https://api.sentry.io/mcp"), "sentry")
        self.assertEqual(mcp.host_label("http://localhost:8080/sse"), "localhost")
        self.assertEqual(mcp.host_label(""), "")


class PerToolExtractionTests(unittest.TestCase):
    def test_cursor_mcp_hook_with_url(self) -> None:
        raw = {
            "conversation_id": "c1",
            "tool_name": "search_issues",
            "url": "https://mcp.sentry.dev/sse?api_key=abc",
            "command": "ignored",
        }
        event = normalize_event(raw, "cursor", "afterMCPExecution")
        self.assertEqual(event.mcp_tool_name, "search_issues")
        self.assertEqual(event.mcp_server_url, "https://mcp.sentry.dev/sse")
        self.assertEqual(event.mcp_server_cmd, "")
        self.assertEqual(event.mcp_server_name, "sentry")
        self.assertTrue(event.is_mcp)

    def test_cursor_mcp_hook_with_command_or_nothing(self) -> None:
        event = normalize_event(
            {"tool_name": "query", "command": "/opt/bin/pg-mcp --dsn postgres://u:p@h/db"},
            "cursor",
            "beforeMCPExecution",
        )
        self.assertEqual(event.mcp_server_cmd, "pg-mcp")
        self.assertEqual(event.mcp_server_name, "pg-mcp")

        event = normalize_event({"tool_name": "browser_click"}, "cursor", "beforeMCPExecution")
        self.assertEqual(event.mcp_server_name, "cursor-browser")

    def test_claude_and_gemini_double_underscore(self) -> None:
        for tool, native in (("claude", "PostToolUse"), ("gemini", "AfterTool")):
            with self.subTest(tool=tool):
                event = normalize_event({"tool_name": "mcp__github__list_prs"}, tool, native)
                self.assertEqual(event.mcp_server_name, "github")
                self.assertEqual(event.mcp_tool_name, "list_prs")

    def test_cursor_mcp_prefix_on_generic_tool_hook(self) -> None:
        event = normalize_event({"tool_name": "MCP:navigate_page"}, "cursor", "postToolUse")
        self.assertEqual(event.mcp_tool_name, "navigate_page")
        self.assertEqual(event.mcp_server_name, "chrome-devtools")

    def test_windsurf_tool_info(self) -> None:
        raw = {"tool_info": {"mcp_server_name": "linear", "mcp_tool_name": "create_issue"}}
        event = normalize_event(raw, "windsurf", "post_mcp_tool_use")
        self.assertEqual(event.mcp_server_name, "linear")
        self.assertEqual(event.mcp_tool_name, "create_issue")

    def test_non_mcp_events_have_no_mcp_fields(self) -> None:
        event = normalize_event({"tool_name": "Read"}, "claude", "PostToolUse")
        self.assertFalse(event.is_mcp)
        event = normalize_event(
            {"tool_info": {"mcp_server_name": "linear"}}, "windsurf", "post_run_command"
        )
        self.assertFalse(event.is_mcp)

    def test_generic_tool_keeps_tool_name_only(self) -> None:
        fields = {"tool_name": "fetch"}
        mcp.extract_generic_mcp(fields, {})
        self.assertEqual(fields, {"tool_name": "fetch", "mcp_tool_name": "fetch"})

    def test_copilot_pseudo_server(self) -> None:
        fields = {"tool_name": "github-search"}
        mcp.extract_copilot_mcp(fields, {})
        self.assertEqual(fields["mcp_server_name"], mcp.COPILOT_PSEUDO_SERVER)
        self.assertEqual(fields["mcp_tool_name"], "github-search")


if __name__ == "__main__":
    unittest.main()
