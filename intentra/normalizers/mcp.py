"""MCP (Model Context Protocol) metadata extraction.

Each tool exposes MCP calls differently:
- Cursor: dedicated before/after MCP hooks carrying a server `url` or `command`.
- Claude Code, Gemini CLI: tool names shaped `mcp__<server>__<tool>`.
- Windsurf: `tool_info.mcp_server_name` / `tool_info.mcp_tool_name`.
- Copilot: no server identity at all; a pseudo-server is assigned.
"""
from __future__ import annotations

import hashlib
from pathlib import PurePath
from typing import Any, Callable
from urllib.parse import urlsplit, urlunsplit

from intentra.normalizers.types import UnifiedEventType

MCPExtractor = Callable[[dict[str, Any], dict[str, Any]], None]

COPILOT_PSEUDO_SERVER = "copilot-mcp"
DEFAULT_SERVER = "mcp"

_MCP_HOOK_TYPES = {UnifiedEventType.BEFORE_MCP, UnifiedEventType.AFTER_MCP}

_BROWSER_TOOLS = (
    "browser_click",
    "browser_close",
    "browser_console_messages",
    "browser_fill",
    "browser_fill_form",
    "browser_get_attribute",
    "browser_get_bounding_box",
    "browser_get_input_value",
    "browser_handle_dialog",
    "browser_highlight",
    "browser_hover",
    "browser_is_checked",
    "browser_is_enabled",
    "browser_is_visible",
    "browser_lock",
    "browser_navigate",
    "browser_navigate_back",
    "browser_navigate_forward",
    "browser_network_requests",
    "browser_press_key",
    "browser_reload",
    "browser_resize",
    "browser_run_code",
    "browser_scroll",
    "browser_search",
    "browser_select_option",
    "browser_snapshot",
    "browser_tabs",
    "browser_take_screenshot",
    "browser_type",
    "browser_unlock",
    "browser_wait_for",
)
_DEVTOOLS_TOOLS = (
    "navigate_page",
    "evaluate_script",
    "list_pages",
    "new_page",
    "take_snapshot",
    "take_screenshot",
    "navigate",
    "select_page",
    "close_page",
    "click",
    "hover",
    "fill",
    "fill_form",
    "drag",
    "press_key",
    "upload_file",
    "wait_for",
    "handle_dialog",
    "emulate",
    "resize_page",
)
_SENTRY_TOOLS = (
    "search_issues",
    "get_issue_details",
    "find_organizations",
    "find_projects",
    "find_releases",
    "search_events",
    "update_issue",
)
_POSTHOG_TOOLS = (
    "event-definitions-list",
    "organizations-get",
    "projects-get",
    "list_teams",
    "list_projects",
    "list-errors",
)

MCP_TOOL_TO_SERVER: dict[str, str] = {
    **{name: "cursor-browser" for name in _BROWSER_TOOLS},
    **{name: "chrome-devtools" for name in _DEVTOOLS_TOOLS},
    **{name: "sentry" for name in _SENTRY_TOOLS},
    **{name: "posthog" for name in _POSTHOG_TOOLS},
}


def sanitize_server_url(raw_url: str) -> str:
    """Keep scheme, host and path only; query strings often carry API keys."""
    if not raw_url:
        return ""
    try:
        parts = urlsplit(raw_url)
    except ValueError:
        return raw_url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def sanitize_server_cmd(cmd: str) -> str:
    """Reduce a server launch command to its binary name."""
    fields = (cmd or "").split()
    if not fields:
        return ""
    return PurePath(fields[0]).name or fields[0]


def parse_double_underscore_name(tool_name: str) -> tuple[str, str] | None:
    """Split `mcp__<server>__<tool>` on the first two delimiters only."""
    if not tool_name.startswith("mcp__"):
        return None
    rest = tool_name[len("mcp__"):]
    server, sep, tool = rest.partition("__")
    if not sep:
        return rest, ""
    return server, tool


def server_url_hash(server_url: str, server_cmd: str) -> str:
    """Short hash of the sanitized endpoint, used as a dedup key."""
    if not server_url and not server_cmd:
        return ""
    digest = hashlib.sha256(f"{server_url}|{server_cmd}".encode("utf-8")).hexdigest()
    return digest[:8]


def infer_server_name(tool_name: str) -> str:
    if tool_name in MCP_TOOL_TO_SERVER:
        return MCP_TOOL_TO_SERVER[tool_name]
    if tool_name.startswith("browser_"):
        return "cursor-browser"
    if "__" in tool_name:
        return tool_name.split("__", 1)[0]
    return DEFAULT_SERVER


def host_label(raw_url: str) -> str:
    """Second-level label of the URL host (`api.sentry.io` -> `sentry`)."""
    if not raw_url:
        return ""
    try:
        host = urlsplit(raw_url).hostname or ""
    except ValueError:
        return ""
    labels = host.split(".")
    if len(labels) >= 2:
        return labels[-2]
    return host


def _str(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    return value if isinstance(value, str) else ""


# ── Per-tool extractors ────────────────────────────────────────────


def extract_cursor_mcp(fields: dict[str, Any], raw: dict[str, Any]) -> None:
    if tool_name := _str(raw, "tool_name"):
        fields["mcp_tool_name"] = tool_name

    if url := _str(raw, "url"):
        fields["mcp_server_url"] = sanitize_server_url(url)
    if not fields.get("mcp_server_url") and (command := _str(raw, "command")):
        fields["mcp_server_cmd"] = sanitize_server_cmd(command)

    if not fields.get("mcp_server_name"):
        if fields.get("mcp_server_url"):
            fields["mcp_server_name"] = host_label(fields["mcp_server_url"])
        elif fields.get("mcp_server_cmd"):
            fields["mcp_server_name"] = fields["mcp_server_cmd"]
        elif fields.get("mcp_tool_name"):
            fields["mcp_server_name"] = infer_server_name(fields["mcp_tool_name"])


def extract_windsurf_mcp(fields: dict[str, Any], raw: dict[str, Any]) -> None:
    tool_info = raw.get("tool_info")
    if not isinstance(tool_info, dict):
        return
    if server := _str(tool_info, "mcp_server_name"):
        fields["mcp_server_name"] = server
    if tool := _str(tool_info, "mcp_tool_name"):
        fields["mcp_tool_name"] = tool


def extract_double_underscore_mcp(fields: dict[str, Any], raw: dict[str, Any]) -> None:
    tool_name = fields.get("tool_name") or _str(raw, "tool_name")
    parsed = parse_double_underscore_name(tool_name)
    if parsed:
        fields["mcp_server_name"], fields["mcp_tool_name"] = parsed


def extract_copilot_mcp(fields: dict[str, Any], raw: dict[str, Any]) -> None:
    fields["mcp_server_name"] = COPILOT_PSEUDO_SERVER
    if fields.get("tool_name"):
        fields["mcp_tool_name"] = fields["tool_name"]


def extract_generic_mcp(fields: dict[str, Any], raw: dict[str, Any]) -> None:
    if fields.get("tool_name"):
        fields["mcp_tool_name"] = fields["tool_name"]


def apply_mcp_metadata(
    fields: dict[str, Any],
    raw: dict[str, Any],
    normalized_type: UnifiedEventType,
    extractor: MCPExtractor,
) -> None:
    """Populate MCP fields for MCP hooks or MCP-named tool uses."""
    tool_name = fields.get("tool_name", "")
    is_mcp_hook = normalized_type in _MCP_HOOK_TYPES
    is_mcp_tool_use = tool_name.startswith("MCP:") or tool_name.startswith("mcp__")
    if not is_mcp_hook and not is_mcp_tool_use:
        return

    if not is_mcp_hook:
        if tool_name.startswith("MCP:"):
            full_name = tool_name[len("MCP:"):]
            fields["mcp_tool_name"] = full_name
            fields["mcp_server_name"] = infer_server_name(full_name)
        else:
            parsed = parse_double_underscore_name(tool_name)
            if parsed:
                fields["mcp_server_name"], fields["mcp_tool_name"] = parsed
        return

    extractor(fields, raw)
