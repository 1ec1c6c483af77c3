"""Cursor hook events (camelCase names, dedicated MCP hooks)."""
from __future__ import annotations

from intentra.normalizers.mcp import extract_cursor_mcp
from intentra.normalizers.types import UnifiedEventType as T

TOOL = "cursor"

EVENT_MAP: dict[str, T] = {
    "sessionStart": T.SESSION_START,
    "sessionEnd": T.SESSION_END,
    "beforeSubmitPrompt": T.BEFORE_PROMPT,
    "afterAgentResponse": T.AFTER_RESPONSE,
    "afterAgentThought": T.AGENT_THOUGHT,
    "beforeShellExecution": T.BEFORE_SHELL,
    "afterShellExecution": T.AFTER_SHELL,
    "beforeMCPExecution": T.BEFORE_MCP,
    "afterMCPExecution": T.AFTER_MCP,
    "beforeTabFileRead": T.BEFORE_FILE_READ,
    "afterFileEdit": T.AFTER_FILE_EDIT,
    "afterTabFileEdit": T.AFTER_FILE_EDIT,
    "preToolUse": T.BEFORE_TOOL,
    "postToolUse": T.AFTER_TOOL,
    "preCompact": T.PRE_COMPACT,
    "stop": T.STOP,
}

extract_mcp = extract_cursor_mcp
