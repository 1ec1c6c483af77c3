"""Claude Code hook events (PascalCase names)."""
from __future__ import annotations

from intentra.normalizers.mcp import extract_double_underscore_mcp
from intentra.normalizers.types import UnifiedEventType as T

TOOL = "claude"

EVENT_MAP: dict[str, T] = {
    "SessionStart": T.SESSION_START,
    "Setup": T.SESSION_START,
    "SessionEnd": T.SESSION_END,
    "UserPromptSubmit": T.BEFORE_PROMPT,
    "SubagentStart": T.BEFORE_PROMPT,
    "PreToolUse": T.BEFORE_TOOL,
    "PostToolUse": T.AFTER_TOOL,
    "PostToolUseFailure": T.AFTER_TOOL,
    "PermissionRequest": T.PERMISSION_REQUEST,
    "Notification": T.NOTIFICATION,
    "Stop": T.STOP,
    "SubagentStop": T.SUBAGENT_STOP,
    "PreCompact": T.PRE_COMPACT,
}

extract_mcp = extract_double_underscore_mcp
