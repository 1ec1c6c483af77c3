"""Gemini CLI hook events."""
from __future__ import annotations

from intentra.normalizers.mcp import extract_double_underscore_mcp
from intentra.normalizers.types import UnifiedEventType as T

TOOL = "gemini"

EVENT_MAP: dict[str, T] = {
    "SessionStart": T.SESSION_START,
    "SessionEnd": T.SESSION_END,
    "BeforeAgent": T.BEFORE_PROMPT,
    "AfterAgent": T.AFTER_RESPONSE,
    "BeforeModel": T.BEFORE_MODEL,
    "AfterModel": T.AFTER_MODEL,
    "BeforeToolSelection": T.TOOL_SELECTION,
    "BeforeTool": T.BEFORE_TOOL,
    "AfterTool": T.AFTER_TOOL,
    "PreCompress": T.PRE_COMPACT,
    "Notification": T.NOTIFICATION,
}

extract_mcp = extract_double_underscore_mcp
