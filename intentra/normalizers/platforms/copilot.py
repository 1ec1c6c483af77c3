"""GitHub Copilot agent hook events."""
from __future__ import annotations

from intentra.normalizers.mcp import extract_copilot_mcp
from intentra.normalizers.types import UnifiedEventType as T

TOOL = "copilot"

EVENT_MAP: dict[str, T] = {
    "sessionStart": T.SESSION_START,
    "sessionEnd": T.SESSION_END,
    "userPromptSubmitted": T.BEFORE_PROMPT,
    "preToolUse": T.BEFORE_TOOL,
    "postToolUse": T.AFTER_TOOL,
    "errorOccurred": T.ERROR,
}

extract_mcp = extract_copilot_mcp
