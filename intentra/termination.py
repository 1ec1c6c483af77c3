"""Per-tool session termination rules.

Each tool has exactly one terminal event type so a session produces one scan:
- windsurf has no stop hook; `after_response` is the best available proxy,
  so a session that continues past its last observed response never scans.
- copilot and gemini end on `session_end`.
- every other tool ends on `stop`.

Tools that end on `stop` may still send a later `session_end`; it carries
end reason/duration for the scan already delivered.
"""
from __future__ import annotations

from types import MappingProxyType

from intentra.normalizers.types import UnifiedEventType

DEFAULT_TERMINAL_TYPE = UnifiedEventType.STOP

TERMINAL_TYPES = MappingProxyType(
    {
        "windsurf": UnifiedEventType.AFTER_RESPONSE,
        "copilot": UnifiedEventType.SESSION_END,
        "gemini": UnifiedEventType.SESSION_END,
    }
)

# Tools whose session_end is never PATCHed onto an earlier scan.
_NO_LATE_SESSION_END = frozenset({"windsurf", "copilot"})


def terminal_type(tool: str) -> UnifiedEventType:
    return TERMINAL_TYPES.get(tool, DEFAULT_TERMINAL_TYPE)


def is_terminal(event_type: UnifiedEventType, tool: str) -> bool:
    return event_type == terminal_type(tool)


def is_session_end_metadata(event_type: UnifiedEventType, tool: str) -> bool:
    """True for a session_end that updates an already delivered scan."""
    if tool in _NO_LATE_SESSION_END or is_terminal(event_type, tool):
        return False
    return event_type == UnifiedEventType.SESSION_END
