"""Structural field extraction from raw hook payloads."""
from __future__ import annotations

import logging
import math
from typing import Any

from intentra.models import Event
from intentra.normalizers.decoder import loads
from intentra.normalizers.mcp import MCPExtractor, apply_mcp_metadata
from intentra.normalizers.types import UnifiedEventType

logger = logging.getLogger("intentra.normalizer")

_COMPACTION_TRIGGERS = {"auto", "manual"}


def _str(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    return value if isinstance(value, str) else None


def _number(raw: dict[str, Any], key: str) -> int | None:
    value = raw.get(key)
    # bool is an int subclass; JSON true/false is never a count.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def _first(raw: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = _str(raw, key)
        if value:
            return value
    return ""


def _extract_tool_fields(fields: dict[str, Any], raw: dict[str, Any]) -> None:
    fields["tool_name"] = _first(raw, "tool_name", "toolName")

    tool_input = raw.get("tool_input")
    if isinstance(tool_input, dict):
        fields["tool_input"] = tool_input
        if (command := _str(tool_input, "command")) is not None:
            fields["command"] = command
        if (file_path := _str(tool_input, "file_path")) is not None:
            fields["file_path"] = file_path

    tool_args = _str(raw, "toolArgs")
    if tool_args is not None and "tool_input" not in fields:
        try:
            fields["tool_input"] = loads(tool_args)
        except (ValueError, RecursionError):
            fields["tool_input"] = tool_args

    tool_output = raw.get("tool_output")
    if isinstance(tool_output, (str, dict)):
        fields["tool_output"] = tool_output
    for key in ("tool_response", "toolResult"):
        if isinstance(raw.get(key), dict):
            fields["tool_output"] = raw[key]

    tool_info = raw.get("tool_info")
    if isinstance(tool_info, dict):
        if (file_path := _str(tool_info, "file_path")) is not None:
            fields["file_path"] = file_path
        if (command := _str(tool_info, "command_line")) is not None:
            fields["command"] = command
        if (prompt := _str(tool_info, "user_prompt")) is not None:
            fields["prompt"] = prompt
        if (response := _str(tool_info, "response")) is not None:
            fields["response"] = response
        fields.setdefault("tool_input", tool_info)


def _extract_text_fields(fields: dict[str, Any], raw: dict[str, Any]) -> None:
    if not fields.get("command") and (command := _str(raw, "command")):
        fields["command"] = command
    if (output := _str(raw, "output")) is not None:
        fields["command_output"] = output

    if (prompt := _str(raw, "prompt")) is not None:
        fields["prompt"] = prompt
    if not fields.get("prompt") and (initial := _str(raw, "initialPrompt")):
        fields["prompt"] = initial
    if (response := _str(raw, "response")) is not None:
        fields["response"] = response
    if (thought := _str(raw, "thought")) is not None:
        fields["thought"] = thought
    if not fields.get("response") and (text := _str(raw, "text")):
        fields["response"] = text

    if not fields.get("file_path"):
        fields["file_path"] = _first(raw, "file_path", "cwd")


def _extract_metrics(fields: dict[str, Any], raw: dict[str, Any]) -> None:
    for key in ("duration", "duration_ms"):
        if (value := _number(raw, key)) is not None:
            fields["duration_ms"] = max(value, 0)
    for key in ("input_tokens", "output_tokens", "thinking_tokens"):
        if (value := _number(raw, key)) is not None:
            fields[key] = max(value, 0)

    error = raw.get("error")
    if isinstance(error, dict):
        message = _str(error, "message")
        if message is not None:
            fields["error"] = message
            fields["response"] = f"Error: {message}"
    elif isinstance(error, str) and error:
        fields["error"] = error


def extract_compaction_metadata(
    fields: dict[str, Any],
    raw: dict[str, Any],
    normalized_type: UnifiedEventType,
) -> None:
    """Context-window metrics; Cursor sends all of them, others only the trigger."""
    if normalized_type != UnifiedEventType.PRE_COMPACT:
        return

    trigger = _str(raw, "trigger")
    if trigger in _COMPACTION_TRIGGERS:
        fields["compaction_trigger"] = trigger

    percent = _number(raw, "context_usage_percent")
    if percent is not None:
        fields["context_usage_percent"] = min(max(percent, 0), 100)

    for key in ("context_tokens", "context_window_size", "message_count", "messages_to_compact"):
        value = _number(raw, key)
        if value is not None and value >= 0:
            fields[key] = value

    first = raw.get("is_first_compaction")
    if isinstance(first, bool):
        fields["is_first_compaction"] = first


def extract_event(
    raw: dict[str, Any],
    tool: str,
    native_event: str,
    normalized_type: UnifiedEventType,
    mcp_extractor: MCPExtractor,
) -> Event:
    """Build a normalized Event from one raw hook payload."""
    fields: dict[str, Any] = {
        "tool": tool,
        "hook_type": native_event or _first(raw, "hook_event_name", "agent_action_name"),
        "normalized_type": normalized_type,
        "conversation_id": _first(raw, "conversation_id", "trajectory_id"),
        "session_id": _first(raw, "session_id", "sessionId"),
        "generation_id": _first(raw, "generation_id", "execution_id", "turn_id"),
        "model": _first(raw, "model"),
        "user_email": _first(raw, "user_email"),
    }

    _extract_tool_fields(fields, raw)
    _extract_text_fields(fields, raw)
    _extract_metrics(fields, raw)
    apply_mcp_metadata(fields, raw, normalized_type, mcp_extractor)
    extract_compaction_metadata(fields, raw, normalized_type)

    event = Event(**fields)
    logger.debug(
        "Normalized %s/%s -> %s (session=%s)",
        tool,
        native_event,
        normalized_type.value,
        event.conversation_id or event.session_id or "-",
    )
    return event
