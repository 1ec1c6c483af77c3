"""Pydantic models for normalized hook events and aggregated scans."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from intentra.date_utils import duration_ms, format_rfc3339_nano, utc_now
from intentra.normalizers.types import UnifiedEventType

# ── Event models ───────────────────────────────────────────────────


class Event(BaseModel):
    """One normalized hook event. Immutable once buffered."""

    model_config = ConfigDict(frozen=True)

    tool: str = ""
    hook_type: str = ""  # native event name, as sent by the tool
    normalized_type: UnifiedEventType = UnifiedEventType.UNKNOWN
    timestamp: datetime = Field(default_factory=utc_now)
    conversation_id: str = ""
    session_id: str = ""
    generation_id: str = ""
    model: str = ""
    user_email: str = ""
    device_id: str = ""

    prompt: str = ""
    response: str = ""
    thought: str = ""
    tool_name: str = ""
    tool_input: Any = None
    tool_output: Any = None
    file_path: str = ""
    command: str = ""
    command_output: str = ""

    mcp_server_name: str = ""
    mcp_tool_name: str = ""
    mcp_server_url: str = ""
    mcp_server_cmd: str = ""

    input_tokens: int = 0
    output_tokens: int = 0
    thinking_tokens: int = 0
    duration_ms: int = 0

    context_usage_percent: int = 0
    context_tokens: int = 0
    context_window_size: int = 0
    message_count: int = 0
    messages_to_compact: int = 0
    is_first_compaction: Optional[bool] = None
    compaction_trigger: str = ""

    error: str = ""

    @property
    def is_mcp(self) -> bool:
        return bool(self.mcp_server_name or self.mcp_tool_name)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens + self.thinking_tokens

    def to_payload(self) -> dict[str, Any]:
        """Structured per-event record for the delivery payload."""
        payload: dict[str, Any] = {
            "hook_type": self.hook_type,
            "normalized_type": self.normalized_type.value,
            "timestamp": format_rfc3339_nano(self.timestamp),
            "tool_name": self.tool_name,
            "command": self.command,
            "command_output": self.command_output,
            "file_path": self.file_path,
            "prompt": self.prompt,
            "response": self.response,
            "thought": self.thought,
            "duration_ms": self.duration_ms,
            "conversation_id": self.conversation_id,
            "session_id": self.session_id,
            "tokens": {
                "input": self.input_tokens,
                "output": self.output_tokens,
                "thinking": self.thinking_tokens,
            },
        }
        if self.compaction_trigger:
            payload["compaction_trigger"] = self.compaction_trigger
        for key in (
            "context_usage_percent",
            "context_tokens",
            "context_window_size",
            "message_count",
            "messages_to_compact",
        ):
            value = getattr(self, key)
            if value > 0:
                payload[key] = value
        if self.is_first_compaction is not None:
            payload["is_first_compaction"] = self.is_first_compaction
        if isinstance(self.tool_input, dict):
            payload["tool_input"] = self.tool_input
        if self.tool_output is not None:
            payload["tool_output"] = self.tool_output
        return payload


class BufferedEvent(BaseModel):
    """One line of a session buffer file."""

    event: Event
    raw_event: dict[str, Any] = Field(default_factory=dict)


# ── Scan models ────────────────────────────────────────────────────


class MCPToolCall(BaseModel):
    server_name: str
    tool_name: str
    server_url_hash: str = ""
    call_count: int = 0
    total_duration_ms: int = 0
    estimated_cost: float = 0.0
    error_count: int = 0


class FileModification(BaseModel):
    file_path: str
    edit_count: int = 0
    lines_added: int = 0
    is_new_file: bool = False


class Scan(BaseModel):
    scan_id: str
    device_id: str = ""
    tool: str = ""
    conversation_id: str = ""
    session_id: str = ""
    generation_id: str = ""
    model: str = ""
    status: str = "pending"
    start_time: datetime
    end_time: datetime
    events: list[Event] = Field(default_factory=list)
    raw_events: list[dict[str, Any]] = Field(default_factory=list)

    total_tokens: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    thinking_tokens: int = 0
    llm_calls: int = 0
    tool_calls: int = 0
    estimated_cost: float = 0.0

    mcp_tool_usage: list[MCPToolCall] = Field(default_factory=list)

    session_end_reason: str = ""
    session_duration_ms: int = 0

    repo_name: str = ""
    repo_url_hash: str = ""
    branch_name: str = ""
    files_modified: list[FileModification] = Field(default_factory=list)

    @property
    def duration_ms(self) -> int:
        return duration_ms(self.start_time, self.end_time)

    def build_api_payload(self, device_id: str) -> dict[str, Any]:
        """Construct the JSON body POSTed to the scans endpoint."""
        if self.raw_events:
            events = self.raw_events
        else:
            events = [event.to_payload() for event in self.events]

        body: dict[str, Any] = {
            "tool": self.tool,
            "started_at": format_rfc3339_nano(self.start_time),
            "ended_at": format_rfc3339_nano(self.end_time),
            "duration_ms": self.duration_ms,
            "llm_call_count": self.llm_calls,
            "total_tokens": self.total_tokens,
            "estimated_cost": self.estimated_cost,
            "events": events,
            "device_id": device_id,
            "conversation_id": self.conversation_id,
            "session_id": self.session_id,
            "generation_id": self.generation_id,
            "model": self.model,
        }
        if self.mcp_tool_usage:
            body["mcp_tool_usage"] = [call.model_dump() for call in self.mcp_tool_usage]
        if self.session_end_reason:
            body["session_end_reason"] = self.session_end_reason
        if self.session_duration_ms > 0:
            body["session_duration_ms"] = self.session_duration_ms
        if self.repo_name:
            body["repo_name"] = self.repo_name
        if self.repo_url_hash:
            body["repo_url_hash"] = self.repo_url_hash
        if self.branch_name:
            body["branch_name"] = self.branch_name
        if self.files_modified:
            body["files_modified"] = [
                {**entry.model_dump(), "file_path": _home_relative(entry.file_path)}
                for entry in self.files_modified
            ]
        return body


def _home_relative(path: str) -> str:
    """Replace the home directory prefix with ~ so absolute paths are not uploaded."""
    if not path:
        return path
    try:
        home = str(Path.home())
    except RuntimeError:
        return path
    if home and path.startswith(home):
        return "~" + path[len(home):]
    return path
