"""Unified event types shared by every tool normalizer."""
from __future__ import annotations

from enum import Enum


class UnifiedEventType(str, Enum):
    SESSION_START = "session_start"
    SESSION_END = "session_end"

    BEFORE_PROMPT = "before_prompt"
    AFTER_RESPONSE = "after_response"
    AGENT_THOUGHT = "agent_thought"

    BEFORE_TOOL = "before_tool"
    AFTER_TOOL = "after_tool"

    BEFORE_FILE_READ = "before_file_read"
    AFTER_FILE_READ = "after_file_read"
    BEFORE_FILE_EDIT = "before_file_edit"
    AFTER_FILE_EDIT = "after_file_edit"

    BEFORE_SHELL = "before_shell"
    AFTER_SHELL = "after_shell"

    BEFORE_MCP = "before_mcp"
    AFTER_MCP = "after_mcp"

    BEFORE_MODEL = "before_model"
    AFTER_MODEL = "after_model"

    TOOL_SELECTION = "tool_selection"
    PERMISSION_REQUEST = "permission_request"
    NOTIFICATION = "notification"
    STOP = "stop"
    SUBAGENT_START = "subagent_start"
    SUBAGENT_STOP = "subagent_stop"
    PRE_COMPACT = "pre_compact"
    ERROR = "error"
    TOOL_USE_FAILURE = "tool_use_failure"
    WORKTREE_SETUP = "worktree_setup"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> UnifiedEventType:
        try:
            return cls(value or "")
        except ValueError:
            return cls.UNKNOWN


# Every "after" action involves the model making a decision.
LLM_CALL_TYPES = frozenset(
    {
        UnifiedEventType.AFTER_RESPONSE,
        UnifiedEventType.AFTER_TOOL,
        UnifiedEventType.AFTER_FILE_EDIT,
        UnifiedEventType.AFTER_FILE_READ,
        UnifiedEventType.AFTER_SHELL,
        UnifiedEventType.AFTER_MCP,
        UnifiedEventType.AFTER_MODEL,
        UnifiedEventType.AGENT_THOUGHT,
    }
)

# Subset of LLM calls that executed a tool, file, shell or MCP action.
TOOL_CALL_TYPES = frozenset(
    {
        UnifiedEventType.AFTER_TOOL,
        UnifiedEventType.AFTER_FILE_EDIT,
        UnifiedEventType.AFTER_FILE_READ,
        UnifiedEventType.AFTER_SHELL,
        UnifiedEventType.AFTER_MCP,
    }
)


def is_llm_call(event_type: UnifiedEventType) -> bool:
    return event_type in LLM_CALL_TYPES


def is_tool_call(event_type: UnifiedEventType) -> bool:
    return event_type in TOOL_CALL_TYPES
