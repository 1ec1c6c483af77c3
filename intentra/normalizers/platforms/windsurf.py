"""Windsurf Cascade hook events.

Windsurf has no stop hook; `post_cascade_response` doubles as the end of a turn.
"""
from __future__ import annotations

from intentra.normalizers.mcp import extract_windsurf_mcp
from intentra.normalizers.types import UnifiedEventType as T

TOOL = "windsurf"

EVENT_MAP: dict[str, T] = {
    "pre_user_prompt": T.BEFORE_PROMPT,
    "post_cascade_response": T.AFTER_RESPONSE,
    "pre_read_code": T.BEFORE_FILE_READ,
    "post_read_code": T.AFTER_FILE_READ,
    "pre_write_code": T.BEFORE_FILE_EDIT,
    "post_write_code": T.AFTER_FILE_EDIT,
    "pre_run_command": T.BEFORE_SHELL,
    "post_run_command": T.AFTER_SHELL,
    "pre_mcp_tool_use": T.BEFORE_MCP,
    "post_mcp_tool_use": T.AFTER_MCP,
    "post_setup_worktree": T.WORKTREE_SETUP,
}

extract_mcp = extract_windsurf_mcp
