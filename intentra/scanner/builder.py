"""Fold a session's buffered events into one Scan."""
from __future__ import annotations

import hashlib
import logging
import math
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from intentra import config
from intentra.date_utils import format_rfc3339_nano
from intentra.models import BufferedEvent, Scan
from intentra.normalizers.types import UnifiedEventType, is_llm_call, is_tool_call
from intentra.scanner.files_modified import aggregate_files_modified
from intentra.scanner.git_metadata import GitMetadata, collect_git_metadata
from intentra.scanner.mcp_usage import aggregate_mcp_usage
from intentra.scanner.pricing import estimate_cost

logger = logging.getLogger("intentra.scanner")

GitCollector = Callable[[], GitMetadata]

# Tools whose terminal session_end event carries the end reason/duration.
_SESSION_END_IN_SCAN = frozenset({"gemini", "copilot"})


def make_scan_id(conversation_id: str, start_time: datetime) -> str:
    digest = hashlib.sha256(f"{conversation_id}{format_rfc3339_nano(start_time)}".encode("utf-8"))
    return "scan_" + digest.hexdigest()[:12]


def session_end_metadata(raw: dict[str, Any]) -> tuple[str, int]:
    """Return (reason, duration_ms) from a raw session_end payload."""
    reason = raw.get("reason")
    duration = raw.get("duration_ms")
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        duration = 0
    elif isinstance(duration, float) and not math.isfinite(duration):
        duration = 0
    return (reason if isinstance(reason, str) else ""), max(int(duration), 0)


def _first_non_empty(entries: Sequence[BufferedEvent], attr: str) -> str:
    for entry in entries:
        value = getattr(entry.event, attr)
        if value:
            return value
    return ""


def build_scan(
    entries: Sequence[BufferedEvent],
    tool: str,
    git_collector: Optional[GitCollector] = None,
    max_pre_compact: Optional[int] = None,
) -> Scan | None:
    """Aggregate buffered entries (in arrival order) into a Scan.

    Totals, call counts, MCP usage and file stats cover every entry; pre_compact
    entries past the cap are only dropped from the stored event lists.
    """
    if not entries:
        return None

    cap = config.MAX_PRE_COMPACT_EVENTS if max_pre_compact is None else max_pre_compact
    first = entries[0].event
    last = entries[-1].event
    conversation_id = first.conversation_id or first.session_id

    scan = Scan(
        scan_id=make_scan_id(conversation_id, first.timestamp),
        device_id=first.device_id,
        tool=tool,
        conversation_id=conversation_id,
        session_id=first.session_id,
        generation_id=_first_non_empty(entries, "generation_id"),
        model=_first_non_empty(entries, "model"),
        start_time=first.timestamp,
        end_time=last.timestamp,
    )

    pre_compact_seen = 0
    dropped = 0
    for entry in entries:
        event = entry.event
        scan.input_tokens += event.input_tokens
        scan.output_tokens += event.output_tokens
        scan.thinking_tokens += event.thinking_tokens
        if is_llm_call(event.normalized_type):
            scan.llm_calls += 1
        if is_tool_call(event.normalized_type):
            scan.tool_calls += 1

        if event.normalized_type == UnifiedEventType.PRE_COMPACT:
            pre_compact_seen += 1
            if pre_compact_seen > cap:
                dropped += 1
                continue

        scan.events.append(event)
        scan.raw_events.append({**entry.raw_event, "normalized_type": event.normalized_type.value})

    if dropped:
        logger.debug("Dropped %d pre_compact event(s) beyond the first %d", dropped, cap)

    scan.total_tokens = scan.input_tokens + scan.output_tokens + scan.thinking_tokens
    scan.estimated_cost = estimate_cost(scan.total_tokens, scan.model, tool)

    all_events = [entry.event for entry in entries]
    scan.mcp_tool_usage = aggregate_mcp_usage(all_events, scan.estimated_cost)
    scan.files_modified = aggregate_files_modified(all_events)

    git = (git_collector or collect_git_metadata)()
    scan.repo_name = git.repo_name
    scan.repo_url_hash = git.repo_url_hash
    scan.branch_name = git.branch_name

    if tool in _SESSION_END_IN_SCAN:
        for entry in reversed(entries):
            if entry.event.normalized_type == UnifiedEventType.SESSION_END:
                scan.session_end_reason, scan.session_duration_ms = session_end_metadata(entry.raw_event)
                break

    logger.debug(
        "Built %s for %s: %d events, %d tokens, %d llm calls, $%.4f",
        scan.scan_id,
        tool,
        len(scan.events),
        scan.total_tokens,
        scan.llm_calls,
        scan.estimated_cost,
    )
    return scan
