"""Per-server MCP usage and cost attribution."""
from __future__ import annotations

from typing import Iterable

from intentra.models import Event, MCPToolCall
from intentra.normalizers.mcp import server_url_hash


def aggregate_mcp_usage(events: Iterable[Event], total_cost: float) -> list[MCPToolCall]:
    """Group MCP events by (server, tool, endpoint hash).

    Each key is charged the share of `total_cost` matching its share of the
    summed duration of all events; without duration data costs stay 0.
    """
    usage: dict[tuple[str, str, str], MCPToolCall] = {}
    total_duration = 0

    for event in events:
        total_duration += event.duration_ms
        if not event.is_mcp:
            continue

        url_hash = server_url_hash(event.mcp_server_url, event.mcp_server_cmd)
        key = (event.mcp_server_name, event.mcp_tool_name, url_hash)
        call = usage.get(key)
        if call is None:
            call = MCPToolCall(
                server_name=event.mcp_server_name,
                tool_name=event.mcp_tool_name,
                server_url_hash=url_hash,
            )
            usage[key] = call

        call.call_count += 1
        call.total_duration_ms += event.duration_ms
        if event.error:
            call.error_count += 1

    if total_duration > 0 and total_cost > 0:
        for call in usage.values():
            call.estimated_cost = total_cost * call.total_duration_ms / total_duration

    return list(usage.values())
