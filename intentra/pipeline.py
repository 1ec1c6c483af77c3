"""One hook invocation: decode, normalize, buffer, and on termination scan and deliver."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Callable, Optional

from intentra import observability, session_store
from intentra.config import AgentConfig
from intentra.delivery.coordinator import DeliveryCoordinator, DeliveryOutcome
from intentra.device import get_device_id
from intentra.normalizers.decoder import decode_raw_event, read_first_line
from intentra.normalizers.registry import normalize_event
from intentra.scanner.builder import GitCollector, build_scan
from intentra.termination import is_session_end_metadata, is_terminal

logger = logging.getLogger("intentra.pipeline")


class Outcome(str, Enum):
    NO_INPUT = "no_input"
    BUFFERED = "buffered"
    EMPTY_SESSION = "empty_session"
    SCANNED = "scanned"
    SESSION_END = "session_end"


@dataclass
class PipelineResult:
    outcome: Outcome
    session_key: str = ""
    tool: str = ""
    delivery: Optional[DeliveryOutcome] = None


def process_event(
    stream: IO[str],
    tool: str,
    native_event: str,
    cfg: AgentConfig,
    *,
    coordinator: Optional[DeliveryCoordinator] = None,
    device_id_provider: Callable[[], str] = get_device_id,
    git_collector: Optional[GitCollector] = None,
    state_dir: Optional[Path] = None,
) -> PipelineResult:
    """Handle one hook event read from `stream`.

    Raises SessionBufferError when the session buffer cannot be written or
    read; every other failure is absorbed.
    """
    session_store.sweep_stale_files(state_dir)

    raw = decode_raw_event(read_first_line(stream))
    if raw is None:
        return PipelineResult(Outcome.NO_INPUT, tool=tool)

    event = normalize_event(raw, tool, native_event)
    if not event.device_id:
        event = event.model_copy(update={"device_id": device_id_provider()})

    session_key, scan_tool = session_store.resolve_session_key(event, tool, state_dir)
    normalized_type = event.normalized_type

    if is_terminal(normalized_type, scan_tool):
        with observability.start_span("intentra.scan", {"tool": scan_tool, "event": native_event}):
            session_store.append_event(session_key, event, raw, state_dir)
            entries = session_store.read_and_clear(session_key, state_dir)
            scan = build_scan(entries, scan_tool, git_collector=git_collector)
            if scan is None:
                return PipelineResult(Outcome.EMPTY_SESSION, session_key, scan_tool)

            observability.record_scan(
                tool=scan_tool,
                model=scan.model,
                event_count=len(scan.events),
                total_tokens=scan.total_tokens,
                cost_usd=scan.estimated_cost,
            )
            coordinator = coordinator or DeliveryCoordinator(cfg, event.device_id, state_dir=state_dir)
            delivery = coordinator.deliver(scan, session_key)
        return PipelineResult(Outcome.SCANNED, session_key, scan_tool, delivery)

    if is_session_end_metadata(normalized_type, scan_tool):
        coordinator = coordinator or DeliveryCoordinator(cfg, event.device_id, state_dir=state_dir)
        coordinator.apply_session_end(session_key, raw)
        return PipelineResult(Outcome.SESSION_END, session_key, scan_tool)

    session_store.append_event(session_key, event, raw, state_dir)
    return PipelineResult(Outcome.BUFFERED, session_key, scan_tool)
