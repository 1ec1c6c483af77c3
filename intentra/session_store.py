"""Filesystem-backed session buffers and last-delivered-scan records.

Every hook invocation is a separate process, so session state lives in the
temp directory, one JSONL buffer and one last-scan file per session key. File
names are derived from a hash of the key.
"""
from __future__ import annotations

import hashlib
import logging
import os
import time
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from intentra import config
from intentra.errors import SessionBufferError
from intentra.models import BufferedEvent, Event

logger = logging.getLogger("intentra.session")

BUFFER_PREFIX = "intentra_buffer_"
BUFFER_SUFFIX = ".jsonl"
LAST_SCAN_PREFIX = "intentra_lastscan_"
LAST_SCAN_SUFFIX = ".txt"

RETARGET_SOURCE_TOOL = "claude"
RETARGET_TARGET_TOOL = "cursor"


def _key_digest(session_key: str) -> str:
    return hashlib.sha256(session_key.encode("utf-8")).digest()[:8].hex()


def _dir(directory: Optional[Path]) -> Path:
    return directory if directory is not None else config.get_buffer_dir()


def buffer_path(session_key: str, directory: Optional[Path] = None) -> Path:
    return _dir(directory) / f"{BUFFER_PREFIX}{_key_digest(session_key)}{BUFFER_SUFFIX}"


def last_scan_path(session_key: str, directory: Optional[Path] = None) -> Path:
    return _dir(directory) / f"{LAST_SCAN_PREFIX}{_key_digest(session_key)}{LAST_SCAN_SUFFIX}"


# ── Session keys ───────────────────────────────────────────────────


def base_session_id(event: Event) -> str:
    return event.conversation_id or event.session_id or f"{event.device_id}_default"


def resolve_session_key(
    event: Event,
    tool: str,
    directory: Optional[Path] = None,
) -> tuple[str, str]:
    """Return (session_key, scan_tool) for an event.

    When both Claude Code and Cursor hooks fire for the same editor session,
    a claude event joins the open cursor buffer instead of starting its own.
    """
    base = base_session_id(event)
    session_key = f"{tool}_{base}"
    if tool == RETARGET_SOURCE_TOOL:
        cursor_key = f"{RETARGET_TARGET_TOOL}_{base}"
        if buffer_path(cursor_key, directory).exists():
            logger.debug("Claude event has an open Cursor session; buffering as cursor")
            return cursor_key, RETARGET_TARGET_TOOL
    return session_key, tool


# ── Buffers ────────────────────────────────────────────────────────


def append_event(
    session_key: str,
    event: Event,
    raw_event: dict[str, Any],
    directory: Optional[Path] = None,
) -> None:
    """Append one entry with a single O_APPEND write, safe for concurrent writers."""
    path = buffer_path(session_key, directory)
    line = BufferedEvent(event=event, raw_event=raw_event).model_dump_json() + "\n"
    try:
        fd = os.open(path, os.O_APPEND | os.O_CREAT | os.O_WRONLY, 0o600)
    except OSError as exc:
        raise SessionBufferError(f"failed to open buffer {path}: {exc}") from exc
    try:
        os.write(fd, line.encode("utf-8"))
    except OSError as exc:
        raise SessionBufferError(f"failed to write buffer {path}: {exc}") from exc
    finally:
        os.close(fd)


def read_and_clear(session_key: str, directory: Optional[Path] = None) -> list[BufferedEvent]:
    """Read every buffered entry for a session and delete the buffer.

    Not locked: two terminal events racing on one session may both read it.
    Unparseable lines are skipped.
    """
    path = buffer_path(session_key, directory)
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise SessionBufferError(f"failed to read buffer {path}: {exc}") from exc

    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Failed to remove buffer %s: %s", path, exc)

    entries: list[BufferedEvent] = []
    for line in data.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(BufferedEvent.model_validate_json(line))
        except ValidationError as exc:
            logger.debug("Skipping unreadable buffer line in %s: %s", path.name, exc.error_count())
    return entries


# ── Last delivered scan ────────────────────────────────────────────


def save_last_scan_id(session_key: str, scan_id: str, directory: Optional[Path] = None) -> None:
    path = last_scan_path(session_key, directory)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            os.write(fd, scan_id.encode("utf-8"))
        finally:
            os.close(fd)
    except OSError as exc:
        logger.warning("Failed to record last scan id for %s: %s", path.name, exc)


def get_last_scan_id(session_key: str, directory: Optional[Path] = None) -> str:
    try:
        return last_scan_path(session_key, directory).read_text(encoding="utf-8").strip()
    except OSError:
        return ""


def clear_last_scan_id(session_key: str, directory: Optional[Path] = None) -> None:
    path = last_scan_path(session_key, directory)
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Failed to clear last scan id for %s: %s", path.name, exc)


# ── Janitor ────────────────────────────────────────────────────────


def sweep_stale_files(
    directory: Optional[Path] = None,
    max_age_seconds: Optional[int] = None,
    now: Optional[float] = None,
) -> int:
    """Delete buffers and last-scan records untouched for longer than max age.

    Abandoned sessions are dropped without producing a scan.
    """
    root = _dir(directory)
    max_age = config.BUFFER_MAX_AGE_SECONDS if max_age_seconds is None else max_age_seconds
    cutoff = (time.time() if now is None else now) - max_age
    removed = 0
    patterns = (
        f"{BUFFER_PREFIX}*{BUFFER_SUFFIX}",
        f"{LAST_SCAN_PREFIX}*{LAST_SCAN_SUFFIX}",
    )
    for pattern in patterns:
        for path in root.glob(pattern):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except OSError:
                continue
    if removed:
        logger.debug("Removed %d stale session file(s) from %s", removed, root)
    return removed
