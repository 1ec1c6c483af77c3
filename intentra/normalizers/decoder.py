"""Decode the single JSON line a hook receives on stdin."""
from __future__ import annotations

import json
import logging
import math
from typing import IO, Any

logger = logging.getLogger("intentra.decoder")


def read_first_line(stream: IO[str]) -> str:
    """Return the first line of the stream without its newline ('' if absent).

    Text streams backed by a byte buffer (stdin) are read from the buffer so
    invalid UTF-8 is replaced instead of raising.
    """
    binary = getattr(stream, "buffer", None)
    if binary is not None:
        return read_first_line_bytes(binary)
    line = stream.readline()
    return line.strip() if line else ""


def read_first_line_bytes(stream: IO[bytes]) -> str:
    """Binary variant of read_first_line; invalid UTF-8 becomes U+FFFD."""
    line = stream.readline()
    return line.decode("utf-8", errors="replace").strip() if line else ""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not valid JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text} overflows a float")
    return value


def loads(text: str) -> Any:
    """json.loads that rejects NaN, Infinity and literals overflowing a float."""
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


def decode_raw_event(line: str) -> dict[str, Any] | None:
    """Parse one input line into a field map.

    Returns None for blank, malformed, or non-object input; a hook must never
    surface a parse error to the host tool.
    """
    if not line or not line.strip():
        return None
    try:
        parsed = loads(line)
    except (ValueError, RecursionError) as exc:
        logger.debug("Dropping malformed hook input: %s", exc)
        return None
    if not isinstance(parsed, dict):
        logger.debug("Dropping non-object hook input (%s)", type(parsed).__name__)
        return None
    return parsed
