"""Logging configuration for hook invocations.

Hooks run inside the host tool's event loop and their stdout may be parsed by
the tool, so all log output goes to stderr. Outside debug mode only errors
are shown; telemetry warnings stay silent.
"""
from __future__ import annotations

import logging
import sys

LOGGER_NAME = "intentra"
_FORMAT = "[%(levelname)s] %(asctime)s %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.ERROR)
    if not any(getattr(h, "_intentra_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._intentra_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.propagate = False
    return logger
