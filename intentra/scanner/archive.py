"""Local scan persistence used in debug mode."""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

from intentra import config
from intentra.errors import InvalidScanIdError
from intentra.models import Scan

MAX_SCAN_ID_LENGTH = 128
_SCAN_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_scan_id(scan_id: str) -> None:
    """Reject ids that could escape the scans directory."""
    if not scan_id:
        raise InvalidScanIdError("scan id is empty")
    if len(scan_id) > MAX_SCAN_ID_LENGTH:
        raise InvalidScanIdError(f"scan id exceeds {MAX_SCAN_ID_LENGTH} characters")
    if not _SCAN_ID_PATTERN.match(scan_id):
        raise InvalidScanIdError(
            "scan id may only contain letters, digits, underscores and hyphens"
        )


def save_scan(scan: Scan, scans_dir: Optional[Path] = None) -> Path:
    validate_scan_id(scan.scan_id)
    target_dir = scans_dir or config.get_scans_dir()
    target_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    path = target_dir / f"{scan.scan_id}.json"
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(scan.model_dump_json(indent=2))
    return path


def load_scan(scan_id: str, scans_dir: Optional[Path] = None) -> Scan:
    validate_scan_id(scan_id)
    path = (scans_dir or config.get_scans_dir()) / f"{scan_id}.json"
    return Scan.model_validate_json(path.read_text(encoding="utf-8"))
