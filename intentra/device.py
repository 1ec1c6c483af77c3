"""Stable, non-reversible device identifier."""
from __future__ import annotations

import getpass
import hashlib
import hmac
import logging
import socket
import subprocess
import sys
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger("intentra.device")

DEVICE_ID_SALT = b"intentra-device-v1"
DEVICE_ID_LENGTH = 32
_COMMAND_TIMEOUT_SECONDS = 5

LINUX_MACHINE_ID_PATHS = (
    Path("/etc/machine-id"),
    Path("/var/lib/dbus/machine-id"),
)


def _run(args: list[str]) -> str:
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            check=False,
            timeout=_COMMAND_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("%s failed: %s", args[0], exc)
        return ""
    return result.stdout if result.returncode == 0 else ""


def _macos_hardware_uuid() -> str:
    for line in _run(["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"]).splitlines():
        if "IOPlatformUUID" in line and "=" in line:
            return line.split("=", 1)[1].strip().strip('"')
    return ""


def _windows_machine_guid() -> str:
    output = _run(["reg", "query", r"HKLM\SOFTWARE\Microsoft\Cryptography", "/v", "MachineGuid"])
    for line in output.splitlines():
        if "MachineGuid" in line:
            fields = line.split()
            if len(fields) >= 3:
                return fields[-1]
    return ""


def _linux_machine_id() -> str:
    for path in LINUX_MACHINE_ID_PATHS:
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if value:
            return value
    return ""


def _fallback_id() -> str:
    try:
        hostname = socket.gethostname() or "unknown"
    except OSError:
        hostname = "unknown"
    try:
        username = getpass.getuser() or "unknown"
    except (KeyError, OSError):
        username = "unknown"
    return f"{hostname}:{username}"


def hardware_id() -> str:
    if sys.platform == "darwin":
        value = _macos_hardware_uuid()
    elif sys.platform.startswith("win"):
        value = _windows_machine_guid()
    elif sys.platform.startswith("linux"):
        value = _linux_machine_id()
    else:
        value = ""
    return value or _fallback_id()


def derive_device_id(hardware: str) -> str:
    digest = hmac.new(DEVICE_ID_SALT, hardware.encode("utf-8"), hashlib.sha256).hexdigest()
    return digest[:DEVICE_ID_LENGTH]


@lru_cache(maxsize=1)
def get_device_id() -> str:
    """HMAC of the machine's hardware id, cached for the process lifetime."""
    return derive_device_id(hardware_id())
