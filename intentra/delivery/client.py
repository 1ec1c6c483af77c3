"""HTTP clients for scan delivery."""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional
from urllib.parse import quote

import requests

from intentra import config
from intentra.config import ServerConfig
from intentra.delivery.credentials import Credentials
from intentra.delivery.signing import api_key_headers
from intentra.errors import DeliveryError
from intentra.models import Scan

logger = logging.getLogger("intentra.delivery")

SCAN_ACCEPTED = frozenset({200, 201, 202})
SESSION_PATCH_ACCEPTED = frozenset({200, 204})
_MAX_ERROR_BODY = 512


def _error_body(response: requests.Response) -> str:
    try:
        return response.text[:_MAX_ERROR_BODY]
    except (UnicodeDecodeError, requests.RequestException):
        return ""


def _send(
    session: requests.Session,
    method: str,
    url: str,
    body: dict[str, Any],
    headers: dict[str, str],
    timeout: float,
    accepted: frozenset[int],
) -> requests.Response:
    started = time.monotonic()
    try:
        response = session.request(
            method,
            url,
            data=json.dumps(body),
            headers=headers,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        logger.debug("HTTP %s %s -> failed after %.0fms", method, url, (time.monotonic() - started) * 1000)
        raise DeliveryError(f"{method} {url} failed: {exc}") from exc
    logger.debug(
        "HTTP %s %s -> %s (%.0fms)",
        method,
        url,
        response.status_code,
        (time.monotonic() - started) * 1000,
    )
    if response.status_code not in accepted:
        raise DeliveryError(
            f"{method} {url} returned {response.status_code}: {_error_body(response)}",
            status_code=response.status_code,
        )
    return response


class IntentraClient:
    """Bearer-token client for the primary Intentra endpoint."""

    def __init__(
        self,
        device_id: str,
        endpoint: Optional[str] = None,
        session: Optional[requests.Session] = None,
        scan_timeout: Optional[float] = None,
        patch_timeout: Optional[float] = None,
    ):
        self.device_id = device_id
        self.endpoint = (endpoint or config.API_ENDPOINT).rstrip("/")
        self.session = session or requests.Session()
        self.scan_timeout = scan_timeout or config.SCAN_TIMEOUT_SECONDS
        self.patch_timeout = patch_timeout or config.PATCH_TIMEOUT_SECONDS

    def _headers(self, credentials: Credentials) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": config.USER_AGENT,
            "Authorization": f"Bearer {credentials.access_token}",
            "X-Machine-ID": self.device_id,
        }

    def post_scan(self, scan: Scan, credentials: Credentials) -> None:
        url = f"{self.endpoint}/scans"
        _send(
            self.session,
            "POST",
            url,
            scan.build_api_payload(self.device_id),
            self._headers(credentials),
            self.scan_timeout,
            SCAN_ACCEPTED,
        )

    def patch_session_end(
        self,
        scan_id: str,
        credentials: Credentials,
        reason: str = "",
        duration_ms: int = 0,
    ) -> bool:
        """PATCH end reason/duration onto a delivered scan.

        Returns False without a request when there is nothing to send.
        """
        body: dict[str, Any] = {}
        if reason:
            body["session_end_reason"] = reason
        if duration_ms > 0:
            body["session_duration_ms"] = duration_ms
        if not body:
            return False

        url = f"{self.endpoint}/scans/{quote(scan_id, safe='')}/session"
        _send(
            self.session,
            "PATCH",
            url,
            body,
            self._headers(credentials),
            self.patch_timeout,
            SESSION_PATCH_ACCEPTED,
        )
        return True


class ApiKeyClient:
    """Client for a locally configured server (`server.enabled` in config.yaml)."""

    def __init__(
        self,
        server: ServerConfig,
        device_id: str,
        session: Optional[requests.Session] = None,
    ):
        if not server.enabled:
            raise DeliveryError("server sync is not enabled")
        if not server.endpoint:
            raise DeliveryError("server sync requires an endpoint")
        self.server = server
        self.device_id = device_id
        self.session = session or requests.Session()

    def _auth_headers(self, method: str, url: str, credentials: Optional[Credentials]) -> dict[str, str]:
        if credentials is not None:
            return {"Authorization": f"Bearer {credentials.access_token}"}
        if self.server.auth.mode == "api_key":
            return api_key_headers(self.server.auth.api_key, method, url)
        raise DeliveryError("not authenticated: log in or configure api_key auth in config.yaml")

    def send_scan(self, scan: Scan, credentials: Optional[Credentials] = None) -> None:
        url = f"{self.server.endpoint}/scans"
        headers = {
            "Content-Type": "application/json",
            "User-Agent": config.USER_AGENT,
            **self._auth_headers("POST", url, credentials),
        }
        _send(
            self.session,
            "POST",
            url,
            scan.build_api_payload(self.device_id),
            headers,
            self.server.timeout,
            SCAN_ACCEPTED,
        )
