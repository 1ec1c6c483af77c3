"""Deliver built scans and correlate late session-end metadata.

Delivery paths, in order:
1. Valid login credential: POST to the primary endpoint with a bearer token.
   Success records the scan id as the session's last delivered scan.
2. Otherwise, when `server.enabled`: POST through the configured client.

Failures are logged and never raised; the host tool must not notice.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from intentra import observability, session_store
from intentra.config import AgentConfig, ServerConfig
from intentra.delivery.client import ApiKeyClient, IntentraClient
from intentra.delivery.credentials import CredentialProvider, Credentials, EnvCredentialProvider
from intentra.errors import DeliveryError, IntentraError
from intentra.models import Scan
from intentra.scanner import archive
from intentra.scanner.builder import session_end_metadata

logger = logging.getLogger("intentra.delivery")

PATH_PRIMARY = "primary"
PATH_CONFIGURED = "configured"

ConfiguredClientFactory = Callable[[ServerConfig, str], ApiKeyClient]


@dataclass
class DeliveryOutcome:
    scan_id: str
    path: Optional[str] = None
    recorded_for_patch: bool = False
    saved_to: Optional[Path] = None

    @property
    def delivered(self) -> bool:
        return self.path is not None


class DeliveryCoordinator:
    def __init__(
        self,
        cfg: AgentConfig,
        device_id: str,
        credentials: Optional[CredentialProvider] = None,
        primary_client: Optional[IntentraClient] = None,
        configured_client_factory: Optional[ConfiguredClientFactory] = None,
        state_dir: Optional[Path] = None,
        scans_dir: Optional[Path] = None,
    ):
        self.cfg = cfg
        self.device_id = device_id
        self.credentials = credentials or EnvCredentialProvider()
        self.primary_client = primary_client or IntentraClient(device_id)
        self.configured_client_factory = configured_client_factory or ApiKeyClient
        self.state_dir = state_dir
        self.scans_dir = scans_dir

    def _current_credentials(self) -> Optional[Credentials]:
        try:
            creds = self.credentials.get_valid_credentials()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Credential check failed: %s", exc)
            return None
        if creds is None or not creds.is_valid():
            return None
        return creds

    def _deliver_primary(self, scan: Scan, creds: Credentials) -> bool:
        started = time.monotonic()
        try:
            with observability.start_span("intentra.deliver.primary", {"scan_id": scan.scan_id}):
                self.primary_client.post_scan(scan, creds)
        except DeliveryError as exc:
            logger.warning("Failed to sync %s to %s: %s", scan.scan_id, self.primary_client.endpoint, exc)
            observability.record_delivery("scan", PATH_PRIMARY, "error", (time.monotonic() - started) * 1000)
            return False
        logger.debug("Synced %s to %s", scan.scan_id, self.primary_client.endpoint)
        observability.record_delivery("scan", PATH_PRIMARY, "ok", (time.monotonic() - started) * 1000)
        return True

    def _deliver_configured(self, scan: Scan, creds: Optional[Credentials]) -> bool:
        started = time.monotonic()
        try:
            client = self.configured_client_factory(self.cfg.server, self.device_id)
            logger.debug("Syncing %s to %s (config auth)", scan.scan_id, self.cfg.server.endpoint)
            with observability.start_span("intentra.deliver.configured", {"scan_id": scan.scan_id}):
                client.send_scan(scan, creds)
        except DeliveryError as exc:
            logger.warning("Sync to %s failed: %s", self.cfg.server.endpoint, exc)
            observability.record_delivery("scan", PATH_CONFIGURED, "error", (time.monotonic() - started) * 1000)
            return False
        observability.record_delivery("scan", PATH_CONFIGURED, "ok", (time.monotonic() - started) * 1000)
        return True

    def deliver(self, scan: Scan, session_key: str) -> DeliveryOutcome:
        outcome = DeliveryOutcome(scan_id=scan.scan_id)
        creds = self._current_credentials()

        if creds is not None and self._deliver_primary(scan, creds):
            outcome.path = PATH_PRIMARY
        elif self.cfg.server.enabled and self._deliver_configured(scan, creds):
            outcome.path = PATH_CONFIGURED
        elif creds is None and not self.cfg.server.enabled:
            logger.debug("No credential and no server configured; %s not delivered", scan.scan_id)

        # Only primary deliveries can be PATCHed later.
        if outcome.path == PATH_PRIMARY and scan.scan_id:
            session_store.save_last_scan_id(session_key, scan.scan_id, self.state_dir)
            outcome.recorded_for_patch = True

        if self.cfg.debug:
            try:
                outcome.saved_to = archive.save_scan(scan, self.scans_dir)
                logger.debug("Saved scan locally: %s", outcome.saved_to)
            except (IntentraError, OSError) as exc:
                logger.warning("Failed to save scan %s locally: %s", scan.scan_id, exc)

        return outcome

    def apply_session_end(self, session_key: str, raw_event: dict[str, Any]) -> bool:
        """PATCH late session-end metadata onto the session's last delivered scan.

        Returns True when a PATCH request was sent and accepted.
        """
        scan_id = session_store.get_last_scan_id(session_key, self.state_dir)
        if not scan_id:
            logger.debug("session_end for %s has no delivered scan, ignoring", session_key)
            return False

        creds = self._current_credentials()
        if creds is None:
            logger.debug("session_end for %s but no valid credential, ignoring", session_key)
            return False

        reason, duration = session_end_metadata(raw_event)
        patched = False
        started = time.monotonic()
        try:
            with observability.start_span("intentra.deliver.session_end", {"scan_id": scan_id}):
                patched = self.primary_client.patch_session_end(scan_id, creds, reason, duration)
        except DeliveryError as exc:
            logger.warning("Failed to PATCH session end for %s: %s", scan_id, exc)
            observability.record_delivery("session_end", PATH_PRIMARY, "error", (time.monotonic() - started) * 1000)
        else:
            if patched:
                logger.debug("PATCHed session end for %s", scan_id)
                observability.record_delivery("session_end", PATH_PRIMARY, "ok", (time.monotonic() - started) * 1000)

        # Cleared after any attempt, successful or not.
        session_store.clear_last_scan_id(session_key, self.state_dir)
        return patched
