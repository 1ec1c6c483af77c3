"""API key authentication headers for the configured-server path."""
from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlsplit

from intentra.config import ApiKeyConfig
from intentra.errors import DeliveryError

NONCE_BYTES = 16


def signing_message(method: str, path: str, timestamp: str, nonce: str) -> str:
    return f"{method.upper()}\n{path}\n{timestamp}\n{nonce}"


def sign(hmac_key: str, method: str, path: str, timestamp: str, nonce: str) -> str:
    message = signing_message(method, path, timestamp, nonce)
    return hmac.new(hmac_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def api_key_headers(
    api_key: ApiKeyConfig,
    method: str,
    url: str,
    *,
    now: Optional[datetime] = None,
    nonce: Optional[str] = None,
) -> dict[str, str]:
    """Build X-API-* headers.

    With `hmac_key` the request is signed and the secret never leaves the
    machine; with only `secret` it is sent as-is (keys predating signing).
    """
    parts = urlsplit(url)
    if parts.scheme != "https":
        raise DeliveryError("API key auth requires HTTPS; refusing to send credentials over HTTP")
    if not api_key.key_id:
        raise DeliveryError("API key auth requires key_id")
    if not api_key.hmac_key and not api_key.secret:
        raise DeliveryError("API key auth requires hmac_key (preferred) or secret")

    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    timestamp = moment.strftime("%Y-%m-%dT%H:%M:%SZ")
    nonce = nonce or secrets.token_hex(NONCE_BYTES)

    headers = {
        "X-API-Key-ID": api_key.key_id,
        "X-API-Timestamp": timestamp,
        "X-API-Nonce": nonce,
    }
    if api_key.hmac_key:
        headers["X-API-Key-Signature"] = sign(api_key.hmac_key, method, parts.path, timestamp, nonce)
    else:
        headers["X-API-Key-Secret"] = api_key.secret
    return headers
