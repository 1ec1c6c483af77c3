"""Access to the current delivery credential.

The secure credential store (OS keyring, encrypted file, device-flow login)
lives outside the hook agent; hooks only ask for a valid bearer token.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from typing import Optional, Protocol

from pydantic import BaseModel

from intentra.date_utils import ensure_utc, utc_now

logger = logging.getLogger("intentra.credentials")

TOKEN_ENV_VAR = "INTENTRA_TOKEN"
EXPIRY_BUFFER = timedelta(minutes=5)


class Credentials(BaseModel):
    access_token: str
    expires_at: Optional[datetime] = None

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        if not self.access_token:
            return False
        if self.expires_at is None:
            return True
        return (now or utc_now()) + EXPIRY_BUFFER < ensure_utc(self.expires_at)


class CredentialProvider(Protocol):
    def get_valid_credentials(self) -> Optional[Credentials]:
        ...


class EnvCredentialProvider:
    """Reads a bearer token from INTENTRA_TOKEN, bypassing secure storage."""

    def __init__(self, env_var: str = TOKEN_ENV_VAR):
        self.env_var = env_var

    def get_valid_credentials(self) -> Optional[Credentials]:
        token = os.getenv(self.env_var, "").strip()
        if not token:
            return None
        logger.debug("Using %s environment variable (bypasses secure storage)", self.env_var)
        return Credentials(access_token=token)
