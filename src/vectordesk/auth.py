"""API-key session.

The key is validated against the backend before it is accepted. The CLI
reads it from ``VECTORDESK_API_KEY``; it is never written to config files.
"""

from __future__ import annotations

import logging
import os

from vectordesk.errors import TransportFailure, VectordeskError
from vectordesk.transport.base import Transport

logger = logging.getLogger(__name__)

API_KEY_ENV = "VECTORDESK_API_KEY"


class Session:
    """Holds the authenticated API key for one console session."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.api_key: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.api_key is not None

    async def login(self, api_key: str) -> bool:
        """Validate *api_key*; remember it and return True when accepted.

        Raises TransportFailure when the backend cannot be reached; that is
        not a verdict on the key.
        """
        key = (api_key or "").strip()
        if not key:
            return False
        try:
            valid = await self.transport.validate_api_key(key)
        except VectordeskError:
            raise
        except Exception as exc:
            logger.warning("API key validation error: %s", exc)
            raise TransportFailure("validate API key", exc) from exc
        if valid:
            self.api_key = key
            self.transport.set_api_key(key)
        else:
            self.api_key = None
        return valid

    async def login_from_env(self) -> bool:
        """Log in with ``VECTORDESK_API_KEY`` if it is set."""
        return await self.login(os.environ.get(API_KEY_ENV, ""))

    def logout(self) -> None:
        self.api_key = None
