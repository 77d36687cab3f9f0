"""API key store backed by the application config."""

import logging

from feedstage.adapters.auth.crypto import verify_secret
from feedstage.config.models import ApiKeyEntry

logger = logging.getLogger(__name__)


class ConfigApiKeyStore:
    def __init__(self, entries: list[ApiKeyEntry]) -> None:
        self._by_key = {e.api_key: e for e in entries}

    def authenticate(self, api_key: str, api_secret: str) -> str | None:
        """Return the owning username, or None when the key or secret is wrong."""
        entry = self._by_key.get(api_key)
        if entry is None:
            logger.debug("Unable to locate API key")
            return None
        if not verify_secret(api_secret, entry.api_secret_hash):
            logger.debug("API secret mismatch for username=%s", entry.username)
            return None
        return entry.username
