"""Credential cache with probe-based revalidation.

CredentialStore keeps the last captured credential on disk and checks it
against the portal before reuse. The portal's session lifetime is not
observable, so there is no expiry timestamp: a cached credential is valid
exactly when the probe call succeeds.
"""

import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from src.portal.config import PortalConfig
from src.portal.logging import get_logger
from src.portal.models import Credential
from src.portal.transport import PortalClient

logger = get_logger(__name__)


class Acquirer(Protocol):
    def acquire(self, username: str, password: str) -> Credential: ...


class CredentialStore:
    """Loads, probes, and persists the single cached credential.

    The cache file holds one JSON-serialized Credential and is replaced as a
    whole on every successful acquisition.
    """

    def __init__(
        self,
        config: PortalConfig,
        client: PortalClient,
        acquirer: Acquirer,
        cache_file: Path | None = None,
    ) -> None:
        """Initialize CredentialStore.

        Args:
            config: Portal configuration (login settings and probe endpoint).
            client: Transport used for the probe request.
            acquirer: Browser login used when the cache is unusable.
            cache_file: Override for the cache location (defaults to config.cache_file).
        """
        self.config = config
        self.client = client
        self.acquirer = acquirer
        self.cache_file = Path(cache_file) if cache_file else config.cache_file

    def load(self) -> Credential | None:
        """Read the cached credential, or None if missing or unreadable."""
        if not self.cache_file.exists():
            logger.debug("credential_cache", result="missing", path=str(self.cache_file))
            return None

        try:
            credential = Credential.model_validate_json(self.cache_file.read_bytes())
        except (OSError, ValidationError) as e:
            logger.warning(
                "credential_cache",
                result="unreadable",
                path=str(self.cache_file),
                error=str(e),
            )
            return None

        logger.debug("credential_cache", result="loaded", path=str(self.cache_file))
        return credential

    def save(self, credential: Credential) -> None:
        """Overwrite the cache file with credential in a single replace.

        The record is written to a temporary file in the same directory and
        moved over the old one, so readers never see a partial file.
        """
        self.cache_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.cache_file.parent, prefix=".credential-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(credential.model_dump_json())
            os.replace(tmp_path, self.cache_file)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.info("credential_saved", path=str(self.cache_file))

    def is_accepted(self, credential: Credential) -> bool:
        """Probe the portal with credential; False on any failure."""
        if credential.is_empty:
            return False
        return self.client.probe(self.config.appointments_endpoint, credential)

    def load_or_acquire(self) -> Credential:
        """Return a working credential, signing in through the browser if needed.

        Fast path: cached credential that the portal still accepts, no browser.
        Otherwise: fresh browser login, written back to the cache.

        Raises:
            ConfigurationError: If a login is needed and username/password are unset.
            AutomationError: If the browser login cannot complete.
            EmptyCredentialError: If the login captured no session cookie.
            OSError: If the cache file cannot be written.
        """
        cached = self.load()
        if cached is not None and self.is_accepted(cached):
            logger.info("credential_ready", source="cache")
            return cached

        username, password = self.config.require_login()
        logger.info("credential_acquiring", reason="no_cache" if cached is None else "rejected")
        credential = self.acquirer.acquire(username, password)
        self.save(credential)
        logger.info("credential_ready", source="browser")
        return credential

    def clear(self) -> None:
        """Delete the cached credential, forcing a browser login next run."""
        if self.cache_file.exists():
            self.cache_file.unlink()
            logger.info("credential_cleared", path=str(self.cache_file))
        else:
            logger.debug("credential_clear_skipped", reason="file_not_found")
