from __future__ import annotations

import logging

from backend.app.services.credential_store import CredentialStore, OAuthCredentials
from backend.app.services.errors import AuthRequiredError

LOGGER = logging.getLogger("video_gateway.auth")


class AuthGate:
    def __init__(self, credential_store: CredentialStore) -> None:
        self._credential_store = credential_store

    def check(self) -> OAuthCredentials:
        """Return the stored credentials or raise `AuthRequiredError`.

        Never refreshes and never retries.
        """
        if not self._credential_store.status().authenticated:
            LOGGER.warning("attempted to access protected route without authentication")
            raise AuthRequiredError(
                "Unauthorized. Please authenticate via /auth/youtube first."
            )
        credentials = self._credential_store.current()
        assert credentials is not None
        return credentials
