from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from importlib import import_module
from typing import Any
from urllib.parse import urlencode

from backend.app.config import GOOGLE_AUTH_URI, GOOGLE_TOKEN_URI, YOUTUBE_SCOPES, AppSettings
from backend.app.services.errors import AuthExchangeError, ConfigurationError

LOGGER = logging.getLogger("video_gateway.auth")


@dataclass(frozen=True)
class OAuthClientConfig:
    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: tuple[str, ...] = YOUTUBE_SCOPES
    auth_uri: str = GOOGLE_AUTH_URI
    token_uri: str = GOOGLE_TOKEN_URI

    @classmethod
    def from_settings(cls, settings: AppSettings) -> OAuthClientConfig:
        if (
            settings.youtube_client_id is None
            or settings.youtube_client_secret is None
            or settings.youtube_redirect_uri is None
        ):
            raise ConfigurationError("Server configuration error: OAuth client is not configured.")
        return cls(
            client_id=settings.youtube_client_id,
            client_secret=settings.youtube_client_secret,
            redirect_uri=settings.youtube_redirect_uri,
            auth_uri=settings.youtube_auth_uri,
            token_uri=settings.youtube_token_uri,
        )

    def as_client_config(self) -> dict[str, Any]:
        return {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": [self.redirect_uri],
            }
        }


@dataclass(frozen=True)
class OAuthCredentials:
    access_token: str
    refresh_token: str | None = None
    expiry: datetime | None = None
    granted_scopes: tuple[str, ...] = ()


@dataclass(frozen=True)
class CredentialStatus:
    authenticated: bool


class CredentialStore:
    """Process-wide holder of the single set of OAuth credentials.

    Starts empty. A successful code exchange replaces the stored credentials
    wholesale; nothing ever clears them again and nothing is written to disk.
    """

    def __init__(self, client_config: OAuthClientConfig) -> None:
        self._client_config = client_config
        self._credentials: OAuthCredentials | None = None
        self._generation = 0
        self._write_lock = asyncio.Lock()

    @property
    def client_config(self) -> OAuthClientConfig:
        return self._client_config

    @property
    def generation(self) -> int:
        return self._generation

    def authorization_url(self) -> str:
        config = self._client_config
        query = urlencode(
            {
                "client_id": config.client_id,
                "redirect_uri": config.redirect_uri,
                "response_type": "code",
                "scope": " ".join(config.scopes),
                "access_type": "offline",
                "prompt": "consent",
            }
        )
        return f"{config.auth_uri}?{query}"

    async def exchange_code(self, code: str) -> OAuthCredentials:
        normalized_code = code.strip() if isinstance(code, str) else ""
        if not normalized_code:
            raise AuthExchangeError("Authentication failed: No code provided.")

        LOGGER.info("youtube oauth exchanging authorization code")
        credentials = await asyncio.to_thread(self._fetch_credentials, normalized_code)

        async with self._write_lock:
            self._credentials = credentials
            self._generation += 1
            generation = self._generation

        LOGGER.info(
            "youtube oauth credentials stored generation=%s has_refresh_token=%s scopes=%s",
            generation,
            credentials.refresh_token is not None,
            ",".join(credentials.granted_scopes),
            extra={"credential_generation": generation},
        )
        return credentials

    def status(self) -> CredentialStatus:
        credentials = self._credentials
        return CredentialStatus(
            authenticated=credentials is not None and bool(credentials.access_token),
        )

    def current(self) -> OAuthCredentials | None:
        return self._credentials

    def _fetch_credentials(self, code: str) -> OAuthCredentials:
        try:
            flow_module = import_module("google_auth_oauthlib.flow")
        except ImportError as exc:  # pragma: no cover - dependency controlled at runtime
            raise AuthExchangeError(
                "OAuth code exchange requires the google-auth-oauthlib dependency"
            ) from exc

        flow_cls: Any = flow_module.Flow
        config = self._client_config
        try:
            flow = flow_cls.from_client_config(
                config.as_client_config(),
                scopes=list(config.scopes),
                redirect_uri=config.redirect_uri,
                autogenerate_code_verifier=False,
            )
            flow.fetch_token(code=code)
            google_credentials = flow.credentials
        except Exception as exc:
            LOGGER.warning("youtube oauth code_exchange_failed", exc_info=True)
            raise AuthExchangeError(
                "Authentication failed during token exchange.",
                detail=str(exc) or type(exc).__name__,
            ) from exc

        return _to_oauth_credentials(google_credentials)


def _to_oauth_credentials(google_credentials: Any) -> OAuthCredentials:
    token = getattr(google_credentials, "token", None)
    if not isinstance(token, str) or not token:
        raise AuthExchangeError("Authentication failed: provider returned no access token.")

    refresh_token = getattr(google_credentials, "refresh_token", None)
    expiry = getattr(google_credentials, "expiry", None)
    raw_scopes = getattr(google_credentials, "granted_scopes", None) or getattr(
        google_credentials, "scopes", None
    )
    return OAuthCredentials(
        access_token=token,
        refresh_token=refresh_token if isinstance(refresh_token, str) and refresh_token else None,
        expiry=expiry if isinstance(expiry, datetime) else None,
        granted_scopes=tuple(scope for scope in raw_scopes or () if isinstance(scope, str)),
    )
