from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from backend.app.config import AppSettings, load_settings
from backend.app.services.auth_gate import AuthGate
from backend.app.services.credential_store import (
    CredentialStore,
    OAuthClientConfig,
    OAuthCredentials,
)
from backend.app.services.errors import ConfigurationError
from backend.app.services.video_gateway import VideoGateway


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_credential_store() -> CredentialStore:
    return CredentialStore(OAuthClientConfig.from_settings(get_settings()))


@lru_cache(maxsize=1)
def get_auth_gate() -> AuthGate:
    return AuthGate(get_credential_store())


@lru_cache(maxsize=1)
def get_video_gateway() -> VideoGateway:
    return VideoGateway(get_credential_store())


def require_authentication(
    auth_gate: Annotated[AuthGate, Depends(get_auth_gate)],
) -> OAuthCredentials:
    return auth_gate.check()


def get_managed_video_id(
    settings: Annotated[AppSettings, Depends(get_settings)],
) -> str:
    if settings.youtube_video_id is None:
        raise ConfigurationError("Server configuration error: Video ID not set.")
    return settings.youtube_video_id


def reset_cached_dependencies() -> None:
    get_video_gateway.cache_clear()
    get_auth_gate.cache_clear()
    get_credential_store.cache_clear()
    get_settings.cache_clear()
