from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = ".video-gateway"
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
YOUTUBE_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/youtube",
    "https://www.googleapis.com/auth/youtube.force-ssl",
)
_OAUTH_CLIENT_FIELDS: tuple[tuple[str, str], ...] = (
    ("youtube_client_id", "VIDEO_GATEWAY_YOUTUBE_CLIENT_ID"),
    ("youtube_client_secret", "VIDEO_GATEWAY_YOUTUBE_CLIENT_SECRET"),
    ("youtube_redirect_uri", "VIDEO_GATEWAY_YOUTUBE_REDIRECT_URI"),
)


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _normalize_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if normalized:
        return normalized
    return None


class AppSettings(BaseSettings):
    """
    Canonical runtime configuration.

    Every option is read from `VIDEO_GATEWAY_*` environment variables (or `.env`)
    once at process start and never changes afterwards.
    """

    model_config = SettingsConfigDict(
        env_prefix="VIDEO_GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # OAuth client.
    youtube_client_id: str | None = Field(
        default=None,
        description="Google OAuth client identifier.",
    )
    youtube_client_secret: str | None = Field(
        default=None,
        description="Google OAuth client secret.",
    )
    youtube_redirect_uri: str | None = Field(
        default=None,
        description="Redirect URI registered for the OAuth client (points at /auth/google/callback).",
    )
    youtube_auth_uri: str = Field(
        default=GOOGLE_AUTH_URI,
        description="Provider authorization endpoint.",
    )
    youtube_token_uri: str = Field(
        default=GOOGLE_TOKEN_URI,
        description="Provider token endpoint used for code exchange.",
    )

    # Managed resource.
    youtube_video_id: str | None = Field(
        default=None,
        description="Identifier of the single video managed through /api/video routes.",
    )

    # Logging.
    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        description="Root runtime directory. Only log files are written here.",
    )
    log_dir: Path | None = Field(
        default=None,
        description="Directory for backend log files. Defaults to `${VIDEO_GATEWAY_DATA_DIR}/logs`.",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level (stdout).",
    )

    @field_validator(
        "youtube_client_id",
        "youtube_client_secret",
        "youtube_redirect_uri",
        "youtube_video_id",
        mode="before",
    )
    @classmethod
    def _normalize_optional_strings(cls, value: Any) -> str | None:
        return _normalize_optional_text(value)

    @field_validator("youtube_auth_uri", "youtube_token_uri", mode="before")
    @classmethod
    def _normalize_endpoint(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("OAuth endpoint must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("OAuth endpoint must not be empty.")
        return normalized

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if value is None:
            return None
        return _resolve_path(value)

    @property
    def resolved_log_dir(self) -> Path:
        if self.log_dir is not None:
            return self.log_dir
        return _resolve_path(self.data_dir / "logs")


def _validate_oauth_configuration(settings: AppSettings) -> None:
    errors: list[str] = []
    for field_name, env_name in _OAUTH_CLIENT_FIELDS:
        if getattr(settings, field_name) is None:
            errors.append(f"{env_name} is required.")

    if errors:
        bullets = "\n".join(f"- {message}" for message in errors)
        raise ValueError(f"Invalid OAuth client configuration:\n{bullets}")


def load_settings(*, validate_oauth_client: bool = True) -> AppSettings:
    settings = AppSettings()
    if validate_oauth_client:
        _validate_oauth_configuration(settings)
    return settings
