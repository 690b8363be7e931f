from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from importlib import import_module
from typing import Any, Literal, cast

from backend.app.services.credential_store import CredentialStore, OAuthCredentials
from backend.app.services.errors import (
    AuthRequiredError,
    NotFoundError,
    SchemaError,
    UpstreamError,
    ValidationError,
    YouTubeGatewayError,
    classify_upstream_error,
)

LOGGER = logging.getLogger("video_gateway.youtube")

DEFAULT_VIDEO_PARTS: tuple[str, ...] = ("snippet", "statistics", "status")
COMMENT_THREAD_PARTS: tuple[str, ...] = ("snippet", "replies")
DEFAULT_COMMENTS_PAGE_SIZE = 50
_MAX_COMMENTS_PAGE_SIZE = 100
# Writable snippet fields other than title/description/categoryId. The update
# call replaces the whole snippet, so these are re-sent as fetched.
_CARRIED_SNIPPET_FIELDS: tuple[str, ...] = ("tags", "defaultLanguage")

CommentOrder = Literal["time", "relevance"]
YouTubeClientFactory = Callable[[OAuthCredentials], Any]


@dataclass(frozen=True)
class VideoPatch:
    title: str | None = None
    description: str | None = None

    def validate(self) -> None:
        if self.title is None and self.description is None:
            raise ValidationError(
                "Bad Request: Please provide a title or description to update."
            )
        if self.title is not None and not self.title.strip():
            raise ValidationError("Bad Request: Video title must not be blank.")


class VideoGateway:
    """Remote operations against YouTube videos, authenticated with the stored credentials.

    Each method awaits its remote calls one at a time and raises exactly one
    `YouTubeGatewayError` subclass on failure.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        *,
        client_factory: YouTubeClientFactory | None = None,
    ) -> None:
        self._credential_store = credential_store
        self._client_factory: YouTubeClientFactory = client_factory or build_youtube_client

    async def fetch_video(
        self,
        video_id: str,
        parts: Sequence[str] = DEFAULT_VIDEO_PARTS,
    ) -> dict[str, Any]:
        _require_video_id(video_id)
        LOGGER.info(
            "fetching details for video_id=%s parts=%s",
            video_id,
            ",".join(parts),
            extra={"video_id": video_id},
        )
        video = await self._fetch_single_video(video_id, parts, action="fetch video details")
        snippet = _as_dict(video.get("snippet"))
        LOGGER.info(
            "fetched details for video_id=%s title=%s",
            video_id,
            snippet.get("title") or "[No Title]",
        )
        return video

    async def merge_update_video(self, video_id: str, patch: VideoPatch) -> dict[str, Any]:
        patch.validate()
        _require_video_id(video_id)

        LOGGER.info("fetching current snippet before update video_id=%s", video_id)
        current = await self._fetch_single_video(
            video_id,
            ("snippet",),
            action="fetch video details before update",
        )
        current_snippet = _extract_writable_snippet(video_id, current)
        merged_snippet = _merge_snippet(current_snippet, patch)

        LOGGER.info(
            "updating video_id=%s fields=%s",
            video_id,
            ",".join(
                name
                for name, value in (("title", patch.title), ("description", patch.description))
                if value is not None
            ),
        )
        body = {"id": video_id, "snippet": merged_snippet}
        updated = await self._execute(
            "update video details",
            lambda client: client.videos().update(part="snippet", body=body),
        )

        updated_snippet = updated.get("snippet")
        if not isinstance(updated_snippet, dict):
            LOGGER.error(
                "youtube api returned no snippet after update video_id=%s response_keys=%s",
                video_id,
                sorted(updated),
            )
            raise UpstreamError(
                "Video update seemed successful but no valid data returned from YouTube."
            )
        LOGGER.info(
            "updated video_id=%s title=%s",
            video_id,
            cast(dict[str, Any], updated_snippet).get("title") or "[No Title]",
        )
        return updated

    async def list_comments(
        self,
        video_id: str,
        *,
        order: CommentOrder = "time",
        max_results: int = DEFAULT_COMMENTS_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        _require_video_id(video_id)
        page_size = max(1, min(_MAX_COMMENTS_PAGE_SIZE, max_results))

        LOGGER.info("fetching comment threads video_id=%s order=%s", video_id, order)
        response = await self._execute(
            "fetch video comments",
            lambda client: client.commentThreads().list(
                part=",".join(COMMENT_THREAD_PARTS),
                videoId=video_id,
                maxResults=page_size,
                order=order,
            ),
        )

        threads = [_as_dict(item) for item in _as_list(response.get("items"))]
        if not threads:
            LOGGER.info("no comment threads found video_id=%s", video_id)
            return []
        LOGGER.info("fetched comment threads video_id=%s count=%s", video_id, len(threads))
        return threads

    async def _fetch_single_video(
        self,
        video_id: str,
        parts: Sequence[str],
        *,
        action: str,
    ) -> dict[str, Any]:
        response = await self._execute(
            action,
            lambda client: client.videos().list(part=",".join(parts), id=video_id),
        )
        items = _as_list(response.get("items"))
        if not items:
            LOGGER.warning("no video found video_id=%s", video_id)
            raise NotFoundError("Video not found.", detail={"video_id": video_id})
        return _as_dict(items[0])

    async def _execute(
        self,
        action: str,
        build_request: Callable[[Any], Any],
    ) -> dict[str, Any]:
        credentials = self._require_credentials()

        def _run() -> Any:
            client = self._client_factory(credentials)
            return build_request(client).execute()

        try:
            response = await asyncio.to_thread(_run)
        except YouTubeGatewayError:
            raise
        except Exception as exc:
            error = classify_upstream_error(exc, action=action)
            LOGGER.warning(
                "youtube api call failed action=%s kind=%s upstream_status=%s",
                action,
                error.kind,
                error.upstream_status,
                exc_info=True,
                extra={
                    "gateway_action": action,
                    "error_kind": error.kind,
                    "upstream_status": error.upstream_status,
                    "credential_generation": self._credential_store.generation,
                },
            )
            raise error from exc
        return _as_dict(response)

    def _require_credentials(self) -> OAuthCredentials:
        credentials = self._credential_store.current()
        if credentials is None or not credentials.access_token:
            raise AuthRequiredError("Unauthorized. Please authenticate via /auth/youtube first.")
        return credentials


def build_youtube_client(credentials: OAuthCredentials) -> Any:
    try:
        credentials_module = import_module("google.oauth2.credentials")
        discovery_module = import_module("googleapiclient.discovery")
    except ImportError as exc:  # pragma: no cover - dependency controlled at runtime
        raise UpstreamError(
            "YouTube access requires google-api-python-client and google-auth dependencies"
        ) from exc

    credentials_cls: Any = credentials_module.Credentials
    build_fn: Any = discovery_module.build

    # No refresh token or client secret is handed over, so an expired token
    # fails with RefreshError instead of being renewed.
    google_credentials = credentials_cls(
        token=credentials.access_token,
        expiry=credentials.expiry,
        scopes=list(credentials.granted_scopes) or None,
    )
    return build_fn("youtube", "v3", credentials=google_credentials, cache_discovery=False)


def _require_video_id(video_id: str) -> None:
    if not video_id.strip():
        raise ValidationError("Bad Request: A video identifier is required.")


def _extract_writable_snippet(video_id: str, video: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(video.get("snippet"), dict):
        LOGGER.error("video snippet missing in youtube api response video_id=%s", video_id)
        raise SchemaError(
            "Failed to retrieve essential video snippet data for update.",
            detail={"video_id": video_id},
        )
    snippet = _as_dict(video.get("snippet"))

    category_id = snippet.get("categoryId")
    if not isinstance(category_id, str) or not category_id.strip():
        LOGGER.error("could not retrieve categoryId for video_id=%s", video_id)
        raise SchemaError(
            "Failed to retrieve essential video data (categoryId) for update.",
            detail={"video_id": video_id, "missing_field": "categoryId"},
        )
    return snippet


def _merge_snippet(current: dict[str, Any], patch: VideoPatch) -> dict[str, Any]:
    merged: dict[str, Any] = {
        "title": patch.title if patch.title is not None else current.get("title"),
        "description": (
            patch.description if patch.description is not None else current.get("description")
        ),
        "categoryId": current["categoryId"],
    }
    for field_name in _CARRIED_SNIPPET_FIELDS:
        if field_name in current:
            merged[field_name] = current[field_name]
    return merged


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        raw_dict = cast(dict[object, object], value)
        converted: dict[str, Any] = {}
        for key, item in raw_dict.items():
            if isinstance(key, str):
                converted[key] = item
        return converted
    return {}


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        raw_list = cast(list[Any], value)
        return list(raw_list)
    return []
