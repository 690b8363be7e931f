from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from backend.app.dependencies import (
    get_credential_store,
    get_managed_video_id,
    get_video_gateway,
    require_authentication,
)
from backend.app.models.video_contracts import (
    AuthCallbackResponse,
    AuthStatusResponse,
    ErrorResponse,
    VideoUpdateRequest,
)
from backend.app.services.credential_store import CredentialStore
from backend.app.services.errors import ValidationError
from backend.app.services.video_gateway import VideoGateway, VideoPatch

LOGGER = logging.getLogger("video_gateway.api")

auth_router = APIRouter(prefix="/auth", tags=["auth"])
video_router = APIRouter(
    prefix="/api/video",
    tags=["video"],
    dependencies=[Depends(require_authentication)],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


@auth_router.get(
    "/youtube",
    response_class=RedirectResponse,
    status_code=302,
    operation_id="auth_youtube_begin",
)
def auth_youtube_begin(
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> RedirectResponse:
    LOGGER.info("redirecting to google for youtube authentication")
    return RedirectResponse(credential_store.authorization_url(), status_code=302)


@auth_router.get(
    "/google/callback",
    response_model=AuthCallbackResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    operation_id="auth_google_callback",
)
async def auth_google_callback(
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
    code: str | None = None,
) -> AuthCallbackResponse:
    if code is None or not code.strip():
        LOGGER.error("authentication callback received no code from google")
        raise ValidationError("Authentication failed: No code provided")

    await credential_store.exchange_code(code)
    LOGGER.info("youtube authentication successful, tokens stored")
    return AuthCallbackResponse(message="Authentication successful! You can close this page.")


@auth_router.get(
    "/youtube/tokens",
    response_model=AuthStatusResponse,
    responses={401: {"model": AuthStatusResponse}},
    operation_id="auth_youtube_tokens",
)
def auth_youtube_tokens(
    credential_store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> AuthStatusResponse | JSONResponse:
    if credential_store.status().authenticated:
        return AuthStatusResponse(
            authenticated=True,
            message="Tokens are present (in memory)",
        )
    return JSONResponse(
        status_code=401,
        content=AuthStatusResponse(
            authenticated=False,
            message="No tokens found. Please authenticate via /auth/youtube",
        ).model_dump(),
    )


@video_router.get(
    "/details",
    responses={404: {"model": ErrorResponse}},
    operation_id="video_details_get",
)
async def video_details_get(
    video_id: Annotated[str, Depends(get_managed_video_id)],
    gateway: Annotated[VideoGateway, Depends(get_video_gateway)],
) -> dict[str, Any]:
    return await gateway.fetch_video(video_id)


@video_router.put(
    "/details",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    operation_id="video_details_update",
)
async def video_details_update(
    video_id: Annotated[str, Depends(get_managed_video_id)],
    gateway: Annotated[VideoGateway, Depends(get_video_gateway)],
    request: VideoUpdateRequest | None = None,
) -> dict[str, Any]:
    # A missing body is an empty patch and is rejected by VideoPatch.validate.
    patch = (
        VideoPatch(title=request.title, description=request.description)
        if request is not None
        else VideoPatch()
    )
    return await gateway.merge_update_video(video_id, patch)


@video_router.get(
    "/comments",
    operation_id="video_comments_list",
)
async def video_comments_list(
    video_id: Annotated[str, Depends(get_managed_video_id)],
    gateway: Annotated[VideoGateway, Depends(get_video_gateway)],
) -> list[dict[str, Any]]:
    return await gateway.list_comments(video_id)
