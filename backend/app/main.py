from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from structlog.contextvars import bind_contextvars, reset_contextvars

from backend.app.api.routes import auth_router, video_router
from backend.app.dependencies import get_settings
from backend.app.logging_config import configure_application_logging
from backend.app.services.errors import YouTubeGatewayError

LOGGER = logging.getLogger("video_gateway.http")


def health_check() -> dict[str, str]:
    return {"status": "ok"}


@asynccontextmanager
async def app_lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_application_logging(settings)
    LOGGER.info("video gateway started video_id_configured=%s", settings.youtube_video_id is not None)
    try:
        yield
    finally:
        LOGGER.info("video gateway stopped")


async def handle_gateway_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, YouTubeGatewayError)
    status_code = exc.http_status
    log_method = LOGGER.error if status_code >= 500 else LOGGER.warning
    log_method(
        "request failed kind=%s status_code=%s upstream_status=%s path=%s message=%s",
        exc.kind,
        status_code,
        exc.upstream_status,
        request.url.path,
        exc.message,
        extra={"error_kind": exc.kind, "upstream_status": exc.upstream_status},
    )
    content: dict[str, object] = {"message": exc.message, "error": exc.kind}
    if exc.detail is not None:
        content["detail"] = exc.detail
    return JSONResponse(status_code=status_code, content=content)


async def handle_request_validation_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    LOGGER.warning(
        "request rejected path=%s error_count=%s",
        request.url.path,
        len(exc.errors()),
        extra={"error_kind": "validation_error"},
    )
    return JSONResponse(
        status_code=400,
        content={
            "message": "Bad Request: Invalid request parameters.",
            "error": "validation_error",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.error(
        "unhandled error path=%s error_type=%s",
        request.url.path,
        type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error.", "error": "internal_error"},
    )


def create_app() -> FastAPI:
    app = FastAPI(title="Video Gateway API", version="0.1.0", lifespan=app_lifespan)

    async def request_context_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        incoming_request_id = request.headers.get("X-Request-ID")
        request_id = (
            incoming_request_id.strip()
            if isinstance(incoming_request_id, str) and incoming_request_id.strip()
            else str(uuid4())
        )
        context_tokens = bind_contextvars(
            http_request_id=request_id,
            http_method=request.method,
            http_path=request.url.path,
        )
        started_at = perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            LOGGER.error(
                "request errored method=%s path=%s duration_ms=%s",
                request.method,
                request.url.path,
                int((perf_counter() - started_at) * 1000),
            )
            raise
        else:
            response.headers["X-Request-ID"] = request_id
            LOGGER.info(
                "request finished method=%s path=%s status_code=%s duration_ms=%s",
                request.method,
                request.url.path,
                response.status_code,
                int((perf_counter() - started_at) * 1000),
            )
            return response
        finally:
            reset_contextvars(**context_tokens)

    app.middleware("http")(request_context_middleware)
    app.add_exception_handler(YouTubeGatewayError, handle_gateway_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(auth_router)
    app.include_router(video_router)
    app.add_api_route(
        "/health",
        health_check,
        methods=["GET"],
        tags=["system"],
        operation_id="health_check",
    )

    return app


app = create_app()
