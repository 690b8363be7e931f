from __future__ import annotations

import json
from typing import Any, ClassVar, cast

from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

_AUTH_STATUSES: frozenset[int] = frozenset({401, 403})
_MAX_MESSAGE_LENGTH = 400


class YouTubeGatewayError(Exception):
    """Base class for every failure the gateway core reports.

    `kind` and `status_code` are fixed per subclass; `upstream_status` and
    `detail` are filled in when the failure originated at the remote API.
    """

    kind: ClassVar[str] = "gateway_error"
    status_code: ClassVar[int] = 500

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int | None = None,
        detail: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.upstream_status = upstream_status
        self.detail = detail

    @property
    def http_status(self) -> int:
        return self.status_code


class ValidationError(YouTubeGatewayError):
    kind = "validation_error"
    status_code = 400


class AuthRequiredError(YouTubeGatewayError):
    kind = "auth_required"
    status_code = 401


class AuthError(YouTubeGatewayError):
    kind = "auth_error"
    status_code = 401

    @property
    def http_status(self) -> int:
        if self.upstream_status in _AUTH_STATUSES:
            return self.upstream_status
        return self.status_code


class AuthExchangeError(YouTubeGatewayError):
    kind = "auth_exchange_error"
    status_code = 500


class NotFoundError(YouTubeGatewayError):
    kind = "not_found"
    status_code = 404


class SchemaError(YouTubeGatewayError):
    kind = "schema_error"
    status_code = 500


class UpstreamError(YouTubeGatewayError):
    kind = "upstream_error"
    status_code = 500


class ConfigurationError(YouTubeGatewayError):
    kind = "configuration_error"
    status_code = 500


def classify_upstream_error(exc: BaseException, *, action: str) -> YouTubeGatewayError:
    """Map a failed remote call onto exactly one domain error.

    401/403 responses become `AuthError`; every other failure is an
    `UpstreamError`. Domain errors raised further down pass through untouched.
    """
    if isinstance(exc, YouTubeGatewayError):
        return exc

    if isinstance(exc, HttpError):
        status = _http_error_status(exc)
        detail = _http_error_detail(exc)
        if status in _AUTH_STATUSES:
            return AuthError(
                f"YouTube API rejected the credentials while trying to {action}. "
                "Please re-authenticate.",
                upstream_status=status,
                detail=detail,
            )
        return UpstreamError(
            f"Failed to {action}: {_http_error_message(exc, detail)}",
            upstream_status=status,
            detail=detail,
        )

    if isinstance(exc, RefreshError):
        return AuthError(
            f"YouTube access token is no longer usable while trying to {action}. "
            "Please re-authenticate.",
            upstream_status=401,
            detail=_summarize_exception_message(exc),
        )

    return UpstreamError(
        f"Failed to {action}: {_summarize_exception_message(exc)}",
        detail=type(exc).__name__,
    )


def _http_error_status(exc: HttpError) -> int | None:
    raw_status = exc.resp.status if exc.resp is not None else None
    try:
        return int(raw_status) if raw_status is not None else None
    except (TypeError, ValueError):
        return None


def _http_error_detail(exc: HttpError) -> Any:
    content = exc.content
    if isinstance(content, bytes):
        raw_body = content.decode("utf-8", errors="replace")
    else:
        raw_body = str(content or "")
    if not raw_body.strip():
        return None

    try:
        parsed = json.loads(raw_body)
    except json.JSONDecodeError:
        return raw_body[:_MAX_MESSAGE_LENGTH]
    if isinstance(parsed, dict):
        error = cast(dict[str, Any], parsed).get("error")
        if error is not None:
            return error
    return parsed


def _http_error_message(exc: HttpError, detail: Any) -> str:
    if isinstance(detail, dict):
        message = cast(dict[str, Any], detail).get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    if isinstance(detail, str) and detail.strip():
        return detail.strip()
    return _summarize_exception_message(exc)


def _summarize_exception_message(exc: BaseException, *, max_length: int = _MAX_MESSAGE_LENGTH) -> str:
    raw = str(exc).strip()
    if not raw:
        raw = repr(exc)
    if len(raw) <= max_length:
        return raw
    return f"{raw[: max_length - 3]}..."
