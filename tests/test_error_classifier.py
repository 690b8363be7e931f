from __future__ import annotations

import httplib2
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from backend.app.services.errors import (
    AuthError,
    NotFoundError,
    UpstreamError,
    classify_upstream_error,
)


def test_forbidden_maps_to_auth_error_with_upstream_status() -> None:
    exc = HttpError(
        httplib2.Response({"status": 403}),
        b'{"error": {"code": 403, "message": "Forbidden", "errors": [{"reason": "forbidden"}]}}',
    )

    error = classify_upstream_error(exc, action="fetch video details")

    assert isinstance(error, AuthError)
    assert error.upstream_status == 403
    assert error.http_status == 403
    assert error.detail["errors"][0]["reason"] == "forbidden"
    assert "re-authenticate" in error.message


def test_unauthorized_maps_to_auth_error() -> None:
    exc = HttpError(httplib2.Response({"status": 401}), b'{"error": {"message": "Invalid Credentials"}}')

    error = classify_upstream_error(exc, action="fetch video comments")

    assert isinstance(error, AuthError)
    assert error.http_status == 401


def test_server_error_maps_to_upstream_error_with_message() -> None:
    exc = HttpError(
        httplib2.Response({"status": 500}),
        b'{"error": {"code": 500, "message": "Backend Error"}}',
    )

    error = classify_upstream_error(exc, action="update video details")

    assert isinstance(error, UpstreamError)
    assert error.upstream_status == 500
    assert error.http_status == 500
    assert error.message == "Failed to update video details: Backend Error"


def test_non_json_body_is_kept_as_text_detail() -> None:
    exc = HttpError(httplib2.Response({"status": 502}), b"Bad Gateway")

    error = classify_upstream_error(exc, action="fetch video details")

    assert isinstance(error, UpstreamError)
    assert error.detail == "Bad Gateway"
    assert error.message.endswith("Bad Gateway")


def test_refresh_error_means_reauthentication() -> None:
    error = classify_upstream_error(RefreshError("token expired"), action="fetch video details")

    assert isinstance(error, AuthError)
    assert error.upstream_status == 401


def test_domain_errors_pass_through_unchanged() -> None:
    original = NotFoundError("Video not found.")
    assert classify_upstream_error(original, action="fetch video details") is original


def test_unknown_exception_is_upstream_error_without_status() -> None:
    error = classify_upstream_error(ConnectionResetError("peer reset"), action="fetch video details")

    assert isinstance(error, UpstreamError)
    assert error.upstream_status is None
    assert error.detail == "ConnectionResetError"
