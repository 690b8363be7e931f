from __future__ import annotations

import copy
import types
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from backend.app.dependencies import (
    get_credential_store,
    get_video_gateway,
    reset_cached_dependencies,
)
from backend.app.main import create_app
from backend.app.services.credential_store import (
    CredentialStore,
    OAuthClientConfig,
    OAuthCredentials,
)
from backend.app.services.video_gateway import VideoGateway

MANAGED_VIDEO_ID = "managed_video_001"


class FakeYouTubeRequest:
    def __init__(self, client: FakeYouTubeClient, method: str, kwargs: dict[str, Any]) -> None:
        self._client = client
        self._method = method
        self._kwargs = kwargs

    def execute(self) -> dict[str, Any]:
        self._client.calls.append((self._method, self._kwargs))
        error = self._client.errors.get(self._method)
        if error is not None:
            raise error
        return self._client.respond(self._method, self._kwargs)


class FakeYouTubeResource:
    def __init__(self, client: FakeYouTubeClient, name: str) -> None:
        self._client = client
        self._name = name

    def list(self, **kwargs: Any) -> FakeYouTubeRequest:
        return FakeYouTubeRequest(self._client, f"{self._name}.list", kwargs)

    def update(self, **kwargs: Any) -> FakeYouTubeRequest:
        return FakeYouTubeRequest(self._client, f"{self._name}.update", kwargs)


class FakeYouTubeClient:
    """In-memory stand-in for the googleapiclient `youtube` v3 resource."""

    def __init__(self) -> None:
        self.videos_by_id: dict[str, dict[str, Any]] = {}
        self.comment_threads: dict[str, list[dict[str, Any]]] = {}
        self.errors: dict[str, BaseException] = {}
        self.update_response: dict[str, Any] | None = None
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.seen_credentials: list[OAuthCredentials] = []

    def videos(self) -> FakeYouTubeResource:
        return FakeYouTubeResource(self, "videos")

    def commentThreads(self) -> FakeYouTubeResource:  # noqa: N802
        return FakeYouTubeResource(self, "commentThreads")

    def factory(self, credentials: OAuthCredentials) -> FakeYouTubeClient:
        self.seen_credentials.append(credentials)
        return self

    def respond(self, method: str, kwargs: dict[str, Any]) -> dict[str, Any]:
        if method == "videos.list":
            video = self.videos_by_id.get(str(kwargs.get("id")))
            if video is None:
                return {"kind": "youtube#videoListResponse", "items": []}
            return {"kind": "youtube#videoListResponse", "items": [copy.deepcopy(video)]}
        if method == "videos.update":
            if self.update_response is not None:
                return self.update_response
            body = kwargs["body"]
            stored = self.videos_by_id[body["id"]]
            stored["snippet"] = copy.deepcopy(body["snippet"])
            return {"kind": "youtube#video", "id": body["id"], "snippet": copy.deepcopy(body["snippet"])}
        if method == "commentThreads.list":
            threads = self.comment_threads.get(str(kwargs.get("videoId")))
            if threads is None:
                return {"kind": "youtube#commentThreadListResponse"}
            return {"kind": "youtube#commentThreadListResponse", "items": copy.deepcopy(threads)}
        raise AssertionError(f"Unexpected YouTube call: {method}")

    def count(self, method: str) -> int:
        return sum(1 for called, _ in self.calls if called == method)


class FakeFlow:
    instances: list[FakeFlow] = []

    def __init__(self, client_config: dict[str, Any], kwargs: dict[str, Any]) -> None:
        self.client_config = client_config
        self.kwargs = kwargs
        self.codes: list[str] = []
        self.credentials: Any = None

    @classmethod
    def from_client_config(cls, client_config: dict[str, Any], **kwargs: Any) -> FakeFlow:
        flow = cls(client_config, kwargs)
        cls.instances.append(flow)
        return flow

    def fetch_token(self, *, code: str) -> dict[str, Any]:
        self.codes.append(code)
        if code.startswith("REJECTED"):
            raise ValueError("(invalid_grant) Bad Request")
        if code.startswith("TOKENLESS"):
            self.credentials = types.SimpleNamespace(
                token=None,
                refresh_token=None,
                expiry=None,
                granted_scopes=None,
                scopes=None,
            )
            return {}
        self.credentials = types.SimpleNamespace(
            token=f"access-{code}",
            refresh_token=f"refresh-{code}",
            expiry=None,
            granted_scopes=list(self.kwargs.get("scopes") or []),
            scopes=list(self.kwargs.get("scopes") or []),
        )
        return {"access_token": f"access-{code}"}


@pytest.fixture
def fake_flow(monkeypatch: pytest.MonkeyPatch) -> type[FakeFlow]:
    FakeFlow.instances = []

    def fake_import_module(name: str) -> object:
        if name == "google_auth_oauthlib.flow":
            return types.SimpleNamespace(Flow=FakeFlow)
        raise AssertionError(f"Unexpected module import: {name}")

    monkeypatch.setattr("backend.app.services.credential_store.import_module", fake_import_module)
    return FakeFlow


@pytest.fixture
def oauth_client_config() -> OAuthClientConfig:
    return OAuthClientConfig(
        client_id="test-client-id.apps.googleusercontent.com",
        client_secret="test-client-secret",
        redirect_uri="http://localhost:8000/auth/google/callback",
    )


@pytest.fixture
def credential_store(oauth_client_config: OAuthClientConfig) -> CredentialStore:
    return CredentialStore(oauth_client_config)


@pytest.fixture
def fake_youtube() -> FakeYouTubeClient:
    client = FakeYouTubeClient()
    client.videos_by_id[MANAGED_VIDEO_ID] = {
        "kind": "youtube#video",
        "id": MANAGED_VIDEO_ID,
        "snippet": {
            "title": "Original Title",
            "description": "Original description with links.",
            "categoryId": "22",
            "tags": ["gateway", "demo"],
            "channelTitle": "Test Channel",
        },
        "statistics": {"viewCount": "1200", "likeCount": "34", "commentCount": "2"},
        "status": {"privacyStatus": "unlisted", "uploadStatus": "processed"},
    }
    client.comment_threads[MANAGED_VIDEO_ID] = [
        {
            "id": "thread_2",
            "snippet": {
                "topLevelComment": {"snippet": {"textDisplay": "Newest comment"}},
                "totalReplyCount": 0,
            },
        },
        {
            "id": "thread_1",
            "snippet": {
                "topLevelComment": {"snippet": {"textDisplay": "First!"}},
                "totalReplyCount": 1,
            },
            "replies": {"comments": [{"snippet": {"textDisplay": "Reply"}}]},
        },
    ]
    return client


@pytest.fixture
def gateway_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "runtime-data"
    data_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VIDEO_GATEWAY_DATA_DIR", str(data_dir))
    monkeypatch.setenv("VIDEO_GATEWAY_YOUTUBE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
    monkeypatch.setenv("VIDEO_GATEWAY_YOUTUBE_CLIENT_SECRET", "test-client-secret")
    monkeypatch.setenv(
        "VIDEO_GATEWAY_YOUTUBE_REDIRECT_URI",
        "http://localhost:8000/auth/google/callback",
    )
    monkeypatch.setenv("VIDEO_GATEWAY_YOUTUBE_VIDEO_ID", MANAGED_VIDEO_ID)
    monkeypatch.setenv("VIDEO_GATEWAY_LOG_LEVEL", "WARNING")
    return data_dir


@pytest.fixture
def client(
    gateway_env: Path,
    fake_youtube: FakeYouTubeClient,
) -> Iterator[TestClient]:
    _ = gateway_env
    reset_cached_dependencies()

    app = create_app()
    app.dependency_overrides[get_video_gateway] = lambda: VideoGateway(
        get_credential_store(),
        client_factory=fake_youtube.factory,
    )
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client

    reset_cached_dependencies()
