from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class VideoUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None


class AuthCallbackResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str


class AuthStatusResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    authenticated: bool
    message: str


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str
    error: str
    detail: Any = None
