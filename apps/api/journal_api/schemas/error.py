"""API error response schemas."""

from typing import Any
from typing import Literal

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class NoLeakNotFoundError(BaseModel):
    code: Literal["RESOURCE_NOT_FOUND"]
    message: str


class ForbiddenError(BaseModel):
    code: Literal["FORBIDDEN"]
    message: str


class UsernameTakenError(BaseModel):
    code: Literal["USERNAME_TAKEN"]
    message: str


class ServerFailureError(BaseModel):
    code: Literal["TRANSACTION_ABORTED", "INTERNAL_ERROR"]
    message: str


class UpstreamWeatherError(BaseModel):
    code: Literal["WEATHER_LOOKUP_FAILED", "WEATHER_UNAVAILABLE"]
    message: str
