"""Routes acting on the authenticated principal itself."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from journal_api.adapters.weather import WeatherClient, WeatherLookupError
from journal_api.core.logging_safety import safe_log_identifier
from journal_api.errors import ApiError
from journal_api.routes.dependencies import (
    get_authenticated_principal,
    get_principal_service,
    get_weather_client,
)
from journal_api.schemas.auth import AuthPrincipal
from journal_api.schemas.error import ErrorResponse, NoLeakNotFoundError, UpstreamWeatherError
from journal_api.schemas.greeting import Greeting
from journal_api.schemas.principal import Principal, UpdatePasswordRequest
from journal_api.services.principals import PrincipalService

router = APIRouter(prefix="/user", tags=["User"])
logger = logging.getLogger(__name__)


@router.get(
    "",
    response_model=Principal,
    responses={401: {"model": ErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
async def get_current_principal(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[PrincipalService, Depends(get_principal_service)],
) -> Principal:
    return service.get_principal(username=principal.username)


@router.put(
    "",
    response_model=Principal,
    responses={401: {"model": ErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
async def change_password(
    payload: UpdatePasswordRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[PrincipalService, Depends(get_principal_service)],
) -> Principal:
    return await service.change_password(username=principal.username, password=payload.password)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={401: {"model": ErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
async def delete_current_principal(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[PrincipalService, Depends(get_principal_service)],
) -> Response:
    service.delete_user_cascade(username=principal.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/greeting/{city}",
    response_model=Greeting,
    responses={502: {"model": UpstreamWeatherError}, 503: {"model": UpstreamWeatherError}},
)
async def greeting(
    city: Annotated[str, Path(min_length=1)],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    weather: Annotated[WeatherClient | None, Depends(get_weather_client)],
) -> Greeting:
    if weather is None:
        raise ApiError(status_code=503, code="WEATHER_UNAVAILABLE", message="Weather lookup is not configured")

    try:
        feels_like = await weather.feels_like(city)
    except WeatherLookupError as exc:
        logger.warning(
            "weather.lookup_failed principal_id=%s reason=%s",
            safe_log_identifier(principal.username, prefix="pid"),
            type(exc.__cause__).__name__ if exc.__cause__ is not None else "unknown",
        )
        raise ApiError(status_code=502, code="WEATHER_LOOKUP_FAILED", message="Weather lookup failed") from exc

    return Greeting(greeting=f"Hi {principal.username}!", city=city, feels_like=feels_like)
