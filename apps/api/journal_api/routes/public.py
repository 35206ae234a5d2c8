"""Unauthenticated routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from journal_api.routes.dependencies import get_principal_service
from journal_api.schemas.error import UsernameTakenError
from journal_api.schemas.principal import Principal, SignupRequest
from journal_api.services.principals import PrincipalService

router = APIRouter(prefix="/public", tags=["Public"])


@router.post(
    "/signup",
    response_model=Principal,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": UsernameTakenError}},
)
async def signup(
    payload: SignupRequest,
    service: Annotated[PrincipalService, Depends(get_principal_service)],
) -> Principal:
    return await service.signup(username=payload.username, password=payload.password)


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}
