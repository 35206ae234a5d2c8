"""Administrator routes; every route requires the ADMIN role."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from journal_api.routes.dependencies import (
    get_integrity_scanner,
    get_journal_service,
    get_principal_service,
    require_admin,
)
from journal_api.schemas.entry import JournalEntry
from journal_api.schemas.error import ErrorResponse, ForbiddenError, NoLeakNotFoundError
from journal_api.schemas.integrity import IntegrityReport
from journal_api.schemas.principal import GrantRoleRequest, Principal
from journal_api.services.integrity import IntegrityScanner
from journal_api.services.journal import JournalService
from journal_api.services.principals import PrincipalService

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}, 403: {"model": ForbiddenError}},
)


@router.get("/users", response_model=list[Principal])
async def list_principals(
    service: Annotated[PrincipalService, Depends(get_principal_service)],
) -> list[Principal]:
    return service.list_all_principals()


@router.get("/entries", response_model=list[JournalEntry])
async def list_all_entries(
    service: Annotated[JournalService, Depends(get_journal_service)],
) -> list[JournalEntry]:
    return service.list_all_entries()


@router.post("/roles", response_model=Principal)
async def grant_role(
    payload: GrantRoleRequest,
    service: Annotated[PrincipalService, Depends(get_principal_service)],
) -> Principal:
    return await service.grant_role(username=payload.username, role=payload.role, password=payload.password)


@router.delete(
    "/users/{username}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": NoLeakNotFoundError}},
)
async def delete_principal(
    username: Annotated[str, Path(min_length=1)],
    service: Annotated[PrincipalService, Depends(get_principal_service)],
) -> Response:
    service.delete_user_cascade(username=username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/integrity", response_model=IntegrityReport)
async def integrity_report(
    scanner: Annotated[IntegrityScanner, Depends(get_integrity_scanner)],
) -> IntegrityReport:
    return scanner.scan()
