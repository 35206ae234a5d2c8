"""Journal entry routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from journal_api.routes.dependencies import get_authenticated_principal, get_journal_service
from journal_api.schemas.auth import AuthPrincipal
from journal_api.schemas.entry import CreateEntryRequest, JournalEntry, UpdateEntryRequest
from journal_api.schemas.error import ErrorResponse, ForbiddenError, NoLeakNotFoundError, ServerFailureError
from journal_api.services.journal import JournalService

router = APIRouter(prefix="/journal", tags=["Journal"])

_ENTRY_ERRORS = {
    401: {"model": ErrorResponse},
    403: {"model": ForbiddenError},
    404: {"model": NoLeakNotFoundError},
    500: {"model": ServerFailureError},
}


@router.post(
    "",
    response_model=JournalEntry,
    status_code=status.HTTP_201_CREATED,
    responses={401: {"model": ErrorResponse}, 404: {"model": NoLeakNotFoundError}, 500: {"model": ServerFailureError}},
)
async def create_entry(
    payload: CreateEntryRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JournalService, Depends(get_journal_service)],
) -> JournalEntry:
    return service.create_entry(username=principal.username, title=payload.title, content=payload.content)


@router.get(
    "",
    response_model=list[JournalEntry],
    responses={401: {"model": ErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
async def list_entries(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JournalService, Depends(get_journal_service)],
) -> list[JournalEntry]:
    return service.list_entries(username=principal.username)


@router.get("/{entryId}", response_model=JournalEntry, responses=_ENTRY_ERRORS)
async def get_entry(
    entry_id: Annotated[str, Path(alias="entryId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JournalService, Depends(get_journal_service)],
) -> JournalEntry:
    return service.get_entry(username=principal.username, entry_id=entry_id)


@router.put("/{entryId}", response_model=JournalEntry, responses=_ENTRY_ERRORS)
async def update_entry(
    entry_id: Annotated[str, Path(alias="entryId")],
    payload: UpdateEntryRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JournalService, Depends(get_journal_service)],
) -> JournalEntry:
    return service.update_entry(
        username=principal.username,
        entry_id=entry_id,
        title=payload.title,
        content=payload.content,
    )


@router.delete("/{entryId}", status_code=status.HTTP_204_NO_CONTENT, responses=_ENTRY_ERRORS)
async def delete_entry(
    entry_id: Annotated[str, Path(alias="entryId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JournalService, Depends(get_journal_service)],
) -> Response:
    service.delete_entry(username=principal.username, entry_id=entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
