"""FastAPI application entrypoint."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from journal_api.core.config import get_settings
from journal_api.core.logging_safety import safe_log_identifier, safe_log_identifiers
from journal_api.core.security import CredentialHasher
from journal_api.errors import ApiError, InconsistentStateError, TransactionAborted
from journal_api.repositories.entries import EntryStore
from journal_api.repositories.memory import InMemoryDocumentStore, WriteConflictError
from journal_api.repositories.principals import PrincipalStore
from journal_api.routes import admin_router, journal_router, public_router, users_router
from journal_api.schemas.error import ErrorResponse, ServerFailureError
from journal_api.services.integrity import IntegrityScanner
from journal_api.services.roles import bootstrap_admin

logger = logging.getLogger(__name__)

_ERROR_RESPONSE_REF = "#/components/schemas/ErrorResponse"


def _apply_validation_error_schema(schema: dict) -> None:
    """Document 422 responses with the shared error payload instead of FastAPI's default."""
    components = schema.setdefault("components", {}).setdefault("schemas", {})
    if "ErrorResponse" not in components:
        components["ErrorResponse"] = ErrorResponse.model_json_schema()

    for path_item in schema.get("paths", {}).values():
        for operation in path_item.values():
            if not isinstance(operation, dict):
                continue
            responses = operation.get("responses", {})
            if "422" not in responses:
                continue
            responses["422"] = {
                "description": "Validation Error",
                "content": {"application/json": {"schema": {"$ref": _ERROR_RESPONSE_REF}}},
            }

    components.pop("HTTPValidationError", None)
    components.pop("ValidationError", None)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    store: InMemoryDocumentStore = app.state.store
    principals = PrincipalStore(store)

    if settings.bootstrap_admin_username and settings.bootstrap_admin_password:
        bootstrap_admin(
            principals,
            CredentialHasher(rounds=settings.password_hash_rounds),
            username=settings.bootstrap_admin_username,
            password=settings.bootstrap_admin_password,
        )

    if settings.integrity_scan_on_startup:
        app.state.integrity_report = IntegrityScanner(principals, EntryStore(store)).scan()

    yield


def create_app(store: InMemoryDocumentStore | None = None) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Journal API", version="0.1.0", lifespan=_lifespan)
    app.state.store = store if store is not None else InMemoryDocumentStore(
        supports_transactions=settings.store_transactions,
    )
    app.state.integrity_report = None

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        payload = ErrorResponse(
            code="VALIDATION_ERROR",
            message="Invalid request payload",
            details={
                "errors": [
                    {"loc": [str(part) for part in error.get("loc", ())], "msg": str(error.get("msg", ""))}
                    for error in exc.errors()
                ]
            },
        )
        return JSONResponse(status_code=422, content=payload.model_dump(mode="json"))

    @app.exception_handler(WriteConflictError)
    async def handle_write_conflict(_, exc: WriteConflictError) -> JSONResponse:
        logger.warning("store.write_conflict document_id=%s", safe_log_identifier(exc.document_id, prefix="did"))
        payload = ErrorResponse(code="WRITE_CONFLICT", message="Resource was modified concurrently; retry the request.")
        return JSONResponse(status_code=409, content=payload.model_dump(mode="json", exclude_none=True))

    @app.exception_handler(TransactionAborted)
    async def handle_transaction_aborted(_, exc: TransactionAborted) -> JSONResponse:
        logger.error(
            "transaction.aborted operation=%s reason=%s",
            exc.operation,
            type(exc.__cause__).__name__ if exc.__cause__ is not None else "unknown",
        )
        payload = ServerFailureError(code="TRANSACTION_ABORTED", message="Operation could not be completed")
        return JSONResponse(status_code=500, content=payload.model_dump(mode="json"))

    @app.exception_handler(InconsistentStateError)
    async def handle_inconsistent_state(_, exc: InconsistentStateError) -> JSONResponse:
        logger.critical(
            "integrity.violation_surfaced principal_id=%s entry_ids=%s message=%s",
            safe_log_identifier(exc.username, prefix="pid"),
            safe_log_identifiers(exc.entry_ids, prefix="eid"),
            exc,
        )
        payload = ServerFailureError(code="INTERNAL_ERROR", message="Operation could not be completed")
        return JSONResponse(status_code=500, content=payload.model_dump(mode="json"))

    app.include_router(public_router)
    app.include_router(journal_router)
    app.include_router(users_router)
    app.include_router(admin_router)

    def custom_openapi() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        _apply_validation_error_schema(schema)
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi

    return app


app = create_app()
