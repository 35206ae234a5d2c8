"""Dependency wiring for routes."""

from __future__ import annotations

from functools import lru_cache
import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBasic, HTTPBasicCredentials, HTTPBearer

from journal_api.adapters.auth import (
    AuthVerificationError,
    FirebaseTokenVerifier,
    MockTokenVerifier,
    StoredPasswordVerifier,
    TokenVerifier,
)
from journal_api.adapters.weather import WeatherClient
from journal_api.core.config import Settings, get_settings
from journal_api.core.logging_safety import safe_log_identifier
from journal_api.core.security import CredentialHasher
from journal_api.domain.authorization import AuthorizationGuard
from journal_api.domain.roles import Role
from journal_api.errors import ApiError
from journal_api.repositories.entries import EntryStore
from journal_api.repositories.memory import InMemoryDocumentStore
from journal_api.repositories.principals import PrincipalStore
from journal_api.schemas.auth import AuthPrincipal
from journal_api.services.coordinator import ConsistencyCoordinator
from journal_api.services.integrity import IntegrityScanner
from journal_api.services.journal import JournalService
from journal_api.services.principals import PrincipalService
from journal_api.services.roles import RoleManager

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
basic_scheme = HTTPBasic(auto_error=False, scheme_name="basicAuth")
logger = logging.getLogger(__name__)


def _auth_error(message: str) -> ApiError:
    return ApiError(status_code=401, code="UNAUTHORIZED", message=message)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_store(request: Request) -> InMemoryDocumentStore:
    return request.app.state.store


@lru_cache(maxsize=4)
def _hasher_for_rounds(rounds: int) -> CredentialHasher:
    return CredentialHasher(rounds=rounds)


def get_credential_hasher(settings: Annotated[Settings, Depends(get_settings)]) -> CredentialHasher:
    return _hasher_for_rounds(settings.password_hash_rounds)


def get_principal_store(store: Annotated[InMemoryDocumentStore, Depends(get_store)]) -> PrincipalStore:
    return PrincipalStore(store)


def get_entry_store(store: Annotated[InMemoryDocumentStore, Depends(get_store)]) -> EntryStore:
    return EntryStore(store)


def get_token_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> TokenVerifier:
    """Resolve bearer provider adapter from configuration."""
    if settings.auth_provider == "firebase":
        return FirebaseTokenVerifier(
            project_id=settings.firebase_project_id,
            audience=settings.firebase_audience,
            username_claim=settings.firebase_username_claim,
        )
    return MockTokenVerifier()


def get_password_verifier(
    principals: Annotated[PrincipalStore, Depends(get_principal_store)],
    hasher: Annotated[CredentialHasher, Depends(get_credential_hasher)],
) -> StoredPasswordVerifier:
    return StoredPasswordVerifier(principals, hasher)


async def get_authenticated_principal(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    bearer: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    basic: Annotated[HTTPBasicCredentials | None, Security(basic_scheme)],
    token_verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
    password_verifier: Annotated[StoredPasswordVerifier, Depends(get_password_verifier)],
) -> AuthPrincipal:
    """Resolve the request's principal identity and attach it to request state."""
    correlation_id = _request_correlation_id(request)
    safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")

    try:
        if settings.auth_provider == "basic":
            if basic is None or not basic.username:
                raise AuthVerificationError("Invalid or missing basic credentials")
            principal = await password_verifier.verify_password(basic.username, basic.password)
        else:
            if bearer is None or bearer.scheme.lower() != "bearer" or not bearer.credentials:
                raise AuthVerificationError("Invalid or missing bearer token")
            principal = token_verifier.verify_token(bearer.credentials)
    except AuthVerificationError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s provider=%s",
            safe_correlation_id,
            request.method,
            request.url.path,
            settings.auth_provider,
        )
        raise _auth_error(str(exc) or "Unauthenticated") from exc

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s",
        safe_correlation_id,
        request.method,
        request.url.path,
        safe_log_identifier(principal.username, prefix="pid"),
    )
    request.state.auth_principal = principal
    return principal


async def require_admin(
    request: Request,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    principals: Annotated[PrincipalStore, Depends(get_principal_store)],
) -> AuthPrincipal:
    """Admin gate; roles are read from the store, never from the credential."""
    record = principals.find_by_username(principal.username)
    if record is None or Role.ADMIN not in record.roles:
        logger.warning(
            "auth.admin_required correlation_id=%s path=%s principal_id=%s",
            safe_log_identifier(_request_correlation_id(request), prefix="cid"),
            request.url.path,
            safe_log_identifier(principal.username, prefix="pid"),
        )
        raise ApiError(status_code=403, code="FORBIDDEN", message="Administrator role required")
    return principal


def get_coordinator(
    store: Annotated[InMemoryDocumentStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ConsistencyCoordinator:
    entries = EntryStore(store)
    return ConsistencyCoordinator(
        store=store,
        principals=PrincipalStore(store),
        entries=entries,
        guard=AuthorizationGuard(entries),
        write_conflict_retries=settings.write_conflict_retries,
    )


def get_journal_service(
    store: Annotated[InMemoryDocumentStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    coordinator: Annotated[ConsistencyCoordinator, Depends(get_coordinator)],
) -> JournalService:
    entries = EntryStore(store)
    return JournalService(
        coordinator=coordinator,
        principals=PrincipalStore(store),
        entries=entries,
        guard=AuthorizationGuard(entries),
        conceal_forbidden=settings.conceal_forbidden,
    )


def get_principal_service(
    principals: Annotated[PrincipalStore, Depends(get_principal_store)],
    hasher: Annotated[CredentialHasher, Depends(get_credential_hasher)],
    coordinator: Annotated[ConsistencyCoordinator, Depends(get_coordinator)],
) -> PrincipalService:
    return PrincipalService(
        principals=principals,
        hasher=hasher,
        coordinator=coordinator,
        role_manager=RoleManager(principals),
    )


def get_integrity_scanner(
    principals: Annotated[PrincipalStore, Depends(get_principal_store)],
    entries: Annotated[EntryStore, Depends(get_entry_store)],
) -> IntegrityScanner:
    return IntegrityScanner(principals, entries)


def get_weather_client(settings: Annotated[Settings, Depends(get_settings)]) -> WeatherClient | None:
    if not settings.weather_api_key:
        return None
    return WeatherClient(
        api_key=settings.weather_api_key,
        base_url=settings.weather_base_url,
        timeout_seconds=settings.weather_timeout_seconds,
    )
