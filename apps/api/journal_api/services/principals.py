"""Principal service layer."""

from dataclasses import replace
import logging

from fastapi.concurrency import run_in_threadpool

from journal_api.core.logging_safety import safe_log_identifier
from journal_api.core.security import CredentialHasher
from journal_api.domain.outcomes import Outcome
from journal_api.domain.roles import DEFAULT_ROLES, Role, sorted_roles
from journal_api.errors import ApiError
from journal_api.repositories.memory import DuplicateKeyError, PrincipalRecord
from journal_api.repositories.principals import PrincipalStore
from journal_api.schemas.principal import Principal
from journal_api.services.coordinator import ConsistencyCoordinator
from journal_api.services.journal import not_found_error, raise_for_outcome
from journal_api.services.roles import PrincipalSeed, RoleManager, SeedRequiredError

logger = logging.getLogger(__name__)


class PrincipalService:
    def __init__(
        self,
        *,
        principals: PrincipalStore,
        hasher: CredentialHasher,
        coordinator: ConsistencyCoordinator,
        role_manager: RoleManager,
    ) -> None:
        self._principals = principals
        self._hasher = hasher
        self._coordinator = coordinator
        self._role_manager = role_manager

    async def signup(self, *, username: str, password: str) -> Principal:
        credential_hash = await run_in_threadpool(self._hasher.hash, password)
        outcome = self._create_principal(username=username, credential_hash=credential_hash)
        raise_for_outcome(outcome)
        return self.to_principal(outcome.unwrap())

    def get_principal(self, *, username: str) -> Principal:
        record = self._principals.find_by_username(username)
        if record is None:
            raise not_found_error()
        return self.to_principal(record)

    async def change_password(self, *, username: str, password: str) -> Principal:
        credential_hash = await run_in_threadpool(self._hasher.hash, password)
        record = self._principals.find_by_username(username)
        if record is None:
            raise not_found_error()

        saved = self._principals.save(replace(record, credential_hash=credential_hash))
        logger.info("principal.password_changed principal_id=%s", safe_log_identifier(username, prefix="pid"))
        return self.to_principal(saved)

    def delete_user_cascade(self, *, username: str) -> None:
        raise_for_outcome(self._coordinator.delete_user(username=username))

    async def grant_role(self, *, username: str, role: Role, password: str | None) -> Principal:
        credential_hash = await run_in_threadpool(self._hasher.hash, password) if password else None
        try:
            record = self._role_manager.grant_role(
                username=username,
                role=role,
                seed=PrincipalSeed(credential_hash=credential_hash),
            )
        except SeedRequiredError as exc:
            raise ApiError(
                status_code=422,
                code="VALIDATION_ERROR",
                message="Invalid request payload",
                details={"errors": [{"loc": ["body", "password"], "msg": str(exc)}]},
            ) from exc
        return self.to_principal(record)

    def list_all_principals(self) -> list[Principal]:
        return [self.to_principal(record) for record in self._principals.list_all()]

    def _create_principal(self, *, username: str, credential_hash: str) -> Outcome[PrincipalRecord]:
        safe_principal_id = safe_log_identifier(username, prefix="pid")
        if self._principals.find_by_username(username) is not None:
            logger.warning("principal.signup_rejected principal_id=%s code=USERNAME_TAKEN", safe_principal_id)
            return Outcome.conflict()
        try:
            record = self._principals.create(
                username=username,
                credential_hash=credential_hash,
                roles=DEFAULT_ROLES,
            )
        except DuplicateKeyError:
            logger.warning("principal.signup_rejected principal_id=%s code=USERNAME_TAKEN", safe_principal_id)
            return Outcome.conflict()
        logger.info("principal.signed_up principal_id=%s", safe_principal_id)
        return Outcome.ok(record)

    @staticmethod
    def to_principal(record: PrincipalRecord) -> Principal:
        return Principal(
            id=record.id,
            username=record.username,
            roles=sorted_roles(record.roles),
            entry_ids=list(record.entry_ids),
        )
