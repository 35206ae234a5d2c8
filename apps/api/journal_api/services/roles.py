"""Role grants and admin bootstrap."""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging

from journal_api.core.logging_safety import safe_log_identifier
from journal_api.core.security import CredentialHasher
from journal_api.domain.roles import Role
from journal_api.repositories.memory import DuplicateKeyError, PrincipalRecord, WriteConflictError
from journal_api.repositories.principals import PrincipalStore

logger = logging.getLogger(__name__)

_MAX_GRANT_ATTEMPTS = 2


class SeedRequiredError(ValueError):
    """Raised when a grant has to create the principal but no credential was supplied."""


@dataclass(frozen=True, slots=True)
class PrincipalSeed:
    """Material for creating a principal that does not exist yet."""

    credential_hash: str | None = None


class RoleManager:
    """Grants roles on principals; touches the principal collection only."""

    def __init__(self, principals: PrincipalStore) -> None:
        self._principals = principals

    def grant_role(self, *, username: str, role: Role, seed: PrincipalSeed) -> PrincipalRecord:
        """Ensure ``username`` holds ``role``.

        A missing principal is created from ``seed`` with ``{USER, role}``. A
        principal that already holds the role is returned without a write.
        """
        safe_principal_id = safe_log_identifier(username, prefix="pid")
        for attempt in range(1, _MAX_GRANT_ATTEMPTS + 1):
            existing = self._principals.find_by_username(username)
            if existing is None:
                if not seed.credential_hash:
                    raise SeedRequiredError("password is required to create a new principal")
                try:
                    created = self._principals.create(
                        username=username,
                        credential_hash=seed.credential_hash,
                        roles={Role.USER, role},
                    )
                except DuplicateKeyError:
                    # Lost a race with a concurrent signup; re-read and take the existing branch.
                    if attempt == _MAX_GRANT_ATTEMPTS:
                        raise
                    continue
                logger.info("roles.principal_created principal_id=%s role=%s", safe_principal_id, role.value)
                return created

            if role in existing.roles:
                logger.info("roles.unchanged principal_id=%s role=%s", safe_principal_id, role.value)
                return existing

            try:
                updated = self._principals.save(replace(existing, roles=existing.roles | {role}))
            except WriteConflictError:
                if attempt == _MAX_GRANT_ATTEMPTS:
                    raise
                continue
            logger.info("roles.granted principal_id=%s role=%s", safe_principal_id, role.value)
            return updated

        raise RuntimeError("unreachable")


def bootstrap_admin(principals: PrincipalStore, hasher: CredentialHasher, *, username: str, password: str) -> bool:
    """Seed the first administrator directly; returns False when it already exists."""
    if principals.find_by_username(username) is not None:
        return False
    try:
        principals.create(
            username=username,
            credential_hash=hasher.hash(password),
            roles={Role.USER, Role.ADMIN},
        )
    except DuplicateKeyError:
        return False
    logger.info("roles.admin_bootstrapped principal_id=%s", safe_log_identifier(username, prefix="pid"))
    return True
