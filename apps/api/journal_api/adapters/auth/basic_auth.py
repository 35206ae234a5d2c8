"""HTTP Basic verifier backed by the principal store."""

from fastapi.concurrency import run_in_threadpool

from journal_api.adapters.auth.base import AuthVerificationError, PasswordVerifier
from journal_api.core.security import CredentialHasher
from journal_api.repositories.principals import PrincipalStore
from journal_api.schemas.auth import AuthPrincipal


class StoredPasswordVerifier(PasswordVerifier):
    def __init__(self, principals: PrincipalStore, hasher: CredentialHasher) -> None:
        self._principals = principals
        self._hasher = hasher

    async def verify_password(self, username: str, password: str) -> AuthPrincipal:
        record = self._principals.find_by_username(username)
        if record is None:
            raise AuthVerificationError("Invalid username or password")
        # bcrypt is CPU-bound; keep it off the event loop.
        matches = await run_in_threadpool(self._hasher.verify, password, record.credential_hash)
        if not matches:
            raise AuthVerificationError("Invalid username or password")
        return AuthPrincipal(username=record.username)


__all__ = ["StoredPasswordVerifier"]
