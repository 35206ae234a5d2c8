"""Credential hashing.

The core never compares raw credentials itself: signup and role-grant seeding
hash through :class:`CredentialHasher`, and only the HTTP Basic adapter verifies.
"""

from __future__ import annotations

from passlib.context import CryptContext

# bcrypt only looks at the first 72 bytes of a secret.
_BCRYPT_MAX_BYTES = 72


def _truncate(secret: str) -> str:
    raw = secret.encode("utf-8")
    if len(raw) <= _BCRYPT_MAX_BYTES:
        return secret
    return raw[:_BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


class CredentialHasher:
    def __init__(self, rounds: int = 12) -> None:
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, secret: str) -> str:
        return self._context.hash(_truncate(secret))

    def verify(self, secret: str, credential_hash: str) -> bool:
        if not credential_hash:
            return False
        try:
            return self._context.verify(_truncate(secret), credential_hash)
        except (ValueError, TypeError):
            # Unparseable stored hash.
            return False
