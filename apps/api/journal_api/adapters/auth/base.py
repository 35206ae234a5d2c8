"""Authentication provider interfaces."""

from abc import ABC, abstractmethod

from journal_api.schemas.auth import AuthPrincipal


class AuthVerificationError(Exception):
    """Raised when a credential cannot be verified or normalized."""


class TokenVerifier(ABC):
    """Provider-neutral bearer token verification interface."""

    @abstractmethod
    def verify_token(self, token: str) -> AuthPrincipal:
        """Verify token and return the resolved principal identity."""


class PasswordVerifier(ABC):
    """Username/password verification interface (HTTP Basic)."""

    @abstractmethod
    async def verify_password(self, username: str, password: str) -> AuthPrincipal:
        """Check a username/password pair and return the resolved principal identity."""


__all__ = ["AuthVerificationError", "PasswordVerifier", "TokenVerifier"]
