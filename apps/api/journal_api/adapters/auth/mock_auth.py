"""Mock auth verifier for local development and tests."""

from journal_api.adapters.auth.base import AuthVerificationError, TokenVerifier
from journal_api.schemas.auth import AuthPrincipal


class MockTokenVerifier(TokenVerifier):
    """Accepts deterministic test tokens of the form ``test:<username>``."""

    def verify_token(self, token: str) -> AuthPrincipal:
        prefix, separator, username = token.partition(":")
        if prefix != "test" or not separator:
            raise AuthVerificationError("Invalid bearer token")

        username = username.strip()
        if not username:
            raise AuthVerificationError("Bearer token missing username")

        return AuthPrincipal(username=username)


__all__ = ["MockTokenVerifier"]
