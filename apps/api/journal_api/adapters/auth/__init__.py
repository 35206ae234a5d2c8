"""Auth verifier adapters."""

from .base import AuthVerificationError, PasswordVerifier, TokenVerifier
from .basic_auth import StoredPasswordVerifier
from .firebase_auth import FirebaseTokenVerifier
from .mock_auth import MockTokenVerifier

__all__ = [
    "AuthVerificationError",
    "PasswordVerifier",
    "TokenVerifier",
    "FirebaseTokenVerifier",
    "MockTokenVerifier",
    "StoredPasswordVerifier",
]
