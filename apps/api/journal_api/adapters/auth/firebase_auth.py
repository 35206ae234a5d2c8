"""Firebase Auth token verifier adapter."""

from __future__ import annotations

from typing import Any

from journal_api.adapters.auth.base import AuthVerificationError, TokenVerifier
from journal_api.schemas.auth import AuthPrincipal

# Claims tried, in order, after the configured username claim.
_FALLBACK_IDENTITY_CLAIMS = ("uid", "sub")


class FirebaseTokenVerifier(TokenVerifier):
    """Verifies Firebase ID tokens and maps one claim onto the journal username.

    Only the identity is taken from the token; roles always come from the
    principal store.
    """

    def __init__(self, project_id: str | None, audience: str | None, username_claim: str = "uid") -> None:
        self._project_id = project_id
        self._audience = audience
        self._username_claim = username_claim

    def verify_token(self, token: str) -> AuthPrincipal:
        claims = self._decode(token)
        self._check_audience_and_issuer(claims)
        return AuthPrincipal(username=self._username_from(claims))

    @staticmethod
    def _decode(token: str) -> dict[str, Any]:
        try:
            import firebase_admin
            from firebase_admin import auth as firebase_auth
        except ImportError as exc:  # pragma: no cover - depends on optional package
            raise AuthVerificationError("Firebase auth verifier is unavailable") from exc

        if not firebase_admin._apps:
            firebase_admin.initialize_app()

        try:
            return firebase_auth.verify_id_token(token, check_revoked=True)
        except Exception as exc:  # pragma: no cover - provider exception surface
            raise AuthVerificationError("Invalid bearer token") from exc

    def _check_audience_and_issuer(self, claims: dict[str, Any]) -> None:
        audience = str(claims.get("aud", ""))
        if self._audience and audience != self._audience:
            raise AuthVerificationError("Invalid bearer token audience")

        if self._project_id:
            issuer = str(claims.get("iss", ""))
            if self._project_id not in issuer and audience != self._project_id:
                raise AuthVerificationError("Invalid bearer token issuer")

    def _username_from(self, claims: dict[str, Any]) -> str:
        for claim in (self._username_claim, *_FALLBACK_IDENTITY_CLAIMS):
            username = str(claims.get(claim) or "").strip()
            if username:
                return username
        raise AuthVerificationError("Bearer token missing user identity")


__all__ = ["FirebaseTokenVerifier"]
