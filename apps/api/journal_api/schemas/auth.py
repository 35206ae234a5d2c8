"""Authentication schemas."""

from pydantic import BaseModel, Field


class AuthPrincipal(BaseModel):
    """Principal identity resolved by the authentication gateway.

    Only the username is trusted from the credential; roles and owned entries
    are always read from the principal store.
    """

    username: str = Field(min_length=1)
