"""Principal API schemas."""

from pydantic import BaseModel, Field

from journal_api.domain.roles import Role

_USERNAME_PATTERN = r"^[A-Za-z0-9_.@-]+$"


class SignupRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64, pattern=_USERNAME_PATTERN)
    password: str = Field(min_length=1)


class UpdatePasswordRequest(BaseModel):
    password: str = Field(min_length=1)


class GrantRoleRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64, pattern=_USERNAME_PATTERN)
    role: Role
    password: str | None = Field(
        default=None,
        min_length=1,
        description="Required only when the principal has to be created.",
    )


class Principal(BaseModel):
    id: str
    username: str
    roles: list[Role]
    entry_ids: list[str]
