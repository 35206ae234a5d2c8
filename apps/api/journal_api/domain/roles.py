"""Role tags and role-set helpers."""

from collections.abc import Iterable
from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


DEFAULT_ROLES: frozenset[Role] = frozenset({Role.USER})


def normalize_roles(roles: Iterable[Role | str]) -> frozenset[Role]:
    """Coerce role tags into a closed role set that always contains USER.

    Unknown tags raise ``ValueError`` instead of being silently kept.
    """
    normalized = {role if isinstance(role, Role) else Role(str(role).strip().upper()) for role in roles}
    normalized.add(Role.USER)
    return frozenset(normalized)


def sorted_roles(roles: Iterable[Role]) -> list[Role]:
    return sorted(roles, key=lambda role: role.value)
