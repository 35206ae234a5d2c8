"""Principal repository."""

from __future__ import annotations

from uuid import uuid4

from journal_api.domain.roles import Role, normalize_roles
from journal_api.repositories.memory import InMemoryDocumentStore, PrincipalRecord


class PrincipalStore:
    def __init__(self, store: InMemoryDocumentStore) -> None:
        self._store = store

    def create(self, *, username: str, credential_hash: str, roles: set[Role] | frozenset[Role]) -> PrincipalRecord:
        """Insert a new principal; raises ``DuplicateKeyError`` for a taken username."""
        record = PrincipalRecord(
            id=str(uuid4()),
            username=username,
            credential_hash=credential_hash,
            roles=normalize_roles(roles),
            entry_ids=[],
        )
        return self._store.insert_principal(record)

    def get(self, principal_id: str) -> PrincipalRecord | None:
        return self._store.get_principal(principal_id)

    def find_by_username(self, username: str) -> PrincipalRecord | None:
        return self._store.find_principal_by_username(username)

    def save(self, record: PrincipalRecord) -> PrincipalRecord:
        """Persist ``record`` if nobody wrote the document since it was loaded."""
        return self._store.replace_principal(record, expected_version=record.version)

    def restore(self, record: PrincipalRecord) -> None:
        """Put back a previously loaded copy unconditionally (compensation path)."""
        if self._store.get_principal(record.id) is None:
            self._store.insert_principal(record)
        else:
            self._store.replace_principal(record, expected_version=None)

    def delete(self, principal_id: str) -> bool:
        return self._store.delete_principal(principal_id)

    def list_all(self) -> list[PrincipalRecord]:
        principals = self._store.list_principals()
        principals.sort(key=lambda record: record.username)
        return principals
