"""In-memory document store backing principals and journal entries."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Literal

from journal_api.domain.roles import Role

logger = logging.getLogger(__name__)

Collection = Literal["principals", "entries"]
WriteOperation = Literal["insert", "replace", "delete"]

_COLLECTIONS: tuple[Collection, ...] = ("principals", "entries")
_WRITE_OPERATIONS: tuple[WriteOperation, ...] = ("insert", "replace", "delete")


class DuplicateKeyError(Exception):
    """Raised when an insert violates the unique username index."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Duplicate key: {key}")


class WriteConflictError(Exception):
    """Raised when a compare-and-swap replace observes a newer document version."""

    def __init__(self, document_id: str, expected_version: int, current_version: int) -> None:
        self.document_id = document_id
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Write conflict on {document_id}: expected version {expected_version}, found {current_version}"
        )


@dataclass(slots=True)
class PrincipalRecord:
    id: str
    username: str
    credential_hash: str
    roles: frozenset[Role]
    entry_ids: list[str] = field(default_factory=list)
    version: int = 0


@dataclass(slots=True)
class EntryRecord:
    id: str
    title: str
    content: str
    created_at: datetime


@dataclass(slots=True)
class _Failpoint:
    collection: Collection
    operation: WriteOperation
    message: str


@dataclass(slots=True)
class InMemoryDocumentStore:
    """Two independent collections with single-document atomic writes.

    ``supports_transactions`` controls whether :meth:`transaction` is available;
    without it callers have to compensate partial writes themselves.
    """

    principals: dict[str, PrincipalRecord] = field(default_factory=dict)
    entries: dict[str, EntryRecord] = field(default_factory=dict)
    principal_ids_by_username: dict[str, str] = field(default_factory=dict)
    principal_write_count: int = 0
    entry_write_count: int = 0
    supports_transactions: bool = True
    failpoints: list[_Failpoint] = field(default_factory=list)
    _in_transaction: bool = False

    # -- failure injection -------------------------------------------------

    def fail_next(
        self,
        collection: Collection,
        operation: WriteOperation,
        message: str = "Injected store write failure",
    ) -> None:
        """Make the next matching write raise ``RuntimeError`` once."""
        if collection not in _COLLECTIONS or operation not in _WRITE_OPERATIONS:
            raise ValueError(f"Unknown failpoint {collection}.{operation}")
        self.failpoints.append(_Failpoint(collection=collection, operation=operation, message=message))

    def _maybe_raise_failpoint(self, collection: Collection, operation: WriteOperation) -> None:
        for index, failpoint in enumerate(self.failpoints):
            if failpoint.collection == collection and failpoint.operation == operation:
                del self.failpoints[index]
                raise RuntimeError(failpoint.message)

    # -- transactions ------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[InMemoryDocumentStore]:
        """Run a block of writes that is committed entirely or not at all."""
        if not self.supports_transactions:
            raise RuntimeError("Document store does not support multi-document transactions")
        if self._in_transaction:
            raise RuntimeError("Nested transactions are not supported")

        snapshot = (
            deepcopy(self.principals),
            deepcopy(self.entries),
            dict(self.principal_ids_by_username),
            self.principal_write_count,
            self.entry_write_count,
        )
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            (
                self.principals,
                self.entries,
                self.principal_ids_by_username,
                self.principal_write_count,
                self.entry_write_count,
            ) = snapshot
            logger.warning("store.transaction_aborted")
            raise
        finally:
            self._in_transaction = False

    # -- principals --------------------------------------------------------

    def insert_principal(self, record: PrincipalRecord) -> PrincipalRecord:
        self._maybe_raise_failpoint("principals", "insert")
        if record.username in self.principal_ids_by_username:
            raise DuplicateKeyError(record.username)
        if record.id in self.principals:
            raise DuplicateKeyError(record.id)

        stored = deepcopy(record)
        stored.version = record.version + 1
        self.principals[stored.id] = stored
        self.principal_ids_by_username[stored.username] = stored.id
        self.principal_write_count += 1
        return deepcopy(stored)

    def get_principal(self, principal_id: str) -> PrincipalRecord | None:
        record = self.principals.get(principal_id)
        return deepcopy(record) if record is not None else None

    def find_principal_by_username(self, username: str) -> PrincipalRecord | None:
        principal_id = self.principal_ids_by_username.get(username)
        if principal_id is None:
            return None
        return self.get_principal(principal_id)

    def replace_principal(self, record: PrincipalRecord, *, expected_version: int | None) -> PrincipalRecord:
        """Replace a principal document; with ``expected_version`` this is a compare-and-swap."""
        self._maybe_raise_failpoint("principals", "replace")
        current = self.principals.get(record.id)
        if current is None:
            raise KeyError(record.id)
        if expected_version is not None and current.version != expected_version:
            raise WriteConflictError(record.id, expected_version, current.version)
        if record.username != current.username:
            raise ValueError("Principal username is immutable")

        stored = deepcopy(record)
        stored.version = current.version + 1
        self.principals[stored.id] = stored
        self.principal_write_count += 1
        return deepcopy(stored)

    def delete_principal(self, principal_id: str) -> bool:
        self._maybe_raise_failpoint("principals", "delete")
        record = self.principals.pop(principal_id, None)
        if record is None:
            return False
        self.principal_ids_by_username.pop(record.username, None)
        self.principal_write_count += 1
        return True

    def list_principals(self) -> list[PrincipalRecord]:
        return [deepcopy(record) for record in self.principals.values()]

    # -- entries -----------------------------------------------------------

    def insert_entry(self, record: EntryRecord) -> EntryRecord:
        self._maybe_raise_failpoint("entries", "insert")
        if record.id in self.entries:
            raise DuplicateKeyError(record.id)
        self.entries[record.id] = deepcopy(record)
        self.entry_write_count += 1
        return deepcopy(record)

    def get_entry(self, entry_id: str) -> EntryRecord | None:
        record = self.entries.get(entry_id)
        return deepcopy(record) if record is not None else None

    def replace_entry(self, record: EntryRecord) -> EntryRecord:
        self._maybe_raise_failpoint("entries", "replace")
        if record.id not in self.entries:
            raise KeyError(record.id)
        self.entries[record.id] = deepcopy(record)
        self.entry_write_count += 1
        return deepcopy(record)

    def delete_entry(self, entry_id: str) -> bool:
        self._maybe_raise_failpoint("entries", "delete")
        if self.entries.pop(entry_id, None) is None:
            return False
        self.entry_write_count += 1
        return True

    def list_entries(self) -> list[EntryRecord]:
        entries = [deepcopy(record) for record in self.entries.values()]
        entries.sort(key=lambda record: record.created_at)
        return entries
