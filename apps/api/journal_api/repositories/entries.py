"""Journal entry repository."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from journal_api.repositories.memory import EntryRecord, InMemoryDocumentStore


class EntryStore:
    def __init__(self, store: InMemoryDocumentStore) -> None:
        self._store = store

    def create(self, *, title: str, content: str, created_at: datetime) -> EntryRecord:
        record = EntryRecord(id=str(uuid4()), title=title, content=content, created_at=created_at)
        return self._store.insert_entry(record)

    def get(self, entry_id: str) -> EntryRecord | None:
        return self._store.get_entry(entry_id)

    def exists(self, entry_id: str) -> bool:
        return self._store.get_entry(entry_id) is not None

    def get_many(self, entry_ids: list[str]) -> tuple[list[EntryRecord], list[str]]:
        """Resolve ids in order; returns ``(found, missing_ids)``."""
        found: list[EntryRecord] = []
        missing: list[str] = []
        for entry_id in entry_ids:
            record = self._store.get_entry(entry_id)
            if record is None:
                missing.append(entry_id)
            else:
                found.append(record)
        return found, missing

    def save(self, record: EntryRecord) -> EntryRecord:
        return self._store.replace_entry(record)

    def restore(self, record: EntryRecord) -> None:
        if self._store.get_entry(record.id) is None:
            self._store.insert_entry(record)
        else:
            self._store.replace_entry(record)

    def delete(self, entry_id: str) -> bool:
        return self._store.delete_entry(entry_id)

    def list_all(self) -> list[EntryRecord]:
        return self._store.list_entries()
