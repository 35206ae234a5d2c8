"""Entry drafts and partial updates."""

from __future__ import annotations

from dataclasses import dataclass, replace

from journal_api.repositories.memory import EntryRecord


@dataclass(frozen=True, slots=True)
class EntryDraft:
    title: str
    content: str = ""


@dataclass(frozen=True, slots=True)
class EntryPatch:
    """Partial update; ``None`` or an empty string leaves a field unchanged."""

    title: str | None = None
    content: str | None = None

    def apply(self, record: EntryRecord) -> EntryRecord:
        changes: dict[str, str] = {}
        if self.title:
            changes["title"] = self.title
        if self.content:
            changes["content"] = self.content
        # created_at is never part of a patch.
        return replace(record, **changes)

    @property
    def is_empty(self) -> bool:
        return not self.title and not self.content
