"""Integrity scan report schema."""

from pydantic import BaseModel, Field, computed_field


class IntegrityReport(BaseModel):
    principal_count: int
    entry_count: int
    orphan_entry_ids: list[str] = Field(default_factory=list)
    dangling_references: dict[str, list[str]] = Field(default_factory=dict)
    shared_entry_ids: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def consistent(self) -> bool:
        return not (self.orphan_entry_ids or self.dangling_references or self.shared_entry_ids)
