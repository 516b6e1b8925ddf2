"""Value types shared by the matcher and its callers."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CanonicalNameEntry(BaseModel):
    id: str
    name: str


class DuplicateCandidate(BaseModel):
    input_name: str
    similar_items: list[CanonicalNameEntry] = Field(default_factory=list)
    entity_type: str | None = None

    @property
    def has_warning(self) -> bool:
        return bool(self.similar_items)
