"""Pydantic models for annotated NLU training examples."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Entity(BaseModel):
    """An annotated entity span inside an example's text.

    Positional data (``start``/``end``) is optional and any extra keys the
    annotator attached (extractor, confidence, role, ...) are preserved.
    """

    model_config = ConfigDict(extra="allow")

    entity: str
    value: Any = None
    start: Optional[int] = None
    end: Optional[int] = None


class ExampleMetadata(BaseModel):
    """Bookkeeping flags stored alongside an example."""

    model_config = ConfigDict(extra="allow")

    draft: bool = False
    canonical: bool = False
    language: Optional[str] = None


class Example(BaseModel):
    """A training utterance with its intent label and entity annotations."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    project_id: Optional[str] = None
    text: str
    intent: Optional[str] = None
    entities: List[Entity] = Field(default_factory=list)
    metadata: ExampleMetadata = Field(default_factory=ExampleMetadata)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def language(self) -> Optional[str]:
        """Language tag, stored under metadata."""
        return self.metadata.language

    @property
    def canonical(self) -> bool:
        return bool(self.metadata.canonical)

    def entity_types(self) -> List[str]:
        """Entity types in annotation order (duplicates kept)."""
        return [e.entity for e in self.entities]

    def with_canonical(self, canonical: bool) -> "Example":
        """Return a copy whose canonical flag is set to ``canonical``."""
        metadata = self.metadata.model_copy(update={"canonical": canonical})
        return self.model_copy(update={"metadata": metadata})

    def to_update_fields(self) -> Dict[str, Any]:
        """Fields carried by this payload for a full-field replacement update.

        Only fields explicitly present on the payload are included; ``id`` is
        the update key and is never rewritten.
        """
        dumped = self.model_dump(exclude={"id"})
        return {key: value for key, value in dumped.items() if key in self.model_fields_set}


class PageInfo(BaseModel):
    """Cursor pagination state returned with every page."""

    end_cursor: str = ""
    has_next_page: bool = False
    total_length: int = 0


class ExamplePage(BaseModel):
    """One page of examples plus its pagination info."""

    examples: List[Example] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo)


class IntentVariant(BaseModel):
    """A representative example for one entity type signature of an intent."""

    entities: List[str] = Field(default_factory=list)
    example: Example


class IntentEntityIndex(BaseModel):
    """Distinct intents (with their variants) and entity types of a project language."""

    intents: Dict[str, List[IntentVariant]] = Field(default_factory=dict)
    entities: List[str] = Field(default_factory=list)


class SwitchCanonicalResult(BaseModel):
    """Outcome of a canonical switch; ``change`` is None when nothing was written."""

    change: Optional[List[Example]] = None
