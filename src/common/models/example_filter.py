"""Store-agnostic filter and sort descriptions for example lookups.

Every ``ExampleStore`` implementation receives these objects: the in-memory
store evaluates them directly via ``ExampleFilter.matches`` and
``sort_examples``, the Postgres store compiles them to SQL.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from common.models.example import Entity, Example

ASCENDING = 1
DESCENDING = -1

SORTABLE_FIELDS = frozenset(
    {
        "id",
        "intent",
        "text",
        "created_at",
        "updated_at",
        "metadata.draft",
        "metadata.canonical",
        "metadata.language",
    }
)

EntityPair = Tuple[str, Any]


def entities_match_exactly(entities: Sequence[Entity], pairs: Sequence[EntityPair]) -> bool:
    """All-of, same-size entity match.

    The example must carry exactly ``len(pairs)`` entities and, for every
    requested ``(entity, value)`` pair, at least one entity with that type
    and value.
    """
    if len(entities) != len(pairs):
        return False
    return all(
        any(candidate.entity == entity and candidate.value == value for candidate in entities)
        for entity, value in pairs
    )


def exact_signature(example: Example) -> List[EntityPair]:
    """The ``(entity, value)`` pairs of an example, in annotation order."""
    return [(e.entity, e.value) for e in example.entities]


@dataclass(frozen=True)
class SortField:
    """One sort key; ``direction`` is ``ASCENDING`` or ``DESCENDING``."""

    field: str
    direction: int = ASCENDING

    def __post_init__(self) -> None:
        if self.field not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {self.field!r}")
        if self.direction not in (ASCENDING, DESCENDING):
            raise ValueError(f"Sort direction must be 1 or -1, got {self.direction!r}")


@dataclass
class ExampleFilter:
    """Conjunction of optional constraints on stored examples.

    ``None`` means "no constraint". An empty ``ids``/``texts``/``intents`` list
    matches nothing, and an empty ``exact_entities`` list matches only
    examples without entities.
    """

    project_id: Optional[str] = None
    language: Optional[str] = None
    ids: Optional[List[str]] = None
    texts: Optional[List[str]] = None
    intents: Optional[List[str]] = None
    has_intent: bool = False
    entity_types: Optional[List[str]] = None
    exact_entities: Optional[List[EntityPair]] = None
    canonical: Optional[bool] = None
    text_contains: Optional[str] = None

    def text_pattern(self) -> Optional[re.Pattern]:
        """Case-insensitive pattern for ``text_contains`` with metacharacters escaped."""
        if not self.text_contains:
            return None
        return re.compile(re.escape(self.text_contains), re.IGNORECASE)

    def matches(self, example: Example) -> bool:
        """Evaluate the filter against a single example."""
        if self.project_id is not None and example.project_id != self.project_id:
            return False
        if self.language is not None and example.metadata.language != self.language:
            return False
        if self.ids is not None and example.id not in self.ids:
            return False
        if self.texts is not None and example.text not in self.texts:
            return False
        if self.intents is not None and example.intent not in self.intents:
            return False
        if self.has_intent and example.intent is None:
            return False
        if self.entity_types is not None and not any(
            e.entity in self.entity_types for e in example.entities
        ):
            return False
        if self.exact_entities is not None and not entities_match_exactly(
            example.entities, self.exact_entities
        ):
            return False
        if self.canonical is not None and bool(example.metadata.canonical) != self.canonical:
            return False
        pattern = self.text_pattern()
        if pattern is not None and not pattern.search(example.text):
            return False
        return True


def _field_value(example: Example, field: str) -> Any:
    if field.startswith("metadata."):
        return getattr(example.metadata, field.split(".", 1)[1], None)
    return getattr(example, field, None)


def _sort_key(field: str):
    def key(example: Example):
        value = _field_value(example, field)
        # Missing values sort before present ones, as in document stores.
        return (0, 0) if value is None else (1, value)

    return key


def sort_examples(examples: Iterable[Example], sort: Sequence[SortField]) -> List[Example]:
    """Stable multi-key sort; ties keep the incoming (insertion) order."""
    ordered = list(examples)
    for sort_field in reversed(list(sort)):
        ordered.sort(
            key=_sort_key(sort_field.field),
            reverse=sort_field.direction == DESCENDING,
        )
    return ordered
