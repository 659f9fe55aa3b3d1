import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from common.errors import ExampleNotFoundError
from common.interfaces.example_store import ExampleStore
from common.models.example import Example
from common.models.example_filter import ExampleFilter, SortField, sort_examples
from dal.tracing import trace_store_operation

logger = logging.getLogger(__name__)


class InMemoryExampleStore(ExampleStore):
    """Process-local ExampleStore keeping documents in insertion order.

    Every read returns deep copies so callers can never mutate stored state.
    """

    provider = "memory"

    def __init__(self, examples: Optional[Iterable[Example]] = None):
        """Initialize, optionally seeded with already-stamped examples."""
        self._documents: Dict[str, Example] = {}
        for example in examples or []:
            if not example.id:
                raise ValueError("Seed examples must carry an id.")
            self._documents[example.id] = example.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._documents)

    def _matching(self, filters: ExampleFilter) -> List[Example]:
        return [doc for doc in self._documents.values() if filters.matches(doc)]

    async def _find(
        self, filters: ExampleFilter, sort: Optional[Sequence[SortField]]
    ) -> List[Example]:
        matches = self._matching(filters)
        if sort:
            matches = sort_examples(matches, sort)
        return [doc.model_copy(deep=True) for doc in matches]

    async def find(
        self, filters: ExampleFilter, sort: Optional[Sequence[SortField]] = None
    ) -> List[Example]:
        """Return matching examples, sorted stably over insertion order."""
        return await trace_store_operation("find", self.provider, self._find(filters, sort))

    async def _find_one(self, filters: ExampleFilter) -> Optional[Example]:
        for doc in self._documents.values():
            if filters.matches(doc):
                return doc.model_copy(deep=True)
        return None

    async def find_one(self, filters: ExampleFilter) -> Optional[Example]:
        """Return the first matching example in insertion order."""
        return await trace_store_operation("find_one", self.provider, self._find_one(filters))

    async def _insert_many(self, examples: Sequence[Example]) -> int:
        for example in examples:
            if not example.id:
                raise ValueError("Cannot insert an example without an id.")
            if example.id in self._documents:
                raise ValueError(f"Duplicate example id: {example.id}")
        for example in examples:
            self._documents[example.id] = example.model_copy(deep=True)
        return len(examples)

    async def insert_many(self, examples: Sequence[Example]) -> int:
        """Insert all examples or none (duplicate ids reject the whole batch)."""
        return await trace_store_operation(
            "insert_many", self.provider, self._insert_many(examples)
        )

    async def _delete_many(self, filters: ExampleFilter, expected_count: Optional[int]) -> int:
        doomed = [doc.id for doc in self._matching(filters)]
        if expected_count is not None and len(doomed) != expected_count:
            missing = [i for i in (filters.ids or []) if i not in self._documents]
            raise ExampleNotFoundError(
                f"Expected to delete {expected_count} examples, matched {len(doomed)}.",
                missing_ids=missing,
                reason_code="delete_count_mismatch",
            )
        for example_id in doomed:
            del self._documents[example_id]
        return len(doomed)

    async def delete_many(self, filters: ExampleFilter, expected_count: Optional[int] = None) -> int:
        """Delete matching examples; all-or-nothing when ``expected_count`` is given."""
        return await trace_store_operation(
            "delete_many",
            self.provider,
            self._delete_many(filters, expected_count),
            attributes={"db.expected_count": expected_count},
        )

    async def _find_one_and_update(
        self, example_id: str, fields: Dict[str, Any]
    ) -> Optional[Example]:
        current = self._documents.get(example_id)
        if current is None:
            logger.debug(f"find_one_and_update: no example with id {example_id}")
            return None
        merged = current.model_dump()
        merged.update(fields)
        merged["id"] = example_id
        updated = Example.model_validate(merged)
        self._documents[example_id] = updated
        return updated.model_copy(deep=True)

    async def find_one_and_update(
        self, example_id: str, fields: Dict[str, Any]
    ) -> Optional[Example]:
        """Replace top-level fields of one example and return the new version."""
        return await trace_store_operation(
            "find_one_and_update",
            self.provider,
            self._find_one_and_update(example_id, fields),
            attributes={"db.example_id": example_id},
        )
