from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from common.models.example import Example
from common.models.example_filter import ExampleFilter, SortField


@runtime_checkable
class ExampleStore(Protocol):
    """Protocol for persisting annotated NLU examples.

    Implementations only guarantee single-document atomicity for updates.
    ``delete_many`` with ``expected_count`` must be all-or-nothing.
    """

    async def find(
        self, filters: ExampleFilter, sort: Optional[Sequence[SortField]] = None
    ) -> List[Example]:
        """Return every example matching ``filters`` in ``sort`` order.

        Ties (and an empty sort) keep the store's natural insertion order.
        """
        ...

    async def find_one(self, filters: ExampleFilter) -> Optional[Example]:
        """Return the first matching example, or None."""
        ...

    async def insert_many(self, examples: Sequence[Example]) -> int:
        """Insert documents and return the number actually stored."""
        ...

    async def delete_many(self, filters: ExampleFilter, expected_count: Optional[int] = None) -> int:
        """Delete matching documents and return the number deleted.

        Raises:
            ExampleNotFoundError: If ``expected_count`` is given and differs
                from the number of matches; nothing is deleted in that case.
        """
        ...

    async def find_one_and_update(
        self, example_id: str, fields: Dict[str, Any]
    ) -> Optional[Example]:
        """Replace the given top-level fields and return the updated document.

        Returns None when no example has ``example_id``.
        """
        ...
