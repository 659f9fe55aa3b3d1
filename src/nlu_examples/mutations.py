"""Batch update and delete of stored examples."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from common.errors import ExampleNotFoundError
from common.interfaces import ExampleStore, TextIntegrityCheck
from common.models.example import Example
from common.models.example_filter import ExampleFilter
from nlu_examples.integrity import check_no_emojis

logger = logging.getLogger(__name__)


async def _update_one(
    store: ExampleStore, example: Example, integrity: Optional[TextIntegrityCheck]
) -> Example:
    check_no_emojis(example, integrity)
    if not example.id:
        raise ExampleNotFoundError("Cannot update an example without an id.")
    fields = example.to_update_fields()
    fields["updated_at"] = datetime.now(timezone.utc)
    result = await store.find_one_and_update(example.id, fields)
    if result is None:
        raise ExampleNotFoundError(
            f"Update failed: example {example.id} not found.",
            missing_ids=[example.id],
            reason_code="update_target_missing",
        )
    return result


async def update_examples(
    store: ExampleStore,
    examples: Sequence[Example],
    integrity: Optional[TextIntegrityCheck] = None,
) -> List[Example]:
    """Replace the fields present on each payload and return the updated documents.

    Updates run concurrently and are not atomic as a batch: when one fails
    (emoji in text, unknown id) the first error is raised once every sibling
    has settled, and siblings that succeeded stay committed.
    """
    results = await asyncio.gather(
        *(_update_one(store, example, integrity) for example in examples),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        committed = len(results) - len(failures)
        logger.warning(
            f"Example update batch failed for {len(failures)} of {len(results)} items; "
            f"{committed} already committed"
        )
        raise failures[0]
    return list(results)


async def delete_examples(store: ExampleStore, ids: Sequence[str]) -> List[str]:
    """Delete examples by id in one call; nothing is deleted unless every id exists."""
    ids = list(ids)
    await store.delete_many(ExampleFilter(ids=ids), expected_count=len(ids))
    return ids
