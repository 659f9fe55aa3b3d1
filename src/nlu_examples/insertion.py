"""Insertion pipeline for batches of new examples.

Steps, in order:
1. Reject the whole batch if any text contains emoji (before any write).
2. Drop duplicate texts within the batch, keeping the first occurrence.
3. Stamp id, project, language and timestamps.
4. Load every existing example of the project language.
5. Collect texts colliding with existing examples.
6. Optionally run the canonical decision function over the batch.
7. Drop colliding candidates, or delete the colliding existing examples
   when overwriting.
8. Insert the batch in one call.

Step 6 runs before step 7, so a candidate marked canonical can still be
dropped as a collision and leave its group without a canonical example.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from common.errors import ExampleIntegrityError
from common.interfaces import (
    CanonicalDecisionFunction,
    ExampleStore,
    IdentifierProvider,
    TextIntegrityCheck,
)
from common.models.example import Example
from common.models.example_filter import ExampleFilter
from nlu_examples.canonical import canonicalize_examples
from nlu_examples.identifiers import ShortIdProvider
from nlu_examples.integrity import check_no_emojis
from nlu_examples.query import get_examples

logger = logging.getLogger(__name__)


def prepare_examples(
    examples: Sequence[Example],
    *,
    project_id: str,
    language: Optional[str],
    ids: IdentifierProvider,
    integrity: Optional[TextIntegrityCheck] = None,
) -> List[Example]:
    """Validate, deduplicate by text and stamp a batch of new examples."""
    prepared: List[Example] = []
    seen_texts = set()
    for example in examples:
        check_no_emojis(example, integrity)
        if example.text in seen_texts:
            continue
        seen_texts.add(example.text)

        metadata = example.metadata
        if language:
            metadata = metadata.model_copy(update={"language": language})
        now = datetime.now(timezone.utc)
        prepared.append(
            example.model_copy(
                update={
                    "id": ids.generate(),
                    "project_id": project_id,
                    "metadata": metadata,
                    "created_at": now,
                    "updated_at": now,
                },
                deep=True,
            )
        )
    return prepared


async def insert_examples(
    store: ExampleStore,
    examples: Sequence[Example],
    *,
    language: str,
    project_id: str,
    auto_assign_canonical: bool = True,
    overwrite_on_same_text: bool = False,
    ids: Optional[IdentifierProvider] = None,
    integrity: Optional[TextIntegrityCheck] = None,
    decide_canonicals: Optional[CanonicalDecisionFunction] = None,
) -> List[Example]:
    """Insert new examples and return the ones persisted.

    An empty list is returned both when nothing was eligible for insertion
    and when the store failed or stored fewer documents than requested.

    Raises:
        ExampleValidationError: If any example text contains emoji.
    """
    if not examples:
        return []

    prepared = prepare_examples(
        examples,
        project_id=project_id,
        language=language,
        ids=ids or ShortIdProvider(),
        integrity=integrity,
    )

    existing = (
        await get_examples(store, project_id=project_id, language=language, page_size=0)
    ).examples
    existing_texts = {example.text for example in existing}
    colliding_texts = [ex.text for ex in prepared if ex.text in existing_texts]

    if auto_assign_canonical:
        prepared = list((decide_canonicals or canonicalize_examples)(prepared, existing))

    if not overwrite_on_same_text:
        prepared = [ex for ex in prepared if ex.text not in colliding_texts]

    try:
        if overwrite_on_same_text and colliding_texts:
            removed = await store.delete_many(
                ExampleFilter(project_id=project_id, language=language, texts=colliding_texts)
            )
            logger.info(f"Overwrite on same text removed {removed} existing examples")
        if not prepared:
            return []
        stored = await store.insert_many(prepared)
        if stored != len(prepared):
            raise ExampleIntegrityError(
                "Insert failed", requested=len(prepared), stored=stored
            )
    except Exception as e:
        logger.warning(
            f"Example insertion into project {project_id} ({language}) failed, "
            f"reporting empty result: {e}"
        )
        return []

    logger.info(f"Inserted {len(prepared)} examples into project {project_id} ({language})")
    return prepared
