"""Canonical example assignment and switching.

At most one example per (project, language, intent, exact entity signature)
group should carry ``metadata.canonical = True``. Nothing here is
transactional: ``switch_canonical`` looks the current canonical example up
and then writes both flags in a separate batched update, so two concurrent
switches on the same group can leave it with two canonical examples, or
with none.
"""

import logging
from typing import List, Optional, Sequence

from common.interfaces import ExampleStore, TextIntegrityCheck
from common.models.example import Example, SwitchCanonicalResult
from common.models.example_filter import ExampleFilter, entities_match_exactly, exact_signature
from nlu_examples.mutations import update_examples

logger = logging.getLogger(__name__)


def _same_group(left: Example, right: Example) -> bool:
    return (
        left.metadata.language == right.metadata.language
        and left.intent == right.intent
        and entities_match_exactly(left.entities, exact_signature(right))
    )


def canonicalize_examples(
    new_examples: Sequence[Example], existing_examples: Sequence[Example]
) -> List[Example]:
    """Baseline canonical decision function.

    Walks the new batch in order and marks an example canonical when its
    group has no canonical member yet, among existing examples or the new
    examples already processed. Other examples with an intent are marked
    non-canonical; examples without an intent pass through untouched.
    """
    canonicals = [ex for ex in existing_examples if ex.intent is not None and ex.canonical]
    result: List[Example] = []
    for example in new_examples:
        if example.intent is None:
            result.append(example)
            continue
        has_canonical = any(_same_group(example, other) for other in canonicals)
        updated = example.with_canonical(not has_canonical)
        if updated.canonical:
            canonicals.append(updated)
        result.append(updated)
    return result


async def switch_canonical(
    store: ExampleStore,
    *,
    project_id: str,
    language: str,
    example: Example,
    integrity: Optional[TextIntegrityCheck] = None,
) -> SwitchCanonicalResult:
    """Toggle the canonical flag of ``example``.

    Promoting demotes the current canonical example with the same intent and
    exact entity signature, if any. Demoting does not elect a replacement.
    """
    if not example.intent:
        return SwitchCanonicalResult(change=None)

    if not example.canonical:
        current = await store.find_one(
            ExampleFilter(
                project_id=project_id,
                language=language,
                intents=[example.intent],
                canonical=True,
                exact_entities=exact_signature(example),
            )
        )
        to_update: List[Example] = []
        if current is not None and current.id != example.id:
            logger.info(
                f"Demoting canonical example {current.id} in favour of {example.id} "
                f"(intent={example.intent})"
            )
            to_update.append(current.with_canonical(False))
        to_update.append(example.with_canonical(True))
        changed = await update_examples(store, to_update, integrity=integrity)
        return SwitchCanonicalResult(change=changed)

    changed = await update_examples(store, [example.with_canonical(False)], integrity=integrity)
    return SwitchCanonicalResult(change=changed)
