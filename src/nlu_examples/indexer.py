"""Intent and entity navigation index built from stored examples."""

from typing import Dict, List

from common.interfaces import ExampleStore
from common.models.example import IntentEntityIndex, IntentVariant
from common.models.example_filter import DESCENDING, ExampleFilter, SortField
from common.utils.sets import sets_are_identical


async def list_intents_and_entities(
    store: ExampleStore, *, project_id: str, language: str
) -> IntentEntityIndex:
    """Group examples by intent and entity type signature.

    Examples are read canonical-first, so for each (intent, type signature)
    the first example seen, which is the canonical one when it exists,
    becomes the variant's representative.
    """
    examples = await store.find(
        ExampleFilter(project_id=project_id, language=language, has_intent=True),
        [SortField("metadata.canonical", DESCENDING)],
    )

    intents: Dict[str, List[IntentVariant]] = {}
    entities: List[str] = []
    for example in examples:
        types = example.entity_types()
        for entity_type in types:
            if entity_type not in entities:
                entities.append(entity_type)
        variants = intents.setdefault(example.intent, [])
        if not any(sets_are_identical(variant.entities, types) for variant in variants):
            variants.append(IntentVariant(entities=types, example=example))

    return IntentEntityIndex(intents=intents, entities=entities)
