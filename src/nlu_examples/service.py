"""Facade wiring the example repository operations to their collaborators."""

from typing import Any, List, Optional, Sequence

from common.interfaces import (
    CanonicalDecisionFunction,
    ExampleStore,
    IdentifierProvider,
    TextIntegrityCheck,
)
from common.models.example import (
    Example,
    ExamplePage,
    IntentEntityIndex,
    SwitchCanonicalResult,
)
from nlu_examples.canonical import canonicalize_examples, switch_canonical
from nlu_examples.identifiers import ShortIdProvider
from nlu_examples.indexer import list_intents_and_entities
from nlu_examples.insertion import insert_examples
from nlu_examples.integrity import EmojiIntegrityCheck
from nlu_examples.mutations import delete_examples, update_examples
from nlu_examples.query import get_examples


class ExampleService:
    """Entry point used by the enclosing service layer.

    Holds no request state; every method is an independent request handler.
    Collaborators default to the configured store (``dal.factory``), short
    uuid-based ids, emoji detection and the baseline canonical policy.
    """

    def __init__(
        self,
        store: Optional[ExampleStore] = None,
        ids: Optional[IdentifierProvider] = None,
        integrity: Optional[TextIntegrityCheck] = None,
        decide_canonicals: Optional[CanonicalDecisionFunction] = None,
    ):
        """Initialize with injected collaborators."""
        if store is None:
            from dal.factory import get_example_store

            store = get_example_store()
        self.store = store
        self.ids = ids or ShortIdProvider()
        self.integrity = integrity or EmojiIntegrityCheck()
        self.decide_canonicals = decide_canonicals or canonicalize_examples

    async def get_examples(
        self,
        project_id: str,
        language: str,
        page_size: Optional[int] = None,
        intents: Optional[Sequence[str]] = None,
        entities: Optional[Sequence[Any]] = None,
        text: str = "",
        only_canonicals: bool = False,
        order: Optional[str] = None,
        sort_key: Optional[str] = None,
        cursor: Optional[str] = None,
        exact_match: bool = False,
    ) -> ExamplePage:
        return await get_examples(
            self.store,
            project_id=project_id,
            language=language,
            page_size=page_size,
            intents=intents,
            entities=entities,
            text=text,
            only_canonicals=only_canonicals,
            order=order,
            sort_key=sort_key,
            cursor=cursor,
            exact_match=exact_match,
        )

    async def list_intents_and_entities(self, project_id: str, language: str) -> IntentEntityIndex:
        return await list_intents_and_entities(
            self.store, project_id=project_id, language=language
        )

    async def insert_examples(
        self,
        examples: Sequence[Example],
        language: str,
        project_id: str,
        auto_assign_canonical: bool = True,
        overwrite_on_same_text: bool = False,
    ) -> List[Example]:
        return await insert_examples(
            self.store,
            examples,
            language=language,
            project_id=project_id,
            auto_assign_canonical=auto_assign_canonical,
            overwrite_on_same_text=overwrite_on_same_text,
            ids=self.ids,
            integrity=self.integrity,
            decide_canonicals=self.decide_canonicals,
        )

    async def update_examples(self, examples: Sequence[Example]) -> List[Example]:
        return await update_examples(self.store, examples, integrity=self.integrity)

    async def delete_examples(self, ids: Sequence[str]) -> List[str]:
        return await delete_examples(self.store, ids)

    async def switch_canonical(
        self, project_id: str, language: str, example: Example
    ) -> SwitchCanonicalResult:
        return await switch_canonical(
            self.store,
            project_id=project_id,
            language=language,
            example=example,
            integrity=self.integrity,
        )
