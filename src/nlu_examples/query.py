"""Filtered, sorted and cursor-paginated example retrieval."""

import logging
from typing import Any, List, Optional, Sequence

from common.config.env import get_env_int
from common.errors import ExampleValidationError
from common.interfaces import ExampleStore
from common.models.example import Entity, Example, ExamplePage, PageInfo
from common.models.example_filter import (
    ASCENDING,
    DESCENDING,
    SORTABLE_FIELDS,
    EntityPair,
    ExampleFilter,
    SortField,
)

logger = logging.getLogger(__name__)

DEFAULT_SORT_KEY = "intent"

_SORT_KEY_ALIASES = {
    "_id": "id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def default_page_size() -> int:
    """Page size used when callers do not pass one (EXAMPLES_DEFAULT_PAGE_SIZE)."""
    return get_env_int("EXAMPLES_DEFAULT_PAGE_SIZE", 20, minimum=0)


def _entity_pair(item: Any) -> EntityPair:
    if isinstance(item, Entity):
        return item.entity, item.value
    if isinstance(item, dict):
        return item["entity"], item.get("value")
    if isinstance(item, (tuple, list)) and len(item) == 2:
        return item[0], item[1]
    raise ExampleValidationError(
        f"Exact entity match expects {{entity, value}} items, got {item!r}",
        reason_code="invalid_entity_criteria",
    )


def _entity_type(item: Any) -> str:
    if isinstance(item, Entity):
        return item.entity
    if isinstance(item, dict):
        return item["entity"]
    return str(item)


def build_example_filter(
    project_id: str,
    language: str,
    intents: Optional[Sequence[str]] = None,
    entities: Optional[Sequence[Any]] = None,
    only_canonicals: bool = False,
    text: str = "",
    exact_match: bool = False,
) -> ExampleFilter:
    """Build the store filter for a query.

    Non-exact mode matches any example holding at least one entity whose
    type is listed. Exact mode requires the same number of entities and
    every requested ``(entity, value)`` pair to be present.
    """
    entities = list(entities or [])
    filters = ExampleFilter(project_id=project_id, language=language)

    if intents:
        filters.intents = list(intents)
    if not exact_match and entities:
        filters.entity_types = [_entity_type(item) for item in entities]
    if exact_match:
        filters.exact_entities = [_entity_pair(item) for item in entities]
    if only_canonicals:
        filters.canonical = True
    if text:
        filters.text_contains = text
    return filters


def build_sort(sort_key: Optional[str] = None, order: Optional[str] = None) -> List[SortField]:
    """Drafts first, then ``sort_key`` ascending unless ``order`` is not "ASC"."""
    field = sort_key or DEFAULT_SORT_KEY
    field = _SORT_KEY_ALIASES.get(field, field)
    if field not in SORTABLE_FIELDS:
        raise ExampleValidationError(
            f"Cannot sort examples by {sort_key!r}", reason_code="invalid_sort_key"
        )
    direction = ASCENDING if (order or "ASC").upper() == "ASC" else DESCENDING
    return [SortField("metadata.draft", DESCENDING), SortField(field, direction)]


def paginate(data: List[Example], cursor: Optional[str], page_size: int) -> ExamplePage:
    """Slice an already filtered and sorted result set after ``cursor``.

    An unknown or missing cursor starts from the beginning, and a page size
    of 0 returns the whole set.
    """
    if page_size < 0:
        raise ExampleValidationError(
            f"page_size must be >= 0, got {page_size}", reason_code="invalid_page_size"
        )
    cursor_index = 0
    if cursor:
        ids = [example.id for example in data]
        cursor_index = ids.index(cursor) + 1 if cursor in ids else 0

    examples = data if page_size == 0 else data[cursor_index : cursor_index + page_size]
    logger.debug(
        f"paginate: cursor_index={cursor_index} page_size={page_size} total={len(data)}"
    )
    return ExamplePage(
        examples=examples,
        page_info=PageInfo(
            end_cursor=examples[-1].id if examples else "",
            has_next_page=cursor_index + page_size < len(data),
            total_length=len(data),
        ),
    )


async def get_examples(
    store: ExampleStore,
    *,
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
    """Query one page of examples for a project language.

    The whole filtered set is fetched and sorted on every call so that
    ``total_length`` and cursor positions are always exact.
    """
    filters = build_example_filter(
        project_id,
        language,
        intents=intents,
        entities=entities,
        only_canonicals=only_canonicals,
        text=text,
        exact_match=exact_match,
    )
    sort = build_sort(sort_key, order)
    data = await store.find(filters, sort)
    size = default_page_size() if page_size is None else page_size
    return paginate(data, cursor, size)
