"""Tests for the example insertion pipeline."""

from unittest.mock import AsyncMock

import pytest

from common.errors import ExampleValidationError
from common.models.example import Example
from common.models.example_filter import ExampleFilter
from dal.memory import InMemoryExampleStore
from nlu_examples.identifiers import ShortIdProvider
from nlu_examples.insertion import insert_examples, prepare_examples
from tests._support.example_factory import LANGUAGE, PROJECT, make_example


async def _stored(store):
    return await store.find(ExampleFilter(project_id=PROJECT, language=LANGUAGE))


@pytest.mark.asyncio
async def test_first_example_in_empty_group_becomes_canonical(store):
    inserted = await insert_examples(
        store,
        [Example(text="book a flight", intent="book_flight", entities=[])],
        language=LANGUAGE,
        project_id=PROJECT,
    )

    assert len(inserted) == 1
    (example,) = inserted
    assert example.canonical is True
    assert example.id
    assert example.project_id == PROJECT
    assert example.metadata.language == LANGUAGE
    assert example.created_at is not None
    assert example.created_at == example.updated_at
    assert [ex.id for ex in await _stored(store)] == [example.id]


@pytest.mark.asyncio
async def test_empty_batch_does_not_touch_store():
    store = AsyncMock()
    assert await insert_examples(store, [], language=LANGUAGE, project_id=PROJECT) == []
    store.find.assert_not_called()
    store.insert_many.assert_not_called()


@pytest.mark.asyncio
async def test_intra_batch_duplicates_keep_first(store, ids):
    inserted = await insert_examples(
        store,
        [
            Example(text="hello", intent="greet"),
            Example(text="hello", intent="other"),
            Example(text="hi", intent="greet"),
        ],
        language=LANGUAGE,
        project_id=PROJECT,
        ids=ids,
    )
    assert [(ex.id, ex.text, ex.intent) for ex in inserted] == [
        ("ex-1", "hello", "greet"),
        ("ex-2", "hi", "greet"),
    ]
    assert len(await _stored(store)) == 2


@pytest.mark.asyncio
async def test_emoji_rejects_whole_batch_before_any_write():
    store = InMemoryExampleStore()
    with pytest.raises(ExampleValidationError, match="Emojis not allowed"):
        await insert_examples(
            store,
            [Example(text="fine"), Example(text="party \U0001F389")],
            language=LANGUAGE,
            project_id=PROJECT,
        )
    assert len(store) == 0


@pytest.mark.asyncio
async def test_collision_without_overwrite_keeps_existing(ids):
    existing = make_example("hello", intent="greet", id="old", canonical=True)
    store = InMemoryExampleStore([existing])

    inserted = await insert_examples(
        store,
        [Example(text="hello", intent="farewell"), Example(text="new text", intent="greet")],
        language=LANGUAGE,
        project_id=PROJECT,
        ids=ids,
    )

    assert [ex.text for ex in inserted] == ["new text"]
    stored = {ex.text: ex for ex in await _stored(store)}
    assert stored["hello"].id == "old"
    assert stored["hello"].intent == "greet"


@pytest.mark.asyncio
async def test_collision_with_overwrite_replaces_existing(ids):
    store = InMemoryExampleStore([make_example("hello", intent="greet", id="old")])

    inserted = await insert_examples(
        store,
        [Example(text="hello", intent="farewell")],
        language=LANGUAGE,
        project_id=PROJECT,
        overwrite_on_same_text=True,
        ids=ids,
    )

    assert [ex.id for ex in inserted] == ["ex-1"]
    stored = await _stored(store)
    assert [(ex.id, ex.intent) for ex in stored] == [("ex-1", "farewell")]


@pytest.mark.asyncio
async def test_overwrite_is_scoped_to_project_language(ids):
    other_language = make_example("hello", id="fr-hello", language="fr")
    store = InMemoryExampleStore([make_example("hello", id="old"), other_language])

    await insert_examples(
        store,
        [Example(text="hello")],
        language=LANGUAGE,
        project_id=PROJECT,
        overwrite_on_same_text=True,
        ids=ids,
    )
    assert await store.find_one(ExampleFilter(ids=["fr-hello"])) is not None
    assert await store.find_one(ExampleFilter(ids=["old"])) is None


@pytest.mark.asyncio
async def test_canonical_assigned_before_collision_drop(ids):
    """A canonical flag given to a dropped collision is lost, not reassigned."""
    store = InMemoryExampleStore([make_example("hello", intent="greet", id="old")])

    seen = {}

    def decide(new_examples, existing_examples):
        seen["texts"] = [ex.text for ex in new_examples]
        return [ex.with_canonical(ex.text == "hello") for ex in new_examples]

    inserted = await insert_examples(
        store,
        [Example(text="hello", intent="greet"), Example(text="hey", intent="greet")],
        language=LANGUAGE,
        project_id=PROJECT,
        ids=ids,
        decide_canonicals=decide,
    )

    assert seen["texts"] == ["hello", "hey"]
    assert [(ex.text, ex.canonical) for ex in inserted] == [("hey", False)]
    canonicals = await store.find(
        ExampleFilter(project_id=PROJECT, language=LANGUAGE, canonical=True)
    )
    assert canonicals == []


@pytest.mark.asyncio
async def test_auto_assign_disabled_keeps_caller_flags(store, ids):
    inserted = await insert_examples(
        store,
        [Example(text="a", intent="greet"), Example(text="b", intent="greet")],
        language=LANGUAGE,
        project_id=PROJECT,
        auto_assign_canonical=False,
        ids=ids,
    )
    assert [ex.canonical for ex in inserted] == [False, False]


@pytest.mark.asyncio
async def test_second_example_of_group_is_not_canonical(ids):
    store = InMemoryExampleStore([make_example("hi", "greet", id="old", canonical=True)])
    inserted = await insert_examples(
        store,
        [Example(text="hello", intent="greet"), Example(text="hey", intent="chat")],
        language=LANGUAGE,
        project_id=PROJECT,
        ids=ids,
    )
    assert [(ex.intent, ex.canonical) for ex in inserted] == [("greet", False), ("chat", True)]


@pytest.mark.asyncio
async def test_insert_count_mismatch_reports_empty(ids):
    store = InMemoryExampleStore()
    store.insert_many = AsyncMock(return_value=0)

    inserted = await insert_examples(
        store, [Example(text="hello")], language=LANGUAGE, project_id=PROJECT, ids=ids
    )
    assert inserted == []


@pytest.mark.asyncio
async def test_storage_error_reports_empty(ids):
    store = InMemoryExampleStore()
    store.insert_many = AsyncMock(side_effect=ConnectionError("db down"))

    assert (
        await insert_examples(
            store, [Example(text="hello")], language=LANGUAGE, project_id=PROJECT, ids=ids
        )
        == []
    )


def test_prepare_examples_stamps_without_mutating_input():
    original = Example(text="hello", id="caller-id", project_id="elsewhere")
    (prepared,) = prepare_examples(
        [original], project_id=PROJECT, language=LANGUAGE, ids=ShortIdProvider()
    )
    assert prepared.id != "caller-id"
    assert len(prepared.id) == 22
    assert prepared.project_id == PROJECT
    assert prepared.metadata.language == LANGUAGE
    assert original.project_id == "elsewhere"
    assert original.metadata.language is None
