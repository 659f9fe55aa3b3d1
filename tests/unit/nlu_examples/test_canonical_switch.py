"""Tests for canonical assignment and switching."""

from unittest.mock import AsyncMock

import pytest

from common.models.example_filter import ExampleFilter
from dal.memory import InMemoryExampleStore
from nlu_examples.canonical import canonicalize_examples, switch_canonical
from nlu_examples.query import get_examples
from tests._support.example_factory import LANGUAGE, PROJECT, make_example


class TestCanonicalizeExamples:
    def test_first_of_each_group_wins(self):
        batch = [
            make_example("a", "book", [("city", "Paris")]),
            make_example("b", "book", [("city", "Paris")]),
            make_example("c", "book", [("city", "Rome")]),
            make_example("d", "book"),
        ]
        result = canonicalize_examples(batch, [])
        assert [ex.canonical for ex in result] == [True, False, True, True]

    def test_existing_canonical_blocks_group(self):
        existing = [make_example("old", "book", [("city", "Paris")], id="x", canonical=True)]
        result = canonicalize_examples([make_example("a", "book", [("city", "Paris")])], existing)
        assert result[0].canonical is False

    def test_existing_non_canonical_does_not_block(self):
        existing = [make_example("old", "book", [("city", "Paris")], id="x")]
        result = canonicalize_examples([make_example("a", "book", [("city", "Paris")])], existing)
        assert result[0].canonical is True

    def test_examples_without_intent_pass_through(self):
        example = make_example("no intent", canonical=True)
        assert canonicalize_examples([example], []) == [example]

    def test_output_is_one_to_one(self):
        batch = [make_example(str(i), "greet") for i in range(4)]
        result = canonicalize_examples(batch, [])
        assert [ex.text for ex in result] == ["0", "1", "2", "3"]
        assert sum(ex.canonical for ex in result) == 1


@pytest.fixture
def group_store():
    return InMemoryExampleStore(
        [
            make_example("fly to paris", "book", [("city", "Paris")], id="A", canonical=True),
            make_example("paris please", "book", [("city", "Paris")], id="B"),
            make_example("rome please", "book", [("city", "Rome")], id="C", canonical=True),
        ]
    )


async def _canonical_ids(store):
    page = await get_examples(
        store, project_id=PROJECT, language=LANGUAGE, only_canonicals=True, page_size=0
    )
    return sorted(ex.id for ex in page.examples)


@pytest.mark.asyncio
async def test_no_intent_is_a_no_op():
    store = AsyncMock()
    result = await switch_canonical(
        store, project_id=PROJECT, language=LANGUAGE, example=make_example("x", id="x")
    )
    assert result.change is None
    store.find_one.assert_not_called()
    store.find_one_and_update.assert_not_called()


@pytest.mark.asyncio
async def test_promotion_demotes_matching_canonical(group_store):
    (candidate,) = await group_store.find(ExampleFilter(ids=["B"]))

    result = await switch_canonical(
        group_store, project_id=PROJECT, language=LANGUAGE, example=candidate
    )

    assert [(ex.id, ex.canonical) for ex in result.change] == [("A", False), ("B", True)]
    assert await _canonical_ids(group_store) == ["B", "C"]


@pytest.mark.asyncio
async def test_promotion_without_existing_canonical(group_store):
    await group_store.find_one_and_update("A", {"metadata": {"language": "en"}})
    (candidate,) = await group_store.find(ExampleFilter(ids=["B"]))

    result = await switch_canonical(
        group_store, project_id=PROJECT, language=LANGUAGE, example=candidate
    )

    assert [(ex.id, ex.canonical) for ex in result.change] == [("B", True)]
    assert await _canonical_ids(group_store) == ["B", "C"]


@pytest.mark.asyncio
async def test_demotion_leaves_group_without_canonical(group_store):
    (current,) = await group_store.find(ExampleFilter(ids=["A"]))

    result = await switch_canonical(
        group_store, project_id=PROJECT, language=LANGUAGE, example=current
    )

    assert [(ex.id, ex.canonical) for ex in result.change] == [("A", False)]
    assert await _canonical_ids(group_store) == ["C"]


@pytest.mark.asyncio
async def test_promotion_ignores_canonical_with_different_signature():
    store = InMemoryExampleStore(
        [
            make_example("paris", "book", [("city", "Paris")], id="A", canonical=True),
            make_example(
                "paris today", "book", [("city", "Paris"), ("date", "today")], id="D"
            ),
        ]
    )
    (candidate,) = await store.find(ExampleFilter(ids=["D"]))
    await switch_canonical(store, project_id=PROJECT, language=LANGUAGE, example=candidate)
    assert await _canonical_ids(store) == ["A", "D"]
