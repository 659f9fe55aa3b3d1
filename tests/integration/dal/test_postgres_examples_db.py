import os
import uuid

import pytest

from common.errors import ExampleNotFoundError
from common.models.example_filter import ExampleFilter
from dal.database import ExamplesDatabase
from dal.postgres import PostgresExampleStore
from nlu_examples.canonical import switch_canonical
from nlu_examples.insertion import insert_examples
from nlu_examples.query import get_examples
from tests._support.example_factory import make_example


@pytest.mark.integration
@pytest.mark.asyncio
async def test_insert_query_switch_and_delete(monkeypatch):
    """Round trip against a real database; requires EXAMPLES_DB_HOST."""
    if not os.environ.get("EXAMPLES_DB_HOST"):
        pytest.skip("EXAMPLES_DB_HOST not set")
    monkeypatch.setenv("EXAMPLES_DB_AUTO_MIGRATE", "true")
    await ExamplesDatabase.init()

    store = PostgresExampleStore()
    project = f"it-{uuid.uuid4().hex[:8]}"
    try:
        inserted = await insert_examples(
            store,
            [
                make_example("fly to paris", "book", [("city", "Paris")]),
                make_example("paris please", "book", [("city", "Paris")]),
            ],
            language="en",
            project_id=project,
        )
        assert [ex.canonical for ex in inserted] == [True, False]

        await switch_canonical(store, project_id=project, language="en", example=inserted[1])
        page = await get_examples(store, project_id=project, language="en", only_canonicals=True)
        assert [ex.text for ex in page.examples] == ["paris please"]

        with pytest.raises(ExampleNotFoundError):
            await store.delete_many(
                ExampleFilter(ids=[inserted[0].id, "missing"]), expected_count=2
            )
        assert len(await store.find(ExampleFilter(project_id=project))) == 2
    finally:
        await store.delete_many(ExampleFilter(project_id=project))
        await ExamplesDatabase.close()
