import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence, Tuple

from common.errors import ExampleNotFoundError
from common.interfaces.example_store import ExampleStore
from common.models.example import Example
from common.models.example_filter import DESCENDING, ExampleFilter, SortField
from dal.database import EXAMPLES_TABLE, ExamplesDatabase
from dal.tracing import trace_store_operation

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "project_id",
    "intent",
    "text",
    "entities",
    "metadata",
    "extra",
    "created_at",
    "updated_at",
)
_JSON_COLUMNS = {"entities", "metadata"}
_SCALAR_COLUMNS = {"project_id", "intent", "text", "created_at", "updated_at"}

_SORT_EXPRESSIONS = {
    "id": "id",
    "intent": "intent",
    "text": "text",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "metadata.draft": "COALESCE((metadata->>'draft')::boolean, false)",
    "metadata.canonical": "COALESCE((metadata->>'canonical')::boolean, false)",
    "metadata.language": "metadata->>'language'",
}


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally (ESCAPE '\\')."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _loads(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, str):
        return json.loads(value)
    return value


def _affected_rows(status: Any) -> int:
    """Parse the row count from an asyncpg command status such as ``INSERT 0 3``."""
    try:
        return int(str(status).split()[-1])
    except (IndexError, ValueError):
        return 0


class _Params:
    """Accumulates positional query arguments and hands out ``$n`` placeholders."""

    def __init__(self) -> None:
        self.values: List[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"


def compile_filter(filters: ExampleFilter, params: _Params) -> str:
    """Translate an ExampleFilter into a SQL WHERE clause body."""
    clauses: List[str] = []
    if filters.project_id is not None:
        clauses.append(f"project_id = {params.add(filters.project_id)}")
    if filters.language is not None:
        clauses.append(f"metadata->>'language' = {params.add(filters.language)}")
    if filters.ids is not None:
        clauses.append(f"id = ANY({params.add(list(filters.ids))}::text[])")
    if filters.texts is not None:
        clauses.append(f"text = ANY({params.add(list(filters.texts))}::text[])")
    if filters.intents is not None:
        clauses.append(f"intent = ANY({params.add(list(filters.intents))}::text[])")
    if filters.has_intent:
        clauses.append("intent IS NOT NULL")
    if filters.entity_types is not None:
        placeholder = params.add(list(filters.entity_types))
        clauses.append(
            "EXISTS (SELECT 1 FROM jsonb_array_elements(entities) AS e "
            f"WHERE e->>'entity' = ANY({placeholder}::text[]))"
        )
    if filters.exact_entities is not None:
        pairs = filters.exact_entities
        clauses.append(f"jsonb_array_length(entities) = {params.add(len(pairs))}")
        if pairs:
            wanted = [{"entity": entity, "value": value} for entity, value in pairs]
            clauses.append(f"entities @> {params.add(_dumps(wanted))}::jsonb")
    if filters.canonical is not None:
        clauses.append(
            "COALESCE((metadata->>'canonical')::boolean, false) = "
            f"{params.add(filters.canonical)}"
        )
    if filters.text_contains:
        pattern = f"%{escape_like(filters.text_contains)}%"
        clauses.append(f"text ILIKE {params.add(pattern)} ESCAPE '\\'")
    return " AND ".join(clauses) if clauses else "TRUE"


def compile_sort(sort: Optional[Sequence[SortField]]) -> str:
    """Translate sort fields into an ORDER BY list; insertion order breaks ties."""
    parts = []
    for sort_field in sort or []:
        expression = _SORT_EXPRESSIONS[sort_field.field]
        if sort_field.direction == DESCENDING:
            parts.append(f"{expression} DESC NULLS LAST")
        else:
            parts.append(f"{expression} ASC NULLS FIRST")
    parts.append("seq ASC")
    return ", ".join(parts)


def row_to_example(row: Any) -> Example:
    """Build an Example from a table row."""
    data: Dict[str, Any] = dict(_loads(row["extra"], {}))
    data.update(
        id=row["id"],
        project_id=row["project_id"],
        intent=row["intent"],
        text=row["text"],
        entities=_loads(row["entities"], []),
        metadata=_loads(row["metadata"], {}),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
    return Example.model_validate(data)


def _split_extra(example: Example) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    dumped = example.model_dump()
    known = {key: dumped.pop(key, None) for key in _COLUMNS if key != "extra"}
    return known, dumped


class PostgresExampleStore(ExampleStore):
    """PostgreSQL implementation of ExampleStore backed by a JSONB table."""

    provider = "postgres"

    def __init__(self, db_client: Any = None):
        """Initialize with optional DB client for testing."""
        self.db = db_client

    @asynccontextmanager
    async def _get_connection(self):
        """Get connection from injected client or the pool."""
        if self.db:
            yield self.db
        else:
            async with ExamplesDatabase.get_connection() as conn:
                yield conn

    async def _fetch(self, sql: str, *args: Any) -> List[Example]:
        async with self._get_connection() as conn:
            rows = await conn.fetch(sql, *args)
        return [row_to_example(row) for row in rows]

    async def find(
        self, filters: ExampleFilter, sort: Optional[Sequence[SortField]] = None
    ) -> List[Example]:
        """Return matching examples in the requested order."""
        params = _Params()
        where = compile_filter(filters, params)
        sql = f"""
            SELECT {", ".join(_COLUMNS)}
            FROM {EXAMPLES_TABLE}
            WHERE {where}
            ORDER BY {compile_sort(sort)}
        """
        return await trace_store_operation(
            "find", self.provider, self._fetch(sql, *params.values)
        )

    async def _find_one(self, filters: ExampleFilter) -> Optional[Example]:
        params = _Params()
        where = compile_filter(filters, params)
        sql = f"""
            SELECT {", ".join(_COLUMNS)}
            FROM {EXAMPLES_TABLE}
            WHERE {where}
            ORDER BY seq ASC
            LIMIT 1
        """
        async with self._get_connection() as conn:
            row = await conn.fetchrow(sql, *params.values)
        return row_to_example(row) if row else None

    async def find_one(self, filters: ExampleFilter) -> Optional[Example]:
        """Return the first matching example in insertion order."""
        return await trace_store_operation("find_one", self.provider, self._find_one(filters))

    async def _insert_many(self, examples: Sequence[Example]) -> int:
        columns: Dict[str, List[Any]] = {name: [] for name in _COLUMNS}
        for example in examples:
            known, extra = _split_extra(example)
            for name, value in known.items():
                columns[name].append(_dumps(value) if name in _JSON_COLUMNS else value)
            columns["extra"].append(_dumps(extra))

        sql = f"""
            INSERT INTO {EXAMPLES_TABLE} ({", ".join(_COLUMNS)})
            SELECT * FROM unnest(
                $1::text[], $2::text[], $3::text[], $4::text[],
                $5::jsonb[], $6::jsonb[], $7::jsonb[],
                $8::timestamptz[], $9::timestamptz[]
            )
        """
        async with self._get_connection() as conn:
            status = await conn.execute(sql, *(columns[name] for name in _COLUMNS))
        return _affected_rows(status)

    async def insert_many(self, examples: Sequence[Example]) -> int:
        """Insert examples in one statement and return the stored row count."""
        if not examples:
            return 0
        return await trace_store_operation(
            "insert_many", self.provider, self._insert_many(examples)
        )

    async def _delete_many(self, filters: ExampleFilter, expected_count: Optional[int]) -> int:
        params = _Params()
        where = compile_filter(filters, params)
        sql = f"DELETE FROM {EXAMPLES_TABLE} WHERE {where} RETURNING id"
        async with self._get_connection() as conn:
            async with conn.transaction():
                rows = await conn.fetch(sql, *params.values)
                deleted = [row["id"] for row in rows]
                if expected_count is not None and len(deleted) != expected_count:
                    # Raising inside the transaction rolls the delete back.
                    missing = [i for i in (filters.ids or []) if i not in deleted]
                    raise ExampleNotFoundError(
                        f"Expected to delete {expected_count} examples, matched {len(deleted)}.",
                        missing_ids=missing,
                        reason_code="delete_count_mismatch",
                    )
        return len(deleted)

    async def delete_many(self, filters: ExampleFilter, expected_count: Optional[int] = None) -> int:
        """Delete matching examples; all-or-nothing when ``expected_count`` is given."""
        return await trace_store_operation(
            "delete_many",
            self.provider,
            self._delete_many(filters, expected_count),
            attributes={"db.expected_count": expected_count},
        )

    async def _find_one_and_update(
        self, example_id: str, fields: Dict[str, Any]
    ) -> Optional[Example]:
        params = _Params()
        assignments: List[str] = []
        extra: Dict[str, Any] = {}
        for name, value in fields.items():
            if name == "id":
                continue
            if name in _JSON_COLUMNS:
                assignments.append(f"{name} = {params.add(_dumps(value))}::jsonb")
            elif name in _SCALAR_COLUMNS:
                assignments.append(f"{name} = {params.add(value)}")
            else:
                extra[name] = value
        if extra:
            assignments.append(f"extra = extra || {params.add(_dumps(extra))}::jsonb")
        if not assignments:
            return await self._find_one(ExampleFilter(ids=[example_id]))

        sql = f"""
            UPDATE {EXAMPLES_TABLE}
            SET {", ".join(assignments)}
            WHERE id = {params.add(example_id)}
            RETURNING {", ".join(_COLUMNS)}
        """
        async with self._get_connection() as conn:
            row = await conn.fetchrow(sql, *params.values)
        if row is None:
            logger.debug(f"find_one_and_update: no example with id {example_id}")
            return None
        return row_to_example(row)

    async def find_one_and_update(
        self, example_id: str, fields: Dict[str, Any]
    ) -> Optional[Example]:
        """Replace top-level fields of one example in a single UPDATE ... RETURNING."""
        return await trace_store_operation(
            "find_one_and_update",
            self.provider,
            self._find_one_and_update(example_id, fields),
            attributes={"db.example_id": example_id},
        )
