from typing import Any, ClassVar, Iterable, Sequence, cast

from psycopg.types.json import Json

from algomancer.database.db_manager import DBManager


def _adapt(value: Any) -> Any:
    # dicts go to JSONB columns; lists map natively to Postgres arrays
    return Json(value) if isinstance(value, dict) else value


def _first(rows: list[dict[str, Any]]) -> dict[str, Any]:
    return cast(dict[str, Any], rows[0]) if rows else cast(dict[str, Any], {})


class BaseModel:
    table: ClassVar[str]
    pk: ClassVar[str] = 'id'

    @classmethod
    def create(cls, values: dict[str, Any]) -> dict[str, Any]:
        cols = list(values.keys())
        placeholders = ', '.join(['%s'] * len(cols))
        sql_query = (
            f'INSERT INTO {cls.table} ({", ".join(cols)}) '
            f'VALUES ({placeholders}) RETURNING *'
        )
        params = tuple(_adapt(values[c]) for c in cols)

        with DBManager() as db:
            rows = db.fetchall(sql_query, params)
        return _first(rows)

    @classmethod
    def exists(cls, where: str, params: Iterable[Any] = ()) -> bool:
        where_clause = f' WHERE {where}' if where else ''
        with DBManager() as db:
            row = db.fetchone(
                f'SELECT 1 FROM {cls.table}{where_clause} LIMIT 1', tuple(params)
            )
        return row is not None

    @classmethod
    def upsert(
        cls, conflict_cols: Sequence[str], values: dict[str, Any]
    ) -> dict[str, Any]:
        cols = list(values.keys())
        placeholders = ', '.join(['%s'] * len(cols))
        conflict = ', '.join(conflict_cols)
        set_clause = ', '.join(
            [f'{c} = EXCLUDED.{c}' for c in cols if c not in conflict_cols]
        )
        if not set_clause:
            # Every column is part of the conflict target: touch the row so
            # RETURNING still yields it
            set_clause = f'{cls.pk} = {cls.table}.{cls.pk}'
        sql = (
            f'INSERT INTO {cls.table} ({", ".join(cols)}) VALUES ({placeholders}) '
            f'ON CONFLICT ({conflict}) DO UPDATE SET {set_clause} RETURNING *'
        )
        params = tuple(_adapt(values[c]) for c in cols)
        with DBManager() as db:
            rows = db.fetchall(sql, params)
        return _first(rows)
