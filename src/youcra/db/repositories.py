"""Generic repository abstractions for Postgres-backed persistence."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import ClassVar, Dict, Generic, Iterable, Mapping, Optional, Sequence, Tuple, Type, TypeVar
from uuid import UUID

from psycopg2.extensions import connection as PsycopgConnection
from psycopg2.extras import RealDictCursor

from youcra.db import ConnectionFactory
from youcra.models.base import YouCraBaseModel

ModelT = TypeVar("ModelT", bound=YouCraBaseModel)


class RepositoryError(RuntimeError):
    """Base exception raised for repository layer failures."""


class RecordNotFoundError(RepositoryError):
    """Raised when a requested record cannot be located."""


class BaseRepository(Generic[ModelT]):
    """Reusable building block for table-specific repositories."""

    table_name: ClassVar[str]
    model_type: ClassVar[Type[ModelT]]
    insert_fields: ClassVar[Sequence[str]]
    conflict_fields: ClassVar[Sequence[str]] = ()
    auto_timestamp_field: ClassVar[Optional[str]] = None

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        self._connection_factory = connection_factory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def upsert(self, model: ModelT) -> ModelT:
        """Insert a record or overwrite the non-key columns of the conflicting row."""

        if not self.conflict_fields:
            raise RepositoryError(f"{type(self).__name__} does not define conflict fields for upsert.")

        payload = self._serialize(model, fields=self.insert_fields, include_none=True)
        columns, placeholders = self._build_insert_clause(payload)
        assignments = [
            f"{field} = EXCLUDED.{field}" for field in payload.keys() if field not in self.conflict_fields
        ]
        if self.auto_timestamp_field:
            assignments.append(f"{self.auto_timestamp_field} = NOW()")
        if not assignments:
            raise RepositoryError("No columns available for upsert.")

        query = (
            f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders}) "
            f"ON CONFLICT ({', '.join(self.conflict_fields)}) DO UPDATE SET {', '.join(assignments)} "
            "RETURNING *"
        )
        row = self._fetch_one(query, payload)
        return self.model_type.model_validate(row)

    def get_by_id(self, record_id: object) -> ModelT:
        """Return a single record by its primary key."""

        query = f"SELECT * FROM {self.table_name} WHERE id = %(id)s"
        row = self._fetch_one(query, {"id": self._normalise_identifier(record_id)})
        return self.model_type.model_validate(row)

    def fetch_one(self, where_clause: str, params: Mapping[str, object]) -> ModelT:
        """Return the first record matching the provided predicate."""

        query = f"SELECT * FROM {self.table_name} WHERE {where_clause} LIMIT 1"
        row = self._fetch_one(query, params)
        return self.model_type.model_validate(row)

    def fetch_all(
        self,
        where_clause: Optional[str] = None,
        params: Optional[Mapping[str, object]] = None,
    ) -> list[ModelT]:
        """Return all records, optionally filtered by a predicate."""

        base_query = f"SELECT * FROM {self.table_name}"
        if where_clause:
            base_query = f"{base_query} WHERE {where_clause}"
        rows = self._fetch_many(base_query, params or {})
        return [self.model_type.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _serialize(
        self,
        model: ModelT,
        *,
        fields: Iterable[str],
        include_none: bool,
    ) -> Dict[str, object]:
        raw_values = model.model_dump(mode="json")
        payload: Dict[str, object] = {}

        for field in fields:
            if field not in raw_values:
                continue
            value = raw_values[field]
            if value is None and not include_none:
                continue
            payload[field] = value

        return payload

    def _build_insert_clause(self, payload: Mapping[str, object]) -> Tuple[str, str]:
        columns = ", ".join(payload.keys())
        placeholders = ", ".join(f"%({field})s" for field in payload.keys())
        return columns, placeholders

    def _fetch_one(self, query: str, params: Mapping[str, object]) -> Mapping[str, object]:
        with self._connection() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
                if row is None:
                    raise RecordNotFoundError(f"No records returned for query: {query!r}")
                return dict(row)

    def _fetch_many(self, query: str, params: Mapping[str, object]) -> list[Mapping[str, object]]:
        with self._connection() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                rows = cursor.fetchall()
                return [dict(row) for row in rows]

    def _connection(self) -> AbstractContextManager[PsycopgConnection]:
        return self._connection_factory()

    def _normalise_identifier(self, value: object) -> object:
        if isinstance(value, UUID):
            return str(value)
        return value


__all__ = [
    "BaseRepository",
    "RecordNotFoundError",
    "RepositoryError",
]
