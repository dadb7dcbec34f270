"""
Data store access for the chatbot services.

Service modules talk to a DataStore rather than to the Supabase client
directly, so the queue, context and scanner logic can be exercised against
any row store. SupabaseStore is the production implementation.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

from supabase import create_client, Client

from shared import config


def get_supabase_client() -> Client:
    """Get initialized Supabase client."""
    url: str | None = config.SUPABASE_URL
    key: str | None = config.SUPABASE_SERVICE_KEY

    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

    return create_client(url, key)


@dataclass
class Query:
    """
    Row selection against a single table.

    All filters are AND-ed together. Values are passed to the store as
    parameters, never interpolated into query text.
    """

    table: str
    columns: str = "*"
    eq: dict[str, Any] = field(default_factory=dict)
    neq: dict[str, Any] = field(default_factory=dict)
    in_: dict[str, list[Any]] = field(default_factory=dict)
    lt: dict[str, Any] = field(default_factory=dict)
    gte: dict[str, Any] = field(default_factory=dict)
    not_null: list[str] = field(default_factory=list)
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None


class DataStore(Protocol):
    """Row-based read/write interface used by every service module."""

    def get_row(self, query: Query) -> dict[str, Any] | None: ...

    def get_results(self, query: Query) -> list[dict[str, Any]]: ...

    def insert(self, table: str, fields: dict[str, Any]) -> dict[str, Any] | None: ...

    def update(self, table: str, fields: dict[str, Any], row_id: Any) -> bool: ...

    def delete(self, table: str, predicate: Query) -> int: ...


class SupabaseStore:
    """DataStore backed by the Supabase (PostgREST) query builder."""

    def __init__(self, client: Client | None = None):
        self.client = client if client is not None else get_supabase_client()

    def get_row(self, query: Query) -> dict[str, Any] | None:
        rows = self.get_results(
            Query(
                table=query.table,
                columns=query.columns,
                eq=query.eq,
                neq=query.neq,
                in_=query.in_,
                lt=query.lt,
                gte=query.gte,
                not_null=query.not_null,
                order_by=query.order_by,
                descending=query.descending,
                limit=1,
            )
        )
        return rows[0] if rows else None

    def get_results(self, query: Query) -> list[dict[str, Any]]:
        builder = self.client.table(query.table).select(query.columns)
        builder = _apply_filters(builder, query)

        if query.order_by:
            builder = builder.order(query.order_by, desc=query.descending)
        if query.limit is not None:
            builder = builder.limit(query.limit)

        response = builder.execute()
        return list(response.data or [])

    def insert(self, table: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        response = self.client.table(table).insert(fields).execute()
        return response.data[0] if response.data else None

    def update(self, table: str, fields: dict[str, Any], row_id: Any) -> bool:
        response = self.client.table(table).update(fields).eq("id", row_id).execute()
        return bool(response.data)

    def delete(self, table: str, predicate: Query) -> int:
        builder = self.client.table(table).delete()
        builder = _apply_filters(builder, predicate)
        response = builder.execute()
        return len(response.data or [])


def _apply_filters(builder: Any, query: Query) -> Any:
    for column, value in query.eq.items():
        builder = builder.eq(column, value)
    for column, value in query.neq.items():
        builder = builder.neq(column, value)
    for column, values in query.in_.items():
        builder = builder.in_(column, values)
    for column, value in query.lt.items():
        builder = builder.lt(column, value)
    for column, value in query.gte.items():
        builder = builder.gte(column, value)
    for column in query.not_null:
        builder = builder.not_.is_(column, "null")
    return builder
