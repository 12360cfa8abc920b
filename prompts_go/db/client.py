"""Thin table access over supabase-py, used by the persistence gateway."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import structlog
from supabase import Client, create_client

from prompts_go.config import get_settings

logger = structlog.get_logger()


class SupabaseClient:
    """Row-level insert/select/update/delete on PromptsGo tables."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        return self.client.table(table).insert(data).execute().data[0]

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        query = self.client.table(table).select("*")
        for key, value in (filters or {}).items():
            query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=not ascending)
        if limit:
            query = query.limit(limit)
        return query.execute().data

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any]:
        rows = self.client.table(table).update(data).eq("id", id).execute().data
        if not rows:
            raise ValueError(f"Row {id} not found in {table}")
        return rows[0]

    def delete(self, table: str, id: str) -> None:
        self.client.table(table).delete().eq("id", id).execute()


@lru_cache
def get_supabase_client() -> SupabaseClient:
    settings = get_settings()
    if not settings.is_supabase_configured:
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")
    logger.info("supabase.connected", url=settings.supabase_url)
    return SupabaseClient(create_client(settings.supabase_url, settings.supabase_key))
