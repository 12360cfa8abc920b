"""Test fixtures: mock Supabase client and shared test data."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import pytest

from prompts_go.core.state import AppState
from prompts_go.core.store import AppStore
from prompts_go.db.client import SupabaseClient
from prompts_go.db.gateway import PersistenceGateway
from prompts_go.db.models import Prompt, Repo, User


class MockSupabaseClient(SupabaseClient):
    """In-memory mock of the Supabase client for testing."""

    def __init__(self):
        self._tables: dict[str, list[dict[str, Any]]] = {
            "prompts": [],
            "repos": [],
            "hearts": [],
            "saves": [],
            "repo_stars": [],
            "comments": [],
            "users": [],
        }

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        record = {
            "id": str(uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
            **data,
        }
        self._tables.setdefault(table, []).append(record)
        return record

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        rows = self._tables.get(table, [])
        if filters:
            for key, value in filters.items():
                rows = [r for r in rows if r.get(key) == value]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by, 0), reverse=not ascending)
        if limit:
            rows = rows[:limit]
        return rows

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any]:
        for row in self._tables.get(table, []):
            if row["id"] == id:
                row.update(data)
                row["updated_at"] = datetime.now(timezone.utc).isoformat()
                return row
        raise ValueError(f"Row {id} not found in {table}")

    def delete(self, table: str, id: str) -> None:
        self._tables[table] = [r for r in self._tables.get(table, []) if r["id"] != id]

    def reset(self):
        for table in self._tables:
            self._tables[table] = []


@pytest.fixture
def mock_db() -> MockSupabaseClient:
    """Fresh mock database for each test."""
    return MockSupabaseClient()


@pytest.fixture
def gateway(mock_db) -> PersistenceGateway:
    return PersistenceGateway(mock_db)


@pytest.fixture
def user() -> User:
    return User(id="u1", username="alice", name="Alice")


@pytest.fixture
def other_user() -> User:
    return User(id="u2", username="bob", name="Bob")


@pytest.fixture
def prompt(other_user) -> Prompt:
    """A public prompt owned by ``other_user``."""
    return Prompt(
        id="p1",
        repo_id="r1",
        user_id=other_user.id,
        title="Blog Post Outline",
        description="Outline a blog post",
        content="Write an outline about {{topic}}",
        tags=["writing"],
        category="writing",
        model_compatibility=["gpt4"],
    )


@pytest.fixture
def repo(other_user) -> Repo:
    return Repo(id="r1", user_id=other_user.id, name="Writing Prompts")


@pytest.fixture
def state(user, prompt, repo) -> AppState:
    """Signed-in session holding one foreign prompt and repo."""
    return AppState(user=user, prompts=[prompt], repos=[repo])


@pytest.fixture
def store(state) -> AppStore:
    return AppStore(state)
