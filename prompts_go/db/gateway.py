"""Persistence gateway: CRUD facade over the hosted Supabase tables.

Every call returns a ``GatewayResult`` carrying either ``data`` or an
``error``; exceptions raised by the underlying client are converted into
``GatewayError`` values and never escape to callers.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Generic, Literal, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict

from prompts_go.db.client import SupabaseClient, get_supabase_client
from prompts_go.db.models import Comment, Heart, Prompt, Repo, Save, User
from prompts_go.utils.text import slugify

logger = structlog.get_logger()

T = TypeVar("T")

PROMPT_COLUMNS = (
    "title",
    "content",
    "description",
    "tags",
    "category",
    "model_compatibility",
    "visibility",
    "type",
    "template",
    "language",
)
REPO_COLUMNS = ("name", "description", "visibility", "tags")
PROFILE_COLUMNS = ("username", "name", "bio", "avatar_url", "website", "github", "twitter")


@dataclass(frozen=True)
class GatewayError:
    message: str


@dataclass(frozen=True)
class GatewayResult(Generic[T]):
    data: T | None = None
    error: GatewayError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ToggleResult(BaseModel):
    """Authoritative outcome of a social toggle."""

    model_config = ConfigDict(frozen=True)

    action: Literal["added", "removed"]
    target_id: str


class NotFoundError(LookupError):
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _call(operation: str, fn: Callable[[], T]) -> GatewayResult[T]:
    try:
        return GatewayResult(data=fn())
    except Exception as e:
        logger.warning("gateway.error", operation=operation, error=str(e))
        return GatewayResult(error=GatewayError(str(e) or type(e).__name__))


def _columns(updates: dict[str, Any], allowed: tuple[str, ...]) -> dict[str, Any]:
    return {k: v for k, v in updates.items() if k in allowed}


class PromptsApi:
    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def get_all(
        self, repo_id: str | None = None, user_id: str | None = None
    ) -> GatewayResult[list[Prompt]]:
        filters: dict[str, Any] = {}
        if repo_id:
            filters["repo_id"] = repo_id
        if user_id:
            filters["user_id"] = user_id

        def run() -> list[Prompt]:
            rows = self.db.select(
                "prompts", filters=filters or None, order_by="updated_at", ascending=False
            )
            return [Prompt.model_validate(r) for r in rows]

        return _call("prompts.get_all", run)

    def get_by_id(self, prompt_id: str) -> GatewayResult[Prompt]:
        def run() -> Prompt:
            rows = self.db.select("prompts", filters={"id": prompt_id}, limit=1)
            if not rows:
                raise NotFoundError("Prompt not found")
            return Prompt.model_validate(rows[0])

        return _call("prompts.get_by_id", run)

    def create(self, data: dict[str, Any]) -> GatewayResult[Prompt]:
        if not data.get("user_id"):
            return GatewayResult(error=GatewayError("Missing user id"))
        title = data.get("title") or "Untitled Prompt"
        row = {
            "repo_id": data.get("repo_id", ""),
            "user_id": data["user_id"],
            "title": title,
            "slug": data.get("slug") or slugify(title),
            "description": data.get("description", ""),
            "content": data.get("content", ""),
            "type": data.get("type", "text"),
            "tags": list(data.get("tags", [])),
            "category": data.get("category") or "other",
            "model_compatibility": list(data.get("model_compatibility", [])),
            "visibility": data.get("visibility", "public"),
            "version": "1.0.0",
            "parent_id": data.get("parent_id"),
            "hearts": 0,
            "save_count": 0,
            "fork_count": 0,
            "comment_count": 0,
            "view_count": 0,
        }

        def run() -> Prompt:
            created = Prompt.model_validate(self.db.insert("prompts", row))
            logger.info("prompt.created", prompt_id=created.id, repo_id=created.repo_id)
            return created

        return _call("prompts.create", run)

    def update(self, prompt_id: str, updates: dict[str, Any]) -> GatewayResult[Prompt]:
        row = _columns(updates, PROMPT_COLUMNS)
        if "title" in row:
            row["slug"] = slugify(row["title"])
        row["updated_at"] = _now()

        def run() -> Prompt:
            updated = Prompt.model_validate(self.db.update("prompts", prompt_id, row))
            logger.info("prompt.updated", prompt_id=prompt_id, fields=sorted(row))
            return updated

        return _call("prompts.update", run)

    def delete(self, prompt_id: str) -> GatewayResult[None]:
        def run() -> None:
            self.db.delete("prompts", prompt_id)
            logger.info("prompt.deleted", prompt_id=prompt_id)

        return _call("prompts.delete", run)


class ReposApi:
    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def get_all(self, user_id: str | None = None) -> GatewayResult[list[Repo]]:
        def run() -> list[Repo]:
            rows = self.db.select(
                "repos",
                filters={"user_id": user_id} if user_id else None,
                order_by="updated_at",
                ascending=False,
            )
            return [Repo.model_validate(r) for r in rows]

        return _call("repos.get_all", run)

    def get_by_id(self, repo_id: str) -> GatewayResult[Repo]:
        def run() -> Repo:
            rows = self.db.select("repos", filters={"id": repo_id}, limit=1)
            if not rows:
                raise NotFoundError("Repository not found")
            return Repo.model_validate(rows[0])

        return _call("repos.get_by_id", run)

    def create(self, data: dict[str, Any]) -> GatewayResult[Repo]:
        if not data.get("user_id") or not data.get("name"):
            return GatewayResult(error=GatewayError("Missing user id or repository name"))
        row = {
            "user_id": data["user_id"],
            "name": data["name"],
            "slug": slugify(data["name"]),
            "description": data.get("description", ""),
            "visibility": data.get("visibility", "public"),
            "tags": list(data.get("tags", [])),
            "star_count": 0,
            "fork_count": 0,
            "prompt_count": 0,
        }

        def run() -> Repo:
            created = Repo.model_validate(self.db.insert("repos", row))
            logger.info("repo.created", repo_id=created.id)
            return created

        return _call("repos.create", run)

    def update(self, repo_id: str, updates: dict[str, Any]) -> GatewayResult[Repo]:
        row = _columns(updates, REPO_COLUMNS)
        if "name" in row:
            row["slug"] = slugify(row["name"])
        row["updated_at"] = _now()
        return _call(
            "repos.update", lambda: Repo.model_validate(self.db.update("repos", repo_id, row))
        )

    def delete(self, repo_id: str) -> GatewayResult[None]:
        # Prompt cleanup for the repo is left to the database's cascade rules
        return _call("repos.delete", lambda: self.db.delete("repos", repo_id))

    def get_prompts(self, repo_id: str) -> GatewayResult[list[Prompt]]:
        def run() -> list[Prompt]:
            rows = self.db.select("prompts", filters={"repo_id": repo_id}, order_by="created_at")
            return [Prompt.model_validate(r) for r in rows]

        return _call("repos.get_prompts", run)


class _JoinToggle:
    """Insert-or-delete on a ``(user_id, <target>)`` join table."""

    table: str
    target_column: str

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def _existing(self, target_id: str, user_id: str) -> list[dict[str, Any]]:
        return self.db.select(
            self.table, filters={"user_id": user_id, self.target_column: target_id}
        )

    def _add(self, target_id: str, user_id: str, **extra: Any) -> ToggleResult:
        if not self._existing(target_id, user_id):
            self.db.insert(self.table, {"user_id": user_id, self.target_column: target_id, **extra})
        return ToggleResult(action="added", target_id=target_id)

    def _remove(self, target_id: str, user_id: str) -> ToggleResult:
        for row in self._existing(target_id, user_id):
            self.db.delete(self.table, row["id"])
        return ToggleResult(action="removed", target_id=target_id)

    def _toggle(self, target_id: str, user_id: str, **extra: Any) -> ToggleResult:
        if self._existing(target_id, user_id):
            return self._remove(target_id, user_id)
        return self._add(target_id, user_id, **extra)


class HeartsApi(_JoinToggle):
    table = "hearts"
    target_column = "prompt_id"

    def toggle(self, prompt_id: str, user_id: str) -> GatewayResult[ToggleResult]:
        return _call("hearts.toggle", lambda: self._toggle(prompt_id, user_id))

    def get_for_prompt(self, prompt_id: str) -> GatewayResult[list[Heart]]:
        return _call(
            "hearts.get_for_prompt",
            lambda: [
                Heart.model_validate(r)
                for r in self.db.select(self.table, filters={"prompt_id": prompt_id})
            ],
        )


class SavesApi(_JoinToggle):
    table = "saves"
    target_column = "prompt_id"

    def toggle(
        self, prompt_id: str, user_id: str, collection_id: str | None = None
    ) -> GatewayResult[ToggleResult]:
        return _call(
            "saves.toggle",
            lambda: self._toggle(prompt_id, user_id, collection_id=collection_id),
        )

    def get_for_user(self, user_id: str) -> GatewayResult[list[Save]]:
        return _call(
            "saves.get_for_user",
            lambda: [
                Save.model_validate(r)
                for r in self.db.select(self.table, filters={"user_id": user_id})
            ],
        )


class RepoSocialApi(_JoinToggle):
    table = "repo_stars"
    target_column = "repo_id"

    def star(self, repo_id: str, user_id: str) -> GatewayResult[ToggleResult]:
        return _call("repo_social.star", lambda: self._add(repo_id, user_id))

    def unstar(self, repo_id: str, user_id: str) -> GatewayResult[ToggleResult]:
        return _call("repo_social.unstar", lambda: self._remove(repo_id, user_id))

    def get_starred_repos(self, user_id: str) -> GatewayResult[list[str]]:
        return _call(
            "repo_social.get_starred_repos",
            lambda: [r["repo_id"] for r in self.db.select(self.table, filters={"user_id": user_id})],
        )


class CommentsApi:
    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def get_for_prompt(self, prompt_id: str) -> GatewayResult[list[Comment]]:
        def run() -> list[Comment]:
            rows = self.db.select("comments", filters={"prompt_id": prompt_id}, order_by="created_at")
            return [Comment.model_validate(r) for r in rows]

        return _call("comments.get_for_prompt", run)

    def create(self, prompt_id: str, author_id: str, content: str) -> GatewayResult[Comment]:
        row = {"prompt_id": prompt_id, "author_id": author_id, "content": content, "hearts": 0}
        return _call(
            "comments.create", lambda: Comment.model_validate(self.db.insert("comments", row))
        )


class ProfilesApi:
    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def get_profile(self, user_id: str) -> GatewayResult[User]:
        if not user_id:
            return GatewayResult(error=GatewayError("Missing user id"))

        def run() -> User:
            rows = self.db.select("users", filters={"id": user_id}, limit=1)
            if not rows:
                raise NotFoundError("Profile not found")
            return User.model_validate(rows[0])

        return _call("profiles.get_profile", run)

    def check_username_available(self, username: str) -> GatewayResult[bool]:
        uname = (username or "").strip().lower()
        if not uname:
            return GatewayResult(data=False, error=GatewayError("Username required"))
        return _call(
            "profiles.check_username_available",
            lambda: not self.db.select("users", filters={"username": uname}, limit=1),
        )

    def update_profile(self, user_id: str, updates: dict[str, Any]) -> GatewayResult[User]:
        if not user_id:
            return GatewayResult(error=GatewayError("Missing user id"))

        row = {k: v for k, v in _columns(updates, PROFILE_COLUMNS).items() if isinstance(v, str)}
        if "username" in row:
            username = row["username"].strip().lower()
            if username:
                row["username"] = username
            else:
                del row["username"]
        row["updated_at"] = _now()

        def run() -> User:
            updated = User.model_validate(self.db.update("users", user_id, row))
            logger.info("profile.updated", user_id=user_id, fields=sorted(row))
            return updated

        return _call("profiles.update_profile", run)


class PersistenceGateway:
    """Single entry point to every table-level API."""

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db
        self.prompts = PromptsApi(db)
        self.repos = ReposApi(db)
        self.hearts = HeartsApi(db)
        self.saves = SavesApi(db)
        self.repo_social = RepoSocialApi(db)
        self.comments = CommentsApi(db)
        self.profiles = ProfilesApi(db)


@lru_cache
def get_gateway() -> PersistenceGateway:
    """Get cached gateway bound to the configured Supabase project."""
    return PersistenceGateway(get_supabase_client())
