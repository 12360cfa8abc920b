"""Application state shape held by the store."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from prompts_go.db.models import (
    Collection,
    Comment,
    Draft,
    Follow,
    Heart,
    Notification,
    Prompt,
    PromptFeedback,
    Repo,
    Save,
    SearchFilters,
    Star,
    Theme,
    User,
)


class AppState(BaseModel):
    """Snapshot of everything the client knows during a session.

    Instances are never mutated; the reducer returns a new snapshot (or the
    same object when an action is a no-op).
    """

    model_config = ConfigDict(frozen=True)

    user: User | None = None
    prompts: list[Prompt] = Field(default_factory=list)
    repos: list[Repo] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    hearts: list[Heart] = Field(default_factory=list)
    saves: list[Save] = Field(default_factory=list)
    stars: list[Star] = Field(default_factory=list)
    follows: list[Follow] = Field(default_factory=list)
    collections: list[Collection] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)
    drafts: list[Draft] = Field(default_factory=list)
    prompt_feedbacks: list[PromptFeedback] = Field(default_factory=list)
    search_filters: SearchFilters = Field(default_factory=SearchFilters)
    theme: Theme = "light"
    loading: bool = False
    error: str | None = None

    # --- Derived lookups ---

    def get_prompt(self, prompt_id: str) -> Prompt | None:
        return next((p for p in self.prompts if p.id == prompt_id), None)

    def get_repo(self, repo_id: str) -> Repo | None:
        return next((r for r in self.repos if r.id == repo_id), None)

    def is_hearted(self, prompt_id: str) -> bool:
        if not self.user:
            return False
        return any(h.user_id == self.user.id and h.prompt_id == prompt_id for h in self.hearts)

    def is_saved(self, prompt_id: str) -> bool:
        if not self.user:
            return False
        return any(s.user_id == self.user.id and s.prompt_id == prompt_id for s in self.saves)

    def is_starred(self, repo_id: str) -> bool:
        if not self.user:
            return False
        return any(s.user_id == self.user.id and s.repo_id == repo_id for s in self.stars)

    def is_following(self, user_id: str) -> bool:
        if not self.user:
            return False
        return any(
            f.follower_id == self.user.id and f.following_id == user_id for f in self.follows
        )

    def unread_notifications(self, user_id: str) -> list[Notification]:
        return [n for n in self.notifications if n.user_id == user_id and not n.read]
