"""Action catalog for the application store.

Each action is a frozen pydantic model tagged by its ``type`` literal. The
``Action`` union is discriminated on that tag so raw dicts (for example
replayed from a log) can be validated with ``parse_action``.

Timestamps and generated ids are captured when an action is built, not when
it is reduced, which keeps ``reduce`` deterministic for a given action.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union, get_args
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from prompts_go.db.models import (
    Collection,
    Comment,
    Draft,
    Notification,
    Prompt,
    PromptFeedback,
    Repo,
    Theme,
    User,
    utcnow,
)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex}"


class BaseAction(BaseModel):
    model_config = ConfigDict(frozen=True)


class TimestampedAction(BaseAction):
    at: datetime = Field(default_factory=utcnow)


# --- Session ---


class SetUser(BaseAction):
    type: Literal["SET_USER"] = "SET_USER"
    user: User | None


class UpdateUser(BaseAction):
    type: Literal["UPDATE_USER"] = "UPDATE_USER"
    updates: dict[str, Any]


# --- Prompts ---


class SetPrompts(BaseAction):
    type: Literal["SET_PROMPTS"] = "SET_PROMPTS"
    prompts: list[Prompt]


class AddPrompt(BaseAction):
    type: Literal["ADD_PROMPT"] = "ADD_PROMPT"
    prompt: Prompt


class UpdatePrompt(BaseAction):
    type: Literal["UPDATE_PROMPT"] = "UPDATE_PROMPT"
    id: str
    updates: dict[str, Any]


class DeletePrompt(BaseAction):
    type: Literal["DELETE_PROMPT"] = "DELETE_PROMPT"
    id: str


class SetRepos(BaseAction):
    type: Literal["SET_REPOS"] = "SET_REPOS"
    repos: list[Repo]


# --- Social ---


class HeartPrompt(TimestampedAction):
    type: Literal["HEART_PROMPT"] = "HEART_PROMPT"
    prompt_id: str


class UnheartPrompt(BaseAction):
    type: Literal["UNHEART_PROMPT"] = "UNHEART_PROMPT"
    prompt_id: str


class SavePrompt(TimestampedAction):
    type: Literal["SAVE_PROMPT"] = "SAVE_PROMPT"
    prompt_id: str
    collection_id: str | None = None
    notification_id: str = Field(default_factory=lambda: _new_id("notification"))


class UnsavePrompt(BaseAction):
    type: Literal["UNSAVE_PROMPT"] = "UNSAVE_PROMPT"
    prompt_id: str


class StarRepo(TimestampedAction):
    type: Literal["STAR_REPO"] = "STAR_REPO"
    repo_id: str


class UnstarRepo(BaseAction):
    type: Literal["UNSTAR_REPO"] = "UNSTAR_REPO"
    repo_id: str


class ForkPrompt(TimestampedAction):
    type: Literal["FORK_PROMPT"] = "FORK_PROMPT"
    original_id: str
    new_prompt: Prompt
    notification_id: str = Field(default_factory=lambda: _new_id("notification"))


class FollowUser(TimestampedAction):
    type: Literal["FOLLOW_USER"] = "FOLLOW_USER"
    following_id: str


class UnfollowUser(BaseAction):
    type: Literal["UNFOLLOW_USER"] = "UNFOLLOW_USER"
    following_id: str


# --- Comments ---


class AddComment(BaseAction):
    type: Literal["ADD_COMMENT"] = "ADD_COMMENT"
    comment: Comment


class UpdateComment(BaseAction):
    type: Literal["UPDATE_COMMENT"] = "UPDATE_COMMENT"
    id: str
    content: str


class DeleteComment(BaseAction):
    type: Literal["DELETE_COMMENT"] = "DELETE_COMMENT"
    id: str


# --- Collections ---


class AddCollection(BaseAction):
    type: Literal["ADD_COLLECTION"] = "ADD_COLLECTION"
    collection: Collection


class UpdateCollection(BaseAction):
    type: Literal["UPDATE_COLLECTION"] = "UPDATE_COLLECTION"
    id: str
    updates: dict[str, Any]


class DeleteCollection(BaseAction):
    type: Literal["DELETE_COLLECTION"] = "DELETE_COLLECTION"
    id: str


# --- Notifications ---


class AddNotification(BaseAction):
    type: Literal["ADD_NOTIFICATION"] = "ADD_NOTIFICATION"
    notification: Notification


class MarkNotificationRead(BaseAction):
    type: Literal["MARK_NOTIFICATION_READ"] = "MARK_NOTIFICATION_READ"
    id: str


class ClearNotifications(BaseAction):
    type: Literal["CLEAR_NOTIFICATIONS"] = "CLEAR_NOTIFICATIONS"


# --- Drafts ---


class SaveDraft(BaseAction):
    type: Literal["SAVE_DRAFT"] = "SAVE_DRAFT"
    draft: Draft


class DeleteDraft(BaseAction):
    type: Literal["DELETE_DRAFT"] = "DELETE_DRAFT"
    id: str


# --- UI ---


class SearchFiltersPatch(BaseModel):
    """Partial ``SearchFilters``; only explicitly set fields are merged."""

    model_config = ConfigDict(frozen=True)

    query: str | None = None
    types: list[str] | None = None
    models: list[str] | None = None
    tags: list[str] | None = None
    categories: list[str] | None = None
    sort_by: str | None = None

    @field_validator("query", mode="before")
    @classmethod
    def _query_is_text(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""


class SetSearchFilters(BaseAction):
    type: Literal["SET_SEARCH_FILTERS"] = "SET_SEARCH_FILTERS"
    patch: SearchFiltersPatch


class SetTheme(BaseAction):
    type: Literal["SET_THEME"] = "SET_THEME"
    theme: Theme


class SetLoading(BaseAction):
    type: Literal["SET_LOADING"] = "SET_LOADING"
    loading: bool


class SetError(BaseAction):
    type: Literal["SET_ERROR"] = "SET_ERROR"
    error: str | None


class AddPromptFeedback(BaseAction):
    type: Literal["ADD_PROMPT_FEEDBACK"] = "ADD_PROMPT_FEEDBACK"
    feedback: PromptFeedback


Action = Annotated[
    Union[
        SetUser,
        UpdateUser,
        SetPrompts,
        AddPrompt,
        UpdatePrompt,
        DeletePrompt,
        SetRepos,
        HeartPrompt,
        UnheartPrompt,
        SavePrompt,
        UnsavePrompt,
        StarRepo,
        UnstarRepo,
        ForkPrompt,
        FollowUser,
        UnfollowUser,
        AddComment,
        UpdateComment,
        DeleteComment,
        AddCollection,
        UpdateCollection,
        DeleteCollection,
        AddNotification,
        MarkNotificationRead,
        ClearNotifications,
        SaveDraft,
        DeleteDraft,
        SetSearchFilters,
        SetTheme,
        SetLoading,
        SetError,
        AddPromptFeedback,
    ],
    Field(discriminator="type"),
]

_action_adapter: TypeAdapter[Action] = TypeAdapter(Action)

ACTION_TYPES: tuple[type[BaseAction], ...] = get_args(get_args(Action)[0])


def parse_action(data: dict[str, Any]) -> BaseAction:
    """Validate a raw ``{"type": ..., ...}`` dict into its action model."""
    return _action_adapter.validate_python(data)
