"""Domain models / type definitions.

These mirror the Supabase tables and are shared by the store, the routing
codec and the persistence gateway. All models are frozen: state changes
always produce new instances.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

UserRole = Literal["general", "pro", "admin"]
SubscriptionStatus = Literal["active", "cancelled", "past_due"]
PromptType = Literal["text", "image", "code", "conversation", "agent", "chain"]
Visibility = Literal["public", "private"]
Theme = Literal["light", "dark"]

# Prompt types offered by the create form
CREATABLE_PROMPT_TYPES: tuple[str, ...] = ("text",)

CATEGORIES: tuple[str, ...] = (
    "writing",
    "coding",
    "business",
    "marketing",
    "research",
    "education",
    "other",
)

MODELS: tuple[str, ...] = ("gpt4", "gpt35", "claude3", "gemini", "mistral")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Entity(BaseModel):
    """Base for all frozen domain rows."""

    model_config = ConfigDict(frozen=True)


class User(Entity):
    """Row from the users table, plus session-only counters."""

    id: str
    username: str
    name: str
    role: UserRole = "general"
    avatar_url: str | None = None
    bio: str | None = None
    email: str | None = None
    website: str | None = None
    github: str | None = None
    twitter: str | None = None
    reputation: int = 0
    badges: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    subscription_status: SubscriptionStatus | None = None
    save_count: int = 0
    created_at: datetime | None = None
    last_login: datetime | None = None

    @property
    def is_pro(self) -> bool:
        return self.role == "pro" or self.subscription_status == "active"


class PromptImage(Entity):
    """Row from the prompt_images table."""

    id: str
    url: str
    alt_text: str | None = None
    caption: str | None = None
    is_primary: bool = False
    size: int | None = None
    width: int | None = None
    height: int | None = None
    mime_type: str | None = None


class Prompt(Entity):
    """Row from the prompts table with the viewer's UI flags."""

    id: str
    repo_id: str = ""
    user_id: str
    title: str
    slug: str = ""
    description: str = ""
    content: str = ""
    type: PromptType = "text"
    tags: list[str] = Field(default_factory=list)
    category: str = "other"
    model_compatibility: list[str] = Field(default_factory=list)
    visibility: Visibility = "public"
    version: str = "1.0.0"
    parent_id: str | None = None
    hearts: int = 0
    save_count: int = 0
    fork_count: int = 0
    comment_count: int = 0
    view_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    images: list[PromptImage] = Field(default_factory=list)
    template: str | None = None
    language: str | None = None
    is_hearted: bool = False
    is_saved: bool = False
    is_forked: bool = False


class Repo(Entity):
    """Row from the repos table."""

    id: str
    user_id: str
    name: str
    slug: str = ""
    description: str = ""
    visibility: Visibility = "public"
    tags: list[str] = Field(default_factory=list)
    star_count: int = 0
    fork_count: int = 0
    prompt_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    is_starred: bool = False


class Heart(Entity):
    user_id: str
    prompt_id: str
    created_at: datetime = Field(default_factory=utcnow)


class Save(Entity):
    user_id: str
    prompt_id: str
    collection_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Star(Entity):
    user_id: str
    repo_id: str
    created_at: datetime = Field(default_factory=utcnow)


class Follow(Entity):
    follower_id: str
    following_id: str
    created_at: datetime = Field(default_factory=utcnow)


class Comment(Entity):
    """Row from the comments table."""

    id: str
    prompt_id: str
    repo_id: str | None = None
    content: str
    author_id: str
    hearts: int = 0
    created_at: datetime = Field(default_factory=utcnow)


class Collection(Entity):
    id: str
    user_id: str
    name: str
    description: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Notification(Entity):
    """In-app notification addressed to ``user_id``."""

    id: str
    user_id: str
    type: str
    title: str
    message: str
    read: bool = False
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


class PromptFeedback(Entity):
    id: str
    prompt_id: str
    success_rate: float = 0.0
    rating: float = 0.0
    review_count: int = 0


class Draft(Entity):
    """Local-only snapshot of an in-progress prompt edit, one per user."""

    id: str
    user_id: str
    title: str = ""
    description: str = ""
    content: str = ""
    category: str = ""
    tags: list[str] = Field(default_factory=list)
    type: PromptType = "text"
    model_compatibility: list[str] = Field(default_factory=list)
    visibility: Visibility = "public"
    images: list[PromptImage] = Field(default_factory=list)
    meta_description: str = ""
    last_saved: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return not self.title and not self.content


class SearchFilters(Entity):
    """Explore-page filter state."""

    query: str = ""
    types: list[str] = Field(default_factory=list)
    models: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    sort_by: str = "trending"
