"""Local validation and usage limits for prompt editing.

Nothing here touches the store: callers get back a field -> message map (or a
``LimitCheck``) and decide what to show.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import BaseModel, Field

from prompts_go.db.models import (
    CATEGORIES,
    CREATABLE_PROMPT_TYPES,
    MODELS,
    PromptImage,
    PromptType,
    Repo,
    User,
    Visibility,
)

TITLE_MIN, TITLE_MAX = 5, 100
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 500
CONTENT_MAX = 10_000
MAX_MODELS = 5
MAX_TAGS = 10

FORK_LIMIT = 100
PRO_FORK_LIMIT = 500


class PromptForm(BaseModel):
    """Editor form as the user filled it in."""

    title: str = ""
    description: str = ""
    content: str = ""
    type: PromptType = "text"
    category: str = ""
    tags: list[str] = Field(default_factory=list)
    model_compatibility: list[str] = Field(default_factory=list)
    visibility: Visibility = "public"
    images: list[PromptImage] = Field(default_factory=list)
    meta_description: str = ""
    repo_id: str | None = None


@dataclass(frozen=True)
class LimitCheck:
    allowed: bool
    message: str = ""


def validate_prompt_form(form: PromptForm, creating: bool = True) -> dict[str, str]:
    """Return field -> error message; empty when the form can be published.

    The prompt type is only restricted for new prompts; existing prompts of
    other types stay editable.
    """
    errors: dict[str, str] = {}

    if not form.title.strip():
        errors["title"] = "Title is required"
    elif len(form.title) < TITLE_MIN:
        errors["title"] = f"Title must be at least {TITLE_MIN} characters"
    elif len(form.title) > TITLE_MAX:
        errors["title"] = f"Title must be less than {TITLE_MAX} characters"

    if not form.description.strip():
        errors["description"] = "Description is required"
    elif len(form.description) < DESCRIPTION_MIN:
        errors["description"] = f"Description must be at least {DESCRIPTION_MIN} characters"
    elif len(form.description) > DESCRIPTION_MAX:
        errors["description"] = f"Description must be less than {DESCRIPTION_MAX} characters"

    if not form.content.strip():
        errors["content"] = "Prompt content is required"
    elif len(form.content) > CONTENT_MAX:
        errors["content"] = "Content must be less than 10,000 characters"

    if creating and form.type not in CREATABLE_PROMPT_TYPES:
        errors["type"] = f"{form.type.capitalize()} prompts cannot be created yet"

    if not form.category:
        errors["category"] = "Category is required"
    elif form.category not in CATEGORIES:
        errors["category"] = f"Unknown category '{form.category}'"

    if not form.model_compatibility:
        errors["models"] = "At least one model must be selected"
    elif len(form.model_compatibility) > MAX_MODELS:
        errors["models"] = f"At most {MAX_MODELS} models can be selected"
    elif unknown := [m for m in form.model_compatibility if m not in MODELS]:
        errors["models"] = f"Unknown model: {', '.join(unknown)}"

    if not form.tags:
        errors["tags"] = "At least one tag is required"
    elif len(form.tags) > MAX_TAGS:
        errors["tags"] = f"At most {MAX_TAGS} tags are allowed"
    elif len({t.lower() for t in form.tags}) != len(form.tags):
        errors["tags"] = "Tags must be unique"

    return errors


def add_tag(tags: Sequence[str], raw: str) -> list[str]:
    """Append ``raw`` to ``tags`` if it is new (case-insensitive) and there is room."""
    tag = " ".join(raw.split())
    if not tag or len(tags) >= MAX_TAGS:
        return list(tags)
    if any(t.lower() == tag.lower() for t in tags):
        return list(tags)
    return [*tags, tag]


def add_model(models: Sequence[str], model: str) -> list[str]:
    if model not in MODELS or model in models or len(models) >= MAX_MODELS:
        return list(models)
    return [*models, model]


def effective_visibility(requested: Visibility, repo: Repo | None) -> Visibility:
    """A prompt inside a private repo is always private."""
    if repo is not None and repo.visibility == "private":
        return "private"
    return requested


def can_save_more(user: User | None, current_save_count: int) -> LimitCheck:
    # Saves are currently unlimited
    return LimitCheck(allowed=True)


def fork_limit(user: User | None) -> int:
    return PRO_FORK_LIMIT if user is not None and user.is_pro else FORK_LIMIT


def can_fork_more(user: User | None, forks_this_month: int) -> LimitCheck:
    limit = fork_limit(user)
    if forks_this_month < limit:
        return LimitCheck(allowed=True)

    message = f"Fork limit reached ({limit} forks per month)."
    if limit == FORK_LIMIT:
        message += " Upgrade to Pro for higher limits!"
    return LimitCheck(allowed=False, message=message)
