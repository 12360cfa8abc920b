"""Pure state transition function for the application store.

``reduce(state, action)`` never raises and never performs I/O. Actions that
would break an invariant (duplicate heart, self-follow, acting without a
session user) return the *same* state object, and counters are clamped at
zero instead of failing.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel

from prompts_go.core import actions as a
from prompts_go.core.state import AppState
from prompts_go.db.models import (
    Follow,
    Heart,
    Notification,
    Prompt,
    Repo,
    Save,
    Star,
    User,
)

logger = structlog.get_logger()

ActionT = TypeVar("ActionT", bound=a.BaseAction)
Handler = Callable[[AppState, Any], AppState]
ModelT = TypeVar("ModelT", bound=BaseModel)

_HANDLERS: dict[type[a.BaseAction], Handler] = {}


def _handles(action_type: type[ActionT]) -> Callable[[Handler], Handler]:
    def register(fn: Handler) -> Handler:
        _HANDLERS[action_type] = fn
        return fn

    return register


def handled_action_types() -> frozenset[type[a.BaseAction]]:
    """Action classes with a registered handler."""
    return frozenset(_HANDLERS)


def reduce(state: AppState, action: a.BaseAction) -> AppState:
    """Apply ``action`` to ``state`` and return the resulting state."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.warning("reducer.unknown_action", action=type(action).__name__)
        return state
    return handler(state, action)


# --- Helpers ---


def _patched(model: ModelT, updates: dict[str, Any]) -> ModelT:
    """Shallow-merge ``updates`` into a frozen model, ignoring unknown fields."""
    known = {k: v for k, v in updates.items() if k in type(model).model_fields}
    return model.model_copy(update=known)


def _map_prompt(state: AppState, prompt_id: str, fn: Callable[[Prompt], Prompt]) -> list[Prompt]:
    return [fn(p) if p.id == prompt_id else p for p in state.prompts]


def _map_repo(state: AppState, repo_id: str, fn: Callable[[Repo], Repo]) -> list[Repo]:
    return [fn(r) if r.id == repo_id else r for r in state.repos]


def _actor_payload(user: User, subject: Prompt) -> dict[str, Any]:
    return {
        "prompt_id": subject.id,
        "prompt_title": subject.title,
        "action_user_id": user.id,
        "action_user_name": user.name,
        "action_user_username": user.username,
    }


# --- Session ---


@_handles(a.SetUser)
def _set_user(state: AppState, action: a.SetUser) -> AppState:
    return state.model_copy(update={"user": action.user})


@_handles(a.UpdateUser)
def _update_user(state: AppState, action: a.UpdateUser) -> AppState:
    if not state.user:
        return state
    return state.model_copy(update={"user": _patched(state.user, action.updates)})


# --- Prompts and repos ---


@_handles(a.SetPrompts)
def _set_prompts(state: AppState, action: a.SetPrompts) -> AppState:
    return state.model_copy(update={"prompts": list(action.prompts)})


@_handles(a.AddPrompt)
def _add_prompt(state: AppState, action: a.AddPrompt) -> AppState:
    return state.model_copy(update={"prompts": [action.prompt, *state.prompts]})


@_handles(a.UpdatePrompt)
def _update_prompt(state: AppState, action: a.UpdatePrompt) -> AppState:
    prompts = _map_prompt(state, action.id, lambda p: _patched(p, action.updates))
    return state.model_copy(update={"prompts": prompts})


@_handles(a.DeletePrompt)
def _delete_prompt(state: AppState, action: a.DeletePrompt) -> AppState:
    return state.model_copy(update={"prompts": [p for p in state.prompts if p.id != action.id]})


@_handles(a.SetRepos)
def _set_repos(state: AppState, action: a.SetRepos) -> AppState:
    return state.model_copy(update={"repos": list(action.repos)})


# --- Hearts ---


@_handles(a.HeartPrompt)
def _heart_prompt(state: AppState, action: a.HeartPrompt) -> AppState:
    user = state.user
    if not user or state.is_hearted(action.prompt_id):
        return state

    heart = Heart(user_id=user.id, prompt_id=action.prompt_id, created_at=action.at)
    prompts = _map_prompt(
        state,
        action.prompt_id,
        lambda p: p.model_copy(update={"hearts": p.hearts + 1, "is_hearted": True}),
    )
    return state.model_copy(update={"hearts": [*state.hearts, heart], "prompts": prompts})


@_handles(a.UnheartPrompt)
def _unheart_prompt(state: AppState, action: a.UnheartPrompt) -> AppState:
    user = state.user
    if not user:
        return state

    hearts = [h for h in state.hearts if not (h.user_id == user.id and h.prompt_id == action.prompt_id)]
    prompts = _map_prompt(
        state,
        action.prompt_id,
        lambda p: p.model_copy(update={"hearts": max(0, p.hearts - 1), "is_hearted": False}),
    )
    return state.model_copy(update={"hearts": hearts, "prompts": prompts})


# --- Saves ---


@_handles(a.SavePrompt)
def _save_prompt(state: AppState, action: a.SavePrompt) -> AppState:
    user = state.user
    if not user or state.is_saved(action.prompt_id):
        return state

    save = Save(
        user_id=user.id,
        prompt_id=action.prompt_id,
        collection_id=action.collection_id,
        created_at=action.at,
    )
    prompts = _map_prompt(
        state,
        action.prompt_id,
        lambda p: p.model_copy(update={"save_count": p.save_count + 1, "is_saved": True}),
    )

    notifications = state.notifications
    saved = state.get_prompt(action.prompt_id)
    # Owners are not notified about their own saves
    if saved and saved.user_id != user.id:
        notification = Notification(
            id=action.notification_id,
            user_id=saved.user_id,
            type="prompt_saved",
            title="Prompt Saved",
            message=f'{user.name} saved your prompt "{saved.title}"',
            data=_actor_payload(user, saved),
            created_at=action.at,
        )
        notifications = [*notifications, notification]

    return state.model_copy(
        update={"saves": [*state.saves, save], "prompts": prompts, "notifications": notifications}
    )


@_handles(a.UnsavePrompt)
def _unsave_prompt(state: AppState, action: a.UnsavePrompt) -> AppState:
    user = state.user
    if not user:
        return state

    saves = [s for s in state.saves if not (s.user_id == user.id and s.prompt_id == action.prompt_id)]
    prompts = _map_prompt(
        state,
        action.prompt_id,
        lambda p: p.model_copy(update={"save_count": max(0, p.save_count - 1), "is_saved": False}),
    )
    return state.model_copy(update={"saves": saves, "prompts": prompts})


# --- Repo stars ---


@_handles(a.StarRepo)
def _star_repo(state: AppState, action: a.StarRepo) -> AppState:
    user = state.user
    if not user or state.is_starred(action.repo_id):
        return state

    star = Star(user_id=user.id, repo_id=action.repo_id, created_at=action.at)
    repos = _map_repo(
        state,
        action.repo_id,
        lambda r: r.model_copy(update={"star_count": r.star_count + 1, "is_starred": True}),
    )
    return state.model_copy(update={"stars": [*state.stars, star], "repos": repos})


@_handles(a.UnstarRepo)
def _unstar_repo(state: AppState, action: a.UnstarRepo) -> AppState:
    user = state.user
    if not user:
        return state

    stars = [s for s in state.stars if not (s.user_id == user.id and s.repo_id == action.repo_id)]
    repos = _map_repo(
        state,
        action.repo_id,
        lambda r: r.model_copy(update={"star_count": max(0, r.star_count - 1), "is_starred": False}),
    )
    return state.model_copy(update={"stars": stars, "repos": repos})


# --- Forks ---


@_handles(a.ForkPrompt)
def _fork_prompt(state: AppState, action: a.ForkPrompt) -> AppState:
    prompts = _map_prompt(
        state,
        action.original_id,
        lambda p: p.model_copy(update={"fork_count": p.fork_count + 1}),
    )

    notifications = state.notifications
    original = state.get_prompt(action.original_id)
    user = state.user
    if original and user and original.user_id != action.new_prompt.user_id:
        notification = Notification(
            id=action.notification_id,
            user_id=original.user_id,
            type="prompt_forked",
            title="Prompt Forked",
            message=f'{user.name} forked your prompt "{original.title}"',
            data=_actor_payload(user, original),
            created_at=action.at,
        )
        notifications = [*notifications, notification]

    return state.model_copy(
        update={"prompts": [action.new_prompt, *prompts], "notifications": notifications}
    )


# --- Comments ---


@_handles(a.AddComment)
def _add_comment(state: AppState, action: a.AddComment) -> AppState:
    prompts = _map_prompt(
        state,
        action.comment.prompt_id,
        lambda p: p.model_copy(update={"comment_count": p.comment_count + 1}),
    )
    return state.model_copy(update={"comments": [*state.comments, action.comment], "prompts": prompts})


@_handles(a.UpdateComment)
def _update_comment(state: AppState, action: a.UpdateComment) -> AppState:
    comments = [
        c.model_copy(update={"content": action.content}) if c.id == action.id else c
        for c in state.comments
    ]
    return state.model_copy(update={"comments": comments})


@_handles(a.DeleteComment)
def _delete_comment(state: AppState, action: a.DeleteComment) -> AppState:
    return state.model_copy(update={"comments": [c for c in state.comments if c.id != action.id]})


# --- Follows ---


@_handles(a.FollowUser)
def _follow_user(state: AppState, action: a.FollowUser) -> AppState:
    user = state.user
    if not user or user.id == action.following_id or state.is_following(action.following_id):
        return state

    follow = Follow(follower_id=user.id, following_id=action.following_id, created_at=action.at)
    return state.model_copy(update={"follows": [*state.follows, follow]})


@_handles(a.UnfollowUser)
def _unfollow_user(state: AppState, action: a.UnfollowUser) -> AppState:
    user = state.user
    if not user:
        return state

    follows = [
        f for f in state.follows
        if not (f.follower_id == user.id and f.following_id == action.following_id)
    ]
    return state.model_copy(update={"follows": follows})


# --- Collections ---


@_handles(a.AddCollection)
def _add_collection(state: AppState, action: a.AddCollection) -> AppState:
    return state.model_copy(update={"collections": [*state.collections, action.collection]})


@_handles(a.UpdateCollection)
def _update_collection(state: AppState, action: a.UpdateCollection) -> AppState:
    collections = [
        _patched(c, action.updates) if c.id == action.id else c for c in state.collections
    ]
    return state.model_copy(update={"collections": collections})


@_handles(a.DeleteCollection)
def _delete_collection(state: AppState, action: a.DeleteCollection) -> AppState:
    return state.model_copy(
        update={"collections": [c for c in state.collections if c.id != action.id]}
    )


# --- Notifications ---


@_handles(a.AddNotification)
def _add_notification(state: AppState, action: a.AddNotification) -> AppState:
    return state.model_copy(update={"notifications": [*state.notifications, action.notification]})


@_handles(a.MarkNotificationRead)
def _mark_notification_read(state: AppState, action: a.MarkNotificationRead) -> AppState:
    notifications = [
        n.model_copy(update={"read": True}) if n.id == action.id else n
        for n in state.notifications
    ]
    return state.model_copy(update={"notifications": notifications})


@_handles(a.ClearNotifications)
def _clear_notifications(state: AppState, action: a.ClearNotifications) -> AppState:
    return state.model_copy(update={"notifications": []})


# --- Drafts ---


@_handles(a.SaveDraft)
def _save_draft(state: AppState, action: a.SaveDraft) -> AppState:
    draft = action.draft
    if any(d.id == draft.id for d in state.drafts):
        drafts = [draft if d.id == draft.id else d for d in state.drafts]
    else:
        drafts = [*state.drafts, draft]
    return state.model_copy(update={"drafts": drafts})


@_handles(a.DeleteDraft)
def _delete_draft(state: AppState, action: a.DeleteDraft) -> AppState:
    return state.model_copy(update={"drafts": [d for d in state.drafts if d.id != action.id]})


# --- UI ---


@_handles(a.SetSearchFilters)
def _set_search_filters(state: AppState, action: a.SetSearchFilters) -> AppState:
    patch = {k: v for k, v in action.patch.model_dump(exclude_unset=True).items() if v is not None}
    return state.model_copy(update={"search_filters": _patched(state.search_filters, patch)})


@_handles(a.SetTheme)
def _set_theme(state: AppState, action: a.SetTheme) -> AppState:
    return state.model_copy(update={"theme": action.theme})


@_handles(a.SetLoading)
def _set_loading(state: AppState, action: a.SetLoading) -> AppState:
    return state.model_copy(update={"loading": action.loading})


@_handles(a.SetError)
def _set_error(state: AppState, action: a.SetError) -> AppState:
    return state.model_copy(update={"error": action.error})


@_handles(a.AddPromptFeedback)
def _add_prompt_feedback(state: AppState, action: a.AddPromptFeedback) -> AppState:
    return state.model_copy(
        update={"prompt_feedbacks": [*state.prompt_feedbacks, action.feedback]}
    )
