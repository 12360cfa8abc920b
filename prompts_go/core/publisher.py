"""Publishing and forking prompts: gateway write, then store update."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

import structlog

from prompts_go.core.actions import AddPrompt, ForkPrompt, UpdatePrompt
from prompts_go.core.drafts import DraftManager
from prompts_go.core.store import AppStore
from prompts_go.core.validation import (
    PromptForm,
    can_fork_more,
    effective_visibility,
    validate_prompt_form,
)
from prompts_go.db.gateway import PersistenceGateway
from prompts_go.db.models import Prompt, Repo, User, utcnow

logger = structlog.get_logger()

SUBMIT_ERROR = "An unexpected error occurred. Please try again."

# Viewer flags and counters are owned by the reducer, not by edits
LOCAL_FIELDS = {
    "is_hearted",
    "is_saved",
    "is_forked",
    "hearts",
    "save_count",
    "fork_count",
    "comment_count",
    "view_count",
}


@dataclass
class PublishResult:
    prompt: Prompt | None = None
    created: bool = False
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.prompt is not None and not self.errors


class PromptPublisher:
    def __init__(
        self,
        store: AppStore,
        gateway: PersistenceGateway,
        drafts: DraftManager | None = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.drafts = drafts

    def _resolve_repo_id(self, form: PromptForm, user: User, editing: Prompt | None) -> str | None:
        """Pick the target repo: the edited prompt's, the form's, the user's first, or a new one."""
        if editing is not None and editing.repo_id:
            return editing.repo_id
        if form.repo_id:
            return form.repo_id

        existing = self.gateway.repos.get_all(user.id)
        if not existing.ok:
            return None
        if existing.data:
            return existing.data[0].id

        created = self.gateway.repos.create(
            {
                "user_id": user.id,
                "name": f"{user.name or user.username}'s Prompts",
                "description": "My prompt collection",
                "visibility": "public",
            }
        )
        if not created.ok or created.data is None:
            return None
        logger.info("publisher.default_repo_created", user_id=user.id, repo_id=created.data.id)
        return created.data.id

    def _target_repo(self, repo_id: str, repo: Repo | None) -> Repo | None:
        if repo is not None and repo.id == repo_id:
            return repo
        found = self.gateway.repos.get_by_id(repo_id)
        return found.data if found.ok else None

    def publish(
        self,
        form: PromptForm,
        user: User,
        repo: Repo | None = None,
        editing: Prompt | None = None,
    ) -> PublishResult:
        """Validate ``form`` and create or update the prompt it describes."""
        errors = validate_prompt_form(form, creating=editing is None)
        if errors:
            return PublishResult(errors=errors)

        repo_id = self._resolve_repo_id(form, user, editing)
        if not repo_id:
            logger.warning("publisher.no_repo", user_id=user.id)
            return PublishResult(errors={"submit": SUBMIT_ERROR})

        target_repo = self._target_repo(repo_id, repo)
        if target_repo is None:
            logger.warning("publisher.repo_unavailable", user_id=user.id, repo_id=repo_id)
            return PublishResult(errors={"submit": SUBMIT_ERROR})

        data = {
            "repo_id": repo_id,
            "user_id": user.id,
            "title": form.title,
            "description": form.description,
            "content": form.content,
            "type": form.type,
            "category": form.category,
            "tags": form.tags,
            "model_compatibility": form.model_compatibility,
            "visibility": effective_visibility(form.visibility, target_repo),
        }

        if editing is not None:
            result = self.gateway.prompts.update(editing.id, data)
        else:
            result = self.gateway.prompts.create(data)

        if not result.ok or result.data is None:
            logger.warning(
                "publisher.write_failed",
                user_id=user.id,
                error=result.error.message if result.error else None,
            )
            return PublishResult(errors={"submit": SUBMIT_ERROR})

        prompt = result.data
        if editing is not None:
            updates = prompt.model_dump(exclude=LOCAL_FIELDS)
            self.store.dispatch(UpdatePrompt(id=editing.id, updates=updates))
        else:
            self.store.dispatch(AddPrompt(prompt=prompt))

        if self.drafts is not None:
            self.drafts.clear(user.id)

        logger.info("publisher.published", prompt_id=prompt.id, created=editing is None)
        return PublishResult(prompt=prompt, created=editing is None)

    def fork(self, original: Prompt, user: User, forks_this_month: int = 0) -> PublishResult:
        """Copy ``original`` into a new prompt owned by ``user``."""
        check = can_fork_more(user, forks_this_month)
        if not check.allowed:
            return PublishResult(errors={"fork": check.message})

        now = utcnow()
        new_prompt = original.model_copy(
            update={
                "id": f"prompt-{uuid4().hex}",
                "user_id": user.id,
                "title": f"Fork of {original.title}",
                "parent_id": original.id,
                "version": "1.0.0",
                "hearts": 0,
                "save_count": 0,
                "fork_count": 0,
                "comment_count": 0,
                "view_count": 0,
                "created_at": now,
                "updated_at": now,
                "is_hearted": False,
                "is_saved": False,
                "is_forked": False,
            }
        )
        self.store.dispatch(ForkPrompt(original_id=original.id, new_prompt=new_prompt, at=now))
        logger.info("publisher.forked", original_id=original.id, prompt_id=new_prompt.id)
        return PublishResult(prompt=new_prompt, created=True)
