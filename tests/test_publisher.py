"""Tests for publishing and forking prompts."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from prompts_go.core.actions import HeartPrompt
from prompts_go.core.drafts import DraftManager, MemoryStorage, draft_key
from prompts_go.core.publisher import SUBMIT_ERROR, PromptPublisher
from prompts_go.core.validation import PromptForm
from prompts_go.db.gateway import GatewayError, GatewayResult
from prompts_go.db.models import Repo, User


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def publisher(store, gateway, storage):
    return PromptPublisher(store, gateway, DraftManager(store, storage))


@pytest.fixture
def work_repo(gateway, user):
    return gateway.repos.create({"user_id": user.id, "name": "Work"}).data


@pytest.fixture
def private_repo(gateway, user):
    return gateway.repos.create({"user_id": user.id, "name": "Secret", "visibility": "private"}).data


@pytest.fixture
def form():
    return PromptForm(
        title="Meeting Summary",
        description="Summarise meeting notes into actions",
        content="Summarise these notes: {{notes}}",
        category="business",
        tags=["meetings"],
        model_compatibility=["gpt4", "claude3"],
    )


def _in(form, repo):
    return form.model_copy(update={"repo_id": repo.id})


class TestPublish:
    def test_create(self, publisher, store, gateway, form, work_repo, user):
        result = publisher.publish(_in(form, work_repo), user)
        assert result.ok
        assert result.created
        assert result.prompt.repo_id == work_repo.id
        assert store.state.prompts[0] == result.prompt
        assert gateway.prompts.get_by_id(result.prompt.id).data.title == "Meeting Summary"

    def test_validation_errors_stop_publish(self, publisher, store, form, user):
        invalid = form.model_copy(update={"title": "Hi"})
        before = store.state
        result = publisher.publish(invalid, user)
        assert result.errors == {"title": "Title must be at least 5 characters"}
        assert store.state is before

    def test_only_text_prompts_created(self, publisher, form, work_repo, user):
        result = publisher.publish(_in(form, work_repo).model_copy(update={"type": "image"}), user)
        assert "type" in result.errors

    def test_private_repo_argument_forces_private(self, publisher, form, user):
        repo = Repo(id="r1", user_id=user.id, name="Secret", visibility="private")
        result = publisher.publish(form.model_copy(update={"repo_id": "r1"}), user, repo=repo)
        assert result.prompt.visibility == "private"

    def test_private_repo_from_form_forces_private(self, publisher, form, private_repo, user):
        result = publisher.publish(_in(form, private_repo), user)
        assert result.prompt.visibility == "private"

    def test_private_first_repo_forces_private(self, publisher, form, private_repo, user):
        result = publisher.publish(form, user)
        assert result.prompt.repo_id == private_repo.id
        assert result.prompt.visibility == "private"

    def test_stale_repo_argument_ignored(self, publisher, form, private_repo, user):
        other = Repo(id="elsewhere", user_id=user.id, name="Open")
        result = publisher.publish(_in(form, private_repo), user, repo=other)
        assert result.prompt.visibility == "private"

    def test_edit_in_private_repo_forces_private(self, publisher, gateway, form, private_repo, user):
        legacy = gateway.prompts.create(
            {"user_id": user.id, "repo_id": private_repo.id, "title": "Old", "visibility": "public"}
        ).data
        result = publisher.publish(form, user, editing=legacy)
        assert result.prompt.visibility == "private"

    def test_unknown_repo_fails(self, publisher, store, form, user):
        before = store.state
        result = publisher.publish(form.model_copy(update={"repo_id": "missing"}), user)
        assert result.errors == {"submit": SUBMIT_ERROR}
        assert store.state is before

    def test_clears_draft(self, publisher, storage, form, work_repo, user):
        publisher.drafts.save(user.id, {"title": "Meeting Summary"})
        publisher.publish(_in(form, work_repo), user)
        assert storage.get(draft_key(user.id)) is None

    def test_update(self, publisher, store, form, work_repo, user):
        created = publisher.publish(_in(form, work_repo), user).prompt
        edited = form.model_copy(update={"title": "Meeting Summary v2"})
        result = publisher.publish(edited, user, editing=created)
        assert not result.created
        assert store.state.get_prompt(created.id).title == "Meeting Summary v2"
        assert len(store.state.prompts) == 2

    def test_update_keeps_viewer_state(self, publisher, store, form, work_repo, user):
        created = publisher.publish(_in(form, work_repo), user).prompt
        store.dispatch(HeartPrompt(prompt_id=created.id))

        publisher.publish(form.model_copy(update={"title": "Renamed Summary"}), user, editing=created)

        updated = store.state.get_prompt(created.id)
        assert updated.title == "Renamed Summary"
        assert updated.is_hearted is True
        assert updated.is_hearted == store.state.is_hearted(created.id)
        assert updated.hearts == 1

    def test_uses_first_existing_repo(self, publisher, form, work_repo, user):
        result = publisher.publish(form, user)
        assert result.prompt.repo_id == work_repo.id

    def test_creates_default_repo(self, publisher, gateway, form, user):
        result = publisher.publish(form, user)
        repos = gateway.repos.get_all(user.id).data
        assert [r.name for r in repos] == ["Alice's Prompts"]
        assert result.prompt.repo_id == repos[0].id

    def test_gateway_failure(self, store, form, user):
        gateway = MagicMock()
        gateway.repos.get_by_id.return_value = GatewayResult(
            data=Repo(id="r1", user_id=user.id, name="Work")
        )
        gateway.prompts.create.return_value = GatewayResult(error=GatewayError("offline"))
        result = PromptPublisher(store, gateway).publish(
            form.model_copy(update={"repo_id": "r1"}), user
        )
        assert result.errors == {"submit": SUBMIT_ERROR}
        assert not result.ok


class TestFork:
    def test_fork(self, publisher, store, prompt, user):
        result = publisher.fork(prompt, user)
        fork = result.prompt
        assert fork.title == "Fork of Blog Post Outline"
        assert fork.parent_id == prompt.id
        assert fork.user_id == user.id
        assert fork.hearts == 0
        assert store.state.prompts[0] == fork
        assert store.state.get_prompt(prompt.id).fork_count == 1
        assert store.state.notifications[0].type == "prompt_forked"

    def test_fork_limit(self, publisher, store, prompt, user):
        before = store.state
        result = publisher.fork(prompt, user, forks_this_month=100)
        assert "Fork limit reached" in result.errors["fork"]
        assert store.state is before

    def test_pro_fork_limit(self, publisher, prompt):
        pro = User(id="u1", username="alice", name="Alice", role="pro")
        assert publisher.fork(prompt, pro, forks_this_month=100).ok
