"""Tests for history integration and back navigation."""

from __future__ import annotations

import pytest

from prompts_go.core.history import MemoryHistory, Router, back_destination
from prompts_go.core.routing import (
    ExplorePage,
    HomePage,
    MyPromptsPage,
    MyRepoPage,
    ProfilePage,
    PromptPage,
    RepoPage,
    ReposPage,
)


@pytest.fixture
def history():
    return MemoryHistory()


@pytest.fixture
def router(history):
    r = Router(history)
    r.start()
    yield r
    r.close()


class TestMemoryHistory:
    def test_push_and_back(self, history):
        history.push_state("/explore")
        history.push_state("/repos")
        assert history.back() is True
        assert history.location == "/explore"
        assert history.forward() is True
        assert history.location == "/repos"

    def test_push_truncates_forward_entries(self, history):
        history.push_state("/a")
        history.push_state("/b")
        history.back()
        history.push_state("/c")
        assert history.entries == ["/", "/a", "/c"]

    def test_replace(self, history):
        history.replace_state("/about")
        assert history.entries == ["/about"]

    def test_back_at_start(self, history):
        assert history.back() is False

    def test_popstate_only_on_traversal(self, history):
        seen = []
        history.on_popstate(seen.append)
        history.push_state("/explore")
        assert seen == []
        history.back()
        assert seen == ["/"]


class TestRouter:
    def test_start_reads_location(self):
        router = Router(MemoryHistory("/repo/r1?from=explore"))
        assert router.start() == RepoPage(repo_id="r1", origin="explore")

    def test_navigate_writes_history(self, router, history):
        router.navigate(PromptPage(prompt_id="p1", origin="explore"))
        assert history.location == "/prompt/p1?from=explore"
        assert router.current == PromptPage(prompt_id="p1", origin="explore")

    def test_navigate_replace(self, router, history):
        router.navigate(ExplorePage(search_query="x"), replace=True)
        assert history.entries == ["/explore?q=x"]

    def test_back_navigation_scenario(self, router):
        router.navigate(RepoPage(repo_id="r1"))
        router.navigate(PromptPage(prompt_id="p1", origin="repo", repo_id="r1"))
        assert router.go_back() == RepoPage(repo_id="r1")
        assert router.current == RepoPage(repo_id="r1")

    def test_browser_back_restores_page(self, router, history):
        router.navigate(RepoPage(repo_id="r1"))
        router.navigate(PromptPage(prompt_id="p1", origin="repo", repo_id="r1"))
        history.back()
        assert router.current == RepoPage(repo_id="r1")
        history.forward()
        assert router.current == PromptPage(prompt_id="p1", origin="repo", repo_id="r1")

    def test_subscribers_see_changes(self, router):
        seen = []
        unsubscribe = router.subscribe(seen.append)
        router.navigate(ExplorePage())
        unsubscribe()
        router.navigate(HomePage())
        assert seen == [ExplorePage()]

    def test_close_stops_popstate(self, router, history):
        router.navigate(ExplorePage())
        router.close()
        history.back()
        assert router.current == ExplorePage()


class TestBackDestination:
    @pytest.mark.parametrize(
        "page, expected",
        [
            (PromptPage(prompt_id="p1", origin="repo", repo_id="r1"), RepoPage(repo_id="r1")),
            (PromptPage(prompt_id="p1", origin="repo"), HomePage()),
            (PromptPage(prompt_id="p1", origin="explore"), ExplorePage()),
            (PromptPage(prompt_id="p1", origin="repos"), ReposPage(user_id="u1")),
            (PromptPage(prompt_id="p1", origin="my-repo"), MyRepoPage(user_id="u1")),
            (PromptPage(prompt_id="p1", origin="my-prompts"), MyPromptsPage(user_id="u1")),
            (PromptPage(prompt_id="p1"), HomePage()),
            (RepoPage(repo_id="r1", origin="my-repo"), MyRepoPage(user_id="u1")),
            (RepoPage(repo_id="r1", origin="repos"), ReposPage(user_id="u1")),
            (RepoPage(repo_id="r1"), ExplorePage()),
            (ProfilePage(user_id="u2"), HomePage()),
        ],
    )
    def test_destinations(self, page, expected):
        assert back_destination(page, user_id="u1") == expected
