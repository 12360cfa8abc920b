"""Tests for the page-state URL codec."""

from __future__ import annotations

import pytest

from prompts_go.core.routing import (
    PAGE_TYPES,
    AboutPage,
    AdminPage,
    CreatePage,
    ExplorePage,
    HomePage,
    MyPromptsPage,
    MyRepoPage,
    PageUrl,
    PrivacyPage,
    ProfilePage,
    PromptPage,
    RepoPage,
    ReposPage,
    SettingsPage,
    TermsPage,
    decode,
    encode,
    from_url,
    parse_page,
    to_url,
)
from prompts_go.db.models import Prompt

PAGES = [
    HomePage(),
    ExplorePage(),
    ExplorePage(search_query="python tips"),
    ReposPage(),
    ReposPage(user_id="u1"),
    MyRepoPage(user_id="u1"),
    MyPromptsPage(),
    MyPromptsPage(user_id="u1"),
    RepoPage(repo_id="r1"),
    RepoPage(repo_id="r1", origin="my-repo"),
    CreatePage(),
    CreatePage(repo_id="r1"),
    PromptPage(prompt_id="p1"),
    PromptPage(prompt_id="p1", origin="repo", repo_id="r1"),
    PromptPage(prompt_id="p/1 x", origin="explore"),
    ProfilePage(user_id="u1"),
    ProfilePage(user_id="u1", tab="saved"),
    SettingsPage(),
    AboutPage(),
    TermsPage(),
    PrivacyPage(),
    AdminPage(),
]


class TestEncode:
    def test_home(self):
        assert encode(HomePage()) == PageUrl(path="/")

    def test_prompt_with_origin(self):
        url = encode(PromptPage(prompt_id="p1", origin="repo", repo_id="r1"))
        assert url.path == "/prompt/p1"
        assert url.query == {"from": "repo", "repoId": "r1"}

    def test_absent_optionals_omitted(self):
        assert to_url(ExplorePage()) == "/explore"
        assert to_url(RepoPage(repo_id="r1")) == "/repo/r1"

    def test_query_string(self):
        assert to_url(ExplorePage(search_query="a b")) == "/explore?q=a+b"

    def test_admin_path(self):
        assert to_url(AdminPage()) == "/admin-bulk-ops"

    def test_id_is_percent_encoded(self):
        assert encode(PromptPage(prompt_id="a/b")).path == "/prompt/a%2Fb"

    def test_editing_prompt_not_encoded(self):
        editing = Prompt(id="p1", user_id="u1", title="Draft")
        assert to_url(CreatePage(repo_id="r1", editing_prompt=editing)) == "/create?repoId=r1"


class TestDecode:
    @pytest.mark.parametrize("page", PAGES, ids=lambda p: to_url(p))
    def test_round_trip(self, page):
        url = encode(page)
        assert decode(url.path, url.query) == page

    @pytest.mark.parametrize("page", PAGES, ids=lambda p: to_url(p))
    def test_round_trip_through_string(self, page):
        assert from_url(to_url(page)) == page

    def test_every_variant_is_covered(self):
        assert {type(p) for p in PAGES} == set(PAGE_TYPES)

    def test_unknown_path_falls_back_home(self):
        assert decode("/totally/unknown/path", {}) == HomePage()

    def test_missing_id_falls_back_home(self):
        assert decode("/prompt", {}) == HomePage()
        assert decode("/repo/", {}) == HomePage()

    def test_invalid_origin_dropped(self):
        page = decode("/prompt/p1", {"from": "nowhere", "repoId": "r1"})
        assert page == PromptPage(prompt_id="p1", repo_id="r1")

    def test_path_wins_over_query(self):
        page = decode("/prompt/p1", {"promptId": "p2", "prompt_id": "p3"})
        assert page.prompt_id == "p1"

    def test_empty_query_values_are_absent(self):
        assert decode("/explore", {"q": ""}) == ExplorePage()

    def test_full_url_ignores_host(self):
        page = from_url("https://promptsgo.example/repo/r1?from=repos")
        assert page == RepoPage(repo_id="r1", origin="repos")

    def test_first_duplicate_param_wins(self):
        assert from_url("/explore?q=one&q=two") == ExplorePage(search_query="one")

    def test_edit_page_reloads_as_blank_create(self):
        editing = Prompt(id="p1", user_id="u1", title="Draft")
        reloaded = from_url(to_url(CreatePage(editing_prompt=editing)))
        assert reloaded == CreatePage()

    def test_trailing_segments_ignored(self):
        assert decode("/settings/extra", None) == SettingsPage()


class TestParsePage:
    def test_from_alias(self):
        page = parse_page({"type": "repo", "repo_id": "r1", "from": "explore"})
        assert page == RepoPage(repo_id="r1", origin="explore")

    def test_field_name(self):
        page = parse_page({"type": "prompt", "prompt_id": "p1", "origin": "home"})
        assert page.origin == "home"
