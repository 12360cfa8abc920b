"""Browser-history integration for the page-state codec."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import structlog

from prompts_go.core.routing import (
    BasePage,
    ExplorePage,
    HomePage,
    MyPromptsPage,
    MyRepoPage,
    PromptPage,
    RepoPage,
    ReposPage,
    from_url,
    to_url,
)

logger = structlog.get_logger()

PopStateListener = Callable[[str], None]


class History(Protocol):
    """The subset of ``window.history`` / ``window.location`` the router uses."""

    @property
    def location(self) -> str: ...

    def push_state(self, url: str) -> None: ...

    def replace_state(self, url: str) -> None: ...

    def on_popstate(self, listener: PopStateListener) -> Callable[[], None]: ...


class MemoryHistory:
    """In-process history stack with browser semantics.

    ``push_state`` drops any forward entries; ``back`` and ``forward`` move the
    cursor and fire popstate listeners with the new location. Writing state
    never fires popstate.
    """

    def __init__(self, initial_url: str = "/") -> None:
        self._entries: list[str] = [initial_url]
        self._index = 0
        self._listeners: list[PopStateListener] = []

    @property
    def location(self) -> str:
        return self._entries[self._index]

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def push_state(self, url: str) -> None:
        del self._entries[self._index + 1 :]
        self._entries.append(url)
        self._index += 1

    def replace_state(self, url: str) -> None:
        self._entries[self._index] = url

    def back(self) -> bool:
        return self.go(-1)

    def forward(self) -> bool:
        return self.go(1)

    def go(self, delta: int) -> bool:
        target = self._index + delta
        if delta == 0 or not 0 <= target < len(self._entries):
            return False
        self._index = target
        for listener in list(self._listeners):
            listener(self.location)
        return True

    def on_popstate(self, listener: PopStateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


def apply_to_history(history: History, page: BasePage, replace: bool = False) -> str:
    """Write ``page`` to ``history`` without reading it back."""
    url = to_url(page)
    if replace:
        history.replace_state(url)
    else:
        history.push_state(url)
    return url


def read_from_history(history: History) -> BasePage:
    return from_url(history.location)


def back_destination(page: BasePage, user_id: str | None = None) -> BasePage:
    """Where the in-page "back" control leads from ``page``.

    Uses the ``from`` provenance preserved in the URL so that, for example, a
    prompt opened from a repo returns to that repo.
    """
    if isinstance(page, PromptPage):
        if page.origin == "repo" and page.repo_id:
            return RepoPage(repo_id=page.repo_id)
        if page.origin == "explore":
            return ExplorePage()
        if page.origin == "repos":
            return ReposPage(user_id=user_id)
        if page.origin == "my-repo":
            return MyRepoPage(user_id=user_id)
        if page.origin == "my-prompts":
            return MyPromptsPage(user_id=user_id)
        return HomePage()

    if isinstance(page, RepoPage):
        if page.origin == "my-repo":
            return MyRepoPage(user_id=user_id)
        if page.origin == "repos":
            return ReposPage(user_id=user_id)
        return ExplorePage()

    return HomePage()


class Router:
    """Owns the current page and keeps it in step with a ``History``.

    ``navigate`` only writes history; popstate (back/forward) is the only path
    that decodes the location back into a page.
    """

    def __init__(self, history: History) -> None:
        self.history = history
        self._current: BasePage = HomePage()
        self._listeners: list[Callable[[BasePage], None]] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def current(self) -> BasePage:
        return self._current

    def start(self) -> BasePage:
        """Read the initial page and begin listening for popstate."""
        self._current = read_from_history(self.history)
        if self._unsubscribe is None:
            self._unsubscribe = self.history.on_popstate(self._on_popstate)
        logger.debug("router.started", page=self._current.type)
        return self._current

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def navigate(self, page: BasePage, replace: bool = False) -> None:
        apply_to_history(self.history, page, replace=replace)
        self._set(page)

    def go_back(self, user_id: str | None = None) -> BasePage:
        """Handle the in-page back control for the current page."""
        destination = back_destination(self._current, user_id)
        self.navigate(destination)
        return destination

    def subscribe(self, listener: Callable[[BasePage], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _on_popstate(self, location: str) -> None:
        self._set(from_url(location))

    def _set(self, page: BasePage) -> None:
        self._current = page
        for listener in list(self._listeners):
            listener(page)
