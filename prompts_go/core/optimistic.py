"""Optimistic social actions (heart, save, star) with token-guarded reconciliation.

Every social toggle follows the same lifecycle, implemented once by
``OptimisticCommand``:

1. ``apply``: capture the current flag, issue a request token and dispatch the
   toggled action immediately.
2. ``commit``: when the durable write succeeds, align local state with the
   gateway's authoritative ``added``/``removed`` outcome.
3. ``rollback``: when the write fails, dispatch the action that restores the
   captured flag.

``commit`` and ``rollback`` only act while the command's token is still the
latest one issued for its ``(target, kind)`` key. A response that arrives after
a newer toggle of the same target is discarded, so late network results can
never overwrite a more recent optimistic state.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from prompts_go.core import actions as a
from prompts_go.core.state import AppState
from prompts_go.core.store import AppStore
from prompts_go.db.gateway import GatewayResult, PersistenceGateway, ToggleResult

logger = structlog.get_logger()

TokenKey = tuple[str, str]


@dataclass(frozen=True)
class SocialToggle:
    """How one kind of social flag is read from and written to the store."""

    kind: str
    is_active: Callable[[AppState, str], bool]
    on: Callable[..., a.BaseAction]
    off: Callable[[str], a.BaseAction]


HEART = SocialToggle(
    kind="heart",
    is_active=AppState.is_hearted,
    on=lambda target_id, **_: a.HeartPrompt(prompt_id=target_id),
    off=lambda target_id: a.UnheartPrompt(prompt_id=target_id),
)

SAVE = SocialToggle(
    kind="save",
    is_active=AppState.is_saved,
    on=lambda target_id, collection_id=None, **_: a.SavePrompt(
        prompt_id=target_id, collection_id=collection_id
    ),
    off=lambda target_id: a.UnsavePrompt(prompt_id=target_id),
)

STAR = SocialToggle(
    kind="star",
    is_active=AppState.is_starred,
    on=lambda target_id, **_: a.StarRepo(repo_id=target_id),
    off=lambda target_id: a.UnstarRepo(repo_id=target_id),
)


class RequestTokens:
    """Monotonic request tokens, tracking the latest one per key."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: dict[TokenKey, int] = {}
        self._lock = threading.Lock()

    def issue(self, key: TokenKey) -> int:
        with self._lock:
            token = next(self._counter)
            self._latest[key] = token
            return token

    def is_latest(self, key: TokenKey, token: int) -> bool:
        with self._lock:
            return self._latest.get(key) == token


class OptimisticCommand:
    """One optimistic toggle of a social flag on ``target_id``."""

    def __init__(
        self,
        store: AppStore,
        tokens: RequestTokens,
        toggle: SocialToggle,
        target_id: str,
        **extra: Any,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.toggle = toggle
        self.target_id = target_id
        self.extra = extra
        self.previous: bool | None = None
        self.token: int | None = None

    @property
    def key(self) -> TokenKey:
        return (self.target_id, self.toggle.kind)

    @property
    def is_current(self) -> bool:
        return self.token is not None and self.tokens.is_latest(self.key, self.token)

    def _action_for(self, active: bool) -> a.BaseAction:
        if active:
            return self.toggle.on(self.target_id, **self.extra)
        return self.toggle.off(self.target_id)

    def _is_active(self) -> bool:
        return self.toggle.is_active(self.store.state, self.target_id)

    def apply(self) -> bool:
        """Dispatch the toggled action; returns the assumed new flag."""
        self.previous = self._is_active()
        self.token = self.tokens.issue(self.key)
        self.store.dispatch(self._action_for(not self.previous))
        return not self.previous

    def commit(self, result: ToggleResult) -> bool:
        """Reconcile with the gateway outcome. Returns False if discarded as stale."""
        if not self.is_current:
            logger.info("optimistic.stale_response", kind=self.toggle.kind, target=self.target_id)
            return False

        confirmed = result.action == "added"
        if confirmed != self._is_active():
            logger.info(
                "optimistic.reconciled",
                kind=self.toggle.kind,
                target=self.target_id,
                action=result.action,
            )
            self.store.dispatch(self._action_for(confirmed))
        return True

    def rollback(self) -> bool:
        """Restore the flag captured by ``apply``. Returns False if discarded as stale."""
        if not self.is_current or self.previous is None:
            logger.info("optimistic.stale_rollback", kind=self.toggle.kind, target=self.target_id)
            return False

        self.store.dispatch(self._action_for(self.previous))
        return True


class SocialActions:
    """Entry points for every interactive heart/save/star control."""

    def __init__(
        self,
        store: AppStore,
        gateway: PersistenceGateway,
        tokens: RequestTokens | None = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.tokens = tokens or RequestTokens()

    async def toggle_heart(self, prompt_id: str) -> bool | None:
        return await self._run(
            HEART,
            prompt_id,
            lambda user_id, _intended: self.gateway.hearts.toggle(prompt_id, user_id),
        )

    async def toggle_save(self, prompt_id: str, collection_id: str | None = None) -> bool | None:
        return await self._run(
            SAVE,
            prompt_id,
            lambda user_id, _intended: self.gateway.saves.toggle(prompt_id, user_id, collection_id),
            collection_id=collection_id,
        )

    async def toggle_star(self, repo_id: str) -> bool | None:
        def request(user_id: str, intended: bool) -> GatewayResult[ToggleResult]:
            if intended:
                return self.gateway.repo_social.star(repo_id, user_id)
            return self.gateway.repo_social.unstar(repo_id, user_id)

        return await self._run(STAR, repo_id, request)

    async def _run(
        self,
        toggle: SocialToggle,
        target_id: str,
        request: Callable[[str, bool], GatewayResult[ToggleResult]],
        **extra: Any,
    ) -> bool | None:
        """Run one optimistic toggle; returns the flag afterwards, None without a user."""
        user = self.store.state.user
        if not user:
            logger.info("social.requires_user", kind=toggle.kind, target=target_id)
            return None

        command = OptimisticCommand(self.store, self.tokens, toggle, target_id, **extra)
        intended = command.apply()

        try:
            result = await asyncio.to_thread(request, user.id, intended)
        except Exception as e:
            logger.warning("social.request_failed", kind=toggle.kind, target=target_id, error=str(e))
            command.rollback()
        else:
            if result.ok and result.data is not None:
                command.commit(result.data)
            else:
                logger.warning(
                    "social.write_rejected",
                    kind=toggle.kind,
                    target=target_id,
                    error=result.error.message if result.error else None,
                )
                command.rollback()

        return toggle.is_active(self.store.state, target_id)
