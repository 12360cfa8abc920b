"""Session provider: wires theme preference and auth session into the store."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

import structlog

from prompts_go.core.actions import BaseAction, SetTheme, SetUser
from prompts_go.core.drafts import KeyValueStorage
from prompts_go.core.state import AppState
from prompts_go.core.store import AppStore
from prompts_go.db.models import Theme, User

logger = structlog.get_logger()

THEME_KEY = "theme"
THEMES: tuple[str, ...] = ("light", "dark")

AuthCallback = Callable[[str, Any], None]


class AuthSubscription(Protocol):
    def unsubscribe(self) -> None: ...


class AuthClient(Protocol):
    """The part of ``supabase.Client.auth`` the provider relies on."""

    def get_session(self) -> Any: ...

    def on_auth_state_change(self, callback: AuthCallback) -> AuthSubscription: ...


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def map_auth_user(auth_user: Any) -> User | None:
    """Build the session ``User`` from an auth user (object or dict)."""
    if not auth_user:
        return None

    metadata = _field(auth_user, "user_metadata") or {}
    email = _field(auth_user, "email") or ""
    local_part = email.split("@")[0] if email else ""

    return User(
        id=_field(auth_user, "id"),
        name=metadata.get("full_name") or metadata.get("name") or local_part or "User",
        username=metadata.get("user_name") or local_part or "user",
        role="general",
        avatar_url=metadata.get("avatar_url"),
        email=email or None,
    )


class AppProvider:
    """Starts and stops the session side effects around an ``AppStore``.

    Usable as a context manager::

        with AppProvider(store, client.auth, storage) as provider:
            ...
    """

    def __init__(
        self,
        store: AppStore,
        auth: AuthClient | None,
        storage: KeyValueStorage,
        default_theme: Theme = "light",
    ) -> None:
        self.store = store
        self.auth = auth
        self.storage = storage
        self.default_theme = default_theme
        self._auth_subscription: AuthSubscription | None = None
        self._unsubscribe_store: Callable[[], None] | None = None

    def start(self) -> AppState:
        self.store.dispatch(SetTheme(theme=self._stored_theme()))
        self._unsubscribe_store = self.store.subscribe(self._persist_theme)

        if self.auth is not None:
            self._load_session()
            self._auth_subscription = self.auth.on_auth_state_change(self._on_auth_change)

        logger.info("provider.started", theme=self.store.state.theme, signed_in=bool(self.store.state.user))
        return self.store.state

    def close(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None
        if self._unsubscribe_store is not None:
            self._unsubscribe_store()
            self._unsubscribe_store = None

    def __enter__(self) -> AppProvider:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _stored_theme(self) -> Theme:
        saved = self.storage.get(THEME_KEY)
        if saved in THEMES:
            return saved  # type: ignore[return-value]
        return self.default_theme

    def _load_session(self) -> None:
        try:
            session = self.auth.get_session()
        except Exception as e:
            logger.warning("provider.session_failed", error=str(e))
            return
        self.store.dispatch(SetUser(user=map_auth_user(_field(session, "user"))))

    def _on_auth_change(self, event: str, session: Any) -> None:
        logger.info("provider.auth_changed", auth_event=event)
        self.store.dispatch(SetUser(user=map_auth_user(_field(session, "user"))))

    def _persist_theme(self, state: AppState, action: BaseAction) -> None:
        if isinstance(action, SetTheme):
            self.storage.set(THEME_KEY, state.theme)
