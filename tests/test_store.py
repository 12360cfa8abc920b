"""Tests for the application store container."""

from __future__ import annotations

import threading

from prompts_go.core.actions import HeartPrompt, SetLoading, UnheartPrompt
from prompts_go.core.store import AppStore


class TestAppStore:
    def test_dispatch_updates_state(self, store):
        store.dispatch(HeartPrompt(prompt_id="p1"))
        assert store.state.get_prompt("p1").hearts == 1

    def test_subscriber_notified_on_change(self, store):
        seen = []
        store.subscribe(lambda state, action: seen.append(type(action).__name__))
        store.dispatch(HeartPrompt(prompt_id="p1"))
        assert seen == ["HeartPrompt"]

    def test_subscriber_not_notified_on_noop(self, store):
        store.dispatch(HeartPrompt(prompt_id="p1"))
        seen = []
        store.subscribe(lambda state, action: seen.append(action))
        store.dispatch(HeartPrompt(prompt_id="p1"))
        assert seen == []

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda state, action: seen.append(action))
        unsubscribe()
        store.dispatch(SetLoading(loading=True))
        assert seen == []

    def test_failing_listener_does_not_break_dispatch(self, store):
        def broken(state, action):
            raise RuntimeError("listener bug")

        store.subscribe(broken)
        result = store.dispatch(SetLoading(loading=True))
        assert result.loading is True

    def test_listener_may_dispatch(self, store):
        def follow_up(state, action):
            if isinstance(action, HeartPrompt):
                store.dispatch(SetLoading(loading=True))

        store.subscribe(follow_up)
        store.dispatch(HeartPrompt(prompt_id="p1"))
        assert store.state.loading is True

    def test_default_state(self):
        assert AppStore().state.user is None

    def test_concurrent_toggles_stay_consistent(self, store):
        def toggle():
            for _ in range(50):
                store.dispatch(HeartPrompt(prompt_id="p1"))
                store.dispatch(UnheartPrompt(prompt_id="p1"))

        threads = [threading.Thread(target=toggle) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        hearts = store.state.get_prompt("p1").hearts
        assert hearts in (0, 1)
        assert hearts == len(store.state.hearts)
