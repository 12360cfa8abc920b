"""Local draft persistence for the prompt editor.

Drafts live in a small key-value store (one JSON document per user) and are
mirrored into the application store through SAVE_DRAFT / DELETE_DRAFT.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Protocol

import structlog
from pydantic import ValidationError

from prompts_go.core.actions import DeleteDraft, SaveDraft
from prompts_go.core.store import AppStore
from prompts_go.db.models import Draft, Prompt, utcnow

logger = structlog.get_logger()


def draft_key(user_id: str) -> str:
    return f"prompt-draft-{user_id}"


class KeyValueStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage, for tests and short-lived sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage:
    """Storage persisted as one JSON object on disk.

    The file is re-read on every access so separate processes (the CLI and a
    long-running session) see each other's writes.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            logger.warning("storage.corrupt_file", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Readers only ever see the old or the new file, never a partial one
        tmp = self.path.with_name(f".{self.path.name}.tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True))
        tmp.replace(self.path)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._read())


class DraftManager:
    """Keeps the per-user draft in storage and in the store in step."""

    def __init__(self, store: AppStore, storage: KeyValueStorage) -> None:
        self.store = store
        self.storage = storage

    def save(self, user_id: str, fields: dict[str, Any]) -> Draft | None:
        """Persist the editor form for ``user_id``. Empty forms are not saved."""
        draft = Draft.model_validate(
            {**fields, "id": draft_key(user_id), "user_id": user_id, "last_saved": utcnow()}
        )
        if draft.is_empty:
            return None

        self.storage.set(draft.id, draft.model_dump_json())
        self.store.dispatch(SaveDraft(draft=draft))
        logger.debug("draft.saved", user_id=user_id)
        return draft

    def load(self, user_id: str, editing: Prompt | None = None) -> Draft | None:
        """Restore the stored draft, unless an existing prompt is being edited."""
        if editing is not None:
            return None

        raw = self.storage.get(draft_key(user_id))
        if not raw:
            return None
        try:
            draft = Draft.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("draft.unreadable", user_id=user_id, error=str(e))
            return None

        self.store.dispatch(SaveDraft(draft=draft))
        logger.debug("draft.restored", user_id=user_id)
        return draft

    def clear(self, user_id: str) -> None:
        key = draft_key(user_id)
        self.storage.remove(key)
        self.store.dispatch(DeleteDraft(id=key))
