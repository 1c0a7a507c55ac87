"""Session stores: keyed persistence of session state between turns."""

from __future__ import annotations

import json
import threading
from hashlib import md5
from pathlib import Path
from typing import Protocol

from loguru import logger
from pydantic import ValidationError

from .state import SessionState

SESSION_FILE_SUFFIX = ".json"


def session_slug(session_id: str) -> str:
    return md5(session_id.encode("utf-8")).hexdigest()[:16]  # noqa: S324


class SessionStore(Protocol):
    """Read at turn entry, written at turn exit; nothing in between."""

    def load(self, session_id: str) -> SessionState | None: ...

    def save(self, session_id: str, state: SessionState) -> None: ...


class InMemorySessionStore:
    """Process-local store; hands out copies so callers never alias stored state."""

    def __init__(self) -> None:
        self._states: dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def load(self, session_id: str) -> SessionState | None:
        with self._lock:
            state = self._states.get(session_id)
            return state.snapshot() if state is not None else None

    def save(self, session_id: str, state: SessionState) -> None:
        with self._lock:
            self._states[session_id] = state.snapshot()

    def sessions(self) -> list[str]:
        with self._lock:
            return sorted(self._states)


class FileSessionStore:
    """One JSON document per session under `root`."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._lock = threading.Lock()

    def path_for(self, session_id: str) -> Path:
        return self.root / f"{session_slug(session_id)}{SESSION_FILE_SUFFIX}"

    def load(self, session_id: str) -> SessionState | None:
        path = self.path_for(session_id)
        with self._lock:
            if not path.is_file():
                return None
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                logger.error("session.store.unreadable session={} path={} error={}", session_id, path, exc)
                return None
        if not isinstance(payload, dict) or payload.get("session_id") != session_id:
            logger.warning("session.store.mismatch session={} path={}", session_id, path)
            return None
        try:
            return SessionState.model_validate(payload.get("state", {}))
        except ValidationError as exc:
            logger.error("session.store.invalid session={} error={}", session_id, exc)
            return None

    def save(self, session_id: str, state: SessionState) -> None:
        path = self.path_for(session_id)
        payload = {"session_id": session_id, "state": state.model_dump(mode="json")}
        with self._lock:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(f"{SESSION_FILE_SUFFIX}.tmp")
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp_path.replace(path)
