"""Persistent user profile shared by the profile skill and the memory recorder."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, ClassVar

from loguru import logger

MEMORIES_KEY = "memories"


class ProfileStore:
    """JSON file holding structured fields plus a list of free-form memories.

    Use `for_path()` so every writer of one file shares the same lock.
    """

    _instances: ClassVar[dict[Path, ProfileStore]] = {}
    _instances_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.RLock()

    @classmethod
    def for_path(cls, path: Path) -> ProfileStore:
        key = path.expanduser().resolve()
        with cls._instances_lock:
            store = cls._instances.get(key)
            if store is None:
                store = cls._instances[key] = cls(key)
            return store

    def load(self) -> dict[str, Any]:
        with self._lock:
            if not self.path.exists():
                return {MEMORIES_KEY: []}
            try:
                with self.path.open(encoding="utf-8") as handle:
                    payload = json.load(handle)
            except (OSError, json.JSONDecodeError) as exc:
                logger.error("profile.load.error path={} error={}", self.path, exc)
                return {MEMORIES_KEY: []}
            if not isinstance(payload, dict):
                return {MEMORIES_KEY: []}
            return payload

    def save(self, profile: dict[str, Any]) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(profile, handle, ensure_ascii=False, indent=2)
            tmp_path.replace(self.path)

    def update_field(self, key: str, value: Any) -> str:
        if key == MEMORIES_KEY:
            return "Cannot overwrite 'memories' directly. Use 'add_user_memory' instead."
        with self._lock:
            profile = self.load()
            profile[key] = value
            self.save(profile)
        return f"Successfully updated user profile: {key} = {value}"

    def add_memory(self, memory: str) -> str:
        """Record a memory unless an identical one is already stored."""
        with self._lock:
            profile = self.load()
            memories = profile.get(MEMORIES_KEY)
            if not isinstance(memories, list):
                memories = []
            if memory in memories:
                return "Memory already exists."
            memories.append(memory)
            profile[MEMORIES_KEY] = memories
            self.save(profile)
        return "Added new memory about the user."

    def render(self) -> str:
        return json.dumps(self.load(), ensure_ascii=False, indent=2)
