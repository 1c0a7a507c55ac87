"""User profile skill."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from ....profile import ProfileStore
from ...base import BaseSkill
from ...operation import EmptyInput, Operation, operation_from_model

if TYPE_CHECKING:
    from ....config import Settings


class UpdateFieldInput(BaseModel):
    key: str = Field(..., description="The field name to set (e.g. 'name', 'email')")
    value: str = Field(..., description="The value to set")


class AddMemoryInput(BaseModel):
    memory: str = Field(..., description="The fact or memory to record")


class UserProfileSkill(BaseSkill):
    def __init__(self, store: ProfileStore | None = None) -> None:
        super().__init__(Path(__file__).parent)
        self._store = store

    def _resolve_store(self, settings: Settings) -> ProfileStore:
        if self._store is not None:
            return self._store
        return ProfileStore.for_path(settings.profile_path)

    def is_available(self, settings: Settings) -> bool:
        return True

    def operations(self, settings: Settings) -> Sequence[Operation]:
        store = self._resolve_store(settings)

        def _get_profile(_params: EmptyInput) -> str:
            return store.render()

        def _update_field(params: UpdateFieldInput) -> str:
            return store.update_field(params.key, params.value)

        def _add_memory(params: AddMemoryInput) -> str:
            return store.add_memory(params.memory)

        return [
            operation_from_model(
                EmptyInput,
                _get_profile,
                name="get_user_profile",
                description=(
                    "Retrieve all stored information about the current user, including name, "
                    "preferences, and memories."
                ),
            ),
            operation_from_model(
                UpdateFieldInput,
                _update_field,
                name="update_profile_field",
                description=(
                    "Update or set a specific structured field in the user's profile "
                    "(e.g., name, email, location, theme_preference)."
                ),
            ),
            operation_from_model(
                AddMemoryInput,
                _add_memory,
                name="add_user_memory",
                description=(
                    "Add an unstructured memory, fact, or preference about the user that doesn't fit "
                    "into a specific key-value field."
                ),
            ),
        ]
