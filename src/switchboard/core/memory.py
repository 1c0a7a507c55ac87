"""Background memory recorder that learns user facts after a turn."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..profile import ProfileStore
from ..state import Message, SessionState
from .prompt import MEMORY_DIRECTIVE

if TYPE_CHECKING:
    from ..context import RuntimeContext


class MemoryUpdate(BaseModel):
    type: Literal["field", "memory"] = Field(
        description='"field" for structured data (name, email), "memory" for unstructured facts.'
    )
    key: str | None = Field(default=None, description='For "field" updates, the key to update (e.g. "name").')
    value: str = Field(description="The value to set or the memory to record.")


class MemoryEvaluation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    should_update: bool = Field(
        alias="shouldUpdate",
        description="Whether the user provided new personal information or preferences that should be saved.",
    )
    updates: list[MemoryUpdate] = Field(default_factory=list, description="List of updates to apply.")


class MemoryRecorder:
    def __init__(self, context: RuntimeContext, store: ProfileStore) -> None:
        self._llm = context.llm
        self._store = store
        self._logger = context.component_logger("memory")

    @staticmethod
    def last_exchange(state: SessionState) -> tuple[Message, Message] | None:
        if len(state.messages) < 2:
            return None
        user, assistant = state.messages[-2], state.messages[-1]
        if user.role != "user" or assistant.role != "assistant":
            return None
        return user, assistant

    async def record(self, state: SessionState) -> list[str]:
        """Apply learned updates and return the store's messages for each."""
        exchange = self.last_exchange(state)
        if exchange is None:
            return []

        user, assistant = exchange
        prompt = MEMORY_DIRECTIVE.format(user=user.content, assistant=assistant.content)
        evaluation = await self._llm.invoke_structured([Message(role="user", content=prompt)], MemoryEvaluation)
        if not evaluation.should_update or not evaluation.updates:
            return []

        self._logger.info("memory.updates count={}", len(evaluation.updates))
        outcomes: list[str] = []
        for update in evaluation.updates:
            if update.type == "field" and update.key:
                outcomes.append(self._store.update_field(update.key, update.value))
            elif update.type == "memory":
                outcomes.append(self._store.add_memory(update.value))
        for outcome in outcomes:
            self._logger.info("memory.applied result={}", outcome)
        return outcomes
