"""Final response synthesis."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..state import Message, SessionState
from .prompt import GENERATOR_DIRECTIVE, results_message

if TYPE_CHECKING:
    from ..context import RuntimeContext


class Generator:
    """Turns history plus any operation results into the assistant reply.

    Reads `operation_results` but never changes them; the only mutation is the
    assistant message appended to the history.
    """

    def __init__(self, context: RuntimeContext) -> None:
        self._llm = context.llm
        self._logger = context.component_logger("generator")

    def build_messages(self, state: SessionState) -> list[Message]:
        messages = [Message(role="system", content=GENERATOR_DIRECTIVE), *state.messages]
        if state.operation_results:
            messages.append(results_message(state.operation_results))
        return messages

    async def generate(self, state: SessionState) -> str:
        messages = self.build_messages(state)
        reply = await self._llm.invoke(messages)
        text = reply.content
        state.append_message("assistant", text)
        self._logger.info(
            "generator.response chars={} grounded_on={}",
            len(text),
            len(state.operation_results),
        )
        return text
