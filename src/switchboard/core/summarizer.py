"""History compaction: fold old messages into one summary message."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..state import Message, SessionState
from .prompt import SUMMARY_DIRECTIVE, render_history

if TYPE_CHECKING:
    from ..context import RuntimeContext

KEEP_RECENT_MESSAGES = 2


class Summarizer:
    """Compacts history once either side has spoken more than `threshold` times.

    The newest `KEEP_RECENT_MESSAGES` messages survive verbatim; everything
    before them is replaced by a single system summary.
    """

    def __init__(self, context: RuntimeContext, *, threshold: int) -> None:
        self._llm = context.llm
        self._threshold = threshold
        self._logger = context.component_logger("summarizer")

    def should_compact(self, state: SessionState) -> bool:
        if self._threshold <= 0:
            return False
        if len(state.messages) <= KEEP_RECENT_MESSAGES:
            return False
        return state.count_role("user") > self._threshold or state.count_role("assistant") > self._threshold

    async def compact(self, state: SessionState) -> bool:
        if not self.should_compact(state):
            return False

        prefix = state.messages[:-KEEP_RECENT_MESSAGES]
        self._logger.debug("summarizer.start messages={}", len(prefix))
        prompt = Message(role="system", content=SUMMARY_DIRECTIVE.format(history=render_history(prefix)))
        reply = await self._llm.invoke([prompt])
        state.compact(len(prefix), reply.content.strip())
        self._logger.info("summarizer.done removed={} remaining={}", len(prefix), len(state.messages))
        return True
