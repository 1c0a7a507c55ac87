"""Session state threaded through one conversation turn."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]
SUMMARY_PREFIX = "Conversation Summary: "


def _new_message_id() -> str:
    return uuid.uuid4().hex


class Message(BaseModel):
    """One entry of the conversation history."""

    role: Role
    content: str
    id: str = Field(default_factory=_new_message_id)

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class OperationCall(BaseModel):
    """An operation chosen by the router, with parsed arguments."""

    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class SessionState(BaseModel):
    """Mutable per-conversation record.

    `messages` is the only field carried across turns; the remaining fields
    describe the turn in progress and are reset by `begin_turn`.
    """

    messages: list[Message] = Field(default_factory=list)
    selected_operations: list[OperationCall] = Field(default_factory=list)
    operation_results: dict[str, str] = Field(default_factory=dict)
    needs_operations: bool = False
    response: str = ""

    def begin_turn(self, user_text: str) -> Message:
        self.selected_operations = []
        self.operation_results = {}
        self.needs_operations = False
        self.response = ""
        return self.append_message("user", user_text)

    def append_message(self, role: Role, content: str) -> Message:
        message = Message(role=role, content=content)
        self.messages.append(message)
        return message

    def merge_results(self, results: Mapping[str, str]) -> None:
        """Accumulate results; keys from a later executor pass win."""
        self.operation_results.update(results)

    def count_role(self, role: Role) -> int:
        return sum(1 for message in self.messages if message.role == role)

    def compact(self, count: int, summary: str) -> Message:
        """Replace the first `count` messages with one system summary message."""
        if count <= 0 or count > len(self.messages):
            raise ValueError(f"cannot compact {count} of {len(self.messages)} messages")
        summary_message = Message(role="system", content=f"{SUMMARY_PREFIX}{summary}")
        self.messages = [summary_message, *self.messages[count:]]
        return summary_message

    def snapshot(self) -> SessionState:
        return self.model_copy(deep=True)
