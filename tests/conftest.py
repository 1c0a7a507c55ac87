from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from pydantic import BaseModel

from switchboard.config import Settings
from switchboard.context import RuntimeContext
from switchboard.skills import EmptyInput, SkillMetadata, SkillRegistry, StaticSkill, operation_from_model
from switchboard.state import Message


class ScriptedModel:
    """Replays queued replies (`invoke`) and decisions (`invoke_structured`).

    A queued exception is raised instead of returned; a queued dict is
    validated against the requested schema.
    """

    def __init__(self, *, replies: Sequence[Any] = (), decisions: Sequence[Any] = ()) -> None:
        self.replies = list(replies)
        self.decisions = list(decisions)
        self.invocations: list[list[Message]] = []
        self.structured: list[tuple[list[Message], type[BaseModel]]] = []

    async def invoke(self, messages: Sequence[Message]) -> Message:
        self.invocations.append(list(messages))
        reply = self._next(self.replies, "reply")
        return Message(role="assistant", content=str(reply))

    async def invoke_structured(self, messages: Sequence[Message], schema: type[BaseModel]) -> Any:
        self.structured.append((list(messages), schema))
        decision = self._next(self.decisions, schema.__name__)
        if isinstance(decision, dict):
            return schema.model_validate(decision)
        return decision

    @staticmethod
    def _next(queue: list[Any], label: str) -> Any:
        if not queue:
            raise AssertionError(f"unexpected {label} request")
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def route(*tools: tuple[str, str | dict[str, Any]]) -> dict[str, Any]:
    """Router decision payload selecting `tools`; no tools means answer directly."""
    return {
        "needsTools": bool(tools),
        "tools": [{"name": name, "args": args} for name, args in tools],
    }


def make_skill(
    name: str,
    handlers: dict[str, Callable[[Any], Any]],
    *,
    instructions: str = "",
    available: Callable[[Settings], bool] | None = None,
    args_model: type[BaseModel] | None = None,
) -> StaticSkill:
    operations = [
        operation_from_model(args_model or EmptyInput, handler, name=op_name, description=f"{op_name} operation")
        for op_name, handler in handlers.items()
    ]
    return StaticSkill(
        SkillMetadata(name=name, description=f"{name} skill"),
        operations,
        instructions=instructions,
        available=available,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(_env_file=None, home=tmp_path / "home", api_key="test-key")  # type: ignore[call-arg]


@pytest.fixture
def registry() -> SkillRegistry:
    return SkillRegistry()


@pytest.fixture
def model() -> ScriptedModel:
    return ScriptedModel()


@pytest.fixture
def context(settings: Settings, registry: SkillRegistry, model: ScriptedModel) -> RuntimeContext:
    return RuntimeContext(settings=settings, registry=registry, llm=model)
