"""Operation contract: one schema-validated action returning text."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel

ParamsT = TypeVar("ParamsT", bound=BaseModel)


class EmptyInput(BaseModel):
    """Empty input payload."""


@dataclass(frozen=True)
class Operation:
    """Callable unit exposed by a skill.

    `handler` receives the validated arguments model and may be sync or async.
    Sync handlers run in a worker thread so a batch of operations can overlap.
    """

    name: str
    description: str
    args_model: type[BaseModel]
    handler: Callable[[Any], Any]

    def schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema()

    def parse_args(self, args: Mapping[str, Any]) -> BaseModel:
        return self.args_model.model_validate(dict(args))

    async def invoke(self, args: Mapping[str, Any]) -> str:
        params = self.parse_args(args)
        if inspect.iscoroutinefunction(self.handler):
            result = await self.handler(params)
        else:
            result = await asyncio.to_thread(self.handler, params)
            if inspect.isawaitable(result):
                result = await result
        if isinstance(result, str):
            return result
        return str(result)


def operation_from_model(
    model: type[ParamsT],
    handler: Callable[[ParamsT], Any],
    *,
    name: str,
    description: str | None = None,
) -> Operation:
    """Build an operation whose argument schema is a pydantic model."""

    resolved_description = description or (model.__doc__ or "").strip()
    return Operation(name=name, description=resolved_description, args_model=model, handler=handler)
