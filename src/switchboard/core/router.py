"""Routing decision: answer directly, or run which operations with which arguments."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from ..skills.operation import Operation
from ..state import Message, OperationCall, SessionState
from .prompt import ROUTER_RESULTS_FOOTER, render_router_directive, results_message

if TYPE_CHECKING:
    from ..context import RuntimeContext


class OperationRequest(BaseModel):
    name: str = Field(description="Name of the tool to use")
    args: str | dict[str, Any] = Field(
        default="{}",
        description='JSON string of arguments for the tool, e.g. "{\\"query\\": \\"weather\\"}"',
    )


class RouterDecision(BaseModel):
    """Fixed schema the model must fill for every routing call."""

    model_config = ConfigDict(populate_by_name=True)

    needs_tools: bool = Field(alias="needsTools", description="Whether tools are needed to answer the query")
    tools: list[OperationRequest] = Field(
        default_factory=list, description="List of tools to use with their arguments"
    )


@dataclass(frozen=True)
class RouteResult:
    needs_operations: bool
    selected_operations: list[OperationCall] = field(default_factory=list)

    @classmethod
    def direct(cls) -> RouteResult:
        return cls(needs_operations=False, selected_operations=[])


class Router:
    """Asks the model for a structured decision and sanitizes it.

    Never raises: a failed model call, or output that does not fit the schema,
    degrades to "answer directly".
    """

    def __init__(self, context: RuntimeContext) -> None:
        self._llm = context.llm
        self._logger = context.component_logger("router")

    async def route(self, state: SessionState, operations: Sequence[Operation], instructions: str) -> RouteResult:
        messages = self.build_messages(state, operations, instructions)
        try:
            decision = await self._llm.invoke_structured(messages, RouterDecision)
        except Exception:
            self._logger.opt(exception=True).error("router.decision.error fallback=direct")
            return RouteResult.direct()
        return self.interpret(decision)

    def build_messages(
        self,
        state: SessionState,
        operations: Sequence[Operation],
        instructions: str,
    ) -> list[Message]:
        messages = [Message(role="system", content=render_router_directive(operations, instructions))]
        messages.extend(state.messages)
        if state.operation_results:
            messages.append(results_message(state.operation_results, footer=ROUTER_RESULTS_FOOTER))
        return messages

    def interpret(self, decision: RouterDecision) -> RouteResult:
        if decision.needs_tools and not decision.tools:
            self._logger.warning("router.decision.mismatch needs_tools=true tools=0 fallback=direct")
            return RouteResult.direct()
        if not decision.needs_tools:
            if decision.tools:
                self._logger.warning("router.decision.ignored_tools count={}", len(decision.tools))
            return RouteResult.direct()

        selected = [OperationCall(name=request.name, args=self._parse_args(request)) for request in decision.tools]
        self._logger.info(
            "router.decision needs_tools={} tools={}",
            decision.needs_tools,
            [call.name for call in selected],
        )
        return RouteResult(needs_operations=decision.needs_tools, selected_operations=selected)

    def _parse_args(self, request: OperationRequest) -> dict[str, Any]:
        if isinstance(request.args, dict):
            return dict(request.args)
        raw = request.args.strip()
        if not raw or raw == "{}":
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            self._logger.error("router.args.invalid_json tool={} raw={!r}", request.name, raw)
            return {}
        if not isinstance(parsed, dict):
            self._logger.error("router.args.not_object tool={} raw={!r}", request.name, raw)
            return {}
        return parsed
