"""Concurrent execution of the operations selected for one turn."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from ..skills.operation import Operation
from ..state import OperationCall

if TYPE_CHECKING:
    from ..context import RuntimeContext

LOG_PREVIEW_WIDTH = 200


def _shorten_text(text: str, width: int = 30, placeholder: str = "...") -> str:
    """Shorten text to width characters, cutting in the middle of words if needed."""
    if len(text) <= width:
        return text

    available = width - len(placeholder)
    if available <= 0:
        return placeholder

    return text[:available] + placeholder


def result_key(name: str, index: int) -> str:
    return f"{name}_{index}"


def not_found_message(name: str) -> str:
    return f'Tool "{name}" not found'


class OperationExecutor:
    """Runs a batch of operation calls and isolates each failure.

    Every call yields exactly one result entry: a thrown error becomes
    `"Error: <message>"` and an unknown name becomes a not-found message.
    """

    def __init__(self, context: RuntimeContext) -> None:
        self._logger = context.component_logger("executor")

    async def execute(
        self,
        calls: Sequence[OperationCall],
        operations: Mapping[str, Operation],
        *,
        start_index: int = 0,
    ) -> dict[str, str]:
        if not calls:
            return {}

        self._logger.info("executor.batch.start size={}", len(calls))
        tasks = [
            asyncio.ensure_future(self._run_one(result_key(call.name, start_index + index), call, operations))
            for index, call in enumerate(calls)
        ]
        # A turn timeout abandons the batch but does not cancel operations already in flight.
        outcomes = await asyncio.shield(asyncio.gather(*tasks))
        return dict(outcomes)

    async def _run_one(
        self,
        key: str,
        call: OperationCall,
        operations: Mapping[str, Operation],
    ) -> tuple[str, str]:
        operation = operations.get(call.name)
        if operation is None:
            self._logger.warning("executor.operation.not_found name={}", call.name)
            self._logger.debug("executor.operation.available names={}", sorted(operations))
            return key, not_found_message(call.name)

        self._log_call(call.name, call.args)
        start = time.monotonic()
        try:
            result = await operation.invoke(call.args)
        except Exception as exc:
            self._logger.opt(exception=True).error("operation.call.error name={}", call.name)
            return key, f"Error: {exc}"
        finally:
            duration = time.monotonic() - start
            self._logger.info("operation.call.end name={} duration={:.3f}ms", call.name, duration * 1000)

        self._logger.debug(
            "operation.call.result name={} preview={}",
            call.name,
            _shorten_text(result, width=LOG_PREVIEW_WIDTH),
        )
        return key, result

    def _log_call(self, name: str, kwargs: Mapping[str, Any]) -> None:
        params: list[str] = []
        for key, value in kwargs.items():
            try:
                rendered = json.dumps(value, ensure_ascii=False)
            except TypeError:
                rendered = repr(value)
            value = _shorten_text(rendered, width=30, placeholder="...")
            if value.startswith('"') and not value.endswith('"'):
                value = value + '"'
            if value.startswith("{") and not value.endswith("}"):
                value = value + "}"
            if value.startswith("[") and not value.endswith("]"):
                value = value + "]"
            params.append(f"{key}={value}")
        self._logger.info("operation.call.start name={} {{ {} }}", name, ", ".join(params))
