import asyncio

import pytest
from pydantic import BaseModel

from switchboard.context import RuntimeContext
from switchboard.core.executor import OperationExecutor, not_found_message, result_key
from switchboard.skills import EmptyInput, operation_from_model
from switchboard.skills.builtin.calculator import evaluate, format_number
from switchboard.state import OperationCall


class ExpressionInput(BaseModel):
    expression: str


def _calculator():
    return operation_from_model(
        ExpressionInput,
        lambda params: f"Result: {format_number(evaluate(params.expression))}",
        name="calculator",
        description="calc",
    )


def _failing(name: str = "boom"):
    def _raise(_params: EmptyInput) -> str:
        raise RuntimeError("kaput")

    return operation_from_model(EmptyInput, _raise, name=name, description="fails")


@pytest.mark.asyncio
async def test_empty_selection_returns_empty_results(context: RuntimeContext) -> None:
    assert await OperationExecutor(context).execute([], {"calculator": _calculator()}) == {}


@pytest.mark.asyncio
async def test_results_are_keyed_by_name_and_position(context: RuntimeContext) -> None:
    operations = {"calculator": _calculator()}
    calls = [
        OperationCall(name="calculator", args={"expression": "2+2"}),
        OperationCall(name="calculator", args={"expression": "3*3"}),
    ]

    results = await OperationExecutor(context).execute(calls, operations)

    assert results == {"calculator_0": "Result: 4", "calculator_1": "Result: 9"}


@pytest.mark.asyncio
async def test_one_failure_does_not_affect_siblings(context: RuntimeContext) -> None:
    operations = {"calculator": _calculator(), "boom": _failing()}
    calls = [
        OperationCall(name="calculator", args={"expression": "1+1"}),
        OperationCall(name="boom"),
        OperationCall(name="calculator", args={"expression": "2+3"}),
    ]

    results = await OperationExecutor(context).execute(calls, operations)

    assert results == {"calculator_0": "Result: 2", "boom_1": "Error: kaput", "calculator_2": "Result: 5"}


@pytest.mark.asyncio
async def test_unknown_operation_yields_not_found_entry(context: RuntimeContext) -> None:
    results = await OperationExecutor(context).execute([OperationCall(name="teleport")], {})

    assert results == {result_key("teleport", 0): not_found_message("teleport")}
    assert results["teleport_0"] == 'Tool "teleport" not found'


@pytest.mark.asyncio
async def test_invalid_arguments_become_error_entries(context: RuntimeContext) -> None:
    results = await OperationExecutor(context).execute(
        [OperationCall(name="calculator", args={})], {"calculator": _calculator()}
    )

    assert results["calculator_0"].startswith("Error: ")


@pytest.mark.asyncio
async def test_start_index_offsets_keys(context: RuntimeContext) -> None:
    results = await OperationExecutor(context).execute(
        [OperationCall(name="calculator", args={"expression": "1"})],
        {"calculator": _calculator()},
        start_index=3,
    )

    assert list(results) == ["calculator_3"]


@pytest.mark.asyncio
async def test_operations_run_concurrently(context: RuntimeContext) -> None:
    started = 0
    both_started = asyncio.Event()

    async def _wait(_params: EmptyInput) -> str:
        nonlocal started
        started += 1
        if started == 2:
            both_started.set()
        await asyncio.wait_for(both_started.wait(), timeout=1)
        return "done"

    operations = {"wait": operation_from_model(EmptyInput, _wait, name="wait", description="wait")}
    calls = [OperationCall(name="wait"), OperationCall(name="wait")]

    results = await OperationExecutor(context).execute(calls, operations)

    assert results == {"wait_0": "done", "wait_1": "done"}


@pytest.mark.asyncio
async def test_abandoned_batch_keeps_running(context: RuntimeContext) -> None:
    finished = asyncio.Event()

    async def _slow(_params: EmptyInput) -> str:
        await asyncio.sleep(0.05)
        finished.set()
        return "late"

    operations = {"slow": operation_from_model(EmptyInput, _slow, name="slow", description="slow")}

    with pytest.raises(TimeoutError):
        async with asyncio.timeout(0.01):
            await OperationExecutor(context).execute([OperationCall(name="slow")], operations)

    await asyncio.wait_for(finished.wait(), timeout=1)
    assert finished.is_set()


@pytest.mark.asyncio
async def test_call_logging_renders_arguments(monkeypatch, context: RuntimeContext) -> None:
    logs: list[str] = []

    class _Capture:
        def info(self, message: str, *args: object) -> None:
            logs.append(message.format(*args))

        def __getattr__(self, _name: str):
            return lambda *args, **kwargs: self

    executor = OperationExecutor(context)
    monkeypatch.setattr(executor, "_logger", _Capture())

    await executor.execute(
        [OperationCall(name="calculator", args={"expression": "2+2"})], {"calculator": _calculator()}
    )

    assert 'operation.call.start name=calculator { expression="2+2" }' in logs
    assert any(line.startswith("operation.call.end name=calculator duration=") for line in logs)
