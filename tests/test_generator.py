import pytest
from conftest import ScriptedModel

from switchboard.context import RuntimeContext
from switchboard.core.generator import Generator
from switchboard.core.prompt import GENERATOR_DIRECTIVE
from switchboard.state import SessionState


@pytest.mark.asyncio
async def test_direct_reply_is_appended_to_history(context: RuntimeContext, model: ScriptedModel) -> None:
    model.replies.append("Hi there!")
    state = SessionState()
    state.begin_turn("hello")

    text = await Generator(context).generate(state)

    assert text == "Hi there!"
    assert [(m.role, m.content) for m in state.messages] == [("user", "hello"), ("assistant", "Hi there!")]
    sent = model.invocations[0]
    assert sent[0].content == GENERATOR_DIRECTIVE
    assert len(sent) == 2


@pytest.mark.asyncio
async def test_results_are_given_to_the_model_and_left_untouched(
    context: RuntimeContext, model: ScriptedModel
) -> None:
    model.replies.append("2+2 is 4.")
    state = SessionState()
    state.begin_turn("What is 2+2?")
    state.merge_results({"calculator_0": "Result: 4"})

    await Generator(context).generate(state)

    results_message = model.invocations[0][-1]
    assert results_message.role == "system"
    assert results_message.content.startswith("Tool Results:\n[calculator_0]: Result: 4")
    assert results_message.content.endswith("Use these results to answer the user's question.")
    assert state.operation_results == {"calculator_0": "Result: 4"}


@pytest.mark.asyncio
async def test_model_errors_propagate(context: RuntimeContext, model: ScriptedModel) -> None:
    model.replies.append(RuntimeError("provider down"))
    state = SessionState()
    state.begin_turn("hello")

    with pytest.raises(RuntimeError, match="provider down"):
        await Generator(context).generate(state)
    assert [m.role for m in state.messages] == ["user"]
