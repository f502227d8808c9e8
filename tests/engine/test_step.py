"""Tests for the single-step transition function."""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from fakes import FakeModel, HeuristicModel
from stepwise.domain.exceptions import ConfigurationError, ToolNotFoundError
from stepwise.domain.halt import AWAIT_USER, Done, HaltKind, Stopped, ToolError
from stepwise.domain.state import AgentState
from stepwise.engine.context import AgentContext
from stepwise.engine.options import StepOptions
from stepwise.engine.step import is_stuck, step_agent
from stepwise.engine.tool_registry import ToolRegistry
from stepwise.llm.chat_model import ChatModel


async def _always(state) -> bool:
    return True


async def _never(state) -> bool:
    return False


def _state(model, *messages, **kwargs) -> AgentState:
    transcript = (SystemMessage(content="sys"), HumanMessage(content="go")) + messages
    return AgentState(id="t", model=model, messages=transcript, **kwargs)


class RecordingController:
    def __init__(self) -> None:
        self.states = []

    async def __call__(self, state: AgentState) -> AgentState:
        self.states.append(state)
        return state.resume().append(SystemMessage(content="recover"))


@pytest.mark.parametrize("status", [Done(), Stopped()])
@pytest.mark.asyncio
async def test_terminal_state_is_fixed_point(status, step_options) -> None:
    model = FakeModel([AIMessage(content="never")])
    state = _state(model).halt(status)

    result = await step_agent(AgentContext(is_final=_always), state, step_options)

    assert result is state
    assert model.calls == []


@pytest.mark.asyncio
async def test_awaiting_user_without_hook_raises(step_options) -> None:
    state = _state(FakeModel()).halt(AWAIT_USER)

    with pytest.raises(ConfigurationError, match="get_user_input"):
        await step_agent(AgentContext(is_final=_always), state, step_options)


@pytest.mark.asyncio
async def test_awaiting_user_appends_input(step_options) -> None:
    """User input is appended and the loop resumes without a model call."""
    model = FakeModel([AIMessage(content="never")])

    async def get_user_input(ctx, state):
        return "more please"

    ctx = AgentContext(is_final=_always, get_user_input=get_user_input)
    result = await step_agent(ctx, _state(model).halt(AWAIT_USER), step_options)

    assert result.halted is None
    assert isinstance(result.last_message, HumanMessage)
    assert result.last_message.content == "more please"
    assert model.calls == []


@pytest.mark.asyncio
async def test_tool_error_routes_to_controller(step_options) -> None:
    controller = RecordingController()
    state = _state(FakeModel()).halt(ToolError(error=RuntimeError("x")))

    result = await step_agent(
        AgentContext(is_final=_always, controller=controller), state, step_options
    )

    assert controller.states == [state]
    assert result.halted is None
    assert result.last_message.content == "recover"


@pytest.mark.asyncio
async def test_tool_error_without_controller_is_unchanged(step_options) -> None:
    state = _state(FakeModel()).halt(ToolError(error=RuntimeError("x")))

    result = await step_agent(AgentContext(is_final=_always), state, step_options)

    assert result is state


@pytest.mark.asyncio
async def test_model_failure_halts_with_tool_error(step_options) -> None:
    """A raising model produces a ToolError carrying the exception."""
    boom = RuntimeError("provider down")
    state = _state(FakeModel([boom]))

    result = await step_agent(AgentContext(is_final=_always), state, step_options)

    assert result.halted.kind == HaltKind.TOOL_ERROR
    assert result.halted.error is boom
    assert result.messages == state.messages


@pytest.mark.asyncio
async def test_model_failure_is_passed_to_controller(step_options) -> None:
    controller = RecordingController()
    state = _state(FakeModel([RuntimeError("x")]))

    await step_agent(AgentContext(is_final=_always, controller=controller), state, step_options)

    assert controller.states[0].halted.kind == HaltKind.TOOL_ERROR


@pytest.mark.parametrize(
    "history, reply",
    [
        ((), None),
        ((), AIMessage(content="")),
        ((AIMessage(content="first"),), AIMessage(content="second")),
    ],
    ids=["no-progress", "empty-assistant", "two-assistant-turns"],
)
@pytest.mark.asyncio
async def test_stuck_states_invoke_controller(history, reply, step_options) -> None:
    controller = RecordingController()
    model = FakeModel([reply] if reply is not None else [])
    state = _state(model, *history)

    result = await step_agent(
        AgentContext(is_final=_always, controller=controller), state, step_options
    )

    assert len(controller.states) == 1
    assert result.last_message.content == "recover"
    assert result.halted is None


@pytest.mark.asyncio
async def test_tool_turn_is_not_stuck(step_options) -> None:
    """Assistant turn followed by tool output goes back to the model."""
    controller = RecordingController()
    call = AIMessage(content="", tool_calls=[{"name": "lookup", "args": {}, "id": "c1"}])
    model = FakeModel([[call, ToolMessage(content="42", tool_call_id="c1")]])

    result = await step_agent(
        AgentContext(is_final=_always, controller=controller), _state(model), step_options
    )

    assert controller.states == []
    assert result.halted is None
    assert isinstance(result.last_message, ToolMessage)


@pytest.mark.asyncio
async def test_question_halts_awaiting_user(heuristic_yes) -> None:
    model = FakeModel([AIMessage(content="Should I continue?")])
    options = StepOptions(heuristic_model=heuristic_yes)

    result = await step_agent(AgentContext(is_final=_always), _state(model), options)

    assert result.halted.kind == HaltKind.AWAITING_USER
    assert heuristic_yes.prompts == ["Should I continue?"]


@pytest.mark.asyncio
async def test_final_assistant_turn_is_done(step_options) -> None:
    model = FakeModel([AIMessage(content="All finished.")])

    result = await step_agent(AgentContext(is_final=_always), _state(model), step_options)

    assert result.halted.kind == HaltKind.DONE
    assert result.last_message.content == "All finished."


@pytest.mark.asyncio
async def test_non_final_turn_keeps_running(step_options) -> None:
    model = FakeModel([AIMessage(content="Still working.")])
    state = _state(model, memory={"k": 1})

    result = await step_agent(AgentContext(is_final=_never), state, step_options)

    assert result.halted is None
    assert result.memory == {"k": 1}
    assert model.calls[0]["memory"] == {"k": 1}


@pytest.mark.asyncio
async def test_registry_is_offered_to_model(step_options) -> None:
    registry = ToolRegistry()
    model = FakeModel([AIMessage(content="ok")])

    await step_agent(AgentContext(is_final=_always, registry=registry), _state(model), step_options)

    assert model.calls[0]["tools"] is registry


@pytest.mark.asyncio
async def test_debug_logs_trace(caplog) -> None:
    caplog.set_level(logging.INFO, logger="stepwise")
    options = StepOptions(heuristic_model=HeuristicModel("no"), debug=True)
    state = _state(FakeModel([AIMessage(content="done")]), memory={"a": 1})

    await step_agent(AgentContext(is_final=_always), state, options)

    text = caplog.text
    assert "STEP id=t msgs=2" in text
    assert "memory keys ['a']" in text


def test_is_stuck_helper() -> None:
    previous = (HumanMessage(content="hi"),)

    assert is_stuck(previous, previous)
    assert not is_stuck(previous, previous + (AIMessage(content="hello"),))
    assert is_stuck(previous, previous + (AIMessage(content="  "),))


@pytest.mark.asyncio
async def test_unknown_tool_call_halts_without_side_effects(step_options) -> None:
    """A turn calling an unregistered tool leaves messages and memory untouched."""
    llm = MagicMock()
    llm.ainvoke = AsyncMock(
        return_value=AIMessage(content="", tool_calls=[{"name": "ghost", "args": {}, "id": "c1"}])
    )
    state = _state(ChatModel("test", llm=llm), memory={"k": 1})
    ctx = AgentContext(is_final=_always, registry=ToolRegistry())

    result = await step_agent(ctx, state, step_options)

    assert result.halted.kind == HaltKind.TOOL_ERROR
    assert isinstance(result.halted.error, ToolNotFoundError)
    assert result.halted.error.name == "ghost"
    assert result.messages == state.messages
    assert result.memory == state.memory
