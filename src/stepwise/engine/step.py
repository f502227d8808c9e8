"""Single deterministic transition of an agent loop."""

import json
import logging
from typing import Sequence

from langchain_core.messages import BaseMessage, HumanMessage, message_to_dict

from stepwise.domain.content import (
    has_content,
    has_two_assistant_in_row,
    is_assistant_message,
    is_empty_assistant_message,
    is_tool_message,
)
from stepwise.domain.error_details import build_exception_details
from stepwise.domain.exceptions import ConfigurationError
from stepwise.domain.halt import AWAIT_USER, Done, HaltKind, ToolError
from stepwise.domain.state import AgentState
from stepwise.engine.context import AgentContext
from stepwise.engine.options import Logger, StepOptions
from stepwise.llm.heuristics import requests_user_input

logger = logging.getLogger(__name__)


def is_stuck(previous: Sequence[BaseMessage], messages: Sequence[BaseMessage]) -> bool:
    """
    Returns True when a completion made no progress.

    A completion is stuck when it added no message, or when its last message
    is an assistant turn that is empty or directly follows another assistant
    turn.

    Args:
        previous: Transcript passed to the model.
        messages: Transcript returned by the model.
    """
    if len(messages) == len(previous):
        return True
    last = messages[-1] if messages else None
    return is_assistant_message(last) and (
        is_empty_assistant_message(last) or has_two_assistant_in_row(messages)
    )


async def step_agent(
    ctx: AgentContext, state: AgentState, options: StepOptions
) -> AgentState:
    """
    Advances the agent by one step: model call, tools, controller.

    Args:
        ctx: Behaviour contract.
        state: Current state.
        options: Step options carrying the heuristic model.

    Returns:
        The next state. Terminal states are returned unchanged.

    Raises:
        ConfigurationError: If the state awaits user input and the context has
            no ``get_user_input`` hook.
    """
    log = options.logger or logger
    if options.debug:
        _log_trace(log, state)

    if state.halted is not None:
        return await _resume(ctx, state)

    try:
        completion = await state.model.complete(
            state.messages, memory=state.memory, tools=ctx.registry
        )
    except Exception as exc:
        log.warning(
            "Model call failed",
            extra={"state_id": state.id, "context": ctx.name, **build_exception_details(exc)},
        )
        halted = state.halt(ToolError(error=exc))
        return await ctx.controller(halted) if ctx.controller else halted

    messages = tuple(completion.messages)
    updated = state.model_copy(update={"messages": messages, "memory": completion.memory})
    last = updated.last_message

    if ctx.controller is not None and is_stuck(state.messages, messages):
        log.info(
            "Stuck state, invoking controller",
            extra={"state_id": state.id, "context": ctx.name, "message_count": len(messages)},
        )
        return await ctx.controller(updated)

    # Tool results go back to the model before any finality check.
    if is_tool_message(last):
        return updated

    if last is not None and has_content(last.content):
        if await requests_user_input(options.heuristic_model)(last.content):
            return updated.halt(AWAIT_USER)

    if is_assistant_message(last) and await ctx.is_final(updated):
        return updated.halt(Done())

    return updated


async def _resume(ctx: AgentContext, state: AgentState) -> AgentState:
    """Dispatch on the halt status of an already halted state."""

    kind = state.halted.kind
    if kind == HaltKind.AWAITING_USER:
        if ctx.get_user_input is None:
            raise ConfigurationError("No get_user_input handler provided.")
        text = await ctx.get_user_input(ctx, state)
        return state.append(HumanMessage(content=text)).resume()
    if kind == HaltKind.TOOL_ERROR:
        return await ctx.controller(state) if ctx.controller else state
    return state


def _log_trace(log: Logger, state: AgentState) -> None:
    last = state.last_message
    halted = state.halted.kind.value if state.halted else "-"
    log.info(
        "STEP id=%s msgs=%d last=%s halted=%s",
        state.id or "-",
        len(state.messages),
        last.type if last else "-",
        halted,
    )
    for message in state.messages[1:]:
        log.info("message %s", json.dumps(message_to_dict(message), default=str))
    if state.memory:
        log.info("memory keys %s", sorted(state.memory))
