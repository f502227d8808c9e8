import logging
from typing import Optional

from stepwise.domain.exceptions import ConfigurationError
from stepwise.domain.halt import Stopped
from stepwise.domain.state import AgentState
from stepwise.engine.context import AgentContext
from stepwise.engine.options import SequenceOptions
from stepwise.engine.step import step_agent

logger = logging.getLogger(__name__)


async def loop_agent(
    ctx: AgentContext, state: AgentState, options: SequenceOptions
) -> AgentState:
    """
    Repeatedly invokes ``step_agent`` until the agent is done or the step
    budget is exhausted.

    There is no other exit: without a budget the loop relies on the step
    function's own halt logic to terminate.

    Args:
        ctx: Behaviour contract.
        state: Initial state.
        options: Sequence options; ``heuristic_model`` must be set.

    Returns:
        A state halted ``Done`` or ``Stopped``.

    Raises:
        ConfigurationError: If no heuristic model is configured.
    """
    if options.heuristic_model is None:
        raise ConfigurationError("A heuristic model is required to run the agent loop.")
    step_options = options.step_options()
    log = options.logger or logger
    remaining: Optional[int] = options.max_steps

    while True:
        if options.on_state_change:
            options.on_state_change(state)
        if state.is_terminal:
            return state
        if remaining == 0:
            log.info(
                "Step budget exhausted",
                extra={"state_id": state.id, "context": ctx.name, "max_steps": options.max_steps},
            )
            return state.halt(Stopped())
        if options.on_start:
            options.on_start(state)
        state = await step_agent(ctx, state, step_options)
        if options.on_stop:
            options.on_stop(state)
        if remaining is not None:
            remaining -= 1
