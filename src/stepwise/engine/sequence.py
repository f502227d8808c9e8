"""Sequences of agent steps chained into multi-stage workflows."""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, NamedTuple, Optional, Tuple, Union

from langchain_core.messages import BaseMessage

from stepwise.domain.halt import HaltKind
from stepwise.domain.state import AgentState, MemoryT
from stepwise.engine.context import AgentContext, NextStage
from stepwise.engine.loop import loop_agent
from stepwise.engine.options import SequenceOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Continue:
    """The sequence finished and produced a successor."""

    next: "Sequence"
    state: AgentState


@dataclass(frozen=True)
class Complete:
    """The sequence finished and the workflow ends with it."""

    state: AgentState


SequenceTransition = Union[Continue, Complete]


class Sequence(Generic[MemoryT]):
    """
    Binds a behaviour contract, a state and run options.

    Args:
        ctx: Behaviour contract for this stage.
        state: Initial state of the stage.
        options: Run options; ``heuristic_model`` must be set before running.
    """

    def __init__(
        self,
        ctx: AgentContext[MemoryT],
        state: AgentState[MemoryT],
        options: SequenceOptions,
    ) -> None:
        self._ctx = ctx
        self._state = state
        self._options = options
        self._logger = options.logger or logger

    @property
    def context(self) -> AgentContext[MemoryT]:
        return self._ctx

    @property
    def state(self) -> AgentState[MemoryT]:
        return self._state

    @property
    def options(self) -> SequenceOptions:
        return self._options

    @property
    def messages(self) -> Tuple[BaseMessage, ...]:
        return self._state.messages

    def reset_state(self, state: AgentState[MemoryT]) -> None:
        """Replace the underlying state, e.g. after external persistence."""
        self._state = state

    async def stop(self) -> None:
        """Ask the model to abort its in-flight completion."""
        await self._state.model.stop()

    async def run(self) -> AgentState[MemoryT]:
        """Run until the state halts ``Done`` or ``Stopped``."""
        return await loop_agent(self._ctx, self._state, self._options)

    async def next(self) -> SequenceTransition:
        """
        Runs the sequence once and computes its successor.

        Returns:
            ``Continue`` carrying the next sequence when this one is done and
            its context returns a next stage; ``Complete`` otherwise.
            Both carry the terminal state reached.
        """
        terminal = await self.run()
        halted = terminal.halted
        stage: Optional[NextStage] = None
        if (
            halted is not None
            and halted.kind == HaltKind.DONE
            and self._ctx.next_sequence is not None
        ):
            stage = await self._ctx.next_sequence(terminal)

        if stage is not None:
            preserve = stage.options is not None and stage.options.preserve_input
            next_ctx = stage.ctx
            if next_ctx.get_user_input is None and preserve:
                next_ctx = dataclasses.replace(next_ctx, get_user_input=self._ctx.get_user_input)
            next_options = self._options.merge(stage.options)
            if self._options.debug:
                self._logger.info(
                    "Sequence %s -> %s (input preserved: %s)",
                    self._ctx.name,
                    next_ctx.name,
                    next_ctx.get_user_input is not stage.ctx.get_user_input,
                )
            return Continue(next=Sequence(next_ctx, stage.state, next_options), state=terminal)

        if self._options.debug:
            self._logger.info("Sequence %s complete", terminal.id or "-")
        return Complete(state=terminal)


class WorkflowResult(NamedTuple):
    final: AgentState
    history: List[Sequence]


async def run_workflow(
    init: Sequence,
    on_sequence_change: Optional[Callable[[Sequence], None]] = None,
) -> WorkflowResult:
    """
    Executes chained sequences until one completes without a successor.

    Each history entry holds the terminal state its sequence reached.

    Args:
        init: First sequence of the workflow.
        on_sequence_change: Observer called with each finished sequence.

    Returns:
        The final state and the ordered history of sequences.
    """
    history: List[Sequence] = []
    current = init
    while True:
        history.append(current)
        transition = await current.next()
        current.reset_state(transition.state)
        if on_sequence_change:
            on_sequence_change(current)
        if isinstance(transition, Complete):
            return WorkflowResult(final=transition.state, history=history)
        current = transition.next
