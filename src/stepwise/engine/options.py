import logging
from typing import Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from stepwise.domain.state import AgentState
from stepwise.llm.model import Model

Logger = Union[logging.Logger, logging.LoggerAdapter]
StateObserver = Callable[[AgentState], None]


class StepOptions(BaseModel):
    """Options accepted by ``step_agent``."""

    heuristic_model: Model = Field(
        description="Model classifying whether an assistant turn requests user input."
    )
    debug: bool = Field(default=False, description="Log a trace of every step.")
    logger: Optional[Logger] = Field(
        default=None, description="Logger override for step traces."
    )

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class SequenceOptions(BaseModel):
    """Knobs for one sequence run."""

    heuristic_model: Optional[Model] = Field(
        default=None,
        description="Model used for loop management; required before running.",
    )
    max_steps: Optional[int] = Field(
        default=None, ge=0, description="Step budget; None means unbounded."
    )
    debug: bool = Field(default=False, description="Log a trace of every step.")
    preserve_input: bool = Field(
        default=False,
        description="Carry the previous get_user_input hook into the next stage.",
    )
    logger: Optional[Logger] = Field(
        default=None, description="Logger override for loop and step traces."
    )
    on_state_change: Optional[StateObserver] = None
    on_start: Optional[StateObserver] = None
    on_stop: Optional[StateObserver] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def merge(self, override: Optional["SequenceOptions"]) -> "SequenceOptions":
        """
        Returns options where fields explicitly set on ``override`` win.

        Args:
            override: Options supplied by the next stage.

        Returns:
            The merged options.
        """
        if override is None:
            return self
        return self.model_copy(
            update={name: getattr(override, name) for name in override.model_fields_set}
        )

    def step_options(self) -> StepOptions:
        """Project these options onto the per-step options."""
        return StepOptions(
            heuristic_model=self.heuristic_model,
            debug=self.debug,
            logger=self.logger,
        )
