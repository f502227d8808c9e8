import pytest

from fakes import HeuristicModel
from stepwise.engine.options import SequenceOptions, StepOptions


@pytest.fixture
def heuristic_no() -> HeuristicModel:
    return HeuristicModel("no")


@pytest.fixture
def heuristic_yes() -> HeuristicModel:
    return HeuristicModel("yes")


@pytest.fixture
def step_options(heuristic_no: HeuristicModel) -> StepOptions:
    return StepOptions(heuristic_model=heuristic_no)


@pytest.fixture
def sequence_options(heuristic_no: HeuristicModel) -> SequenceOptions:
    return SequenceOptions(heuristic_model=heuristic_no)
