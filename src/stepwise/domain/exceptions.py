class StepwiseError(Exception):
    """Base exception for the Stepwise runtime."""

    pass


class ConfigurationError(StepwiseError):
    """A required hook or option is missing for the requested transition."""

    pass


class LLMError(StepwiseError):
    """Base exception for model interaction failures."""

    pass


class ModelStoppedError(LLMError):
    """An in-flight completion was cancelled through ``Model.stop``."""

    pass


class ToolNotFoundError(StepwiseError):
    """A tool call referenced a name that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool '{name}' not found")
        self.name = name


class MemoryPatchConflictError(StepwiseError):
    """Two memory patches in the same composition wrote the same key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Memory-patch conflict on key '{key}'.")
        self.key = key
