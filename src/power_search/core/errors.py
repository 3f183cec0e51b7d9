"""Error taxonomy for POWER policy search."""

from __future__ import annotations


class PowerError(Exception):
    """Base class for every error raised by the policy-search core."""


class InvalidConfigurationError(PowerError, ValueError):
    """Raised before any simulation when run settings are out of range."""


class DegenerateWeightError(PowerError, ArithmeticError):
    """A per-step quadratic-form normalizer is zero or near zero."""

    def __init__(self, step: int, value: float) -> None:
        self.step = step
        self.value = value
        super().__init__(
            "State quadratic form is degenerate "
            f"(step={step}, value={value:.3e}); the step weight is undefined."
        )


class SingularAggregateError(PowerError, ArithmeticError):
    """The batch mean weighted matrix cannot be inverted."""

    def __init__(self, message: str, condition: float = float("inf")) -> None:
        self.condition = condition
        super().__init__(message)


class TrainingError(PowerError):
    """A batch failed during training; ``__cause__`` holds the batch error."""

    def __init__(self, iteration: int, cause: PowerError) -> None:
        self.iteration = iteration
        super().__init__(
            f"Training stopped at iteration {iteration}: {cause}"
        )
