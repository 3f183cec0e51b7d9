"""Shared numeric types and collaborator interfaces for policy search."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

import numpy as np

# Parameter vectors and states share one representation: a 1-D float64 array
# whose length is the policy dimension.
Parameter = np.ndarray
State = np.ndarray
# Square (d x d) float64 matrix used for per-step and aggregate weights.
Weight = np.ndarray
# Noise normalizer: a positive scalar, or a (d x d) matrix.
Sigma = float | np.ndarray


@runtime_checkable
class World(Protocol):
    """Episodic environment consumed by the episode roller.

    Implementations must be a pure function of ``(state, action)`` as far as
    the roller can observe, and every episode must eventually terminate.
    """

    def act(self, state: State, action: float) -> tuple[float, State]:
        """Return ``(reward, next_state)`` for taking ``action`` in ``state``."""
        ...

    def is_terminal(self, state: State) -> bool:
        ...


@runtime_checkable
class ExplorationPolicy(Protocol):
    """Linear policy with additive exploration noise."""

    def sample(self, theta: Parameter, state: State) -> tuple[float, Parameter]:
        """Return ``(action, epsilon)`` with a fresh noise sample on every call."""
        ...


@runtime_checkable
class SpawnablePolicy(ExplorationPolicy, Protocol):
    """Exploration policy that can hand out independent child noise streams."""

    def spawn(self, n_children: int) -> Sequence[ExplorationPolicy]:
        ...
