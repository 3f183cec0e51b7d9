"""Pytest configuration and shared toy worlds."""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pytest


class CounterWorld:
    """Every component of the state counts elapsed steps.

    The reward at step ``k`` is ``rewards[k]`` (the last entry repeats) plus
    ``action_gain * action``. The state is terminal once the counter reaches
    ``horizon``. Each step moves every component by ``step_size``.
    """

    def __init__(
        self,
        dim: int,
        horizon: int,
        rewards: Sequence[float],
        action_gain: float = 0.0,
        step_size: float = 1.0,
    ) -> None:
        self.dim = dim
        self.horizon = horizon
        self.rewards = tuple(rewards)
        self.action_gain = action_gain
        self.step_size = step_size

    def act(self, state: np.ndarray, action: float) -> tuple[float, np.ndarray]:
        counter = int(round(state[0] / self.step_size))
        base = self.rewards[min(counter, len(self.rewards) - 1)]
        return base + self.action_gain * action, state + self.step_size

    def is_terminal(self, state: np.ndarray) -> bool:
        return int(round(state[0] / self.step_size)) >= self.horizon


class ZeroStateWorld:
    """Never leaves the zero state and never terminates."""

    def __init__(self, reward: float = 1.0) -> None:
        self.reward = reward

    def act(self, state: np.ndarray, action: float) -> tuple[float, np.ndarray]:
        return self.reward, np.zeros_like(state)

    def is_terminal(self, state: np.ndarray) -> bool:
        return False


class ExplodingWorld:
    """Fails on first use; guards tests that must not simulate."""

    def act(self, state: np.ndarray, action: float) -> tuple[float, np.ndarray]:
        raise AssertionError("world.act should not be called")

    def is_terminal(self, state: np.ndarray) -> bool:
        raise AssertionError("world.is_terminal should not be called")


class ScriptedPolicy:
    """Deterministic policy replaying a fixed noise sequence (no ``spawn``)."""

    def __init__(self, epsilons: Sequence[Sequence[float]]) -> None:
        self.epsilons = [np.asarray(eps, dtype=np.float64) for eps in epsilons]
        self.calls = 0

    def sample(self, theta: np.ndarray, state: np.ndarray) -> tuple[float, np.ndarray]:
        epsilon = self.epsilons[self.calls % len(self.epsilons)]
        self.calls += 1
        return float(np.dot(theta + epsilon, state)), epsilon


@pytest.fixture
def counter_world():
    return CounterWorld


@pytest.fixture
def zero_state_world() -> ZeroStateWorld:
    return ZeroStateWorld()


@pytest.fixture
def exploding_world() -> ExplodingWorld:
    return ExplodingWorld()


@pytest.fixture
def scripted_policy():
    return ScriptedPolicy
