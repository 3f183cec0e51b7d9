"""Episode rollout and return weighting for POWER."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from power_search.core.config import DEFAULT_SIGMA
from power_search.core.errors import InvalidConfigurationError
from power_search.core.linalg import (
    identity_weight,
    state_weight,
    zero_parameter,
    zero_weight,
)
from power_search.core.types import (
    ExplorationPolicy,
    Parameter,
    Sigma,
    Weight,
    World,
)


@dataclass(frozen=True)
class Trajectory:
    """Index-aligned per-step records of one episode.

    Attributes:
        rewards: Immediate reward of each step, shape ``(T,)``.
        epsilons: Exploration noise sampled at each step, shape ``(T, d)``.
        states: State in which each action was taken, shape ``(T, d)``.
    """

    rewards: np.ndarray
    epsilons: np.ndarray
    states: np.ndarray

    def __len__(self) -> int:
        return int(self.rewards.shape[0])


@dataclass(frozen=True)
class EpisodeResult:
    """Weighted aggregates of one episode, consumed by the batch aggregator."""

    weighted_matrix: Weight
    weighted_vector: Parameter
    initial_return: float
    length: int


def rollout_episode(
    world: World,
    policy: ExplorationPolicy,
    theta: Parameter,
    max_steps: int,
) -> Trajectory:
    """Run one episode from the zero state.

    At least one step is always taken. The loop then continues while fewer
    than ``max_steps`` steps were taken and the reached state is not terminal.
    """
    if max_steps < 1:
        raise InvalidConfigurationError("max_steps must be at least 1.")
    state = zero_parameter(theta.shape[0])
    rewards: list[float] = []
    epsilons: list[np.ndarray] = []
    states: list[np.ndarray] = []

    while True:
        action, epsilon = policy.sample(theta, state)
        reward, next_state = world.act(state, action)
        rewards.append(float(reward))
        epsilons.append(np.asarray(epsilon, dtype=np.float64))
        states.append(state)
        state = np.array(next_state, dtype=np.float64)
        if len(rewards) >= max_steps or world.is_terminal(state):
            break

    return Trajectory(
        rewards=np.asarray(rewards, dtype=np.float64),
        epsilons=np.stack(epsilons),
        states=np.stack(states),
    )


def return_to_go(rewards: np.ndarray) -> np.ndarray:
    """Undiscounted sum of rewards from each step to the end of the episode."""
    returns = np.asarray(rewards, dtype=np.float64).copy()
    running = 0.0
    for idx in range(returns.shape[0] - 1, -1, -1):
        running += returns[idx]
        returns[idx] = running
    return returns


def weight_trajectory(
    trajectory: Trajectory,
    returns: np.ndarray,
    sigma: Sigma = DEFAULT_SIGMA,
    *,
    degenerate_tol: float = 1e-12,
) -> tuple[Weight, Parameter]:
    """Accumulate return-weighted matrix and noise sums over the trajectory.

    Step 0 is weighted by the identity; every later step by
    ``s s^T / (s^T sigma s)`` of its pre-transition state.
    """
    dim = trajectory.states.shape[1]
    weighted_matrix = zero_weight(dim)
    weighted_vector = zero_parameter(dim)
    for step in range(len(trajectory)):
        if step == 0:
            weight = identity_weight(dim)
        else:
            weight = state_weight(
                trajectory.states[step],
                sigma,
                step=step,
                degenerate_tol=degenerate_tol,
            )
        weighted_matrix += weight * returns[step]
        weighted_vector += (weight @ trajectory.epsilons[step]) * returns[step]
    return weighted_matrix, weighted_vector


def run_episode(
    world: World,
    policy: ExplorationPolicy,
    theta: Parameter,
    max_steps: int,
    sigma: Sigma = DEFAULT_SIGMA,
    *,
    degenerate_tol: float = 1e-12,
) -> EpisodeResult:
    """Roll out one episode and reduce it to its weighted aggregates."""
    trajectory = rollout_episode(world, policy, theta, max_steps)
    returns = return_to_go(trajectory.rewards)
    weighted_matrix, weighted_vector = weight_trajectory(
        trajectory,
        returns,
        sigma,
        degenerate_tol=degenerate_tol,
    )
    return EpisodeResult(
        weighted_matrix=weighted_matrix,
        weighted_vector=weighted_vector,
        initial_return=float(returns[0]),
        length=len(trajectory),
    )
