"""Batch aggregation of independent episodes into one POWER update."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import math
from typing import Sequence

import numpy as np

from power_search.core.config import PowerConfig
from power_search.core.errors import (
    DegenerateWeightError,
    InvalidConfigurationError,
    SingularAggregateError,
)
from power_search.core.linalg import solve_update
from power_search.core.types import (
    ExplorationPolicy,
    Parameter,
    SpawnablePolicy,
    World,
)
from power_search.power.episode import EpisodeResult, run_episode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchResult:
    """Outputs of one batch.

    Attributes:
        update: Parameter update solved from the mean weighted aggregates.
        mean_return: Mean total return over the aggregated episodes.
        episode_returns: Total return of each aggregated episode.
        n_episodes: Number of episodes that contributed to the update.
        n_skipped: Episodes dropped for a degenerate step weight.
    """

    update: Parameter
    mean_return: float
    episode_returns: tuple[float, ...]
    n_episodes: int
    n_skipped: int = 0


def validate_theta(theta: Parameter, config: PowerConfig) -> None:
    """Check theta is a 1-D float array compatible with ``config.sigma``."""
    if not isinstance(theta, np.ndarray) or theta.ndim != 1 or theta.shape[0] < 1:
        raise InvalidConfigurationError("theta must be a non-empty 1-D numpy array.")
    if not np.issubdtype(theta.dtype, np.floating):
        raise InvalidConfigurationError(
            f"theta must have a floating dtype (dtype={theta.dtype})."
        )
    sigma = config.sigma_value()
    if np.ndim(sigma) == 2 and sigma.shape != (theta.shape[0], theta.shape[0]):
        raise InvalidConfigurationError(
            "sigma matrix does not match the parameter dimension "
            f"(shape={sigma.shape}, dim={theta.shape[0]})."
        )


def run_batch(
    world: World,
    policy: ExplorationPolicy,
    theta: Parameter,
    config: PowerConfig,
) -> BatchResult:
    """Roll out ``config.episodes_per_batch`` episodes and solve the update.

    Each episode draws its noise from its own child of ``policy`` (when the
    policy supports ``spawn``), so sequential and threaded runs agree.
    """
    config.validate()
    validate_theta(theta, config)
    policies = _episode_policies(policy, config)
    sigma = config.sigma_value()

    def _rollout(idx: int) -> EpisodeResult | None:
        try:
            return run_episode(
                world,
                policies[idx],
                theta,
                config.max_steps_per_episode,
                sigma,
                degenerate_tol=config.degenerate_tol,
            )
        except DegenerateWeightError as exc:
            if not config.skip_degenerate_episodes:
                raise
            logger.warning("Skipping episode %d: %s", idx, exc)
            return None

    episode_ids = range(config.episodes_per_batch)
    if config.n_workers == 1:
        outcomes = [_rollout(idx) for idx in episode_ids]
    else:
        with ThreadPoolExecutor(max_workers=config.n_workers) as pool:
            outcomes = list(pool.map(_rollout, episode_ids))

    results = [outcome for outcome in outcomes if outcome is not None]
    batch = aggregate_episodes(
        results,
        max_condition=config.max_condition,
        n_skipped=len(outcomes) - len(results),
    )
    logger.debug(
        "Batch done: episodes=%d skipped=%d mean_return=%.6g",
        batch.n_episodes,
        batch.n_skipped,
        batch.mean_return,
    )
    return batch


def aggregate_episodes(
    results: Sequence[EpisodeResult],
    *,
    max_condition: float = 1e12,
    n_skipped: int = 0,
) -> BatchResult:
    """Average per-episode aggregates and solve for the parameter update.

    The reduction is a plain sum followed by a division by the episode count,
    so the outcome does not depend on the order of ``results`` beyond
    floating-point rounding.
    """
    if not results:
        raise SingularAggregateError(
            f"No episodes to aggregate (skipped={n_skipped})."
        )
    n_episodes = len(results)
    mean_matrix = np.sum([r.weighted_matrix for r in results], axis=0) / n_episodes
    mean_vector = np.sum([r.weighted_vector for r in results], axis=0) / n_episodes
    episode_returns = tuple(float(r.initial_return) for r in results)
    update = solve_update(mean_matrix, mean_vector, max_condition=max_condition)
    return BatchResult(
        update=update,
        mean_return=math.fsum(episode_returns) / n_episodes,
        episode_returns=episode_returns,
        n_episodes=n_episodes,
        n_skipped=n_skipped,
    )


def _episode_policies(
    policy: ExplorationPolicy,
    config: PowerConfig,
) -> list[ExplorationPolicy]:
    if isinstance(policy, SpawnablePolicy):
        return list(policy.spawn(config.episodes_per_batch))
    if config.n_workers > 1:
        raise InvalidConfigurationError(
            "Parallel rollouts need a policy with spawn() to give each episode "
            f"an independent noise stream (n_workers={config.n_workers})."
        )
    return [policy] * config.episodes_per_batch
