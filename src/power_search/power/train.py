"""Update loop applying successive POWER batch updates to theta."""

from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy as np

from power_search.core.config import PowerConfig
from power_search.core.errors import PowerError, TrainingError
from power_search.core.types import ExplorationPolicy, Parameter, World
from power_search.power.batch import run_batch, validate_theta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingResult:
    """Learning-curve diagnostics collected by :func:`train`."""

    mean_returns: tuple[float, ...]
    update_norms: tuple[float, ...]
    iterations: int
    failed_iterations: tuple[int, ...] = ()


def train(
    world: World,
    policy: ExplorationPolicy,
    theta: Parameter,
    config: PowerConfig,
) -> TrainingResult:
    """Run exactly ``config.updates`` batches, adding each update to ``theta``.

    ``theta`` is modified in place. A failing batch raises
    :class:`TrainingError` naming the iteration, with every earlier update
    already applied; with ``config.skip_failed_updates`` the failure is logged
    and theta is left unchanged for that iteration instead.

    Args:
        world: Environment providing ``act`` and ``is_terminal``.
        policy: Exploration policy sampling ``(action, epsilon)``.
        theta: 1-D float parameter vector, updated in place.
        config: Batch and loop settings.

    Returns:
        Mean return and update norm of every applied batch.
    """
    config.validate()
    validate_theta(theta, config)

    mean_returns: list[float] = []
    update_norms: list[float] = []
    failed: list[int] = []

    iterator = range(config.updates)
    progress = iterator
    if config.show_progress:
        # Import tqdm lazily to avoid notebook-side effects when progress is disabled.
        from tqdm.auto import tqdm

        progress = tqdm(
            iterator,
            desc=config.progress_desc,
            dynamic_ncols=True,
            leave=False,
        )

    try:
        for iteration in progress:
            try:
                batch = run_batch(world, policy, theta, config)
            except PowerError as exc:
                if not config.skip_failed_updates:
                    raise TrainingError(iteration=iteration, cause=exc) from exc
                logger.warning("Skipping update at iteration %d: %s", iteration, exc)
                failed.append(iteration)
                continue

            theta += batch.update
            mean_returns.append(batch.mean_return)
            update_norms.append(float(np.linalg.norm(batch.update)))
            if config.show_progress:
                progress.set_postfix(
                    {"return": f"{batch.mean_return:.3e}"}, refresh=False
                )
    finally:
        if config.show_progress:
            progress.close()

    return TrainingResult(
        mean_returns=tuple(mean_returns),
        update_norms=tuple(update_norms),
        iterations=config.updates,
        failed_iterations=tuple(failed),
    )
