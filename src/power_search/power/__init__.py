"""POWER episodic policy search for linear policies."""

from power_search.power.batch import BatchResult, aggregate_episodes, run_batch
from power_search.power.episode import (
    EpisodeResult,
    Trajectory,
    return_to_go,
    rollout_episode,
    run_episode,
)
from power_search.power.train import TrainingResult, train

__all__ = [
    "BatchResult",
    "EpisodeResult",
    "TrainingResult",
    "Trajectory",
    "aggregate_episodes",
    "return_to_go",
    "rollout_episode",
    "run_batch",
    "run_episode",
    "train",
]
