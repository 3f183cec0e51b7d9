"""Run configuration schema and YAML helpers for POWER training."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import yaml

from power_search.core.errors import InvalidConfigurationError

# Noise normalizer used by the reference batch routine.
DEFAULT_SIGMA = 0.5


@dataclass(frozen=True)
class PowerConfig:
    """Settings shared by the batch aggregator and the update loop.

    Attributes:
        updates: Number of parameter updates performed by ``train``.
        episodes_per_batch: Independent episodes averaged into one update.
        max_steps_per_episode: Hard cap on episode length.
        sigma: Positive scalar (or SPD matrix as nested lists) normalizing the
            per-step state weight.
        degenerate_tol: A quadratic form ``s^T sigma s`` at or below this
            fraction of ``|s|^2 * max|sigma|`` (or any zero state) is treated
            as degenerate.
        max_condition: Largest accepted condition number of the mean
            weighted matrix.
        n_workers: Threads used to roll out the episodes of one batch.
        skip_degenerate_episodes: Drop episodes with a degenerate weight
            instead of failing the batch.
        skip_failed_updates: Keep training when a batch fails, leaving theta
            unchanged for that iteration.
    """

    updates: int
    episodes_per_batch: int
    max_steps_per_episode: int
    sigma: Any = DEFAULT_SIGMA
    degenerate_tol: float = 1e-12
    max_condition: float = 1e12
    n_workers: int = 1
    skip_degenerate_episodes: bool = False
    skip_failed_updates: bool = False
    show_progress: bool = False
    progress_desc: str = "PoWER"
    metadata: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        if self.updates < 0:
            raise InvalidConfigurationError("updates must be non-negative.")
        if self.episodes_per_batch < 1:
            raise InvalidConfigurationError("episodes_per_batch must be at least 1.")
        if self.max_steps_per_episode < 1:
            raise InvalidConfigurationError(
                "max_steps_per_episode must be at least 1."
            )
        if self.degenerate_tol < 0.0:
            raise InvalidConfigurationError("degenerate_tol must be non-negative.")
        if self.max_condition <= 1.0:
            raise InvalidConfigurationError("max_condition must be greater than 1.")
        if self.n_workers < 1:
            raise InvalidConfigurationError("n_workers must be at least 1.")
        _validate_sigma(self.sigma)

    def sigma_value(self) -> float | np.ndarray:
        """Return ``sigma`` as a float or a float64 matrix."""
        if np.ndim(self.sigma) == 0:
            return float(self.sigma)
        return np.asarray(self.sigma, dtype=np.float64)

    def to_dict(self) -> dict[str, Any]:
        """Convert config object to a plain dict."""
        payload = asdict(self)
        if np.ndim(self.sigma) != 0:
            payload["sigma"] = np.asarray(self.sigma, dtype=float).tolist()
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PowerConfig":
        """Create config object from a plain dict."""
        sigma = payload.get("sigma", DEFAULT_SIGMA)
        if np.ndim(sigma) == 0:
            sigma = float(sigma)
        else:
            sigma = tuple(tuple(float(value) for value in row) for row in sigma)
        return cls(
            updates=int(payload["updates"]),
            episodes_per_batch=int(payload["episodes_per_batch"]),
            max_steps_per_episode=int(payload["max_steps_per_episode"]),
            sigma=sigma,
            degenerate_tol=float(payload.get("degenerate_tol", 1e-12)),
            max_condition=float(payload.get("max_condition", 1e12)),
            n_workers=int(payload.get("n_workers", 1)),
            skip_degenerate_episodes=bool(payload.get("skip_degenerate_episodes", False)),
            skip_failed_updates=bool(payload.get("skip_failed_updates", False)),
            show_progress=bool(payload.get("show_progress", False)),
            progress_desc=str(payload.get("progress_desc", "PoWER")),
            metadata=dict(payload.get("metadata", {})),
        )


def save_power_config(config: PowerConfig, output_path: Path) -> None:
    """Serialize config to YAML."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(yaml.safe_dump(config.to_dict(), sort_keys=False))


def load_power_config(path: Path) -> PowerConfig:
    """Load config from YAML."""
    payload = yaml.safe_load(path.read_text())
    if not isinstance(payload, dict):
        raise ValueError("Expected a mapping in POWER config YAML.")
    return PowerConfig.from_dict(payload)


def _validate_sigma(sigma: Any) -> None:
    try:
        values = np.asarray(sigma, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError("sigma must be numeric.") from exc
    if values.ndim == 0:
        if not np.isfinite(values) or values <= 0.0:
            raise InvalidConfigurationError("sigma must be a positive finite scalar.")
        return
    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise InvalidConfigurationError(
            f"sigma matrix must be square (shape={values.shape})."
        )
    if not np.all(np.isfinite(values)):
        raise InvalidConfigurationError("sigma matrix must be finite.")
