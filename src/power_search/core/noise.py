"""Gaussian parameter-space exploration for a linear policy."""

from __future__ import annotations

import numpy as np

from power_search.core.types import Parameter, State


class GaussianNoisePolicy:
    """Linear policy ``action = (theta + epsilon) . state`` with Gaussian noise.

    Attributes:
        std: Standard deviation of every noise component.
    """

    def __init__(
        self,
        std: float = 1.0,
        seed: int | np.random.SeedSequence | None = None,
    ) -> None:
        if std <= 0.0:
            raise ValueError("std must be positive.")
        self.std = float(std)
        self._seed_seq = (
            seed
            if isinstance(seed, np.random.SeedSequence)
            else np.random.SeedSequence(seed)
        )
        self._rng = np.random.default_rng(self._seed_seq)

    def sample(self, theta: Parameter, state: State) -> tuple[float, Parameter]:
        epsilon = self._rng.normal(0.0, self.std, size=np.shape(theta))
        action = float(np.dot(theta + epsilon, state))
        return action, epsilon

    def spawn(self, n_children: int) -> list["GaussianNoisePolicy"]:
        """Return child policies drawing from independent random streams.

        Repeated calls keep producing fresh streams, so successive batches
        never reuse noise.
        """
        return [
            GaussianNoisePolicy(std=self.std, seed=child)
            for child in self._seed_seq.spawn(n_children)
        ]
