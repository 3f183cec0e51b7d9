"""Vector/matrix operations used by episode weighting and batch solving."""

from __future__ import annotations

import numpy as np

from power_search.core.errors import DegenerateWeightError, SingularAggregateError
from power_search.core.types import Parameter, Sigma, State, Weight


def zero_parameter(dim: int) -> Parameter:
    return np.zeros(dim, dtype=np.float64)


def zero_weight(dim: int) -> Weight:
    return np.zeros((dim, dim), dtype=np.float64)


def identity_weight(dim: int) -> Weight:
    return np.eye(dim, dtype=np.float64)


def quadratic_form(state: State, sigma: Sigma) -> float:
    """Evaluate ``state^T sigma state`` as a scalar for scalar or matrix sigma."""
    if np.ndim(sigma) == 0:
        return float(sigma) * float(np.dot(state, state))
    return float(state @ np.asarray(sigma, dtype=np.float64) @ state)


def state_weight(
    state: State,
    sigma: Sigma,
    *,
    step: int,
    degenerate_tol: float,
) -> Weight:
    """Outer-product weight ``s s^T / (s^T sigma s)`` for one step.

    The weight is invariant to the scale of ``state``, so degeneracy is judged
    relative to ``|s|^2 * max|sigma|``.
    """
    squared_norm = float(np.dot(state, state))
    normalizer = quadratic_form(state, sigma)
    scale = squared_norm * float(np.max(np.abs(sigma)))
    if (
        squared_norm == 0.0
        or not np.isfinite(normalizer)
        or abs(normalizer) <= degenerate_tol * scale
    ):
        raise DegenerateWeightError(step=step, value=normalizer)
    return np.outer(state, state) / normalizer


def solve_update(
    matrix: Weight,
    vector: Parameter,
    *,
    max_condition: float,
) -> Parameter:
    """Solve ``matrix @ update = vector`` or raise when ``matrix`` is singular.

    A zero right-hand side always yields the zero update, which is the
    minimum-norm solution even when ``matrix`` itself is singular.
    """
    if not (np.all(np.isfinite(matrix)) and np.all(np.isfinite(vector))):
        raise SingularAggregateError(
            "Mean weighted aggregate contains non-finite entries."
        )
    if not np.any(vector):
        return np.zeros_like(vector)

    condition = float(np.linalg.cond(matrix))
    if not np.isfinite(condition) or condition > max_condition:
        raise SingularAggregateError(
            "Mean weighted matrix is singular or ill-conditioned "
            f"(condition={condition:.3e}, max_condition={max_condition:.3e}).",
            condition=condition,
        )
    try:
        return np.linalg.solve(matrix, vector)
    except np.linalg.LinAlgError as exc:
        raise SingularAggregateError(
            f"Mean weighted matrix could not be inverted: {exc}",
            condition=condition,
        ) from exc
