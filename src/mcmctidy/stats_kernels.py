"""
Summary Statistic Kernels.

Vectorized computation of the StatSlot statistics over groups of draws:
- compute_group_stats: NumPy kernel over equal-sized groups (CPU)
- compute_group_stats_jax: the same kernel, JIT-compiled with JAX
- compute_ragged_stats: NumPy fallback for groups of unequal size

All kernels return an (n_groups, N_STATS) float64 matrix with columns in
StatSlot order. Quantiles use linear interpolation between order statistics
(numpy/jax method='linear', Hyndman & Fan type 7).
"""

import jax
import jax.numpy as jnp
import numpy as np

from .settings import N_STATS, QUANTILE_METHOD, StatSlot


def compute_group_stats(groups: np.ndarray, probs: np.ndarray) -> np.ndarray:
    """
    Statistics for equal-sized groups (NumPy).

    Args:
        groups: (n_groups, n_obs) draws, one group per row, n_obs >= 2
        probs: [lower, 0.5, upper] quantile probabilities

    Returns:
        (n_groups, N_STATS) statistics matrix
    """
    stats = np.empty((groups.shape[0], N_STATS), dtype=np.float64)
    stats[:, StatSlot.MEAN] = np.mean(groups, axis=1)
    stats[:, StatSlot.SD] = np.std(groups, axis=1, ddof=1)

    quantiles = np.quantile(groups, probs, axis=1, method=QUANTILE_METHOD)  # (3, n_groups)
    stats[:, StatSlot.LOWER] = quantiles[0]
    stats[:, StatSlot.MEDIAN] = quantiles[1]
    stats[:, StatSlot.UPPER] = quantiles[2]
    return stats


@jax.jit
def _group_stats_jax(groups: jnp.ndarray, probs: jnp.ndarray) -> jnp.ndarray:
    quantiles = jnp.quantile(groups, probs, axis=1, method=QUANTILE_METHOD)  # (3, n_groups)

    columns = [None] * N_STATS
    columns[StatSlot.MEAN] = jnp.mean(groups, axis=1)
    columns[StatSlot.SD] = jnp.std(groups, axis=1, ddof=1)
    columns[StatSlot.LOWER] = quantiles[0]
    columns[StatSlot.MEDIAN] = quantiles[1]
    columns[StatSlot.UPPER] = quantiles[2]
    return jnp.stack(columns, axis=1)


def compute_group_stats_jax(groups: np.ndarray, probs: np.ndarray) -> np.ndarray:
    """
    Statistics for equal-sized groups (JAX, JIT-compiled).

    Recompiles once per (n_groups, n_obs) shape. Results are copied back to
    host memory as float64.
    """
    stats_device = _group_stats_jax(jnp.asarray(groups), jnp.asarray(probs))
    return np.asarray(jax.device_get(stats_device), dtype=np.float64)


def compute_ragged_stats(values: np.ndarray, starts: np.ndarray, counts: np.ndarray,
                         probs: np.ndarray) -> np.ndarray:
    """
    Statistics for groups stored back to back in one array.

    Args:
        values: Draws sorted so each group is contiguous
        starts: Start offset of each group in values
        counts: Size of each group (each >= 2)
        probs: [lower, 0.5, upper] quantile probabilities

    Returns:
        (n_groups, N_STATS) statistics matrix
    """
    stats = np.empty((len(starts), N_STATS), dtype=np.float64)
    for g, (start, count) in enumerate(zip(starts, counts)):
        stats[g] = compute_group_stats(values[np.newaxis, start:start + count], probs)[0]
    return stats
