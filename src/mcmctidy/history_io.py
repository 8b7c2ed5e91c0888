"""
History file loading for sampler output.

This module provides functions for:
- Loading a single history .npz file into a SampleCollection
- Combining batch history files from multiple runs
- Applying burn-in filtering by recorded iteration number

History files hold a 'history' array shaped (n_samples, n_chains, n_params).
Optional keys: 'parameter_names' (one string per column) and 'iterations'
(the sampler iteration of each saved sample). Other keys are ignored.
"""

import numpy as np
from pathlib import Path

from .collection import SampleCollection, default_parameter_names
from .error_handling import ShapeMismatch

import logging
logger = logging.getLogger('mcmctidy')


def _read_history(path):
    """Return (history, iterations or None, parameter names or None)."""
    # Context manager closes the NpzFile after loading
    with np.load(path, allow_pickle=False) as data:
        if 'history' not in data:
            raise ValueError(f"{path} has no 'history' array (keys: {list(data.keys())})")
        history = data['history'].copy()
        iterations = data['iterations'].copy() if 'iterations' in data else None
        names = tuple(str(n) for n in data['parameter_names']) if 'parameter_names' in data else None
    if history.ndim != 3:
        raise ShapeMismatch(
            f"{path}: history must be (n_samples, n_chains, n_params), got shape {history.shape}"
        )
    return history, iterations, names


def load_history(path, parameter_names=None) -> SampleCollection:
    """
    Load one history file as a SampleCollection.

    Args:
        path: Path to a history .npz file
        parameter_names: Names overriding any stored in the file

    Returns:
        SampleCollection over all saved samples

    Raises:
        ValueError: If the file has no history array
        ShapeMismatch: If the history array is not 3-D
    """
    history, _, stored_names = _read_history(path)
    names = parameter_names if parameter_names is not None else stored_names
    if names is None:
        names = default_parameter_names(history.shape[2])
    logger.info(f"Loaded {Path(path).name}: {history.shape[0]} samples x "
                f"{history.shape[1]} chains x {history.shape[2]} params")
    return SampleCollection.from_history(history, names)


def combine_batch_histories(batch_paths, parameter_names=None, min_iteration=None) -> SampleCollection:
    """
    Combine multiple batch history files into a single collection.

    Batches are concatenated along the sample axis in the order given.

    Args:
        batch_paths: List of paths to batch history .npz files
                    (e.g., ['history_000.npz', 'history_001.npz', ...])
        parameter_names: Names overriding any stored in the files
        min_iteration: If set, drop samples whose recorded iteration is below
            this value (burn-in removal); requires an 'iterations' array in
            every batch

    Returns:
        SampleCollection over the combined (and filtered) samples

    Raises:
        ValueError: If no paths are given or iterations are needed but absent
        ShapeMismatch: If batches disagree on chain or parameter count,
            or on stored parameter names
    """
    if not batch_paths:
        raise ValueError("No batch paths provided")

    histories = []
    iterations_list = []
    stored_names = None

    for i, path in enumerate(batch_paths):
        logger.info(f"Loading batch {i}: {path}")
        hist, iters, names = _read_history(path)

        if histories and hist.shape[1:] != histories[0].shape[1:]:
            raise ShapeMismatch(
                f"Batch {i} has shape {hist.shape}; expected (*, {histories[0].shape[1]}, "
                f"{histories[0].shape[2]}) like batch 0"
            )
        if names is not None:
            if stored_names is not None and names != stored_names:
                raise ShapeMismatch(f"Batch {i} parameter names differ from earlier batches")
            stored_names = names

        histories.append(hist)
        iterations_list.append(iters)

    # Concatenate along sample axis (axis=0)
    combined = np.concatenate(histories, axis=0)
    batch_sizes = [h.shape[0] for h in histories]
    logger.info(f"Combined {len(batch_paths)} batches: {combined.shape[0]} samples "
                f"(batch sizes {batch_sizes})")

    if min_iteration is not None:
        if any(iters is None for iters in iterations_list):
            raise ValueError("min_iteration requires an 'iterations' array in every batch")
        iterations = np.concatenate(iterations_list, axis=0)
        mask = iterations >= min_iteration
        n_kept = int(np.sum(mask))
        if n_kept == 0:
            raise ShapeMismatch(f"Burn-in filter (min_iteration={min_iteration}) drops every sample")
        logger.info(f"Burn-in filter (min_iteration={min_iteration}): "
                    f"dropped {combined.shape[0] - n_kept}, kept {n_kept}")
        combined = combined[mask]

    names = parameter_names if parameter_names is not None else stored_names
    if names is None:
        names = default_parameter_names(combined.shape[2])
    return SampleCollection.from_history(combined, names)
