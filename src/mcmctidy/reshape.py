"""
Tidy Reshaper.

Flattens a SampleCollection into a long-format LongTable:
- to_long: one row per (parameter, chain, iteration), parameter-major
"""

import numpy as np

from .collection import SampleCollection
from .types import LongTable

import logging
logger = logging.getLogger('mcmctidy')


def to_long(collection: SampleCollection, parameters=None) -> LongTable:
    """
    Reshape a collection into a long table.

    Rows are emitted for each parameter (declared order, or the order of
    `parameters`), then each chain, then iterations 1..N. Every
    (parameter, chain) pair is therefore one contiguous run of N rows.

    Each column is built with a single vectorized allocation from the dense
    cube; there is no per-row lookup.

    Args:
        collection: Canonical SampleCollection
        parameters: Optional ordered subset of parameter names

    Returns:
        LongTable with n_params * n_chains * n_iterations rows

    Raises:
        UnknownParameter: If a requested parameter is not in the collection
    """
    idx = collection.parameter_indices(parameters)
    names = tuple(collection.parameter_names[j] for j in idx)
    n_iterations, n_chains, _ = collection.draws.shape
    n_params = len(idx)

    # (n_iter, n_chains, n_params) -> (n_params, n_chains, n_iter), then flatten
    if idx == list(range(collection.n_params)):
        cube = collection.draws
    else:
        cube = collection.draws[:, :, idx]
    value = np.ascontiguousarray(cube.transpose(2, 1, 0)).reshape(-1)

    run = n_iterations * n_chains
    iteration = np.tile(np.arange(1, n_iterations + 1, dtype=np.int64), n_params * n_chains)
    chain = np.tile(np.repeat(np.arange(1, n_chains + 1, dtype=np.int64), n_iterations), n_params)
    parameter_codes = np.repeat(np.arange(n_params, dtype=np.intp), run)

    logger.debug(
        f"to_long: {n_params} params x {n_chains} chains x {n_iterations} iterations "
        f"-> {value.size} rows"
    )

    return LongTable(
        iteration=iteration,
        chain=chain,
        parameter_codes=parameter_codes,
        parameter_names=names,
        value=value,
    )
