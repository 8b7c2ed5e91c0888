"""
Summary Engine.

Computes per-parameter (optionally per-chain) posterior summaries:
mean, sample sd, and lower/median/upper quantiles at a credible level.

Grouping:
- chain=False: one group per parameter; the raw draws of every chain are
  pooled before any statistic is taken (chain means are never averaged).
- chain=True: one group per (parameter, chain).

Rows come out ordered by parameter (first appearance in the source, or the
order of the `parameters` filter), then by chain.
"""

import numpy as np

from .collection import SampleCollection
from .error_handling import InsufficientSamples, MissingValues, validate_conf_level
from .reshape import to_long
from .settings import DEFAULT_CONF_LEVEL, interval_probs
from .stats_kernels import compute_group_stats, compute_group_stats_jax, compute_ragged_stats
from .types import LongTable, SummaryTable

import logging
logger = logging.getLogger('mcmctidy')


BACKENDS = {
    'numpy': compute_group_stats,
    'jax': compute_group_stats_jax,
}


def summarize(source, conf_level=DEFAULT_CONF_LEVEL, chain=False, parameters=None,
              backend='numpy') -> SummaryTable:
    """
    Summarize draws per parameter, or per (parameter, chain).

    Args:
        source: SampleCollection or LongTable
        conf_level: Credible-interval mass in (0, 1); 0.95 gives the
            2.5% and 97.5% quantiles
        chain: Summarize each chain separately instead of pooling
        parameters: Optional ordered subset of parameter names
        backend: 'numpy' or 'jax' kernel for equal-sized groups

    Returns:
        SummaryTable

    Raises:
        InvalidConfidenceLevel: If conf_level is outside (0, 1)
        UnknownParameter: If a requested parameter is absent
        InsufficientSamples: If any group has fewer than 2 draws, or nothing
            is left to summarize after the parameter filter
        MissingValues: If any group contains NaN
        TypeError: If source is neither a SampleCollection nor a LongTable
    """
    conf_level = validate_conf_level(conf_level)
    if backend not in BACKENDS:
        raise ValueError(f"Unknown backend '{backend}'. Available: {list(BACKENDS)}")

    if isinstance(source, SampleCollection):
        return _summarize_collection(source, conf_level, chain, parameters, backend)
    if isinstance(source, LongTable):
        return _summarize_long(source, conf_level, chain, parameters, backend)
    raise TypeError(
        f"summarize() expects a SampleCollection or LongTable, got {type(source).__name__}"
    )


def _describe(names, chains):
    if chains is None:
        return [str(n) for n in names]
    return [f"{n} (chain {c})" for n, c in zip(names, chains)]


def _check_groups(counts, has_nan, names, chains):
    """Fail fast on groups that cannot be summarized."""
    small = np.flatnonzero(counts < 2)
    if small.size:
        labels = _describe([names[g] for g in small],
                           None if chains is None else chains[small])
        raise InsufficientSamples(
            f"Need at least 2 draws per group to compute sd; too few in: {labels}"
        )

    if has_nan.any():
        bad = np.flatnonzero(has_nan)
        labels = _describe([names[g] for g in bad],
                           None if chains is None else chains[bad])
        raise MissingValues(f"Missing (NaN) draws invalidate the summary of: {labels}")


def _summarize_collection(collection, conf_level, chain, parameters, backend):
    long_table = to_long(collection, parameters)
    n_params = len(long_table.parameter_names)
    if n_params == 0:
        raise InsufficientSamples("No parameters selected to summarize")
    n_chains, n_iterations = collection.n_chains, collection.n_iterations

    # to_long is parameter-major, then chain, then iteration, so its value
    # column reshapes straight into equal-sized groups
    if chain:
        groups = long_table.value.reshape(n_params * n_chains, n_iterations)
        names = [name for name in long_table.parameter_names for _ in range(n_chains)]
        chains = np.tile(np.arange(1, n_chains + 1, dtype=np.int64), n_params)
    else:
        groups = long_table.value.reshape(n_params, n_chains * n_iterations)
        names = list(long_table.parameter_names)
        chains = None

    counts = np.full(groups.shape[0], groups.shape[1])
    _check_groups(counts, np.isnan(groups).any(axis=1), names, chains)

    stats = BACKENDS[backend](groups, interval_probs(conf_level))
    logger.debug(f"summarize: {groups.shape[0]} groups of {groups.shape[1]} draws ({backend})")
    return SummaryTable(parameter=names, chain=chains, stats=stats, conf_level=conf_level)


def _summarize_long(table, conf_level, chain, parameters, backend):
    if parameters is not None:
        table = table.select(parameters)
    if len(table) == 0:
        raise InsufficientSamples("Cannot summarize an empty long table")

    present = table.present_parameters()
    code_of = {name: i for i, name in enumerate(table.parameter_names)}
    rank = np.zeros(len(table.parameter_names), dtype=np.int64)
    for pos, name in enumerate(present):
        rank[code_of[name]] = pos
    param_rank = rank[table.parameter_codes]

    if chain:
        chain_labels, chain_rank = np.unique(table.chain, return_inverse=True)
        n_labels = len(chain_labels)
        key = param_rank * n_labels + chain_rank
    else:
        n_labels = 1
        key = param_rank

    # Stable sort keeps each group's draws in their original (iteration) order
    order = np.argsort(key, kind='stable')
    values = table.value[order]
    group_keys, starts, counts = np.unique(key[order], return_index=True, return_counts=True)

    names = [present[k] for k in (group_keys // n_labels)]
    chains = chain_labels[group_keys % n_labels] if chain else None

    has_nan = np.logical_or.reduceat(np.isnan(values), starts)
    _check_groups(counts, has_nan, names, chains)

    probs = interval_probs(conf_level)
    if np.all(counts == counts[0]):
        stats = BACKENDS[backend](values.reshape(len(counts), counts[0]), probs)
    else:
        if backend != 'numpy':
            logger.warning(f"Uneven group sizes; computing summary with numpy instead of {backend}")
        stats = compute_ragged_stats(values, starts, counts, probs)

    logger.debug(f"summarize: {len(counts)} groups from {len(table)} long rows")
    return SummaryTable(parameter=names, chain=chains, stats=stats, conf_level=conf_level)
