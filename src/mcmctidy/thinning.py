"""
Systematic thinning of long tables.

thin() keeps every k-th draw within each contiguous (parameter, chain) run,
starting from the run's first row. It is a pure row filter: values are never
recomputed and rows are never reordered.
"""

import numpy as np

from .error_handling import validate_thin_factor
from .types import LongTable

import logging
logger = logging.getLogger('mcmctidy')


def run_starts(table: LongTable) -> np.ndarray:
    """
    Row offsets where a new (parameter, chain) run begins.

    A run is a maximal block of consecutive rows sharing parameter and chain.
    """
    n = len(table)
    if n == 0:
        return np.empty(0, dtype=np.intp)
    changed = np.empty(n, dtype=bool)
    changed[0] = True
    changed[1:] = ((table.parameter_codes[1:] != table.parameter_codes[:-1])
                   | (table.chain[1:] != table.chain[:-1]))
    return np.flatnonzero(changed)


def thin(long_table: LongTable, every: int) -> LongTable:
    """
    Keep rows 1, 1+every, 1+2*every, ... of every (parameter, chain) run.

    A run of N rows keeps ceil(N / every) rows; when every >= N only the
    first row survives.

    Args:
        long_table: Table whose (parameter, chain) runs are contiguous and in
            iteration order, as produced by to_long
        every: Positive thinning step

    Returns:
        New LongTable holding the retained rows

    Raises:
        InvalidThinningFactor: If every is not a positive integer
    """
    every = validate_thin_factor(every)
    if every == 1 or len(long_table) == 0:
        return long_table

    starts = run_starts(long_table)
    run_id = np.repeat(np.arange(len(starts)), np.diff(np.append(starts, len(long_table))))
    position = np.arange(len(long_table)) - starts[run_id]

    keep = np.flatnonzero(position % every == 0)
    logger.debug(f"thin(every={every}): kept {keep.size} of {len(long_table)} rows "
                 f"across {len(starts)} runs")
    return long_table.take(keep)
