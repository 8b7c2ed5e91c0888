"""
SampleCollection Adapter

This module normalizes multi-chain sampler output into one canonical shape:
a dense float64 cube of draws shaped (n_iterations, n_chains, n_params) - the
same layout samplers use for their history arrays - plus an ordered tuple of
parameter names.

Supported inputs:
- from_chains: one 2-D block (iterations x parameters) per chain
- from_history: a history cube (n_iterations, n_chains, n_params)
- from_source: any object implementing the SampleSource protocol
- from_long: an already-long LongTable with complete, equal-sized groups

Only structural validation and column pruning happen here; values are never
transformed.

Example:
    from mcmctidy import SampleCollection, to_long

    collection = SampleCollection.from_chains([chain1, chain2], ['mu', 'sigma'])
    long_table = to_long(collection)
"""

from dataclasses import dataclass
from typing import Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from .error_handling import ShapeMismatch, resolve_parameters
from .types import LongTable

import logging
logger = logging.getLogger('mcmctidy')


@runtime_checkable
class SampleSource(Protocol):
    """
    Minimal capability set a sampler output must expose.

    Chains and iterations are 1-based, matching the long table.
    """

    @property
    def n_chains(self) -> int: ...

    @property
    def parameter_names(self) -> Sequence[str]: ...

    def iteration_count(self, chain: int) -> int: ...

    def value(self, chain: int, iteration: int, parameter: str) -> float: ...


def default_parameter_names(n_params):
    """Names used when a source carries none: param_1 ... param_P."""
    return tuple(f"param_{j + 1}" for j in range(n_params))


def _check_names(names, n_params):
    names = tuple(str(name) for name in names)
    if len(names) != n_params:
        raise ShapeMismatch(
            f"Got {len(names)} parameter names for {n_params} parameter columns"
        )
    if len(set(names)) != len(names):
        dupes = sorted({name for name in names if names.count(name) > 1})
        raise ShapeMismatch(f"Parameter names must be unique, duplicated: {dupes}")
    return names


@dataclass(frozen=True, eq=False)
class SampleCollection:
    """
    Canonical multi-chain sample collection.

    Fields:
        draws: (n_iterations, n_chains, n_params) float64, read-only
        parameter_names: Ordered, unique parameter names

    The draws array is a read-only view; when the caller's array is already
    float64 no copy is made.
    """
    draws: np.ndarray
    parameter_names: Tuple[str, ...]

    def __post_init__(self):
        draws = np.asarray(self.draws, dtype=np.float64)
        if draws.ndim != 3:
            raise ShapeMismatch(
                f"draws must be 3-D (n_iterations, n_chains, n_params), got shape {draws.shape}"
            )
        n_iterations, n_chains, n_params = draws.shape
        if n_iterations < 1 or n_chains < 1 or n_params < 1:
            raise ShapeMismatch(
                f"Need at least one iteration, chain and parameter, got shape {draws.shape}"
            )

        draws = draws.view()
        draws.setflags(write=False)
        object.__setattr__(self, 'draws', draws)
        object.__setattr__(self, 'parameter_names', _check_names(self.parameter_names, n_params))

    @property
    def n_iterations(self) -> int:
        return self.draws.shape[0]

    @property
    def n_chains(self) -> int:
        return self.draws.shape[1]

    @property
    def n_params(self) -> int:
        return self.draws.shape[2]

    def __len__(self):
        """Number of draws across all chains and parameters."""
        return self.draws.size

    def iteration_count(self, chain: int) -> int:
        self._check_chain(chain)
        return self.n_iterations

    def value(self, chain: int, iteration: int, parameter: str) -> float:
        """Single draw by 1-based chain and iteration (SampleSource protocol)."""
        self._check_chain(chain)
        if not 1 <= iteration <= self.n_iterations:
            raise IndexError(f"iteration {iteration} out of range 1..{self.n_iterations}")
        j, = self.parameter_indices([parameter])
        return float(self.draws[iteration - 1, chain - 1, j])

    def _check_chain(self, chain):
        if not 1 <= chain <= self.n_chains:
            raise IndexError(f"chain {chain} out of range 1..{self.n_chains}")

    def parameter_indices(self, parameters=None):
        """
        Column indices for a parameter filter, in the caller's order.

        Raises:
            UnknownParameter: If a requested name is not in the collection
        """
        names = resolve_parameters(parameters, self.parameter_names)
        return [self.parameter_names.index(name) for name in names]

    def select(self, parameters) -> 'SampleCollection':
        """
        Keep only the requested parameters, in the caller's order.

        Raises:
            UnknownParameter: If a requested name is not in the collection
        """
        idx = self.parameter_indices(parameters)
        if idx == list(range(self.n_params)):
            return self
        return SampleCollection(self.draws[:, :, idx], tuple(self.parameter_names[j] for j in idx))

    def discard_burnin(self, n_burnin: int) -> 'SampleCollection':
        """
        Drop the first n_burnin iterations of every chain.

        The returned collection is a view; iterations are renumbered from 1
        when reshaped.

        Raises:
            ValueError: If n_burnin is negative
            ShapeMismatch: If no iterations would remain
        """
        if n_burnin < 0:
            raise ValueError(f"n_burnin must be >= 0, got {n_burnin}")
        if n_burnin == 0:
            return self
        if n_burnin >= self.n_iterations:
            raise ShapeMismatch(
                f"Burn-in of {n_burnin} leaves no draws (chains have {self.n_iterations} iterations)"
            )
        logger.debug(f"Burn-in: dropped {n_burnin} of {self.n_iterations} iterations per chain")
        return SampleCollection(self.draws[n_burnin:], self.parameter_names)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_history(cls, history, parameter_names=None) -> 'SampleCollection':
        """
        Wrap a history cube shaped (n_iterations, n_chains, n_params).

        Args:
            history: Array-like of draws
            parameter_names: Ordered names (default param_1 ... param_P)
        """
        history = np.asarray(history, dtype=np.float64)
        if history.ndim != 3:
            raise ShapeMismatch(
                f"history must be 3-D (n_iterations, n_chains, n_params), got shape {history.shape}"
            )
        if parameter_names is None:
            parameter_names = default_parameter_names(history.shape[2])
        return cls(history, tuple(parameter_names))

    @classmethod
    def from_chains(cls, chains, parameter_names=None) -> 'SampleCollection':
        """
        Stack per-chain matrices (iterations x parameters) into a collection.

        Each chain may be a numpy array, a nested list, or a pandas DataFrame
        (its columns name the parameters). A 1-D chain is one parameter.

        Args:
            chains: Sequence of per-chain 2-D blocks, in chain order
            parameter_names: Ordered names; when omitted, names are taken from
                DataFrame columns or default to param_1 ... param_P. With
                DataFrame chains the columns are reordered to match.

        Raises:
            ShapeMismatch: If chains differ in iteration count, parameter
                count, or column names, or if parameter_names is not a
                permutation of the DataFrame columns
        """
        chains = list(chains)
        if not chains:
            raise ShapeMismatch("Need at least one chain")

        blocks = []
        chain_columns = []
        for i, chain in enumerate(chains):
            columns = getattr(chain, 'columns', None)
            chain_columns.append(None if columns is None else tuple(str(c) for c in columns))

            block = np.asarray(chain, dtype=np.float64)
            if block.ndim == 1:
                block = block[:, np.newaxis]
            if block.ndim != 2:
                raise ShapeMismatch(f"Chain {i + 1} must be 2-D (iterations x parameters), got shape {block.shape}")
            blocks.append(block)

        n_iterations = {b.shape[0] for b in blocks}
        if len(n_iterations) > 1:
            counts = [b.shape[0] for b in blocks]
            raise ShapeMismatch(f"Chains disagree on iteration count: {counts}")

        n_params = {b.shape[1] for b in blocks}
        if len(n_params) > 1:
            counts = [b.shape[1] for b in blocks]
            raise ShapeMismatch(f"Chains disagree on parameter count: {counts}")

        named = [c for c in chain_columns if c is not None]
        if named:
            if any(c != named[0] for c in named):
                raise ShapeMismatch(f"Chains disagree on parameter names: {named}")
            if parameter_names is None:
                parameter_names = named[0]
            else:
                # Labelled columns are matched by name, not position
                parameter_names = tuple(str(name) for name in parameter_names)
                if sorted(parameter_names) != sorted(named[0]):
                    raise ShapeMismatch(
                        f"parameter_names {list(parameter_names)} do not match "
                        f"chain columns {list(named[0])}"
                    )
                perm = [named[0].index(name) for name in parameter_names]
                blocks = [block if columns is None else block[:, perm]
                          for block, columns in zip(blocks, chain_columns)]
        if parameter_names is None:
            parameter_names = default_parameter_names(blocks[0].shape[1])

        # (n_chains, n_iter, n_params) -> history layout (n_iter, n_chains, n_params)
        return cls(np.stack(blocks, axis=1), tuple(parameter_names))

    @classmethod
    def from_source(cls, source: SampleSource) -> 'SampleCollection':
        """
        Read every draw from a SampleSource.

        Raises:
            ShapeMismatch: If chains report different iteration counts
        """
        n_chains = int(source.n_chains)
        names = _check_names(source.parameter_names, len(source.parameter_names))
        if n_chains < 1:
            raise ShapeMismatch(f"Need at least one chain, source reports {n_chains}")

        counts = [int(source.iteration_count(c)) for c in range(1, n_chains + 1)]
        if len(set(counts)) > 1:
            raise ShapeMismatch(f"Chains disagree on iteration count: {counts}")

        n_iterations = counts[0]
        draws = np.empty((n_iterations, n_chains, len(names)), dtype=np.float64)
        for c in range(n_chains):
            for j, name in enumerate(names):
                for t in range(n_iterations):
                    draws[t, c, j] = source.value(c + 1, t + 1, name)
        return cls(draws, names)

    @classmethod
    def from_long(cls, table: LongTable) -> 'SampleCollection':
        """
        Rebuild the dense collection from a long table.

        Every parameter must have the same set of chains and every
        (parameter, chain) group the same number of rows. Draws are placed in
        iteration order; chains are renumbered 1..C in ascending order of
        their labels.

        Raises:
            ShapeMismatch: If groups are missing or unequal in size
        """
        if len(table) == 0:
            raise ShapeMismatch("Cannot build a collection from an empty table")

        names = table.present_parameters()
        code_of = {name: i for i, name in enumerate(table.parameter_names)}
        rank = np.empty(len(table.parameter_names), dtype=np.intp)
        for pos, name in enumerate(names):
            rank[code_of[name]] = pos
        param_rank = rank[table.parameter_codes]

        chain_labels, chain_rank = np.unique(table.chain, return_inverse=True)
        n_params, n_chains = len(names), len(chain_labels)

        group = param_rank * n_chains + chain_rank
        sizes = np.bincount(group, minlength=n_params * n_chains)
        if np.any(sizes != sizes[0]) or sizes[0] == 0:
            grid = sizes.reshape(n_params, n_chains)
            raise ShapeMismatch(
                f"Long table groups are uneven (rows per parameter x chain):\n{grid}"
            )

        # Sort by (parameter, chain, iteration)
        order = np.lexsort((table.iteration, chain_rank, param_rank))
        if np.any(np.diff(table.iteration[order].reshape(-1, sizes[0]), axis=1) == 0):
            raise ShapeMismatch("Long table has duplicate iterations within a (parameter, chain) group")

        cube = table.value[order].reshape(n_params, n_chains, sizes[0])
        return cls(np.ascontiguousarray(cube.transpose(2, 1, 0)), tuple(names))


def as_collection(source, parameters=None) -> SampleCollection:
    """
    Coerce any supported input into a SampleCollection.

    Accepts a SampleCollection, a LongTable, a SampleSource, a 3-D history
    array, or a sequence of per-chain 2-D blocks. An optional parameter
    filter is applied last.

    Raises:
        UnknownParameter: If a requested parameter is not present
    """
    if isinstance(source, SampleCollection):
        collection = source
    elif isinstance(source, LongTable):
        collection = SampleCollection.from_long(source)
    elif isinstance(source, SampleSource):
        collection = SampleCollection.from_source(source)
    elif isinstance(source, np.ndarray) and source.ndim == 3:
        collection = SampleCollection.from_history(source)
    else:
        collection = SampleCollection.from_chains(source)

    if parameters is not None:
        collection = collection.select(parameters)
    return collection
