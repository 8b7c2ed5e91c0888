"""
Tidy Table Data Structures.

This module contains the in-memory tables produced by the pipeline:
- LongRecord / SummaryRecord: one row, as a NamedTuple
- LongTable: long-format draws (iteration, chain, parameter, value)
- SummaryTable: per-parameter (optionally per-chain) statistics

Both tables are stored column-wise as read-only numpy arrays so that a table
with millions of draws costs four arrays rather than millions of objects.
Parameters are stored as integer codes into an ordered tuple of names.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional, Tuple

import numpy as np

from .error_handling import resolve_parameters
from .settings import StatSlot, interval_probs, quantile_label


class LongRecord(NamedTuple):
    """One observed draw."""
    iteration: int
    chain: int
    parameter: str
    value: float


class SummaryRecord(NamedTuple):
    """One row of a summary table. chain is None for pooled summaries."""
    parameter: str
    chain: Optional[int]
    mean: float
    sd: float
    lower: float
    median: float
    upper: float


def _frozen(array, dtype):
    """Return a read-only array of dtype, viewing the input when possible."""
    out = np.asarray(array, dtype=dtype).view()
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class LongTable:
    """
    Long-format table of MCMC draws.

    Rows produced by to_long are ordered by parameter, then chain, then
    iteration, so every (parameter, chain) run is contiguous and in
    iteration order. thin() relies on this.

    Fields:
        iteration: (n,) int64, 1-based position within the chain
        chain: (n,) int64, 1-based chain number
        parameter_codes: (n,) intp, index into parameter_names
        parameter_names: Ordered parameter names referenced by the codes
        value: (n,) float64 draws
    """
    iteration: np.ndarray
    chain: np.ndarray
    parameter_codes: np.ndarray
    parameter_names: Tuple[str, ...]
    value: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'iteration', _frozen(self.iteration, np.int64))
        object.__setattr__(self, 'chain', _frozen(self.chain, np.int64))
        object.__setattr__(self, 'parameter_codes', _frozen(self.parameter_codes, np.intp))
        object.__setattr__(self, 'parameter_names', tuple(self.parameter_names))
        object.__setattr__(self, 'value', _frozen(self.value, np.float64))

        n = len(self.value)
        lengths = {len(self.iteration), len(self.chain), len(self.parameter_codes)}
        if lengths != {n}:
            raise ValueError(f"LongTable columns must have equal length, got {sorted(lengths | {n})}")
        if n and (self.parameter_codes.min() < 0
                  or self.parameter_codes.max() >= len(self.parameter_names)):
            raise ValueError("parameter_codes out of range for parameter_names")

    def __len__(self):
        return len(self.value)

    def __iter__(self) -> Iterator[LongRecord]:
        return self.records()

    @property
    def parameter(self) -> np.ndarray:
        """Parameter name for every row (object array)."""
        names = np.empty(len(self.parameter_names), dtype=object)
        names[:] = self.parameter_names
        return names[self.parameter_codes]

    def records(self) -> Iterator[LongRecord]:
        """Iterate rows as LongRecords."""
        names = self.parameter_names
        for it, ch, code, val in zip(self.iteration.tolist(), self.chain.tolist(),
                                     self.parameter_codes.tolist(), self.value.tolist()):
            yield LongRecord(it, ch, names[code], val)

    def take(self, indices) -> 'LongTable':
        """New table holding the rows at indices, in that order."""
        return LongTable(
            iteration=self.iteration[indices],
            chain=self.chain[indices],
            parameter_codes=self.parameter_codes[indices],
            parameter_names=self.parameter_names,
            value=self.value[indices],
        )

    def present_parameters(self):
        """Parameter names with at least one row, in order of first appearance."""
        codes, first = np.unique(self.parameter_codes, return_index=True)
        return [self.parameter_names[c] for c in codes[np.argsort(first)]]

    def select(self, parameters) -> 'LongTable':
        """
        Keep only the rows of the requested parameters.

        Rows are regrouped into the caller's parameter order; the relative
        order of rows within a parameter is preserved.

        Raises:
            UnknownParameter: If a name has no rows in this table
        """
        wanted = resolve_parameters(parameters, self.present_parameters())
        code_of = {name: i for i, name in enumerate(self.parameter_names)}

        # rank[code] = position in the request, -1 for dropped parameters
        rank = np.full(len(self.parameter_names), -1, dtype=np.intp)
        for pos, name in enumerate(wanted):
            rank[code_of[name]] = pos

        row_rank = rank[self.parameter_codes]
        keep = np.flatnonzero(row_rank >= 0)
        order = keep[np.argsort(row_rank[keep], kind='stable')]

        new_codes = row_rank[order]
        return LongTable(
            iteration=self.iteration[order],
            chain=self.chain[order],
            parameter_codes=new_codes,
            parameter_names=tuple(wanted),
            value=self.value[order],
        )

    def to_dict(self):
        """Columns as a dict of numpy arrays, keyed by LongRecord field."""
        return {
            'iteration': self.iteration,
            'chain': self.chain,
            'parameter': self.parameter,
            'value': self.value,
        }

    def to_dataframe(self):
        """Convert to a pandas DataFrame with a categorical parameter column."""
        import pandas as pd

        parameter = pd.Categorical.from_codes(
            self.parameter_codes, categories=list(self.parameter_names)
        )
        return pd.DataFrame({
            'iteration': self.iteration,
            'chain': self.chain,
            'parameter': parameter,
            'value': self.value,
        })

    @classmethod
    def from_records(cls, records) -> 'LongTable':
        """
        Build a table from LongRecords, (iteration, chain, parameter, value)
        tuples, or mappings with those keys.

        Rows keep their given order. Parameter codes follow order of first
        appearance. Groups may be uneven; summarize() accepts such tables.

        Raises:
            ValueError: If an iteration or chain number is < 1
        """
        iterations, chains, codes, values = [], [], [], []
        code_of = {}
        for rec in records:
            if isinstance(rec, Mapping):
                rec = LongRecord(**rec)
            it, ch, name, val = rec
            if name not in code_of:
                code_of[name] = len(code_of)
            iterations.append(it)
            chains.append(ch)
            codes.append(code_of[name])
            values.append(val)

        table = cls(
            iteration=np.array(iterations, dtype=np.int64),
            chain=np.array(chains, dtype=np.int64),
            parameter_codes=np.array(codes, dtype=np.intp),
            parameter_names=tuple(code_of),
            value=np.array(values, dtype=np.float64),
        )
        if len(table) and (table.iteration.min() < 1 or table.chain.min() < 1):
            raise ValueError("iteration and chain numbers must be >= 1")
        return table


@dataclass(frozen=True, eq=False)
class SummaryTable:
    """
    Per-parameter (optionally per-chain) posterior summary.

    Statistics live in one (n_rows, N_STATS) float64 matrix whose columns
    follow StatSlot; the named properties are read-only column views.

    Fields:
        parameter: Parameter name per row
        chain: (n_rows,) int64 chain numbers, or None for pooled summaries
        stats: (n_rows, N_STATS) statistics matrix
        conf_level: Credible-interval mass used for lower/upper
    """
    parameter: Tuple[str, ...]
    chain: Optional[np.ndarray]
    stats: np.ndarray
    conf_level: float

    def __post_init__(self):
        object.__setattr__(self, 'parameter', tuple(self.parameter))
        if self.chain is not None:
            object.__setattr__(self, 'chain', _frozen(self.chain, np.int64))
        object.__setattr__(self, 'stats', _frozen(self.stats, np.float64))

    def __len__(self):
        return len(self.parameter)

    def __iter__(self) -> Iterator[SummaryRecord]:
        return self.records()

    @property
    def per_chain(self) -> bool:
        return self.chain is not None

    @property
    def mean(self):
        return self.stats[:, StatSlot.MEAN]

    @property
    def sd(self):
        return self.stats[:, StatSlot.SD]

    @property
    def lower(self):
        return self.stats[:, StatSlot.LOWER]

    @property
    def median(self):
        return self.stats[:, StatSlot.MEDIAN]

    @property
    def upper(self):
        return self.stats[:, StatSlot.UPPER]

    @property
    def interval_labels(self) -> Tuple[str, str]:
        """Presentation labels for (lower, upper), e.g. ('2.5%', '97.5%')."""
        low, _, high = interval_probs(self.conf_level)
        return quantile_label(low), quantile_label(high)

    def records(self) -> Iterator[SummaryRecord]:
        """Iterate rows as SummaryRecords."""
        chains = self.chain.tolist() if self.chain is not None else [None] * len(self)
        for name, ch, row in zip(self.parameter, chains, self.stats.tolist()):
            yield SummaryRecord(name, ch, *row)

    def to_dataframe(self, label_intervals=True):
        """
        Convert to a pandas DataFrame.

        Args:
            label_intervals: Name the interval columns by their quantile
                ('2.5%', '97.5%') instead of 'lower'/'upper'
        """
        import pandas as pd

        lower_name, upper_name = self.interval_labels if label_intervals else ('lower', 'upper')
        columns = {'parameter': list(self.parameter)}
        if self.chain is not None:
            columns['chain'] = self.chain
        columns['mean'] = self.mean
        columns['sd'] = self.sd
        columns[lower_name] = self.lower
        columns['median'] = self.median
        columns[upper_name] = self.upper
        return pd.DataFrame(columns)
