"""
Pytest configuration and shared fixtures for mcmctidy tests.
"""

import pytest
import numpy as np

from mcmctidy import SampleCollection


@pytest.fixture
def rng_seed():
    """Default RNG seed for reproducible tests."""
    return 42


@pytest.fixture
def rng(rng_seed):
    return np.random.default_rng(rng_seed)


@pytest.fixture
def three_chain_collection(rng):
    """3 chains x 10 iterations x 2 parameters of standard normal draws."""
    history = rng.standard_normal((10, 3, 2))
    return SampleCollection.from_history(history, ['alpha', 'beta'])


@pytest.fixture
def shifted_chains():
    """
    Two chains of one parameter with well separated means.

    Pooled median is 6.5; the average of the chain medians (1.5, 25) is 13.25.
    """
    chain1 = np.array([[0.0], [1.0], [2.0], [3.0]])
    chain2 = np.array([[10.0], [20.0], [30.0], [40.0]])
    return SampleCollection.from_chains([chain1, chain2], ['theta'])


@pytest.fixture
def counting_collection():
    """
    Draws encode their own position: value = 100 * param + 10 * chain + iteration
    (all 1-based), so any row can be checked against its labels.
    """
    n_iter, n_chains, n_params = 5, 2, 3
    t = np.arange(1, n_iter + 1)[:, None, None]
    c = np.arange(1, n_chains + 1)[None, :, None]
    p = np.arange(1, n_params + 1)[None, None, :]
    history = (100 * p + 10 * c + t).astype(np.float64)
    return SampleCollection.from_history(history, ['a', 'b', 'c'])


def make_history(n_iter=10, n_chains=3, n_params=2, seed=0):
    """Random history cube (n_iter, n_chains, n_params)."""
    return np.random.default_rng(seed).standard_normal((n_iter, n_chains, n_params))


class DictSource:
    """Minimal SampleSource backed by {(chain, parameter): list of draws}."""

    def __init__(self, draws, parameter_names, n_chains):
        self._draws = draws
        self._names = list(parameter_names)
        self._n_chains = n_chains

    @property
    def n_chains(self):
        return self._n_chains

    @property
    def parameter_names(self):
        return self._names

    def iteration_count(self, chain):
        return len(self._draws[(chain, self._names[0])])

    def value(self, chain, iteration, parameter):
        return self._draws[(chain, parameter)][iteration - 1]
