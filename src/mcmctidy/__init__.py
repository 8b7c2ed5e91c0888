"""
mcmctidy - Tidy MCMC Output

Public API:
    Collections:
        SampleCollection - Canonical (n_iterations, n_chains, n_params) draws
        SampleSource - Protocol any sampler output can implement
        as_collection - Coerce chains, history cubes, sources or long tables

    Tables:
        LongTable / LongRecord - Long-format draws (iteration, chain, parameter, value)
        SummaryTable / SummaryRecord - Per-parameter (optionally per-chain) summary

    Pipeline stages:
        to_long - Flatten a collection into a LongTable
        summarize - Mean, sd and credible-interval quantiles per group
        thin - Keep every k-th draw per (parameter, chain)
        run_tidy - Burn-in, reshape, thin and summarize from one config dict

    History files:
        load_history - Load a history .npz file
        combine_batch_histories - Concatenate batch history files

    Errors:
        TidyError, ShapeMismatch, UnknownParameter, InvalidConfidenceLevel,
        InsufficientSamples, InvalidThinningFactor, MissingValues

Example:
    from mcmctidy import SampleCollection, to_long, summarize, thin

    collection = SampleCollection.from_chains([chain1, chain2], ['mu', 'sigma'])
    long_table = to_long(collection)
    summary = summarize(collection, conf_level=0.9, chain=True)
    thinned = thin(long_table, every=10)
"""
# CRITICAL: Import jax_config FIRST to set environment variables before JAX loads
from . import jax_config  # noqa: F401

from .error_handling import (
    TidyError,
    ShapeMismatch,
    UnknownParameter,
    InvalidConfidenceLevel,
    InsufficientSamples,
    InvalidThinningFactor,
    MissingValues,
)
from .settings import StatSlot
from .types import LongRecord, LongTable, SummaryRecord, SummaryTable
from .collection import SampleCollection, SampleSource, as_collection
from .reshape import to_long
from .summary import summarize
from .thinning import thin
from .history_io import load_history, combine_batch_histories
from .config import clean_config, validate_tidy_config
from .pipeline import run_tidy
