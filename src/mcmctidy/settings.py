"""
Summary statistic layout.

This module defines the canonical ordering of summary statistics and the
helpers that turn a confidence level into quantile probabilities and labels.

Statistics are computed into a float64 array of shape (n_groups, N_STATS).
Every kernel in stats_kernels writes its columns in StatSlot order, and the
SummaryTable reads them back by position.

To add a new statistic:
1. Add it to StatSlot
2. Compute it in both kernels in stats_kernels.py
3. Expose the column on SummaryTable
"""

from enum import IntEnum

import numpy as np


class StatSlot(IntEnum):
    """
    Canonical column indices for the summary statistics matrix.

    IntEnum values index numpy columns directly - no lookup at runtime.
    """
    MEAN = 0     # Arithmetic mean of the group's draws
    SD = 1       # Sample standard deviation (N-1 denominator)
    LOWER = 2    # (1 - conf_level) / 2 quantile
    MEDIAN = 3   # 0.5 quantile
    UPPER = 4    # 1 - (1 - conf_level) / 2 quantile


# Total number of statistics (determines matrix width)
N_STATS = len(StatSlot)

DEFAULT_CONF_LEVEL = 0.95

# Linear interpolation between order statistics ("type 7")
QUANTILE_METHOD = 'linear'


def interval_probs(conf_level):
    """
    Quantile probabilities for (lower, median, upper) at a confidence level.

    Args:
        conf_level: Interval mass, already validated to lie in (0, 1)

    Returns:
        float64 array [alpha/2, 0.5, 1 - alpha/2]
    """
    tail = (1.0 - conf_level) / 2.0
    return np.array([tail, 0.5, 1.0 - tail], dtype=np.float64)


def quantile_label(prob):
    """
    Percent label for a quantile probability, e.g. 0.025 -> '2.5%'.

    Seven significant digits absorbs the float noise of 100 * prob.
    """
    return f"{100.0 * prob:.7g}%"
