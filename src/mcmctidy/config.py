"""
Tidy Pipeline Configuration.

Configuration is a plain dict with lowercase, underscore-separated keys:

    conf_level  Credible-interval mass for lower/upper (default 0.95)
    per_chain   Summarize each chain separately (default False)
    parameters  Ordered parameter subset, or None for all (default None)
    burn_in     Iterations dropped from the start of each chain (default 0)
    thin        Keep every thin-th draw per (parameter, chain) (default 1)
    backend     Summary kernel, 'numpy' or 'jax' (default 'numpy')
"""

import numbers
from typing import Any, Dict

from .error_handling import validate_conf_level, validate_thin_factor
from .settings import DEFAULT_CONF_LEVEL
from .summary import BACKENDS

CONFIG_KEYS = ('conf_level', 'per_chain', 'parameters', 'burn_in', 'thin', 'backend')


def clean_config(tidy_config=None) -> Dict[str, Any]:
    """
    Return a copy of the config with defaults filled in.
    All config keys use lowercase with underscores.
    """
    tidy_config = dict(tidy_config or {})

    tidy_config.setdefault('conf_level', DEFAULT_CONF_LEVEL)
    tidy_config.setdefault('per_chain', False)
    tidy_config.setdefault('parameters', None)
    tidy_config.setdefault('burn_in', 0)
    tidy_config.setdefault('thin', 1)
    tidy_config.setdefault('backend', 'numpy')

    return tidy_config


def validate_tidy_config(tidy_config: Dict[str, Any]) -> None:
    """
    Validates that a (cleaned) tidy configuration is sensible.

    The confidence level and thinning factor raise their own error types;
    every other problem is collected into one ValueError.

    Raises:
        InvalidConfidenceLevel: If conf_level is outside (0, 1)
        InvalidThinningFactor: If thin is not a positive integer
        ValueError: If any other setting is invalid
    """
    validate_conf_level(tidy_config['conf_level'])
    validate_thin_factor(tidy_config['thin'])

    errors = []

    unknown = sorted(set(tidy_config) - set(CONFIG_KEYS))
    if unknown:
        errors.append(f"Unknown config key(s): {unknown}")

    if not isinstance(tidy_config['per_chain'], bool):
        errors.append(f"per_chain must be True or False, got {tidy_config['per_chain']!r}")

    burn_in = tidy_config['burn_in']
    if isinstance(burn_in, bool) or not isinstance(burn_in, numbers.Integral) or burn_in < 0:
        errors.append(f"burn_in must be an integer >= 0, got {burn_in!r}")

    if tidy_config['backend'] not in BACKENDS:
        errors.append(f"backend must be one of {list(BACKENDS)}, got {tidy_config['backend']!r}")

    parameters = tidy_config['parameters']
    if parameters is not None and not isinstance(parameters, str):
        if not all(isinstance(p, str) for p in parameters):
            errors.append("parameters must be a list of parameter names")

    if errors:
        raise ValueError("Invalid tidy configuration:\n  " + "\n  ".join(errors))
