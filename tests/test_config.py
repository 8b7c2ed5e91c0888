"""
Configuration and Pipeline Tests

Tests the config dict and the end-to-end run_tidy pipeline:
- clean_config: defaults
- validate_tidy_config: typed errors and collected ValueError
- run_tidy: burn-in, parameter filter, thinning, summary

Run with: pytest tests/test_config.py -v
"""

import numpy as np
import pytest

from mcmctidy import (
    InvalidConfidenceLevel,
    InvalidThinningFactor,
    SampleCollection,
    clean_config,
    run_tidy,
    summarize,
    thin,
    to_long,
    validate_tidy_config,
)

from .conftest import make_history


# ============================================================================
# clean_config / validate_tidy_config
# ============================================================================

class TestCleanConfig:
    """Test default filling."""

    def test_defaults(self):
        config = clean_config()
        assert config == {
            'conf_level': 0.95,
            'per_chain': False,
            'parameters': None,
            'burn_in': 0,
            'thin': 1,
            'backend': 'numpy',
        }

    def test_keeps_user_values_and_copies(self):
        user = {'conf_level': 0.8, 'thin': 5}
        config = clean_config(user)

        assert config['conf_level'] == 0.8
        assert config['thin'] == 5
        assert 'burn_in' not in user


class TestValidateConfig:
    """Test configuration validation."""

    def test_valid(self):
        validate_tidy_config(clean_config({'parameters': ['a'], 'backend': 'jax'}))

    @pytest.mark.parametrize("conf_level", [0, 1, 1.2, -0.1])
    def test_conf_level(self, conf_level):
        with pytest.raises(InvalidConfidenceLevel):
            validate_tidy_config(clean_config({'conf_level': conf_level}))

    @pytest.mark.parametrize("every", [0, -3, 2.5])
    def test_thin(self, every):
        with pytest.raises(InvalidThinningFactor):
            validate_tidy_config(clean_config({'thin': every}))

    def test_collects_other_errors(self):
        config = clean_config({
            'per_chain': 'yes',
            'burn_in': -1,
            'backend': 'gpu',
            'parameters': [1, 2],
            'bogus': True,
        })

        with pytest.raises(ValueError) as excinfo:
            validate_tidy_config(config)

        message = str(excinfo.value)
        assert "per_chain" in message
        assert "burn_in" in message
        assert "backend" in message
        assert "parameters" in message
        assert "bogus" in message


# ============================================================================
# run_tidy
# ============================================================================

class TestRunTidy:
    """Test the end-to-end pipeline."""

    def test_defaults_match_stages(self, three_chain_collection):
        result = run_tidy(three_chain_collection)

        assert len(result['long']) == 60
        expected = summarize(three_chain_collection)
        np.testing.assert_allclose(result['summary'].stats, expected.stats)
        assert result['config']['conf_level'] == 0.95

    def test_full_config(self):
        history = make_history(n_iter=100, n_chains=4, n_params=3, seed=3)
        config = {
            'conf_level': 0.8,
            'per_chain': True,
            'parameters': ['param_3', 'param_1'],
            'burn_in': 20,
            'thin': 4,
        }

        result = run_tidy(history, config)

        collection = result['collection']
        assert collection.parameter_names == ('param_3', 'param_1')
        assert collection.n_iterations == 80

        # 80 iterations thinned by 4 -> 20 per (parameter, chain)
        assert len(result['long']) == 2 * 4 * 20

        summary = result['summary']
        assert summary.parameter == ('param_3',) * 4 + ('param_1',) * 4
        assert summary.interval_labels == ('10%', '90%')

        kept = history[20::4, 0, 2]
        assert summary.mean[0] == pytest.approx(np.mean(kept))

    def test_matches_manual_pipeline(self):
        collection = SampleCollection.from_history(make_history(30, 2, 2, seed=11))
        manual = summarize(thin(to_long(collection.discard_burnin(5)), 3), conf_level=0.9)

        result = run_tidy(collection, {'burn_in': 5, 'thin': 3, 'conf_level': 0.9})

        np.testing.assert_allclose(result['summary'].stats, manual.stats)

    def test_numpy_integer_burn_in_and_thin(self):
        collection = SampleCollection.from_history(make_history(30, 2, 2, seed=11))
        result = run_tidy(collection, {'burn_in': np.int64(5), 'thin': np.int64(3)})

        assert result['collection'].n_iterations == 25
        # 25 iterations thinned by 3 -> 9 per (parameter, chain)
        assert len(result['long']) == 2 * 2 * 9

    def test_chain_list_source(self):
        chains = [np.arange(10.0).reshape(5, 2), np.arange(10.0, 20.0).reshape(5, 2)]
        result = run_tidy(chains)
        assert result['summary'].parameter == ('param_1', 'param_2')

    def test_invalid_config_fails_before_work(self):
        with pytest.raises(InvalidThinningFactor):
            run_tidy(object(), {'thin': 0})
