"""
Tidy Reshaper Tests

Tests to_long and the LongTable it returns:
- row count and ordering (parameter, chain, iteration)
- parameter filtering
- determinism
- LongTable helpers: records, select, from_records, to_dataframe

Run with: pytest tests/test_reshape.py -v
"""

import numpy as np
import pytest

from mcmctidy import LongRecord, LongTable, SampleCollection, UnknownParameter, to_long

from .conftest import make_history


# ============================================================================
# to_long
# ============================================================================

class TestToLong:
    """Test flattening a collection into a long table."""

    def test_length_three_chains(self, three_chain_collection):
        """3 chains x 10 iterations x 2 parameters -> 60 rows."""
        assert len(to_long(three_chain_collection)) == 60

    def test_length_one_parameter(self, three_chain_collection):
        assert len(to_long(three_chain_collection, parameters=['beta'])) == 20

    @pytest.mark.parametrize("shape", [(1, 1, 1), (7, 4, 3), (50, 2, 5)])
    def test_length_is_product(self, shape):
        collection = SampleCollection.from_history(make_history(*shape))
        assert len(to_long(collection)) == shape[0] * shape[1] * shape[2]

    def test_row_labels_match_values(self, counting_collection):
        """Every value must sit on the row labelled with its own position."""
        table = to_long(counting_collection)
        code = table.parameter_codes + 1

        np.testing.assert_array_equal(
            table.value, 100 * code + 10 * table.chain + table.iteration
        )

    def test_ordering(self, counting_collection):
        table = to_long(counting_collection)
        first = list(table)[:7]

        assert first[0] == LongRecord(1, 1, 'a', 111.0)
        assert first[4] == LongRecord(5, 1, 'a', 115.0)
        assert first[5] == LongRecord(1, 2, 'a', 121.0)
        assert list(table)[10] == LongRecord(1, 1, 'b', 211.0)

    def test_groups_are_contiguous_runs_of_iterations(self, three_chain_collection):
        table = to_long(three_chain_collection)
        n_iter = three_chain_collection.n_iterations

        for start in range(0, len(table), n_iter):
            block = slice(start, start + n_iter)
            np.testing.assert_array_equal(table.iteration[block], np.arange(1, n_iter + 1))
            assert len(set(table.chain[block].tolist())) == 1
            assert len(set(table.parameter_codes[block].tolist())) == 1

    def test_filter_keeps_caller_order(self, counting_collection):
        table = to_long(counting_collection, parameters=['c', 'a'])

        assert table.parameter_names == ('c', 'a')
        assert table.parameter[0] == 'c'
        assert table.parameter[-1] == 'a'
        assert table.value[0] == 311.0

    def test_unknown_parameter(self, counting_collection):
        with pytest.raises(UnknownParameter):
            to_long(counting_collection, parameters=['nope'])

    def test_deterministic(self, three_chain_collection):
        first = to_long(three_chain_collection)
        second = to_long(three_chain_collection)

        for column in ('iteration', 'chain', 'parameter_codes', 'value'):
            assert getattr(first, column).tobytes() == getattr(second, column).tobytes()
        assert first.parameter_names == second.parameter_names

    def test_columns_are_read_only(self, three_chain_collection):
        table = to_long(three_chain_collection)
        with pytest.raises(ValueError):
            table.value[0] = 0.0

    def test_does_not_mutate_collection(self, three_chain_collection):
        before = three_chain_collection.draws.copy()
        to_long(three_chain_collection, parameters=['beta'])
        np.testing.assert_array_equal(three_chain_collection.draws, before)


# ============================================================================
# LongTable helpers
# ============================================================================

class TestLongTable:
    """Test LongTable construction and conversion."""

    def test_from_records_accepts_mixed_rows(self):
        table = LongTable.from_records([
            LongRecord(1, 1, 'mu', 0.5),
            (2, 1, 'mu', 0.7),
            {'iteration': 1, 'chain': 1, 'parameter': 'sigma', 'value': 1.5},
        ])

        assert len(table) == 3
        assert table.parameter_names == ('mu', 'sigma')
        assert list(table)[2] == LongRecord(1, 1, 'sigma', 1.5)

    def test_from_records_rejects_zero_chain(self):
        with pytest.raises(ValueError):
            LongTable.from_records([(1, 0, 'mu', 0.5)])

    def test_column_length_mismatch(self):
        with pytest.raises(ValueError):
            LongTable(
                iteration=[1, 2], chain=[1], parameter_codes=[0, 0],
                parameter_names=('a',), value=[0.0, 1.0],
            )

    def test_select_regroups(self, counting_collection):
        table = to_long(counting_collection).select(['b'])

        assert table.parameter_names == ('b',)
        assert len(table) == 10
        assert np.all(table.value // 100 == 2)

    def test_present_parameters_first_appearance(self):
        table = LongTable.from_records([
            (1, 1, 'z', 0.0), (1, 1, 'a', 0.0), (2, 1, 'z', 0.0),
        ])
        assert table.present_parameters() == ['z', 'a']

    def test_to_dict(self, counting_collection):
        columns = to_long(counting_collection).to_dict()
        assert list(columns) == ['iteration', 'chain', 'parameter', 'value']
        assert columns['parameter'][0] == 'a'

    def test_to_dataframe(self, counting_collection):
        df = to_long(counting_collection).to_dataframe()

        assert list(df.columns) == ['iteration', 'chain', 'parameter', 'value']
        assert len(df) == 30
        assert list(df['parameter'].cat.categories) == ['a', 'b', 'c']
        assert df.iloc[5].tolist() == [1, 2, 'a', 121.0]
