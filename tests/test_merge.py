"""
Tests for the (symbol, week) merge of pricing features and attention.
"""
import pandas as pd
import pytest

from attention_liquidity.errors import DataQualityError, MergeMismatchError
from attention_liquidity.pipeline.merge_weekly_panel import merge_weekly_panel


def _weekly(rows):
    return pd.DataFrame(rows, columns=['id', 'symbol', 'week', 'vol_1w'])


def _attention(rows):
    return pd.DataFrame(rows, columns=['symbol', 'week', 'interest_index', 'noisy'])


class TestMergeWeeklyPanel:
    """Tests for merge_weekly_panel."""

    def test_strict_inner_join(self):
        weekly = _weekly([(2, 'B', 1, 0.1), (1, 'A', 1, 0.2), (1, 'A', 2, 0.3)])
        attention = _attention([('A', 1, 10.0, 0), ('A', 3, 11.0, 1), ('B', 1, 12.0, 1)])

        merged = merge_weekly_panel(weekly, attention)

        assert len(merged) == 2
        assert merged[['id', 'week']].values.tolist() == [[1, 1], [2, 1]]
        assert merged['interest_index'].tolist() == [10.0, 12.0]
        assert merged['noisy'].tolist() == [0, 1]

    def test_no_overlap_raises_with_counts(self):
        weekly = _weekly([(1, 'A', 1, 0.1)])
        attention = _attention([('A', 500, 10.0, 0)])

        with pytest.raises(MergeMismatchError, match="same epoch") as exc_info:
            merge_weekly_panel(weekly, attention)

        assert exc_info.value.n_pricing == 1
        assert exc_info.value.n_attention == 1
        assert exc_info.value.n_merged == 0

    def test_min_rows(self):
        weekly = _weekly([(1, 'A', 1, 0.1), (1, 'A', 2, 0.2)])
        attention = _attention([('A', 1, 10.0, 0), ('A', 2, 10.0, 0)])

        with pytest.raises(MergeMismatchError):
            merge_weekly_panel(weekly, attention, min_rows=3)

    def test_duplicate_attention_keys(self):
        weekly = _weekly([(1, 'A', 1, 0.1)])
        attention = _attention([('A', 1, 10.0, 0), ('A', 1, 11.0, 0)])

        with pytest.raises(DataQualityError, match="attention panel"):
            merge_weekly_panel(weekly, attention)

    def test_duplicate_pricing_keys(self):
        weekly = _weekly([(1, 'A', 1, 0.1), (2, 'A', 1, 0.2)])
        attention = _attention([('A', 1, 10.0, 0)])

        with pytest.raises(DataQualityError, match="weekly pricing panel"):
            merge_weekly_panel(weekly, attention)
