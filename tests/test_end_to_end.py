"""
End-to-end: daily pricing + attention -> weekly panel -> model batch.
"""
import numpy as np
import pandas as pd
import pytest

from attention_liquidity.config import PipelineConfig
from attention_liquidity.errors import MergeMismatchError
from attention_liquidity.pipeline.build_weekly_panel import build_weekly_panel, load_panel, save_panel
from attention_liquidity.regression.runner import ModelRunner
from attention_liquidity.regression.specs import get_model


class TestSmallPipeline:
    """2 entities x 10 business days."""

    def test_panel_shape_and_values(self, two_entity_daily, two_entity_attention):
        panel, report = build_weekly_panel(two_entity_daily, two_entity_attention)

        assert len(panel) == 4
        assert panel[['id', 'week']].values.tolist() == [[1, 1], [1, 2], [2, 1], [2, 2]]
        assert panel['interest_index'].eq(5.0).all()
        assert panel['noisy'].tolist() == [0, 1, 0, 0]
        assert panel['vol_1w'].notna().all()
        assert report.input_rows == 20
        assert report.dropped_negative_spread == 0

        closes = 100.0 + np.arange(10)
        rets = closes[1:] / closes[:-1] - 1
        assert rets[0] == pytest.approx(0.01)
        assert panel.loc[1, 'ret1d1w'] == pytest.approx(rets[4:].mean())

    def test_short_history_fails_but_keeps_naive_baseline(self, two_entity_daily, two_entity_attention):
        panel, _ = build_weekly_panel(two_entity_daily, two_entity_attention)

        results = ModelRunner(panel, [get_model('vol_1w_full')]).run_all()
        result = results[0]

        assert result.status == 'failed'
        assert 'history' in result.error
        assert result.naive_n_obs == 4
        assert result.naive_coefficients['const'] == pytest.approx(5.0, abs=1e-6)
        assert np.isfinite(list(result.naive_coefficients.values())).all()

    def test_epoch_mismatch(self, two_entity_daily, two_entity_attention):
        config = PipelineConfig(week_epoch=pd.Timestamp('1990-01-07'))
        with pytest.raises(MergeMismatchError):
            build_weekly_panel(two_entity_daily, two_entity_attention, config)

    def test_save_and_load(self, tmp_path, two_entity_daily, two_entity_attention):
        panel, _ = build_weekly_panel(two_entity_daily, two_entity_attention)

        path = save_panel(panel, tmp_path / 'nested' / 'panel.parquet')
        loaded = load_panel(path)

        assert path.exists()
        assert loaded[['id', 'week']].equals(panel[['id', 'week']])
        assert loaded['vol_1w'].tolist() == pytest.approx(panel['vol_1w'].tolist())
