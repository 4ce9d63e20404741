"""
Tests for the batch model runner.
"""
import pytest

from attention_liquidity.errors import ConfigurationError
from attention_liquidity.regression.lags import LagSpec
from attention_liquidity.regression.runner import ModelRunner
from attention_liquidity.regression.specs import ModelSpec, build_model_catalogue, get_model


class TestModelRunner:
    """Tests for ModelRunner.run_all."""

    def test_full_catalogue(self, weekly_panel):
        results = ModelRunner(weekly_panel).run_all()
        catalogue = build_model_catalogue()

        assert [r.model_id for r in results] == [s.model_id for s in catalogue]
        assert all(r.ok for r in results), [(r.model_id, r.error) for r in results if not r.ok]
        noisy = [r for r in results if r.model_id.endswith('_noisy')]
        assert len(noisy) == 7
        assert all(r.f_test is not None for r in noisy)

    def test_failure_does_not_stop_batch(self, weekly_panel):
        panel = weekly_panel.copy()
        panel['flat'] = panel['id'].astype(float)
        specs = [
            get_model('vol_1w_full'),
            ModelSpec('flat_model', 'no within variation',
                      (LagSpec('flat', 0, 0), LagSpec('vol_1w', 0, 0)), y_lags=()),
            ModelSpec('missing_column', 'not in panel', (LagSpec('absent', 0, 0),)),
            get_model('ret5d1w_full'),
        ]

        results = ModelRunner(panel, specs).run_all()

        assert [r.status for r in results] == ['ok', 'failed', 'failed', 'ok']
        flat = results[1]
        assert 'within-entity' in flat.error
        # naive OLS is still estimable without fixed effects
        assert set(flat.naive_coefficients) == {'const', 'flat', 'vol_1w'}
        assert results[2].naive_coefficients == {}

    def test_parallel_matches_serial(self, weekly_panel):
        specs = [get_model('vol_1w_full'), get_model('rel_spread1w_mc75'), get_model('combined_risk')]

        serial = ModelRunner(weekly_panel, specs, n_jobs=1).run_all()
        parallel = ModelRunner(weekly_panel, specs, n_jobs=2).run_all()

        assert [r.model_id for r in parallel] == [r.model_id for r in serial]
        for a, b in zip(serial, parallel):
            assert a.coefficients.keys() == b.coefficients.keys()
            for name in a.coefficients:
                assert a.coefficients[name] == pytest.approx(b.coefficients[name])
                assert a.standard_errors[name] == pytest.approx(b.standard_errors[name])

    def test_duplicate_ids_rejected(self, weekly_panel):
        spec = get_model('vol_1w_full')
        with pytest.raises(ConfigurationError, match="Duplicate model ids"):
            ModelRunner(weekly_panel, [spec, spec])
