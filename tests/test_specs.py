"""
Tests for the model catalogue.
"""
import pytest

from attention_liquidity.regression.specs import (
    BASE_VARIABLES,
    COMBINED_MODELS,
    TERCILES,
    build_model_catalogue,
    get_model,
)


class TestCatalogue:
    """Tests for build_model_catalogue."""

    def test_size_and_unique_ids(self):
        catalogue = build_model_catalogue()
        ids = [spec.model_id for spec in catalogue]

        expected = 1 + len(BASE_VARIABLES) * (1 + len(TERCILES)) + len(COMBINED_MODELS) + len(BASE_VARIABLES)
        assert len(catalogue) == expected == 40
        assert len(set(ids)) == len(ids)

    def test_naive_model_has_no_dependent_lags(self):
        spec = get_model('naive_full')
        assert spec.y_lags == ()
        assert {block.variable for block in spec.regressors} >= set(BASE_VARIABLES)

    def test_base_model_lag_depths(self):
        for variable, (lo, hi) in BASE_VARIABLES.items():
            spec = get_model(f'{variable}_full')
            block = spec.regressors[0]
            assert (block.variable, block.lo, block.hi) == (variable, lo, hi)
            assert spec.y_lags == (1, 2)
            assert spec.sample_filter is None

    def test_tercile_filters(self):
        for tercile in TERCILES:
            spec = get_model(f'vol_1w_{tercile}')
            assert spec.sample_filter == f'{tercile} == 1'

    def test_robustness_models_test_interactions(self):
        spec = get_model('logilliq1w_noisy')
        assert spec.ftest == ('noisy_x_logilliq1w_L0', 'noisy_x_logilliq1w_L1', 'noisy_x_logilliq1w_L2')
        assert set(spec.ftest) <= {c for block in spec.regressors for c in block.columns}
        assert spec.naive_regressors == ['logilliq1w', 'logmarketcap1w']

    def test_control_included_once(self):
        spec = get_model('combined_all')
        assert [b.variable for b in spec.regressors].count('logmarketcap1w') == 1

    def test_custom_dependent_and_controls(self):
        catalogue = build_model_catalogue(dependent='attention', controls=(), y_lags=(1,))
        spec = catalogue[1]
        assert spec.dependent == 'attention'
        assert spec.y_lags == (1,)
        assert all(b.variable != 'logmarketcap1w' for b in spec.regressors)

    def test_unknown_model(self):
        with pytest.raises(KeyError, match="Unknown model_id"):
            get_model('does_not_exist')
