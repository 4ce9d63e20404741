"""
Tests for environment configuration and the command-line entry point.
"""
import pandas as pd
import pytest

from attention_liquidity.cli import main, parse_args
from attention_liquidity.config import MC_LOWER_CUTOFF, PipelineConfig, WEEKLY_PANEL_FILENAME


ENV_VARS = [
    'ATTN_PRICING_PATH', 'ATTN_ATTENTION_PATH', 'ATTN_OUTPUT_DIR', 'ATTN_WEEK_EPOCH',
    'ATTN_MC_LOWER', 'ATTN_MC_UPPER', 'ATTN_N_JOBS',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestPipelineConfig:
    """Tests for PipelineConfig.from_env."""

    def test_defaults(self):
        config = PipelineConfig.from_env()
        assert config.mc_lower_cutoff == MC_LOWER_CUTOFF
        assert config.n_jobs == 1
        assert config.weekly_panel_path.name == WEEKLY_PANEL_FILENAME

    def test_environment(self, monkeypatch):
        monkeypatch.setenv('ATTN_MC_LOWER', '1e9')
        monkeypatch.setenv('ATTN_WEEK_EPOCH', '2010-01-03')
        monkeypatch.setenv('ATTN_N_JOBS', '3')

        config = PipelineConfig.from_env()

        assert config.mc_lower_cutoff == 1e9
        assert config.week_epoch == pd.Timestamp('2010-01-03')
        assert config.n_jobs == 3

    def test_overrides_win_and_none_ignored(self, monkeypatch):
        monkeypatch.setenv('ATTN_OUTPUT_DIR', 'from_env')

        assert PipelineConfig.from_env(output_dir='explicit').output_dir == 'explicit'
        assert PipelineConfig.from_env(output_dir=None).output_dir == 'from_env'


class TestCli:
    """Tests for the attention-liquidity command."""

    def test_parse_args(self):
        args = parse_args(['--panel', 'p.parquet', '--n-jobs', '2', '--no-figures'])
        assert args.panel == 'p.parquet'
        assert args.n_jobs == 2
        assert args.no_figures

    def test_run_from_saved_panel(self, tmp_path, weekly_panel):
        panel_path = tmp_path / 'panel.parquet'
        weekly_panel.to_parquet(panel_path, index=False)
        out = tmp_path / 'out'

        assert main(['--panel', str(panel_path), '--output-dir', str(out)]) == 0

        assert (out / 'summary.md').exists()
        coefs = pd.read_csv(out / 'model_coefficients.csv')
        assert coefs['model_id'].nunique() == 40
        assert (out / 'figures' / 'coef_vol_1w_L0.png').exists()

    def test_full_run_from_raw_tables(self, tmp_path, two_entity_daily, two_entity_attention):
        pricing = tmp_path / 'pricing.csv'
        attention = tmp_path / 'attention.parquet'
        two_entity_daily.to_csv(pricing, index=False)
        two_entity_attention.assign(noisy=lambda d: d['noisy'].astype(int)).to_parquet(attention, index=False)
        out = tmp_path / 'out'

        code = main(['--pricing', str(pricing), '--attention', str(attention),
                     '--output-dir', str(out), '--no-figures'])

        assert code == 0
        assert (out / WEEKLY_PANEL_FILENAME).exists()
        # every model needs more history than two weeks, so all are recorded as failed
        coefs = pd.read_csv(out / 'model_coefficients.csv')
        assert set(coefs['status']) == {'failed'}

    def test_missing_input_returns_error_code(self, tmp_path):
        code = main(['--pricing', str(tmp_path / 'missing.parquet'),
                     '--attention', str(tmp_path / 'missing.parquet'),
                     '--output-dir', str(tmp_path / 'out')])
        assert code == 1
