"""
Command-line entry point: pricing + attention -> weekly panel -> regressions.

Usage:
    attention-liquidity --pricing data/raw/daily_pricing.parquet \\
                        --attention data/raw/weekly_attention.parquet
    attention-liquidity --panel data/results/weekly_panel.parquet --n-jobs 4
"""
import argparse
import logging
from pathlib import Path

from attention_liquidity.config import PipelineConfig
from attention_liquidity.errors import PanelAnalysisError
from attention_liquidity.features.weekly import WEEKLY_MEANS
from attention_liquidity.pipeline.build_weekly_panel import build_weekly_panel, load_panel, save_panel
from attention_liquidity.regression.runner import ModelRunner
from attention_liquidity.regression.specs import BASE_VARIABLES, build_model_catalogue
from attention_liquidity.reports.figures import (
    plot_coefficients,
    plot_correlation_matrix,
    plot_weekly_distributions,
)
from attention_liquidity.reports.tables import write_results

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = list(WEEKLY_MEANS) + ['vol_1w', 'interest_index']


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Weekly liquidity/risk features vs. search attention panel regressions"
    )
    parser.add_argument("--pricing", help="Daily pricing table (.parquet or .csv)")
    parser.add_argument("--attention", help="Weekly attention table (.parquet or .csv)")
    parser.add_argument("--panel", help="Skip the data stage and load a saved weekly panel")
    parser.add_argument("--output-dir", help="Directory for the panel, tables and figures")
    parser.add_argument("--n-jobs", type=int, help="Parallel workers for the model batch")
    parser.add_argument("--no-figures", action="store_true", help="Do not write PNG figures")
    return parser.parse_args(argv)


def run_pipeline(config: PipelineConfig, panel_path=None, figures: bool = True) -> dict:
    """
    Data stage (or saved panel) -> model catalogue -> tables and figures.

    Returns:
        dict name -> written path
    """
    output_dir = Path(config.output_dir)

    if panel_path:
        panel = load_panel(panel_path)
    else:
        panel, _ = build_weekly_panel(config.pricing_path, config.attention_path, config)
        save_panel(panel, config.weekly_panel_path)

    specs = build_model_catalogue(config.dependent, config.controls, config.y_lags)
    runner = ModelRunner(panel, specs, n_jobs=config.n_jobs, hac_maxlags=config.hac_maxlags)
    results = runner.run_all()

    paths = write_results(results, output_dir, panel=panel, summary_columns=SUMMARY_COLUMNS)

    if figures:
        figure_dir = output_dir / "figures"
        paths['distributions'] = plot_weekly_distributions(panel, SUMMARY_COLUMNS, figure_dir)
        paths['correlation'] = plot_correlation_matrix(panel, SUMMARY_COLUMNS, figure_dir)
        for variable in BASE_VARIABLES:
            path = plot_coefficients(results, f"{variable}_L0", figure_dir)
            if path is not None:
                paths[f'coef_{variable}'] = path

    return paths


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = parse_args(argv)

    config = PipelineConfig.from_env(
        pricing_path=args.pricing,
        attention_path=args.attention,
        output_dir=args.output_dir,
        n_jobs=args.n_jobs,
    )

    try:
        run_pipeline(config, panel_path=args.panel, figures=not args.no_figures)
    except (PanelAnalysisError, FileNotFoundError, ValueError) as e:
        logger.error(f"✗ Pipeline failed: {e}")
        return 1

    logger.info(f"✓ Done. Outputs in {config.output_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
