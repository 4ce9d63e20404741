"""
Weekly panel pipeline: daily pricing + weekly attention -> merged panel

Purpose:
    Orchestrate loading, feature derivation and the merge. Does NOT contain
    feature or estimation logic.

Responsibility:
    - Load the pricing and attention tables
    - Call the feature engine (daily -> weekly)
    - Merge on (symbol, week)
    - Log the data quality summary once
    - Save the merged panel to parquet

NOT responsible for:
    - Feature calculation (delegated to features/)
    - Regressions (see regression/)
"""
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import pandas as pd

from attention_liquidity.config import PipelineConfig
from attention_liquidity.data_loaders.attention import load_weekly_attention
from attention_liquidity.data_loaders.pricing import load_daily_pricing
from attention_liquidity.features.daily import DataQualityReport
from attention_liquidity.features.weekly import build_weekly_features
from attention_liquidity.pipeline.merge_weekly_panel import merge_weekly_panel

logger = logging.getLogger(__name__)

Source = Union[str, Path, pd.DataFrame]


def build_weekly_panel(
    pricing_source: Source,
    attention_source: Source,
    config: Optional[PipelineConfig] = None
) -> Tuple[pd.DataFrame, DataQualityReport]:
    """
    Run the full data stage.

    Args:
        pricing_source: Path or DataFrame for the daily pricing table
        attention_source: Path or DataFrame for the weekly attention table
        config: Pipeline settings (epoch, cutoffs, min merged rows)

    Returns:
        (merged panel sorted by (id, week), DataQualityReport)

    Raises:
        DataQualityError / MergeMismatchError from the merge step
    """
    config = config or PipelineConfig()

    logger.info("=" * 60)
    logger.info("Building weekly panel")
    logger.info("=" * 60)

    # Step 1: Load
    daily_df = load_daily_pricing(pricing_source)
    attention_df = load_weekly_attention(attention_source)

    # Step 2: Daily -> weekly features
    weekly_df, report = build_weekly_features(daily_df, config)

    # Step 3: Merge
    panel = merge_weekly_panel(weekly_df, attention_df, min_rows=config.min_merged_rows)

    report.log_summary()
    logger.info(f"Weekly panel ready: {len(panel):,} rows, {panel['id'].nunique():,} entities")

    return panel, report


def save_panel(df: pd.DataFrame, output_path: Union[str, Path]) -> Path:
    """Write a panel to parquet, creating the parent directory."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df.to_parquet(output_path, index=False)

    logger.info(f"✓ Saved {len(df):,} rows to {output_path}")
    return output_path


def load_panel(path: Union[str, Path]) -> pd.DataFrame:
    """Read a panel written by save_panel()."""
    df = pd.read_parquet(path)
    logger.info(f"Loaded saved panel: {len(df):,} rows from {path}")
    return df.sort_values(['id', 'week'], kind='mergesort').reset_index(drop=True)
