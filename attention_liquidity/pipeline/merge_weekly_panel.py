"""
Join the weekly pricing panel with the weekly attention panel.

Strict inner join on (symbol, week). Both sides must already be unique on the
key; a violation is a DataQualityError rather than a silent fan-out. An empty
result almost always means the two week indexes were built from different
epochs, so it is raised as MergeMismatchError with the counts attached.
"""
import logging

import pandas as pd

from attention_liquidity.config import LOW_MATCH_RATE, MIN_MERGED_ROWS
from attention_liquidity.errors import DataQualityError, MergeMismatchError

logger = logging.getLogger(__name__)

MERGE_KEYS = ['symbol', 'week']


def validate_unique_keys(df: pd.DataFrame, keys: list, label: str) -> None:
    """Raise DataQualityError if `keys` do not identify rows of df uniquely."""
    n_dup = int(df.duplicated(subset=keys).sum())
    if n_dup > 0:
        raise DataQualityError(
            f"{label} has {n_dup} duplicate rows on {keys}; deduplicate before merging"
        )


def merge_weekly_panel(
    weekly_df: pd.DataFrame,
    attention_df: pd.DataFrame,
    min_rows: int = MIN_MERGED_ROWS
) -> pd.DataFrame:
    """
    Inner-join weekly pricing features and attention on (symbol, week).

    Args:
        weekly_df: From features.weekly.build_weekly_features()
        attention_df: From data_loaders.attention.load_weekly_attention()
        min_rows: Smallest acceptable merged panel

    Returns:
        Merged panel sorted by (id, week)

    Raises:
        DataQualityError: Either side has duplicate (symbol, week) keys
        MergeMismatchError: Fewer than min_rows rows survive the join
    """
    validate_unique_keys(weekly_df, MERGE_KEYS, 'weekly pricing panel')
    validate_unique_keys(attention_df, MERGE_KEYS, 'attention panel')

    pricing = weekly_df.copy()
    attention = attention_df[MERGE_KEYS + ['interest_index', 'noisy']].copy()
    pricing['week'] = pricing['week'].astype('int64')
    attention['week'] = attention['week'].astype('int64')
    pricing['symbol'] = pricing['symbol'].astype(str)
    attention['symbol'] = attention['symbol'].astype(str)

    logger.info(f"Merging {len(pricing):,} pricing rows with {len(attention):,} attention rows")

    merged = pricing.merge(attention, on=MERGE_KEYS, how='inner', validate='one_to_one')

    n_merged = len(merged)
    if n_merged < max(min_rows, 1):
        raise MergeMismatchError(
            f"Merged panel has {n_merged} rows (pricing={len(pricing)}, "
            f"attention={len(attention)}); check that both week indexes use the same epoch",
            n_pricing=len(pricing),
            n_attention=len(attention),
            n_merged=n_merged,
        )

    pricing_rate = n_merged / len(pricing)
    attention_rate = n_merged / len(attention)
    logger.info(f"  ✓ Merged {n_merged:,} rows")
    logger.info(f"  Match rate: pricing {pricing_rate:.1%}, attention {attention_rate:.1%}")

    if min(pricing_rate, attention_rate) < LOW_MATCH_RATE:
        logger.warning(f"  ⚠ Low match rate - check symbol coverage and week alignment")

    merged['noisy'] = merged['noisy'].astype(int)
    merged = merged.sort_values(['id', 'week'], kind='mergesort').reset_index(drop=True)

    return merged
