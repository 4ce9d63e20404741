"""
Weekly (entity x week) aggregation of daily liquidity and risk fields

Responsibility:
- Week index from dates (fixed epoch shared with the attention panel)
- Arithmetic weekly means of the daily fields
- Intra-week return volatility around the entity's whole-sample mean
- Market-cap tercile dummies from whole-sample average market cap
- One row per (symbol, week)

NOT responsible for:
- Per-observation fields (see daily.py)
- Joining with attention data (see pipeline/merge_weekly_panel.py)
"""
import logging
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from attention_liquidity.config import PipelineConfig, WEEK_EPOCH
from attention_liquidity.features.daily import DataQualityReport, compute_daily_derived

logger = logging.getLogger(__name__)

# weekly column -> daily field averaged into it
WEEKLY_MEANS = {
    'logvolume1w': 'logvolume',
    'logturnover1w': 'logturnover',
    'logmarketcap1w': 'logmarketcap',
    'spread1w': 'spread',
    'rel_spread1w': 'rel_spread',
    'ret1d1w': 'ret1d',
    'ret5d1w': 'ret5d',
    'high_low1w': 'high_low',
    'logh_logl1w': 'logh_logl',
    'logilliq1w': 'logilliq',
}

WEEKLY_COLUMNS = (
    ['id', 'symbol', 'week', 'n_obs']
    + list(WEEKLY_MEANS)
    + ['vol_1w', 'avg_mc', 'mc25', 'mc50', 'mc75']
)


def compute_week_index(dates: pd.Series, epoch: pd.Timestamp = WEEK_EPOCH) -> pd.Series:
    """
    Map dates to integer week numbers.

    Formula: week = floor((date - epoch) / 7 days) + 1

    Example:
        epoch = 2004-01-04 (Sunday)
        2004-01-04 .. 2004-01-10 -> 1
        2004-01-11               -> 2
        2004-01-03               -> 0
    """
    days = (pd.to_datetime(dates) - pd.Timestamp(epoch)).dt.days
    return (days // 7 + 1).astype('int64')


def compute_weekly_volatility(derived_df: pd.DataFrame) -> pd.DataFrame:
    """
    Intra-week sample volatility of ret1d around the entity's full-sample mean.

    For each entity the mean ret1d over the whole sample (meanret1d) is
    computed first. Within each (id, week) the squared deviations from
    meanret1d are summed and divided by (count - 1), count being the number
    of defined ret1d values in that week.

    Returns:
        DataFrame[id, week, vol_1w]; vol_1w is missing for weeks with fewer
        than two defined returns
    """
    meanret1d = derived_df.groupby('id', sort=False)['ret1d'].transform('mean')
    sqdev = (derived_df['ret1d'] - meanret1d) ** 2

    grouped = sqdev.groupby([derived_df['id'], derived_df['week']])
    ss = grouped.sum(min_count=1)
    count = grouped.count()

    variance = ss / (count - 1).where(count >= 2)

    out = np.sqrt(variance).rename('vol_1w').reset_index()
    out.columns = ['id', 'week', 'vol_1w']

    n_single = int((count < 2).sum())
    if n_single > 0:
        logger.debug(f"{n_single} entity-weeks have < 2 returns, vol_1w left missing")

    return out


def aggregate_weekly(derived_df: pd.DataFrame) -> pd.DataFrame:
    """
    Average the daily fields within each (id, week).

    Returns:
        DataFrame[id, symbol, week, n_obs, <WEEKLY_MEANS columns>]
    """
    grouped = derived_df.groupby(['id', 'week'], sort=True)

    means = grouped[list(WEEKLY_MEANS.values())].mean()
    means.columns = list(WEEKLY_MEANS.keys())

    meta = grouped.agg(symbol=('symbol', 'first'), n_obs=('date', 'size'))

    weekly = meta.join(means).reset_index()
    return weekly[['id', 'symbol', 'week', 'n_obs'] + list(WEEKLY_MEANS)]


def assign_marketcap_terciles(
    weekly_df: pd.DataFrame,
    derived_df: pd.DataFrame,
    lower_cutoff: float,
    upper_cutoff: float
) -> pd.DataFrame:
    """
    Add avg_mc and the mc25/mc50/mc75 dummies.

    avg_mc is the entity's mean market cap over every daily row (not per
    week). mc25 = avg_mc < lower_cutoff, mc75 = avg_mc > upper_cutoff,
    mc50 otherwise, so exactly one dummy is 1 for each entity.
    """
    if lower_cutoff > upper_cutoff:
        raise ValueError(f"lower_cutoff ({lower_cutoff}) must not exceed upper_cutoff ({upper_cutoff})")

    avg_mc = derived_df.groupby('id')['marketcap'].mean().rename('avg_mc')

    df = weekly_df.drop(columns=['avg_mc', 'mc25', 'mc50', 'mc75'], errors='ignore')
    df = df.merge(avg_mc, left_on='id', right_index=True, how='left')

    df['mc25'] = (df['avg_mc'] < lower_cutoff).astype(int)
    df['mc75'] = (df['avg_mc'] > upper_cutoff).astype(int)
    df['mc50'] = ((df['mc25'] == 0) & (df['mc75'] == 0)).astype(int)

    per_entity = df.drop_duplicates('id')
    logger.info(f"Market-cap terciles: mc25={int(per_entity['mc25'].sum())}, "
                f"mc50={int(per_entity['mc50'].sum())}, "
                f"mc75={int(per_entity['mc75'].sum())} entities")

    n_missing = int(avg_mc.isna().sum())
    if n_missing > 0:
        logger.warning(f"{n_missing} entities have no market cap, assigned to mc50")

    return df


def deduplicate_weekly(weekly_df: pd.DataFrame) -> Tuple[pd.DataFrame, int]:
    """
    Keep one row per (symbol, week): the one with the smallest id.

    Grouping is by (id, week), so duplicates only appear when two ids share
    a symbol in the same week.
    """
    df = weekly_df.sort_values(['symbol', 'week', 'id'], kind='mergesort')
    before = len(df)
    df = df.drop_duplicates(subset=['symbol', 'week'], keep='first')
    n_dropped = before - len(df)

    if n_dropped > 0:
        logger.warning(f"Removed {n_dropped} duplicate (symbol, week) rows")

    return df.sort_values(['id', 'week'], kind='mergesort').reset_index(drop=True), n_dropped


def build_weekly_features(
    daily_df: pd.DataFrame,
    config: Optional[PipelineConfig] = None
) -> Tuple[pd.DataFrame, DataQualityReport]:
    """
    Daily pricing rows -> one WeeklyPanelRow per (id, week).

    Args:
        daily_df: From pricing.load_daily_pricing()
        config: Epoch and tercile cutoffs (defaults to PipelineConfig())

    Returns:
        (weekly DataFrame with WEEKLY_COLUMNS sorted by (id, week),
         DataQualityReport)
    """
    config = config or PipelineConfig()

    derived, report = compute_daily_derived(daily_df)
    derived['week'] = compute_week_index(derived['date'], config.week_epoch)

    weekly = aggregate_weekly(derived)
    weekly = weekly.merge(compute_weekly_volatility(derived), on=['id', 'week'], how='left')
    weekly = assign_marketcap_terciles(
        weekly, derived, config.mc_lower_cutoff, config.mc_upper_cutoff
    )
    weekly, report.dropped_duplicate_keys = deduplicate_weekly(weekly)

    logger.info(f"Built weekly panel: {len(weekly):,} entity-weeks, "
                f"{weekly['id'].nunique():,} entities, "
                f"weeks {weekly['week'].min() if len(weekly) else 'n/a'}"
                f"-{weekly['week'].max() if len(weekly) else 'n/a'}")
    logger.info(f"  vol_1w defined for {weekly['vol_1w'].notna().sum():,} entity-weeks")

    return weekly[WEEKLY_COLUMNS], report
