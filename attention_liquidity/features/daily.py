"""
Per-observation liquidity and risk fields from daily pricing rows

Responsibility: pointwise and entity-ordered daily fields only
- Quoted spread, midpoint, relative spread
- 1-day and 5-day simple returns (entity-local row order)
- High-low range and log high-low
- Amihud illiquidity |ret1d| / turnover
- Log transforms of volume, turnover, market cap, illiquidity

NOT responsible for:
- Weekly aggregation or volatility (see weekly.py)
- Loading or column validation (see data_loaders/pricing.py)

Filtering policy: rows with a negative spread are dropped, logged fields with
a non-positive argument are left missing. Neither is corrected; both are
counted in DataQualityReport.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# logged field -> source field
LOG_FIELDS = {
    'logvolume': 'volume',
    'logturnover': 'turnover',
    'logmarketcap': 'marketcap',
    'logilliq': 'illiq',
}


@dataclass
class DataQualityReport:
    """Counts of rows/values removed by the filtering policy."""
    input_rows: int = 0
    dropped_negative_spread: int = 0
    masked_log_values: Dict[str, int] = field(default_factory=dict)
    dropped_duplicate_keys: int = 0

    @property
    def total_masked(self) -> int:
        return int(sum(self.masked_log_values.values()))

    def log_summary(self) -> None:
        logger.info("Data quality summary:")
        logger.info(f"  Input rows:                 {self.input_rows:,}")
        logger.info(f"  Dropped (negative spread):  {self.dropped_negative_spread:,}")
        for name, count in self.masked_log_values.items():
            if count > 0:
                logger.info(f"  Masked {name:<20s} {count:,} (non-positive argument)")
        logger.info(f"  Dropped duplicate keys:     {self.dropped_duplicate_keys:,}")


def drop_invalid_quotes(daily_df: pd.DataFrame) -> Tuple[pd.DataFrame, int]:
    """
    Drop rows where askprice < bidprice.

    Rows with a missing ask or bid are kept; their spread is simply missing.

    Returns:
        (filtered DataFrame, number of rows dropped)
    """
    negative = (daily_df['askprice'] - daily_df['bidprice']) < 0
    n_dropped = int(negative.sum())

    if n_dropped > 0:
        logger.debug(f"Dropping {n_dropped} rows with askprice < bidprice")

    return daily_df.loc[~negative].copy(), n_dropped


def safe_log(values: pd.Series) -> Tuple[pd.Series, int]:
    """
    Natural log that leaves non-positive arguments missing.

    Returns:
        (logged series, number of present-but-non-positive values masked)
    """
    positive = values > 0
    masked = int((values.notna() & ~positive).sum())
    out = pd.Series(np.nan, index=values.index, dtype=float)
    out[positive] = np.log(values[positive].astype(float))
    return out, masked


def compute_returns(daily_df: pd.DataFrame) -> pd.DataFrame:
    """
    Add ret1d and ret5d using each entity's own row order.

    Assumes daily_df is sorted by (id, date). The first row of an entity has
    no ret1d and the first five have no ret5d; those stay missing.
    """
    df = daily_df.copy()
    by_entity = df.groupby('id', sort=False)['close']

    df['ret1d'] = df['close'] / by_entity.shift(1) - 1
    df['ret5d'] = df['close'] / by_entity.shift(5) - 1

    return df


def compute_daily_derived(daily_df: pd.DataFrame) -> Tuple[pd.DataFrame, DataQualityReport]:
    """
    Derive every per-observation field used by the weekly aggregation.

    Args:
        daily_df: From pricing.load_daily_pricing()

    Returns:
        (DerivedObservation frame sorted by (id, date), DataQualityReport)

    Note:
        - Negative-spread rows are dropped before returns are computed, so
          return lags skip them
        - illiq is missing where ret1d is missing or turnover is not positive
    """
    report = DataQualityReport(input_rows=len(daily_df))

    df = daily_df.sort_values(['id', 'date'], kind='mergesort').reset_index(drop=True)
    df, report.dropped_negative_spread = drop_invalid_quotes(df)
    df = df.reset_index(drop=True)

    # Quote-based fields
    df['spread'] = df['askprice'] - df['bidprice']
    df['midpoint'] = (df['askprice'] + df['bidprice']) / 2
    df['rel_spread'] = df['spread'] / df['midpoint'].where(df['midpoint'] > 0)

    # Returns
    df = compute_returns(df)

    # Range
    df['high_low'] = df['highprice'] - df['lowprice']
    log_high, masked_high = safe_log(df['highprice'])
    log_low, masked_low = safe_log(df['lowprice'])
    df['logh_logl'] = log_high - log_low
    report.masked_log_values['logh_logl'] = masked_high + masked_low

    # Amihud illiquidity
    turnover = df['turnover'].where(df['turnover'] > 0)
    df['illiq'] = df['ret1d'].abs() / turnover

    for log_name, source in LOG_FIELDS.items():
        df[log_name], report.masked_log_values[log_name] = safe_log(df[source])

    logger.info(f"Derived daily fields for {len(df):,} rows "
                f"({report.dropped_negative_spread:,} dropped for negative spread)")
    logger.debug(f"  ret1d defined: {df['ret1d'].notna().sum():,}, "
                 f"ret5d defined: {df['ret5d'].notna().sum():,}, "
                 f"illiq defined: {df['illiq'].notna().sum():,}")

    return df, report
