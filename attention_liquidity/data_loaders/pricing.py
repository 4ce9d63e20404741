"""
Daily pricing panel loader

Responsibility:
- Read the daily (id, date) pricing table from parquet/CSV or take a DataFrame
- Validate the column contract and coerce dtypes
- Sort by (id, date)

NOT responsible for:
- Dropping bad quotes or deriving any field (see features/daily.py)
"""
import logging
from pathlib import Path
from typing import Union

import pandas as pd

logger = logging.getLogger(__name__)

PRICING_COLUMNS = [
    'id', 'symbol', 'date',
    'askprice', 'bidprice', 'close', 'highprice', 'lowprice',
    'volume', 'turnover', 'marketcap',
]

NUMERIC_COLUMNS = [
    'askprice', 'bidprice', 'close', 'highprice', 'lowprice',
    'volume', 'turnover', 'marketcap',
]


def read_table(source: Union[str, Path, pd.DataFrame]) -> pd.DataFrame:
    """
    Read a labeled table from a path or pass a DataFrame through (copied).

    Supports .parquet and .csv; anything else raises ValueError.
    """
    if isinstance(source, pd.DataFrame):
        return source.copy()

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Input table not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.parquet':
        return pd.read_parquet(path)
    if suffix == '.csv':
        return pd.read_csv(path)

    raise ValueError(f"Unsupported table format '{suffix}' for {path} (expected .parquet or .csv)")


def validate_columns(df: pd.DataFrame, required: list, label: str) -> None:
    """Raise ValueError naming every required column that is missing."""
    missing = set(required) - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns in {label}: {sorted(missing)}")


def load_daily_pricing(source: Union[str, Path, pd.DataFrame]) -> pd.DataFrame:
    """
    Load the daily pricing panel.

    Args:
        source: Path to a .parquet/.csv file, or an in-memory DataFrame with
                columns id, symbol, date, askprice, bidprice, close,
                highprice, lowprice, volume, turnover, marketcap

    Returns:
        DataFrame with exactly PRICING_COLUMNS, `date` as datetime64,
        price/size fields as float, sorted by (id, date)
    """
    df = read_table(source)
    validate_columns(df, PRICING_COLUMNS, 'pricing table')

    df = df[PRICING_COLUMNS].copy()
    df['date'] = pd.to_datetime(df['date'])
    df['symbol'] = df['symbol'].astype(str)
    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors='coerce').astype(float)

    df = df.sort_values(['id', 'date'], kind='mergesort').reset_index(drop=True)

    logger.info(f"Loaded pricing panel: {len(df):,} rows, "
                f"{df['id'].nunique():,} entities")
    if len(df) > 0:
        logger.info(f"  Date range: {df['date'].min().date()} to {df['date'].max().date()}")

    return df
