"""
Weekly attention (search interest) loader

The attention table arrives already indexed by week, using the same
WEEK_EPOCH as the pricing features. Each row is one symbol-week with the
search-interest score and a `noisy` flag.
"""
import logging
from pathlib import Path
from typing import Union

import pandas as pd

from attention_liquidity.data_loaders.pricing import read_table, validate_columns

logger = logging.getLogger(__name__)

ATTENTION_COLUMNS = ['symbol', 'week', 'interest_index', 'noisy']


def load_weekly_attention(source: Union[str, Path, pd.DataFrame]) -> pd.DataFrame:
    """
    Load the weekly attention panel.

    Args:
        source: Path to a .parquet/.csv file or a DataFrame with columns
                symbol, week, interest_index, noisy

    Returns:
        DataFrame with ATTENTION_COLUMNS; `week` int64, `interest_index`
        float, `noisy` int 0/1 (booleans and missing flags map to 0/1 and 0)
    """
    df = read_table(source)
    validate_columns(df, ATTENTION_COLUMNS, 'attention table')

    df = df[ATTENTION_COLUMNS].copy()
    df['symbol'] = df['symbol'].astype(str)
    df['week'] = pd.to_numeric(df['week'], errors='raise').astype('int64')
    df['interest_index'] = pd.to_numeric(df['interest_index'], errors='coerce').astype(float)
    df['noisy'] = pd.to_numeric(df['noisy'], errors='coerce').fillna(0).astype(bool).astype(int)

    df = df.sort_values(['symbol', 'week'], kind='mergesort').reset_index(drop=True)

    logger.info(f"Loaded attention panel: {len(df):,} rows, "
                f"{df['symbol'].nunique():,} symbols, "
                f"{int(df['noisy'].sum()):,} noisy symbol-weeks")

    return df
