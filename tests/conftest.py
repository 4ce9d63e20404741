"""
Shared synthetic fixtures.

Daily pricing rows start on Monday 2004-01-05, so with the default epoch
(Sunday 2004-01-04) the first five business days are week 1.
"""
import numpy as np
import pandas as pd
import pytest

from attention_liquidity.regression.specs import BASE_VARIABLES


def make_daily_pricing(closes_by_entity, marketcaps=None, start="2004-01-05"):
    """
    One row per business day per entity.

    closes_by_entity: {id: (symbol, [close, ...])}
    """
    marketcaps = marketcaps or {}
    frames = []
    for entity_id, (symbol, closes) in closes_by_entity.items():
        closes = np.asarray(closes, dtype=float)
        n = len(closes)
        frames.append(pd.DataFrame({
            'id': entity_id,
            'symbol': symbol,
            'date': pd.bdate_range(start, periods=n),
            'askprice': closes + 0.05,
            'bidprice': closes - 0.05,
            'close': closes,
            'highprice': closes + 1.0,
            'lowprice': closes - 1.0,
            'volume': 1000.0 + np.arange(n) * 10,
            'turnover': 0.01 + np.arange(n) * 0.001,
            'marketcap': marketcaps.get(entity_id, 5e9),
        }))
    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def two_entity_daily():
    """2 entities x 10 business days (weeks 1 and 2)."""
    return make_daily_pricing(
        {
            1: ('AAA', 100.0 + np.arange(10)),
            2: ('BBB', [50, 51, 49, 52, 50, 53, 51, 54, 52, 55]),
        },
        marketcaps={1: 1e9, 2: 5e10},
    )


@pytest.fixture
def two_entity_attention():
    """Matching attention rows for weeks 1-2 plus one unmatched week."""
    return pd.DataFrame({
        'symbol': ['AAA', 'AAA', 'BBB', 'BBB', 'BBB'],
        'week': [1, 2, 1, 2, 3],
        'interest_index': [5.0] * 5,
        'noisy': [0, 1, 0, False, True],
    })


def make_weekly_panel(n_entities=6, n_weeks=40, seed=0):
    """
    Merged weekly panel with every base variable, the control, the
    interaction flag and tercile dummies (entities split evenly).
    """
    rng = np.random.default_rng(seed)
    frames = []
    for i in range(n_entities):
        tercile = ('mc25', 'mc50', 'mc75')[i * 3 // n_entities]
        df = pd.DataFrame({
            'id': i + 1,
            'symbol': f'S{i + 1}',
            'week': np.arange(1, n_weeks + 1),
        })
        for variable in BASE_VARIABLES:
            df[variable] = rng.normal(size=n_weeks)
        df['logmarketcap1w'] = 20 + i + rng.normal(scale=0.1, size=n_weeks)
        df['noisy'] = rng.integers(0, 2, size=n_weeks)
        df['interest_index'] = 50 + 5 * i + 2 * df['vol_1w'] + rng.normal(size=n_weeks)
        for t in ('mc25', 'mc50', 'mc75'):
            df[t] = int(t == tercile)
        frames.append(df)
    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def weekly_panel():
    return make_weekly_panel()
