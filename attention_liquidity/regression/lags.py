"""
Panel lag construction

A lag of k weeks is an explicit lookup of (entity, week - k). Missing weeks
and the start of an entity's history give a missing value; a lag never reads
another entity's rows and never assumes rows are contiguous.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from attention_liquidity.config import ENTITY_COL, TIME_COL
from attention_liquidity.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LagSpec:
    """
    A regressor block: `variable` at lags lo..hi (inclusive).

    With `interact` set (e.g. 'noisy'), each column is interact[t] times
    variable[t - k].
    """
    variable: str
    lo: int = 0
    hi: int = 0
    interact: Optional[str] = None

    def __post_init__(self):
        if self.lo < 0:
            raise ConfigurationError(f"Negative lag {self.lo} requested for {self.variable}")
        if self.lo > self.hi:
            raise ConfigurationError(
                f"Invalid lag range [{self.lo}, {self.hi}] for {self.variable}"
            )

    @property
    def lags(self) -> List[int]:
        return list(range(self.lo, self.hi + 1))

    def column_name(self, k: int) -> str:
        base = f"{self.variable}_L{k}"
        return f"{self.interact}_x_{base}" if self.interact else base

    @property
    def columns(self) -> List[str]:
        return [self.column_name(k) for k in self.lags]

    def label(self) -> str:
        prefix = f"{self.interact} x " if self.interact else ""
        return f"{prefix}{self.variable} lags {self.lo}..{self.hi}"


def lag_series(
    panel: pd.DataFrame,
    column: str,
    k: int,
    entity_col: str = ENTITY_COL,
    time_col: str = TIME_COL
) -> pd.Series:
    """
    Value of `column` at (entity, week - k) for every row of panel.

    Args:
        panel: Must be unique on (entity_col, time_col)
        column: Column to lag
        k: Lag in weeks (0 returns the column itself)

    Returns:
        Series aligned to panel.index, missing where the lagged week is absent
    """
    if k == 0:
        return panel[column].astype(float).rename(f"{column}_L0")

    source = pd.Series(
        panel[column].to_numpy(dtype=float),
        index=pd.MultiIndex.from_arrays([panel[entity_col], panel[time_col]]),
    )
    target = pd.MultiIndex.from_arrays([panel[entity_col], panel[time_col] - k])

    values = source.reindex(target).to_numpy()
    return pd.Series(values, index=panel.index, name=f"{column}_L{k}")


def max_history(panel: pd.DataFrame, entity_col: str = ENTITY_COL, time_col: str = TIME_COL) -> int:
    """Longest span of weeks (last - first + 1) any entity covers."""
    if len(panel) == 0:
        return 0
    span = panel.groupby(entity_col)[time_col].agg(lambda s: s.max() - s.min() + 1)
    return int(span.max())


def build_design(
    panel: pd.DataFrame,
    dependent: str,
    regressors: Sequence[LagSpec],
    y_lags: Sequence[int] = (1, 2),
    entity_col: str = ENTITY_COL,
    time_col: str = TIME_COL
) -> Tuple[pd.DataFrame, List[str]]:
    """
    Build the lagged design for one model.

    Args:
        panel: Merged weekly panel, unique on (entity, week)
        dependent: Dependent variable column
        regressors: Regressor blocks (including controls and interactions)
        y_lags: Lags of the dependent variable to include (empty for none)

    Returns:
        (DataFrame[entity, week, dependent, *regressor columns], regressor
         column names in order). Rows are not filtered for missing values.

    Raises:
        ConfigurationError: Missing column, or a lag no entity has history for
    """
    needed = {dependent} | {spec.variable for spec in regressors}
    needed |= {spec.interact for spec in regressors if spec.interact}
    missing = needed - set(panel.columns)
    if missing:
        raise ConfigurationError(f"Columns not in panel: {sorted(missing)}")

    if panel.duplicated(subset=[entity_col, time_col]).any():
        raise ConfigurationError(f"Panel is not unique on ({entity_col}, {time_col})")

    history = max_history(panel, entity_col, time_col)
    deepest = max([spec.hi for spec in regressors] + list(y_lags) + [0])
    if deepest >= history:
        raise ConfigurationError(
            f"Lag {deepest} exceeds available history (longest entity span is {history} weeks)"
        )

    design = panel[[entity_col, time_col, dependent]].copy()
    design[dependent] = design[dependent].astype(float)
    columns = []

    for spec in regressors:
        for k in spec.lags:
            name = spec.column_name(k)
            values = lag_series(panel, spec.variable, k, entity_col, time_col)
            if spec.interact:
                values = values * panel[spec.interact].astype(float)
            if name not in design.columns:
                design[name] = values.to_numpy()
                columns.append(name)

    for k in y_lags:
        name = f"{dependent}_L{k}"
        if name not in design.columns:
            design[name] = lag_series(panel, dependent, k, entity_col, time_col).to_numpy()
            columns.append(name)

    return design, columns
