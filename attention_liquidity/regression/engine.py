"""
Two-stage fixed-effects + Newey-West regression engine

Every model in the catalogue goes through the same procedure:

  Stage 1 (fixed effects):
      demean y and every regressor within entity over the estimation sample,
      OLS without constant on the demeaned data,
      resid = y_dm - fitted

  Stage 2 (Newey-West):
      OLS of the original y on const + regressors + resid,
      panel HAC covariance (Bartlett kernel, maxlags=5, small-sample
      correction) with score autocovariances taken within each entity's own
      week-ordered rows and summed over entities

  Baseline:
      naive OLS of y on the contemporaneous base variables and controls,
      no lags, no fixed effects, classical standard errors

  Optional:
      joint Wald F-test (HAC covariance) that a set of coefficients are zero

NOT responsible for:
  - Choosing which models to run (see specs.py / runner.py)
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm

from attention_liquidity.config import ENTITY_COL, HAC_MAXLAGS, TIME_COL
from attention_liquidity.errors import ConfigurationError, EstimationError
from attention_liquidity.regression.lags import build_design
from attention_liquidity.regression.specs import ModelSpec

logger = logging.getLogger(__name__)

RESID_COL = 'fe_resid'
ZERO_VARIANCE_TOL = 1e-12


@dataclass
class ModelResult:
    """Uniform per-model result record."""
    model_id: str
    description: str = ''
    dependent: str = ''
    status: str = 'ok'
    error: Optional[str] = None
    sample_filter: Optional[str] = None
    n_obs: int = 0
    n_entities: int = 0
    coefficients: Dict[str, float] = field(default_factory=dict)
    standard_errors: Dict[str, float] = field(default_factory=dict)
    tvalues: Dict[str, float] = field(default_factory=dict)
    pvalues: Dict[str, float] = field(default_factory=dict)
    fe_coefficients: Dict[str, float] = field(default_factory=dict)
    r_squared: float = np.nan
    within_r_squared: float = np.nan
    naive_n_obs: int = 0
    naive_coefficients: Dict[str, float] = field(default_factory=dict)
    naive_standard_errors: Dict[str, float] = field(default_factory=dict)
    naive_r_squared: float = np.nan
    f_test: Optional[Dict[str, float]] = None

    @property
    def ok(self) -> bool:
        return self.status == 'ok'


def _as_float_dict(series: pd.Series) -> Dict[str, float]:
    return {str(k): float(v) for k, v in series.items()}


class RegressionEngine:
    """
    Estimates ModelSpecs against one immutable merged panel.

    The panel is copied and sorted by (entity, week) once; run() never
    mutates it, so one engine can serve any number of models in any order.
    """

    def __init__(
        self,
        panel: pd.DataFrame,
        entity_col: str = ENTITY_COL,
        time_col: str = TIME_COL,
        hac_maxlags: int = HAC_MAXLAGS
    ):
        missing = {entity_col, time_col} - set(panel.columns)
        if missing:
            raise ValueError(f"Missing columns in panel: {missing}")

        self.entity_col = entity_col
        self.time_col = time_col
        self.hac_maxlags = hac_maxlags
        self.panel = (
            panel.sort_values([entity_col, time_col], kind='mergesort')
            .reset_index(drop=True)
        )

    # ------------------------------------------------------------------
    # Sample selection
    # ------------------------------------------------------------------
    def _filter_mask(self, spec: ModelSpec) -> pd.Series:
        if spec.sample_filter is None:
            return pd.Series(True, index=self.panel.index)

        try:
            mask = self.panel.eval(spec.sample_filter)
        except (NameError, KeyError, SyntaxError, ValueError) as e:
            raise ConfigurationError(f"Invalid sample filter '{spec.sample_filter}': {e}") from e

        if not isinstance(mask, pd.Series) or mask.dtype != bool:
            raise ConfigurationError(
                f"Sample filter '{spec.sample_filter}' did not evaluate to a boolean mask"
            )
        return mask

    # ------------------------------------------------------------------
    # Naive baseline
    # ------------------------------------------------------------------
    def run_naive(self, spec: ModelSpec) -> dict:
        """
        Pooled OLS of y on const + contemporaneous base variables/controls.

        Returns:
            dict with n_obs, coefficients, standard_errors, r_squared
        """
        cols = spec.naive_regressors
        missing = set([spec.dependent] + cols) - set(self.panel.columns)
        if missing:
            raise ConfigurationError(f"Columns not in panel: {sorted(missing)}")

        data = self.panel.loc[self._filter_mask(spec), [spec.dependent] + cols].dropna()

        if len(data) <= len(cols) + 1:
            raise EstimationError(
                f"Naive OLS has {len(data)} usable rows for {len(cols) + 1} parameters"
            )

        X = sm.add_constant(data[cols].astype(float), has_constant='add')
        fit = sm.OLS(data[spec.dependent].astype(float), X).fit()

        return {
            'n_obs': int(fit.nobs),
            'coefficients': _as_float_dict(fit.params),
            'standard_errors': _as_float_dict(fit.bse),
            'r_squared': float(fit.rsquared),
        }

    # ------------------------------------------------------------------
    # Stage 1: fixed effects
    # ------------------------------------------------------------------
    def estimation_sample(self, spec: ModelSpec) -> tuple:
        """
        Lagged design restricted to filter rows with every column present.

        Returns:
            (sample DataFrame, regressor column names)
        """
        design, columns = build_design(
            self.panel, spec.dependent, spec.regressors, spec.y_lags,
            self.entity_col, self.time_col,
        )
        keep = self._filter_mask(spec) & design[[spec.dependent] + columns].notna().all(axis=1)
        sample = design.loc[keep].reset_index(drop=True)

        if len(sample) <= len(columns):
            raise EstimationError(
                f"{len(sample)} usable rows for {len(columns)} regressors"
            )

        return sample, columns

    def fit_fixed_effects(self, sample: pd.DataFrame, dependent: str, columns: List[str]):
        """
        Within-entity demeaned OLS.

        Returns:
            (statsmodels fit, residual Series aligned to sample, within R²)

        Raises:
            EstimationError: A regressor has no within-entity variation, or the
                             demeaned design is rank deficient
        """
        fields = [dependent] + columns
        values = sample[fields].astype(float)
        demeaned = values - values.groupby(sample[self.entity_col]).transform('mean')

        scale = values[columns].abs().max().clip(lower=1.0)
        no_variation = [
            c for c in columns
            if demeaned[c].abs().max() <= ZERO_VARIANCE_TOL * scale[c]
        ]
        if no_variation:
            raise EstimationError(
                f"No within-entity variation (collinear with fixed effects): {no_variation}"
            )

        rank = np.linalg.matrix_rank(demeaned[columns].to_numpy())
        if rank < len(columns):
            raise EstimationError(
                f"Demeaned design is rank deficient (rank {rank} < {len(columns)} regressors)"
            )

        fit = sm.OLS(demeaned[dependent], demeaned[columns]).fit()
        resid = demeaned[dependent] - fit.fittedvalues

        tss = float((demeaned[dependent] ** 2).sum())
        within_r2 = 1.0 - float((resid ** 2).sum()) / tss if tss > 0 else np.nan

        return fit, resid, within_r2

    # ------------------------------------------------------------------
    # Stage 2: Newey-West
    # ------------------------------------------------------------------
    def fit_newey_west(self, sample: pd.DataFrame, dependent: str, columns: List[str], resid: pd.Series):
        """
        OLS of original y on const + regressors + stage-1 residual with
        panel Newey-West (Bartlett, maxlags=hac_maxlags) standard errors.

        Score autocovariances are summed within each entity only, so the
        result does not depend on how entities are ordered. sample must be
        sorted by (entity, week), which estimation_sample() guarantees.
        """
        X = sample[columns].astype(float).copy()
        X[RESID_COL] = resid.to_numpy()
        X = sm.add_constant(X, has_constant='add')

        if len(X) <= X.shape[1]:
            raise EstimationError(
                f"{len(X)} usable rows for {X.shape[1]} parameters in the Newey-West stage"
            )

        groups, _ = pd.factorize(sample[self.entity_col])
        return sm.OLS(sample[dependent].astype(float), X).fit(
            cov_type='hac-panel',
            cov_kwds={'groups': groups, 'maxlags': self.hac_maxlags, 'use_correction': 'hac'},
        )

    @staticmethod
    def f_test(fit, names: Sequence[str]) -> Dict[str, float]:
        """
        Joint Wald test that every coefficient in `names` is zero.

        Uses the covariance the fit was estimated with (HAC for stage 2).

        Returns:
            dict with f_stat, p_value, df_num, df_denom
        """
        params = list(fit.params.index)
        unknown = [n for n in names if n not in params]
        if unknown or not names:
            raise EstimationError(f"F-test names not in model: {unknown or 'none given'}")

        R = np.zeros((len(names), len(params)))
        for row, name in enumerate(names):
            R[row, params.index(name)] = 1.0

        res = fit.f_test(R)
        return {
            'f_stat': float(np.squeeze(res.fvalue)),
            'p_value': float(np.squeeze(res.pvalue)),
            'df_num': float(res.df_num),
            'df_denom': float(res.df_denom),
        }

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def run(self, spec: ModelSpec) -> ModelResult:
        """
        Estimate one model end to end.

        Raises:
            EstimationError / ConfigurationError: the model cannot be estimated;
            callers running a batch record the failure and continue
        """
        result = ModelResult(
            model_id=spec.model_id,
            description=spec.description,
            dependent=spec.dependent,
            sample_filter=spec.sample_filter,
        )

        naive = self.run_naive(spec)
        result.naive_n_obs = naive['n_obs']
        result.naive_coefficients = naive['coefficients']
        result.naive_standard_errors = naive['standard_errors']
        result.naive_r_squared = naive['r_squared']

        sample, columns = self.estimation_sample(spec)

        fe_fit, resid, within_r2 = self.fit_fixed_effects(sample, spec.dependent, columns)
        nw_fit = self.fit_newey_west(sample, spec.dependent, columns, resid)

        result.n_obs = int(nw_fit.nobs)
        result.n_entities = int(sample[self.entity_col].nunique())
        result.fe_coefficients = _as_float_dict(fe_fit.params)
        result.coefficients = _as_float_dict(nw_fit.params)
        result.standard_errors = _as_float_dict(nw_fit.bse)
        result.tvalues = _as_float_dict(nw_fit.tvalues)
        result.pvalues = _as_float_dict(nw_fit.pvalues)
        result.r_squared = float(nw_fit.rsquared)
        result.within_r_squared = within_r2

        if spec.ftest:
            result.f_test = self.f_test(nw_fit, spec.ftest)

        logger.info(f"  ✓ {spec.model_id}: N={result.n_obs:,}, entities={result.n_entities}, "
                    f"within R²={within_r2:.4f}")

        return result
