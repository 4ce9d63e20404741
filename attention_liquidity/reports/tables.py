"""
Result tables and text summaries

Responsibility:
- Flatten ModelResult records into long DataFrames (coefficients, naive
  baseline, F-tests)
- Descriptive statistics of the weekly variables
- Write CSVs and a markdown summary to the output directory
"""
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from attention_liquidity.regression.engine import ModelResult

logger = logging.getLogger(__name__)

COEFFICIENT_COLUMNS = [
    'model_id', 'status', 'variable', 'coef', 'se', 'tstat', 'pvalue',
    'n_obs', 'n_entities', 'r2', 'within_r2', 'fe_coef',
]


def results_to_frame(results: Sequence[ModelResult]) -> pd.DataFrame:
    """
    One row per (model, stage-2 coefficient). Failed models get a single
    row with the status and no variable.
    """
    rows = []
    for r in results:
        if not r.ok:
            rows.append({'model_id': r.model_id, 'status': r.status, 'variable': None})
            continue
        for name, coef in r.coefficients.items():
            rows.append({
                'model_id': r.model_id,
                'status': r.status,
                'variable': name,
                'coef': coef,
                'se': r.standard_errors.get(name, np.nan),
                'tstat': r.tvalues.get(name, np.nan),
                'pvalue': r.pvalues.get(name, np.nan),
                'n_obs': r.n_obs,
                'n_entities': r.n_entities,
                'r2': r.r_squared,
                'within_r2': r.within_r_squared,
                'fe_coef': r.fe_coefficients.get(name, np.nan),
            })
    return pd.DataFrame(rows, columns=COEFFICIENT_COLUMNS)


def naive_to_frame(results: Sequence[ModelResult]) -> pd.DataFrame:
    rows = []
    for r in results:
        for name, coef in r.naive_coefficients.items():
            se = r.naive_standard_errors.get(name, np.nan)
            rows.append({
                'model_id': r.model_id,
                'variable': name,
                'coef': coef,
                'se': se,
                'tstat': coef / se if se and np.isfinite(se) else np.nan,
                'n_obs': r.naive_n_obs,
                'r2': r.naive_r_squared,
            })
    return pd.DataFrame(rows, columns=['model_id', 'variable', 'coef', 'se', 'tstat', 'n_obs', 'r2'])


def ftests_to_frame(results: Sequence[ModelResult]) -> pd.DataFrame:
    rows = [
        {'model_id': r.model_id, **r.f_test}
        for r in results if r.f_test is not None
    ]
    return pd.DataFrame(rows, columns=['model_id', 'f_stat', 'p_value', 'df_num', 'df_denom'])


def _stars(p: float) -> str:
    if not np.isfinite(p):
        return ''
    if p < 0.01:
        return '***'
    if p < 0.05:
        return '**'
    if p < 0.10:
        return '*'
    return ''


def format_model_summary(result: ModelResult) -> str:
    """Compact text block: HAC estimates next to the naive OLS baseline."""
    lines = [f"Model {result.model_id}: {result.description}"]
    if result.sample_filter:
        lines.append(f"  Sample: {result.sample_filter}")

    if not result.ok:
        lines.append(f"  FAILED: {result.error}")
    else:
        lines.append(f"  N={result.n_obs:,}  entities={result.n_entities}  "
                     f"R²={result.r_squared:.4f}  within R²={result.within_r_squared:.4f}")
        lines.append(f"  {'variable':<34} {'coef':>12} {'HAC se':>12} {'t':>8}")
        lines.append("  " + "-" * 70)
        for name, coef in result.coefficients.items():
            se = result.standard_errors.get(name, np.nan)
            t = result.tvalues.get(name, np.nan)
            p = result.pvalues.get(name, np.nan)
            lines.append(f"  {name:<34} {coef:>12.6f} {se:>12.6f} {t:>8.3f}{_stars(p)}")

    if result.f_test:
        ft = result.f_test
        lines.append(f"  Joint F-test: F({ft['df_num']:.0f}, {ft['df_denom']:.0f}) = "
                     f"{ft['f_stat']:.4f}, p = {ft['p_value']:.4f}")

    if result.naive_coefficients:
        lines.append(f"  Naive OLS (N={result.naive_n_obs:,}, R²={result.naive_r_squared:.4f}):")
        for name, coef in result.naive_coefficients.items():
            se = result.naive_standard_errors.get(name, np.nan)
            lines.append(f"    {name:<32} {coef:>12.6f} ({se:.6f})")

    return "\n".join(lines)


def summary_statistics(
    panel: pd.DataFrame,
    columns: Sequence[str],
    by: Optional[str] = None
) -> pd.DataFrame:
    """
    count / missing / mean / std / quartiles / min / max per column.

    With `by` (e.g. a tercile label column), statistics are computed per group
    and the group is the outer index level.
    """
    columns = [c for c in columns if c in panel.columns]

    def _describe(df: pd.DataFrame) -> pd.DataFrame:
        stats = df[columns].describe().T
        stats.insert(1, 'missing', df[columns].isna().sum())
        return stats

    if by is None:
        return _describe(panel)

    return pd.concat({key: _describe(group) for key, group in panel.groupby(by)}, names=[by, 'variable'])


def tercile_labels(panel: pd.DataFrame) -> pd.Series:
    """mc25/mc50/mc75 dummies -> a single label column."""
    labels = pd.Series('mc50', index=panel.index)
    labels[panel['mc25'] == 1] = 'mc25'
    labels[panel['mc75'] == 1] = 'mc75'
    return labels


def write_results(
    results: Sequence[ModelResult],
    output_dir: Union[str, Path],
    panel: Optional[pd.DataFrame] = None,
    summary_columns: Sequence[str] = ()
) -> Dict[str, Path]:
    """
    Write coefficient, naive and F-test CSVs plus summary.md.

    Returns:
        dict name -> written path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {}

    paths['coefficients'] = output_dir / 'model_coefficients.csv'
    results_to_frame(results).to_csv(paths['coefficients'], index=False)

    paths['naive'] = output_dir / 'naive_coefficients.csv'
    naive_to_frame(results).to_csv(paths['naive'], index=False)

    paths['f_tests'] = output_dir / 'f_tests.csv'
    ftests_to_frame(results).to_csv(paths['f_tests'], index=False)

    sections = ["# Weekly attention panel regressions", ""]
    n_ok = sum(1 for r in results if r.ok)
    sections.append(f"{n_ok}/{len(results)} models estimated.")
    sections.append("")

    if panel is not None and summary_columns:
        stats = summary_statistics(panel, summary_columns)
        paths['summary_statistics'] = output_dir / 'summary_statistics.csv'
        stats.to_csv(paths['summary_statistics'])
        sections += ["## Summary statistics", "", "```", stats.round(4).to_string(), "```", ""]

        if {'mc25', 'mc50', 'mc75'} <= set(panel.columns):
            by_tercile = summary_statistics(
                panel.assign(tercile=tercile_labels(panel)), summary_columns, by='tercile'
            )
            paths['summary_statistics_by_tercile'] = output_dir / 'summary_statistics_by_tercile.csv'
            by_tercile.to_csv(paths['summary_statistics_by_tercile'])
            sections += ["## Summary statistics by market-cap tercile", "",
                         "```", by_tercile.round(4).to_string(), "```", ""]

    sections += ["## Models", ""]
    for r in results:
        sections += ["```", format_model_summary(r), "```", ""]

    paths['summary'] = output_dir / 'summary.md'
    paths['summary'].write_text("\n".join(sections), encoding='utf-8')

    for name, path in paths.items():
        logger.info(f"  ✓ Saved {name}: {path}")

    return paths
