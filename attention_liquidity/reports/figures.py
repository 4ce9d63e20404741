"""
Diagnostic figures for the weekly panel and the regression results.

Figures are written as PNGs; nothing is shown interactively.
"""
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from attention_liquidity.regression.engine import ModelResult

logger = logging.getLogger(__name__)

sns.set_style("whitegrid")

DEFAULT_DPI = 150


def plot_weekly_distributions(
    panel: pd.DataFrame,
    columns: Sequence[str],
    output_dir: Union[str, Path],
    filename: str = "weekly_distributions.png"
) -> Path:
    """Histogram per weekly variable with mean and median marked."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    columns = [c for c in columns if c in panel.columns]
    if not columns:
        raise ValueError("No plottable columns in panel")

    n_rows = (len(columns) + 2) // 3
    fig, axes = plt.subplots(n_rows, 3, figsize=(18, 5 * n_rows), squeeze=False)
    axes = axes.flatten()

    for idx, col in enumerate(columns):
        ax = axes[idx]
        data = panel[col].dropna()

        if len(data) > 0:
            ax.hist(data, bins=50, alpha=0.7, edgecolor='black')
            ax.axvline(data.mean(), color='red', linestyle='--', linewidth=2, label='Mean')
            ax.axvline(data.median(), color='green', linestyle='--', linewidth=2, label='Median')
            ax.legend(fontsize=8)

        ax.set_title(f'{col}\n(N={len(data):,})', fontsize=10)
        ax.set_xlabel('Value')
        ax.set_ylabel('Count')
        ax.grid(alpha=0.3)

    # Remove empty subplots
    for idx in range(len(columns), len(axes)):
        fig.delaxes(axes[idx])

    plt.tight_layout()
    output_path = output_dir / filename
    plt.savefig(output_path, dpi=DEFAULT_DPI, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"  ✓ Saved: {output_path}")
    return output_path


def plot_correlation_matrix(
    panel: pd.DataFrame,
    columns: Sequence[str],
    output_dir: Union[str, Path],
    filename: str = "correlation_matrix.png"
) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    columns = [c for c in columns if c in panel.columns]
    corr = panel[columns].corr()

    fig = plt.figure(figsize=(12, 10))
    sns.heatmap(corr, annot=True, fmt='.3f', cmap='coolwarm', center=0,
                square=True, linewidths=1, cbar_kws={"shrink": 0.8})
    plt.title('Weekly Feature Correlation Matrix', fontsize=14, fontweight='bold')
    plt.tight_layout()

    output_path = output_dir / filename
    plt.savefig(output_path, dpi=DEFAULT_DPI, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"  ✓ Saved: {output_path}")
    return output_path


def plot_coefficients(
    results: Sequence[ModelResult],
    variable: str,
    output_dir: Union[str, Path],
    filename: Optional[str] = None
) -> Optional[Path]:
    """
    Point estimate and 95% HAC interval of one coefficient across models.

    Returns:
        Path of the figure, or None if no successful model contains `variable`
    """
    rows = [
        (r.model_id, r.coefficients[variable], r.standard_errors.get(variable, np.nan))
        for r in results
        if r.ok and variable in r.coefficients
    ]
    if not rows:
        logger.warning(f"  ⚠ No estimated model contains {variable}; skipping plot")
        return None

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    labels, coefs, ses = zip(*rows)
    positions = np.arange(len(labels))

    fig, ax = plt.subplots(figsize=(10, max(3, 0.4 * len(labels) + 1)))
    ax.errorbar(coefs, positions, xerr=1.96 * np.asarray(ses), fmt='o', capsize=3)
    ax.axvline(0, color='red', linestyle='--', linewidth=1)
    ax.set_yticks(positions)
    ax.set_yticklabels(labels)
    ax.invert_yaxis()
    ax.set_xlabel(f'{variable} (95% HAC interval)')
    ax.set_title(f'Coefficient on {variable}', fontsize=12, fontweight='bold')
    plt.tight_layout()

    output_path = output_dir / (filename or f"coef_{variable}.png")
    plt.savefig(output_path, dpi=DEFAULT_DPI, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"  ✓ Saved: {output_path}")
    return output_path
