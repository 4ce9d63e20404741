"""
Pipeline configuration

Module-level defaults for paths, the week index epoch, market-cap cutoffs and
estimation settings. Any of them can be overridden from the environment (or a
.env file in the working directory) through PipelineConfig.from_env().
"""
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Tuple

import pandas as pd
from dotenv import load_dotenv

load_dotenv()


# ============================================================
# Paths
# ============================================================

PRICING_PATH = "data/raw/daily_pricing.parquet"
ATTENTION_PATH = "data/raw/weekly_attention.parquet"
OUTPUT_DIR = "data/results"
WEEKLY_PANEL_FILENAME = "weekly_panel.parquet"


# ============================================================
# Feature construction
# ============================================================

# Week 1 starts on this Sunday. Attention series are weekly with weeks
# starting on Sunday, so both panels must share this epoch.
WEEK_EPOCH = pd.Timestamp("2004-01-04")

# Whole-sample average market cap cutoffs (same units as `marketcap`)
MC_LOWER_CUTOFF = 2_000_000_000.0
MC_UPPER_CUTOFF = 10_000_000_000.0


# ============================================================
# Estimation
# ============================================================

DEPENDENT = "interest_index"
ENTITY_COL = "id"
TIME_COL = "week"
Y_LAGS = (1, 2)
HAC_MAXLAGS = 5
CONTROLS = ("logmarketcap1w",)

# Merged panels smaller than this are treated as a week-index mismatch
MIN_MERGED_ROWS = 1
# Match rates below this are logged as a warning
LOW_MATCH_RATE = 0.5


@dataclass(frozen=True)
class PipelineConfig:
    pricing_path: str = PRICING_PATH
    attention_path: str = ATTENTION_PATH
    output_dir: str = OUTPUT_DIR
    week_epoch: pd.Timestamp = WEEK_EPOCH
    mc_lower_cutoff: float = MC_LOWER_CUTOFF
    mc_upper_cutoff: float = MC_UPPER_CUTOFF
    dependent: str = DEPENDENT
    y_lags: Tuple[int, ...] = Y_LAGS
    hac_maxlags: int = HAC_MAXLAGS
    controls: Tuple[str, ...] = CONTROLS
    min_merged_rows: int = MIN_MERGED_ROWS
    n_jobs: int = 1

    @property
    def weekly_panel_path(self) -> Path:
        return Path(self.output_dir) / WEEKLY_PANEL_FILENAME

    @classmethod
    def from_env(cls, **overrides) -> "PipelineConfig":
        """
        Build a config from ATTN_* environment variables.

        Recognised: ATTN_PRICING_PATH, ATTN_ATTENTION_PATH, ATTN_OUTPUT_DIR,
        ATTN_WEEK_EPOCH, ATTN_MC_LOWER, ATTN_MC_UPPER, ATTN_N_JOBS.
        Keyword overrides win over the environment.
        """
        cfg = cls()
        env = {}

        if os.environ.get("ATTN_PRICING_PATH"):
            env["pricing_path"] = os.environ["ATTN_PRICING_PATH"]
        if os.environ.get("ATTN_ATTENTION_PATH"):
            env["attention_path"] = os.environ["ATTN_ATTENTION_PATH"]
        if os.environ.get("ATTN_OUTPUT_DIR"):
            env["output_dir"] = os.environ["ATTN_OUTPUT_DIR"]
        if os.environ.get("ATTN_WEEK_EPOCH"):
            env["week_epoch"] = pd.Timestamp(os.environ["ATTN_WEEK_EPOCH"])
        if os.environ.get("ATTN_MC_LOWER"):
            env["mc_lower_cutoff"] = float(os.environ["ATTN_MC_LOWER"])
        if os.environ.get("ATTN_MC_UPPER"):
            env["mc_upper_cutoff"] = float(os.environ["ATTN_MC_UPPER"])
        if os.environ.get("ATTN_N_JOBS"):
            env["n_jobs"] = int(os.environ["ATTN_N_JOBS"])

        env.update({k: v for k, v in overrides.items() if v is not None})
        return replace(cfg, **env)
