"""
Batch runner over the model catalogue.

Runs every ModelSpec through one RegressionEngine. A model that cannot be
estimated is recorded as failed (with its naive baseline when that one is
estimable) and the batch carries on. Results come back in catalogue order
whatever the execution order, so n_jobs > 1 gives the same output.
"""
import logging
from typing import List, Optional, Sequence

import pandas as pd
from joblib import Parallel, delayed

from attention_liquidity.config import ENTITY_COL, HAC_MAXLAGS, TIME_COL
from attention_liquidity.errors import ConfigurationError, EstimationError
from attention_liquidity.regression.engine import ModelResult, RegressionEngine
from attention_liquidity.regression.specs import ModelSpec, build_model_catalogue

logger = logging.getLogger(__name__)


def run_model(engine: RegressionEngine, spec: ModelSpec) -> ModelResult:
    """Run one spec; structural failures become a failed ModelResult."""
    try:
        return engine.run(spec)
    except (EstimationError, ConfigurationError) as e:
        logger.warning(f"  ✗ {spec.model_id} failed: {e}")
        error = str(e)

    result = ModelResult(
        model_id=spec.model_id,
        description=spec.description,
        dependent=spec.dependent,
        sample_filter=spec.sample_filter,
        status='failed',
        error=error,
    )

    try:
        naive = engine.run_naive(spec)
        result.naive_n_obs = naive['n_obs']
        result.naive_coefficients = naive['coefficients']
        result.naive_standard_errors = naive['standard_errors']
        result.naive_r_squared = naive['r_squared']
    except (EstimationError, ConfigurationError) as naive_error:
        logger.warning(f"    naive baseline for {spec.model_id} also failed: {naive_error}")

    return result


class ModelRunner:
    """
    Drives RegressionEngine over a list of ModelSpecs.

    Args:
        panel: Merged weekly panel (read-only)
        specs: Models to run (defaults to build_model_catalogue())
        n_jobs: joblib workers; 1 runs in-process
    """

    def __init__(
        self,
        panel: pd.DataFrame,
        specs: Optional[Sequence[ModelSpec]] = None,
        n_jobs: int = 1,
        entity_col: str = ENTITY_COL,
        time_col: str = TIME_COL,
        hac_maxlags: int = HAC_MAXLAGS
    ):
        self.engine = RegressionEngine(panel, entity_col, time_col, hac_maxlags)
        self.specs = list(specs) if specs is not None else build_model_catalogue()
        self.n_jobs = n_jobs

        ids = [s.model_id for s in self.specs]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate model ids: {duplicates}")

    def run_all(self) -> List[ModelResult]:
        logger.info("=" * 60)
        logger.info(f"Running {len(self.specs)} models (n_jobs={self.n_jobs})")
        logger.info("=" * 60)

        if self.n_jobs == 1:
            results = [run_model(self.engine, spec) for spec in self.specs]
        else:
            results = Parallel(n_jobs=self.n_jobs, backend='loky')(
                delayed(run_model)(self.engine, spec) for spec in self.specs
            )

        n_failed = sum(1 for r in results if not r.ok)
        logger.info(f"Completed {len(results) - n_failed}/{len(results)} models "
                    f"({n_failed} failed)")
        for r in results:
            if not r.ok:
                logger.info(f"  failed: {r.model_id} - {r.error}")

        return results
