"""
Declarative model catalogue

Every regression is described by a ModelSpec and estimated by the same
RegressionEngine.run(). The catalogue is:

- 1 naive full-sample model (fixed effects + HAC, no lags of y)
- 7 base variables x {full sample, mc25, mc50, mc75}
- 4 combined models
- 7 robustness models adding noisy x variable, with a joint F-test on the
  interaction lags
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from attention_liquidity.config import CONTROLS, DEPENDENT, Y_LAGS
from attention_liquidity.regression.lags import LagSpec

# base variable -> (lo, hi) lag range
BASE_VARIABLES: Dict[str, Tuple[int, int]] = {
    'vol_1w': (0, 3),
    'logvolume1w': (0, 2),
    'logturnover1w': (0, 2),
    'rel_spread1w': (0, 2),
    'logilliq1w': (0, 2),
    'logh_logl1w': (0, 2),
    'ret5d1w': (0, 1),
}

TERCILES = ('mc25', 'mc50', 'mc75')

COMBINED_MODELS: Dict[str, Tuple[str, ...]] = {
    'combined_liquidity': ('logvolume1w', 'logturnover1w', 'rel_spread1w', 'logilliq1w'),
    'combined_risk': ('vol_1w', 'logh_logl1w', 'ret5d1w'),
    'combined_trading': ('vol_1w', 'logvolume1w', 'rel_spread1w'),
    'combined_all': tuple(BASE_VARIABLES),
}

INTERACTION_FLAG = 'noisy'


@dataclass(frozen=True)
class ModelSpec:
    """
    One regression.

    sample_filter is a pandas expression evaluated on the panel
    (e.g. "mc25 == 1"); rows where it is False are excluded.
    ftest lists regressor column names tested jointly against zero.
    """
    model_id: str
    description: str
    regressors: Tuple[LagSpec, ...]
    dependent: str = DEPENDENT
    y_lags: Tuple[int, ...] = Y_LAGS
    sample_filter: Optional[str] = None
    ftest: Tuple[str, ...] = ()

    @property
    def naive_regressors(self) -> List[str]:
        """Contemporaneous base variables and controls for the naive OLS baseline."""
        names = []
        for spec in self.regressors:
            if spec.interact is None and spec.variable not in names:
                names.append(spec.variable)
        return names


def base_block(variable: str) -> LagSpec:
    lo, hi = BASE_VARIABLES[variable]
    return LagSpec(variable, lo, hi)


def control_blocks(exclude: Tuple[str, ...] = (), controls: Tuple[str, ...] = CONTROLS) -> Tuple[LagSpec, ...]:
    return tuple(LagSpec(c, 0, 0) for c in controls if c not in exclude)


def build_model_catalogue(
    dependent: str = DEPENDENT,
    controls: Tuple[str, ...] = CONTROLS,
    y_lags: Tuple[int, ...] = Y_LAGS
) -> List[ModelSpec]:
    """
    Enumerate every model in run order.

    Model ids are stable and used as keys in the result tables:
    naive_full, <var>_full, <var>_mc25 ..., combined_*, <var>_noisy.
    """
    specs = []

    # Naive first-pass model: every base variable, no lags of y
    naive_blocks = tuple(base_block(v) for v in BASE_VARIABLES) + control_blocks(controls=controls)
    specs.append(ModelSpec(
        model_id='naive_full',
        description='All base variables, fixed effects + HAC, no lags of dependent',
        regressors=naive_blocks,
        dependent=dependent,
        y_lags=(),
    ))

    # Base variables: full sample and market-cap terciles
    for variable in BASE_VARIABLES:
        blocks = (base_block(variable),) + control_blocks((variable,), controls)
        specs.append(ModelSpec(
            model_id=f'{variable}_full',
            description=f'{base_block(variable).label()}, full sample',
            regressors=blocks,
            dependent=dependent,
            y_lags=y_lags,
        ))
        for tercile in TERCILES:
            specs.append(ModelSpec(
                model_id=f'{variable}_{tercile}',
                description=f'{base_block(variable).label()}, {tercile} subsample',
                regressors=blocks,
                dependent=dependent,
                y_lags=y_lags,
                sample_filter=f'{tercile} == 1',
            ))

    # Combined models
    for model_id, variables in COMBINED_MODELS.items():
        blocks = tuple(base_block(v) for v in variables) + control_blocks(variables, controls)
        specs.append(ModelSpec(
            model_id=model_id,
            description=f"Combined: {', '.join(variables)}",
            regressors=blocks,
            dependent=dependent,
            y_lags=y_lags,
        ))

    # Robustness: noisy x variable with joint F-test on the interaction lags
    for variable in BASE_VARIABLES:
        lo, hi = BASE_VARIABLES[variable]
        interaction = LagSpec(variable, lo, hi, interact=INTERACTION_FLAG)
        blocks = (base_block(variable), interaction) + control_blocks((variable,), controls)
        specs.append(ModelSpec(
            model_id=f'{variable}_noisy',
            description=f'{base_block(variable).label()} + {interaction.label()}',
            regressors=blocks,
            dependent=dependent,
            y_lags=y_lags,
            ftest=tuple(interaction.columns),
        ))

    return specs


def get_model(model_id: str, catalogue: Optional[List[ModelSpec]] = None) -> ModelSpec:
    catalogue = catalogue if catalogue is not None else build_model_catalogue()
    for spec in catalogue:
        if spec.model_id == model_id:
            return spec
    raise KeyError(f"Unknown model_id: {model_id}")
