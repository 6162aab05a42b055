"""Region fitting: vary masks, residual model, optimizer and cycle controller."""

from gammafit.core.fitting.cycle import (
    CycleState,
    ModelCheck,
    check_model,
    fit_region,
    rank_records,
    run_cycle,
)
from gammafit.core.fitting.optimizer import (
    LevenbergMarquardtOptimizer,
    Optimizer,
    OptimizerResult,
    SolverTolerances,
    tolerance_index,
)
from gammafit.core.fitting.parameters import (
    ParameterKind,
    ParameterSlot,
    PeakVary,
    VaryMask,
    extract_vector,
    write_vector,
)
from gammafit.core.fitting.residuals import RegionResidualModel, model_counts
from gammafit.core.fitting.uncertainty import (
    PeakUncertainty,
    StateUncertainty,
    propagate_uncertainty,
)

__all__ = [
    "CycleState",
    "LevenbergMarquardtOptimizer",
    "ModelCheck",
    "Optimizer",
    "OptimizerResult",
    "ParameterKind",
    "ParameterSlot",
    "PeakUncertainty",
    "PeakVary",
    "RegionResidualModel",
    "SolverTolerances",
    "StateUncertainty",
    "VaryMask",
    "check_model",
    "extract_vector",
    "fit_region",
    "model_counts",
    "propagate_uncertainty",
    "rank_records",
    "run_cycle",
    "tolerance_index",
    "write_vector",
]
