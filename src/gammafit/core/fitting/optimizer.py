"""Levenberg-Marquardt optimization of region models.

The engine drives the solver through a small contract: residual and Jacobian
callbacks plus a starting vector in, final vector and parameter covariance
out. :class:`LevenbergMarquardtOptimizer` fulfils it with
``scipy.optimize.least_squares(method="lm")`` (MINPACK ``lmder``).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np
from scipy.optimize import least_squares

from gammafit.core.constants import EVALUATIONS_PER_VARIABLE, FTOL_TABLE, XTOL_TABLE
from gammafit.core.domain.config import ConvergenceCriteria, FitParameters, PeakWidthMode
from gammafit.core.shared.exceptions import NumericsError, OptimizerDivergenceError
from gammafit.core.shared.typing import FloatArray

ResidualFunction = Callable[[FloatArray], FloatArray]
JacobianFunction = Callable[[FloatArray], FloatArray]

# MINPACK status codes of scipy.optimize.least_squares(method="lm")
_STATUS_MAX_NFEV = 0


def tolerance_index(criteria: ConvergenceCriteria, mode: PeakWidthMode) -> int:
    """Entry of the tolerance table used for a criteria/width-mode pair."""
    if criteria is ConvergenceCriteria.LARGER:
        return 2 if mode is PeakWidthMode.VARIES else 3
    if criteria is ConvergenceCriteria.SMALLER:
        return 1
    return 2


@dataclass(frozen=True, slots=True)
class SolverTolerances:
    """Relative tolerances on the sum of squares (ftol) and the parameters (xtol)."""

    ftol: float
    xtol: float

    @classmethod
    def for_parameters(cls, parameters: FitParameters) -> SolverTolerances:
        index = tolerance_index(parameters.convergence_criteria, parameters.peak_width_mode)
        return cls(ftol=FTOL_TABLE[index], xtol=XTOL_TABLE[index])


@dataclass(frozen=True, slots=True)
class OptimizerResult:
    """Converged parameter vector and its covariance.

    Attributes:
        x: Final parameter vector
        covariance: ``inv(J^T J)`` at ``x``, in vector order
        nfev: Number of residual evaluations
        message: Solver termination message
    """

    x: FloatArray
    covariance: FloatArray
    nfev: int
    message: str


@runtime_checkable
class Optimizer(Protocol):
    """Nonlinear least-squares solver used by the cycle controller."""

    def solve(
        self,
        residuals: ResidualFunction,
        jacobian: JacobianFunction,
        x0: FloatArray,
    ) -> OptimizerResult:
        """Minimize ``sum(residuals(x)**2)`` starting from ``x0``.

        Raises:
            OptimizerDivergenceError: The solver failed or did not converge
        """
        ...


def parameter_covariance(jacobian: FloatArray) -> FloatArray:
    """Unscaled parameter covariance ``inv(J^T J)``.

    Falls back to the pseudo-inverse when ``J^T J`` is singular.
    """
    jtj = jacobian.T @ jacobian
    try:
        return np.linalg.inv(jtj)
    except np.linalg.LinAlgError:
        return np.linalg.pinv(jtj)


@dataclass(frozen=True)
class LevenbergMarquardtOptimizer:
    """MINPACK Levenberg-Marquardt through scipy.

    The evaluation budget is ``100 * (n_variables + 1)``. Parameters are
    scaled by the Jacobian column norms and the initial step bound factor is
    MINPACK's 100. The gradient test is disabled by passing machine epsilon,
    the smallest tolerance scipy accepts.
    """

    ftol: float = FTOL_TABLE[2]
    xtol: float = XTOL_TABLE[2]
    gtol: float = float(np.finfo(float).eps)

    @classmethod
    def from_parameters(cls, parameters: FitParameters) -> LevenbergMarquardtOptimizer:
        tolerances = SolverTolerances.for_parameters(parameters)
        return cls(ftol=tolerances.ftol, xtol=tolerances.xtol)

    def solve(
        self,
        residuals: ResidualFunction,
        jacobian: JacobianFunction,
        x0: FloatArray,
    ) -> OptimizerResult:
        x0 = np.asarray(x0, dtype=float)
        max_nfev = EVALUATIONS_PER_VARIABLE * (x0.size + 1)
        try:
            result = least_squares(
                residuals,
                x0,
                jac=jacobian,
                method="lm",
                x_scale="jac",
                ftol=self.ftol,
                xtol=self.xtol,
                gtol=self.gtol,
                max_nfev=max_nfev,
            )
        except (ValueError, np.linalg.LinAlgError, FloatingPointError) as error:
            msg = f"Exception in least squares optimizer: {error}"
            raise OptimizerDivergenceError(msg) from error

        if result.status == _STATUS_MAX_NFEV:
            msg = (
                "Exception in least squares optimizer: "
                f"maximal count ({max_nfev}) exceeded for evaluations"
            )
            raise OptimizerDivergenceError(msg)
        if result.status < 0:
            msg = f"Exception in least squares optimizer: {result.message}"
            raise OptimizerDivergenceError(msg)

        if not np.all(np.isfinite(result.x)) or not np.all(np.isfinite(result.fun)):
            raise NumericsError("Optimizer returned non-finite parameters or residuals")

        covariance = parameter_covariance(np.asarray(result.jac, dtype=float))
        if not np.all(np.isfinite(covariance)):
            raise NumericsError("Parameter covariance is not finite")

        return OptimizerResult(
            x=np.asarray(result.x, dtype=float),
            covariance=covariance,
            nfev=int(result.nfev),
            message=str(result.message),
        )
