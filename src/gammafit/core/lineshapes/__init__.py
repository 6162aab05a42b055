"""Peak shapes of the region model."""

from gammafit.core.lineshapes.gaussian import (
    GaussianTerms,
    clamp_mu,
    gaussian,
    gaussian_terms,
    mu,
)

__all__ = ["GaussianTerms", "clamp_mu", "gaussian", "gaussian_terms", "mu"]
