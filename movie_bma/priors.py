"""
Model Space Priors
==================

Prior probabilities over linear models, expressed through model size.

Classes:
    - UniformModelPrior: every model equally likely
    - BetaBinomialModelPrior: beta-binomial distribution on model size with
      an optional hard cap (trunc) on the number of included predictors

Sizes and predictor counts passed to `log_prior` refer to the free
predictors only; `n_fixed` predictors that are always included count toward
the cap but not toward the combinatorics.
"""

import logging
from typing import Dict, Any, Optional

import numpy as np
from scipy.special import betaln, gammaln, logsumexp

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class UniformModelPrior:
    """Uniform prior over all 2^p models."""

    name = "uniform"
    trunc = None

    def log_prior(self, size: int, p: int, n_fixed: int = 0) -> float:
        if size < 0 or size > p:
            return -np.inf
        return -p * np.log(2.0)

    def max_size(self, p: int, n_fixed: int = 0) -> int:
        return p + n_fixed

    def __repr__(self) -> str:
        return "UniformModelPrior()"


class BetaBinomialModelPrior:
    """
    Beta-binomial prior on model size, optionally truncated.

    Size k of a model over p candidates follows BetaBinomial(p, a, b), and
    the mass of each size is spread evenly over its C(p, k) models. Models
    with more than `trunc` included predictors get zero prior probability.
    With a = b = 1 every size is equally likely, which penalizes each extra
    predictor more heavily as p grows.
    """

    name = "beta-binomial"

    def __init__(self, a: float = 1.0, b: float = 1.0, trunc: Optional[int] = None):
        if a <= 0 or b <= 0:
            raise ConfigurationError(f"Beta-binomial shape parameters must be positive, got a={a}, b={b}")
        if trunc is not None and trunc < 0:
            raise ConfigurationError(f"trunc must be non-negative, got {trunc}")

        self.a = float(a)
        self.b = float(b)
        self.trunc = None if trunc is None else int(trunc)
        self._normalizers: Dict[tuple, float] = {}

    def _log_size_mass(self, k: np.ndarray, p: int) -> np.ndarray:
        log_choose = gammaln(p + 1) - gammaln(k + 1) - gammaln(p - k + 1)
        return log_choose + betaln(k + self.a, p - k + self.b) - betaln(self.a, self.b)

    def _log_normalizer(self, p: int, n_fixed: int) -> float:
        """Log of the size mass kept after truncation."""
        key = (p, n_fixed)
        if key not in self._normalizers:
            limit = self.max_size(p, n_fixed) - n_fixed
            if limit >= p:
                self._normalizers[key] = 0.0
            else:
                sizes = np.arange(0, limit + 1, dtype=float)
                self._normalizers[key] = float(logsumexp(self._log_size_mass(sizes, p)))
        return self._normalizers[key]

    def log_prior(self, size: int, p: int, n_fixed: int = 0) -> float:
        if size < 0 or size > p:
            return -np.inf
        if self.trunc is not None and size + n_fixed > self.trunc:
            return -np.inf
        log_model = betaln(size + self.a, p - size + self.b) - betaln(self.a, self.b)
        return float(log_model - self._log_normalizer(p, n_fixed))

    def max_size(self, p: int, n_fixed: int = 0) -> int:
        if self.trunc is None:
            return p + n_fixed
        return min(p + n_fixed, self.trunc)

    def __repr__(self) -> str:
        return f"BetaBinomialModelPrior(a={self.a}, b={self.b}, trunc={self.trunc})"


def make_model_prior(config: Optional[Dict[str, Any]] = None):
    """
    Build a model prior from a configuration section.

    Args:
        config: e.g. {"type": "uniform"} or
            {"type": "beta-binomial", "a": 1, "b": 1, "trunc": 20}

    Returns:
        Model prior instance
    """
    config = config or {}
    prior_type = str(config.get('type', 'uniform')).lower()

    if prior_type == 'uniform':
        return UniformModelPrior()

    if prior_type in ('beta-binomial', 'beta_binomial', 'truncated-beta-binomial'):
        return BetaBinomialModelPrior(
            a=config.get('a', 1.0),
            b=config.get('b', 1.0),
            trunc=config.get('trunc')
        )

    raise ConfigurationError(
        f"Unknown model prior: {prior_type}. Choose from: uniform, beta-binomial"
    )
