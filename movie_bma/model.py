"""
Bayesian Model Averaging Module - Phase 2
==========================================

Averages over linear regression models that differ in which predictors
they include.

Each model is an intercept plus a subset of the candidate predictors. Its
marginal likelihood uses the unit-information (BIC) approximation,
exp(-BIC / 2), and is combined with a model-space prior from `priors`.

Features:
    - Exhaustive enumeration for small predictor sets
    - Metropolis-Hastings model search (add/delete and swap moves) for
      large predictor sets, started from a marginal-association ranking
    - Marginal inclusion probabilities and model-averaged coefficients
    - Fitted values and predictions for any visited model or the average
"""

import logging
from itertools import combinations
from typing import Dict, Any, Optional, Tuple, List
from datetime import datetime

import numpy as np
import pandas as pd
from scipy import stats
from scipy.special import logsumexp

from .exceptions import (
    SchemaError, DataSufficiencyError, ConfigurationError, PredictionInputError
)
from .features import build_design_matrix
from .priors import UniformModelPrior, make_model_prior

logger = logging.getLogger(__name__)

NULL_MODEL_LABEL = "(Intercept)"
METHODS = ('auto', 'enumerate', 'mcmc')


class ModelFit:
    """Least-squares fit of a single model, scored by BIC."""

    def __init__(
        self,
        included: Tuple[int, ...],
        coefficients: np.ndarray,
        rss: float,
        rank: int,
        n_obs: int
    ):
        self.included = included
        self.coefficients = coefficients
        self.rss = rss
        self.rank = rank
        self.n_obs = n_obs
        self.n_params = len(included) + 1

    @property
    def is_degenerate(self) -> bool:
        return self.rank < self.n_params

    @property
    def bic(self) -> float:
        if self.is_degenerate:
            return np.inf
        rss = max(self.rss, np.finfo(float).tiny)
        return self.n_obs * np.log(rss / self.n_obs) + self.n_params * np.log(self.n_obs)

    @property
    def log_marginal(self) -> float:
        return -0.5 * self.bic


def ols_fit(X: np.ndarray, y: np.ndarray, included: Tuple[int, ...] = ()) -> ModelFit:
    """
    Fit y on an intercept plus the columns `included` of X.

    Args:
        X: Full predictor array of shape (n_samples, n_predictors)
        y: Response vector
        included: Column indices of X in the model

    Returns:
        ModelFit with coefficients ordered [intercept, *included]
    """
    n = len(y)
    design = np.column_stack([np.ones(n), X[:, list(included)]]) if included else np.ones((n, 1))
    coefficients, _, rank, _ = np.linalg.lstsq(design, y, rcond=None)
    residuals = y - design @ coefficients
    return ModelFit(tuple(included), coefficients, float(residuals @ residuals), int(rank), n)


def marginal_association(X: pd.DataFrame, y: pd.Series) -> pd.DataFrame:
    """
    Rank predictors by the significance of their simple regression on y.

    Args:
        X: Predictor matrix
        y: Response

    Returns:
        DataFrame indexed by predictor with columns r, p_value, score,
        sorted by decreasing score (score = -log10 p_value)
    """
    rows = {}
    y_values = y.to_numpy(dtype=float)

    for col in X.columns:
        x = X[col].to_numpy(dtype=float)
        if np.ptp(x) == 0:
            rows[col] = (0.0, 1.0)
            continue
        fit = stats.linregress(x, y_values)
        rows[col] = (float(fit.rvalue), float(fit.pvalue))

    table = pd.DataFrame.from_dict(rows, orient='index', columns=['r', 'p_value'])
    table['score'] = -np.log10(table['p_value'].clip(lower=1e-300))
    return table.sort_values('score', ascending=False, kind='mergesort')


def model_label(names: List[str]) -> str:
    """Readable label for a model given its included predictor names."""
    return " + ".join(names) if names else NULL_MODEL_LABEL


class SearchAccumulator:
    """
    Running state of a sampled model search.

    Holds visit counts per visited model and running inclusion sums per
    predictor (overall and for each half of the iterations). Memory grows
    with the number of distinct models visited, never with the size of the
    model space.
    """

    def __init__(self, n_predictors: int, n_iterations: int):
        self.n_iterations = n_iterations
        self.visits: Dict[Tuple[int, ...], int] = {}
        self.inclusion_sums = np.zeros(n_predictors)
        self.half_sums = np.zeros((2, n_predictors))
        self.n_recorded = 0
        self.n_accepted = 0
        self._midpoint = n_iterations // 2

    def record(self, key: Tuple[int, ...], accepted: bool = False) -> None:
        self.visits[key] = self.visits.get(key, 0) + 1
        idx = list(key)
        self.inclusion_sums[idx] += 1
        half = 0 if self.n_recorded < self._midpoint else 1
        self.half_sums[half, idx] += 1
        self.n_recorded += 1
        if accepted:
            self.n_accepted += 1

    def inclusion_probabilities(self) -> np.ndarray:
        return self.inclusion_sums / max(self.n_recorded, 1)

    def half_inclusion_probabilities(self) -> Tuple[np.ndarray, np.ndarray]:
        """Inclusion estimates from the first and second half of the walk."""
        first_n = min(self._midpoint, self.n_recorded)
        second_n = self.n_recorded - first_n
        first = self.half_sums[0] / first_n if first_n else np.full(self.half_sums.shape[1], np.nan)
        second = self.half_sums[1] / second_n if second_n else np.full(self.half_sums.shape[1], np.nan)
        return first, second

    def posterior(self) -> Dict[Tuple[int, ...], float]:
        total = max(self.n_recorded, 1)
        return {key: count / total for key, count in self.visits.items()}

    @property
    def acceptance_rate(self) -> float:
        return self.n_accepted / max(self.n_recorded, 1)


class BMAResult:
    """
    Posterior distribution over models plus everything derived from it.

    Models are identified by labels such as "x1 + x2"; the intercept-only
    model is "(Intercept)".
    """

    def __init__(
        self,
        X: pd.DataFrame,
        y: pd.Series,
        fits: Dict[Tuple[int, ...], ModelFit],
        posterior: Dict[Tuple[int, ...], float],
        log_priors: Dict[Tuple[int, ...], float],
        inclusion: np.ndarray,
        method: str,
        model_prior,
        include_always: Optional[List[str]] = None,
        accumulator: Optional[SearchAccumulator] = None,
        ordering: Optional[List[str]] = None
    ):
        self.X = X
        self.y = y
        self.predictor_names = list(X.columns)
        self.method = method
        self.model_prior = model_prior
        self.include_always = list(include_always or [])
        self.accumulator = accumulator
        self.ordering = ordering
        self._fits = fits
        self._log_priors = log_priors

        keys = sorted(posterior, key=lambda k: (-posterior[k], len(k), k))
        self._keys = {self._label(key): key for key in keys}

        self.posterior = pd.Series(
            [posterior[key] for key in keys],
            index=[self._label(key) for key in keys],
            name='posterior_probability'
        )
        self.prior_probabilities = pd.Series(
            [np.exp(log_priors[key]) for key in keys],
            index=self.posterior.index,
            name='prior_probability'
        )
        self.inclusion_probabilities = pd.Series(
            inclusion, index=self.predictor_names, name='inclusion_probability'
        )

    def _label(self, key: Tuple[int, ...]) -> str:
        return model_label([self.predictor_names[i] for i in key])

    @property
    def n_models(self) -> int:
        return len(self.posterior)

    @property
    def highest_probability_model(self) -> str:
        return self.posterior.index[0]

    def model_key(self, label: str) -> Tuple[int, ...]:
        if label not in self._keys:
            raise KeyError(f"Model not in posterior: {label}")
        return self._keys[label]

    def model_fit(self, label: str) -> ModelFit:
        return self._fits[self.model_key(label)]

    def model_predictors(self, label: str) -> List[str]:
        return [self.predictor_names[i] for i in self.model_key(label)]

    def supported_models(self) -> pd.Series:
        """Posterior restricted to models with nonzero probability."""
        return self.posterior[self.posterior > 0]

    def renormalized_posterior(self) -> pd.Series:
        """
        Posterior from prior × marginal likelihood, normalized over the
        models in this result. Equals `posterior` for enumeration.
        """
        log_post = np.array([
            self._log_priors[self.model_key(label)] + self.model_fit(label).log_marginal
            for label in self.posterior.index
        ])
        finite = np.isfinite(log_post)
        probs = np.zeros_like(log_post)
        if finite.any():
            probs[finite] = np.exp(log_post[finite] - logsumexp(log_post[finite]))
        return pd.Series(probs, index=self.posterior.index, name='renormalized_probability')

    def renormalized_inclusion(self) -> pd.Series:
        probs = self.renormalized_posterior()
        inclusion = np.zeros(len(self.predictor_names))
        for label, prob in probs.items():
            inclusion[list(self.model_key(label))] += prob
        return pd.Series(inclusion, index=self.predictor_names, name='renormalized_inclusion')

    def top_models(self, n: int = 5) -> pd.DataFrame:
        """
        Summary table of the n most probable models.

        Returns:
            DataFrame with one row per model: label, size, posterior and
            prior probability, BIC, R² and one 0/1 column per predictor
        """
        tss = float(((self.y - self.y.mean()) ** 2).sum())
        rows = []
        for label in self.posterior.index[:n]:
            fit = self.model_fit(label)
            row = {
                'model': label,
                'n_predictors': len(fit.included),
                'posterior_probability': float(self.posterior[label]),
                'prior_probability': float(self.prior_probabilities[label]),
                'bic': fit.bic,
                'r2': 1.0 - fit.rss / tss if tss > 0 else np.nan,
            }
            for i, name in enumerate(self.predictor_names):
                row[name] = int(i in fit.included)
            rows.append(row)
        return pd.DataFrame(rows)

    def _coefficient_covariance(self, fit: ModelFit) -> np.ndarray:
        X = self.X.to_numpy(dtype=float)
        design = np.column_stack([np.ones(len(X)), X[:, list(fit.included)]])
        dof = max(fit.n_obs - fit.n_params, 1)
        return (fit.rss / dof) * np.linalg.pinv(design.T @ design)

    def coefficient_summary(self) -> pd.DataFrame:
        """
        Model-averaged coefficients.

        Posterior mean and standard deviation mix the per-model OLS
        estimates (excluded predictors contribute zero) with their sampling
        variance.

        Returns:
            DataFrame indexed by Intercept and predictor names with columns
            post_mean, post_sd, p_nonzero
        """
        names = ['Intercept'] + self.predictor_names
        mean = np.zeros(len(names))
        second_moment = np.zeros(len(names))

        for label, prob in self.supported_models().items():
            fit = self.model_fit(label)
            positions = [0] + [i + 1 for i in fit.included]
            variance = np.diag(self._coefficient_covariance(fit))
            mean[positions] += prob * fit.coefficients
            second_moment[positions] += prob * (fit.coefficients ** 2 + variance)

        p_nonzero = np.concatenate([[1.0], self.inclusion_probabilities.to_numpy()])
        sd = np.sqrt(np.clip(second_moment - mean ** 2, 0, None))

        return pd.DataFrame(
            {'post_mean': mean, 'post_sd': sd, 'p_nonzero': p_nonzero},
            index=names
        )

    def _predict_with(self, fit: ModelFit, X: np.ndarray) -> np.ndarray:
        return fit.coefficients[0] + X[:, list(fit.included)] @ fit.coefficients[1:]

    def fitted_values(self, label: str) -> pd.Series:
        """In-sample predictions of a single model."""
        values = self._predict_with(self.model_fit(label), self.X.to_numpy(dtype=float))
        return pd.Series(values, index=self.X.index, name=label)

    def bma_fitted_values(self) -> pd.Series:
        """In-sample predictions averaged over the posterior."""
        X = self.X.to_numpy(dtype=float)
        total = np.zeros(len(X))
        for label, prob in self.supported_models().items():
            total += prob * self._predict_with(self.model_fit(label), X)
        return pd.Series(total, index=self.X.index, name='bma_fitted')

    def predict_bma(self, X_new: pd.DataFrame) -> np.ndarray:
        """
        Model-averaged predictions for new rows.

        Args:
            X_new: Rows encoded with the same columns as the training design

        Returns:
            Array of predictions
        """
        missing = [col for col in self.predictor_names if col not in X_new.columns]
        if missing:
            raise SchemaError(f"New data lacks predictors: {missing}")

        supported = self.supported_models()
        needed = sorted({i for label in supported.index for i in self.model_key(label)})
        values = X_new[self.predictor_names].to_numpy(dtype=float)
        if needed and np.isnan(values[:, needed]).any():
            absent = [self.predictor_names[i] for i in needed if np.isnan(values[:, i]).any()]
            raise PredictionInputError(f"Missing values for predictors: {absent}")

        total = np.zeros(len(values))
        for label, prob in supported.items():
            total += prob * self._predict_with(self.model_fit(label), np.nan_to_num(values))
        return total


class BayesianModelAverager:
    """
    Bayesian model averaging over linear models with a BIC coefficient prior.

    Models are enumerated exhaustively when the number of free predictors is
    at most `enumerate_limit`, otherwise sampled with a Metropolis-Hastings
    random walk over model space.
    """

    def __init__(
        self,
        model_prior=None,
        method: str = 'auto',
        n_iterations: int = 10000,
        include_always: Optional[List[str]] = None,
        random_state: Optional[int] = 42,
        enumerate_limit: int = 20,
        check_rank: bool = True
    ):
        """
        Initialize the averager.

        Args:
            model_prior: Model-space prior (default uniform)
            method: 'auto', 'enumerate' or 'mcmc'
            n_iterations: Number of MCMC iterations
            include_always: Predictors present in every model
            random_state: Seed for the MCMC random walk
            enumerate_limit: Largest free predictor count enumerated by 'auto'
            check_rank: Reject a full design that is not of full column rank.
                Disable only for searches whose candidates can never all
                enter together (one indicator per row).
        """
        if method not in METHODS:
            raise ConfigurationError(f"Unknown method: {method}. Choose from: {', '.join(METHODS)}")
        if n_iterations is None or int(n_iterations) <= 0:
            raise ConfigurationError(f"n_iterations must be positive, got {n_iterations}")

        self.model_prior = model_prior if model_prior is not None else UniformModelPrior()
        self.method = method
        self.n_iterations = int(n_iterations)
        self.include_always = list(include_always or [])
        self.random_state = random_state
        self.enumerate_limit = enumerate_limit
        self.check_rank = check_rank

        self._X: Optional[np.ndarray] = None
        self._y: Optional[np.ndarray] = None
        self._fits: Dict[Tuple[int, ...], ModelFit] = {}

    def _score(self, key: Tuple[int, ...]) -> ModelFit:
        if key not in self._fits:
            fit = ols_fit(self._X, self._y, key)
            if fit.is_degenerate:
                logger.debug(f"Rank-deficient model skipped: {key}")
            self._fits[key] = fit
        return self._fits[key]

    def _log_prior(self, key: Tuple[int, ...], n_free: int, n_fixed: int) -> float:
        return self.model_prior.log_prior(len(key) - n_fixed, n_free, n_fixed)

    def _log_posterior(self, key: Tuple[int, ...], n_free: int, n_fixed: int) -> float:
        log_prior = self._log_prior(key, n_free, n_fixed)
        if not np.isfinite(log_prior):
            return -np.inf
        return log_prior + self._score(key).log_marginal

    def _check_inputs(self, X: pd.DataFrame, y: pd.Series) -> Tuple[List[int], List[int], int]:
        """Validate data and configuration; return fixed, free and max size."""
        if len(X) == 0 or len(y) == 0:
            raise DataSufficiencyError("No observations to model")
        if len(X) != len(y):
            raise DataSufficiencyError(f"X has {len(X)} rows but y has {len(y)}")
        if X.isnull().to_numpy().any() or y.isnull().any():
            raise DataSufficiencyError("Design matrix or response contains missing values")

        unknown = [col for col in self.include_always if col not in X.columns]
        if unknown:
            raise SchemaError(f"include_always predictors not in design matrix: {unknown}")

        names = list(X.columns)
        fixed = [names.index(col) for col in self.include_always]
        free = [i for i in range(len(names)) if i not in fixed]

        trunc = getattr(self.model_prior, 'trunc', None)
        if trunc is not None and trunc < len(fixed):
            raise ConfigurationError(
                f"Model size cap trunc={trunc} is smaller than the "
                f"{len(fixed)} always-included predictors"
            )

        constant = [col for col in names if X[col].nunique() <= 1]
        if constant:
            raise DataSufficiencyError(f"Constant predictors cannot be estimated: {constant}")

        if self.check_rank:
            design = np.column_stack([np.ones(len(X)), X.to_numpy(dtype=float)])
            rank = np.linalg.matrix_rank(design)
            if rank < design.shape[1]:
                raise DataSufficiencyError(
                    f"Collinear predictors: design matrix with intercept has rank {rank} "
                    f"but {design.shape[1]} columns"
                )

        max_size = self.model_prior.max_size(len(free), len(fixed))
        if len(X) <= max_size + 1:
            raise DataSufficiencyError(
                f"{len(X)} rows cannot support models with up to {max_size + 1} coefficients"
            )

        return fixed, free, max_size

    def fit(self, X: pd.DataFrame, y: pd.Series) -> BMAResult:
        """
        Compute the posterior distribution over models.

        Args:
            X: Numeric design matrix (no intercept column)
            y: Continuous response

        Returns:
            BMAResult
        """
        start_time = datetime.now()
        fixed, free, max_size = self._check_inputs(X, y)

        method = self.method
        if method == 'auto':
            method = 'enumerate' if len(free) <= self.enumerate_limit else 'mcmc'
        if method == 'enumerate' and len(free) > self.enumerate_limit:
            raise ConfigurationError(
                f"{len(free)} free predictors exceed the enumeration limit of "
                f"{self.enumerate_limit}; use method='mcmc'"
            )

        logger.info("=" * 60)
        logger.info("STARTING BAYESIAN MODEL AVERAGING")
        logger.info("=" * 60)
        logger.info(f"Data: {X.shape[0]} rows, {X.shape[1]} candidate predictors")
        logger.info(f"Model prior: {self.model_prior!r}")
        logger.info(f"Method: {method}")
        if fixed:
            logger.info(f"Always included: {self.include_always}")

        self._X = X.to_numpy(dtype=float)
        self._y = y.to_numpy(dtype=float)
        self._fits = {}

        if method == 'enumerate':
            result = self._enumerate(X, y, fixed, free, max_size)
        else:
            result = self._sample(X, y, fixed, free, max_size)

        duration = (datetime.now() - start_time).total_seconds()
        logger.info("=" * 60)
        logger.info(f"MODEL AVERAGING COMPLETE in {duration:.2f} seconds")
        logger.info(f"  Models with posterior mass: {len(result.supported_models())}")
        logger.info(f"  Highest probability model: {result.highest_probability_model}")
        logger.info("=" * 60)

        return result

    def _enumerate(self, X, y, fixed, free, max_size) -> BMAResult:
        n_free, n_fixed = len(free), len(fixed)
        log_posts: Dict[Tuple[int, ...], float] = {}
        log_priors: Dict[Tuple[int, ...], float] = {}

        for size in range(0, max_size - n_fixed + 1):
            for subset in combinations(free, size):
                key = tuple(sorted(fixed + list(subset)))
                log_priors[key] = self._log_prior(key, n_free, n_fixed)
                log_posts[key] = self._log_posterior(key, n_free, n_fixed)

        logger.info(f"Enumerated {len(log_posts)} models")

        values = np.array(list(log_posts.values()))
        finite = np.isfinite(values)
        if not finite.any():
            raise DataSufficiencyError("Every enumerated model has a degenerate design matrix")

        log_norm = logsumexp(values[finite])
        posterior = {
            key: float(np.exp(lp - log_norm)) if np.isfinite(lp) else 0.0
            for key, lp in log_posts.items()
        }

        inclusion = np.zeros(X.shape[1])
        for key, prob in posterior.items():
            inclusion[list(key)] += prob

        return BMAResult(
            X, y, self._fits, posterior, log_priors, inclusion, 'enumerate',
            self.model_prior, include_always=self.include_always
        )

    def _initial_model(self, ranking: pd.DataFrame, names, fixed, free, max_size) -> List[int]:
        """Fixed predictors plus the strongest marginally significant free ones."""
        model = list(fixed)
        alpha = 0.05 / max(len(free), 1)
        free_names = {names[i] for i in free}

        for name, row in ranking.iterrows():
            if len(model) >= max_size:
                break
            if name in free_names and row['p_value'] < alpha:
                model.append(names.index(name))

        return model

    def _sample(self, X, y, fixed, free, max_size) -> BMAResult:
        n_free, n_fixed = len(free), len(fixed)
        names = list(X.columns)
        rng = np.random.default_rng(self.random_state)

        ranking = marginal_association(X, y)
        ordering = list(ranking.index)

        current = self._initial_model(ranking, names, fixed, free, max_size)
        current_key = tuple(sorted(current))
        current_lp = self._log_posterior(current_key, n_free, n_fixed)
        if not np.isfinite(current_lp):
            current_key = tuple(sorted(fixed))
            current_lp = self._log_posterior(current_key, n_free, n_fixed)
        if not np.isfinite(current_lp):
            raise DataSufficiencyError("The always-included predictors give a degenerate design matrix")

        logger.info(f"MCMC start model has {len(current_key) - n_fixed} free predictors; "
                    f"running {self.n_iterations} iterations")

        fixed_set = set(fixed)
        free_set = set(free)
        # Flip proposals visit the free predictors in marginal-association order
        scan = [names.index(name) for name in ordering if names.index(name) in free_set]
        position = 0

        accumulator = SearchAccumulator(X.shape[1], self.n_iterations)
        log_interval = max(self.n_iterations // 10, 1)

        for iteration in range(self.n_iterations):
            proposal, position = self._propose(current_key, scan, fixed_set, rng, position)
            accepted = False

            if proposal is not None:
                proposal_lp = self._log_posterior(proposal, n_free, n_fixed)
                if np.isfinite(proposal_lp) and np.log(rng.random()) < proposal_lp - current_lp:
                    current_key, current_lp = proposal, proposal_lp
                    accepted = True

            accumulator.record(current_key, accepted)

            if (iteration + 1) % log_interval == 0:
                logger.debug(f"Iteration {iteration + 1}/{self.n_iterations}: "
                             f"{len(accumulator.visits)} models visited")

        logger.info(f"Visited {len(accumulator.visits)} distinct models, "
                    f"acceptance rate {accumulator.acceptance_rate:.3f}")

        posterior = accumulator.posterior()
        log_priors = {key: self._log_prior(key, n_free, n_fixed) for key in posterior}
        fits = {key: self._fits[key] for key in posterior}

        return BMAResult(
            X, y, fits, posterior, log_priors, accumulator.inclusion_probabilities(),
            'mcmc', self.model_prior, include_always=self.include_always,
            accumulator=accumulator, ordering=ordering
        )

    @staticmethod
    def _propose(key, scan, fixed_set, rng, position: int) -> Tuple[Optional[Tuple[int, ...]], int]:
        """
        Symmetric proposal: flip the predictor at `position` in the scan
        order, or swap a random included predictor for an excluded one.

        Returns:
            Tuple of (proposed model key or None, next scan position)
        """
        if not scan:
            return None, position

        current = set(key)

        if rng.random() < 0.5:
            current ^= {scan[position % len(scan)]}
            position += 1
        else:
            included = [i for i in key if i not in fixed_set]
            excluded = [i for i in scan if i not in current]
            if not included or not excluded:
                return None, position
            current.remove(included[rng.integers(len(included))])
            current.add(excluded[rng.integers(len(excluded))])

        return tuple(sorted(current)), position


def average_models(
    df: pd.DataFrame,
    response: str,
    predictors: List[str],
    config: Dict[str, Any]
) -> BMAResult:
    """
    Build the design matrix and run model averaging from configuration.

    Args:
        df: Observation table
        response: Response column
        predictors: Candidate predictor columns
        config: Configuration dictionary (reads the 'model' section)

    Returns:
        BMAResult
    """
    model_config = config.get('model', {})

    X, y = build_design_matrix(df, response, predictors)

    averager = BayesianModelAverager(
        model_prior=make_model_prior(model_config.get('prior', {'type': 'uniform'})),
        method=model_config.get('method', 'auto'),
        n_iterations=model_config.get('n_iterations', 10000),
        include_always=model_config.get('include_always'),
        random_state=model_config.get('random_state', 42),
        enumerate_limit=model_config.get('enumerate_limit', 20)
    )

    return averager.fit(X, y)


def print_bma_summary(result: BMAResult, n_models: int = 5) -> None:
    """
    Print inclusion probabilities and the most probable models.

    Args:
        result: Fitted BMAResult
        n_models: Number of top models to list
    """
    print("\n" + "=" * 60)
    print("BAYESIAN MODEL AVERAGING SUMMARY")
    print("=" * 60)
    print(f"Method: {result.method}")
    print(f"Model prior: {result.model_prior!r}")
    print(f"Observations: {len(result.y)}")
    print(f"Models with posterior mass: {len(result.supported_models())}")

    if result.accumulator is not None:
        print(f"MCMC iterations: {result.accumulator.n_recorded}")
        print(f"Acceptance rate: {result.accumulator.acceptance_rate:.3f}")

    print(f"\n{'Predictor':<30} {'P(included)':>12}")
    print("-" * 44)
    for name, prob in result.inclusion_probabilities.sort_values(ascending=False).items():
        print(f"{name:<30} {prob:>12.4f}")

    print(f"\nTop {n_models} models:")
    print("-" * 60)
    for rank, (label, prob) in enumerate(result.posterior.iloc[:n_models].items(), start=1):
        print(f"  {rank}. [{prob:.4f}] {label}")

    print("=" * 60 + "\n")
