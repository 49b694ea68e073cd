"""
Outlier Detection Module - Phase 3
===================================

Flags observations that the shared linear model explains poorly.

Every row gets its own 0/1 indicator predictor (a private intercept shift).
Model averaging then runs over the augmented predictor set under a
size-penalizing, truncated beta-binomial prior, so only rows that truly need
a shift pick up posterior mass. A row is flagged when its indicator's
inclusion probability exceeds the threshold.

Flagging never deletes anything; `exclude_rows` is there for callers who
decide which flagged rows to drop.
"""

import logging
from typing import Dict, Any, Optional, List

import numpy as np
import pandas as pd

from .exceptions import SchemaError, ConfigurationError
from .model import BayesianModelAverager
from .priors import BetaBinomialModelPrior, make_model_prior

logger = logging.getLogger(__name__)

INDICATOR_PREFIX = "obs_"


def add_observation_indicators(X: pd.DataFrame, prefix: str = INDICATOR_PREFIX) -> pd.DataFrame:
    """
    Append one indicator column per row.

    Row i's indicator (named `<prefix><row id>`) is 1 in row i and 0
    everywhere else.

    Args:
        X: Design matrix
        prefix: Name prefix for the indicator columns

    Returns:
        New design matrix with len(X) extra columns
    """
    names = [f"{prefix}{idx}" for idx in X.index]
    clashes = [name for name in names if name in X.columns]
    if clashes:
        raise SchemaError(f"Indicator names clash with existing columns: {clashes[:5]}")
    if len(set(names)) != len(names):
        raise SchemaError("Row index must be unique to build observation indicators")

    indicators = pd.DataFrame(np.eye(len(X)), index=X.index, columns=names)
    return pd.concat([X, indicators], axis=1)


def flag_outliers(
    X: pd.DataFrame,
    y: pd.Series,
    model_prior=None,
    n_iterations: int = 20000,
    threshold: float = 0.5,
    random_state: Optional[int] = 42,
    max_outliers: int = 10,
    fix_predictors: bool = False
) -> Dict[str, Any]:
    """
    Find rows whose indicator has high posterior inclusion probability.

    Args:
        X: Design matrix (without indicators)
        y: Response
        model_prior: Model prior over the augmented predictors; defaults to a
            beta-binomial(1, 1) truncated at len(X.columns) + max_outliers
        n_iterations: MCMC iterations
        threshold: Inclusion probability above which a row is flagged
        random_state: Seed for the model search
        max_outliers: Indicator allowance used by the default truncation
        fix_predictors: Keep the original predictors in every model

    Returns:
        Dictionary containing:
            - flagged: DataFrame of flagged rows (row_id, inclusion
              probability, observed, fitted, residual)
            - inclusion: inclusion probability of every row's indicator
            - result: the BMAResult of the augmented search
            - threshold: threshold used
    """
    if not 0 < threshold < 1:
        raise ConfigurationError(f"threshold must lie in (0, 1), got {threshold}")

    logger.info("=" * 60)
    logger.info("STARTING OUTLIER DETECTION (Phase 3)")
    logger.info("=" * 60)

    base_predictors = list(X.columns)
    augmented = add_observation_indicators(X)
    indicator_names = [col for col in augmented.columns if col not in base_predictors]

    if model_prior is None:
        model_prior = BetaBinomialModelPrior(a=1.0, b=1.0, trunc=len(base_predictors) + max_outliers)

    logger.info(f"Searching {augmented.shape[1]} predictors "
                f"({len(indicator_names)} row indicators), prior {model_prior!r}")

    averager = BayesianModelAverager(
        model_prior=model_prior,
        method='mcmc',
        n_iterations=n_iterations,
        include_always=base_predictors if fix_predictors else None,
        random_state=random_state,
        check_rank=False
    )
    result = averager.fit(augmented, y)

    inclusion = result.inclusion_probabilities[indicator_names]
    inclusion.index = X.index
    inclusion.name = 'inclusion_probability'

    fitted = result.bma_fitted_values()
    mask = (inclusion > threshold).to_numpy()

    flagged = pd.DataFrame({
        'row_id': X.index[mask],
        'inclusion_probability': inclusion.to_numpy()[mask],
        'observed': y.to_numpy()[mask],
        'fitted': fitted.to_numpy()[mask],
    })
    flagged['residual'] = flagged['observed'] - flagged['fitted']
    flagged = flagged.sort_values('inclusion_probability', ascending=False).reset_index(drop=True)

    logger.info("=" * 60)
    logger.info("OUTLIER DETECTION COMPLETE")
    logger.info(f"  Rows flagged (P > {threshold}): {len(flagged)}")
    if len(flagged):
        logger.info(f"  Flagged rows: {flagged['row_id'].tolist()}")
    logger.info("=" * 60)

    return {
        'flagged': flagged,
        'inclusion': inclusion,
        'result': result,
        'threshold': threshold
    }


def run_outlier_detection(
    X: pd.DataFrame,
    y: pd.Series,
    config: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Run flag_outliers with parameters from the 'outliers' config section.

    Args:
        X: Design matrix
        y: Response
        config: Configuration dictionary

    Returns:
        Dictionary from flag_outliers
    """
    outlier_config = config.get('outliers', {})
    prior_config = outlier_config.get('prior')

    model_prior = None
    if prior_config:
        prior_config = dict(prior_config)
        prior_config.setdefault('type', 'beta-binomial')
        model_prior = make_model_prior(prior_config)

    return flag_outliers(
        X, y,
        model_prior=model_prior,
        n_iterations=outlier_config.get('n_iterations', 20000),
        threshold=outlier_config.get('threshold', 0.5),
        random_state=outlier_config.get('random_state', 42),
        max_outliers=outlier_config.get('max_outliers', 10),
        fix_predictors=outlier_config.get('fix_predictors', False)
    )


def exclude_rows(df: pd.DataFrame, row_ids: List[Any]) -> pd.DataFrame:
    """
    Drop the given rows, identified by index label.

    Args:
        df: Table to filter
        row_ids: Index labels to remove

    Returns:
        Filtered copy
    """
    unknown = [row_id for row_id in row_ids if row_id not in df.index]
    if unknown:
        raise SchemaError(f"Rows not found: {unknown}")

    logger.info(f"Excluding {len(row_ids)} rows: {list(row_ids)}")
    return df.drop(index=list(row_ids)).copy()


def print_outlier_report(report: Dict[str, Any], n_rows: int = 10) -> None:
    """
    Print the flagged rows and the highest indicator probabilities.

    Args:
        report: Dictionary from flag_outliers
        n_rows: Number of top indicators to list
    """
    print("\n" + "=" * 60)
    print("OUTLIER DETECTION REPORT")
    print("=" * 60)
    print(f"Threshold: P(indicator included) > {report['threshold']}")
    print(f"Rows flagged: {len(report['flagged'])}")

    print(f"\nTop {n_rows} row indicators:")
    print("-" * 40)
    top = report['inclusion'].sort_values(ascending=False).head(n_rows)
    for row_id, prob in top.items():
        marker = " *" if prob > report['threshold'] else ""
        print(f"  row {row_id!s:<10} {prob:>8.4f}{marker}")

    if len(report['flagged']):
        print("\nFlagged rows:")
        print(report['flagged'].round(4).to_string(index=False))
        print("\nNote: flagged rows are not removed automatically.")

    print("=" * 60 + "\n")
