"""
Feature Derivation Module - Phase 1
====================================

Turns raw movie fields into model-ready predictors.

Functions:
    - derive_features: Boolean yes/no predictors from type, genre, rating, month
    - add_polynomial_terms: Power terms for numeric predictors
    - build_design_matrix: Numeric design matrix and response vector
    - encode_row: Encode a single new observation like the design matrix
"""

import logging
from typing import Dict, Any, Tuple, Optional, List

import pandas as pd
import numpy as np

from .data_loader import drop_missing, require_columns
from .exceptions import SchemaError, DataSufficiencyError, ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_COLUMNS = {
    'title_type': 'title_type',
    'genre': 'genre',
    'mpaa_rating': 'mpaa_rating',
    'release_month': 'thtr_rel_month',
}

OSCAR_MONTHS = (10, 11, 12)
SUMMER_MONTHS = (5, 6, 7, 8)

DERIVED_COLUMNS = ['feature_film', 'drama', 'mpaa_rating_R', 'oscar_season', 'summer_season']


def _yes_no(mask: pd.Series, source: pd.Series) -> pd.Series:
    """Map a boolean mask to "yes"/"no", keeping missing sources missing."""
    flags = pd.Series(np.where(mask.fillna(False).astype(bool), "yes", "no"),
                      index=source.index, dtype=object)
    flags[source.isna()] = np.nan
    return flags


def derive_features(
    df: pd.DataFrame,
    source_columns: Optional[Dict[str, str]] = None
) -> pd.DataFrame:
    """
    Add the derived yes/no predictors to a copy of the movie table.

    Derived columns:
        feature_film:  title type is "Feature Film"
        drama:         genre is "Drama"
        mpaa_rating_R: MPAA rating is "R"
        oscar_season:  released in October, November or December
        summer_season: released May through August

    Args:
        df: Raw movie table
        source_columns: Overrides for the raw column names
            (keys: title_type, genre, mpaa_rating, release_month)

    Returns:
        New DataFrame with the derived columns appended
    """
    sources = dict(DEFAULT_SOURCE_COLUMNS)
    if source_columns:
        sources.update(source_columns)

    require_columns(df, list(sources.values()))

    out = df.copy()

    title_type = df[sources['title_type']]
    genre = df[sources['genre']]
    rating = df[sources['mpaa_rating']]
    month = pd.to_numeric(df[sources['release_month']], errors='coerce')

    out['feature_film'] = _yes_no(title_type == "Feature Film", title_type)
    out['drama'] = _yes_no(genre == "Drama", genre)
    out['mpaa_rating_R'] = _yes_no(rating == "R", rating)
    out['oscar_season'] = _yes_no(month.isin(OSCAR_MONTHS), month)
    out['summer_season'] = _yes_no(month.isin(SUMMER_MONTHS), month)

    logger.info(f"Derived {len(DERIVED_COLUMNS)} boolean features for {len(out)} rows")
    return out


def add_polynomial_terms(
    df: pd.DataFrame,
    columns: List[str],
    degree: int = 2
) -> pd.DataFrame:
    """
    Add power terms `<col>_pow<k>` for k = 2..degree.

    Args:
        df: Input table
        columns: Numeric columns to expand
        degree: Highest power to add

    Returns:
        New DataFrame with the power columns appended
    """
    if degree < 2:
        raise ConfigurationError(f"Polynomial degree must be >= 2, got {degree}")

    require_columns(df, columns)
    out = df.copy()

    for col in columns:
        if not pd.api.types.is_numeric_dtype(df[col]):
            raise SchemaError(f"Polynomial terms need a numeric column, '{col}' is {df[col].dtype}")
        for power in range(2, degree + 1):
            out[f"{col}_pow{power}"] = df[col].astype(float) ** power

    return out


def dummy_name(column: str, level: Any) -> str:
    """Design-matrix name of the indicator for `level` of `column`."""
    return f"{column}[{level}]"


def _is_yes_no(values: pd.Series) -> bool:
    levels = set(values.dropna().astype(str).unique())
    return bool(levels) and levels <= {"yes", "no"}


def _encode_column(series: pd.Series) -> pd.DataFrame:
    """Encode one predictor column as one or more float columns."""
    name = series.name

    if pd.api.types.is_bool_dtype(series):
        return series.astype(float).to_frame(name)

    if pd.api.types.is_numeric_dtype(series):
        return series.astype(float).to_frame(name)

    if _is_yes_no(series):
        return (series.astype(str) == "yes").astype(float).to_frame(name)

    # Treatment coding, first level is the baseline
    if isinstance(series.dtype, pd.CategoricalDtype):
        levels = list(series.cat.remove_unused_categories().cat.categories)
    else:
        levels = sorted(series.dropna().astype(str).unique())

    if len(levels) < 2:
        logger.warning(f"Predictor '{name}' has a single level, it adds no columns")

    values = series.astype(str)
    dummies = {
        dummy_name(name, level): (values == str(level)).astype(float)
        for level in levels[1:]
    }
    return pd.DataFrame(dummies, index=series.index)


def build_design_matrix(
    df: pd.DataFrame,
    response: str,
    predictors: List[str]
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Build the numeric design matrix and response vector.

    Rows with a missing response or predictor are dropped first. Yes/no and
    boolean predictors become a single 0/1 column; other categorical
    predictors are expanded to treatment dummies named `col[level]`.

    Args:
        df: Observation table
        response: Continuous response column
        predictors: Candidate predictor columns

    Returns:
        Tuple of (X, y) sharing the surviving row index
    """
    require_columns(df, [response] + list(predictors))

    data = drop_missing(df, [response] + list(predictors))
    if data.empty:
        raise DataSufficiencyError(
            f"No rows left after removing missing values in '{response}' and predictors"
        )

    if not pd.api.types.is_numeric_dtype(data[response]):
        raise SchemaError(f"Response '{response}' must be numeric, got {data[response].dtype}")

    y = data[response].astype(float)

    if predictors:
        X = pd.concat([_encode_column(data[col]) for col in predictors], axis=1)
    else:
        X = pd.DataFrame(index=data.index)

    logger.info(f"Design matrix: {X.shape[0]} rows × {X.shape[1]} columns "
                f"from {len(predictors)} predictors")

    return X, y


def encode_row(
    row: Dict[str, Any],
    predictors: List[str],
    design_columns: List[str]
) -> pd.Series:
    """
    Encode a raw observation onto an existing design matrix's columns.

    Values the row does not provide come back as NaN; the caller decides
    whether the selected model needs them.

    Args:
        row: Mapping of raw column name to value
        predictors: Raw predictors used to build the design matrix
        design_columns: Columns of that design matrix

    Returns:
        Series indexed by design_columns
    """
    encoded = {}

    for col in design_columns:
        if col in predictors:
            value = row.get(col)
            if value is None or (isinstance(value, float) and np.isnan(value)):
                encoded[col] = np.nan
            elif isinstance(value, str):
                if value not in ("yes", "no"):
                    raise SchemaError(f"Cannot encode value {value!r} for predictor '{col}'")
                encoded[col] = 1.0 if value == "yes" else 0.0
            else:
                encoded[col] = float(value)
            continue

        source = next((p for p in predictors if col.startswith(f"{p}[")), None)
        if source is None:
            encoded[col] = np.nan
            continue

        value = row.get(source)
        if value is None or (isinstance(value, float) and np.isnan(value)):
            encoded[col] = np.nan
        else:
            level = col[len(source) + 1:-1]
            encoded[col] = 1.0 if str(value) == level else 0.0

    return pd.Series(encoded, index=design_columns, dtype=float)


def print_feature_summary(df: pd.DataFrame) -> None:
    """
    Print yes/no counts for the derived predictors.

    Args:
        df: Table returned by derive_features
    """
    print("\n" + "=" * 50)
    print("DERIVED FEATURES")
    print("=" * 50)
    print(f"{'Feature':<16} {'yes':>8} {'no':>8} {'missing':>8}")
    print("-" * 50)
    for col in DERIVED_COLUMNS:
        if col not in df.columns:
            continue
        counts = df[col].value_counts()
        print(f"{col:<16} {counts.get('yes', 0):>8} {counts.get('no', 0):>8} "
              f"{int(df[col].isna().sum()):>8}")
    print("=" * 50 + "\n")
