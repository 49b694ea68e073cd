"""
Data Loader Module
==================

Handles dataset ingestion, missing-value filtering, and basic quality checks.

Functions:
    - load_config: Load YAML configuration file
    - load_data: Load a columnar dataset with optional schema coercion
    - drop_missing: Remove rows with missing values in selected columns
    - validate_data: Check data quality constraints
    - print_data_summary: Console overview of columns and missingness
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, Tuple, List

import pandas as pd
import numpy as np
import yaml

from .exceptions import SchemaError

logger = logging.getLogger(__name__)

SEMANTIC_TYPES = ("numeric", "category", "yesno", "string")

_READERS = {
    ".csv": pd.read_csv,
    ".parquet": pd.read_parquet,
    ".feather": pd.read_feather,
    ".pkl": pd.read_pickle,
    ".pickle": pd.read_pickle,
}


def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Dictionary containing configuration parameters

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return config


def require_columns(df: pd.DataFrame, columns: List[str]) -> None:
    """Raise SchemaError naming every column of `columns` absent from `df`."""
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise SchemaError(
            f"Columns not found in data: {missing}. "
            f"Available columns: {list(df.columns)}"
        )


def apply_schema(df: pd.DataFrame, schema: Dict[str, str]) -> pd.DataFrame:
    """
    Coerce columns to their semantic types.

    Args:
        df: Raw DataFrame
        schema: Mapping of column name to one of SEMANTIC_TYPES

    Returns:
        New DataFrame with coerced columns
    """
    require_columns(df, list(schema))
    df = df.copy()

    for col, kind in schema.items():
        if kind == "numeric":
            df[col] = pd.to_numeric(df[col], errors="coerce")
        elif kind == "category":
            df[col] = df[col].astype("category")
        elif kind == "yesno":
            values = df[col].astype("string").str.strip().str.lower()
            unexpected = set(values.dropna().unique()) - {"yes", "no"}
            if unexpected:
                raise SchemaError(
                    f"Column '{col}' declared yes/no but holds {sorted(unexpected)}"
                )
            df[col] = values.astype(object).where(values.notna(), np.nan)
        elif kind == "string":
            df[col] = df[col].astype("string")
        else:
            raise SchemaError(
                f"Unknown semantic type '{kind}' for column '{col}'. "
                f"Choose from: {', '.join(SEMANTIC_TYPES)}"
            )

    return df


def load_data(
    file_path: str,
    columns: Optional[List[str]] = None,
    schema: Optional[Dict[str, str]] = None
) -> pd.DataFrame:
    """
    Load a tabular dataset from disk.

    The reader is chosen from the file extension (csv, parquet, feather,
    pickle).

    Args:
        file_path: Path to the dataset
        columns: Columns to keep (optional)
        schema: Column name -> semantic type mapping (optional)

    Returns:
        DataFrame containing the loaded data

    Raises:
        FileNotFoundError: If data file doesn't exist
        SchemaError: If requested columns are absent
        ValueError: If the file format is not supported
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Data file not found: {file_path}")

    reader = _READERS.get(file_path.suffix.lower())
    if reader is None:
        raise ValueError(
            f"Unsupported data format '{file_path.suffix}'. "
            f"Supported: {', '.join(sorted(_READERS))}"
        )

    df = reader(file_path)
    logger.info(f"Loaded data from {file_path}: {df.shape[0]} rows × {df.shape[1]} columns")

    if columns is not None:
        require_columns(df, columns)
        df = df[columns]

    if schema:
        df = apply_schema(df, schema)

    return df


def drop_missing(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    """
    Drop rows with a missing value in any of the given columns.

    The original index is preserved so rows stay identifiable downstream.

    Args:
        df: DataFrame to filter
        columns: Columns that must be present for a row to be kept

    Returns:
        Filtered copy of the DataFrame
    """
    require_columns(df, columns)

    filtered = df.dropna(subset=list(columns))
    n_dropped = len(df) - len(filtered)
    if n_dropped:
        logger.info(f"Dropped {n_dropped} rows with missing values in {len(columns)} columns")

    return filtered.copy()


def validate_data(df: pd.DataFrame, strict: bool = True) -> Tuple[bool, Dict[str, Any]]:
    """
    Validate data quality constraints for regression modeling.

    Checks:
        - No missing values (reported per column)
        - No duplicate rows
        - Numeric columns without extreme values (>4 std)

    Args:
        df: DataFrame to validate
        strict: If True, raise errors on validation failure

    Returns:
        Tuple of (is_valid, validation_report)
    """
    report = {
        "total_rows": len(df),
        "total_columns": len(df.columns),
        "column_names": list(df.columns),
        "issues": []
    }

    # Missing values
    missing_counts = df.isnull().sum()
    total_missing = int(missing_counts.sum())
    if total_missing > 0:
        missing_pct = (total_missing / (df.shape[0] * df.shape[1])) * 100
        issue = f"Missing values: {total_missing} ({missing_pct:.2f}%)"
        report["issues"].append(issue)
        report["missing_by_column"] = missing_counts[missing_counts > 0].to_dict()
        logger.warning(issue)

    # Duplicate rows
    duplicates = int(df.duplicated().sum())
    if duplicates > 0:
        issue = f"Duplicate rows found: {duplicates}"
        report["issues"].append(issue)
        logger.warning(issue)

    # Extreme values
    for col in df.select_dtypes(include=[np.number]).columns:
        col_std = df[col].std()
        col_mean = df[col].mean()
        extremes = int(((df[col] - col_mean).abs() > 4 * col_std).sum())
        if extremes > 0:
            issue = f"Column '{col}' has {extremes} extreme values (>4 std)"
            report["issues"].append(issue)
            logger.warning(issue)

    is_valid = len(report["issues"]) == 0
    report["is_valid"] = is_valid

    if strict and not is_valid:
        raise ValueError(f"Data validation failed: {report['issues']}")

    return is_valid, report


def print_data_summary(df: pd.DataFrame) -> None:
    """
    Print a formatted summary of the dataset to console.

    Args:
        df: DataFrame to summarize
    """
    print("\n" + "=" * 60)
    print("DATASET SUMMARY")
    print("=" * 60)
    print(f"Shape: {df.shape[0]} rows × {df.shape[1]} columns")
    print("\nColumn Information:")
    print("-" * 40)

    for col in df.columns:
        dtype = df[col].dtype
        non_null = df[col].count()
        null_pct = (1 - non_null / len(df)) * 100 if len(df) else 0.0
        print(f"  {col}: {dtype} | {non_null} non-null ({null_pct:.1f}% missing)")

    numeric = df.select_dtypes(include=[np.number])
    if not numeric.empty:
        print("\nBasic Statistics:")
        print("-" * 40)
        print(numeric.describe().round(4).to_string())
    print("=" * 60 + "\n")
