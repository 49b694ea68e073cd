#!/usr/bin/env python3
"""
Movie Ratings Bayesian Model Averaging - Main Pipeline
=======================================================

Orchestrates the Bayesian regression workflow for predicting a movie's
rating.

Phases:
    1. Features - Load data and derive boolean predictors
    2. Averaging - Bayesian model averaging over linear models
    3. Outliers - Flag rows needing their own intercept shift
    4. Refit - Re-run averaging without the configured exclusions, evaluate
    5. Prediction - Best predictive model refit and prediction of a new movie

Usage:
    # Run complete pipeline
    python main.py --data data/raw/movies.csv

    # Run specific phase
    python main.py --data data/raw/movies.csv --phase outliers

    # Run with custom config
    python main.py --data data/raw/movies.csv --config config/config.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, List, Tuple

import pandas as pd

from movie_bma.data_loader import load_config, load_data, validate_data, print_data_summary
from movie_bma.features import derive_features, add_polynomial_terms, print_feature_summary
from movie_bma.model import average_models, print_bma_summary, BMAResult
from movie_bma.outliers import run_outlier_detection, exclude_rows, print_outlier_report
from movie_bma.evaluation import evaluate_model, print_evaluation_report
from movie_bma.prediction import run_final_prediction, print_prediction_results

PHASES = ['features', 'average', 'outliers', 'refit', 'predict', 'all']


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the pipeline."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(f'pipeline_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log')
        ]
    )


def prepare_features(
    df: pd.DataFrame,
    config: Dict[str, Any]
) -> Tuple[pd.DataFrame, List[str]]:
    """
    Derive predictors and optional polynomial terms.

    Returns:
        Tuple of (table with derived columns, full predictor list)
    """
    feature_config = config.get('features', {})
    predictors = list(config.get('model', {}).get('predictors', []))

    df = derive_features(df, feature_config.get('source_columns'))

    poly_config = feature_config.get('polynomial') or {}
    poly_columns = poly_config.get('columns') or []
    if poly_columns:
        degree = poly_config.get('degree', 2)
        df = add_polynomial_terms(df, poly_columns, degree)
        predictors += [f"{col}_pow{k}" for col in poly_columns for k in range(2, degree + 1)]

    return df, predictors


def run_features(df: pd.DataFrame, config: Dict[str, Any]) -> Tuple[pd.DataFrame, List[str]]:
    """Execute Phase 1: Feature derivation."""
    print("\n" + "=" * 70)
    print("PHASE 1: FEATURE DERIVATION")
    print("=" * 70)

    df, predictors = prepare_features(df, config)
    print_feature_summary(df)
    print(f"✓ {len(predictors)} candidate predictors")

    return df, predictors


def run_averaging(
    df: pd.DataFrame,
    predictors: List[str],
    config: Dict[str, Any],
    title: str = "PHASE 2: BAYESIAN MODEL AVERAGING"
) -> BMAResult:
    """Execute Phase 2 (or 4): model averaging."""
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)

    response = config.get('model', {}).get('response', 'imdb_rating')
    result = average_models(df, response, predictors, config)
    print_bma_summary(result)

    return result


def run_outliers(result: BMAResult, config: Dict[str, Any]) -> Dict[str, Any]:
    """Execute Phase 3: Outlier flagging on the averaged design matrix."""
    print("\n" + "=" * 70)
    print("PHASE 3: OUTLIER DETECTION")
    print("=" * 70)

    report = run_outlier_detection(result.X, result.y, config)
    print_outlier_report(report)

    return report


def run_refit(
    df: pd.DataFrame,
    predictors: List[str],
    config: Dict[str, Any]
) -> Tuple[BMAResult, Dict[str, Any]]:
    """Execute Phase 4: Averaging without excluded rows, then evaluation."""
    exclusions = config.get('outliers', {}).get('exclude') or []
    if exclusions:
        df = exclude_rows(df, exclusions)

    result = run_averaging(df, predictors, config, title="PHASE 4: REFIT WITHOUT EXCLUDED ROWS")

    output_dir = config.get('output', {}).get('reports_path', 'reports/')
    evaluation = evaluate_model(result, output_dir=output_dir)
    print_evaluation_report(evaluation['metrics'])

    return result, evaluation


def prepare_new_row(config: Dict[str, Any]) -> Dict[str, Any]:
    """Apply the feature derivation steps to the configured new movie."""
    new_row = config.get('prediction', {}).get('new_row')
    if not new_row:
        raise ValueError("No prediction.new_row configured")

    row_df, _ = prepare_features(pd.DataFrame([new_row]), config)
    return row_df.iloc[0].to_dict()


def run_prediction(result: BMAResult, predictors: List[str], config: Dict[str, Any]) -> Dict[str, Any]:
    """Execute Phase 5: Best predictive model and new movie prediction."""
    print("\n" + "=" * 70)
    print("PHASE 5: PREDICTION")
    print("=" * 70)

    pred_config = config.get('prediction', {})

    prediction = run_final_prediction(
        result,
        prepare_new_row(config),
        predictors,
        estimator=pred_config.get('estimator', 'BPM'),
        alpha=pred_config.get('alpha', 0.05),
        interval=pred_config.get('interval', 'confidence'),
        output_dir=config.get('data', {}).get('predictions_path', 'data/predictions/'),
        label=pred_config.get('label', 'new_movie')
    )
    print_prediction_results(prediction)

    return prediction


def run_pipeline(data_path: str, config_path: str = "config/config.yaml", phase: str = 'all') -> Dict[str, Any]:
    """
    Execute the pipeline up to and including `phase`.

    Args:
        data_path: Path to the movies dataset
        config_path: Path to configuration file
        phase: Last phase to run

    Returns:
        Dictionary containing all phase results
    """
    config = load_config(config_path)
    setup_logging(config.get('logging', {}).get('level', 'INFO'))

    print("\n" + "=" * 70)
    print("MOVIE RATINGS BAYESIAN MODEL AVERAGING")
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    print("\n📊 Loading data...")
    df = load_data(data_path, schema=config.get('data', {}).get('schema'))
    print_data_summary(df)

    is_valid, _ = validate_data(df, strict=False)
    if not is_valid:
        print("⚠️  Data validation warnings detected. Proceeding anyway...")

    results: Dict[str, Any] = {'config': config, 'data_shape': df.shape}
    last = PHASES.index(phase) if phase != 'all' else len(PHASES)

    df, predictors = run_features(df, config)
    results['predictors'] = predictors
    if last == 0:
        return results

    results['averaging'] = run_averaging(df, predictors, config)
    if last == 1:
        return results

    if config.get('outliers', {}).get('enabled', True):
        results['outliers'] = run_outliers(results['averaging'], config)
    if last == 2:
        return results

    results['refit'], results['evaluation'] = run_refit(df, predictors, config)
    if last == 3:
        return results

    results['prediction'] = run_prediction(results['refit'], predictors, config)

    print("\n" + "=" * 70)
    print("PIPELINE COMPLETE")
    print("=" * 70)
    print(f"  • Input data: {df.shape[0]} rows × {df.shape[1]} columns")
    print(f"  • Selected model: {results['prediction']['selection']['label']}")
    print(f"  • Prediction: {results['prediction']['prediction']['prediction']:.4f}")
    print(f"  • Output: {results['prediction']['csv_path']}")
    print(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70 + "\n")

    return results


def main():
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description="Bayesian Model Averaging Pipeline for Movie Ratings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --data data/raw/movies.csv
  python main.py --data data/raw/movies.csv --phase outliers
  python main.py --data data/raw/movies.csv --config config/custom.yaml
        """
    )

    parser.add_argument(
        '--data', '-d',
        type=str,
        required=True,
        help='Path to the movies dataset (csv, parquet, feather or pickle)'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default='config/config.yaml',
        help='Path to configuration file (default: config/config.yaml)'
    )

    parser.add_argument(
        '--phase', '-p',
        type=str,
        choices=PHASES,
        default='all',
        help='Last phase to run (default: all)'
    )

    args = parser.parse_args()

    if not Path(args.data).exists():
        print(f"Error: Data file not found: {args.data}")
        sys.exit(1)

    if not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}")
        sys.exit(1)

    try:
        run_pipeline(args.data, args.config, args.phase)
        return 0

    except Exception as e:
        logging.error(f"Pipeline failed: {e}", exc_info=True)
        print(f"\n❌ Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
