"""
Prediction Module - Phase 5
============================

Turns a model-averaged posterior into a single refitted model and a
prediction for a new movie.

Features:
    - Best Predictive Model (BPM), highest probability model (HPM) and
      median probability model (MPM) selection
    - OLS refit of the selected model with statsmodels
    - Point prediction with confidence or prediction interval
    - Export of predictions to CSV and JSON report
"""

import logging
import json
from pathlib import Path
from typing import Dict, Any, List, Optional
from datetime import datetime

import numpy as np
import pandas as pd
import statsmodels.api as sm

from .exceptions import ConfigurationError, DataSufficiencyError, PredictionInputError
from .features import encode_row
from .model import BMAResult, model_label

logger = logging.getLogger(__name__)

ESTIMATORS = ('BPM', 'HPM', 'MPM')
INTERVALS = ('confidence', 'prediction')


def select_model(result: BMAResult, estimator: str = 'BPM') -> Dict[str, Any]:
    """
    Pick a single model from the posterior.

    BPM: the model whose in-sample predictions are closest, in squared
        error, to the model-averaged predictions.
    HPM: the model with the highest posterior probability.
    MPM: every predictor with inclusion probability above 0.5.

    Args:
        result: Fitted BMAResult
        estimator: 'BPM', 'HPM' or 'MPM'

    Returns:
        Dictionary with estimator, label, predictors and, for BPM, the
        expected squared deviation of every candidate
    """
    estimator = estimator.upper()
    if estimator not in ESTIMATORS:
        raise ConfigurationError(f"Unknown estimator: {estimator}. Choose from: {', '.join(ESTIMATORS)}")

    selection = {'estimator': estimator}

    if estimator == 'HPM':
        label = result.highest_probability_model
        selection.update(label=label, predictors=result.model_predictors(label))

    elif estimator == 'MPM':
        inclusion = result.inclusion_probabilities
        predictors = [name for name in result.predictor_names
                      if inclusion[name] > 0.5 or name in result.include_always]
        selection.update(label=model_label(predictors), predictors=predictors)

    else:
        bma_fitted = result.bma_fitted_values().to_numpy()
        losses = {}
        for label in result.supported_models().index:
            fitted = result.fitted_values(label).to_numpy()
            losses[label] = float(np.sum((fitted - bma_fitted) ** 2))

        losses = pd.Series(losses, name='expected_squared_deviation').sort_values(kind='mergesort')
        label = losses.index[0]
        selection.update(label=label, predictors=result.model_predictors(label), losses=losses)

    logger.info(f"{estimator} selected: {selection['label']}")
    return selection


def refit_model(X: pd.DataFrame, y: pd.Series, predictors: List[str]):
    """
    Refit a model specification by ordinary least squares.

    Args:
        X: Design matrix
        y: Response
        predictors: Columns of X in the model

    Returns:
        statsmodels RegressionResults
    """
    design = sm.add_constant(X[list(predictors)].astype(float), has_constant='add')

    if len(design) <= design.shape[1]:
        raise DataSufficiencyError(
            f"{len(design)} rows cannot fit a model with {design.shape[1]} coefficients"
        )
    if np.linalg.matrix_rank(design.to_numpy()) < design.shape[1]:
        raise DataSufficiencyError(
            f"Degenerate design matrix for model: {model_label(list(predictors))}"
        )

    fit = sm.OLS(y.astype(float), design).fit()
    logger.info(f"Refitted {model_label(list(predictors))}: adjusted R² = {fit.rsquared_adj:.4f}")
    return fit


def predict_new_row(
    fit,
    new_row,
    predictors: List[str],
    alpha: float = 0.05,
    interval: str = 'confidence'
) -> Dict[str, Any]:
    """
    Predict one new observation with an interval.

    Args:
        fit: statsmodels results from refit_model
        new_row: Mapping (dict or Series) of encoded predictor values
        predictors: Predictors of the refitted model
        alpha: 1 - confidence level
        interval: 'confidence' (mean response) or 'prediction' (new observation)

    Returns:
        Dictionary with prediction, lower, upper, interval, confidence level
        and the refit's adjusted R²
    """
    if interval not in INTERVALS:
        raise ConfigurationError(f"Unknown interval: {interval}. Choose from: {', '.join(INTERVALS)}")
    if not 0 < alpha < 1:
        raise ConfigurationError(f"alpha must lie in (0, 1), got {alpha}")

    missing = [p for p in predictors
               if p not in new_row or new_row[p] is None or pd.isna(new_row[p])]
    if missing:
        raise PredictionInputError(f"New row is missing values for: {missing}")

    exog = pd.DataFrame([[float(new_row[p]) for p in predictors]], columns=list(predictors))
    exog = sm.add_constant(exog, has_constant='add')

    frame = fit.get_prediction(exog).summary_frame(alpha=alpha)
    bounds = ('mean_ci_lower', 'mean_ci_upper') if interval == 'confidence' else ('obs_ci_lower', 'obs_ci_upper')

    return {
        'prediction': float(frame['mean'].iloc[0]),
        'lower': float(frame[bounds[0]].iloc[0]),
        'upper': float(frame[bounds[1]].iloc[0]),
        'interval': interval,
        'confidence_level': 1 - alpha,
        'adj_r2': float(fit.rsquared_adj)
    }


def export_prediction(
    prediction: Dict[str, Any],
    output_path: str,
    label: str = "new_movie",
    include_timestamp: bool = True
) -> str:
    """
    Export a prediction to CSV.

    Args:
        prediction: Dictionary from predict_new_row
        output_path: Directory to save the file
        label: Identifier of the predicted row
        include_timestamp: Whether to add timestamp to filename

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame([{
        'label': label,
        'prediction': prediction['prediction'],
        'lower': prediction['lower'],
        'upper': prediction['upper'],
        'interval': prediction['interval'],
        'confidence_level': prediction['confidence_level'],
        'adj_r2': prediction['adj_r2']
    }])

    safe_label = "".join(ch if ch.isalnum() else "_" for ch in label)
    if include_timestamp:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"prediction_{safe_label}_{timestamp}.csv"
    else:
        filename = f"prediction_{safe_label}.csv"

    filepath = output_path / filename
    df.to_csv(filepath, index=False)

    logger.info(f"Prediction exported to {filepath}")
    return str(filepath)


def generate_prediction_report(
    prediction: Dict[str, Any],
    selection: Dict[str, Any],
    fit,
    bma_prediction: Optional[float] = None,
    output_path: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build a JSON-serializable prediction report.

    Args:
        prediction: Dictionary from predict_new_row
        selection: Dictionary from select_model
        fit: statsmodels results of the refitted model
        bma_prediction: Model-averaged prediction (optional)
        output_path: Path to save the report (optional)

    Returns:
        Report dictionary
    """
    report = {
        'generated_at': datetime.now().isoformat(),
        'estimator': selection['estimator'],
        'model': selection['label'],
        'predictors': list(selection['predictors']),
        'prediction': prediction,
        'bma_prediction': bma_prediction,
        'refit': {
            'n_obs': int(fit.nobs),
            'r2': float(fit.rsquared),
            'adj_r2': float(fit.rsquared_adj),
            'coefficients': {name: float(value) for name, value in fit.params.items()}
        }
    }

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            json.dump(report, f, indent=2)
        logger.info(f"Prediction report saved to {output_path}")

    return report


def run_final_prediction(
    result: BMAResult,
    new_row: Dict[str, Any],
    predictors: List[str],
    estimator: str = 'BPM',
    alpha: float = 0.05,
    interval: str = 'confidence',
    output_dir: Optional[str] = "data/predictions/",
    label: str = "new_movie"
) -> Dict[str, Any]:
    """
    Execute the complete final prediction workflow.

    This function:
    1. Selects a single model from the posterior
    2. Refits it by OLS on the data behind the posterior
    3. Encodes the raw new row and predicts it with an interval
    4. Exports results (when output_dir is given)

    Args:
        result: Fitted BMAResult (ideally after outlier exclusion)
        new_row: Raw values of the movie to predict
        predictors: Raw predictor columns used to build result.X
        estimator: 'BPM', 'HPM' or 'MPM'
        alpha: 1 - confidence level
        interval: 'confidence' or 'prediction'
        output_dir: Directory for output files (None to skip export)
        label: Identifier of the predicted row

    Returns:
        Dictionary containing selection, refit, prediction and file paths
    """
    logger.info("=" * 60)
    logger.info("STARTING FINAL PREDICTION (Phase 5)")
    logger.info("=" * 60)

    selection = select_model(result, estimator)
    fit = refit_model(result.X, result.y, selection['predictors'])

    encoded = encode_row(new_row, predictors, result.predictor_names)
    prediction = predict_new_row(fit, encoded, selection['predictors'], alpha, interval)

    bma_prediction = None
    needed = sorted({name for label_ in result.supported_models().index
                     for name in result.model_predictors(label_)})
    if encoded[needed].notna().all():
        bma_prediction = float(result.predict_bma(encoded.to_frame().T)[0])
    else:
        logger.info("Model-averaged prediction skipped: new row lacks some averaged predictors")

    csv_path = None
    report_path = None
    if output_dir is not None:
        csv_path = export_prediction(prediction, output_dir, label)
        report_path = str(Path(output_dir) / f"prediction_report_{label}.json")

    report = generate_prediction_report(
        prediction, selection, fit, bma_prediction, output_path=report_path
    )

    logger.info("=" * 60)
    logger.info("PREDICTION COMPLETE")
    logger.info(f"  Model ({estimator}): {selection['label']}")
    logger.info(f"  Prediction: {prediction['prediction']:.4f} "
                f"[{prediction['lower']:.4f}, {prediction['upper']:.4f}]")
    logger.info("=" * 60)

    return {
        'label': label,
        'selection': selection,
        'fit': fit,
        'prediction': prediction,
        'bma_prediction': bma_prediction,
        'csv_path': csv_path,
        'report_path': report_path,
        'report': report
    }


def print_prediction_results(result: Dict[str, Any]) -> None:
    """
    Print formatted prediction results to console.

    Args:
        result: Result dictionary from run_final_prediction
    """
    prediction = result['prediction']
    selection = result['selection']
    level = prediction['confidence_level'] * 100

    print("\n" + "=" * 70)
    print(f"PREDICTION RESULTS - {result['label']}")
    print("=" * 70)
    print(f"Selected model ({selection['estimator']}): {selection['label']}")
    print(f"Adjusted R² of refit: {prediction['adj_r2']:.4f}")
    print(f"\n{'Prediction':<15} {f'{level:.0f}% Lower':<15} {f'{level:.0f}% Upper':<15}")
    print("-" * 70)
    print(f"{prediction['prediction']:<15.4f} {prediction['lower']:<15.4f} {prediction['upper']:<15.4f}")
    print("-" * 70)
    print(f"Interval type: {prediction['interval']}")

    if result.get('bma_prediction') is not None:
        print(f"Model-averaged prediction: {result['bma_prediction']:.4f}")
    if result.get('csv_path'):
        print(f"\nPrediction exported to: {result['csv_path']}")
        print(f"Full report saved to: {result['report_path']}")

    print("=" * 70 + "\n")
