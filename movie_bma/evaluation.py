"""
Model Evaluation Module - Phase 4
==================================

Goodness-of-fit metrics and model-search diagnostics.

Features:
    - RMSE, MAE, R² for in-sample fits (refitted model and model average)
    - Sampler diagnostics: visit-frequency versus renormalized inclusion
      probabilities, and drift between the two halves of the walk
    - Evaluation report generation
"""

import logging
import json
from pathlib import Path
from typing import Dict, Any, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error, mean_absolute_error, r2_score

from .model import BMAResult

logger = logging.getLogger(__name__)


def calculate_metrics(y_true, y_pred) -> Dict[str, float]:
    """
    Calculate fit metrics for one set of predictions.

    Args:
        y_true: Observed responses
        y_pred: Predicted responses

    Returns:
        Dictionary with rmse, mae, r2 and residual statistics
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    residuals = y_true - y_pred

    return {
        'rmse': float(np.sqrt(mean_squared_error(y_true, y_pred))),
        'mae': float(mean_absolute_error(y_true, y_pred)),
        'r2': float(r2_score(y_true, y_pred)),
        'mean_residual': float(np.mean(residuals)),
        'std_residual': float(np.std(residuals)),
        'max_abs_residual': float(np.max(np.abs(residuals))),
        'n_samples': int(len(y_true))
    }


def inclusion_diagnostics(result: BMAResult) -> pd.DataFrame:
    """
    Compare inclusion probability estimates for one model search.

    For sampled searches the visit-frequency estimate is compared with the
    renormalized estimate (prior × marginal likelihood over visited models)
    and with the estimates from each half of the walk. Large gaps suggest
    more iterations are needed.

    Args:
        result: Fitted BMAResult

    Returns:
        DataFrame indexed by predictor
    """
    table = pd.DataFrame({
        'inclusion': result.inclusion_probabilities,
        'renormalized': result.renormalized_inclusion()
    })

    if result.accumulator is not None:
        first, second = result.accumulator.half_inclusion_probabilities()
        table['first_half'] = first
        table['second_half'] = second
        table['half_drift'] = (table['first_half'] - table['second_half']).abs()

    table['renormalized_gap'] = (table['inclusion'] - table['renormalized']).abs()
    return table.sort_values('inclusion', ascending=False)


def evaluate_model(
    result: BMAResult,
    fit=None,
    output_dir: Optional[str] = "reports/"
) -> Dict[str, Any]:
    """
    Evaluate the model average and, optionally, a refitted single model.

    Args:
        result: Fitted BMAResult
        fit: statsmodels results of a refitted model (optional)
        output_dir: Directory for the metrics JSON (None to skip writing)

    Returns:
        Dictionary containing metrics, diagnostics and file path
    """
    logger.info("=" * 60)
    logger.info("STARTING MODEL EVALUATION (Phase 4)")
    logger.info("=" * 60)

    metrics = {'bma': calculate_metrics(result.y, result.bma_fitted_values())}

    if fit is not None:
        metrics['refit'] = calculate_metrics(result.y, fit.fittedvalues)
        metrics['refit']['adj_r2'] = float(fit.rsquared_adj)

    diagnostics = inclusion_diagnostics(result)
    metrics['diagnostics'] = {
        'max_renormalized_gap': float(diagnostics['renormalized_gap'].max()),
    }
    if 'half_drift' in diagnostics:
        metrics['diagnostics']['max_half_drift'] = float(diagnostics['half_drift'].max())
        metrics['diagnostics']['acceptance_rate'] = float(result.accumulator.acceptance_rate)

    metrics_file = None
    if output_dir is not None:
        metrics_dir = Path(output_dir) / "metrics"
        metrics_dir.mkdir(parents=True, exist_ok=True)
        metrics_file = metrics_dir / "evaluation_metrics.json"
        with open(metrics_file, 'w') as f:
            json.dump(metrics, f, indent=2)
        logger.info(f"Metrics saved to {metrics_file}")

    logger.info("=" * 60)
    logger.info("EVALUATION COMPLETE")
    logger.info(f"  BMA RMSE: {metrics['bma']['rmse']:.6f}")
    logger.info(f"  BMA R²: {metrics['bma']['r2']:.6f}")
    logger.info("=" * 60)

    return {
        'metrics': metrics,
        'diagnostics': diagnostics,
        'metrics_file': str(metrics_file) if metrics_file else None
    }


def print_evaluation_report(metrics: Dict[str, Any]) -> None:
    """
    Print a formatted evaluation report to console.

    Args:
        metrics: Metrics dictionary from evaluate_model
    """
    print("\n" + "=" * 70)
    print("MODEL EVALUATION REPORT")
    print("=" * 70)

    print(f"{'Fit':<10} {'RMSE':<12} {'MAE':<12} {'R²':<12} {'Max |res|':<12}")
    print("-" * 70)
    for name in ('bma', 'refit'):
        if name not in metrics:
            continue
        m = metrics[name]
        print(f"{name:<10} {m['rmse']:<12.6f} {m['mae']:<12.6f} "
              f"{m['r2']:<12.6f} {m['max_abs_residual']:<12.6f}")

    if 'refit' in metrics:
        print(f"\nAdjusted R² (refit): {metrics['refit']['adj_r2']:.4f}")

    diagnostics = metrics.get('diagnostics', {})
    if 'max_half_drift' in diagnostics:
        print("\nSampler diagnostics:")
        print(f"  • Acceptance rate: {diagnostics['acceptance_rate']:.3f}")
        print(f"  • Max inclusion drift between halves: {diagnostics['max_half_drift']:.4f}")
        print(f"  • Max gap to renormalized inclusion: {diagnostics['max_renormalized_gap']:.4f}")
        if diagnostics['max_half_drift'] > 0.1:
            print("  ⚠ Inclusion estimates are unstable - consider more iterations")

    print("=" * 70 + "\n")
