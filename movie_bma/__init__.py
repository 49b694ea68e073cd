"""
Movie Ratings Bayesian Model Averaging
=======================================

Bayesian linear regression pipeline for predicting movie ratings.

Modules:
    - data_loader: Dataset ingestion, missing-value filtering, validation
    - features: Derived predictors and design matrices (Phase 1)
    - priors: Model-space priors
    - model: Bayesian model averaging over linear models (Phase 2)
    - outliers: Indicator-based outlier flagging (Phase 3)
    - evaluation: Fit metrics and search diagnostics (Phase 4)
    - prediction: Best predictive model refit and prediction (Phase 5)
"""

__version__ = "1.0.0"
