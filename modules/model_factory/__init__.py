"""
Model Factory
=============

Responsibility:
- Uniform fit/predict capability over ElasticNet, Random Forest and XGBoost.
- Per-model parameter structs built from grid points.
"""

from .fitters import (
    ModelFitter,
    PredictModel,
    ElasticNetFitter,
    RandomForestFitter,
    GradientBoostedTreeFitter,
    ElasticNetParams,
    RandomForestParams,
    XGBoostParams,
)
from .model_factory import ModelFactory

__all__ = [
    'ModelFactory',
    'ModelFitter',
    'PredictModel',
    'ElasticNetFitter',
    'RandomForestFitter',
    'GradientBoostedTreeFitter',
    'ElasticNetParams',
    'RandomForestParams',
    'XGBoostParams',
]
