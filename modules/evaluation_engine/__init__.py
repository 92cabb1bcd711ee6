"""
Evaluation Engine
=================

Responsibility:
- Cross-model comparison of the selected grid points.
- Fold-level consistency of validation RMSE.
"""

from .cv_analysis import cv_fold_consistency, model_comparison

__all__ = ['cv_fold_consistency', 'model_comparison']
