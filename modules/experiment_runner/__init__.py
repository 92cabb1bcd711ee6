"""
Experiment Runner
=================

Responsibility:
- Load data once, partition folds once, then per model family:
  grid search -> selection -> full-data refit -> held-out predictions.
- Cross-model comparison and run summary with fit-failure counts.
"""

from .experiment_runner import ExperimentRunner

__all__ = ['ExperimentRunner']
