"""
Training Engine Module
======================

Responsibility:
- Refits a model family on the full dataset with its selected hyperparameters.
- Persists trained models (.pkl), training metadata (.json) and convergence curves.
"""

from .training_engine import TrainingEngine

__all__ = ['TrainingEngine']
