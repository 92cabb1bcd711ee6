"""
Prediction Engine Module
========================

Responsibility:
- Held-out predictions from a refitted model as an (Id, Predicted) table.
"""

from .prediction_engine import PredictionEngine

__all__ = ['PredictionEngine']
