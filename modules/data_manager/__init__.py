"""
Data Manager Module
===================

Responsibility:
- Loading of feature, label and held-out feature tables (delimited text).
- Validation of types, missing values and shapes.
- Gene and label summary tables for exploration.
"""

from .data_manager import DataManager
from .dataset import Dataset, LoadedData

__all__ = ['DataManager', 'Dataset', 'LoadedData']
