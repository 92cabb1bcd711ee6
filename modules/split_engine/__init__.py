"""
Split Engine
============

Responsibility:
- Deterministic, index-based k-fold partitioning.
- Persisting the fold assignment for reproducibility.
"""

from .split_engine import FoldAssignment, FoldPartitioner, partition_folds

__all__ = ['FoldAssignment', 'FoldPartitioner', 'partition_folds']
