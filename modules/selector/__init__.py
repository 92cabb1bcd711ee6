"""
Selector
========

Responsibility:
- Pick the grid point with minimum mean validation RMSE (first-enumerated on ties).
- Selection from in-memory records or a persisted result table.
"""

from .selector import select_best, select_best_from_table, param_columns

__all__ = ['select_best', 'select_best_from_table', 'param_columns']
