"""
HPO Search Engine
=================

Responsibility:
- Hyperparameter grid expansion in a deterministic enumeration order.
- Cross-validated evaluation of every (grid point, fold) pair on a joblib worker pool.
- Best-effort handling of per-fold fit failures and cooperative cancellation.
- Persisting the Result Table and selecting the best point from it.
"""

from .grid import GridPoint, build_grid
from .records import ErrorRecord, GridResult
from .grid_evaluator import GridEvaluator, run_unit
from .hpo_search_engine import HPOSearchEngine, SearchOutcome

__all__ = [
    'GridPoint', 'build_grid', 'ErrorRecord', 'GridResult',
    'GridEvaluator', 'run_unit', 'HPOSearchEngine', 'SearchOutcome',
]
