"""
Best-point selection over grid-search error records.

The winner is the point with the smallest mean validation RMSE. Exact ties
go to the point enumerated first, so selection never depends on dict or
sort stability.
"""
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import pandas as pd

from utils.exceptions import EmptyGrid
from utils import constants

if TYPE_CHECKING:
    # records imports the hpo_search_engine package, which imports this module
    from modules.hpo_search_engine.records import ErrorRecord


def select_best(records: Iterable["ErrorRecord"]) -> "ErrorRecord":
    """
    Return the available record with minimum mean validation RMSE.

    Raises:
        EmptyGrid: no records, or none of them available.
    """
    records = list(records)
    if not records:
        raise EmptyGrid("Cannot select a hyperparameter point from an empty grid.")

    best: Optional["ErrorRecord"] = None
    for record in sorted(records, key=lambda r: r.point.index):
        if not record.available:
            continue
        # Strict '<' keeps the earlier point on an exact tie
        if best is None or record.valid_rmse < best.valid_rmse:
            best = record

    if best is None:
        raise EmptyGrid(f"All {len(records)} grid points are unavailable; nothing to select.")
    return best


def select_best_from_table(table: pd.DataFrame) -> Dict[str, Any]:
    """
    Select from a persisted Result Table.

    Returns a dict with the point index, its parameter values and both RMSEs.
    """
    if table.empty:
        raise EmptyGrid("Result table has no rows.")

    candidates = table
    if constants.STATUS_COL in table.columns:
        candidates = table[table[constants.STATUS_COL] == constants.STATUS_OK]
    candidates = candidates[candidates[constants.VALID_RMSE_COL].notna()]
    if candidates.empty:
        raise EmptyGrid(f"All {len(table)} rows of the result table are unavailable.")

    if constants.POINT_INDEX_COL in candidates.columns:
        candidates = candidates.sort_values(constants.POINT_INDEX_COL, kind='stable')
    # idxmin returns the first occurrence of the minimum
    row = candidates.loc[candidates[constants.VALID_RMSE_COL].idxmin()]

    params = {
        name: _to_python(row[name])
        for name in param_columns(table)
    }
    return {
        constants.POINT_INDEX_COL: int(row[constants.POINT_INDEX_COL]) if constants.POINT_INDEX_COL in row else None,
        'params': params,
        constants.TRAIN_RMSE_COL: float(row[constants.TRAIN_RMSE_COL]),
        constants.VALID_RMSE_COL: float(row[constants.VALID_RMSE_COL]),
    }


def param_columns(table: pd.DataFrame) -> List[str]:
    bookkeeping = {
        constants.POINT_INDEX_COL, constants.TRAIN_RMSE_COL, constants.VALID_RMSE_COL,
        constants.STATUS_COL, constants.OK_FOLDS_COL, constants.FAILED_FOLDS_COL,
    }
    return [c for c in table.columns if c not in bookkeeping]


def _to_python(value: Any) -> Any:
    """Unwrap numpy scalars and turn NaN read back from a table into None."""
    if hasattr(value, 'item'):
        value = value.item()
    if isinstance(value, float) and value != value:
        return None
    return value
