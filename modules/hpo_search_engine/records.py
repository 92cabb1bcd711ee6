import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import pandas as pd

from modules.hpo_search_engine.grid import GridPoint
from utils.exceptions import FitFailure
from utils import constants

STATUS_INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class ErrorRecord:
    """Mean training and validation RMSE of one grid point over its successful folds."""
    point: GridPoint
    train_rmse: float
    valid_rmse: float
    ok_folds: int
    failed_folds: int
    n_folds: int
    fold_valid_rmse: Tuple[float, ...] = ()

    @property
    def status(self) -> str:
        if self.ok_folds + self.failed_folds < self.n_folds:
            return STATUS_INCOMPLETE
        if self.ok_folds == 0:
            return constants.STATUS_UNAVAILABLE
        return constants.STATUS_OK

    @property
    def available(self) -> bool:
        return self.status == constants.STATUS_OK


@dataclass
class GridResult:
    """Every grid point's ErrorRecord plus the (point, fold) fit failures of one evaluation."""
    model_name: str
    records: List[ErrorRecord]
    failures: List[FitFailure] = field(default_factory=list)
    n_units: int = 0
    completed_units: int = 0
    cancelled: bool = False

    def available_records(self) -> List[ErrorRecord]:
        return [r for r in self.records if r.available]

    def to_frame(self) -> pd.DataFrame:
        """Result Table: parameter columns + trainRMSE + validRMSE (+ bookkeeping columns)."""
        param_names = sorted({name for r in self.records for name in r.point.params})
        rows = []
        for r in self.records:
            row: Dict[str, Any] = {constants.POINT_INDEX_COL: r.point.index}
            for name in param_names:
                row[name] = r.point.params.get(name)
            row[constants.TRAIN_RMSE_COL] = r.train_rmse
            row[constants.VALID_RMSE_COL] = r.valid_rmse
            row[constants.STATUS_COL] = r.status
            row[constants.OK_FOLDS_COL] = r.ok_folds
            row[constants.FAILED_FOLDS_COL] = r.failed_folds
            rows.append(row)
        columns = [constants.POINT_INDEX_COL] + param_names + [
            constants.TRAIN_RMSE_COL, constants.VALID_RMSE_COL, constants.STATUS_COL,
            constants.OK_FOLDS_COL, constants.FAILED_FOLDS_COL,
        ]
        return pd.DataFrame(rows, columns=columns)

    def failures_frame(self) -> pd.DataFrame:
        rows = []
        for f in self.failures:
            row = f.to_dict()
            row[constants.POINT_INDEX_COL] = row.pop('point_index')
            row['params'] = ", ".join(f"{k}={v}" for k, v in sorted(row['params'].items()))
            rows.append(row)
        return pd.DataFrame(rows, columns=[constants.POINT_INDEX_COL, 'params', 'fold', 'cause_type', 'cause'])

    def summary(self) -> Dict[str, Any]:
        causes: Dict[str, int] = {}
        for f in self.failures:
            causes[f.cause_type] = causes.get(f.cause_type, 0) + 1
        return {
            'model': self.model_name,
            'grid_points': len(self.records),
            'available_points': len(self.available_records()),
            'unavailable_points': sum(1 for r in self.records if r.status == constants.STATUS_UNAVAILABLE),
            'units_total': self.n_units,
            'units_completed': self.completed_units,
            'units_failed': len(self.failures),
            'failure_causes': causes,
            'cancelled': self.cancelled,
        }


def aggregate_point(point: GridPoint, train_scores: List[float], valid_scores: List[float],
                    failed_folds: int, n_folds: int) -> ErrorRecord:
    """Arithmetic mean over successful folds; NaN when none succeeded."""
    ok = len(valid_scores)
    return ErrorRecord(
        point=point,
        train_rmse=math.fsum(train_scores) / ok if ok else float('nan'),
        valid_rmse=math.fsum(valid_scores) / ok if ok else float('nan'),
        ok_folds=ok,
        failed_folds=failed_folds,
        n_folds=n_folds,
        fold_valid_rmse=tuple(valid_scores),
    )
