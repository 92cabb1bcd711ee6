import json
from typing import Dict, Iterable, Sequence

import numpy as np
import pandas as pd

from utils import constants


def cv_fold_consistency(fold_scores: Dict[str, Sequence[float]]) -> pd.DataFrame:
    """
    Summarize the spread of fold-level validation RMSE per model.
    Expects fold_scores like {"elastic_net": [0.41, 0.39, ...], ...}
    """
    rows = []
    for model_name, scores in fold_scores.items():
        scores = np.asarray(scores, dtype=float)
        if scores.size == 0:
            continue
        rows.append({
            "model": model_name,
            "folds": len(scores),
            "mean": float(np.mean(scores)),
            "std": float(np.std(scores)),
            "min": float(np.min(scores)),
            "max": float(np.max(scores)),
            "range": float(np.max(scores) - np.min(scores)),
        })
    return pd.DataFrame(rows, columns=["model", "folds", "mean", "std", "min", "max", "range"])


def model_comparison(outcomes: Iterable) -> pd.DataFrame:
    """
    One row per model family: selected point, its CV RMSEs, the overfitting
    gap (validRMSE - trainRMSE) and how many fits failed.

    ``outcomes`` are SearchOutcome objects; families with no usable point
    get NaN metrics and status 'unavailable'.
    """
    rows = []
    for outcome in outcomes:
        summary = outcome.result.summary()
        row = {
            "model": outcome.model_name,
            "status": constants.STATUS_OK if outcome.best_point is not None else constants.STATUS_UNAVAILABLE,
            "best_point": outcome.best_point.index if outcome.best_point is not None else None,
            "best_params": json.dumps(outcome.best_point.params, sort_keys=True) if outcome.best_point is not None else None,
            constants.TRAIN_RMSE_COL: outcome.best_train_rmse,
            constants.VALID_RMSE_COL: outcome.best_valid_rmse,
            "gap": outcome.best_valid_rmse - outcome.best_train_rmse,
            "grid_points": summary["grid_points"],
            "failed_fits": summary["units_failed"],
        }
        rows.append(row)
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.sort_values(constants.VALID_RMSE_COL, kind="stable", na_position="last").reset_index(drop=True)
        df.insert(0, "rank", np.arange(1, len(df) + 1))
    return df
