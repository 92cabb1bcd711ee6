import numpy as np

from utils.exceptions import DegenerateFold


def rmse(y_true, y_pred) -> float:
    """
    Root-mean-square error, sqrt(mean((prediction - actual)^2)).

    Raises:
        DegenerateFold: if the split is empty.
        ValueError: if the two vectors differ in length.
    """
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    if y_true.size == 0:
        raise DegenerateFold("RMSE is undefined on an empty split.")
    if y_true.shape != y_pred.shape:
        raise ValueError(f"Prediction length {y_pred.size} does not match label length {y_true.size}.")
    return float(np.sqrt(np.mean((y_pred - y_true) ** 2)))
