"""
Model fitting capabilities.

Each fitter is a tagged variant of ``ModelFitter`` carrying its own frozen
parameter struct. The grid evaluator only ever sees the uniform
``fit(train_features, train_labels, params) -> PredictModel`` contract.
"""
import abc
import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import ElasticNet
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from xgboost import XGBRegressor

from utils.exceptions import InvalidConfiguration


# --- Parameter structs ---

@dataclass(frozen=True)
class ElasticNetParams:
    """
    glmnet-style naming: ``alpha`` is the L1/L2 mixing ratio (1 = lasso,
    0 = ridge) and ``lambda_`` the overall regularization strength.
    """
    alpha: float = 0.5
    lambda_: float = 1.0
    standardize: bool = True
    max_iter: int = 10000
    tol: float = 1e-4

    # Grid keys that differ from field names
    ALIASES = {'lambda': 'lambda_'}

    def __post_init__(self):
        if not 0.0 <= self.alpha <= 1.0:
            raise InvalidConfiguration(f"ElasticNet alpha (mixing ratio) must be in [0, 1], got {self.alpha}")
        if self.lambda_ < 0:
            raise InvalidConfiguration(f"ElasticNet lambda must be >= 0, got {self.lambda_}")


@dataclass(frozen=True)
class RandomForestParams:
    n_estimators: int = 500
    max_depth: Optional[int] = None
    max_features: Union[str, float, int, None] = 1.0
    min_samples_leaf: int = 1

    ALIASES = {'ntree': 'n_estimators', 'mtry': 'max_features', 'nodesize': 'min_samples_leaf'}

    def __post_init__(self):
        if self.n_estimators < 1:
            raise InvalidConfiguration(f"Random forest n_estimators must be >= 1, got {self.n_estimators}")
        if self.max_depth is not None and self.max_depth < 1:
            raise InvalidConfiguration(f"Random forest max_depth must be >= 1, got {self.max_depth}")


@dataclass(frozen=True)
class XGBoostParams:
    n_estimators: int = 200
    max_depth: int = 6
    learning_rate: float = 0.3
    subsample: float = 1.0
    colsample_bytree: float = 1.0
    min_child_weight: float = 1.0
    gamma: float = 0.0
    reg_lambda: float = 1.0

    ALIASES = {'nrounds': 'n_estimators', 'eta': 'learning_rate'}

    def __post_init__(self):
        if self.n_estimators < 1:
            raise InvalidConfiguration(f"XGBoost n_estimators must be >= 1, got {self.n_estimators}")
        if not 0.0 < self.subsample <= 1.0:
            raise InvalidConfiguration(f"XGBoost subsample must be in (0, 1], got {self.subsample}")
        if not 0.0 < self.colsample_bytree <= 1.0:
            raise InvalidConfiguration(f"XGBoost colsample_bytree must be in (0, 1], got {self.colsample_bytree}")


def params_from_mapping(params_class, params: Mapping[str, Any]):
    """
    Build a parameter struct from a grid point, resolving aliases.

    Raises:
        InvalidConfiguration: unknown hyperparameter names or out-of-range values.
    """
    field_names = {f.name for f in dataclasses.fields(params_class)}
    aliases = getattr(params_class, 'ALIASES', {})
    kwargs = {}
    unknown = []
    for key, value in params.items():
        name = aliases.get(key, key)
        if name not in field_names:
            unknown.append(key)
            continue
        kwargs[name] = value
    if unknown:
        raise InvalidConfiguration(
            f"Unknown hyperparameter(s) for {params_class.__name__}: {sorted(unknown)}. "
            f"Accepted: {sorted(field_names | set(aliases))}"
        )
    try:
        return params_class(**kwargs)
    except TypeError as e:
        raise InvalidConfiguration(f"Malformed hyperparameters for {params_class.__name__}: {e}") from e


# --- Fitted model ---

class PredictModel:
    """A fitted estimator with a uniform 1-D ``predict`` and an optional training curve."""

    def __init__(self, estimator: Any, params: Any, curve: Optional[pd.DataFrame] = None):
        self.estimator = estimator
        self.params = params
        self._curve = curve

    def predict(self, features) -> np.ndarray:
        preds = self.estimator.predict(np.asarray(features, dtype=float))
        return np.asarray(preds, dtype=float).ravel()

    def training_curve(self) -> Optional[pd.DataFrame]:
        """Per-iteration training RMSE (columns: iteration, train_rmse), if recorded."""
        return self._curve


# --- Fitters ---

class ModelFitter(abc.ABC):
    """
    Capability interface for fitting a regression model from one grid point.
    """

    name: str = ""
    params_class: type = None

    def __init__(self, random_state: Optional[int] = None, n_jobs: int = 1):
        self.random_state = random_state
        self.n_jobs = n_jobs

    def parse_params(self, params: Union[Mapping[str, Any], Any]):
        if isinstance(params, self.params_class):
            return params
        return params_from_mapping(self.params_class, params or {})

    def fit(self, train_features, train_labels, params, record_curve: bool = False) -> PredictModel:
        """
        Fit a fresh model on the given split.

        Args:
            train_features: (n, p) numeric matrix.
            train_labels: length-n numeric vector.
            params: grid point mapping or this fitter's parameter struct.
            record_curve: also compute the per-iteration training RMSE curve.
        """
        parsed = self.parse_params(params)
        X = np.asarray(train_features, dtype=float)
        y = np.asarray(train_labels, dtype=float).ravel()
        return self._fit(X, y, parsed, record_curve)

    @abc.abstractmethod
    def _fit(self, X: np.ndarray, y: np.ndarray, params, record_curve: bool) -> PredictModel:
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__class__.__name__}(random_state={self.random_state}, n_jobs={self.n_jobs})"


class ElasticNetFitter(ModelFitter):
    name = "elastic_net"
    params_class = ElasticNetParams

    def _fit(self, X, y, params: ElasticNetParams, record_curve: bool) -> PredictModel:
        enet = ElasticNet(
            alpha=params.lambda_,
            l1_ratio=params.alpha,
            max_iter=params.max_iter,
            tol=params.tol,
            random_state=self.random_state,
        )
        if params.standardize:
            estimator = Pipeline([("scaler", StandardScaler()), ("enet", enet)])
        else:
            estimator = enet
        estimator.fit(X, y)
        # Coordinate descent has no per-iteration loss to report
        return PredictModel(estimator, params, curve=None)


class RandomForestFitter(ModelFitter):
    name = "random_forest"
    params_class = RandomForestParams

    def _fit(self, X, y, params: RandomForestParams, record_curve: bool) -> PredictModel:
        estimator = RandomForestRegressor(
            n_estimators=params.n_estimators,
            max_depth=params.max_depth,
            max_features=params.max_features,
            min_samples_leaf=params.min_samples_leaf,
            random_state=self.random_state,
            n_jobs=self.n_jobs,
        )
        estimator.fit(X, y)
        curve = self._tree_count_curve(estimator, X, y) if record_curve else None
        return PredictModel(estimator, params, curve=curve)

    @staticmethod
    def _tree_count_curve(estimator: RandomForestRegressor, X: np.ndarray, y: np.ndarray) -> pd.DataFrame:
        """Training RMSE of the forest truncated to its first t trees, for t = 1..n_estimators."""
        per_tree = np.stack([tree.predict(X) for tree in estimator.estimators_])
        running = np.cumsum(per_tree, axis=0) / np.arange(1, len(per_tree) + 1)[:, None]
        train_rmse = np.sqrt(np.mean((running - y[None, :]) ** 2, axis=1))
        return pd.DataFrame({'iteration': np.arange(1, len(per_tree) + 1), 'train_rmse': train_rmse})


class GradientBoostedTreeFitter(ModelFitter):
    name = "xgboost"
    params_class = XGBoostParams

    def _fit(self, X, y, params: XGBoostParams, record_curve: bool) -> PredictModel:
        estimator = XGBRegressor(
            n_estimators=params.n_estimators,
            max_depth=params.max_depth,
            learning_rate=params.learning_rate,
            subsample=params.subsample,
            colsample_bytree=params.colsample_bytree,
            min_child_weight=params.min_child_weight,
            gamma=params.gamma,
            reg_lambda=params.reg_lambda,
            objective="reg:squarederror",
            eval_metric="rmse",
            tree_method="hist",
            random_state=self.random_state if self.random_state is not None else 0,
            n_jobs=self.n_jobs,
        )
        if record_curve:
            estimator.fit(X, y, eval_set=[(X, y)], verbose=False)
            history = estimator.evals_result()['validation_0']['rmse']
            curve = pd.DataFrame({'iteration': np.arange(1, len(history) + 1), 'train_rmse': history})
        else:
            estimator.fit(X, y)
            curve = None
        return PredictModel(estimator, params, curve=curve)
