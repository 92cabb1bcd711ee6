import logging
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs

from modules.data_manager.dataset import Dataset
from modules.hpo_search_engine.grid import GridPoint
from modules.hpo_search_engine.records import GridResult, aggregate_point
from modules.model_factory.fitters import ModelFitter
from modules.split_engine.split_engine import FoldAssignment
from utils.exceptions import FitFailure, InvalidConfiguration
from utils.metrics import rmse
from utils import constants


@dataclass(frozen=True)
class UnitResult:
    """Outcome of one (grid point, fold) work unit."""
    point_index: int
    fold: int
    train_rmse: float = float('nan')
    valid_rmse: float = float('nan')
    error: Optional[str] = None
    error_type: Optional[str] = None


def run_unit(fitter: ModelFitter, dataset: Dataset, assignment: FoldAssignment,
             point: GridPoint, fold: int) -> UnitResult:
    """Fit from scratch on every fold but ``fold`` and score on both splits."""
    try:
        X_train, y_train = dataset.subset(assignment.train_indices(fold))
        X_valid, y_valid = dataset.subset(assignment.valid_indices(fold))

        model = fitter.fit(X_train, y_train, point.params)
        train_rmse = rmse(y_train, model.predict(X_train))
        valid_rmse = rmse(y_valid, model.predict(X_valid))

        if not (np.isfinite(train_rmse) and np.isfinite(valid_rmse)):
            return UnitResult(point.index, fold, error="model produced non-finite predictions",
                              error_type="NonFinitePredictions")
        return UnitResult(point.index, fold, train_rmse, valid_rmse)
    except Exception as e:
        return UnitResult(point.index, fold, error=str(e), error_type=type(e).__name__)


class GridEvaluator:
    """
    Grid-search k-fold cross-validation.

    Every (grid point, fold) pair is an independent work unit dispatched to a
    joblib worker pool. Units read the shared, read-only dataset and fold
    assignment and write only their own preallocated slot, so no locking is
    needed. Means are taken once all units have finished (or the run has been
    cancelled).

    Execution settings come from the ``execution`` config section:
    ``n_jobs`` (-1 = all cores), ``backend``, ``failure_policy``
    ('skip' records a FitFailure and drops the fold from the mean,
    'abort' raises it) and ``max_hours`` (wall-clock deadline, checked
    between dispatch rounds like the cancellation event).
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        execution = config.get('execution', {})
        self.n_jobs = execution.get('n_jobs', -1)
        self.backend = execution.get('backend', 'loky')
        self.failure_policy = execution.get('failure_policy', constants.FAILURE_POLICY_SKIP)
        max_hours = execution.get('max_hours')
        self.max_seconds = max_hours * 3600.0 if max_hours else None
        self.dispatch_chunk = execution.get('dispatch_chunk')

        if self.failure_policy not in constants.FAILURE_POLICIES:
            raise InvalidConfiguration(
                f"failure_policy must be one of {constants.FAILURE_POLICIES}, got {self.failure_policy!r}"
            )

    def evaluate(self, dataset: Dataset, assignment: FoldAssignment, grid: Sequence[GridPoint],
                 fitter: ModelFitter, model_name: Optional[str] = None,
                 cancel_event: Optional[threading.Event] = None) -> GridResult:
        """
        Produce one ErrorRecord per grid point.

        Raises:
            InvalidConfiguration: empty or malformed grid, mismatched assignment.
            DegenerateFold: a fold with an empty training or validation split.
            FitFailure: only under failure_policy='abort'.
        """
        model_name = model_name or fitter.name
        if not grid:
            raise InvalidConfiguration(f"Grid for {model_name} is empty.")
        if assignment.n_samples != dataset.n_samples:
            raise InvalidConfiguration(
                f"Fold assignment covers {assignment.n_samples} samples, dataset has {dataset.n_samples}."
            )
        assignment.check_non_degenerate()
        # Malformed points fail the whole grid up front rather than once per fold
        for point in grid:
            fitter.parse_params(point.params)

        n_folds = assignment.n_folds
        units = [(point, fold) for point in grid for fold in range(n_folds)]
        train_slots = np.full((len(grid), n_folds), np.nan)
        valid_slots = np.full((len(grid), n_folds), np.nan)
        failed = np.zeros((len(grid), n_folds), dtype=bool)
        position = {point.index: i for i, point in enumerate(grid)}
        failures: List[FitFailure] = []

        n_workers = effective_n_jobs(self.n_jobs)
        chunk = self.dispatch_chunk or max(1, 2 * n_workers)
        deadline = time.monotonic() + self.max_seconds if self.max_seconds else None

        self.logger.info(
            f"Evaluating {model_name}: {len(grid)} grid points x {n_folds} folds = {len(units)} fits "
            f"on {n_workers} worker(s) [{self.backend}]"
        )

        completed = 0
        cancelled = False
        with Parallel(n_jobs=self.n_jobs, backend=self.backend) as parallel:
            for start in range(0, len(units), chunk):
                if self._should_stop(cancel_event, deadline):
                    cancelled = True
                    break

                batch = units[start:start + chunk]
                outcomes = parallel(
                    delayed(run_unit)(fitter, dataset, assignment, point, fold)
                    for point, fold in batch
                )

                for (point, _), outcome in zip(batch, outcomes):
                    row = position[outcome.point_index]
                    completed += 1
                    if outcome.error is not None:
                        failure = FitFailure(point.index, point.params, outcome.fold,
                                             outcome.error, outcome.error_type)
                        failed[row, outcome.fold] = True
                        failures.append(failure)
                        self.logger.warning(str(failure))
                        if self.failure_policy == constants.FAILURE_POLICY_ABORT:
                            raise failure
                    else:
                        train_slots[row, outcome.fold] = outcome.train_rmse
                        valid_slots[row, outcome.fold] = outcome.valid_rmse

                self.logger.debug(f"{model_name}: {completed}/{len(units)} fits done")

        if cancelled:
            self.logger.warning(f"{model_name}: grid search cancelled after {completed}/{len(units)} fits.")

        records = []
        for row, point in enumerate(grid):
            ok = ~np.isnan(valid_slots[row]) & ~failed[row]
            records.append(aggregate_point(
                point,
                train_scores=train_slots[row][ok].tolist(),
                valid_scores=valid_slots[row][ok].tolist(),
                failed_folds=int(failed[row].sum()),
                n_folds=n_folds,
            ))

        result = GridResult(
            model_name=model_name,
            records=records,
            failures=failures,
            n_units=len(units),
            completed_units=completed,
            cancelled=cancelled,
        )
        summary = result.summary()
        self.logger.info(
            f"{model_name}: {summary['available_points']}/{summary['grid_points']} points available, "
            f"{summary['units_failed']} of {summary['units_completed']} fits failed"
        )
        return result

    @staticmethod
    def _should_stop(cancel_event: Optional[threading.Event], deadline: Optional[float]) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and time.monotonic() >= deadline
