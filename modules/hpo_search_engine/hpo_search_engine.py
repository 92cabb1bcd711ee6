import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from modules.base.base_engine import BaseEngine
from modules.data_manager.dataset import Dataset
from modules.hpo_search_engine.grid import GridPoint, build_grid
from modules.hpo_search_engine.grid_evaluator import GridEvaluator
from modules.hpo_search_engine.records import GridResult
from modules.model_factory import ModelFactory
from modules.selector import select_best_from_table
from modules.split_engine.split_engine import FoldAssignment
from utils.error_handling import handle_engine_errors
from utils.exceptions import EmptyGrid
from utils.file_io import read_dataframe, save_dataframe
from utils import constants


class NumpyEncoder(json.JSONEncoder):
    """Handles serialization of NumPy types to JSON."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        return json.JSONEncoder.default(self, obj)


@dataclass
class SearchOutcome:
    """Grid result of one model family and the point selected from its persisted Result Table."""
    model_name: str
    result: GridResult
    best_point: Optional[GridPoint]
    best_train_rmse: float = float('nan')
    best_valid_rmse: float = float('nan')


class HPOSearchEngine(BaseEngine):
    """
    Hyperparameter search for one model family.

    Expands the configured grid, runs cross-validated evaluation, writes the
    Result Table (and fit failures, if any), then reads the table back and
    selects the best point from it.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        self.evaluator = GridEvaluator(config, logger)
        seeds = config.get('_internal_seeds', {})
        self.model_seed = seeds.get('model', config.get('experiment', {}).get('seed'))
        self.model_n_jobs = config.get('execution', {}).get('model_n_jobs', 1)

    def _get_engine_directory_name(self) -> str:
        return constants.GRID_SEARCH_DIR

    @handle_engine_errors("Hyperparameter Search")
    def execute(self, model_name: str, dataset: Dataset, assignment: FoldAssignment,
                cancel_event: Optional[threading.Event] = None) -> SearchOutcome:
        """
        Run the grid search for ``model_name`` and persist its Result Table.

        Returns:
            SearchOutcome with best_point=None when every point is unavailable.
        """
        model_cfg = self.config['models'][model_name]
        grid = build_grid(model_cfg['grid'])
        fitter = ModelFactory.create(model_name, random_state=self.model_seed, n_jobs=self.model_n_jobs)

        self.logger.info(f"Starting grid search for {model_name} ({len(grid)} points)...")
        result = self.evaluator.evaluate(dataset, assignment, grid, fitter,
                                         model_name=model_name, cancel_event=cancel_event)

        table_path = self.artifact_path(constants.GRID_RESULTS_TEMPLATE, model_name)
        save_dataframe(result.to_frame(), table_path)
        self.logger.info(f"Result table saved to {table_path}")

        if result.failures:
            failures_path = self.artifact_path(constants.FIT_FAILURES_TEMPLATE, model_name)
            save_dataframe(result.failures_frame(), failures_path)
            self.logger.warning(f"{len(result.failures)} fit failures for {model_name} written to {failures_path}")

        return self._finalize_results(model_name, grid, result, table_path)

    def _finalize_results(self, model_name: str, grid: List[GridPoint],
                          result: GridResult, table_path) -> SearchOutcome:
        """Select from the persisted table and record the chosen point."""
        table = read_dataframe(table_path)
        try:
            selected = select_best_from_table(table)
        except EmptyGrid as e:
            self.logger.error(f"No usable grid point for {model_name}: {e}")
            return SearchOutcome(model_name=model_name, result=result, best_point=None)

        # Parameter values are taken from the in-memory grid to keep their original types
        best_point = grid[selected[constants.POINT_INDEX_COL]]
        outcome = SearchOutcome(
            model_name=model_name,
            result=result,
            best_point=best_point,
            best_train_rmse=selected[constants.TRAIN_RMSE_COL],
            best_valid_rmse=selected[constants.VALID_RMSE_COL],
        )

        formatted_best: Dict[str, Any] = {
            'model': model_name,
            'point': best_point.index,
            'params': best_point.params,
            'metrics': {
                'cv_train_rmse': outcome.best_train_rmse,
                'cv_valid_rmse': outcome.best_valid_rmse,
            },
        }
        with open(self.artifact_path(constants.BEST_POINT_TEMPLATE, model_name), 'w') as f:
            json.dump(formatted_best, f, indent=2, cls=NumpyEncoder)

        self.logger.info(
            f"Best {model_name} point #{best_point.index} ({best_point.label()}): "
            f"validRMSE={outcome.best_valid_rmse:.4f}, trainRMSE={outcome.best_train_rmse:.4f}"
        )
        return outcome
