import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from modules.data_manager import DataManager
from modules.evaluation_engine import cv_fold_consistency, model_comparison
from modules.hpo_search_engine import HPOSearchEngine, SearchOutcome
from modules.prediction_engine import PredictionEngine
from modules.split_engine import FoldPartitioner
from modules.training_engine import TrainingEngine
from utils.file_io import save_dataframe
from utils import constants

class ExperimentRunner:
    """
    Orchestrates one experiment run.

    Data is loaded and partitioned once; every enabled model family then
    gets a grid search on the shared fold assignment, a refit of its best
    point on the full dataset and held-out predictions. A family whose
    points are all unavailable is reported and skipped so the other
    families still complete.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.base_dir = Path(config.get('outputs', {}).get('base_results_dir', 'results'))

        self.data_manager = DataManager(config, logger)
        self.fold_partitioner = FoldPartitioner(config, logger)
        self.search_engine = HPOSearchEngine(config, logger)
        self.training_engine = TrainingEngine(config, logger)
        self.prediction_engine = PredictionEngine(config, logger)

    def run(self, model_names: Optional[List[str]] = None,
            cancel_event: Optional[threading.Event] = None) -> Dict[str, Any]:
        """
        Execute the experiment.

        Args:
            model_names: Families to run; defaults to every enabled family.
            cancel_event: Set it from another thread to stop between work units.

        Returns:
            Run summary (also written to the comparison directory).
        """
        if model_names is None:
            model_names = [n for n, cfg in self.config['models'].items() if cfg.get('enabled', True)]

        loaded = self.data_manager.execute()
        dataset = loaded.dataset
        assignment = self.fold_partitioner.execute(dataset.n_samples)

        outcomes: List[SearchOutcome] = []
        predictions_written: List[str] = []
        cancelled = False

        for model_name in model_names:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                self.logger.warning(f"Run cancelled before {model_name}.")
                break

            self.logger.info("=" * 60)
            self.logger.info(f"MODEL: {model_name}")
            self.logger.info("=" * 60)

            outcome = self.search_engine.execute(model_name, dataset, assignment, cancel_event=cancel_event)
            outcomes.append(outcome)

            if outcome.result.cancelled:
                cancelled = True
                self.logger.warning(f"{model_name}: search cancelled; skipping final refit.")
                break
            if outcome.best_point is None:
                self.logger.error(f"{model_name}: every grid point is unavailable; skipping final refit.")
                continue

            model = self.training_engine.execute(model_name, dataset, outcome.best_point)

            if loaded.test_features is not None:
                self.prediction_engine.execute(model_name, model, loaded.test_features,
                                               expected_features=dataset.n_features)
                predictions_written.append(model_name)

        return self._finalize(outcomes, predictions_written, cancelled)

    def _finalize(self, outcomes: List[SearchOutcome], predictions_written: List[str],
                  cancelled: bool) -> Dict[str, Any]:
        output_dir = self.base_dir / constants.COMPARISON_DIR
        output_dir.mkdir(parents=True, exist_ok=True)

        comparison = model_comparison(outcomes)
        save_dataframe(comparison, output_dir / constants.COMPARISON_FILE)

        fold_scores = {
            o.model_name: o.result.records[o.best_point.index].fold_valid_rmse
            for o in outcomes if o.best_point is not None
        }
        save_dataframe(cv_fold_consistency(fold_scores), output_dir / constants.FOLD_CONSISTENCY_FILE)

        summary = {
            'models': [o.result.summary() for o in outcomes],
            'best': {
                o.model_name: {
                    'point': o.best_point.index,
                    'params': o.best_point.params,
                    constants.TRAIN_RMSE_COL: o.best_train_rmse,
                    constants.VALID_RMSE_COL: o.best_valid_rmse,
                }
                for o in outcomes if o.best_point is not None
            },
            'predictions': predictions_written,
            'total_failed_fits': sum(len(o.result.failures) for o in outcomes),
            'cancelled': cancelled,
        }
        with open(output_dir / constants.RUN_SUMMARY_FILE, 'w') as f:
            json.dump(summary, f, indent=2, default=float)

        for model_summary in summary['models']:
            if model_summary['units_failed']:
                self.logger.warning(
                    f"{model_summary['model']}: {model_summary['units_failed']} of {model_summary['units_total']} "
                    f"fits failed ({model_summary['failure_causes']})"
                )
        if not comparison.empty and comparison.iloc[0]['status'] == constants.STATUS_OK:
            winner = comparison.iloc[0]
            self.logger.info(f"Lowest validRMSE: {winner['model']} ({winner[constants.VALID_RMSE_COL]:.4f})")

        return summary
