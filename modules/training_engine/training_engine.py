import gc
import json
import logging
import time

import joblib

from modules.base.base_engine import BaseEngine
from modules.data_manager.dataset import Dataset
from modules.hpo_search_engine.grid import GridPoint
from modules.hpo_search_engine.hpo_search_engine import NumpyEncoder
from modules.model_factory import ModelFactory, PredictModel
from utils.error_handling import handle_engine_errors
from utils.exceptions import ModelTrainingError
from utils.file_io import save_dataframe
from utils.metrics import rmse
from utils import constants

class TrainingEngine(BaseEngine):
    """
    Refits a model family on the full dataset with its selected grid point.

    Saves the fitted model, its metadata and, for models that expose one,
    the per-iteration training RMSE curve.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        seeds = config.get('_internal_seeds', {})
        self.model_seed = seeds.get('model', config.get('experiment', {}).get('seed'))
        self.model_n_jobs = config.get('execution', {}).get('model_n_jobs', 1)

    def _get_engine_directory_name(self) -> str:
        return constants.FINAL_MODEL_DIR

    @handle_engine_errors("Training", wrap_as=ModelTrainingError)
    def execute(self, model_name: str, dataset: Dataset, point: GridPoint) -> PredictModel:
        """
        Train ``model_name`` on every sample of ``dataset``.

        Returns:
            The fitted PredictModel.
        """
        self.logger.info(
            f"Training final {model_name} on {dataset.n_samples} samples x {dataset.n_features} features "
            f"with point #{point.index} ({point.label()})"
        )
        fitter = ModelFactory.create(model_name, random_state=self.model_seed, n_jobs=self.model_n_jobs)

        try:
            start_time = time.time()
            model = fitter.fit(dataset.features, dataset.labels, point.params, record_curve=True)
            duration = time.time() - start_time
        except Exception as e:
            gc.collect()
            raise ModelTrainingError(f"Failed to train final {model_name}: {str(e)}") from e

        train_rmse = rmse(dataset.labels, model.predict(dataset.features))
        self.logger.info(f"{model_name} trained in {duration:.2f} seconds (full-data trainRMSE={train_rmse:.4f}).")

        curve = model.training_curve()
        if curve is not None:
            curve_path = self.artifact_path(constants.CONVERGENCE_TEMPLATE, model_name)
            save_dataframe(curve, curve_path)
            self.logger.info(f"Convergence curve ({len(curve)} iterations) saved to {curve_path}")

        if self.config.get('outputs', {}).get('save_models', True):
            self._save_artifacts(model_name, model, point, dataset, duration, train_rmse, curve is not None)

        gc.collect()
        return model

    def _save_artifacts(self, model_name: str, model: PredictModel, point: GridPoint, dataset: Dataset,
                        duration: float, train_rmse: float, has_curve: bool) -> None:
        try:
            model_path = self.artifact_path(constants.MODEL_FILE_TEMPLATE, model_name)
            joblib.dump(model, model_path)
            self.logger.info(f"Model saved to {model_path}")

            metadata = {
                'model': model_name,
                'point': point.index,
                'params': point.params,
                'random_state': self.model_seed,
                'n_features': dataset.n_features,
                'n_samples': dataset.n_samples,
                'features': list(dataset.feature_names),
                'full_data_train_rmse': train_rmse,
                'has_convergence_curve': has_curve,
                'training_time_sec': duration,
                'timestamp': time.strftime("%Y-%m-%d %H:%M:%S"),
            }
            with open(self.artifact_path(constants.MODEL_METADATA_TEMPLATE, model_name), 'w') as f:
                json.dump(metadata, f, indent=2, cls=NumpyEncoder)
        except OSError as e:
            self.logger.warning(f"Failed to save model artifacts for {model_name}. Error: {e}")
