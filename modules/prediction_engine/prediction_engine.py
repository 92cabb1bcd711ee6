import logging
from typing import Optional

import numpy as np
import pandas as pd

from modules.base.base_engine import BaseEngine
from modules.model_factory import PredictModel
from utils.error_handling import handle_engine_errors
from utils.exceptions import PredictionError
from utils.file_io import save_dataframe
from utils import constants

class PredictionEngine(BaseEngine):
    """
    Predicts the held-out evaluation samples with a fitted model.

    Output is a two-column table (Id, Predicted) with Id starting at 0 and
    incrementing by one per row, in the order of the evaluation file.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        self.prediction_column = config.get('outputs', {}).get('prediction_column', constants.PREDICTED_COL)

    def _get_engine_directory_name(self) -> str:
        return constants.PREDICTIONS_DIR

    @handle_engine_errors("Prediction", wrap_as=PredictionError)
    def execute(self, model_name: str, model: PredictModel, features: np.ndarray,
                expected_features: Optional[int] = None) -> pd.DataFrame:
        """
        Generate and save predictions for ``features``.

        Returns:
            DataFrame with columns Id and the prediction column.
        """
        features = np.asarray(features, dtype=float)
        if features.ndim != 2:
            raise PredictionError(f"Evaluation features must be 2-dimensional, got shape {features.shape}")
        if expected_features is not None and features.shape[1] != expected_features:
            raise PredictionError(
                f"Evaluation features have {features.shape[1]} columns, model expects {expected_features}"
            )

        self.logger.info(f"Generating {model_name} predictions for {features.shape[0]} held-out samples...")
        preds = model.predict(features)

        results_df = pd.DataFrame({
            constants.ID_COL: np.arange(len(preds)),
            self.prediction_column: preds,
        })

        if self.config.get('outputs', {}).get('save_predictions', True):
            save_path = self.artifact_path(constants.PREDICTIONS_TEMPLATE, model_name)
            save_dataframe(results_df, save_path, index=False)
            self.logger.info(f"Predictions saved to {save_path}")

        return results_df
