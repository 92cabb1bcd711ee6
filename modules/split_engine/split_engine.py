"""
Fold partitioning for k-fold cross-validation.

Samples are assigned to folds purely by index (no stratification). The
assignment is reproducible for a fixed seed and fold sizes differ by at
most one, so every sample is held out exactly once across the k folds.
"""
import logging
from dataclasses import dataclass
from typing import List

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold

from modules.base.base_engine import BaseEngine
from utils.error_handling import handle_engine_errors
from utils.exceptions import InvalidConfiguration, DegenerateFold
from utils.file_io import save_dataframe
from utils import constants


@dataclass(frozen=True)
class FoldAssignment:
    """Mapping from sample index to fold id in [0, n_folds)."""
    fold_ids: np.ndarray
    n_folds: int
    seed: int

    def __post_init__(self):
        self.fold_ids.setflags(write=False)

    @property
    def n_samples(self) -> int:
        return len(self.fold_ids)

    def valid_indices(self, fold: int) -> np.ndarray:
        return np.flatnonzero(self.fold_ids == fold)

    def train_indices(self, fold: int) -> np.ndarray:
        return np.flatnonzero(self.fold_ids != fold)

    def fold_sizes(self) -> List[int]:
        return np.bincount(self.fold_ids, minlength=self.n_folds).tolist()

    def check_non_degenerate(self) -> None:
        """Raise DegenerateFold if any fold leaves an empty training or validation split."""
        for fold, size in enumerate(self.fold_sizes()):
            if size == 0:
                raise DegenerateFold(f"Fold {fold} has an empty validation split.")
            if size == self.n_samples:
                raise DegenerateFold(f"Fold {fold} has an empty training split.")

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({'index': np.arange(self.n_samples), 'fold': self.fold_ids})


def partition_folds(n_samples: int, n_folds: int, seed: int) -> FoldAssignment:
    """
    Deterministically assign sample indices 0..n_samples-1 to n_folds balanced folds.

    Raises:
        InvalidConfiguration: if n_folds < 2 or n_folds > n_samples.
    """
    if n_folds < 2:
        raise InvalidConfiguration(f"Fold count must be >= 2, got {n_folds}.")
    if n_folds > n_samples:
        raise InvalidConfiguration(f"Fold count ({n_folds}) exceeds number of samples ({n_samples}).")

    fold_ids = np.empty(n_samples, dtype=np.int64)
    cv = KFold(n_splits=n_folds, shuffle=True, random_state=seed)
    for fold, (_, valid_idx) in enumerate(cv.split(np.zeros((n_samples, 1)))):
        fold_ids[valid_idx] = fold
    return FoldAssignment(fold_ids=fold_ids, n_folds=n_folds, seed=seed)


class FoldPartitioner(BaseEngine):
    """
    Builds the fold assignment shared by every model's grid search and
    persists it so a run can be audited or reproduced.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)

    def _get_engine_directory_name(self) -> str:
        return constants.FOLD_ASSIGNMENT_DIR

    @handle_engine_errors("Fold Partitioning")
    def execute(self, n_samples: int) -> FoldAssignment:
        n_folds = self.config['experiment']['cv_folds']
        seed = self.config.get('_internal_seeds', {}).get('cv', self.config['experiment'].get('seed', 0))

        assignment = partition_folds(n_samples, n_folds, seed)
        self.logger.info(f"Partitioned {n_samples} samples into {n_folds} folds (seed={seed}): sizes {assignment.fold_sizes()}")

        save_dataframe(assignment.to_frame(), self.output_dir / constants.FOLD_ASSIGNMENT_FILE)
        return assignment
