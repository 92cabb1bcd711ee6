from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Dataset:
    """
    N labeled samples: a (N, P) numeric feature matrix and a length-N label vector.

    Arrays are made read-only on construction so the dataset can be shared
    across cross-validation work units without copies or locking.
    """
    features: np.ndarray
    labels: np.ndarray
    feature_names: Tuple[str, ...] = ()

    def __post_init__(self):
        features = np.ascontiguousarray(self.features, dtype=float)
        labels = np.ascontiguousarray(self.labels, dtype=float).ravel()
        if features.ndim != 2:
            raise ValueError(f"Features must be 2-dimensional, got shape {features.shape}")
        if features.shape[0] != labels.shape[0]:
            raise ValueError(
                f"Feature rows ({features.shape[0]}) and labels ({labels.shape[0]}) differ in length"
            )
        features.setflags(write=False)
        labels.setflags(write=False)
        object.__setattr__(self, 'features', features)
        object.__setattr__(self, 'labels', labels)
        object.__setattr__(self, 'feature_names', tuple(self.feature_names))

    @property
    def n_samples(self) -> int:
        return self.features.shape[0]

    @property
    def n_features(self) -> int:
        return self.features.shape[1]

    def subset(self, indices: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Features and labels of the given sample indices."""
        return self.features[indices], self.labels[indices]


@dataclass(frozen=True)
class LoadedData:
    """Training dataset plus the optional held-out evaluation features."""
    dataset: Dataset
    test_features: Optional[np.ndarray] = None
