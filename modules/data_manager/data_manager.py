import pandas as pd
import numpy as np
import logging
from pathlib import Path
from typing import Optional

from modules.data_manager.dataset import Dataset, LoadedData
from utils.exceptions import DataValidationError
from utils.file_io import read_dataframe, save_dataframe
from utils.error_handling import handle_engine_errors
from utils import constants

class DataManager:
    """
    Manages loading and validation of the gene-expression input tables.

    Features (rows = samples, columns = genes) and labels live in separate
    delimited files; an optional third file holds the held-out evaluation
    features that final predictions are produced for.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.data_config = config.get('data', {})
        self.base_dir = Path(self.config.get('outputs', {}).get('base_results_dir', 'results'))
        self.features: Optional[pd.DataFrame] = None
        self.labels: Optional[pd.Series] = None
        self.test_features: Optional[pd.DataFrame] = None

    @handle_engine_errors("Data Management", wrap_as=DataValidationError)
    def execute(self) -> LoadedData:
        """
        Execute complete data loading and validation workflow.

        Returns:
            LoadedData: the immutable training Dataset and optional test features.
        """
        self.logger.info("Starting Data Manager execution...")

        output_dir = self.base_dir / constants.DATA_QUALITY_DIR
        output_dir.mkdir(parents=True, exist_ok=True)

        # 1. Load
        self.features = self.load_table(self.data_config['features_file'], "features")
        self.labels = self.load_labels(self.data_config['labels_file'])
        test_path = self.data_config.get('test_features_file')
        if test_path:
            self.test_features = self.load_table(test_path, "test features")

        # 2. Validate
        self.validate_numeric(self.features, "features")
        self.validate_numeric(self.labels.to_frame(), "labels")
        self.validate_shapes()
        if self.test_features is not None:
            self.validate_numeric(self.test_features, "test features")
            self.validate_test_columns()

        # 3. Exploration summaries
        self.generate_reports(output_dir)

        dataset = Dataset(
            features=self.features.to_numpy(dtype=float),
            labels=self.labels.to_numpy(dtype=float),
            feature_names=tuple(str(c) for c in self.features.columns),
        )
        test_matrix = self.test_features.to_numpy(dtype=float) if self.test_features is not None else None

        self.logger.info(
            f"Dataset ready: {dataset.n_samples} samples x {dataset.n_features} features"
            + (f", {test_matrix.shape[0]} held-out samples" if test_matrix is not None else "")
        )
        return LoadedData(dataset=dataset, test_features=test_matrix)

    def load_table(self, path_str: str, what: str) -> pd.DataFrame:
        """Load a delimited table of samples."""
        path = Path(path_str)
        if not path.exists():
            raise DataValidationError(f"Data file for {what} not found: {path}")

        header = 0 if self.data_config.get('has_header', True) else None
        index_col = self.data_config.get('index_column')

        self.logger.info(f"Loading {what} from {path}")
        try:
            df = read_dataframe(path, delimiter=self.data_config.get('delimiter'), header=header, index_col=index_col)
        except Exception as e:
            raise DataValidationError(f"Failed to load {what} from {path}: {str(e)}") from e

        if df.empty:
            raise DataValidationError(f"Loaded {what} table is empty: {path}")

        self.logger.info(f"Loaded {what}. Shape: {df.shape}")
        return df

    def load_labels(self, path_str: str) -> pd.Series:
        """Load the label file and reduce it to a single numeric column."""
        df = self.load_table(path_str, "labels")
        label_column = self.data_config.get('label_column')

        if label_column is not None:
            if label_column not in df.columns:
                raise DataValidationError(f"Label column '{label_column}' not found. Columns: {list(df.columns)}")
            return df[label_column]

        if df.shape[1] > 1:
            self.logger.warning(
                f"Label file has {df.shape[1]} columns and no 'label_column' set; using the last column '{df.columns[-1]}'."
            )
        return df.iloc[:, -1]

    def validate_numeric(self, df: pd.DataFrame, what: str) -> None:
        """All columns numeric, no NaN or infinite values."""
        non_numeric = [c for c in df.columns if not pd.api.types.is_numeric_dtype(df[c])]
        if non_numeric:
            preview = non_numeric[:10]
            raise DataValidationError(f"Non-numeric columns in {what}: {preview}{' ...' if len(non_numeric) > 10 else ''}")

        values = df.to_numpy(dtype=float)
        nan_count = int(np.isnan(values).sum())
        inf_count = int(np.isinf(values).sum())
        if nan_count or inf_count:
            raise DataValidationError(f"{what} contain {nan_count} NaN and {inf_count} infinite values.")

    def validate_shapes(self) -> None:
        if len(self.features) != len(self.labels):
            raise DataValidationError(
                f"Feature rows ({len(self.features)}) and label rows ({len(self.labels)}) differ."
            )

    def validate_test_columns(self) -> None:
        """Held-out features must match the training genes exactly."""
        if self.test_features.shape[1] != self.features.shape[1]:
            raise DataValidationError(
                f"Test features have {self.test_features.shape[1]} columns, training has {self.features.shape[1]}."
            )
        if self.data_config.get('has_header', True):
            missing = sorted(set(self.features.columns) - set(self.test_features.columns), key=str)
            if missing:
                raise DataValidationError(f"Test features missing columns: {missing[:10]}")
            self.test_features = self.test_features[self.features.columns]

    def generate_reports(self, output_dir: Path) -> None:
        """Per-gene and label summary statistics."""
        gene_summary = pd.DataFrame({
            'feature': [str(c) for c in self.features.columns],
            'mean': self.features.mean().to_numpy(),
            'std': self.features.std().to_numpy(),
            'variance': self.features.var().to_numpy(),
            'min': self.features.min().to_numpy(),
            'max': self.features.max().to_numpy(),
        })
        save_dataframe(gene_summary, output_dir / constants.GENE_SUMMARY_FILE)

        zero_variance = int((gene_summary['variance'] == 0).sum())
        if zero_variance:
            self.logger.warning(f"{zero_variance} features have zero variance.")

        label_summary = self.labels.describe().rename_axis('statistic').reset_index(name='value')
        save_dataframe(label_summary, output_dir / constants.LABEL_SUMMARY_FILE)
        self.logger.info(f"Saved data summaries to {output_dir}")
