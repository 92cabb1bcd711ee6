import json

import joblib
import numpy as np
import pandas as pd
import pytest
from unittest.mock import MagicMock

from modules.data_manager import Dataset
from modules.hpo_search_engine import GridPoint
from modules.model_factory import ModelFactory, ElasticNetFitter, PredictModel
from modules.training_engine import TrainingEngine
from utils.exceptions import ModelTrainingError
from utils import constants


class BrokenFitter(ElasticNetFitter):
    def _fit(self, X, y, params, record_curve):
        raise np.linalg.LinAlgError("singular matrix")


@pytest.fixture
def mock_logger():
    return MagicMock()

@pytest.fixture
def dataset():
    rng = np.random.default_rng(7)
    X = rng.normal(size=(30, 3))
    return Dataset(features=X, labels=X[:, 0] + rng.normal(scale=0.1, size=30), feature_names=('a', 'b', 'c'))

@pytest.fixture
def config(tmp_path):
    return {
        'experiment': {'seed': 3},
        '_internal_seeds': {'cv': 3, 'model': 2003},
        'outputs': {'base_results_dir': str(tmp_path), 'save_models': True},
    }


def test_refit_saves_model_metadata_and_curve(config, dataset, mock_logger, tmp_path):
    point = GridPoint(4, {'n_estimators': 8, 'max_depth': 3})
    model = TrainingEngine(config, mock_logger).execute('random_forest', dataset, point)

    assert isinstance(model, PredictModel)
    assert model.estimator.random_state == 2003

    out_dir = tmp_path / constants.FINAL_MODEL_DIR
    curve = pd.read_csv(out_dir / "random_forest_convergence.csv")
    assert curve['iteration'].tolist() == list(range(1, 9))

    reloaded = joblib.load(out_dir / "random_forest_final_model.pkl")
    np.testing.assert_allclose(reloaded.predict(dataset.features), model.predict(dataset.features))

    metadata = json.loads((out_dir / "random_forest_metadata.json").read_text())
    assert metadata['point'] == 4
    assert metadata['params'] == {'n_estimators': 8, 'max_depth': 3}
    assert metadata['features'] == ['a', 'b', 'c']
    assert metadata['has_convergence_curve'] is True

def test_elastic_net_has_no_curve(config, dataset, mock_logger, tmp_path):
    config['outputs']['save_models'] = False
    TrainingEngine(config, mock_logger).execute('elastic_net', dataset, GridPoint(0, {'alpha': 0.5, 'lambda': 0.01}))

    out_dir = tmp_path / constants.FINAL_MODEL_DIR
    assert not (out_dir / "elastic_net_convergence.csv").exists()
    assert not (out_dir / "elastic_net_final_model.pkl").exists()

def test_failed_refit_raises_training_error(config, dataset, mock_logger, monkeypatch):
    monkeypatch.setitem(ModelFactory.FITTERS, 'elastic_net', BrokenFitter)
    with pytest.raises(ModelTrainingError, match="singular matrix"):
        TrainingEngine(config, mock_logger).execute('elastic_net', dataset, GridPoint(0, {'alpha': 0.5}))
