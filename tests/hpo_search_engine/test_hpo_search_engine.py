import json

import numpy as np
import pandas as pd
import pytest
from unittest.mock import MagicMock

from modules.data_manager import Dataset
from modules.hpo_search_engine import HPOSearchEngine
from modules.model_factory import ModelFactory, ElasticNetFitter
from modules.split_engine import partition_folds
from utils import constants


class AlwaysFailingFitter(ElasticNetFitter):
    def _fit(self, X, y, params, record_curve):
        raise RuntimeError("solver diverged")


@pytest.fixture
def mock_logger():
    return MagicMock()

@pytest.fixture
def dataset():
    rng = np.random.default_rng(1)
    X = rng.normal(size=(25, 3))
    y = X[:, 0] - 0.5 * X[:, 2] + rng.normal(scale=0.1, size=25)
    return Dataset(features=X, labels=y, feature_names=('g1', 'g2', 'g3'))

@pytest.fixture
def config(tmp_path):
    return {
        'experiment': {'seed': 3, 'cv_folds': 5},
        '_internal_seeds': {'cv': 3, 'model': 2003},
        'models': {
            'elastic_net': {'enabled': True, 'grid': {'alpha': [0.5, 1.0], 'lambda': [1.0, 0.01]}},
        },
        'execution': {'n_jobs': 1, 'backend': 'threading'},
        'outputs': {'base_results_dir': str(tmp_path)},
    }


def test_search_writes_table_and_best_point(config, dataset, mock_logger, tmp_path):
    engine = HPOSearchEngine(config, mock_logger)
    outcome = engine.execute('elastic_net', dataset, partition_folds(25, 5, 3))

    out_dir = tmp_path / constants.GRID_SEARCH_DIR
    table = pd.read_csv(out_dir / "elastic_net_grid_results.csv")
    assert len(table) == 4
    assert table[constants.STATUS_COL].eq(constants.STATUS_OK).all()
    assert not (out_dir / "elastic_net_fit_failures.csv").exists()

    # Strong signal: the weakly regularized points beat lambda=1
    assert outcome.best_point.params['lambda'] == 0.01
    assert outcome.best_valid_rmse == pytest.approx(table[constants.VALID_RMSE_COL].min())
    assert engine.model_seed == 2003

    with open(out_dir / "elastic_net_best_point.json") as f:
        saved = json.load(f)
    assert saved['point'] == outcome.best_point.index
    assert saved['params'] == outcome.best_point.params
    assert saved['metrics']['cv_valid_rmse'] == pytest.approx(outcome.best_valid_rmse)


def test_all_points_unavailable(config, dataset, mock_logger, tmp_path, monkeypatch):
    monkeypatch.setitem(ModelFactory.FITTERS, 'elastic_net', AlwaysFailingFitter)

    outcome = HPOSearchEngine(config, mock_logger).execute('elastic_net', dataset, partition_folds(25, 5, 3))

    assert outcome.best_point is None
    assert np.isnan(outcome.best_valid_rmse)
    assert len(outcome.result.failures) == 20

    out_dir = tmp_path / constants.GRID_SEARCH_DIR
    failures = pd.read_csv(out_dir / "elastic_net_fit_failures.csv")
    assert set(failures['cause_type']) == {'RuntimeError'}
    assert not (out_dir / "elastic_net_best_point.json").exists()
    mock_logger.error.assert_called()
