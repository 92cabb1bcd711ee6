import copy
import json
from pathlib import Path

import pytest

from modules.config_manager import ConfigurationManager
from utils.exceptions import InvalidConfiguration
from utils import constants

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "config" / "schema.json"

VALID_CONFIG = {
    "data": {"features_file": "train_x.csv", "labels_file": "train_y.csv"},
    "experiment": {"seed": 3, "cv_folds": 5},
    "models": {
        "elastic_net": {"enabled": True, "grid": {"alpha": [0.0, 1.0], "lambda": [1.0, 0.1]}},
        "xgboost": {"enabled": False, "grid": {"n_estimators": [10]}},
    },
    "execution": {"n_jobs": 1, "backend": "loky", "failure_policy": "skip"},
    "outputs": {"base_results_dir": "results"},
}

@pytest.fixture
def write_config(tmp_path):
    def _write(config):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(config))
        return ConfigurationManager(config_path=str(path), schema_path=str(SCHEMA_PATH))
    return _write

@pytest.fixture
def valid_config():
    return copy.deepcopy(VALID_CONFIG)


def test_valid_config_loads_and_propagates_seeds(write_config, valid_config):
    manager = write_config(valid_config)
    config = manager.load_and_validate()
    assert config['_internal_seeds'] == {'cv': 3, 'model': 2003}
    assert manager.enabled_models() == ['elastic_net']
    assert config['resources']['max_memory_mb'] > 0

def test_missing_file():
    manager = ConfigurationManager(config_path="does/not/exist.json", schema_path=str(SCHEMA_PATH))
    with pytest.raises(InvalidConfiguration, match="File not found"):
        manager.load_and_validate()

def test_malformed_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(InvalidConfiguration, match="Invalid JSON"):
        ConfigurationManager(str(path), str(SCHEMA_PATH)).load_and_validate()

def test_schema_violation(write_config, valid_config):
    del valid_config['experiment']
    with pytest.raises(InvalidConfiguration, match="Schema validation failed"):
        write_config(valid_config).load_and_validate()

@pytest.mark.parametrize("cv_folds", [0, 1])
def test_fold_count_below_two(write_config, valid_config, cv_folds):
    valid_config['experiment']['cv_folds'] = cv_folds
    with pytest.raises(InvalidConfiguration, match="cv_folds"):
        write_config(valid_config).load_and_validate()

def test_negative_seed(write_config, valid_config):
    valid_config['experiment']['seed'] = -1
    with pytest.raises(InvalidConfiguration, match="seed"):
        write_config(valid_config).load_and_validate()

def test_unknown_model(write_config, valid_config):
    valid_config['models']['svm'] = {"grid": {"C": [1]}}
    with pytest.raises(InvalidConfiguration, match="Unknown model 'svm'"):
        write_config(valid_config).load_and_validate()

def test_empty_grid_for_enabled_model(write_config, valid_config):
    valid_config['models']['elastic_net']['grid'] = {}
    with pytest.raises(InvalidConfiguration, match="cannot be empty"):
        write_config(valid_config).load_and_validate()

def test_unknown_hyperparameter(write_config, valid_config):
    valid_config['models']['elastic_net']['grid'] = {"l1_ratio": [0.5]}
    with pytest.raises(InvalidConfiguration, match="Unknown hyperparameter"):
        write_config(valid_config).load_and_validate()

def test_disabled_model_grid_not_checked(write_config, valid_config):
    valid_config['models']['xgboost']['grid'] = {"not_a_param": [1]}
    write_config(valid_config).load_and_validate()

def test_no_enabled_model(write_config, valid_config):
    valid_config['models']['elastic_net']['enabled'] = False
    with pytest.raises(InvalidConfiguration, match="No model family is enabled"):
        write_config(valid_config).load_and_validate()

@pytest.mark.parametrize("execution, message", [
    ({"n_jobs": 0}, "n_jobs"),
    ({"n_jobs": -2}, "n_jobs"),
    ({"backend": "dask"}, "backend"),
    ({"max_hours": 0}, "max_hours"),
    ({"model_n_jobs": 0}, "model_n_jobs"),
])
def test_invalid_execution_settings(write_config, valid_config, execution, message):
    valid_config['execution'].update(execution)
    with pytest.raises(InvalidConfiguration, match=message):
        write_config(valid_config).load_and_validate()

def test_grid_explosion_guard(write_config, valid_config):
    valid_config['resources'] = {'max_grid_fits': 10}
    # 4 points x 5 folds = 20 fits
    with pytest.raises(InvalidConfiguration, match="Grid Explosion"):
        write_config(valid_config).load_and_validate()

def test_save_artifacts(write_config, valid_config, tmp_path):
    manager = write_config(valid_config)
    manager.load_and_validate()
    manager.generate_run_id()
    manager.save_artifacts(str(tmp_path / "run"))

    config_dir = tmp_path / "run" / constants.CONFIG_DIR
    saved = json.loads((config_dir / constants.CONFIG_USED_FILE).read_text())
    assert saved['experiment'] == valid_config['experiment']
    assert len((config_dir / constants.CONFIG_HASH_FILE).read_text()) == 64
    metadata = json.loads((config_dir / constants.RUN_METADATA_FILE).read_text())
    assert metadata['run_id'] == manager.run_id
    assert set(metadata['library_versions']) == {'numpy', 'pandas', 'scikit-learn', 'joblib', 'xgboost'}
