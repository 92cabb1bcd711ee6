import pytest
from modules.model_factory import (
    ModelFactory, ElasticNetFitter, RandomForestFitter, GradientBoostedTreeFitter,
)
from utils.exceptions import InvalidConfiguration

def test_factory_creates_each_family():
    assert isinstance(ModelFactory.create('elastic_net'), ElasticNetFitter)
    assert isinstance(ModelFactory.create('random_forest', random_state=1), RandomForestFitter)
    fitter = ModelFactory.create('xgboost', random_state=7, n_jobs=2)
    assert isinstance(fitter, GradientBoostedTreeFitter)
    assert fitter.random_state == 7
    assert fitter.n_jobs == 2

def test_factory_unknown_model():
    with pytest.raises(InvalidConfiguration, match="Unknown model name"):
        ModelFactory.create('svm')

def test_available_models():
    assert ModelFactory.get_available_models() == ['elastic_net', 'random_forest', 'xgboost']

def test_validate_params_accepts_aliases():
    ModelFactory.validate_params('elastic_net', {'alpha': 0.5, 'lambda': 0.1})
    ModelFactory.validate_params('random_forest', {'ntree': 10, 'mtry': 0.3})
    ModelFactory.validate_params('xgboost', {'nrounds': 10, 'eta': 0.1})

def test_validate_params_rejects_unknown_names():
    with pytest.raises(InvalidConfiguration, match="Unknown hyperparameter"):
        ModelFactory.validate_params('elastic_net', {'l1': 0.5})

def test_validate_params_rejects_out_of_range():
    with pytest.raises(InvalidConfiguration, match=r"\[0, 1\]"):
        ModelFactory.validate_params('elastic_net', {'alpha': 1.5})
