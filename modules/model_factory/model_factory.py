from typing import Dict, List, Optional, Type

from modules.model_factory.fitters import (
    ModelFitter,
    ElasticNetFitter,
    RandomForestFitter,
    GradientBoostedTreeFitter,
)
from utils.exceptions import InvalidConfiguration

class ModelFactory:
    """
    Factory resolving a model family name to its fitting capability.
    """

    FITTERS: Dict[str, Type[ModelFitter]] = {
        'elastic_net': ElasticNetFitter,
        'random_forest': RandomForestFitter,
        'xgboost': GradientBoostedTreeFitter,
    }

    @classmethod
    def create(cls, model_name: str, random_state: Optional[int] = None, n_jobs: int = 1) -> ModelFitter:
        """
        Create and return a fitter for ``model_name``.
        """
        if model_name not in cls.FITTERS:
            raise InvalidConfiguration(
                f"Unknown model name: {model_name}. Available: {cls.get_available_models()}"
            )
        return cls.FITTERS[model_name](random_state=random_state, n_jobs=n_jobs)

    @classmethod
    def get_available_models(cls) -> List[str]:
        """Return list of all supported model names."""
        return list(cls.FITTERS.keys())

    @classmethod
    def validate_params(cls, model_name: str, params: dict) -> None:
        """
        Check that a grid point maps onto the model's parameter struct.
        Raises InvalidConfiguration otherwise.
        """
        fitter_class = cls.FITTERS.get(model_name)
        if fitter_class is None:
            raise InvalidConfiguration(
                f"Unknown model name: {model_name}. Available: {cls.get_available_models()}"
            )
        fitter_class().parse_params(params)
