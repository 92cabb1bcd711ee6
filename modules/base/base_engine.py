import abc
import logging
from pathlib import Path
from typing import Any, Dict


class BaseEngine(abc.ABC):
    """
    Common base of the run's engines.

    Each engine owns one numbered directory under ``outputs.base_results_dir``
    (see ``utils.constants``) and writes its per-model artifacts there.
    """

    def __init__(self, config: Dict[str, Any], logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.base_dir = Path(config.get('outputs', {}).get('base_results_dir', 'results'))
        self.output_dir = self.base_dir / self._get_engine_directory_name()

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Output directory for {self.__class__.__name__}: {self.output_dir}")

    @abc.abstractmethod
    def _get_engine_directory_name(self) -> str:
        """One of the numbered result directories, e.g. '04_GridSearch'."""
        raise NotImplementedError

    def artifact_path(self, template: str, model_name: str) -> Path:
        """Path of a ``{model}_...`` file template inside this engine's directory."""
        return self.output_dir / template.format(model=model_name)

    @abc.abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        raise NotImplementedError
