import json
import os
import hashlib
import platform
import sys
import logging
import jsonschema
import psutil  # Required for memory awareness
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List

from modules.hpo_search_engine.grid import build_grid
from modules.model_factory import ModelFactory
from utils.exceptions import InvalidConfiguration
from utils import constants

class ConfigurationManager:
    """
    Manages experiment configuration loading, validation, and access.
    Acts as the single source of truth and safety guard for the run.

    Validation happens in four passes: JSON schema, logical rules (fold
    count, grids, execution settings), resource limits, then seed
    propagation so every component receives its seed explicitly.
    """

    # Default Resource Limits (Safety Guardrails)
    DEFAULT_MAX_GRID_FITS = 10000  # grid points x folds, summed over models
    VALID_BACKENDS = ('loky', 'threading', 'multiprocessing', 'sequential')

    def __init__(self, config_path: str = "config/config.json",
                 schema_path: str = "config/schema.json"):
        """
        Initialize the ConfigurationManager.

        Args:
            config_path (str): Path to the user configuration JSON.
            schema_path (str): Path to the JSON schema definition.
        """
        self.config_path = config_path
        self.schema_path = schema_path
        self.config: Dict[str, Any] = {}
        self.schema: Dict[str, Any] = {}
        self.run_id: Optional[str] = None
        self.logger = logging.getLogger("config_manager")

    def load_and_validate(self) -> Dict[str, Any]:
        """
        Main entry point. Loads config and schema, then validates.

        Returns:
            Dict[str, Any]: The fully validated and hydrated configuration.

        Raises:
            InvalidConfiguration: If any validation step fails.
        """
        self.config = self._load_json(self.config_path)
        self.schema = self._load_json(self.schema_path)
        return self.validate()

    def validate(self) -> Dict[str, Any]:
        """Run every validation pass on the loaded config (re-run after CLI overrides)."""
        self._validate_schema()
        self._validate_logic()
        self._validate_resources()
        self._propagate_seeds()
        return self.config

    def enabled_models(self) -> List[str]:
        return [name for name, cfg in self.config.get('models', {}).items() if cfg.get('enabled', True)]

    def generate_run_id(self) -> str:
        """
        Generate or retrieve a unique run identifier based on timestamp.
        """
        if not self.run_id:
            self.run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.run_id

    def save_artifacts(self, output_dir: str) -> None:
        """
        Save configuration artifacts to the run directory for full reproducibility.

        Saves:
        1. config_used.json: The exact config object in memory.
        2. config_hash.txt: SHA256 hash for versioning.
        3. run_metadata.json: Environment details (Python, platform, library versions).
        """
        config_dir = Path(output_dir) / constants.CONFIG_DIR
        config_dir.mkdir(parents=True, exist_ok=True)

        with open(config_dir / constants.CONFIG_USED_FILE, 'w') as f:
            json.dump(self.config, f, indent=2)

        config_str = json.dumps(self.config, sort_keys=True)
        config_hash = hashlib.sha256(config_str.encode()).hexdigest()

        with open(config_dir / constants.CONFIG_HASH_FILE, 'w') as f:
            f.write(config_hash)

        metadata = {
            'run_id': self.run_id,
            'start_time': datetime.now().isoformat(),
            'python_version': sys.version,
            'platform': platform.platform(),
            'config_hash': config_hash,
            'working_directory': os.getcwd(),
            'library_versions': self._library_versions(),
        }

        with open(config_dir / constants.RUN_METADATA_FILE, 'w') as f:
            json.dump(metadata, f, indent=2)

    @staticmethod
    def _library_versions() -> Dict[str, str]:
        import numpy, pandas, sklearn, joblib, xgboost
        return {
            'numpy': numpy.__version__,
            'pandas': pandas.__version__,
            'scikit-learn': sklearn.__version__,
            'joblib': joblib.__version__,
            'xgboost': xgboost.__version__,
        }

    def _load_json(self, path: str) -> Dict[str, Any]:
        """Safely load a JSON file."""
        if not os.path.exists(path):
            raise InvalidConfiguration(f"File not found: {path}")
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfiguration(f"Invalid JSON in {path}: {str(e)}")

    def _validate_schema(self) -> None:
        """Validate config structure against JSON schema."""
        if not self.schema:
            return
        try:
            jsonschema.validate(instance=self.config, schema=self.schema)
        except jsonschema.ValidationError as e:
            raise InvalidConfiguration(f"Schema validation failed: {e.message}")

    def _validate_logic(self) -> None:
        """Comprehensive logical validation."""
        # --- Data Section ---
        data = self.config.get('data', {})
        for key in ['features_file', 'labels_file']:
            if not data.get(key):
                raise InvalidConfiguration(f"Data '{key}' must be specified and non-empty.")

        # --- Experiment Section ---
        experiment = self.config.get('experiment', {})
        cv_folds = experiment.get('cv_folds', 5)
        if not isinstance(cv_folds, int) or isinstance(cv_folds, bool) or cv_folds < 2:
            raise InvalidConfiguration(f"cv_folds must be an integer >= 2, got {cv_folds}.")
        seed = experiment.get('seed', 0)
        if not isinstance(seed, int) or seed < 0:
            raise InvalidConfiguration(f"Experiment seed must be a non-negative integer, got {seed}.")

        # --- Models Section ---
        models = self.config.get('models', {})
        if not models:
            raise InvalidConfiguration("At least one model family must be configured.")
        available = ModelFactory.get_available_models()
        for name, model_cfg in models.items():
            if name not in available:
                raise InvalidConfiguration(f"Unknown model '{name}'. Available: {available}")
            if not model_cfg.get('enabled', True):
                continue
            grid = model_cfg.get('grid')
            if not grid:
                raise InvalidConfiguration(f"Hyperparameter grid for '{name}' cannot be empty when enabled.")
            for point in build_grid(grid):
                ModelFactory.validate_params(name, point.params)
        if not self.enabled_models():
            raise InvalidConfiguration("No model family is enabled.")

        # --- Execution Section ---
        execution = self.config.get('execution', {})
        if 'n_jobs' in execution:
            n_jobs = execution['n_jobs']
            if n_jobs == 0 or n_jobs < -1:
                raise InvalidConfiguration(f"execution.n_jobs must be -1 (all cores) or a positive integer, got {n_jobs}")
        backend = execution.get('backend', 'loky')
        if backend not in self.VALID_BACKENDS:
            raise InvalidConfiguration(f"execution.backend must be one of {self.VALID_BACKENDS}, got {backend!r}")
        policy = execution.get('failure_policy', constants.FAILURE_POLICY_SKIP)
        if policy not in constants.FAILURE_POLICIES:
            raise InvalidConfiguration(f"execution.failure_policy must be one of {constants.FAILURE_POLICIES}, got {policy!r}")
        if execution.get('max_hours') is not None and execution['max_hours'] <= 0:
            raise InvalidConfiguration(f"execution.max_hours must be > 0, got {execution['max_hours']}")
        if execution.get('model_n_jobs', 1) == 0:
            raise InvalidConfiguration("execution.model_n_jobs must be -1 or a positive integer")

    def _validate_resources(self) -> None:
        """
        Validate against system resources.
        Calculates total fit count and ensures it fits within safe limits.
        """
        resources = self.config.get('resources', {})
        cv_folds = self.config.get('experiment', {}).get('cv_folds', 5)

        # 1. Grid Explosion Check
        total_points = 0
        for name in self.enabled_models():
            total_points += len(build_grid(self.config['models'][name]['grid']))
        total_fits = total_points * cv_folds

        max_fits = resources.get('max_grid_fits', self.DEFAULT_MAX_GRID_FITS)
        if total_fits > max_fits:
            raise InvalidConfiguration(
                f"Grid Explosion Detected! Total fits ({total_points} points x {cv_folds} folds = {total_fits}) "
                f"exceeds safety limit ({max_fits}). Reduce the grids or increase 'resources.max_grid_fits'."
            )
        self.logger.info(f"Grid size validated: {total_points} points, {total_fits} fits (Limit: {max_fits})")

        # 2. Memory Limits Check
        system_ram_mb = int(psutil.virtual_memory().total / (1024 * 1024))
        safe_ram_limit = int(system_ram_mb * 0.8)
        config_max_ram = resources.get('max_memory_mb', safe_ram_limit)

        if config_max_ram > system_ram_mb:
            self.logger.warning(
                f"Configured max_memory_mb ({config_max_ram}MB) exceeds physical system RAM ({system_ram_mb}MB). "
                "This may lead to instability."
            )

        self.config.setdefault('resources', {})['max_memory_mb'] = config_max_ram

    def _propagate_seeds(self) -> None:
        """
        Derive per-component seeds from the master seed.
        The fold partition uses the master seed itself.
        """
        master_seed = self.config.get('experiment', {}).get('seed', 0)

        self.config['_internal_seeds'] = {
            'cv': master_seed,
            'model': master_seed + 2000,
        }
        self.logger.debug(f"Seeds propagated from master ({master_seed}): {self.config['_internal_seeds']}")
