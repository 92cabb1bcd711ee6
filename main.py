#!/usr/bin/env python
"""
Gene Expression Grid Search - Main Entry Point
Runs cross-validated grid search for ElasticNet, Random Forest and XGBoost,
refits the best point of each and writes predictions for the held-out samples.
"""
import sys
import signal
import logging
import argparse
import threading
import traceback
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from modules.config_manager import ConfigurationManager
from modules.logging_config import LoggingConfigurator
from modules.experiment_runner import ExperimentRunner
from utils.exceptions import ExpressionMLException, InvalidConfiguration
from utils import constants


def parse_arguments(argv=None):
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Gene Expression Regression - Cross-Validated Grid Search",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config/config.json",
        help="Path to the configuration JSON file"
    )

    parser.add_argument(
        "--schema",
        type=str,
        default="config/schema.json",
        help="Path to the configuration JSON schema"
    )

    parser.add_argument(
        "--run-id",
        type=str,
        default=None,
        help="Optional run identifier appended to the results directory"
    )

    parser.add_argument(
        "--models",
        nargs="+",
        default=None,
        help="Run only these model families (e.g. elastic_net xgboost)"
    )

    parser.add_argument(
        "--abort-on-failure",
        action="store_true",
        help="Abort on the first failed fit instead of skipping that fold"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and exit without running the experiment"
    )

    return parser.parse_args(argv)


def apply_cli_overrides(config: dict, args: argparse.Namespace) -> None:
    """Fold command-line switches into the loaded configuration."""
    if args.verbose:
        config.setdefault('logging', {})['level'] = 'DEBUG'
    if args.abort_on_failure:
        config.setdefault('execution', {})['failure_policy'] = constants.FAILURE_POLICY_ABORT
    if args.models:
        unknown = [m for m in args.models if m not in config.get('models', {})]
        if unknown:
            raise InvalidConfiguration(f"--models names not in config: {unknown}")
        for name, model_cfg in config['models'].items():
            model_cfg['enabled'] = name in args.models


def setup_run_directory(config: dict, run_id: str = None, logger: logging.Logger = None) -> Path:
    """
    Create the run directory and point the config at it.
    """
    base_results_dir = config.get('outputs', {}).get('base_results_dir', 'results')
    run_dir = Path(f"{base_results_dir}_{run_id}" if run_id else base_results_dir).absolute()
    run_dir.mkdir(parents=True, exist_ok=True)
    for name in constants.TOP_LEVEL_RESULT_DIRS:
        (run_dir / name).mkdir(exist_ok=True)

    config['outputs']['base_results_dir'] = str(run_dir)
    if logger:
        logger.info(f"Run directory: {run_dir}")
    return run_dir


def install_cancellation(cancel_event: threading.Event, logger: logging.Logger) -> None:
    """SIGTERM requests a cooperative stop between work units."""
    def _handler(signum, frame):
        logger.warning("Termination requested; stopping after the current work units...")
        cancel_event.set()

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _handler)


def main(argv=None):
    """
    Main orchestration function.

    Returns:
        int: Exit code (0 for success, 1 for errors, 130 on interrupt)
    """
    logger = None

    try:
        args = parse_arguments(argv)

        print("\n" + "=" * 80)
        print("    GENE EXPRESSION CROSS-VALIDATED GRID SEARCH")
        print("=" * 80 + "\n")

        # 1. Load, override, validate configuration
        config_manager = ConfigurationManager(config_path=args.config, schema_path=args.schema)
        config_manager.load_and_validate()
        apply_cli_overrides(config_manager.config, args)
        config = config_manager.validate()

        # 2. Setup logging
        logging_configurator = LoggingConfigurator(config)
        logging_configurator.setup()
        logger = logging_configurator.get_logger('experiment')
        logger.info(f"Configuration loaded from: {args.config}")
        logger.info(f"Model families: {config_manager.enabled_models()}")

        # 3. Setup run directory and save configuration artifacts
        run_dir = setup_run_directory(config, run_id=args.run_id, logger=logger)
        config_manager.run_id = args.run_id or config_manager.generate_run_id()
        config_manager.save_artifacts(str(run_dir))

        if args.dry_run:
            logger.info("Dry run mode: validation complete. Exiting without running the experiment.")
            print("\n[SUCCESS] Configuration validated successfully.")
            return 0

        # 4. Run
        cancel_event = threading.Event()
        install_cancellation(cancel_event, logger)

        runner = ExperimentRunner(config, logger)
        summary = runner.run(model_names=config_manager.enabled_models(), cancel_event=cancel_event)

        logger.info("-" * 60)
        logger.info("EXPERIMENT COMPLETED" + (" (CANCELLED)" if summary['cancelled'] else ""))
        logger.info(f"Failed fits: {summary['total_failed_fits']}")
        logger.info(f"Output Directory: {run_dir}")
        logger.info("-" * 60)

        print(f"\n[SUCCESS] Experiment finished. Results saved to: {run_dir}")
        return 0

    except ExpressionMLException as e:
        msg = f"Experiment Error: {str(e)}"
        print(f"\n[ERROR] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1

    except KeyboardInterrupt:
        print("\n[INTERRUPTED] Experiment interrupted by user.")
        if logger:
            logger.warning("Experiment interrupted by user (Ctrl+C)")
        return 130

    except Exception as e:
        msg = f"Unexpected Error: {str(e)}"
        print(f"\n[CRITICAL] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
