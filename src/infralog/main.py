"""
Command-line entry point for Infralog.

Usage:
    infralog --config-file infralog.yaml
    infralog --config-file infralog.yaml --log-level DEBUG
    INFRALOG_TFSTATE_LOCAL_PATH=terraform.tfstate infralog --once
"""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from .backends import build_backend
from .config import load_config
from .core import DriftMonitor
from .errors import ConfigError, InfralogError
from .gitmeta import extract as extract_git_metadata
from .metrics import MetricsServer
from .persistence import FileStore, Store
from .targets import build_targets
from .ticker import Ticker
from .utils import setup_logging

SHUTDOWN_GRACE_SECONDS = 5.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="infralog",
        description="Watch a Terraform state file and report drift to configured targets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  infralog --config-file infralog.yaml
  INFRALOG_CONFIG_FILE=infralog.yaml infralog --log-level DEBUG
        """,
    )
    parser.add_argument(
        "--config-file",
        default=None,
        help="Path to the YAML configuration file (default: $INFRALOG_CONFIG_FILE)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (overrides the configuration)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single poll cycle against the baseline and exit",
    )
    return parser


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Set ``stop_event`` on SIGINT or SIGTERM."""
    logger = setup_logging()

    def handle(signum: int, frame: object) -> None:
        logger.info(f"Received signal {signal.Signals(signum).name}, shutting down...")
        stop_event.set()

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config_file)
        if args.log_level:
            config.log_level = args.log_level
        config.validate()
    except ConfigError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    logger = setup_logging(config.log_level)
    logger.info("Starting Infralog")

    try:
        targets = build_targets(config.target)
        backend = build_backend(config.tfstate)
        store: Optional[Store] = None
        if config.persistence.state_file:
            store = FileStore(config.persistence.state_file)
        ticker = Ticker(config.polling.interval)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    logger.info(f"Using {backend.name} backend ({backend.source})")

    monitor = DriftMonitor(
        backend=backend,
        targets=targets,
        state_filter=config.filter,
        store=store,
        git=extract_git_metadata(),
    )

    try:
        monitor.initialize()
    except InfralogError as e:
        logger.error(f"Error establishing initial state: {e}")
        return 1

    if args.once:
        monitor.poll()
        return 0

    metrics_server: Optional[MetricsServer] = None
    if config.metrics.enabled:
        metrics_server = MetricsServer(config.metrics.address)
        try:
            metrics_server.start()
        except (OSError, ValueError) as e:
            logger.error(f"Error starting metrics server: {e}")
            return 1

    stop_event = threading.Event()
    install_signal_handlers(stop_event)

    logger.info(f"Polling every {config.polling.interval} seconds")
    ticker.start(stop_event, monitor.poll)

    if metrics_server is not None:
        metrics_server.shutdown(SHUTDOWN_GRACE_SECONDS)
    logger.info("Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
