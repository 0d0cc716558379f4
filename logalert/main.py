#!/usr/bin/env python3
"""
logalert - Main Entry Point
Watch the log files listed in a JSON config and email matching lines

Usage:
    logalert ./config.json
"""
import logging
import sys
from typing import List, Optional

from logalert.config.settings import load_config, resolve_storage_root
from logalert.errors import ConfigError, PlaceholderFormatError, TermConflictError
from logalert.logger import configure_logging
from logalert.monitor.orchestrator import CycleOrchestrator

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130

USAGE = "You need to pass a json config file! \nExample : logalert ./config.json"

logger = logging.getLogger("logalert")


def check_args(args: List[str]) -> Optional[str]:
    """Return the config path from ``args`` (argv without the program name), or None."""
    if len(args) < 1:
        logger.error(USAGE)
        return None
    if len(args) != 1:
        logger.error(
            "only one argument can be passed to the application. "
            "The argument needs to be a json config file! \nExample : logalert ./config.json"
        )
        return None
    if ".json" not in args[0]:
        logger.error("You can only pass a json file")
        return None
    return args[0]


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    config_path = check_args(sys.argv[1:] if argv is None else argv)
    if config_path is None:
        return EXIT_FATAL

    try:
        logger.info("Reading Json config file")
        config = load_config(config_path)
        configure_logging(log_file=config.logFile)

        storage_root = resolve_storage_root(config)
        logger.info(f"Using storage root {storage_root.absolute()}")

        orchestrator = CycleOrchestrator.from_config(config, storage_root)
        orchestrator.run_forever(config_loader=lambda: load_config(config_path))
    except (ConfigError, TermConflictError, PlaceholderFormatError) as e:
        logger.error(str(e))
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.info("logalert terminated by user")
        return EXIT_INTERRUPTED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
