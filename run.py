# run.py
import argparse
import logging
import os
import sys

import uvicorn

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from core.config import CONFIG_ENV_VAR, get_config_manager, ConfigManager
from core.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Run the ipgate whitelist gateway.")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Configuration file (overrides {CONFIG_ENV_VAR} and the default lookup).",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (overrides config).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (overrides config).",
    )
    args = parser.parse_args()

    if args.config:
        # the app factory re-reads the file through the same variable
        os.environ[CONFIG_ENV_VAR] = args.config

    # Load configuration first to read server settings
    config: ConfigManager = get_config_manager(args.config)
    app_config = config.app_config

    # Setup logging before Uvicorn initializes fully
    setup_logging(app_config)
    logger = logging.getLogger(f"ipgate.{__name__}")

    host_to_use = args.host if args.host is not None else app_config.server.host
    port_to_use = args.port if args.port is not None else app_config.server.port

    logger.info(f"Starting server on {host_to_use}:{port_to_use}.")
    # A single worker: the whitelist lives in process memory.
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=host_to_use,
        port=port_to_use,
        workers=1,
        log_level=app_config.server.log_level.lower(),
    )

if __name__ == "__main__":
    main()
