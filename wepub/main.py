"""Main entry point for the WePub server."""
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command line arguments.

    Returns:
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(description="WePub - crawl websites and export them as HTML, Markdown, EPUB or PDF")
    parser.add_argument(
        "--host",
        type=str,
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind the server to",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8000")),
        help="Port to bind the server to",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        default=bool(os.getenv("RELOAD", "False").lower() == "true"),
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=int(os.getenv("WORKERS", "1")),
        help="Number of worker processes",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("LOG_LEVEL", "info"),
        choices=["debug", "info", "warning", "error", "critical"],
        help="Logging level",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=os.getenv("WEPUB_ENV_FILE", ".env"),
        help="Environment file with WEPUB_* settings",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"WePub {__version__}",
        help="Show version and exit",
    )
    return parser.parse_args(argv)


def load_env_file(argv=None) -> Optional[Path]:
    """Load the ``.env`` file named by ``--env-file`` into the environment.

    This runs before the full argument parser so that ``HOST``, ``PORT`` and
    friends from the file can serve as option defaults.

    Returns:
        Path of the loaded file, or None if it does not exist.
    """
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--env-file", default=os.getenv("WEPUB_ENV_FILE", ".env"))
    known, _ = parser.parse_known_args(argv)
    env_path = Path(known.env_file)
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path)
    return env_path


def describe_settings(settings: Settings) -> str:
    """One-line summary of the effective settings for the startup log."""
    values = settings.model_dump(exclude={"user_agent"})
    return ", ".join(f"{name}={value}" for name, value in values.items())


def main(argv=None):
    """Run the FastAPI application."""
    # Settings are read from WEPUB_* variables, so .env must be loaded first
    env_path = load_env_file(argv)
    if env_path is not None:
        logger.info(f"Loaded environment variables from {env_path}")

    args = parse_args(argv)

    logging.getLogger().setLevel(args.log_level.upper())

    try:
        settings = Settings.from_env()
    except ValidationError as e:
        logger.error(f"Invalid WEPUB_* configuration:\n{e}")
        sys.exit(2)
    logger.info(f"Settings: {describe_settings(settings)}")

    # Configure Uvicorn logging
    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = LOG_FORMAT
    log_config["formatters"]["access"]["fmt"] = (
        "%(asctime)s - %(name)s - %(levelname)s - %(client_addr)s - \"%(request_line)s\" %(status_code)s"
    )

    uvicorn.run(
        "wepub.api.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
        log_level=args.log_level,
        log_config=log_config,
    )


if __name__ == "__main__":
    main()
