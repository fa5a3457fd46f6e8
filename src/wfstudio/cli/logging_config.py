"""Centralized logging configuration for CLI commands."""

import logging
import os
import sys


def configure_logging(verbose: bool) -> None:
    """Configure logging levels based on verbose flag.

    Call ONCE at CLI startup. Logs go to stderr so stdout stays clean for
    the endpoint URL and command output.

    Args:
        verbose: If True, show INFO+ logs. If False, show only WARNING+ logs.
    """
    # Tests manage their own logging
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    level = logging.INFO if verbose else logging.WARNING
    if not logging.getLogger().handlers:
        logging.basicConfig(stream=sys.stderr, level=level, format="%(levelname)s: %(message)s")
    else:
        logging.getLogger().setLevel(level)

    # Always silence noisy third-party libraries (even in verbose mode)
    for logger_name in [
        "httpx",
        "httpcore",
        "mcp",
        "uvicorn",
        "uvicorn.error",
        "uvicorn.access",
    ]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
