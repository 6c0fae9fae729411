"""
Logging configuration for the planner
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "htn_planner"


def setup_logging(
    level: Optional[str] = None,
    verbose: bool = False,
    format_string: Optional[str] = None
) -> None:
    """
    Set up logging configuration for the application.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR), WARNING if None
        verbose: If True, log the planner's own modules at DEBUG
        format_string: Custom format string for log messages
    """
    if level is None:
        level = "WARNING"

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"

    # Log to stderr so JSON output on stdout stays clean
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=format_string,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    # Method selection and background outcomes are logged at DEBUG
    package_level = logging.DEBUG if verbose else logging.NOTSET
    logging.getLogger(PACKAGE_LOGGER).setLevel(package_level)
