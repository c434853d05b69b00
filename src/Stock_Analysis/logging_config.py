"""Centralized logging configuration for applications embedding the session client."""

from __future__ import annotations

import logging
import os

LOG_FORMAT: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_MODULE_LOGGERS: dict[str, str] = {
    "SERVICES": "Stock_Analysis.services",
    "ANALYSIS": "Stock_Analysis.analysis",
    "REPORTING": "Stock_Analysis.reporting",
    "SESSION": "Stock_Analysis.session",
}


def configure_logging(
    *,
    level: str = "",
    verbose: bool = False,
    quiet: bool = False,
) -> None:
    """Configure root logger with a consistent format.

    Priority: verbose > quiet > level param > LOG_LEVEL env > INFO default.
    Uses force=True to override any prior root logger config.
    Reads LOG_LEVEL_{AREA} env vars for per-area overrides.
    """
    if verbose:
        effective = logging.DEBUG
    elif quiet:
        effective = logging.WARNING
    elif level:
        effective = getattr(logging, level.upper(), logging.INFO)
    else:
        env_level = os.environ.get("LOG_LEVEL", "INFO")
        effective = getattr(logging, env_level.upper(), logging.INFO)

    logging.basicConfig(level=effective, format=LOG_FORMAT, force=True)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    for key, logger_name in _MODULE_LOGGERS.items():
        module_level = os.environ.get(f"LOG_LEVEL_{key}")
        if module_level:
            resolved = getattr(logging, module_level.upper(), None)
            if resolved is not None:
                logging.getLogger(logger_name).setLevel(resolved)
