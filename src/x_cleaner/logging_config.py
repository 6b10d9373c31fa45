"""Configure logging for the application."""

import logging
import sys


def setup_logging(debug: bool = False, quiet: bool = False) -> None:
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger("x_cleaner")
    root.setLevel(level)
    # Repeated CLI invocations in one process must not stack handlers
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)

    # Suppress noisy httpx logs unless in debug mode
    httpx_level = logging.DEBUG if debug else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_level)
    logging.getLogger("httpcore").setLevel(httpx_level)
