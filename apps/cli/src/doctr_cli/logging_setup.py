"""Process-wide logging configuration for the CLI."""

from __future__ import annotations

import logging

_LOGGING_INITIALIZED = False
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbosity: str = "warning") -> None:
    """Configure stdlib logging for third-party libraries.

    Run logs go through the run's log sinks; this only decides what the
    storage and HTTP client libraries print to stderr.

    Args:
        verbosity: Console verbosity (warning, info, debug).
    """
    global _LOGGING_INITIALIZED

    level_map = {
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
    }
    console_level = level_map.get(verbosity.lower(), logging.WARNING)

    root = logging.getLogger()
    if not _LOGGING_INITIALIZED:
        root.handlers.clear()
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        _LOGGING_INITIALIZED = True
    root.setLevel(console_level)

    # The Azure SDK logs every HTTP request and response at INFO.
    logging.getLogger("azure").setLevel(max(console_level, logging.WARNING))
    logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(
        logging.WARNING
    )
    logging.getLogger("httpx").setLevel(max(console_level, logging.WARNING))
    logging.getLogger("httpcore").setLevel(logging.WARNING)
