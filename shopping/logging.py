"""
Logging for the shopping service.

Every module logs through get_logger(__name__); records go to stdout, tagged
with the service name. Customer and order ids go through
sanitize_id_for_logging before being interpolated into a message.
"""

import logging
import os
import sys
from functools import cache

SERVICE_NAME = "shopping"
LOG_FORMAT = f"%(asctime)s [{SERVICE_NAME}] %(levelname)s %(name)s: %(message)s"

# Outbound HTTP (catalog lookups, QStash) logs every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")

_CONTROL_CHARS = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": None})


def configure_logging(level: str | None = None) -> None:
    """Attach the stdout handler to the root logger unless one is already set."""
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    First 8 characters of an identifier with control characters escaped
    (CWE-117), or "N/A" when empty.
    """
    if not id_value:
        return "N/A"
    return str(id_value).translate(_CONTROL_CHARS)[:8]
