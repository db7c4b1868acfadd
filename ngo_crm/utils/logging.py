"""Logging setup shared by the CLI and the API.

One handler on the ``ngo_crm`` logger, rendered by rich. Level comes from
the ``LOG_LEVEL`` setting. Calling ``configure_logging`` more than once is
harmless.
"""

import logging
from typing import Optional

from rich.logging import RichHandler

from ngo_crm.utils.config import get_settings

_FORMAT = "%(name)s | %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Set up the ngo_crm logger and return it."""
    logger = logging.getLogger("ngo_crm")

    level_name = (level or get_settings().log_level).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if logger.handlers:
        return logger

    handler = RichHandler(show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return logger
