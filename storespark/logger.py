import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configures console logging for the whole application.

    ``LOG_LEVEL`` in the environment wins over the configured level so a
    running deployment can be made verbose without touching its settings.
    """
    level = (os.environ.get("LOG_LEVEL") or level or "INFO").upper()
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger(__name__).debug("Logging configured at %s", level)
