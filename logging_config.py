import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured_handlers = []


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure the root logger for the relay.

    Safe to call more than once: handlers installed by a previous call are
    replaced rather than stacked.
    """
    root = logging.getLogger()
    for handler in _configured_handlers:
        root.removeHandler(handler)
        handler.close()
    _configured_handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    _configured_handlers.append(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        _configured_handlers.append(file_handler)

    for handler in _configured_handlers:
        root.addHandler(handler)

    level = getattr(logging, str(log_level).upper(), logging.INFO)
    root.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
