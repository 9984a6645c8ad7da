"""
Application logger

Configures the root handler once and exposes the ``app`` logger used by
main.py. Modules under ``app.services`` use ``logging.getLogger(__name__)``
and inherit this configuration.
"""
import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = settings.LOG_LEVEL) -> logging.Logger:
    root = logging.getLogger()
    if not any(getattr(h, "_chambers_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._chambers_handler = True
        root.addHandler(handler)
    root.setLevel(level.upper())

    # Quiet noisy client libraries
    for name in ("botocore", "boto3", "urllib3", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger("app")


logger = setup_logging()
