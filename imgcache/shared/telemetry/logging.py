"""Logging configuration for the service.

Records carry the id of the request they were emitted for
(%(request_id)s, "-" outside a request).
"""

import logging
import sys

from imgcache.core.config import get_settings
from imgcache.shared.context import get_request_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

# Chatty at INFO/DEBUG: PIL plugin discovery, boto credential lookups.
QUIET_LOGGERS = ("PIL", "botocore", "boto3", "urllib3")


class RequestIdFilter(logging.Filter):
    """Stamp each record with the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def setup_logging() -> None:
    """Configure root logging to stdout.

    Level is DEBUG when settings.debug is True, otherwise INFO.
    """
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[handler],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

