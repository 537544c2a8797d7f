"""
Logging for the lineage engine.

Library code only writes to loggers under the ``lineage`` namespace and
never installs handlers. A service embedding the engine calls
``setup_logging`` once from its entry point. Lines written while
answering one query carry that query's id through ``QueryLogger``.
"""

import logging
import uuid
from typing import IO, Any, MutableMapping

from src.shared.config import BaseLineageSettings

LOG_FORMAT = "%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s"
LINEAGE_LOGGER = "lineage"

_HANDLER_NAME = "lineage-console"


def setup_logging(settings: BaseLineageSettings, stream: IO[str] | None = None) -> logging.Logger:
    """
    Attach a console handler to the ``lineage`` logger hierarchy.

    Calling it again replaces the handler instead of adding a second one.
    The root logger and loggers of other libraries are left untouched.

    Args:
        settings: Supplies ``log_level``; unknown level names fall back to INFO.
        stream: Where to write; stderr when omitted.

    Returns:
        The ``lineage`` logger.
    """
    logger = logging.getLogger(LINEAGE_LOGGER)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(stream)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger


def generate_correlation_id() -> str:
    """Generate a short unique ID used to tag the log lines of one query."""
    return uuid.uuid4().hex[:12]


class QueryLogger(logging.LoggerAdapter):
    """Prefixes every message with ``[query <id>]``."""

    def __init__(self, logger: logging.Logger, query_id: str | None = None):
        super().__init__(logger, {"query_id": query_id or generate_correlation_id()})

    @property
    def query_id(self) -> str:
        return self.extra["query_id"]

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[query {self.query_id}] {msg}", kwargs
