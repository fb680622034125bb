# /chatform/utils/logging.py

import logging
import sys
import structlog
from chatform.config.settings import settings

# Conversation events (start, waits, rejected answers, failures) come from
# plain `logging.getLogger(__name__)` loggers; structlog only formats them.

_PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer():
    # Readable lines while developing a template, one JSON object per event otherwise.
    if settings.environment == "development":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging():
    """
    Routes chatform's log records through one stdout handler.

    Called from the app lifespan. The level comes from CHATFORM_LOG_LEVEL;
    callback tracebacks logged by a failing conversation are flattened
    into the event by `format_exc_info`.
    """
    structlog.configure(
        processors=_PRE_CHAIN + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=_renderer(), foreign_pre_chain=_PRE_CHAIN)
    )

    root_logger = logging.getLogger()
    # Each TestClient startup runs the lifespan again; keep a single chatform handler.
    for existing in list(root_logger.handlers):
        if isinstance(existing.formatter, structlog.stdlib.ProcessorFormatter):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    # Request timing is already exported as metrics.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
