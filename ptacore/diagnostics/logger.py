"""
Structured Logger

DESIGN DECISION: The core emits structured events (event name + key/values)
through structlog instead of printing. The host application decides where
they go by configuring the stdlib root logger.

Events currently emitted:
- journal_parsed / journal_parse_failed  (parsing.journal_parser)
- prices_loaded                          (pricing.pricer)
- price_added / price_replaced           (pricing.pricer)
- price_missing                          (pricing.pricer, right before NoPriceError)
"""

import logging
from typing import Optional

import structlog

from ptacore.config import LoggingSettings, get_settings


_configured = False


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog for ptacore.

    Safe to call more than once; the last call wins.

    Args:
        settings: Logging settings. If None, uses get_settings().logging.
    """
    global _configured

    if settings is None:
        settings = get_settings().logging

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    logging.getLogger("ptacore").setLevel(settings.level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger bound to a stdlib logger called `name`.

    Configures logging on first use.
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)
