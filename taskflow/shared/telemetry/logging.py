"""Logging setup for the HTTP app, the scheduler endpoint and the engine.

Engine modules log through get_logger(__name__) with %-style arguments.
setup_logging() is called once from the lifespan; calling it again only
re-applies the level.
"""

import logging
import sys

from taskflow.core.config import Settings, get_settings

_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("httpx", "aiosqlite", "asyncio")

_configured = False


def setup_logging(settings: Settings | None = None) -> None:
    """Configure the root logger on stdout.

    Level comes from settings.log_level; debug=True forces DEBUG. SQL
    statement logging follows settings.database_echo.
    """
    global _configured
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
        _configured = True
    root.setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass __name__)."""
    return logging.getLogger(name)
