"""Process-wide logging setup."""

import logging

from eclinic.core import config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    global _configured

    root = logging.getLogger()
    root.setLevel((level or config.LOG_LEVEL).upper())

    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # SQL statements are only interesting when SQL_ECHO is on.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if config.SQL_ECHO else logging.WARNING)

    _configured = True
