import logging

from flextime.core.config import settings

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply LOG_LEVEL to the root logger; safe to call more than once."""
    logging.basicConfig(format=_LOG_FORMAT, level=(level or settings.LOG_LEVEL).upper())
    logging.getLogger().setLevel((level or settings.LOG_LEVEL).upper())
