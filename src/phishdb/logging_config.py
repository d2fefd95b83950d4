"""Logging setup for the phishdb service."""

import logging
import logging.handlers
from pathlib import Path

from .errors import ConfigError

LOGGER_NAME = "phishdb"
SYSLOG_SOCKETS = ("/dev/log", "/var/run/syslog")


def _syslog_address() -> str | tuple[str, int]:
    for path in SYSLOG_SOCKETS:
        if Path(path).exists():
            return path
    return ("localhost", logging.handlers.SYSLOG_UDP_PORT)


def setup_logging(level: str | int = logging.INFO, use_syslog: bool = False) -> logging.Logger:
    """Configure the package logger.

    Logs go to stderr, and to the local syslog daemon (facility ``daemon``)
    when ``use_syslog`` is set.
    """
    logger = logging.getLogger(LOGGER_NAME)
    try:
        logger.setLevel(level.upper() if isinstance(level, str) else level)
    except ValueError as exc:
        raise ConfigError(f"log_level: {exc}") from exc

    # Clear existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(console)

    if use_syslog:
        try:
            syslog = logging.handlers.SysLogHandler(
                address=_syslog_address(),
                facility=logging.handlers.SysLogHandler.LOG_DAEMON,
            )
        except OSError as exc:
            raise ConfigError(f"cannot connect to syslog: {exc}") from exc
        syslog.setFormatter(logging.Formatter("phishdb[%(process)d]: %(levelname)s %(message)s"))
        logger.addHandler(syslog)

    logger.propagate = False
    return logger
