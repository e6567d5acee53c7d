"""
logging_config.py - Logging setup for peerlend

Every module takes its logger from get_logger(__name__), so all pool, ledger
and config records live under the "peerlend" namespace. Applications call
setup_logging() once, typically with the level from PoolSettings.log_level.
"""

from typing import Union
import logging


ROOT_LOGGER = "peerlend"

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def resolve_level(level: Union[int, str]) -> int:
    """
    Turn a level name such as "debug" or "INFO" into its numeric value.

    Raises:
        ValueError: If the name is not a known logging level
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure the root handler once and set the peerlend level.

    An existing root handler is left alone, but the level is always applied
    to the peerlend namespace.
    """
    numeric = resolve_level(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger(ROOT_LOGGER).setLevel(numeric)


def get_logger(name: str) -> logging.Logger:
    """Module logger, kept under the peerlend namespace."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
