"""
config.py - Lending terms and YAML-based pool settings

LendingTerms is the uniform term sheet every participant borrows under. It is
immutable; the pool replaces it wholesale when the owner updates a field.

PoolSettings bundles the terms with the pool identity and is loaded from a
YAML file:

    pool:
      name: main
      owner: treasury
      wallet: pool
    terms:
      max_principal: 500
      interest_rate_x1000: 5000
      payback_period_days: 30
    logging:
      level: INFO
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .accounting import MAX_INTEREST_RATE_X1000
from .core import POOL_WALLET, Money, validate_amount
from .logging_config import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LendingTerms:
    """
    Uniform loan terms.

    Attributes:
        max_principal: Largest amount a participant may propose
        interest_rate_x1000: Interest in percent scaled by 1000 (unsigned 16-bit)
        payback_period: Time between approval and the repayment deadline
    """
    max_principal: Money
    interest_rate_x1000: int
    payback_period: timedelta

    def __post_init__(self):
        validate_amount(self.max_principal, "max_principal")
        validate_amount(self.interest_rate_x1000, "interest_rate_x1000")
        if self.interest_rate_x1000 > MAX_INTEREST_RATE_X1000:
            raise ValueError(
                f"interest_rate_x1000 must fit in 16 bits, got {self.interest_rate_x1000}"
            )
        if not isinstance(self.payback_period, timedelta):
            raise ValueError(
                f"payback_period must be a timedelta, got {type(self.payback_period).__name__}"
            )
        if self.payback_period < timedelta(0):
            raise ValueError(f"payback_period must be non-negative, got {self.payback_period}")

    def with_changes(self, **changes: Any) -> LendingTerms:
        """Copy with some fields replaced (validated again)."""
        return replace(self, **changes)


DEFAULT_TERMS = LendingTerms(
    max_principal=1_000,
    interest_rate_x1000=5_000,
    payback_period=timedelta(days=30),
)


@dataclass(frozen=True)
class PoolSettings:
    """Pool identity and initial terms loaded from configuration."""

    name: str = "main"
    owner: str = "owner"
    wallet: str = POOL_WALLET
    terms: LendingTerms = field(default_factory=lambda: DEFAULT_TERMS)
    log_level: str = "INFO"


def _to_int(value: Any, default: int) -> int:
    """Convert value to int with a default fallback."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Invalid integer value '%s'. Using default=%s", value, default)
        return default


def _to_str(value: Any, default: str) -> str:
    if value is None or not str(value).strip():
        return default
    return str(value).strip()


def _read_config(path: Path) -> dict:
    """Read and parse YAML configuration."""
    try:
        with path.open("r", encoding="utf-8") as config_file:
            config_data = yaml.safe_load(config_file) or {}
    except FileNotFoundError:
        logger.warning("Config file not found at %s. Falling back to defaults.", path)
        return {}
    if not isinstance(config_data, dict):
        logger.warning("Config file %s is not a mapping. Falling back to defaults.", path)
        return {}
    logger.info("Configuration loaded from %s", path)
    return config_data


def _section(data: dict, key: str) -> dict:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        logger.warning("Config section '%s' is not a mapping. Ignoring it.", key)
        return {}
    return section


def parse_terms(section: dict, defaults: LendingTerms = DEFAULT_TERMS) -> LendingTerms:
    """
    Build LendingTerms from a 'terms' mapping.

    Unparseable values fall back to the defaults with a warning. Values that
    parse but break a term invariant (e.g. a rate above 65535) raise.

    Raises:
        ValueError: If the resulting terms are invalid
    """
    default_days = defaults.payback_period / timedelta(days=1)
    days = section.get("payback_period_days", default_days)
    try:
        payback_period = timedelta(days=float(days))
    except (TypeError, ValueError, OverflowError):
        logger.warning("Invalid payback_period_days '%s'. Using default=%s", days, default_days)
        payback_period = defaults.payback_period
    return LendingTerms(
        max_principal=_to_int(section.get("max_principal"), defaults.max_principal),
        interest_rate_x1000=_to_int(section.get("interest_rate_x1000"), defaults.interest_rate_x1000),
        payback_period=payback_period,
    )


def load_settings(path: Optional[Union[str, Path]] = None) -> PoolSettings:
    """
    Load pool settings from a YAML file.

    A missing file yields the defaults.

    Raises:
        ValueError: If the configured terms are invalid
        yaml.YAMLError: If the file is not valid YAML
    """
    if path is None:
        return PoolSettings()
    data = _read_config(Path(path))
    pool = _section(data, "pool")
    defaults = PoolSettings()
    return PoolSettings(
        name=_to_str(pool.get("name"), defaults.name),
        owner=_to_str(pool.get("owner"), defaults.owner),
        wallet=_to_str(pool.get("wallet"), defaults.wallet),
        terms=parse_terms(_section(data, "terms")),
        log_level=_to_str(_section(data, "logging").get("level"), defaults.log_level).upper(),
    )
