"""Runtime configuration for ledgerkit.

Values come from environment variables; CLI options override them.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from ledgerkit.database.factories import DB_PATH_ENV

PAGE_SIZE_ENV = "LEDGERKIT_PAGE_SIZE"
PAGINATION_MODE_ENV = "LEDGERKIT_PAGINATION_MODE"
POLL_INTERVAL_ENV = "LEDGERKIT_POLL_INTERVAL"
BULK_CONCURRENCY_ENV = "LEDGERKIT_BULK_CONCURRENCY"
WRITE_BACK_CONCURRENCY_ENV = "LEDGERKIT_WRITE_BACK_CONCURRENCY"

PAGINATION_MODES = ("client", "server")


class ConfigError(ValueError):
    """Invalid configuration value."""


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger settings.

    ``database_path`` of None means the default location
    (~/.ledgerkit/ledgerkit.db).
    """

    database_path: Optional[str] = None
    page_size: int = 20
    pagination_mode: str = "client"
    poll_interval_seconds: float = 5.0
    bulk_concurrency: int = 8
    write_back_concurrency: int = 4

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ConfigError(f"page_size must be at least 1 (got {self.page_size})")
        if self.pagination_mode not in PAGINATION_MODES:
            raise ConfigError(
                f"pagination_mode must be one of {', '.join(PAGINATION_MODES)} "
                f"(got '{self.pagination_mode}')"
            )
        if self.poll_interval_seconds <= 0:
            raise ConfigError(
                f"poll_interval_seconds must be positive (got {self.poll_interval_seconds})"
            )
        if self.bulk_concurrency < 1:
            raise ConfigError(
                f"bulk_concurrency must be at least 1 (got {self.bulk_concurrency})"
            )
        if self.write_back_concurrency < 1:
            raise ConfigError(
                f"write_back_concurrency must be at least 1 (got {self.write_back_concurrency})"
            )

    def with_overrides(self, **changes) -> "LedgerConfig":
        """Return a copy with the non-None values in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _read_int(environ: Mapping[str, str], name: str) -> Optional[int]:
    value = environ.get(name)
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer (got '{value}')") from e


def _read_float(environ: Mapping[str, str], name: str) -> Optional[float]:
    value = environ.get(name)
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number (got '{value}')") from e


def load_config(environ: Optional[Mapping[str, str]] = None) -> LedgerConfig:
    """Build a LedgerConfig from environment variables.

    Args:
        environ: Mapping to read from (defaults to ``os.environ``)

    Returns:
        LedgerConfig with defaults for unset variables

    Raises:
        ConfigError: If a variable holds an invalid value
    """
    if environ is None:
        environ = os.environ

    mode = environ.get(PAGINATION_MODE_ENV)
    return LedgerConfig().with_overrides(
        database_path=environ.get(DB_PATH_ENV) or None,
        page_size=_read_int(environ, PAGE_SIZE_ENV),
        pagination_mode=mode.strip().lower() if mode and mode.strip() else None,
        poll_interval_seconds=_read_float(environ, POLL_INTERVAL_ENV),
        bulk_concurrency=_read_int(environ, BULK_CONCURRENCY_ENV),
        write_back_concurrency=_read_int(environ, WRITE_BACK_CONCURRENCY_ENV),
    )
