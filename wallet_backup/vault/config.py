"""
Backup Configuration - validated settings for the export pipeline.

Reads optional settings from environment variables:
    BACKUP_EXPIRY_DAYS = <integer, 0 disables expiry>      (default 90)
    BACKUP_MAX_WALLETS = <integer>                         (default 500)
    BACKUP_PRETTY_JSON = <true|false>                      (default true)

Protocol constants (salt, iteration count, file version) are not
configurable; changing them would make existing backups unreadable.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("wallet_backup")

DEFAULT_EXPIRY_DAYS = 90
DEFAULT_MAX_WALLETS = 500

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")

DAY_MS = 24 * 60 * 60 * 1000


def expiry_window_ms(days: int) -> int:
    """Expiry window in milliseconds for a number of days, 0 disables expiry."""
    return days * DAY_MS


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


class BackupConfig(BaseModel):
    """Validated backup configuration."""

    expiry_days: int = Field(default=DEFAULT_EXPIRY_DAYS, ge=0, le=3650)
    max_wallets: int = Field(default=DEFAULT_MAX_WALLETS, ge=1, le=10_000)
    pretty_json: bool = Field(default=True)

    @field_validator("expiry_days", "max_wallets", mode="before")
    @classmethod
    def validate_integer(cls, v):
        """Reject floats and booleans that pydantic would coerce silently."""
        if isinstance(v, bool) or isinstance(v, float):
            raise ValueError(f"Expected an integer, got {v!r}")
        return v

    @property
    def expiry_ms(self) -> int:
        """Expiry window in milliseconds, 0 when expiry is disabled."""
        return expiry_window_ms(self.expiry_days)

    @classmethod
    def from_env(cls) -> "BackupConfig":
        """Create BackupConfig by loading values from environment.

        Returns:
            Populated BackupConfig instance.
        """
        config = cls(
            expiry_days=os.environ.get("BACKUP_EXPIRY_DAYS", DEFAULT_EXPIRY_DAYS),
            max_wallets=os.environ.get("BACKUP_MAX_WALLETS", DEFAULT_MAX_WALLETS),
            pretty_json=_env_bool("BACKUP_PRETTY_JSON", True),
        )
        logger.debug(
            "Backup config: expiry_days=%d max_wallets=%d pretty_json=%s",
            config.expiry_days, config.max_wallets, config.pretty_json,
        )
        return config
