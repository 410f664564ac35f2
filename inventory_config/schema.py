"""
EngineConfig schema.

The typed, frozen shape of the engine's YAML configuration.  The loader
parses YAML into these types; the bridges translate them into kernel calls
(engine construction, logging setup).
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection and pool settings passed to init_engine_from_url()."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    lock_timeout_ms: int = 5000


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NotificationConfig:
    reminder_lead_days: int = 1
    change_notice_subject: str = "Your Distribution Has Changed"
    created_notice_subject: str = "Your Distribution"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    """Root configuration object returned by get_active_config()."""

    database: DatabaseConfig
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    checksum: str = ""
