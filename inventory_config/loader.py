"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the frozen dataclasses
of ``inventory_config.schema``.  Runtime callers go through
``inventory_config.get_active_config()``, not this module.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required keys have no silent defaults.
* ``compute_checksum`` is deterministic for identical input.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``database.url``  -> ``KeyError``.
* Non-positive pool size, negative lead days, unknown log level
  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    DatabaseConfig,
    EngineConfig,
    LoggingConfig,
    NotificationConfig,
)

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")
    return data


def _int_field(data: dict[str, Any], key: str, default: int, *, minimum: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {value}")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    return DatabaseConfig(
        url=str(data["url"]),
        echo=bool(data.get("echo", False)),
        pool_size=_int_field(data, "pool_size", 20, minimum=1),
        max_overflow=_int_field(data, "max_overflow", 10, minimum=0),
        pool_timeout=_int_field(data, "pool_timeout", 30, minimum=1),
        pool_recycle=_int_field(data, "pool_recycle", 1800, minimum=-1),
        lock_timeout_ms=_int_field(data, "lock_timeout_ms", 5000, minimum=1),
    )


def parse_notifications(data: dict[str, Any]) -> NotificationConfig:
    defaults = NotificationConfig()
    return NotificationConfig(
        reminder_lead_days=_int_field(
            data, "reminder_lead_days", defaults.reminder_lead_days, minimum=0
        ),
        change_notice_subject=str(
            data.get("change_notice_subject", defaults.change_notice_subject)
        ),
        created_notice_subject=str(
            data.get("created_notice_subject", defaults.created_notice_subject)
        ),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    return LoggingConfig(level=level)


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """
    Parse the whole configuration document.

    Raises:
        KeyError: ``database`` section or ``database.url`` missing.
        ValueError: a value failed validation.
    """
    return EngineConfig(
        database=parse_database(data["database"]),
        notifications=parse_notifications(data.get("notifications") or {}),
        logging=parse_logging(data.get("logging") or {}),
        checksum=compute_checksum(data),
    )


def log_level_number(config: LoggingConfig) -> int:
    return logging.getLevelName(config.level)


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
