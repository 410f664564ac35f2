"""
inventory_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``EngineConfig``.

Architecture position:
    Configuration -- YAML-driven, validated on load.  Sits above
    ``inventory_kernel`` and below ``inventory_services``.  The kernel MUST
    NEVER import from ``inventory_config``; ``inventory_config.bridges``
    translates the config into kernel calls.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` -- a required key is missing.
    - ``ValueError`` -- a value failed validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``INVENTORY_CONFIG_TRACE`` log entry with the path and checksum.
"""

from __future__ import annotations

from pathlib import Path

from inventory_config.loader import load_yaml_file, parse_engine_config
from inventory_config.schema import (
    DatabaseConfig,
    EngineConfig,
    LoggingConfig,
    NotificationConfig,
)
from inventory_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> EngineConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to the packaged
            ``defaults.yaml``.

    Returns:
        EngineConfig -- frozen, validated.

    Raises:
        FileNotFoundError: If the file does not exist.
        KeyError: If ``database.url`` is missing.
        ValueError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = parse_engine_config(load_yaml_file(path))

    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": config.checksum,
            "reminder_lead_days": config.notifications.reminder_lead_days,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DatabaseConfig",
    "EngineConfig",
    "LoggingConfig",
    "NotificationConfig",
    "get_active_config",
]
