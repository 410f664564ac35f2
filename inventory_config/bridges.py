"""
Config -> Kernel Bridges.

Functions that apply an EngineConfig to the kernel.  These live in
inventory_config because the kernel must NEVER import inventory_config.

Usage:
    from inventory_config import get_active_config
    from inventory_config.bridges import configure_logging_from_config, init_engine

    config = get_active_config()
    configure_logging_from_config(config)
    engine = init_engine(config)
"""

from __future__ import annotations

from sqlalchemy import Engine

from inventory_config.loader import log_level_number
from inventory_config.schema import EngineConfig
from inventory_kernel.db.engine import init_engine_from_url
from inventory_kernel.logging_config import configure_logging


def init_engine(config: EngineConfig) -> Engine:
    """Initialize the global kernel engine from the database section."""
    db = config.database
    return init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        lock_timeout_ms=db.lock_timeout_ms,
    )


def configure_logging_from_config(config: EngineConfig) -> None:
    configure_logging(level=log_level_number(config.logging))
