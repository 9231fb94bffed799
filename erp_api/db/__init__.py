"""
Database package initializer exposing key public interfaces for configuration,
engine/session management and the unit-of-work helper.
"""

from .base import Base
from .config import get_settings, Settings
from .session import (
    atomic,
    dispose_engine,
    get_async_session,
    get_engine,
    get_session_maker,
    init_engine,
)

# Import models to ensure they are registered with SQLAlchemy metadata
# when the db package is imported.
from . import models as models  # noqa: F401

__all__ = [
    "Base",
    "Settings",
    "get_settings",
    "atomic",
    "dispose_engine",
    "get_async_session",
    "get_engine",
    "get_session_maker",
    "init_engine",
    "models",
]
