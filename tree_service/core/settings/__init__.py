"""Modular Pydantic Settings v2 configuration.

One settings class per concern, each reading its own environment prefix:
    - TREE_: tree maintenance (dangling parent policy, cascade batching)
    - DB_: async database URL
    - LOG_: logging

Import settings via cached loaders:
    from tree_service.core.settings import get_tree_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
"""

from __future__ import annotations

from .database import DatabaseSettings
from .loader import get_db_settings, get_logging_settings, get_tree_settings
from .logs import LoggingSettings
from .tree import DanglingParentPolicy, TreeSettings

__all__ = [
    "DanglingParentPolicy",
    "DatabaseSettings",
    "LoggingSettings",
    "TreeSettings",
    "get_db_settings",
    "get_logging_settings",
    "get_tree_settings",
]
