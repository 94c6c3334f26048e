"""Database models package.

Import all models here so ``Base.metadata`` knows every table.
"""

from .node import Node

__all__ = ["Node"]
