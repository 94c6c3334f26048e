"""Materialized-path trees for async SQLAlchemy models."""

from tree_service.core.database.hierarchy import (
    CascadeDecision,
    CascadeIncompleteError,
    CyclicParentError,
    DanglingParentError,
    DisposalStrategy,
    RearrangeHooks,
    TreeError,
    TreeMixin,
    TreeRepository,
)
from tree_service.core.models import Node

__version__ = "0.1.0"

__all__ = [
    "CascadeDecision",
    "CascadeIncompleteError",
    "CyclicParentError",
    "DanglingParentError",
    "DisposalStrategy",
    "Node",
    "RearrangeHooks",
    "TreeError",
    "TreeMixin",
    "TreeRepository",
    "__version__",
]
