"""Node database model."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column

from tree_service.core.database.base import Base, StringIdPKMixin, TimestampMixin
from tree_service.core.database.hierarchy.mixins import TreeMixin


class Node(Base, StringIdPKMixin, TimestampMixin, TreeMixin):
    """One record in a tree.

    Tree shape lives in the TreeMixin columns; everything the application
    wants to store about the node goes into ``payload``.
    """

    __tablename__ = "nodes"

    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Node(id={self.id}, parent_id={self.parent_id}, depth={self.depth})>"
