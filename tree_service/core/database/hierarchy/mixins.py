"""Mixin adding a cached ancestry path to a declarative model.

Every row stores its parent id plus the full list of ancestor ids (root
first) and its depth. Ancestor, descendant and sibling queries then reduce
to equality and substring filters instead of recursive queries.

The columns are maintained by TreeRepository.save; do not assign
``ancestor_ids`` or ``depth`` by hand.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from tree_service.core.database.types import AncestorPathType

if TYPE_CHECKING:
    from typing import Self


class TreeMixin:
    """Mixin for models that form a single-parent tree.

    Adds three columns:
        - parent_id: id of the immediate parent, NULL for roots
        - ancestor_ids: cached ids of all ancestors, root first
        - depth: cached ``len(ancestor_ids)``

    The predicates below never touch the database; they read the cached
    columns only. Queries that need the store live on TreeRepository.

    Example:
        >>> class Category(Base, StringIdPKMixin, TreeMixin):
        ...     __tablename__ = "categories"
        ...     name: Mapped[str] = mapped_column(String(255))
        >>>
        >>> laptops.ancestor_ids
        ['electronics-id', 'computers-id']
        >>> electronics.is_ancestor_of(laptops)
        True
    """

    @declared_attr
    def parent_id(cls) -> Mapped[str | None]:
        return mapped_column(String(36), nullable=True, index=True)

    @declared_attr
    def ancestor_ids(cls) -> Mapped[list[str]]:
        return mapped_column(AncestorPathType(), nullable=False, default=list)

    @declared_attr
    def depth(cls) -> Mapped[int]:
        return mapped_column(Integer, nullable=False, default=0, index=True)

    @property
    def cached_path(self) -> list[str]:
        """Ancestor ids, or an empty list before the first rearrange."""
        return list(self.ancestor_ids or [])

    @property
    def is_root(self) -> bool:
        """True when the node has no parent."""
        return self.parent_id is None

    def is_ancestor_of(self, other: Self) -> bool:
        """True when this node appears in ``other``'s cached path."""
        node_id: Any = getattr(self, "id", None)
        return node_id is not None and node_id in other.cached_path

    def is_descendant_of(self, other: Self) -> bool:
        """True when ``other`` appears in this node's cached path."""
        other_id: Any = getattr(other, "id", None)
        return other_id is not None and other_id in self.cached_path

    def is_sibling_of(self, other: Self) -> bool:
        """True when both nodes share a parent. All roots are siblings."""
        return self.parent_id == other.parent_id


__all__ = ["TreeMixin"]
