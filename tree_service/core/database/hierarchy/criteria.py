"""Filter builders for tree queries.

Every function here is pure: it reads cached fields off a node (or takes
an id) and returns a filter description. Nothing touches the store until
TreeRepository hands the filters to a session.

Example:
    >>> from tree_service.core.database.hierarchy import criteria
    >>> filters = [criteria.descendants_of(Node, node), criteria.by_depth(Node, 2)]
    >>> grandchildren = await repo.find(session, *filters)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sqlalchemy import Text, type_coerce

from tree_service.core.database.filters import (
    CollectionFilter,
    EqualityFilter,
    FilterGroup,
    PredicateFilter,
)
from tree_service.core.database.hierarchy.path import member_fragment

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.orm import InstrumentedAttribute

    from tree_service.core.database.hierarchy.mixins import TreeMixin


class PathContainsFilter(PredicateFilter):
    """Match rows whose cached ancestor path contains ``member``.

    Compiles to ``ancestor_ids LIKE '%/<member>/%'`` with LIKE wildcards in
    the id escaped, so it runs the same on SQLite and PostgreSQL.

    Example:
        PathContainsFilter(Node.ancestor_ids, "0190a...")
    """

    def __init__(self, field: InstrumentedAttribute[Any], member: str):
        self.field = field
        self.member = member

    def clause(self) -> ColumnElement[bool]:
        return type_coerce(self.field, Text).contains(
            member_fragment(self.member), autoescape=True
        )


def children_of(model: type[TreeMixin], node_id: str) -> PredicateFilter:
    """Direct children: ``parent_id == node_id``."""
    return EqualityFilter(model.parent_id, node_id)


def roots_of(model: type[TreeMixin]) -> PredicateFilter:
    """Every root: ``parent_id IS NULL``."""
    return EqualityFilter(model.parent_id, None)


def ancestors_of(model: type[TreeMixin], node: TreeMixin) -> PredicateFilter:
    """Rows whose id is in the node's cached path.

    Combine with ``OrderBy(model.depth)`` to get them root first.
    """
    return CollectionFilter(model.id, node.cached_path)  # type: ignore[attr-defined]


def with_ancestor(model: type[TreeMixin], ancestor_id: str) -> PredicateFilter:
    """Rows that have ``ancestor_id`` anywhere in their cached path."""
    return PathContainsFilter(model.ancestor_ids, ancestor_id)


def descendants_of(model: type[TreeMixin], node: TreeMixin) -> PredicateFilter:
    """Every row below ``node``, at any depth."""
    return with_ancestor(model, node.id)  # type: ignore[attr-defined]


def excluding_ids(model: type[TreeMixin], ids: Iterable[str]) -> PredicateFilter:
    """Rows whose id is not in ``ids``. An empty ``ids`` matches everything."""
    return CollectionFilter(model.id, list(ids), invert=True)  # type: ignore[attr-defined]


def siblings_of(
    model: type[TreeMixin],
    node: TreeMixin,
    *,
    include_self: bool = False,
) -> PredicateFilter:
    """Rows sharing the node's parent. Roots are siblings of every other root."""
    same_parent = EqualityFilter(model.parent_id, node.parent_id)
    if include_self:
        return same_parent
    return FilterGroup([same_parent, excluding_ids(model, [node.id])])  # type: ignore[attr-defined]


def by_depth(model: type[TreeMixin], depth: int) -> PredicateFilter:
    """Rows at exactly ``depth`` (0 for roots)."""
    return EqualityFilter(model.depth, depth)


__all__ = [
    "PathContainsFilter",
    "ancestors_of",
    "by_depth",
    "children_of",
    "descendants_of",
    "excluding_ids",
    "roots_of",
    "siblings_of",
    "with_ancestor",
]
