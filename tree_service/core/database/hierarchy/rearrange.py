"""Recompute a node's cached ancestor path from its parent.

The rearranger is stateless: it reads the parent (from the session's
identity map when loaded, otherwise from the store), derives the new path
and depth, rejects cycles, and reports whether the path differs from what
is currently persisted. Persisting and cascading are the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tree_service.core.database.hierarchy.exceptions import (
    CyclicParentError,
    DanglingParentError,
)
from tree_service.core.database.hierarchy.path import child_path
from tree_service.core.database.inspection import get_persisted_value, is_new
from tree_service.core.settings import get_tree_settings
from tree_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tree_service.core.database.hierarchy.mixins import TreeMixin
    from tree_service.core.settings import TreeSettings

logger = logging.getLogger(__name__)
_lazy = get_lazy_logger(__name__)


@dataclass(frozen=True, slots=True)
class RearrangeResult:
    """Outcome of one rearrange.

    Attributes:
        previous: Persisted ancestor path, None for a never-persisted node
        ancestor_ids: Freshly computed ancestor path
        depth: Freshly computed depth
        path_changed: True when ``ancestor_ids`` differs from ``previous``
    """

    previous: list[str] | None
    ancestor_ids: list[str]
    depth: int
    path_changed: bool


class Rearranger:
    """Derive ``ancestor_ids`` and ``depth`` for nodes of one model.

    Example:
        >>> rearranger = Rearranger(Node)
        >>> node.parent_id = new_parent.id
        >>> result = await rearranger.rearrange(session, node)
        >>> result.path_changed
        True
    """

    __slots__ = ("model", "settings")

    def __init__(self, model: type[TreeMixin], settings: TreeSettings | None = None) -> None:
        self.model = model
        self.settings = settings or get_tree_settings()

    async def compute_path(self, session: AsyncSession, node: TreeMixin) -> list[str]:
        """Return the ancestor path ``node`` should have right now.

        Under the ``detach`` policy a missing parent turns the node into a
        root (``parent_id`` is cleared) instead of raising.

        Raises:
            DanglingParentError: Parent is missing and the policy is ``strict``
        """
        parent_id = node.parent_id
        if parent_id is None:
            return []

        parent: Any = await session.get(self.model, parent_id)
        if parent is not None:
            return child_path(parent.cached_path, parent.id)

        node_id = getattr(node, "id", None)
        if self.settings.dangling_parent_policy == "strict":
            raise DanglingParentError(node_id, parent_id)

        logger.warning(
            "Parent not found, detaching node to root",
            extra={"node_id": node_id, "parent_id": parent_id, "operation": "tree.rearrange"},
        )
        node.parent_id = None
        return []

    async def rearrange(self, session: AsyncSession, node: TreeMixin) -> RearrangeResult:
        """Recompute and assign the node's cached path and depth.

        The cycle check runs on the computed path before anything is
        assigned, so a rejected node keeps its previous cached values.

        Raises:
            CyclicParentError: The node would become its own ancestor
            DanglingParentError: Parent is missing and the policy is ``strict``
        """
        node_id = getattr(node, "id", None)
        # A node naming itself is a cycle even before it exists in the store
        if node_id is not None and node.parent_id == node_id:
            raise CyclicParentError(node_id, node.parent_id)

        path = await self.compute_path(session, node)

        if node_id is not None and node_id in path:
            raise CyclicParentError(node_id, node.parent_id)

        previous = None if is_new(node) else get_persisted_value(node, "ancestor_ids")
        changed = previous is None or list(previous) != path

        if node.ancestor_ids != path:
            node.ancestor_ids = path
        if node.depth != len(path):
            node.depth = len(path)

        _lazy.debug(
            lambda: f"tree.rearrange: {node_id} parent={node.parent_id} path={path} changed={changed}"
        )
        return RearrangeResult(
            previous=list(previous) if previous is not None else None,
            ancestor_ids=list(path),
            depth=len(path),
            path_changed=changed,
        )


__all__ = ["RearrangeResult", "Rearranger"]
