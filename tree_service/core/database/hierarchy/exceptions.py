"""Tree maintenance exceptions.

All tree errors derive from RepositoryError so callers that already handle
store failures catch them too.
"""

from __future__ import annotations

from collections.abc import Sequence

from tree_service.core.database.exceptions import RepositoryError


class TreeError(RepositoryError):
    """Base exception for tree maintenance errors."""


class CyclicParentError(TreeError):
    """Assigning the parent would make a node its own ancestor.

    Raised before the node is mutated, so both the stored row and the
    in-memory cached path stay as they were.
    """

    def __init__(self, node_id: str, parent_id: str | None):
        self.node_id = node_id
        self.parent_id = parent_id
        super().__init__(
            "Parent assignment would create a cycle",
            details={"node_id": node_id, "parent_id": parent_id},
        )


class DanglingParentError(TreeError):
    """A node references a parent id that does not exist in the store."""

    def __init__(self, node_id: str | None, parent_id: str):
        self.node_id = node_id
        self.parent_id = parent_id
        super().__init__(
            "Parent not found",
            details={"node_id": node_id, "parent_id": parent_id},
        )


class CascadeIncompleteError(TreeError):
    """A cascade stopped partway through a subtree.

    The cascade writes its nodes in batches, each under a SAVEPOINT. Nodes
    in ``updated_ids`` belong to batches that were released and are part of
    the caller's transaction; the batch holding ``failed_ids`` was rolled
    back to its savepoint, so the session stays usable. Committing keeps
    the partial progress, and re-saving the root with
    ``CascadeDecision.FORCE`` finishes the job. The store error that
    interrupted the cascade is available as ``__cause__``.

    Attributes:
        root_id: Id of the node whose move started the cascade
        updated_ids: Ids written with a fresh path
        failed_ids: Ids of the batch that was rolled back
    """

    def __init__(
        self,
        root_id: str,
        updated_ids: Sequence[str],
        failed_ids: Sequence[str],
    ):
        self.root_id = root_id
        self.updated_ids = list(updated_ids)
        self.failed_ids = list(failed_ids)
        super().__init__(
            "Cascade did not complete",
            details={
                "root_id": root_id,
                "updated": len(self.updated_ids),
                "failed_ids": self.failed_ids,
            },
        )


__all__ = [
    "CascadeIncompleteError",
    "CyclicParentError",
    "DanglingParentError",
    "TreeError",
]
