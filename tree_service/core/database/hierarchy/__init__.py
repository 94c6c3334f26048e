"""Single-parent trees over a plain SQL table.

Each row caches its ancestor ids (root first) and its depth next to its
``parent_id``. Ancestor, descendant, sibling and leaf queries become
equality and substring filters, and cycles are caught by looking at the
computed path.

Components:
    - TreeMixin: parent_id / ancestor_ids / depth columns and pure predicates
    - Rearranger: recomputes a node's cached path, rejects cycles
    - CascadePropagator: refreshes descendants after a path change
    - DisposalStrategy: what happens to children when a node is removed
    - RearrangeHooks: before/after rearrange handlers
    - TreeRepository: save, destroy and the query set
    - criteria: pure filter builders

Example:
    >>> from tree_service.core.database.hierarchy import TreeRepository, DisposalStrategy
    >>> from tree_service.core.models import Node
    >>>
    >>> repo = TreeRepository(Node, disposal=DisposalStrategy.NULLIFY_CHILDREN)
    >>> a = await repo.save(session, Node())
    >>> b = await repo.save(session, Node(parent_id=a.id))
    >>> b.ancestor_ids == [a.id], b.depth
    (True, 1)
"""

from tree_service.core.database.hierarchy import criteria
from tree_service.core.database.hierarchy.cascade import CascadePropagator, CascadeReport
from tree_service.core.database.hierarchy.criteria import PathContainsFilter
from tree_service.core.database.hierarchy.disposal import (
    DisposalStrategy,
    delete_descendants,
    destroy_children,
    move_children_to_parent,
    nullify_children,
)
from tree_service.core.database.hierarchy.exceptions import (
    CascadeIncompleteError,
    CyclicParentError,
    DanglingParentError,
    TreeError,
)
from tree_service.core.database.hierarchy.hooks import RearrangeHandler, RearrangeHooks
from tree_service.core.database.hierarchy.mixins import TreeMixin
from tree_service.core.database.hierarchy.path import (
    SEPARATOR,
    decode_path,
    encode_path,
    member_fragment,
)
from tree_service.core.database.hierarchy.rearrange import Rearranger, RearrangeResult
from tree_service.core.database.hierarchy.repository import (
    CascadeDecision,
    TraversalOrder,
    TreeRepository,
)

__all__ = [
    "SEPARATOR",
    "CascadeDecision",
    "CascadeIncompleteError",
    "CascadePropagator",
    "CascadeReport",
    "CyclicParentError",
    "DanglingParentError",
    "DisposalStrategy",
    "PathContainsFilter",
    "RearrangeHandler",
    "RearrangeHooks",
    "RearrangeResult",
    "Rearranger",
    "TraversalOrder",
    "TreeError",
    "TreeMixin",
    "TreeRepository",
    "criteria",
    "decode_path",
    "delete_descendants",
    "destroy_children",
    "encode_path",
    "member_fragment",
    "move_children_to_parent",
    "nullify_children",
]
