"""ORM instance inspection helpers.

The rearranger compares freshly computed values against what is stored,
not against whatever was assigned in memory since the last flush. These
helpers read that committed state from SQLAlchemy's attribute history
without triggering a load.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect as sa_inspect

if TYPE_CHECKING:
    from sqlalchemy.orm import InstanceState
    from sqlalchemy.orm.attributes import History


def is_new(instance: Any) -> bool:
    """Check if instance has never been flushed (transient or pending).

    Example:
        >>> node = Node()
        >>> is_new(node)
        True
        >>> session.add(node); await session.flush()
        >>> is_new(node)
        False
    """
    state: InstanceState[Any] = sa_inspect(instance)
    return state.transient or state.pending


def get_persisted_value(instance: Any, attr_name: str) -> Any:
    """Return the value of ``attr_name`` as last loaded from or flushed to the store.

    Args:
        instance: SQLAlchemy ORM model instance
        attr_name: Column attribute name

    Returns:
        The committed value, or None when the instance was never persisted
        or the attribute is not loaded.

    Example:
        >>> node.parent_id
        'a'
        >>> node.parent_id = "b"
        >>> node.parent_id = "c"
        >>> get_persisted_value(node, "parent_id")
        'a'
    """
    state: InstanceState[Any] = sa_inspect(instance)
    if state.transient or state.pending:
        return None

    attr_state = state.attrs.get(attr_name)
    if attr_state is None:
        return None

    history: History = attr_state.history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return None


__all__ = [
    "get_persisted_value",
    "is_new",
]
