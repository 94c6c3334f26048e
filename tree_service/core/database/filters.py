"""Query filter descriptions for SQLAlchemy statements.

Filters describe a condition without executing anything; the repository
applies them to a SELECT (or, for predicate filters, a DELETE) when it
talks to the store. That keeps tree query derivations pure: they only
build filter objects.

Usage:
    from sqlalchemy import select
    from tree_service.core.database.filters import EqualityFilter, OrderBy

    stmt = select(Node)
    stmt = EqualityFilter(Node.parent_id, parent.id).apply(stmt)
    stmt = OrderBy(Node.depth, "asc").apply(stmt)

    result = await session.execute(stmt)
    children = result.scalars().all()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import and_, false, or_, true

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import InstrumentedAttribute


class StatementFilter(ABC):
    """Base class for statement filters.

    All filters implement `apply()` which returns a modified statement.
    """

    @abstractmethod
    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply filter to statement.

        Args:
            statement: SQLAlchemy select statement

        Returns:
            Modified select statement
        """
        ...


class PredicateFilter(StatementFilter):
    """Filter that reduces to a single boolean WHERE clause.

    Predicate filters can be combined with FilterGroup and used to scope
    bulk deletes, which only accept a WHERE clause.
    """

    @abstractmethod
    def clause(self) -> ColumnElement[bool]:
        """Return the WHERE clause this filter stands for."""
        ...

    def apply(self, statement: Select[Any]) -> Select[Any]:
        return statement.where(self.clause())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.clause()})"


class EqualityFilter(PredicateFilter):
    """Equality on a single field; ``None`` matches NULL.

    Example:
        # Children of a node
        EqualityFilter(Node.parent_id, node.id)

        # Roots (parent_id IS NULL)
        EqualityFilter(Node.parent_id, None)
    """

    def __init__(self, field: InstrumentedAttribute[Any], value: Any):
        self.field = field
        self.value = value

    def clause(self) -> ColumnElement[bool]:
        if self.value is None:
            return self.field.is_(None)
        return self.field == self.value


class CollectionFilter(PredicateFilter):
    """Filter by collection (WHERE ... IN).

    Example:
        CollectionFilter(Node.id, ["a", "b"])
        # WHERE nodes.id IN ('a', 'b')

        CollectionFilter(Node.id, ["a", "b"], invert=True)
        # WHERE nodes.id NOT IN ('a', 'b')
    """

    def __init__(
        self,
        field: InstrumentedAttribute[Any],
        values: Sequence[Any],
        *,
        invert: bool = False,
    ):
        """Initialize collection filter.

        Args:
            field: Field to filter
            values: Collection of values to match
            invert: If True, use NOT IN instead of IN
        """
        self.field = field
        self.values = list(values)
        self.invert = invert

    def clause(self) -> ColumnElement[bool]:
        if not self.values:
            # IN () matches nothing, NOT IN () matches everything
            return true() if self.invert else false()
        if self.invert:
            return self.field.not_in(self.values)
        return self.field.in_(self.values)


class FilterGroup(PredicateFilter):
    """Combine predicate filters with AND or OR.

    Example:
        FilterGroup([
            EqualityFilter(Node.parent_id, None),
            CollectionFilter(Node.id, ["a", "b"], invert=True),
        ])
    """

    def __init__(
        self,
        filters: Sequence[PredicateFilter],
        operator: Literal["and", "or"] = "and",
    ):
        self.filters = list(filters)
        self.operator = operator

    def clause(self) -> ColumnElement[bool]:
        clauses = [f.clause() for f in self.filters]
        if not clauses:
            return true()
        if self.operator == "or":
            return or_(*clauses)
        return and_(*clauses)


class OrderBy(StatementFilter):
    """Column ordering/sorting.

    Example:
        # Root first
        OrderBy(Node.depth, "asc")

        # Multiple orderings
        OrderBy([Node.depth, Node.id], ["asc", "asc"])
    """

    def __init__(
        self,
        fields: InstrumentedAttribute[Any] | Sequence[InstrumentedAttribute[Any]],
        sort_order: Literal["asc", "desc"] | Sequence[Literal["asc", "desc"]] = "asc",
    ):
        """Initialize ordering filter.

        Args:
            fields: Single field or list of fields to order by
            sort_order: Sort direction(s) - 'asc' or 'desc'
        """
        self.fields = [fields] if not isinstance(fields, Sequence) else list(fields)

        if isinstance(sort_order, str):
            self.sort_orders = [sort_order] * len(self.fields)
        else:
            self.sort_orders = list(sort_order)
            if len(self.sort_orders) != len(self.fields):
                msg = "sort_order length must match fields length"
                raise ValueError(msg)

    def apply(self, statement: Select[Any]) -> Select[Any]:
        for field, order in zip(self.fields, self.sort_orders, strict=True):
            if order == "desc":
                statement = statement.order_by(field.desc())
            else:
                statement = statement.order_by(field.asc())
        return statement


__all__ = [
    "CollectionFilter",
    "EqualityFilter",
    "FilterGroup",
    "OrderBy",
    "PredicateFilter",
    "StatementFilter",
]
