"""Database layer: declarative base, mixins, filters and repositories.

Example:
    >>> from tree_service.core.database import Base, StringIdPKMixin, TimestampMixin
    >>> from tree_service.core.database.hierarchy import TreeMixin
    >>>
    >>> class Category(Base, StringIdPKMixin, TimestampMixin, TreeMixin):
    ...     __tablename__ = "categories"
"""

from tree_service.core.database.base import (
    NAMING_CONVENTION,
    Base,
    StringIdPKMixin,
    TimestampMixin,
)
from tree_service.core.database.exceptions import (
    InvalidFilterError,
    NotFoundError,
    RepositoryError,
)
from tree_service.core.database.filters import (
    CollectionFilter,
    EqualityFilter,
    FilterGroup,
    OrderBy,
    PredicateFilter,
    StatementFilter,
)
from tree_service.core.database.inspection import get_persisted_value, is_new
from tree_service.core.database.repository import BaseRepository
from tree_service.core.database.types import AncestorPathType
from tree_service.core.database.utils import generate_uuid7, new_record_id

__all__ = [
    "NAMING_CONVENTION",
    "AncestorPathType",
    "Base",
    "BaseRepository",
    "CollectionFilter",
    "EqualityFilter",
    "FilterGroup",
    "InvalidFilterError",
    "NotFoundError",
    "OrderBy",
    "PredicateFilter",
    "RepositoryError",
    "StatementFilter",
    "StringIdPKMixin",
    "TimestampMixin",
    "generate_uuid7",
    "get_persisted_value",
    "is_new",
    "new_record_id",
]
