"""Custom SQLAlchemy column types.

AncestorPathType:
    Stores a list of ancestor ids as delimited text (see
    ``tree_service.core.database.hierarchy.path``). Works on every
    dialect; containment is a LIKE on the encoded text.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator, TypeEngine


class AncestorPathType(TypeDecorator[list[str]]):
    """Ordered list of ancestor ids persisted as ``/root/.../parent/``.

    Example:
        >>> class Category(Base, StringIdPKMixin):
        ...     __tablename__ = "categories"
        ...     ancestor_ids: Mapped[list[str]] = mapped_column(AncestorPathType())
        >>>
        >>> # Descendants of a category: encoded path contains "/<id>/"
        >>> stmt = select(Category).where(
        ...     type_coerce(Category.ancestor_ids, Text).contains(member_fragment(cat.id))
        ... )

    Note:
        - Assign a new list to change the value; in-place mutation of the
          loaded list is not tracked by the ORM.
        - Ids must not contain "/" (ValueError on bind).
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Sequence[str] | None, dialect: Any) -> str:
        _ = dialect
        if value is None:
            return ""
        # Import here to avoid circular imports
        from tree_service.core.database.hierarchy.path import encode_path

        return encode_path(value)

    def process_result_value(self, value: str | None, dialect: Any) -> list[str]:
        _ = dialect
        from tree_service.core.database.hierarchy.path import decode_path

        return decode_path(value)

    def coerce_compared_value(self, op: Any, value: Any) -> TypeEngine[Any]:
        """Compare against raw text when the other side is already a string."""
        if isinstance(value, str):
            return Text()
        return self

    def compare_values(self, x: Any, y: Any) -> bool:
        return list(x or []) == list(y or [])


__all__ = [
    "AncestorPathType",
]
