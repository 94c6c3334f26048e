"""Errors raised by the store layer.

Everything the repositories raise on purpose derives from RepositoryError,
tree errors included, so one ``except RepositoryError`` covers a failed
lookup, a refused bulk delete and a rejected parent assignment alike.
Raw SQLAlchemy errors are left to propagate unless a caller (the cascade)
has a reason to wrap them.
"""

from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """Base for store-layer errors.

    ``details`` holds the ids involved so log handlers can emit them as
    structured fields; ``str()`` renders them after the message.

    Example:
        >>> str(RepositoryError("Parent not found", {"parent_id": "p1"}))
        "Parent not found (parent_id='p1')"
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} ({rendered})"


class NotFoundError(RepositoryError):
    """No row with the requested key.

    Raised by ``get_or_raise``, and by ``TreeRepository.root`` when the
    cached root id no longer resolves.

    Attributes:
        model_name: Model class name, e.g. "Node"
        identifier: Lookup key, e.g. {"id": "0190..."}
    """

    def __init__(self, model_name: str, identifier: dict[str, Any]):
        self.model_name = model_name
        self.identifier = identifier
        lookup = ", ".join(f"{key}={value!r}" for key, value in identifier.items())
        super().__init__(
            f"{model_name} not found with {lookup}",
            details={"model": model_name, **identifier},
        )

    def __repr__(self) -> str:
        return f"NotFoundError(model={self.model_name!r}, identifier={self.identifier!r})"


class InvalidFilterError(RepositoryError):
    """Filters that cannot scope the requested statement.

    ``bulk_delete`` raises it when called with no filter (it would empty
    the table) or with a filter that has no WHERE clause, such as OrderBy.
    """

    def __init__(self, message: str, filter_name: str | None = None):
        super().__init__(message, details={"filter": filter_name} if filter_name else {})


__all__ = [
    "InvalidFilterError",
    "NotFoundError",
    "RepositoryError",
]
