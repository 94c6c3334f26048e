"""Text encoding for cached ancestor paths.

An ancestor path is the ordered list of ancestor ids, root first. It is
stored as a single delimited string so that "is X an ancestor of this row"
becomes a portable substring match instead of a recursive query:

    []                -> ""
    ["a"]             -> "/a/"
    ["a", "b", "c"]   -> "/a/b/c/"

Every id is wrapped by the separator on both sides, so matching "/b/"
can never hit a longer id that merely contains "b".
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

SEPARATOR = "/"


def validate_id(node_id: str) -> str:
    """Check that an id can be embedded in an encoded path.

    Args:
        node_id: Record id

    Returns:
        The id unchanged

    Raises:
        ValueError: If the id is empty or contains the separator
    """
    if not isinstance(node_id, str) or not node_id:
        raise ValueError(f"Invalid path id: {node_id!r}. Ids must be non-empty strings.")
    if SEPARATOR in node_id:
        raise ValueError(f"Invalid path id: {node_id!r}. Ids must not contain {SEPARATOR!r}.")
    return node_id


def encode_path(ids: Iterable[str]) -> str:
    """Encode ancestor ids as a delimited string.

    Example:
        >>> encode_path(["a", "b"])
        '/a/b/'
        >>> encode_path([])
        ''
    """
    parts = [validate_id(i) for i in ids]
    if not parts:
        return ""
    return SEPARATOR + SEPARATOR.join(parts) + SEPARATOR


def decode_path(value: str | None) -> list[str]:
    """Decode a stored path back into a list of ids.

    Example:
        >>> decode_path("/a/b/")
        ['a', 'b']
        >>> decode_path("")
        []
    """
    if not value:
        return []
    return [part for part in value.split(SEPARATOR) if part]


def member_fragment(node_id: str) -> str:
    """Substring that appears in an encoded path iff ``node_id`` is a member.

    Example:
        >>> member_fragment("b")
        '/b/'
        >>> member_fragment("b") in encode_path(["a", "b", "c"])
        True
    """
    return f"{SEPARATOR}{validate_id(node_id)}{SEPARATOR}"


def child_path(parent_path: Sequence[str], parent_id: str) -> list[str]:
    """Ancestor path of a node whose parent has ``parent_path`` and ``parent_id``.

    Example:
        >>> child_path(["a"], "b")
        ['a', 'b']
    """
    return [*parent_path, validate_id(parent_id)]


__all__ = [
    "SEPARATOR",
    "child_path",
    "decode_path",
    "encode_path",
    "member_fragment",
    "validate_id",
]
