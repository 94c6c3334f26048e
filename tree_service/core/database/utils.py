"""Database utility functions.

Node ids are UUID v7 rendered as canonical text: time-sortable, globally
unique, and free of the path delimiter used by the ancestry column.
"""

from __future__ import annotations

import os
import time
import uuid


def generate_uuid7() -> uuid.UUID:
    """Generate a UUID v7 (time-sortable).

    Returns:
        UUID v7 instance

    Example:
        >>> id1 = generate_uuid7()
        >>> id2 = generate_uuid7()
        >>> str(id1) < str(id2)  # Later IDs sort after earlier ones
        True
    """
    timestamp_ms = int(time.time() * 1000)
    random_bytes = os.urandom(10)

    # RFC 9562 layout:
    # - Bits 0-47: Unix timestamp in milliseconds (big-endian)
    # - Bits 48-51: Version (7)
    # - Bits 64-65: Variant (10)
    uuid_bytes = bytearray(16)
    uuid_bytes[0:6] = timestamp_ms.to_bytes(6, byteorder="big")
    uuid_bytes[6] = (random_bytes[0] & 0x0F) | 0x70
    uuid_bytes[7] = random_bytes[1]
    uuid_bytes[8] = (random_bytes[2] & 0x3F) | 0x80
    uuid_bytes[9:16] = random_bytes[3:10]

    return uuid.UUID(bytes=bytes(uuid_bytes))


def new_record_id() -> str:
    """Return a fresh record id as text (UUID v7)."""
    return str(generate_uuid7())
