"""
Time-ordered UUIDv7 identifiers (RFC 9562) for catalog records.

Layout (128 bits):
    48 bits  Unix timestamp, milliseconds
     4 bits  version (0111)
    12 bits  rand_a, used here as a per-millisecond counter
     2 bits  variant (10)
    62 bits  rand_b, random

The counter makes ids generated in the same millisecond by this process
strictly increasing, so ``ORDER BY id`` follows creation order and
offset pagination over ties stays stable.
"""

import os
import threading
import time
from uuid import UUID

_COUNTER_MAX = 0x0FFF

_lock = threading.Lock()
_last_ms = 0
_counter = 0


def _next_timestamp_and_counter() -> tuple[int, int]:
    global _last_ms, _counter

    with _lock:
        now_ms = int(time.time() * 1000)
        if now_ms > _last_ms:
            _last_ms = now_ms
            # Random start leaves headroom for ids in the same millisecond
            _counter = int.from_bytes(os.urandom(2), "big") & 0x03FF
        else:
            _counter += 1
            if _counter > _COUNTER_MAX:
                _last_ms += 1
                _counter = 0
        return _last_ms, _counter


def uuid7() -> UUID:
    """
    Generate a UUIDv7.

    Returns:
        A uuid.UUID instance with version 7.

    Example:
        >>> from bookshop.domain.utils.uuid7 import uuid7
        >>> uuid7().version
        7
    """
    timestamp_ms, counter = _next_timestamp_and_counter()
    rand_b = os.urandom(8)

    uuid_bytes = (
        timestamp_ms.to_bytes(6, byteorder="big")
        + bytes([0x70 | (counter >> 8), counter & 0xFF])
        + bytes([0x80 | (rand_b[0] & 0x3F)])
        + rand_b[1:]
    )
    return UUID(bytes=uuid_bytes)
