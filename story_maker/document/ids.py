"""Entity id generation.

Ids are derived from the monotonic nanosecond clock plus a process-wide
counter, so two ids minted within the same clock tick still differ.
"""
from __future__ import annotations

import itertools
import threading
import time

_COUNTER = itertools.count()
_LOCK = threading.Lock()


def new_id(prefix: str) -> str:
    """Return a fresh id such as ``"shot_1718000000000000000_0"``."""
    with _LOCK:
        seq = next(_COUNTER)
    return f"{prefix}_{time.monotonic_ns()}_{seq}"
