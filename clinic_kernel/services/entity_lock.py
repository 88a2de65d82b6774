"""
EntityLockRegistry -- per-entity mutual exclusion within one process.

Responsibility:
    Hands out a mutex per entity key (e.g. ``("invoice", id)``) so that
    writes to the same entity are serialized while writes to different
    entities never wait on each other.

Architecture position:
    Kernel > Services -- infrastructure used by GuardedService.  It is the
    in-process layer of the write guard; the row lock and the optimistic
    version column cover writers in other processes.

Guarantees:
    - At most one holder per key at a time.
    - No global lock is held while waiting on an entity lock.
    - Entries exist only while a holder or waiter uses them, so the
      registry does not grow with the number of entities ever touched.

Failure modes:
    - TimeoutError when ``timeout`` elapses before the lock is acquired.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Hashable, Iterator

from clinic_kernel.logging_config import get_logger

logger = get_logger("services.entity_lock")


@dataclass
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class EntityLockRegistry:
    """
    Keyed lock table.

    Usage:
        registry = EntityLockRegistry()
        with registry.hold(("invoice", invoice_id)):
            ...  # read, check, write, commit
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _Entry] = {}

    @contextmanager
    def hold(self, key: Hashable, timeout: float | None = None) -> Iterator[None]:
        """
        Hold the lock for ``key`` for the duration of the block.

        Args:
            key: Hashable entity key.
            timeout: Seconds to wait; None waits until the holder releases.

        Raises:
            TimeoutError: If the lock was not acquired within ``timeout``.
        """
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
            entry.users += 1

        acquired = False
        try:
            acquired = entry.lock.acquire(timeout=-1 if timeout is None else timeout)
            if not acquired:
                logger.warning(
                    "entity_lock_timeout",
                    extra={"key": str(key), "timeout": timeout},
                )
                raise TimeoutError(f"Timed out after {timeout}s waiting for {key}")
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def active_count(self) -> int:
        """Number of keys currently held or awaited."""
        with self._guard:
            return len(self._entries)


# Shared by every service in the process unless one is injected.
default_lock_registry = EntityLockRegistry()
