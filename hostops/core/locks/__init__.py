"""Synchronization primitives"""

from hostops.core.locks.rwlock import ReadWriteLock

__all__ = ["ReadWriteLock"]
