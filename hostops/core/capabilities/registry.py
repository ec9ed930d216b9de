"""
Capability Registry - name -> (definition, executor) store

One registry object is created at process start and passed by reference to
everything that registers or dispatches capabilities.

Features:
- Many concurrent readers (lookup/list), exclusive writers
- Atomic insert/remove of a (definition, executor) pair
- All-or-nothing batch registration
- Bounded lock waits (RegistryBusy instead of blocking forever)
- Stable insertion-order listing with optional name filter

Example:
    from hostops.core.capabilities.registry import CapabilityRegistry
    from hostops.core.capabilities.builtins import builtin_executors

    registry = CapabilityRegistry()
    registry.initialize(builtin_executors())

    entry = registry.lookup("fs-cat")
    definitions = registry.list(["fs-cat", "fs-ls"])
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from hostops.core.capabilities.exceptions import (
    AlreadyInitialized,
    CapabilityNotFound,
    DuplicateCapability,
    RegistryBusy,
)
from hostops.core.capabilities.executors.base import CapabilityExecutor
from hostops.core.capabilities.models import CapabilityDefinition
from hostops.core.config import get_config
from hostops.core.locks import ReadWriteLock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    """Immutable (definition, executor) pair"""
    definition: CapabilityDefinition
    executor: CapabilityExecutor


class CapabilityRegistry:
    """
    Concurrency-safe capability registry

    Each name maps to a single immutable RegistryEntry, so a reader either
    sees the complete pair or nothing. Dict order gives insertion order.
    """

    def __init__(self, lock_timeout: Optional[float] = None):
        """
        Args:
            lock_timeout: Bounded wait for the lock (default from config)
        """
        self._entries: Dict[str, RegistryEntry] = {}
        self._lock = ReadWriteLock()
        self._initialized = False
        self.lock_timeout = lock_timeout or get_config().registry_lock_timeout

    # ============================================
    # Writers
    # ============================================

    def initialize(self, builtins: Iterable[CapabilityExecutor]) -> int:
        """
        Load the built-in capability set (once per registry)

        Args:
            builtins: Executors whose full capability sets are registered

        Returns:
            Number of capabilities registered

        Raises:
            AlreadyInitialized: If called a second time
            DuplicateCapability: If a built-in name collides (nothing inserted)
        """
        executors = list(builtins)
        with self._write():
            if self._initialized:
                raise AlreadyInitialized("Registry is already initialized with built-ins")

            pending: Dict[str, RegistryEntry] = {}
            for executor in executors:
                for name in executor.supported_names():
                    if name in self._entries or name in pending:
                        raise DuplicateCapability(name)
                    pending[name] = RegistryEntry(executor.schema(name), executor)

            self._entries.update(pending)
            self._initialized = True

        logger.info(f"Registry initialized with {len(pending)} built-in capabilities")
        return len(pending)

    def register(self, definition: CapabilityDefinition, executor: CapabilityExecutor) -> None:
        """
        Register one capability

        Raises:
            DuplicateCapability: If the name already exists (registry unchanged)
        """
        entry = RegistryEntry(definition, executor)
        with self._write():
            if definition.name in self._entries:
                raise DuplicateCapability(definition.name)
            self._entries[definition.name] = entry
        logger.debug(f"Registered capability: {definition.name}")

    def register_batch(self, definitions: List[CapabilityDefinition], executor: CapabilityExecutor) -> None:
        """
        Register several capabilities served by one executor

        All-or-nothing: if any name collides with the registry or repeats
        within the batch, nothing is inserted.

        Raises:
            DuplicateCapability: For the first colliding name
        """
        entries = [RegistryEntry(d, executor) for d in definitions]
        with self._write():
            seen = set()
            for entry in entries:
                name = entry.definition.name
                if name in self._entries or name in seen:
                    raise DuplicateCapability(name)
                seen.add(name)
            for entry in entries:
                self._entries[entry.definition.name] = entry
        logger.debug(f"Registered {len(entries)} capabilities for {type(executor).__name__}")

    def unregister(self, name: str) -> None:
        """
        Remove a capability

        Raises:
            CapabilityNotFound: If the name is not registered
        """
        with self._write():
            if name not in self._entries:
                raise CapabilityNotFound(name)
            del self._entries[name]
        logger.debug(f"Unregistered capability: {name}")

    # ============================================
    # Readers
    # ============================================

    def lookup(self, name: str) -> Optional[RegistryEntry]:
        """Get the (definition, executor) pair, or None if absent"""
        with self._read():
            return self._entries.get(name)

    def list(self, names: Optional[Iterable[str]] = None) -> List[CapabilityDefinition]:
        """
        List definitions in insertion order

        Args:
            names: Optional filter; unknown names are ignored
        """
        wanted = set(names) if names is not None else None
        with self._read():
            return [
                entry.definition
                for name, entry in self._entries.items()
                if wanted is None or name in wanted
            ]

    def filtered(self, names: Iterable[str]) -> "CapabilityRegistry":
        """
        New registry restricted to ``names``

        Executors are shared with this registry. Names missing here are
        ignored. The result counts as initialized.
        """
        wanted = set(names)
        subset = CapabilityRegistry(lock_timeout=self.lock_timeout)
        with self._read():
            for name, entry in self._entries.items():
                if name in wanted:
                    subset._entries[name] = entry
        subset._initialized = True
        return subset

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __len__(self) -> int:
        with self._read():
            return len(self._entries)

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ============================================
    # Locking
    # ============================================

    def _read(self):
        return _Guard(self._lock, write=False, timeout=self.lock_timeout)

    def _write(self):
        return _Guard(self._lock, write=True, timeout=self.lock_timeout)


class _Guard:
    """Context manager raising RegistryBusy when the bounded wait expires"""

    def __init__(self, lock: ReadWriteLock, write: bool, timeout: float):
        self.lock = lock
        self.write = write
        self.timeout = timeout

    def __enter__(self):
        if self.write:
            acquired = self.lock.acquire_write(self.timeout)
        else:
            acquired = self.lock.acquire_read(self.timeout)
        if not acquired:
            side = "write" if self.write else "read"
            raise RegistryBusy(f"Registry {side} lock not acquired within {self.timeout}s")
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.write:
            self.lock.release_write()
        else:
            self.lock.release_read()
        return False
