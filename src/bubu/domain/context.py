"""Per-user conversation context with independently expiring slots."""

import threading
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional

from loguru import logger


class ContextSlot(str, Enum):
    """Named slots of a conversation context."""

    PENDING_TRANSACTION = "pending_transaction"
    PENDING_RECEIPT = "pending_receipt"
    LAST_TRANSACTION = "last_transaction"
    TRANSACTION_LIST = "transaction_list"
    EDITING_TRANSACTION = "editing_transaction"
    DELETION_TRANSACTION = "deletion_transaction"


# Time-to-live per slot, in seconds
SLOT_TTLS: dict[ContextSlot, float] = {
    ContextSlot.PENDING_TRANSACTION: 5 * 60,
    ContextSlot.PENDING_RECEIPT: 10 * 60,
    ContextSlot.LAST_TRANSACTION: 10 * 60,
    ContextSlot.TRANSACTION_LIST: 30 * 60,
    ContextSlot.EDITING_TRANSACTION: 5 * 60,
    ContextSlot.DELETION_TRANSACTION: 5 * 60,
}


class ContextStore(ABC):
    """Abstract per-phone context store.

    Implementations must treat a slot older than its TTL as absent. Values
    are plain dicts and lists so a networked key-value store can back this
    interface.
    """

    @abstractmethod
    def put(self, phone: str, slot: ContextSlot, value: Any) -> None:
        """Store a value in a slot, replacing any previous one."""
        pass

    @abstractmethod
    def get(self, phone: str, slot: ContextSlot) -> Optional[Any]:
        """Return the slot value, or None if missing or expired."""
        pass

    @abstractmethod
    def pop(self, phone: str, slot: ContextSlot) -> Optional[Any]:
        """Atomically read and remove a slot value."""
        pass

    @abstractmethod
    def clear(self, phone: str, slot: ContextSlot) -> None:
        """Remove one slot. Clearing an empty slot is a no-op."""
        pass

    @abstractmethod
    def clear_all(self, phone: str) -> None:
        """Remove every slot for a phone."""
        pass

    def resolve_list_index(self, phone: str, display_number: int) -> Optional[Any]:
        """Look up an entry of the last shown transaction list.

        Args:
            phone: User phone
            display_number: 1-based number shown to the user

        Returns:
            The list entry, or None if the list expired or the number is out of range
        """
        entries = self.get(phone, ContextSlot.TRANSACTION_LIST)
        if not entries:
            return None
        try:
            index = int(display_number)
        except (TypeError, ValueError):
            return None
        if index < 1 or index > len(entries):
            return None
        return entries[index - 1]


class InMemoryContextStore(ContextStore):
    """Thread-safe in-process context store with lazy expiry."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        ttls: Optional[dict[ContextSlot, float]] = None,
    ):
        """Initialize the store.

        Args:
            clock: Function returning the current time in seconds
            ttls: Optional TTL overrides per slot
        """
        self._clock = clock
        self._ttls = dict(SLOT_TTLS)
        if ttls:
            self._ttls.update(ttls)
        self._entries: dict[tuple[str, ContextSlot], tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def _is_expired(self, slot: ContextSlot, stored_at: float, now: float) -> bool:
        return now - stored_at > self._ttls[slot]

    def _read(self, phone: str, slot: ContextSlot, remove: bool) -> Optional[Any]:
        key = (phone, slot)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._is_expired(slot, stored_at, self._clock()):
                del self._entries[key]
                logger.debug("Context slot {} expired for {}", slot.value, phone)
                return None
            if remove:
                del self._entries[key]
            return value

    def put(self, phone: str, slot: ContextSlot, value: Any) -> None:
        with self._lock:
            self._entries[(phone, slot)] = (self._clock(), value)
        logger.debug("Context slot {} set for {}", slot.value, phone)

    def get(self, phone: str, slot: ContextSlot) -> Optional[Any]:
        return self._read(phone, slot, remove=False)

    def pop(self, phone: str, slot: ContextSlot) -> Optional[Any]:
        return self._read(phone, slot, remove=True)

    def clear(self, phone: str, slot: ContextSlot) -> None:
        with self._lock:
            self._entries.pop((phone, slot), None)

    def clear_all(self, phone: str) -> None:
        with self._lock:
            for key in [key for key in self._entries if key[0] == phone]:
                del self._entries[key]

    def sweep(self) -> int:
        """Evict every expired slot.

        Returns:
            Number of evicted slots
        """
        with self._lock:
            now = self._clock()
            expired = [
                key
                for key, (stored_at, _) in self._entries.items()
                if self._is_expired(key[1], stored_at, now)
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Swept {} expired context slots", len(expired))
        return len(expired)
