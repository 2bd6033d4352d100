import json
import time
import weakref
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable, Dict, List, Optional


def make_key(command: str, parameters: Optional[Dict[str, Any]] = None) -> str:
    """Composite key: command name plus the serialized parameter set."""
    return f"{command}-{json.dumps(parameters or {}, sort_keys=True, default=str)}"


@dataclass
class CacheEntry:
    value: Any
    ttl: float
    created_at: float = field(default_factory=time.monotonic)


class ResponseCache:
    """
    TTL memoization of router responses.

    Entries only expire; there is no size-based eviction because a cache
    belongs to one adapter and holds one entry per distinct command/parameter
    combination that adapter issued.
    """

    def __init__(
        self,
        name: str,
        default_ttl: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.default_ttl = default_ttl  # segundos
        self._clock = clock
        self._data: Dict[str, CacheEntry] = {}
        self._lock = RLock()
        cache_manager.register(self)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at >= entry.ttl:
                del self._data[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        with self._lock:
            self._data[key] = CacheEntry(
                value=value,
                ttl=self.default_ttl if ttl is None else ttl,
                created_at=self._clock(),
            )

    def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._data:
                del self._data[key]
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._data)


class CacheManager:
    """
    Process-wide registry of response caches.

    Caches register themselves on creation and are held weakly, so a cache
    leaves the registry together with the adapter that owned it.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._stores = weakref.WeakSet()
            cls._instance._lock = RLock()
        return cls._instance

    def register(self, store: ResponseCache) -> None:
        with self._lock:
            self._stores.add(store)

    def stores(self) -> List[ResponseCache]:
        with self._lock:
            return list(self._stores)

    def get_stats(self) -> Dict[str, int]:
        """Entry count per cache name; caches sharing a name are summed."""
        stats: Dict[str, int] = {}
        for store in self.stores():
            stats[store.name] = stats.get(store.name, 0) + store.size
        return stats

    def clear_all(self) -> None:
        for store in self.stores():
            store.clear()


# Singleton global
cache_manager = CacheManager()
