import json
import os
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from rich.console import Console

from ..config import CACHE_FILE, PRICE_CACHE_TTL_SECONDS
from .items import PriceItem

console = Console()

# Bump when the cache key schema changes (prevents silent collisions with old files).
CACHE_KEY_VERSION = "v1"

CacheKey = Tuple[str, ...]


def _norm(s) -> str:
    return (s or "").strip().lower()


def build_cache_key(resource_type: str, region: str, sku=None, redundancy=None, currency=None) -> CacheKey:
    """Everything that changes the catalog filter must be part of the key."""
    return (
        CACHE_KEY_VERSION,
        _norm(resource_type),
        _norm(region),
        _norm(sku),
        _norm(redundancy),
        _norm(currency),
    )


class PriceCache:
    """
    In-process TTL cache for price lookups.

    Reads and writes go through a single lock; a miss runs the fetch outside
    the lock, so two threads may fetch the same key and the last one wins.
    Failed fetches are never stored.
    """

    def __init__(self, ttl_seconds: float = PRICE_CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, List[PriceItem]]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: CacheKey) -> Optional[List[PriceItem]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, items = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return list(items)

    def set(self, key: CacheKey, items: List[PriceItem]) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl_seconds, list(items))

    def get_or_fetch(self, key: CacheKey, fetch: Callable[[], List[PriceItem]]) -> List[PriceItem]:
        cached = self.get(key)
        if cached is not None:
            return cached
        items = list(fetch())
        self.set(key, items)
        return items

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    # -----------------------------------------------------------------
    # Optional persistence. Expiry is stored as remaining seconds so a
    # file written by one process is meaningful to the next.
    # -----------------------------------------------------------------
    def load(self, path: str = CACHE_FILE) -> None:
        if not path or not os.path.exists(path):
            return
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except Exception as ex:
            console.print(f"[yellow]Warning: failed to load {path}: {ex}[/yellow]")
            return
        if not isinstance(data, dict):
            console.print(f"[yellow]Warning: ignoring {path}: top-level JSON must be an object[/yellow]")
            return

        now = self._clock()
        loaded: Dict[CacheKey, Tuple[float, List[PriceItem]]] = {}
        for raw_key, entry in data.items():
            try:
                key = tuple(json.loads(raw_key))
                remaining = float(entry.get("ttl_remaining", 0))
                items = [PriceItem.from_dict(it) for it in entry.get("items") or []]
            except (TypeError, ValueError, AttributeError):
                continue
            if key[:1] != (CACHE_KEY_VERSION,) or remaining <= 0:
                continue
            loaded[key] = (now + remaining, items)

        with self._lock:
            self._entries.update(loaded)

    def save(self, path: str = CACHE_FILE) -> None:
        if not path:
            return
        now = self._clock()
        with self._lock:
            snapshot = {
                json.dumps(list(key)): {
                    "ttl_remaining": expires_at - now,
                    "items": [it.to_dict() for it in items],
                }
                for key, (expires_at, items) in self._entries.items()
                if expires_at > now
            }
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2, ensure_ascii=False)
        except Exception as ex:
            console.print(f"[yellow]Warning: failed to save {path}: {ex}[/yellow]")


_default_cache = PriceCache()


def get_default_cache() -> PriceCache:
    return _default_cache
