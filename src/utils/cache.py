from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from src.core.schemas import ChatMessage

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    expires_at: float  # epoch seconds


class TTLCache(Generic[T]):
    """
    In-memory keyed store with per-entry expiry.
    - Thread-safe
    - Expired entries are dropped on read and by purge_expired()
    """

    def __init__(self, default_ttl_seconds: int = 3600, max_items: int = 2048) -> None:
        self.default_ttl_seconds = int(default_ttl_seconds)
        self.max_items = int(max_items)
        self._lock = threading.Lock()
        self._store: Dict[str, CacheEntry[T]] = {}

    def _now(self) -> float:
        return time.time()

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._now():
                self._store.pop(key, None)
                return None
            return entry.value

    def set(self, key: str, value: T, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else int(ttl_seconds)
        expires_at = self._now() + max(1, ttl)

        with self._lock:
            if key not in self._store and len(self._store) >= self.max_items:
                # evict the 10% closest to expiry
                items = sorted(self._store.items(), key=lambda kv: kv[1].expires_at)
                for k, _ in items[: max(1, self.max_items // 10)]:
                    self._store.pop(k, None)

            self._store[key] = CacheEntry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def purge_expired(self) -> int:
        now = self._now()
        with self._lock:
            stale = [k for k, e in self._store.items() if e.expires_at <= now]
            for k in stale:
                self._store.pop(k, None)
        return len(stale)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


@dataclass
class StoredContext:
    user_id: str
    data: Any
    created_at: float = field(default_factory=time.time)


class ContextCache:
    """Financial context snapshots handed to a chat, addressed by an opaque id."""

    def __init__(self, ttl_seconds: int = 3600, cache: Optional[TTLCache[StoredContext]] = None) -> None:
        self._cache: TTLCache[StoredContext] = cache or TTLCache(default_ttl_seconds=ttl_seconds)

    def store(self, user_id: str, data: Any) -> str:
        # expired contexts nobody reads again are dropped here
        self._cache.purge_expired()
        context_id = str(uuid.uuid4())
        self._cache.set(context_id, StoredContext(user_id=user_id, data=data))
        return context_id

    def get(self, context_id: str) -> Optional[StoredContext]:
        return self._cache.get(context_id)

    def clear(self, context_id: str) -> None:
        self._cache.delete(context_id)


class ChatSessionCache:
    """Running conversation history per context id."""

    def __init__(self, ttl_seconds: int = 3600, cache: Optional[TTLCache[List[ChatMessage]]] = None) -> None:
        self._cache: TTLCache[List[ChatMessage]] = cache or TTLCache(default_ttl_seconds=ttl_seconds)
        self._lock = threading.Lock()

    def history(self, context_id: str) -> List[ChatMessage]:
        return list(self._cache.get(context_id) or [])

    def append(self, context_id: str, *messages: ChatMessage) -> List[ChatMessage]:
        with self._lock:
            turns = self.history(context_id)
            turns.extend(messages)
            # refreshes the TTL on every turn
            self._cache.set(context_id, turns)
        return list(turns)

    def clear(self, context_id: str) -> None:
        self._cache.delete(context_id)
