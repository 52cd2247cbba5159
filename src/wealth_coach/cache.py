"""Bucketed response cache for advice text.

Keys combine the normalized question with a coarse signature of the user's
finances, so similar questions from users in the same bracket share an
entry. The storage itself is a pluggable :class:`CacheBackend`.
"""

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .config import settings
from .models import UserFinancialContext

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    response: str
    created_at: float
    token_count: int


class CacheBackend(ABC):
    """Key/value store behind :class:`ResponseCache`."""

    @abstractmethod
    def get(self, key: str) -> CacheEntry | None: ...

    @abstractmethod
    def set(self, key: str, entry: CacheEntry) -> None: ...

    @abstractmethod
    def evict(self, key: str) -> None: ...

    @abstractmethod
    def size(self) -> int: ...


class FifoCacheBackend(CacheBackend):
    """In-process dict that drops the oldest-inserted key when full.

    Re-setting an existing key keeps its original insertion position.
    """

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        if key not in self._entries and len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = entry

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def size(self) -> int:
        return len(self._entries)


def savings_bucket(amount: float) -> str:
    if amount < 1_000:
        return "low"
    if amount < 10_000:
        return "medium"
    if amount < 50_000:
        return "high"
    return "very-high"


def income_bucket(amount: float) -> str:
    if amount < 30_000:
        return "low"
    if amount < 80_000:
        return "medium"
    if amount < 150_000:
        return "high"
    return "very-high"


def context_signature(context: UserFinancialContext) -> str:
    return json.dumps(
        {
            "savingsRange": savings_bucket(context.total_savings),
            "incomeRange": income_bucket(context.monthly_income),
            "activeGoals": context.active_goals,
        }
    )


def cache_key(message: str, context: UserFinancialContext) -> str:
    normalized = message.lower().strip()
    return hashlib.md5((normalized + context_signature(context)).encode()).hexdigest()


class ResponseCache:
    """TTL cache with hit/miss accounting."""

    def __init__(
        self,
        backend: CacheBackend | None = None,
        ttl_seconds: int | None = None,
        clock=time.time,
    ):
        self.backend = backend or FifoCacheBackend(settings.cache_max_entries)
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self._clock = clock
        self.hits = 0
        self.misses = 0

    def get(self, message: str, context: UserFinancialContext) -> str | None:
        key = cache_key(message, context)
        entry = self.backend.get(key)

        if entry is None:
            self.misses += 1
            return None

        if self._clock() - entry.created_at > self.ttl_seconds:
            self.backend.evict(key)
            self.misses += 1
            return None

        self.hits += 1
        return entry.response

    def set(self, message: str, context: UserFinancialContext, response: str, token_count: int) -> None:
        key = cache_key(message, context)
        self.backend.set(key, CacheEntry(response=response, created_at=self._clock(), token_count=token_count))

    def stats(self) -> dict:
        total = self.hits + self.misses
        return {
            "size": self.backend.size(),
            "hit_rate": self.hits / total if total > 0 else 0,
            "hits": self.hits,
            "misses": self.misses,
            "total_requests": total,
        }


# Process-wide default shared by every orchestrator that is not given its own
response_cache = ResponseCache()
