from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Hashable

from ..core.constants import DEFAULT_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


class QueryCache:
    """In-process read cache grouped by entity.

    Services read through ``get_or_load`` and call ``invalidate`` for their
    entity after every successful mutation. Entries also expire after
    ``ttl_seconds`` so writes made by another worker process (or straight
    into the database) show up without a restart. ``ttl_seconds=0`` turns
    caching off.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = max(0.0, float(ttl_seconds))
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, dict[Hashable, tuple[float, Any]]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get_or_load(self, entity: str, key: Hashable, loader: Callable[[], Any]) -> Any:
        if self._ttl == 0:
            return loader()

        now = self._clock()
        with self._lock:
            hit = self._entries.get(entity, {}).get(key)
        if hit is not None and now - hit[0] < self._ttl:
            return hit[1]

        value = loader()
        with self._lock:
            self._entries.setdefault(entity, {})[key] = (now, value)
        return value

    def invalidate(self, entity: str) -> None:
        with self._lock:
            dropped = len(self._entries.pop(entity, {}))
        logger.debug("cache invalidated entity=%s entries=%d", entity, dropped)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
