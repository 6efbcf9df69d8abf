"""Pending OAuth state store.

Each entry maps an opaque ``state`` to the PKCE verifier and the user who
started the flow. Entries expire after ``ttl_seconds`` and the store never
holds more than ``max_entries`` (oldest dropped first).
"""
from __future__ import annotations
from functools import lru_cache
from typing import Protocol, Optional, Dict, Any, List, Callable
import json
import logging
import time

import redis

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

STATE_TTL_SECONDS = 600
STATE_MAX_ENTRIES = 50


class StateStore(Protocol):
    def put(self, state: str, payload: Dict[str, Any], created_at: float) -> None: ...
    def pop(self, state: str) -> Optional[Dict[str, Any]]: ...
    def prune(self) -> None: ...
    def size(self) -> int: ...


class MemoryStateStore:
    backend = "memory"

    def __init__(self, ttl_seconds: float = STATE_TTL_SECONDS, max_entries: int = STATE_MAX_ENTRIES,
                 time_provider: Optional[Callable[[], float]] = None):
        self._data: Dict[str, Dict[str, Any]] = {}
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.time_provider = time_provider or time.time

    def put(self, state: str, payload: Dict[str, Any], created_at: float) -> None:
        self._data[state] = {"payload": dict(payload), "created_at": created_at}
        self.prune()

    def pop(self, state: str) -> Optional[Dict[str, Any]]:
        self.prune()
        entry = self._data.pop(state, None)
        return entry["payload"] if entry else None

    def prune(self) -> None:
        now_ts = self.time_provider()
        expired = [k for k, v in self._data.items() if now_ts - v["created_at"] > self.ttl_seconds]
        for k in expired:
            del self._data[k]
        while len(self._data) > self.max_entries:
            oldest_key = min(self._data.items(), key=lambda kv: kv[1]["created_at"])[0]
            del self._data[oldest_key]

    def size(self) -> int:
        return len(self._data)

    def states(self) -> List[str]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()


class RedisStateStore:
    """Redis-backed store.

    Key layout:
      bd:oauth:state:<state> -> JSON payload (TTL applied)
      bd:oauth:states (sorted set) -> member=state, score=created_at
    """
    backend = "redis"
    STATE_KEY_PREFIX = "bd:oauth:state:"
    STATE_INDEX_KEY = "bd:oauth:states"

    def __init__(self, redis_client, ttl_seconds: int = STATE_TTL_SECONDS, max_entries: int = STATE_MAX_ENTRIES):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries

    def put(self, state: str, payload: Dict[str, Any], created_at: float) -> None:
        pipe = self.redis.pipeline()
        pipe.set(self.STATE_KEY_PREFIX + state, json.dumps(payload), ex=int(self.ttl_seconds))
        pipe.zadd(self.STATE_INDEX_KEY, {state: created_at})
        pipe.execute()
        self.prune()

    def pop(self, state: str) -> Optional[Dict[str, Any]]:
        key = self.STATE_KEY_PREFIX + state
        pipe = self.redis.pipeline()
        pipe.get(key)
        pipe.delete(key)
        pipe.zrem(self.STATE_INDEX_KEY, state)
        val, *_ = pipe.execute()
        if val is None:
            return None
        return json.loads(val.decode() if isinstance(val, bytes) else val)

    def prune(self) -> None:
        size = self.redis.zcard(self.STATE_INDEX_KEY)
        if size and size > self.max_entries:
            oldest = self.redis.zrange(self.STATE_INDEX_KEY, 0, size - self.max_entries - 1) or []
            if oldest:
                pipe = self.redis.pipeline()
                for member in oldest:
                    state = _decode(member)
                    pipe.delete(self.STATE_KEY_PREFIX + state)
                    pipe.zrem(self.STATE_INDEX_KEY, state)
                pipe.execute()
        # index members whose key already expired
        dangling = [
            _decode(m) for m in self.redis.zrange(self.STATE_INDEX_KEY, 0, -1)
            if not self.redis.exists(self.STATE_KEY_PREFIX + _decode(m))
        ]
        if dangling:
            self.redis.zrem(self.STATE_INDEX_KEY, *dangling)

    def size(self) -> int:
        return int(self.redis.zcard(self.STATE_INDEX_KEY) or 0)

    def ping(self) -> bool:
        return bool(self.redis.ping())


def _decode(value) -> str:
    return value.decode() if isinstance(value, bytes) else value


def build_state_store(settings: Settings) -> StateStore:
    if settings.oauth_state_backend == "redis":
        try:
            client = redis.from_url(settings.redis_url)
            client.ping()
            return RedisStateStore(client)
        except redis.RedisError as e:
            logger.warning("redis unavailable, using memory state store", extra={"error": str(e)})
    return MemoryStateStore()


@lru_cache(maxsize=1)
def get_state_store() -> StateStore:
    """Process-wide store shared by every request."""
    return build_state_store(get_settings())
