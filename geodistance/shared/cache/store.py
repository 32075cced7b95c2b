"""キャッシュストア（キー・バリュー）"""

import math
import threading
import time
from typing import Any, Optional, Protocol

from cachetools import TLRUCache

from ..logging.config import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_ENTRIES = 10000


class CacheStore(Protocol):
    """
    プロバイダー結果を保存する外部キー・バリューストアの契約

    プロセス内メモリ、Redisなど任意の実装を差し込める
    """

    def has(self, key: str) -> bool: ...

    def get(self, key: str) -> Any: ...

    def put(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None: ...


def _expires_at(key: str, entry: tuple[Optional[int], Any], now: float) -> float:
    ttl_seconds = entry[0]
    return math.inf if ttl_seconds is None else now + ttl_seconds


class MemoryCacheStore:
    """
    TTL付きのプロセス内キャッシュ

    期限切れのエントリは書き込みのたびに破棄され、上限を超えると古いものから追い出す
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        # key -> (ttl_seconds, value)。ttl_seconds が None なら無期限
        self._entries: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_expires_at, timer=time.monotonic)
        self._lock = threading.Lock()
        self.hit_count = 0
        self.miss_count = 0

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.miss_count += 1
                return None
            self.hit_count += 1
            return entry[1]

    def put(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """保持期間が0以下なら保存しない"""
        if ttl_seconds is not None and ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[key] = (ttl_seconds, value)

    def clear(self) -> None:
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
            self.hit_count = 0
            self.miss_count = 0
        logger.info(f"Cache cleared: {size} entries removed")

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
