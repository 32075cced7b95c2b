"""プロバイダー結果キャッシュ"""

import hashlib
from typing import Any, Callable, Optional, TypeVar

from ..logging.config import get_logger
from .store import CacheStore, MemoryCacheStore

logger = get_logger(__name__)

T = TypeVar("T")


class ResultCache:
    """
    各プロバイダーに注入するキャッシュヘルパー

    キー形式: ``{prefix}:{provider}:{operation}:{md5(入力)}``
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        enabled: bool = True,
        ttl_seconds: int = 1440 * 60,
        prefix: str = "geocoding",
    ) -> None:
        """
        Args:
            store: キャッシュストア（Noneの場合はプロセス内メモリ）
            enabled: キャッシュを使うか
            ttl_seconds: 保持期間（秒）
            prefix: キーのプレフィックス
        """
        self.store: CacheStore = store if store is not None else MemoryCacheStore()
        self.enabled = enabled
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def make_key(self, provider: str, operation: str, value: str) -> str:
        """キャッシュキーを生成"""
        normalized = " ".join(value.strip().lower().split())
        digest = hashlib.md5(normalized.encode("utf-8")).hexdigest()
        return f"{self.prefix}:{provider}:{operation}:{digest}"

    def remember(
        self,
        provider: str,
        operation: str,
        value: str,
        loader: Callable[[], Optional[T]],
    ) -> Optional[T]:
        """
        キャッシュにあれば返し、なければ loader を呼んで結果を保存する

        loader の結果が None の場合、保持期間が0以下の場合は保存しない。例外はそのまま伝播する。
        """
        if not self.enabled:
            return loader()

        key = self.make_key(provider, operation, value)
        if self.store.has(key):
            logger.debug(f"Cache hit: {provider}:{operation} ({value})")
            cached: Any = self.store.get(key)
            return cached

        result = loader()
        if result is not None and self.ttl_seconds > 0:
            self.store.put(key, result, self.ttl_seconds)
        return result

    @classmethod
    def disabled(cls) -> "ResultCache":
        """キャッシュ無効のインスタンス"""
        return cls(enabled=False)
