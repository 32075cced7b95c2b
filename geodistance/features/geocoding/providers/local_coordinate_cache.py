"""既知住所のローカル座標キャッシュ"""

import threading
from dataclasses import replace
from typing import Optional

from ....shared.exceptions.errors import NotFoundError
from ....shared.logging.config import get_logger
from ....shared.utils.text import normalize_address
from ..domain.models import Coordinate, StructuredAddress
from .base import AbstractGeocoder

logger = get_logger(__name__)

LOCAL_CACHE_SOURCE = "local_cache"

# 逆ジオコーディング時に同一地点とみなす差（度）
REVERSE_TOLERANCE = 0.0001


class LocalCoordinateCache(AbstractGeocoder):
    """
    ローカル座標キャッシュ

    倉庫や事務所など頻繁に使う住所の正確な座標を保持し、
    外部APIより先に参照する。ここでの結果は常に精度1.0として扱う。
    外部ジオコーダーから得た高精度の結果も追加していく（削除はしない）。
    """

    name = LOCAL_CACHE_SOURCE

    def __init__(
        self,
        coordinates: Optional[dict[str, Coordinate]] = None,
        fallback_geocoder: Optional[AbstractGeocoder] = None,
    ) -> None:
        """
        Args:
            coordinates: 住所 -> 座標 の初期データ
            fallback_geocoder: キャッシュにない場合に使うジオコーダー
        """
        super().__init__()
        self.fallback_geocoder = fallback_geocoder
        self.cache: dict[str, Coordinate] = {}
        self.hit_count = 0
        self.miss_count = 0
        self._lock = threading.Lock()

        if coordinates:
            self.add_many(coordinates)

        logger.info(f"LocalCoordinateCache initialized: {len(self.cache)} known addresses")

    def add(self, address: str, coordinate: Coordinate) -> None:
        """既知の座標を追加"""
        key = normalize_address(address)
        with self._lock:
            self.cache[key] = coordinate

    def add_many(self, coordinates: dict[str, Coordinate]) -> None:
        """複数の座標をまとめて追加"""
        for address, coordinate in coordinates.items():
            self.add(address, coordinate)

    def lookup(self, address: str) -> Optional[Coordinate]:
        """
        キャッシュのみを参照（外部ジオコーダーは呼ばない）

        Returns:
            Optional[Coordinate]: 精度1.0の座標（未登録の場合はNone）
        """
        key = normalize_address(address)
        with self._lock:
            cached = self.cache.get(key)
            if cached is None:
                self.miss_count += 1
                return None
            self.hit_count += 1

        logger.debug(f"Local cache hit for address: {address}")

        if cached.accuracy is None or cached.accuracy < 1.0:
            return replace(
                cached,
                formatted_address=cached.formatted_address or address,
                accuracy=1.0,
                source=LOCAL_CACHE_SOURCE,
                metadata={**cached.metadata, "cached": True},
            )

        if cached.source != LOCAL_CACHE_SOURCE:
            return replace(cached, source=LOCAL_CACHE_SOURCE)

        return cached

    def geocode(self, address: str) -> Coordinate:
        """
        住所をジオコーディング（ローカルキャッシュ優先）

        Raises:
            NotFoundError: キャッシュになく、フォールバックも設定されていない場合
        """
        cached = self.lookup(address)
        if cached is not None:
            return cached

        if self.fallback_geocoder is None:
            raise NotFoundError(address)

        logger.debug(f"Local cache miss for address: {address}")
        result = self.fallback_geocoder.geocode(address)
        self._remember(address, result)
        return result

    def geocode_structured(self, address: StructuredAddress) -> Coordinate:
        """
        構造化住所をジオコーディング

        1行の住所文字列でキャッシュを引き、なければフォールバックの構造化検索を使う
        """
        query = address.to_string()
        cached = self.lookup(query)
        if cached is not None:
            return cached

        if self.fallback_geocoder is None:
            raise NotFoundError(query)

        result = self.fallback_geocoder.geocode_structured(address)
        self._remember(query, result)
        return result

    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        """近傍（±0.0001度）の既知座標があればその住所を返す"""
        with self._lock:
            entries = list(self.cache.items())

        for address, coordinate in entries:
            if (
                abs(coordinate.latitude - latitude) < REVERSE_TOLERANCE
                and abs(coordinate.longitude - longitude) < REVERSE_TOLERANCE
            ):
                logger.debug(f"Local cache reverse hit: ({latitude}, {longitude}) -> {address}")
                return coordinate.formatted_address or address

        if self.fallback_geocoder is None:
            return None

        return self.fallback_geocoder.reverse(latitude, longitude)

    def get_all(self) -> dict[str, Coordinate]:
        """登録済みの全座標（正規化済みキー）"""
        with self._lock:
            return dict(self.cache)

    def clear_cache(self) -> None:
        """キャッシュをクリア"""
        with self._lock:
            cache_size = len(self.cache)
            self.cache.clear()
            self.hit_count = 0
            self.miss_count = 0
        logger.info(f"Local cache cleared: {cache_size} entries removed")

    def get_cache_stats(self) -> dict[str, float]:
        """
        キャッシュ統計を取得

        Returns:
            dict[str, float]: サイズ、ヒット数、ミス数、ヒット率
        """
        total_requests = self.hit_count + self.miss_count
        hit_rate = (self.hit_count / total_requests * 100) if total_requests > 0 else 0.0

        stats = {
            "cache_size": len(self.cache),
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "total_requests": total_requests,
            "hit_rate_percent": round(hit_rate, 2),
        }

        logger.info(f"Local cache stats: {stats}")

        return stats

    def _remember(self, address: str, result: Optional[Coordinate]) -> None:
        if result is not None and result.is_high_accuracy:
            logger.debug(f"Caching high-accuracy result for: {address} ({result.accuracy})")
            self.add(address, result)

    def close(self) -> None:
        if self.fallback_geocoder is not None:
            self.fallback_geocoder.close()
