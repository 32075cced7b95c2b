"""ルーターの基底クラス"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import ValidationError
from ...geocoding.domain.models import Coordinate
from ..domain.models import RouteResult

# 移動手段の別名 -> 正規名
MODE_ALIASES = {
    "driving": "driving",
    "car": "driving",
    "walking": "walking",
    "foot": "walking",
    "cycling": "cycling",
    "bike": "cycling",
    "bicycle": "cycling",
}


def normalize_mode(mode: Optional[str], supported: tuple[str, ...] = ("driving", "walking", "cycling")) -> str:
    """
    移動手段を正規名に変換

    Raises:
        ValidationError: 未対応の移動手段
    """
    value = (mode or "driving").lower()
    normalized = MODE_ALIASES.get(value, value)
    if normalized not in supported:
        raise ValidationError(
            f"Invalid routing mode: {mode}. Supported modes: {', '.join(supported)}."
        )
    return normalized


class AbstractRouter(ABC):
    """ルーティングプロバイダーの抽象基底クラス"""

    name: str = "abstract"

    def __init__(self, unit: str = "kilometers", result_cache: Optional[ResultCache] = None) -> None:
        """
        Args:
            unit: 結果の距離単位
            result_cache: 結果キャッシュ（Noneの場合はキャッシュしない）
        """
        self.unit = unit
        self.result_cache = result_cache or ResultCache.disabled()

    @abstractmethod
    def route(self, from_coordinate: Coordinate, to_coordinate: Coordinate, mode: Optional[str] = None) -> RouteResult:
        """
        2地点間のルートを計算

        Raises:
            NoRouteFoundError: ルートが見つからない場合
            RoutingError: APIリクエストに失敗した場合
            ValidationError: 未対応の移動手段
        """
        pass

    def cached(self, from_coordinate: Coordinate, to_coordinate: Coordinate, mode: str, loader: Any) -> Any:
        key = f"{from_coordinate}:{to_coordinate}:{mode}:{self.unit}"
        return self.result_cache.remember(self.name, "route", key, loader)

    def close(self) -> None:
        """リソースをクリーンアップ"""
        pass
