"""ジオコーダーの基底クラス"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ....shared.cache.result_cache import ResultCache
from ....shared.logging.config import get_logger
from ..domain.accuracy import DEFAULT_STRUCTURED_BONUS, apply_structured_bonus
from ..domain.models import Coordinate, StructuredAddress

logger = get_logger(__name__)


class AbstractGeocoder(ABC):
    """ジオコーダーの抽象基底クラス"""

    #: プロバイダーID（Coordinate.source とキャッシュキーに使用）
    name: str = "abstract"

    #: geocode_structured の既定実装で加える構造化ボーナスの重み
    structured_bonus: float = DEFAULT_STRUCTURED_BONUS

    def __init__(self, result_cache: Optional[ResultCache] = None) -> None:
        """
        Args:
            result_cache: 結果キャッシュ（Noneの場合はキャッシュしない）
        """
        self.result_cache = result_cache or ResultCache.disabled()

    @abstractmethod
    def geocode(self, address: str) -> Coordinate:
        """
        住所をジオコーディング

        Args:
            address: 住所文字列

        Returns:
            Coordinate: 精度スコア付きの座標

        Raises:
            NotFoundError: 結果が0件の場合
            ProviderError: APIリクエストに失敗した場合
        """
        pass

    @abstractmethod
    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        """
        座標から住所を取得（逆ジオコーディング）

        Returns:
            Optional[str]: 住所（見つからない場合はNone）

        Raises:
            ProviderError: APIリクエストに失敗した場合
        """
        pass

    def geocode_structured(self, address: StructuredAddress) -> Coordinate:
        """
        構造化住所をジオコーディング

        既定では1行の住所文字列に変換して geocode に委譲し、構造化ボーナスを加える。
        ネイティブ対応のプロバイダーはオーバーライドする。
        """
        coordinate = self.geocode(address.to_string())
        return apply_structured_bonus(coordinate, address, self.structured_bonus)

    def cached(self, operation: str, value: str, loader: Any) -> Any:
        """このプロバイダー名でキャッシュを通して loader を実行"""
        return self.result_cache.remember(self.name, operation, value, loader)

    def close(self) -> None:
        """リソースをクリーンアップ"""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
