"""フォールバック付きジオコーダー"""

from typing import Callable, Optional, Sequence

from ....shared.exceptions.errors import GeocodingError, NotFoundError
from ....shared.logging.config import get_logger
from ..domain.models import HIGH_ACCURACY_THRESHOLD, Coordinate, StructuredAddress
from .base import AbstractGeocoder

logger = get_logger(__name__)


class FallbackGeocoder(AbstractGeocoder):
    """
    複数のプロバイダーを順に試すジオコーダー

    無料のプロバイダーを先に試し、精度が足りない場合だけ有料のプロバイダーに進む用途を想定。
    1つのプロバイダーの失敗でチェーン全体を中断しない。
    """

    name = "fallback"

    def __init__(self, providers: Sequence[AbstractGeocoder], minimum_accuracy: float = 0.5) -> None:
        """
        Args:
            providers: 試す順に並べたジオコーダー
            minimum_accuracy: この精度以上なら以降のプロバイダーを試さない (0-1)
        """
        super().__init__()
        self.providers = list(providers)
        self.minimum_accuracy = minimum_accuracy

        logger.info(
            f"FallbackGeocoder initialized: providers={[p.name for p in self.providers]}, "
            f"minimum_accuracy={minimum_accuracy}"
        )

    def geocode(self, address: str) -> Coordinate:
        return self._first_good_result(
            lambda provider: provider.geocode(address),
            query=address,
            operation="Geocoding",
        )

    def geocode_structured(self, address: StructuredAddress) -> Coordinate:
        return self._first_good_result(
            lambda provider: provider.geocode_structured(address),
            query=address.to_string(),
            operation="Structured geocoding",
        )

    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        """
        最初に住所を返したプロバイダーの結果を返す

        逆ジオコーディングには精度スコアがないため比較はしない
        """
        last_error: Optional[GeocodingError] = None

        for provider in self.providers:
            try:
                result = provider.reverse(latitude, longitude)
            except GeocodingError as e:
                last_error = e
                logger.warning(f"Reverse geocoding failed with provider {provider.name}: {e}")
                continue

            if result is not None:
                return result

        if last_error is not None:
            raise last_error

        return None

    def _first_good_result(
        self,
        attempt: Callable[[AbstractGeocoder], Optional[Coordinate]],
        query: str,
        operation: str,
    ) -> Coordinate:
        last_error: Optional[GeocodingError] = None
        best_result: Optional[Coordinate] = None

        for provider in self.providers:
            try:
                result = attempt(provider)
            except GeocodingError as e:
                last_error = e
                logger.warning(f"{operation} failed with provider {provider.name}: {e}")
                continue

            if result is None:
                continue

            accuracy = result.accuracy or 0.0

            # 十分に正確なら探索を打ち切る
            if result.accuracy is not None and accuracy >= HIGH_ACCURACY_THRESHOLD:
                return result

            if best_result is None or accuracy > (best_result.accuracy or 0.0):
                best_result = result

            if result.accuracy is not None and accuracy >= self.minimum_accuracy:
                return result

            logger.debug(
                f"{operation} result from {provider.name} below threshold "
                f"({accuracy:.2f} < {self.minimum_accuracy}), trying next provider"
            )

        if best_result is not None:
            logger.info(
                f"No provider met minimum accuracy for '{query}', "
                f"using best result from {best_result.source} ({best_result.accuracy})"
            )
            return best_result

        if last_error is not None:
            raise last_error

        raise NotFoundError(query)

    def close(self) -> None:
        for provider in self.providers:
            provider.close()

    def __repr__(self) -> str:
        return f"FallbackGeocoder(providers={[p.name for p in self.providers]})"
