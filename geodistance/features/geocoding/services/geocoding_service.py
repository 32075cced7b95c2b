"""ジオコーディングサービス"""

import time
from typing import Any, Optional

from tqdm import tqdm

from ....infrastructure.config.credentials import CredentialResolver
from ....infrastructure.config.local_coordinates import load_local_coordinates
from ....infrastructure.config.settings import Settings
from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import ConfigurationError, GeocodingError
from ....shared.logging.config import get_logger
from ..domain.models import Coordinate, StructuredAddress
from ..providers.base import AbstractGeocoder
from ..providers.fallback_geocoder import FallbackGeocoder
from ..providers.local_coordinate_cache import LocalCoordinateCache
from ..providers.registry import create_geocoder, validate_provider_names

logger = get_logger(__name__)


class GeocodingService:
    """
    ジオコーディングサービス

    ローカル座標キャッシュ → (フォールバック) → 各プロバイダー のチェーンをまとめる
    """

    def __init__(self, geocoder: AbstractGeocoder, delay_between_requests: float = 0.0) -> None:
        """
        Args:
            geocoder: チェーンの先頭となるジオコーダー
            delay_between_requests: バッチ処理時のリクエスト間の遅延（秒）
        """
        self.geocoder = geocoder
        self.delay_between_requests = delay_between_requests

        logger.info(f"GeocodingService initialized: geocoder={self.geocoder!r}")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        result_cache: Optional[ResultCache] = None,
        credentials: Optional[CredentialResolver] = None,
    ) -> "GeocodingService":
        """
        設定からジオコーダーのチェーンを組み立てる

        フォールバック有効時、初期化に失敗したプロバイダー（APIキー未設定など）は
        警告を出してチェーンから外す。1つも残らない場合は ConfigurationError。
        """
        credentials = credentials or CredentialResolver.from_settings(settings)
        result_cache = result_cache or ResultCache(
            enabled=settings.geocoding_cache_enabled,
            ttl_seconds=settings.cache_ttl_seconds,
            prefix=settings.geocoding_cache_prefix,
        )

        geocoder: AbstractGeocoder
        if settings.geocoding_use_fallback:
            names = settings.get_fallback_provider_names()
            validate_provider_names(names)

            providers: list[AbstractGeocoder] = []
            for name in names:
                try:
                    providers.append(create_geocoder(name, settings, result_cache, credentials.get(name)))
                except ConfigurationError as e:
                    logger.warning(f"Skipping geocoding provider {name}: {e}")

            if not providers:
                raise ConfigurationError(f"No geocoding provider could be initialized from: {names}")

            geocoder = FallbackGeocoder(providers, minimum_accuracy=settings.geocoding_min_accuracy)
        else:
            name = settings.geocoding_provider
            geocoder = create_geocoder(name, settings, result_cache, credentials.get(name))

        local_coordinates = load_local_coordinates(
            entries=settings.local_coordinates,
            file_path=settings.local_coordinates_file,
        )
        return cls(LocalCoordinateCache(local_coordinates, fallback_geocoder=geocoder))

    def geocode(self, address: str) -> Coordinate:
        """住所をジオコーディング"""
        return self.geocoder.geocode(address)

    def geocode_structured(self, address: StructuredAddress) -> Coordinate:
        """構造化住所をジオコーディング"""
        if not address.is_valid:
            logger.warning(f"Structured address is missing core components: {address.to_dict()}")
        return self.geocoder.geocode_structured(address)

    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        """座標から住所を取得"""
        return self.geocoder.reverse(latitude, longitude)

    def geocode_batch(self, addresses: list[str], show_progress: bool = True) -> dict[str, Any]:
        """
        複数の住所をバッチジオコーディング

        個々の失敗はバッチ全体を止めず、errors に記録する。

        Args:
            addresses: 住所のリスト（重複は1回だけ問い合わせる）
            show_progress: プログレスバーを表示するか

        Returns:
            dict[str, Any]: results（住所 -> Coordinate）、errors（住所 -> メッセージ）、件数
        """
        unique_addresses = list(dict.fromkeys(address for address in addresses if address))
        results: dict[str, Coordinate] = {}
        errors: dict[str, str] = {}

        logger.info(f"Starting batch geocoding: {len(unique_addresses)} unique addresses")

        iterator = tqdm(unique_addresses, desc="Geocoding") if show_progress else unique_addresses

        for index, address in enumerate(iterator):
            if index > 0 and self.delay_between_requests > 0:
                time.sleep(self.delay_between_requests)

            try:
                results[address] = self.geocode(address)
            except GeocodingError as e:
                logger.error(f"Geocoding error for address {address}: {e}")
                errors[address] = str(e)

        logger.info(
            f"Batch geocoding completed: {len(results)} success, {len(errors)} failure"
        )

        return {
            "results": results,
            "errors": errors,
            "success": len(results),
            "failure": len(errors),
            "total": len(unique_addresses),
        }

    def get_cache_stats(self) -> Optional[dict[str, float]]:
        """ローカル座標キャッシュの統計を取得"""
        if isinstance(self.geocoder, LocalCoordinateCache):
            return self.geocoder.get_cache_stats()
        logger.warning("Cache stats are only available when using LocalCoordinateCache")
        return None

    def clear_cache(self) -> None:
        """ローカル座標キャッシュをクリア"""
        if isinstance(self.geocoder, LocalCoordinateCache):
            self.geocoder.clear_cache()
        else:
            logger.warning("Cache clearing is only supported when using LocalCoordinateCache")

    def close(self) -> None:
        """リソースをクリーンアップ"""
        self.geocoder.close()
