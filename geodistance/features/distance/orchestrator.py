"""距離サービスのオーケストレーター"""

from typing import Optional

from ...infrastructure.config.credentials import CredentialResolver
from ...infrastructure.config.settings import Settings
from ...shared.cache.result_cache import ResultCache
from ...shared.exceptions.errors import ConfigurationError
from ...shared.logging.config import get_logger
from ..geocoding.services.geocoding_service import GeocodingService
from ..routing.providers.base import AbstractRouter
from ..routing.providers.registry import create_router
from .services.distance_service import DistanceService

logger = get_logger(__name__)


class DistanceOrchestrator:
    """
    距離サービスのオーケストレーター

    各Featureを統合し、依存性注入を行う
    """

    def __init__(self, settings: Settings, credentials: Optional[CredentialResolver] = None) -> None:
        """
        Args:
            settings: アプリケーション設定
            credentials: APIキーの解決（Noneの場合は設定から生成）
        """
        self.settings = settings

        # APIキー（開発環境以外ではSecret Managerも参照）
        self.credentials = credentials or CredentialResolver.from_settings(settings)

        # ジオコーディング・ルーティングで共有する結果キャッシュ
        self.result_cache = ResultCache(
            enabled=settings.geocoding_cache_enabled,
            ttl_seconds=settings.cache_ttl_seconds,
            prefix=settings.geocoding_cache_prefix,
        )

        self.geocoding_service = GeocodingService.from_settings(
            settings,
            result_cache=self.result_cache,
            credentials=self.credentials,
        )
        self.router = self._create_router()

        self.distance_service = DistanceService(
            geocoding_service=self.geocoding_service,
            router=self.router,
            unit=settings.distance_unit,
            routing_mode=settings.routing_mode,
            straight_line_fallback=settings.straight_line_fallback,
        )

        logger.info("DistanceOrchestrator initialized")

    def _create_router(self) -> Optional[AbstractRouter]:
        """
        ルーターを作成

        直線距離での代替が有効な場合、初期化の失敗は警告に留める
        """
        name = self.settings.routing_provider
        try:
            return create_router(name, self.settings, self.result_cache, self.credentials.get(name))
        except ConfigurationError as e:
            if not self.settings.straight_line_fallback:
                raise
            logger.warning(f"Routing provider {name} unavailable, using straight-line distance: {e}")
            return None

    def close(self) -> None:
        """リソースをクリーンアップ"""
        self.distance_service.close()
        logger.info("DistanceOrchestrator closed")
