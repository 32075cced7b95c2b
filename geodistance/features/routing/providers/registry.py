"""ルーティングプロバイダーのレジストリ"""

from typing import Callable, Optional

from ....infrastructure.config.settings import Settings
from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import ConfigurationError
from ....shared.http.client import HTTPClient
from .base import AbstractRouter
from .google_maps_router import GoogleMapsRouter
from .mapbox_router import MapboxRouter
from .osrm_router import OsrmRouter

RouterFactory = Callable[[Settings, ResultCache, Optional[str]], AbstractRouter]


def _osrm(settings: Settings, result_cache: ResultCache, api_key: Optional[str]) -> AbstractRouter:
    return OsrmRouter(
        http_client=HTTPClient(
            base_url=settings.osrm_url,
            timeout=settings.osrm_timeout,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_backoff_factor,
        ),
        unit=settings.distance_unit,
        result_cache=result_cache,
    )


def _mapbox(settings: Settings, result_cache: ResultCache, api_key: Optional[str]) -> AbstractRouter:
    return MapboxRouter(
        api_key=api_key,
        http_client=HTTPClient(
            base_url=settings.mapbox_directions_url,
            timeout=settings.mapbox_timeout,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_backoff_factor,
        ),
        unit=settings.distance_unit,
        result_cache=result_cache,
    )


def _google(settings: Settings, result_cache: ResultCache, api_key: Optional[str]) -> AbstractRouter:
    return GoogleMapsRouter(
        api_key=api_key,
        timeout=settings.google_timeout,
        unit=settings.distance_unit,
        result_cache=result_cache,
    )


ROUTER_FACTORIES: dict[str, RouterFactory] = {
    "osrm": _osrm,
    "mapbox": _mapbox,
    "google": _google,
}


def create_router(
    name: str,
    settings: Settings,
    result_cache: Optional[ResultCache] = None,
    api_key: Optional[str] = None,
) -> AbstractRouter:
    """
    名前からルーターを生成

    Raises:
        ConfigurationError: 未対応のプロバイダー名
        MissingCredentialError: APIキーが必要なプロバイダーでキーが未設定
    """
    if name not in ROUTER_FACTORIES:
        raise ConfigurationError(
            f"Invalid routing provider: {name}. "
            f"Supported providers: {', '.join(ROUTER_FACTORIES)}"
        )
    return ROUTER_FACTORIES[name](settings, result_cache or ResultCache.disabled(), api_key)
