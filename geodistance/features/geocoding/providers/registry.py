"""ジオコーディングプロバイダーのレジストリ"""

from typing import Callable, Optional

from ....infrastructure.config.settings import Settings
from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import ConfigurationError
from ....shared.http.client import HTTPClient
from ....shared.http.rate_limiter import RateLimiter
from ....shared.logging.config import get_logger
from .base import AbstractGeocoder
from .google_maps_geocoder import GoogleMapsGeocoder
from .mapbox_geocoder import MapboxGeocoder
from .nominatim_geocoder import NominatimGeocoder
from .opencage_geocoder import OpenCageGeocoder

logger = get_logger(__name__)

GeocoderFactory = Callable[[Settings, ResultCache, Optional[str]], AbstractGeocoder]


def _nominatim(settings: Settings, result_cache: ResultCache, api_key: Optional[str]) -> AbstractGeocoder:
    return NominatimGeocoder(
        http_client=HTTPClient(
            base_url=settings.nominatim_url,
            timeout=settings.nominatim_timeout,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_backoff_factor,
            user_agent=settings.nominatim_user_agent,
        ),
        rate_limiter=RateLimiter(requests_per_second=settings.nominatim_requests_per_second),
        result_cache=result_cache,
    )


def _google(settings: Settings, result_cache: ResultCache, api_key: Optional[str]) -> AbstractGeocoder:
    return GoogleMapsGeocoder(api_key=api_key, timeout=settings.google_timeout, result_cache=result_cache)


def _mapbox(settings: Settings, result_cache: ResultCache, api_key: Optional[str]) -> AbstractGeocoder:
    return MapboxGeocoder(
        api_key=api_key,
        http_client=HTTPClient(
            base_url=settings.mapbox_geocoding_url,
            timeout=settings.mapbox_timeout,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_backoff_factor,
        ),
        result_cache=result_cache,
    )


def _opencage(settings: Settings, result_cache: ResultCache, api_key: Optional[str]) -> AbstractGeocoder:
    return OpenCageGeocoder(
        api_key=api_key,
        http_client=HTTPClient(
            base_url=settings.opencage_url,
            timeout=settings.opencage_timeout,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_backoff_factor,
        ),
        result_cache=result_cache,
    )


GEOCODER_FACTORIES: dict[str, GeocoderFactory] = {
    "nominatim": _nominatim,
    "google": _google,
    "mapbox": _mapbox,
    "opencage": _opencage,
}


def validate_provider_names(names: list[str]) -> None:
    """
    プロバイダー名を検証

    Raises:
        ConfigurationError: 未対応のプロバイダー名が含まれる場合
    """
    unknown = [name for name in names if name not in GEOCODER_FACTORIES]
    if unknown:
        raise ConfigurationError(
            f"Invalid geocoding provider: {', '.join(unknown)}. "
            f"Supported providers: {', '.join(GEOCODER_FACTORIES)}"
        )


def create_geocoder(
    name: str,
    settings: Settings,
    result_cache: Optional[ResultCache] = None,
    api_key: Optional[str] = None,
) -> AbstractGeocoder:
    """
    名前からジオコーダーを生成

    Raises:
        ConfigurationError: 未対応のプロバイダー名
        MissingCredentialError: APIキーが必要なプロバイダーでキーが未設定
    """
    validate_provider_names([name])
    return GEOCODER_FACTORIES[name](settings, result_cache or ResultCache.disabled(), api_key)
