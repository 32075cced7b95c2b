"""Google Maps Geocoding API実装"""
from typing import Any, Optional

import googlemaps

from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import (
    ConfigurationError,
    MissingCredentialError,
    NotFoundError,
    ProviderError,
)
from ....shared.logging.config import get_logger
from ..domain.accuracy import NATIVE_STRUCTURED_BONUS, apply_structured_bonus, google_accuracy
from ..domain.models import Coordinate, StructuredAddress
from .base import AbstractGeocoder

logger = get_logger(__name__)

GOOGLE_API_ERRORS = (
    googlemaps.exceptions.ApiError,
    googlemaps.exceptions.HTTPError,
    googlemaps.exceptions.Timeout,
    googlemaps.exceptions.TransportError,
)


class GoogleMapsGeocoder(AbstractGeocoder):
    """Google Maps Geocoding API実装（address components による構造化検索に対応）"""

    name = "google"
    structured_bonus = NATIVE_STRUCTURED_BONUS

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 10,
        result_cache: Optional[ResultCache] = None,
        client: Optional[Any] = None,
    ) -> None:
        """
        Args:
            api_key: Google Maps API キー
            timeout: リクエストタイムアウト（秒）
            result_cache: 結果キャッシュ
            client: googlemaps.Client 互換のクライアント（テスト用）

        Raises:
            MissingCredentialError: APIキーが未設定の場合
        """
        if not api_key:
            raise MissingCredentialError(self.name)

        super().__init__(result_cache)

        if client is not None:
            self.client = client
        else:
            try:
                self.client = googlemaps.Client(key=api_key, timeout=timeout)
            except ValueError as e:
                raise ConfigurationError(f"Failed to initialize Google Maps client: {e}") from e

        logger.info("GoogleMapsGeocoder initialized")

    def geocode(self, address: str) -> Coordinate:
        return self.cached("geocode", address, lambda: self._geocode(address))

    def geocode_structured(self, address: StructuredAddress) -> Coordinate:
        """
        構造化住所をジオコーディング

        市区町村・州・郵便番号・国を components フィルタとして渡す。
        0件またはエラーの場合は1行の住所での geocode にフォールバックする
        """
        return self.cached(
            "geocode_structured",
            address.to_string(),
            lambda: self._geocode_structured(address),
        )

    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        def load() -> Optional[str]:
            logger.debug(f"Reverse geocoding: ({latitude}, {longitude})")
            results = self._call(self.client.reverse_geocode, (latitude, longitude))
            if not results:
                logger.warning(f"No reverse geocoding results for: ({latitude}, {longitude})")
                return None
            return results[0].get("formatted_address")

        return self.cached("reverse", f"{latitude},{longitude}", load)

    def _geocode(self, address: str) -> Coordinate:
        logger.debug(f"Geocoding address: {address}")

        results = self._call(self.client.geocode, address)
        if not results:
            logger.warning(f"No geocoding results for address: {address}")
            raise NotFoundError(address)

        return self._to_coordinate(results[0], address)

    def _geocode_structured(self, address: StructuredAddress) -> Coordinate:
        query = address.to_string()
        street_line = " ".join(part for part in (address.house_number, address.street) if part)
        components = {
            key: value
            for key, value in {
                "locality": address.city,
                "administrative_area": address.state,
                "postal_code": address.postal_code,
                "country": address.country,
            }.items()
            if value
        }

        coordinate: Optional[Coordinate] = None
        try:
            results = self._call(
                self.client.geocode,
                street_line or query,
                components=components or None,
            )
            if results:
                coordinate = self._to_coordinate(results[0], query)
        except ProviderError as e:
            logger.warning(f"Structured geocoding failed, retrying as free text: {e}")

        if coordinate is None:
            coordinate = self._geocode(query)

        return apply_structured_bonus(coordinate, address, self.structured_bonus)

    def _call(self, method: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return method(*args, **kwargs)
        except GOOGLE_API_ERRORS as e:
            raise ProviderError(self.name, str(e)) from e

    def _to_coordinate(self, result: dict[str, Any], original_query: str) -> Coordinate:
        geometry = result.get("geometry", {})
        location = geometry.get("location", {})

        latitude = location.get("lat")
        longitude = location.get("lng")
        if latitude is None or longitude is None:
            raise ProviderError(self.name, f"Invalid result (missing lat/lng) for: {original_query}")

        coordinate = Coordinate(
            latitude=float(latitude),
            longitude=float(longitude),
            formatted_address=result.get("formatted_address"),
            accuracy=google_accuracy(result, original_query),
            source=self.name,
            metadata={
                "place_id": result.get("place_id"),
                "location_type": geometry.get("location_type"),
                "types": result.get("types", []),
                "partial_match": result.get("partial_match", False),
            },
        )

        logger.debug(f"Geocoded: {original_query} -> {coordinate!r}")
        return coordinate
