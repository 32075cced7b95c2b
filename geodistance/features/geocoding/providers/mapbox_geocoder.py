"""Mapbox Geocoding API実装"""
from typing import Any, Optional
from urllib.parse import quote

from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import HTTPError, MissingCredentialError, NotFoundError, ProviderError
from ....shared.http.client import HTTPClient
from ....shared.logging.config import get_logger
from ..domain.accuracy import mapbox_accuracy
from ..domain.models import Coordinate
from .base import AbstractGeocoder

logger = get_logger(__name__)

DEFAULT_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"


class MapboxGeocoder(AbstractGeocoder):
    """Mapbox Geocoding API実装"""

    name = "mapbox"

    def __init__(
        self,
        api_key: Optional[str],
        http_client: Optional[HTTPClient] = None,
        result_cache: Optional[ResultCache] = None,
    ) -> None:
        """
        Args:
            api_key: Mapboxアクセストークン
            http_client: HTTPクライアント（Noneの場合は新規作成）
            result_cache: 結果キャッシュ

        Raises:
            MissingCredentialError: APIキーが未設定の場合
        """
        if not api_key:
            raise MissingCredentialError(self.name)

        super().__init__(result_cache)
        self.api_key = api_key
        self.http_client = http_client or HTTPClient(base_url=DEFAULT_URL)

        logger.info("MapboxGeocoder initialized")

    def geocode(self, address: str) -> Coordinate:
        def load() -> Coordinate:
            logger.debug(f"Geocoding address: {address}")
            features = self._features(quote(address, safe=""))
            if not features:
                logger.warning(f"No geocoding results for address: {address}")
                raise NotFoundError(address)
            return self._to_coordinate(features[0], address)

        return self.cached("geocode", address, load)

    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        def load() -> Optional[str]:
            # Mapboxは 経度,緯度 の順
            features = self._features(f"{longitude},{latitude}")
            if not features:
                logger.warning(f"No reverse geocoding results for: ({latitude}, {longitude})")
                return None
            return features[0].get("place_name")

        return self.cached("reverse", f"{latitude},{longitude}", load)

    def _features(self, search_text: str) -> list[dict[str, Any]]:
        try:
            data = self.http_client.get_json(
                f"{search_text}.json",
                params={"access_token": self.api_key, "limit": 1},
            )
        except HTTPError as e:
            raise ProviderError(self.name, str(e)) from e

        if not isinstance(data, dict):
            raise ProviderError(self.name, "Unexpected response format")
        return data.get("features") or []

    def _to_coordinate(self, feature: dict[str, Any], original_query: str) -> Coordinate:
        center = feature.get("center") or feature.get("geometry", {}).get("coordinates")
        if not center or len(center) < 2:
            raise ProviderError(self.name, f"Invalid result (missing coordinates) for: {original_query}")

        # [経度, 緯度]
        coordinate = Coordinate(
            latitude=float(center[1]),
            longitude=float(center[0]),
            formatted_address=feature.get("place_name"),
            accuracy=mapbox_accuracy(feature, original_query),
            source=self.name,
            metadata={
                "id": feature.get("id"),
                "place_type": feature.get("place_type", []),
                "relevance": feature.get("relevance"),
            },
        )

        logger.debug(f"Geocoded: {original_query} -> {coordinate!r}")
        return coordinate

    def close(self) -> None:
        self.http_client.close()
