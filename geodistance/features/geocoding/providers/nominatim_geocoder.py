"""Nominatim (OpenStreetMap) ジオコーダー"""
from typing import Any, Optional

from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import HTTPError, NotFoundError, ProviderError
from ....shared.http.client import HTTPClient
from ....shared.http.rate_limiter import RateLimiter
from ....shared.logging.config import get_logger
from ..domain.accuracy import NATIVE_STRUCTURED_BONUS, apply_structured_bonus, nominatim_accuracy
from ..domain.models import Coordinate, StructuredAddress
from .base import AbstractGeocoder

logger = get_logger(__name__)

DEFAULT_URL = "https://nominatim.openstreetmap.org"


class NominatimGeocoder(AbstractGeocoder):
    """Nominatim実装（APIキー不要、構造化クエリにネイティブ対応）"""

    name = "nominatim"
    structured_bonus = NATIVE_STRUCTURED_BONUS

    def __init__(
        self,
        http_client: Optional[HTTPClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        result_cache: Optional[ResultCache] = None,
    ) -> None:
        """
        Args:
            http_client: HTTPクライアント（Noneの場合は公開サーバー向けに新規作成）
            rate_limiter: レート制限（Noneの場合は1リクエスト/秒）
            result_cache: 結果キャッシュ
        """
        super().__init__(result_cache)
        self.http_client = http_client or HTTPClient(base_url=DEFAULT_URL)
        self.rate_limiter = rate_limiter or RateLimiter(requests_per_second=1.0)

        logger.info(f"NominatimGeocoder initialized: {self.http_client.base_url}")

    def geocode(self, address: str) -> Coordinate:
        return self.cached("geocode", address, lambda: self._search_free_text(address))

    def geocode_structured(self, address: StructuredAddress) -> Coordinate:
        """
        構造化住所をジオコーディング

        street/city/county/state/country/postalcode の個別パラメータで検索し、
        0件またはエラーの場合は1行の住所での検索にフォールバックする
        """
        return self.cached(
            "geocode_structured",
            address.to_string(),
            lambda: self._search_structured(address),
        )

    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        def load() -> Optional[str]:
            data = self._request(
                "/reverse",
                {"lat": latitude, "lon": longitude, "format": "json"},
            )
            if not isinstance(data, dict) or not data.get("display_name"):
                logger.warning(f"No reverse geocoding results for: ({latitude}, {longitude})")
                return None
            return str(data["display_name"])

        return self.cached("reverse", f"{latitude},{longitude}", load)

    def _search_free_text(self, address: str) -> Coordinate:
        logger.debug(f"Geocoding address: {address}")

        results = self._request(
            "/search",
            {"q": address, "format": "json", "limit": 1, "addressdetails": 1},
        )
        if not results:
            logger.warning(f"No geocoding results for address: {address}")
            raise NotFoundError(address)

        return self._to_coordinate(results[0], address)

    def _search_structured(self, address: StructuredAddress) -> Coordinate:
        params = self._structured_params(address)
        query = address.to_string()

        coordinate: Optional[Coordinate] = None
        try:
            results = self._request("/search", params)
            if results:
                coordinate = self._to_coordinate(results[0], query)
        except ProviderError as e:
            logger.warning(f"Structured search failed, retrying as free text: {e}")

        if coordinate is None:
            logger.debug(f"No structured results, falling back to free text: {query}")
            coordinate = self._search_free_text(query)

        return apply_structured_bonus(coordinate, address, self.structured_bonus)

    @staticmethod
    def _structured_params(address: StructuredAddress) -> dict[str, Any]:
        street = address.street
        if street and address.house_number:
            street = f"{address.house_number} {street}"

        params: dict[str, Any] = {
            "street": street,
            "city": address.city,
            "county": address.suburb,
            "state": address.state,
            "country": address.country,
            "postalcode": address.postal_code,
        }
        params = {key: value for key, value in params.items() if value}
        params.update({"format": "json", "limit": 1, "addressdetails": 1})
        return params

    def _request(self, path: str, params: dict[str, Any]) -> Any:
        self.rate_limiter.wait()
        try:
            return self.http_client.get_json(path, params=params)
        except HTTPError as e:
            raise ProviderError(self.name, str(e)) from e

    def _to_coordinate(self, result: dict[str, Any], original_query: str) -> Coordinate:
        try:
            latitude = float(result["lat"])
            longitude = float(result["lon"])
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(self.name, f"Invalid result (missing lat/lon) for: {original_query}") from e

        coordinate = Coordinate(
            latitude=latitude,
            longitude=longitude,
            formatted_address=result.get("display_name"),
            accuracy=nominatim_accuracy(result, original_query),
            source=self.name,
            metadata={
                "place_id": result.get("place_id"),
                "osm_type": result.get("osm_type"),
                "osm_id": result.get("osm_id"),
                "type": result.get("type"),
                "importance": result.get("importance"),
            },
        )

        logger.debug(f"Geocoded: {original_query} -> {coordinate!r}")
        return coordinate

    def close(self) -> None:
        self.http_client.close()
