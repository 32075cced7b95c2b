"""OpenCage Geocoding API実装"""
from typing import Any, Optional

from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import HTTPError, MissingCredentialError, NotFoundError, ProviderError
from ....shared.http.client import HTTPClient
from ....shared.logging.config import get_logger
from ..domain.accuracy import opencage_accuracy
from ..domain.models import Coordinate
from .base import AbstractGeocoder

logger = get_logger(__name__)

DEFAULT_URL = "https://api.opencagedata.com/geocode/v1/json"


class OpenCageGeocoder(AbstractGeocoder):
    """OpenCage Geocoding API実装"""

    name = "opencage"

    def __init__(
        self,
        api_key: Optional[str],
        http_client: Optional[HTTPClient] = None,
        result_cache: Optional[ResultCache] = None,
    ) -> None:
        """
        Args:
            api_key: OpenCage APIキー
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

        logger.info("OpenCageGeocoder initialized")

    def geocode(self, address: str) -> Coordinate:
        def load() -> Coordinate:
            logger.debug(f"Geocoding address: {address}")
            results = self._results(address)
            if not results:
                logger.warning(f"No geocoding results for address: {address}")
                raise NotFoundError(address)
            return self._to_coordinate(results[0], address)

        return self.cached("geocode", address, load)

    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        def load() -> Optional[str]:
            results = self._results(f"{latitude},{longitude}")
            if not results:
                logger.warning(f"No reverse geocoding results for: ({latitude}, {longitude})")
                return None
            return results[0].get("formatted")

        return self.cached("reverse", f"{latitude},{longitude}", load)

    def _results(self, query: str) -> list[dict[str, Any]]:
        try:
            data = self.http_client.get_json(
                params={"q": query, "key": self.api_key, "limit": 1, "no_annotations": 1},
            )
        except HTTPError as e:
            raise ProviderError(self.name, str(e)) from e

        if not isinstance(data, dict):
            raise ProviderError(self.name, "Unexpected response format")

        status = data.get("status") or {}
        if status.get("code") not in (None, 200):
            raise ProviderError(self.name, status.get("message") or f"status {status.get('code')}")

        return data.get("results") or []

    def _to_coordinate(self, result: dict[str, Any], original_query: str) -> Coordinate:
        geometry = result.get("geometry") or {}
        if geometry.get("lat") is None or geometry.get("lng") is None:
            raise ProviderError(self.name, f"Invalid result (missing lat/lng) for: {original_query}")

        coordinate = Coordinate(
            latitude=float(geometry["lat"]),
            longitude=float(geometry["lng"]),
            formatted_address=result.get("formatted"),
            accuracy=opencage_accuracy(result, original_query),
            source=self.name,
            metadata={
                "confidence": result.get("confidence"),
                "type": (result.get("components") or {}).get("_type"),
            },
        )

        logger.debug(f"Geocoded: {original_query} -> {coordinate!r}")
        return coordinate

    def close(self) -> None:
        self.http_client.close()
