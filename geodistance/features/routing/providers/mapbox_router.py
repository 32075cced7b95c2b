"""Mapbox Directions APIルーター"""
from typing import Optional

from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import HTTPError, MissingCredentialError, NoRouteFoundError, RoutingError
from ....shared.http.client import HTTPClient
from ....shared.logging.config import get_logger
from ...geocoding.domain.models import Coordinate
from ..domain.models import RouteResult, RouteStep, convert_distance
from .base import AbstractRouter, normalize_mode

logger = get_logger(__name__)

DEFAULT_URL = "https://api.mapbox.com/directions/v5/mapbox"


class MapboxRouter(AbstractRouter):
    """Mapbox Directions API実装"""

    name = "mapbox"

    def __init__(
        self,
        api_key: Optional[str],
        http_client: Optional[HTTPClient] = None,
        unit: str = "kilometers",
        result_cache: Optional[ResultCache] = None,
    ) -> None:
        """
        Raises:
            MissingCredentialError: APIキーが未設定の場合
        """
        if not api_key:
            raise MissingCredentialError(self.name)

        super().__init__(unit, result_cache)
        self.api_key = api_key
        self.http_client = http_client or HTTPClient(base_url=DEFAULT_URL)

        logger.info("MapboxRouter initialized")

    def route(self, from_coordinate: Coordinate, to_coordinate: Coordinate, mode: Optional[str] = None) -> RouteResult:
        profile = normalize_mode(mode)
        return self.cached(
            from_coordinate,
            to_coordinate,
            profile,
            lambda: self._route(from_coordinate, to_coordinate, profile),
        )

    def _route(self, from_coordinate: Coordinate, to_coordinate: Coordinate, profile: str) -> RouteResult:
        path = (
            f"{profile}/"
            f"{from_coordinate.longitude},{from_coordinate.latitude};"
            f"{to_coordinate.longitude},{to_coordinate.latitude}"
        )

        try:
            data = self.http_client.get_json(
                path,
                params={
                    "access_token": self.api_key,
                    "geometries": "polyline",
                    "steps": "true",
                    "overview": "full",
                },
            )
        except HTTPError as e:
            raise RoutingError(f"Routing API error: {e}") from e

        if not isinstance(data, dict) or not data.get("routes"):
            logger.warning(f"No route found: {from_coordinate} -> {to_coordinate} ({profile})")
            raise NoRouteFoundError()

        route = data["routes"][0]
        legs = route.get("legs") or []

        steps = [
            RouteStep(
                distance=float(step.get("distance", 0.0)),
                duration=float(step.get("duration", 0.0)),
                instruction=(step.get("maneuver") or {}).get("instruction", ""),
                name=step.get("name", ""),
            )
            for step in (legs[0].get("steps") or [] if legs else [])
        ]

        return RouteResult(
            from_coordinate=from_coordinate,
            to_coordinate=to_coordinate,
            distance=convert_distance(float(route["distance"]), "meters", self.unit),
            unit=self.unit,
            duration=float(route.get("duration", 0.0)),
            steps=steps,
            polyline=route.get("geometry"),
            summary=f"Route via Mapbox ({profile})",
        )

    def close(self) -> None:
        self.http_client.close()
