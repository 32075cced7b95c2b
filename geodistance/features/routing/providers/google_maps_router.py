"""Google Maps Directions APIルーター"""
from typing import Any, Optional

import googlemaps

from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import ConfigurationError, MissingCredentialError, NoRouteFoundError, RoutingError
from ....shared.logging.config import get_logger
from ....shared.utils.text import remove_html_tags
from ...geocoding.domain.models import Coordinate
from ...geocoding.providers.google_maps_geocoder import GOOGLE_API_ERRORS
from ..domain.models import RouteResult, RouteStep, convert_distance
from .base import AbstractRouter, normalize_mode

logger = get_logger(__name__)

# 正規名 -> Googleの mode
GOOGLE_MODES = {
    "driving": "driving",
    "walking": "walking",
    "cycling": "bicycling",
    "transit": "transit",
}


class GoogleMapsRouter(AbstractRouter):
    """Google Maps Directions API実装"""

    name = "google"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 10,
        unit: str = "kilometers",
        result_cache: Optional[ResultCache] = None,
        client: Optional[Any] = None,
    ) -> None:
        """
        Raises:
            MissingCredentialError: APIキーが未設定の場合
        """
        if not api_key:
            raise MissingCredentialError(self.name)

        super().__init__(unit, result_cache)

        if client is not None:
            self.client = client
        else:
            try:
                self.client = googlemaps.Client(key=api_key, timeout=timeout)
            except ValueError as e:
                raise ConfigurationError(f"Failed to initialize Google Maps client: {e}") from e

        logger.info("GoogleMapsRouter initialized")

    def route(self, from_coordinate: Coordinate, to_coordinate: Coordinate, mode: Optional[str] = None) -> RouteResult:
        google_mode = GOOGLE_MODES[normalize_mode(mode, supported=tuple(GOOGLE_MODES))]
        return self.cached(
            from_coordinate,
            to_coordinate,
            google_mode,
            lambda: self._route(from_coordinate, to_coordinate, google_mode),
        )

    def _route(self, from_coordinate: Coordinate, to_coordinate: Coordinate, google_mode: str) -> RouteResult:
        try:
            routes = self.client.directions(
                from_coordinate.to_tuple(),
                to_coordinate.to_tuple(),
                mode=google_mode,
            )
        except GOOGLE_API_ERRORS as e:
            raise RoutingError(f"Routing API error: {e}") from e

        if not routes:
            logger.warning(f"No route found: {from_coordinate} -> {to_coordinate} ({google_mode})")
            raise NoRouteFoundError()

        route = routes[0]
        leg = route["legs"][0]

        steps = [
            RouteStep(
                distance=float(step["distance"]["value"]),
                duration=float(step["duration"]["value"]),
                instruction=remove_html_tags(step.get("html_instructions")),
            )
            for step in leg.get("steps") or []
        ]

        return RouteResult(
            from_coordinate=from_coordinate,
            to_coordinate=to_coordinate,
            distance=convert_distance(float(leg["distance"]["value"]), "meters", self.unit),
            unit=self.unit,
            duration=float(leg["duration"]["value"]),
            steps=steps,
            polyline=(route.get("overview_polyline") or {}).get("points"),
            summary=route.get("summary") or f"Route via Google Maps ({google_mode})",
        )
