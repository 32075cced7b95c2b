"""OSRMルーター"""
from typing import Any, Optional

from ....shared.cache.result_cache import ResultCache
from ....shared.exceptions.errors import HTTPError, NoRouteFoundError, RoutingError
from ....shared.http.client import HTTPClient
from ....shared.logging.config import get_logger
from ...geocoding.domain.models import Coordinate
from ..domain.models import RouteResult, RouteStep, convert_distance
from .base import AbstractRouter, normalize_mode

logger = get_logger(__name__)

DEFAULT_URL = "https://router.project-osrm.org"


class OsrmRouter(AbstractRouter):
    """OSRM実装（APIキー不要）"""

    name = "osrm"

    def __init__(
        self,
        http_client: Optional[HTTPClient] = None,
        unit: str = "kilometers",
        result_cache: Optional[ResultCache] = None,
    ) -> None:
        super().__init__(unit, result_cache)
        self.http_client = http_client or HTTPClient(base_url=DEFAULT_URL)

        logger.info(f"OsrmRouter initialized: {self.http_client.base_url}")

    def route(self, from_coordinate: Coordinate, to_coordinate: Coordinate, mode: Optional[str] = None) -> RouteResult:
        profile = normalize_mode(mode)
        return self.cached(
            from_coordinate,
            to_coordinate,
            profile,
            lambda: self._route(from_coordinate, to_coordinate, profile),
        )

    def _route(self, from_coordinate: Coordinate, to_coordinate: Coordinate, profile: str) -> RouteResult:
        # OSRMは 経度,緯度 の順
        path = (
            f"/route/v1/{profile}/"
            f"{from_coordinate.longitude},{from_coordinate.latitude};"
            f"{to_coordinate.longitude},{to_coordinate.latitude}"
        )

        try:
            data = self.http_client.get_json(
                path,
                params={"overview": "full", "geometries": "polyline", "steps": "true"},
            )
        except HTTPError as e:
            raise RoutingError(f"Routing API error: {e}") from e

        if not isinstance(data, dict) or data.get("code") not in (None, "Ok") or not data.get("routes"):
            logger.warning(f"No route found: {from_coordinate} -> {to_coordinate} ({profile})")
            raise NoRouteFoundError()

        route = data["routes"][0]
        legs: list[dict[str, Any]] = route.get("legs") or []

        steps = [
            RouteStep(
                distance=float(step.get("distance", 0.0)),
                duration=float(step.get("duration", 0.0)),
                instruction=_describe_maneuver(step),
                name=step.get("name", ""),
            )
            for leg in legs
            for step in leg.get("steps") or []
        ]

        return RouteResult(
            from_coordinate=from_coordinate,
            to_coordinate=to_coordinate,
            distance=convert_distance(float(route["distance"]), "meters", self.unit),
            unit=self.unit,
            duration=float(route.get("duration", 0.0)),
            steps=steps,
            polyline=route.get("geometry"),
            summary=(legs[0].get("summary") if legs else None) or f"Route via OSRM ({profile})",
        )

    def close(self) -> None:
        self.http_client.close()


def _describe_maneuver(step: dict[str, Any]) -> str:
    maneuver = step.get("maneuver") or {}
    parts = [maneuver.get("type", ""), maneuver.get("modifier", "")]
    name = step.get("name")
    if name:
        parts.append(f"onto {name}")
    return " ".join(part for part in parts if part)
