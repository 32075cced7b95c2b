"""テスト用のフェイク実装"""

from typing import Any, Optional

from geodistance.features.geocoding.domain.models import Coordinate
from geodistance.features.geocoding.providers.base import AbstractGeocoder
from geodistance.features.routing.domain.models import RouteResult
from geodistance.features.routing.providers.base import AbstractRouter


class FakeHTTPClient:
    """HTTPClient.get_json の代わりに、用意した応答を順に返す"""

    def __init__(self, responses: Optional[list[Any]] = None, base_url: str = "https://example.test") -> None:
        self.responses = list(responses or [])
        self.base_url = base_url
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def get_json(
        self,
        path: str = "",
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        self.calls.append({"path": path, "params": dict(params or {})})
        if not self.responses:
            raise AssertionError(f"Unexpected request: {path} {params}")

        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


class FakeGoogleClient:
    """googlemaps.Client の代わり"""

    def __init__(
        self,
        geocode_results: Optional[list[Any]] = None,
        reverse_results: Optional[list[Any]] = None,
        directions_results: Optional[list[Any]] = None,
    ) -> None:
        self.geocode_results = list(geocode_results or [])
        self.reverse_results = list(reverse_results or [])
        self.directions_results = list(directions_results or [])
        self.geocode_calls: list[dict[str, Any]] = []
        self.reverse_calls: list[Any] = []
        self.directions_calls: list[dict[str, Any]] = []

    def geocode(self, address: str, components: Optional[dict[str, str]] = None) -> Any:
        self.geocode_calls.append({"address": address, "components": components})
        return self._next(self.geocode_results)

    def reverse_geocode(self, latlng: Any) -> Any:
        self.reverse_calls.append(latlng)
        return self._next(self.reverse_results)

    def directions(self, origin: Any, destination: Any, mode: str = "driving") -> Any:
        self.directions_calls.append({"origin": origin, "destination": destination, "mode": mode})
        return self._next(self.directions_results)

    @staticmethod
    def _next(queue: list[Any]) -> Any:
        if not queue:
            return []
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class StubGeocoder(AbstractGeocoder):
    """決まった結果（または例外）を返すジオコーダー"""

    def __init__(
        self,
        name: str = "stub",
        result: Optional[Coordinate] = None,
        error: Optional[Exception] = None,
        reverse_result: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.name = name
        self.result = result
        self.error = error
        self.reverse_result = reverse_result
        self.calls = 0
        self.closed = False

    def geocode(self, address: str) -> Coordinate:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result  # type: ignore[return-value]

    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.reverse_result

    def close(self) -> None:
        self.closed = True


class StubRouter(AbstractRouter):
    """決まった結果（または例外）を返すルーター"""

    name = "stub"

    def __init__(self, result: Optional[RouteResult] = None, error: Optional[Exception] = None) -> None:
        super().__init__()
        self.result = result
        self.error = error
        self.calls: list[str] = []

    def route(self, from_coordinate: Coordinate, to_coordinate: Coordinate, mode: Optional[str] = None) -> RouteResult:
        self.calls.append(mode or "")
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


def coordinate(
    latitude: float = 51.5,
    longitude: float = -0.12,
    accuracy: Optional[float] = None,
    source: Optional[str] = None,
) -> Coordinate:
    """テスト用の座標"""
    return Coordinate(latitude=latitude, longitude=longitude, accuracy=accuracy, source=source)
