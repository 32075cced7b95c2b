"""HTTPサーバーのテスト"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator

import pytest
from fakes import FakeHTTPClient, StubGeocoder, StubRouter
from fastapi.testclient import TestClient

from geodistance.features.distance.services.distance_service import DistanceService
from geodistance.features.geocoding.domain.models import Coordinate
from geodistance.features.geocoding.providers.local_coordinate_cache import LocalCoordinateCache
from geodistance.features.geocoding.services.geocoding_service import GeocodingService
from geodistance.features.routing.domain.models import RouteResult
from geodistance.features.routing.providers.osrm_router import OsrmRouter
from geodistance import server
from geodistance.server import app, get_distance_service
from geodistance.shared.exceptions.errors import NoRouteFoundError, ProviderError

MAIN_OFFICE = Coordinate(latitude=6.5244, longitude=3.3792, formatted_address="12 Allen Avenue, Ikeja")


def use_service(service: DistanceService) -> TestClient:
    app.dependency_overrides[get_distance_service] = lambda: service
    return TestClient(app)


def local_service(**kwargs: object) -> DistanceService:
    return DistanceService(GeocodingService(LocalCoordinateCache({"Main Office": MAIN_OFFICE})), **kwargs)


@pytest.fixture(autouse=True)
def clear_overrides() -> Iterator[None]:
    yield
    app.dependency_overrides.clear()


def test_health() -> None:
    """ヘルスチェック"""
    client = use_service(local_service())

    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["status"] == "running"


def test_geocode_from_local_cache() -> None:
    """既知の住所は精度1.0"""
    client = use_service(local_service())

    response = client.get("/geocode", params={"address": "main office"})

    assert response.status_code == 200
    body = response.json()
    assert body["latitude"] == 6.5244
    assert body["accuracy"] == 1.0
    assert body["source"] == "local_cache"


def test_geocode_not_found_is_404() -> None:
    """見つからない住所は404"""
    client = use_service(local_service())

    response = client.get("/geocode", params={"address": "Atlantis"})

    assert response.status_code == 404
    assert response.json()["message"] == "NotFoundError"


def test_provider_error_is_502() -> None:
    """上流APIの失敗は502"""
    service = DistanceService(GeocodingService(StubGeocoder(error=ProviderError("nominatim", "timeout"))))
    client = use_service(service)

    response = client.get("/geocode", params={"address": "Lagos"})

    assert response.status_code == 502
    assert "timeout" in response.json()["detail"]


def test_reverse() -> None:
    """既知座標の近傍は住所を返し、なければ404"""
    client = use_service(local_service())

    found = client.get("/reverse", params={"lat": 6.5244, "lon": 3.3792})
    missing = client.get("/reverse", params={"lat": 0, "lon": 0})
    invalid = client.get("/reverse", params={"lat": 91, "lon": 0})

    assert found.json()["address"] == "12 Allen Avenue, Ikeja"
    assert missing.status_code == 404
    assert invalid.status_code == 422


def test_distance_between_coordinate_strings() -> None:
    """座標文字列間の距離・方位"""
    client = use_service(local_service())

    response = client.get(
        "/distance",
        params={"from": "40.7128,-74.0060", "to": "34.0522,-118.2437", "unit": "miles"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["unit"] == "miles"
    assert 2400 < body["distance"] < 2500
    assert body["direction"] == "W"
    assert body["formula"] == "haversine"
    assert set(body["conversions"]) == {"kilometers", "miles", "meters", "feet"}


def test_distance_with_vincenty_and_known_address() -> None:
    """既知の住所とVincenty公式"""
    client = use_service(local_service())

    response = client.get(
        "/distance",
        params={"from": "Main Office", "to": "6.6,3.35", "formula": "vincenty"},
    )

    assert response.status_code == 200
    assert response.json()["from"]["source"] == "local_cache"


def test_distance_rejects_unknown_unit() -> None:
    """未対応の単位は400"""
    client = use_service(local_service())

    response = client.get("/distance", params={"from": "1,1", "to": "2,2", "unit": "yards"})

    assert response.status_code == 400
    assert response.json()["message"] == "ValidationError"


def test_distance_rejects_unknown_formula() -> None:
    """未対応の公式は422"""
    client = use_service(local_service())

    response = client.get("/distance", params={"from": "1,1", "to": "2,2", "formula": "flat"})

    assert response.status_code == 422


def test_invalid_coordinate_string_is_400() -> None:
    """範囲外の座標は400"""
    client = use_service(local_service())

    response = client.get("/distance", params={"from": "95,0", "to": "0,0"})

    assert response.status_code == 400


def test_route() -> None:
    """ルーターの結果を返す"""
    route = RouteResult(
        MAIN_OFFICE,
        Coordinate(latitude=6.6, longitude=3.35),
        14.2,
        "kilometers",
        duration=1500.0,
        summary="Ikorodu Road",
    )
    client = use_service(local_service(router=StubRouter(result=route)))

    response = client.get("/route", params={"from": "Main Office", "to": "6.6,3.35", "mode": "car"})

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "route"
    assert body["duration_formatted"] == "25m"
    assert body["summary"] == "Ikorodu Road"


def test_route_falls_back_to_straight_line() -> None:
    """ルートが見つからなければ直線距離"""
    client = use_service(local_service(router=StubRouter(error=NoRouteFoundError())))

    response = client.get("/route", params={"from": "6.5,3.4", "to": "6.6,3.35"})

    assert response.status_code == 200
    assert response.json()["type"] == "straight"


def test_route_without_fallback_is_404() -> None:
    """代替が無効ならルートなしは404"""
    service = local_service(router=StubRouter(error=NoRouteFoundError()), straight_line_fallback=False)
    client = use_service(service)

    response = client.get("/route", params={"from": "6.5,3.4", "to": "6.6,3.35"})

    assert response.status_code == 404


def test_route_with_invalid_mode_is_400() -> None:
    """未対応の移動手段は400"""
    router = OsrmRouter(http_client=FakeHTTPClient())  # type: ignore[arg-type]
    client = use_service(local_service(router=router))

    response = client.get("/route", params={"from": "6.5,3.4", "to": "6.6,3.35", "mode": "boat"})

    assert response.status_code == 400


def test_concurrent_first_requests_share_one_orchestrator(monkeypatch: pytest.MonkeyPatch) -> None:
    """同時の初回リクエストでもオーケストレーターは1つだけ生成する"""
    created = []
    lock = threading.Lock()

    class SlowOrchestrator:
        def __init__(self, settings: object) -> None:
            time.sleep(0.05)
            with lock:
                created.append(self)
            self.distance_service = local_service()

    monkeypatch.setattr(server, "DistanceOrchestrator", SlowOrchestrator)
    monkeypatch.setattr(server, "_orchestrator", None)

    with ThreadPoolExecutor(max_workers=8) as executor:
        services = list(executor.map(lambda _: get_distance_service(), range(8)))

    assert len(created) == 1
    assert all(service is services[0] for service in services)
