"""NominatimGeocoder のテスト"""

import pytest
from fakes import FakeHTTPClient

from geodistance.features.geocoding.domain.models import StructuredAddress
from geodistance.features.geocoding.providers.nominatim_geocoder import NominatimGeocoder
from geodistance.shared.cache.result_cache import ResultCache
from geodistance.shared.exceptions.errors import HTTPError, NotFoundError, ProviderError
from geodistance.shared.http.rate_limiter import RateLimiter

DOWNING_STREET = {
    "lat": "51.5033635",
    "lon": "-0.1276248",
    "display_name": "10 Downing Street, Westminster, London, United Kingdom",
    "type": "house",
    "importance": 0.6,
    "place_id": 123,
    "osm_type": "way",
    "osm_id": 456,
}


def make_geocoder(responses: list, result_cache: ResultCache = None) -> tuple[NominatimGeocoder, FakeHTTPClient]:
    http_client = FakeHTTPClient(responses)
    geocoder = NominatimGeocoder(
        http_client=http_client,  # type: ignore[arg-type]
        rate_limiter=RateLimiter(min_wait=0, max_wait=0),
        result_cache=result_cache,
    )
    return geocoder, http_client


def test_geocode_returns_scored_coordinate() -> None:
    """検索結果を精度付きの座標に変換する"""
    geocoder, http_client = make_geocoder([[DOWNING_STREET]])

    coordinate = geocoder.geocode("10 Downing Street, London")

    assert coordinate.latitude == pytest.approx(51.5033635)
    assert coordinate.longitude == pytest.approx(-0.1276248)
    assert coordinate.source == "nominatim"
    assert coordinate.accuracy == 1.0
    assert coordinate.metadata["osm_type"] == "way"

    assert http_client.calls[0]["path"] == "/search"
    assert http_client.calls[0]["params"]["q"] == "10 Downing Street, London"
    assert http_client.calls[0]["params"]["limit"] == 1


def test_geocode_without_results_raises_not_found() -> None:
    """0件は NotFoundError"""
    geocoder, _ = make_geocoder([[]])

    with pytest.raises(NotFoundError) as exc_info:
        geocoder.geocode("Nowhere Street")

    assert exc_info.value.address == "Nowhere Street"


def test_transport_failure_raises_provider_error() -> None:
    """HTTPエラーは ProviderError に変換"""
    geocoder, _ = make_geocoder([HTTPError("503 Service Unavailable")])

    with pytest.raises(ProviderError) as exc_info:
        geocoder.geocode("10 Downing Street")

    assert exc_info.value.provider == "nominatim"
    assert "503" in exc_info.value.upstream_message


def test_cached_result_skips_http_request() -> None:
    """キャッシュヒット時はHTTPリクエストしない"""
    geocoder, http_client = make_geocoder([[DOWNING_STREET]], result_cache=ResultCache())

    first = geocoder.geocode("10 Downing Street, London")
    second = geocoder.geocode("  10 downing street,   LONDON ")

    assert first == second
    assert len(http_client.calls) == 1


def test_structured_search_uses_component_parameters() -> None:
    """構造化検索は要素ごとのパラメータで問い合わせる"""
    geocoder, http_client = make_geocoder([[DOWNING_STREET]])
    address = StructuredAddress(
        house_number="10",
        street="Downing Street",
        city="London",
        country="United Kingdom",
    )

    coordinate = geocoder.geocode_structured(address)

    params = http_client.calls[0]["params"]
    assert params["street"] == "10 Downing Street"
    assert params["city"] == "London"
    assert params["country"] == "United Kingdom"
    assert "q" not in params
    assert "postalcode" not in params
    assert coordinate.metadata["structured"] is True


def test_structured_search_falls_back_to_free_text() -> None:
    """構造化検索が0件なら1行の住所で検索し直す"""
    geocoder, http_client = make_geocoder([[], [DOWNING_STREET]])
    address = StructuredAddress(street="Downing Street", city="London")

    coordinate = geocoder.geocode_structured(address)

    assert len(http_client.calls) == 2
    assert http_client.calls[1]["params"]["q"] == "Downing Street, London"
    assert coordinate.source == "nominatim"
    assert coordinate.metadata["structured"] is True


@pytest.mark.parametrize(
    "structured_response",
    [
        HTTPError("503 Service Unavailable"),
        [{"display_name": "Downing Street"}],
    ],
)
def test_structured_search_retries_after_error(structured_response: object) -> None:
    """構造化検索が失敗・不正な結果なら1行の住所で検索し直す"""
    geocoder, http_client = make_geocoder([structured_response, [DOWNING_STREET]])
    address = StructuredAddress(street="Downing Street", city="London")

    coordinate = geocoder.geocode_structured(address)

    assert len(http_client.calls) == 2
    assert http_client.calls[1]["params"]["q"] == "Downing Street, London"
    assert coordinate.latitude == pytest.approx(51.5033635)


def test_reverse_returns_display_name() -> None:
    """逆ジオコーディング"""
    geocoder, http_client = make_geocoder([{"display_name": "Westminster, London"}])

    assert geocoder.reverse(51.5, -0.12) == "Westminster, London"
    assert http_client.calls[0]["path"] == "/reverse"
    assert http_client.calls[0]["params"]["lat"] == 51.5


def test_reverse_without_address_returns_none() -> None:
    """住所がなければNone"""
    geocoder, _ = make_geocoder([{"error": "Unable to geocode"}])

    assert geocoder.reverse(0.0, 0.0) is None


def test_invalid_result_raises_provider_error() -> None:
    """緯度経度のない結果は ProviderError"""
    geocoder, _ = make_geocoder([[{"display_name": "Broken"}]])

    with pytest.raises(ProviderError):
        geocoder.geocode("Broken")
