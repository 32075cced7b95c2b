"""MapboxGeocoder / OpenCageGeocoder のテスト"""

import pytest
from fakes import FakeHTTPClient

from geodistance.features.geocoding.domain.models import StructuredAddress
from geodistance.features.geocoding.providers.mapbox_geocoder import MapboxGeocoder
from geodistance.features.geocoding.providers.opencage_geocoder import OpenCageGeocoder
from geodistance.shared.cache.result_cache import ResultCache
from geodistance.shared.exceptions.errors import HTTPError, MissingCredentialError, NotFoundError, ProviderError

MAPBOX_FEATURE = {
    "id": "address.123",
    "place_type": ["address"],
    "relevance": 1,
    "place_name": "1600 Pennsylvania Avenue NW, Washington, District of Columbia 20500, United States",
    "center": [-77.0365, 38.8977],
}

OPENCAGE_RESULT = {
    "confidence": 9,
    "components": {"_type": "building"},
    "formatted": "Brandenburger Tor, Pariser Platz, 10117 Berlin, Germany",
    "geometry": {"lat": 52.5162746, "lng": 13.3777041},
}


@pytest.mark.parametrize("geocoder_class", [MapboxGeocoder, OpenCageGeocoder])
def test_missing_api_key_fails_on_construction(geocoder_class: type) -> None:
    """APIキーがなければ生成時にエラー"""
    with pytest.raises(MissingCredentialError):
        geocoder_class(api_key=None, http_client=FakeHTTPClient())


def test_mapbox_geocode_requests_encoded_path() -> None:
    """検索文字列はURLエンコードしてパスに入れる"""
    http_client = FakeHTTPClient([{"features": [MAPBOX_FEATURE]}])
    geocoder = MapboxGeocoder(api_key="pk.test", http_client=http_client)  # type: ignore[arg-type]

    coordinate = geocoder.geocode("1600 Pennsylvania Avenue")

    assert http_client.calls[0]["path"] == "1600%20Pennsylvania%20Avenue.json"
    assert http_client.calls[0]["params"] == {"access_token": "pk.test", "limit": 1}
    # center は [経度, 緯度]
    assert coordinate.to_tuple() == (38.8977, -77.0365)
    assert coordinate.source == "mapbox"
    assert coordinate.accuracy == 1.0


def test_mapbox_geocode_without_features_raises_not_found() -> None:
    """0件は NotFoundError"""
    geocoder = MapboxGeocoder(api_key="pk.test", http_client=FakeHTTPClient([{"features": []}]))  # type: ignore[arg-type]

    with pytest.raises(NotFoundError):
        geocoder.geocode("Nowhere")


def test_mapbox_reverse_uses_longitude_first() -> None:
    """逆ジオコーディングは 経度,緯度 の順"""
    http_client = FakeHTTPClient([{"features": [MAPBOX_FEATURE]}])
    geocoder = MapboxGeocoder(api_key="pk.test", http_client=http_client)  # type: ignore[arg-type]

    assert geocoder.reverse(38.8977, -77.0365) == MAPBOX_FEATURE["place_name"]
    assert http_client.calls[0]["path"] == "-77.0365,38.8977.json"


def test_mapbox_structured_geocode_uses_default_bonus() -> None:
    """ネイティブ対応のないプロバイダーは1行の住所で検索し、加点する"""
    feature = {**MAPBOX_FEATURE, "place_type": ["place"], "relevance": 0.2, "place_name": "Washington"}
    http_client = FakeHTTPClient([{"features": [feature]}])
    geocoder = MapboxGeocoder(api_key="pk.test", http_client=http_client)  # type: ignore[arg-type]
    address = StructuredAddress(city="Washington", country="United States")

    coordinate = geocoder.geocode_structured(address)

    assert http_client.calls[0]["path"] == "Washington%2C%20United%20States.json"
    assert coordinate.metadata["structured"] is True


def test_opencage_geocode_returns_scored_coordinate() -> None:
    """結果を精度付きの座標に変換する"""
    http_client = FakeHTTPClient([{"status": {"code": 200, "message": "OK"}, "results": [OPENCAGE_RESULT]}])
    geocoder = OpenCageGeocoder(api_key="oc-test", http_client=http_client)  # type: ignore[arg-type]

    coordinate = geocoder.geocode("Brandenburger Tor, Berlin")

    assert http_client.calls[0]["params"]["q"] == "Brandenburger Tor, Berlin"
    assert http_client.calls[0]["params"]["key"] == "oc-test"
    assert coordinate.to_tuple() == (52.5162746, 13.3777041)
    assert coordinate.metadata == {"confidence": 9, "type": "building"}
    assert coordinate.is_high_accuracy


def test_opencage_error_status_raises_provider_error() -> None:
    """200以外のステータスは ProviderError"""
    http_client = FakeHTTPClient([{"status": {"code": 401, "message": "invalid API key"}, "results": []}])
    geocoder = OpenCageGeocoder(api_key="oc-test", http_client=http_client)  # type: ignore[arg-type]

    with pytest.raises(ProviderError) as exc_info:
        geocoder.geocode("Berlin")

    assert exc_info.value.upstream_message == "invalid API key"


def test_opencage_transport_failure_raises_provider_error() -> None:
    """HTTPエラーは ProviderError に変換"""
    geocoder = OpenCageGeocoder(api_key="oc-test", http_client=FakeHTTPClient([HTTPError("timeout")]))  # type: ignore[arg-type]

    with pytest.raises(ProviderError):
        geocoder.geocode("Berlin")


def test_opencage_reverse_and_cache() -> None:
    """逆ジオコーディングの結果もキャッシュされる"""
    http_client = FakeHTTPClient([{"status": {"code": 200}, "results": [OPENCAGE_RESULT]}])
    geocoder = OpenCageGeocoder(
        api_key="oc-test",
        http_client=http_client,  # type: ignore[arg-type]
        result_cache=ResultCache(),
    )

    assert geocoder.reverse(52.5162746, 13.3777041) == OPENCAGE_RESULT["formatted"]
    assert geocoder.reverse(52.5162746, 13.3777041) == OPENCAGE_RESULT["formatted"]
    assert http_client.calls == [
        {"path": "", "params": {"q": "52.5162746,13.3777041", "key": "oc-test", "limit": 1, "no_annotations": 1}}
    ]
