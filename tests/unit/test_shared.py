"""shared（キャッシュ・テキスト・HTTP）のテスト"""

import pytest

from geodistance.shared.cache import store as store_module
from geodistance.shared.cache.result_cache import ResultCache
from geodistance.shared.cache.store import MemoryCacheStore
from geodistance.shared.http.client import HTTPClient
from geodistance.shared.http.rate_limiter import RateLimiter
from geodistance.shared.utils.text import normalize_address, normalize_text, remove_html_tags, split_address_words


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def monotonic(self) -> float:
        return self.now


def test_result_cache_key_format() -> None:
    """キーは prefix:provider:operation:md5"""
    cache = ResultCache(prefix="geocoding")

    key = cache.make_key("nominatim", "geocode", "  Main   OFFICE ")

    assert key == cache.make_key("nominatim", "geocode", "main office")
    assert key.startswith("geocoding:nominatim:geocode:")
    assert len(key.rsplit(":", 1)[1]) == 32


def test_result_cache_keys_differ_by_provider_and_operation() -> None:
    """プロバイダー・操作ごとに別のキー"""
    cache = ResultCache()

    keys = {
        cache.make_key("nominatim", "geocode", "Lagos"),
        cache.make_key("google", "geocode", "Lagos"),
        cache.make_key("nominatim", "reverse", "Lagos"),
    }

    assert len(keys) == 3


def test_result_cache_remember_loads_once() -> None:
    """2回目以降は loader を呼ばない"""
    cache = ResultCache()
    calls = []

    def loader() -> str:
        calls.append(1)
        return "value"

    assert cache.remember("p", "geocode", "Lagos", loader) == "value"
    assert cache.remember("p", "geocode", "lagos", loader) == "value"
    assert len(calls) == 1


def test_result_cache_does_not_store_none() -> None:
    """Noneの結果は保存しない"""
    cache = ResultCache()
    calls = []

    def loader() -> None:
        calls.append(1)
        return None

    cache.remember("p", "reverse", "0,0", loader)
    cache.remember("p", "reverse", "0,0", loader)

    assert len(calls) == 2


def test_result_cache_with_zero_ttl_does_not_store() -> None:
    """保持期間0では保存しない"""
    cache = ResultCache(ttl_seconds=0)
    calls = []

    def loader() -> str:
        calls.append(1)
        return "value"

    cache.remember("p", "geocode", "Lagos", loader)
    cache.remember("p", "geocode", "Lagos", loader)

    assert len(calls) == 2


def test_disabled_result_cache_always_loads() -> None:
    """無効時は毎回 loader を呼ぶ"""
    cache = ResultCache.disabled()
    calls = []

    def loader() -> str:
        calls.append(1)
        return "value"

    cache.remember("p", "geocode", "Lagos", loader)
    cache.remember("p", "geocode", "Lagos", loader)

    assert len(calls) == 2


def test_memory_cache_store_expires_entries(monkeypatch: pytest.MonkeyPatch) -> None:
    """TTLを過ぎたエントリは消える"""
    clock = FakeClock()
    monkeypatch.setattr(store_module, "time", clock)
    store = MemoryCacheStore()

    store.put("key", "value", ttl_seconds=60)
    assert store.has("key")
    assert store.get("key") == "value"

    clock.now += 61
    assert not store.has("key")
    assert store.get("key") is None
    assert store.hit_count == 1
    assert store.miss_count == 1


def test_memory_cache_store_drops_expired_entries_on_write(monkeypatch: pytest.MonkeyPatch) -> None:
    """期限切れのエントリは次の書き込みで破棄される"""
    clock = FakeClock()
    monkeypatch.setattr(store_module, "time", clock)
    store = MemoryCacheStore()

    for index in range(1000):
        store.put(f"key-{index}", index, ttl_seconds=1)

    clock.now += 10
    store.put("fresh", "value", ttl_seconds=60)

    assert len(store) == 1
    assert store.get("fresh") == "value"


def test_memory_cache_store_is_bounded() -> None:
    """上限を超えると古いエントリから追い出す"""
    store = MemoryCacheStore(max_entries=2)

    store.put("a", 1)
    store.put("b", 2)
    store.put("c", 3)

    assert len(store) == 2
    assert store.has("c")


def test_memory_cache_store_without_ttl_and_clear() -> None:
    """TTLなしは無期限、TTL 0 は保存しない、clear で空になる"""
    store = MemoryCacheStore()
    store.put("a", 1)
    store.put("b", 2, ttl_seconds=0)

    assert len(store) == 1
    assert not store.has("b")

    store.clear()
    assert len(store) == 0


@pytest.mark.parametrize(
    "text,expected",
    [
        ("  Lagos  ", "Lagos"),
        ("Ikeja　Lagos", "Ikeja Lagos"),
        ("a \n\t b", "a b"),
        ("   ", None),
        (None, None),
    ],
)
def test_normalize_text(text: str, expected: str) -> None:
    """空白の正規化"""
    assert normalize_text(text) == expected


@pytest.mark.parametrize(
    "address,expected",
    [
        ("Main Office", "main office"),
        (" MAIN  office. ", "main office"),
        ("12, Allen Ave.; Ikeja", "12 allen ave ikeja"),
    ],
)
def test_normalize_address(address: str, expected: str) -> None:
    """照合用キー"""
    assert normalize_address(address) == expected


def test_split_address_words() -> None:
    """空白とカンマで分割"""
    assert split_address_words("12 Allen Avenue,Ikeja,  Lagos") == ["12", "allen", "avenue", "ikeja", "lagos"]


def test_remove_html_tags() -> None:
    """HTMLタグを除去"""
    assert remove_html_tags("Turn <b>left</b> onto <div style='x'>Main St</div>") == "Turn left onto Main St"
    assert remove_html_tags(None) == ""


@pytest.mark.parametrize(
    "base_url,path,expected",
    [
        ("https://router.project-osrm.org", "/route/v1/driving", "https://router.project-osrm.org/route/v1/driving"),
        ("https://api.mapbox.com/directions/v5/mapbox/", "walking/1,2;3,4", "https://api.mapbox.com/directions/v5/mapbox/walking/1,2;3,4"),
        ("https://api.opencagedata.com/geocode/v1/json", "", "https://api.opencagedata.com/geocode/v1/json"),
        ("https://example.test", "https://other.test/x", "https://other.test/x"),
    ],
)
def test_http_client_build_url(base_url: str, path: str, expected: str) -> None:
    """ベースURLとパスの結合"""
    with HTTPClient(base_url=base_url) as client:
        assert client.build_url(path) == expected


def test_http_client_sets_user_agent() -> None:
    """User-Agentヘッダー"""
    with HTTPClient(user_agent="geodistance-test/1.0") as client:
        assert client.session.headers["User-Agent"] == "geodistance-test/1.0"


def test_rate_limiter_requests_per_second() -> None:
    """秒あたりのリクエスト数から待機時間を決める"""
    limiter = RateLimiter(requests_per_second=2.0)

    assert limiter.min_wait == pytest.approx(0.5)
    assert limiter.max_wait == pytest.approx(0.6)


def test_rate_limiter_first_request_does_not_wait() -> None:
    """初回は待たない"""
    limiter = RateLimiter(min_wait=10, max_wait=10)

    limiter.wait()

    assert limiter.last_request_time is not None
    limiter.reset()
    assert limiter.last_request_time is None
