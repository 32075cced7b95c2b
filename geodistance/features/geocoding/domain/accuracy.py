"""
ジオコーディング結果の精度スコア計算

全て純粋関数。各プロバイダーは自分の生レスポンスから入力値を取り出し、
共通の計算（ベース + 3つの重み付きシグナル、0-1にクランプ）に渡す。
"""

from dataclasses import replace
from typing import Any, Iterable, Optional

from ....shared.utils.text import split_address_words
from .models import Coordinate, StructuredAddress

# 種別ラベルのバケット
HIGH_ACCURACY_TYPES = frozenset({"house", "building", "address", "poi", "venue"})
MEDIUM_ACCURACY_TYPES = frozenset(
    {"street", "road", "neighbourhood", "neighborhood", "suburb", "quarter", "residential"}
)
LOW_ACCURACY_TYPES = frozenset({"city", "town", "village", "municipality", "district"})
VERY_LOW_ACCURACY_TYPES = frozenset({"state", "province", "region", "country"})

# 照合時に無視する一般語
COMMON_ADDRESS_WORDS = frozenset(
    {
        "no", "number", "street", "st", "avenue", "ave", "road", "rd", "estate",
        "close", "drive", "dr", "lane", "ln", "way", "place", "pl",
    }
)

# Nominatimの種別加減点（他プロバイダーと非対称のまま維持）
NOMINATIM_ACCURATE_TYPES = frozenset({"house", "building", "address", "street"})
NOMINATIM_MODERATE_TYPES = frozenset({"neighbourhood", "suburb", "quarter", "residential"})
NOMINATIM_LOW_TYPES = frozenset({"city", "town", "village", "state", "country"})

# Google geometry.location_type
GOOGLE_LOCATION_TYPE_SCORES = {
    "ROOFTOP": 1.0,
    "RANGE_INTERPOLATED": 0.8,
    "GEOMETRIC_CENTER": 0.6,
    "APPROXIMATE": 0.4,
}

# プロバイダー固有の種別名 -> 共通ラベル
GOOGLE_TYPE_LABELS = {
    "street_address": "address",
    "premise": "building",
    "subpremise": "building",
    "establishment": "poi",
    "point_of_interest": "poi",
    "route": "street",
    "intersection": "street",
    "neighborhood": "neighborhood",
    "sublocality": "suburb",
    "sublocality_level_1": "suburb",
    "locality": "city",
    "postal_town": "town",
    "administrative_area_level_3": "municipality",
    "administrative_area_level_2": "district",
    "administrative_area_level_1": "state",
    "country": "country",
}

MAPBOX_TYPE_LABELS = {
    "address": "address",
    "poi": "poi",
    "neighborhood": "neighborhood",
    "locality": "suburb",
    "place": "city",
    "district": "district",
    "region": "region",
    "country": "country",
}

OPENCAGE_TYPE_LABELS = {
    "building": "building",
    "house": "house",
    "road": "road",
    "neighbourhood": "neighbourhood",
    "suburb": "suburb",
    "city": "city",
    "town": "town",
    "village": "village",
    "county": "district",
    "state": "state",
    "country": "country",
}

DEFAULT_STRUCTURED_BONUS = 0.15
NATIVE_STRUCTURED_BONUS = 0.2


def clamp(score: float) -> float:
    """0-1の範囲に収める"""
    return max(0.0, min(1.0, score))


def type_accuracy(result_type: Optional[str]) -> float:
    """
    結果の種別ラベルから精度を決める

    Args:
        result_type: 種別ラベル（大文字小文字は区別しない）

    Returns:
        float: 0.9 / 0.6 / 0.4 / 0.2、不明な種別は0.5
    """
    label = (result_type or "").lower()

    if label in HIGH_ACCURACY_TYPES:
        return 0.9
    if label in MEDIUM_ACCURACY_TYPES:
        return 0.6
    if label in LOW_ACCURACY_TYPES:
        return 0.4
    if label in VERY_LOW_ACCURACY_TYPES:
        return 0.2
    return 0.5


def significant_words(address: str) -> list[str]:
    """照合に使う単語（3文字以上、一般語を除く）"""
    return [
        word
        for word in split_address_words(address)
        if len(word) > 2 and word not in COMMON_ADDRESS_WORDS
    ]


def word_overlap(original_query: str, returned_address: str) -> Optional[float]:
    """
    元のクエリの単語のうち、返された住所に含まれる割合

    照合対象の単語がない場合は None
    """
    words = significant_words(original_query)
    if not words:
        return None

    returned = returned_address.lower()
    matched = sum(1 for word in words if word in returned)
    return matched / len(words)


def match_accuracy(original_query: str, returned_address: Optional[str]) -> float:
    """
    返された住所が元のクエリとどれだけ一致しているか

    Args:
        original_query: 問い合わせた住所
        returned_address: プロバイダーが返した住所

    Returns:
        float: 0-1のスコア（完全一致は1.0）
    """
    returned = (returned_address or "").lower()
    original = original_query.lower()

    score = 0.5

    ratio = word_overlap(original_query, returned)
    if ratio is not None:
        score += ratio * 0.4

    if returned == original:
        score = 1.0
    elif original in returned:
        score += 0.1

    return clamp(score)


def nominatim_accuracy(result: dict[str, Any], original_query: str) -> float:
    """
    Nominatimの結果の精度

    base 0.5 + importance×0.3 + 種別による加減点 + 単語一致率×0.2
    """
    score = 0.5

    importance = result.get("importance")
    if importance is not None:
        score += float(importance) * 0.3

    result_type = (result.get("type") or "").lower()
    if result_type in NOMINATIM_ACCURATE_TYPES:
        score += 0.3
    elif result_type in NOMINATIM_MODERATE_TYPES:
        score += 0.15
    elif result_type in NOMINATIM_LOW_TYPES:
        score -= 0.1

    ratio = word_overlap(original_query, result.get("display_name") or "")
    if ratio is not None:
        score += ratio * 0.2

    return clamp(score)


def google_type_label(types: Iterable[str]) -> Optional[str]:
    """Googleの types から最初に対応付けできる共通ラベルを返す"""
    for google_type in types:
        if google_type in GOOGLE_TYPE_LABELS:
            return GOOGLE_TYPE_LABELS[google_type]
    return None


def google_accuracy(result: dict[str, Any], original_query: str) -> float:
    """
    Google Mapsの結果の精度

    base 0.6 + location_type×0.3 + 種別×0.3 + 一致度×0.2
    """
    location_type = result.get("geometry", {}).get("location_type", "")
    location_score = GOOGLE_LOCATION_TYPE_SCORES.get(location_type, 0.5)

    label = google_type_label(result.get("types") or [])

    score = 0.6
    score += location_score * 0.3
    score += type_accuracy(label) * 0.3
    score += match_accuracy(original_query, result.get("formatted_address")) * 0.2
    return clamp(score)


def mapbox_accuracy(feature: dict[str, Any], original_query: str) -> float:
    """
    Mapboxの結果の精度

    base 0.5 + relevance×0.4 + 種別×0.3 + 一致度×0.3
    """
    place_types = feature.get("place_type") or []
    label = MAPBOX_TYPE_LABELS.get(place_types[0]) if place_types else None

    score = 0.5
    score += float(feature.get("relevance") or 0.0) * 0.4
    score += type_accuracy(label) * 0.3
    score += match_accuracy(original_query, feature.get("place_name")) * 0.3
    return clamp(score)


def opencage_accuracy(result: dict[str, Any], original_query: str) -> float:
    """
    OpenCageの結果の精度

    base 0.5 + (confidence/10)×0.4 + 種別×0.3 + 一致度×0.3
    """
    components = result.get("components") or {}
    label = OPENCAGE_TYPE_LABELS.get(components.get("_type", ""))

    score = 0.5
    score += (float(result.get("confidence") or 0) / 10) * 0.4
    score += type_accuracy(label) * 0.3
    score += match_accuracy(original_query, result.get("formatted")) * 0.3
    return clamp(score)


def apply_structured_bonus(
    coordinate: Coordinate,
    address: StructuredAddress,
    weight: float = DEFAULT_STRUCTURED_BONUS,
) -> Coordinate:
    """
    構造化住所から得た結果に品質スコアに応じた加点をする

    精度が未設定の結果は structured タグのみ付ける。

    Returns:
        Coordinate: 加点済みの新しいインスタンス
    """
    if coordinate.accuracy is None:
        return replace(coordinate, metadata={**coordinate.metadata, "structured": True})

    boosted = coordinate.accuracy + address.quality_score * weight
    return coordinate.with_accuracy(boosted, structured=True)
