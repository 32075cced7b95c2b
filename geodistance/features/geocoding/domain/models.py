"""ジオコーディング機能のドメインモデル"""
from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional

from ....shared.exceptions.errors import InvalidCoordinateError, ValidationError

# この値以上の精度は「十分に正確」とみなす
HIGH_ACCURACY_THRESHOLD = 0.8


@dataclass(frozen=True)
class Coordinate:
    """地理的位置情報（不変）"""

    latitude: float  # 緯度
    longitude: float  # 経度
    formatted_address: Optional[str] = None  # 正規化された住所
    accuracy: Optional[float] = None  # 精度スコア (0-1)
    source: Optional[str] = None  # プロバイダーID
    metadata: dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not -90 <= self.latitude <= 90:
            raise InvalidCoordinateError(
                f"Latitude must be between -90 and 90 degrees. Got: {self.latitude}"
            )
        if not -180 <= self.longitude <= 180:
            raise InvalidCoordinateError(
                f"Longitude must be between -180 and 180 degrees. Got: {self.longitude}"
            )
        if self.accuracy is not None and not 0.0 <= self.accuracy <= 1.0:
            raise ValidationError(f"Accuracy must be between 0 and 1. Got: {self.accuracy}")

    def __str__(self) -> str:
        return f"{self.latitude},{self.longitude}"

    def __repr__(self) -> str:
        return (
            f"Coordinate(lat={self.latitude}, lng={self.longitude}, "
            f"accuracy={self.accuracy}, source={self.source})"
        )

    @property
    def is_high_accuracy(self) -> bool:
        """精度が0.8以上か"""
        return self.accuracy is not None and self.accuracy >= HIGH_ACCURACY_THRESHOLD

    def with_accuracy(self, accuracy: float, **metadata: Any) -> "Coordinate":
        """精度とメタデータを差し替えた新しいインスタンスを返す"""
        return replace(
            self,
            accuracy=max(0.0, min(1.0, accuracy)),
            metadata={**self.metadata, **metadata},
        )

    def to_tuple(self) -> tuple[float, float]:
        """(緯度, 経度)のタプルとして返す"""
        return (self.latitude, self.longitude)

    def to_dict(self) -> dict[str, Any]:
        """JSONシリアライズ用の辞書に変換"""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "formatted_address": self.formatted_address,
            "accuracy": self.accuracy,
            "source": self.source,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Coordinate":
        """
        辞書から生成

        ``lat``/``lng``/``lon``、``formatted``/``address`` の別名も受け付ける
        """
        latitude = _first_present(data, "latitude", "lat")
        longitude = _first_present(data, "longitude", "lng", "lon")
        if latitude is None or longitude is None:
            raise InvalidCoordinateError(f"Missing latitude/longitude in: {data}")

        return cls(
            latitude=float(latitude),
            longitude=float(longitude),
            formatted_address=_first_present(data, "formatted_address", "formatted", "address"),
            accuracy=data.get("accuracy"),
            source=data.get("source"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class StructuredAddress:
    """
    構造化住所

    住所を要素に分解して渡すことで、対応プロバイダーではより正確な結果が得られる
    """

    house_number: Optional[str] = None  # 番地
    street: Optional[str] = None  # 通り
    neighbourhood: Optional[str] = None  # 地区
    suburb: Optional[str] = None  # 郊外・区
    city: Optional[str] = None  # 市区町村
    state: Optional[str] = None  # 州・都道府県
    postal_code: Optional[str] = None  # 郵便番号
    country: Optional[str] = None  # 国

    def __str__(self) -> str:
        return self.to_string()

    def components(self) -> list[Optional[str]]:
        """全要素を定義順に返す"""
        return [getattr(self, f.name) for f in fields(self)]

    @property
    def quality_score(self) -> float:
        """埋まっている要素の割合 (0-1)"""
        values = self.components()
        filled = sum(1 for value in values if value is not None)
        return filled / len(values)

    @property
    def is_valid(self) -> bool:
        """最低限の要素（通り+市、郊外+市、市+国のいずれか）があるか"""
        return bool(
            (self.street and self.city)
            or (self.suburb and self.city)
            or (self.city and self.country)
        )

    def to_string(self) -> str:
        """1行の住所文字列に変換"""
        parts = [
            f"No. {self.house_number}" if self.house_number else None,
            self.street,
            self.neighbourhood,
            self.suburb,
            self.city,
            self.state,
            self.postal_code,
            self.country,
        ]
        return ", ".join(part for part in parts if part)

    def to_dict(self) -> dict[str, str]:
        """値のある要素のみの辞書に変換"""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StructuredAddress":
        """辞書から生成（camelCaseや別名も受け付ける）"""
        return cls(
            house_number=_first_present(data, "house_number", "houseNumber"),
            street=data.get("street"),
            neighbourhood=_first_present(data, "neighbourhood", "neighborhood"),
            suburb=data.get("suburb"),
            city=data.get("city"),
            state=_first_present(data, "state", "province"),
            postal_code=_first_present(data, "postal_code", "postalCode", "zip"),
            country=data.get("country"),
        )


def _first_present(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None
