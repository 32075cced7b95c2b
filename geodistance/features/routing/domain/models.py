"""距離・ルート計算結果のドメインモデル"""
from dataclasses import dataclass, field
from typing import Any, Optional

from ...geocoding.domain.models import Coordinate

# 1単位あたりのメートル
METERS_PER_UNIT = {
    "kilometers": 1000.0,
    "km": 1000.0,
    "miles": 1609.34,
    "mi": 1609.34,
    "meters": 1.0,
    "m": 1.0,
    "feet": 0.3048,
    "ft": 0.3048,
}

ROUTE_TYPE = "route"
STRAIGHT_TYPE = "straight"


def convert_distance(distance: float, from_unit: str, to_unit: str) -> float:
    """
    距離の単位を変換

    未知の単位はキロメートルとして扱う
    """
    meters = distance * METERS_PER_UNIT.get(from_unit, 1000.0)
    return meters / METERS_PER_UNIT.get(to_unit, 1000.0)


@dataclass(frozen=True)
class DistanceResult:
    """2地点間の距離"""

    from_coordinate: Coordinate
    to_coordinate: Coordinate
    distance: float
    unit: str

    def in_kilometers(self) -> float:
        return convert_distance(self.distance, self.unit, "kilometers")

    def in_miles(self) -> float:
        return convert_distance(self.distance, self.unit, "miles")

    def in_meters(self) -> float:
        return convert_distance(self.distance, self.unit, "meters")

    def in_feet(self) -> float:
        return convert_distance(self.distance, self.unit, "feet")

    def conversions(self) -> dict[str, float]:
        """各単位での距離（小数点以下2桁）"""
        return {
            "kilometers": round(self.in_kilometers(), 2),
            "miles": round(self.in_miles(), 2),
            "meters": round(self.in_meters(), 2),
            "feet": round(self.in_feet(), 2),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_coordinate.to_dict(),
            "to": self.to_coordinate.to_dict(),
            "distance": self.distance,
            "unit": self.unit,
            "conversions": self.conversions(),
        }


@dataclass(frozen=True)
class RouteStep:
    """ルートの1ステップ（距離はメートル、所要時間は秒）"""

    distance: float
    duration: float
    instruction: str = ""
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "distance": self.distance,
            "duration": self.duration,
            "instruction": self.instruction,
            "name": self.name,
        }


@dataclass(frozen=True)
class RouteResult(DistanceResult):
    """道路網に沿ったルート（または直線距離で代替した結果）"""

    duration: Optional[float] = None  # 秒
    steps: list[RouteStep] = field(default_factory=list)
    polyline: Optional[str] = None
    summary: Optional[str] = None
    type: str = ROUTE_TYPE

    def duration_in_minutes(self) -> Optional[float]:
        return round(self.duration / 60, 2) if self.duration else None

    def duration_in_hours(self) -> Optional[float]:
        return round(self.duration / 3600, 2) if self.duration else None

    def formatted_duration(self) -> Optional[str]:
        """所要時間を "2h 30m" 形式で返す"""
        if not self.duration:
            return None

        total_seconds = int(self.duration)
        hours, remainder = divmod(total_seconds, 3600)
        minutes = remainder // 60

        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"

    @property
    def is_route(self) -> bool:
        return self.type == ROUTE_TYPE

    @property
    def is_straight_line(self) -> bool:
        return self.type == STRAIGHT_TYPE

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "type": self.type,
                "duration": self.duration,
                "duration_formatted": self.formatted_duration(),
                "summary": self.summary,
                "polyline": self.polyline,
                "steps": [step.to_dict() for step in self.steps],
            }
        )
        return data
