"""距離計算のファサード"""

import re
from dataclasses import replace
from typing import Any, Optional, Union

from ....shared.exceptions.errors import InvalidLocationError, RoutingError, ValidationError
from ....shared.logging.config import get_logger
from ...geocoding.domain.models import Coordinate, StructuredAddress
from ...geocoding.services.geocoding_service import GeocodingService
from ...routing.domain.models import METERS_PER_UNIT, STRAIGHT_TYPE, DistanceResult, RouteResult, convert_distance
from ...routing.providers.base import AbstractRouter
from .distance_calculator import DistanceCalculator

logger = get_logger(__name__)

# "40.7128,-74.0060" 形式の座標文字列
COORDINATE_PATTERN = re.compile(r"^(-?\d+\.?\d*),\s*(-?\d+\.?\d*)$")

Location = Union[str, Coordinate]


class DistanceService:
    """
    距離・方位・ルート計算の窓口

    住所文字列はジオコーダーのチェーン（ローカルキャッシュ → フォールバック → 各プロバイダー）で
    座標に変換してから計算する。
    """

    def __init__(
        self,
        geocoding_service: GeocodingService,
        router: Optional[AbstractRouter] = None,
        calculator: Optional[DistanceCalculator] = None,
        unit: str = "kilometers",
        routing_mode: str = "driving",
        straight_line_fallback: bool = True,
    ) -> None:
        """
        Args:
            geocoding_service: ジオコーディングサービス
            router: ルーター（Noneの場合、route は直線距離のみ）
            calculator: 距離計算
            unit: 既定の距離単位
            routing_mode: 既定の移動手段
            straight_line_fallback: ルート取得失敗時に直線距離で代替するか
        """
        self.geocoding_service = geocoding_service
        self.router = router
        self.calculator = calculator or DistanceCalculator()
        self.unit = self._check_unit(unit)
        self.routing_mode = routing_mode
        self.straight_line_fallback = straight_line_fallback

    def resolve_location(self, location: Any) -> Coordinate:
        """
        位置指定を座標に変換

        Args:
            location: Coordinate、"緯度,経度" の文字列、または住所文字列

        Returns:
            Coordinate: 座標

        Raises:
            InvalidLocationError: 位置指定の型が不正
            InvalidCoordinateError: 座標文字列の値が範囲外
            GeocodingError: 住所をジオコーディングできない場合
        """
        if isinstance(location, Coordinate):
            return location

        if isinstance(location, str):
            match = COORDINATE_PATTERN.match(location.strip())
            if match:
                return Coordinate(latitude=float(match.group(1)), longitude=float(match.group(2)))

            return self.geocoding_service.geocode(location)

        raise InvalidLocationError(
            "Location must be a string address, coordinate string, or Coordinate object. "
            f"Got: {type(location).__name__}"
        )

    def between(self, from_location: Location, to_location: Location, unit: Optional[str] = None) -> DistanceResult:
        """2地点間の距離（Haversine）"""
        unit = self._check_unit(unit or self.unit)
        from_coordinate, to_coordinate = self._resolve_pair(from_location, to_location)
        distance = self.calculator.calculate(from_coordinate, to_coordinate, unit)
        return DistanceResult(from_coordinate, to_coordinate, distance, unit)

    def between_vincenty(
        self, from_location: Location, to_location: Location, unit: Optional[str] = None
    ) -> DistanceResult:
        """2地点間の距離（Vincenty）"""
        unit = self._check_unit(unit or self.unit)
        from_coordinate, to_coordinate = self._resolve_pair(from_location, to_location)
        distance = self.calculator.calculate_vincenty(from_coordinate, to_coordinate, unit)
        return DistanceResult(from_coordinate, to_coordinate, distance, unit)

    def bearing(self, from_location: Location, to_location: Location) -> float:
        """初期方位（度）"""
        from_coordinate, to_coordinate = self._resolve_pair(from_location, to_location)
        return self.calculator.bearing(from_coordinate, to_coordinate)

    def direction(self, from_location: Location, to_location: Location) -> str:
        """8方位の記号"""
        return self.calculator.compass_direction(self.bearing(from_location, to_location))

    def geocode(self, address: str) -> Coordinate:
        return self.geocoding_service.geocode(address)

    def geocode_structured(self, address: StructuredAddress) -> Coordinate:
        return self.geocoding_service.geocode_structured(address)

    def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        return self.geocoding_service.reverse(latitude, longitude)

    def route(self, from_location: Location, to_location: Location, mode: Optional[str] = None) -> RouteResult:
        """
        道路網に沿ったルート

        ルーターが RoutingError を送出し、直線距離での代替が有効な場合は
        type="straight" の結果を返す。

        Raises:
            RoutingError: ルート取得に失敗し、代替が無効な場合
        """
        from_coordinate, to_coordinate = self._resolve_pair(from_location, to_location)
        mode = mode or self.routing_mode

        if self.router is None:
            if not self.straight_line_fallback:
                raise RoutingError("No routing provider configured.")
            return self._straight_line(from_coordinate, to_coordinate, "no routing provider configured")

        try:
            result = self.router.route(from_coordinate, to_coordinate, mode)
        except RoutingError as e:
            if not self.straight_line_fallback:
                raise
            logger.warning(f"Routing failed, falling back to straight-line distance: {e}")
            return self._straight_line(from_coordinate, to_coordinate, str(e))

        if result.unit != self.unit:
            result = replace(result, distance=convert_distance(result.distance, result.unit, self.unit), unit=self.unit)
        return result

    def with_unit(self, unit: str) -> "DistanceService":
        """既定の距離単位を変えた新しいサービスを返す（協調オブジェクトは共有）"""
        return DistanceService(
            geocoding_service=self.geocoding_service,
            router=self.router,
            calculator=self.calculator,
            unit=unit,
            routing_mode=self.routing_mode,
            straight_line_fallback=self.straight_line_fallback,
        )

    def close(self) -> None:
        """リソースをクリーンアップ"""
        self.geocoding_service.close()
        if self.router is not None:
            self.router.close()

    @staticmethod
    def _check_unit(unit: str) -> str:
        if unit not in METERS_PER_UNIT:
            raise ValidationError(
                f"Unsupported distance unit: {unit}. Supported units: {', '.join(METERS_PER_UNIT)}"
            )
        return unit

    def _resolve_pair(self, from_location: Location, to_location: Location) -> tuple[Coordinate, Coordinate]:
        return self.resolve_location(from_location), self.resolve_location(to_location)

    def _straight_line(self, from_coordinate: Coordinate, to_coordinate: Coordinate, reason: str) -> RouteResult:
        distance = self.calculator.calculate(from_coordinate, to_coordinate, self.unit)
        return RouteResult(
            from_coordinate=from_coordinate,
            to_coordinate=to_coordinate,
            distance=distance,
            unit=self.unit,
            summary=f"Straight-line distance ({reason})",
            type=STRAIGHT_TYPE,
        )
