"""球面上の距離・方位の計算"""
import math

from ...geocoding.domain.models import Coordinate

# 単位ごとの地球半径
EARTH_RADIUS = {
    "kilometers": 6371.0,
    "km": 6371.0,
    "miles": 3959.0,
    "mi": 3959.0,
    "meters": 6371000.0,
    "m": 6371000.0,
    "feet": 20902231.0,
    "ft": 20902231.0,
}

COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def earth_radius(unit: str) -> float:
    """単位に応じた地球半径（未知の単位はキロメートル）"""
    return EARTH_RADIUS.get(unit, EARTH_RADIUS["kilometers"])


class DistanceCalculator:
    """2点間の大円距離と方位を計算する"""

    def calculate(self, from_coordinate: Coordinate, to_coordinate: Coordinate, unit: str = "kilometers") -> float:
        """
        Haversine公式による距離

        Args:
            from_coordinate: 出発地
            to_coordinate: 目的地
            unit: 距離単位

        Returns:
            float: 距離
        """
        lat_from = math.radians(from_coordinate.latitude)
        lat_to = math.radians(to_coordinate.latitude)
        lat_delta = lat_to - lat_from
        lon_delta = math.radians(to_coordinate.longitude - from_coordinate.longitude)

        a = (
            math.sin(lat_delta / 2) ** 2
            + math.cos(lat_from) * math.cos(lat_to) * math.sin(lon_delta / 2) ** 2
        )
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return earth_radius(unit) * c

    def calculate_vincenty(
        self, from_coordinate: Coordinate, to_coordinate: Coordinate, unit: str = "kilometers"
    ) -> float:
        """
        Vincenty公式（球面版）による距離

        対蹠点に近い2点でもHaversineより数値的に安定する
        """
        lat_from = math.radians(from_coordinate.latitude)
        lat_to = math.radians(to_coordinate.latitude)
        lon_delta = math.radians(to_coordinate.longitude - from_coordinate.longitude)

        a = (math.cos(lat_to) * math.sin(lon_delta)) ** 2 + (
            math.cos(lat_from) * math.sin(lat_to)
            - math.sin(lat_from) * math.cos(lat_to) * math.cos(lon_delta)
        ) ** 2
        b = math.sin(lat_from) * math.sin(lat_to) + math.cos(lat_from) * math.cos(lat_to) * math.cos(lon_delta)

        return earth_radius(unit) * math.atan2(math.sqrt(a), b)

    def bearing(self, from_coordinate: Coordinate, to_coordinate: Coordinate) -> float:
        """初期方位（度、0以上360未満）"""
        lat_from = math.radians(from_coordinate.latitude)
        lat_to = math.radians(to_coordinate.latitude)
        lon_delta = math.radians(to_coordinate.longitude - from_coordinate.longitude)

        y = math.sin(lon_delta) * math.cos(lat_to)
        x = math.cos(lat_from) * math.sin(lat_to) - math.sin(lat_from) * math.cos(lat_to) * math.cos(lon_delta)

        return (math.degrees(math.atan2(y, x)) + 360) % 360

    def compass_direction(self, bearing: float) -> str:
        """方位を8方位の記号に変換（境界は四捨五入）"""
        index = int(math.floor(bearing / 45 + 0.5)) % 8
        return COMPASS_POINTS[index]
