"""대권(great-circle) 거리와 중간점 계산을 위한 지리 유틸리티."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True, slots=True)
class Coordinate:
    """위경도 좌표."""

    latitude: float
    longitude: float

    @classmethod
    def of(cls, source: Any) -> Coordinate | None:
        """`latitude`/`longitude`를 가진 객체나 dict에서 좌표를 읽습니다.

        둘 중 하나라도 비어 있으면 None을 반환합니다.
        """
        if isinstance(source, Coordinate):
            return source
        if isinstance(source, dict):
            latitude = source.get("latitude")
            longitude = source.get("longitude")
        else:
            latitude = getattr(source, "latitude", None)
            longitude = getattr(source, "longitude", None)
        if latitude is None or longitude is None:
            return None
        return cls(latitude=float(latitude), longitude=float(longitude))


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """두 좌표 사이의 대권 거리(km)를 소수점 둘째 자리까지 반환합니다."""
    lat1 = math.radians(a.latitude)
    lon1 = math.radians(a.longitude)
    lat2 = math.radians(b.latitude)
    lon2 = math.radians(b.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(EARTH_RADIUS_KM * c, 2)


def midpoint(a: Coordinate, b: Coordinate) -> Coordinate:
    """두 좌표의 구면 중간점을 반환합니다.

    단위 구 위의 직교 좌표를 평균낸 뒤 위경도로 되돌립니다.
    """
    lat1 = math.radians(a.latitude)
    lon1 = math.radians(a.longitude)
    lat2 = math.radians(b.latitude)
    lon2 = math.radians(b.longitude)

    x = (math.cos(lat1) * math.cos(lon1) + math.cos(lat2) * math.cos(lon2)) / 2
    y = (math.cos(lat1) * math.sin(lon1) + math.cos(lat2) * math.sin(lon2)) / 2
    z = (math.sin(lat1) + math.sin(lat2)) / 2

    longitude = math.atan2(y, x)
    latitude = math.atan2(z, math.hypot(x, y))
    return Coordinate(latitude=math.degrees(latitude), longitude=math.degrees(longitude))
