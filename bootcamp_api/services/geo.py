from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_MILES = 3963.0
GEO_WITHIN_OP = "within_sphere"


def angular_radius(distance: float, earth_radius: float = EARTH_RADIUS_MILES) -> float:
    """Convert a surface distance to radians on a sphere of ``earth_radius`` (same unit)."""
    value = float(distance)
    if value < 0 or math.isnan(value):
        raise ValueError("distance must be a non-negative number")
    return value / earth_radius


def central_angle(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * math.asin(min(1.0, math.sqrt(a)))


@dataclass(frozen=True)
class GeoCap:
    longitude: float
    latitude: float
    radius: float

    def contains(self, longitude: float | None, latitude: float | None) -> bool:
        if longitude is None or latitude is None:
            return False
        return central_angle(self.longitude, self.latitude, longitude, latitude) <= self.radius

    def bounding_box(self) -> tuple[float, float, float | None, float | None]:
        """Return ``(min_lat, max_lat, min_lng, max_lng)``; longitude bounds are None when the cap
        covers a pole or crosses the antimeridian."""
        delta_lat = math.degrees(self.radius)
        min_lat = max(-90.0, self.latitude - delta_lat)
        max_lat = min(90.0, self.latitude + delta_lat)
        if min_lat <= -90.0 or max_lat >= 90.0:
            return min_lat, max_lat, None, None
        delta_lng = math.degrees(math.asin(min(1.0, math.sin(self.radius) / math.cos(math.radians(self.latitude)))))
        min_lng = self.longitude - delta_lng
        max_lng = self.longitude + delta_lng
        if min_lng < -180.0 or max_lng > 180.0:
            return min_lat, max_lat, None, None
        return min_lat, max_lat, min_lng, max_lng


def within_sphere(field: str, longitude: float, latitude: float, distance: float) -> dict:
    cap = GeoCap(longitude=float(longitude), latitude=float(latitude), radius=angular_radius(distance))
    return {field: {GEO_WITHIN_OP: cap}}
