"""Polygon utilities used by the plot mapping tools.

A point is a `(latitude, longitude)` pair in degrees. A polygon is a ring of points whose first
point is not repeated at the end. All functions are pure and return new tuples.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

Point = tuple[float, float]

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEGREE_LAT = 111_320.0


def centroid(points: Sequence[Sequence[float]]) -> Point:
    """Return the arithmetic mean of the latitudes and longitudes.

    This is not an area-weighted centroid; at cemetery scale the difference is negligible and
    stored plot centers were computed this way. `points` must be non-empty.
    """

    lat_sum = sum(p[0] for p in points)
    lng_sum = sum(p[1] for p in points)
    return lat_sum / len(points), lng_sum / len(points)


def rotate_point(pivot: Sequence[float], point: Sequence[float], angle_deg: float) -> Point:
    """Rotate `point` about `pivot` by `angle_deg` (counter-clockwise, longitude as x)."""

    angle_rad = math.radians(angle_deg)
    cos_a = math.cos(angle_rad)
    sin_a = math.sin(angle_rad)

    dx = point[1] - pivot[1]
    dy = point[0] - pivot[0]

    rotated_lng = pivot[1] + (dx * cos_a - dy * sin_a)
    rotated_lat = pivot[0] + (dx * sin_a + dy * cos_a)
    return rotated_lat, rotated_lng


def distance_m(a: Sequence[float], b: Sequence[float]) -> float:
    """Haversine distance between two points in meters."""

    phi1 = math.radians(a[0])
    phi2 = math.radians(b[0])
    d_phi = math.radians(b[0] - a[0])
    d_lambda = math.radians(b[1] - a[1])

    x = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(x), math.sqrt(1 - x))


def normalize_angle(angle_deg: float) -> float:
    """Map any angle into `[0, 360)`."""

    return angle_deg % 360.0


def meters_to_degrees(latitude: float) -> tuple[float, float]:
    """Degrees of latitude and longitude per meter at `latitude`."""

    per_m_lat = 1 / METERS_PER_DEGREE_LAT
    per_m_lng = 1 / (METERS_PER_DEGREE_LAT * math.cos(math.radians(latitude)))
    return per_m_lat, per_m_lng


def template_rectangle(
        center: Sequence[float],
        width_m: float,
        length_m: float,
        rotation_deg: float = 0.0,
) -> list[Point]:
    """Build a fixed-footprint plot rectangle centred on `center`.

    Width runs along longitude and length along latitude before rotation. Corners are returned as
    bottom-left, top-left, top-right, bottom-right.
    """

    center_lat, center_lng = center[0], center[1]
    per_m_lat, per_m_lng = meters_to_degrees(center_lat)
    lat_offset = (length_m / 2) * per_m_lat
    lng_offset = (width_m / 2) * per_m_lng

    corners = [
        (center_lat - lat_offset, center_lng - lng_offset),
        (center_lat + lat_offset, center_lng - lng_offset),
        (center_lat + lat_offset, center_lng + lng_offset),
        (center_lat - lat_offset, center_lng + lng_offset),
    ]
    return [rotate_point((center_lat, center_lng), c, rotation_deg) for c in corners]


def edge_lengths(points: Sequence[Sequence[float]]) -> list[float]:
    """Length in meters of every edge of the implicitly closed ring."""

    if len(points) < 2:
        return []
    return [distance_m(points[i], points[(i + 1) % len(points)]) for i in range(len(points))]


def plot_bounds(
        x: float,
        y: float,
        *,
        reference_lat: float,
        width_m: float | None = None,
        length_m: float | None = None,
) -> tuple[Point, Point]:
    """Bounds of a plot stored as a grid origin (`x` = lng, `y` = lat) plus a size in meters.

    Missing sizes default to a 2 m x 1 m single plot.
    """

    width = width_m or 2.0
    length = length_m or 1.0
    per_m_lat, per_m_lng = meters_to_degrees(reference_lat)
    return (y, x), (y + length * per_m_lat, x + width * per_m_lng)


def is_polygon(value: object) -> bool:
    """Whether `value` looks like a stored polygon (a list of at least 3 numeric pairs)."""

    if not isinstance(value, (list, tuple)) or len(value) < 3:
        return False
    return all(
        isinstance(p, (list, tuple))
        and len(p) == 2
        and all(isinstance(c, (int, float)) and not isinstance(c, bool) for c in p)
        for p in value
    )
