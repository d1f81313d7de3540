"""
Geodesy helpers for point-to-point links.

Distances use the haversine formula on a sphere of mean Earth radius. Points
along a path are interpolated linearly in latitude/longitude, which is close
enough for the short terrestrial links this is meant for.
"""

import math
from dataclasses import dataclass

from geographiclib.geodesic import Geodesic

EARTH_RADIUS_M = 6371008.7714  # mean Earth radius (IUGG)


@dataclass(frozen=True)
class GeoPoint:
    """A geographic position in decimal degrees."""
    lat: float
    lon: float


def distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle (haversine) distance between two points, in meters."""
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)

    h = (math.sin(d_lat / 2) ** 2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2)
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def interpolate(a: GeoPoint, b: GeoPoint, t: float) -> GeoPoint:
    """
    Point at fraction t (0..1) of the way from a to b.

    This blends latitude and longitude linearly in degree space; it is not a
    great-circle interpolation and drifts on long or high-latitude paths.
    """
    return GeoPoint(a.lat + (b.lat - a.lat) * t,
                    a.lon + (b.lon - a.lon) * t)


def bearing(a: GeoPoint, b: GeoPoint) -> float:
    """Initial azimuth from a to b on the WGS84 ellipsoid, degrees in [0, 360)."""
    result = Geodesic.WGS84.Inverse(a.lat, a.lon, b.lat, b.lon)
    return result['azi1'] % 360.0
