"""
Geographic primitives used by spot retrieval.

- LatLng: a single coordinate in degrees
- BoundingBox: the axis-aligned viewport rectangle (northeast/southwest corners)
- haversine_distance: great-circle distance in kilometres
"""

import math
from typing import NamedTuple

EARTH_RADIUS_KM = 6371.0


class LatLng(NamedTuple):
    lat: float
    lng: float


def haversine_distance(lat1, lng1, lat2, lng2):
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class BoundingBox(NamedTuple):
    north_east: LatLng
    south_west: LatLng

    @classmethod
    def from_corners(cls, ne_lat, ne_lng, sw_lat, sw_lng):
        return cls(LatLng(float(ne_lat), float(ne_lng)), LatLng(float(sw_lat), float(sw_lng)))

    @classmethod
    def around(cls, center, delta=0.1):
        """Square box of +/- delta degrees around a center point."""
        return cls(
            LatLng(center.lat + delta, center.lng + delta),
            LatLng(center.lat - delta, center.lng - delta),
        )

    @property
    def min_lat(self):
        return min(self.south_west.lat, self.north_east.lat)

    @property
    def max_lat(self):
        return max(self.south_west.lat, self.north_east.lat)

    @property
    def min_lng(self):
        return min(self.south_west.lng, self.north_east.lng)

    @property
    def max_lng(self):
        return max(self.south_west.lng, self.north_east.lng)

    @property
    def center(self):
        return LatLng(
            (self.south_west.lat + self.north_east.lat) / 2,
            (self.south_west.lng + self.north_east.lng) / 2,
        )

    @property
    def radius_km(self):
        """Distance from the northeast corner to the center."""
        center = self.center
        return haversine_distance(center.lat, center.lng, self.north_east.lat, self.north_east.lng)

    def contains(self, lat, lng):
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng

    def within_radius(self, lat, lng):
        center = self.center
        return haversine_distance(center.lat, center.lng, lat, lng) <= self.radius_km

    def get_dict(self):
        return {
            "ne": {"lat": self.north_east.lat, "lng": self.north_east.lng},
            "sw": {"lat": self.south_west.lat, "lng": self.south_west.lng},
        }
