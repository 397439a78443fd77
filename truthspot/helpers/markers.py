"""
Presentation mapping for spots: zoom-scaled marker icons and pixel-radius
clustering.

Icon size grows linearly from 1x at ICON_MIN_ZOOM to 3x at ICON_MAX_ZOOM and is
clamped outside that range. Markers closer than CLUSTER_RADIUS_PX on screen are
merged into a cluster until DISABLE_CLUSTERING_AT_ZOOM, after which every spot
gets its own pin.
"""

import math
from datetime import datetime, timezone
from typing import NamedTuple

from truthspot.models.taxonomy import DEFAULT_CATEGORY_ICON

ICON_BASE_SIZE = 24
ICON_BASE_FONT_SIZE = 14
ICON_MIN_FONT_SIZE = 10
ICON_MIN_ZOOM = 10
ICON_MAX_ZOOM = 18
MAX_SIZE_MULTIPLIER = 3

PRIVATE_OPACITY = 0.6
PRIVATE_INDICATOR = "🔒"

CLUSTER_RADIUS_PX = 50
CLUSTER_ICON_SIZE = 40
DISABLE_CLUSTERING_AT_ZOOM = 15

TILE_SIZE = 256
MAX_MERCATOR_LAT = 85.0511287798


class IconMetrics(NamedTuple):
    size: int
    font_size: int
    box: tuple
    anchor: tuple


def size_multiplier(zoom):
    zoom_factor = (zoom - ICON_MIN_ZOOM) / (ICON_MAX_ZOOM - ICON_MIN_ZOOM)
    zoom_factor = min(1.0, max(0.0, zoom_factor))
    return 1 + zoom_factor * (MAX_SIZE_MULTIPLIER - 1)


def icon_metrics(zoom):
    multiplier = size_multiplier(zoom)
    size = round(ICON_BASE_SIZE * multiplier)
    font_size = max(ICON_MIN_FONT_SIZE, round(ICON_BASE_FONT_SIZE * multiplier))
    return IconMetrics(
        size=size,
        font_size=font_size,
        box=(size * 1.5, size * 1.5),
        anchor=(size * 0.75, size * 1.5),
    )


def time_ago(then, now=None):
    """Relative time in words, e.g. "5 minutes ago" or "about 2 hours ago"."""
    now = now or datetime.now(timezone.utc)
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    seconds = (now - then).total_seconds()
    words = _distance_in_words(abs(seconds))
    return f"{words} ago" if seconds >= 0 else f"in {words}"


def _distance_in_words(seconds):
    minutes = round(seconds / 60)
    if seconds < 30:
        return "less than a minute"
    if minutes < 2:
        return "1 minute"
    if minutes < 45:
        return f"{minutes} minutes"
    if minutes < 90:
        return "about 1 hour"
    hours = round(minutes / 60)
    if hours < 24:
        return f"about {hours} hours"
    if hours < 42:
        return "1 day"
    days = round(hours / 24)
    if days < 30:
        return f"{days} days"
    if days < 45:
        return "about 1 month"
    if days < 60:
        return "about 2 months"
    months = round(days / 30)
    if months < 12:
        return f"{months} months"
    years, remainder = divmod(months, 12)
    if remainder < 3:
        return f"about {years} year" + ("s" if years > 1 else "")
    if remainder < 9:
        return f"over {years} year" + ("s" if years > 1 else "")
    return f"almost {years + 1} years"


def build_marker(spot, category_icons, zoom, now=None):
    """Marker description for one spot at the given zoom."""
    metrics = icon_metrics(zoom)
    icon = category_icons.get(spot.category)
    if icon is None and spot.expanded_category:
        icon = spot.expanded_category.icon
    return {
        "type": "marker",
        "spot_id": spot.id,
        "lat": spot.lat,
        "lng": spot.lng,
        "icon": icon or DEFAULT_CATEGORY_ICON,
        "title": spot.name,
        "time_ago": time_ago(spot.created, now) if spot.created else None,
        "size": metrics.size,
        "font_size": metrics.font_size,
        "icon_size": list(metrics.box),
        "icon_anchor": list(metrics.anchor),
        "opacity": 1 if spot.is_public else PRIVATE_OPACITY,
        "indicator": None if spot.is_public else PRIVATE_INDICATOR,
    }


def project(lat, lng, zoom):
    """Web-Mercator pixel coordinates of a point at the given zoom."""
    scale = TILE_SIZE * 2 ** zoom
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat))
    sin_lat = math.sin(math.radians(lat))
    x = (lng + 180) / 360 * scale
    y = (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * scale
    return x, y


def cluster_spots(spots, zoom, radius=CLUSTER_RADIUS_PX):
    """Group spots into clusters of points within radius pixels of the cluster seed."""
    if zoom >= DISABLE_CLUSTERING_AT_ZOOM:
        return [[spot] for spot in spots]

    groups = []
    for spot in spots:
        x, y = project(spot.lat, spot.lng, zoom)
        for group in groups:
            seed_x, seed_y = group["seed"]
            if math.hypot(x - seed_x, y - seed_y) <= radius:
                group["spots"].append(spot)
                break
        else:
            groups.append({"seed": (x, y), "spots": [spot]})
    return [group["spots"] for group in groups]


def build_cluster(spots):
    return {
        "type": "cluster",
        "count": len(spots),
        "lat": sum(spot.lat for spot in spots) / len(spots),
        "lng": sum(spot.lng for spot in spots) / len(spots),
        "icon_size": [CLUSTER_ICON_SIZE, CLUSTER_ICON_SIZE],
        "spot_ids": [spot.id for spot in spots],
    }


def build_map_layer(spots, categories, zoom, now=None):
    """Markers and clusters for the visible spots."""
    category_icons = {category.id: category.icon for category in categories}
    layer = []
    for group in cluster_spots(spots, zoom):
        if len(group) == 1:
            layer.append(build_marker(group[0], category_icons, zoom, now))
        else:
            layer.append(build_cluster(group))
    return layer
