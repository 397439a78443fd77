from urllib.parse import urlencode

from flask import Blueprint, current_app, request

from truthspot.extensions import cache
from truthspot.helpers import markers
from truthspot.helpers.map_session import DEFAULT_CENTER, DEFAULT_ZOOM, LOCATE_ZOOM, MIN_PIN_ZOOM
from truthspot.utils.validators import MAX_MAP_ZOOM, MIN_MAP_ZOOM, clamp_zoom, validate_coordinates

bp = Blueprint("maps", __name__, url_prefix="/maps")

GEOLOCATION_OPTIONS = {"enableHighAccuracy": True, "timeout": 5000, "maximumAge": 0}

TILE_LAYERS = {
    "simple": "https://{s}.basemaps.cartocdn.com/light_all/{z}/{x}/{y}.png",
    "detailed": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
}


def resolve_initial_view(lat=None, lng=None, zoom=None):
    """Initial map view from URL parameters, falling back to the default center."""
    if validate_coordinates(lat, lng)[0]:
        center = {"lat": float(lat), "lng": float(lng)}
    else:
        center = DEFAULT_CENTER._asdict()
    return {"center": center, "zoom": clamp_zoom(zoom, DEFAULT_ZOOM)}


@bp.route("/view")
def get_initial_view():
    """Get Initial View
    ---
    get:
        summary: Resolve the initial map view from lat/lng/zoom query parameters
        parameters:
            - name: lat
              in: query
              type: number
              required: false
            - name: lng
              in: query
              type: number
              required: false
            - name: zoom
              in: query
              type: integer
              required: false
        responses:
            200:
                description: Returns center and clamped zoom
    """
    view = resolve_initial_view(
        request.args.get("lat", type=float),
        request.args.get("lng", type=float),
        request.args.get("zoom", type=float),
    )
    return {"data": view}


@bp.route("/link")
def get_map_link():
    """Query string for opening the map at a position, as the landing page does."""
    lat = request.args.get("lat", type=float)
    lng = request.args.get("lng", type=float)
    zoom = request.args.get("zoom", type=float)
    params = {}
    if validate_coordinates(lat, lng)[0]:
        params = {"lat": lat, "lng": lng}
        if zoom is not None:
            params["zoom"] = clamp_zoom(zoom)
    query = urlencode(params)
    return {"data": {"query": query, "url": "/map" + ("?" + query if query else "")}}


@bp.route("/config")
@cache.cached()
def get_map_config():
    """Constants the map UI shares with the server."""
    return {
        "data": {
            "min_zoom": MIN_MAP_ZOOM,
            "max_zoom": MAX_MAP_ZOOM,
            "default_zoom": DEFAULT_ZOOM,
            "default_center": DEFAULT_CENTER._asdict(),
            "locate_zoom": LOCATE_ZOOM,
            "min_pin_zoom": MIN_PIN_ZOOM,
            "fetch_debounce_ms": round(current_app.config.get("SPOT_FETCH_DEBOUNCE", 0.3) * 1000),
            "geolocation": GEOLOCATION_OPTIONS,
            "tile_layers": TILE_LAYERS,
            "cluster": {
                "max_cluster_radius": markers.CLUSTER_RADIUS_PX,
                "disable_clustering_at_zoom": markers.DISABLE_CLUSTERING_AT_ZOOM,
                "icon_size": markers.CLUSTER_ICON_SIZE,
            },
            "icon": {
                "base_size": markers.ICON_BASE_SIZE,
                "min_zoom": markers.ICON_MIN_ZOOM,
                "max_zoom": markers.ICON_MAX_ZOOM,
            },
        }
    }
