import newrelic.agent
from flask import Blueprint, abort, current_app, request

from truthspot.api.categories import cached_categories
from truthspot.extensions import pocketbase
from truthspot.helpers.geo import BoundingBox, LatLng
from truthspot.helpers.markers import build_map_layer
from truthspot.services.auth_service import AuthService
from truthspot.services.spot_service import SpotService
from truthspot.utils.validators import clamp_zoom, validate_bounds, validate_coordinates

bp = Blueprint('spots', __name__, url_prefix="/spots")


def get_spot_service():
    return SpotService.from_config(pocketbase, current_app.config)


def _page_zoom(requested_zoom, zoom):
    # page size follows the zoom the client asked for, before clamping to the map range
    return zoom if requested_zoom is None else requested_zoom


def _spots_response(spots, bounds, zoom):
    return {
        'data': [spot.get_dict() for spot in spots],
        'markers': build_map_layer(spots, cached_categories(), zoom),
        'bounds': bounds.get_dict(),
        'center': bounds.center._asdict(),
        'radius_km': bounds.radius_km,
        'zoom': zoom,
    }


@bp.route("/viewport")
def get_viewport_spots():
    """ Spots In Viewport
    ---
    get:
        summary: Spots visible in the current map viewport
        description: Spots inside the bounding box and within the center-to-corner
          radius, limited to public spots and the caller's own spots unless the
          caller is an admin. Newest first.
        parameters:
            - name: ne_lat
              in: query
              type: number
              required: true
            - name: ne_lng
              in: query
              type: number
              required: true
            - name: sw_lat
              in: query
              type: number
              required: true
            - name: sw_lng
              in: query
              type: number
              required: true
            - name: zoom
              in: query
              description: current map zoom (default 13)
              type: integer
              required: false
        responses:
            200:
                description: Returns spots plus markers/clusters for the zoom level
                content:
                  application/json:
                    schema: SpotListSchema
            422:
                description: Missing or invalid bounds
    """
    newrelic.agent.capture_request_params()
    ne_lat = request.args.get('ne_lat', type=float)
    ne_lng = request.args.get('ne_lng', type=float)
    sw_lat = request.args.get('sw_lat', type=float)
    sw_lng = request.args.get('sw_lng', type=float)
    valid, message = validate_bounds(ne_lat, ne_lng, sw_lat, sw_lng)
    if not valid:
        abort(422, message)

    requested_zoom = request.args.get('zoom', type=float)
    zoom = clamp_zoom(requested_zoom)
    bounds = BoundingBox.from_corners(ne_lat, ne_lng, sw_lat, sw_lng)
    identity = AuthService.current_identity()
    spots = get_spot_service().get_spots_in_view(bounds, identity, _page_zoom(requested_zoom, zoom))
    return _spots_response(spots, bounds, zoom)


@bp.route("/around")
def get_spots_around():
    """Spots in the +/-0.1 degree box around a freshly set map center."""
    lat = request.args.get('lat', type=float)
    lng = request.args.get('lng', type=float)
    valid, message = validate_coordinates(lat, lng)
    if not valid:
        abort(422, message)

    requested_zoom = request.args.get('zoom', type=float)
    zoom = clamp_zoom(requested_zoom)
    bounds = BoundingBox.around(LatLng(lat, lng))
    identity = AuthService.current_identity()
    spots = get_spot_service().get_spots_in_view(bounds, identity, _page_zoom(requested_zoom, zoom))
    return _spots_response(spots, bounds, zoom)


@bp.route("/mine")
def get_my_spots():
    """ My Spots
    ---
    get:
        summary: The caller's own spots
        description: Up to 50 of the logged-in user's spots, newest first
        responses:
            200:
                description: Returns list of spot objects
            401:
                description: Not logged in
    """
    identity = AuthService.current_identity()
    if not identity.is_authenticated:
        abort(401, 'Log in to see your spots')
    spots = get_spot_service().get_user_spots(identity)
    return {'data': [spot.get_dict() for spot in spots]}


@bp.route("/<spot_id>")
def get_spot(spot_id):
    identity = AuthService.current_identity()
    spot = get_spot_service().get_spot(spot_id, identity)
    return {'data': spot.get_dict()}


@bp.route("/add", methods=["POST"])
def add_spot():
    """ Add Spot
    ---
    post:
        summary: Add Spot
        description: Create a spot owned by the logged-in user
        parameters:
            - name: name
              in: body
              type: string
              required: true
            - name: description
              in: body
              type: string
              required: true
            - name: lat
              in: body
              type: number
              required: true
            - name: lng
              in: body
              type: number
              required: true
            - name: category
              in: body
              description: id of the deepest selected category
              type: string
              required: true
            - name: isPublic
              in: body
              type: boolean
              required: false
            - name: tags
              in: body
              description: list of tag ids
              type: array
              required: false
        responses:
            200:
                description: Returns the created spot with its category expanded
                content:
                  application/json:
                    schema: SpotSchema
            403:
                description: Not logged in
            422:
                description: Invalid spot data
    """
    identity = AuthService.current_identity()
    spot = get_spot_service().create_spot(request.get_json(silent=True) or {}, identity)
    return {'data': spot.get_dict()}, 200


@bp.route("/<spot_id>/visibility", methods=["PATCH"])
def patch_visibility(spot_id):
    """ Toggle Spot Visibility
    ---
    patch:
        summary: Make a spot public or private (owner or admin only)
        parameters:
            - name: isPublic
              in: body
              type: boolean
              required: true
        responses:
            200:
                description: Returns the updated spot
            403:
                description: Not the owner or an admin
    """
    identity = AuthService.current_identity()
    is_public = (request.get_json(silent=True) or {}).get('isPublic')
    spot = get_spot_service().set_visibility(spot_id, is_public, identity)
    return {'data': spot.get_dict()}, 200


@bp.route("/<spot_id>", methods=["DELETE"])
def delete_spot(spot_id):
    """ Delete Spot
    ---
    delete:
        summary: Delete a spot (owner or admin only)
        responses:
            200:
                description: Spot deleted
            403:
                description: Not the owner or an admin
    """
    identity = AuthService.current_identity()
    get_spot_service().delete_spot(spot_id, identity)
    return {'data': {'id': spot_id, 'deleted': True}}
