import logging

from truthspot.helpers.geo import BoundingBox
from truthspot.models import Spot
from truthspot.services.pocketbase import number, quote
from truthspot.utils.validators import validate_record_id, validate_spot_payload

logger = logging.getLogger(__name__)

SPOTS_COLLECTION = "spots"

PAGE_SIZE = 1000
PAGE_SIZE_LOW_ZOOM = 100
LOW_ZOOM_THRESHOLD = 5
USER_SPOTS_PAGE_SIZE = 50


class SpotServiceError(Exception):
    status = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class SpotNotFound(SpotServiceError):
    status = 404


class SpotForbidden(SpotServiceError):
    status = 403


class SpotInvalid(SpotServiceError):
    status = 422


class SpotService:
    """Spot retrieval and mutation on top of the PocketBase "spots" collection."""

    def __init__(self, pocketbase, page_size=PAGE_SIZE, page_size_low_zoom=PAGE_SIZE_LOW_ZOOM,
                 low_zoom_threshold=LOW_ZOOM_THRESHOLD, user_spots_page_size=USER_SPOTS_PAGE_SIZE):
        self.pocketbase = pocketbase
        self.page_size = page_size
        self.page_size_low_zoom = page_size_low_zoom
        self.low_zoom_threshold = low_zoom_threshold
        self.user_spots_page_size = user_spots_page_size

    @classmethod
    def from_config(cls, pocketbase, config):
        return cls(
            pocketbase,
            page_size=config.get("SPOT_PAGE_SIZE", PAGE_SIZE),
            page_size_low_zoom=config.get("SPOT_PAGE_SIZE_LOW_ZOOM", PAGE_SIZE_LOW_ZOOM),
            low_zoom_threshold=config.get("LOW_ZOOM_THRESHOLD", LOW_ZOOM_THRESHOLD),
            user_spots_page_size=config.get("USER_SPOTS_PAGE_SIZE", USER_SPOTS_PAGE_SIZE),
        )

    def _spots(self, identity):
        return self.pocketbase.collection(SPOTS_COLLECTION, token=identity.token)

    @staticmethod
    def build_viewport_filter(bounds, identity):
        """PocketBase filter for spots inside the box that the caller may see."""
        expression = (
            f"lat >= {number(bounds.min_lat)} && lat <= {number(bounds.max_lat)}"
            f" && lng >= {number(bounds.min_lng)} && lng <= {number(bounds.max_lng)}"
        )
        if identity.is_admin:
            return expression
        if identity.is_authenticated:
            return expression + f" && (isPublic = true || user = {quote(identity.user_id)})"
        return expression + " && isPublic = true"

    def page_size_for_zoom(self, zoom):
        if zoom is not None and zoom < self.low_zoom_threshold:
            return self.page_size_low_zoom
        return self.page_size

    def get_spots_in_view(self, bounds, identity, zoom=None):
        """Spots inside the circle inscribed around the viewport center.

        The rectangular query goes to PocketBase; the haversine radius from the
        box center to its northeast corner trims the result to a circle.
        Records outside the box or not visible to the caller are dropped again
        here even though PocketBase already filtered them.
        """
        result = self._spots(identity).get_list(
            page=1,
            per_page=self.page_size_for_zoom(zoom),
            filter=self.build_viewport_filter(bounds, identity),
            sort="-created",
            expand="category",
        )
        spots = []
        for record in result.get("items", []):
            spot = Spot.from_record(record)
            if not spot.visible_to(identity):
                logger.warning("Dropping spot %s not visible to %s", spot.id, identity.user_id)
                continue
            if bounds.contains(spot.lat, spot.lng) and bounds.within_radius(spot.lat, spot.lng):
                spots.append(spot)
        return spots

    def get_spots_around(self, center, identity, delta=0.1, zoom=None):
        """Initial fetch for a freshly set map center."""
        return self.get_spots_in_view(BoundingBox.around(center, delta), identity, zoom)

    def get_spot(self, spot_id, identity):
        if not validate_record_id(spot_id):
            raise SpotNotFound("Spot not found")
        record = self._spots(identity).get_one(spot_id, expand="category")
        spot = Spot.from_record(record)
        if not spot.visible_to(identity):
            raise SpotNotFound("Spot not found")
        return spot

    def get_user_spots(self, identity):
        if not identity.is_authenticated:
            return []
        result = self._spots(identity).get_list(
            page=1,
            per_page=self.user_spots_page_size,
            filter=f"user = {quote(identity.user_id)}",
            sort="-created",
        )
        return [Spot.from_record(record) for record in result.get("items", [])]

    def create_spot(self, data, identity):
        if not identity.is_authenticated:
            raise SpotForbidden("Log in to add a spot")
        valid, message = validate_spot_payload(data)
        if not valid:
            raise SpotInvalid(message)

        payload = {
            "name": data["name"].strip(),
            "description": data["description"].strip(),
            "lat": float(data["lat"]),
            "lng": float(data["lng"]),
            "category": data["category"],
            "user": identity.user_id,
            "isPublic": data.get("isPublic", True),
            "tags": list(dict.fromkeys(data.get("tags") or [])),
        }
        spots = self._spots(identity)
        created = spots.create(payload)
        logger.info("Spot %s created by %s", created["id"], identity.user_id)
        return Spot.from_record(spots.get_one(created["id"], expand="category"))

    def _get_modifiable(self, spot_id, identity):
        spot = self.get_spot(spot_id, identity)
        if not identity.can_modify(spot.user):
            raise SpotForbidden("Only the owner or an admin can do that")
        return spot

    def set_visibility(self, spot_id, is_public, identity):
        if not isinstance(is_public, bool):
            raise SpotInvalid("isPublic must be true or false")
        self._get_modifiable(spot_id, identity)
        record = self._spots(identity).update(spot_id, {"isPublic": is_public}, expand="category")
        return Spot.from_record(record)

    def delete_spot(self, spot_id, identity):
        self._get_modifiable(spot_id, identity)
        self._spots(identity).delete(spot_id)
        logger.info("Spot %s deleted by %s", spot_id, identity.user_id)
        return True
