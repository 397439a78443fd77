"""
Map session: the state behind one user's map view.

Holds the viewport, the interaction mode, the spots currently shown and the
spot form (dropped pin plus category/tag selection). Viewport changes are
debounced; each retrieval that actually runs gets a generation number and its
result is applied only if no newer retrieval has been applied already, so a
slow response can never overwrite a fresher one.
"""

import enum
import logging
import threading

from truthspot.helpers.debounce import Debouncer
from truthspot.helpers.geo import BoundingBox, LatLng
from truthspot.helpers.markers import build_map_layer
from truthspot.services.pocketbase import PocketBaseError
from truthspot.utils.validators import MAX_MAP_ZOOM, MIN_MAP_ZOOM, clamp_zoom

logger = logging.getLogger(__name__)

DEFAULT_CENTER = LatLng(40.7128, -74.006)
DEFAULT_ZOOM = 13
LOCATE_ZOOM = 13
NEW_SPOT_ZOOM = 16
MIN_PIN_ZOOM = 12
FETCH_DEBOUNCE = 0.3  # seconds


class InteractionMode(enum.Enum):
    MOVE = "move"
    PIN = "pin"


class MapSessionError(Exception):
    pass


class MapSession:
    def __init__(self, spot_service, identity, category_service=None,
                 center=DEFAULT_CENTER, zoom=DEFAULT_ZOOM, debounce=FETCH_DEBOUNCE):
        self.spot_service = spot_service
        self.category_service = category_service
        self.identity = identity
        self.center = center
        self.zoom = clamp_zoom(zoom)
        self.mode = InteractionMode.MOVE
        self.spots = []
        self.error = None
        self.categories = []
        self.selection = None
        self.draft_position = None

        self._lock = threading.Lock()
        self._generation = 0
        self._applied_generation = 0
        self._debounced_fetch = Debouncer(debounce, self._fetch)

    # Viewport

    def on_viewport_change(self, bounds, zoom):
        """Record a pan/zoom and schedule a trailing retrieval."""
        self.zoom = clamp_zoom(zoom)
        self.center = bounds.center
        self._debounced_fetch(bounds, self.zoom)

    def flush(self):
        """Run any pending debounced retrieval immediately."""
        return self._debounced_fetch.flush()

    def close(self):
        self._debounced_fetch.cancel()

    def set_center(self, center, zoom=None):
        """Move the map and fetch the +/-0.1 degree box around the new center."""
        self.center = center
        if zoom is not None:
            self.zoom = clamp_zoom(zoom)
        self._debounced_fetch.cancel()
        return self._fetch(BoundingBox.around(center), self.zoom)

    def locate(self, lat, lng):
        """Center on a geolocated position."""
        return self.set_center(LatLng(lat, lng), LOCATE_ZOOM)

    def zoom_by(self, delta):
        self.zoom = max(MIN_MAP_ZOOM, min(MAX_MAP_ZOOM, self.zoom + delta))
        return self.zoom

    def _next_generation(self):
        with self._lock:
            self._generation += 1
            return self._generation

    def _fetch(self, bounds, zoom):
        # zoom is already clamped to MIN_MAP_ZOOM, above the service's low-zoom
        # threshold, so map sessions always use the full page size
        generation = self._next_generation()
        try:
            spots = self.spot_service.get_spots_in_view(bounds, self.identity, zoom)
        except PocketBaseError as e:
            logger.error("Error fetching spots: %s", e)
            with self._lock:
                if generation > self._applied_generation:
                    self.error = e
            return None
        return self._apply(generation, spots)

    def _apply(self, generation, spots):
        with self._lock:
            if generation <= self._applied_generation:
                logger.debug("Discarding stale spot response %s (applied %s)", generation, self._applied_generation)
                return None
            self._applied_generation = generation
            self.spots = spots
            self.error = None
            return spots

    # Interaction mode and spot form

    @property
    def can_pin(self):
        return self.identity.is_authenticated and self.zoom >= MIN_PIN_ZOOM

    def set_mode(self, mode):
        mode = InteractionMode(mode)
        if mode is InteractionMode.PIN and not self.can_pin:
            raise MapSessionError(f"Log in and zoom to at least {MIN_PIN_ZOOM} to drop a spot")
        self.mode = mode
        self.draft_position = None
        return self.mode

    @property
    def panning_enabled(self):
        return self.mode is InteractionMode.MOVE

    def load_categories(self):
        self.selection = self.category_service.new_selection()
        self.categories = self.selection.categories
        return self.selection

    def drop_pin(self, lat, lng):
        """A map click in pin mode opens the spot form at that position."""
        if self.mode is not InteractionMode.PIN:
            return None
        self.draft_position = LatLng(lat, lng)
        if self.selection is None and self.category_service is not None:
            self.load_categories()
        elif self.selection is not None:
            self.selection.reset()
        return self.draft_position

    def cancel_form(self):
        self.draft_position = None
        if self.selection is not None:
            self.selection.reset()

    def submit_spot(self, name, description, is_public=True):
        if self.draft_position is None:
            raise MapSessionError("Drop a pin first")
        if self.selection is None or not self.selection.can_save:
            raise MapSessionError("Select a category and sub-category")

        data = {
            "name": name,
            "description": description,
            "lat": self.draft_position.lat,
            "lng": self.draft_position.lng,
            "category": self.selection.deepest,
            "isPublic": is_public,
            "tags": list(self.selection.selected_tags),
        }
        try:
            spot = self.spot_service.create_spot(data, self.identity)
        except PocketBaseError as e:
            self.error = e
            raise

        with self._lock:
            self.spots = self.spots + [spot]
            self.error = None
        self.cancel_form()
        self.mode = InteractionMode.MOVE
        self.center = LatLng(spot.lat, spot.lng)
        self.zoom = NEW_SPOT_ZOOM
        return spot

    # Owner/admin actions

    def set_visibility(self, spot_id, is_public):
        try:
            updated = self.spot_service.set_visibility(spot_id, is_public, self.identity)
        except PocketBaseError as e:
            self.error = e
            raise
        with self._lock:
            self.spots = [updated if spot.id == spot_id else spot for spot in self.spots]
            self.error = None
        return updated

    def delete_spot(self, spot_id):
        try:
            self.spot_service.delete_spot(spot_id, self.identity)
        except PocketBaseError as e:
            self.error = e
            raise
        with self._lock:
            self.spots = [spot for spot in self.spots if spot.id != spot_id]
            self.error = None
        return True

    def user_spots(self):
        return self.spot_service.get_user_spots(self.identity)

    def map_layer(self, now=None):
        return build_map_layer(self.spots, self.categories, self.zoom, now)
