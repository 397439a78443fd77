import re
from typing import Optional, Tuple

MIN_MAP_ZOOM = 6
MAX_MAP_ZOOM = 18

RECORD_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]{1,64}$')


def validate_email_format(email: str) -> bool:
    """Validate email format."""
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_password_strength(password: str) -> Tuple[bool, str]:
    """PocketBase rejects auth passwords shorter than 8 characters."""
    if not password:
        return False, "Password is required"

    if len(password) < 8:
        return False, "Password must be at least 8 characters long"

    return True, "Password is valid"


def validate_record_id(record_id: str) -> bool:
    """Ids are interpolated into filter expressions, so keep them to a safe alphabet."""
    return isinstance(record_id, str) and bool(RECORD_ID_PATTERN.match(record_id))


def validate_coordinates(lat, lng) -> Tuple[bool, str]:
    """Validate a latitude/longitude pair in degrees."""
    if lat is None or lng is None:
        return False, "lat and lng are required"

    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        return False, "lat and lng must be numbers"

    if not (-90 <= lat <= 90):
        return False, "lat must be between -90 and 90"
    if not (-180 <= lng <= 180):
        return False, "lng must be between -180 and 180"

    return True, "Coordinates are valid"


def validate_bounds(ne_lat, ne_lng, sw_lat, sw_lng) -> Tuple[bool, str]:
    """Validate a northeast/southwest corner pair."""
    for lat, lng in ((ne_lat, ne_lng), (sw_lat, sw_lng)):
        valid, message = validate_coordinates(lat, lng)
        if not valid:
            return False, message

    if float(sw_lat) > float(ne_lat):
        return False, "southwest corner must not be north of the northeast corner"
    if float(sw_lng) > float(ne_lng):
        return False, "southwest corner must not be east of the northeast corner"

    return True, "Bounds are valid"


def clamp_zoom(zoom: Optional[float], default: int = 13) -> int:
    """Clamp a zoom level to the range the map allows."""
    if zoom is None:
        zoom = default
    return int(max(MIN_MAP_ZOOM, min(MAX_MAP_ZOOM, zoom)))


def validate_spot_payload(data: dict) -> Tuple[bool, str]:
    """Validate the fields needed to create a spot."""
    if not data:
        return False, "Spot data is required"

    name = (data.get('name') or '').strip()
    if not name:
        return False, "Please enter a name"

    if not (data.get('description') or '').strip():
        return False, "Please enter a description"

    valid, message = validate_coordinates(data.get('lat'), data.get('lng'))
    if not valid:
        return False, message

    category = data.get('category')
    if not category or not validate_record_id(category):
        return False, "Please select a category"

    tags = data.get('tags') or []
    if not isinstance(tags, list) or not all(validate_record_id(tag) for tag in tags):
        return False, "tags must be a list of tag ids"

    if 'isPublic' in data and not isinstance(data['isPublic'], bool):
        return False, "isPublic must be true or false"

    return True, "Spot is valid"
