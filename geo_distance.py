import math

from geohash_errors import RangeError

EARTH_RADIUS = 6371393  # mean radius, meters


def _check_point(lat: float, lon: float) -> None:
    if not abs(lat) <= 90:
        raise RangeError("latitude", lat, 90)
    if not abs(lon) <= 180:
        raise RangeError("longitude", lon, 180)


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points given in degrees."""
    _check_point(lat1, lon1)
    _check_point(lat2, lon2)

    rad_lat1 = math.radians(lat1)
    rad_lat2 = math.radians(lat2)
    dlat = abs(rad_lat1 - rad_lat2)
    dlon = math.radians(lon1) - math.radians(lon2)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(rad_lat1) * math.cos(rad_lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a just past 1 for antipodal points
    a = min(a, 1.0)
    return 2 * EARTH_RADIUS * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Like haversine, but returns -1 instead of raising on out-of-range input."""
    try:
        return haversine(lat1, lon1, lat2, lon2)
    except RangeError:
        return -1
