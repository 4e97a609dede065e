# voltmatch/core/geo.py
from math import radians, sin, cos, asin, sqrt

EARTH_RADIUS_KM = 6371.0

def haversine_km(lat1, lng1, lat2, lng2) -> float:
    dlat = radians(lat2 - lat1)
    dlng = radians(lng2 - lng1)
    a = sin(dlat/2)**2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlng/2)**2
    c = 2 * asin(sqrt(a))
    return EARTH_RADIUS_KM * c

def distance_km(a, b) -> float:
    """
    a, b: anything with .lat / .lng (e.g. schemas.LatLng)
    returns great-circle distance in km; coordinates are not range-checked
    """
    return haversine_km(a.lat, a.lng, b.lat, b.lng)
