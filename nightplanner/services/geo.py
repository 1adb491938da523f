"""
Geo Math
========
Great-circle distance and walking estimates, in miles.
Pure functions; the reference point comes from settings.
"""
import math

from ..config import settings

EARTH_RADIUS_MILES = 3958.8
WALKING_SPEED_MPH = 3.0


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    φ1, φ2 = math.radians(lat1), math.radians(lat2)
    dφ = math.radians(lat2 - lat1)
    dλ = math.radians(lng2 - lng1)
    a = math.sin(dφ / 2) ** 2 + math.cos(φ1) * math.cos(φ2) * math.sin(dλ / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def round_half_up(value: float) -> int:
    """Nearest integer with halves going up: 2.5 -> 3 (builtin round gives 2)."""
    return math.floor(value + 0.5)


def walking_minutes(miles: float) -> int:
    """Walking estimate at an average 3 mph."""
    return round_half_up(miles / WALKING_SPEED_MPH * 60)


def distance_from_reference(lat: float, lng: float) -> float:
    """Distance to the neighbourhood centre."""
    return haversine_miles(settings.reference_lat, settings.reference_lng, lat, lng)


def format_distance(miles: float) -> str:
    if miles < 0.1:
        return "Nearby"
    return f"{miles:.1f} mi"
