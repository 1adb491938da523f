"""
Map Tool
========
Google Maps wrapper for the pieces of the planner that need live data:
walking directions between stops, venue text search, and name → location
lookups for post pins.

Every call degrades to "unavailable" (None / []) when no API key is
configured or the request fails, so callers can keep their estimates.
"""
import logging
from typing import List, Optional

from ..config import settings
from ..schemas import GeocodeResult, LatLng, Venue, WalkingDirections
from .cache import TTLCache

logger = logging.getLogger(__name__)


class MapTool:
    """
    walking_directions(origin, destination) → WalkingDirections | None
    search_venues(query)                    → List[Venue]  (short-TTL cached)
    text_search(query)                      → GeocodeResult | None
    """

    def __init__(self, api_key: Optional[str] = None, search_cache: Optional[TTLCache] = None):
        self._gmaps = None
        key = settings.google_maps_api_key if api_key is None else api_key
        if key:
            try:
                import googlemaps
                self._gmaps = googlemaps.Client(key=key, timeout=settings.provider_timeout)
            except (ImportError, ValueError) as exc:
                logger.warning("Google Maps client unavailable: %s", exc)
        self._search_cache = search_cache or TTLCache(settings.venue_search_ttl_seconds)

    @property
    def available(self) -> bool:
        return self._gmaps is not None

    # ── Public interface ──────────────────────────────────────────────────────

    def walking_directions(self, origin: LatLng, destination: LatLng) -> Optional[WalkingDirections]:
        if not self._gmaps:
            return None

        try:
            routes = self._gmaps.directions(
                (origin.lat, origin.lng),
                (destination.lat, destination.lng),
                mode="walking",
            )
        except Exception as exc:
            logger.warning("Directions lookup failed: %s", exc)
            return None

        if not routes:
            return None

        try:
            return self._parse_directions(routes[0])
        except (KeyError, IndexError, TypeError) as exc:
            logger.warning("Unexpected directions payload: %s", exc)
            return None

    def search_venues(self, query: str) -> List[Venue]:
        cached = self._search_cache.get(query)
        if cached is not None:
            return cached

        results = self._places(query)
        if results is None:
            return []
        venues = [v for v in (self._to_venue(r) for r in results) if v is not None]
        self._search_cache.set(query, venues)
        return venues

    def text_search(self, query: str) -> Optional[GeocodeResult]:
        results = self._places(query)
        if not results:
            return None

        place = results[0]
        loc = place.get("geometry", {}).get("location", {})
        if not isinstance(loc.get("lat"), (int, float)) or not isinstance(loc.get("lng"), (int, float)):
            return None
        return GeocodeResult(
            lat=loc["lat"],
            lng=loc["lng"],
            place_id=place.get("place_id"),
            address=place.get("formatted_address"),
        )

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _places(self, query: str) -> Optional[List[dict]]:
        """Raw place results; None when the search could not be answered."""
        if not self._gmaps or not query:
            return None
        try:
            response = self._gmaps.places(query=query)
        except Exception as exc:
            logger.warning("Place search failed for %r: %s", query, exc)
            return None
        status = response.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status not in (None, "OK"):
            logger.warning("Place search for %r returned %s", query, status)
            return None
        return response.get("results", [])

    @staticmethod
    def _parse_directions(route: dict) -> WalkingDirections:
        from googlemaps.convert import decode_polyline

        leg = route["legs"][0]
        points = (route.get("overview_polyline") or {}).get("points")
        path = [LatLng(lat=p["lat"], lng=p["lng"]) for p in decode_polyline(points)] if points else []

        return WalkingDirections(
            distance_text=leg["distance"]["text"],
            duration_text=leg["duration"]["text"],
            distance_meters=leg["distance"].get("value"),
            duration_seconds=leg["duration"]["value"],
            polyline=points,
            path=path,
        )

    @staticmethod
    def _to_venue(place: dict) -> Optional[Venue]:
        loc = place.get("geometry", {}).get("location", {})
        place_id = place.get("place_id")
        if not place_id:
            return None
        photos = place.get("photos") or []
        return Venue(
            id=place_id,
            name=place.get("name", ""),
            lat=loc.get("lat"),
            lng=loc.get("lng"),
            types=place.get("types", []),
            rating=place.get("rating"),
            price_level=place.get("price_level"),
            address=place.get("vicinity") or place.get("formatted_address"),
            photo_ref=photos[0].get("photo_reference") if photos else None,
        )
