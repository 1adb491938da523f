"""
Geocode Resolver
================
Resolves (restaurant, city) pairs from social posts to coordinates so posts
can be pinned on the map.

Lookup order per pair:
  1. in-process TTL cache
  2. durable geocode_cache table
  3. MapTool text search, at most ``provider_concurrency`` calls in flight

Fresh provider hits are written back to both caches. A failed lookup only
loses that pair.
"""
import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from ..config import settings
from ..database import SessionLocal
from ..models import GeocodeCacheEntry
from ..schemas import GeocodeResult, PlacePair
from .cache import TTLCache
from .map_tool import MapTool

logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 200


def make_slug(restaurant: str, city: str) -> str:
    """Deterministic cache key for a {restaurant, city} pair."""
    raw = re.sub(r"[^a-z0-9_]", "_", f"{restaurant}__{city}".lower())
    return raw[:MAX_SLUG_LENGTH]


class GeocodeResolver:

    def __init__(
        self,
        provider: Optional[MapTool] = None,
        session_factory: Callable = SessionLocal,
        memory_cache: Optional[TTLCache] = None,
        concurrency: Optional[int] = None,
    ):
        self.provider = provider or MapTool()
        self._session_factory = session_factory
        self.memory = memory_cache or TTLCache(
            settings.geocode_cache_ttl_seconds, key_fn=lambda slug: slug,
        )
        self.concurrency = concurrency or settings.provider_concurrency

    # ── Public interface ──────────────────────────────────────────────────────

    def resolve(self, pairs: List[PlacePair]) -> Dict[str, GeocodeResult]:
        """Resolve and persist in one go. Returns {slug: result} for hits only."""
        results, fresh = self.lookup(pairs)
        self.persist(fresh)
        return results

    def lookup(self, pairs: List[PlacePair]) -> Tuple[Dict[str, GeocodeResult], Dict[str, GeocodeResult]]:
        """
        Resolve without touching the durable cache's write path.

        Returns (all hits, provider-fresh hits); hand the latter to
        persist() whenever convenient.
        """
        unique: Dict[str, PlacePair] = {}
        for pair in pairs:
            if not pair.restaurant or not pair.city:
                continue
            unique.setdefault(make_slug(pair.restaurant, pair.city), pair)

        results: Dict[str, GeocodeResult] = {}
        misses: List[str] = []
        for slug in unique:
            cached = self.memory.get(slug)
            if cached is not None:
                results[slug] = cached
            else:
                misses.append(slug)

        if misses:
            for slug, hit in self._load_durable(misses).items():
                self.memory.set(slug, hit)
                results[slug] = hit

        api_misses = [slug for slug in misses if slug not in results]
        fresh: Dict[str, GeocodeResult] = {}
        if api_misses and self.provider.available:
            fresh = self._search_provider({slug: unique[slug] for slug in api_misses})
            for slug, hit in fresh.items():
                self.memory.set(slug, hit)
                results[slug] = hit

        return results, fresh

    def persist(self, fresh: Dict[str, GeocodeResult]) -> None:
        if not fresh:
            return
        db = self._session_factory()
        try:
            for slug, hit in fresh.items():
                db.merge(GeocodeCacheEntry(
                    slug=slug,
                    lat=hit.lat,
                    lng=hit.lng,
                    place_id=hit.place_id,
                    address=hit.address,
                ))
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Failed to write geocode cache: %s", exc)
        finally:
            db.close()

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _load_durable(self, slugs: List[str]) -> Dict[str, GeocodeResult]:
        db = self._session_factory()
        try:
            rows = db.query(GeocodeCacheEntry).filter(GeocodeCacheEntry.slug.in_(slugs)).all()
        except SQLAlchemyError as exc:
            logger.warning("Failed to read geocode cache: %s", exc)
            return {}
        finally:
            db.close()

        return {
            row.slug: GeocodeResult(lat=row.lat, lng=row.lng, place_id=row.place_id, address=row.address)
            for row in rows
            if row.lat is not None and row.lng is not None
        }

    def _search_provider(self, pending: Dict[str, PlacePair]) -> Dict[str, GeocodeResult]:
        found: Dict[str, GeocodeResult] = {}
        with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
            futures = {
                pool.submit(self.provider.text_search, f"{pair.restaurant}, {pair.city}"): slug
                for slug, pair in pending.items()
            }
            for future in as_completed(futures):
                slug = futures[future]
                try:
                    hit = future.result()
                except Exception as exc:
                    logger.warning("Geocode failed for %s: %s", pending[slug].restaurant, exc)
                    continue
                if hit is not None:
                    found[slug] = hit
        return found
