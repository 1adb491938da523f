"""
Map Router
==========
POST /api/v1/map/venues    – taste-matched venue pins, clustered for a zoom
POST /api/v1/map/posts     – social post pins, clustered for a zoom
POST /api/v1/map/geocode   – (restaurant, city) pairs → coordinates
"""
from fastapi import APIRouter, BackgroundTasks, Depends

from ..schemas import (
    GeocodeRequest,
    GeocodeResponse,
    PostMapRequest,
    PostMapResponse,
    VenueMapRequest,
    VenueMapResponse,
)
from ..services.spatial_clusterer import SpatialClusterer
from ..services.taste_matcher import TasteMatcher
from ..tools.geocode_resolver import GeocodeResolver, make_slug
from .routes import get_map_tool

router = APIRouter()

_matcher = TasteMatcher()
_clusterer = SpatialClusterer()
_resolver = None


def get_resolver(map_tool=Depends(get_map_tool)) -> GeocodeResolver:
    global _resolver
    if _resolver is None:
        _resolver = GeocodeResolver(provider=map_tool)
    return _resolver


@router.post("/map/venues", response_model=VenueMapResponse)
def venue_map(request: VenueMapRequest):
    matched = _matcher.match_venues(request.venues, request.user_profile)
    clusters = _clusterer.cluster_venues(matched, request.zoom)
    return VenueMapResponse(clusters=clusters, total_venues=len(matched))


@router.post("/map/posts", response_model=PostMapResponse)
def post_map(request: PostMapRequest):
    clusters = _clusterer.cluster_posts(request.posts, request.zoom)
    return PostMapResponse(clusters=clusters, total_posts=len(request.posts))


@router.post("/map/geocode", response_model=GeocodeResponse)
def geocode_posts(
    request: GeocodeRequest,
    background_tasks: BackgroundTasks,
    resolver: GeocodeResolver = Depends(get_resolver),
):
    """
    Resolve post locations. Provider hits are returned straight away and
    written to the durable cache after the response is sent.
    """
    results, fresh = resolver.lookup(request.pairs)
    background_tasks.add_task(resolver.persist, fresh)

    requested = []
    for pair in request.pairs:
        if not pair.restaurant or not pair.city:
            continue
        slug = make_slug(pair.restaurant, pair.city)
        if slug not in requested:
            requested.append(slug)

    return GeocodeResponse(
        results    = results,
        unresolved = [slug for slug in requested if slug not in results],
    )
