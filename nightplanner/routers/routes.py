"""
Routes Router
=============
POST /api/v1/routes          – build a night-out route from candidate venues
POST /api/v1/routes/enrich   – swap walking estimates for real directions
"""
import logging

from fastapi import APIRouter, Depends

from ..schemas import EnrichRequest, Route, RouteRequest, RouteResponse
from ..services.route_composer import RouteComposer
from ..tools.map_tool import MapTool

logger = logging.getLogger(__name__)

router = APIRouter()

NO_ROUTE_MESSAGE = "Couldn't find enough places for a route. Try adjusting your preferences."

_composer = None
_map_tool = None


# ── Dependencies ──────────────────────────────────────────────────────────────

def get_composer() -> RouteComposer:
    global _composer
    if _composer is None:
        _composer = RouteComposer()
    return _composer


def get_map_tool() -> MapTool:
    global _map_tool
    if _map_tool is None:
        _map_tool = MapTool()
    return _map_tool


# ── Endpoints ─────────────────────────────────────────────────────────────────

@router.post("/routes", response_model=RouteResponse)
def create_route(
    request: RouteRequest,
    composer: RouteComposer = Depends(get_composer),
    map_tool: MapTool = Depends(get_map_tool),
):
    """
    Score, pick and order stops for a walkable evening.

    An empty or poorly rated venue pool is not an error: the response comes
    back with ``status="no_route"`` and a hint for the user.
    """
    route = composer.generate_route(
        venues           = request.venues,
        user_profile     = request.user_profile,
        preferences      = request.preferences,
        social_posts     = request.social_posts,
        specific_journey = request.specific_journey,
        stop_types       = request.stop_types or None,
    )
    if route is None:
        return RouteResponse(status="no_route", message=NO_ROUTE_MESSAGE)

    if request.enrich:
        route = composer.enrich_with_directions(route, map_tool)

    return RouteResponse(
        status  = "ok",
        message = f"{route.name}: {len(route.stops)} stops, {route.total_distance} on foot.",
        route   = route,
    )


@router.post("/routes/enrich", response_model=Route)
def enrich_route(
    request: EnrichRequest,
    composer: RouteComposer = Depends(get_composer),
    map_tool: MapTool = Depends(get_map_tool),
):
    """Segments the provider can't answer for keep their estimates."""
    if not map_tool.available:
        logger.debug("Directions provider not configured; returning estimates")
    return composer.enrich_with_directions(request.route, map_tool)
