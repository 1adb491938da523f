"""
Route Composer – LangGraph pipeline
===================================
Pipeline:
  START
    └─► filter_candidates   (coordinates, name, rating ≥ 3.0)
          ├─[empty]─► END   (no route)
          └─► score_candidates  (RouteScorer)
                └─► select_stops    (StopSelector)
                      ├─[empty]─► END   (no route)
                      └─► sequence_stops  (RouteSequencer)
                            └─► assemble_route  (segments + totals)
                                  └─► END

A missing route is a normal outcome and comes back as ``None``.
enrich_with_directions() optionally swaps the walking estimates for real
directions afterwards.
"""
import logging
import random
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional, Sequence, TypedDict

from langgraph.graph import END, START, StateGraph

from ..config import settings
from ..schemas import (
    MoodPreferences,
    Route,
    ScoredVenue,
    Segment,
    SocialPost,
    Stop,
    StopPlace,
    TimedStop,
    UserTasteProfile,
    Venue,
)
from .geo import haversine_miles, round_half_up, walking_minutes
from .route_scorer import RouteScorer
from .route_sequencer import RouteSequencer
from .stop_selector import StopSelector

logger = logging.getLogger(__name__)

DISPLAY_CATEGORIES = ["restaurant", "bar", "cafe", "night_club", "bakery"]

ROUTE_NAMES = {
    "chill":    ["Chill Night Out", "Mellow Evening", "Easy Going Night"],
    "social":   ["Social Crawl", "Night with Friends", "Epic Night Out"],
    "electric": ["Electric Night", "Party Mode", "Late Night Crawl"],
}


def suggest_route_name(energy: Optional[str], rng: Optional[random.Random] = None) -> str:
    options = ROUTE_NAMES.get(energy or "", ROUTE_NAMES["social"])
    return (rng or random).choice(options)


def is_candidate(venue: Venue, min_rating: float) -> bool:
    if venue.location is None or not venue.name:
        return False
    return venue.rating is not None and venue.rating >= min_rating


# ── State definition ─────────────────────────────────────────────────────────

class RoutePlanningState(TypedDict, total=False):
    # Inputs
    venues: List[Venue]
    user_profile: UserTasteProfile
    preferences: MoodPreferences
    social_posts: List[SocialPost]
    specific_journey: bool
    stop_types: List[str]
    now: datetime

    # Pipeline data
    candidates: List[Venue]
    scored: List[ScoredVenue]
    selected: List[ScoredVenue]
    timed: List[TimedStop]

    # Output
    route: Optional[Route]
    status: str


# ── Composer ──────────────────────────────────────────────────────────────────

class RouteComposer:
    """
    Builds a walkable multi-stop route from candidate venues.

    generate_route()         – run the pipeline, Route or None
    enrich_with_directions() – replace segment estimates with provider data
    """

    def __init__(
        self,
        scorer: Optional[RouteScorer] = None,
        selector: Optional[StopSelector] = None,
        sequencer: Optional[RouteSequencer] = None,
        min_rating: Optional[float] = None,
    ):
        self.scorer = scorer or RouteScorer()
        self.selector = selector or StopSelector()
        self.sequencer = sequencer or RouteSequencer()
        self.min_rating = settings.min_venue_rating if min_rating is None else min_rating
        self.graph = self._build_graph()

    # ── Graph construction ────────────────────────────────────────────────────

    def _build_graph(self):
        wf = StateGraph(RoutePlanningState)

        wf.add_node("filter_candidates", self._filter_candidates)
        wf.add_node("score_candidates",  self._score_candidates)
        wf.add_node("select_stops",      self._select_stops)
        wf.add_node("sequence_stops",    self._sequence_stops)
        wf.add_node("assemble_route",    self._assemble_route)

        wf.add_edge(START, "filter_candidates")
        wf.add_conditional_edges(
            "filter_candidates",
            self._has_candidates,
            {"ok": "score_candidates", "empty": END},
        )
        wf.add_edge("score_candidates", "select_stops")
        wf.add_conditional_edges(
            "select_stops",
            self._has_stops,
            {"ok": "sequence_stops", "empty": END},
        )
        wf.add_edge("sequence_stops", "assemble_route")
        wf.add_edge("assemble_route", END)

        return wf.compile()

    # ── Node implementations ──────────────────────────────────────────────────

    def _filter_candidates(self, state: RoutePlanningState) -> dict:
        candidates = [v for v in state["venues"] if is_candidate(v, self.min_rating)]
        return {
            "candidates": candidates,
            "status": "filtered" if candidates else "no_candidates",
        }

    def _score_candidates(self, state: RoutePlanningState) -> dict:
        scored = self.scorer.score_all(
            state["candidates"],
            state["user_profile"],
            state["preferences"],
            state.get("social_posts", []),
        )
        return {"scored": scored, "status": "scored"}

    def _select_stops(self, state: RoutePlanningState) -> dict:
        selected = self.selector.select(
            state["scored"],
            number_of_stops=state["preferences"].number_of_stops,
            specific_journey=state.get("specific_journey", False),
            stop_types=state.get("stop_types", []),
        )
        return {
            "selected": selected,
            "status": "selected" if selected else "no_stops",
        }

    def _sequence_stops(self, state: RoutePlanningState) -> dict:
        timed = self.sequencer.sequence(state["selected"], state["now"])
        return {"timed": timed, "status": "sequenced"}

    def _assemble_route(self, state: RoutePlanningState) -> dict:
        timed = state["timed"]
        stops = [self._to_stop(ts) for ts in timed]

        segments: List[Segment] = []
        for a, b in zip(stops, stops[1:]):
            miles = haversine_miles(
                a.place.location.lat, a.place.location.lng,
                b.place.location.lat, b.place.location.lng,
            )
            minutes = walking_minutes(miles)
            segments.append(Segment(
                from_stop=a.order,
                to_stop=b.order,
                distance=f"{miles:.1f} mi",
                duration=f"{minutes} min",
                distance_miles=miles,
                duration_minutes=minutes,
                from_location=a.place.location,
                to_location=b.place.location,
            ))

        preferences = state["preferences"]
        route = self._with_totals(
            stops=stops,
            segments=segments,
            preferences=preferences,
            name=suggest_route_name(preferences.energy),
        )
        return {"route": route, "status": "completed"}

    # ── Routing decisions ─────────────────────────────────────────────────────

    @staticmethod
    def _has_candidates(state: RoutePlanningState) -> str:
        return "ok" if state.get("candidates") else "empty"

    @staticmethod
    def _has_stops(state: RoutePlanningState) -> str:
        return "ok" if state.get("selected") else "empty"

    # ── Public entry points ───────────────────────────────────────────────────

    def generate_route(
        self,
        venues: Sequence[Venue],
        user_profile: Optional[UserTasteProfile] = None,
        preferences: Optional[MoodPreferences] = None,
        social_posts: Optional[Sequence[SocialPost]] = None,
        specific_journey: bool = False,
        stop_types: Optional[Sequence[str]] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Route]:
        """
        Run the planning pipeline.

        Returns None when no venue survives filtering or no stop could be
        selected; callers decide how to word that for the user.
        """
        preferences = preferences or MoodPreferences()
        if stop_types is None:
            stop_types = preferences.stop_types

        initial: RoutePlanningState = {
            "venues":           list(venues),
            "user_profile":     user_profile or UserTasteProfile(),
            "preferences":      preferences,
            "social_posts":     list(social_posts or []),
            "specific_journey": specific_journey,
            "stop_types":       [getattr(t, "value", t) for t in stop_types],
            "now":              now or datetime.now(),
            "route":            None,
            "status":           "pending",
        }

        result = self.graph.invoke(initial)
        route = result.get("route")
        if route is None:
            logger.info("No route generated (%s) from %d venues", result.get("status"), len(initial["venues"]))
        else:
            logger.info(
                "Generated %d-stop route covering %.1f miles",
                len(route.stops), route.total_distance_miles,
            )
        return route

    def enrich_with_directions(self, route: Route, provider) -> Route:
        """
        Replace haversine estimates with walking directions, per segment.

        ``provider`` needs ``walking_directions(origin, destination)``
        returning WalkingDirections or None. Any segment whose lookup fails
        keeps its estimate. Totals are recomputed from the final segments.
        """
        if not route.segments or provider is None:
            return route

        workers = max(1, min(settings.provider_concurrency, len(route.segments)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            segments = list(pool.map(lambda seg: self._enrich_segment(seg, provider), route.segments))

        return self._with_totals(
            stops=route.stops,
            segments=segments,
            preferences=route.preferences,
            name=route.name,
        )

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _enrich_segment(segment: Segment, provider) -> Segment:
        try:
            directions = provider.walking_directions(segment.from_location, segment.to_location)
        except Exception as exc:
            logger.warning(
                "Directions unavailable for segment %d→%d: %s",
                segment.from_stop, segment.to_stop, exc,
            )
            return segment
        if directions is None:
            return segment

        miles = (
            directions.distance_meters / 1609.344
            if directions.distance_meters is not None
            else segment.distance_miles
        )
        return segment.model_copy(update={
            "distance":         directions.distance_text,
            "duration":         directions.duration_text,
            "distance_miles":   miles,
            "duration_minutes": round_half_up(directions.duration_seconds / 60),
            "polyline":         directions.polyline,
            "path":             directions.path,
            "source":           "directions",
        })

    @staticmethod
    def _to_stop(timed: TimedStop) -> Stop:
        venue = timed.scored.venue
        category = next((t for t in venue.types if t in DISPLAY_CATEGORIES), "restaurant")
        return Stop(
            order=timed.order,
            place=StopPlace(
                place_id=venue.id,
                name=venue.name,
                address=venue.address or "",
                location=venue.location,
                category=category,
                price_level=venue.price_level or None,
                rating=venue.rating,
                photo_ref=venue.photo_ref,
            ),
            planned_time=timed.planned_time,
            estimated_duration=timed.estimated_duration,
            score=timed.scored.score,
        )

    @staticmethod
    def _with_totals(
        stops: List[Stop],
        segments: List[Segment],
        preferences: MoodPreferences,
        name: Optional[str],
    ) -> Route:
        total_miles = sum(s.distance_miles for s in segments)
        total_walk = sum(s.duration_minutes for s in segments)
        total_stay = sum(s.estimated_duration for s in stops)
        total_hours = round_half_up((total_stay + total_walk) / 6) / 10

        return Route(
            name=name,
            stops=stops,
            segments=segments,
            total_distance=f"{total_miles:.1f} miles",
            total_walking_time=f"{total_walk} min",
            estimated_total_time=f"~{total_hours} hours",
            total_distance_miles=total_miles,
            total_walking_minutes=total_walk,
            estimated_total_hours=total_hours,
            preferences=preferences,
        )
