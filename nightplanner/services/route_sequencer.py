"""
Route Sequencer
===============
Orders the chosen stops for a natural evening flow, shortens the walk
between them, and schedules arrival times.
"""
from datetime import datetime, timedelta
from itertools import permutations
from typing import List, Optional, Sequence

from ..config import settings
from ..schemas import ScoredVenue, TimedStop
from .geo import haversine_miles
from .route_scorer import primary_type

# Brute force is only affordable for tiny routes (n! orderings)
MAX_PERMUTATION_STOPS = 4

START_DELAY_MINUTES = 15
MEAL_STAY_MINUTES = 90
DEFAULT_STAY_MINUTES = 60
MEAL_TYPES = ("restaurant", "meal_takeaway")

AFTERNOON_ORDER = ["cafe", "bakery", "restaurant", "meal_takeaway", "bar", "night_club"]
EVENING_ORDER = ["restaurant", "meal_takeaway", "cafe", "bakery", "bar", "night_club"]
LATE_ORDER = ["bar", "restaurant", "meal_takeaway", "cafe", "bakery", "night_club"]

UNRANKED = 99


def type_order_for_hour(hour: int) -> List[str]:
    if hour < 17:
        return AFTERNOON_ORDER
    if hour < 21:
        return EVENING_ORDER
    return LATE_ORDER


def path_miles(stops: Sequence[ScoredVenue]) -> float:
    return sum(
        haversine_miles(a.venue.lat, a.venue.lng, b.venue.lat, b.venue.lng)
        for a, b in zip(stops, stops[1:])
    )


def format_clock(moment: datetime) -> str:
    """12-hour clock without a leading zero, e.g. '7:05 PM'."""
    return moment.strftime("%I:%M %p").lstrip("0")


class RouteSequencer:
    """
    order()  – time-of-day type ranking, then the shortest walking order
    timing() – arrival times and stay durations

    With ``preserve_type_order`` the distance search only reorders stops
    that share a rank, so e.g. dinner always comes before drinks in the
    evening. Without it (the default) distance has the final say.
    """

    def __init__(self, preserve_type_order: Optional[bool] = None):
        self.preserve_type_order = (
            preserve_type_order if preserve_type_order is not None
            else settings.preserve_type_order
        )

    # ── Public interface ──────────────────────────────────────────────────────

    def sequence(self, stops: Sequence[ScoredVenue], now: Optional[datetime] = None) -> List[TimedStop]:
        now = now or datetime.now()
        return self.timing(self.order(stops, now), now)

    def order(self, stops: Sequence[ScoredVenue], now: Optional[datetime] = None) -> List[ScoredVenue]:
        if len(stops) <= 1:
            return list(stops)

        now = now or datetime.now()
        type_order = type_order_for_hour(now.hour)
        ranked = sorted(stops, key=lambda s: self._rank(s, type_order))
        return self._minimize_walking(ranked, type_order)

    def timing(self, stops: Sequence[ScoredVenue], now: Optional[datetime] = None) -> List[TimedStop]:
        clock = (now or datetime.now()) + timedelta(minutes=START_DELAY_MINUTES)
        timed: List[TimedStop] = []

        for index, stop in enumerate(stops):
            duration = (
                MEAL_STAY_MINUTES if primary_type(stop.venue) in MEAL_TYPES
                else DEFAULT_STAY_MINUTES
            )
            timed.append(TimedStop(
                scored=stop,
                order=index + 1,
                planned_time=format_clock(clock),
                estimated_duration=duration,
            ))
            clock += timedelta(minutes=duration)

        return timed

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _rank(stop: ScoredVenue, type_order: List[str]) -> int:
        place_type = primary_type(stop.venue)
        return type_order.index(place_type) if place_type in type_order else UNRANKED

    def _minimize_walking(self, ranked: List[ScoredVenue], type_order: List[str]) -> List[ScoredVenue]:
        """
        Try every ordering of the rank-sorted stops and keep the shortest
        walk. The rank-sorted order is the first candidate, so ties keep it
        and the result is never longer than the input.
        """
        # Two stops walk the same distance either way round
        if len(ranked) <= 2 or len(ranked) > MAX_PERMUTATION_STOPS:
            return ranked

        candidates = permutations(ranked)
        if self.preserve_type_order:
            candidates = (
                p for p in candidates
                if all(self._rank(a, type_order) <= self._rank(b, type_order) for a, b in zip(p, p[1:]))
            )

        best = min(candidates, key=path_miles)
        return list(best)
