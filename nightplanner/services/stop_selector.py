"""
Stop Selector
=============
Picks the venues for a route from scored candidates.

select_diverse()  – greedy, walkable, rewards new cuisines and venue types
select_specific() – one best venue per requested stop type, in order
"""
from typing import List, Optional, Sequence, Tuple

from ..config import settings
from ..schemas import ScoredVenue, Venue
from .geo import haversine_miles
from .route_scorer import primary_type

STOP_TYPE_PLACE_TYPES = {
    "dinner":  ["restaurant", "meal_takeaway"],
    "drinks":  ["bar", "night_club"],
    "dessert": ["bakery", "cafe"],
    "coffee":  ["cafe"],
}

# Coarse cuisine groups used only to diversify a route
CUISINE_KEYWORDS: List[Tuple[Tuple[str, ...], str]] = [
    (("sushi", "japanese", "ramen"), "japanese"),
    (("taco", "mexican", "cantina", "taqueria"), "mexican"),
    (("pizza", "italian", "trattoria"), "italian"),
    (("thai", "chinese", "vietnamese", "pho", "korean", "wok"), "asian"),
    (("burger",), "burger"),
    (("seafood", "fish", "oyster", "crab"), "seafood"),
    (("bbq", "barbecue", "smokehouse"), "bbq"),
    (("indian", "curry"), "indian"),
    (("coffee", "espresso", "cafe", "latte"), "coffee"),
    (("dessert", "ice cream", "donut", "cake", "sweet", "bakery"), "dessert"),
    (("brewery", "beer", "taphouse", "ale", "pub"), "brewery"),
    (("cocktail", "martini", "lounge", "speakeasy"), "cocktail_bar"),
    (("wine", "vino"), "wine_bar"),
]

NEW_CUISINE_BONUS = 0.15
NEW_TYPE_BONUS = 0.10


def cuisine_category(venue: Venue) -> str:
    """Keyword group from the venue name, else its primary provider type."""
    name = (venue.name or "").lower()
    for keywords, category in CUISINE_KEYWORDS:
        if any(kw in name for kw in keywords):
            return category
    return primary_type(venue)


def _within(a: Venue, b: Venue, radius: float) -> bool:
    """Walkable check; venues without coordinates are never in range."""
    if a.location is None or b.location is None:
        return False
    return haversine_miles(a.lat, a.lng, b.lat, b.lng) <= radius


class StopSelector:

    def __init__(self, walkable_radius_miles: Optional[float] = None):
        self.walkable_radius = (
            walkable_radius_miles if walkable_radius_miles is not None
            else settings.walkable_radius_miles
        )

    # ── Public interface ──────────────────────────────────────────────────────

    def select(
        self,
        scored: Sequence[ScoredVenue],
        number_of_stops: int = 3,
        specific_journey: bool = False,
        stop_types: Optional[Sequence[str]] = None,
    ) -> List[ScoredVenue]:
        if specific_journey and stop_types:
            return self.select_specific(scored, stop_types)
        return self.select_diverse(scored, number_of_stops)

    def select_specific(self, scored: Sequence[ScoredVenue], stop_types: Sequence[str]) -> List[ScoredVenue]:
        """
        Best remaining venue per requested stop type. A stop type with no
        eligible venue is skipped, so the route may come out shorter.
        """
        ranked = self._ranked(scored)
        chosen: List[int] = []

        for stop_type in stop_types:
            key = getattr(stop_type, "value", stop_type)
            allowed = STOP_TYPE_PLACE_TYPES.get(key, ["restaurant"])
            for idx, candidate in ranked:
                if idx in chosen:
                    continue
                if primary_type(candidate.venue) in allowed:
                    chosen.append(idx)
                    break

        by_index = dict(ranked)
        return [by_index[i] for i in chosen]

    def select_diverse(self, scored: Sequence[ScoredVenue], number_of_stops: int) -> List[ScoredVenue]:
        """
        Greedy walkable selection.

        Each next stop must be within walking range of the previous one and
        earns a bonus for a new cuisine group (+0.15) or venue type (+0.10).
        With nothing in range, the first unseen cuisine wins; failing that,
        the next best score. Always returns min(n, len(scored)) stops.
        """
        ranked = self._ranked(scored)
        if not ranked or number_of_stops <= 0:
            return []
        if len(ranked) <= number_of_stops:
            return [s for _, s in ranked]

        selected: List[Tuple[int, ScoredVenue]] = [ranked[0]]

        while len(selected) < number_of_stops:
            taken = {idx for idx, _ in selected}
            remaining = [(idx, s) for idx, s in ranked if idx not in taken]
            prev = selected[-1][1].venue
            seen_cuisines = {cuisine_category(s.venue) for _, s in selected}
            seen_types = {primary_type(s.venue) for _, s in selected}

            pick = None
            best = -1.0
            for idx, candidate in remaining:
                if not _within(prev, candidate.venue, self.walkable_radius):
                    continue
                bonus = 0.0
                if cuisine_category(candidate.venue) not in seen_cuisines:
                    bonus += NEW_CUISINE_BONUS
                if primary_type(candidate.venue) not in seen_types:
                    bonus += NEW_TYPE_BONUS
                adjusted = candidate.score.total_score + bonus
                if adjusted > best:
                    best = adjusted
                    pick = (idx, candidate)

            if pick is None:
                pick = next(
                    ((idx, s) for idx, s in remaining
                     if cuisine_category(s.venue) not in seen_cuisines),
                    None,
                )
            if pick is None:
                pick = remaining[0]

            selected.append(pick)

        return [s for _, s in selected]

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _ranked(scored: Sequence[ScoredVenue]) -> List[Tuple[int, ScoredVenue]]:
        """(original index, venue) pairs, best total score first; stable on ties."""
        return sorted(enumerate(scored), key=lambda pair: pair[1].score.total_score, reverse=True)
