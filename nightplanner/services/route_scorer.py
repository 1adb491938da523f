"""
Route Scorer
============
Composite per-venue score used when planning a night out:

  taste       0.35   TasteMatcher score
  vibe        0.30   energy / crowd / music fit for the venue type
  quality     0.20   rating / 5
  popularity  0.10   social posts naming the venue, capped at 50
  proximity   0.05   1 / (1 + miles from the neighbourhood centre)
"""
from typing import List, Optional

from ..schemas import MoodPreferences, ScoreBreakdown, ScoredVenue, SocialPost, UserTasteProfile, Venue
from .geo import distance_from_reference
from .taste_matcher import TasteMatcher

WEIGHTS = {
    "taste":      0.35,
    "vibe":       0.30,
    "quality":    0.20,
    "popularity": 0.10,
    "proximity":  0.05,
}

POPULARITY_CAP = 50

TYPE_PRIORITY = [
    "night_club", "bar", "cafe", "bakery",
    "restaurant", "meal_takeaway", "meal_delivery",
]

ENERGY_SCORES = {
    "chill": {
        "cafe": 1.0, "wine_bar": 1.0, "bakery": 1.0,
        "restaurant": 0.7, "bar": 0.5, "night_club": 0.2,
    },
    "social": {
        "bar": 1.0, "restaurant": 1.0, "cafe": 0.5,
        "night_club": 0.6, "bakery": 0.4,
    },
    "electric": {
        "night_club": 1.0, "bar": 1.0,
        "restaurant": 0.4, "cafe": 0.2, "bakery": 0.1,
    },
}

CROWD_SCORES = {
    "intimate": {
        "cafe": 1.0, "bakery": 0.9, "restaurant": 0.7,
        "bar": 0.4, "night_club": 0.1,
    },
    "mixed": {
        "restaurant": 1.0, "bar": 0.8, "cafe": 0.7,
        "night_club": 0.5, "bakery": 0.6,
    },
    "packed": {
        "night_club": 1.0, "bar": 0.9,
        "restaurant": 0.6, "cafe": 0.3, "bakery": 0.2,
    },
}

MUSIC_SCORES = {
    "none": {
        "cafe": 1.0, "restaurant": 0.9, "bakery": 1.0,
        "bar": 0.4, "night_club": 0.1,
    },
    "background": {
        "restaurant": 1.0, "bar": 0.8, "cafe": 0.7,
        "night_club": 0.4, "bakery": 0.6,
    },
    "dj": {
        "night_club": 1.0, "bar": 0.8,
        "restaurant": 0.3, "cafe": 0.1, "bakery": 0.1,
    },
}

NEUTRAL = 0.5


def primary_type(venue: Venue) -> str:
    """First provider type in priority order; 'restaurant' when none match."""
    for place_type in TYPE_PRIORITY:
        if place_type in venue.types:
            return place_type
    return "restaurant"


def vibe_match_score(venue: Venue, mood: MoodPreferences) -> float:
    """
    Average of the mood dimensions the user actually set.

    Wine bars are only distinguishable by name, and only the energy table
    knows about them.
    """
    place_type = primary_type(venue)
    name = (venue.name or "").lower()
    energy_type = "wine_bar" if ("wine" in name or "vino" in name) else place_type

    lookups = [
        (mood.energy, ENERGY_SCORES, energy_type),
        (mood.crowd,  CROWD_SCORES,  place_type),
        (mood.music,  MUSIC_SCORES,  place_type),
    ]
    parts = [
        table.get(pref, {}).get(key, NEUTRAL)
        for pref, table, key in lookups
        if pref
    ]
    return sum(parts) / len(parts) if parts else NEUTRAL


def post_count(venue: Venue, posts: List[SocialPost]) -> int:
    name = (venue.name or "").lower()
    if not name:
        return 0
    return sum(1 for p in posts if (p.restaurant or "").lower() == name)


class RouteScorer:

    def __init__(self, taste_matcher: Optional[TasteMatcher] = None):
        self.taste_matcher = taste_matcher or TasteMatcher()

    def score(
        self,
        venue: Venue,
        profile: UserTasteProfile,
        mood: MoodPreferences,
        posts: Optional[List[SocialPost]] = None,
    ) -> ScoreBreakdown:
        taste = self.taste_matcher.match_score(venue, profile)
        vibe_score = vibe_match_score(venue, mood)
        quality_score = (venue.rating or 0.0) / 5.0
        popularity_score = min(post_count(venue, posts or []) / POPULARITY_CAP, 1.0)

        if venue.location is not None:
            proximity_score = 1 / (1 + distance_from_reference(venue.lat, venue.lng))
        else:
            proximity_score = 0.0

        total = (
            taste.score * WEIGHTS["taste"]
            + vibe_score * WEIGHTS["vibe"]
            + quality_score * WEIGHTS["quality"]
            + popularity_score * WEIGHTS["popularity"]
            + proximity_score * WEIGHTS["proximity"]
        )

        return ScoreBreakdown(
            taste_score=taste.score,
            vibe_score=vibe_score,
            quality_score=quality_score,
            popularity_score=popularity_score,
            proximity_score=proximity_score,
            total_score=total,
            matched_tags=taste.matched_tags,
            tier=taste.tier,
        )

    def score_all(
        self,
        venues: List[Venue],
        profile: UserTasteProfile,
        mood: MoodPreferences,
        posts: Optional[List[SocialPost]] = None,
    ) -> List[ScoredVenue]:
        return [ScoredVenue(venue=v, score=self.score(v, profile, mood, posts)) for v in venues]
