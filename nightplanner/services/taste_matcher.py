"""
Taste Matcher
=============
Scores a venue against a user's taste profile for map pins and route
planning. Venue tags are inferred from provider types and name keywords,
then compared with the user's food and vibe tokens.
"""
from typing import Iterable, List, Set, Tuple

from ..schemas import MatchedVenue, TasteMatch, UserTasteProfile, Venue

# Provider place types → taste tokens
TYPE_TO_TOKENS = {
    "restaurant":    ["comfort_food"],
    "bar":           ["craft_cocktails", "craft_beer", "wine", "margaritas"],
    "cafe":          ["coffee", "espresso_martini"],
    "bakery":        ["desserts"],
    "night_club":    ["late_night", "craft_cocktails"],
    "meal_takeaway": ["cheap_eats", "street_food"],
    "meal_delivery": ["cheap_eats"],
}

# (keyword, token) pairs matched against the lower-cased venue name, in order
KEYWORD_TOKENS: List[Tuple[str, str]] = [
    ("sushi", "sushi"),
    ("japanese", "sushi"),
    ("ramen", "ramen"),
    ("taco", "tacos"),
    ("mexican", "tacos"),
    ("cantina", "tacos"),
    ("taqueria", "tacos"),
    ("pizza", "pizza"),
    ("italian", "pizza"),
    ("trattoria", "pizza"),
    ("bbq", "bbq"),
    ("barbecue", "bbq"),
    ("smokehouse", "bbq"),
    ("seafood", "seafood"),
    ("fish", "seafood"),
    ("oyster", "seafood"),
    ("crab", "seafood"),
    ("lobster", "seafood"),
    ("burger", "burgers"),
    ("brunch", "brunch"),
    ("breakfast", "brunch"),
    ("pancake", "brunch"),
    ("waffle", "brunch"),
    ("dessert", "desserts"),
    ("bakery", "desserts"),
    ("ice cream", "desserts"),
    ("donut", "desserts"),
    ("cake", "desserts"),
    ("sweet", "desserts"),
    ("coffee", "coffee"),
    ("espresso", "coffee"),
    ("latte", "coffee"),
    ("cafe", "coffee"),
    ("tea", "coffee"),
    ("boba", "boba"),
    ("matcha", "boba"),
    ("thai", "street_food"),
    ("chinese", "street_food"),
    ("vietnamese", "street_food"),
    ("pho", "street_food"),
    ("indian", "street_food"),
    ("curry", "street_food"),
    ("korean", "street_food"),
    ("noodle", "street_food"),
    ("wok", "street_food"),
    ("dim sum", "street_food"),
    ("fine dining", "fine_dining"),
    ("steakhouse", "fine_dining"),
    ("wine", "wine"),
    ("vino", "wine"),
    ("vineyard", "wine"),
    ("beer", "craft_beer"),
    ("brewery", "craft_beer"),
    ("taphouse", "craft_beer"),
    ("pub", "craft_beer"),
    ("ale", "craft_beer"),
    ("cocktail", "craft_cocktails"),
    ("martini", "craft_cocktails"),
    ("mixology", "craft_cocktails"),
    ("dive", "dive_bar"),
    ("rooftop", "rooftop"),
    ("lounge", "speakeasy"),
    ("speakeasy", "speakeasy"),
    ("patio", "outdoor_patio"),
    ("garden", "outdoor_patio"),
]

VIBE_TOKENS = frozenset({
    "dive_bar", "rooftop", "date_night", "late_night", "laptop_friendly",
    "speakeasy", "outdoor_patio", "cozy", "trendy", "live_music",
    "family_friendly", "sports_bar", "pet_friendly",
})

FOOD_TOKENS = frozenset({
    "sushi", "brunch", "cheap_eats", "pizza", "tacos", "ramen", "bbq",
    "seafood", "burgers", "street_food", "fine_dining", "comfort_food",
    "desserts", "espresso_martini", "craft_cocktails", "craft_beer",
    "wine", "coffee", "boba", "margaritas", "mocktails", "natural_wine",
})

WEIGHTS = {"cuisine": 0.4, "vibe": 0.3, "price": 0.2, "dietary": 0.1}

PERFECT_THRESHOLD = 0.8
GOOD_THRESHOLD = 0.5


def overlap(a: Iterable[str], b: Iterable[str]) -> float:
    """
    Overlap coefficient: |A ∩ B| / min(|A|, |B|).

    More forgiving than Jaccard when one side is small:
    overlap({tacos}, {tacos, sushi, coffee}) == 1.0
    """
    set_a, set_b = set(a), set(b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / min(len(set_a), len(set_b))


def extract_venue_tags(venue: Venue) -> Tuple[List[str], List[str]]:
    """
    Infer (cuisine_tags, vibe_tags) for a venue.

    Tags come from provider types first, then from every matching name
    keyword. Each list keeps first-seen order and holds no duplicates.
    """
    cuisine: List[str] = []
    vibe: List[str] = []

    def add(token: str) -> None:
        bucket = vibe if token in VIBE_TOKENS else cuisine
        if token not in bucket:
            bucket.append(token)

    for place_type in venue.types:
        for token in TYPE_TO_TOKENS.get(place_type, []):
            add(token)

    name = (venue.name or "").lower()
    for keyword, token in KEYWORD_TOKENS:
        if keyword in name:
            add(token)

    return cuisine, vibe


def tier_for(score: float) -> str:
    if score >= PERFECT_THRESHOLD:
        return "perfect"
    if score >= GOOD_THRESHOLD:
        return "good"
    return "other"


def format_token(token: str) -> str:
    """'craft_cocktails' → 'Craft Cocktails'; price symbols pass through."""
    if token.startswith("$"):
        return token
    return token.replace("_", " ").title()


class TasteMatcher:
    """
    Weighted taste model:

      cuisine overlap  0.4
      vibe overlap     0.3   (neutral 0.5 when the user picked no vibes)
      price fit        0.2
      dietary fit      0.1

    Direct hits (tokens the user picked that the venue also carries) put a
    floor under the score so obvious matches always surface.
    """

    # ── Public interface ──────────────────────────────────────────────────────

    def match_score(self, venue: Venue, profile: UserTasteProfile) -> TasteMatch:
        if not profile or not profile.taste_prefs:
            return TasteMatch(score=0.0, matched_tags=[], tier="other")

        prefs = set(profile.taste_prefs)
        user_food = prefs & FOOD_TOKENS
        user_vibe = prefs & VIBE_TOKENS

        cuisine_tags, vibe_tags = extract_venue_tags(venue)

        cuisine_match = overlap(cuisine_tags, user_food)
        vibe_match = 0.5 if not user_vibe else overlap(vibe_tags, user_vibe)
        price_match = self._price_match(venue, profile.fine_tune.price_range)
        dietary_match = self._dietary_match(venue, profile.fine_tune.avoid_tags)

        score = (
            cuisine_match * WEIGHTS["cuisine"]
            + vibe_match * WEIGHTS["vibe"]
            + price_match * WEIGHTS["price"]
            + dietary_match * WEIGHTS["dietary"]
        )

        direct_hits = [t for t in cuisine_tags + vibe_tags if t in prefs]
        if len(direct_hits) >= 2:
            score = max(score, 0.85)
        elif len(direct_hits) == 1:
            score = max(score, 0.6)

        matched_tags = list(direct_hits)
        if price_match == 1.0 and venue.price_level:
            matched_tags.append("$" * venue.price_level)

        score = min(max(score, 0.0), 1.0)
        return TasteMatch(score=score, matched_tags=matched_tags, tier=tier_for(score))

    def match_venues(self, venues: List[Venue], profile: UserTasteProfile) -> List[MatchedVenue]:
        """Annotate every venue with its match, for map pins."""
        return [MatchedVenue(venue=v, match=self.match_score(v, profile)) for v in venues]

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _price_match(venue: Venue, price_range: List[str]) -> float:
        user_tiers: Set[int] = {len(p) for p in price_range if p}
        if not user_tiers:
            return 0.5
        if not venue.price_level:
            return 0.5   # no price data: benefit of the doubt

        if venue.price_level in user_tiers:
            return 1.0
        nearest = min(abs(t - venue.price_level) for t in user_tiers)
        return 0.5 if nearest == 1 else 0.0

    @staticmethod
    def _dietary_match(venue: Venue, avoid_tags: List[str]) -> float:
        name = (venue.name or "").lower()
        for avoid in avoid_tags:
            keyword = avoid.replace("_", " ").lower()
            if keyword and keyword in name:
                return 0.0
        return 1.0
