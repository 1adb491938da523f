from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Tier = Literal["perfect", "good", "other"]


class EnergyLevel(str, Enum):
    CHILL = "chill"
    SOCIAL = "social"
    ELECTRIC = "electric"


class CrowdDensity(str, Enum):
    INTIMATE = "intimate"
    MIXED = "mixed"
    PACKED = "packed"


class MusicLevel(str, Enum):
    NONE = "none"
    BACKGROUND = "background"
    DJ = "dj"


class StopType(str, Enum):
    DINNER = "dinner"
    DRINKS = "drinks"
    DESSERT = "dessert"
    COFFEE = "coffee"


# ── Inputs ────────────────────────────────────────────────────────────────────

class LatLng(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class Venue(BaseModel):
    """A place as returned by the venue provider. Never mutated after fetch."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    types: List[str] = []
    rating: Optional[float] = Field(None, ge=0.0, le=5.0)
    price_level: Optional[int] = Field(None, ge=0, le=4)
    address: Optional[str] = None
    photo_ref: Optional[str] = None

    @property
    def location(self) -> Optional[LatLng]:
        if self.lat is None or self.lng is None:
            return None
        return LatLng(lat=self.lat, lng=self.lng)


class FineTune(BaseModel):
    price_range: List[str] = []     # tier symbols: "$" … "$$$$"
    dietary: List[str] = []
    avoid_tags: List[str] = []
    picky_level: Optional[str] = None


class UserTasteProfile(BaseModel):
    taste_prefs: List[str] = []
    fine_tune: FineTune = Field(default_factory=FineTune)


class MoodPreferences(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    energy: Optional[EnergyLevel] = None
    crowd: Optional[CrowdDensity] = None
    music: Optional[MusicLevel] = None
    number_of_stops: int = Field(3, ge=2, le=4, description="Stops in a free-form route")
    stop_types: List[StopType] = []


class SocialPost(BaseModel):
    id: str
    restaurant: Optional[str] = None   # venue name the post references
    lat: Optional[float] = None
    lng: Optional[float] = None
    author_id: Optional[str] = None
    city: Optional[str] = None


# ── Scores ────────────────────────────────────────────────────────────────────

class TasteMatch(BaseModel):
    score: float = 0.0
    matched_tags: List[str] = []
    tier: Tier = "other"


class MatchedVenue(BaseModel):
    venue: Venue
    match: TasteMatch


class ScoreBreakdown(BaseModel):
    taste_score: float
    vibe_score: float
    quality_score: float
    popularity_score: float
    proximity_score: float
    total_score: float
    matched_tags: List[str] = []
    tier: Tier = "other"


class ScoredVenue(BaseModel):
    model_config = ConfigDict(frozen=True)

    venue: Venue
    score: ScoreBreakdown


# ── Route ─────────────────────────────────────────────────────────────────────

class TimedStop(BaseModel):
    scored: ScoredVenue
    order: int
    planned_time: str
    estimated_duration: int


class StopPlace(BaseModel):
    place_id: str
    name: str
    address: str = ""
    location: LatLng
    category: str = "restaurant"
    price_level: Optional[int] = None
    rating: Optional[float] = None
    photo_ref: Optional[str] = None


class Stop(BaseModel):
    order: int
    place: StopPlace
    planned_time: str
    estimated_duration: int
    score: ScoreBreakdown


class Segment(BaseModel):
    from_stop: int
    to_stop: int
    distance: str
    duration: str
    distance_miles: float
    duration_minutes: int
    from_location: LatLng
    to_location: LatLng
    polyline: Optional[str] = None
    path: Optional[List[LatLng]] = None
    source: Literal["estimate", "directions"] = "estimate"


class Route(BaseModel):
    name: Optional[str] = None
    stops: List[Stop]
    segments: List[Segment]
    total_distance: str
    total_walking_time: str
    estimated_total_time: str
    total_distance_miles: float
    total_walking_minutes: int
    estimated_total_hours: float
    preferences: MoodPreferences


class WalkingDirections(BaseModel):
    distance_text: str
    duration_text: str
    distance_meters: Optional[int] = None
    duration_seconds: int
    polyline: Optional[str] = None
    path: List[LatLng] = []


# ── Map clusters ──────────────────────────────────────────────────────────────

class VenueCluster(BaseModel):
    key: str
    lat: float
    lng: float
    venues: List[MatchedVenue]
    count: int
    dominant_tier: Tier = "other"


class PostCluster(BaseModel):
    key: str
    lat: float
    lng: float
    posts: List[SocialPost]
    count: int


class GeocodeResult(BaseModel):
    lat: float
    lng: float
    place_id: Optional[str] = None
    address: Optional[str] = None


class PlacePair(BaseModel):
    restaurant: str
    city: str


# ── API requests / responses ──────────────────────────────────────────────────

class RouteRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    venues: List[Venue] = Field(..., description="Candidate venues near the user")
    user_profile: UserTasteProfile = Field(default_factory=UserTasteProfile)
    preferences: MoodPreferences = Field(default_factory=MoodPreferences)
    social_posts: List[SocialPost] = []
    specific_journey: bool = False
    stop_types: List[StopType] = []
    enrich: bool = Field(False, description="Replace estimates with walking directions")

    @field_validator("stop_types")
    @classmethod
    def at_most_four_stops(cls, v: List[StopType]) -> List[StopType]:
        if len(v) > 4:
            raise ValueError("A specific journey can have at most 4 stops.")
        return v


class RouteResponse(BaseModel):
    status: Literal["ok", "no_route"]
    message: str
    route: Optional[Route] = None


class EnrichRequest(BaseModel):
    route: Route


class VenueMapRequest(BaseModel):
    venues: List[Venue]
    user_profile: UserTasteProfile = Field(default_factory=UserTasteProfile)
    zoom: int = Field(15, ge=0, le=22)


class VenueMapResponse(BaseModel):
    clusters: List[VenueCluster]
    total_venues: int


class PostMapRequest(BaseModel):
    posts: List[SocialPost]
    zoom: int = Field(16, ge=0, le=22)


class PostMapResponse(BaseModel):
    clusters: List[PostCluster]
    total_posts: int


class GeocodeRequest(BaseModel):
    pairs: List[PlacePair]


class GeocodeResponse(BaseModel):
    results: Dict[str, GeocodeResult]
    unresolved: List[str] = []
