from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Provider keys
    google_maps_api_key: str = ""

    # Database (durable geocode cache)
    database_url: str = "sqlite:///./nightplanner.db"

    # Neighbourhood centre used for proximity scoring
    reference_lat: float = 33.1581
    reference_lng: float = -117.3506

    # Route planning
    min_venue_rating: float = 3.0
    walkable_radius_miles: float = 0.5
    preserve_type_order: bool = False

    # Provider fan-out and caching
    provider_concurrency: int = 10
    provider_timeout: float = 10.0
    geocode_cache_ttl_seconds: int = 24 * 3600
    venue_search_ttl_seconds: int = 300

    # App
    app_env: str = "development"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
