from sqlalchemy import Column, DateTime, Float, String
from sqlalchemy.sql import func

from .database import Base


class GeocodeCacheEntry(Base):
    """Durable (restaurant, city) → coordinate lookup shared across sessions."""

    __tablename__ = "geocode_cache"

    slug = Column(String(200), primary_key=True, index=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    place_id = Column(String(200), nullable=True)
    address = Column(String(1000), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
