import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)

# Sync handlers and background tasks run on FastAPI worker threads
_connect_args = (
    {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
)

engine = create_engine(settings.database_url, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def create_tables():
    """Create the geocode cache table on startup."""
    from . import models  # noqa: F401 – registers GeocodeCacheEntry with Base
    Base.metadata.create_all(bind=engine)
    logger.info("Geocode cache ready at %s", engine.url.render_as_string(hide_password=True))
