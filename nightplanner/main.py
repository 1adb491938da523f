import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import create_tables
from .routers import maps, routes

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────
    create_tables()
    yield
    # ── Shutdown (nothing to clean up for now) ────────────────


app = FastAPI(
    title="Night Planner API",
    description=(
        "Night-out route recommendations – "
        "taste matching, mood scoring and walkable multi-stop routes."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes.router, prefix="/api/v1", tags=["Routes"])
app.include_router(maps.router, prefix="/api/v1", tags=["Map"])


@app.get("/", tags=["Root"])
async def root():
    return {"name": "Night Planner", "version": "1.0.0", "docs": "/docs"}


@app.get("/health", tags=["Root"])
async def health_check():
    return {"status": "healthy", "service": "nightplanner"}
