import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import create_tables
from .routers import chat, export, invites, itinerary, notes, places, profiles, trips

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────
    create_tables()
    yield
    # ── Shutdown (nothing to clean up for now) ────────────────


app = FastAPI(
    title="Trippee API",
    description=(
        "Collaborative trip planning – shared place lists, "
        "k-means day clustering and nearest-neighbour routing, "
        "notes, chat and PDF / map export."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(profiles.router,  prefix="/api/v1", tags=["Profiles"])
app.include_router(trips.router,     prefix="/api/v1", tags=["Trips"])
app.include_router(places.router,    prefix="/api/v1", tags=["Places"])
app.include_router(itinerary.router, prefix="/api/v1", tags=["Itinerary"])
app.include_router(chat.router,      prefix="/api/v1", tags=["Chat"])
app.include_router(notes.router,     prefix="/api/v1", tags=["Notes"])
app.include_router(invites.router,   prefix="/api/v1", tags=["Invitations"])
app.include_router(export.router,    prefix="/api/v1", tags=["Export"])


@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    return {"name": "Trippee", "version": VERSION, "docs": "/docs"}


@app.get("/health", tags=["Root"])
async def health_check():
    return {"status": "healthy", "service": "trippee"}


def run():
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
