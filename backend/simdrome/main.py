"""FastAPI application — CORS, route registration, health check."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from simdrome import __version__
from simdrome.config import get_settings
from simdrome.models import HealthResponse
from simdrome.routes.catalog import router as catalog_router
from simdrome.routes.live import router as live_router
from simdrome.routes.websocket import router as ws_router
from simdrome.session import get_controller

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Cancel any running stream before the loop goes away
    await get_controller().stop()


app = FastAPI(
    title="KesslerSimdrome Live Stream",
    description="Streams simulation frames and selects the visible object subset",
    version=__version__,
    lifespan=lifespan,
)

# CORS — frontend dev servers
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(live_router)
app.include_router(catalog_router)
app.include_router(ws_router)


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="ok")
