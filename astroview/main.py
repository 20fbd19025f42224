"""FastAPI application setup for the viewing-conditions service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import router as api_router, shutdown_cache_manager
from .config import settings
from utils.logging_utils import setup_logging


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Configure logging on startup and release the cache slot on shutdown."""
    setup_logging(level=settings.log_level, job_name="astroview")
    yield
    shutdown_cache_manager()


app = FastAPI(title="Astro Viewing Conditions", lifespan=lifespan)


@app.get("/healthz")
def healthz():
    """Liveness probe."""
    return {"status": "ok"}


# API routes
app.include_router(api_router, prefix="/v1")
