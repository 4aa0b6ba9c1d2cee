"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from gitextractor import __version__
from gitextractor.api.routes import ingestions
from gitextractor.config import get_settings
from gitextractor.database import init_db
from gitextractor.logging_config import setup_logging

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging(settings.log_level)
    init_db()
    yield
    # Shutdown


app = FastAPI(
    title="gitextractor",
    description="Ingests git repository history into normalized domain tables",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Include routers
app.include_router(ingestions.router, prefix="/api/ingestions", tags=["Ingestions"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}
