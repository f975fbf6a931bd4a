"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import health, documents, stats
from core.config import settings
from core.logging import setup_logging
import logging
from api.middleware import RequestContextMiddleware
from ingestion.scheduler import SyncScheduler

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Junos Log Sync API",
    description="Read-only status of the search store to database log sync",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Initialize Scheduler
scheduler = SyncScheduler()


# Include routers
app.include_router(health.router)
app.include_router(documents.router)
app.include_router(stats.router)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting Junos Log Sync API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")
    logger.info(f"Search store: {settings.ES_BASE_URL}")

    scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Junos Log Sync API")
    scheduler.stop()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Junos Log Sync API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "documents": "/documents",
            "stats": "/stats"
        }
    }
