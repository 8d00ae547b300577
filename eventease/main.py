import logging.config
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventease.api.errors import register_exception_handlers
from eventease.api.router import api_router
from eventease.config import get_settings
from eventease.logging_config import configure_logging
from eventease.middleware import RequestLoggingMiddleware
from eventease.database import create_db_and_tables, dispose_engine

# Configure logging
logging.config.dictConfig(configure_logging())
logger = logging.getLogger("eventease.main")

# Get settings
settings = get_settings()

# Initialize FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    debug=settings.DEBUG,
)

# Set up CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Map domain errors to HTTP responses
register_exception_handlers(app)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.on_event("startup")
async def on_startup():
    """Startup tasks for the application."""
    logger.info("Starting EventEase API")
    if settings.AUTO_CREATE_TABLES:
        await create_db_and_tables()


@app.on_event("shutdown")
async def on_shutdown():
    """Shutdown tasks for the application."""
    logger.info("Shutting down EventEase API")
    await dispose_engine()


@app.get("/", tags=["Health"])
async def health_check():
    """Root endpoint for health checks."""
    return {"status": "healthy", "message": "EventEase API is running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "eventease.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
