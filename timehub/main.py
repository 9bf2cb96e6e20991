"""Main FastAPI application."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timehub import __version__
from timehub.api.v1.api import api_router
from timehub.config import settings
from timehub.database import SessionLocal
from timehub.logging_setup import configure_logging
from timehub.providers.registry import build_registry
from timehub.scheduler import shutdown_scheduler, start_scheduler

# Configure root logger early
configure_logging(settings.log_level)

log = logging.getLogger(__name__)
log.debug("Debug logging enabled at startup.")

app = FastAPI(
    title="timehub",
    description="Aggregates Toggl, Tempo, CSV imports and manual entries into one time log",
    version=__version__
)

# Built once per application; endpoints read it through the get_registry dependency.
app.state.registry = build_registry(settings, SessionLocal)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__
    }


@app.get("/")
async def root():
    """Root endpoint - points to the docs."""
    return {
        "message": "timehub API",
        "version": __version__,
        "docs": "/docs"
    }


app.include_router(api_router, prefix=settings.api_v1_str)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


@app.on_event("startup")
async def startup_event():
    log.info(f"timehub {__version__} starting, providers: {app.state.registry.names()}")
    start_scheduler(app.state.registry, settings.sync_schedule_minutes)


@app.on_event("shutdown")
async def shutdown_event():
    shutdown_scheduler()


if __name__ == "__main__":
    import uvicorn

    # uvicorn has no VERBOSE level
    uvicorn_level = "debug" if settings.log_level.upper() == "VERBOSE" else settings.log_level.lower()
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=uvicorn_level)
