from fastapi import APIRouter

from timehub.api.v1.endpoints import config, entries, providers, summary, sync, upload

api_router = APIRouter()
api_router.include_router(sync.router, prefix="/sync", tags=["sync"])
api_router.include_router(summary.router, prefix="/entries/summary", tags=["summary"])
api_router.include_router(entries.router, prefix="/entries", tags=["entries"])
api_router.include_router(entries.stats_router, prefix="/stats", tags=["entries"])
api_router.include_router(providers.router, prefix="/providers", tags=["providers"])
api_router.include_router(upload.router, prefix="/upload", tags=["upload"])
api_router.include_router(config.router, prefix="/config", tags=["config"])
