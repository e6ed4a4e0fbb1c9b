# =======================================================================================
# app/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import HTTPException, Request, status
from ..services.cache_service import CacheSnapshot, CacheStore
from ..services.sync_service import SyncService
from ..utils.exceptions import CacheUnavailableError

def get_cache_store(request: Request) -> CacheStore:
    return request.app.state.cache_store

def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync_service

def get_current_snapshot(request: Request) -> CacheSnapshot:
    """Dependency returning the published snapshot; 503 until the first sync succeeds."""
    try:
        return get_cache_store(request).require()
    except CacheUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
