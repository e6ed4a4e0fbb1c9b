# =======================================================================================
# app/api/routes/sync.py - Synchronization Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, HTTPException, status
from ...models.schemas import SyncStatusResponse
from ...services.sync_service import SyncService
from ...utils.exceptions import SyncInProgressError
from ..dependencies import get_sync_service

router = APIRouter()

@router.get("/sync/status", response_model=SyncStatusResponse)
def get_sync_status(sync_service: SyncService = Depends(get_sync_service)):
    """Get the outcome of the most recent sync cycle."""
    return sync_service.get_status()

@router.post("/sync/trigger", response_model=SyncStatusResponse)
def trigger_sync(sync_service: SyncService = Depends(get_sync_service)):
    """Run one sync cycle now."""
    try:
        return sync_service.trigger()
    except SyncInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
