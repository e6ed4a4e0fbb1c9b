# =======================================================================================
# app/api/routes/cache.py - Reader Cache Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, Response
from ...services.cache_service import CacheSnapshot
from ..dependencies import get_current_snapshot

router = APIRouter()

def _snapshot_response(payload: bytes, snapshot: CacheSnapshot) -> Response:
    return Response(
        content=payload,
        media_type="application/json",
        headers={
            "X-Cache-Version": str(snapshot.version),
            "X-Cache-Built-At": snapshot.built_at.isoformat(),
        },
    )

@router.get("/doorCache")
def get_door_cache(snapshot: CacheSnapshot = Depends(get_current_snapshot)):
    """Door access list: one entry per tag with its membership level."""
    return _snapshot_response(snapshot.door_payload, snapshot)

@router.get("/machineCache")
def get_machine_cache(snapshot: CacheSnapshot = Depends(get_current_snapshot)):
    """Machine access list: one entry per tag with its completed trainings."""
    return _snapshot_response(snapshot.machine_payload, snapshot)
