# =======================================================================================
# app/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "FieldValue", "MembershipLevel", "Contact", "DoorCacheEntry", "MachineCacheEntry",
    "ContactFailure", "SyncStatusResponse", "HealthResponse", "SyncStatus", "FieldShape"
]
