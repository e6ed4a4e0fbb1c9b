# =======================================================================================
# app/services/__init__.py - Services Package
# =======================================================================================
from .member_repository import MemberRepository
from .wild_apricot import WildApricotClient
from .reconcile_service import ReconciliationService, ReconcileResult
from .cache_service import CacheBuilder, CacheStore, CacheSnapshot
from .sync_service import SyncService

__all__ = [
    "MemberRepository", "WildApricotClient", "ReconciliationService", "ReconcileResult",
    "CacheBuilder", "CacheStore", "CacheSnapshot", "SyncService"
]
