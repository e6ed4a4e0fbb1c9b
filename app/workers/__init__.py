# =======================================================================================
# app/workers/__init__.py - Workers Package
# =======================================================================================
from .sync_worker import SyncWorker

__all__ = ["SyncWorker"]
