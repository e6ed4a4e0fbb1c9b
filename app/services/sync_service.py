# =======================================================================================
# app/services/sync_service.py - Sync Cycle Orchestration
# =======================================================================================
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from loguru import logger

from ..config import config
from ..models.schemas import SyncStatusResponse
from ..utils.exceptions import BuildError, FetchError, PersistenceError, SyncInProgressError
from .cache_service import CacheBuilder, CacheStore
from .reconcile_service import ReconciliationService


class ContactSource(Protocol):
    def get_contacts(self, account_id: int) -> List[Dict[str, Any]]:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncService:
    """
    Runs one fetch -> reconcile -> build -> publish cycle at a time.

    A cycle that fails at any stage leaves the published snapshot as it was.
    """

    def __init__(
        self,
        source: ContactSource,
        reconciler: ReconciliationService,
        builder: CacheBuilder,
        cache_store: CacheStore,
        account_id: Optional[int] = None,
    ) -> None:
        self.source = source
        self.reconciler = reconciler
        self.builder = builder
        self.cache_store = cache_store
        self.account_id = account_id if account_id is not None else config.WA_ACCOUNT_ID
        self._cycle_lock = threading.Lock()
        self.last_result = SyncStatusResponse(status="NEVER_RUN")
        self.last_success_at: Optional[datetime] = None

    def is_running(self) -> bool:
        return self._cycle_lock.locked()

    def get_status(self) -> SyncStatusResponse:
        return self.last_result.model_copy(update={"last_success_at": self.last_success_at})

    def run_cycle(self) -> SyncStatusResponse:
        """Run one cycle unless another is in progress, in which case it is skipped."""
        if not self._cycle_lock.acquire(blocking=False):
            logger.info("[sync] Cycle already running; skipping")
            return SyncStatusResponse(status="SKIPPED", started_at=_utc_now(), finished_at=_utc_now())

        try:
            try:
                result = self._run_locked()
            except Exception as e:
                logger.exception("[sync] Unexpected error during cycle")
                result = self._failed(_utc_now(), f"unexpected error: {e}")
            self.last_result = result
            return result
        finally:
            self._cycle_lock.release()

    def trigger(self) -> SyncStatusResponse:
        """Run a cycle on demand; raises SyncInProgressError instead of skipping."""
        result = self.run_cycle()
        if result.status == "SKIPPED":
            raise SyncInProgressError("A sync cycle is already running")
        return result

    def _failed(self, started_at: datetime, message: str, **counts) -> SyncStatusResponse:
        logger.error(f"[sync] Cycle failed: {message}")
        return SyncStatusResponse(
            status="FAILED",
            started_at=started_at,
            finished_at=_utc_now(),
            error_message=message,
            **counts,
        )

    def _run_locked(self) -> SyncStatusResponse:
        started_at = _utc_now()
        logger.info("[sync] Fetching contacts and updating store...")

        if self.account_id is None:
            return self._failed(started_at, "WA_ACCOUNT_ID is not configured")

        try:
            contacts = self.source.get_contacts(self.account_id)
        except FetchError as e:
            return self._failed(started_at, f"fetch failed: {e}")

        try:
            reconciled = self.reconciler.reconcile(contacts)
        except PersistenceError as e:
            return self._failed(started_at, str(e), contacts_seen=len(contacts))

        counts = {
            "contacts_seen": reconciled.contacts_seen,
            "members_upserted": reconciled.members_upserted,
            "contacts_skipped": reconciled.contacts_skipped_no_tag + reconciled.contacts_skipped_invalid,
            "extraction_errors": reconciled.extraction_errors,
        }

        try:
            snapshot = self.builder.build()
        except BuildError as e:
            return self._failed(started_at, f"cache build failed: {e}", **counts)

        published = self.cache_store.publish(snapshot)
        finished_at = _utc_now()
        self.last_success_at = finished_at
        logger.info("[sync] Store and cache successfully updated with latest contact data")

        return SyncStatusResponse(
            status="SUCCESS",
            started_at=started_at,
            finished_at=finished_at,
            cache_version=published.version,
            **counts,
        )
