# =======================================================================================
# app/workers/sync_worker.py - Background Sync Scheduler
# =======================================================================================
import threading
import time
from typing import Callable, Optional

from loguru import logger

from ..config import config
from ..services.sync_service import SyncService


class SyncWorker:
    """
    Background worker that runs a sync cycle on a fixed-rate schedule.

    Ticks are spaced `interval` seconds apart from the start time. A tick that
    comes due while a cycle is still running is dropped, never queued.
    """

    def __init__(
        self,
        sync_service: SyncService,
        interval: Optional[float] = None,
        run_on_start: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sync_service = sync_service
        self.interval = interval if interval is not None else config.SYNC_INTERVAL_SECONDS
        self.run_on_start = config.SYNC_ON_STARTUP if run_on_start is None else run_on_start
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.cycles_run = 0
        self.ticks_dropped = 0

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self):
        """Start the scheduler in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        if self.interval <= 0:
            logger.warning("[sync] SYNC_INTERVAL_SECONDS must be positive; scheduler not started")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="sync-worker", daemon=True)
        self._thread.start()
        logger.info(f"[sync] Worker started, interval {self.interval}s")

    def stop(self, timeout: Optional[float] = None):
        """Stop the scheduler and wait for the current cycle to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def _run_cycle(self):
        try:
            self.sync_service.run_cycle()
        except Exception as e:
            logger.exception(f"[sync] Unexpected error in sync cycle: {e}")
        self.cycles_run += 1

    def _run_loop(self):
        if self.run_on_start:
            self._run_cycle()

        next_tick = self._clock() + self.interval
        while not self._stop_event.wait(max(0.0, next_tick - self._clock())):
            self._run_cycle()

            next_tick += self.interval
            now = self._clock()
            if next_tick <= now:
                missed = int((now - next_tick) // self.interval) + 1
                self.ticks_dropped += missed
                next_tick += missed * self.interval
                logger.warning(f"[sync] Cycle overran the interval; dropped {missed} tick(s)")
