# =======================================================================================
# app/main.py - FastAPI Application Entry Point
# =======================================================================================
import sys
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config import config
from .api.routes.cache import router as cache_router
from .api.routes.sync import router as sync_router
from .database import DatabaseManager, db_manager
from .models.schemas import HealthResponse
from .services.cache_service import CacheBuilder, CacheStore
from .services.reconcile_service import ReconciliationService
from .services.sync_service import ContactSource, SyncService
from .services.wild_apricot import WildApricotClient
from .workers.sync_worker import SyncWorker


def configure_logging() -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if config.API_DEBUG else config.LOG_LEVEL)


def create_app(
    db: Optional[DatabaseManager] = None,
    source: Optional[ContactSource] = None,
    start_worker: bool = True,
) -> FastAPI:
    configure_logging()
    db = db or db_manager

    app = FastAPI(
        title="RFID Access Cache API",
        version="1.0.0",
        description="Door and machine access caches for RFID readers, synced from Wild Apricot",
        debug=config.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    cache_store = CacheStore()
    sync_service = SyncService(
        source=source or WildApricotClient(),
        reconciler=ReconciliationService(db),
        builder=CacheBuilder(db),
        cache_store=cache_store,
    )
    app.state.db = db
    app.state.cache_store = cache_store
    app.state.sync_service = sync_service
    app.state.sync_worker = SyncWorker(sync_service)

    # Routers
    app.include_router(cache_router, prefix="/api", tags=["cache"])
    app.include_router(sync_router, prefix="/api", tags=["sync"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        data_available = cache_store.current() is not None
        try:
            db.fetch_one("SELECT 1")
            return HealthResponse(status="ok", dataAvailable=data_available, message=None)
        except Exception as e:
            return HealthResponse(status="error", dataAvailable=data_available, message=str(e))

    @app.on_event("startup")
    def startup_event():
        db.init_schema()
        if start_worker:
            app.state.sync_worker.start()
        logger.info("RFID Access Cache API started")

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.sync_worker.stop(timeout=5)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=config.API_HOST, port=config.API_PORT)
