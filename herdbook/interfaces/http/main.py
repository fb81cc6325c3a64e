from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from herdbook.application.interfaces.document_store import DocumentStore
from herdbook.config.settings import Settings, get_settings
from herdbook.infrastructure.db.session import create_engine, create_session_factory
from herdbook.infrastructure.quota.write_quota import WriteQuotaTracker
from herdbook.infrastructure.snapshot.herd_snapshot import HerdSnapshot
from herdbook.infrastructure.store.sqlalchemy_store import SQLAlchemyDocumentStore
from herdbook.interfaces.http.deps import get_app_settings
from herdbook.interfaces.http.routers import animals, batches, breeding_seasons
from herdbook.interfaces.middleware.error_handler import register_error_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        yield
    finally:
        engine = getattr(app.state, "engine", None)
        if engine is not None:
            await engine.dispose()


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    # Avoid adding duplicate handlers on reload
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)
    # Align common libraries
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine", "httpx"):
        logging.getLogger(name).setLevel(level)


def create_app(
    *,
    settings: Settings | None = None,
    store: DocumentStore | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings.log_level)
    app = FastAPI(
        title="Herdbook Backend",
        version="0.1.0",
        description="Multi-tenant herd records and breeding-season reconciliation API",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if store is None:
        app.state.engine = create_engine(settings.database_url)
        app.state.session_factory = create_session_factory(app.state.engine)
        store = SQLAlchemyDocumentStore(app.state.session_factory)
    app.state.store = store
    # In-memory herd snapshot shared by every request of this process
    app.state.snapshot = HerdSnapshot(store)
    app.state.write_quota = WriteQuotaTracker(settings.daily_write_quota)
    register_error_handlers(app)

    # Group all API routes behind a single versioned prefix
    api = APIRouter(prefix="/api/v1")
    api.include_router(animals.router)
    api.include_router(batches.router)
    api.include_router(breeding_seasons.router)

    @api.get("/health", tags=["health"])
    async def health(_: Settings = Depends(get_app_settings)) -> dict[str, str]:  # noqa: ANN001
        return {"status": "ok"}

    app.include_router(api)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
