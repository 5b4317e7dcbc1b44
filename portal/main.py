from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI

from portal.access import LoggingAuditSink, RecordingAuditSink, load_access_config
from portal.access.audit import FanoutAuditSink
from portal.db.init_db import init_db
from portal.db.kv_store import SqlKeyValueStorage
from portal.db.session import build_engine, build_session_factory
from portal.logging_config import configure_app_logging
from portal.routers import actions, auth, capabilities, customer_view, health, scope
from portal.security.dependencies import enforce_access
from portal.security.registry import PortalRegistry
from portal.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or get_settings()
        configure_app_logging(resolved.log_level)
        logger.info("App startup beginning")

        config_path = resolved.resolved_access_config_path()
        access_config = load_access_config(config_path)
        logger.info("Loaded access config: %s", config_path)

        engine = build_engine(resolved.resolved_db_url())
        init_db(engine)
        logger.info("Key-value store initialized")

        recorder = RecordingAuditSink()
        app.state.settings = resolved
        app.state.access_config = access_config
        app.state.audit_recorder = recorder
        app.state.portal_registry = PortalRegistry(
            SqlKeyValueStorage(build_session_factory(engine)),
            access_config,
            audit_sink=FanoutAuditSink(LoggingAuditSink(), recorder),
            auth_storage_key=resolved.auth_storage_key,
            view_storage_key=resolved.view_storage_key,
            max_portals=resolved.max_cached_sessions,
        )

        yield

        engine.dispose()

    # Global dependency: enforces decorator metadata on every route.
    app = FastAPI(dependencies=[Depends(enforce_access)], lifespan=lifespan)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(scope.router)
    app.include_router(customer_view.router)
    app.include_router(capabilities.router)
    app.include_router(actions.router)

    return app


app = create_app()
