"""FastAPI application for cadence-admin."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from cadence_common.errors import make_error_handler
from cadence_common.health import create_health_router
from cadence_common.logging import setup_logging
from cadence_common.middleware import add_common_middleware

from . import __version__
from .agent_api import AgentAPIClient
from .config import AdminConfig, settings
from .errors import PersistenceError, SyncInProgressError, SyncNotFoundError
from .resolver import MatchMode
from .routes import router as admin_router
from .service import AdminService
from .settings_store import SettingsStore
from .sync import SyncOrchestrator
from .workspace_store import WorkspaceStore


def create_app(
    config: AdminConfig | None = None,
    agent_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the app. `agent_transport` replaces the agent platform in tests."""
    config = config or settings

    settings_store = SettingsStore(config.db_path)
    workspace_store = WorkspaceStore(config.db_path)
    agent_api = AgentAPIClient(
        config.agent_api_url,
        api_key=config.agent_api_key,
        timeout=config.agent_api_timeout,
        transport=agent_transport,
    )
    orchestrator = SyncOrchestrator(
        agent_api,
        elevenlabs_api_key=config.elevenlabs_api_key or None,
        match_mode=MatchMode(config.voice_match_mode),
    )
    service = AdminService(settings_store, workspace_store, orchestrator, settings_id=config.settings_id)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging("cadence-admin", config.log_level, json_output=config.log_format == "json")

        # Ensure data directory exists
        os.makedirs(os.path.dirname(config.db_path) or ".", exist_ok=True)

        await settings_store.init()
        await workspace_store.init()
        await agent_api.start()
        yield
        await service.drain()
        await agent_api.close()
        await workspace_store.close()
        await settings_store.close()

    app = FastAPI(title="cadence-admin", version=__version__, lifespan=lifespan)
    app.state.admin_service = service
    app.state.workspace_store = workspace_store

    add_common_middleware(app)
    app.add_exception_handler(PersistenceError, make_error_handler("persistence_error", 500))
    app.add_exception_handler(SyncNotFoundError, make_error_handler("sync_not_found", 404))
    app.add_exception_handler(SyncInProgressError, make_error_handler("sync_in_progress", 409))
    app.include_router(
        create_health_router(
            "cadence-admin",
            __version__,
            checks={
                "settings_store": lambda: settings_store.ready,
                "workspace_store": lambda: workspace_store.ready,
            },
        )
    )
    app.include_router(admin_router)
    return app


app = create_app()
