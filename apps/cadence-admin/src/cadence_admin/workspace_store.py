"""SQLite-backed store of workspace ↔ agent bindings."""

from __future__ import annotations

import aiosqlite

from cadence_common.logging import get_logger

from .schemas import WorkspaceAgentBinding

log = get_logger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS workspace_bindings (
    workspace_id TEXT PRIMARY KEY,
    associated_agent_id TEXT,
    selected_voice_id TEXT
);
"""


class WorkspaceStore:
    """Read side used by voice sync, plus the upsert the workspace routes need."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def init(self) -> None:
        self._db = await aiosqlite.connect(self._db_path)
        await self._db.execute(_CREATE_TABLE)
        await self._db.commit()
        log.info("workspace_store_ready", db_path=self._db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def ready(self) -> bool:
        return self._db is not None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("WorkspaceStore not initialized")
        return self._db

    async def list_all(self) -> list[WorkspaceAgentBinding]:
        cursor = await self.db.execute(
            "SELECT workspace_id, associated_agent_id, selected_voice_id "
            "FROM workspace_bindings ORDER BY workspace_id"
        )
        rows = await cursor.fetchall()
        return [
            WorkspaceAgentBinding(
                workspace_id=workspace_id,
                associated_agent_id=agent_id,
                selected_voice_id=voice_id,
            )
            for workspace_id, agent_id, voice_id in rows
        ]

    async def upsert(self, binding: WorkspaceAgentBinding) -> WorkspaceAgentBinding:
        await self.db.execute(
            "INSERT INTO workspace_bindings (workspace_id, associated_agent_id, selected_voice_id) "
            "VALUES (?, ?, ?) ON CONFLICT(workspace_id) DO UPDATE SET "
            "associated_agent_id = excluded.associated_agent_id, "
            "selected_voice_id = excluded.selected_voice_id",
            (binding.workspace_id, binding.associated_agent_id, binding.selected_voice_id),
        )
        await self.db.commit()
        log.info(
            "workspace_binding_saved",
            workspace_id=binding.workspace_id,
            agent_id=binding.associated_agent_id,
            voice_id=binding.selected_voice_id,
        )
        return binding
