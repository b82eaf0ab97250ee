"""SQLite-backed document store for admin settings and sync records."""

from __future__ import annotations

import json
import sqlite3

import aiosqlite
from pydantic import ValidationError

from cadence_common.logging import get_logger

from .errors import PersistenceError
from .schemas import AdminSettings, SyncRecord

log = get_logger(__name__)

_CREATE_SETTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS admin_settings (
    id TEXT PRIMARY KEY,
    document TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

_CREATE_SYNC_TABLE = """
CREATE TABLE IF NOT EXISTS sync_records (
    token TEXT PRIMARY KEY,
    document TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""


class SettingsStore:
    """Stores each settings document as one JSON row keyed by its id."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def init(self) -> None:
        self._db = await aiosqlite.connect(self._db_path)
        await self._db.execute(_CREATE_SETTINGS_TABLE)
        await self._db.execute(_CREATE_SYNC_TABLE)
        await self._db.commit()
        log.info("settings_store_ready", db_path=self._db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def ready(self) -> bool:
        return self._db is not None

    def _conn(self, coming_from: str) -> aiosqlite.Connection:
        if self._db is None:
            raise PersistenceError("settings store not initialized", coming_from)
        return self._db

    async def load(self, settings_id: str) -> AdminSettings | None:
        """Load a settings document, or None when it has never been saved."""
        db = self._conn("SettingsStore.load()")
        try:
            cursor = await db.execute(
                "SELECT document FROM admin_settings WHERE id = ?", (settings_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return AdminSettings.model_validate(json.loads(row[0]))
        except (sqlite3.Error, ValueError, ValidationError) as e:
            raise PersistenceError(f"failed to load admin settings: {e}", "SettingsStore.load()") from e

    async def save(self, settings: AdminSettings) -> None:
        db = self._conn("SettingsStore.save()")
        try:
            await db.execute(
                "INSERT INTO admin_settings (id, document, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET document = excluded.document, updated_at = excluded.updated_at",
                (settings.id, json.dumps(settings.to_wire()), settings.updated_at.isoformat()),
            )
            await db.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to save admin settings: {e}", "SettingsStore.save()") from e
        log.info("settings_saved", settings_id=settings.id, profiles=len(settings.voice_profiles))

    async def save_sync_record(self, record: SyncRecord) -> None:
        db = self._conn("SettingsStore.save_sync_record()")
        try:
            await db.execute(
                "INSERT INTO sync_records (token, document, created_at) VALUES (?, ?, ?) "
                "ON CONFLICT(token) DO UPDATE SET document = excluded.document",
                (record.token, json.dumps(record.to_wire()), record.created_at.isoformat()),
            )
            await db.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to save sync record: {e}", "SettingsStore.save_sync_record()") from e

    async def get_sync_record(self, token: str) -> SyncRecord | None:
        db = self._conn("SettingsStore.get_sync_record()")
        try:
            cursor = await db.execute("SELECT document FROM sync_records WHERE token = ?", (token,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return SyncRecord.model_validate(json.loads(row[0]))
        except (sqlite3.Error, ValueError, ValidationError) as e:
            raise PersistenceError(f"failed to load sync record: {e}", "SettingsStore.get_sync_record()") from e
