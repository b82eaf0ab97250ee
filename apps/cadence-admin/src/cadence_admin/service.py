"""Admin settings service: persists settings and drives voice sync.

Settings are always saved first. A sync requested alongside the save runs in
the background against the profile list that was stored *before* the save,
and its outcome is kept as a `SyncRecord` under a token returned to the
caller. Sync problems are logged and recorded there; they never turn a
successful save into a failure.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Sequence

from cadence_common.logging import get_logger

from .errors import PersistenceError, ResolutionError, SyncInProgressError, SyncNotFoundError
from .schemas import (
    AdminSettings,
    ElevenLabsVoiceConfig,
    SettingsUpdate,
    SettingsUpdateResponse,
    SyncRecord,
    TranscriptionConfig,
    VoiceProfile,
    utcnow,
)
from .settings_store import SettingsStore
from .sync import BindingSource, SyncOrchestrator

log = get_logger(__name__)


def default_voice_profile() -> VoiceProfile:
    """The profile a fresh installation starts with."""
    return VoiceProfile(
        id="default",
        name="Default Voice Profile",
        gender="male",
        language="en-US",
        voice_config=ElevenLabsVoiceConfig(
            selected_voice="XA2bIQ92TabjGbpO2xRr",
            search_query="",
            long_message_backchanneling=True,
            speed=[1],
            stability=[0.4],
            similarity_boost=[0.7],
            style_exaggeration=[0],
            speaker_boost=False,
            background_noise="none",
            punctuation_breaks=[],
            min_words_to_stop=[0],
            min_chars_to_start=[140],
            max_length_without_punctuation=[250],
            word_replacements=[],
        ),
        transcription_config=TranscriptionConfig(
            language="en-US",
            utterance_threshold=[150],
            input_voice_enhancer=True,
            silence_detection=True,
            timeout_seconds=[10],
            end_call_after_filler_phrases=[1],
            keywords=[],
        ),
    )


class AdminService:
    def __init__(
        self,
        settings_store: SettingsStore,
        workspaces: BindingSource,
        orchestrator: SyncOrchestrator,
        settings_id: str = "global",
    ) -> None:
        self._settings_store = settings_store
        self._workspaces = workspaces
        self._orchestrator = orchestrator
        self._settings_id = settings_id
        self._pending: set[asyncio.Task] = set()
        self._running: set[str] = set()

    # --- Settings ---

    async def get_settings(self, language: str | None = None) -> AdminSettings:
        """Load the settings document, creating the default one on first use."""
        settings = await self._settings_store.load(self._settings_id)
        if settings is None:
            settings = AdminSettings(id=self._settings_id, voice_profiles=[default_voice_profile()])
            await self._settings_store.save(settings)
            log.info("admin_settings_created", settings_id=self._settings_id)

        if language:
            return settings.model_copy(
                update={"voice_profiles": [p for p in settings.voice_profiles if p.language == language]}
            )
        return settings

    async def get_voice_profiles(self, language: str | None = None) -> list[VoiceProfile]:
        settings = await self.get_settings(language)
        return settings.voice_profiles

    async def update_settings(self, update: SettingsUpdate) -> SettingsUpdateResponse:
        """Persist the update, then schedule a sync when one was requested.

        Raises PersistenceError if the settings cannot be loaded or saved; in
        that case no sync is attempted.
        """
        current = await self.get_settings()
        updated = current.model_copy(
            update={
                "global_prompts": (
                    update.global_prompts if update.global_prompts is not None else current.global_prompts
                ),
                "greeting_message": (
                    update.greeting_message if update.greeting_message is not None else current.greeting_message
                ),
                "voice_profiles": list(update.voice_profiles),
                "updated_at": utcnow(),
            }
        )
        await self._settings_store.save(updated)

        if not update.sync_voice_settings:
            return SettingsUpdateResponse(settings=updated)

        record = SyncRecord(token=uuid.uuid4().hex, baseline=current.voice_profiles)
        await self._save_record(record)
        self._schedule(record, current.voice_profiles, updated.voice_profiles)
        log.info("voice_sync_scheduled", token=record.token)
        return SettingsUpdateResponse(settings=updated, sync_token=record.token)

    async def update_voice_profiles(
        self, new_profiles: Sequence[VoiceProfile], sync: bool = False
    ) -> SettingsUpdateResponse:
        return await self.update_settings(
            SettingsUpdate(voice_profiles=list(new_profiles), sync_voice_settings=sync)
        )

    # --- Sync ---

    async def get_sync_record(self, token: str) -> SyncRecord:
        record = await self._settings_store.get_sync_record(token)
        if record is None:
            raise SyncNotFoundError(f"no sync with token '{token}'", "AdminService.get_sync_record()")
        return record

    async def retry_sync(self, token: str) -> SyncRecord:
        """Re-run a sync against its recorded baseline and wait for the result.

        Diffing against the baseline, not the now-current stored list, is what
        lets a retry after a failed sync actually resend the changes. Raises
        SyncInProgressError while another run for the same token is in flight.
        """
        record = await self.get_sync_record(token)
        current = await self.get_settings()
        self._claim(token, "AdminService.retry_sync()")
        log.info("voice_sync_retry", token=token, attempt=record.attempts + 1)
        return await self._run_claimed(record, record.baseline, current.voice_profiles)

    async def drain(self) -> None:
        """Wait for every background sync to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _claim(self, token: str, coming_from: str) -> None:
        # One run per token at a time; each run writes the whole record.
        if token in self._running:
            raise SyncInProgressError(f"sync '{token}' is still running", coming_from)
        self._running.add(token)

    def _schedule(
        self,
        record: SyncRecord,
        before: list[VoiceProfile],
        after: list[VoiceProfile],
    ) -> None:
        self._claim(record.token, "AdminService._schedule()")
        task = asyncio.create_task(self._run_claimed(record, before, after))
        self._pending.add(task)
        task.add_done_callback(self._on_sync_done)

    def _on_sync_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            log.warning("voice_sync_cancelled")
            return
        exc = task.exception()
        if exc is not None:
            log.error("voice_sync_crashed", error=repr(exc))

    async def _run_claimed(
        self,
        record: SyncRecord,
        before: list[VoiceProfile],
        after: list[VoiceProfile],
    ) -> SyncRecord:
        try:
            return await self._run_sync(record, before, after)
        finally:
            self._running.discard(record.token)

    async def _run_sync(
        self,
        record: SyncRecord,
        before: list[VoiceProfile],
        after: list[VoiceProfile],
    ) -> SyncRecord:
        record.status = "running"
        record.attempts += 1
        record.finished_at = None
        await self._save_record(record)

        try:
            report = await self._orchestrator.synchronize_from_store(before, after, self._workspaces)
        except ResolutionError as e:
            record.status = "abandoned"
            record.error = e.format_message()
            record.report = None
            log.error("voice_sync_abandoned", token=record.token, error=record.error)
        else:
            record.status = "completed"
            record.error = None
            record.report = report
            if report.failed:
                log.warning(
                    "voice_sync_partial_failure",
                    token=record.token,
                    failed=[r.agent_id for r in report.failed],
                )
            else:
                log.info("voice_sync_completed", token=record.token, agents=len(report.results))

        record.finished_at = utcnow()
        await self._save_record(record)
        return record

    async def _save_record(self, record: SyncRecord) -> None:
        # The settings save already succeeded; a lost record must not undo that.
        try:
            await self._settings_store.save_sync_record(record)
        except PersistenceError as e:
            log.error("sync_record_save_failed", token=record.token, error=e.format_message())
