"""Profile builders and fakes shared by the cadence-admin tests."""

import asyncio
import sqlite3

from cadence_admin.errors import AgentUpdateError, PersistenceError
from cadence_admin.schemas import AdminSettings, VoiceProfile, WorkspaceAgentBinding
from cadence_admin.settings_store import SettingsStore


def make_profile(
    profile_id: str,
    voice: str | None = None,
    provider: str = "elevenlabs",
    language: str = "en-US",
    transcription: dict | None = None,
    **voice_fields,
) -> VoiceProfile:
    """Build a profile from camelCase wire fields, the way the admin UI sends them."""
    voice_config = {"provider": provider, "selectedVoice": voice or f"voice-{profile_id}", **voice_fields}
    return VoiceProfile.model_validate(
        {
            "id": profile_id,
            "name": f"Profile {profile_id}",
            "gender": "female",
            "language": language,
            "voiceConfig": voice_config,
            "transcriptionConfig": {"language": language} if transcription is None else transcription,
        }
    )


def binding(workspace_id: str, agent_id: str | None, voice_id: str | None) -> WorkspaceAgentBinding:
    return WorkspaceAgentBinding(
        workspace_id=workspace_id,
        associated_agent_id=agent_id,
        selected_voice_id=voice_id,
    )


class FakeAgentAPI:
    """Records every update; agents listed in `failing` answer with an error."""

    def __init__(self, failing: set[str] | None = None, crashing: set[str] | None = None):
        self.calls: list[tuple[str, dict]] = []
        self.failing = failing or set()
        self.crashing = crashing or set()

    async def update_agent(self, agent_id: str, payload: dict) -> dict:
        self.calls.append((agent_id, payload))
        if agent_id in self.crashing:
            raise RuntimeError("boom")
        if agent_id in self.failing:
            raise AgentUpdateError("agent rejected update", "FakeAgentAPI.update_agent()", agent_id, 500)
        return {"id": agent_id}

    @property
    def agent_ids(self) -> list[str]:
        return [agent_id for agent_id, _ in self.calls]


class GatedAgentAPI(FakeAgentAPI):
    """Holds every update until `gate` is set."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()

    async def update_agent(self, agent_id: str, payload: dict) -> dict:
        await self.gate.wait()
        return await super().update_agent(agent_id, payload)


class StaticBindings:
    def __init__(self, bindings: list[WorkspaceAgentBinding]):
        self.bindings = bindings
        self.listed = 0

    async def list_all(self) -> list[WorkspaceAgentBinding]:
        self.listed += 1
        return list(self.bindings)


class BrokenBindings:
    async def list_all(self) -> list[WorkspaceAgentBinding]:
        raise sqlite3.OperationalError("database is locked")



class FlakySettingsStore(SettingsStore):
    """A real store whose saves start failing once `fail_saves` is set."""

    fail_saves = False

    async def save(self, settings: AdminSettings) -> None:
        if self.fail_saves:
            raise PersistenceError("disk I/O error", "SettingsStore.save()")
        await super().save(settings)
