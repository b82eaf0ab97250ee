"""Schemas for voice profiles, admin settings, workspace bindings and sync reports.

Wire format is camelCase (what the admin UI and the agent platform speak);
Python attributes are snake_case. `voiceConfig` is a discriminated union on
`provider`, so each profile carries only its own provider's fields.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Slider-style values are stored as a one-element list.
SingleValue = Annotated[list[float], Field(min_length=1, max_length=1)]

Provider = Literal["elevenlabs", "google-live"]
BackgroundNoise = Literal["none", "restaurant", "street", "office"]
GoogleLiveVoice = Literal["Zephyr", "Puck", "Charon", "Kore", "Fenrir", "Leda", "Orus", "Aoede"]
StartSensitivity = Literal["START_SENSITIVITY_LOW", "START_SENSITIVITY_MEDIUM", "START_SENSITIVITY_HIGH"]
EndSensitivity = Literal["END_SENSITIVITY_LOW", "END_SENSITIVITY_MEDIUM", "END_SENSITIVITY_HIGH"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump as the camelCase JSON document stored and returned by the API."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Voice profiles ---


class WordReplacement(CamelModel):
    original: str
    replacement: str


class BaseVoiceConfig(CamelModel):
    # Workspaces bind to this id, whatever the provider.
    selected_voice: str | None = None
    search_query: str | None = None
    long_message_backchanneling: bool | None = None
    background_noise: BackgroundNoise | None = None
    punctuation_breaks: list[str] | None = None
    word_replacements: list[WordReplacement] | None = None
    min_words_to_stop: SingleValue | None = None
    min_chars_to_start: SingleValue | None = None
    max_length_without_punctuation: SingleValue | None = None
    is_custom_voice: bool | None = None


class ElevenLabsVoiceConfig(BaseVoiceConfig):
    provider: Literal["elevenlabs"] = "elevenlabs"
    speed: SingleValue | None = None
    stability: SingleValue | None = None
    similarity_boost: SingleValue | None = None
    style_exaggeration: SingleValue | None = None
    speaker_boost: bool | None = None


class GoogleLiveVoiceConfig(BaseVoiceConfig):
    provider: Literal["google-live"] = "google-live"
    google_live_voice: GoogleLiveVoice | None = None
    enable_vad: bool | None = Field(default=None, alias="enableVAD")
    start_of_speech_sensitivity: StartSensitivity | None = None
    end_of_speech_sensitivity: EndSensitivity | None = None
    prefix_padding_ms: int | None = None
    silence_duration_ms: int | None = None
    input_audio_transcription: bool | None = None
    output_audio_transcription: bool | None = None


VoiceConfig = Annotated[
    Union[ElevenLabsVoiceConfig, GoogleLiveVoiceConfig],
    Field(discriminator="provider"),
]


class TranscriptionConfig(CamelModel):
    language: str | None = None
    keywords: list[str] | None = None
    input_voice_enhancer: bool | None = None
    silence_detection: bool | None = None
    utterance_threshold: SingleValue | None = None
    timeout_seconds: SingleValue | None = None
    end_call_after_filler_phrases: SingleValue | None = None


class VoiceProfile(CamelModel):
    id: str = Field(min_length=1)
    name: str
    gender: Literal["male", "female"]
    language: str
    image: Any = None
    voice_config: VoiceConfig
    transcription_config: TranscriptionConfig = Field(default_factory=TranscriptionConfig)

    @field_validator("voice_config", mode="before")
    @classmethod
    def default_provider(cls, value: Any) -> Any:
        # Profiles saved before provider selection existed are ElevenLabs.
        if isinstance(value, dict) and "provider" not in value:
            return {**value, "provider": "elevenlabs"}
        return value

    @property
    def provider(self) -> Provider:
        return self.voice_config.provider


def ensure_unique_ids(profiles: list[VoiceProfile]) -> list[VoiceProfile]:
    """Reject a profile list where two entries share an id."""
    seen: set[str] = set()
    for profile in profiles:
        if profile.id in seen:
            raise ValueError(f"duplicate voice profile id '{profile.id}'")
        seen.add(profile.id)
    return profiles


# --- Admin settings ---


class AdminSettings(CamelModel):
    id: str
    global_prompts: str = ""
    greeting_message: str = ""
    voice_profiles: list[VoiceProfile] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("voice_profiles")
    @classmethod
    def check_unique_ids(cls, value: list[VoiceProfile]) -> list[VoiceProfile]:
        return ensure_unique_ids(value)


class SettingsUpdate(CamelModel):
    global_prompts: str | None = None
    greeting_message: str | None = None
    voice_profiles: list[VoiceProfile]
    sync_voice_settings: bool = False

    @field_validator("voice_profiles")
    @classmethod
    def check_unique_ids(cls, value: list[VoiceProfile]) -> list[VoiceProfile]:
        return ensure_unique_ids(value)


class SettingsUpdateResponse(CamelModel):
    settings: AdminSettings
    sync_token: str | None = None


class VoiceProfilesResponse(CamelModel):
    voice_profiles: list[VoiceProfile]


# --- Workspaces ---


class WorkspaceAgentBinding(CamelModel):
    workspace_id: str
    associated_agent_id: str | None = None
    selected_voice_id: str | None = None


class BindingUpdate(CamelModel):
    associated_agent_id: str | None = None
    selected_voice_id: str | None = None


# --- Sync ---


class AgentSyncResult(CamelModel):
    agent_id: str
    workspace_id: str
    profile_id: str
    ok: bool
    error: str | None = None


class SyncReport(CamelModel):
    changed_profile_ids: list[str] = Field(default_factory=list)
    results: list[AgentSyncResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> list[AgentSyncResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[AgentSyncResult]:
        return [r for r in self.results if not r.ok]

    @property
    def is_empty(self) -> bool:
        return not self.changed_profile_ids and not self.results


SyncStatus = Literal["pending", "running", "completed", "abandoned"]


class SyncRecord(CamelModel):
    """A sync request and the profile list it diffs against.

    `baseline` is the profile list as it was before the update that asked for
    the sync. Retries diff against it rather than the current stored list.
    """

    token: str
    status: SyncStatus = "pending"
    baseline: list[VoiceProfile] = Field(default_factory=list)
    attempts: int = 0
    report: SyncReport | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    finished_at: datetime | None = None
