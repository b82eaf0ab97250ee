"""Find the agents affected by a set of changed voice profiles."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .schemas import GoogleLiveVoiceConfig, VoiceProfile, WorkspaceAgentBinding


class MatchMode(str, Enum):
    """How a profile is matched against a workspace's `selectedVoiceId`.

    SELECTED_VOICE compares `voiceConfig.selectedVoice` for every provider.
    Google Live profiles are picked by `googleLiveVoice` in the UI, so under
    this mode their edits only reach workspaces whose binding happens to hold
    the profile's `selectedVoice`. PER_PROVIDER matches Google Live profiles
    on `googleLiveVoice` instead.
    """

    SELECTED_VOICE = "selected-voice"
    PER_PROVIDER = "per-provider"


@dataclass(frozen=True)
class AgentSyncTask:
    agent_id: str
    workspace_id: str
    profile: VoiceProfile


def match_key(profile: VoiceProfile, mode: MatchMode = MatchMode.SELECTED_VOICE) -> str | None:
    voice = profile.voice_config
    if mode is MatchMode.PER_PROVIDER and isinstance(voice, GoogleLiveVoiceConfig):
        return voice.google_live_voice
    return voice.selected_voice


def resolve_affected_agents(
    changed: Sequence[VoiceProfile],
    bindings: Sequence[WorkspaceAgentBinding],
    mode: MatchMode = MatchMode.SELECTED_VOICE,
    previous: Sequence[VoiceProfile] | None = None,
) -> list[AgentSyncTask]:
    """Return one task per bound agent whose voice matches a changed profile.

    A binding holds the voice id its workspace was configured with, so it
    matches on the profile's new key or, when `previous` holds the profile as
    it was before the edit, on the old key too. Bindings without an agent id
    are skipped. When two changed profiles share a match key, the first one
    in `changed` wins for that workspace.
    """
    previous_by_id = {profile.id: profile for profile in previous or ()}
    by_key: dict[str, VoiceProfile] = {}
    for profile in changed:
        keys = [match_key(profile, mode)]
        old = previous_by_id.get(profile.id)
        if old is not None:
            keys.append(match_key(old, mode))
        for key in keys:
            if key and key not in by_key:
                by_key[key] = profile

    tasks: list[AgentSyncTask] = []
    for binding in bindings:
        if not binding.associated_agent_id or not binding.selected_voice_id:
            continue
        profile = by_key.get(binding.selected_voice_id)
        if profile is None:
            continue
        tasks.append(
            AgentSyncTask(
                agent_id=binding.associated_agent_id,
                workspace_id=binding.workspace_id,
                profile=profile,
            )
        )
    return tasks
