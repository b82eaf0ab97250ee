"""Admin API routes: settings, voice profiles, sync records, workspace bindings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from cadence_common.auth import AdminAPIKey
from cadence_common.logging import get_logger

from .schemas import (
    AdminSettings,
    BindingUpdate,
    SettingsUpdate,
    SettingsUpdateResponse,
    SyncRecord,
    VoiceProfilesResponse,
    WorkspaceAgentBinding,
)
from .service import AdminService
from .workspace_store import WorkspaceStore

log = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["admin"])

# Sync records are returned without the baseline profile list.
_SYNC_RECORD_EXCLUDE = {"baseline"}


def get_service(request: Request) -> AdminService:
    return request.app.state.admin_service


def get_workspace_store(request: Request) -> WorkspaceStore:
    return request.app.state.workspace_store


@router.get("/admin/settings", response_model=AdminSettings, response_model_by_alias=True)
async def get_admin_settings(
    language: str | None = None,
    _auth: AdminAPIKey = None,
    service: AdminService = Depends(get_service),
) -> AdminSettings:
    """Admin settings, optionally with profiles narrowed to one language."""
    return await service.get_settings(language)


@router.get("/admin/voice-profiles", response_model=VoiceProfilesResponse, response_model_by_alias=True)
async def get_voice_profiles(
    language: str | None = None,
    service: AdminService = Depends(get_service),
) -> VoiceProfilesResponse:
    """Voice profiles only. Readable without the admin key."""
    profiles = await service.get_voice_profiles(language)
    return VoiceProfilesResponse(voice_profiles=profiles)


@router.post("/admin/settings", response_model=SettingsUpdateResponse, response_model_by_alias=True)
async def update_admin_settings(
    update: SettingsUpdate,
    _auth: AdminAPIKey = None,
    service: AdminService = Depends(get_service),
) -> SettingsUpdateResponse:
    """Replace the profile list (and prompts); optionally sync affected agents."""
    log.info(
        "settings_update_request",
        profiles=len(update.voice_profiles),
        sync=update.sync_voice_settings,
    )
    return await service.update_settings(update)


@router.get(
    "/admin/sync/{token}",
    response_model=SyncRecord,
    response_model_by_alias=True,
    response_model_exclude=_SYNC_RECORD_EXCLUDE,
)
async def get_sync(
    token: str,
    _auth: AdminAPIKey = None,
    service: AdminService = Depends(get_service),
) -> SyncRecord:
    return await service.get_sync_record(token)


@router.post(
    "/admin/sync/{token}/retry",
    response_model=SyncRecord,
    response_model_by_alias=True,
    response_model_exclude=_SYNC_RECORD_EXCLUDE,
)
async def retry_sync(
    token: str,
    _auth: AdminAPIKey = None,
    service: AdminService = Depends(get_service),
) -> SyncRecord:
    """Re-run a sync against the profile list it was originally diffed from."""
    return await service.retry_sync(token)


@router.put(
    "/workspaces/{workspace_id}/binding",
    response_model=WorkspaceAgentBinding,
    response_model_by_alias=True,
)
async def put_workspace_binding(
    workspace_id: str,
    body: BindingUpdate,
    _auth: AdminAPIKey = None,
    store: WorkspaceStore = Depends(get_workspace_store),
) -> WorkspaceAgentBinding:
    binding = WorkspaceAgentBinding(
        workspace_id=workspace_id,
        associated_agent_id=body.associated_agent_id,
        selected_voice_id=body.selected_voice_id,
    )
    return await store.upsert(binding)
