import pytest
import pytest_asyncio

from cadence_admin.errors import PersistenceError, SyncInProgressError, SyncNotFoundError
from cadence_admin.schemas import SettingsUpdate
from cadence_admin.service import AdminService
from cadence_admin.settings_store import SettingsStore
from cadence_admin.sync import SyncOrchestrator

from helpers import (
    BrokenBindings,
    FakeAgentAPI,
    FlakySettingsStore,
    GatedAgentAPI,
    StaticBindings,
    binding,
    make_profile,
)


@pytest_asyncio.fixture()
async def store(tmp_path):
    store = SettingsStore(str(tmp_path / "admin.db"))
    await store.init()
    yield store
    await store.close()


def _service(store, agent_api, bindings=None) -> AdminService:
    workspaces = bindings if bindings is not None else StaticBindings([])
    return AdminService(store, workspaces, SyncOrchestrator(agent_api))


@pytest.mark.asyncio
async def test_first_read_creates_default_settings(store, agent_api):
    service = _service(store, agent_api)

    settings = await service.get_settings()

    assert settings.id == "global"
    assert [p.id for p in settings.voice_profiles] == ["default"]
    assert (await store.load("global")) == settings


@pytest.mark.asyncio
async def test_language_filter(store, agent_api):
    service = _service(store, agent_api)
    await service.update_voice_profiles(
        [make_profile("en", language="en-US"), make_profile("de", language="de-DE")]
    )

    assert [p.id for p in await service.get_voice_profiles("de-DE")] == ["de"]
    assert [p.id for p in (await service.get_settings()).voice_profiles] == ["en", "de"]


@pytest.mark.asyncio
async def test_update_without_sync_calls_no_agents(store, agent_api):
    bindings = StaticBindings([binding("ws-1", "agent-1", "voice-default")])
    service = _service(store, agent_api, bindings)
    await service.get_settings()

    response = await service.update_settings(
        SettingsUpdate(voice_profiles=[make_profile("default", speed=[1.3])], greeting_message="Hi there")
    )
    await service.drain()

    assert response.sync_token is None
    assert response.settings.greeting_message == "Hi there"
    assert agent_api.calls == []
    assert bindings.listed == 0


@pytest.mark.asyncio
async def test_prompts_are_kept_when_not_sent(store, agent_api):
    service = _service(store, agent_api)
    await service.update_settings(
        SettingsUpdate(voice_profiles=[], global_prompts="Be brief.", greeting_message="Hello")
    )

    response = await service.update_settings(SettingsUpdate(voice_profiles=[make_profile("a")]))

    assert response.settings.global_prompts == "Be brief."
    assert response.settings.greeting_message == "Hello"


@pytest.mark.asyncio
async def test_sync_runs_in_background_and_is_recorded(store, agent_api):
    bindings = StaticBindings([binding("ws-1", "agent-1", "v1"), binding("ws-2", "agent-2", "v2")])
    service = _service(store, agent_api, bindings)
    await service.update_voice_profiles([make_profile("a", voice="v1", speed=[1])])

    response = await service.update_voice_profiles([make_profile("a", voice="v1", speed=[1.4])], sync=True)
    assert response.sync_token
    assert (await store.load("global")).voice_profiles[0].voice_config.speed == [1.4]

    await service.drain()

    assert agent_api.agent_ids == ["agent-1"]
    record = await service.get_sync_record(response.sync_token)
    assert record.status == "completed"
    assert record.attempts == 1
    assert record.finished_at is not None
    assert record.report.changed_profile_ids == ["a"]
    assert [r.agent_id for r in record.report.succeeded] == ["agent-1"]


@pytest.mark.asyncio
async def test_retry_resends_after_failed_sync(store):
    agent_api = FakeAgentAPI(failing={"agent-1"})
    service = _service(store, agent_api, StaticBindings([binding("ws-1", "agent-1", "v1")]))
    await service.update_voice_profiles([make_profile("a", voice="v1", stability=[0.5])])

    response = await service.update_voice_profiles([make_profile("a", voice="v1", stability=[0.9])], sync=True)
    await service.drain()

    record = await service.get_sync_record(response.sync_token)
    assert record.status == "completed"
    assert [r.agent_id for r in record.report.failed] == ["agent-1"]

    # The stored list already holds the new profile; the retry still sees the change.
    agent_api.failing.clear()
    record = await service.retry_sync(response.sync_token)

    assert record.attempts == 2
    assert record.report.failed == []
    assert [r.agent_id for r in record.report.succeeded] == ["agent-1"]
    assert agent_api.agent_ids == ["agent-1", "agent-1"]
    assert (await service.get_sync_record(response.sync_token)).attempts == 2


@pytest.mark.asyncio
async def test_binding_failure_abandons_sync_but_keeps_save(store, agent_api):
    service = _service(store, agent_api, BrokenBindings())
    await service.update_voice_profiles([make_profile("a", speed=[1])])

    response = await service.update_voice_profiles([make_profile("a", speed=[2])], sync=True)
    await service.drain()

    assert (await store.load("global")).voice_profiles[0].voice_config.speed == [2]
    record = await service.get_sync_record(response.sync_token)
    assert record.status == "abandoned"
    assert "database is locked" in record.error
    assert record.report is None
    assert agent_api.calls == []


@pytest.mark.asyncio
async def test_unknown_sync_token(store, agent_api):
    with pytest.raises(SyncNotFoundError):
        await _service(store, agent_api).get_sync_record("nope")


@pytest.mark.asyncio
async def test_failed_save_aborts_update_and_sync(tmp_path, agent_api):
    store = FlakySettingsStore(str(tmp_path / "admin.db"))
    await store.init()
    try:
        bindings = StaticBindings([binding("ws-1", "agent-1", "voice-a")])
        service = _service(store, agent_api, bindings)
        await service.update_voice_profiles([make_profile("a", speed=[1])])

        store.fail_saves = True
        with pytest.raises(PersistenceError):
            await service.update_settings(
                SettingsUpdate(voice_profiles=[make_profile("a", speed=[2])], sync_voice_settings=True)
            )
        await service.drain()

        assert agent_api.calls == []
        assert bindings.listed == 0
        assert (await store.load("global")).voice_profiles[0].voice_config.speed == [1]
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_retry_is_rejected_while_sync_is_running(store):
    agent_api = GatedAgentAPI()
    service = _service(store, agent_api, StaticBindings([binding("ws-1", "agent-1", "v1")]))
    await service.update_voice_profiles([make_profile("a", voice="v1", speed=[1])])

    response = await service.update_voice_profiles([make_profile("a", voice="v1", speed=[2])], sync=True)
    with pytest.raises(SyncInProgressError):
        await service.retry_sync(response.sync_token)

    agent_api.gate.set()
    await service.drain()

    record = await service.get_sync_record(response.sync_token)
    assert record.status == "completed"
    assert record.attempts == 1

    # Once the first run is done the token can be retried.
    record = await service.retry_sync(response.sync_token)
    assert record.attempts == 2
    assert agent_api.agent_ids == ["agent-1", "agent-1"]
