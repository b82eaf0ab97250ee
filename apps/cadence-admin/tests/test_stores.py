import pytest
import pytest_asyncio

from cadence_admin.errors import PersistenceError
from cadence_admin.schemas import AdminSettings, SyncRecord
from cadence_admin.settings_store import SettingsStore
from cadence_admin.workspace_store import WorkspaceStore

from helpers import binding, make_profile


@pytest_asyncio.fixture()
async def settings_store(tmp_path):
    store = SettingsStore(str(tmp_path / "admin.db"))
    await store.init()
    yield store
    await store.close()


@pytest_asyncio.fixture()
async def workspace_store(tmp_path):
    store = WorkspaceStore(str(tmp_path / "admin.db"))
    await store.init()
    yield store
    await store.close()


@pytest.mark.asyncio
async def test_settings_round_trip(settings_store):
    assert await settings_store.load("global") is None

    settings = AdminSettings(
        id="global",
        global_prompts="Be brief.",
        voice_profiles=[
            make_profile("el", voice="v1", stability=[0.3]),
            make_profile("gl", provider="google-live", google_live_voice="Kore", enableVAD=True),
        ],
    )
    await settings_store.save(settings)

    loaded = await settings_store.load("global")
    assert loaded == settings
    assert loaded.voice_profiles[1].voice_config.enable_vad is True


@pytest.mark.asyncio
async def test_save_replaces_existing_document(settings_store):
    await settings_store.save(AdminSettings(id="global", voice_profiles=[make_profile("a")]))
    await settings_store.save(AdminSettings(id="global", voice_profiles=[make_profile("b"), make_profile("c")]))

    loaded = await settings_store.load("global")
    assert [p.id for p in loaded.voice_profiles] == ["b", "c"]


@pytest.mark.asyncio
async def test_corrupt_document_is_a_persistence_error(settings_store):
    await settings_store._conn("test").execute(
        "INSERT INTO admin_settings (id, document, updated_at) VALUES ('global', '{not json', '')"
    )

    with pytest.raises(PersistenceError):
        await settings_store.load("global")


@pytest.mark.asyncio
async def test_uninitialized_store_raises(tmp_path):
    store = SettingsStore(str(tmp_path / "admin.db"))

    assert store.ready is False
    with pytest.raises(PersistenceError):
        await store.load("global")


@pytest.mark.asyncio
async def test_sync_record_round_trip(settings_store):
    assert await settings_store.get_sync_record("missing") is None

    record = SyncRecord(token="t1", baseline=[make_profile("a")])
    await settings_store.save_sync_record(record)
    record.status = "completed"
    record.attempts = 1
    await settings_store.save_sync_record(record)

    loaded = await settings_store.get_sync_record("t1")
    assert loaded.status == "completed"
    assert loaded.attempts == 1
    assert [p.id for p in loaded.baseline] == ["a"]


@pytest.mark.asyncio
async def test_workspace_bindings_upsert_and_list(workspace_store):
    assert await workspace_store.list_all() == []

    await workspace_store.upsert(binding("ws-b", "agent-b", "v1"))
    await workspace_store.upsert(binding("ws-a", None, None))
    await workspace_store.upsert(binding("ws-b", "agent-b2", "v2"))

    assert await workspace_store.list_all() == [
        binding("ws-a", None, None),
        binding("ws-b", "agent-b2", "v2"),
    ]
