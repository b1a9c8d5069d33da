from datetime import date
from typing import AsyncIterator

import pytest

from src.habit_store.core.session import AuthEvent, SessionEvent, SessionState
from src.habit_store.services import LocalHabitStore, RemoteHabitStore, SyncService, listen_for_sign_in

# Помечаем все тесты в модуле как асинхронные
pytestmark = pytest.mark.asyncio


async def event_stream(*events: AuthEvent) -> AsyncIterator[AuthEvent]:
    for auth_event in events:
        yield auth_event


async def test_sync_replays_habits_and_progress(
    sync_service: SyncService, local_store: LocalHabitStore, remote_store: RemoteHabitStore
):
    """
    Сценарий:
    1. Локальная привычка с двумя выполненными днями.
    2. Синхронизация -> удаленная привычка с total_completions=2 и current_streak=2.
    3. Локальные данные не изменились.
    """
    water = await local_store.create_habit({"name": "Water", "icon": "water", "category": "Health"})
    await local_store.upsert_progress(water.id, date(2024, 3, 1), True, "")
    await local_store.upsert_progress(water.id, date(2024, 3, 2), True, "два стакана")
    local_before = await local_store.export_data()

    synced = await sync_service.sync_local_to_remote()

    assert synced == 1

    remote_habits = await remote_store.list_habits()
    assert len(remote_habits) == 1
    remote_water = remote_habits[0]
    assert remote_water.id != water.id
    assert (remote_water.name, remote_water.icon, remote_water.category) == ("Water", "water", "Health")
    assert remote_water.total_completions == 2
    assert remote_water.current_streak == 2

    remote_progress = await remote_store.get_progress_in_range(remote_water.id, date(2024, 3, 1), date(2024, 3, 31))
    assert remote_progress[date(2024, 3, 2)].note == "два стакана"

    local_after = await local_store.export_data()
    assert local_after.habits == local_before.habits
    assert local_after.progress == local_before.progress


async def test_sync_continues_after_failed_habit(
    sync_service: SyncService, local_store: LocalHabitStore, remote_store: RemoteHabitStore, fake_supabase
):
    await local_store.create_habit({"name": "Broken"})
    await local_store.create_habit({"name": "Healthy"})
    fake_supabase.failing_habit_names.add("Broken")

    synced = await sync_service.sync_local_to_remote()

    assert synced == 1
    assert [habit.name for habit in await remote_store.list_habits()] == ["Healthy"]


async def test_sync_rerun_duplicates_remote_habits(sync_service: SyncService, local_store: LocalHabitStore, fake_supabase):
    """Повторный запуск не идемпотентен: привычки создаются заново."""
    await local_store.create_habit({"name": "Water"})

    await sync_service.sync_local_to_remote()
    await sync_service.sync_local_to_remote()

    assert [row["name"] for row in fake_supabase.tables["habits"]] == ["Water", "Water"]


async def test_sync_of_empty_local_store(sync_service: SyncService, fake_supabase):
    assert await sync_service.sync_local_to_remote() == 0
    assert fake_supabase.requests == []


async def test_listener_syncs_once_per_sign_in(
    sync_service: SyncService, local_store: LocalHabitStore, session_state: SessionState, fake_supabase
):
    await local_store.create_habit({"name": "Water"})
    user_id, token = session_state.user_id, session_state.access_token
    state = SessionState()

    runs = await listen_for_sign_in(
        event_stream(
            AuthEvent(event=SessionEvent.SIGNED_IN, user_id=user_id, access_token=token),
            AuthEvent(event=SessionEvent.TOKEN_REFRESHED, user_id=user_id, access_token=token),
            AuthEvent(event=SessionEvent.SIGNED_IN, user_id=user_id, access_token=token),
            AuthEvent(event=SessionEvent.SIGNED_OUT),
            AuthEvent(event=SessionEvent.SIGNED_IN, user_id=user_id, access_token=token),
        ),
        state,
        sync_service,
    )

    assert runs == 2
    assert len(fake_supabase.tables["habits"]) == 2
    assert state.is_authenticated is True


async def test_listener_survives_sync_failure(
    sync_service: SyncService, local_store: LocalHabitStore, session_state: SessionState, fake_supabase
):
    await local_store.create_habit({"name": "Water"})
    fake_supabase.outage = True

    runs = await listen_for_sign_in(
        event_stream(AuthEvent(event=SessionEvent.SIGNED_IN, user_id=session_state.user_id, access_token="jwt")),
        SessionState(),
        sync_service,
    )

    assert runs == 1
    assert fake_supabase.tables["habits"] == []
