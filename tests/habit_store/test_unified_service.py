from datetime import date

import pytest

from src.habit_store.core.exceptions import NotAuthenticatedException, NotFoundException
from src.habit_store.core.session import SessionState
from src.habit_store.services import (
    Backend,
    LocalHabitStore,
    RemoteHabitStore,
    UnifiedHabitService,
)

# Помечаем все тесты в модуле как асинхронные
pytestmark = pytest.mark.asyncio


async def test_anonymous_user_is_served_locally(unified_service: UnifiedHabitService, fake_supabase):
    habit = await unified_service.create_habit({"name": "Local"}, is_authenticated=False)

    assert habit.user_id == "local_user"
    assert fake_supabase.requests == []


async def test_authenticated_user_is_served_remotely(unified_service: UnifiedHabitService, local_store: LocalHabitStore):
    result = await unified_service.dispatch(
        "create_habit", True, lambda store: store.create_habit({"name": "Remote"})
    )

    assert result.served_from == Backend.REMOTE
    assert result.data.user_id != "local_user"
    assert await local_store.list_habits() == []


async def test_missing_credentials_force_local(local_store: LocalHabitStore, remote_store: RemoteHabitStore, fake_supabase):
    service = UnifiedHabitService(local_store, remote_store, has_remote_credentials=False)

    result = await service.dispatch("list_habits", True, lambda store: store.list_habits())

    assert result.served_from == Backend.LOCAL
    assert fake_supabase.requests == []


async def test_remote_outage_falls_back_to_local(
    unified_service: UnifiedHabitService, local_store: LocalHabitStore, fake_supabase
):
    local_habit = await local_store.create_habit({"name": "Offline"})
    fake_supabase.outage = True

    habits = await unified_service.list_habits(is_authenticated=True)
    result = await unified_service.dispatch("list_habits", True, lambda store: store.list_habits())

    assert [habit.id for habit in habits] == [local_habit.id]
    assert result.served_from == Backend.LOCAL
    assert len(fake_supabase.requests) == 2


async def test_writes_during_outage_land_locally(
    unified_service: UnifiedHabitService, local_store: LocalHabitStore, fake_supabase
):
    fake_supabase.outage = True

    habit = await unified_service.create_habit({"name": "Queued"}, is_authenticated=True)
    await unified_service.upsert_progress(habit.id, date(2024, 3, 1), True, is_authenticated=True)

    fake_supabase.outage = False

    assert fake_supabase.tables["habits"] == []
    assert (await local_store.get_habit(habit.id)).total_completions == 1


async def test_not_found_is_not_masked_by_fallback(
    unified_service: UnifiedHabitService, local_store: LocalHabitStore, fake_supabase
):
    # Привычка с тем же ID есть локально, но удаленный NotFound не должен приводить к fallback
    local_habit = await local_store.create_habit({"name": "Only local"})

    with pytest.raises(NotFoundException):
        await unified_service.get_habit(local_habit.id, is_authenticated=True)

    assert len(fake_supabase.requests) == 1


async def test_not_authenticated_does_not_fall_back(local_store: LocalHabitStore, supabase_client, fake_supabase):
    await local_store.create_habit({"name": "Local"})
    remote_without_session = RemoteHabitStore(supabase_client, SessionState())
    service = UnifiedHabitService(local_store, remote_without_session, has_remote_credentials=True)

    with pytest.raises(NotAuthenticatedException):
        await service.list_habits(is_authenticated=True)


async def test_local_only_facade_without_remote_store(local_store: LocalHabitStore):
    service = UnifiedHabitService(local_store, None, has_remote_credentials=True)

    habit = await service.create_habit({"name": "Solo"}, is_authenticated=True)
    await service.upsert_progress(habit.id, date(2024, 5, 1), True, "ok", is_authenticated=True)

    in_range = await service.get_progress_in_range(habit.id, date(2024, 5, 1), date(2024, 5, 31), is_authenticated=True)
    daily = await service.get_progress_for_date(date(2024, 5, 1), is_authenticated=True)
    cells = await service.get_month_calendar(2024, 5, is_authenticated=True, today=date(2024, 5, 1))
    overview = await service.get_month_overview(2024, 5, is_authenticated=True, habit_id=habit.id)

    assert list(in_range) == [date(2024, 5, 1)]
    assert daily[0].note == "ok"
    assert cells[:3] == [None, None, None]
    assert overview.stats.active_days == 1

    updated = await service.update_habit(habit.id, {"category": "Health"}, is_authenticated=True)
    assert updated.category == "Health"

    delta = await service.apply_completion_delta(habit.id, False, is_authenticated=True)
    assert delta.current_streak == 0

    await service.delete_habit(habit.id, is_authenticated=True)
    assert await service.list_habits(is_authenticated=True) == []
    assert await service.list_progress(is_authenticated=True) == []
