from datetime import date
from typing import AsyncIterator

import httpx
import pytest

from src.habit_store.core.config import Settings
from src.habit_store.core.session import AuthEvent, SessionEvent
from src.habit_store.main import HabitDataLayer, open_data_layer

# Помечаем все тесты в модуле как асинхронные
pytestmark = pytest.mark.asyncio


async def event_stream(*events: AuthEvent) -> AsyncIterator[AuthEvent]:
    for auth_event in events:
        yield auth_event


def make_settings(local_database_url: str, **overrides) -> Settings:
    return Settings(LOCAL_DATABASE_URL=local_database_url, **overrides)


async def test_data_layer_without_credentials_is_local_only(local_database_url: str):
    async with open_data_layer(app_settings=make_settings(local_database_url)) as data_layer:
        assert data_layer.remote_store is None
        assert data_layer.sync_service is None

        habit = await data_layer.service.create_habit({"name": "Water"}, is_authenticated=False)
        await data_layer.service.upsert_progress(habit.id, date(2024, 3, 1), True, is_authenticated=False)

        runs = await data_layer.listen_for_sign_in(
            event_stream(AuthEvent(event=SessionEvent.SIGNED_IN, user_id="user-1", access_token="jwt"))
        )

        assert runs == 0
        assert data_layer.is_authenticated is True
        # Без учетных данных Supabase даже вошедший пользователь обслуживается локально
        habits = await data_layer.service.list_habits(is_authenticated=data_layer.is_authenticated)
        assert habits[0].total_completions == 1

    assert data_layer.database.is_connected is False


async def test_data_layer_syncs_on_sign_in(local_database_url: str, fake_supabase):
    app_settings = make_settings(
        local_database_url,
        SUPABASE_URL="https://test-project.supabase.co",
        SUPABASE_ANON_KEY="test-anon-key",
    )

    async with open_data_layer(
        app_settings=app_settings, remote_transport=httpx.MockTransport(fake_supabase.handler)
    ) as data_layer:
        assert isinstance(data_layer, HabitDataLayer)

        local_habit = await data_layer.service.create_habit({"name": "Water"}, is_authenticated=False)
        await data_layer.service.upsert_progress(local_habit.id, date(2024, 3, 1), True, is_authenticated=False)

        runs = await data_layer.listen_for_sign_in(
            event_stream(AuthEvent(event=SessionEvent.SIGNED_IN, user_id="user-1", access_token="user-jwt"))
        )

        remote_habits = await data_layer.service.list_habits(is_authenticated=data_layer.is_authenticated)

    assert runs == 1
    assert [habit.name for habit in remote_habits] == ["Water"]
    assert remote_habits[0].user_id == "user-1"
    assert remote_habits[0].total_completions == 1
    assert fake_supabase.requests[-1].headers["Authorization"] == "Bearer user-jwt"
