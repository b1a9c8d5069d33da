import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from src.habit_store.core.database import Database
from src.habit_store.core.session import SessionState
from src.habit_store.repositories import SupabaseTableClient
from src.habit_store.services import LocalHabitStore, RemoteHabitStore, SyncService, UnifiedHabitService

TEST_REST_URL = "https://test-project.supabase.co/rest/v1"
TEST_ANON_KEY = "test-anon-key"
TEST_USER_ID = "11111111-1111-1111-1111-111111111111"
TEST_ACCESS_TOKEN = "test-access-token"

# --- ФЕЙКОВЫЙ POSTGREST ---


class FakeSupabase:
    """
    Хранилище таблиц в памяти, отвечающее на запросы в диалекте PostgREST.

    Поддерживает фильтры eq/gte/lte, сортировку order=<col>.<asc|desc>,
    Prefer: return=representation и имитацию сбоев.

    Attributes:
        tables (dict[str, list[dict]]): Строки таблиц.
        requests (list[httpx.Request]): Все полученные запросы.
        outage (bool): Если True, любой запрос завершается ошибкой сети.
        failing_habit_names (set[str]): Имена привычек, вставка которых завершается ошибкой 500.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {"habits": [], "progress": []}
        self.requests: list[httpx.Request] = []
        self.outage = False
        self.failing_habit_names: set[str] = set()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> str:
        # Монотонные метки времени, чтобы сортировка по created_at была детерминированной
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    @staticmethod
    def _matches(row: dict[str, Any], filters: list[tuple[str, str]]) -> bool:
        for column, expression in filters:
            operator, _, expected = expression.partition(".")
            actual = row.get(column)
            actual_str = str(actual).lower() if isinstance(actual, bool) else str(actual)

            if operator == "eq" and actual_str != expected:
                return False
            if operator == "gte" and not actual_str >= expected:
                return False
            if operator == "lte" and not actual_str <= expected:
                return False
        return True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.outage:
            raise httpx.ConnectError("Supabase недоступен", request=request)

        if request.headers.get("apikey") != TEST_ANON_KEY:
            return httpx.Response(401, json={"message": "Invalid API key"})

        table = request.url.path.rsplit("/", 1)[-1]
        if table not in self.tables:
            return httpx.Response(404, json={"message": f"relation {table} does not exist"})

        params = request.url.params.multi_items()
        order = next((value for key, value in params if key == "order"), None)
        filters = [(key, value) for key, value in params if key not in ("select", "order")]
        rows = self.tables[table]
        wants_rows = request.headers.get("Prefer") == "return=representation"

        if request.method == "GET":
            selected = [dict(row) for row in rows if self._matches(row, filters)]
            if order:
                column, _, direction = order.partition(".")
                selected.sort(key=lambda row: str(row[column]), reverse=direction == "desc")
            return httpx.Response(200, json=selected)

        if request.method == "POST":
            payload = json.loads(request.content)
            if table == "habits" and payload.get("name") in self.failing_habit_names:
                return httpx.Response(500, json={"message": "internal error"})

            timestamp = self._now()
            row = {"id": str(uuid.uuid4()), "created_at": timestamp, "updated_at": timestamp, **payload}
            rows.append(row)
            return httpx.Response(201, json=[row] if wants_rows else None)

        if request.method == "PATCH":
            values = json.loads(request.content)
            updated = []
            for row in rows:
                if self._matches(row, filters):
                    row.update(values)
                    updated.append(dict(row))
            return httpx.Response(200, json=updated if wants_rows else [])

        if request.method == "DELETE":
            self.tables[table] = [row for row in rows if not self._matches(row, filters)]
            return httpx.Response(204)

        return httpx.Response(405)


# --- ФИКСТУРЫ ХРАНИЛИЩ ---


@pytest.fixture(scope="function")
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture(scope="function")
def session_state() -> SessionState:
    """Сессия вошедшего пользователя."""
    return SessionState(user_id=TEST_USER_ID, access_token=TEST_ACCESS_TOKEN)


@pytest_asyncio.fixture(scope="function")
async def supabase_client(
    fake_supabase: FakeSupabase, session_state: SessionState
) -> AsyncGenerator[SupabaseTableClient, None]:
    """Клиент Supabase, все запросы которого обрабатывает FakeSupabase."""
    client = SupabaseTableClient(
        TEST_REST_URL,
        TEST_ANON_KEY,
        access_token_getter=lambda: session_state.access_token,
        transport=httpx.MockTransport(fake_supabase.handler),
    )
    yield client
    await client.close()


@pytest.fixture(scope="function")
def local_store(database: Database) -> LocalHabitStore:
    return LocalHabitStore(database=database)


@pytest.fixture(scope="function")
def remote_store(supabase_client: SupabaseTableClient, session_state: SessionState) -> RemoteHabitStore:
    return RemoteHabitStore(supabase_client, session_state)


@pytest.fixture(scope="function")
def unified_service(local_store: LocalHabitStore, remote_store: RemoteHabitStore) -> UnifiedHabitService:
    return UnifiedHabitService(local_store, remote_store, has_remote_credentials=True)


@pytest.fixture(scope="function")
def sync_service(local_store: LocalHabitStore, remote_store: RemoteHabitStore) -> SyncService:
    return SyncService(local_store, remote_store)
