import httpx
import pytest

from src.habit_store.core.exceptions import RemoteStoreException
from src.habit_store.repositories import SupabaseTableClient, eq

# Помечаем все тесты в модуле как асинхронные
pytestmark = pytest.mark.asyncio

REST_URL = "https://abc.supabase.co/rest/v1"


def make_client(handler, token: str | None = None) -> SupabaseTableClient:
    return SupabaseTableClient(
        REST_URL,
        "anon-key",
        access_token_getter=lambda: token,
        transport=httpx.MockTransport(handler),
    )


async def test_select_builds_postgrest_query():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=[{"id": "1"}])

    client = make_client(handler, token="user-jwt")
    rows = await client.select("habits", filters=[eq("user_id", "u1")], order="created_at.desc")
    await client.close()

    request = captured[0]
    assert rows == [{"id": "1"}]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/habits"
    assert request.url.params.multi_items() == [
        ("user_id", "eq.u1"),
        ("select", "*"),
        ("order", "created_at.desc"),
    ]
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer user-jwt"
    assert "Prefer" not in request.headers


async def test_anon_key_is_used_without_session_token():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(204)

    client = make_client(handler)
    await client.delete("progress", filters=[eq("habit_id", "h1")])
    await client.close()

    assert captured[0].headers["Authorization"] == "Bearer anon-key"
    assert captured[0].method == "DELETE"


async def test_insert_without_returned_row_raises():
    client = make_client(lambda request: httpx.Response(201, json=[]))

    with pytest.raises(RemoteStoreException):
        await client.insert("habits", row={"name": "Water"})

    await client.close()


async def test_single_object_response_is_wrapped_in_list():
    client = make_client(lambda request: httpx.Response(200, json={"id": "1"}))

    rows = await client.update("habits", filters=[eq("id", "1")], values={"name": "New"})
    await client.close()

    assert rows == [{"id": "1"}]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"message": "JWT expired"}),
        httpx.Response(503, text="unavailable"),
        httpx.Response(200, text="<html>not json</html>"),
    ],
)
async def test_failures_become_remote_store_exception(response: httpx.Response):
    client = make_client(lambda request: response)

    with pytest.raises(RemoteStoreException):
        await client.select("habits")

    await client.close()


async def test_network_error_becomes_remote_store_exception():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timeout", request=request)

    client = make_client(handler)

    with pytest.raises(RemoteStoreException):
        await client.select("habits")

    await client.close()
