"""
Клиент для табличного REST-интерфейса Supabase (PostgREST).

Этот модуль предоставляет низкоуровневый интерфейс CRUD над таблицами удаленного хранилища.
Фильтры передаются в диалекте PostgREST: ("user_id", "eq.<id>"), ("completion_date", "gte.2024-03-01").
Любая сетевая ошибка или ошибка статуса превращается в RemoteStoreException,
чтобы исключения httpx не протекали в бизнес-логику.
"""

from typing import Any, Callable, Sequence

import httpx

from src.habit_store.core.exceptions import RemoteStoreException
from src.habit_store.core.logging import store_log as log

# Пара (колонка, "оператор.значение") для фильтрации строк
Filter = tuple[str, str]


def eq(column: str, value: Any) -> Filter:
    """Фильтр равенства колонки значению."""
    return column, f"eq.{value}"


def gte(column: str, value: Any) -> Filter:
    """Фильтр "больше или равно"."""
    return column, f"gte.{value}"


def lte(column: str, value: Any) -> Filter:
    """Фильтр "меньше или равно"."""
    return column, f"lte.{value}"


class SupabaseTableClient:
    """
    Асинхронный HTTP-клиент для таблиц Supabase.

    Обеспечивает:
    - Авторизацию запросов (apikey + Bearer токен пользователя).
    - Выполнение CRUD-запросов с фильтрами PostgREST.
    - Обработку сетевых ошибок.
    """

    def __init__(
        self,
        rest_url: str,
        anon_key: str,
        *,
        access_token_getter: Callable[[], str | None] | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Инициализирует клиент.

        Args:
            rest_url (str): URL REST-интерфейса (например, https://abc.supabase.co/rest/v1).
            anon_key (str): Публичный ключ проекта.
            access_token_getter (Callable | None): Функция, возвращающая JWT текущей сессии.
                                                   Если токена нет, запрос подписывается anon-ключом.
            timeout (float): Таймаут запроса в секундах.
            transport (httpx.AsyncBaseTransport | None): Альтернативный транспорт (например, для тестов).
        """
        self.anon_key = anon_key
        self.access_token_getter = access_token_getter

        # Один клиент на время жизни слоя данных (connection pooling)
        self.http_client = httpx.AsyncClient(
            base_url=rest_url,
            timeout=timeout,
            transport=transport,
            headers={"apikey": anon_key},
        )

    async def close(self) -> None:
        """Корректно закрывает сессию HTTP-клиента."""
        await self.http_client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        """Формирует заголовок авторизации для текущей сессии."""
        token = self.access_token_getter() if self.access_token_getter else None
        return {"Authorization": f"Bearer {token or self.anon_key}"}

    async def _request(
        self,
        method: str,
        table: str,
        *,
        filters: Sequence[Filter] = (),
        json: dict[str, Any] | list[dict[str, Any]] | None = None,
        extra_params: Sequence[tuple[str, str]] = (),
        return_rows: bool = True,
    ) -> list[dict[str, Any]]:
        """
        Внутренний метод для выполнения авторизованного запроса к таблице.

        Args:
            method (str): HTTP метод ("GET", "POST", "PATCH", "DELETE").
            table (str): Имя таблицы.
            filters (Sequence[Filter]): Фильтры строк в формате PostgREST.
            json (dict | list | None): Тело запроса (для POST/PATCH).
            extra_params (Sequence[tuple[str, str]]): Дополнительные query параметры (select, order).
            return_rows (bool): Просить ли сервер вернуть затронутые строки.

        Returns:
            list[dict[str, Any]]: Строки ответа (пустой список, если сервер ничего не вернул).

        Raises:
            RemoteStoreException: При сетевой ошибке, ошибке статуса или некорректном ответе.
        """
        headers = self._auth_headers()
        if return_rows and method != "GET":
            headers["Prefer"] = "return=representation"

        params = [*filters, *extra_params]

        try:
            log.debug(f"Supabase Request: {method} /{table} | params={params}")
            response = await self.http_client.request(method, f"/{table}", params=params, json=json, headers=headers)

            # Если статус ответа 4xx или 5xx, выбрасываем исключение
            response.raise_for_status()

            # Пустой ответ (204 No Content или return=minimal)
            if response.status_code == 204 or not response.content:
                return []

            data = response.json()

        except httpx.HTTPStatusError as exc:
            log.warning(f"Supabase вернул ошибку {exc.response.status_code} на {method} /{table}: {exc.response.text}")
            raise RemoteStoreException(
                message=f"Ошибка запроса к удаленному хранилищу: {exc.response.status_code}",
                status_code=exc.response.status_code,
                table=table,
            ) from exc
        except httpx.RequestError as exc:
            log.error(f"Ошибка сети на {method} /{table}: {exc}")
            raise RemoteStoreException(message="Ошибка сети при обращении к удаленному хранилищу.", table=table) from exc
        except ValueError as exc:
            log.error(f"Некорректный JSON в ответе на {method} /{table}: {exc}")
            raise RemoteStoreException(message="Некорректный ответ удаленного хранилища.", table=table) from exc

        # PostgREST всегда возвращает массив строк для запросов без single-object режима
        if isinstance(data, dict):
            return [data]
        return data

    # --- Публичные методы ---

    async def select(
        self,
        table: str,
        *,
        filters: Sequence[Filter] = (),
        columns: str = "*",
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Получает строки таблицы, удовлетворяющие фильтрам.

        Args:
            table (str): Имя таблицы.
            filters (Sequence[Filter]): Фильтры (объединяются через AND).
            columns (str): Список колонок через запятую.
            order (str | None): Сортировка, например "created_at.desc".

        Returns:
            list[dict[str, Any]]: Найденные строки.
        """
        extra_params = [("select", columns)]
        if order:
            extra_params.append(("order", order))

        return await self._request("GET", table, filters=filters, extra_params=extra_params)

    async def insert(self, table: str, *, row: dict[str, Any]) -> dict[str, Any]:
        """
        Вставляет одну строку и возвращает ее с заполненными сервером полями (id, created_at...).

        Args:
            table (str): Имя таблицы.
            row (dict[str, Any]): Данные строки.

        Returns:
            dict[str, Any]: Вставленная строка.
        """
        rows = await self._request("POST", table, json=row)

        if not rows:
            raise RemoteStoreException(message=f"Удаленное хранилище не вернуло созданную запись ({table}).")
        return rows[0]

    async def update(self, table: str, *, filters: Sequence[Filter], values: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Обновляет строки, удовлетворяющие фильтрам.

        Args:
            table (str): Имя таблицы.
            filters (Sequence[Filter]): Фильтры (объединяются через AND).
            values (dict[str, Any]): Новые значения колонок.

        Returns:
            list[dict[str, Any]]: Обновленные строки (пустой список, если ничего не совпало).
        """
        return await self._request("PATCH", table, filters=filters, json=values)

    async def delete(self, table: str, *, filters: Sequence[Filter]) -> None:
        """
        Удаляет строки, удовлетворяющие фильтрам.

        Args:
            table (str): Имя таблицы.
            filters (Sequence[Filter]): Фильтры (объединяются через AND).
        """
        await self._request("DELETE", table, filters=filters, return_rows=False)
