"""
Единый фасад слоя данных.

Маршрутизирует каждую операцию в удаленное или локальное хранилище
и при сбое удаленного хранилища прозрачно выполняет ее локально.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Generic, TypeVar

from src.habit_store.core.exceptions import RemoteStoreException
from src.habit_store.core.logging import store_log as log
from src.habit_store.schemas import (
    CalendarCellSchema,
    DailyProgressSchema,
    HabitSchemaCreate,
    HabitSchemaRead,
    HabitSchemaUpdate,
    MonthCalendarSchema,
    ProgressSchemaRead,
)

from .backend_selector import Backend, select_backend
from .base_store import BaseHabitStore

T = TypeVar("T")


@dataclass(frozen=True)
class ServedResult(Generic[T]):
    """
    Результат операции с указанием хранилища, которое ее выполнило.

    Используется внутри фасада; публичные методы возвращают только data.
    """

    served_from: Backend
    data: T


class UnifiedHabitService:
    """
    Фасад над локальным и удаленным хранилищами.

    Правила:
    - Хранилище выбирается через select_backend при каждом вызове.
    - При RemoteStoreException операция повторяется в локальном хранилище.
    - NotFound, NotAuthenticated и ошибки валидации пробрасываются без повтора.
    - Ошибки локального хранилища пробрасываются без изменений.
    """

    def __init__(
        self,
        local_store: BaseHabitStore,
        remote_store: BaseHabitStore | None,
        has_remote_credentials: bool,
    ):
        """
        Инициализирует фасад.

        Args:
            local_store (BaseHabitStore): Локальное хранилище.
            remote_store (BaseHabitStore | None): Удаленное хранилище (None, если Supabase не настроен).
            has_remote_credentials (bool): Заданы ли учетные данные Supabase.
        """
        self.local_store = local_store
        self.remote_store = remote_store
        self.has_remote_credentials = has_remote_credentials and remote_store is not None

    async def dispatch(
        self,
        operation: str,
        is_authenticated: bool,
        call: Callable[[BaseHabitStore], Awaitable[T]],
    ) -> ServedResult[T]:
        """
        Выполняет операцию в выбранном хранилище с откатом на локальное.

        Args:
            operation (str): Название операции для логов.
            is_authenticated (bool): Вошел ли пользователь в аккаунт.
            call (Callable[[BaseHabitStore], Awaitable[T]]): Операция над хранилищем.

        Returns:
            ServedResult[T]: Результат и хранилище, которое его вернуло.
        """
        backend = select_backend(is_authenticated, self.has_remote_credentials)
        log.debug(f"Операция '{operation}' направлена в хранилище: {backend}")

        if backend == Backend.REMOTE and self.remote_store is not None:
            try:
                return ServedResult(served_from=Backend.REMOTE, data=await call(self.remote_store))
            except RemoteStoreException as exc:
                log.warning(f"Удаленное хранилище недоступно для '{operation}', выполняем локально: {exc.message}")

        return ServedResult(served_from=Backend.LOCAL, data=await call(self.local_store))

    # --- Привычки ---

    async def list_habits(self, *, is_authenticated: bool) -> list[HabitSchemaRead]:
        result = await self.dispatch("list_habits", is_authenticated, lambda store: store.list_habits())
        return result.data

    async def get_habit(self, habit_id: str, *, is_authenticated: bool) -> HabitSchemaRead:
        result = await self.dispatch("get_habit", is_authenticated, lambda store: store.get_habit(habit_id))
        return result.data

    async def create_habit(
        self, draft: HabitSchemaCreate | dict[str, Any], *, is_authenticated: bool
    ) -> HabitSchemaRead:
        result = await self.dispatch("create_habit", is_authenticated, lambda store: store.create_habit(draft))
        return result.data

    async def update_habit(
        self, habit_id: str, patch: HabitSchemaUpdate | dict[str, Any], *, is_authenticated: bool
    ) -> HabitSchemaRead:
        result = await self.dispatch(
            "update_habit", is_authenticated, lambda store: store.update_habit(habit_id, patch)
        )
        return result.data

    async def delete_habit(self, habit_id: str, *, is_authenticated: bool) -> None:
        await self.dispatch("delete_habit", is_authenticated, lambda store: store.delete_habit(habit_id))

    async def apply_completion_delta(self, habit_id: str, completed: bool, *, is_authenticated: bool) -> HabitSchemaRead:
        result = await self.dispatch(
            "apply_completion_delta",
            is_authenticated,
            lambda store: store.apply_completion_delta(habit_id, completed),
        )
        return result.data

    # --- Прогресс ---

    async def list_progress(self, *, is_authenticated: bool) -> list[ProgressSchemaRead]:
        result = await self.dispatch("list_progress", is_authenticated, lambda store: store.list_progress())
        return result.data

    async def upsert_progress(
        self,
        habit_id: str,
        completion_date: date,
        completed: bool,
        note: str = "",
        *,
        is_authenticated: bool,
    ) -> ProgressSchemaRead:
        result = await self.dispatch(
            "upsert_progress",
            is_authenticated,
            lambda store: store.upsert_progress(habit_id, completion_date, completed, note),
        )
        return result.data

    async def get_progress_in_range(
        self, habit_id: str, start_date: date, end_date: date, *, is_authenticated: bool
    ) -> dict[date, ProgressSchemaRead]:
        result = await self.dispatch(
            "get_progress_in_range",
            is_authenticated,
            lambda store: store.get_progress_in_range(habit_id, start_date, end_date),
        )
        return result.data

    async def get_progress_for_date(self, day: date, *, is_authenticated: bool) -> list[DailyProgressSchema]:
        result = await self.dispatch(
            "get_progress_for_date", is_authenticated, lambda store: store.get_progress_for_date(day)
        )
        return result.data

    # --- Календарь ---

    async def get_month_calendar(
        self,
        year: int,
        month: int,
        *,
        is_authenticated: bool,
        habit_id: str | None = None,
        today: date | None = None,
    ) -> list[CalendarCellSchema | None]:
        result = await self.dispatch(
            "get_month_calendar",
            is_authenticated,
            lambda store: store.get_month_calendar(year, month, habit_id=habit_id, today=today),
        )
        return result.data

    async def get_month_overview(
        self,
        year: int,
        month: int,
        *,
        is_authenticated: bool,
        habit_id: str | None = None,
        today: date | None = None,
    ) -> MonthCalendarSchema:
        result = await self.dispatch(
            "get_month_overview",
            is_authenticated,
            lambda store: store.get_month_overview(year, month, habit_id=habit_id, today=today),
        )
        return result.data
