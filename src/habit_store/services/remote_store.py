"""Удаленное хранилище привычек (таблицы Supabase, изолированные по пользователю)."""

from datetime import date
from typing import Any

from pydantic import ValidationError

from src.habit_store.core.exceptions import (
    NotAuthenticatedException,
    NotFoundException,
    RemoteStoreException,
)
from src.habit_store.core.logging import store_log as log
from src.habit_store.core.session import SessionProvider
from src.habit_store.repositories import Filter, SupabaseTableClient, eq, gte, lte
from src.habit_store.schemas import (
    DailyProgressSchema,
    HabitSchemaCreate,
    HabitSchemaRead,
    HabitSchemaUpdate,
    MonthCalendarSchema,
    ProgressSchemaRead,
)
from src.habit_store.utils.calendar_utils import build_month_calendar
from src.habit_store.utils.date_utils import month_bounds, utc_now

from .base_store import BaseHabitStore, SchemaType
from .streak_service import apply_completion

HABITS_TABLE = "habits"
PROGRESS_TABLE = "progress"

# Сортировка списков: сначала новые
NEWEST_FIRST = "created_at.desc"


class RemoteHabitStore(BaseHabitStore):
    """
    Хранилище привычек и прогресса в Supabase.

    Каждый запрос ограничен идентификатором пользователя текущей сессии.
    Без сессии любая операция выбрасывает NotAuthenticatedException.

    Attributes:
        client (SupabaseTableClient): Клиент табличного REST-интерфейса.
        session (SessionProvider): Источник текущей сессии.
    """

    backend_name = "remote"

    def __init__(self, client: SupabaseTableClient, session: SessionProvider):
        """
        Инициализирует удаленное хранилище.

        Args:
            client (SupabaseTableClient): Клиент табличного REST-интерфейса.
            session (SessionProvider): Источник текущей сессии.
        """
        self.client = client
        self.session = session

    # --- Вспомогательные методы ---

    def _require_user_id(self) -> str:
        """
        Возвращает ID пользователя текущей сессии.

        Raises:
            NotAuthenticatedException: Если сессии нет.
        """
        user_id = self.session.user_id
        if not self.session.is_authenticated or user_id is None:
            log.warning("[remote] Операция удаленного хранилища без аутентифицированного пользователя.")
            raise NotAuthenticatedException()
        return user_id

    def _owner_filters(self, *filters: Filter) -> list[Filter]:
        return [eq("user_id", self._require_user_id()), *filters]

    @staticmethod
    def _parse_row(schema: type[SchemaType], row: dict[str, Any]) -> SchemaType:
        """
        Преобразует строку ответа в схему.

        Raises:
            RemoteStoreException: Если строка не соответствует схеме.
        """
        try:
            return schema.model_validate(row)
        except ValidationError as exc:
            log.error(f"[remote] Строка ответа не соответствует {schema.__name__}: {exc.error_count()} ошибок")
            raise RemoteStoreException(message="Некорректные данные в ответе удаленного хранилища.") from exc

    @staticmethod
    def _habit_not_found(habit_id: str) -> NotFoundException:
        log.warning(f"[remote] Привычка ID {habit_id} не найдена.")
        return NotFoundException(
            message=f"Привычка с ID {habit_id} не найдена.",
            error_type="habit_not_found",
            habit_id=habit_id,
        )

    # --- Привычки ---

    async def list_habits(self) -> list[HabitSchemaRead]:
        """Возвращает привычки пользователя, сначала новые."""
        rows = await self.client.select(HABITS_TABLE, filters=self._owner_filters(), order=NEWEST_FIRST)
        return [self._parse_row(HabitSchemaRead, row) for row in rows]

    async def get_habit(self, habit_id: str) -> HabitSchemaRead:
        """
        Возвращает привычку пользователя по ID.

        Raises:
            NotFoundException: Если привычка не найдена (пустой результат выборки).
        """
        rows = await self.client.select(HABITS_TABLE, filters=self._owner_filters(eq("id", habit_id)))
        if not rows:
            raise self._habit_not_found(habit_id)
        return self._parse_row(HabitSchemaRead, rows[0])

    async def create_habit(self, draft: HabitSchemaCreate | dict[str, Any]) -> HabitSchemaRead:
        """
        Создает привычку пользователя. ID и метки времени назначает сервер.

        Raises:
            ValidationException: Если черновик некорректен.
            RemoteStoreException: При ошибке удаленного хранилища.
        """
        habit_in = self._coerce_input(HabitSchemaCreate, draft)
        row = {**self._new_habit_fields(habit_in), "user_id": self._require_user_id()}

        created = self._parse_row(HabitSchemaRead, await self.client.insert(HABITS_TABLE, row=row))
        log.info(f"[remote] Привычка ID {created.id} ('{created.name}') создана.")
        return created

    async def update_habit(self, habit_id: str, patch: HabitSchemaUpdate | dict[str, Any]) -> HabitSchemaRead:
        """
        Обновляет переданные поля привычки и метку updated_at.

        Raises:
            NotFoundException: Если ни одна строка не обновлена.
        """
        habit_patch = self._coerce_input(HabitSchemaUpdate, patch)
        values = {
            **habit_patch.model_dump(exclude_unset=True, exclude_none=True),
            "updated_at": utc_now().isoformat(),
        }

        rows = await self.client.update(HABITS_TABLE, filters=self._owner_filters(eq("id", habit_id)), values=values)
        if not rows:
            raise self._habit_not_found(habit_id)

        log.info(f"[remote] Привычка ID {habit_id} обновлена.")
        return self._parse_row(HabitSchemaRead, rows[0])

    async def delete_habit(self, habit_id: str) -> None:
        """
        Удаляет привычку и все ее записи прогресса.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        # Проверка существования (DELETE в PostgREST не сообщает об отсутствии строк)
        await self.get_habit(habit_id)

        await self.client.delete(PROGRESS_TABLE, filters=self._owner_filters(eq("habit_id", habit_id)))
        await self.client.delete(HABITS_TABLE, filters=self._owner_filters(eq("id", habit_id)))
        log.info(f"[remote] Привычка ID {habit_id} удалена вместе с записями прогресса.")

    async def apply_completion_delta(self, habit_id: str, completed: bool) -> HabitSchemaRead:
        """
        Пересчитывает счетчики привычки и записывает их в таблицу привычек.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        habit = await self.get_habit(habit_id)
        counters = apply_completion(habit.counters, completed)

        rows = await self.client.update(
            HABITS_TABLE,
            filters=self._owner_filters(eq("id", habit_id)),
            values={**counters.model_dump(), "updated_at": utc_now().isoformat()},
        )
        if not rows:
            raise self._habit_not_found(habit_id)
        return self._parse_row(HabitSchemaRead, rows[0])

    # --- Прогресс ---

    async def list_progress(self) -> list[ProgressSchemaRead]:
        """Возвращает все записи прогресса пользователя, сначала новые."""
        rows = await self.client.select(PROGRESS_TABLE, filters=self._owner_filters(), order=NEWEST_FIRST)
        return [self._parse_row(ProgressSchemaRead, row) for row in rows]

    async def upsert_progress(
        self, habit_id: str, completion_date: date, completed: bool, note: str = ""
    ) -> ProgressSchemaRead:
        """
        Создает или обновляет запись прогресса за дату, затем пересчитывает счетчики привычки.

        Raises:
            NotFoundException: Если привычка не найдена.
            RemoteStoreException: При ошибке удаленного хранилища.
        """
        await self.get_habit(habit_id)

        day_filters = self._owner_filters(eq("habit_id", habit_id), eq("completion_date", completion_date.isoformat()))
        existing = await self.client.select(PROGRESS_TABLE, filters=day_filters)

        if existing:
            rows = await self.client.update(
                PROGRESS_TABLE,
                filters=self._owner_filters(eq("id", existing[0]["id"])),
                values={"completed": completed, "note": note, "updated_at": utc_now().isoformat()},
            )
            if not rows:
                raise RemoteStoreException(message="Удаленное хранилище не вернуло обновленную запись прогресса.")
            row = rows[0]
        else:
            row = await self.client.insert(
                PROGRESS_TABLE,
                row={
                    "habit_id": habit_id,
                    "user_id": self._require_user_id(),
                    "completion_date": completion_date.isoformat(),
                    "completed": completed,
                    "note": note,
                },
            )

        record = self._parse_row(ProgressSchemaRead, row)

        # Пересчет серий после каждой записи прогресса
        await self.apply_completion_delta(habit_id, completed)

        action = "обновлена" if existing else "создана"
        log.info(f"[remote] Запись прогресса привычки ID {habit_id} за {completion_date} {action} (completed={completed}).")
        return record

    async def get_progress_in_range(
        self, habit_id: str, start_date: date, end_date: date
    ) -> dict[date, ProgressSchemaRead]:
        """Возвращает записи привычки в диапазоне [start_date, end_date], по ключу даты."""
        rows = await self.client.select(
            PROGRESS_TABLE,
            filters=self._owner_filters(
                eq("habit_id", habit_id),
                gte("completion_date", start_date.isoformat()),
                lte("completion_date", end_date.isoformat()),
            ),
            order="completion_date.asc",
        )
        records = [self._parse_row(ProgressSchemaRead, row) for row in rows]
        return {record.completion_date: record for record in records}

    async def get_progress_for_date(self, day: date) -> list[DailyProgressSchema]:
        """Возвращает состояние каждой привычки пользователя на указанную дату."""
        habits = await self.list_habits()
        rows = await self.client.select(
            PROGRESS_TABLE, filters=self._owner_filters(eq("completion_date", day.isoformat()))
        )
        day_progress = [self._parse_row(ProgressSchemaRead, row) for row in rows]
        return self._build_daily_progress(habits, day_progress)

    # --- Календарь ---

    async def get_month_overview(
        self, year: int, month: int, *, habit_id: str | None = None, today: date | None = None
    ) -> MonthCalendarSchema:
        """Строит календарь месяца по записям прогресса пользователя за этот месяц."""
        first_day, last_day = month_bounds(year, month)

        filters = [
            gte("completion_date", first_day.isoformat()),
            lte("completion_date", last_day.isoformat()),
        ]
        if habit_id is not None:
            filters.append(eq("habit_id", habit_id))

        rows = await self.client.select(PROGRESS_TABLE, filters=self._owner_filters(*filters))
        progress = [self._parse_row(ProgressSchemaRead, row) for row in rows]
        return build_month_calendar(year, month, progress, today=today, habit_id=habit_id)
