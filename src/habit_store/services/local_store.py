"""Локальное хранилище привычек (key-value таблица на устройстве)."""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from enum import StrEnum
from typing import Any, AsyncGenerator

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.habit_store.core.config import settings
from src.habit_store.core.database import Database, db
from src.habit_store.core.exceptions import NotFoundException, StorageException
from src.habit_store.core.logging import store_log as log
from src.habit_store.repositories import KeyValueRepository
from src.habit_store.schemas import (
    DailyProgressSchema,
    HabitSchemaCreate,
    HabitSchemaRead,
    HabitSchemaUpdate,
    LocalDataExportSchema,
    LocalDataImportSchema,
    MonthCalendarSchema,
    ProgressSchemaRead,
)
from src.habit_store.utils.calendar_utils import build_month_calendar
from src.habit_store.utils.date_utils import utc_now
from src.habit_store.utils.id_utils import generate_local_id

from .base_store import BaseHabitStore
from .streak_service import apply_completion


class StorageKey(StrEnum):
    """Ключи коллекций в key-value хранилище."""

    HABITS = "habits"
    PROGRESS = "progress"
    USER_PREFERENCES = "user_preferences"


HABITS_ADAPTER = TypeAdapter(list[HabitSchemaRead])
PROGRESS_ADAPTER = TypeAdapter(list[ProgressSchemaRead])


class LocalHabitStore(BaseHabitStore):
    """
    Хранилище привычек и прогресса на устройстве.

    Каждая коллекция (привычки, прогресс) хранится целиком как JSON-массив под своим ключом.
    Каждая операция - отдельная единица работы: чтение, изменение и запись коллекций
    выполняются в одной транзакции.

    Attributes:
        database (Database): Менеджер подключения к локальной БД.
        repository (KeyValueRepository): Репозиторий key-value записей.
        owner_id (str): Идентификатор локального пользователя.
    """

    backend_name = "local"

    def __init__(self, database: Database = db, repository: KeyValueRepository | None = None):
        """
        Инициализирует локальное хранилище.

        Args:
            database (Database): Менеджер подключения к локальной БД.
            repository (KeyValueRepository | None): Репозиторий key-value записей.
        """
        self.database = database
        self.repository = repository or KeyValueRepository()
        self.owner_id = settings.LOCAL_USER_ID

        # Операции читают и перезаписывают коллекции целиком, поэтому выполняются по одной
        self._lock = asyncio.Lock()

    # --- Работа с коллекциями ---

    @asynccontextmanager
    async def _unit_of_work(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        """
        Открывает сессию локальной БД и фиксирует транзакцию при успешном завершении блока.

        Блокировка хранилища удерживается на все чтение-изменение-запись:
        операции одного хранилища выполняются строго по одной.

        Args:
            operation (str): Название операции для логов.

        Yields:
            AsyncSession: Сессия локальной БД.

        Raises:
            StorageException: При ошибке ввода-вывода локальной БД.
        """
        try:
            async with self._lock, self.database.session() as db_session:
                yield db_session
                await db_session.commit()
        except (SQLAlchemyError, OSError) as exc:
            # Ошибка уже залогирована в Database.session
            raise StorageException(
                message=f"Ошибка локального хранилища при операции '{operation}'.",
                operation=operation,
            ) from exc

    async def _load_habits(self, db_session: AsyncSession) -> list[HabitSchemaRead]:
        raw = await self.repository.get_item(db_session, key=StorageKey.HABITS)
        return self._decode(StorageKey.HABITS, raw, HABITS_ADAPTER)

    async def _load_progress(self, db_session: AsyncSession) -> list[ProgressSchemaRead]:
        raw = await self.repository.get_item(db_session, key=StorageKey.PROGRESS)
        return self._decode(StorageKey.PROGRESS, raw, PROGRESS_ADAPTER)

    async def _save_habits(self, db_session: AsyncSession, habits: list[HabitSchemaRead]) -> None:
        await self.repository.set_item(
            db_session, key=StorageKey.HABITS, value=HABITS_ADAPTER.dump_json(habits).decode()
        )

    async def _save_progress(self, db_session: AsyncSession, progress: list[ProgressSchemaRead]) -> None:
        await self.repository.set_item(
            db_session, key=StorageKey.PROGRESS, value=PROGRESS_ADAPTER.dump_json(progress).decode()
        )

    @staticmethod
    def _decode(key: StorageKey, raw: str | None, adapter: TypeAdapter) -> list:
        """
        Десериализует коллекцию. Отсутствующий ключ означает пустую коллекцию.

        Raises:
            StorageException: Если сохраненное значение повреждено.
        """
        if raw is None:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as exc:
            log.error(f"Коллекция '{key}' локального хранилища повреждена: {exc.error_count()} ошибок")
            raise StorageException(
                message=f"Коллекция '{key}' локального хранилища повреждена.",
                key=str(key),
            ) from exc

    def _find_habit_index(self, habits: list[HabitSchemaRead], habit_id: str) -> int:
        """
        Ищет позицию привычки владельца в коллекции.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        for index, habit in enumerate(habits):
            if habit.id == habit_id and habit.user_id == self.owner_id:
                return index

        log.warning(f"[local] Привычка ID {habit_id} не найдена.")
        raise NotFoundException(
            message=f"Привычка с ID {habit_id} не найдена.",
            error_type="habit_not_found",
            habit_id=habit_id,
        )

    def _recount(self, habits: list[HabitSchemaRead], index: int, completed: bool) -> HabitSchemaRead:
        """Применяет пересчет серий к привычке в коллекции (на месте) и возвращает обновленную привычку."""
        habit = habits[index]
        counters = apply_completion(habit.counters, completed)
        updated = habit.model_copy(update={**counters.model_dump(), "updated_at": utc_now()})
        habits[index] = updated
        return updated

    # --- Привычки ---

    async def list_habits(self) -> list[HabitSchemaRead]:
        """
        Возвращает привычки локального пользователя в порядке вставки.

        Returns:
            list[HabitSchemaRead]: Список привычек (пустой, если коллекции еще нет).
        """
        async with self._unit_of_work("list_habits") as db_session:
            habits = await self._load_habits(db_session)
        return [habit for habit in habits if habit.user_id == self.owner_id]

    async def get_habit(self, habit_id: str) -> HabitSchemaRead:
        """
        Возвращает привычку локального пользователя по ID.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        async with self._unit_of_work("get_habit") as db_session:
            habits = await self._load_habits(db_session)
            return habits[self._find_habit_index(habits, habit_id)]

    async def create_habit(self, draft: HabitSchemaCreate | dict[str, Any]) -> HabitSchemaRead:
        """
        Создает привычку с новым локальным ID и нулевыми счетчиками.

        Args:
            draft (HabitSchemaCreate | dict[str, Any]): Черновик привычки.

        Returns:
            HabitSchemaRead: Созданная привычка.

        Raises:
            ValidationException: Если черновик некорректен.
            StorageException: При ошибке записи.
        """
        habit_in = self._coerce_input(HabitSchemaCreate, draft)
        now = utc_now()

        habit = HabitSchemaRead(
            id=generate_local_id(),
            user_id=self.owner_id,
            created_at=now,
            updated_at=now,
            **self._new_habit_fields(habit_in),
        )

        async with self._unit_of_work("create_habit") as db_session:
            habits = await self._load_habits(db_session)
            habits.append(habit)
            await self._save_habits(db_session, habits)

        log.info(f"[local] Привычка ID {habit.id} ('{habit.name}') создана.")
        return habit

    async def update_habit(self, habit_id: str, patch: HabitSchemaUpdate | dict[str, Any]) -> HabitSchemaRead:
        """
        Обновляет переданные поля привычки и метку updated_at.

        Args:
            habit_id (str): ID привычки.
            patch (HabitSchemaUpdate | dict[str, Any]): Изменяемые поля.

        Returns:
            HabitSchemaRead: Обновленная привычка.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        habit_patch = self._coerce_input(HabitSchemaUpdate, patch)
        update_data = habit_patch.model_dump(exclude_unset=True, exclude_none=True)

        async with self._unit_of_work("update_habit") as db_session:
            habits = await self._load_habits(db_session)
            index = self._find_habit_index(habits, habit_id)
            habits[index] = habits[index].model_copy(update={**update_data, "updated_at": utc_now()})
            await self._save_habits(db_session, habits)

        log.info(f"[local] Привычка ID {habit_id} обновлена: {sorted(update_data)}")
        return habits[index]

    async def delete_habit(self, habit_id: str) -> None:
        """
        Удаляет привычку и каскадно все ее записи прогресса.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        async with self._unit_of_work("delete_habit") as db_session:
            habits = await self._load_habits(db_session)
            index = self._find_habit_index(habits, habit_id)
            del habits[index]

            progress = await self._load_progress(db_session)
            remaining = [record for record in progress if record.habit_id != habit_id]

            await self._save_habits(db_session, habits)
            await self._save_progress(db_session, remaining)

        log.info(f"[local] Привычка ID {habit_id} удалена вместе с {len(progress) - len(remaining)} записями прогресса.")

    async def apply_completion_delta(self, habit_id: str, completed: bool) -> HabitSchemaRead:
        """
        Пересчитывает счетчики привычки для одной записи прогресса.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        async with self._unit_of_work("apply_completion_delta") as db_session:
            habits = await self._load_habits(db_session)
            updated = self._recount(habits, self._find_habit_index(habits, habit_id), completed)
            await self._save_habits(db_session, habits)
        return updated

    # --- Прогресс ---

    async def list_progress(self) -> list[ProgressSchemaRead]:
        """Возвращает все локальные записи прогресса без фильтрации."""
        async with self._unit_of_work("list_progress") as db_session:
            return await self._load_progress(db_session)

    async def upsert_progress(
        self, habit_id: str, completion_date: date, completed: bool, note: str = ""
    ) -> ProgressSchemaRead:
        """
        Создает или обновляет запись прогресса за дату и пересчитывает счетчики привычки.

        Запись и пересчет выполняются в одной транзакции. Повторная отметка той же даты
        снова увеличивает счетчики (модель монотонного инкремента).

        Args:
            habit_id (str): ID привычки.
            completion_date (date): Календарная дата.
            completed (bool): Статус выполнения.
            note (str): Заметка.

        Returns:
            ProgressSchemaRead: Сохраненная запись прогресса.

        Raises:
            NotFoundException: Если привычка не найдена.
        """
        now = utc_now()

        async with self._unit_of_work("upsert_progress") as db_session:
            habits = await self._load_habits(db_session)
            habit_index = self._find_habit_index(habits, habit_id)

            progress = await self._load_progress(db_session)
            existing_index = next(
                (
                    index
                    for index, record in enumerate(progress)
                    if record.habit_id == habit_id and record.completion_date == completion_date
                ),
                None,
            )

            if existing_index is None:
                record = ProgressSchemaRead(
                    id=generate_local_id(),
                    habit_id=habit_id,
                    completion_date=completion_date,
                    completed=completed,
                    note=note,
                    user_id=self.owner_id,
                    created_at=now,
                    updated_at=now,
                )
                progress.append(record)
            else:
                record = progress[existing_index].model_copy(
                    update={"completed": completed, "note": note, "updated_at": now}
                )
                progress[existing_index] = record

            # Пересчет серий после каждой записи прогресса
            self._recount(habits, habit_index, completed)

            await self._save_progress(db_session, progress)
            await self._save_habits(db_session, habits)

        action = "создана" if existing_index is None else "обновлена"
        log.info(f"[local] Запись прогресса привычки ID {habit_id} за {completion_date} {action} (completed={completed}).")
        return record

    async def get_progress_in_range(
        self, habit_id: str, start_date: date, end_date: date
    ) -> dict[date, ProgressSchemaRead]:
        """
        Возвращает записи привычки в диапазоне [start_date, end_date], по ключу даты.

        Returns:
            dict[date, ProgressSchemaRead]: Записи, упорядоченные по дате.
        """
        progress = await self.list_progress()
        in_range = sorted(
            (
                record
                for record in progress
                if record.habit_id == habit_id and start_date <= record.completion_date <= end_date
            ),
            key=lambda record: record.completion_date,
        )
        return {record.completion_date: record for record in in_range}

    async def get_progress_for_date(self, day: date) -> list[DailyProgressSchema]:
        """Возвращает состояние каждой локальной привычки на указанную дату."""
        async with self._unit_of_work("get_progress_for_date") as db_session:
            habits = await self._load_habits(db_session)
            progress = await self._load_progress(db_session)

        own_habits = [habit for habit in habits if habit.user_id == self.owner_id]
        day_progress = [record for record in progress if record.completion_date == day]
        return self._build_daily_progress(own_habits, day_progress)

    # --- Календарь ---

    async def get_month_overview(
        self, year: int, month: int, *, habit_id: str | None = None, today: date | None = None
    ) -> MonthCalendarSchema:
        """Строит календарь месяца по всем локальным записям прогресса."""
        progress = await self.list_progress()
        return build_month_calendar(year, month, progress, today=today, habit_id=habit_id)

    # --- Управление локальными данными ---

    async def clear_all(self) -> None:
        """Удаляет все коллекции локального хранилища (привычки, прогресс, настройки пользователя)."""
        async with self._unit_of_work("clear_all") as db_session:
            await self.repository.remove_items(db_session, keys=[key.value for key in StorageKey])
        log.warning("[local] Все локальные данные удалены.")

    async def export_data(self) -> LocalDataExportSchema:
        """
        Возвращает снимок локальных коллекций.

        Returns:
            LocalDataExportSchema: Привычки, прогресс и время снимка.
        """
        async with self._unit_of_work("export_data") as db_session:
            habits = await self._load_habits(db_session)
            progress = await self._load_progress(db_session)

        log.info(f"[local] Экспорт: {len(habits)} привычек, {len(progress)} записей прогресса.")
        return LocalDataExportSchema(habits=habits, progress=progress, export_date=utc_now())

    async def import_data(self, data: LocalDataImportSchema | dict[str, Any]) -> None:
        """
        Заменяет переданные коллекции целиком. Отсутствующие коллекции не изменяются.

        Raises:
            ValidationException: Если данные импорта некорректны.
        """
        import_in = self._coerce_input(LocalDataImportSchema, data)

        async with self._unit_of_work("import_data") as db_session:
            if import_in.habits is not None:
                await self._save_habits(db_session, import_in.habits)
            if import_in.progress is not None:
                await self._save_progress(db_session, import_in.progress)

        log.info(
            f"[local] Импорт выполнен: привычки={'да' if import_in.habits is not None else 'нет'}, "
            f"прогресс={'да' if import_in.progress is not None else 'нет'}."
        )
