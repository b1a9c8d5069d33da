"""
Базовый класс хранилищ привычек.

Определяет общую поверхность операций локального и удаленного хранилищ,
чтобы фасад и синхронизация могли работать с любым из них одинаково.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from src.habit_store.core.config import settings
from src.habit_store.core.exceptions import ValidationException
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

SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseHabitStore(ABC):
    """
    Общий контракт хранилища привычек и записей прогресса.

    Attributes:
        backend_name (str): Имя хранилища для логов.
    """

    backend_name: str = "base"

    # --- Вспомогательные методы ---

    def _coerce_input(self, schema: type[SchemaType], data: SchemaType | dict[str, Any]) -> SchemaType:
        """
        Приводит входные данные к схеме Pydantic.

        Args:
            schema (type[SchemaType]): Ожидаемая схема.
            data (SchemaType | dict[str, Any]): Схема или словарь с данными.

        Returns:
            SchemaType: Провалидированная схема.

        Raises:
            ValidationException: Если данные не проходят валидацию.
        """
        if isinstance(data, schema):
            return data

        try:
            return schema.model_validate(data)
        except ValidationError as exc:
            log.warning(f"[{self.backend_name}] Некорректные данные для {schema.__name__}: {exc.errors()}")
            raise ValidationException(
                message=f"Некорректные данные для {schema.__name__}.",
                errors=exc.errors(),
            ) from exc

    def _new_habit_fields(self, draft: HabitSchemaCreate) -> dict[str, Any]:
        """
        Поля новой привычки с примененными значениями по умолчанию и нулевыми счетчиками.

        Args:
            draft (HabitSchemaCreate): Черновик привычки.

        Returns:
            dict[str, Any]: Данные для сохранения (без id, владельца и меток времени).
        """
        return {
            "name": draft.name,
            "icon": draft.icon or settings.DEFAULT_HABIT_ICON,
            "category": draft.category or settings.DEFAULT_HABIT_CATEGORY,
            "current_streak": 0,
            "best_streak": 0,
            "completed_this_week": 0,
            "total_completions": 0,
        }

    @staticmethod
    def _build_daily_progress(
        habits: list[HabitSchemaRead],
        day_progress: list[ProgressSchemaRead],
    ) -> list[DailyProgressSchema]:
        """
        Объединяет привычки с записями прогресса за одну дату.

        Привычки без записи за эту дату считаются невыполненными с пустой заметкой.
        """
        progress_by_habit = {record.habit_id: record for record in day_progress}

        daily: list[DailyProgressSchema] = []
        for habit in habits:
            record = progress_by_habit.get(habit.id)
            daily.append(
                DailyProgressSchema(
                    habit_id=habit.id,
                    name=habit.name,
                    icon=habit.icon,
                    completed=record.completed if record else False,
                    note=record.note if record else "",
                    streak=habit.current_streak,
                )
            )
        return daily

    # --- Привычки ---

    @abstractmethod
    async def list_habits(self) -> list[HabitSchemaRead]:
        """Возвращает все привычки владельца."""

    @abstractmethod
    async def get_habit(self, habit_id: str) -> HabitSchemaRead:
        """Возвращает привычку по ID или выбрасывает NotFoundException."""

    @abstractmethod
    async def create_habit(self, draft: HabitSchemaCreate | dict[str, Any]) -> HabitSchemaRead:
        """Создает привычку с нулевыми счетчиками."""

    @abstractmethod
    async def update_habit(self, habit_id: str, patch: HabitSchemaUpdate | dict[str, Any]) -> HabitSchemaRead:
        """Обновляет поля привычки или выбрасывает NotFoundException."""

    @abstractmethod
    async def delete_habit(self, habit_id: str) -> None:
        """Удаляет привычку вместе со всеми ее записями прогресса."""

    @abstractmethod
    async def apply_completion_delta(self, habit_id: str, completed: bool) -> HabitSchemaRead:
        """Пересчитывает счетчики привычки после записи прогресса."""

    # --- Прогресс ---

    @abstractmethod
    async def list_progress(self) -> list[ProgressSchemaRead]:
        """Возвращает все записи прогресса владельца."""

    @abstractmethod
    async def upsert_progress(
        self, habit_id: str, completion_date: date, completed: bool, note: str = ""
    ) -> ProgressSchemaRead:
        """Создает или обновляет запись прогресса за дату и пересчитывает счетчики привычки."""

    @abstractmethod
    async def get_progress_in_range(
        self, habit_id: str, start_date: date, end_date: date
    ) -> dict[date, ProgressSchemaRead]:
        """Возвращает записи привычки в диапазоне дат (включительно), по ключу даты."""

    @abstractmethod
    async def get_progress_for_date(self, day: date) -> list[DailyProgressSchema]:
        """Возвращает состояние каждой привычки владельца на указанную дату."""

    # --- Календарь ---

    @abstractmethod
    async def get_month_overview(
        self, year: int, month: int, *, habit_id: str | None = None, today: date | None = None
    ) -> MonthCalendarSchema:
        """Возвращает календарную сетку месяца со статистикой."""

    async def get_month_calendar(
        self, year: int, month: int, *, habit_id: str | None = None, today: date | None = None
    ) -> list[CalendarCellSchema | None]:
        """
        Возвращает только ячейки календарной сетки месяца.

        Args:
            year (int): Год.
            month (int): Месяц (1-12).
            habit_id (str | None): Ограничить подсчет одной привычкой.
            today (date | None): "Сегодня" для флага is_today.

        Returns:
            list[CalendarCellSchema | None]: None-заполнители до первого дня и ячейки дней месяца.
        """
        overview = await self.get_month_overview(year, month, habit_id=habit_id, today=today)
        return overview.cells
