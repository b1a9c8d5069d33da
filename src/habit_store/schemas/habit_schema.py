"""Схемы Pydantic для привычки (Habit)."""

from datetime import datetime

from pydantic import ConfigDict, Field

from .base_schema import BaseSchema


class HabitCountersSchema(BaseSchema):
    """
    Производные счетчики привычки.

    Пересчитываются при каждой записи прогресса, независимо от того,
    какое хранилище выполнило запись.
    """

    current_streak: int = Field(0, ge=0, description="Текущая серия выполнений")
    best_streak: int = Field(0, ge=0, description="Лучшая серия выполнений")
    completed_this_week: int = Field(0, ge=0, description="Выполнений на этой неделе (без сброса по неделям)")
    total_completions: int = Field(0, ge=0, description="Всего выполнений")


class HabitSchemaCreate(BaseSchema):
    """Схема для создания новой привычки (черновик от пользователя)."""

    # Неизвестные поля (например, счетчики) запрещены
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Название привычки")
    # icon и category заполняются значениями по умолчанию из настроек, если не переданы
    icon: str | None = Field(None, description="Символьное имя иконки")
    category: str | None = Field(None, description="Категория (свободный текст)")


class HabitSchemaUpdate(BaseSchema):
    """
    Схема для прямого редактирования привычки.
    Все поля опциональны.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, description="Новое название привычки")
    icon: str | None = Field(None, description="Новая иконка")
    category: str | None = Field(None, description="Новая категория")
    # Счетчики не редактируются напрямую, ими управляет пересчет серий


class HabitSchemaRead(HabitCountersSchema):
    """Полная запись привычки в любом из хранилищ."""

    id: str = Field(..., description="ID привычки (локальный или выданный удаленным хранилищем)")
    user_id: str = Field(..., description="ID владельца (пользователь или локальный пользователь)")
    name: str = Field(..., min_length=1, description="Название привычки")
    icon: str = Field(..., description="Символьное имя иконки")
    category: str = Field(..., description="Категория")
    created_at: datetime = Field(..., description="Время создания привычки")
    updated_at: datetime = Field(..., description="Время последнего обновления привычки")

    @property
    def counters(self) -> HabitCountersSchema:
        """Срез производных счетчиков привычки."""
        return HabitCountersSchema(**self.model_dump(include=set(HabitCountersSchema.model_fields)))
