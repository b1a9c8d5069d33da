"""Схемы Pydantic для записей прогресса (ProgressRecord)."""

from datetime import date, datetime

from pydantic import Field, field_validator

from .base_schema import BaseSchema


class ProgressSchemaRead(BaseSchema):
    """
    Запись прогресса привычки за один календарный день.

    Не более одной записи на пару (habit_id, completion_date) у одного владельца.
    """

    id: str = Field(..., description="ID записи прогресса")
    habit_id: str = Field(..., description="ID привычки, к которой относится запись")
    completion_date: date = Field(..., description="Календарная дата")
    completed: bool = Field(..., description="Выполнена ли привычка в этот день")
    note: str = Field("", description="Заметка (свободный текст)")
    user_id: str = Field(..., description="ID владельца")
    created_at: datetime = Field(..., description="Время создания записи")
    updated_at: datetime = Field(..., description="Время последнего обновления записи")

    @field_validator("note", mode="before")
    @classmethod
    def empty_note_for_null(cls, value: str | None) -> str:
        # В удаленной таблице колонка note допускает NULL
        return value or ""


class DailyProgressSchema(BaseSchema):
    """Состояние одной привычки на конкретную дату (для экрана "Сегодня")."""

    habit_id: str = Field(..., description="ID привычки")
    name: str = Field(..., description="Название привычки")
    icon: str = Field(..., description="Иконка привычки")
    completed: bool = Field(False, description="Выполнена ли привычка в эту дату")
    note: str = Field("", description="Заметка за эту дату")
    streak: int = Field(0, ge=0, description="Текущая серия привычки")
