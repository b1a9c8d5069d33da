"""Схемы Pydantic для экспорта/импорта локальных данных."""

from datetime import datetime

from pydantic import Field

from .base_schema import BaseSchema
from .habit_schema import HabitSchemaRead
from .progress_schema import ProgressSchemaRead


class LocalDataExportSchema(BaseSchema):
    """Снимок локального хранилища."""

    habits: list[HabitSchemaRead] = Field(default_factory=list, description="Все локальные привычки")
    progress: list[ProgressSchemaRead] = Field(default_factory=list, description="Все локальные записи прогресса")
    export_date: datetime = Field(..., description="Время создания снимка")


class LocalDataImportSchema(BaseSchema):
    """
    Данные для импорта в локальное хранилище.
    Переданные коллекции полностью заменяют текущие, отсутствующие не трогаются.
    """

    habits: list[HabitSchemaRead] | None = Field(None, description="Привычки для замены")
    progress: list[ProgressSchemaRead] | None = Field(None, description="Записи прогресса для замены")
