"""Инициализация модуля схем Pydantic."""

from .base_schema import BaseSchema
from .calendar_schema import CalendarCellSchema, CalendarStatsSchema, MonthCalendarSchema
from .export_schema import LocalDataExportSchema, LocalDataImportSchema
from .habit_schema import HabitCountersSchema, HabitSchemaCreate, HabitSchemaRead, HabitSchemaUpdate
from .progress_schema import DailyProgressSchema, ProgressSchemaRead

__all__ = [
    "BaseSchema",
    "HabitCountersSchema",
    "HabitSchemaCreate",
    "HabitSchemaRead",
    "HabitSchemaUpdate",
    "ProgressSchemaRead",
    "DailyProgressSchema",
    "CalendarCellSchema",
    "CalendarStatsSchema",
    "MonthCalendarSchema",
    "LocalDataExportSchema",
    "LocalDataImportSchema",
]
