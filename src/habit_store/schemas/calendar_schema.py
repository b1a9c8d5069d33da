"""Схемы Pydantic для календаря выполнений (вычисляются, не хранятся)."""

from pydantic import Field

from .base_schema import BaseSchema


class CalendarCellSchema(BaseSchema):
    """Ячейка календаря за один день месяца."""

    day: int = Field(..., ge=1, le=31, description="Номер дня месяца")
    completions: int = Field(0, ge=0, description="Количество выполнений за день")
    is_today: bool = Field(False, description="Является ли день сегодняшним")


class CalendarStatsSchema(BaseSchema):
    """Сводная статистика за месяц."""

    active_days: int = Field(0, ge=0, description="Количество выполненных записей за месяц")
    total_completions: int = Field(0, ge=0, description="Всего выполнений за месяц")


class MonthCalendarSchema(BaseSchema):
    """
    Календарная сетка месяца со статистикой.

    `cells` начинается с None-заполнителей до первого дня месяца (неделя начинается с воскресенья),
    далее по одной ячейке на каждый день. Последняя неделя не дополняется.
    """

    year: int = Field(..., description="Год")
    month: int = Field(..., ge=1, le=12, description="Месяц (1-12)")
    cells: list[CalendarCellSchema | None] = Field(default_factory=list, description="Ячейки сетки")
    stats: CalendarStatsSchema = Field(default_factory=CalendarStatsSchema, description="Статистика месяца")
