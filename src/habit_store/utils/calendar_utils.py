"""Построение календарной сетки месяца из записей прогресса."""

from collections import Counter
from datetime import date
from typing import Iterable

from src.habit_store.schemas import (
    CalendarCellSchema,
    CalendarStatsSchema,
    MonthCalendarSchema,
    ProgressSchemaRead,
)

from .date_utils import month_bounds, sunday_based_weekday


def build_month_calendar(
    year: int,
    month: int,
    progress: Iterable[ProgressSchemaRead],
    *,
    today: date | None = None,
    habit_id: str | None = None,
) -> MonthCalendarSchema:
    """
    Строит календарную сетку месяца и статистику.

    Сетка начинается с None-заполнителей до первого числа (неделя с воскресенья),
    затем идет по одной ячейке на каждый день месяца. Хвост последней недели не дополняется,
    поэтому длина сетки = заполнители + дни месяца.

    Учитываются только выполненные записи (completed=True), попадающие в месяц.

    Args:
        year (int): Год.
        month (int): Месяц (1-12).
        progress (Iterable[ProgressSchemaRead]): Записи прогресса владельца (могут выходить за месяц).
        today (date | None): "Сегодня" для флага is_today. По умолчанию - текущая дата.
        habit_id (str | None): Если задан, учитываются записи только этой привычки.

    Returns:
        MonthCalendarSchema: Сетка и статистика месяца.
    """
    first_day, last_day = month_bounds(year, month)
    today = today or date.today()

    completed_in_month = [
        record
        for record in progress
        if record.completed
        and first_day <= record.completion_date <= last_day
        and (habit_id is None or record.habit_id == habit_id)
    ]

    # Количество выполнений по дням (по всем привычкам или по одной)
    completions_by_date = Counter(record.completion_date for record in completed_in_month)

    cells: list[CalendarCellSchema | None] = [None] * sunday_based_weekday(first_day)

    for day_number in range(1, last_day.day + 1):
        current = date(year, month, day_number)
        cells.append(
            CalendarCellSchema(
                day=day_number,
                completions=completions_by_date.get(current, 0),
                is_today=current == today,
            )
        )

    stats = CalendarStatsSchema(
        active_days=len(completed_in_month),
        total_completions=len(completed_in_month),
    )

    return MonthCalendarSchema(year=year, month=month, cells=cells, stats=stats)
