"""Модуль вспомогательных утилит для работы с датами."""

import calendar
from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Текущее время в UTC (для меток created_at/updated_at)."""
    return datetime.now(timezone.utc)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """
    Возвращает первый и последний день месяца.

    Args:
        year (int): Год.
        month (int): Месяц (1-12).

    Returns:
        tuple[date, date]: (первый день, последний день), обе границы включительно.

    Raises:
        ValueError: Если месяц вне диапазона 1-12.
    """
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)


def sunday_based_weekday(day: date) -> int:
    """
    Номер дня недели в сетке, начинающейся с воскресенья.

    Воскресенье - 0, понедельник - 1, ..., суббота - 6.
    `date.weekday()` считает от понедельника, поэтому сдвигаем на единицу.
    """
    return (day.weekday() + 1) % 7
