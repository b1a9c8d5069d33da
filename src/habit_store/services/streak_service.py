"""
Пересчет производных счетчиков привычки (серии и выполнения).

Используется обоими хранилищами при каждой записи прогресса.
"""

from src.habit_store.core.logging import store_log as log
from src.habit_store.schemas import HabitCountersSchema


def apply_completion(counters: HabitCountersSchema, completed: bool) -> HabitCountersSchema:
    """
    Пересчитывает счетчики привычки после записи прогресса за один день.

    Модель монотонного инкремента, а не календарная серия: дата записи не учитывается,
    смежность с предыдущим выполнением не проверяется. Каждое completed=True
    увеличивает серию, даже если эта дата уже была отмечена или лежит в прошлом.

    - completed=True: current_streak += 1, best_streak = max(best, current),
      total_completions += 1, completed_this_week += 1.
    - completed=False: current_streak = 0, остальные счетчики не меняются.

    completed_this_week никогда не сбрасывается по границам недели (известное ограничение).

    Args:
        counters (HabitCountersSchema): Текущие значения счетчиков.
        completed (bool): Статус выполнения из записи прогресса.

    Returns:
        HabitCountersSchema: Новые значения счетчиков (исходный объект не изменяется).
    """
    if completed:
        current_streak = counters.current_streak + 1
        updated = HabitCountersSchema(
            current_streak=current_streak,
            best_streak=max(counters.best_streak, current_streak),
            completed_this_week=counters.completed_this_week + 1,
            total_completions=counters.total_completions + 1,
        )
    else:
        updated = counters.model_copy(update={"current_streak": 0})

    log.debug(
        f"Пересчет серий (completed={completed}): "
        f"серия {counters.current_streak}->{updated.current_streak}, "
        f"рекорд {counters.best_streak}->{updated.best_streak}, "
        f"всего {counters.total_completions}->{updated.total_completions}"
    )

    return updated
