"""Перенос локальных данных в удаленное хранилище при входе в аккаунт."""

from typing import AsyncIterable

from src.habit_store.core.exceptions import HabitStoreException
from src.habit_store.core.logging import store_log as log
from src.habit_store.core.session import AuthEvent, SessionState
from src.habit_store.schemas import HabitSchemaCreate

from .base_store import BaseHabitStore


class SyncService:
    """
    Однократное воспроизведение локальных привычек и прогресса в удаленном хранилище.

    Повторный запуск не идемпотентен: каждая локальная привычка создается в удаленном
    хранилище заново, поэтому синхронизация запускается только на переход к входу в аккаунт.
    Локальные данные после синхронизации не удаляются и не помечаются.
    """

    def __init__(self, local_store: BaseHabitStore, remote_store: BaseHabitStore):
        """
        Инициализирует сервис синхронизации.

        Args:
            local_store (BaseHabitStore): Источник данных.
            remote_store (BaseHabitStore): Хранилище назначения.
        """
        self.local_store = local_store
        self.remote_store = remote_store

    async def sync_local_to_remote(self) -> int:
        """
        Создает каждую локальную привычку в удаленном хранилище и воспроизводит ее записи прогресса.

        Счетчики не копируются: удаленные серии восстанавливаются пересчетом
        при воспроизведении записей в порядке их хранения. Ошибка одной привычки
        не прерывает обработку остальных.

        Returns:
            int: Количество полностью синхронизированных привычек.

        Raises:
            StorageException: Если не удалось прочитать локальные данные.
        """
        habits = await self.local_store.list_habits()
        progress = await self.local_store.list_progress()

        log.info(f"Начало синхронизации: {len(habits)} привычек, {len(progress)} записей прогресса.")

        synced_count = 0
        failed_habit_ids: list[str] = []

        # Последовательно, чтобы порядок создания удаленных привычек был детерминированным
        for habit in habits:
            try:
                remote_habit = await self.remote_store.create_habit(
                    HabitSchemaCreate(name=habit.name, icon=habit.icon, category=habit.category)
                )

                for record in progress:
                    if record.habit_id != habit.id:
                        continue
                    await self.remote_store.upsert_progress(
                        remote_habit.id, record.completion_date, record.completed, record.note
                    )

                synced_count += 1
                log.debug(f"Привычка ID {habit.id} синхронизирована как ID {remote_habit.id}.")
            except HabitStoreException as exc:
                failed_habit_ids.append(habit.id)
                log.opt(exception=exc).error(f"Ошибка синхронизации привычки ID {habit.id}: {exc.message}")

        if failed_habit_ids:
            log.warning(f"Синхронизация завершена с ошибками. Не синхронизированы привычки: {failed_habit_ids}")
        log.info(f"Синхронизация завершена: {synced_count} из {len(habits)} привычек.")

        return synced_count


async def listen_for_sign_in(
    events: AsyncIterable[AuthEvent],
    session_state: SessionState,
    reconciler: SyncService,
) -> int:
    """
    Обрабатывает поток событий сессии и запускает синхронизацию на каждый вход в аккаунт.

    Каждое событие применяется к состоянию сессии. Синхронизация запускается ровно один раз
    на переход "не аутентифицирован -> аутентифицирован" через SIGNED_IN. Ошибка синхронизации
    логируется и не прерывает обработку следующих событий.

    Args:
        events (AsyncIterable[AuthEvent]): Поток событий провайдера сессии.
        session_state (SessionState): Состояние сессии, общее с удаленным хранилищем.
        reconciler (SyncService): Сервис синхронизации.

    Returns:
        int: Количество запусков синхронизации (после завершения потока).
    """
    runs = 0

    async for auth_event in events:
        if not session_state.apply(auth_event):
            continue

        runs += 1
        log.info(f"Вход пользователя {session_state.user_id}: запуск синхронизации локальных данных.")
        try:
            synced = await reconciler.sync_local_to_remote()
            log.success(f"Синхронизировано привычек: {synced}.")
        except HabitStoreException as exc:
            log.error(f"Синхронизация после входа не выполнена: {exc.message}")

    return runs
