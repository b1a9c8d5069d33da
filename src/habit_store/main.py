"""Точка сборки слоя данных трекера привычек.

Отвечает за:
- Создание хранилищ, фасада и сервиса синхронизации.
- Управление жизненным циклом (подключение к локальной БД, закрытие HTTP-клиента).
- Подключение потока событий сессии к синхронизации.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterable

import httpx

from src.core_shared.sentry_sdk_setup import setup_sentry
from src.habit_store.core.config import Settings, settings
from src.habit_store.core.database import Database
from src.habit_store.core.logging import store_log as log
from src.habit_store.core.session import AuthEvent, SessionState
from src.habit_store.repositories import SupabaseTableClient
from src.habit_store.services import (
    LocalHabitStore,
    RemoteHabitStore,
    SyncService,
    UnifiedHabitService,
    listen_for_sign_in,
)

# Вызываем инициализацию Sentry, передавая настройки и уровень логирования
if settings.SENTRY_DSN:
    setup_sentry(settings, log_level=settings.LOG_LEVEL)


class HabitDataLayer:
    """
    Собранный слой данных: хранилища, фасад, состояние сессии и синхронизация.

    Attributes:
        settings (Settings): Настройки слоя данных.
        database (Database): Менеджер локальной БД.
        session_state (SessionState): Текущая сессия (общая для удаленного хранилища и синхронизации).
        local_store (LocalHabitStore): Локальное хранилище.
        remote_client (SupabaseTableClient | None): Клиент Supabase (None без учетных данных).
        remote_store (RemoteHabitStore | None): Удаленное хранилище (None без учетных данных).
        service (UnifiedHabitService): Фасад для вызывающего кода.
        sync_service (SyncService | None): Синхронизация (None без удаленного хранилища).
    """

    def __init__(
        self,
        app_settings: Settings = settings,
        *,
        database: Database | None = None,
        session_state: SessionState | None = None,
        remote_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Создает компоненты слоя данных.

        Args:
            app_settings (Settings): Настройки.
            database (Database | None): Менеджер локальной БД. По умолчанию создается по LOCAL_DATABASE_URL.
            session_state (SessionState | None): Начальное состояние сессии.
            remote_transport (httpx.AsyncBaseTransport | None): Транспорт HTTP-клиента Supabase (для тестов).
        """
        self.settings = app_settings
        self.database = database or Database(app_settings.LOCAL_DATABASE_URL)
        self.session_state = session_state or SessionState()

        self.local_store = LocalHabitStore(database=self.database)
        self.remote_client: SupabaseTableClient | None = None
        self.remote_store: RemoteHabitStore | None = None
        self.sync_service: SyncService | None = None

        if app_settings.HAS_REMOTE_CREDENTIALS and app_settings.SUPABASE_REST_URL and app_settings.SUPABASE_ANON_KEY:
            self.remote_client = SupabaseTableClient(
                app_settings.SUPABASE_REST_URL,
                app_settings.SUPABASE_ANON_KEY,
                access_token_getter=lambda: self.session_state.access_token,
                timeout=app_settings.REMOTE_REQUEST_TIMEOUT,
                transport=remote_transport,
            )
            self.remote_store = RemoteHabitStore(self.remote_client, self.session_state)
            self.sync_service = SyncService(self.local_store, self.remote_store)
        else:
            log.warning("Учетные данные Supabase не заданы, слой данных работает только локально.")

        self.service = UnifiedHabitService(
            self.local_store,
            self.remote_store,
            has_remote_credentials=app_settings.HAS_REMOTE_CREDENTIALS,
        )

    @property
    def is_authenticated(self) -> bool:
        return self.session_state.is_authenticated

    async def connect(self) -> None:
        """Подключается к локальной БД."""
        log.info(f"Инициализация слоя данных '{self.settings.PROJECT_NAME}@{self.settings.API_VERSION}'...")
        await self.database.connect()

    async def disconnect(self) -> None:
        """Закрывает подключение к локальной БД и HTTP-клиент Supabase."""
        log.info("Остановка слоя данных...")
        if self.remote_client is not None:
            await self.remote_client.close()
        await self.database.disconnect()
        log.info("Слой данных остановлен.")

    async def listen_for_sign_in(self, events: AsyncIterable[AuthEvent]) -> int:
        """
        Применяет события сессии и запускает синхронизацию на каждый вход в аккаунт.

        Без удаленного хранилища события только обновляют состояние сессии.

        Returns:
            int: Количество запусков синхронизации.
        """
        if self.sync_service is None:
            async for auth_event in events:
                self.session_state.apply(auth_event)
            return 0

        return await listen_for_sign_in(events, self.session_state, self.sync_service)


@asynccontextmanager
async def open_data_layer(**kwargs: Any) -> AsyncGenerator[HabitDataLayer, None]:
    """
    Контекстный менеджер жизненного цикла слоя данных.

    Args:
        **kwargs: Аргументы конструктора HabitDataLayer.

    Yields:
        HabitDataLayer: Подключенный слой данных.
    """
    data_layer = HabitDataLayer(**kwargs)
    try:
        await data_layer.connect()
        yield data_layer
    finally:
        await data_layer.disconnect()
