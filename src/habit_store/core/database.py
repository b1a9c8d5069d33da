"""Настройка подключения к локальной базе данных с использованием SQLAlchemy."""

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.habit_store.models import Base

from .config import settings
from .exceptions import HabitStoreException
from .logging import store_log as log


class Database:
    """
    Менеджер подключений к локальной базе данных (на устройстве).

    Отвечает за:
    - Инициализацию подключения и создание таблиц
    - Создание сессий
    - Корректное закрытие подключения
    """

    def __init__(self, database_url: str | None = None) -> None:
        """
        Инициализирует менеджер с пустыми подключениями.

        Args:
            database_url (str | None): URL базы данных. Если None, используется `LOCAL_DATABASE_URL` из настроек.
        """
        self.database_url = database_url or settings.LOCAL_DATABASE_URL
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_connected(self) -> bool:
        return self.session_factory is not None

    async def connect(self, **kwargs: Any) -> None:
        """
        Устанавливает подключение к базе данных и создает недостающие таблицы.

        Args:
            **kwargs: Дополнительные параметры для create_async_engine.

        Raises:
            RuntimeError: При неудачной проверке подключения.
        """
        self._ensure_sqlite_directory()

        self.engine = create_async_engine(
            self.database_url,
            echo=False,
            pool_pre_ping=True,  # Проверять соединение перед использованием
            **kwargs,
        )

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,  # Управляем flush явно
        )

        # Схема хранилища фиксирована (одна key-value таблица), миграции не нужны
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        await self._verify_connection()
        log.success(f"Подключение к локальной базе данных установлено: {self.engine.url.render_as_string()}")

    async def disconnect(self) -> None:
        """Корректное закрытие подключения к базе данных."""
        if self.engine:
            log.info("Закрытие подключения к локальной базе данных...")
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            log.info("Подключение к локальной базе данных закрыто.")

    def _ensure_sqlite_directory(self) -> None:
        """Создает директорию для файла SQLite, если она еще не существует."""
        url = make_url(self.database_url)

        if not url.get_backend_name().startswith("sqlite") or not url.database or url.database == ":memory:":
            return

        db_dir = os.path.dirname(url.database)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    async def _verify_connection(self) -> None:
        """
        Проверяет работоспособность подключения к базе данных.

        Raises:
            RuntimeError: Если проверка подключения не удалась.
        """
        if not self.session_factory:
            raise RuntimeError("Фабрика сессий не инициализирована.")
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
            log.debug("Проверка подключения к локальной БД прошла успешно.")
        except Exception as exc:
            log.opt(exception=exc).critical(f"Ошибка подключения к локальной базе данных: {exc}")
            raise RuntimeError("Не удалось проверить подключение к локальной БД.") from exc

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Асинхронный контекстный менеджер для работы с сессиями БД.

        Yields:
            AsyncSession: Экземпляр сессии БД.

        Raises:
            RuntimeError: При вызове до инициализации подключения (`connect`).
        """
        if not self.session_factory:
            raise RuntimeError("База данных не инициализирована. Вызовите `await connect()` перед использованием сессий.")

        session: AsyncSession = self.session_factory()

        try:
            yield session
        except HabitStoreException:
            # Доменные ошибки (NotFound и т.д.) логирует вызывающий код
            await session.rollback()
            raise
        except Exception as exc:
            # Трейсбек только в DEVELOPMENT
            log.opt(exception=exc if settings.DEVELOPMENT else None).error(
                f"Ошибка во время сессии локальной БД, выполняется откат: {exc}"
            )
            await session.rollback()
            raise
        finally:
            await session.close()


# Глобальный экземпляр менеджера локальной БД
db = Database()
