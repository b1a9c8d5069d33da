"""Репозиторий key-value хранилища на устройстве."""

from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.habit_store.core.logging import store_log as log
from src.habit_store.models import StorageEntry


class KeyValueRepository:
    """
    Репозиторий для операций чтения/записи коллекций по ключу.

    Не управляет транзакциями: commit/rollback выполняет сервис,
    который представляет собой "единицу работы (Unit of Work)".

    Attributes:
        model: Класс модели SQLAlchemy, с которым работает репозиторий.
    """

    def __init__(self, model: type[StorageEntry] = StorageEntry):
        """
        Инициализирует репозиторий.

        Args:
            model (type[StorageEntry]): Класс модели SQLAlchemy.
        """
        self.model = model

    async def get_item(self, db_session: AsyncSession, *, key: str) -> str | None:
        """
        Получает сериализованное значение по ключу.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            key (str): Ключ коллекции.

        Returns:
            str | None: Сохраненное значение или None, если ключ отсутствует.
        """
        statement = select(self.model.value).where(self.model.key == key)
        result = await db_session.execute(statement)
        value = result.scalar_one_or_none()

        status = "найден" if value is not None else "не найден"
        log.debug(f"Ключ '{key}' локального хранилища {status}.")

        return value

    async def set_item(self, db_session: AsyncSession, *, key: str, value: str) -> None:
        """
        Записывает значение по ключу (создает или перезаписывает запись).

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            key (str): Ключ коллекции.
            value (str): Сериализованное значение.
        """
        entry = await db_session.get(self.model, key)

        if entry is None:
            db_session.add(self.model(key=key, value=value))
        else:
            entry.value = value

        await db_session.flush()
        log.debug(f"Ключ '{key}' локального хранилища записан ({len(value)} байт).")

    async def remove_items(self, db_session: AsyncSession, *, keys: Sequence[str]) -> None:
        """
        Удаляет значения по списку ключей. Отсутствующие ключи игнорируются.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            keys (Sequence[str]): Ключи коллекций.
        """
        if not keys:
            return

        await db_session.execute(delete(self.model).where(self.model.key.in_(keys)))
        await db_session.flush()
        log.debug(f"Ключи локального хранилища удалены: {list(keys)}")
