"""Модель SQLAlchemy для StorageEntry (запись key-value хранилища на устройстве)."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class StorageEntry(Base):
    """
    Одна коллекция локального хранилища, сериализованная в JSON.

    Локальное хранилище адресует данные ключами коллекций ("habits", "progress",
    "user_preferences"); значение - упорядоченный JSON-массив записей.

    Attributes:
        key: Ключ коллекции (первичный ключ).
        value: Сериализованная коллекция.
        created_at: Время создания записи (унаследовано от TimestampMixin).
        updated_at: Время последнего обновления записи (унаследовано от TimestampMixin).
    """

    __tablename__ = "local_storage"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(key={self.key!r})>"
