"""
Исключения слоя данных.

Таксономия ошибок хранилищ:
- NotFoundException: запрошенная запись отсутствует (не повторяется, пробрасывается вызывающему).
- NotAuthenticatedException: операция удаленного хранилища без сессии (ошибка вызывающего, без fallback).
- RemoteStoreException: сетевая ошибка или сбой бэкенда (фасад переключается на локальное хранилище).
- StorageException: сбой локального хранилища (ниже него хранилищ нет, ошибка фатальна для вызова).
- ValidationException: некорректные данные привычки или прогресса.
"""

from typing import Any


class HabitStoreException(Exception):
    """
    Базовое исключение слоя данных.

    Attributes:
        message (str): Человекочитаемое описание ошибки.
        error_type (str): Машиночитаемый тип ошибки.
        details (dict[str, Any]): Дополнительный контекст (ID записи, операция и т.д.).
    """

    default_message: str = "Ошибка слоя данных."
    default_error_type: str = "habit_store_error"

    def __init__(self, message: str | None = None, error_type: str | None = None, **details: Any):
        self.message = message or self.default_message
        self.error_type = error_type or self.default_error_type
        self.details = details
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(error_type={self.error_type!r}, message={self.message!r})"


class NotFoundException(HabitStoreException):
    """Запрошенная запись не найдена."""

    default_message = "Запись не найдена."
    default_error_type = "not_found"


class NotAuthenticatedException(HabitStoreException):
    """Операция удаленного хранилища вызвана без аутентифицированного пользователя."""

    default_message = "Пользователь не аутентифицирован."
    default_error_type = "not_authenticated"


class RemoteStoreException(HabitStoreException):
    """Удаленное хранилище недоступно или вернуло ошибку."""

    default_message = "Удаленное хранилище недоступно."
    default_error_type = "remote_unavailable"


class StorageException(HabitStoreException):
    """Ошибка ввода-вывода локального хранилища."""

    default_message = "Ошибка локального хранилища."
    default_error_type = "local_storage_failure"


class ValidationException(HabitStoreException):
    """Данные привычки или прогресса не прошли валидацию."""

    default_message = "Некорректные данные."
    default_error_type = "invalid_data"
