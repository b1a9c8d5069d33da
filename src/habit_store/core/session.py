"""
Состояние сессии аутентификации.

Провайдер сессии является внешним компонентом: слой данных получает от него
только флаг аутентификации, идентификатор пользователя, токен доступа
и поток событий жизненного цикла (SIGNED_IN, SIGNED_OUT и т.д.).
"""

from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, Field

from .logging import store_log as log


class SessionEvent(StrEnum):
    """События жизненного цикла сессии."""

    INITIAL_SESSION = "INITIAL_SESSION"  # Сессия восстановлена при старте
    SIGNED_IN = "SIGNED_IN"  # Вход в аккаунт
    SIGNED_OUT = "SIGNED_OUT"  # Выход из аккаунта
    TOKEN_REFRESHED = "TOKEN_REFRESHED"  # Обновлен токен доступа
    USER_UPDATED = "USER_UPDATED"  # Изменены данные пользователя


class AuthEvent(BaseModel):
    """Сообщение о событии сессии, передаваемое в слой данных."""

    event: SessionEvent = Field(..., description="Тип события")
    user_id: str | None = Field(None, description="ID пользователя (если есть сессия)")
    access_token: str | None = Field(None, description="JWT токен доступа (если есть сессия)")


class SessionProvider(Protocol):
    """Контракт провайдера сессии, которого ожидает удаленное хранилище."""

    @property
    def is_authenticated(self) -> bool: ...

    @property
    def user_id(self) -> str | None: ...

    @property
    def access_token(self) -> str | None: ...


class SessionState:
    """
    Текущее состояние сессии, обновляемое событиями провайдера.

    Реализует SessionProvider. Не является синглтоном: экземпляр создается
    владельцем жизненного цикла и передается в хранилища явно.
    """

    def __init__(self, user_id: str | None = None, access_token: str | None = None):
        self._user_id = user_id
        self._access_token = access_token

    @property
    def is_authenticated(self) -> bool:
        return self._user_id is not None

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def apply(self, auth_event: AuthEvent) -> bool:
        """
        Применяет событие к состоянию сессии.

        Args:
            auth_event (AuthEvent): Событие провайдера сессии.

        Returns:
            bool: True, если событие является переходом "не аутентифицирован -> аутентифицирован"
                  через SIGNED_IN (именно на этот переход запускается синхронизация).
        """
        was_authenticated = self.is_authenticated

        if auth_event.event == SessionEvent.SIGNED_OUT:
            self._user_id = None
            self._access_token = None
        elif auth_event.event == SessionEvent.USER_UPDATED:
            # Без сессии событие обновления пользователя игнорируется
            if auth_event.user_id is not None:
                self._user_id = auth_event.user_id
                self._access_token = auth_event.access_token
        else:
            self._user_id = auth_event.user_id
            self._access_token = auth_event.access_token

        log.debug(f"Событие сессии {auth_event.event}: аутентифицирован={self.is_authenticated}")

        return auth_event.event == SessionEvent.SIGNED_IN and not was_authenticated and self.is_authenticated
