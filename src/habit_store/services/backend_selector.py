"""Выбор хранилища для операции."""

from enum import StrEnum


class Backend(StrEnum):
    """Хранилища слоя данных."""

    REMOTE = "remote"  # Supabase
    LOCAL = "local"  # Key-value хранилище на устройстве


def select_backend(is_authenticated: bool, has_remote_credentials: bool) -> Backend:
    """
    Единственный источник истины для маршрутизации операций.

    Удаленное хранилище выбирается только если пользователь вошел в аккаунт
    и настроены учетные данные Supabase. Во всех остальных случаях - локальное.
    """
    if is_authenticated and has_remote_credentials:
        return Backend.REMOTE
    return Backend.LOCAL
