from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from src.habit_store.core.config import settings
from src.habit_store.core.database import Database

# --- ФИКСТУРА БЕЗОПАСНОСТИ ---


@pytest.fixture(scope="session", autouse=True)
def verify_test_environment():
    """
    Проверяет, что тесты запускаются с корректными настройками окружения.

    Эта фикстура выполняется автоматически перед началом тестовой сессии.
    """
    # Проверяем режим разработки
    assert settings.DEVELOPMENT is True, (
        "❌ ОШИБКА КОНФИГУРАЦИИ: Тесты должны запускаться в режиме разработки/тестирования (DEVELOPMENT=True). "
        "Проверьте настройки [tool.pytest.ini_options] в pyproject.toml"
    )

    # Логи тестов не пишутся в файлы
    assert settings.LOG_TO_FILE is False, (
        "❌ ОШИБКА КОНФИГУРАЦИИ: Ожидалось LOG_TO_FILE=False. Проверьте настройки pytest-env."
    )

    # Проверяем, что тесты не обращаются к настоящему проекту Supabase
    assert settings.HAS_REMOTE_CREDENTIALS is False, (
        "❌ ОПАСНОСТЬ: В окружении тестов заданы учетные данные Supabase. "
        "Удаленное хранилище в тестах подменяется через httpx.MockTransport."
    )


# --- ГЛОБАЛЬНЫЕ ФИКСТУРЫ ДЛЯ ВСЕГО ПРОЕКТА ---


@pytest.fixture(scope="function")
def local_database_url(tmp_path: Path) -> str:
    """URL отдельного файла SQLite для каждого теста."""
    return f"sqlite+aiosqlite:///{tmp_path / 'data' / 'habits_local.db'}"


@pytest_asyncio.fixture(scope="function")
async def database(local_database_url: str) -> AsyncGenerator[Database, None]:
    """
    Предоставляет подключенный менеджер локальной БД с чистой схемой для каждого теста.
    Файл БД удаляется вместе с временной директорией теста.
    """
    test_db = Database(local_database_url)
    await test_db.connect()
    try:
        # Передаем управление в тестовую функцию
        yield test_db
    finally:
        # Гарантированно закрываем подключение, даже если в тесте произошла ошибка
        await test_db.disconnect()
