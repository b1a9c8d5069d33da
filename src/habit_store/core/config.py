"""Конфигурация слоя данных (локальное и удаленное хранилища)."""

from pydantic import Field

from src.core_shared.config import AppSettings

# Значения-заглушки из шаблона .env, которые не считаются настоящими учетными данными
PLACEHOLDER_SUPABASE_URL = "https://your-project-ref.supabase.co"
PLACEHOLDER_SUPABASE_ANON_KEY = "your-anon-key"


class Settings(AppSettings):
    """Основные настройки слоя данных."""

    # --- Локальное хранилище ---

    # URL базы данных на устройстве (key-value таблица поверх SQLite)
    LOCAL_DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./data/habits_local.db",
        description="URL локальной базы данных (SQLAlchemy, async драйвер)",
    )
    # Идентификатор владельца записей, созданных без входа в аккаунт
    LOCAL_USER_ID: str = Field(default="local_user", description="Идентификатор локального пользователя")

    # --- Удаленное хранилище (Supabase) ---

    SUPABASE_URL: str | None = Field(default=None, description="Базовый URL проекта Supabase")
    SUPABASE_ANON_KEY: str | None = Field(default=None, description="Публичный (anon) ключ проекта Supabase")
    REMOTE_REQUEST_TIMEOUT: float = Field(default=10.0, gt=0, description="Таймаут запроса к Supabase в секундах")

    # --- Значения по умолчанию для привычек ---

    DEFAULT_HABIT_ICON: str = Field(default="checkmark-circle", description="Иконка привычки по умолчанию")
    DEFAULT_HABIT_CATEGORY: str = Field(default="Custom", description="Категория привычки по умолчанию")

    # --- Вычисляемые поля ---

    @property
    def HAS_REMOTE_CREDENTIALS(self) -> bool:
        """Заданы ли настоящие (не шаблонные) учетные данные Supabase."""
        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY:
            return False
        return self.SUPABASE_URL != PLACEHOLDER_SUPABASE_URL and self.SUPABASE_ANON_KEY != PLACEHOLDER_SUPABASE_ANON_KEY

    @property
    def SUPABASE_REST_URL(self) -> str | None:
        """
        Возвращает URL REST-интерфейса (PostgREST) проекта.

        Пример: https://abc.supabase.co/rest/v1
        """
        if not self.SUPABASE_URL:
            return None
        return f"{self.SUPABASE_URL.rstrip('/')}/rest/v1"


# Создаем глобальный экземпляр настроек
settings = Settings()
