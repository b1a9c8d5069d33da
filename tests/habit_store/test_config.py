from types import SimpleNamespace

from src.core_shared.sentry_sdk_setup import setup_sentry
from src.habit_store.core.config import PLACEHOLDER_SUPABASE_ANON_KEY, PLACEHOLDER_SUPABASE_URL, Settings


def test_remote_credentials_require_both_values():
    assert Settings(SUPABASE_URL="https://abc.supabase.co", SUPABASE_ANON_KEY=None).HAS_REMOTE_CREDENTIALS is False
    assert Settings(SUPABASE_URL=None, SUPABASE_ANON_KEY="key").HAS_REMOTE_CREDENTIALS is False
    assert Settings(SUPABASE_URL="https://abc.supabase.co", SUPABASE_ANON_KEY="key").HAS_REMOTE_CREDENTIALS is True


def test_placeholder_credentials_are_not_remote_credentials():
    settings = Settings(SUPABASE_URL=PLACEHOLDER_SUPABASE_URL, SUPABASE_ANON_KEY=PLACEHOLDER_SUPABASE_ANON_KEY)

    assert settings.HAS_REMOTE_CREDENTIALS is False


def test_rest_url_is_derived_from_project_url():
    settings = Settings(SUPABASE_URL="https://abc.supabase.co/", SUPABASE_ANON_KEY="key")

    assert settings.SUPABASE_REST_URL == "https://abc.supabase.co/rest/v1"
    assert Settings(SUPABASE_URL=None).SUPABASE_REST_URL is None


def test_habit_defaults():
    settings = Settings()

    assert settings.LOCAL_USER_ID == "local_user"
    assert settings.DEFAULT_HABIT_ICON == "checkmark-circle"
    assert settings.DEFAULT_HABIT_CATEGORY == "Custom"


def test_sentry_is_skipped_without_dsn():
    sentry_settings = SimpleNamespace(
        SENTRY_DSN=None,
        PRODUCTION=False,
        PROJECT_NAME="Habit Tracker Data Layer",
        API_VERSION="test",
        LOG_TO_FILE=False,
    )

    assert setup_sentry(sentry_settings, log_level="DEBUG") is False
