"""Инициализация модуля сервисов."""

from .backend_selector import Backend, select_backend
from .base_store import BaseHabitStore
from .local_store import LocalHabitStore, StorageKey
from .remote_store import RemoteHabitStore
from .streak_service import apply_completion
from .sync_service import SyncService, listen_for_sign_in
from .unified_service import ServedResult, UnifiedHabitService

__all__ = [
    "Backend",
    "select_backend",
    "BaseHabitStore",
    "LocalHabitStore",
    "StorageKey",
    "RemoteHabitStore",
    "apply_completion",
    "SyncService",
    "listen_for_sign_in",
    "ServedResult",
    "UnifiedHabitService",
]
