"""Инициализация модуля репозиториев."""

from .key_value_repository import KeyValueRepository
from .supabase_table_client import Filter, SupabaseTableClient, eq, gte, lte

__all__ = [
    "KeyValueRepository",
    "SupabaseTableClient",
    "Filter",
    "eq",
    "gte",
    "lte",
]
