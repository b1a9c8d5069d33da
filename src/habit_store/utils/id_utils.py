"""Генерация идентификаторов локальных записей."""

import secrets
import string
import time

# Префикс, по которому локальные ID отличаются от выданных удаленным хранилищем
LOCAL_ID_PREFIX = "local-"

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH = 9


def generate_local_id() -> str:
    """
    Генерирует ID локальной записи: префикс, время в миллисекундах и случайный суффикс.

    Суффикс из 9 символов base36 исключает коллизии при нескольких вызовах в одну миллисекунду.
    """
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{LOCAL_ID_PREFIX}{time.time_ns() // 1_000_000}{suffix}"


def is_local_id(record_id: str) -> bool:
    """Проверяет, выдан ли ID локальным хранилищем."""
    return record_id.startswith(LOCAL_ID_PREFIX)
