import pytest

from src.habit_store.services import Backend, select_backend


@pytest.mark.parametrize(
    "is_authenticated, has_remote_credentials, expected",
    [
        (True, True, Backend.REMOTE),
        (True, False, Backend.LOCAL),
        (False, True, Backend.LOCAL),
        (False, False, Backend.LOCAL),
    ],
)
def test_select_backend(is_authenticated: bool, has_remote_credentials: bool, expected: Backend):
    assert select_backend(is_authenticated, has_remote_credentials) == expected


def test_select_backend_is_deterministic():
    results = {select_backend(True, True) for _ in range(5)}

    assert results == {Backend.REMOTE}
