from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from todo_api.config import Settings
from todo_api.crud import TaskRepository
from todo_api.main import create_app

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock the repository reads instead of the wall clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def repo(clock):
    return TaskRepository(clock=clock)


@pytest.fixture
def client(repo):
    return TestClient(create_app(Settings(_env_file=None), repo))
