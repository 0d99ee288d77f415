from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient

from tasklist_api.main import create_app
from tasklist_api.service import TodoCollectionService
from tasklist_api.settings import _DEFAULT_STATIC_DIR, Settings

BASE_TIME = datetime(2025, 1, 25, 10, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + timedelta(seconds=1)
        return now


def make_settings(**overrides) -> Settings:
    values = dict(
        host="127.0.0.1",
        port=3000,
        cors_allow_origins=["*"],
        seed_todos=False,
        log_level="INFO",
        static_dir=_DEFAULT_STATIC_DIR,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(clock) -> TodoCollectionService:
    ids = count(1)
    return TodoCollectionService(clock=clock, id_factory=lambda: f"todo-{next(ids)}")


@pytest.fixture
def client() -> TestClient:
    # Fresh, unseeded application per test
    return TestClient(create_app(make_settings()))
